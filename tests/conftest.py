"""
Shared fixtures for the forecast engine tests.
"""

import numpy as np
import pytest


def random_walk(n: int, seed: int = 42, start: float = 100.0, step: float = 1.0) -> list[float]:
    """Positive random-walk closing prices."""
    rng = np.random.default_rng(seed)
    prices = start + np.cumsum(rng.normal(0.0, step, n))
    return np.maximum(prices, 1.0).round(4).tolist()


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def walk_200() -> list[float]:
    return random_walk(200)


@pytest.fixture
def walk_60() -> list[float]:
    return random_walk(60, seed=7)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="session")
def make_walk():
    """Factory for random walks, usable from wider-scoped fixtures."""
    return random_walk
