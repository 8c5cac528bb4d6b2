"""Small numeric helpers shared by the predictors."""


def clamp(value: float, lo: float, hi: float) -> float:
    """Limit ``value`` to the closed interval ``[lo, hi]``."""
    return max(lo, min(hi, value))
