"""
Tests for feature vector construction.

Covers:
- Degenerate-range normalization
- Vector layout and neutral values
- Sequences over a window and their [0, 1] bounds
- Sliding-window training examples (flat windows skipped)
"""

import math

import numpy as np
import pytest


class TestNormalize:
    @pytest.mark.parametrize(
        "lo, hi",
        [(5.0, 5.0), (float("nan"), 10.0), (0.0, float("inf")), (1.0, 1.0 + 1e-7)],
    )
    def test_degenerate_range_is_half(self, lo, hi):
        from forecast.features.vectors import FeatureVectorBuilder

        assert FeatureVectorBuilder().normalize(3.0, lo, hi) == 0.5

    def test_linear_scaling(self):
        from forecast.features.vectors import FeatureVectorBuilder

        builder = FeatureVectorBuilder()
        assert builder.normalize(15.0, 10.0, 20.0) == pytest.approx(0.5)
        assert builder.normalize(20.0, 10.0, 20.0) == pytest.approx(1.0)
        assert builder.normalize(10.0, 10.0, 20.0) == pytest.approx(0.0)


class TestFeatureVector:
    def test_vector_has_eight_entries(self):
        from forecast.entities import FEATURE_COUNT, IndicatorSet
        from forecast.features.vectors import FeatureVectorBuilder

        vector = FeatureVectorBuilder().build_feature_vector(
            100.0, IndicatorSet.empty(), 90.0, 110.0, 11.0
        )
        assert len(vector) == FEATURE_COUNT

    def test_neutral_oscillators_map_to_half(self):
        from forecast.entities import IndicatorSet
        from forecast.features.vectors import FeatureVectorBuilder

        vector = FeatureVectorBuilder().build_feature_vector(
            100.0, IndicatorSet.empty(), 90.0, 110.0, 11.0
        )
        price, _, _, rsi, macd, _, _, volatility = vector
        assert price == pytest.approx(0.5)
        assert rsi == pytest.approx(0.5)
        assert macd == pytest.approx(0.5)
        assert volatility == pytest.approx(0.0)

    def test_flat_window_vector_is_half_for_price_terms(self):
        from forecast.entities import IndicatorSet
        from forecast.features.vectors import FeatureVectorBuilder

        vector = FeatureVectorBuilder().build_feature_vector(
            50.0, IndicatorSet.empty(), 50.0, 50.0, 5.0
        )
        assert vector[0] == vector[1] == vector[2] == 0.5


class TestSequences:
    def test_sequence_shape(self, walk_60):
        from forecast.features.vectors import FeatureVectorBuilder

        sequence = FeatureVectorBuilder().build_sequence(walk_60[:30])
        assert len(sequence) == 30
        assert all(len(v) == 8 for v in sequence)

    def test_sequence_values_within_unit_interval(self, walk_60):
        from forecast.features.vectors import FeatureVectorBuilder

        sequence = FeatureVectorBuilder().build_sequence(walk_60[-30:])
        values = np.asarray(sequence)
        assert np.all(np.isfinite(values))
        assert values.min() >= 0.0
        assert values.max() <= 1.0

    def test_bounds_and_denormalize(self):
        from forecast.features.vectors import FeatureVectorBuilder

        bounds = FeatureVectorBuilder().bounds([10.0, 30.0, 20.0])
        assert bounds.min_price == 10.0
        assert bounds.max_price == 30.0
        assert bounds.max_volatility_ref == pytest.approx(3.0)
        assert bounds.denormalize(0.5) == pytest.approx(20.0)

    def test_degenerate_window(self):
        from forecast.features.vectors import FeatureVectorBuilder

        builder = FeatureVectorBuilder()
        assert builder.is_degenerate(builder.bounds([100.0, 100.005]))
        assert not builder.is_degenerate(builder.bounds([100.0, 100.02]))


class TestTrainingExamples:
    def test_one_example_per_following_price(self, walk_60):
        from forecast.features.vectors import FeatureVectorBuilder

        examples = FeatureVectorBuilder().build_training_examples(walk_60, 30)
        assert len(examples) == 30
        assert all(len(ex.sequence) == 30 for ex in examples)
        assert all(math.isfinite(ex.target) for ex in examples)

    def test_target_is_next_price_normalized_to_window(self, walk_60):
        from forecast.features.vectors import FeatureVectorBuilder

        builder = FeatureVectorBuilder()
        first = builder.build_training_examples(walk_60, 30)[0]
        window = walk_60[:30]
        expected = (walk_60[30] - min(window)) / (max(window) - min(window))
        assert first.target == pytest.approx(expected)

    def test_flat_windows_are_skipped(self, walk_60):
        from forecast.features.vectors import FeatureVectorBuilder

        series = [50.0] * 40 + walk_60
        examples = FeatureVectorBuilder().build_training_examples(series, 30)
        # Windows ending at or before index 40 are entirely flat.
        assert len(examples) == len(series) - 30 - 11

    def test_to_arrays_shapes(self, walk_60):
        from forecast.features.vectors import FeatureVectorBuilder

        builder = FeatureVectorBuilder()
        X, y = builder.to_arrays(builder.build_training_examples(walk_60, 30))
        assert X.shape == (30, 30, 8)
        assert y.shape == (30,)
        assert X.dtype == np.float32

    def test_to_arrays_empty(self):
        from forecast.features.vectors import FeatureVectorBuilder

        X, y = FeatureVectorBuilder.to_arrays([])
        assert len(X) == 0 and len(y) == 0
