"""
Statistics helper tests.
"""
import math

import pytest

from tracemetrics.statistics import (
    clamp, discrepancy, normalize, normalize_samples, perceptual_blend,
    timestamps_discrepancy, weighted_mean,
)


# ── normalize / clamp ─────────────────────────────────────────────────────────

class TestScaling:
    def test_normalize_midpoint(self):
        assert normalize(5, 0, 10) == 0.5

    def test_normalize_not_clamped(self):
        assert normalize(20, 0, 10) == 2.0

    def test_normalize_fps_range(self):
        assert normalize(1 / 60, 1 / 60, 1 / 10) == 0.0
        assert normalize(1 / 10, 1 / 60, 1 / 10) == pytest.approx(1.0)

    def test_clamp(self):
        assert clamp(-0.5, 0, 1) == 0
        assert clamp(1.5, 0, 1) == 1
        assert clamp(0.25, 0, 1) == 0.25


# ── weighted_mean / perceptual_blend ──────────────────────────────────────────

class TestWeightedMean:
    def test_all_perfect(self):
        assert weighted_mean([1.0, 1.0], perceptual_blend) == pytest.approx(1.0)

    def test_all_zero(self):
        assert weighted_mean([0.0, 0.0], perceptual_blend) == pytest.approx(0.0)

    def test_empty_is_none(self):
        assert weighted_mean([], perceptual_blend) is None

    def test_none_values_skipped(self):
        assert weighted_mean([None, 0.5], perceptual_blend) == pytest.approx(0.5)

    def test_low_scores_dominate(self):
        # weights e^0 for 1.0 and e^1 for 0.0
        expected = 1.0 / (1.0 + math.e)
        assert weighted_mean([1.0, 0.0], perceptual_blend) == pytest.approx(expected)
        assert weighted_mean([1.0, 0.0], perceptual_blend) < 0.5

    def test_blend_weight(self):
        assert perceptual_blend(None, 0, 1.0) == pytest.approx(1.0)
        assert perceptual_blend(None, 0, 0.0) == pytest.approx(math.e)

    def test_value_fn(self):
        items = [{"s": 0.2}, {"s": 0.2}]
        assert weighted_mean(items, lambda *_: 1.0, lambda item, i: item["s"]) == pytest.approx(0.2)


# ── discrepancy ───────────────────────────────────────────────────────────────

class TestDiscrepancy:
    def test_normalize_samples_sorts_and_scales(self):
        samples, scale = normalize_samples([10, 0])
        assert samples == pytest.approx([0.25, 0.75])
        assert scale == pytest.approx(0.05)

    def test_normalize_samples_constant(self):
        samples, scale = normalize_samples([3, 3, 3])
        assert samples == [0.5, 0.5, 0.5]
        assert scale == 1.0

    def test_normalize_samples_does_not_mutate(self):
        original = [3, 1, 2]
        normalize_samples(original)
        assert original == [3, 1, 2]

    def test_discrepancy_empty(self):
        assert discrepancy([]) == 0.0

    def test_discrepancy_of_even_samples(self):
        # (i + 0.5) / n spacing has discrepancy exactly 1/n
        assert discrepancy([1 / 6, 0.5, 5 / 6]) == pytest.approx(1 / 3)

    def test_timestamps_empty(self):
        assert timestamps_discrepancy([]) == 0.0

    def test_even_timestamps_relative_zero(self):
        ts = [i * 1000 / 60 for i in range(10)]
        assert timestamps_discrepancy(ts, absolute=False) == pytest.approx(0.0, abs=1e-9)

    def test_uneven_timestamps_relative_positive(self):
        even   = timestamps_discrepancy([0, 10, 20, 30], absolute=False)
        uneven = timestamps_discrepancy([0, 1, 2, 30], absolute=False)
        assert uneven > even
        assert 0.0 <= uneven <= 1.0

    def test_single_timestamp(self):
        assert timestamps_discrepancy([5.0]) == pytest.approx(0.5)
        assert timestamps_discrepancy([5.0], absolute=False) == 0.0

    def test_unsorted_input_same_as_sorted(self):
        ts = [0, 16, 40, 50, 66]
        assert timestamps_discrepancy(list(reversed(ts)), absolute=False) == pytest.approx(
            timestamps_discrepancy(ts, absolute=False))

