"""
Statistics helpers used by the metrics.

Scores in tracemetrics are normalised to [0.0, 1.0] where bigger is better.
The helpers here map raw measurements onto that scale and combine several
scores into one:

    throughput = clamp(1 - normalize(avg_spf, 1/60, 1/10), 0, 1)
    overall    = weighted_mean(scores, perceptual_blend)

Discrepancy measures how unevenly a set of timestamps is spread compared to
a perfectly uniform spacing.  It is used for animation smoothness.
"""
from __future__ import annotations

import math


# ── Scaling ────────────────────────────────────────────────────────────────────

def normalize(value: float, lo: float, hi: float) -> float:
    """Map value from [lo, hi] to [0.0, 1.0].  Not clamped."""
    return (value - lo) / (hi - lo)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


# ── Blending ───────────────────────────────────────────────────────────────────

def perceptual_blend(item, index: int, score: float) -> float:
    """
    Weight for one score in a perceptual blend.

    Lower scores weigh exponentially more than higher ones: a single bad
    experience dominates the overall impression (peak-end rule).
    """
    return math.exp(1 - score)


def weighted_mean(items, weight_fn, value_fn=None) -> "float | None":
    """
    sum(weight * value) / sum(weight).

    weight_fn(item, index, value) gives each item's weight; value_fn(item,
    index) extracts its value (identity by default).  Items whose value is
    None are skipped.  Returns None when the total weight is zero, e.g. for
    an empty list.
    """
    numerator   = 0.0
    denominator = 0.0
    for i, item in enumerate(items):
        value = value_fn(item, i) if value_fn else item
        if value is None:
            continue
        weight = weight_fn(item, i, value)
        numerator   += weight * value
        denominator += weight
    if denominator == 0:
        return None
    return numerator / denominator


# ── Discrepancy ────────────────────────────────────────────────────────────────

def normalize_samples(samples) -> "tuple[list[float], float]":
    """
    Sort samples and scale them into [0.5/N, (N-0.5)/N].

    Returns (normalized_samples, scale).  The input is not modified.  If all
    samples are equal every normalized sample is 0.5 and the scale is 1.0.
    """
    samples = sorted(samples)
    n = len(samples)
    if n == 0:
        return samples, 1.0
    low, high = samples[0], samples[-1]
    new_low   = 0.5 / n
    new_high  = (n - 0.5) / n
    if high - low == 0.0:
        return [0.5] * n, 1.0
    scale = (new_high - new_low) / (high - low)
    return [(s - low) * scale + new_low for s in samples], scale


def discrepancy(samples) -> float:
    """
    Largest local discrepancy of sorted samples in [0, 1].

    The local discrepancy of an interval is the difference between the
    fraction of samples inside it and its length.  Computed in one pass with
    a variant of Kadane's maximum-subarray algorithm.
    """
    n = len(samples)
    if n == 0:
        return 0.0

    inv_sample_count = 1.0 / n
    locations        = []
    # Number of samples < location, and <= location.
    count_less       = []
    count_less_equal = []

    if samples[0] > 0.0:
        locations.append(0.0)
        count_less.append(0)
        count_less_equal.append(0)
    for i, sample in enumerate(samples):
        locations.append(sample)
        count_less.append(i)
        count_less_equal.append(i + 1)
    if samples[-1] < 1.0:
        locations.append(1.0)
        count_less.append(n)
        count_less_equal.append(n)

    max_diff = 0.0
    min_diff = 0.0
    max_local_discrepancy = 0.0
    for i in range(1, len(locations)):
        length       = locations[i] - locations[i - 1]
        count_closed = count_less_equal[i] - count_less[i - 1]
        count_open   = count_less[i] - count_less_equal[i - 1]
        # Samples gained by extending a closed / open range ending at i-1.
        closed_increment = count_less_equal[i] - count_less_equal[i - 1]
        open_increment   = count_less[i] - count_less[i - 1]

        max_diff = max(closed_increment * inv_sample_count - length + max_diff,
                       count_closed * inv_sample_count - length)
        min_diff = min(open_increment * inv_sample_count - length + min_diff,
                       count_open * inv_sample_count - length)
        max_local_discrepancy = max(max_diff, -min_diff, max_local_discrepancy)
    return max_local_discrepancy


def timestamps_discrepancy(timestamps, absolute: bool = True) -> float:
    """
    Discrepancy of a timestamp sequence.

    absolute=True   discrepancy in the timestamps' own units (e.g. ms)
    absolute=False  relative discrepancy, rescaled so that perfectly even
                    spacing scores 0.0 and the worst case 1.0
    """
    timestamps = list(timestamps)
    if not timestamps:
        return 0.0

    samples, sample_scale = normalize_samples(timestamps)
    d = discrepancy(samples)
    inv_sample_count = 1.0 / len(samples)
    if absolute:
        return d / sample_scale
    if inv_sample_count == 1.0:
        return 0.0
    return clamp((d - inv_sample_count) / (1.0 - inv_sample_count), 0.0, 1.0)
