"""
Responsiveness metric.

For Response, Load and discrete Animation expectations, responsiveness is
derived from the time between when the user thinks they began an
interaction and when the screen first changes to reflect it.  The user
cannot see when the browser actually started processing, so `duration` is
measured from the expected start.

Each duration is scored against a histogram of how many people (out of a
hypothetical population) would still consider it tolerable.  The tables are
best-effort guesses, not experimentally derived.

Animations are scored on throughput (frames per second) and smoothness
(evenness of frame timestamps), blended perceptually.

Every non-Idle expectation gets a diagnostic `responsiveness` value; the
overall `responsiveness` value is the perceptual blend of all of them.
"""
from __future__ import annotations

import math

from tracemetrics.errors import (
    MissingDataError, UnrecognizedExpectationError, UnsupportedExpectationError,
)
from tracemetrics.model.expectations import ExpectationKind
from tracemetrics.statistics import clamp, normalize, perceptual_blend, timestamps_discrepancy, weighted_mean
from tracemetrics.values.histogram import ScoreHistogram
from tracemetrics.values.scalar import ScalarNumeric
from tracemetrics.values.units import Unit
from tracemetrics.values.value import GroupedValue, ValueList

UNIT = Unit.NORMALIZED_PERCENTAGE_BIGGER_IS_BETTER

_NEG_INF = -math.inf
_POS_INF = math.inf


# ── Score tables ───────────────────────────────────────────────────────────────

RESPONSE_HISTOGRAM = ScoreHistogram.from_dict({
    "unit": "unitless",
    "min": 150,
    "max": 5000,
    "underflowBin": {"min": _NEG_INF, "max": 150, "count": 1000},
    "centralBins": [
        {"min": 150,  "max": 635,  "count": 708},
        {"min": 635,  "max": 1120, "count": 223},
        {"min": 1120, "max": 1605, "count": 50},
        {"min": 1605, "max": 2090, "count": 33},
        {"min": 2090, "max": 2575, "count": 23},
        {"min": 2575, "max": 3060, "count": 17},
        {"min": 3060, "max": 3545, "count": 12},
        {"min": 3545, "max": 4030, "count": 8},
        {"min": 4030, "max": 4515, "count": 4},
        {"min": 4515, "max": 5000, "count": 1},
    ],
    "overflowBin": {"min": 5000, "max": _POS_INF, "count": 0},
    "maxCount": 2079,
})

FAST_RESPONSE_HISTOGRAM = ScoreHistogram.from_dict({
    "unit": "unitless",
    "min": 66,
    "max": 2200,
    "underflowBin": {"min": _NEG_INF, "max": 66, "count": 1000},
    "centralBins": [
        {"min": 66,   "max": 280,  "count": 708},
        {"min": 280,  "max": 493,  "count": 223},
        {"min": 493,  "max": 706,  "count": 50},
        {"min": 706,  "max": 920,  "count": 33},
        {"min": 920,  "max": 1133, "count": 23},
        {"min": 1133, "max": 1346, "count": 17},
        {"min": 1346, "max": 1560, "count": 12},
        {"min": 1560, "max": 1773, "count": 8},
        {"min": 1773, "max": 1987, "count": 4},
        {"min": 1987, "max": 2200, "count": 1},
    ],
    "overflowBin": {"min": 2200, "max": _POS_INF, "count": 0},
    "maxCount": 2079,
})

LOAD_HISTOGRAM = ScoreHistogram.from_dict({
    "unit": "unitless",
    "min": 1000,
    "max": 60000,
    "underflowBin": {"min": _NEG_INF, "max": 1000, "count": 1000},
    "centralBins": [
        {"min": 1000,  "max": 6900,  "count": 901},
        {"min": 6900,  "max": 12800, "count": 574},
        {"min": 12800, "max": 18700, "count": 298},
        {"min": 18700, "max": 24600, "count": 65},
        {"min": 24600, "max": 30500, "count": 35},
        {"min": 30500, "max": 36400, "count": 23},
        {"min": 36400, "max": 42300, "count": 16},
        {"min": 42300, "max": 48200, "count": 10},
        {"min": 48200, "max": 54100, "count": 5},
        {"min": 54100, "max": 60000, "count": 2},
    ],
    "overflowBin": {"min": 60000, "max": _POS_INF, "count": 0},
    "maxCount": 2929,
})

# Animation throughput is best at MAX_FPS and worst at MIN_FPS.
MAX_FPS = 60
MIN_FPS = 10

# Animation smoothness is best at or below MIN_DISCREPANCY and worst at or
# above MAX_DISCREPANCY.
MIN_DISCREPANCY = 0.05
MAX_DISCREPANCY = 0.3


# ── Duration scoring ───────────────────────────────────────────────────────────

def compute_duration_responsiveness(histogram: ScoreHistogram, duration: float) -> float:
    return histogram.interpolated_count_at(duration) / histogram.max_count


def grouping_keys_for_user_expectation(ue) -> dict:
    # A fresh dict per value: grouping keys are never shared between values.
    return {
        "userExpectationStableId":       ue.stable_id,
        "userExpectationStageTitle":     ue.stage_title,
        "userExpectationInitiatorTitle": ue.initiator_title,
    }


def _require_duration(ue) -> float:
    if ue.duration is None or math.isnan(ue.duration):
        raise MissingDataError(f"Missing duration for {ue.stable_id}")
    return ue.duration


# ── Animation scoring ──────────────────────────────────────────────────────────

def _require_frame_events(ue) -> tuple:
    if not ue.frame_events:
        raise MissingDataError(f"Animation missing frameEvents {ue.stable_id}")
    return ue.frame_events


def compute_animation_throughput(ue) -> float:
    frame_events     = _require_frame_events(ue)
    duration_seconds = _require_duration(ue) / 1000
    avg_spf          = duration_seconds / len(frame_events)
    throughput = 1 - normalize(avg_spf, 1 / MAX_FPS, 1 / MIN_FPS)
    return clamp(throughput, 0, 1)


def compute_animation_smoothness(ue) -> float:
    frame_timestamps = [event.start for event in _require_frame_events(ue)]
    d = timestamps_discrepancy(frame_timestamps, absolute=False)
    smoothness = 1 - normalize(d, MIN_DISCREPANCY, MAX_DISCREPANCY)
    return clamp(smoothness, 0, 1)


def _is_missing(score) -> bool:
    return score is None or math.isnan(score)


def compute_animation_responsiveness(ue, diagnostic_values: ValueList, canonical_url=None) -> float:
    throughput = compute_animation_throughput(ue)
    if _is_missing(throughput):
        raise MissingDataError(f"Missing throughput for {ue.stable_id}")

    diagnostic_values.add_value(GroupedValue(
        canonical_url, "throughput", ScalarNumeric(UNIT, throughput),
        description="Mean Opinion Score for Animation throughput",
        grouping_keys=grouping_keys_for_user_expectation(ue),
    ))

    smoothness = compute_animation_smoothness(ue)
    if _is_missing(smoothness):
        raise MissingDataError(f"Missing smoothness for {ue.stable_id}")

    diagnostic_values.add_value(GroupedValue(
        canonical_url, "smoothness", ScalarNumeric(UNIT, smoothness),
        description="Mean Opinion Score for Animation smoothness",
        grouping_keys=grouping_keys_for_user_expectation(ue),
    ))

    return weighted_mean([throughput, smoothness], perceptual_blend)


# ── Dispatch ───────────────────────────────────────────────────────────────────

def _score_idle(ue, diagnostic_values, canonical_url):
    raise UnsupportedExpectationError("Responsiveness is not defined for Idle")


def _score_load(ue, diagnostic_values, canonical_url):
    score = compute_duration_responsiveness(LOAD_HISTOGRAM, _require_duration(ue))
    return score, "Mean Opinion Score of Time to First ContentfulPaint"


def _score_response(ue, diagnostic_values, canonical_url):
    histogram = FAST_RESPONSE_HISTOGRAM if ue.is_animation_begin else RESPONSE_HISTOGRAM
    score = compute_duration_responsiveness(histogram, _require_duration(ue))
    return score, "Mean Opinion Score of input latency"


def _score_animation(ue, diagnostic_values, canonical_url):
    score = compute_animation_responsiveness(ue, diagnostic_values, canonical_url)
    return score, "Mean Opinion Score of perceptual blend of throughput and smoothness"


_SCORERS = {
    ExpectationKind.IDLE:      _score_idle,
    ExpectationKind.LOAD:      _score_load,
    ExpectationKind.RESPONSE:  _score_response,
    ExpectationKind.ANIMATION: _score_animation,
}


def compute_responsiveness(ue, diagnostic_values: ValueList, canonical_url=None) -> float:
    """
    Score one expectation, adding its diagnostic values to diagnostic_values.

    Raises UnsupportedExpectationError for Idle, UnrecognizedExpectationError
    for any other kind outside the dispatch table, MissingDataError when a
    score cannot be computed.
    """
    scorer = _SCORERS.get(ue.kind)
    if scorer is None:
        raise UnrecognizedExpectationError(f"Unrecognized stage for {ue.stable_id}")

    score, description = scorer(ue, diagnostic_values, canonical_url)
    if _is_missing(score):
        raise MissingDataError(f"Unable to compute responsiveness for {ue.stable_id}")

    diagnostic_values.add_value(GroupedValue(
        canonical_url, "responsiveness", ScalarNumeric(UNIT, score),
        description=description,
        grouping_keys=grouping_keys_for_user_expectation(ue),
    ))
    return score


def responsiveness_metric(values: ValueList, model) -> None:
    """Add the overall perceptual-blend responsiveness of `model` to `values`."""
    canonical_url     = model.canonical_url
    scores            = []
    diagnostic_values = ValueList()

    for ue in model.user_model.expectations:
        # Responsiveness is not defined for Idle.
        if ue.kind is ExpectationKind.IDLE:
            continue
        scores.append(compute_responsiveness(ue, diagnostic_values, canonical_url))

    overall_score = weighted_mean(scores, perceptual_blend)
    if overall_score is None:
        return

    values.add_value(GroupedValue(
        canonical_url, "responsiveness", ScalarNumeric(UNIT, overall_score),
        description="Perceptual blend of responsiveness of RAIL user expectations",
        grouping_keys={},
        diagnostics={"values": diagnostic_values.value_dicts},
    ))
