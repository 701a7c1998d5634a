"""
Responsiveness metric tests.
"""
import math

import pytest

from tracemetrics.errors import (
    MissingDataError, UnrecognizedExpectationError, UnsupportedExpectationError,
)
from tracemetrics.metrics.responsiveness import (
    FAST_RESPONSE_HISTOGRAM, LOAD_HISTOGRAM, RESPONSE_HISTOGRAM,
    compute_animation_smoothness, compute_animation_throughput,
    compute_duration_responsiveness, compute_responsiveness, responsiveness_metric,
)
from tracemetrics.model import ExpectationKind, FrameEvent, TraceModel, UserExpectation, UserModel
from tracemetrics.values import Unit, ValueList


def _ue(stable_id="ue.1", kind=ExpectationKind.LOAD, start=0.0, duration=1000.0, **kw):
    return UserExpectation(stable_id=stable_id, kind=kind, start=start, duration=duration,
                           stage_title=getattr(kind, "value", str(kind)), **kw)


def _animation(fps, frame_count=10, stable_id="anim", start=0.0):
    interval = 1000.0 / fps
    frames = tuple(FrameEvent(start=start + i * interval) for i in range(frame_count))
    return _ue(stable_id, ExpectationKind.ANIMATION, start=start,
               duration=frame_count * interval, frame_events=frames)


def _model(*expectations):
    return TraceModel(user_model=UserModel(expectations), canonical_url="http://example.com/")


def _run(*expectations):
    values = ValueList()
    responsiveness_metric(values, _model(*expectations))
    return values


# ── Duration scoring ──────────────────────────────────────────────────────────

class TestDurationScoring:
    @pytest.mark.parametrize("table", [RESPONSE_HISTOGRAM, FAST_RESPONSE_HISTOGRAM, LOAD_HISTOGRAM])
    def test_scores_in_unit_interval(self, table):
        for d in [-100, 0, table.min, table.max / 3, table.max, 10 * table.max]:
            assert 0.0 <= compute_duration_responsiveness(table, d) <= 1.0

    @pytest.mark.parametrize("table", [RESPONSE_HISTOGRAM, FAST_RESPONSE_HISTOGRAM, LOAD_HISTOGRAM])
    def test_score_at_min_is_underflow_share(self, table):
        expected = table.underflow_bin.count / table.max_count
        assert compute_duration_responsiveness(table, table.min) == pytest.approx(expected)

    @pytest.mark.parametrize("table", [RESPONSE_HISTOGRAM, FAST_RESPONSE_HISTOGRAM, LOAD_HISTOGRAM])
    def test_monotonic(self, table):
        steps = [table.min + (table.max - table.min) * i / 97 for i in range(98)]
        scores = [compute_duration_responsiveness(table, d) for d in steps]
        assert all(a <= b for a, b in zip(scores, scores[1:]))

    def test_load_6900(self):
        assert compute_duration_responsiveness(LOAD_HISTOGRAM, 6900) == pytest.approx(
            (1000 + 901) / LOAD_HISTOGRAM.max_count)

    def test_load_mid_bin(self):
        assert compute_duration_responsiveness(LOAD_HISTOGRAM, 3950) == pytest.approx(
            (1000 + 901 * 0.5) / 2929)

    def test_table_constants(self):
        assert LOAD_HISTOGRAM.max_count == 2929
        assert RESPONSE_HISTOGRAM.max_count == 2079
        assert FAST_RESPONSE_HISTOGRAM.max_count == 2079
        assert [b.min for b in RESPONSE_HISTOGRAM.central_bins] == [
            150, 635, 1120, 1605, 2090, 2575, 3060, 3545, 4030, 4515]
        assert [b.max for b in FAST_RESPONSE_HISTOGRAM.central_bins] == [
            280, 493, 706, 920, 1133, 1346, 1560, 1773, 1987, 2200]
        assert [b.count for b in LOAD_HISTOGRAM.central_bins] == [
            901, 574, 298, 65, 35, 23, 16, 10, 5, 2]
        assert LOAD_HISTOGRAM.overflow_bin.count == 0


# ── Animation scoring ─────────────────────────────────────────────────────────

class TestAnimation:
    def test_throughput_60fps(self):
        assert compute_animation_throughput(_animation(60)) == pytest.approx(1.0)

    def test_throughput_10fps(self):
        assert compute_animation_throughput(_animation(10)) == pytest.approx(0.0, abs=1e-12)

    def test_throughput_below_10fps_clamped(self):
        assert compute_animation_throughput(_animation(5)) == 0.0

    def test_throughput_above_60fps_clamped(self):
        assert compute_animation_throughput(_animation(120)) == 1.0

    def test_smoothness_even_frames(self):
        assert compute_animation_smoothness(_animation(60)) == pytest.approx(1.0)

    def test_smoothness_janky_frames(self):
        frames = tuple(FrameEvent(start=t) for t in [0, 16, 33, 50, 300, 316, 333, 350])
        ue = _ue("janky", ExpectationKind.ANIMATION, duration=350, frame_events=frames)
        assert compute_animation_smoothness(ue) < 1.0

    def test_missing_frame_events(self):
        ue = _ue("anim.empty", ExpectationKind.ANIMATION, frame_events=None)
        with pytest.raises(MissingDataError, match="anim.empty"):
            compute_animation_throughput(ue)

    def test_empty_frame_events(self):
        ue = _ue("anim.empty", ExpectationKind.ANIMATION, frame_events=())
        with pytest.raises(MissingDataError, match="anim.empty"):
            compute_responsiveness(ue, ValueList())

    def test_diagnostics_emitted(self):
        diagnostics = ValueList()
        score = compute_responsiveness(_animation(60), diagnostics)
        assert [v.name for v in diagnostics] == ["throughput", "smoothness", "responsiveness"]
        assert score == pytest.approx(1.0)
        throughput = diagnostics.by_name("throughput")[0]
        assert throughput.description == "Mean Opinion Score for Animation throughput"
        assert throughput.grouping_keys["userExpectationStableId"] == "anim"


# ── Dispatch ──────────────────────────────────────────────────────────────────

class TestDispatch:
    def test_idle_unsupported(self):
        with pytest.raises(UnsupportedExpectationError):
            compute_responsiveness(_ue(kind=ExpectationKind.IDLE), ValueList())

    def test_unknown_kind(self):
        with pytest.raises(UnrecognizedExpectationError, match="ue.x"):
            compute_responsiveness(_ue("ue.x", kind="Startup"), ValueList())

    def test_response_uses_response_table(self):
        score = compute_responsiveness(_ue(kind=ExpectationKind.RESPONSE, duration=280), ValueList())
        assert score == pytest.approx(compute_duration_responsiveness(RESPONSE_HISTOGRAM, 280))

    def test_animation_begin_uses_fast_table(self):
        ue = _ue(kind=ExpectationKind.RESPONSE, duration=280, is_animation_begin=True)
        score = compute_responsiveness(ue, ValueList())
        assert score == pytest.approx((1000 + 708) / 2079)

    def test_load(self):
        diagnostics = ValueList()
        compute_responsiveness(_ue(kind=ExpectationKind.LOAD, duration=6900), diagnostics)
        (value,) = diagnostics
        assert value.name == "responsiveness"
        assert value.unit is Unit.NORMALIZED_PERCENTAGE_BIGGER_IS_BETTER
        assert value.description == "Mean Opinion Score of Time to First ContentfulPaint"
        assert dict(value.grouping_keys) == {
            "userExpectationStableId":       "ue.1",
            "userExpectationStageTitle":     "Load",
            "userExpectationInitiatorTitle": "",
        }

    def test_missing_duration(self):
        with pytest.raises(MissingDataError):
            compute_responsiveness(_ue(duration=None), ValueList())

    def test_nan_duration(self):
        with pytest.raises(MissingDataError):
            compute_responsiveness(_ue(duration=math.nan), ValueList())


# ── responsiveness_metric ─────────────────────────────────────────────────────

class TestResponsivenessMetric:
    def test_single_load_end_to_end(self):
        values = _run(_ue(kind=ExpectationKind.LOAD, duration=6900))
        (overall,) = values
        assert overall.name == "responsiveness"
        assert overall.canonical_url == "http://example.com/"
        assert overall.value.value == pytest.approx((1000 + 901) / LOAD_HISTOGRAM.max_count)
        assert dict(overall.grouping_keys) == {}
        assert overall.description == "Perceptual blend of responsiveness of RAIL user expectations"

    def test_no_expectations_no_value(self):
        assert len(_run()) == 0

    def test_idle_only_no_value(self):
        assert len(_run(_ue(kind=ExpectationKind.IDLE))) == 0

    def test_idle_excluded_from_blend(self):
        with_idle    = _run(_ue("idle", ExpectationKind.IDLE, start=0),
                            _ue("load", ExpectationKind.LOAD, start=10, duration=6900))
        without_idle = _run(_ue("load", ExpectationKind.LOAD, start=10, duration=6900))
        assert with_idle.values[0].value.value == pytest.approx(without_idle.values[0].value.value)
        ids = [d["grouping_keys"]["userExpectationStableId"]
               for d in with_idle.values[0].diagnostics["values"]]
        assert ids == ["load"]

    def test_blend_of_two(self):
        s1 = compute_duration_responsiveness(LOAD_HISTOGRAM, 6900)
        s2 = 1.0
        expected = (math.exp(1 - s1) * s1 + math.exp(1 - s2) * s2) / (math.exp(1 - s1) + math.exp(1 - s2))
        values = _run(_ue("a", ExpectationKind.LOAD, start=0, duration=6900),
                      _ue("b", ExpectationKind.LOAD, start=1, duration=60000))
        assert values.values[0].value.value == pytest.approx(expected)

    def test_diagnostics_in_start_order(self):
        values = _run(_animation(60, stable_id="late", start=5000),
                      _ue("early", ExpectationKind.RESPONSE, start=0, duration=100))
        diag = values.values[0].diagnostics["values"]
        assert [(d["name"], d["grouping_keys"]["userExpectationStableId"]) for d in diag] == [
            ("responsiveness", "early"),
            ("throughput", "late"),
            ("smoothness", "late"),
            ("responsiveness", "late"),
        ]

    def test_failure_emits_nothing(self):
        values = ValueList()
        model = _model(_ue("ok", ExpectationKind.LOAD, start=0, duration=1000),
                       _ue("bad", ExpectationKind.ANIMATION, start=1, frame_events=()))
        with pytest.raises(MissingDataError, match="bad"):
            responsiveness_metric(values, model)
        assert len(values) == 0
