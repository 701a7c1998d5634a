"""
Trace snapshot model and loader.

A TraceModel is the complete, immutable input to every metric:

    model.canonical_url            label stamped on every value
    model.user_model               RAIL expectations sorted by start
    model.global_memory_samples    memory snapshots in trace order
    model.browser_helpers()        browser process → owned memory samples

The loader reads a `tracemetrics.trace.v1` document:

    {
      "schema": "tracemetrics.trace.v1",
      "canonical_url": "http://example.com/",
      "expectations": [
        {"stable_id": "ue.1", "kind": "Load", "start": 0, "duration": 6900,
         "initiator_title": "Successful"},
        {"stable_id": "ue.2", "kind": "Animation", "start": 7000, "duration": 500,
         "frame_events": [{"start": 7000}, {"start": 7016.7}, ...]}
      ],
      "processes": [
        {"pid": 1, "name": "Browser", "browser_name": "chrome", "is_browser": true},
        {"pid": 2, "name": "Renderer"}
      ],
      "global_memory_samples": [
        {"ts": 10, "level_of_detail": "detailed",
         "process_samples": [
           {"pid": 1,
            "allocator_dumps": [
              {"name": "malloc", "numerics": {"effective_size": 4096,
                                              "allocated_objects_size": 2048}}],
            "vm_regions": {"title": "Total",
                           "byte_stats": {"proportional_resident": 8192},
                           "children": []}}]}
      ]
    }

Numerics are either a bare number (bytes) or {"unit": ..., "value": ...}.
"""
from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path

from tracemetrics.model.expectations import ExpectationKind, FrameEvent, UserExpectation, UserModel
from tracemetrics.model.memory import (
    AllocatorDump, GlobalMemorySample, LevelOfDetail, ProcessMemorySample, VMRegionNode,
)
from tracemetrics.values.scalar import ScalarNumeric
from tracemetrics.values.units import Unit


@dataclass(frozen=True)
class Process:
    pid:          int
    name:         "str | None" = None
    browser_name: "str | None" = None
    is_browser:   bool = False


@dataclass(frozen=True)
class BrowserHelper:
    """One browser process and the global memory samples it took part in."""
    pid:            int
    browser_name:   str
    memory_samples: tuple


class TraceModel:

    def __init__(self, user_model=None, global_memory_samples=(), processes=(),
                 canonical_url=None):
        self.canonical_url         = canonical_url
        self.user_model            = user_model if user_model is not None else UserModel()
        self.global_memory_samples = tuple(global_memory_samples)
        self.processes             = tuple(processes)

    def browser_processes(self) -> list:
        return [p for p in self.processes if p.is_browser]

    def memory_samples_for(self, pid) -> list:
        """Global memory samples containing a process sample for `pid`."""
        return [g for g in self.global_memory_samples if pid in g.pids()]

    def browser_helpers(self) -> list:
        return [
            BrowserHelper(
                pid=p.pid,
                browser_name=p.browser_name or "chrome",
                memory_samples=tuple(self.memory_samples_for(p.pid)),
            )
            for p in self.browser_processes()
        ]

    def __repr__(self):
        return (f"TraceModel(url={self.canonical_url!r}, "
                f"expectations={len(self.user_model)}, "
                f"memory_samples={len(self.global_memory_samples)})")


# ── Loading ────────────────────────────────────────────────────────────────────

def load_trace(source) -> TraceModel:
    """
    Load a trace snapshot from:
      - a dict        → used as-is
      - "-" or None   → JSON read from stdin
      - a file path   → read and parse JSON
    """
    from tracemetrics.schema import validate_trace

    if isinstance(source, dict):
        doc = source
    elif source == "-" or source is None:
        doc = json.load(sys.stdin)
    else:
        with open(Path(source)) as f:
            doc = json.load(f)
    validate_trace(doc)
    return trace_from_dict(doc)


def trace_from_dict(doc: dict) -> TraceModel:
    """
    Build a TraceModel from an already-validated trace document.

    Malformed entries raise ValueError naming the section and index.
    """
    processes = _parse_entries(doc.get("processes", []), "processes", _parse_process)
    names_by_pid = {p.pid: p.name for p in processes}

    expectations = _parse_entries(doc.get("expectations", []), "expectations", _parse_expectation)
    samples = _parse_entries(
        doc.get("global_memory_samples", []), "global_memory_samples",
        lambda g: _parse_global_sample(g, names_by_pid),
    )
    return TraceModel(
        user_model=UserModel(expectations),
        global_memory_samples=samples,
        processes=processes,
        canonical_url=doc.get("canonical_url"),
    )


def _parse_entries(raw_entries, section: str, parse) -> list:
    parsed = []
    for i, raw in enumerate(raw_entries):
        if not isinstance(raw, dict):
            raise ValueError(f"trace.json '{section}[{i}]' must be an object, got {raw!r}")
        try:
            parsed.append(parse(raw))
        except (AttributeError, KeyError, TypeError) as e:
            raise ValueError(f"Malformed trace.json '{section}[{i}]': {e!r}") from e
    return parsed


def _number(raw, what: str) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValueError(f"{what} must be a number, got {raw!r}")
    return float(raw)


def _parse_process(raw: dict) -> Process:
    if "pid" not in raw:
        raise ValueError(f"Process entry is missing 'pid': {raw!r}")
    return Process(
        pid=raw["pid"],
        name=raw.get("name"),
        browser_name=raw.get("browser_name"),
        is_browser=bool(raw.get("is_browser", False)),
    )


def _parse_frame_event(raw, stable_id: str) -> FrameEvent:
    if not isinstance(raw, dict):
        return FrameEvent(start=_number(raw, f"Frame event of {stable_id}"))
    if "start" not in raw:
        raise ValueError(f"Frame event of {stable_id} is missing 'start': {raw!r}")
    return FrameEvent(
        start=_number(raw["start"], f"Frame event start of {stable_id}"),
        duration=_number(raw.get("duration", 0.0), f"Frame event duration of {stable_id}"),
    )


def _parse_expectation(raw: dict) -> UserExpectation:
    stable_id = str(raw.get("stable_id", "?"))
    kind = ExpectationKind.parse(raw.get("kind", ""), stable_id)

    frame_events = raw.get("frame_events")
    if frame_events is not None:
        frame_events = tuple(_parse_frame_event(f, stable_id) for f in frame_events)

    duration = raw.get("duration")
    return UserExpectation(
        stable_id=stable_id,
        kind=kind,
        start=_number(raw.get("start", 0.0), f"Start of {stable_id}"),
        duration=_number(duration, f"Duration of {stable_id}") if duration is not None else None,
        stage_title=raw.get("stage_title", kind.value),
        initiator_title=raw.get("initiator_title", ""),
        frame_events=frame_events,
        is_animation_begin=bool(raw.get("is_animation_begin", False)),
    )


def _parse_level_of_detail(raw) -> "LevelOfDetail | None":
    if raw is None:
        return None
    try:
        return LevelOfDetail(str(raw).lower())
    except ValueError:
        return None    # counted in the total only


def _parse_global_sample(raw: dict, names_by_pid: dict) -> GlobalMemorySample:
    return GlobalMemorySample(
        ts=_number(raw.get("ts", 0.0), "Memory sample ts"),
        level_of_detail=_parse_level_of_detail(raw.get("level_of_detail")),
        process_samples=tuple(
            _parse_process_sample(p, names_by_pid)
            for p in raw.get("process_samples", [])
        ),
    )


def _parse_process_sample(raw: dict, names_by_pid: dict) -> ProcessMemorySample:
    pid = raw.get("pid")
    dumps = raw.get("allocator_dumps")
    vm_regions = raw.get("vm_regions")
    return ProcessMemorySample(
        pid=pid,
        process_name=raw.get("process_name") or names_by_pid.get(pid),
        allocator_dumps=tuple(_parse_allocator_dump(d) for d in dumps) if dumps is not None else None,
        vm_regions=_parse_vm_region(vm_regions) if vm_regions is not None else None,
    )


def _parse_allocator_dump(raw: dict) -> AllocatorDump:
    if not isinstance(raw, dict) or "name" not in raw:
        raise ValueError(f"Allocator dump is missing 'name': {raw!r}")
    return AllocatorDump(
        name=raw["name"],
        numerics={k: _parse_scalar(v, f"{raw['name']}/{k}") for k, v in raw.get("numerics", {}).items()},
        children=tuple(_parse_allocator_dump(c) for c in raw.get("children", [])),
    )


def _parse_vm_region(raw: dict) -> VMRegionNode:
    return VMRegionNode(
        title=raw.get("title", ""),
        byte_stats=dict(raw.get("byte_stats", {})),
        children=tuple(_parse_vm_region(c) for c in raw.get("children", [])),
    )


def _parse_scalar(raw, what: str) -> ScalarNumeric:
    if isinstance(raw, dict):
        if "unit" not in raw or "value" not in raw:
            raise ValueError(f"Numeric {what} needs 'unit' and 'value': {raw!r}")
        _number(raw["value"], f"Numeric {what}")
        return ScalarNumeric(Unit.by_name(raw["unit"]), raw["value"])
    _number(raw, f"Numeric {what}")
    return ScalarNumeric(Unit.SIZE_IN_BYTES_SMALLER_IS_BETTER, raw)
