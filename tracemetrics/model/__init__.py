from tracemetrics.model.expectations import ExpectationKind, FrameEvent, UserExpectation, UserModel
from tracemetrics.model.memory import (
    AllocatorDump, GlobalMemorySample, LevelOfDetail, ProcessMemorySample, VMRegionNode,
)
from tracemetrics.model.trace import BrowserHelper, Process, TraceModel, load_trace, trace_from_dict

__all__ = [
    "ExpectationKind", "FrameEvent", "UserExpectation", "UserModel",
    "AllocatorDump", "GlobalMemorySample", "LevelOfDetail", "ProcessMemorySample", "VMRegionNode",
    "BrowserHelper", "Process", "TraceModel", "load_trace", "trace_from_dict",
]
