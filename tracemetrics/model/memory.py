"""
Memory samples.

  GlobalMemorySample    one snapshot of every process of one browser
                        instance at one timestamp
  ProcessMemorySample   allocator dumps + VM region classification for one
                        process in that snapshot
  AllocatorDump         named subsystem node (malloc, v8, gpu, ...) with
                        scalar numerics and child dumps
  VMRegionNode          node of the VM region classification tree with
                        byte statistics
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LevelOfDetail(str, Enum):
    LIGHT    = "light"
    DETAILED = "detailed"


@dataclass(frozen=True)
class AllocatorDump:
    name:     str
    numerics: dict            # numeric name → ScalarNumeric
    children: tuple = ()

    def get_child(self, name: str) -> "AllocatorDump | None":
        for child in self.children:
            if child.name == name:
                return child
        return None


@dataclass(frozen=True)
class VMRegionNode:
    title:      str
    byte_stats: dict          # e.g. proportional_resident → int
    children:   tuple = ()

    def get_child(self, title: str) -> "VMRegionNode | None":
        for child in self.children:
            if child.title == title:
                return child
        return None


@dataclass(frozen=True)
class ProcessMemorySample:
    pid:             "int | None"
    process_name:    "str | None" = None
    allocator_dumps: "tuple | None" = None      # root AllocatorDumps
    vm_regions:      "VMRegionNode | None" = None

    def get_allocator_dump_by_full_name(self, full_name: str) -> "AllocatorDump | None":
        """Resolve a slash-separated path such as 'gpu/android_memtrack'."""
        if not self.allocator_dumps:
            return None
        root_name, *rest = full_name.split("/")
        node = next((d for d in self.allocator_dumps if d.name == root_name), None)
        for part in rest:
            if node is None:
                return None
            node = node.get_child(part)
        return node


@dataclass(frozen=True, eq=False)
class GlobalMemorySample:
    """
    Compared by identity: two snapshots with equal contents taken by two
    browsers are still two samples.
    """
    ts:              float
    level_of_detail: "LevelOfDetail | None"
    process_samples: tuple = ()

    def pids(self) -> set:
        return {p.pid for p in self.process_samples}
