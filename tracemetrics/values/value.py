"""
Named output values and the list they are collected in.

A GroupedValue is what a metric hands to the sink: a colon-joined name, a
scalar or histogram, optional description, grouping keys used to correlate
related values, and optional nested diagnostics.  Values are never mutated
after creation.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True)
class GroupedValue:
    canonical_url: "str | None"
    name:          str
    value:         object          # ScalarNumeric | HistogramSeries
    description:   "str | None" = None
    grouping_keys: dict = field(default_factory=dict)
    diagnostics:   "dict | None" = None

    def __post_init__(self):
        # Each value owns a private, read-only copy of its grouping keys.
        object.__setattr__(self, "grouping_keys", MappingProxyType(dict(self.grouping_keys)))

    @property
    def unit(self):
        return self.value.unit

    def as_dict(self) -> dict:
        d = {
            "canonical_url": self.canonical_url,
            "name":          self.name,
            "unit":          self.unit.unit_name,
            "value":         self.value.as_dict(),
            "grouping_keys": dict(self.grouping_keys),
        }
        if self.description:
            d["description"] = self.description
        if self.diagnostics is not None:
            d["diagnostics"] = self.diagnostics
        return d


class ValueList:
    """Append-only collection of GroupedValues produced by one metric run."""

    def __init__(self):
        self._values = []

    def add_value(self, value: GroupedValue) -> None:
        self._values.append(value)

    @property
    def values(self) -> list:
        return list(self._values)

    @property
    def value_dicts(self) -> list:
        return [v.as_dict() for v in self._values]

    def by_name(self, name: str) -> list:
        return [v for v in self._values if v.name == name]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return f"ValueList({len(self._values)} values)"
