"""
ScalarNumeric: an immutable (unit, value) pair.

Summation never mutates either operand: `a + b` returns a new scalar and
refuses to mix units.
"""
from __future__ import annotations

from dataclasses import dataclass

from tracemetrics.errors import UnitMismatchError
from tracemetrics.values.units import Unit


@dataclass(frozen=True)
class ScalarNumeric:
    unit:  Unit
    value: float

    def __add__(self, other: "ScalarNumeric") -> "ScalarNumeric":
        if not isinstance(other, ScalarNumeric):
            return NotImplemented
        if other.unit is not self.unit:
            raise UnitMismatchError(
                f"Cannot add {other.unit.unit_name} to {self.unit.unit_name}"
            )
        return ScalarNumeric(self.unit, self.value + other.value)

    def as_dict(self) -> dict:
        return {"type": "scalar", "unit": self.unit.unit_name, "value": self.value}


def sum_scalars(scalars, what: str = "value") -> "ScalarNumeric | None":
    """
    Sum an iterable of scalars, skipping None entries.

    Returns None when there is nothing to sum.  `what` is used in the
    UnitMismatchError message so callers can say which value disagreed.
    """
    total = None
    for scalar in scalars:
        if scalar is None:
            continue
        if total is None:
            total = scalar
            continue
        if scalar.unit is not total.unit:
            raise UnitMismatchError(
                f"Multiple units provided for {what}: "
                f"{total.unit.unit_name} and {scalar.unit.unit_name}"
            )
        total = total + scalar
    return total
