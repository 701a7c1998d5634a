"""
Histogram primitives.

Two kinds of histogram live here:

  ScoreHistogram    immutable lookup table (underflow bin, central bins,
                    overflow bin) used to turn a duration into an opinion
                    score.  Built from a literal dict, never mutated.

  HistogramSeries   mutable accumulator with a fixed bin layout.  Samples
                    are added one at a time; running count/sum/min/max are
                    tracked alongside the bin counts.

HistogramBuilder produces HistogramSeries layouts from linear and
exponential bin boundaries.
"""
from __future__ import annotations

import bisect
import math
from dataclasses import dataclass

from tracemetrics.values.units import Unit


# ── Lookup tables ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Bin:
    min:   float
    max:   float
    count: float

    @classmethod
    def from_dict(cls, d: dict) -> "Bin":
        return cls(float(d["min"]), float(d["max"]), d["count"])

    def contains(self, value: float) -> bool:
        return self.min <= value < self.max


@dataclass(frozen=True)
class ScoreHistogram:
    """
    Immutable table of contiguous bins covering (-inf, +inf).

    `max_count` is the normalization constant for scores.  It is part of the
    table literal and is never recomputed from the bins.
    """
    unit:          Unit
    underflow_bin: Bin
    central_bins:  tuple
    overflow_bin:  Bin
    max_count:     float

    def __post_init__(self):
        bins = self.all_bins
        if not self.central_bins:
            raise ValueError("ScoreHistogram needs at least one central bin")
        for lower, upper in zip(bins, bins[1:]):
            if lower.max != upper.min:
                raise ValueError(
                    f"Bins must be contiguous: [{lower.min}, {lower.max}) "
                    f"is followed by [{upper.min}, {upper.max})"
                )
        for b in bins:
            if b.min >= b.max:
                raise ValueError(f"Empty or inverted bin [{b.min}, {b.max})")
        if self.max_count <= 0:
            raise ValueError("max_count must be positive")

    @classmethod
    def from_dict(cls, d: dict) -> "ScoreHistogram":
        """
        Build a table from its literal form:

            {"unit": "unitless", "min": 150, "max": 5000,
             "underflowBin": {...}, "centralBins": [...],
             "overflowBin": {...}, "maxCount": 2079}

        Without "maxCount" the normalization constant is the total count.
        """
        underflow = Bin.from_dict(d["underflowBin"])
        central   = tuple(Bin.from_dict(b) for b in d["centralBins"])
        overflow  = Bin.from_dict(d["overflowBin"])
        max_count = d.get("maxCount")
        if max_count is None:
            max_count = underflow.count + sum(b.count for b in central) + overflow.count
        table = cls(
            unit=Unit.by_name(d.get("unit", "unitless")),
            underflow_bin=underflow,
            central_bins=central,
            overflow_bin=overflow,
            max_count=max_count,
        )
        if "min" in d and table.min != d["min"]:
            raise ValueError(f"Table min {d['min']} does not match first central bin {table.min}")
        if "max" in d and table.max != d["max"]:
            raise ValueError(f"Table max {d['max']} does not match last central bin {table.max}")
        return table

    @property
    def all_bins(self) -> tuple:
        return (self.underflow_bin, *self.central_bins, self.overflow_bin)

    @property
    def min(self) -> float:
        return self.central_bins[0].min

    @property
    def max(self) -> float:
        return self.central_bins[-1].max

    def get_bin_for_value(self, value: float) -> Bin:
        if value < self.min:
            return self.underflow_bin
        if value >= self.max:
            return self.overflow_bin
        for b in self.central_bins:
            if b.contains(value):
                return b
        return self.overflow_bin

    def interpolated_count_at(self, value: float) -> float:
        """
        Population count whose threshold is at or below `value`.

        Every bin entirely below `value` contributes its full count; the bin
        containing `value` contributes linearly by position.  Below `min` the
        result is the underflow count, at or above `max` it is the total.
        """
        containing = self.get_bin_for_value(value)
        if containing is self.underflow_bin:
            return self.underflow_bin.count
        if containing is self.overflow_bin:
            return sum(b.count for b in self.all_bins)

        count = self.underflow_bin.count
        for b in self.central_bins:
            if b is containing:
                return count + b.count * (value - b.min) / (b.max - b.min)
            count += b.count
        return count


# ── Accumulating histograms ────────────────────────────────────────────────────

class HistogramSeries:
    """
    Unit-tagged histogram that samples are added to one at a time.

    `boundaries` b0 < b1 < ... < bn define an underflow bin (-inf, b0),
    central bins [b_i, b_i+1) and an overflow bin [bn, +inf).
    """

    def __init__(self, unit: Unit, boundaries):
        boundaries = tuple(float(b) for b in boundaries)
        if not boundaries:
            raise ValueError("HistogramSeries needs at least one bin boundary")
        self.unit       = unit
        self.boundaries = boundaries
        self.counts     = [0] * (len(boundaries) + 1)
        self.count      = 0
        self.sum        = 0.0
        self.min        = None
        self.max        = None

    def bin_index(self, value: float) -> int:
        """0 is the underflow bin, len(boundaries) is the overflow bin."""
        return bisect.bisect_right(self.boundaries, value)

    def add(self, value: float) -> None:
        self.counts[self.bin_index(value)] += 1
        self.count += 1
        self.sum   += value
        self.min    = value if self.min is None else min(self.min, value)
        self.max    = value if self.max is None else max(self.max, value)

    @property
    def mean(self) -> "float | None":
        return self.sum / self.count if self.count else None

    def as_dict(self) -> dict:
        return {
            "type":       "histogram",
            "unit":       self.unit.unit_name,
            "boundaries": list(self.boundaries),
            "counts":     list(self.counts),
            "count":      self.count,
            "sum":        self.sum,
            "min":        self.min,
            "max":        self.max,
            "mean":       self.mean,
        }

    def __repr__(self):
        return (f"HistogramSeries(unit={self.unit.unit_name!r}, "
                f"bins={len(self.counts)}, count={self.count})")


class HistogramBuilder:
    """
    Accumulates bin boundaries, then builds empty HistogramSeries.

        HistogramBuilder(Unit.SIZE_IN_BYTES_SMALLER_IS_BETTER, 0)
            .add_bin_boundary(1024)
            .add_exponential_bins(16 * 1024 ** 3, 96)
            .build()
    """

    def __init__(self, unit: Unit, min_bin_boundary: float):
        self.unit        = unit
        self._boundaries = [float(min_bin_boundary)]

    @classmethod
    def create_linear(cls, unit: Unit, lo: float, hi: float, bin_count: int) -> "HistogramBuilder":
        return cls(unit, lo).add_linear_bins(hi, bin_count)

    @property
    def boundaries(self) -> tuple:
        return tuple(self._boundaries)

    def add_bin_boundary(self, boundary: float) -> "HistogramBuilder":
        if boundary <= self._boundaries[-1]:
            raise ValueError(
                f"Bin boundaries must increase: {boundary} <= {self._boundaries[-1]}"
            )
        self._boundaries.append(float(boundary))
        return self

    def add_linear_bins(self, max_bin_boundary: float, bin_count: int) -> "HistogramBuilder":
        if bin_count <= 0:
            raise ValueError("bin_count must be positive")
        current = self._boundaries[-1]
        width   = (max_bin_boundary - current) / bin_count
        for i in range(1, bin_count):
            self.add_bin_boundary(current + i * width)
        return self.add_bin_boundary(max_bin_boundary)

    def add_exponential_bins(self, max_bin_boundary: float, bin_count: int) -> "HistogramBuilder":
        if bin_count <= 0:
            raise ValueError("bin_count must be positive")
        current = self._boundaries[-1]
        if current <= 0:
            raise ValueError("Exponential bins need a positive starting boundary")
        exponent_width = math.log(max_bin_boundary / current) / bin_count
        for i in range(1, bin_count):
            self.add_bin_boundary(current * math.exp(i * exponent_width))
        return self.add_bin_boundary(max_bin_boundary)

    def build(self) -> HistogramSeries:
        return HistogramSeries(self.unit, self._boundaries)
