from tracemetrics.values.units     import Unit
from tracemetrics.values.scalar    import ScalarNumeric, sum_scalars
from tracemetrics.values.histogram import Bin, ScoreHistogram, HistogramSeries, HistogramBuilder
from tracemetrics.values.value     import GroupedValue, ValueList

__all__ = [
    "Unit",
    "ScalarNumeric", "sum_scalars",
    "Bin", "ScoreHistogram", "HistogramSeries", "HistogramBuilder",
    "GroupedValue", "ValueList",
]
