"""
Error taxonomy for metric computation.

Every error here is fatal for the metric being computed: the computation is
deterministic, so nothing is retried and no partial values are emitted.
The caller (runner / CLI) decides whether to skip the metric or abort.
"""


class MetricError(RuntimeError):
    """Base class for all metric computation failures."""


class MissingDataError(MetricError):
    """Required per-entity data is absent (no frame events, unresolved score)."""


class UnrecognizedExpectationError(MetricError):
    """A user expectation kind outside Idle / Load / Response / Animation."""


class UnsupportedExpectationError(MetricError):
    """An Idle expectation was handed to the scorer instead of being skipped."""


class UnitMismatchError(MetricError, ValueError):
    """Two scalars that were meant to be summed carry different units."""


class OwnershipCollisionError(MetricError):
    """A global memory sample is claimed by more than one browser process."""
