"""
Metric registry.

The host application builds a registry and hands it pure metric functions;
nothing is registered at import time.  A metric function has the signature

    def some_metric(values: ValueList, model: TraceModel) -> None

and adds its GroupedValues to `values`.  Metrics are keyed by name, which
defaults to the function name without its "_metric" suffix.
"""
from __future__ import annotations

from tracemetrics.values.value import ValueList


def _default_name(fn) -> str:
    name = fn.__name__
    return name[: -len("_metric")] if name.endswith("_metric") else name


class MetricRegistry:

    def __init__(self):
        self._metrics = {}

    def register(self, fn=None, *, name: "str | None" = None):
        """
        Register a metric function.  Usable directly or as a decorator:

            registry.register(memory_metric)

            @registry.register(name="custom")
            def my_metric(values, model): ...
        """
        def _add(f):
            key = name or _default_name(f)
            if key in self._metrics:
                raise ValueError(f"Metric {key!r} is already registered")
            self._metrics[key] = f
            return f

        if fn is None:
            return _add
        return _add(fn)

    def get(self, name: str):
        try:
            return self._metrics[name]
        except KeyError:
            known = ", ".join(self._metrics) or "(none)"
            raise ValueError(f"Unknown metric {name!r}.  Registered metrics: {known}") from None

    def names(self) -> list:
        return list(self._metrics)

    def compute(self, name: str, model) -> ValueList:
        """Run one metric against `model` with a fresh ValueList."""
        values = ValueList()
        self.get(name)(values, model)
        return values

    def __contains__(self, name):
        return name in self._metrics

    def __len__(self):
        return len(self._metrics)

    def __repr__(self):
        return f"MetricRegistry({self.names()})"


def default_registry() -> MetricRegistry:
    """A registry holding the built-in responsiveness and memory metrics."""
    from tracemetrics.metrics.memory import memory_metric
    from tracemetrics.metrics.responsiveness import responsiveness_metric

    registry = MetricRegistry()
    registry.register(responsiveness_metric)
    registry.register(memory_metric)
    return registry
