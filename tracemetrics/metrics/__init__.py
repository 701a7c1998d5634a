from tracemetrics.metrics.registry import MetricRegistry, default_registry
from tracemetrics.metrics.responsiveness import responsiveness_metric
from tracemetrics.metrics.memory import memory_metric

__all__ = ["MetricRegistry", "default_registry", "responsiveness_metric", "memory_metric"]
