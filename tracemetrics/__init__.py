"""
tracemetrics: quality-of-experience metrics from a recorded trace

Turns a modelled performance trace into named values a dashboard or
regression bot can compare between runs.

Quick start
-----------
  pip install tracemetrics
  # write tracemetrics.yaml pointing at your trace.json
  tracemetrics run
  tracemetrics compute --trace trace.json --metric responsiveness

Metrics
-------
  responsiveness   perceptual blend of RAIL user expectation scores
                   (normalizedPercentage_biggerIsBetter)
  memory           per-browser, per-process-name memory histograms
                   (sizeInBytes_smallerIsBetter, unitlessNumber_smallerIsBetter)
"""

from tracemetrics.metrics.registry import MetricRegistry, default_registry
from tracemetrics.model.trace import TraceModel, load_trace

__all__ = ["MetricRegistry", "default_registry", "TraceModel", "load_trace"]
__version__ = "0.1.0"
