"""
Pipeline runner.

Two modes:

1. Config-driven (recommended):
       tracemetrics run                        # reads tracemetrics.yaml
       tracemetrics run --config ci.yaml       # explicit config
   tracemetrics reads the config, loads each declared trace, runs the
   requested metrics and writes one values document.

2. Programmatic (for library use or advanced scripting):
       run_metrics(trace, metric_names=["responsiveness"])

Config file schema (tracemetrics.yaml):

    version: 1
    trace: trace.json            # a path, a glob, or a list of either
    metrics:                     # optional, default: every registered metric
      - responsiveness
      - memory
    output:
      values: values.json        # optional, default: stdout
"""
from __future__ import annotations

import glob
import json
import sys
from pathlib import Path

from tracemetrics.metrics.registry import MetricRegistry, default_registry
from tracemetrics.model.trace import TraceModel, load_trace
from tracemetrics.schema import VALUES_SCHEMA, validate_values


# ── Config loading ─────────────────────────────────────────────────────────────

def load_config(path: "str | Path | None" = None) -> dict:
    """
    Load and normalise a tracemetrics.yaml config file.

    Searches the current directory by default.  Raises FileNotFoundError
    if not found.  Returns a normalised dict with resolved trace paths.
    """
    import yaml

    candidates = [path] if path else ["tracemetrics.yaml", ".tracemetrics.yaml", "tracemetrics.yml"]
    config_path = None
    for c in candidates:
        if Path(c).exists():
            config_path = Path(c)
            break

    if config_path is None:
        searched = ", ".join(str(c) for c in candidates)
        raise FileNotFoundError(
            f"No tracemetrics config found.  Searched: {searched}"
        )

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Config {config_path} must be a YAML mapping.")

    return _normalise_config(raw, config_path.parent)


def _normalise_config(raw: dict, base_dir: Path) -> dict:
    """Resolve globs, apply defaults, validate required fields."""
    cfg = dict(raw)

    if "trace" not in cfg:
        raise ValueError("Config is missing required key: 'trace'")

    # Traces: expand globs relative to config file location
    raw_traces = cfg["trace"]
    if isinstance(raw_traces, str):
        raw_traces = [raw_traces]
    trace_files = []
    for pattern in raw_traces:
        matches = sorted(glob.glob(str(base_dir / pattern)))
        if not matches:
            # Try as literal path
            p = base_dir / pattern
            if p.exists():
                matches = [str(p)]
        trace_files.extend(matches)
    if not trace_files:
        raise ValueError("No trace files found.  Check 'trace:' patterns in config.")
    cfg["_trace_files"] = trace_files

    raw_metrics = cfg.get("metrics")
    if isinstance(raw_metrics, str):
        raw_metrics = [raw_metrics]
    cfg["_metrics"] = list(raw_metrics) if raw_metrics else None

    output = cfg.get("output") or {}
    if not isinstance(output, dict):
        raise ValueError("Config 'output:' must be a mapping.")
    cfg["output"] = output

    cfg["_base_dir"] = base_dir
    return cfg


def _resolve_output_path(path: "str | Path | None", base_dir: Path) -> "str | None":
    """Resolve an output path relative to the config's base directory."""
    if not path:
        return None
    p = Path(path)
    if p.is_absolute():
        return str(p)
    return str(base_dir / p)


# ── Metric computation ─────────────────────────────────────────────────────────

def _select_metrics(registry: MetricRegistry, metric_names) -> list:
    names = list(metric_names) if metric_names else registry.names()
    for name in names:
        registry.get(name)    # raises ValueError for unknown names
    return names


def compute_values(
    model: TraceModel,
    metric_names=None,
    registry: "MetricRegistry | None" = None,
    verbose: bool = False,
) -> list:
    """
    Run metrics against one model and return their value dicts.

    A metric that raises emits nothing; the error propagates to the caller.
    """
    registry = registry or default_registry()
    value_dicts = []
    for name in _select_metrics(registry, metric_names):
        values = registry.compute(name, model)
        if verbose:
            print(f"[tracemetrics]   {name}: {len(values)} value(s)", file=sys.stderr)
        value_dicts.extend(values.value_dicts)
    return value_dicts


def run_metrics(
    trace: "str | Path | dict | TraceModel",
    metric_names=None,
    output_path: "str | Path | None" = None,
    registry: "MetricRegistry | None" = None,
    verbose: bool = False,
) -> dict:
    """
    Compute metrics for a single trace programmatically (no config file).

    `trace` can be a TraceModel, a trace dict, a file path, or "-" (stdin).
    Writes the values document to output_path, or stdout when None, and
    returns it.
    """
    model = trace if isinstance(trace, TraceModel) else load_trace(trace)
    names = _select_metrics(registry or default_registry(), metric_names)
    output = {
        "schema":        VALUES_SCHEMA,
        "canonical_url": model.canonical_url,
        "metrics":       names,
        "values":        compute_values(model, names, registry, verbose),
    }
    validate_values(output)
    _write_output(output, output_path)
    return output


def run_from_config(
    config: "dict | str | Path | None" = None,
    metric_override=None,
    output_path: "str | Path | None" = None,
    verbose: bool = False,
    registry: "MetricRegistry | None" = None,
) -> dict:
    """
    Run every declared trace through the declared metrics.

    Args:
        config:           path to config file, already-loaded dict, or None (auto-discover)
        metric_override:  run only these metric names (ignores config metrics list)
        output_path:      write values JSON here; None → config output or stdout
        verbose:          print stage info to stderr
        registry:         metrics to draw from (default: built-in metrics)
    """
    cfg = config if isinstance(config, dict) else load_config(config)

    registry = registry or default_registry()
    names    = _select_metrics(registry, metric_override or cfg["_metrics"])
    base_dir = cfg["_base_dir"]

    values = []
    traces = []
    for trace_file in cfg["_trace_files"]:
        if verbose:
            print(f"[tracemetrics] trace: {trace_file}", file=sys.stderr)
        model = load_trace(trace_file)
        traces.append({"path": trace_file, "canonical_url": model.canonical_url})
        values.extend(compute_values(model, names, registry, verbose))

    output = {
        "schema":        VALUES_SCHEMA,
        "canonical_url": traces[0]["canonical_url"] if len(traces) == 1 else None,
        "metrics":       names,
        "traces":        traces,
        "values":        values,
    }
    validate_values(output)
    raw_out = output_path or cfg["output"].get("values")
    eff_output_path = _resolve_output_path(raw_out, base_dir) if not output_path else str(output_path)
    _write_output(output, eff_output_path)
    if verbose and eff_output_path:
        print(f"[tracemetrics] values: {eff_output_path}", file=sys.stderr)
    return output


def _write_output(data: dict, output_path) -> None:
    """Write JSON to a file if output_path given, otherwise stdout."""
    text = json.dumps(data, indent=2)
    if output_path:
        Path(output_path).write_text(text)
    else:
        print(text)
