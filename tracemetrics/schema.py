"""
JSON schema definitions and validators for the tracemetrics interchange format.

Two documents flow through the pipeline:

  trace.json   → a modelled trace snapshot (expectations, processes,
                 global memory samples)
  values.json  → the named values produced by the metrics

Each document carries a "schema" field so tools can verify compatibility.
"""

TRACE_SCHEMA  = "tracemetrics.trace.v1"
VALUES_SCHEMA = "tracemetrics.values.v1"


def validate_trace(doc: dict) -> None:
    """Raise ValueError if the trace document is malformed."""
    if not isinstance(doc, dict):
        raise ValueError("trace document must be a JSON object.")
    if doc.get("schema") != TRACE_SCHEMA:
        raise ValueError(
            f"Expected schema '{TRACE_SCHEMA}', got {doc.get('schema')!r}. "
            "Ensure your exporter sets {\"schema\": \"tracemetrics.trace.v1\"}."
        )
    for key in ("expectations", "processes", "global_memory_samples"):
        if key in doc and not isinstance(doc[key], list):
            raise ValueError(f"trace.json '{key}' must be a list.")


def validate_values(doc: dict) -> None:
    """Raise ValueError if the values document is malformed."""
    if doc.get("schema") != VALUES_SCHEMA:
        raise ValueError(
            f"Expected schema '{VALUES_SCHEMA}', got {doc.get('schema')!r}."
        )
    if "values" not in doc or not isinstance(doc["values"], list):
        raise ValueError("values.json must contain a 'values' list.")
    for i, value in enumerate(doc["values"]):
        missing = [k for k in ("name", "unit", "value") if k not in value]
        if missing:
            raise ValueError(f"values.json 'values[{i}]' is missing: {', '.join(missing)}")
