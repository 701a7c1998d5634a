"""
tracemetrics CLI

Primary usage, driven by tracemetrics.yaml config file:

    tracemetrics run                              # compute declared metrics
    tracemetrics run --config path/to/tracemetrics.yaml
    tracemetrics run --metric memory              # one metric only
    tracemetrics run --out values.json            # save values to file

Other subcommands (for one-off use, no config needed):

    tracemetrics compute --trace trace.json       # all metrics, stdout
    tracemetrics compute --trace - --metric responsiveness < trace.json
    tracemetrics list                             # registered metric names
"""

import argparse
import sys

from tracemetrics.metrics.registry import default_registry


def cmd_run(args):
    """
    Run the metrics declared in tracemetrics.yaml.

    Writes values to stdout (or --out file, or the config's output path)
    and a short summary to stderr.
    """
    from tracemetrics.runner import run_from_config

    try:
        output = run_from_config(
            config=args.config,
            metric_override=args.metric or None,
            output_path=args.out,
            verbose=args.verbose,
        )
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        _print_summary(output, file=sys.stderr)
    return 0


def cmd_compute(args):
    """Compute metrics for one trace file (or stdin) without a config file."""
    from tracemetrics.runner import run_metrics

    try:
        output = run_metrics(
            trace=args.trace,
            metric_names=args.metric or None,
            output_path=args.out,
            verbose=args.verbose,
        )
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        _print_summary(output, file=sys.stderr)
    return 0


def cmd_list(args):
    for name in default_registry().names():
        print(name)
    return 0


def _format_value(value: dict) -> str:
    if value.get("type") == "histogram":
        mean = value.get("mean")
        mean_str = f"{mean:,.1f}" if mean is not None else "n/a"
        return f"histogram n={value['count']} mean={mean_str}"
    v = value.get("value")
    return f"{v:.4f}" if isinstance(v, float) else str(v)


def _print_summary(output: dict, file=sys.stderr) -> None:
    values = output.get("values", [])
    if not values:
        print("\n  (no values)\n", file=file)
        return
    name_w = max(len(v["name"]) for v in values)
    print(file=file)
    for v in values:
        print(f"  {v['name']:<{name_w}}  {_format_value(v['value'])}  [{v['unit']}]", file=file)
    print(f"\n  {len(values)} value(s) from {', '.join(output.get('metrics', []))}\n", file=file)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="tracemetrics",
        description=(
            "Quality-of-experience metrics from recorded performance traces.\n\n"
            "Quickstart:\n"
            "  tracemetrics list                    show available metrics\n"
            "  tracemetrics run                     run the metrics (reads tracemetrics.yaml)"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # ── run ───────────────────────────────────────────────────────────────────
    p_run = sub.add_parser(
        "run",
        help="Compute metrics for the traces declared in tracemetrics.yaml",
    )
    p_run.add_argument(
        "--config", metavar="FILE",
        help="Config file (default: tracemetrics.yaml in current directory)",
    )
    p_run.add_argument(
        "--metric", metavar="NAME", action="append",
        help="Compute only this metric (repeatable; overrides config metrics list)",
    )
    p_run.add_argument(
        "--out", metavar="FILE",
        help="Save values JSON here (default: config output, else stdout)",
    )
    p_run.add_argument("--quiet",   action="store_true", help="Suppress the stderr summary")
    p_run.add_argument("--verbose", action="store_true", help="Print stage info to stderr")
    p_run.set_defaults(func=cmd_run)

    # ── compute ───────────────────────────────────────────────────────────────
    p_compute = sub.add_parser(
        "compute",
        help="Compute metrics for one trace JSON file or stdin",
    )
    p_compute.add_argument(
        "--trace", metavar="FILE", default="-",
        help="Trace JSON file; omit or use '-' to read from stdin",
    )
    p_compute.add_argument("--metric", metavar="NAME", action="append",
                           help="Compute only this metric (repeatable)")
    p_compute.add_argument("--out", metavar="FILE",
                           help="Save values JSON here (default: stdout)")
    p_compute.add_argument("--quiet",   action="store_true")
    p_compute.add_argument("--verbose", action="store_true")
    p_compute.set_defaults(func=cmd_compute)

    # ── list ──────────────────────────────────────────────────────────────────
    p_list = sub.add_parser("list", help="List registered metrics")
    p_list.set_defaults(func=cmd_list)

    args = parser.parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
