"""
Memory metric.

Global memory samples are first split by the browser that owns them, then
every metric family is reduced in three stages per browser:

  1. per sample, sum extracted values by process name
     (browser, renderer, gpu_process, ...)
  2. per sample, add an "all" process name holding the totals
  3. across samples, merge each (process name, value name) series into a
     histogram

Reported values:

  memory:<browser>:<process>:process_count                      unitless
  memory:<browser>:<process>:subsystem:<dump>                   bytes
  memory:<browser>:<process>:subsystem:<dump>:allocated_objects bytes
  memory:<browser>:<process>:android_memtrack:<name>            bytes
  memory:<browser>:<process>:vmstats:<metric>                   bytes (detailed samples only)
  memory:<browser>:all:dump_count:{total,light,detailed}        unitless scalar

All but the dump counts are histograms over the browser's samples.  Dump
counts are already totals over the trace, so they stay scalars.
"""
from __future__ import annotations

from tracemetrics.errors import OwnershipCollisionError, UnitMismatchError
from tracemetrics.model.memory import LevelOfDetail
from tracemetrics.values.histogram import HistogramBuilder
from tracemetrics.values.scalar import ScalarNumeric, sum_scalars
from tracemetrics.values.units import Unit
from tracemetrics.values.value import GroupedValue, ValueList

SIZE_IN_BYTES   = Unit.SIZE_IN_BYTES_SMALLER_IS_BETTER
UNITLESS_NUMBER = Unit.UNITLESS_NUMBER_SMALLER_IS_BETTER

DISPLAYED_SIZE_NUMERIC_NAME = "effective_size"
ALL_PROCESS_NAMES           = "all"
UNKNOWN_NAME                = "unknown"

LEVEL_OF_DETAIL_NAMES = {
    LevelOfDetail.LIGHT:    "light",
    LevelOfDetail.DETAILED: "detailed",
}

# VM region classification metrics: path of child titles below the root
# node, and the byte statistic read from the node found there.
MMAPS_METRICS = {
    "overall:pss": {
        "path": [],
        "byte_stat": "proportional_resident",
    },
    "overall:private_dirty": {
        "path": [],
        "byte_stat": "private_dirty_resident",
    },
    "java_heap:private_dirty": {
        "path": ["Android", "Java runtime", "Spaces"],
        "byte_stat": "private_dirty_resident",
    },
    "ashmem:pss": {
        "path": ["Android", "Ashmem"],
        "byte_stat": "proportional_resident",
    },
    "native_heap:pss": {
        "path": ["Native heap"],
        "byte_stat": "proportional_resident",
    },
}

# Histogram layout per unit.  Process counts: 20 linear bins over [0, 20].
# Sizes: one bin [0 B, 1 KiB), then 4*24 exponential bins up to
# 16 GiB (= 2^24 KiB).
MEMORY_HISTOGRAM_BUILDERS = {
    UNITLESS_NUMBER: HistogramBuilder.create_linear(UNITLESS_NUMBER, 0, 20, 20),
    SIZE_IN_BYTES: (
        HistogramBuilder(SIZE_IN_BYTES, 0)
        .add_bin_boundary(1024)
        .add_exponential_bins(16 * 1024 * 1024 * 1024, 4 * 24)
    ),
}


def memory_metric(values: ValueList, model) -> None:
    browser_name_to_samples = split_global_samples_by_browser_name(model)
    add_general_memory_values(browser_name_to_samples, values, model)
    add_detailed_memory_values(browser_name_to_samples, values, model)
    add_dump_count_values(browser_name_to_samples, values, model)


# ── Browser classification ─────────────────────────────────────────────────────

def split_global_samples_by_browser_name(model) -> dict:
    """
    Map browser names to the global memory samples they own.

    Samples not owned by any browser process are kept under "unknown" so no
    data is lost.  Raises OwnershipCollisionError if two browser processes
    claim the same sample.
    """
    browser_name_to_samples = {}
    owner_pid_by_sample     = {}

    for helper in model.browser_helpers():
        samples = list(helper.memory_samples)
        for sample in samples:
            if sample in owner_pid_by_sample:
                raise OwnershipCollisionError(
                    "Memory dump ID clash across multiple browsers with PIDs: "
                    f"{owner_pid_by_sample[sample]} and {helper.pid}"
                )
            owner_pid_by_sample[sample] = helper.pid
        make_key_unique_and_set(browser_name_to_samples, helper.browser_name, samples)

    unclassified = [g for g in model.global_memory_samples if g not in owner_pid_by_sample]
    if unclassified:
        make_key_unique_and_set(browser_name_to_samples, UNKNOWN_NAME, unclassified)

    return browser_name_to_samples


def make_key_unique_and_set(mapping: dict, key: str, value) -> str:
    """
    Set mapping[key] without overwriting, suffixing 2, 3, ... on clashes:

        make_key_unique_and_set(m, "chrome", a)   # {"chrome": a}
        make_key_unique_and_set(m, "chrome", b)   # {..., "chrome2": b}
        make_key_unique_and_set(m, "chrome", c)   # {..., "chrome3": c}

    Returns the key actually used.
    """
    unique_key = key
    next_index = 2
    while unique_key in mapping:
        unique_key = f"{key}{next_index}"
        next_index += 1
    mapping[unique_key] = value
    return unique_key


# ── Metric families ────────────────────────────────────────────────────────────

def _general_values(process_sample):
    yield "process_count", ScalarNumeric(UNITLESS_NUMBER, 1)

    if process_sample.allocator_dumps is None:
        return

    for root_dump in process_sample.allocator_dumps:
        yield (f"subsystem:{root_dump.name}",
               root_dump.numerics.get(DISPLAYED_SIZE_NUMERIC_NAME))
        yield (f"subsystem:{root_dump.name}:allocated_objects",
               root_dump.numerics.get("allocated_objects_size"))

    memtrack_dump = process_sample.get_allocator_dump_by_full_name("gpu/android_memtrack")
    if memtrack_dump is not None:
        for child in memtrack_dump.children:
            yield f"android_memtrack:{child.name}", child.numerics.get("memtrack_pss")


def add_general_memory_values(browser_name_to_samples: dict, values: ValueList, model) -> None:
    """Process counts, allocator (subsystem) sizes and Android memtrack sizes."""
    add_per_process_name_values(
        browser_name_to_samples, lambda g: True, _general_values, values, model)


def get_descendant_vm_region_node(node, path):
    """Follow child titles in `path` from `node`; None if any step is missing."""
    for title in path:
        if node is None:
            break
        node = node.get_child(title)
    return node


def _detailed_values(process_sample):
    for metric_name, region in MMAPS_METRICS.items():
        node  = get_descendant_vm_region_node(process_sample.vm_regions, region["path"])
        value = (node.byte_stats.get(region["byte_stat"]) or 0) if node is not None else 0
        yield f"vmstats:{metric_name}", ScalarNumeric(SIZE_IN_BYTES, value)


def add_detailed_memory_values(browser_name_to_samples: dict, values: ValueList, model) -> None:
    """VM region statistics, from detailed samples only."""
    add_per_process_name_values(
        browser_name_to_samples,
        lambda g: g.level_of_detail is LevelOfDetail.DETAILED,
        _detailed_values, values, model)


def add_dump_count_values(browser_name_to_samples: dict, values: ValueList, model) -> None:
    for browser_name, samples in browser_name_to_samples.items():
        counts = {"total": 0}
        for level_name in LEVEL_OF_DETAIL_NAMES.values():
            counts[level_name] = 0

        for sample in samples:
            counts["total"] += 1
            level_name = LEVEL_OF_DETAIL_NAMES.get(sample.level_of_detail)
            if level_name is None:
                continue    # unknown level of detail
            counts[level_name] += 1

        for level_name, count in counts.items():
            values.add_value(GroupedValue(
                model.canonical_url,
                ":".join(["memory", browser_name, ALL_PROCESS_NAMES, "dump_count", level_name]),
                ScalarNumeric(UNITLESS_NUMBER, count),
            ))


# ── Per-process-name aggregation ───────────────────────────────────────────────

def add_per_process_name_values(browser_name_to_samples: dict, sample_filter, extractor,
                                values: ValueList, model) -> None:
    """
    Extract values from every process sample and report them aggregated by
    browser and process name.

    `extractor(process_sample)` yields (value_name, ScalarNumeric | None)
    pairs.  For an extracted value "x" this reports

        memory:<browser>:browser:x   histogram of [sum of x over browser processes
                                                   in sample 1, ..., in sample N]
        memory:<browser>:renderer:x  ...
        memory:<browser>:all:x       histogram of [sum of x over all processes
                                                   in sample 1, ..., in sample N]

    where samples 1..N are the browser's samples accepted by sample_filter.
    """
    for browser_name, samples in browser_name_to_samples.items():
        filtered = [g for g in samples if sample_filter(g)]
        per_time = calculate_per_process_name_values(filtered, extractor)
        per_time = inject_totals(per_time)
        report_per_process_name_values(per_time, browser_name, values, model)


def process_name_key(raw_name: "str | None") -> str:
    """'GPU Process' → 'gpu_process'; missing names become 'unknown'."""
    return "_".join((raw_name or UNKNOWN_NAME).lower().split()) or UNKNOWN_NAME


def calculate_per_process_name_values(samples, extractor) -> list:
    """
    One dict per sample:  process name → value name → summed ScalarNumeric.
    """
    per_time = []
    for sample in samples:
        process_name_to_values = {}
        for process_sample in sample.process_samples:
            process_name = process_name_key(process_sample.process_name)
            name_to_scalar = process_name_to_values.setdefault(process_name, {})
            for value_name, scalar in extractor(process_sample):
                if scalar is None:
                    continue
                current = name_to_scalar.get(value_name)
                if current is None:
                    name_to_scalar[value_name] = scalar
                    continue
                if scalar.unit is not current.unit:
                    raise UnitMismatchError(
                        f"Multiple units provided for value '{value_name}' of "
                        f"'{process_name}' processes: {current.unit.unit_name} "
                        f"and {scalar.unit.unit_name}"
                    )
                name_to_scalar[value_name] = current + scalar
        per_time.append(process_name_to_values)
    return per_time


def inject_totals(per_time: list) -> list:
    """
    Return copies of the per-sample dicts, each with an extra "all" process
    name summing every value name over the real process names.
    """
    result = []
    for process_name_to_values in per_time:
        value_name_to_scalars = _invert_list_of_dicts(list(process_name_to_values.values()))
        totals = {
            value_name: sum_scalars(
                scalars, what=f"value '{value_name}' of different processes")
            for value_name, scalars in value_name_to_scalars.items()
        }
        result.append({**process_name_to_values, ALL_PROCESS_NAMES: totals})
    return result


def report_per_process_name_values(per_time: list, browser_name: str,
                                   values: ValueList, model) -> None:
    process_name_to_time = _invert_list_of_dicts(per_time)
    for process_name, time_to_values in process_name_to_time.items():
        value_name_to_time = _invert_list_of_dicts(time_to_values)
        for value_name, time_to_scalar in value_name_to_time.items():
            values.add_value(GroupedValue(
                model.canonical_url,
                ":".join(["memory", browser_name, process_name, value_name]),
                merge_scalars_into_histogram(time_to_scalar),
            ))


def merge_scalars_into_histogram(scalars: list):
    """Histogram over `scalars`; a missing (None) scalar is added as 0."""
    unit = next(s.unit for s in scalars if s is not None)
    builder = MEMORY_HISTOGRAM_BUILDERS.get(unit)
    if builder is None:
        raise ValueError(f"No memory histogram layout for unit {unit.unit_name}")
    histogram = builder.build()
    for scalar in scalars:
        if scalar is not None and scalar.unit is not unit:
            raise UnitMismatchError(
                f"Cannot merge {scalar.unit.unit_name} into a "
                f"{unit.unit_name} histogram"
            )
        histogram.add(0 if scalar is None else scalar.value)
    return histogram


def _invert_list_of_dicts(items: list) -> dict:
    """
    [{a: 1, b: 2}, None, {a: 3}]  →  {a: [1, None, 3], b: [2, None, None]}

    Keys keep first-seen order; every list has len(items) entries.
    """
    result = {}
    for i, item in enumerate(items):
        if item is None:
            continue
        for key, value in item.items():
            column = result.get(key)
            if column is None:
                column = result[key] = [None] * len(items)
            column[i] = value
    return result
