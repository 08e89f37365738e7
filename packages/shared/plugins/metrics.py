"""Prometheus metrics for the import plugin pipeline.

Covers plugin loading, searches, imports and cover image ingestion.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram

from shared.metrics.prometheus import registry

if TYPE_CHECKING:
    from collections.abc import Generator

# Plugin Loading Metrics
PLUGIN_LOADS_TOTAL = Counter(
    "attic_import_plugin_loads_total",
    "Total import plugin load attempts",
    ["entry_point", "status"],
    registry=registry,
)

PLUGIN_LOAD_DURATION = Histogram(
    "attic_import_plugin_load_duration_seconds",
    "Import plugin load duration in seconds",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
    registry=registry,
)

# Pipeline Metrics
PLUGIN_SEARCHES_TOTAL = Counter(
    "attic_plugin_searches_total",
    "Plugin searches by outcome",
    ["plugin_id", "outcome"],  # outcome: success, rejected, upstream_error, cancelled
    registry=registry,
)

PLUGIN_UPSTREAM_DURATION = Histogram(
    "attic_plugin_upstream_duration_seconds",
    "Duration of plugin search/fetch calls in seconds",
    ["plugin_id", "operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=registry,
)

PLUGIN_IMPORTS_TOTAL = Counter(
    "attic_plugin_imports_total",
    "Plugin imports by outcome",
    ["plugin_id", "outcome"],  # outcome: success, degraded, or the failing error kind
    registry=registry,
)

IMAGE_INGESTIONS_TOTAL = Counter(
    "attic_image_ingestions_total",
    "Cover image ingestions by outcome",
    ["outcome"],
    registry=registry,
)


def record_plugin_load(entry_point: str, *, success: bool, duration: float) -> None:
    """Record an import plugin load attempt."""
    status = "success" if success else "failure"
    PLUGIN_LOADS_TOTAL.labels(entry_point=entry_point, status=status).inc()
    PLUGIN_LOAD_DURATION.observe(duration)


def record_search(plugin_id: str, outcome: str) -> None:
    PLUGIN_SEARCHES_TOTAL.labels(plugin_id=plugin_id, outcome=outcome).inc()


def record_upstream_call(plugin_id: str, operation: str, duration: float) -> None:
    PLUGIN_UPSTREAM_DURATION.labels(plugin_id=plugin_id, operation=operation).observe(duration)


def record_import(plugin_id: str, outcome: str) -> None:
    PLUGIN_IMPORTS_TOTAL.labels(plugin_id=plugin_id, outcome=outcome).inc()


def record_image_ingestion(outcome: str) -> None:
    IMAGE_INGESTIONS_TOTAL.labels(outcome=outcome).inc()


@contextmanager
def timed_operation() -> Generator[dict[str, float], None, None]:
    """Context manager for timing operations.

    Yields a dict that will contain 'duration' after the context exits.

    Example:
        with timed_operation() as timing:
            # do work
        print(timing['duration'])  # seconds elapsed
    """
    timing: dict[str, float] = {}
    start = time.perf_counter()
    try:
        yield timing
    finally:
        timing["duration"] = time.perf_counter() - start
