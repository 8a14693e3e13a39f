"""Monitoring utilities leveraging Prometheus client."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Histogram

index_actions_total = Counter(
    "graphsearch_index_actions_total",
    "Index actions produced from graph write operations",
    ["action"],
)

projection_errors_total = Counter(
    "graphsearch_projection_errors_total",
    "Documents that could not be projected from graph entities",
)

search_requests_total = Counter(
    "graphsearch_search_requests_total",
    "Search requests executed against the index",
    ["kind"],
)

unresolved_matches_total = Counter(
    "graphsearch_unresolved_matches_total",
    "Search hits dropped because the graph entity no longer exists",
    ["kind"],
)

search_latency_seconds = Histogram(
    "graphsearch_search_latency_seconds",
    "Search latency including graph resolution",
    ["kind"],
)


def record_action(action: str) -> None:
    index_actions_total.labels(action=action).inc()


def record_projection_error() -> None:
    projection_errors_total.inc()


def record_unresolved(kind: str) -> None:
    unresolved_matches_total.labels(kind=kind).inc()


@contextmanager
def track_search(kind: str) -> Iterator[None]:
    search_requests_total.labels(kind=kind).inc()
    start = time.perf_counter()
    try:
        yield
    finally:
        search_latency_seconds.labels(kind=kind).observe(time.perf_counter() - start)
