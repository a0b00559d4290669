"""
Prometheus metrics for index requests and payload hydration.

Defines module-level metric objects (singletons, thread-safe) recorded by the
gateway layer. Applications that already expose a Prometheus endpoint pick
these up from the default registry; weavefeed itself runs no HTTP server.

Architecture:
    INDEX_REQUESTS:         Index page requests by outcome (ok, empty, error).
    INDEX_LATENCY_SECONDS:  Histogram of index round-trip latency.
    HYDRATIONS:             Per-item hydration outcomes (ok or an ErrorKind value).
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram


INDEX_REQUESTS = Counter(
    "weavefeed_index_requests_total",
    "Index page requests by outcome",
    ["outcome"],
)

INDEX_LATENCY_SECONDS = Histogram(
    "weavefeed_index_latency_seconds",
    "Round-trip latency of index page requests in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30),
)

HYDRATIONS = Counter(
    "weavefeed_hydrations_total",
    "Transaction payload hydrations by outcome",
    ["outcome"],
)
