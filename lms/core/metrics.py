"""Prometheus metrics: one inventory of everything the service measures.

HTTP metrics are fed by MetricsMiddleware.  Domain counters are
incremented by progress_service.py at the point of action, so a
dashboard can show how many modules learners complete and how often a
save has to be rolled back.

prometheus_client uses a global registry and counters only go up; tests
assert on deltas.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Progression
# ---------------------------------------------------------------------------

MODULE_COMPLETION_TOGGLES = Counter(
    "module_completion_toggles_total",
    "Persisted module completion changes",
    ["state"],  # "complete" or "incomplete"
)

MODULE_UNLOCKS = Counter(
    "module_unlocks_total",
    "Modules that became accessible to a learner after a completion",
)

PROGRESS_SAVE_FAILURES = Counter(
    "progress_save_failures_total",
    "Progress writes that failed and were reverted to the stored state",
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache get operations by result",
    ["operation"],  # "hit" or "miss"
)
