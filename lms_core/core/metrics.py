"""Prometheus metric inventory.

Every metric the service exports is declared here; the modules that own
the behaviour import and bump them.  HTTP metrics are fed by
MetricsMiddleware, engine metrics by the orchestrator, the certificate
issuer and the enrollment service.
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
# Progress & assessment engine
# ---------------------------------------------------------------------------

ENROLLMENTS_CREATED = Counter(
    "enrollments_created_total",
    "Enrollments created",
)

LESSON_PROGRESS_UPDATES = Counter(
    "lesson_progress_updates_total",
    "Lesson progress upserts by the completed flag sent by the learner",
    ["completed"],  # "true" | "false"
)

ENROLLMENT_COMPLETIONS = Counter(
    "enrollment_completions_total",
    "Enrollments that crossed the ACTIVE -> COMPLETED latch",
)

QUIZ_ATTEMPTS = Counter(
    "quiz_attempts_total",
    "Scored quiz attempts by outcome",
    ["result"],  # "passed" | "failed"
)

QUIZ_SCORE_PERCENTAGE = Histogram(
    "quiz_score_percentage",
    "Distribution of quiz attempt percentages",
    buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)

CERTIFICATES = Counter(
    "certificates_total",
    "Certificate issuance calls by outcome",
    ["outcome"],  # "issued" | "existing" | "race_absorbed"
)

# ---------------------------------------------------------------------------
# Supporting services
# ---------------------------------------------------------------------------

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache get operations by result",
    ["operation"],  # "hit" | "miss"
)

QUEUE_DEPTH = Gauge(
    "task_queue_depth",
    "Number of tasks waiting in a queue",
    ["queue_name"],
)
