"""Prometheus metrics for the learning core."""
from prometheus_client import Counter, Gauge, Histogram, start_http_server

# Generation metrics
generation_attempts = Counter(
    "linguaquiz_generation_attempts_total",
    "Total number of calls made to the generative backend",
    ["operation", "outcome"],
)

generation_duration = Histogram(
    "linguaquiz_generation_duration_seconds",
    "Duration of generation attempts in seconds",
    ["operation"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

generation_errors = Counter(
    "linguaquiz_generation_errors_total",
    "Total number of failed generation attempts by classified kind",
    ["error_type"],
)

generation_fallbacks = Counter(
    "linguaquiz_generation_fallbacks_total",
    "Total number of generation calls answered with a fallback value",
    ["operation"],
)

# Resilience metrics
circuit_state = Gauge(
    "linguaquiz_circuit_state",
    "Circuit breaker state (0 closed, 1 open, 2 half open)",
)

queue_pending = Gauge(
    "linguaquiz_queue_pending",
    "Number of generation requests waiting in the request queue",
)

queue_active = Gauge(
    "linguaquiz_queue_active",
    "Number of generation requests currently executing",
)

# Learning metrics
quizzes_generated = Counter(
    "linguaquiz_quizzes_generated_total",
    "Total number of quizzes generated",
)

quizzes_submitted = Counter(
    "linguaquiz_quizzes_submitted_total",
    "Total number of quiz attempts scored",
)

words_reviewed = Counter(
    "linguaquiz_words_reviewed_total",
    "Total number of word progress updates",
    ["status"],
)

skipped_word_updates = Counter(
    "linguaquiz_skipped_word_updates_total",
    "Word progress updates skipped because the word id was invalid or deleted",
    ["reason"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
