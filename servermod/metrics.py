"""Business metrics for ServerMod."""

from opentelemetry import metrics

from .logging_config import get_logger

logger = get_logger(__name__)

meter = metrics.get_meter(__name__)

# HTTP Request Metrics
http_request_duration = meter.create_histogram(
    name="http_request_duration_seconds",
    description="Duration of HTTP requests in seconds",
    unit="s",
)

http_requests_total = meter.create_counter(
    name="http_requests_total",
    description="Total number of HTTP requests",
)

http_request_errors = meter.create_counter(
    name="http_request_errors_total",
    description="Total number of HTTP request errors",
)

# Moderation Metrics
schedule_deletion_undo_total = meter.create_counter(
    name="schedule_deletion_undo_total",
    description="Scheduled deletion undo attempts by outcome",
)

audit_write_failures_total = meter.create_counter(
    name="audit_write_failures_total",
    description="Moderation audit entries that could not be written",
)


def record_http_request(method: str, endpoint: str, status_code: int, duration: float):
    """Record HTTP request metrics."""
    labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}

    http_request_duration.record(duration, labels)
    http_requests_total.add(1, labels)

    if status_code >= 400:
        http_request_errors.add(1, labels)


def record_undo_outcome(outcome: str):
    """Record the outcome of an undo attempt (an error code or 'success')."""
    schedule_deletion_undo_total.add(1, {"outcome": outcome})


def record_audit_write_failure(action_type: str):
    """Record an audit entry that was lost."""
    audit_write_failures_total.add(1, {"action_type": action_type})
