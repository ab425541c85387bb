"""Prometheus metrics definitions for Fragments."""

from functools import wraps

from prometheus_client import Counter, Histogram

# Business metrics
fragments_written = Counter(
    "fragments_written_total",
    "Total fragment content writes accepted",
    ["type"],
)

validation_failures = Counter(
    "fragments_validation_failures_total",
    "Content rejected by the validator",
    ["type"],
)

conversions_performed = Counter(
    "fragments_conversions_total",
    "Total non-identity conversions performed",
    ["source", "target"],
)

conversion_duration = Histogram(
    "fragments_conversion_duration_seconds",
    "Time to convert content between types",
    ["source", "target"],
)

repository_operation_duration = Histogram(
    "fragments_repository_operation_duration_seconds",
    "Repository operation duration",
    ["operation"],
)

# Error tracking
operation_errors = Counter(
    "fragments_operation_errors_total",
    "Total errors by operation",
    ["operation", "error_type"],
)


def track_operation(operation: str):
    """Decorator for timing async repository operations and counting errors.

    Example:
        @track_operation("set_data")
        async def set_data(self, fragment, data):
            ...
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            with repository_operation_duration.labels(operation=operation).time():
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    operation_errors.labels(
                        operation=operation,
                        error_type=type(e).__name__,
                    ).inc()
                    raise

        return wrapper

    return decorator
