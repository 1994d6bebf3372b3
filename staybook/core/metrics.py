"""
Production monitoring and metrics for booking system
"""

import time
import logging
from contextlib import asynccontextmanager

from prometheus_client import Counter, Histogram, REGISTRY

logger = logging.getLogger(__name__)


def _get_or_create(metric_cls, name, documentation, labelnames):
    # Module may be imported more than once under test runners
    try:
        return metric_cls(name, documentation, labelnames)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


REQUEST_COUNT = _get_or_create(
    Counter,
    "staybook_requests_total",
    "Total requests",
    ["method", "endpoint", "status"],
)
REQUEST_DURATION = _get_or_create(
    Histogram,
    "staybook_request_duration_seconds",
    "Request duration",
    ["method", "endpoint"],
)
BOOKING_OPERATIONS = _get_or_create(
    Counter,
    "staybook_booking_operations_total",
    "Booking lifecycle operations",
    ["operation", "outcome"],
)
BOOKING_OPERATION_DURATION = _get_or_create(
    Histogram,
    "staybook_booking_operation_duration_seconds",
    "Booking lifecycle operation duration",
    ["operation"],
)


class MetricsCollector:
    """Production metrics collector for booking system"""

    @asynccontextmanager
    async def track_booking_operation(self, operation: str):
        """
        Record outcome and duration of one booking operation
        """
        start_time = time.perf_counter()
        outcome = "success"
        try:
            yield
        except Exception as e:
            outcome = getattr(e, "code", type(e).__name__).lower()
            raise
        finally:
            duration = time.perf_counter() - start_time
            BOOKING_OPERATIONS.labels(operation=operation, outcome=outcome).inc()
            BOOKING_OPERATION_DURATION.labels(operation=operation).observe(duration)
            logger.debug(f"Booking operation {operation} finished: {outcome} in {duration * 1000:.1f}ms")


# Global metrics collector instance
metrics_collector = MetricsCollector()
