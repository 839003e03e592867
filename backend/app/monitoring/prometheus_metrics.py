"""
Prometheus metrics module for Turfbook.

Service timings come from the @measure_operation decorator; the booking
core additionally counts slot claim outcomes, gateway notifications and
cleanup sweep actions.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "turfbook_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "turfbook_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "turfbook_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

slot_claims_total = Counter(
    "turfbook_slot_claims_total",
    "Slot claim attempts by outcome",
    ["outcome"],  # claimed | unavailable | not_found | in_past | unpriced
    registry=REGISTRY,
)

slot_releases_total = Counter(
    "turfbook_slot_releases_total",
    "Slot releases by reason",
    ["reason"],  # rollback | reconciliation
    registry=REGISTRY,
)

webhook_events_total = Counter(
    "turfbook_webhook_events_total",
    "Payment gateway notifications by type and outcome",
    ["event_type", "outcome"],
    registry=REGISTRY,
)

cleanup_actions_total = Counter(
    "turfbook_cleanup_actions_total",
    "Actions taken by the stale booking sweep",
    ["action"],  # expired_session | failed | paid | skipped | error
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade so call sites never touch metric objects directly."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'CheckoutService')
            operation: Operation/method name (e.g., 'create_direct_booking')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_slot_claim(outcome: str) -> None:
        slot_claims_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_slot_release(reason: str) -> None:
        slot_releases_total.labels(reason=reason).inc()

    @staticmethod
    def record_webhook_event(event_type: str, outcome: str) -> None:
        webhook_events_total.labels(event_type=event_type, outcome=outcome).inc()

    @staticmethod
    def record_cleanup_action(action: str) -> None:
        cleanup_actions_total.labels(action=action).inc()

    @staticmethod
    def get_metrics() -> bytes:
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
