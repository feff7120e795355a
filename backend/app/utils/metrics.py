"""Prometheus metrics for the access layer."""

from prometheus_client import Counter

permission_checks_total = Counter(
    "permission_checks_total",
    "Permission gate decisions",
    ["app", "action", "outcome"],
)

tenant_resolution_failures_total = Counter(
    "tenant_resolution_failures_total",
    "Tenant resolution failures by error code",
    ["code"],
)

handoff_events_total = Counter(
    "handoff_events_total",
    "Handoff store lifecycle events",
    ["event"],
)

api_errors_total = Counter(
    "api_errors_total",
    "Error envelopes returned by the API",
    ["code"],
)


class PrometheusAccessMetrics:
    """Prometheus-based access metrics implementation."""

    def record_permission_check(self, app: str, action: str, allowed: bool) -> None:
        """Record a gate decision."""
        outcome = "allowed" if allowed else "denied"
        permission_checks_total.labels(app=app, action=action, outcome=outcome).inc()

    def inc_tenant_failure(self, code: str) -> None:
        """Increment tenant resolution failure counter."""
        tenant_resolution_failures_total.labels(code=code).inc()

    def inc_handoff_event(self, event: str) -> None:
        """Increment handoff lifecycle counter."""
        handoff_events_total.labels(event=event).inc()

    def inc_api_error(self, code: str) -> None:
        """Increment error envelope counter."""
        api_errors_total.labels(code=code).inc()


access_metrics = PrometheusAccessMetrics()
