"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes the access counters:
    - permission_checks_total{app, action, outcome}
    - tenant_resolution_failures_total{code}
    - handoff_events_total{event}
    - api_errors_total{code}
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
