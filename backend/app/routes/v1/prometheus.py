"""
Prometheus metrics endpoint for monitoring infrastructure.

This is a PUBLIC endpoint (no authentication required) following
standard Prometheus practices. It exposes metrics collected from
the @measure_operation decorators and the scheduling counters.
"""

from fastapi import APIRouter, Request, Response
from prometheus_client import Counter

from app.monitoring.prometheus_metrics import REGISTRY, prometheus_metrics

router = APIRouter()

_scrape_counter = Counter(
    "scheduling_prometheus_scrapes_total",
    "Total number of Prometheus metrics scrapes",
    registry=REGISTRY,
)


@router.get("/metrics", include_in_schema=False, response_class=Response, response_model=None)
def get_prometheus_metrics(request: Request) -> Response:
    """
    Expose Prometheus metrics for scraping.

    ``?refresh=1`` bypasses the short exposition cache.

    Returns:
        Response with Prometheus exposition format (text/plain)
    """
    _scrape_counter.inc()
    if request.query_params.get("refresh", "").lower() in {"1", "true", "yes"}:
        prometheus_metrics._invalidate_cache()
    metrics_data = prometheus_metrics.get_metrics()

    return Response(
        content=metrics_data,
        media_type=prometheus_metrics.get_content_type(),
        headers={
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        },
    )
