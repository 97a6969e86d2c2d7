"""
Prometheus metrics module for the scheduling engine.

This module provides Prometheus-compatible metrics by leveraging the
@measure_operation performance data recorded by services, plus a handful
of scheduling-specific counters. It follows Prometheus naming conventions
and best practices for metric types.
"""

from threading import Lock
from time import monotonic
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from ..core.config import settings

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "scheduling_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "scheduling_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "scheduling_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

date_displacements_total = Counter(
    "scheduling_date_displacements_total",
    "Dates rejected because normalization would move them to another calendar day",
    ["component"],
    registry=REGISTRY,
)

policy_fallbacks_total = Counter(
    "scheduling_policy_fallbacks_total",
    "Booking policy resolutions that fell back to the default policy",
    ["reason"],  # not_found | malformed | fetch_error
    registry=REGISTRY,
)

policy_cache_lookups_total = Counter(
    "scheduling_policy_cache_lookups_total",
    "Booking policy cache lookups",
    ["result"],  # hit | miss
    registry=REGISTRY,
)

slots_generated_total = Counter(
    "scheduling_slots_generated_total",
    "Slots returned by the unified slot generator",
    ["channel", "available"],
    registry=REGISTRY,
)


def _metrics_ttl_seconds() -> float:
    """Return cache TTL seconds for the configured environment."""

    if settings.environment == "test":
        return 2.0
    return 1.0


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None
    _cache_ts: Optional[float] = None
    _cache_ttl_seconds: float = _metrics_ttl_seconds()

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
            service: Service name (e.g., 'AvailabilityEngine')
            operation: Operation/method name (e.g., 'calculate_availability')
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
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_date_displacement(component: str) -> None:
        date_displacements_total.labels(component=component).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_policy_fallback(reason: str) -> None:
        policy_fallbacks_total.labels(reason=reason).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_policy_cache_lookup(hit: bool) -> None:
        policy_cache_lookups_total.labels(result="hit" if hit else "miss").inc()

    @staticmethod
    def record_slots_generated(channel: str, available: int, unavailable: int) -> None:
        slots_generated_total.labels(channel=channel, available="true").inc(available)
        slots_generated_total.labels(channel=channel, available="false").inc(unavailable)
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """
        Generate Prometheus metrics in exposition format.

        Returns:
            Metrics data in Prometheus text format
        """
        now = monotonic()
        payload = PrometheusMetrics._cache_payload
        ts = PrometheusMetrics._cache_ts
        ttl = PrometheusMetrics._cache_ttl_seconds

        if payload is not None and ts is not None and (now - ts) <= ttl:
            return payload

        with PrometheusMetrics._cache_lock:
            payload = PrometheusMetrics._cache_payload
            ts = PrometheusMetrics._cache_ts
            ttl = PrometheusMetrics._cache_ttl_seconds

            if payload is None or ts is None or (now - ts) > ttl:
                PrometheusMetrics._refresh_cache_locked()
                payload = PrometheusMetrics._cache_payload

        return cast(bytes, payload)

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _refresh_cache_locked() -> None:
        """Refresh cached metrics payload. Caller must hold lock."""

        PrometheusMetrics._cache_payload = cast(bytes, generate_latest(REGISTRY))
        PrometheusMetrics._cache_ts = monotonic()
        PrometheusMetrics._cache_ttl_seconds = _metrics_ttl_seconds()

    @staticmethod
    def _invalidate_cache() -> None:
        """Invalidate cached metrics so next scrape refreshes."""

        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_ts = None
            PrometheusMetrics._cache_payload = None


prometheus_metrics = PrometheusMetrics()
