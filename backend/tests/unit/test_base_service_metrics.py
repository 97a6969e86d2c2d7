# backend/tests/unit/test_base_service_metrics.py
"""
Tests for the BaseService measurement hooks shared by every scheduling service.
"""

import logging

import pytest

from app.core.config import settings
from app.monitoring.prometheus_metrics import REGISTRY, _metrics_ttl_seconds, prometheus_metrics
from app.schemas.availability import SlotGenerationParams
from app.services.base import BaseService
from tests._utils.scheduling import ORG, interval

pytestmark = pytest.mark.unit


class _SampleService(BaseService):
    @BaseService.measure_operation("succeed")
    def succeed(self):
        return "ok"

    @BaseService.measure_operation("fail")
    def fail(self):
        raise ValueError("nope")


@pytest.fixture
def service():
    service = _SampleService()
    service.reset_metrics()
    yield service
    service.reset_metrics()


def test_measured_operations_are_counted(service):
    service.succeed()
    service.succeed()
    with pytest.raises(ValueError):
        service.fail()

    metrics = service.get_metrics()

    assert metrics["succeed"]["count"] == 2
    assert metrics["succeed"]["success_rate"] == 1.0
    assert metrics["fail"]["failure_count"] == 1
    assert metrics["fail"]["success_rate"] == 0.0


def test_measure_operation_marks_function():
    assert _SampleService.succeed._is_measured is True
    assert _SampleService.succeed._operation_name == "succeed"


def test_errors_are_exported_to_prometheus(service):
    labels = {"service": "_SampleService", "operation": "fail", "error_type": "ValueError"}
    before = REGISTRY.get_sample_value("scheduling_errors_total", labels) or 0

    with pytest.raises(ValueError):
        service.fail()

    assert REGISTRY.get_sample_value("scheduling_errors_total", labels) == before + 1


def test_slow_operation_warning(service, monkeypatch, caplog):
    monkeypatch.setattr(settings, "slow_operation_threshold_seconds", -1.0)

    with caplog.at_level(logging.WARNING, logger="_SampleService"):
        service.succeed()

    assert "Slow operation detected: succeed" in caplog.text


def test_measure_operation_context(service):
    with service.measure_operation_context("block"):
        pass

    assert service.get_metrics()["block"]["count"] == 1


def test_transaction_without_session_is_a_no_op(service):
    with service.transaction() as session:
        assert session is None


def test_facade_operations_are_measured(stack):
    stack.schedule_repo.intervals.append(interval(1, "09:00", "17:00"))
    stack.facade.reset_metrics()

    stack.facade.generate_slots(SlotGenerationParams(organization_id=ORG, date="2025-01-20"))

    assert stack.facade.get_metrics()["generate_slots"]["count"] == 1
    assert stack.engine.get_metrics()["calculate_availability"]["success_count"] >= 1


def test_metrics_endpoint_payload_contains_scheduling_series():
    prometheus_metrics.record_policy_fallback("not_found")

    payload = prometheus_metrics.get_metrics().decode()

    assert "scheduling_policy_fallbacks_total" in payload
    assert prometheus_metrics.get_content_type().startswith("text/plain")


@pytest.mark.parametrize(
    "environment, ttl", [("test", 2.0), ("local", 1.0), ("production", 1.0)]
)
def test_metrics_cache_ttl_follows_environment(monkeypatch, environment, ttl):
    monkeypatch.setattr(settings, "environment", environment)

    assert _metrics_ttl_seconds() == ttl
