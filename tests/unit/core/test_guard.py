"""Тесты ExecutionGuard."""

import pytest

from http_trace.core.guard import ExecutionGuard, ExecutionTelemetry, active_executions


def _metric_points(reader, name):
    data = reader.get_metrics_data()
    points = []
    if data is None:
        return points
    for resource_metrics in data.resource_metrics:
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                if metric.name == name:
                    points.extend(metric.data.data_points)
    return points


def test_guard_tracks_active_count():
    before = active_executions()
    with ExecutionGuard():
        assert active_executions() == before + 1
    assert active_executions() == before


def test_guard_released_on_exception():
    before = active_executions()
    with pytest.raises(RuntimeError):
        with ExecutionGuard():
            raise RuntimeError("transport failed")
    assert active_executions() == before


def test_guard_nested():
    before = active_executions()
    with ExecutionGuard():
        with ExecutionGuard():
            assert active_executions() == before + 2
    assert active_executions() == before


def test_guard_elapsed_ms():
    guard = ExecutionGuard()
    assert guard.elapsed_ms == 0.0
    with guard:
        pass
    assert guard.elapsed_ms >= 0.0


def test_guard_records_metrics(metric_reader):
    telemetry = ExecutionTelemetry("tests.guard")
    with ExecutionGuard(telemetry):
        pass

    count = _metric_points(metric_reader, "http_trace_execute_count")
    assert sum(point.value for point in count) >= 1

    active = _metric_points(metric_reader, "http_trace_execute_active")
    assert active
    assert all(point.value == 0 for point in active)

    assert _metric_points(metric_reader, "http_trace_execute_ms")
