"""
Pytest configuration and fixtures for http-trace tests.
"""

import logging

import pytest
import pytest_asyncio
import respx
from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from http_trace import TraceClient
from http_trace.core.logging.config import LoggingConfig

# Глобальные провайдеры OpenTelemetry можно установить только один раз
_SPAN_EXPORTER = InMemorySpanExporter()
_METRIC_READER = InMemoryMetricReader()


@pytest.fixture(scope="session", autouse=True)
def otel_providers():
    """TracerProvider и MeterProvider с in-memory экспортом на всю сессию."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(_SPAN_EXPORTER))
    trace.set_tracer_provider(provider)
    metrics.set_meter_provider(MeterProvider(metric_readers=[_METRIC_READER]))
    yield


@pytest.fixture
def span_exporter():
    """In-memory span exporter, очищенный перед тестом."""
    _SPAN_EXPORTER.clear()
    yield _SPAN_EXPORTER
    _SPAN_EXPORTER.clear()


@pytest.fixture
def metric_reader():
    return _METRIC_READER


@pytest.fixture(autouse=True)
def restore_http_trace_logger():
    """configure_logging() меняет логгер http_trace; восстанавливаем после теста."""
    logger = logging.getLogger("http_trace")
    level = logger.level
    propagate = logger.propagate
    handlers = logger.handlers[:]
    yield
    for handler in logger.handlers[:]:
        if handler not in handlers:
            handler.close()
            logger.removeHandler(handler)
    for handler in handlers:
        if handler not in logger.handlers:
            logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def base_url():
    """Base URL for testing."""
    return "https://api.example.com"


@pytest.fixture
def mock_router(base_url):
    """respx router для base_url."""
    with respx.mock(base_url=base_url, assert_all_called=False) as router:
        yield router


@pytest_asyncio.fixture
async def client(base_url):
    """TraceClient instance for testing."""
    client = TraceClient(base_url=base_url, timeout=10)
    yield client
    await client.close()


@pytest.fixture
def logging_config():
    """LoggingConfig для тестов, которым нужен настроенный логгер."""
    return LoggingConfig.create(level="DEBUG", stream="stdout")


@pytest.fixture
def logging_config_with_file(tmp_path):
    """LoggingConfig с записью в файл во временной директории."""
    log_file = tmp_path / "test.log"
    return LoggingConfig.create(level="DEBUG", stream=None, file_path=str(log_file))
