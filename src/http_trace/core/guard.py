"""
Учёт выполняющихся запросов.

ExecutionGuard захватывается перед обращением к транспорту и
освобождается на любом пути выхода (успех, ошибка, отмена задачи).
Метрики чисто наблюдательные и на результат не влияют.
"""

import logging
import threading
import time
from typing import Optional

from opentelemetry import metrics
from opentelemetry.metrics import Counter, UpDownCounter

logger = logging.getLogger(__name__)

_active_lock = threading.Lock()
_active_count = 0


def active_executions() -> int:
    """Количество выполнений, которые сейчас ждут транспорт (на процесс)."""
    with _active_lock:
        return _active_count


def _add_active(delta: int) -> None:
    global _active_count
    with _active_lock:
        _active_count += delta


class ExecutionTelemetry:
    """
    OpenTelemetry инструменты для ExecutionGuard.

    Создаётся один раз при конструировании клиента, если включена
    телеметрия (TraceClientConfig.telemetry=True).

    Metrics:
    - http_trace_execute_active: выполняющиеся запросы (UpDownCounter)
    - http_trace_execute_count: всего выполнений (Counter)
    - http_trace_execute_ms: суммарное время выполнения, мс (Counter)

    Example:
        >>> from opentelemetry.sdk.metrics import MeterProvider
        >>> metrics.set_meter_provider(MeterProvider(metric_readers=[reader]))
        >>> telemetry = ExecutionTelemetry()
    """

    def __init__(self, meter_name: str = "http_trace"):
        """
        Args:
            meter_name: Имя meter (по умолчанию "http_trace")
        """
        self.meter = metrics.get_meter(meter_name)

        self.active: UpDownCounter = self.meter.create_up_down_counter(
            name="http_trace_execute_active",
            description="Number of executions waiting on the transport",
            unit="requests",
        )

        self.count: Counter = self.meter.create_counter(
            name="http_trace_execute_count",
            description="Total number of executions",
            unit="requests",
        )

        self.duration_ms: Counter = self.meter.create_counter(
            name="http_trace_execute_ms",
            description="Cumulative execution time in milliseconds",
            unit="ms",
        )

    def __repr__(self) -> str:
        return f"ExecutionTelemetry(meter={self.meter})"


class ExecutionGuard:
    """
    Scoped учёт одного выполнения.

    Example:
        >>> with ExecutionGuard(telemetry):
        ...     response = await transport.send(request)
    """

    def __init__(self, telemetry: Optional[ExecutionTelemetry] = None):
        self._telemetry = telemetry
        self._started: Optional[float] = None

    def __enter__(self) -> "ExecutionGuard":
        _add_active(1)
        self._started = time.monotonic()

        if self._telemetry is not None:
            try:
                self._telemetry.active.add(1)
                self._telemetry.count.add(1)
            except Exception:
                logger.debug("Failed to update execution metrics", exc_info=True)

        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        _add_active(-1)

        if self._telemetry is not None:
            try:
                self._telemetry.active.add(-1)
                self._telemetry.duration_ms.add(int(self.elapsed_ms))
            except Exception:
                logger.debug("Failed to update execution metrics", exc_info=True)

        return False

    @property
    def elapsed_ms(self) -> float:
        """Миллисекунды с момента захвата."""
        if self._started is None:
            return 0.0
        return (time.monotonic() - self._started) * 1000
