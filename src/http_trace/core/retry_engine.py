"""
Retry engine для send_and_retry.

Включает:
- Проверку бюджета попыток по RetryPolicy
- Проверку retry-eligibility через classifier
- Фиксированную паузу между попытками (без exponential backoff)
"""

import asyncio
import logging

from .classifier import is_retryable
from .config import RetryPolicy

logger = logging.getLogger(__name__)


class RetryEngine:
    """
    Счётчик попыток и решение о повторе.

    Examples:
        >>> engine = RetryEngine(RetryPolicy(max_attempts=3, delay=0.5))
        >>> if engine.should_retry(error):
        >>>     await engine.async_wait()
        >>>     engine.increment()
    """

    def __init__(self, policy: RetryPolicy):
        """
        Args:
            policy: Политика повторов
        """
        self.policy = policy
        self._attempt = 0

    def should_retry(self, error: BaseException) -> bool:
        """
        Решить нужен ли retry.

        Классификация вычисляется заново на каждый вызов.

        Args:
            error: Исключение последней попытки

        Returns:
            True если бюджет не исчерпан и ошибка retry-eligible
        """
        if self.exhausted:
            return False

        return is_retryable(error)

    def get_wait_time(self) -> float:
        """Секунды ожидания перед следующей попыткой."""
        return self.policy.delay

    async def async_wait(self) -> None:
        """
        Асинхронное ожидание перед retry.

        Не блокирует event loop. Нулевая пауза пропускается.
        """
        wait_time = self.get_wait_time()
        if wait_time > 0:
            logger.debug(
                "Waiting %.3fs before retry %d/%d",
                wait_time, self._attempt + 1, self.policy.max_attempts
            )
            await asyncio.sleep(wait_time)

    def increment(self):
        """Увеличить счётчик попыток."""
        self._attempt += 1

    @property
    def attempt(self) -> int:
        """Номер текущей попытки (0 = первая)."""
        return self._attempt

    @property
    def exhausted(self) -> bool:
        """Бюджет повторов исчерпан."""
        return self._attempt >= self.policy.max_attempts
