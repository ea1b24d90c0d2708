"""Retry loop around the request queue and circuit breaker."""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from linguaquiz import monitoring
from linguaquiz.errors import ErrorKind, GenerationError, classify_error
from linguaquiz.resilience.circuit_breaker import CircuitBreaker
from linguaquiz.resilience.request_queue import RequestQueue

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NO_FALLBACK = object()


@dataclass
class AttemptMetric:
    """Structured record emitted for every generation attempt."""

    operation: str
    elapsed: float
    retry_count: int
    error_kind: Optional[ErrorKind] = None

    @property
    def success(self) -> bool:
        return self.error_kind is None


class RetryOrchestrator:
    """Runs a backend call through the queue and breaker with exponential backoff."""

    def __init__(
        self,
        queue: RequestQueue,
        breaker: CircuitBreaker,
        max_retries: int = 3,
        initial_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_attempt: Optional[Callable[[AttemptMetric], None]] = None,
    ):
        self.queue = queue
        self.breaker = breaker
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self._sleep = sleep
        self._on_attempt = on_attempt

    def backoff_delay(self, attempt: int) -> float:
        """Delay before the attempt following ``attempt`` (1-based)."""
        return self.initial_delay * 2 ** (attempt - 1)

    async def run(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        fallback: Any = _NO_FALLBACK,
    ) -> T:
        """Run ``call`` until it succeeds or ``max_retries`` attempts are used.

        On exhaustion a ``GenerationError`` carrying the classified kind of the
        last failure is raised, unless a fallback value was supplied, in which
        case the fallback is returned instead.
        """
        for attempt in range(1, self.max_retries + 1):
            started = time.perf_counter()
            try:
                result = await self.queue.add(lambda: self.breaker.execute(call))
            except Exception as e:
                kind = classify_error(e)
                self._emit(AttemptMetric(operation, time.perf_counter() - started, attempt - 1, kind))
                if attempt >= self.max_retries:
                    if fallback is not _NO_FALLBACK:
                        logger.error(f"{operation} failed after {attempt} attempts ({kind.value}), using fallback: {e}")
                        monitoring.generation_fallbacks.labels(operation=operation).inc()
                        return fallback
                    logger.error(f"{operation} failed after {attempt} attempts ({kind.value}): {e}")
                    raise GenerationError(f"Failed to {operation.replace('_', ' ')}", kind=kind, cause=e) from e
                delay = self.backoff_delay(attempt)
                logger.warning(
                    f"{operation} attempt {attempt}/{self.max_retries} failed ({kind.value}), "
                    f"retrying in {delay}s: {e}"
                )
                await self._sleep(delay)
            else:
                self._emit(AttemptMetric(operation, time.perf_counter() - started, attempt - 1))
                return result
        raise GenerationError(f"Failed to {operation.replace('_', ' ')}")  # max_retries < 1

    def _emit(self, metric: AttemptMetric) -> None:
        outcome = "success" if metric.success else "failure"
        monitoring.generation_attempts.labels(operation=metric.operation, outcome=outcome).inc()
        monitoring.generation_duration.labels(operation=metric.operation).observe(metric.elapsed)
        if metric.error_kind is not None:
            monitoring.generation_errors.labels(error_type=metric.error_kind.value).inc()
        logger.info(
            f"generation_metric operation={metric.operation} elapsed={metric.elapsed:.3f}s "
            f"retry_count={metric.retry_count} "
            f"error_kind={metric.error_kind.value if metric.error_kind else None}"
        )
        if self._on_attempt is not None:
            self._on_attempt(metric)
