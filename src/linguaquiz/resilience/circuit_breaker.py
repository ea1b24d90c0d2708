"""Circuit breaker guarding calls to the generative backend."""
import logging
import threading
import time
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from linguaquiz import monitoring
from linguaquiz.errors import CircuitOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = 0
    OPEN = 1
    HALF_OPEN = 2


class CircuitBreaker:
    """Short-circuits calls after consecutive failures until a cooldown expires.

    The failure counter is not reset when the circuit half-opens, so a single
    failed probe reopens it.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._next_attempt = clock()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    async def execute(self, action: Callable[[], Awaitable[T]]) -> T:
        """Run an action unless the circuit is open."""
        with self._lock:
            if self._state is CircuitState.OPEN:
                if self._clock() >= self._next_attempt:
                    self._set_state(CircuitState.HALF_OPEN)
                    logger.info("Circuit half-open, allowing a probe call")
                else:
                    raise CircuitOpenError()

        try:
            result = await action()
        except Exception:
            self._on_failure()
            raise
        self._on_success()
        return result

    def reset(self) -> None:
        """Force the circuit closed."""
        with self._lock:
            self._failure_count = 0
            self._set_state(CircuitState.CLOSED)

    def _on_success(self) -> None:
        with self._lock:
            self._failure_count = 0
            if self._state is not CircuitState.CLOSED:
                logger.info("Circuit closed after successful call")
            self._set_state(CircuitState.CLOSED)

    def _on_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            if self._failure_count >= self.failure_threshold:
                if self._state is not CircuitState.OPEN:
                    logger.warning(
                        f"Circuit opened after {self._failure_count} consecutive failures, "
                        f"blocking calls for {self.reset_timeout}s"
                    )
                self._set_state(CircuitState.OPEN)
                self._next_attempt = self._clock() + self.reset_timeout

    def _set_state(self, state: CircuitState) -> None:
        self._state = state
        monitoring.circuit_state.set(state.value)
