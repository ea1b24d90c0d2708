"""Bounded, rate-limited FIFO queue for calls to the generative backend."""
import asyncio
import logging
import threading
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Optional, Set, Tuple, TypeVar

from linguaquiz import monitoring

logger = logging.getLogger(__name__)

T = TypeVar("T")

QueueItem = Tuple[Callable[[], Awaitable[Any]], asyncio.Future]


class RequestQueue:
    """Runs queued tasks with bounded concurrency and a sliding-window rate limit.

    When only the rate limit blocks the head of the queue, dispatching is
    retried after ``poll_delay`` seconds rather than at the exact moment the
    window frees up.
    """

    def __init__(
        self,
        concurrency: int = 3,
        rate_limit: int = 10,
        interval: float = 60.0,
        poll_delay: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.concurrency = concurrency
        self.rate_limit = rate_limit
        self.interval = interval
        self.poll_delay = poll_delay
        self._clock = clock
        self._lock = threading.Lock()
        self._pending: Deque[QueueItem] = deque()
        self._active = 0
        self._timestamps: Deque[float] = deque()
        self._timer: Optional[asyncio.TimerHandle] = None
        self._timer_loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    @property
    def active(self) -> int:
        return self._active

    async def add(self, task: Callable[[], Awaitable[T]]) -> T:
        """Queue a task and wait for its result."""
        future = asyncio.get_running_loop().create_future()
        with self._lock:
            self._pending.append((task, future))
            monitoring.queue_pending.set(len(self._pending))
        self._dispatch()
        return await future

    def _can_start(self) -> bool:
        now = self._clock()
        while self._timestamps and now - self._timestamps[0] >= self.interval:
            self._timestamps.popleft()
        return len(self._timestamps) < self.rate_limit

    def _dispatch(self) -> None:
        """Start as many queued tasks as capacity and the rate limit allow."""
        loop = asyncio.get_running_loop()
        while True:
            with self._lock:
                if self._active >= self.concurrency or not self._pending:
                    return
                if not self._can_start():
                    if self._timer is not None and self._timer_loop is not loop:
                        # left over from a previous event loop
                        self._timer.cancel()
                        self._timer = None
                    if self._timer is None:
                        logger.debug(f"Rate limit reached, retrying dispatch in {self.poll_delay}s")
                        self._timer = loop.call_later(self.poll_delay, self._on_timer)
                        self._timer_loop = loop
                    return
                task, future = self._pending.popleft()
                monitoring.queue_pending.set(len(self._pending))
                if future.done():
                    continue
                self._timestamps.append(self._clock())
                self._active += 1
                monitoring.queue_active.set(self._active)
            running = loop.create_task(self._run(task, future))
            self._tasks.add(running)
            running.add_done_callback(self._tasks.discard)

    def _on_timer(self) -> None:
        self._timer = None
        self._timer_loop = None
        self._dispatch()

    async def _run(self, task: Callable[[], Awaitable[Any]], future: asyncio.Future) -> None:
        try:
            result = await task()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            if not future.done():
                future.set_exception(e)
        else:
            if not future.done():
                future.set_result(result)
        finally:
            with self._lock:
                self._active -= 1
                monitoring.queue_active.set(self._active)
            self._dispatch()
