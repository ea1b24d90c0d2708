"""Tests for the request queue."""
import asyncio

import pytest

from linguaquiz.resilience.request_queue import RequestQueue


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_concurrency_is_bounded() -> None:
    """With concurrency 2 no more than two tasks run at once."""
    queue = RequestQueue(concurrency=2, rate_limit=10, interval=60)
    running = 0
    peak = 0

    async def task(value: int) -> int:
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return value

    results = await asyncio.gather(*(queue.add(lambda v=i: task(v)) for i in range(5)))

    assert results == [0, 1, 2, 3, 4]
    assert peak == 2
    assert queue.active == 0
    assert queue.pending == 0


@pytest.mark.asyncio
async def test_tasks_start_in_fifo_order() -> None:
    """Queued tasks start in submission order."""
    queue = RequestQueue(concurrency=1, rate_limit=10, interval=60)
    started = []

    async def task(value: int) -> None:
        started.append(value)
        await asyncio.sleep(0)

    await asyncio.gather(*(queue.add(lambda v=i: task(v)) for i in range(4)))
    assert started == [0, 1, 2, 3]


@pytest.mark.asyncio
async def test_errors_propagate_unmodified() -> None:
    """A failing task raises its own exception to the caller and frees its slot."""
    queue = RequestQueue(concurrency=1, rate_limit=10, interval=60)
    error = ValueError("bad payload")

    async def failing():
        raise error

    async def ok():
        return "ok"

    with pytest.raises(ValueError) as exc_info:
        await queue.add(failing)
    assert exc_info.value is error
    assert await queue.add(ok) == "ok"
    assert queue.active == 0


@pytest.mark.asyncio
async def test_rate_limit_defers_until_window_slides() -> None:
    """Starts beyond the rate limit wait until old timestamps leave the window."""
    clock = FakeClock()
    queue = RequestQueue(concurrency=5, rate_limit=2, interval=60, poll_delay=0.01, clock=clock)
    started = []

    async def task(value: int) -> int:
        started.append(value)
        return value

    pending = asyncio.gather(*(queue.add(lambda v=i: task(v)) for i in range(3)))
    await asyncio.sleep(0.05)
    assert started == [0, 1]
    assert queue.pending == 1

    clock.now += 60
    assert await asyncio.wait_for(pending, timeout=1) == [0, 1, 2]
    assert started == [0, 1, 2]


@pytest.mark.asyncio
async def test_never_exceeds_rate_limit_within_window() -> None:
    """Within one window at most ``rate_limit`` tasks start."""
    clock = FakeClock()
    queue = RequestQueue(concurrency=10, rate_limit=10, interval=60, poll_delay=0.01, clock=clock)
    started = []

    async def task(value: int) -> int:
        started.append(value)
        return value

    pending = asyncio.gather(*(queue.add(lambda v=i: task(v)) for i in range(15)))
    await asyncio.sleep(0.05)
    assert len(started) == 10

    clock.now += 61
    await asyncio.wait_for(pending, timeout=1)
    assert len(started) == 15


def test_rate_limit_retry_is_rescheduled_on_a_new_event_loop() -> None:
    """A retry timer pending when its loop closed does not block the next loop."""
    clock = FakeClock()
    queue = RequestQueue(concurrency=1, rate_limit=1, interval=10, poll_delay=0.01, clock=clock)

    async def job(value: int) -> int:
        return value

    async def first_run() -> None:
        assert await queue.add(lambda: job(1)) == 1
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(queue.add(lambda: job(2)), timeout=0.05)

    async def second_run():
        clock.now += 10
        first = await queue.add(lambda: job(3))
        waiting = asyncio.ensure_future(queue.add(lambda: job(4)))
        await asyncio.sleep(0.02)
        clock.now += 10
        return first, await asyncio.wait_for(waiting, timeout=1)

    asyncio.run(first_run())
    assert asyncio.run(second_run()) == (3, 4)
