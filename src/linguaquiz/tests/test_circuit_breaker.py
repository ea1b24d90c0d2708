"""Tests for the circuit breaker."""
import pytest

from linguaquiz.errors import CircuitOpenError
from linguaquiz.resilience.circuit_breaker import CircuitBreaker, CircuitState


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


async def _fail():
    raise ConnectionError("backend down")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def breaker(clock: FakeClock) -> CircuitBreaker:
    return CircuitBreaker(failure_threshold=3, reset_timeout=30, clock=clock)


@pytest.mark.asyncio
async def test_success_keeps_circuit_closed(breaker: CircuitBreaker) -> None:
    """Successful calls return their result and leave the circuit closed."""
    async def action():
        return "ok"

    assert await breaker.execute(action) == "ok"
    assert breaker.state is CircuitState.CLOSED
    assert breaker.failure_count == 0


@pytest.mark.asyncio
async def test_failure_is_reraised(breaker: CircuitBreaker) -> None:
    """The underlying error reaches the caller."""
    with pytest.raises(ConnectionError, match="backend down"):
        await breaker.execute(_fail)
    assert breaker.failure_count == 1
    assert breaker.state is CircuitState.CLOSED


@pytest.mark.asyncio
async def test_opens_after_threshold_and_blocks(breaker: CircuitBreaker) -> None:
    """After the threshold the action is no longer invoked."""
    for _ in range(3):
        with pytest.raises(ConnectionError):
            await breaker.execute(_fail)
    assert breaker.state is CircuitState.OPEN

    calls = []

    async def action():
        calls.append(1)
        return "ok"

    with pytest.raises(CircuitOpenError):
        await breaker.execute(action)
    assert calls == []


@pytest.mark.asyncio
async def test_half_open_success_closes(breaker: CircuitBreaker, clock: FakeClock) -> None:
    """A successful probe after the reset timeout closes the circuit."""
    for _ in range(3):
        with pytest.raises(ConnectionError):
            await breaker.execute(_fail)

    clock.now += 30
    states = []

    async def probe():
        states.append(breaker.state)
        return "recovered"

    assert await breaker.execute(probe) == "recovered"
    assert states == [CircuitState.HALF_OPEN]
    assert breaker.state is CircuitState.CLOSED
    assert breaker.failure_count == 0


@pytest.mark.asyncio
async def test_half_open_failure_reopens(breaker: CircuitBreaker, clock: FakeClock) -> None:
    """A single failed probe reopens the circuit for another timeout."""
    for _ in range(3):
        with pytest.raises(ConnectionError):
            await breaker.execute(_fail)

    clock.now += 31
    with pytest.raises(ConnectionError):
        await breaker.execute(_fail)
    assert breaker.state is CircuitState.OPEN

    clock.now += 10
    with pytest.raises(CircuitOpenError):
        await breaker.execute(_fail)


@pytest.mark.asyncio
async def test_success_resets_failure_count(breaker: CircuitBreaker) -> None:
    """Failures must be consecutive to open the circuit."""
    async def ok():
        return 1

    for _ in range(2):
        with pytest.raises(ConnectionError):
            await breaker.execute(_fail)
    await breaker.execute(ok)
    for _ in range(2):
        with pytest.raises(ConnectionError):
            await breaker.execute(_fail)
    assert breaker.state is CircuitState.CLOSED


def test_reset(breaker: CircuitBreaker) -> None:
    """Reset forces the circuit closed."""
    breaker._on_failure()
    breaker._on_failure()
    breaker._on_failure()
    assert breaker.state is CircuitState.OPEN
    breaker.reset()
    assert breaker.state is CircuitState.CLOSED
    assert breaker.failure_count == 0
