from collections.abc import Iterable

from imbue.imbue_common.conftest_hooks import register_conftest_hooks
from imbue.waiter.interfaces import AsyncWaiterInterface
from imbue.waiter.interfaces import BaseWaiterInterface
from imbue.waiter.interfaces import WaiterCurrentStateInterface
from imbue.waiter.interfaces import WaiterInterface

register_conftest_hooks(globals())


class ResourceNotFoundError(Exception):
    """Domain error raised by the fake waiters below."""


class CounterTimeoutError(Exception):
    """Domain timeout error produced by CounterWaiterBase.timeout_error()."""

    def __init__(self, calls: int) -> None:
        self.calls = calls
        super().__init__(f"counter gave up after {calls} calls")


class CounterWaiterBase(BaseWaiterInterface):
    """State and configuration shared by the blocking and async counter fakes.

    Each poll increments calls. The poll that brings calls to target finishes with
    the value of calls; the poll numbered fail_on_call raises ResourceNotFoundError.
    """

    target: int
    calls: int = 0
    fail_on_call: int | None = None
    delay_seconds: float = 0.01
    timeout_seconds: float | None = 1.0
    is_finished: bool = False

    def default_wait_timeout(self) -> float | None:
        return self.timeout_seconds

    def default_delay(self) -> float:
        return self.delay_seconds

    def timeout_error(self) -> Exception:
        return CounterTimeoutError(self.calls)

    def waiter_current_state(self) -> int:
        return self.calls

    def _advance(self) -> int | None:
        assert not self.is_finished, "poll() called after a terminal outcome"
        self.calls += 1
        if self.fail_on_call == self.calls:
            self.is_finished = True
            raise ResourceNotFoundError(f"resource vanished on call {self.calls}")
        if self.calls >= self.target:
            self.is_finished = True
            return self.calls
        return None


class CounterWaiter(CounterWaiterBase, WaiterInterface[int], WaiterCurrentStateInterface[int]):
    """Blocking counter fake."""

    def poll(self) -> int | None:
        return self._advance()


class AsyncCounterWaiter(CounterWaiterBase, AsyncWaiterInterface[int], WaiterCurrentStateInterface[int]):
    """Cooperative counter fake."""

    async def poll(self) -> int | None:
        return self._advance()


class FakeTime:
    """Stands in for the time module inside the driver.

    monotonic() returns the scripted readings in order, then keeps returning the last one.
    sleep() returns immediately and records the requested duration.
    """

    def __init__(self, readings: Iterable[float]) -> None:
        self._readings = list(readings)
        self._last = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        if self._readings:
            self._last = self._readings.pop(0)
        return self._last

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
