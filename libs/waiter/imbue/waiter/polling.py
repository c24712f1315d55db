import time
from collections.abc import Awaitable
from collections.abc import Callable
from typing import Any
from typing import TypeVar

from pydantic import Field
from pydantic import PrivateAttr

from imbue.imbue_common.primitives import NonNegativeFloat
from imbue.imbue_common.primitives import NonNegativeInt
from imbue.waiter.data_types import PollProgress
from imbue.waiter.data_types import WaitPolicy
from imbue.waiter.errors import WaitTimeoutError
from imbue.waiter.interfaces import AsyncWaiterInterface
from imbue.waiter.interfaces import WaiterCurrentStateInterface
from imbue.waiter.interfaces import WaiterInterface

T = TypeVar("T")

_DEFAULT_ERROR_MESSAGE = "Condition not met within timeout"


class _ProgressTracker:
    """Counts polls and measures monotonic time from the first poll to the latest one."""

    def __init__(self) -> None:
        self._first_poll_at: float | None = None
        self.progress = PollProgress()

    def record_poll(self) -> None:
        now = time.monotonic()
        if self._first_poll_at is None:
            self._first_poll_at = now
        self.progress = PollProgress(
            poll_count=NonNegativeInt(self.progress.poll_count + 1),
            elapsed_seconds=NonNegativeFloat(now - self._first_poll_at),
        )


class FunctionWaiter(WaiterInterface[Any], WaiterCurrentStateInterface[PollProgress]):
    """Waiter that calls a producer until it returns something other than None.

    The producer raising ends the wait with that exception.
    """

    producer: Callable[[], Any] = Field(description="Called once per poll; returns None while not ready")
    policy: WaitPolicy = Field(default_factory=WaitPolicy, description="Default timeout and delay")
    error_message: str = Field(default=_DEFAULT_ERROR_MESSAGE, description="Message of the timeout error")
    _tracker: _ProgressTracker = PrivateAttr(default_factory=_ProgressTracker)

    def default_wait_timeout(self) -> float | None:
        return self.policy.timeout_seconds

    def default_delay(self) -> float:
        return self.policy.delay_seconds

    def timeout_error(self) -> Exception:
        return WaitTimeoutError(self.error_message)

    def poll(self) -> Any:
        self._tracker.record_poll()
        return self.producer()

    def waiter_current_state(self) -> PollProgress:
        return self._tracker.progress


class AsyncFunctionWaiter(AsyncWaiterInterface[Any], WaiterCurrentStateInterface[PollProgress]):
    """Cooperative counterpart of FunctionWaiter for coroutine producers."""

    producer: Callable[[], Awaitable[Any]] = Field(description="Awaited once per poll; returns None while not ready")
    policy: WaitPolicy = Field(default_factory=WaitPolicy, description="Default timeout and delay")
    error_message: str = Field(default=_DEFAULT_ERROR_MESSAGE, description="Message of the timeout error")
    _tracker: _ProgressTracker = PrivateAttr(default_factory=_ProgressTracker)

    def default_wait_timeout(self) -> float | None:
        return self.policy.timeout_seconds

    def default_delay(self) -> float:
        return self.policy.delay_seconds

    def timeout_error(self) -> Exception:
        return WaitTimeoutError(self.error_message)

    async def poll(self) -> Any:
        self._tracker.record_poll()
        return await self.producer()

    def waiter_current_state(self) -> PollProgress:
        return self._tracker.progress


def poll_for_value(
    producer: Callable[[], T | None],
    timeout: float = 5.0,
    poll_interval: float = 0.1,
) -> tuple[T | None, int, float]:
    """Poll until a producer returns a non-None value or timeout expires.

    Returns (value, poll_count, elapsed_seconds):
    - value: The first non-None value returned by the producer, or None if timeout occurred
    - poll_count: Number of times the producer was called
    - elapsed_seconds: Total time spent waiting
    """
    waiter = FunctionWaiter(producer=producer, policy=WaitPolicy(timeout_seconds=timeout, delay_seconds=poll_interval))
    start_time = time.monotonic()
    try:
        value = waiter.wait()
    except WaitTimeoutError:
        value = None
    return value, waiter.waiter_current_state().poll_count, time.monotonic() - start_time


def poll_until(
    condition: Callable[[], bool],
    timeout: float = 5.0,
    poll_interval: float = 0.1,
) -> bool:
    """Poll until a condition becomes true or timeout expires.

    Returns True if the condition was met, False if timeout occurred.
    """
    value, _, _ = poll_for_value(
        lambda: True if condition() else None,
        timeout,
        poll_interval,
    )
    return value is not None


def wait_until(
    condition: Callable[[], bool],
    timeout: float = 5.0,
    poll_interval: float = 0.1,
    error_message: str = _DEFAULT_ERROR_MESSAGE,
) -> None:
    """Wait for a condition to become true, polling at regular intervals.

    Raises WaitTimeoutError (a TimeoutError) if the condition is not met within the timeout period.
    """
    FunctionWaiter(
        producer=lambda: True if condition() else None,
        policy=WaitPolicy(timeout_seconds=timeout, delay_seconds=poll_interval),
        error_message=error_message,
    ).wait()


async def poll_for_value_async(
    producer: Callable[[], Awaitable[T | None]],
    timeout: float = 5.0,
    poll_interval: float = 0.1,
) -> tuple[T | None, int, float]:
    """Cooperative counterpart of poll_for_value for coroutine producers."""
    waiter = AsyncFunctionWaiter(
        producer=producer,
        policy=WaitPolicy(timeout_seconds=timeout, delay_seconds=poll_interval),
    )
    start_time = time.monotonic()
    try:
        value = await waiter.wait()
    except WaitTimeoutError:
        value = None
    return value, waiter.waiter_current_state().poll_count, time.monotonic() - start_time


async def wait_until_async(
    condition: Callable[[], Awaitable[bool]],
    timeout: float = 5.0,
    poll_interval: float = 0.1,
    error_message: str = _DEFAULT_ERROR_MESSAGE,
) -> None:
    """Cooperative counterpart of wait_until for coroutine conditions."""

    async def producer() -> bool | None:
        return True if await condition() else None

    await AsyncFunctionWaiter(
        producer=producer,
        policy=WaitPolicy(timeout_seconds=timeout, delay_seconds=poll_interval),
        error_message=error_message,
    ).wait()
