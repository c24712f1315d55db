"""Poll loops shared by every waiter.

The loops assume the caller has already resolved the timeout and delay and has
taken ownership of the waiter; see WaiterInterface for the public entry points.

Polls are strictly sequential. A poll that raises ends the wait immediately and
its exception propagates unchanged. A bounded wait checks the elapsed monotonic
time before every poll, so a poll that is already running when the deadline
passes is allowed to finish, and its result wins over the timeout.
"""

import asyncio
import time
from typing import TYPE_CHECKING
from typing import TypeVar

from loguru import logger

from imbue.imbue_common.logging import format_value_for_log
from imbue.imbue_common.logging import log_span
from imbue.imbue_common.pure import pure

if TYPE_CHECKING:
    from imbue.waiter.interfaces import AsyncWaiterInterface
    from imbue.waiter.interfaces import BaseWaiterInterface
    from imbue.waiter.interfaces import WaiterInterface

T = TypeVar("T")


@pure
def is_within_budget(start: float, now: float, duration: float) -> bool:
    """Return True if another poll may start at monotonic time `now`.

    The boundary is inclusive. A zero budget never allows a poll, even when the
    clock has not advanced since `start`.
    """
    return duration > 0 and now - start <= duration


def _on_pending(waiter: "BaseWaiterInterface", poll_count: int) -> None:
    logger.trace("{} still pending after {} poll(s)", type(waiter).__name__, poll_count)


def _on_success(waiter: "BaseWaiterInterface", poll_count: int, result: object) -> None:
    logger.trace(
        "{} finished after {} poll(s) with {}",
        type(waiter).__name__,
        poll_count,
        format_value_for_log(result),
    )


def _on_timeout(waiter: "BaseWaiterInterface", poll_count: int, duration: float) -> Exception:
    logger.debug("Timed out waiting {}s for {} after {} poll(s)", duration, type(waiter).__name__, poll_count)
    return waiter.timeout_error()


def run_bounded(waiter: "WaiterInterface[T]", duration: float, delay: float) -> T:
    """Poll until the waiter finishes, raising waiter.timeout_error() once `duration` has elapsed."""
    with log_span("Waiting up to {}s for {} (delay {}s)", duration, type(waiter).__name__, delay):
        start = time.monotonic()
        poll_count = 0
        while is_within_budget(start, time.monotonic(), duration):
            poll_count += 1
            result = waiter.poll()
            if result is not None:
                _on_success(waiter, poll_count, result)
                return result
            _on_pending(waiter, poll_count)
            time.sleep(delay)
        raise _on_timeout(waiter, poll_count, duration)


def run_unbounded(waiter: "WaiterInterface[T]", delay: float) -> T:
    """Poll until the waiter finishes, however long that takes."""
    with log_span("Waiting forever for {} (delay {}s)", type(waiter).__name__, delay):
        poll_count = 0
        while True:
            poll_count += 1
            result = waiter.poll()
            if result is not None:
                _on_success(waiter, poll_count, result)
                return result
            _on_pending(waiter, poll_count)
            time.sleep(delay)


async def run_bounded_async(waiter: "AsyncWaiterInterface[T]", duration: float, delay: float) -> T:
    """Cooperative counterpart of run_bounded: polls and delays yield to the event loop."""
    with log_span("Waiting up to {}s for {} (delay {}s)", duration, type(waiter).__name__, delay):
        start = time.monotonic()
        poll_count = 0
        while is_within_budget(start, time.monotonic(), duration):
            poll_count += 1
            result = await waiter.poll()
            if result is not None:
                _on_success(waiter, poll_count, result)
                return result
            _on_pending(waiter, poll_count)
            await asyncio.sleep(delay)
        raise _on_timeout(waiter, poll_count, duration)


async def run_unbounded_async(waiter: "AsyncWaiterInterface[T]", delay: float) -> T:
    """Cooperative counterpart of run_unbounded."""
    with log_span("Waiting forever for {} (delay {}s)", type(waiter).__name__, delay):
        poll_count = 0
        while True:
            poll_count += 1
            result = await waiter.poll()
            if result is not None:
                _on_success(waiter, poll_count, result)
                return result
            _on_pending(waiter, poll_count)
            await asyncio.sleep(delay)
