"""Interface definitions for waitable actions.

A waiter wraps one action that finishes eventually (a resource reaching a
desired state, a remote job completing). Implementations only say how to
probe the action once; the wait entry points defined here run the poll loop.

Every wait entry point consumes the waiter: once a wait has started, the same
instance cannot be waited on again, which guarantees poll() is never called
after it has produced a result or raised.
"""

from abc import ABC
from abc import abstractmethod
from typing import Generic
from typing import TypeVar

from pydantic import PrivateAttr

from imbue.imbue_common.mutable_model import MutableModel
from imbue.waiter.driver import run_bounded
from imbue.waiter.driver import run_bounded_async
from imbue.waiter.driver import run_unbounded
from imbue.waiter.driver import run_unbounded_async
from imbue.waiter.duration import validate_seconds
from imbue.waiter.errors import WaitTimeoutError
from imbue.waiter.errors import WaiterConsumedError

T = TypeVar("T")
S = TypeVar("S")


class BaseWaiterInterface(MutableModel, ABC):
    """Configuration shared by blocking and cooperative waiters."""

    model_config = {"arbitrary_types_allowed": True}

    _is_consumed: bool = PrivateAttr(default=False)
    _wait_timeout_seconds: float | None = PrivateAttr(default=None)

    @abstractmethod
    def default_wait_timeout(self) -> float | None:
        """Timeout in seconds used by wait(). None means wait forever by default."""
        ...

    @abstractmethod
    def default_delay(self) -> float:
        """Delay in seconds between two polls when no explicit delay is given."""
        ...

    def timeout_error(self) -> Exception:
        """Error to raise when a bounded wait runs out of time.

        Override to raise a domain-specific error instead.
        """
        name = type(self).__name__
        if self._wait_timeout_seconds is None:
            return WaitTimeoutError(f"Timed out waiting for {name}")
        return WaitTimeoutError(f"Timed out waiting for {name} after {self._wait_timeout_seconds}s")

    @property
    def is_consumed(self) -> bool:
        """Whether this waiter has already been handed to a wait."""
        return self._is_consumed

    def _resolve_default_timeout(self) -> float | None:
        duration = self.default_wait_timeout()
        return None if duration is None else validate_seconds(duration)

    def _resolve_default_delay(self) -> float:
        return validate_seconds(self.default_delay())

    def _consume(self, timeout_seconds: float | None = None) -> None:
        if self._is_consumed:
            raise WaiterConsumedError(type(self).__name__)
        self._is_consumed = True
        self._wait_timeout_seconds = timeout_seconds


class WaiterInterface(BaseWaiterInterface, Generic[T]):
    """A waitable action whose poll() blocks the calling thread.

    poll() returns None while the action is still running, returns the final
    value once it is finished, and raises to report failure. Both a value and
    an exception are terminal.
    """

    @abstractmethod
    def poll(self) -> T | None:
        """Update the current state of the action.

        Returns the result if the action is finished, None if it is not.
        Must not be called again after it returned a result or raised.
        """
        ...

    def wait(self) -> T:
        """Wait using default_wait_timeout(), forever if it is None."""
        duration = self._resolve_default_timeout()
        delay = self._resolve_default_delay()
        self._consume(duration)
        if duration is None:
            return run_unbounded(self, delay)
        return run_bounded(self, duration, delay)

    def wait_for(self, duration: float) -> T:
        """Wait at most `duration` seconds, polling every default_delay() seconds."""
        duration = validate_seconds(duration)
        delay = self._resolve_default_delay()
        self._consume(duration)
        return run_bounded(self, duration, delay)

    def wait_for_with_delay(self, duration: float, delay: float) -> T:
        """Wait at most `duration` seconds, polling every `delay` seconds."""
        duration = validate_seconds(duration)
        delay = validate_seconds(delay)
        self._consume(duration)
        return run_bounded(self, duration, delay)

    def wait_forever(self) -> T:
        """Wait until the action finishes, polling every default_delay() seconds."""
        delay = self._resolve_default_delay()
        self._consume()
        return run_unbounded(self, delay)

    def wait_forever_with_delay(self, delay: float) -> T:
        """Wait until the action finishes, polling every `delay` seconds."""
        delay = validate_seconds(delay)
        self._consume()
        return run_unbounded(self, delay)


class AsyncWaiterInterface(BaseWaiterInterface, Generic[T]):
    """A waitable action whose poll() is a coroutine.

    Same contract as WaiterInterface; polls and delays yield to the event loop
    instead of blocking the thread.
    """

    @abstractmethod
    async def poll(self) -> T | None:
        """Update the current state of the action.

        Returns the result if the action is finished, None if it is not.
        Must not be called again after it returned a result or raised.
        """
        ...

    async def wait(self) -> T:
        """Wait using default_wait_timeout(), forever if it is None."""
        duration = self._resolve_default_timeout()
        delay = self._resolve_default_delay()
        self._consume(duration)
        if duration is None:
            return await run_unbounded_async(self, delay)
        return await run_bounded_async(self, duration, delay)

    async def wait_for(self, duration: float) -> T:
        """Wait at most `duration` seconds, polling every default_delay() seconds."""
        duration = validate_seconds(duration)
        delay = self._resolve_default_delay()
        self._consume(duration)
        return await run_bounded_async(self, duration, delay)

    async def wait_for_with_delay(self, duration: float, delay: float) -> T:
        """Wait at most `duration` seconds, polling every `delay` seconds."""
        duration = validate_seconds(duration)
        delay = validate_seconds(delay)
        self._consume(duration)
        return await run_bounded_async(self, duration, delay)

    async def wait_forever(self) -> T:
        """Wait until the action finishes, polling every default_delay() seconds."""
        delay = self._resolve_default_delay()
        self._consume()
        return await run_unbounded_async(self, delay)

    async def wait_forever_with_delay(self, delay: float) -> T:
        """Wait until the action finishes, polling every `delay` seconds."""
        delay = validate_seconds(delay)
        self._consume()
        return await run_unbounded_async(self, delay)


class WaiterCurrentStateInterface(ABC, Generic[S]):
    """Read access to the last observed state of the resource being waited on.

    S is the type of that state and need not match the waiter's result type.
    Reading it never affects the wait.
    """

    @abstractmethod
    def waiter_current_state(self) -> S:
        """Current representation of the resource, valid as of the last poll() call."""
        ...
