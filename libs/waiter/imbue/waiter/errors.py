class WaiterError(Exception):
    """Base exception for all errors raised by the waiter library itself.

    Errors raised by a waiter's own poll() are never wrapped in this type.
    """


class WaitTimeoutError(WaiterError, TimeoutError):
    """Raised when a bounded wait reaches its deadline without a terminal poll outcome."""


class WaiterConsumedError(WaiterError):
    """Raised when a wait is started on a waiter that was already handed to a wait."""

    def __init__(self, waiter_name: str) -> None:
        self.waiter_name = waiter_name
        super().__init__(
            f"{waiter_name} has already been used for a wait; construct a fresh waiter to wait again"
        )


class InvalidDurationError(WaiterError, ValueError):
    """Raised when a duration cannot be parsed or is negative."""
