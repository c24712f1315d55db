from collections.abc import Callable
from typing import TypeVar

_F = TypeVar("_F", bound=Callable[..., object])


def pure(func: _F) -> _F:
    """Mark a function as pure (no side effects).

    Advisory only; nothing is enforced at runtime. A function marked pure does
    not read clocks, sleep, log or otherwise perform I/O, and returns the same
    output for the same inputs.

    Example usage:
        @pure
        def is_expired(start: float, now: float, budget: float) -> bool:
            return now - start > budget
    """
    return func
