import math
import re
from datetime import timedelta
from typing import Final

from imbue.imbue_common.pure import pure
from imbue.waiter.errors import InvalidDurationError

_UNIT_SECONDS: Final[dict[str, float]] = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}

# "ms" must come before "m" so that "500ms" is not read as 500 minutes followed by junk
_DURATION_PART: Final[str] = r"(\d+(?:\.\d+)?)\s*(ms|d|h|m|s)"

_DURATION_PATTERN = re.compile(rf"(?:\s*{_DURATION_PART}\s*)+", re.IGNORECASE)

_DURATION_PART_PATTERN = re.compile(_DURATION_PART, re.IGNORECASE)


@pure
def parse_duration_to_seconds(duration_str: str) -> float:
    """Parse a human-readable duration string into seconds.

    Supports plain numbers (treated as seconds) and combinations of
    days (d), hours (h), minutes (m), seconds (s) and milliseconds (ms).
    Examples: '0', '2.5', '500ms', '90s', '1h30m', '1d12h'.
    Zero is accepted, since a zero delay or timeout is a meaningful choice.
    """
    stripped = duration_str.strip()
    if not stripped:
        raise InvalidDurationError(f"Invalid duration: '{duration_str}' (empty string)")

    # Plain number is treated as seconds
    try:
        plain_seconds = float(stripped)
    except ValueError:
        pass
    else:
        return validate_seconds(plain_seconds)

    if _DURATION_PATTERN.fullmatch(stripped) is None:
        raise InvalidDurationError(
            f"Invalid duration: '{duration_str}'. Expected format like '5', '500ms', '90s', '30m', '1h30m', '1d12h'."
        )

    return validate_seconds(
        sum(float(amount) * _UNIT_SECONDS[unit.lower()] for amount, unit in _DURATION_PART_PATTERN.findall(stripped))
    )


@pure
def validate_seconds(seconds: float) -> float:
    """Return seconds as a float, rejecting booleans, negative, NaN and infinite values."""
    if isinstance(seconds, bool):
        raise InvalidDurationError(f"Invalid duration: {seconds!r} is not a number of seconds")
    if math.isnan(seconds) or math.isinf(seconds):
        raise InvalidDurationError(f"Invalid duration: {seconds} is not a finite number of seconds")
    if seconds < 0:
        raise InvalidDurationError(f"Invalid duration: {seconds} seconds. Duration must not be negative.")
    return float(seconds)


@pure
def coerce_to_seconds(value: float | int | str | timedelta) -> float:
    """Convert any accepted duration input into a non-negative number of seconds."""
    if isinstance(value, timedelta):
        return validate_seconds(value.total_seconds())
    if isinstance(value, str):
        return parse_duration_to_seconds(value)
    return validate_seconds(value)
