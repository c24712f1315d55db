from datetime import timedelta
from typing import Self

from pydantic import Field
from pydantic import field_validator

from imbue.imbue_common.frozen_model import FrozenModel
from imbue.imbue_common.primitives import NonNegativeFloat
from imbue.imbue_common.primitives import NonNegativeInt
from imbue.waiter.duration import coerce_to_seconds

DEFAULT_DELAY_SECONDS: float = 1.0


class WaitPolicy(FrozenModel):
    """Default timeout and delay for a waiter, held as data.

    Both fields accept seconds as numbers, timedeltas, or strings like '500ms' or '1m30s'.
    """

    timeout_seconds: NonNegativeFloat | None = Field(
        default=None,
        description="How long a default wait may take before timing out; None waits forever",
    )
    delay_seconds: NonNegativeFloat = Field(
        default=NonNegativeFloat(DEFAULT_DELAY_SECONDS),
        description="Pause between two consecutive polls",
    )

    @field_validator("timeout_seconds", mode="before")
    @classmethod
    def _coerce_timeout(cls, value: float | str | timedelta | None) -> float | None:
        if value is None:
            return None
        return coerce_to_seconds(value)

    @field_validator("delay_seconds", mode="before")
    @classmethod
    def _coerce_delay(cls, value: float | str | timedelta) -> float:
        return coerce_to_seconds(value)

    def merge_with(self, override: Self) -> Self:
        """Merge this policy with an override policy.

        Fields explicitly set on the override win; everything else is kept from self.
        """
        updates = {name: getattr(override, name) for name in override.model_fields_set}
        return self.model_copy(update=updates)


class PollProgress(FrozenModel):
    """Observable progress of a waiter, valid as of its most recent poll."""

    poll_count: NonNegativeInt = Field(
        default=NonNegativeInt(0),
        description="How many times the waiter has been polled",
    )
    elapsed_seconds: NonNegativeFloat = Field(
        default=NonNegativeFloat(0.0),
        description="Monotonic time from the first poll to the most recent poll",
    )
