from pydantic import BaseModel
from pydantic import ConfigDict


class FrozenModel(BaseModel):
    """Base class for immutable pydantic models (configuration and snapshots).

    Instances are hashable value objects: assignment after construction raises,
    and unknown fields are rejected.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=False,
    )
