from pydantic import BaseModel
from pydantic import ConfigDict


class MutableModel(BaseModel):
    """Base class for pydantic models whose fields change over their lifetime.

    Stateful objects (anything that is probed, polled or advanced in place) derive from this.
    """

    model_config = ConfigDict(
        frozen=False,
        extra="forbid",
        arbitrary_types_allowed=False,
    )
