"""Base class for value objects."""

from pydantic import BaseModel, ConfigDict


class ValueObject(BaseModel):
    """Base class for value objects (author snapshots, reactions, tallies).

    Value objects are immutable and compared by value, not identity.
    """

    model_config = ConfigDict(frozen=True)
