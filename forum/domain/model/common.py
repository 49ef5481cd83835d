"""Base model for forum domain entities."""

from pydantic import BaseModel, ConfigDict


class DomainModel(BaseModel):
    """Base class for entities, forests and events.

    Instances are never changed in place: updates go through
    `model_copy(update=...)`, so every snapshot handed out stays valid.
    """

    model_config = ConfigDict(frozen=True)
