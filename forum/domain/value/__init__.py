"""Domain value objects for forum threads."""

from forum.domain.value.identifiers import ReplyId, TopicId, UserId
from forum.domain.value.types import (
    ApplyOutcome,
    OrphanPolicy,
    ReactionAction,
    ReconcilerState,
    UserRole,
)

__all__ = [
    # Identifiers
    "ReplyId",
    "TopicId",
    "UserId",
    # Types
    "ApplyOutcome",
    "OrphanPolicy",
    "ReactionAction",
    "ReconcilerState",
    "UserRole",
]
