"""Domain model entities for forum threads."""

from forum.domain.model.event import (
    PushEvent,
    ReactionToggledEvent,
    ReplyCreatedEvent,
    ReplyDeletedEvent,
    ReplyEvent,
    parse_push_event,
)
from forum.domain.model.forest import Forest, ReplyNode
from forum.domain.model.reaction import ReactionGroup
from forum.domain.model.reply import AuthorSnapshot, Reaction, ReplyRecord

__all__ = [
    "AuthorSnapshot",
    "Forest",
    "PushEvent",
    "Reaction",
    "ReactionGroup",
    "ReactionToggledEvent",
    "ReplyCreatedEvent",
    "ReplyDeletedEvent",
    "ReplyEvent",
    "ReplyNode",
    "ReplyRecord",
    "parse_push_event",
]
