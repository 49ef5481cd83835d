"""Reply events.

Events reach the reconciler from two sources: completions of local writes
and the push channel. Both use the same shapes, discriminated by `kind`:

    {"kind": "created", "topic_id": "...", "record": {...}}
    {"kind": "deleted", "topic_id": "...", "id": "..."}

The created event carries the full record because the receiver may never
have seen the reply before.
"""

import json
from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter

from forum.domain.model.common import DomainModel
from forum.domain.model.reply import ReplyRecord
from forum.domain.value import ReactionAction, ReplyId, TopicId, UserId


class ReplyCreatedEvent(DomainModel):
    """A reply was created."""

    kind: Literal["created"] = "created"
    topic_id: TopicId
    record: ReplyRecord


class ReplyDeletedEvent(DomainModel):
    """A reply (and implicitly its subtree) was deleted."""

    kind: Literal["deleted"] = "deleted"
    topic_id: TopicId
    id: ReplyId


class ReactionToggledEvent(DomainModel):
    """A user's reaction was added to or removed from a reply."""

    kind: Literal["reaction"] = "reaction"
    topic_id: TopicId
    reply_id: ReplyId
    emoji: str = Field(min_length=1, max_length=32)
    user_id: UserId
    action: ReactionAction


PushEvent = Annotated[
    Union[ReplyCreatedEvent, ReplyDeletedEvent],
    Field(discriminator="kind"),
]

ReplyEvent = Annotated[
    Union[ReplyCreatedEvent, ReplyDeletedEvent, ReactionToggledEvent],
    Field(discriminator="kind"),
]

_push_event_adapter: TypeAdapter[PushEvent] = TypeAdapter(PushEvent)


def parse_push_event(
    payload: str | bytes | dict[str, Any],
) -> ReplyCreatedEvent | ReplyDeletedEvent:
    """Validate a push-channel payload into an event.

    Args:
        payload: JSON text or already-decoded mapping

    Returns:
        The created or deleted event

    Raises:
        pydantic.ValidationError: If the payload does not match either kind
    """
    if isinstance(payload, (str, bytes)):
        payload = json.loads(payload)
    return _push_event_adapter.validate_python(payload)
