"""Reply record entity.

A reply is one message in a topic's discussion. Replies nest under other
replies through `parent_id`; top-level replies have no parent.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field, field_validator

from forum.domain.model.common import DomainModel
from forum.domain.value import ReplyId, TopicId, UserId, UserRole
from forum.domain.value.common import ValueObject


class AuthorSnapshot(ValueObject):
    """Denormalized copy of the author's profile.

    Taken when the record was read from the store; it is never refreshed,
    so a renamed user keeps the old name on replies already loaded.
    """

    id: UserId
    username: str = Field(min_length=1, max_length=255)
    avatar_url: Optional[str] = None
    role: UserRole = UserRole.USER


class Reaction(ValueObject):
    """One user's emoji reaction to a reply."""

    emoji: str = Field(min_length=1, max_length=32)
    user_id: UserId


class ReplyRecord(DomainModel):
    """Reply as delivered by the record store or the push channel.

    Business rules:
    - `content` is an opaque rich-text payload, never interpreted here
    - A user holds at most one reaction per emoji (duplicates are collapsed)
    """

    id: ReplyId
    topic_id: TopicId
    parent_id: Optional[ReplyId] = None
    content: str
    author: AuthorSnapshot
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    reactions: tuple[Reaction, ...] = ()

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are taken as UTC so all records stay comparable."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("reactions")
    @classmethod
    def collapse_duplicate_reactions(
        cls, v: tuple[Reaction, ...]
    ) -> tuple[Reaction, ...]:
        """Keep the first record of every (emoji, user) pair."""
        seen: set[tuple[str, UserId]] = set()
        unique = []
        for reaction in v:
            key = (reaction.emoji, reaction.user_id)
            if key in seen:
                continue
            seen.add(key)
            unique.append(reaction)
        return tuple(unique)

    def has_reaction(self, emoji: str, user_id: UserId) -> bool:
        """Check whether `user_id` reacted with `emoji`."""
        return any(r.emoji == emoji and r.user_id == user_id for r in self.reactions)

    def to_record(self) -> "ReplyRecord":
        """Return the plain record (drops tree-only fields on subclasses)."""
        return ReplyRecord(
            id=self.id,
            topic_id=self.topic_id,
            parent_id=self.parent_id,
            content=self.content,
            author=self.author,
            created_at=self.created_at,
            reactions=self.reactions,
        )
