"""In-memory reply repository for testing."""

from typing import Optional

from sqlalchemy.exc import IntegrityError

from forum.adapter.realtime.inmemory import InMemoryPushChannel
from forum.domain.model.event import ReplyCreatedEvent, ReplyDeletedEvent
from forum.domain.model.reply import Reaction, ReplyRecord
from forum.domain.repository.reply import ReplyRepository
from forum.domain.value import ReplyId, TopicId, UserId


class InMemoryReplyRepository(ReplyRepository):
    """In-memory implementation of ReplyRepository for testing.

    When given a push channel it publishes created/deleted events for every
    write, the way the database triggers do, so local writes come back as
    echoes.
    """

    def __init__(self, push_channel: Optional[InMemoryPushChannel] = None) -> None:
        self.push_channel = push_channel
        self._replies: dict[ReplyId, ReplyRecord] = {}
        # Failure injection for tests: the next read/write raises this
        self.fail_next_fetch: Optional[Exception] = None
        self.fail_next_write: Optional[Exception] = None

    def seed(self, *records: ReplyRecord) -> None:
        """Store records without publishing events."""
        for record in records:
            self._replies[record.id] = record

    async def find_by_topic(self, topic_id: TopicId) -> list[ReplyRecord]:
        """Find all replies of a topic ordered by creation time."""
        if self.fail_next_fetch is not None:
            error, self.fail_next_fetch = self.fail_next_fetch, None
            raise error

        replies = [r for r in self._replies.values() if r.topic_id == topic_id]
        replies.sort(key=lambda r: r.created_at)
        return replies

    async def find_by_id(self, reply_id: ReplyId) -> Optional[ReplyRecord]:
        """Find a reply by ID."""
        return self._replies.get(reply_id)

    async def save(self, record: ReplyRecord) -> ReplyRecord:
        """Store a new reply and publish its creation."""
        self._raise_injected_write_failure()
        self._replies[record.id] = record
        if self.push_channel is not None:
            self.push_channel.publish(
                ReplyCreatedEvent(topic_id=record.topic_id, record=record)
            )
        return record

    async def delete(self, reply_id: ReplyId) -> bool:
        """Delete a reply and its descendants, publishing each deletion."""
        self._raise_injected_write_failure()
        reply = self._replies.get(reply_id)
        if reply is None:
            return False

        doomed = [reply_id]
        index = 0
        while index < len(doomed):
            parent_id = doomed[index]
            doomed.extend(
                r.id for r in self._replies.values() if r.parent_id == parent_id
            )
            index += 1

        for doomed_id in doomed:
            removed = self._replies.pop(doomed_id)
            if self.push_channel is not None:
                self.push_channel.publish(
                    ReplyDeletedEvent(topic_id=removed.topic_id, id=removed.id)
                )
        return True

    async def find_reaction(
        self, reply_id: ReplyId, user_id: UserId, emoji: str
    ) -> bool:
        """Check whether a user reacted to a reply with an emoji."""
        reply = self._replies.get(reply_id)
        return reply is not None and reply.has_reaction(emoji, user_id)

    async def add_reaction(self, reply_id: ReplyId, user_id: UserId, emoji: str) -> None:
        """Record a reaction.

        Raises:
            IntegrityError: If the reaction already exists or the reply is gone
        """
        self._raise_injected_write_failure()
        reply = self._replies.get(reply_id)
        if reply is None:
            raise IntegrityError("Reply does not exist", None, Exception())
        if reply.has_reaction(emoji, user_id):
            raise IntegrityError("Duplicate reaction", None, Exception())

        reactions = reply.reactions + (Reaction(emoji=emoji, user_id=user_id),)
        self._replies[reply_id] = reply.model_copy(update={"reactions": reactions})

    async def remove_reaction(
        self, reply_id: ReplyId, user_id: UserId, emoji: str
    ) -> bool:
        """Remove a reaction."""
        self._raise_injected_write_failure()
        reply = self._replies.get(reply_id)
        if reply is None or not reply.has_reaction(emoji, user_id):
            return False

        reactions = tuple(
            r
            for r in reply.reactions
            if not (r.emoji == emoji and r.user_id == user_id)
        )
        self._replies[reply_id] = reply.model_copy(update={"reactions": reactions})
        return True

    def _raise_injected_write_failure(self) -> None:
        if self.fail_next_write is not None:
            error, self.fail_next_write = self.fail_next_write, None
            raise error
