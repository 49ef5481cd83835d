"""Unit tests for ReplyService."""

from typing import Optional
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from forum.adapter.realtime import InMemoryPushChannel
from forum.domain.error import WriteFailure
from forum.domain.model import (
    Reaction,
    ReplyCreatedEvent,
    ReplyDeletedEvent,
    ReplyRecord,
)
from forum.domain.service import ReplyService
from forum.domain.value import ReactionAction, ReplyId, TopicId, UserId, UserRole
from forum.persistence.repository.inmemory import InMemoryReplyRepository
from tests.conftest import make_author, make_record, reply_id_of
from tests.harness import create_env_fixture

# Unit test fixture - everything in memory
unit_env = create_env_fixture()


class ReplyVanishingRepository(InMemoryReplyRepository):
    """Deletes each reply right after handing it out."""

    async def find_by_id(self, reply_id: ReplyId) -> Optional[ReplyRecord]:
        record = await super().find_by_id(reply_id)
        if record is not None:
            await self.delete(reply_id)
        return record


class RacingReactionRepository(InMemoryReplyRepository):
    """Misses an existing reaction on the first check, as if inserted concurrently."""

    def __init__(self) -> None:
        super().__init__()
        self._checks = 0

    async def find_reaction(
        self, reply_id: ReplyId, user_id: UserId, emoji: str
    ) -> bool:
        self._checks += 1
        if self._checks == 1:
            return False
        return await super().find_reaction(reply_id, user_id, emoji)


class TestCreateReply:
    """Tests for create_reply method."""

    @pytest.mark.asyncio
    async def test_create_top_level_reply(self, unit_env):
        """Test creating a top-level reply."""
        # Arrange
        reply_service = await unit_env.get(ReplyService)
        repo = await unit_env.get(InMemoryReplyRepository)
        channel = await unit_env.get(InMemoryPushChannel)
        topic_id = TopicId(uuid4())
        author = make_author()

        # Act
        record = await reply_service.create_reply(
            topic_id=topic_id, author=author, content="<p>First!</p>"
        )

        # Assert
        assert record.topic_id == topic_id
        assert record.parent_id is None
        assert record.author == author
        assert record.created_at.tzinfo is not None
        assert await repo.find_by_id(record.id) == record
        assert channel.published == [ReplyCreatedEvent(topic_id=topic_id, record=record)]

    @pytest.mark.asyncio
    async def test_create_nested_reply(self, unit_env):
        """Test replying to an existing reply."""
        reply_service = await unit_env.get(ReplyService)
        repo = await unit_env.get(InMemoryReplyRepository)
        topic_id = TopicId(uuid4())
        repo.seed(make_record(topic_id, reply_id=1))

        record = await reply_service.create_reply(
            topic_id=topic_id,
            author=make_author(),
            content="<p>Agreed</p>",
            parent_id=reply_id_of(1),
        )

        assert record.parent_id == reply_id_of(1)

    @pytest.mark.asyncio
    async def test_missing_parent_is_rejected(self, unit_env):
        """Test replying to a reply that does not exist."""
        reply_service = await unit_env.get(ReplyService)
        channel = await unit_env.get(InMemoryPushChannel)

        with pytest.raises(WriteFailure, match="Parent reply not found"):
            await reply_service.create_reply(
                topic_id=TopicId(uuid4()),
                author=make_author(),
                content="<p>Hi</p>",
                parent_id=reply_id_of(404),
            )
        assert channel.published == []

    @pytest.mark.asyncio
    async def test_parent_from_other_topic_is_rejected(self, unit_env):
        """Test replying across topics."""
        reply_service = await unit_env.get(ReplyService)
        repo = await unit_env.get(InMemoryReplyRepository)
        repo.seed(make_record(TopicId(uuid4()), reply_id=1))

        with pytest.raises(WriteFailure, match="does not belong"):
            await reply_service.create_reply(
                topic_id=TopicId(uuid4()),
                author=make_author(),
                content="<p>Hi</p>",
                parent_id=reply_id_of(1),
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   ", "<p></p>"])
    async def test_empty_content_is_rejected(self, unit_env, content):
        """Test that empty editor documents are not stored."""
        reply_service = await unit_env.get(ReplyService)

        with pytest.raises(WriteFailure, match="empty"):
            await reply_service.create_reply(
                topic_id=TopicId(uuid4()), author=make_author(), content=content
            )

    @pytest.mark.asyncio
    async def test_banned_author_is_rejected(self, unit_env):
        """Test that banned users cannot reply."""
        reply_service = await unit_env.get(ReplyService)

        with pytest.raises(WriteFailure, match="Banned"):
            await reply_service.create_reply(
                topic_id=TopicId(uuid4()),
                author=make_author(role=UserRole.BANNED),
                content="<p>Hi</p>",
            )

    @pytest.mark.asyncio
    async def test_store_failure_becomes_write_failure(self, unit_env):
        """Test that store errors surface as WriteFailure."""
        reply_service = await unit_env.get(ReplyService)
        repo = await unit_env.get(InMemoryReplyRepository)
        repo.fail_next_write = OperationalError("INSERT", {}, Exception("gone"))

        with pytest.raises(WriteFailure) as exc_info:
            await reply_service.create_reply(
                topic_id=TopicId(uuid4()), author=make_author(), content="<p>Hi</p>"
            )

        assert exc_info.value.operation == "create_reply"


class TestDeleteReply:
    """Tests for delete_reply method."""

    @pytest.mark.asyncio
    async def test_delete_returns_deleted_record(self, unit_env):
        """Test deleting a reply with a child."""
        # Arrange
        reply_service = await unit_env.get(ReplyService)
        repo = await unit_env.get(InMemoryReplyRepository)
        channel = await unit_env.get(InMemoryPushChannel)
        topic_id = TopicId(uuid4())
        parent = make_record(topic_id, reply_id=1)
        repo.seed(parent, make_record(topic_id, reply_id=2, parent_id=1, minutes=1))

        # Act
        deleted = await reply_service.delete_reply(reply_id_of(1))

        # Assert
        assert deleted == parent
        assert await repo.find_by_topic(topic_id) == []
        assert channel.published == [
            ReplyDeletedEvent(topic_id=topic_id, id=reply_id_of(1)),
            ReplyDeletedEvent(topic_id=topic_id, id=reply_id_of(2)),
        ]

    @pytest.mark.asyncio
    async def test_delete_missing_reply_is_rejected(self, unit_env):
        """Test deleting a reply that does not exist."""
        reply_service = await unit_env.get(ReplyService)

        with pytest.raises(WriteFailure, match="Reply not found"):
            await reply_service.delete_reply(reply_id_of(9))


class TestToggleReaction:
    """Tests for toggle_reaction method."""

    @pytest.mark.asyncio
    async def test_toggle_adds_then_removes(self, unit_env):
        """Test that toggling twice restores the original state."""
        reply_service = await unit_env.get(ReplyService)
        repo = await unit_env.get(InMemoryReplyRepository)
        topic_id = TopicId(uuid4())
        user_id = UserId(uuid4())
        repo.seed(make_record(topic_id, reply_id=1))

        first = await reply_service.toggle_reaction(reply_id_of(1), "👍", user_id)
        stored = await repo.find_by_id(reply_id_of(1))
        second = await reply_service.toggle_reaction(reply_id_of(1), "👍", user_id)

        assert first is ReactionAction.ADDED
        assert stored.has_reaction("👍", user_id)
        assert second is ReactionAction.REMOVED
        assert (await repo.find_by_id(reply_id_of(1))).reactions == ()

    @pytest.mark.asyncio
    async def test_reaction_on_missing_reply_is_rejected(self, unit_env):
        """Test reacting to a reply that does not exist."""
        reply_service = await unit_env.get(ReplyService)

        with pytest.raises(WriteFailure, match="Reply not found"):
            await reply_service.toggle_reaction(reply_id_of(9), "👍", UserId(uuid4()))

    @pytest.mark.asyncio
    async def test_reply_deleted_before_add_is_rejected(self):
        """Test a reply that disappears between lookup and insert."""
        repo = ReplyVanishingRepository()
        reply_service = ReplyService(reply_repository=repo)
        repo.seed(make_record(TopicId(uuid4()), reply_id=1))

        with pytest.raises(WriteFailure, match="Reply not found"):
            await reply_service.toggle_reaction(reply_id_of(1), "👍", UserId(uuid4()))
        assert await repo.find_by_id(reply_id_of(1)) is None

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_add_counts_as_added(self):
        """Test losing the insert race to an identical reaction."""
        user_id = UserId(uuid4())
        repo = RacingReactionRepository()
        reply_service = ReplyService(reply_repository=repo)
        repo.seed(
            make_record(
                TopicId(uuid4()),
                reply_id=1,
                reactions=(Reaction(emoji="👍", user_id=user_id),),
            )
        )

        action = await reply_service.toggle_reaction(reply_id_of(1), "👍", user_id)

        assert action is ReactionAction.ADDED
        assert (await repo.find_by_id(reply_id_of(1))).has_reaction("👍", user_id)


class TestFetchReplies:
    """Tests for fetch_replies method."""

    @pytest.mark.asyncio
    async def test_fetch_returns_topic_replies_in_order(self):
        """Test fetching flat records of one topic."""
        repo = InMemoryReplyRepository()
        reply_service = ReplyService(reply_repository=repo)
        topic_id = TopicId(uuid4())
        repo.seed(
            make_record(topic_id, reply_id=2, minutes=5),
            make_record(topic_id, reply_id=1, minutes=1),
            make_record(TopicId(uuid4()), reply_id=3),
        )

        records = await reply_service.fetch_replies(topic_id)

        assert [r.id for r in records] == [reply_id_of(1), reply_id_of(2)]
