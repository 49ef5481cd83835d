"""Integration tests for PostgresReplyRepository.

These tests verify record mapping (author snapshots, reactions, UTC
timestamps) and subtree deletion against a real database.
"""

from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from forum.domain.repository import ReplyRepository
from forum.domain.value import TopicId, UserId, UserRole
from tests.conftest import make_author, make_record
from tests.harness import create_env_fixture, create_schema_fixture, requires_database

pytestmark = requires_database

# Integration test fixtures - real persistence
schema = create_schema_fixture()
integration_env = create_env_fixture(unmock={"persistence"})


class TestReplyRepositoryIntegration:
    """Integration tests for PostgresReplyRepository."""

    @pytest.mark.asyncio
    async def test_save_and_find_by_topic(self, schema, integration_env):
        """Saved replies come back with author snapshot, in creation order."""
        # Arrange
        reply_repo = await integration_env.get(ReplyRepository)
        topic_id = TopicId(uuid4())
        author = make_author(username="carol", role=UserRole.MODERATOR)
        parent = make_record(topic_id, minutes=0, author=author)
        child = make_record(topic_id, parent_id=parent.id, minutes=1, author=author)

        # Act
        await reply_repo.save(parent)
        await reply_repo.save(child)
        records = await reply_repo.find_by_topic(topic_id)

        # Assert
        assert [r.id for r in records] == [parent.id, child.id]
        assert records[0].author == author
        assert records[0].created_at == parent.created_at
        assert records[0].created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_find_by_id_missing(self, schema, integration_env):
        """Unknown ids return None."""
        reply_repo = await integration_env.get(ReplyRepository)

        assert await reply_repo.find_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_reactions_are_loaded_with_replies(self, schema, integration_env):
        """Reactions ride along on fetched records."""
        reply_repo = await integration_env.get(ReplyRepository)
        topic_id = TopicId(uuid4())
        user_id = UserId(uuid4())
        record = await reply_repo.save(make_record(topic_id))

        await reply_repo.add_reaction(record.id, user_id, "👍")
        with pytest.raises(IntegrityError):
            await reply_repo.add_reaction(record.id, user_id, "👍")

        assert await reply_repo.find_reaction(record.id, user_id, "👍") is True
        [fetched] = await reply_repo.find_by_topic(topic_id)
        assert fetched.has_reaction("👍", user_id)

        assert await reply_repo.remove_reaction(record.id, user_id, "👍") is True
        assert (await reply_repo.find_by_id(record.id)).reactions == ()

    @pytest.mark.asyncio
    async def test_delete_removes_subtree(self, schema, integration_env):
        """Deleting a reply cascades to its replies."""
        reply_repo = await integration_env.get(ReplyRepository)
        topic_id = TopicId(uuid4())
        root = await reply_repo.save(make_record(topic_id, minutes=0))
        child = await reply_repo.save(make_record(topic_id, parent_id=root.id, minutes=1))
        await reply_repo.save(make_record(topic_id, parent_id=child.id, minutes=2))
        other = await reply_repo.save(make_record(topic_id, minutes=3))

        deleted = await reply_repo.delete(root.id)

        assert deleted is True
        assert [r.id for r in await reply_repo.find_by_topic(topic_id)] == [other.id]
        assert await reply_repo.delete(root.id) is False
