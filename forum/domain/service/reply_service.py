"""Reply domain service."""

from datetime import datetime, timezone
from uuid import uuid4

import logfire
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from forum.domain.error import WriteFailure
from forum.domain.model.reply import AuthorSnapshot, ReplyRecord
from forum.domain.repository import ReplyRepository
from forum.domain.value import ReactionAction, ReplyId, TopicId, UserId, UserRole

from .base import Service

# Rich-text editors emit this for an empty document
EMPTY_CONTENT = {"", "<p></p>"}


class ReplyService(Service):
    """Domain service for the reply write path."""

    def __init__(self, reply_repository: ReplyRepository) -> None:
        """Initialize reply service.

        Args:
            reply_repository: Reply repository
        """
        self.reply_repository = reply_repository

    async def fetch_replies(self, topic_id: TopicId) -> list[ReplyRecord]:
        """Get all replies of a topic as flat records.

        Args:
            topic_id: Topic ID

        Returns:
            Flat reply records ordered by created_at
        """
        with logfire.span("reply_service.fetch_replies", topic_id=str(topic_id)):
            records = await self.reply_repository.find_by_topic(topic_id)
            logfire.info(
                "Replies retrieved for topic", topic_id=str(topic_id), count=len(records)
            )
            return records

    async def create_reply(
        self,
        topic_id: TopicId,
        author: AuthorSnapshot,
        content: str,
        parent_id: ReplyId | None = None,
    ) -> ReplyRecord:
        """Create a top-level reply or a reply to another reply.

        Args:
            topic_id: Topic ID
            author: Author snapshot of the writing user
            content: Rich-text content
            parent_id: Parent reply ID (None for top-level)

        Returns:
            Created reply as confirmed by the store

        Raises:
            WriteFailure: If the author is banned, the content is empty, the
                parent is invalid or the store rejects the write
        """
        with logfire.span(
            "reply_service.create_reply",
            topic_id=str(topic_id),
            author_id=str(author.id),
            parent_id=str(parent_id) if parent_id else None,
        ):
            if author.role is UserRole.BANNED:
                raise WriteFailure("create_reply", "Banned users cannot reply")
            if content.strip() in EMPTY_CONTENT:
                raise WriteFailure("create_reply", "Reply content is empty")

            if parent_id:
                parent = await self.reply_repository.find_by_id(parent_id)
                if not parent:
                    logfire.error(
                        "Parent reply not found",
                        parent_id=str(parent_id),
                        topic_id=str(topic_id),
                    )
                    raise WriteFailure("create_reply", "Parent reply not found")
                if parent.topic_id != topic_id:
                    logfire.error(
                        "Parent reply does not belong to topic",
                        parent_id=str(parent_id),
                        parent_topic_id=str(parent.topic_id),
                        target_topic_id=str(topic_id),
                    )
                    raise WriteFailure(
                        "create_reply", "Parent reply does not belong to this topic"
                    )

            record = ReplyRecord(
                id=ReplyId(uuid4()),
                topic_id=topic_id,
                parent_id=parent_id,
                content=content,
                author=author,
                created_at=datetime.now(timezone.utc),
                reactions=(),
            )

            try:
                saved = await self.reply_repository.save(record)
            except SQLAlchemyError as e:
                logfire.error("Reply store rejected write", error=str(e))
                raise WriteFailure("create_reply", str(e)) from e

            logfire.info(
                "Reply created",
                reply_id=str(saved.id),
                topic_id=str(topic_id),
                author=author.username,
            )
            return saved

    async def delete_reply(self, reply_id: ReplyId) -> ReplyRecord:
        """Delete a reply and its subtree.

        Args:
            reply_id: Reply ID

        Returns:
            The deleted reply as it was before deletion

        Raises:
            WriteFailure: If the reply does not exist or the store fails
        """
        with logfire.span("reply_service.delete_reply", reply_id=str(reply_id)):
            reply = await self.reply_repository.find_by_id(reply_id)
            if not reply:
                logfire.warn("Delete of non-existent reply", reply_id=str(reply_id))
                raise WriteFailure("delete_reply", "Reply not found")

            try:
                deleted = await self.reply_repository.delete(reply_id)
            except SQLAlchemyError as e:
                logfire.error("Reply store rejected delete", error=str(e))
                raise WriteFailure("delete_reply", str(e)) from e

            if not deleted:
                # Someone else removed it between the lookup and the delete
                raise WriteFailure("delete_reply", "Reply not found")

            logfire.info(
                "Reply deleted", reply_id=str(reply_id), topic_id=str(reply.topic_id)
            )
            return reply

    async def toggle_reaction(
        self, reply_id: ReplyId, emoji: str, user_id: UserId
    ) -> ReactionAction:
        """Add the user's emoji reaction, or remove it if already present.

        Args:
            reply_id: Reply ID
            emoji: Emoji to toggle
            user_id: Reacting user

        Returns:
            Whether the reaction was added or removed

        Raises:
            WriteFailure: If the reply does not exist or the store fails
        """
        with logfire.span(
            "reply_service.toggle_reaction",
            reply_id=str(reply_id),
            user_id=str(user_id),
            emoji=emoji,
        ):
            reply = await self.reply_repository.find_by_id(reply_id)
            if not reply:
                logfire.warn("Reaction on non-existent reply", reply_id=str(reply_id))
                raise WriteFailure("toggle_reaction", "Reply not found")

            try:
                if await self.reply_repository.find_reaction(reply_id, user_id, emoji):
                    await self.reply_repository.remove_reaction(reply_id, user_id, emoji)
                    action = ReactionAction.REMOVED
                else:
                    try:
                        await self.reply_repository.add_reaction(
                            reply_id, user_id, emoji
                        )
                    except IntegrityError as e:
                        # Either a concurrent toggle inserted the same pair
                        # or the reply was deleted since it was looked up
                        if not await self.reply_repository.find_reaction(
                            reply_id, user_id, emoji
                        ):
                            logfire.warn(
                                "Reaction target vanished", reply_id=str(reply_id)
                            )
                            raise WriteFailure(
                                "toggle_reaction", "Reply not found"
                            ) from e
                        logfire.warn(
                            "Duplicate reaction attempt",
                            reply_id=str(reply_id),
                            user_id=str(user_id),
                            emoji=emoji,
                        )
                    action = ReactionAction.ADDED
            except SQLAlchemyError as e:
                logfire.error("Reply store rejected reaction", error=str(e))
                raise WriteFailure("toggle_reaction", str(e)) from e

            logfire.info(
                "Reaction toggled",
                reply_id=str(reply_id),
                user_id=str(user_id),
                emoji=emoji,
                action=action.value,
            )
            return action
