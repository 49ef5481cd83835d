"""PostgreSQL implementation of Reply repository."""

from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from sqlalchemy import and_, delete, exists, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from forum.domain.model import Reaction, ReplyRecord
from forum.domain.repository import ReplyRepository
from forum.domain.value import ReplyId, TopicId, UserId
from forum.persistence.mappers import reply_to_dict, row_to_reaction, row_to_reply
from forum.persistence.tables import (
    profiles_table,
    replies_table,
    reply_reactions_table,
)


class PostgresReplyRepository(ReplyRepository):
    """PostgreSQL implementation of ReplyRepository.

    Writes are committed before returning so that the NOTIFY triggers fire
    and other clients see the change while this session stays open.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    def _select_replies(self):
        """Replies joined with their author's profile."""
        return select(
            replies_table,
            profiles_table.c.username.label("author_username"),
            profiles_table.c.avatar_url.label("author_avatar_url"),
            profiles_table.c.role.label("author_role"),
        ).select_from(
            replies_table.outerjoin(
                profiles_table, replies_table.c.author_id == profiles_table.c.id
            )
        )

    async def _find_reactions(
        self, reply_ids: Sequence[ReplyId]
    ) -> Dict[ReplyId, List[Reaction]]:
        """Load the reactions of several replies in one query."""
        if not reply_ids:
            return {}

        stmt = (
            select(reply_reactions_table)
            .where(reply_reactions_table.c.reply_id.in_(reply_ids))
            .order_by(reply_reactions_table.c.created_at, reply_reactions_table.c.id)
        )
        result = await self.session.execute(stmt)

        reactions: Dict[ReplyId, List[Reaction]] = defaultdict(list)
        for row in result.fetchall():
            data = row._asdict()
            reactions[data["reply_id"]].append(row_to_reaction(data))
        return reactions

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

    async def find_by_topic(self, topic_id: TopicId) -> List[ReplyRecord]:
        """Find all replies of a topic ordered by creation time."""
        stmt = (
            self._select_replies()
            .where(replies_table.c.topic_id == topic_id)
            .order_by(replies_table.c.created_at, replies_table.c.id)
        )
        result = await self.session.execute(stmt)
        rows = [row._asdict() for row in result.fetchall()]

        reactions = await self._find_reactions([row["id"] for row in rows])
        return [row_to_reply(row, reactions.get(row["id"], ())) for row in rows]

    async def find_by_id(self, reply_id: ReplyId) -> Optional[ReplyRecord]:
        """Find a reply by ID."""
        stmt = self._select_replies().where(replies_table.c.id == reply_id)
        result = await self.session.execute(stmt)
        row = result.fetchone()
        if not row:
            return None

        reactions = await self._find_reactions([reply_id])
        return row_to_reply(row._asdict(), reactions.get(reply_id, ()))

    async def save(self, record: ReplyRecord) -> ReplyRecord:
        """Insert a reply, making sure its author has a profile row."""
        author = record.author
        profile_stmt = (
            pg_insert(profiles_table)
            .values(
                id=author.id,
                username=author.username,
                avatar_url=author.avatar_url,
                role=author.role.value,
            )
            .on_conflict_do_nothing(index_elements=[profiles_table.c.id])
        )
        try:
            await self.session.execute(profile_stmt)
            await self.session.execute(
                insert(replies_table).values(**reply_to_dict(record))
            )
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        await self._commit()

        # Fetch the reply back as the store reports it
        return await self.find_by_id(record.id) or record

    async def delete(self, reply_id: ReplyId) -> bool:
        """Delete a reply; descendants go with it through ON DELETE CASCADE."""
        stmt = delete(replies_table).where(replies_table.c.id == reply_id)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        await self._commit()
        return result.rowcount > 0

    async def find_reaction(
        self, reply_id: ReplyId, user_id: UserId, emoji: str
    ) -> bool:
        """Check whether a user reacted to a reply with an emoji."""
        stmt = select(
            exists().where(
                and_(
                    reply_reactions_table.c.reply_id == reply_id,
                    reply_reactions_table.c.user_id == user_id,
                    reply_reactions_table.c.emoji == emoji,
                )
            )
        )
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def add_reaction(self, reply_id: ReplyId, user_id: UserId, emoji: str) -> None:
        """Record a reaction.

        Raises:
            IntegrityError: If the same reaction already exists
        """
        stmt = insert(reply_reactions_table).values(
            reply_id=reply_id, user_id=user_id, emoji=emoji
        )
        try:
            await self.session.execute(stmt)
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        await self._commit()

    async def remove_reaction(
        self, reply_id: ReplyId, user_id: UserId, emoji: str
    ) -> bool:
        """Remove a reaction."""
        stmt = delete(reply_reactions_table).where(
            and_(
                reply_reactions_table.c.reply_id == reply_id,
                reply_reactions_table.c.user_id == user_id,
                reply_reactions_table.c.emoji == emoji,
            )
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        await self._commit()
        return result.rowcount > 0
