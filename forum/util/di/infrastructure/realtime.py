"""Realtime (push channel) infrastructure providers."""

from collections.abc import AsyncIterator
from typing import Optional

from dishka import Scope, provide
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forum.adapter.realtime import PostgresPushChannel
from forum.config import Settings
from forum.domain.model import ReplyRecord
from forum.domain.service import PushChannel
from forum.domain.value import ReplyId
from forum.persistence.repository import PostgresReplyRepository
from forum.util.di.base import ProviderBase
from forum.util.observability import instrument_asyncpg


class RealtimeProvider(ProviderBase):
    """Realtime component base."""

    __mock_component__ = "realtime"
    # Created notifications are resolved to full records through the database
    __depends_on__ = {"persistence"}


class ProdRealtimeProvider(RealtimeProvider):
    """Production realtime provider using PostgreSQL LISTEN/NOTIFY."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    async def get_push_channel(
        self,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> AsyncIterator[PushChannel]:
        """Provide the shared push channel, closed when the container closes."""

        async def load_record(reply_id: ReplyId) -> Optional[ReplyRecord]:
            async with session_factory() as session:
                return await PostgresReplyRepository(session).find_by_id(reply_id)

        instrument_asyncpg()
        channel = PostgresPushChannel(
            dsn=settings.database.dsn,
            channel=settings.realtime.channel,
            load_record=load_record,
            queue_size=settings.realtime.queue_size,
        )
        yield channel
        await channel.close()
