"""PostgreSQL LISTEN/NOTIFY push channel.

Triggers on the `replies` table publish a small JSON payload per inserted
or deleted row (see `forum.persistence.tables`):

    {"kind": "created", "topic_id": "...", "id": "..."}
    {"kind": "deleted", "topic_id": "...", "id": "..."}

NOTIFY payloads are size-limited, so created notifications carry only the
id; the full record (author snapshot, reactions) is loaded before the
event is delivered.
"""

import asyncio
from collections import defaultdict
from typing import Awaitable, Callable, Literal, Optional

import asyncpg
import logfire
from pydantic import BaseModel

from forum.domain.model.event import ReplyCreatedEvent, ReplyDeletedEvent
from forum.domain.model.reply import ReplyRecord
from forum.domain.service.push_channel import PushChannel, PushEventHandler, Subscription
from forum.domain.value import ReplyId, TopicId
from forum.util.error import ConfigurationError

RecordLoader = Callable[[ReplyId], Awaitable[Optional[ReplyRecord]]]


class ReplyNotification(BaseModel):
    """Payload published by the reply table triggers."""

    kind: Literal["created", "deleted"]
    topic_id: TopicId
    id: ReplyId


class PostgresSubscription(Subscription):
    """Subscription on a PostgresPushChannel."""

    def __init__(
        self, channel: "PostgresPushChannel", topic_id: TopicId, handler: PushEventHandler
    ) -> None:
        self._channel = channel
        self._topic_id = topic_id
        self._handler = handler
        self._closed = False

    async def close(self) -> None:
        """Stop delivery to the handler."""
        if self._closed:
            return
        self._closed = True
        self._channel._unsubscribe(self._topic_id, self._handler)


class PostgresPushChannel(PushChannel):
    """Push channel backed by a dedicated asyncpg LISTEN connection.

    Notifications are processed strictly in arrival order through a single
    queue, so a created event waiting for its record lookup is never
    overtaken by a later deletion of the same reply.
    """

    def __init__(
        self,
        dsn: str,
        channel: str,
        load_record: RecordLoader,
        queue_size: int = 1000,
    ) -> None:
        """Initialize the channel (the connection is opened lazily).

        Args:
            dsn: libpq connection string
            channel: NOTIFY channel name
            load_record: Resolves a reply id to its full record
            queue_size: Maximum number of notifications waiting for dispatch

        Raises:
            ConfigurationError: If the DSN is not a PostgreSQL DSN
        """
        if not dsn.startswith(("postgresql://", "postgres://")):
            raise ConfigurationError(
                "database.url", f"push channel needs a PostgreSQL DSN, got {dsn!r}"
            )

        self.dsn = dsn
        self.channel = channel
        self.load_record = load_record
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._handlers: dict[TopicId, list[PushEventHandler]] = defaultdict(list)
        self._connection: Optional[asyncpg.Connection] = None
        self._pump: Optional[asyncio.Task] = None
        self._connect_lock = asyncio.Lock()

    async def subscribe(
        self, topic_id: TopicId, handler: PushEventHandler
    ) -> Subscription:
        """Subscribe a handler to one topic, connecting on first use."""
        await self._ensure_listening()
        self._handlers[topic_id].append(handler)
        logfire.info("Subscribed to reply events", topic_id=str(topic_id))
        return PostgresSubscription(self, topic_id, handler)

    async def close(self) -> None:
        """Stop listening and close the connection."""
        if self._pump is not None:
            self._pump.cancel()
            try:
                await self._pump
            except asyncio.CancelledError:
                pass
            self._pump = None

        if self._connection is not None:
            await self._connection.remove_listener(self.channel, self._on_notify)
            await self._connection.close()
            self._connection = None
            logfire.info("Push channel closed", channel=self.channel)

    async def dispatch(self, payload: str) -> None:
        """Turn one notification payload into an event and deliver it.

        Args:
            payload: JSON payload from the trigger
        """
        notification = ReplyNotification.model_validate_json(payload)
        if not self._handlers.get(notification.topic_id):
            return

        if notification.kind == "deleted":
            event = ReplyDeletedEvent(topic_id=notification.topic_id, id=notification.id)
        else:
            record = await self.load_record(notification.id)
            if record is None:
                logfire.info(
                    "Created reply no longer exists", reply_id=str(notification.id)
                )
                return
            event = ReplyCreatedEvent(topic_id=notification.topic_id, record=record)

        # Handlers may have unsubscribed while the record was loading
        for handler in list(self._handlers.get(notification.topic_id, ())):
            try:
                handler(event)
            except Exception as e:
                logfire.error(
                    "Reply event handler failed",
                    topic_id=str(notification.topic_id),
                    kind=event.kind,
                    error=str(e),
                    error_type=type(e).__name__,
                    _exc_info=True,
                )

    async def _ensure_listening(self) -> None:
        async with self._connect_lock:
            if self._connection is not None:
                return

            connection = await asyncpg.connect(self.dsn)
            await connection.add_listener(self.channel, self._on_notify)
            self._connection = connection
            self._pump = asyncio.create_task(self._run())
            logfire.info("Listening for reply events", channel=self.channel)

    def _on_notify(
        self, connection: asyncpg.Connection, pid: int, channel: str, payload: str
    ) -> None:
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            logfire.error(
                "Reply event queue full, notification dropped",
                channel=channel,
                queue_size=self._queue.maxsize,
            )

    async def _run(self) -> None:
        while True:
            payload = await self._queue.get()
            try:
                await self.dispatch(payload)
            except Exception as e:
                logfire.error(
                    "Failed to dispatch reply event",
                    error=str(e),
                    error_type=type(e).__name__,
                    _exc_info=True,
                )
            finally:
                self._queue.task_done()

    def _unsubscribe(self, topic_id: TopicId, handler: PushEventHandler) -> None:
        handlers = self._handlers.get(topic_id)
        if handlers and handler in handlers:
            handlers.remove(handler)
            logfire.info("Unsubscribed from reply events", topic_id=str(topic_id))
