"""In-process push channel.

Used by tests and by the in-memory record store, which publishes an event
for every write just like database-backed realtime does.
"""

from collections import defaultdict
from typing import Union

from forum.domain.model.event import ReplyCreatedEvent, ReplyDeletedEvent
from forum.domain.service.push_channel import PushChannel, PushEventHandler, Subscription
from forum.domain.value import TopicId

PushedEvent = Union[ReplyCreatedEvent, ReplyDeletedEvent]


class InMemorySubscription(Subscription):
    """Subscription on an InMemoryPushChannel."""

    def __init__(
        self, channel: "InMemoryPushChannel", topic_id: TopicId, handler: PushEventHandler
    ) -> None:
        self._channel = channel
        self._topic_id = topic_id
        self._handler = handler
        self.closed = False

    async def close(self) -> None:
        """Stop delivery to the handler."""
        if self.closed:
            return
        self.closed = True
        self._channel._unsubscribe(self._topic_id, self._handler)


class InMemoryPushChannel(PushChannel):
    """Topic-scoped fan-out of events to subscribed handlers.

    With `deliver_immediately=False` events are held until `flush()`, which
    lets callers stage the network delay between a write and its echo.
    """

    def __init__(self, deliver_immediately: bool = True) -> None:
        self.deliver_immediately = deliver_immediately
        self.published: list[PushedEvent] = []
        self._pending: list[PushedEvent] = []
        self._handlers: dict[TopicId, list[PushEventHandler]] = defaultdict(list)

    async def subscribe(
        self, topic_id: TopicId, handler: PushEventHandler
    ) -> Subscription:
        """Subscribe a handler to one topic."""
        self._handlers[topic_id].append(handler)
        return InMemorySubscription(self, topic_id, handler)

    def publish(self, event: PushedEvent) -> None:
        """Publish an event to the topic's subscribers."""
        self.published.append(event)
        if self.deliver_immediately:
            self._deliver(event)
        else:
            self._pending.append(event)

    def flush(self) -> int:
        """Deliver held events in publish order.

        Returns:
            Number of events delivered
        """
        pending, self._pending = self._pending, []
        for event in pending:
            self._deliver(event)
        return len(pending)

    def subscriber_count(self, topic_id: TopicId) -> int:
        """Number of handlers subscribed to a topic."""
        return len(self._handlers.get(topic_id, ()))

    def _deliver(self, event: PushedEvent) -> None:
        for handler in list(self._handlers.get(event.topic_id, ())):
            handler(event)

    def _unsubscribe(self, topic_id: TopicId, handler: PushEventHandler) -> None:
        handlers = self._handlers.get(topic_id)
        if handlers and handler in handlers:
            handlers.remove(handler)
