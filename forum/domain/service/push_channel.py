"""Push channel contract."""

from abc import ABC, abstractmethod
from typing import Callable, Union

from forum.domain.model.event import ReplyCreatedEvent, ReplyDeletedEvent
from forum.domain.value import TopicId

PushEventHandler = Callable[[Union[ReplyCreatedEvent, ReplyDeletedEvent]], object]


class Subscription(ABC):
    """Handle on an open, topic-scoped subscription."""

    @abstractmethod
    async def close(self) -> None:
        """Stop delivering events to the subscribed handler.

        Closing twice is allowed and does nothing the second time.
        """
        pass


class PushChannel(ABC):
    """Generic live-update channel interface.

    Delivers created/deleted events produced by any client, including
    echoes of this client's own writes.
    """

    @abstractmethod
    async def subscribe(
        self, topic_id: TopicId, handler: PushEventHandler
    ) -> Subscription:
        """Subscribe to a topic's reply events.

        Args:
            topic_id: Topic to receive events for
            handler: Called once per event, in delivery order

        Returns:
            Subscription to close when the topic is left
        """
        pass
