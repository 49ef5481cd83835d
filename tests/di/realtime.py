"""Mock realtime providers for testing."""

from dishka import Scope, alias, provide

from forum.adapter.realtime import InMemoryPushChannel
from forum.domain.service import PushChannel
from forum.util.di.infrastructure.realtime import RealtimeProvider


class MockRealtimeProvider(RealtimeProvider):
    """Mock realtime provider using an in-process push channel."""

    __is_mock__ = True

    push_channel = alias(source=InMemoryPushChannel, provides=PushChannel)

    @provide(scope=Scope.REQUEST)
    def get_in_memory_push_channel(self) -> InMemoryPushChannel:
        """Provide in-memory push channel."""
        return InMemoryPushChannel()
