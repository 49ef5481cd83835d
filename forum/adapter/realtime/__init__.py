"""Push channel adapters."""

from .inmemory import InMemoryPushChannel, InMemorySubscription
from .postgres import PostgresPushChannel, PostgresSubscription, ReplyNotification

__all__ = [
    "InMemoryPushChannel",
    "InMemorySubscription",
    "PostgresPushChannel",
    "PostgresSubscription",
    "ReplyNotification",
]
