"""In-memory repository implementations for testing."""

from .reply import InMemoryReplyRepository

__all__ = [
    "InMemoryReplyRepository",
]
