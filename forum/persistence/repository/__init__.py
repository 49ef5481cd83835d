"""PostgreSQL repository implementations."""

from forum.persistence.repository.reply import PostgresReplyRepository

__all__ = [
    "PostgresReplyRepository",
]
