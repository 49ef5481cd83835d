"""Repository interfaces for the forum domain.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the persistence layer.
"""

from forum.domain.repository.reply import ReplyRepository

__all__ = [
    "ReplyRepository",
]
