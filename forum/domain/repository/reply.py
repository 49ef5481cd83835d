"""Reply repository interface."""

from abc import ABC, abstractmethod
from typing import List, Optional

from forum.domain.model.reply import ReplyRecord
from forum.domain.value import ReplyId, TopicId, UserId


class ReplyRepository(ABC):
    """Repository for reply records and their reactions.

    Defines the contract of the upstream record store. Implementations
    live in the persistence layer.
    """

    @abstractmethod
    async def find_by_topic(self, topic_id: TopicId) -> List[ReplyRecord]:
        """Find all replies of a topic.

        Args:
            topic_id: The topic ID

        Returns:
            Replies with author snapshots and reactions, ordered by created_at
        """
        pass

    @abstractmethod
    async def find_by_id(self, reply_id: ReplyId) -> Optional[ReplyRecord]:
        """Find a reply by ID.

        Args:
            reply_id: The reply's unique identifier

        Returns:
            The reply if found, None otherwise
        """
        pass

    @abstractmethod
    async def save(self, record: ReplyRecord) -> ReplyRecord:
        """Store a new reply.

        Args:
            record: The reply to store

        Returns:
            The stored reply as the store reports it back
        """
        pass

    @abstractmethod
    async def delete(self, reply_id: ReplyId) -> bool:
        """Delete a reply together with every descendant.

        Args:
            reply_id: The reply ID to delete

        Returns:
            True if the reply existed, False otherwise
        """
        pass

    @abstractmethod
    async def find_reaction(
        self, reply_id: ReplyId, user_id: UserId, emoji: str
    ) -> bool:
        """Check whether a user reacted to a reply with an emoji."""
        pass

    @abstractmethod
    async def add_reaction(self, reply_id: ReplyId, user_id: UserId, emoji: str) -> None:
        """Record a reaction.

        At most one record exists per (reply, user, emoji).
        """
        pass

    @abstractmethod
    async def remove_reaction(
        self, reply_id: ReplyId, user_id: UserId, emoji: str
    ) -> bool:
        """Remove a reaction.

        Returns:
            True if a reaction was removed, False if none existed
        """
        pass
