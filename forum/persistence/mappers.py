"""Mappers for converting between database rows and domain models.

Since we're using Pydantic domain models (immutable), we use manual mapping
instead of SQLAlchemy's classical imperative mapping.
"""

from typing import Any, Dict, Iterable
from uuid import UUID

from forum.domain.model import AuthorSnapshot, Reaction, ReplyRecord
from forum.domain.value import ReplyId, TopicId, UserId, UserRole


def _uuid(value: Any) -> UUID:
    return UUID(value) if isinstance(value, str) else value


def row_to_author(row: Dict[str, Any]) -> AuthorSnapshot:
    """Convert a joined reply/profile row to an AuthorSnapshot.

    Replies whose profile row is gone keep a placeholder name.

    Args:
        row: Database row as dict (with `author_` prefixed profile columns)

    Returns:
        AuthorSnapshot value object
    """
    return AuthorSnapshot(
        id=UserId(_uuid(row["author_id"])),
        username=row.get("author_username") or "unknown",
        avatar_url=row.get("author_avatar_url"),
        role=UserRole(row.get("author_role") or UserRole.USER.value),
    )


def row_to_reaction(row: Dict[str, Any]) -> Reaction:
    """Convert database row to Reaction value object."""
    return Reaction(emoji=row["emoji"], user_id=UserId(_uuid(row["user_id"])))


def row_to_reply(
    row: Dict[str, Any], reactions: Iterable[Reaction] = ()
) -> ReplyRecord:
    """Convert database row to ReplyRecord domain model.

    Args:
        row: Joined reply/profile row as dict
        reactions: Reactions already loaded for this reply

    Returns:
        ReplyRecord domain model
    """
    return ReplyRecord(
        id=ReplyId(_uuid(row["id"])),
        topic_id=TopicId(_uuid(row["topic_id"])),
        parent_id=ReplyId(_uuid(row["parent_id"])) if row.get("parent_id") else None,
        content=row["content"],
        author=row_to_author(row),
        created_at=row["created_at"],
        reactions=tuple(reactions),
    )


def reply_to_dict(record: ReplyRecord) -> Dict[str, Any]:
    """Convert ReplyRecord domain model to database dict.

    Args:
        record: ReplyRecord domain model

    Returns:
        Dict suitable for insertion into the replies table
    """
    return {
        "id": record.id,
        "topic_id": record.topic_id,
        "parent_id": record.parent_id,
        "content": record.content,
        "author_id": record.author.id,
        "created_at": record.created_at,
    }
