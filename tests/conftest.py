"""Test configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import logfire

from forum.domain.model import AuthorSnapshot, Reaction, ReplyRecord
from forum.domain.value import ReplyId, TopicId, UserId, UserRole

# Keep Logfire local and quiet during tests
logfire.configure(send_to_logfire=False, console=False)

BASE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def reply_id_of(n: int) -> ReplyId:
    """Readable, deterministic reply IDs (1 -> 00000000-...-000000000001)."""
    return ReplyId(UUID(int=n))


def make_author(
    username: str = "alice",
    role: UserRole = UserRole.USER,
    user_id: UserId | None = None,
) -> AuthorSnapshot:
    """Helper function to build author snapshots for test replies."""
    return AuthorSnapshot(
        id=user_id or UserId(uuid4()),
        username=username,
        avatar_url=None,
        role=role,
    )


def make_record(
    topic_id: TopicId,
    reply_id: ReplyId | int | None = None,
    parent_id: ReplyId | int | None = None,
    minutes: int = 0,
    reactions: tuple[Reaction, ...] = (),
    content: str = "<p>Hello</p>",
    author: AuthorSnapshot | None = None,
) -> ReplyRecord:
    """Helper function to build reply records.

    Integer IDs are expanded with `reply_id_of`, and `minutes` offsets
    created_at from a fixed base time so ordering is explicit.
    """
    if isinstance(reply_id, int):
        reply_id = reply_id_of(reply_id)
    if isinstance(parent_id, int):
        parent_id = reply_id_of(parent_id)

    return ReplyRecord(
        id=reply_id or ReplyId(uuid4()),
        topic_id=topic_id,
        parent_id=parent_id,
        content=content,
        author=author or make_author(),
        created_at=BASE_TIME + timedelta(minutes=minutes),
        reactions=reactions,
    )
