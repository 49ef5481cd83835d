"""Create reply use case."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from forum.application.usecase.base import BaseUseCase
from forum.domain.model import AuthorSnapshot, ReplyCreatedEvent
from forum.domain.service import EventReconciler, ReplyService
from forum.domain.value import ApplyOutcome, ReplyId, TopicId, UserId, UserRole


class CreateReplyRequest(BaseModel):
    """Create reply request."""

    topic_id: str  # UUID string
    content: str
    author_id: str  # User ID from authenticated user
    author_username: str
    author_avatar_url: str | None = None
    author_role: UserRole = UserRole.USER
    parent_id: str | None = None  # Parent reply ID for nested replies


class CreateReplyResponse(BaseModel):
    """Create reply response."""

    reply_id: str
    topic_id: str
    parent_id: str | None
    content: str
    created_at: datetime
    outcome: ApplyOutcome  # What the confirmation did to the live forest


class CreateReplyUseCase(BaseUseCase[CreateReplyRequest, CreateReplyResponse]):
    """Use case for writing a reply and merging it into the open thread."""

    def __init__(
        self, reply_service: ReplyService, event_reconciler: EventReconciler
    ) -> None:
        """Initialize create reply use case.

        Args:
            reply_service: Reply write path
            event_reconciler: Reconciler of the open topic
        """
        self.reply_service = reply_service
        self.event_reconciler = event_reconciler

    async def execute(self, request: CreateReplyRequest) -> CreateReplyResponse:
        """Execute create reply flow.

        Steps:
        1. Write the reply through the reply service
        2. Feed the confirmed record to the reconciler (its push echo may
           already have been applied, then this is a duplicate)

        Args:
            request: Create reply request

        Returns:
            Create reply response

        Raises:
            WriteFailure: If the write was rejected; nothing reaches the forest
        """
        author = AuthorSnapshot(
            id=UserId(UUID(request.author_id)),
            username=request.author_username,
            avatar_url=request.author_avatar_url,
            role=request.author_role,
        )
        record = await self.reply_service.create_reply(
            topic_id=TopicId(UUID(request.topic_id)),
            author=author,
            content=request.content,
            parent_id=ReplyId(UUID(request.parent_id)) if request.parent_id else None,
        )

        outcome = self.event_reconciler.receive(
            ReplyCreatedEvent(topic_id=record.topic_id, record=record)
        )

        return CreateReplyResponse(
            reply_id=str(record.id),
            topic_id=str(record.topic_id),
            parent_id=str(record.parent_id) if record.parent_id else None,
            content=record.content,
            created_at=record.created_at,
            outcome=outcome,
        )
