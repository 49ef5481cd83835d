"""Delete reply use case."""

from uuid import UUID

from pydantic import BaseModel

from forum.application.usecase.base import BaseUseCase
from forum.domain.model import ReplyDeletedEvent
from forum.domain.service import EventReconciler, ReplyService
from forum.domain.value import ApplyOutcome, ReplyId


class DeleteReplyRequest(BaseModel):
    """Delete reply request."""

    reply_id: str  # UUID string


class DeleteReplyResponse(BaseModel):
    """Delete reply response."""

    reply_id: str
    topic_id: str
    outcome: ApplyOutcome


class DeleteReplyUseCase(BaseUseCase[DeleteReplyRequest, DeleteReplyResponse]):
    """Use case for deleting a reply with its subtree."""

    def __init__(
        self, reply_service: ReplyService, event_reconciler: EventReconciler
    ) -> None:
        """Initialize delete reply use case.

        Args:
            reply_service: Reply write path
            event_reconciler: Reconciler of the open topic
        """
        self.reply_service = reply_service
        self.event_reconciler = event_reconciler

    async def execute(self, request: DeleteReplyRequest) -> DeleteReplyResponse:
        """Execute delete reply flow.

        Args:
            request: Delete reply request

        Returns:
            Delete reply response

        Raises:
            WriteFailure: If the reply does not exist or the store failed
        """
        record = await self.reply_service.delete_reply(ReplyId(UUID(request.reply_id)))

        outcome = self.event_reconciler.receive(
            ReplyDeletedEvent(topic_id=record.topic_id, id=record.id)
        )

        return DeleteReplyResponse(
            reply_id=request.reply_id,
            topic_id=str(record.topic_id),
            outcome=outcome,
        )
