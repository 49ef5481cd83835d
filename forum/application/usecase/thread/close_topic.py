"""Close topic use case."""

from pydantic import BaseModel

from forum.application.usecase.base import BaseUseCase
from forum.domain.service import EventReconciler
from forum.domain.value import ReconcilerState


class CloseTopicRequest(BaseModel):
    """Close topic request."""

    pass


class CloseTopicResponse(BaseModel):
    """Close topic response."""

    topic_id: str | None  # Topic that was open, if any
    state: ReconcilerState


class CloseTopicUseCase(BaseUseCase[CloseTopicRequest, CloseTopicResponse]):
    """Use case for leaving the open topic."""

    def __init__(self, event_reconciler: EventReconciler) -> None:
        self.event_reconciler = event_reconciler

    async def execute(self, request: CloseTopicRequest) -> CloseTopicResponse:
        """Detach the reconciler; closing when nothing is open is a no-op."""
        topic_id = self.event_reconciler.topic_id
        await self.event_reconciler.detach()
        return CloseTopicResponse(
            topic_id=str(topic_id) if topic_id else None,
            state=self.event_reconciler.state,
        )
