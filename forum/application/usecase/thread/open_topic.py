"""Open topic use case."""

from uuid import UUID

from pydantic import BaseModel

from forum.application.usecase.base import BaseUseCase
from forum.domain.service import EventReconciler, NodeLocator, ReactionAggregator
from forum.domain.value import TopicId, UserId

from .get_thread import ThreadResponse, build_thread_response


class OpenTopicRequest(BaseModel):
    """Open topic request."""

    topic_id: str  # UUID string
    viewer_id: str | None = None


class OpenTopicResponse(BaseModel):
    """Open topic response.

    `thread` is None when another open or close overtook this one while
    the replies were loading.
    """

    topic_id: str
    opened: bool
    thread: ThreadResponse | None


class OpenTopicUseCase(BaseUseCase[OpenTopicRequest, OpenTopicResponse]):
    """Use case for entering a topic: load its replies and follow live updates."""

    def __init__(
        self,
        event_reconciler: EventReconciler,
        node_locator: NodeLocator,
        reaction_aggregator: ReactionAggregator,
    ) -> None:
        """Initialize open topic use case.

        Args:
            event_reconciler: Reconciler to attach
            node_locator: Node locator service
            reaction_aggregator: Reaction aggregator service
        """
        self.event_reconciler = event_reconciler
        self.node_locator = node_locator
        self.reaction_aggregator = reaction_aggregator

    async def execute(self, request: OpenTopicRequest) -> OpenTopicResponse:
        """Execute open topic flow.

        Steps:
        1. Attach the reconciler (detaching any previously open topic)
        2. Render the initial forest

        Args:
            request: Open topic request

        Returns:
            Open topic response with the initial thread

        Raises:
            FetchFailure: If the replies could not be loaded
        """
        topic_id = TopicId(UUID(request.topic_id))
        forest = await self.event_reconciler.attach(topic_id)
        if forest is None:
            return OpenTopicResponse(topic_id=request.topic_id, opened=False, thread=None)

        viewer_id = UserId(UUID(request.viewer_id)) if request.viewer_id else None
        thread = build_thread_response(
            forest,
            self.event_reconciler.state,
            self.node_locator,
            self.reaction_aggregator,
            viewer_id,
        )
        return OpenTopicResponse(topic_id=request.topic_id, opened=True, thread=thread)
