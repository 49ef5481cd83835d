"""Get thread use case."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from forum.application.usecase.base import BaseUseCase
from forum.domain.error import NotFoundError
from forum.domain.model import Forest, ReactionGroup
from forum.domain.service import EventReconciler, NodeLocator, ReactionAggregator
from forum.domain.value import ReconcilerState, ReplyId, TopicId, UserId


class ReactionGroupItem(BaseModel):
    """Reaction tally in response."""

    emoji: str
    count: int
    reacted: bool

    @classmethod
    def from_group(cls, group: ReactionGroup) -> "ReactionGroupItem":
        return cls(emoji=group.emoji, count=group.count, reacted=group.reacted)


class ReplyItem(BaseModel):
    """Reply in response, with its nested replies."""

    reply_id: str
    parent_id: str | None
    content: str
    author_id: str
    author_username: str
    author_avatar_url: str | None
    created_at: datetime
    depth: int
    reactions: list[ReactionGroupItem]
    replies: list["ReplyItem"]


class GetThreadRequest(BaseModel):
    """Get thread request."""

    topic_id: str  # UUID string
    viewer_id: str | None = None  # Marks the viewer's own reactions


class ThreadResponse(BaseModel):
    """Thread snapshot response."""

    topic_id: str
    state: ReconcilerState
    replies: list[ReplyItem]
    reply_count: int


def build_thread_response(
    forest: Forest,
    state: ReconcilerState,
    node_locator: NodeLocator,
    reaction_aggregator: ReactionAggregator,
    viewer_id: Optional[UserId] = None,
) -> ThreadResponse:
    """Render a forest snapshot as nested reply items.

    Args:
        forest: Forest snapshot
        state: Reconciler state to report
        node_locator: Walks the forest
        reaction_aggregator: Computes reaction tallies
        viewer_id: Current viewer, if any

    Returns:
        Thread response with replies nested under their parents
    """
    groups = reaction_aggregator.aggregate_forest(forest, viewer_id)

    # Pre-order puts every child after its parent, so building in reverse
    # always finds the child items already made.
    items: dict[ReplyId, ReplyItem] = {}
    for node, depth in reversed(list(node_locator.walk(forest))):
        items[node.id] = ReplyItem(
            reply_id=str(node.id),
            parent_id=str(node.parent_id) if node.parent_id else None,
            content=node.content,
            author_id=str(node.author.id),
            author_username=node.author.username,
            author_avatar_url=node.author.avatar_url,
            created_at=node.created_at,
            depth=depth,
            reactions=[ReactionGroupItem.from_group(g) for g in groups[node.id]],
            replies=[items[child_id] for child_id in node.children],
        )

    return ThreadResponse(
        topic_id=str(forest.topic_id),
        state=state,
        replies=[items[root_id] for root_id in forest.roots],
        reply_count=len(forest),
    )


class GetThreadUseCase(BaseUseCase[GetThreadRequest, ThreadResponse]):
    """Use case for reading the live thread of the open topic."""

    def __init__(
        self,
        event_reconciler: EventReconciler,
        node_locator: NodeLocator,
        reaction_aggregator: ReactionAggregator,
    ) -> None:
        """Initialize get thread use case.

        Args:
            event_reconciler: Reconciler holding the live forest
            node_locator: Node locator service
            reaction_aggregator: Reaction aggregator service
        """
        self.event_reconciler = event_reconciler
        self.node_locator = node_locator
        self.reaction_aggregator = reaction_aggregator

    async def execute(self, request: GetThreadRequest) -> ThreadResponse:
        """Execute get thread flow.

        Args:
            request: Get thread request

        Returns:
            Current thread snapshot

        Raises:
            NotFoundError: If the topic is not the one currently open
        """
        topic_id = TopicId(UUID(request.topic_id))
        forest = self.event_reconciler.forest
        if forest is None or self.event_reconciler.topic_id != topic_id:
            raise NotFoundError("Open topic", request.topic_id)

        viewer_id = UserId(UUID(request.viewer_id)) if request.viewer_id else None
        return build_thread_response(
            forest,
            self.event_reconciler.state,
            self.node_locator,
            self.reaction_aggregator,
            viewer_id,
        )
