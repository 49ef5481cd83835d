"""Toggle reaction use case."""

from uuid import UUID

from pydantic import BaseModel, Field

from forum.application.usecase.base import BaseUseCase
from forum.domain.model import ReactionToggledEvent
from forum.domain.service import (
    EventReconciler,
    NodeLocator,
    ReactionAggregator,
    ReplyService,
)
from forum.domain.value import ApplyOutcome, ReactionAction, ReplyId, UserId

from .get_thread import ReactionGroupItem


class ToggleReactionRequest(BaseModel):
    """Toggle reaction request."""

    reply_id: str  # UUID string
    emoji: str = Field(min_length=1, max_length=32)
    user_id: str  # User ID from authenticated user


class ToggleReactionResponse(BaseModel):
    """Toggle reaction response."""

    reply_id: str
    emoji: str
    action: ReactionAction
    outcome: ApplyOutcome
    reactions: list[ReactionGroupItem]  # Fresh tallies, empty if not in the forest


class ToggleReactionUseCase(BaseUseCase[ToggleReactionRequest, ToggleReactionResponse]):
    """Use case for adding or removing the user's emoji reaction."""

    def __init__(
        self,
        reply_service: ReplyService,
        event_reconciler: EventReconciler,
        node_locator: NodeLocator,
        reaction_aggregator: ReactionAggregator,
    ) -> None:
        """Initialize toggle reaction use case.

        Args:
            reply_service: Reply write path
            event_reconciler: Reconciler of the open topic
            node_locator: Node locator service
            reaction_aggregator: Reaction aggregator service
        """
        self.reply_service = reply_service
        self.event_reconciler = event_reconciler
        self.node_locator = node_locator
        self.reaction_aggregator = reaction_aggregator

    async def execute(self, request: ToggleReactionRequest) -> ToggleReactionResponse:
        """Execute toggle reaction flow.

        Reactions have no push events, so the confirmation is the only
        way the change reaches this client's forest.

        Args:
            request: Toggle reaction request

        Returns:
            Toggle reaction response with the reply's updated tallies

        Raises:
            WriteFailure: If the reply does not exist or the store failed
        """
        reply_id = ReplyId(UUID(request.reply_id))
        user_id = UserId(UUID(request.user_id))

        action = await self.reply_service.toggle_reaction(
            reply_id, request.emoji, user_id
        )

        topic_id = self.event_reconciler.topic_id
        if topic_id is None:
            outcome = ApplyOutcome.DETACHED
        else:
            outcome = self.event_reconciler.receive(
                ReactionToggledEvent(
                    topic_id=topic_id,
                    reply_id=reply_id,
                    emoji=request.emoji,
                    user_id=user_id,
                    action=action,
                )
            )

        reactions: list[ReactionGroupItem] = []
        forest = self.event_reconciler.forest
        node = self.node_locator.find(forest, reply_id) if forest is not None else None
        if node is not None:
            reactions = [
                ReactionGroupItem.from_group(group)
                for group in self.reaction_aggregator.aggregate(node.reactions, user_id)
            ]

        return ToggleReactionResponse(
            reply_id=request.reply_id,
            emoji=request.emoji,
            action=action,
            outcome=outcome,
            reactions=reactions,
        )
