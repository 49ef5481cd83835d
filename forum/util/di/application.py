"""Application layer DI providers."""

from dishka import Scope, provide

from forum.application.usecase.thread import (
    CloseTopicUseCase,
    CreateReplyUseCase,
    DeleteReplyUseCase,
    GetThreadUseCase,
    OpenTopicUseCase,
    ToggleReactionUseCase,
)
from forum.domain.service import (
    EventReconciler,
    NodeLocator,
    ReactionAggregator,
    ReplyService,
)
from forum.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    scope = Scope.REQUEST

    @provide
    def get_open_topic_use_case(
        self,
        event_reconciler: EventReconciler,
        node_locator: NodeLocator,
        reaction_aggregator: ReactionAggregator,
    ) -> OpenTopicUseCase:
        """Provide open topic use case."""
        return OpenTopicUseCase(
            event_reconciler=event_reconciler,
            node_locator=node_locator,
            reaction_aggregator=reaction_aggregator,
        )

    @provide
    def get_close_topic_use_case(
        self, event_reconciler: EventReconciler
    ) -> CloseTopicUseCase:
        """Provide close topic use case."""
        return CloseTopicUseCase(event_reconciler=event_reconciler)

    @provide
    def get_get_thread_use_case(
        self,
        event_reconciler: EventReconciler,
        node_locator: NodeLocator,
        reaction_aggregator: ReactionAggregator,
    ) -> GetThreadUseCase:
        """Provide get thread use case."""
        return GetThreadUseCase(
            event_reconciler=event_reconciler,
            node_locator=node_locator,
            reaction_aggregator=reaction_aggregator,
        )

    @provide
    def get_create_reply_use_case(
        self, reply_service: ReplyService, event_reconciler: EventReconciler
    ) -> CreateReplyUseCase:
        """Provide create reply use case."""
        return CreateReplyUseCase(
            reply_service=reply_service, event_reconciler=event_reconciler
        )

    @provide
    def get_delete_reply_use_case(
        self, reply_service: ReplyService, event_reconciler: EventReconciler
    ) -> DeleteReplyUseCase:
        """Provide delete reply use case."""
        return DeleteReplyUseCase(
            reply_service=reply_service, event_reconciler=event_reconciler
        )

    @provide
    def get_toggle_reaction_use_case(
        self,
        reply_service: ReplyService,
        event_reconciler: EventReconciler,
        node_locator: NodeLocator,
        reaction_aggregator: ReactionAggregator,
    ) -> ToggleReactionUseCase:
        """Provide toggle reaction use case."""
        return ToggleReactionUseCase(
            reply_service=reply_service,
            event_reconciler=event_reconciler,
            node_locator=node_locator,
            reaction_aggregator=reaction_aggregator,
        )
