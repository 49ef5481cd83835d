"""Domain layer DI providers."""

from dishka import Scope, provide

from forum.config import ThreadSettings
from forum.domain.repository import ReplyRepository
from forum.domain.service import (
    EventReconciler,
    NodeLocator,
    PushChannel,
    ReactionAggregator,
    ReplyService,
    TreeBuilder,
    TreeMutator,
)
from forum.domain.value import OrphanPolicy
from forum.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Tree services hold no state and are shared for the whole app. The
    reply service and the reconciler are REQUEST-scoped: one request scope
    is one client session viewing at most one topic at a time.
    """

    @provide(scope=Scope.APP)
    def get_node_locator(self) -> NodeLocator:
        """Provide node locator."""
        return NodeLocator()

    @provide(scope=Scope.APP)
    def get_reaction_aggregator(self) -> ReactionAggregator:
        """Provide reaction aggregator."""
        return ReactionAggregator()

    @provide(scope=Scope.APP)
    def get_tree_builder(
        self, node_locator: NodeLocator, thread_settings: ThreadSettings
    ) -> TreeBuilder:
        """Provide tree builder configured with the orphan policy."""
        return TreeBuilder(
            node_locator=node_locator,
            orphan_policy=OrphanPolicy(thread_settings.orphan_policy),
        )

    @provide(scope=Scope.APP)
    def get_tree_mutator(
        self, node_locator: NodeLocator, thread_settings: ThreadSettings
    ) -> TreeMutator:
        """Provide tree mutator configured with the orphan policy."""
        return TreeMutator(
            node_locator=node_locator,
            orphan_policy=OrphanPolicy(thread_settings.orphan_policy),
            adopt_orphans=thread_settings.adopt_orphans,
        )

    @provide(scope=Scope.REQUEST)
    def get_reply_service(self, reply_repository: ReplyRepository) -> ReplyService:
        """Provide reply domain service."""
        return ReplyService(reply_repository=reply_repository)

    @provide(scope=Scope.REQUEST)
    def get_event_reconciler(
        self,
        reply_repository: ReplyRepository,
        push_channel: PushChannel,
        tree_builder: TreeBuilder,
        tree_mutator: TreeMutator,
        node_locator: NodeLocator,
    ) -> EventReconciler:
        """Provide the event reconciler of this client session."""
        return EventReconciler(
            reply_repository=reply_repository,
            push_channel=push_channel,
            tree_builder=tree_builder,
            tree_mutator=tree_mutator,
            node_locator=node_locator,
        )
