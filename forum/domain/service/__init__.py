"""Domain services."""

from .base import Service
from .event_reconciler import EventReconciler
from .node_locator import NodeLocator
from .push_channel import PushChannel, PushEventHandler, Subscription
from .reaction_aggregator import ReactionAggregator
from .reply_service import ReplyService
from .tree_builder import TreeBuilder
from .tree_mutator import TreeMutator

__all__ = [
    "EventReconciler",
    "NodeLocator",
    "PushChannel",
    "PushEventHandler",
    "ReactionAggregator",
    "ReplyService",
    "Service",
    "Subscription",
    "TreeBuilder",
    "TreeMutator",
]
