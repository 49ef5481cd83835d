"""Event reconciliation for one live topic.

The reconciler owns the forest of the topic currently being viewed and
merges three sources of change into it: the bulk fetch, confirmations of
local writes and push-channel events (which include echoes of those same
local writes).

Lifecycle:

    DETACHED --attach()--> SYNCING --fetch + subscribe--> LIVE
        ^                                                   |
        +--------------------- detach() --------------------+

Everything runs on one event loop; each event is applied to completion
before the next one, and every mutation swaps in a new forest value, so
readers only ever see complete snapshots.
"""

from typing import Callable, Optional

import logfire

from forum.domain.error import FetchFailure
from forum.domain.model.event import (
    ReactionToggledEvent,
    ReplyCreatedEvent,
    ReplyDeletedEvent,
)
from forum.domain.model.forest import Forest
from forum.domain.model.reply import Reaction
from forum.domain.repository import ReplyRepository
from forum.domain.value import ApplyOutcome, ReactionAction, ReconcilerState, TopicId

from .base import Service
from .node_locator import NodeLocator
from .push_channel import PushChannel, Subscription
from .tree_builder import TreeBuilder
from .tree_mutator import TreeMutator

ForestListener = Callable[[Forest], None]
ReconcilerEvent = ReplyCreatedEvent | ReplyDeletedEvent | ReactionToggledEvent


class EventReconciler(Service):
    """Merges local and pushed reply events into one consistent forest."""

    def __init__(
        self,
        reply_repository: ReplyRepository,
        push_channel: PushChannel,
        tree_builder: TreeBuilder,
        tree_mutator: TreeMutator,
        node_locator: NodeLocator,
    ) -> None:
        """Initialize event reconciler.

        Args:
            reply_repository: Record store used for the bulk fetch
            push_channel: Live update channel
            tree_builder: Builds the initial forest
            tree_mutator: Applies structural changes
            node_locator: Existence checks for deduplication
        """
        self.reply_repository = reply_repository
        self.push_channel = push_channel
        self.tree_builder = tree_builder
        self.tree_mutator = tree_mutator
        self.node_locator = node_locator

        self._state = ReconcilerState.DETACHED
        self._topic_id: Optional[TopicId] = None
        self._forest: Optional[Forest] = None
        self._subscription: Optional[Subscription] = None
        # Bumped on every attach/detach; callbacks from older generations are stale
        self._generation = 0
        self._listeners: list[ForestListener] = []

    @property
    def state(self) -> ReconcilerState:
        """Current lifecycle state."""
        return self._state

    @property
    def topic_id(self) -> Optional[TopicId]:
        """Topic being synced or live, None when detached."""
        return self._topic_id

    @property
    def forest(self) -> Optional[Forest]:
        """Read-only snapshot of the live forest, None unless live."""
        return self._forest

    def watch(self, listener: ForestListener) -> Callable[[], None]:
        """Register a listener called with each new forest snapshot.

        Args:
            listener: Called after attach and after every accepted mutation

        Returns:
            Function that unregisters the listener
        """
        self._listeners.append(listener)

        def unwatch() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unwatch

    async def attach(self, topic_id: TopicId) -> Optional[Forest]:
        """Enter a topic: fetch its replies, build the forest, go live.

        Any topic attached before is detached first.

        Args:
            topic_id: Topic to attach to

        Returns:
            The initial forest, or None if the reconciler was detached or
            re-attached while the fetch was in flight (even if that fetch
            then failed)

        Raises:
            FetchFailure: If the bulk fetch or the subscription failed; the
                reconciler is left detached
        """
        if self._state is not ReconcilerState.DETACHED:
            await self.detach()

        self._generation += 1
        generation = self._generation
        self._state = ReconcilerState.SYNCING
        self._topic_id = topic_id

        with logfire.span("event_reconciler.attach", topic_id=str(topic_id)):
            try:
                records = await self.reply_repository.find_by_topic(topic_id)
            except Exception as e:
                logfire.error(
                    "Bulk fetch failed", topic_id=str(topic_id), error=str(e)
                )
                if generation != self._generation:
                    return None
                self._reset()
                raise FetchFailure(str(topic_id), str(e)) from e

            if generation != self._generation:
                logfire.info("Discarding stale bulk fetch", topic_id=str(topic_id))
                return None

            forest = self.tree_builder.build(topic_id, records)

            try:
                subscription = await self.push_channel.subscribe(
                    topic_id, self._handler_for(generation)
                )
            except Exception as e:
                logfire.error(
                    "Push channel subscription failed",
                    topic_id=str(topic_id),
                    error=str(e),
                )
                if generation != self._generation:
                    return None
                self._reset()
                raise FetchFailure(str(topic_id), f"subscription failed: {e}") from e

            if generation != self._generation:
                await subscription.close()
                logfire.info("Discarding stale subscription", topic_id=str(topic_id))
                return None

            self._subscription = subscription
            self._state = ReconcilerState.LIVE
            self._install(forest)
            logfire.info(
                "Topic live", topic_id=str(topic_id), reply_count=len(forest)
            )
            return forest

    async def detach(self) -> None:
        """Leave the current topic.

        The subscription is closed and the forest discarded. Callbacks still
        in flight for the old topic become no-ops.
        """
        if self._state is ReconcilerState.DETACHED:
            return

        topic_id = self._topic_id
        subscription = self._subscription
        self._generation += 1
        self._reset()

        if subscription is not None:
            await subscription.close()
        logfire.info("Topic detached", topic_id=str(topic_id))

    def receive(self, event: ReconcilerEvent) -> ApplyOutcome:
        """Apply one event from a local write or the push channel.

        Args:
            event: Created, deleted or reaction event

        Returns:
            What happened to the event
        """
        if self._state is not ReconcilerState.LIVE or self._forest is None:
            logfire.debug("Event ignored while not live", kind=event.kind)
            return ApplyOutcome.DETACHED
        if event.topic_id != self._topic_id:
            logfire.debug(
                "Foreign topic event dropped",
                kind=event.kind,
                event_topic_id=str(event.topic_id),
                topic_id=str(self._topic_id),
            )
            return ApplyOutcome.FOREIGN_TOPIC

        if isinstance(event, ReplyCreatedEvent):
            return self._apply_created(event)
        if isinstance(event, ReplyDeletedEvent):
            return self._apply_deleted(event)
        return self._apply_reaction(event)

    def _apply_created(self, event: ReplyCreatedEvent) -> ApplyOutcome:
        forest = self._forest
        if self.node_locator.find(forest, event.record.id) is not None:
            # Second arrival of the same reply is a confirmation
            logfire.debug("Duplicate reply creation", reply_id=str(event.record.id))
            return ApplyOutcome.DUPLICATE

        updated = self.tree_mutator.insert(forest, event.record)
        if updated is forest:
            return ApplyOutcome.ORPHAN_DROPPED

        self._install(updated)
        return ApplyOutcome.APPLIED

    def _apply_deleted(self, event: ReplyDeletedEvent) -> ApplyOutcome:
        forest = self._forest
        updated = self.tree_mutator.remove(forest, event.id)
        if updated is forest:
            logfire.debug("Delete of unknown reply", reply_id=str(event.id))
            return ApplyOutcome.MISSING

        self._install(updated)
        return ApplyOutcome.APPLIED

    def _apply_reaction(self, event: ReactionToggledEvent) -> ApplyOutcome:
        forest = self._forest
        node = self.node_locator.find(forest, event.reply_id)
        if node is None:
            return ApplyOutcome.MISSING

        others = tuple(
            r
            for r in node.reactions
            if not (r.emoji == event.emoji and r.user_id == event.user_id)
        )
        if event.action is ReactionAction.ADDED:
            reactions = others + (Reaction(emoji=event.emoji, user_id=event.user_id),)
            if node.has_reaction(event.emoji, event.user_id):
                return ApplyOutcome.DUPLICATE
        else:
            reactions = others
            if not node.has_reaction(event.emoji, event.user_id):
                return ApplyOutcome.DUPLICATE

        updated = self.tree_mutator.replace_reactions(forest, event.reply_id, reactions)
        if updated is forest:
            return ApplyOutcome.DUPLICATE

        self._install(updated)
        return ApplyOutcome.APPLIED

    def _handler_for(self, generation: int) -> Callable[[ReconcilerEvent], ApplyOutcome]:
        """Build a push handler that only acts while `generation` is current."""

        def handle(event: ReconcilerEvent) -> ApplyOutcome:
            if generation != self._generation:
                logfire.debug("Stale push event ignored", kind=event.kind)
                return ApplyOutcome.DETACHED
            return self.receive(event)

        return handle

    def _install(self, forest: Forest) -> None:
        self._forest = forest
        for listener in list(self._listeners):
            try:
                listener(forest)
            except Exception as e:
                logfire.error(
                    "Forest listener failed",
                    topic_id=str(self._topic_id),
                    error=str(e),
                    error_type=type(e).__name__,
                    _exc_info=True,
                )

    def _reset(self) -> None:
        self._state = ReconcilerState.DETACHED
        self._topic_id = None
        self._forest = None
        self._subscription = None
