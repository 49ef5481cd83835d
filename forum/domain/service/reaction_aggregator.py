"""Reaction aggregation service."""

from typing import Iterable, Optional

from forum.domain.model.forest import Forest
from forum.domain.model.reaction import ReactionGroup
from forum.domain.model.reply import Reaction
from forum.domain.value import ReplyId, UserId

from .base import Service


class ReactionAggregator(Service):
    """Groups per-user reaction records by emoji.

    Pure read-side projection: it never touches the forest it reads from.
    """

    def aggregate(
        self, reactions: Iterable[Reaction], viewer_id: Optional[UserId] = None
    ) -> list[ReactionGroup]:
        """Fold one reply's reactions into emoji groups.

        Groups come out in order of first appearance of each emoji, so the
        result is deterministic for a fixed input.

        Args:
            reactions: Reactions of a single reply
            viewer_id: Current viewer, if any

        Returns:
            One group per distinct emoji with its distinct-user count
        """
        users_by_emoji: dict[str, list[UserId]] = {}
        for reaction in reactions:
            users = users_by_emoji.setdefault(reaction.emoji, [])
            if reaction.user_id not in users:
                users.append(reaction.user_id)

        return [
            ReactionGroup(
                emoji=emoji,
                count=len(users),
                reacted=viewer_id is not None and viewer_id in users,
                user_ids=tuple(users),
            )
            for emoji, users in users_by_emoji.items()
        ]

    def aggregate_forest(
        self, forest: Forest, viewer_id: Optional[UserId] = None
    ) -> dict[ReplyId, list[ReactionGroup]]:
        """Aggregate reactions of every node in a forest.

        Args:
            forest: Forest snapshot
            viewer_id: Current viewer, if any

        Returns:
            Mapping of reply ID to its reaction groups
        """
        return {
            node.id: self.aggregate(node.reactions, viewer_id)
            for node in forest.iter_nodes()
        }
