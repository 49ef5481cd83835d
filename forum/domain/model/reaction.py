"""Reaction tally projection."""

from forum.domain.value import UserId
from forum.domain.value.common import ValueObject


class ReactionGroup(ValueObject):
    """Reactions to one reply sharing the same emoji.

    `count` is the number of distinct users; `reacted` tells whether the
    viewer is among them.
    """

    emoji: str
    count: int
    reacted: bool = False
    user_ids: tuple[UserId, ...] = ()
