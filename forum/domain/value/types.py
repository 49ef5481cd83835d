"""Domain value types for forum threads.

Value objects are immutable and defined by their values, not identity.
"""

from enum import Enum


class UserRole(str, Enum):
    """Role of a reply author at the time the snapshot was taken."""

    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"
    BANNED = "banned"


class ReactionAction(str, Enum):
    """Result of toggling a reaction."""

    ADDED = "added"
    REMOVED = "removed"


class OrphanPolicy(str, Enum):
    """How replies with an unresolvable parent are placed in the tree.

    PROMOTE shows them as top-level replies, DROP leaves them out along
    with their descendants.
    """

    PROMOTE = "promote"
    DROP = "drop"


class ReconcilerState(str, Enum):
    """Lifecycle of a topic subscription."""

    DETACHED = "detached"
    SYNCING = "syncing"
    LIVE = "live"


class ApplyOutcome(str, Enum):
    """What the reconciler did with one inbound event."""

    APPLIED = "applied"
    DUPLICATE = "duplicate"
    MISSING = "missing"
    ORPHAN_DROPPED = "orphan_dropped"
    FOREIGN_TOPIC = "foreign_topic"
    DETACHED = "detached"
