"""Reply forest entity.

A forest is the full reply tree of one topic. Nodes live in an
identifier-indexed arena: each node stores its parent as an id and its
children as an ordered tuple of ids, so structural changes are index
rewrites on a copied arena rather than pointer surgery.
"""

from typing import Iterator, Optional

from pydantic import Field

from forum.domain.model.common import DomainModel
from forum.domain.model.reply import ReplyRecord
from forum.domain.value import ReplyId, TopicId


class ReplyNode(ReplyRecord):
    """Reply placed in a forest.

    `children` holds direct child ids ordered by `created_at` ascending.
    """

    children: tuple[ReplyId, ...] = ()

    @classmethod
    def from_record(cls, record: ReplyRecord) -> "ReplyNode":
        """Materialize a childless node from a record."""
        return cls(
            id=record.id,
            topic_id=record.topic_id,
            parent_id=record.parent_id,
            content=record.content,
            author=record.author,
            created_at=record.created_at,
            reactions=record.reactions,
        )


class Forest(DomainModel):
    """Ordered roots and their descendant trees for one topic.

    Invariants:
    - Every node id is unique (the arena is keyed by id)
    - A node with a resolvable parent appears only in that parent's children
    - Children and roots are ordered by `created_at` ascending
    - Every node is reachable from exactly one root
    """

    topic_id: TopicId
    nodes: dict[ReplyId, ReplyNode] = Field(default_factory=dict)
    roots: tuple[ReplyId, ...] = ()

    @classmethod
    def empty(cls, topic_id: TopicId) -> "Forest":
        """Create a forest with no replies."""
        return cls(topic_id=topic_id)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, reply_id: object) -> bool:
        return reply_id in self.nodes

    def get(self, reply_id: ReplyId) -> Optional[ReplyNode]:
        """Get a node by id."""
        return self.nodes.get(reply_id)

    def root_nodes(self) -> list[ReplyNode]:
        """Top-level nodes in order."""
        return [self.nodes[root_id] for root_id in self.roots]

    def children_of(self, reply_id: ReplyId) -> list[ReplyNode]:
        """Direct children of a node in order (empty when the node is missing)."""
        node = self.nodes.get(reply_id)
        if node is None:
            return []
        return [self.nodes[child_id] for child_id in node.children]

    def iter_nodes(self) -> Iterator[ReplyNode]:
        """Iterate over nodes in arena order (no structural guarantee)."""
        return iter(self.nodes.values())
