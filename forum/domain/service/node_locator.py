"""Node lookup and traversal over a reply forest."""

from typing import Iterator, Optional

from forum.domain.model.forest import Forest, ReplyNode
from forum.domain.value import ReplyId

from .base import Service


class NodeLocator(Service):
    """Finds and walks nodes of a forest.

    All methods are pure and safe to call on any forest snapshot.
    """

    def find(self, forest: Forest, reply_id: ReplyId) -> Optional[ReplyNode]:
        """Find a node anywhere in the forest.

        The arena is keyed by id and ids are unique, so the lookup is the
        single structural match.

        Args:
            forest: Forest to search
            reply_id: Target reply ID

        Returns:
            The node if present, None otherwise
        """
        return forest.get(reply_id)

    def walk(self, forest: Forest) -> Iterator[tuple[ReplyNode, int]]:
        """Depth-first, pre-order walk over roots then children.

        Yields:
            (node, depth) pairs, depth 0 for roots
        """
        stack = [(root_id, 0) for root_id in reversed(forest.roots)]
        while stack:
            reply_id, depth = stack.pop()
            node = forest.nodes[reply_id]
            yield node, depth
            stack.extend((child_id, depth + 1) for child_id in reversed(node.children))

    def subtree_ids(self, forest: Forest, reply_id: ReplyId) -> list[ReplyId]:
        """List a node and all of its descendants (pre-order).

        Returns:
            Reply IDs of the subtree, empty if the node is missing
        """
        if reply_id not in forest:
            return []

        ids = []
        stack = [reply_id]
        while stack:
            current = stack.pop()
            ids.append(current)
            stack.extend(reversed(forest.nodes[current].children))
        return ids

    def ancestors(self, forest: Forest, reply_id: ReplyId) -> list[ReplyId]:
        """List the structural parent chain of a node, nearest first.

        Follows where the node actually sits, not what its record claims:
        the chain ends at the node's root, so any root (including a
        promoted orphan) has an empty chain.
        """
        roots = set(forest.roots)
        chain = []
        node = forest.get(reply_id)
        while node is not None and node.id not in roots and node.parent_id is not None:
            parent = forest.get(node.parent_id)
            if parent is None:
                break
            chain.append(parent.id)
            node = parent
        return chain
