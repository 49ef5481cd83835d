"""Structural changes to a reply forest."""

from bisect import bisect_right

import logfire

from forum.domain.model.forest import Forest, ReplyNode
from forum.domain.model.reply import Reaction, ReplyRecord
from forum.domain.value import OrphanPolicy, ReplyId

from .base import Service
from .node_locator import NodeLocator


class TreeMutator(Service):
    """Applies single structural changes to a forest.

    Every operation is copy-on-write: the input forest is never modified and
    a no-op returns the input instance itself, so callers can detect
    "nothing changed" with an identity check.
    """

    def __init__(
        self,
        node_locator: NodeLocator,
        orphan_policy: OrphanPolicy = OrphanPolicy.PROMOTE,
        adopt_orphans: bool = True,
    ) -> None:
        """Initialize tree mutator.

        Args:
            node_locator: Locator used for existence checks and traversal
            orphan_policy: Placement of replies whose parent is missing
            adopt_orphans: Re-nest promoted orphans when their parent arrives
        """
        self.node_locator = node_locator
        self.orphan_policy = orphan_policy
        self.adopt_orphans = adopt_orphans

    def insert(self, forest: Forest, record: ReplyRecord) -> Forest:
        """Insert a reply as a new leaf.

        The reply goes into its parent's children, or the roots if it has
        no parent or the parent is missing, at its created_at position
        (after siblings with the same timestamp).

        Args:
            forest: Current forest
            record: Reply to insert (children, if any, are ignored)

        Returns:
            New forest, or `forest` itself if the id is already present or
            an orphan was dropped
        """
        if self.node_locator.find(forest, record.id) is not None:
            return forest

        node = ReplyNode.from_record(record)
        nodes = dict(forest.nodes)
        roots = forest.roots

        parent = None
        if node.parent_id is not None:
            parent = nodes.get(node.parent_id)
            if parent is None:
                if self.orphan_policy is OrphanPolicy.DROP:
                    logfire.warn(
                        "Dropped orphan reply",
                        reply_id=str(node.id),
                        parent_id=str(node.parent_id),
                    )
                    return forest
                logfire.warn(
                    "Orphan reply promoted to root",
                    reply_id=str(node.id),
                    parent_id=str(node.parent_id),
                )

        nodes[node.id] = node
        if parent is None:
            roots = self._insert_sorted(roots, node, nodes)
        else:
            nodes[parent.id] = parent.model_copy(
                update={"children": self._insert_sorted(parent.children, node, nodes)}
            )

        if self.adopt_orphans:
            roots = self._adopt(node.id, nodes, roots, forest)

        return forest.model_copy(update={"nodes": nodes, "roots": roots})

    def remove(self, forest: Forest, reply_id: ReplyId) -> Forest:
        """Remove a reply and its entire subtree.

        Promoted orphans claiming any removed reply as parent are removed as
        well, so no remaining node points at a removed id.

        Args:
            forest: Current forest
            reply_id: Reply to remove

        Returns:
            New forest, or `forest` itself if the reply is not present
        """
        target = self.node_locator.find(forest, reply_id)
        if target is None:
            return forest

        doomed = set(self.node_locator.subtree_ids(forest, reply_id))
        changed = True
        while changed:
            changed = False
            for root_id in forest.roots:
                if root_id in doomed:
                    continue
                if forest.nodes[root_id].parent_id in doomed:
                    doomed.update(self.node_locator.subtree_ids(forest, root_id))
                    changed = True

        nodes = {k: v for k, v in forest.nodes.items() if k not in doomed}
        roots = tuple(root_id for root_id in forest.roots if root_id not in doomed)

        if reply_id not in forest.roots and target.parent_id in nodes:
            parent = nodes[target.parent_id]
            nodes[parent.id] = parent.model_copy(
                update={
                    "children": tuple(c for c in parent.children if c != reply_id)
                }
            )

        logfire.debug(
            "Removed reply subtree", reply_id=str(reply_id), removed_count=len(doomed)
        )
        return forest.model_copy(update={"nodes": nodes, "roots": roots})

    def replace_reactions(
        self, forest: Forest, reply_id: ReplyId, reactions: tuple[Reaction, ...]
    ) -> Forest:
        """Replace one node's reactions without touching the tree shape.

        Returns:
            New forest, or `forest` itself if the node is missing or the
            reactions are unchanged
        """
        node = self.node_locator.find(forest, reply_id)
        if node is None or node.reactions == reactions:
            return forest

        # Rebuild through validation to collapse duplicate pairs
        updated = ReplyNode(**{**dict(node), "reactions": reactions})
        if updated.reactions == node.reactions:
            return forest

        nodes = dict(forest.nodes)
        nodes[reply_id] = updated
        return forest.model_copy(update={"nodes": nodes})

    def _adopt(
        self,
        parent_id: ReplyId,
        nodes: dict[ReplyId, ReplyNode],
        roots: tuple[ReplyId, ...],
        forest: Forest,
    ) -> tuple[ReplyId, ...]:
        """Move promoted orphans waiting for `parent_id` under it.

        Orphans that are the new node's own ancestors stay roots, otherwise
        adoption would close a cycle. Mutates `nodes` (a private copy) and
        returns the new roots.
        """
        waiting = [
            root_id
            for root_id in roots
            if root_id != parent_id and nodes[root_id].parent_id == parent_id
        ]
        if not waiting:
            return roots

        # Structural ancestors of the new node in the forest being built
        ancestors = set(
            self.node_locator.ancestors(
                forest.model_copy(update={"nodes": nodes, "roots": roots}), parent_id
            )
        )
        adopted = [root_id for root_id in waiting if root_id not in ancestors]
        if not adopted:
            return roots

        parent = nodes[parent_id]
        children = parent.children
        for child_id in adopted:
            children = self._insert_sorted(children, nodes[child_id], nodes)
        nodes[parent_id] = parent.model_copy(update={"children": children})

        logfire.info(
            "Adopted orphan replies",
            parent_id=str(parent_id),
            adopted=[str(child_id) for child_id in adopted],
        )
        return tuple(root_id for root_id in roots if root_id not in adopted)

    @staticmethod
    def _insert_sorted(
        siblings: tuple[ReplyId, ...],
        node: ReplyNode,
        nodes: dict[ReplyId, ReplyNode],
    ) -> tuple[ReplyId, ...]:
        """Insert `node.id` into siblings after every sibling not newer than it."""
        index = bisect_right(
            siblings, node.created_at, key=lambda sibling_id: nodes[sibling_id].created_at
        )
        return siblings[:index] + (node.id,) + siblings[index:]
