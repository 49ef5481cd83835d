"""Reply tree building service."""

from collections import defaultdict
from typing import Iterable

import logfire

from forum.domain.model.forest import Forest, ReplyNode
from forum.domain.model.reply import ReplyRecord
from forum.domain.value import OrphanPolicy, ReplyId, TopicId

from .base import Service
from .node_locator import NodeLocator


class TreeBuilder(Service):
    """Builds a reply forest from a flat, topic-scoped record list."""

    def __init__(
        self,
        node_locator: NodeLocator,
        orphan_policy: OrphanPolicy = OrphanPolicy.PROMOTE,
    ) -> None:
        """Initialize tree builder.

        Args:
            node_locator: Locator used to walk forests when flattening
            orphan_policy: Placement of replies whose parent is missing
        """
        self.node_locator = node_locator
        self.orphan_policy = orphan_policy

    def build(self, topic_id: TopicId, records: Iterable[ReplyRecord]) -> Forest:
        """Build a forest from flat records.

        Algorithm:
        1. Stable-sort records by created_at
        2. Index records by id (first record wins on duplicate ids)
        3. Link each node under its resolved parent, or make it a root
        4. Break parent cycles by promoting the earliest unreachable node
        5. Apply the orphan policy to replies whose parent is missing

        Args:
            topic_id: Topic the records belong to
            records: Flat reply records in any order

        Returns:
            Forest with children and roots ordered by created_at
        """
        with logfire.span("tree_builder.build", topic_id=str(topic_id)):
            ordered = sorted(records, key=lambda record: record.created_at)

            nodes: dict[ReplyId, ReplyNode] = {}
            for record in ordered:
                if record.topic_id != topic_id:
                    logfire.warn(
                        "Skipping reply from another topic",
                        reply_id=str(record.id),
                        reply_topic_id=str(record.topic_id),
                        topic_id=str(topic_id),
                    )
                    continue
                if record.id in nodes:
                    logfire.warn("Duplicate reply in input", reply_id=str(record.id))
                    continue
                nodes[record.id] = ReplyNode.from_record(record)

            # Arena order is created_at order from here on
            position = {reply_id: index for index, reply_id in enumerate(nodes)}

            children: dict[ReplyId, list[ReplyId]] = defaultdict(list)
            roots: list[ReplyId] = []
            orphans: list[ReplyId] = []
            for node in nodes.values():
                if node.parent_id is None:
                    roots.append(node.id)
                elif node.parent_id in nodes and node.parent_id != node.id:
                    children[node.parent_id].append(node.id)
                else:
                    orphans.append(node.id)
                    roots.append(node.id)

            reached = self._reachable(roots, children)
            for reply_id, node in nodes.items():
                if reply_id in reached:
                    continue
                children[node.parent_id].remove(reply_id)
                roots.append(reply_id)
                reached |= self._reachable([reply_id], children)
                logfire.warn(
                    "Reply cycle broken by promoting reply to root",
                    reply_id=str(reply_id),
                    parent_id=str(node.parent_id),
                )
            roots.sort(key=position.__getitem__)

            if orphans and self.orphan_policy is OrphanPolicy.DROP:
                dropped = self._reachable(orphans, children)
                roots = [root_id for root_id in roots if root_id not in dropped]
                nodes = {k: v for k, v in nodes.items() if k not in dropped}
                logfire.warn(
                    "Dropped orphan replies",
                    topic_id=str(topic_id),
                    orphan_count=len(orphans),
                    dropped_count=len(dropped),
                )
            else:
                for orphan_id in orphans:
                    logfire.warn(
                        "Orphan reply promoted to root",
                        reply_id=str(orphan_id),
                        parent_id=str(nodes[orphan_id].parent_id),
                    )

            for parent_id, child_ids in children.items():
                if parent_id in nodes:
                    nodes[parent_id] = nodes[parent_id].model_copy(
                        update={"children": tuple(child_ids)}
                    )

            forest = Forest(topic_id=topic_id, nodes=nodes, roots=tuple(roots))
            logfire.info(
                "Built reply forest",
                topic_id=str(topic_id),
                reply_count=len(forest),
                root_count=len(forest.roots),
            )
            return forest

    def flatten(self, forest: Forest) -> list[ReplyRecord]:
        """Flatten a forest back into records, depth-first.

        Building from the result yields an equal forest.
        """
        return [node.to_record() for node, _ in self.node_locator.walk(forest)]

    @staticmethod
    def _reachable(
        start_ids: Iterable[ReplyId], children: dict[ReplyId, list[ReplyId]]
    ) -> set[ReplyId]:
        """Collect every id reachable from the start ids through children."""
        seen: set[ReplyId] = set()
        stack = list(start_ids)
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(children.get(current, ()))
        return seen
