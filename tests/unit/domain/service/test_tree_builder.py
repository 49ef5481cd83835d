"""Unit tests for TreeBuilder."""

import random
from uuid import uuid4

import pytest

from forum.domain.model import Forest
from forum.domain.service import NodeLocator, TreeBuilder
from forum.domain.value import OrphanPolicy, TopicId
from tests.conftest import make_record, reply_id_of
from tests.harness import create_env_fixture

# Unit test fixture - everything in memory
unit_env = create_env_fixture()


def assert_well_formed(forest: Forest) -> None:
    """Check ids unique, single placement, acyclic and sorted siblings."""
    placements: dict = {}
    for root_id in forest.roots:
        placements[root_id] = placements.get(root_id, 0) + 1
    for node in forest.nodes.values():
        for child_id in node.children:
            placements[child_id] = placements.get(child_id, 0) + 1
            assert forest.nodes[child_id].parent_id == node.id

    # Every node placed exactly once
    assert placements == {reply_id: 1 for reply_id in forest.nodes}

    # Every node reachable from the roots
    reached = [node.id for node, _ in NodeLocator().walk(forest)]
    assert sorted(reached) == sorted(forest.nodes)

    # Siblings sorted by created_at
    sibling_lists = [forest.roots] + [n.children for n in forest.nodes.values()]
    for siblings in sibling_lists:
        times = [forest.nodes[s].created_at for s in siblings]
        assert times == sorted(times)


class TestBuild:
    """Tests for build method."""

    @pytest.mark.asyncio
    async def test_fetch_result_becomes_one_root_with_ordered_children(self, unit_env):
        """[1, 2->1, 3->1] builds one root with children [2, 3]."""
        # Arrange
        tree_builder = await unit_env.get(TreeBuilder)
        topic_id = TopicId(uuid4())
        records = [
            make_record(topic_id, reply_id=1, minutes=0),
            make_record(topic_id, reply_id=2, parent_id=1, minutes=1),
            make_record(topic_id, reply_id=3, parent_id=1, minutes=2),
        ]

        # Act
        forest = tree_builder.build(topic_id, records)

        # Assert
        assert forest.roots == (reply_id_of(1),)
        assert forest.nodes[reply_id_of(1)].children == (reply_id_of(2), reply_id_of(3))
        assert len(forest) == 3
        assert_well_formed(forest)

    @pytest.mark.asyncio
    async def test_unsorted_input_is_ordered_by_created_at(self, unit_env):
        """Input order does not matter, creation time does."""
        tree_builder = await unit_env.get(TreeBuilder)
        topic_id = TopicId(uuid4())
        records = [
            make_record(topic_id, reply_id=4, parent_id=1, minutes=9),
            make_record(topic_id, reply_id=2, minutes=5),
            make_record(topic_id, reply_id=3, parent_id=1, minutes=3),
            make_record(topic_id, reply_id=1, minutes=1),
        ]

        forest = tree_builder.build(topic_id, records)

        assert forest.roots == (reply_id_of(1), reply_id_of(2))
        assert forest.nodes[reply_id_of(1)].children == (reply_id_of(3), reply_id_of(4))
        assert_well_formed(forest)

    @pytest.mark.asyncio
    async def test_equal_timestamps_keep_input_order(self, unit_env):
        """The sort is stable."""
        tree_builder = await unit_env.get(TreeBuilder)
        topic_id = TopicId(uuid4())
        records = [
            make_record(topic_id, reply_id=7, minutes=0),
            make_record(topic_id, reply_id=3, minutes=0),
            make_record(topic_id, reply_id=5, minutes=0),
        ]

        forest = tree_builder.build(topic_id, records)

        assert forest.roots == (reply_id_of(7), reply_id_of(3), reply_id_of(5))

    @pytest.mark.asyncio
    async def test_empty_input_builds_empty_forest(self, unit_env):
        """No records, no nodes."""
        tree_builder = await unit_env.get(TreeBuilder)
        topic_id = TopicId(uuid4())

        forest = tree_builder.build(topic_id, [])

        assert forest == Forest.empty(topic_id)

    @pytest.mark.asyncio
    async def test_orphan_is_promoted_to_root(self, unit_env):
        """A reply whose parent is missing shows up at the top level."""
        tree_builder = await unit_env.get(TreeBuilder)
        topic_id = TopicId(uuid4())
        records = [
            make_record(topic_id, reply_id=1, minutes=0),
            make_record(topic_id, reply_id=9, parent_id=404, minutes=1),
            make_record(topic_id, reply_id=10, parent_id=9, minutes=2),
        ]

        forest = tree_builder.build(topic_id, records)

        assert forest.roots == (reply_id_of(1), reply_id_of(9))
        assert forest.nodes[reply_id_of(9)].children == (reply_id_of(10),)
        # The record keeps its claimed parent
        assert forest.nodes[reply_id_of(9)].parent_id == reply_id_of(404)

    def test_drop_policy_removes_orphans_and_their_descendants(self):
        """Under DROP, orphans and everything below them are left out."""
        tree_builder = TreeBuilder(NodeLocator(), orphan_policy=OrphanPolicy.DROP)
        topic_id = TopicId(uuid4())
        records = [
            make_record(topic_id, reply_id=1, minutes=0),
            make_record(topic_id, reply_id=9, parent_id=404, minutes=1),
            make_record(topic_id, reply_id=10, parent_id=9, minutes=2),
            make_record(topic_id, reply_id=2, parent_id=1, minutes=3),
        ]

        forest = tree_builder.build(topic_id, records)

        assert set(forest.nodes) == {reply_id_of(1), reply_id_of(2)}
        assert forest.roots == (reply_id_of(1),)
        assert_well_formed(forest)

    @pytest.mark.asyncio
    async def test_duplicate_ids_keep_first_record(self, unit_env):
        """The earliest record with a given id wins."""
        tree_builder = await unit_env.get(TreeBuilder)
        topic_id = TopicId(uuid4())
        records = [
            make_record(topic_id, reply_id=1, minutes=0, content="first"),
            make_record(topic_id, reply_id=1, minutes=4, content="second"),
        ]

        forest = tree_builder.build(topic_id, records)

        assert len(forest) == 1
        assert forest.nodes[reply_id_of(1)].content == "first"

    @pytest.mark.asyncio
    async def test_records_from_other_topics_are_skipped(self, unit_env):
        """The forest only holds replies of its own topic."""
        tree_builder = await unit_env.get(TreeBuilder)
        topic_id = TopicId(uuid4())
        records = [
            make_record(topic_id, reply_id=1),
            make_record(TopicId(uuid4()), reply_id=2),
        ]

        forest = tree_builder.build(topic_id, records)

        assert list(forest.nodes) == [reply_id_of(1)]

    @pytest.mark.asyncio
    async def test_parent_cycle_is_broken_at_earliest_reply(self, unit_env):
        """1 -> 2 -> 1 becomes root 1 with child 2."""
        tree_builder = await unit_env.get(TreeBuilder)
        topic_id = TopicId(uuid4())
        records = [
            make_record(topic_id, reply_id=1, parent_id=2, minutes=0),
            make_record(topic_id, reply_id=2, parent_id=1, minutes=1),
            make_record(topic_id, reply_id=3, minutes=2),
        ]

        forest = tree_builder.build(topic_id, records)

        assert forest.roots == (reply_id_of(1), reply_id_of(3))
        assert forest.nodes[reply_id_of(1)].children == (reply_id_of(2),)
        assert_well_formed(forest)

    @pytest.mark.asyncio
    async def test_self_parented_reply_is_a_root(self, unit_env):
        """A reply naming itself as parent cannot nest."""
        tree_builder = await unit_env.get(TreeBuilder)
        topic_id = TopicId(uuid4())

        forest = tree_builder.build(
            topic_id, [make_record(topic_id, reply_id=1, parent_id=1)]
        )

        assert forest.roots == (reply_id_of(1),)
        assert forest.nodes[reply_id_of(1)].children == ()

    @pytest.mark.asyncio
    async def test_random_inputs_are_well_formed(self, unit_env):
        """Whatever the parent links, the forest satisfies its invariants."""
        tree_builder = await unit_env.get(TreeBuilder)
        rng = random.Random(20250301)

        for _ in range(25):
            topic_id = TopicId(uuid4())
            size = rng.randint(1, 30)
            records = [
                make_record(
                    topic_id,
                    reply_id=n,
                    parent_id=rng.choice([None, rng.randint(1, size + 5)]),
                    minutes=rng.randint(0, 10),
                )
                for n in range(1, size + 1)
            ]
            rng.shuffle(records)

            forest = tree_builder.build(topic_id, records)

            assert len(forest) == size
            assert_well_formed(forest)


class TestFlatten:
    """Tests for flatten method."""

    @pytest.mark.asyncio
    async def test_flatten_is_depth_first(self, unit_env):
        """Records come back parent first, then its subtree."""
        tree_builder = await unit_env.get(TreeBuilder)
        topic_id = TopicId(uuid4())
        forest = tree_builder.build(
            topic_id,
            [
                make_record(topic_id, reply_id=1, minutes=0),
                make_record(topic_id, reply_id=2, minutes=1),
                make_record(topic_id, reply_id=3, parent_id=1, minutes=2),
            ],
        )

        records = tree_builder.flatten(forest)

        assert [r.id for r in records] == [reply_id_of(1), reply_id_of(3), reply_id_of(2)]

    @pytest.mark.asyncio
    async def test_rebuilding_flattened_forest_is_a_fixpoint(self, unit_env):
        """build(flatten(F)) == F, including orphans and broken cycles."""
        tree_builder = await unit_env.get(TreeBuilder)
        rng = random.Random(7)

        for _ in range(25):
            topic_id = TopicId(uuid4())
            size = rng.randint(1, 25)
            records = [
                make_record(
                    topic_id,
                    reply_id=n,
                    parent_id=rng.choice([None, rng.randint(1, size + 3)]),
                    minutes=rng.randint(0, 6),
                )
                for n in range(1, size + 1)
            ]
            forest = tree_builder.build(topic_id, records)

            rebuilt = tree_builder.build(topic_id, tree_builder.flatten(forest))

            assert rebuilt == forest
