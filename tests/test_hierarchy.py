"""Unit tests for the tree index, cycle detection, traversal and dependency counts."""

import itertools

import pytest

from taskcascade.hierarchy import (
    TreeIndex,
    would_create_circular_dependency,
    get_task_ancestors,
    get_task_descendants,
    get_invalid_parent_ids,
    get_task_children,
    get_dependency_counts,
    are_all_dependencies_complete,
)
from taskcascade.models import Task


@pytest.fixture
def tree(make_tasks):
    """
    1
    ├── 2
    │   ├── 4
    │   └── 5
    │       ├── 6
    │       └── 7
    └── 3
    8 (separate root)
    """
    return make_tasks(
        (1, None, "IN PROGRESS"),
        (2, 1, "IN PROGRESS"),
        (3, 1, "DONE"),
        (4, 2, "COMPLETE"),
        (5, 2, "IN PROGRESS"),
        (6, 5, "DONE"),
        (7, 5, "COMPLETE"),
        (8, None, "IN PROGRESS"),
    )


class TestTreeIndex:
    """Test TreeIndex lookups."""

    def test_lookup(self, tree):
        index = TreeIndex(tree)
        assert len(index) == 8
        assert index.exists(5)
        assert 5 in index
        assert not index.exists(99)
        assert not index.exists(None)
        assert index.get(5).header == "Task 5"
        assert index.get(99) is None
        assert index.parent_of(5) == 2
        assert index.parent_of(1) is None

    def test_children_keep_snapshot_order(self, make_tasks):
        """Test children come back in the order of the input collection."""
        tasks = make_tasks((1, None, "IN PROGRESS"), (9, 1, "DONE"), (3, 1, "DONE"), (5, 1, "DONE"))
        assert [t.id for t in TreeIndex(tasks).children_of(1)] == [9, 3, 5]

    def test_children_of_leaf_is_empty(self, tree):
        assert TreeIndex(tree).children_of(4) == []
        assert TreeIndex(tree).children_of(99) == []

    def test_children_copy(self, tree):
        """Test callers cannot change the index through a returned list."""
        index = TreeIndex(tree)
        index.children_of(1).clear()
        assert [t.id for t in index.children_of(1)] == [2, 3]


class TestCircularDependency:
    """Test would_create_circular_dependency."""

    def test_self_parent(self, tree):
        for task in tree:
            assert would_create_circular_dependency(tree, task.id, task.id) is True

    def test_missing_ids(self, tree):
        assert would_create_circular_dependency(tree, None, 1) is False
        assert would_create_circular_dependency(tree, 1, None) is False
        assert would_create_circular_dependency(tree, None, None) is False

    def test_descendant_as_parent(self, tree):
        """Test moving a task under its own descendant is a cycle."""
        assert would_create_circular_dependency(tree, 1, 7) is True
        assert would_create_circular_dependency(tree, 2, 6) is True
        assert would_create_circular_dependency(tree, 5, 7) is True

    def test_valid_parents(self, tree):
        assert would_create_circular_dependency(tree, 7, 1) is False
        assert would_create_circular_dependency(tree, 2, 3) is False
        assert would_create_circular_dependency(tree, 1, 8) is False

    def test_new_task_placeholder_id(self, tree):
        """Test a not-yet-stored task never forms a cycle."""
        assert would_create_circular_dependency(tree, 9, 7) is False

    def test_unknown_parent(self, tree):
        assert would_create_circular_dependency(tree, 2, 42) is False

    def test_existing_cycle_is_not_blamed_on_edit(self, make_tasks):
        """Test corrupted data with a loop above the parent terminates with False."""
        corrupted = make_tasks((10, 11, "IN PROGRESS"), (11, 10, "IN PROGRESS"), (12, None, "IN PROGRESS"))
        assert would_create_circular_dependency(corrupted, 12, 10) is False

    def test_accepts_prebuilt_index(self, tree):
        assert would_create_circular_dependency(TreeIndex(tree), 1, 7) is True

    def test_accepted_reassignments_stay_acyclic(self, tree):
        """Test every reassignment the detector allows leaves the tree acyclic."""
        ids = [t.id for t in tree]
        for task_id, parent_id in itertools.permutations(ids, 2):
            if would_create_circular_dependency(tree, task_id, parent_id):
                continue
            moved = [
                Task(id=t.id, header=t.header, status=t.status,
                     parent_id=parent_id if t.id == task_id else t.parent_id)
                for t in tree
            ]
            index = TreeIndex(moved)
            for task in moved:
                assert task.id not in get_task_ancestors(index, task.id)
                chain = [task.id, *get_task_ancestors(index, task.id)]
                assert index.parent_of(chain[-1]) is None


class TestAncestorsAndDescendants:
    """Test traversal helpers."""

    def test_ancestors_nearest_first(self, tree):
        assert get_task_ancestors(tree, 7) == [5, 2, 1]
        assert get_task_ancestors(tree, 3) == [1]

    def test_ancestors_of_root_or_missing(self, tree):
        assert get_task_ancestors(tree, 1) == []
        assert get_task_ancestors(tree, 99) == []

    def test_ancestors_stop_on_corrupted_loop(self, make_tasks):
        corrupted = make_tasks((10, 11, "IN PROGRESS"), (11, 12, "IN PROGRESS"), (12, 11, "IN PROGRESS"))
        assert get_task_ancestors(corrupted, 10) == [11, 12]

    def test_descendants_pre_order(self, tree):
        assert get_task_descendants(tree, 1) == [2, 4, 5, 6, 7, 3]
        assert get_task_descendants(tree, 5) == [6, 7]

    def test_descendants_of_leaf(self, tree):
        assert get_task_descendants(tree, 4) == []
        assert get_task_descendants(tree, 99) == []

    def test_ancestor_descendant_duality(self, tree):
        ids = [t.id for t in tree]
        for a, b in itertools.product(ids, ids):
            assert (b in get_task_descendants(tree, a)) == (a in get_task_ancestors(tree, b))

    def test_invalid_parent_ids(self, tree):
        """Test self first, then descendants in pre-order."""
        assert get_invalid_parent_ids(tree, 5) == [5, 6, 7]
        assert get_invalid_parent_ids(tree, 4) == [4]
        assert get_invalid_parent_ids(tree, None) == []

    def test_children(self, tree):
        assert [t.id for t in get_task_children(tree, 2)] == [4, 5]
        assert get_task_children(tree, 3) == []


class TestDependencyCounts:
    """Test get_dependency_counts and are_all_dependencies_complete."""

    def test_counts(self, tree):
        counts = get_dependency_counts(tree, 5)
        assert (counts.total, counts.done, counts.complete) == (2, 1, 1)

        counts = get_dependency_counts(tree, 1)
        assert (counts.total, counts.done, counts.complete) == (2, 1, 0)

    def test_counts_without_children(self, tree):
        counts = get_dependency_counts(tree, 4)
        assert (counts.total, counts.done, counts.complete) == (0, 0, 0)

    def test_no_children_is_never_all_complete(self, tree):
        assert are_all_dependencies_complete(tree, 4) is False
        assert are_all_dependencies_complete(tree, 99) is False

    def test_all_complete(self, make_tasks):
        tasks = make_tasks((1, None, "DONE"), (2, 1, "COMPLETE"), (3, 1, "COMPLETE"))
        assert are_all_dependencies_complete(tasks, 1) is True

    def test_done_child_is_not_complete(self, tree):
        assert are_all_dependencies_complete(tree, 5) is False

    def test_unknown_status_blocks(self, make_tasks):
        tasks = make_tasks((1, None, "DONE"), (2, 1, "COMPLETE"), (3, 1, "BLOCKED"))
        assert are_all_dependencies_complete(tasks, 1) is False
        counts = get_dependency_counts(tasks, 1)
        assert (counts.total, counts.done, counts.complete) == (2, 0, 1)
