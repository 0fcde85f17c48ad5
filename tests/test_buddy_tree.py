import pytest

from memsim.buddy_tree import BuddyTree, TreeNode


def _allocated(tree):
    return [leaf for leaf in tree.leaves() if leaf.allocated]


def _assert_consistent(tree):
    leaves = tree.leaves()
    assert sum(leaf.size for leaf in leaves) == tree.memory_size
    position = 0
    for leaf in leaves:
        assert leaf.start_address == position
        position += leaf.size
    for leaf in leaves:
        if leaf.allocated:
            assert leaf.size // 2 < leaf.occupied_size <= leaf.size


def test_subdivide_splits_free_leaf_in_halves():
    node = TreeNode(0, 8)
    assert node.subdivide() is True
    assert not node.is_leaf
    assert node.left.size == 4 and node.right.size == 4
    assert node.left.start_address == 0
    assert node.right.start_address == 4
    assert node.left.parent is node and node.right.parent is node


def test_subdivide_refuses_non_leaf_allocated_and_unit():
    node = TreeNode(0, 8)
    node.subdivide()
    assert node.subdivide() is False
    assert TreeNode(0, 1).subdivide() is False
    held = TreeNode(0, 8, allocated=True)
    assert held.subdivide() is False
    assert held.is_leaf


def test_coalesce():
    node = TreeNode(0, 8)
    assert node.coalesce() is False
    node.subdivide()
    node.left.allocated = True
    assert node.coalesce() is False
    node.left.allocated = False
    assert node.coalesce() is True
    assert node.is_leaf


def test_coalesce_refuses_when_child_has_children():
    node = TreeNode(0, 8)
    node.subdivide()
    node.left.subdivide()
    assert node.coalesce() is False
    assert not node.is_leaf


def test_fresh_tree_output():
    tree = BuddyTree(1024)
    assert tree.free_fragments() == [1024]
    assert tree.internal_fragments() == []
    assert tree.format_fragments() == "Frag. Ext.: |1024|\nFrag. Int.: |0|"


def test_whole_memory_allocation_round_trip():
    tree = BuddyTree(1024)
    assert tree.add(1, 1024) == 0
    assert tree.format_fragments() == "Frag. Ext.: |0|\nFrag. Int.: |0|"
    assert tree.add(2, 1) is None
    assert tree.remove(1, 1024) == 0
    assert tree.free_fragments() == [1024]


def test_too_large_process_is_refused():
    tree = BuddyTree(64)
    assert tree.add(1, 65) is None
    assert tree.free_fragments() == [64]


def test_partition_is_smallest_power_of_two_that_fits():
    tree = BuddyTree(1024)
    address = tree.add(7, 100)
    node = tree.find_node(7, 100)
    assert node is not None
    assert node.start_address == address
    assert node.size // 2 < 100 <= node.size
    assert node.occupied_size == 100
    assert tree.internal_fragments() == [node.size - 100]
    _assert_consistent(tree)


@pytest.mark.parametrize("sizes", [[100, 100, 300], [1, 2, 3, 4, 5], [512, 256, 128, 64], [33, 17, 200, 90, 5]])
def test_allocations_never_overlap(sizes):
    tree = BuddyTree(1024)
    for pid, size in enumerate(sizes):
        assert tree.add(pid, size) is not None
    _assert_consistent(tree)
    assert sorted(leaf.pid for leaf in _allocated(tree)) == list(range(len(sizes)))


@pytest.mark.parametrize("sizes", [[100, 100, 300], [1, 2, 3, 4, 5], [33, 17, 200, 90, 5]])
def test_removing_everything_coalesces_back_to_root(sizes):
    tree = BuddyTree(1024)
    addresses = {pid: tree.add(pid, size) for pid, size in enumerate(sizes)}
    for pid, size in enumerate(sizes):
        assert tree.remove(pid, size) == addresses[pid]
    assert tree.root.is_leaf
    assert len(tree.leaves()) == 1
    assert tree.free_fragments() == [1024]


def test_remove_unknown_pid():
    tree = BuddyTree(256)
    tree.add(1, 10)
    assert tree.remove(2, 10) is None
    assert [leaf.pid for leaf in _allocated(tree)] == [1]


def test_remove_twice_fails_second_time():
    tree = BuddyTree(256)
    address = tree.add(1, 10)
    assert tree.remove(1, 10) == address
    assert tree.remove(1, 10) is None


def test_freed_partition_is_reused():
    tree = BuddyTree(1024)
    first = tree.add(1, 100)
    tree.add(2, 100)
    tree.remove(1, 100)
    assert tree.add(3, 100) == first


def test_free_fragments_plus_allocations_cover_memory():
    tree = BuddyTree(512)
    tree.add(1, 60)
    tree.add(2, 130)
    tree.add(3, 20)
    held = sum(leaf.size for leaf in _allocated(tree))
    assert sum(tree.free_fragments()) + held == 512


def test_find_node_missing():
    tree = BuddyTree(128)
    assert tree.find_node(1, 10) is None


def test_dump_fresh_and_split():
    tree = BuddyTree(8)
    assert tree.dump() == "(0-7: H LEAF) "
    tree.add(1, 4)
    assert tree.dump() == "(0-7) \n(0-3: P-1 LEAF) (4-7: H LEAF) "


def test_dump_whole_allocation():
    tree = BuddyTree(8)
    tree.add(5, 8)
    assert tree.dump() == "(0-7: P-5 LEAF) "


def test_clear_empties_tree():
    tree = BuddyTree(64)
    tree.add(1, 10)
    tree.clear()
    assert tree.leaves() == []
    assert tree.add(2, 10) is None
    assert tree.find_node(1, 10) is None
    assert tree.dump() == ""