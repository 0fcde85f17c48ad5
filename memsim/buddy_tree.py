"""Memory partitions kept as a buddy-system binary tree."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Iterator


@dataclass(eq=False)
class TreeNode:
    """A partition of memory; a leaf is free or held by one process."""

    start_address: int
    size: int
    parent: TreeNode | None = field(default=None, repr=False)
    allocated: bool = False
    pid: int = 0
    occupied_size: int = 0
    left: TreeNode | None = field(default=None, repr=False)
    right: TreeNode | None = field(default=None, repr=False)

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    @property
    def children(self) -> tuple[TreeNode, ...]:
        return tuple(child for child in (self.left, self.right) if child is not None)

    def subdivide(self) -> bool:
        """Split a free leaf into two halves; return whether it was split."""
        if not self.is_leaf or self.allocated:
            return False
        half = self.size // 2
        if half == 0:
            return False
        self.left = TreeNode(self.start_address, half, parent=self)
        self.right = TreeNode(self.start_address + half, half, parent=self)
        return True

    def coalesce(self) -> bool:
        """Merge two free leaf children back into this node; return whether merged."""
        if self.is_leaf:
            return False
        left, right = self.left, self.right
        if left is None or right is None:
            return False
        if not (left.is_leaf and right.is_leaf) or left.allocated or right.allocated:
            return False
        self.left = None
        self.right = None
        return True


class BuddyTree:
    """Memory managed by the buddy system."""

    def __init__(self, memory_size: int) -> None:
        self.memory_size = memory_size
        self.root: TreeNode | None = TreeNode(0, memory_size)

    def find_node(self, pid: int, process_size: int) -> TreeNode | None:
        """Find the partition held by ``pid`` by depth-first search.

        Only descends into children large enough to hold ``process_size``.
        """
        if self.root is None:
            return None
        stack = [self.root]
        while stack:
            current = stack.pop()
            if current.size // 2 >= process_size:
                if current.right is not None:
                    stack.append(current.right)
                if current.left is not None:
                    stack.append(current.left)
            if current.allocated and current.pid == pid:
                return current
        return None

    def add(self, pid: int, process_size: int) -> int | None:
        """Place a process; return its address, or None if there is no room.

        Existing free partitions are searched breadth-first; only when none
        fits are leaves split, depth-first.
        """
        if self.root is None:
            return None
        queue: deque[TreeNode] = deque([self.root])
        to_split: list[TreeNode] = []

        while queue or to_split:
            current = queue.popleft() if queue else to_split.pop()

            if not current.allocated:
                if current.size // 2 >= process_size:
                    if current.is_leaf:
                        to_split.append(current)
                    else:
                        queue.extend(current.children)

                if current.is_leaf and current.size // 2 < process_size <= current.size:
                    current.pid = pid
                    current.allocated = True
                    current.occupied_size = process_size
                    return current.start_address

            if not queue and to_split:
                current = to_split.pop()
                current.subdivide()
                if current.right is not None:
                    to_split.append(current.right)
                if current.left is not None:
                    to_split.append(current.left)

        return None

    def remove(self, pid: int, process_size: int) -> int | None:
        """Free the partition of ``pid`` and merge buddies up to the root.

        Returns the freed address, or None if the partition is not found.
        """
        node = self.find_node(pid, process_size)
        if node is None:
            return None
        address = node.start_address
        node.allocated = False
        node.occupied_size = 0
        while node.parent is not None:
            node = node.parent
            node.coalesce()
        return address

    def _walk_leaves(self) -> Iterator[TreeNode]:
        if self.root is None:
            return
        stack = [self.root]
        while stack:
            current = stack.pop()
            if current.is_leaf:
                yield current
            else:
                stack.extend(reversed(current.children))

    def leaves(self) -> list[TreeNode]:
        """The leaves, in address order."""
        return list(self._walk_leaves())

    def free_fragments(self) -> list[int]:
        """Sizes of the runs of contiguous free memory, in address order."""
        fragments = []
        run = 0
        for leaf in self._walk_leaves():
            if not leaf.allocated:
                run += leaf.size
            elif run:
                fragments.append(run)
                run = 0
        if run:
            fragments.append(run)
        return fragments

    def internal_fragments(self) -> list[int]:
        """Unused space inside each allocated partition that has any, in address order."""
        return [
            leaf.size - leaf.occupied_size
            for leaf in self._walk_leaves()
            if leaf.allocated and leaf.size > leaf.occupied_size
        ]

    def format_fragments(self) -> str:
        """The external and internal fragmentation lines."""
        leaves = self.leaves()
        if any(not leaf.allocated for leaf in leaves):
            external = [str(size) for size in self.free_fragments()]
        else:
            external = ["0"]
        internal = [str(size) for size in self.internal_fragments()] or ["0"]
        return (
            "Frag. Ext.: |"
            + "".join(f"{part}|" for part in external)
            + "\nFrag. Int.: |"
            + "".join(f"{part}|" for part in internal)
        )

    def dump(self) -> str:
        """Every node, level by level; a new row starts where the size changes."""
        if self.root is None:
            return ""
        rows: list[str] = []
        row = ""
        row_size = self.root.size
        queue: deque[TreeNode] = deque([self.root])
        while queue:
            current = queue.popleft()
            if current.size != row_size:
                row_size = current.size
                rows.append(row)
                row = ""
            queue.extend(current.children)
            detail = ""
            if current.is_leaf:
                detail = (f": P-{current.pid}" if current.allocated else ": H") + " LEAF"
            end = current.start_address + current.size - 1
            row += f"({current.start_address}-{end}{detail}) "
        rows.append(row)
        return "\n".join(rows)

    def clear(self) -> None:
        """Drop every node."""
        self.root = None