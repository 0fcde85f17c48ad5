"""Memory partitions kept as an ordered list, with circular-fit and worst-fit."""

from __future__ import annotations

from dataclasses import dataclass
from operator import attrgetter
from typing import Iterator


@dataclass(eq=False)
class ListNode:
    """A contiguous partition of memory, free or held by a process."""

    start_address: int
    size: int
    allocated: bool = False
    pid: int = 0


class MemoryList:
    """Memory divided into partitions, in address order."""

    def __init__(self, memory_size: int) -> None:
        self.memory_size = memory_size
        self._nodes: list[ListNode] = [ListNode(0, memory_size)]
        self._last: ListNode | None = None

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[ListNode]:
        return iter(list(self._nodes))

    def _allocate(self, node: ListNode, pid: int, process_size: int) -> ListNode | None:
        """Give ``node`` to ``pid``, splitting off any remainder as a free node."""
        remainder = None
        if process_size < node.size:
            remainder = ListNode(node.start_address + process_size, node.size - process_size)
            node.size = process_size
            self._nodes.insert(self._nodes.index(node) + 1, remainder)
        node.allocated = True
        node.pid = pid
        return remainder

    def add_circular(self, pid: int, process_size: int) -> int | None:
        """Place a process by circular-fit; return its address, or None if no room."""
        if not self._nodes:
            return None
        if self._last is None:
            self._last = self._nodes[0]
        start = self._nodes.index(self._last)
        ring = self._nodes[start:] + self._nodes[:start]
        node = next((n for n in ring if not n.allocated and process_size <= n.size), None)
        if node is None:
            return None
        self._allocate(node, pid, process_size)
        self._last = node
        return node.start_address

    def add_worst(self, pid: int, process_size: int) -> int | None:
        """Place a process in the largest free partition; return its address, or None."""
        free = [n for n in self._nodes if not n.allocated]
        worst = max(free, key=attrgetter("size"), default=None)
        if worst is None or process_size > worst.size:
            return None
        remainder = self._allocate(worst, pid, process_size)
        if remainder is not None:
            self._last = remainder
        return worst.start_address

    def remove(self, pid: int) -> int | None:
        """Free the partition of ``pid``, merging free neighbours.

        Returns the freed address, or None if ``pid`` holds no partition.
        """
        index = next(
            (i for i, n in enumerate(self._nodes) if n.allocated and n.pid == pid),
            None,
        )
        if index is None:
            return None

        node = self._nodes[index]
        address = node.start_address

        if index > 0 and not self._nodes[index - 1].allocated:
            previous = self._nodes[index - 1]
            previous.size += node.size
            del self._nodes[index]
            if self._last is node:
                self._last = previous
            node = previous
            index -= 1

        node.allocated = False

        if index + 1 < len(self._nodes) and not self._nodes[index + 1].allocated:
            following = self._nodes.pop(index + 1)
            node.size += following.size
            if self._last is following:
                self._last = node

        return address

    def free_fragments(self) -> list[int]:
        """Sizes of the runs of contiguous free memory, in address order."""
        fragments = []
        run = 0
        for node in self._nodes:
            if not node.allocated:
                run += node.size
            elif run:
                fragments.append(run)
                run = 0
        if run:
            fragments.append(run)
        return fragments

    def format_fragments(self) -> str:
        """The external fragmentation line."""
        if any(not n.allocated for n in self._nodes):
            parts = [str(size) for size in self.free_fragments()]
        else:
            parts = ["0"]
        return "Frag. Ext.: |" + "".join(f"{part}|" for part in parts)

    def dump(self) -> str:
        """Every partition, from head back round to head."""
        if not self._nodes:
            return "Empty"
        cells = "".join(
            f"{n.start_address}-{n.start_address + n.size - 1}: "
            + (f"P-{n.pid}" if n.allocated else "H")
            + "] -> ["
            for n in self._nodes
        )
        return f"[HEAD {cells}HEAD]"

    def flush(self, memory_size: int) -> None:
        """Drop every partition and start again with one free partition."""
        self.memory_size = memory_size
        self._nodes = [ListNode(0, memory_size)]
        self._last = None

    def clear(self) -> None:
        """Drop every partition."""
        self._nodes.clear()
        self._last = None