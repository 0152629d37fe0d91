"""Sequence set: the ordered chain of data blocks.

Nodes live in an arena owned by the SequenceSet and link to each other
by arena index rather than by reference.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from ..core.errors import InvariantViolation
from ..core.types import RBN, IndexEntry, Key

NO_NODE = -1


@dataclass
class SequenceSetNode:
    """A chain element: one block's locator, its highest key and its links."""

    rbn: RBN
    highest_key: Key
    prev: int = NO_NODE
    next: int = NO_NODE

    def __repr__(self) -> str:
        return f"[Node] rbn={self.rbn} key={self.highest_key}"


class SequenceSet:
    """Doubly-linked chain of blocks ordered by ascending highest key.

    Only ordered append is supported; callers must supply blocks in
    ascending key order.

    Invariants:
        - head.prev and tail.next are NO_NODE
        - the chain is acyclic and ascending by highest_key
        - every node in the arena is reachable from head
    """

    def __init__(self) -> None:
        self._nodes: list[SequenceSetNode] = []
        self._head: int = NO_NODE
        self._tail: int = NO_NODE

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        if self._head == NO_NODE:
            return ""
        return "[Head] " + " -> ".join(str(n.rbn) for n in self) + " [Tail]"

    @property
    def size(self) -> int:
        return len(self._nodes)

    @property
    def head(self) -> SequenceSetNode | None:
        return self._nodes[self._head] if self._head != NO_NODE else None

    @property
    def tail(self) -> SequenceSetNode | None:
        return self._nodes[self._tail] if self._tail != NO_NODE else None

    def node(self, i: int) -> SequenceSetNode:
        """Return the node stored at arena index i."""
        return self._nodes[i]

    def append(self, rbn: RBN, highest_key: Key) -> None:
        """Link a new block after the current tail."""
        index = len(self._nodes)
        new_node = SequenceSetNode(rbn, highest_key)

        if self._head == NO_NODE or self._tail == NO_NODE:
            if self._head != self._tail:
                raise InvariantViolation(f"Half-empty chain: head={self._head} tail={self._tail}")
            self._nodes.append(new_node)
            self._head = self._tail = index
            return

        tail = self._nodes[self._tail]
        if tail.next != NO_NODE:
            raise InvariantViolation(f"Tail node {self._tail} has a next link {tail.next}")
        if highest_key <= tail.highest_key:
            raise InvariantViolation(
                f"Out-of-order append: key {highest_key} after {tail.highest_key}"
            )

        new_node.prev = self._tail
        tail.next = index
        self._nodes.append(new_node)
        self._tail = index

    def __iter__(self) -> Iterator[SequenceSetNode]:
        """Walk the chain from head to tail."""
        current = self._head
        for _ in range(len(self._nodes)):
            if current == NO_NODE:
                return
            node = self._nodes[current]
            yield node
            current = node.next
        if current != NO_NODE:
            raise InvariantViolation("Cycle detected in sequence set")

    def __reversed__(self) -> Iterator[SequenceSetNode]:
        """Walk the chain from tail to head."""
        current = self._tail
        for _ in range(len(self._nodes)):
            if current == NO_NODE:
                return
            node = self._nodes[current]
            yield node
            current = node.prev
        if current != NO_NODE:
            raise InvariantViolation("Cycle detected in sequence set")

    def rbns(self) -> list[RBN]:
        return [node.rbn for node in self]

    def to_entries(self) -> list[IndexEntry]:
        """Return (highest_key, rbn) pairs in chain order."""
        return [IndexEntry(node.highest_key, node.rbn) for node in self]

    def validate(self) -> None:
        """Check every chain invariant, raising InvariantViolation on failure."""
        if not self._nodes:
            if self._head != NO_NODE or self._tail != NO_NODE:
                raise InvariantViolation("Empty chain with head or tail set")
            return

        if self.head.prev != NO_NODE:
            raise InvariantViolation(f"Head has prev link {self.head.prev}")
        if self.tail.next != NO_NODE:
            raise InvariantViolation(f"Tail has next link {self.tail.next}")

        visited = 0
        previous = NO_NODE
        last_key: Key | None = None
        for node in self:
            current = self._head if previous == NO_NODE else self._nodes[previous].next
            if node.prev != previous:
                raise InvariantViolation(f"Node {current} prev={node.prev}, expected {previous}")
            if last_key is not None and node.highest_key <= last_key:
                raise InvariantViolation(f"Chain not ascending at key {node.highest_key}")
            last_key = node.highest_key
            previous = current
            visited += 1

        if previous != self._tail:
            raise InvariantViolation(f"Chain ends at {previous}, tail is {self._tail}")
        if visited != len(self._nodes):
            raise InvariantViolation(f"Only {visited} of {len(self._nodes)} nodes reachable")
