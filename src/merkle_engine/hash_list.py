# merkle-engine - hash_list.py
# Copyright (C) 2025 The Axiom Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.
"""Hash List - An insertion-ordered linked list that remembers leaf digests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

from merkle_engine.common import get_logger
from merkle_engine.hash_util import Hasher, get_default_hasher

if TYPE_CHECKING:
    from collections.abc import Iterator

T = TypeVar("T")

logger = get_logger("hash_list")


class ConcurrentModificationError(RuntimeError):
    """Raised when a list changes while it is being iterated."""

    __slots__ = ()


class _Node(Generic[T]):
    """A single link holding an item and its digest."""

    __slots__ = ("data", "hash", "next")

    def __init__(self, data: T, digest: str) -> None:
        self.data = data
        self.hash = digest
        self.next: _Node[T] | None = None


class _HashListIterator(Generic[T]):
    """Fail-fast iterator over a HashLinkedList."""

    __slots__ = ("_current", "_expected_changes", "_owner")

    def __init__(self, owner: HashLinkedList[T]) -> None:
        self._owner = owner
        self._current = owner._head
        self._expected_changes = owner._changes

    def __iter__(self) -> _HashListIterator[T]:
        return self

    def __next__(self) -> T:
        if self._expected_changes != self._owner._changes:
            raise ConcurrentModificationError(
                "HashLinkedList was modified during iteration.",
            )
        if self._current is None:
            raise StopIteration
        data = self._current.data
        self._current = self._current.next
        return data


class HashLinkedList(Generic[T]):
    """A singly linked list that stores every item next to its digest.

    Insertion at either end is O(1) and removal is linear. Any insertion or
    removal invalidates iterators created before it: their next step raises
    ConcurrentModificationError instead of skipping or repeating items.
    The list is not safe for use from several threads at once.
    """

    def __init__(self, hasher: Hasher | None = None) -> None:
        """Initialize an empty list.

        Args:
            hasher: Digest primitive for the stored items. Defaults to the
                hasher described by the environment config.

        """
        self.hasher = hasher or get_default_hasher()
        self._head: _Node[T] | None = None
        self._tail: _Node[T] | None = None
        self._size = 0
        self._changes = 0

    @property
    def size(self) -> int:
        """Number of items in the list."""
        return self._size

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[T]:
        return _HashListIterator(self)

    def __repr__(self) -> str:
        return f"HashLinkedList(size={self._size})"

    def _new_node(self, data: T) -> _Node[T]:
        if data is None:
            raise ValueError("HashLinkedList does not accept None.")
        return _Node(data, self.hasher.data_to_hash(data))

    def add_at_head(self, data: T) -> None:
        """Insert an item before the current first item."""
        node = self._new_node(data)
        node.next = self._head
        self._head = node
        if self._tail is None:
            self._tail = node
        self._size += 1
        self._changes += 1

    def add_at_tail(self, data: T) -> None:
        """Insert an item after the current last item."""
        node = self._new_node(data)
        if self._tail is not None:
            self._tail.next = node
        self._tail = node
        if self._head is None:
            self._head = node
        self._size += 1
        self._changes += 1

    def remove(self, data: T) -> bool:
        """Remove the first item equal to ``data``.

        Returns:
            True if an item was removed, False if none matched.

        """
        if data is None:
            raise ValueError("HashLinkedList does not accept None.")

        previous: _Node[T] | None = None
        current = self._head
        while current is not None:
            if current.data == data:
                if previous is None:
                    self._head = current.next
                else:
                    previous.next = current.next
                if current is self._tail:
                    self._tail = previous
                self._size -= 1
                self._changes += 1
                return True
            previous = current
            current = current.next

        logger.debug(f"remove: no item equal to {data!r}")
        return False

    def _nodes(self) -> Iterator[_Node[T]]:
        expected_changes = self._changes
        current = self._head
        while current is not None:
            if expected_changes != self._changes:
                raise ConcurrentModificationError(
                    "HashLinkedList was modified during iteration.",
                )
            yield current
            current = current.next

    def get_all_hashes(self) -> list[str]:
        """Return the digests of all items in insertion order."""
        return [node.hash for node in self._nodes()]

    def build_nodes_string(self) -> str:
        """Render one ``Data: ..., Hash: ...`` line per item."""
        return "".join(
            f"Data: {node.data}, Hash: {node.hash}\n" for node in self._nodes()
        )
