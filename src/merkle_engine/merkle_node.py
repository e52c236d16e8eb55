# merkle-engine - merkle_node.py
# Copyright (C) 2025 The Axiom Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.
"""A single node of a Merkle tree."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, eq=False)
class MerkleNode:
    """An immutable tree node holding a digest and up to two children.

    A node without children is a leaf. Nodes compare equal when their digests
    do, whatever lies below them.
    """

    hash: str
    left: MerkleNode | None = field(default=None, repr=False)
    right: MerkleNode | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Reject a node without a digest."""
        if self.hash is None:
            raise ValueError("A MerkleNode needs a hash.")

    def is_leaf(self) -> bool:
        """Return True when the node has no children."""
        return self.left is None and self.right is None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MerkleNode):
            return NotImplemented
        return self.hash == other.hash

    def __hash__(self) -> int:
        return hash(self.hash)

    def __str__(self) -> str:
        return self.hash
