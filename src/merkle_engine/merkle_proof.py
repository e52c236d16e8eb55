# merkle-engine - merkle_proof.py
# Copyright (C) 2025 The Axiom Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.
"""Merkle Proof - Compact evidence that an item or branch belongs to a tree."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from merkle_engine.common import get_logger
from merkle_engine.hash_list import HashLinkedList
from merkle_engine.hash_util import Hasher, get_default_hasher

if TYPE_CHECKING:
    from collections.abc import Iterator

    from merkle_engine.merkle_node import MerkleNode

logger = get_logger("merkle_proof")


class Side(str, enum.Enum):
    """Where a sibling digest goes relative to the running digest."""

    LEFT = "L"
    RIGHT = "R"


@dataclass(frozen=True)
class MerkleProofHash:
    """One proof step: a sibling digest and the side it is joined on.

    An empty ``hash`` stands for a missing sibling; it is still joined to the
    running digest, which reproduces the promotion of a lone node.
    """

    hash: str
    is_left: bool

    def __post_init__(self) -> None:
        """Reject a step without a digest."""
        if self.hash is None:
            raise ValueError("A proof step needs a hash.")

    @property
    def side(self) -> Side:
        """The side of the running digest the sibling is joined on."""
        return Side.LEFT if self.is_left else Side.RIGHT

    def __str__(self) -> str:
        return self.hash + self.side.value


class MerkleProof:
    """An ordered list of sibling digests leading up to a root digest.

    The proof is built by appending steps with `add_hash` until it holds
    ``length`` of them; after that it is complete and further steps are
    refused. Verification folds the steps over the digest of a candidate and
    compares the result with the root digest.
    """

    def __init__(
        self,
        root_hash: str,
        length: int,
        hasher: Hasher | None = None,
    ) -> None:
        """Initialize an empty proof.

        Args:
            root_hash: Digest of the root of the tree the proof refers to.
            length: Maximum number of steps the proof will hold.
            hasher: Digest primitive of that tree.

        Raises:
            ValueError: If root_hash is None or length is negative.

        """
        if root_hash is None:
            raise ValueError("A MerkleProof needs a root hash.")
        if length < 0:
            raise ValueError(f"Proof length cannot be negative: {length}")

        self.hasher = hasher or get_default_hasher()
        self._root_hash = root_hash
        self._length = length
        self._proof: HashLinkedList[MerkleProofHash] = HashLinkedList(
            self.hasher,
        )

    @property
    def root_hash(self) -> str:
        """Digest of the root the proof leads to."""
        return self._root_hash

    @property
    def length(self) -> int:
        """Maximum number of steps, fixed at construction."""
        return self._length

    @property
    def is_complete(self) -> bool:
        """True once every step has been added."""
        return self._proof.size >= self._length

    def __len__(self) -> int:
        return self._proof.size

    def __iter__(self) -> Iterator[MerkleProofHash]:
        return iter(self._proof)

    def __repr__(self) -> str:
        return (
            f"MerkleProof(root_hash={self._root_hash!r}, "
            f"steps={self._proof.size}/{self._length})"
        )

    def add_hash(self, digest: str, is_left: bool) -> bool:
        """Append a step to the proof.

        Args:
            digest: Sibling digest, or an empty string for a missing sibling.
            is_left: True if the sibling is joined before the running digest.

        Returns:
            True if the step was added, False if the proof is already complete.

        """
        if digest is None:
            raise ValueError("A proof step needs a hash.")
        if self.is_complete:
            logger.debug(
                f"proof already holds {self._length} steps, step refused",
            )
            return False
        self._proof.add_at_tail(MerkleProofHash(digest, is_left))
        return True

    def _fold(self, current_hash: str) -> bool:
        for step in self._proof:
            if step.is_left:
                current_hash = self.hasher.combine(step.hash, current_hash)
            else:
                current_hash = self.hasher.combine(current_hash, step.hash)
        return current_hash == self._root_hash

    def prove_validity_of_data(self, data: Any) -> bool:
        """Check that an item is covered by this proof.

        Raises:
            ValueError: If data is None.

        """
        if data is None:
            raise ValueError("Cannot prove the validity of None.")
        valid = self._fold(self.hasher.data_to_hash(data))
        logger.debug(f"data proof checked against {self._root_hash}: {valid}")
        return valid

    def prove_validity_of_branch(self, branch: MerkleNode) -> bool:
        """Check that a branch, i.e. a block of items, is covered by this proof.

        Raises:
            ValueError: If branch is None.

        """
        if branch is None:
            raise ValueError("Cannot prove the validity of a None branch.")
        valid = self._fold(branch.hash)
        logger.debug(
            f"branch proof checked against {self._root_hash}: {valid}",
        )
        return valid
