# merkle-engine - merkle.py
# Copyright (C) 2025 The Axiom Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.
"""A Merkle Tree engine for validating data and generating inclusion proofs."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Generic, TypeVar

from merkle_engine.common import EMPTY_HASH, NOT_FOUND, get_logger
from merkle_engine.hash_util import Hasher, get_default_hasher
from merkle_engine.merkle_node import MerkleNode
from merkle_engine.merkle_proof import MerkleProof, MerkleProofHash

if TYPE_CHECKING:
    from collections.abc import Iterable

T = TypeVar("T")

logger = get_logger("merkle")


class Combine(enum.Enum):
    """How a parent node is formed from the level below it."""

    PAIRED = "paired"
    SOLO = "solo"


def _parent_of(
    hasher: Hasher,
    mode: Combine,
    left: MerkleNode,
    right: MerkleNode | None = None,
) -> MerkleNode:
    """Build the parent of one or two adjacent nodes."""
    if mode is Combine.PAIRED and right is not None:
        return MerkleNode(hasher.combine(left.hash, right.hash), left, right)
    if mode is Combine.SOLO and right is None:
        # --- A lone node is rehashed on its own, never duplicated ---
        return MerkleNode(hasher.combine(left.hash, EMPTY_HASH), left, None)
    raise ValueError(f"{mode.value} parent cannot have right child {right!r}")


def _build_next_level(
    hasher: Hasher,
    level: list[MerkleNode],
) -> list[MerkleNode]:
    """Fold a level pairwise, left to right, into its parents."""
    next_level: list[MerkleNode] = []
    for i in range(0, len(level), 2):
        if i + 1 < len(level):
            parent = _parent_of(
                hasher,
                Combine.PAIRED,
                level[i],
                level[i + 1],
            )
        else:
            parent = _parent_of(hasher, Combine.SOLO, level[i])
        next_level.append(parent)
    return next_level


class MerkleTree(Generic[T]):
    """A binary hash tree over an ordered sequence of items.

    Leaves hold the digests of the items in their original order. Each level
    above pairs adjacent nodes and hashes their concatenated digests; a node
    left without a partner at the end of a level gets a parent of its own
    whose digest is its digest hashed alone. The shape of the tree therefore
    depends only on the number of items.
    """

    def __init__(
        self,
        data: Iterable[T],
        hasher: Hasher | None = None,
    ) -> None:
        """Initialize the MerkleTree from an ordered sequence of items.

        Args:
            data: The items, usually a HashLinkedList. Item 0 becomes the
                leftmost leaf.
            hasher: Digest primitive. Defaults to the hasher of ``data`` when
                it has one, then to the one described by the environment.

        Raises:
            ValueError: If data is None or empty.

        """
        if data is None:
            raise ValueError("Cannot create a Merkle Tree from None.")

        self._hasher: Hasher = (
            hasher or getattr(data, "hasher", None) or get_default_hasher()
        )
        leaves = [
            MerkleNode(self._hasher.data_to_hash(item)) for item in data
        ]
        if not leaves:
            raise ValueError("Cannot create a Merkle Tree with no data.")

        level = leaves
        while len(level) > 1:
            level = _build_next_level(self._hasher, level)

        self._root: MerkleNode = level[0]
        self._width: int = len(leaves)
        logger.info(
            f"built Merkle Tree of width {self._width} and height "
            f"{self.height} with root {self._root.hash}",
        )

    @property
    def root(self) -> MerkleNode:
        """The root node of the tree."""
        return self._root

    @property
    def width(self) -> int:
        """Number of leaves, i.e. of items supplied at construction."""
        return self._width

    @property
    def hasher(self) -> Hasher:
        """The digest primitive the tree was built with."""
        return self._hasher

    @property
    def height(self) -> int:
        """Number of edges between the root and the leaves."""
        height = 0
        child = self._root.left or self._root.right
        while child is not None:
            height += 1
            child = child.left or child.right
        return height

    def __len__(self) -> int:
        return self._width

    def __repr__(self) -> str:
        return f"MerkleTree(width={self._width}, root={self._root.hash!r})"

    # --- Search and validation ---

    def index_of_data(self, data: T, branch: MerkleNode | None = None) -> int:
        """Return the position of an item among the leaves.

        Positions count from 0, left to right. When ``branch`` is given the
        search starts there and the position is relative to the first leaf of
        that branch, so it can locate an item inside the block of data the
        branch stands for.

        Returns:
            The position of the item, or -1 if its digest is not found.

        Raises:
            ValueError: If data is None.

        """
        if data is None:
            raise ValueError("Cannot look up the index of None.")
        start = self._root if branch is None else branch
        return self._index_of_hash(start, self._hasher.data_to_hash(data), 0)

    def _index_of_hash(
        self,
        node: MerkleNode | None,
        target: str,
        index: int,
    ) -> int:
        if node is None:
            return NOT_FOUND
        if node.hash == target:
            return index
        left_index = self._index_of_hash(node.left, target, index * 2)
        if left_index != NOT_FOUND:
            return left_index
        return self._index_of_hash(node.right, target, index * 2 + 1)

    def _contains_hash(self, node: MerkleNode | None, target: str) -> bool:
        if node is None:
            return False
        if node.hash == target:
            return True
        if self._contains_hash(node.left, target):
            return True
        return self._contains_hash(node.right, target)

    def validate_data(self, data: T) -> bool:
        """Check whether an item's digest appears in the tree.

        Any node matches, not only leaves.

        Raises:
            ValueError: If data is None.

        """
        if data is None:
            raise ValueError("Cannot validate None.")
        return self._contains_hash(self._root, self._hasher.data_to_hash(data))

    def validate_branch(self, branch: MerkleNode) -> bool:
        """Check whether the root digest of a branch appears in the tree.

        Only the digest of ``branch`` is compared; the nodes below it are not
        looked at. A leaf is a valid branch.

        Raises:
            ValueError: If branch is None.

        """
        if branch is None:
            raise ValueError("Cannot validate a None branch.")
        return self._contains_hash(self._root, branch.hash)

    def validate_tree(self, other_tree: MerkleTree[T]) -> bool:
        """Check whether another tree has the same shape and digests.

        Raises:
            ValueError: If other_tree is None.

        """
        if other_tree is None:
            raise ValueError("Cannot validate against a None tree.")
        return self._same_subtree(self._root, other_tree.root)

    def _same_subtree(
        self,
        node: MerkleNode | None,
        other_node: MerkleNode | None,
    ) -> bool:
        if node is None and other_node is None:
            return True
        if node is None or other_node is None:
            return False
        if node.hash != other_node.hash:
            return False
        if not self._same_subtree(node.left, other_node.left):
            return False
        return self._same_subtree(node.right, other_node.right)

    def find_invalid_data_indices(self, other_tree: MerkleTree[T]) -> set[int]:
        """Return the positions of the leaves that differ in another tree.

        Both trees are walked together from the root; subtrees whose digests
        match are skipped, so a single changed item costs one root-to-leaf
        path.

        Raises:
            ValueError: If other_tree is None or has a different width.

        """
        if other_tree is None:
            raise ValueError("Cannot compare against a None tree.")
        if other_tree.width != self._width:
            logger.warning(
                f"cannot compare trees of width {self._width} and "
                f"{other_tree.width}",
            )
            raise ValueError(
                f"Tree widths differ: {self._width} != {other_tree.width}",
            )

        invalid_indices: set[int] = set()
        self._compare_nodes(self._root, other_tree.root, 0, invalid_indices)
        logger.debug(f"found {len(invalid_indices)} invalid data indices")
        return invalid_indices

    def _compare_nodes(
        self,
        node: MerkleNode | None,
        other_node: MerkleNode | None,
        index: int,
        invalid_indices: set[int],
    ) -> None:
        if node is None or other_node is None:
            if node is not other_node:
                invalid_indices.add(index)
            return
        if node.hash == other_node.hash:
            return
        if node.is_leaf() and other_node.is_leaf():
            invalid_indices.add(index)
            return
        self._compare_nodes(
            node.left,
            other_node.left,
            index * 2,
            invalid_indices,
        )
        self._compare_nodes(
            node.right,
            other_node.right,
            index * 2 + 1,
            invalid_indices,
        )

    # --- Proofs ---

    def get_merkle_proof(self, data: T) -> MerkleProof:
        """Generate the proof of inclusion for an item.

        Raises:
            ValueError: If data is None or not part of the tree.

        """
        if data is None:
            raise ValueError("Cannot build a proof for None.")
        return self._proof_for_hash(self._hasher.data_to_hash(data))

    def get_branch_proof(self, branch: MerkleNode) -> MerkleProof:
        """Generate the proof of inclusion for a branch (a block of items).

        Raises:
            ValueError: If branch is None or not part of the tree.

        """
        if branch is None:
            raise ValueError("Cannot build a proof for a None branch.")
        return self._proof_for_hash(branch.hash)

    def _proof_for_hash(self, target: str) -> MerkleProof:
        steps: list[MerkleProofHash] = []
        if not self._collect_proof(self._root, target, steps):
            logger.warning(f"no node with hash {target} in the tree")
            raise ValueError(f"Hash {target} is not part of the tree.")

        proof = MerkleProof(self._root.hash, len(steps), self._hasher)
        for step in steps:
            proof.add_hash(step.hash, step.is_left)
        logger.debug(f"built proof of {len(steps)} steps for {target}")
        return proof

    def _collect_proof(
        self,
        node: MerkleNode | None,
        target: str,
        steps: list[MerkleProofHash],
    ) -> bool:
        """Search for ``target`` and record siblings while unwinding.

        Steps are appended from the matched node up to the root.
        """
        if node is None:
            return False
        if node.hash == target:
            return True
        if self._collect_proof(node.left, target, steps):
            sibling = node.right.hash if node.right is not None else EMPTY_HASH
            steps.append(MerkleProofHash(sibling, is_left=False))
            return True
        if self._collect_proof(node.right, target, steps):
            sibling = node.left.hash if node.left is not None else EMPTY_HASH
            steps.append(MerkleProofHash(sibling, is_left=True))
            return True
        return False
