# merkle-engine - hash_util.py
# Copyright (C) 2025 The Axiom Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.
"""Hash Util - Digest and fingerprint primitives used by the Merkle engine.

Every digest handled by the engine is a lowercase hexadecimal string produced
by a fixed-width `hashlib` algorithm. Items are turned into bytes by a
fingerprint before being hashed:

- ``content`` binds the digest to the item's value through a canonical
  encoding, so unequal items only collide if the hash algorithm does.
- ``hash_code`` reproduces the legacy scheme that hashed a signed 32-bit hash
  code of the item. Unequal items can share a hash code, so this mode is only
  useful to check digests produced by that scheme.
"""

from __future__ import annotations

import dataclasses
import datetime
import enum
import hashlib
import json
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from functools import cache
from pathlib import PurePath
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from merkle_engine.common import EMPTY_HASH, ENCODING
from merkle_engine.config import (
    DEFAULT_HASH_ALGORITHM,
    FingerprintMode,
    get_config,
)

_INT32_MASK = 0xFFFFFFFF
_INT64_MASK = 0xFFFFFFFFFFFFFFFF

# Values written as their str() form
_TEXT_TYPES = (datetime.date, datetime.time, Decimal, UUID, PurePath)


class HashAlgorithmError(RuntimeError):
    """Raised when the configured hash algorithm cannot be used."""

    __slots__ = ()


def _to_signed_32(value: int) -> int:
    value &= _INT32_MASK
    return value - (1 << 32) if value >= (1 << 31) else value


def int_to_bytes(value: int) -> bytes:
    """Pack the low 32 bits of an integer into 4 big-endian bytes."""
    return (value & _INT32_MASK).to_bytes(4, "big")


def _dumps(value: Any) -> str:
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def _canonical(value: Any) -> Any:
    """Reduce a value to JSON data whose encoding does not depend on order.

    Sets are sorted by the encoding of their members and mappings with
    non-string keys become ``[key, value]`` pairs sorted by key encoding.
    Lists and tuples both become JSON arrays. Values without a stable text
    form are rejected.
    """
    if isinstance(value, enum.Enum):
        return _canonical(value.value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, BaseModel):
        return _canonical(value.model_dump(mode="json"))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _canonical(dataclasses.asdict(value))
    if isinstance(value, Mapping):
        if all(isinstance(key, str) for key in value):
            return {key: _canonical(item) for key, item in value.items()}
        pairs = [
            [_canonical(key), _canonical(item)] for key, item in value.items()
        ]
        return sorted(pairs, key=lambda pair: _dumps(pair[0]))
    if isinstance(value, (set, frozenset)):
        return sorted((_canonical(member) for member in value), key=_dumps)
    if isinstance(value, (list, tuple)):
        return [_canonical(member) for member in value]
    if isinstance(value, _TEXT_TYPES):
        return str(value)
    raise ValueError(
        f"Cannot fingerprint a value of type {type(value).__name__}.",
    )


def canonical_bytes(data: Any) -> bytes:
    """Return the canonical content encoding of an item.

    Raw bytes are taken as already encoded. Everything else is reduced by
    `_canonical` and written as sorted, whitespace-free JSON, so ``"1"``,
    ``1`` and ``True`` stay distinct and the result is the same in every
    process.

    Raises:
        ValueError: If the item holds a value with no canonical encoding.

    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    return _dumps(_canonical(data)).encode(ENCODING)


def java_hash_code(data: Any) -> int:
    """Return the signed 32-bit hash code of an item.

    Strings, booleans and integers follow the JVM definitions so that legacy
    digests can be reproduced. Integers are read as 64-bit two's complement.
    Any other value is reduced to the first four bytes of the MD5 of its
    canonical content encoding.
    """
    if isinstance(data, bool):
        return 1231 if data else 1237
    if isinstance(data, int):
        value = data & _INT64_MASK
        return _to_signed_32(value ^ (value >> 32))
    if isinstance(data, str):
        code = 0
        units = data.encode("utf-16-be")
        for i in range(0, len(units), 2):
            unit = int.from_bytes(units[i : i + 2], "big")
            code = (31 * code + unit) & _INT32_MASK
        return _to_signed_32(code)
    digest = hashlib.md5(canonical_bytes(data)).digest()
    return int.from_bytes(digest[:4], "big", signed=True)


@dataclass(frozen=True)
class Hasher:
    """Bundle of a digest algorithm and a fingerprint mode.

    Trees, lists and proofs built with different hashers produce unrelated
    digests, so a proof must be checked with the hasher of its tree.
    """

    algorithm: str = DEFAULT_HASH_ALGORITHM
    fingerprint: FingerprintMode = "content"

    def __post_init__(self) -> None:
        """Fail fast on an algorithm that cannot produce fixed-width digests."""
        try:
            sample = hashlib.new(self.algorithm)
        except (ValueError, TypeError) as exc:
            raise HashAlgorithmError(
                f"hash algorithm not available: {self.algorithm!r}",
            ) from exc
        if sample.digest_size == 0 or self.algorithm.startswith("shake_"):
            raise HashAlgorithmError(
                f"hash algorithm {self.algorithm!r} has no fixed digest size",
            )
        if self.fingerprint not in ("content", "hash_code"):
            raise ValueError(f"unknown fingerprint mode: {self.fingerprint!r}")

    @property
    def digest_width(self) -> int:
        """Length in hex characters of every digest this hasher produces."""
        return hashlib.new(self.algorithm).digest_size * 2

    def compute_digest(self, data: bytes) -> str:
        """Hash raw bytes into a hex digest."""
        return hashlib.new(self.algorithm, data).hexdigest()

    def fingerprint_of(self, data: Any) -> bytes:
        """Turn an item into the bytes its leaf digest is computed from."""
        if data is None:
            raise ValueError("Cannot fingerprint None.")
        if self.fingerprint == "hash_code":
            return int_to_bytes(java_hash_code(data))
        return canonical_bytes(data)

    def data_to_hash(self, data: Any) -> str:
        """Return the leaf digest of an item."""
        return self.compute_digest(self.fingerprint_of(data))

    def combine(self, left: str, right: str = EMPTY_HASH) -> str:
        """Hash two digests concatenated as text.

        With the default empty ``right`` this rehashes a lone digest, which is
        how a node without a sibling is promoted.
        """
        return self.compute_digest((left + right).encode(ENCODING))


@cache
def get_default_hasher() -> Hasher:
    """Return the hasher described by the process-wide config."""
    config = get_config()
    return Hasher(algorithm=config.hash_algorithm, fingerprint=config.fingerprint)


def data_to_hash(data: Any) -> str:
    """Return the leaf digest of an item using the default hasher."""
    return get_default_hasher().data_to_hash(data)


def compute_digest(data: bytes) -> str:
    """Hash raw bytes using the default hasher."""
    return get_default_hasher().compute_digest(data)
