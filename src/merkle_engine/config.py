# merkle-engine - config.py
# Copyright (C) 2025 The Axiom Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.
"""Config - Runtime settings for the Merkle engine."""

from __future__ import annotations

import hashlib
import logging
import os
from functools import cache
from typing import Final, Literal

from pydantic import BaseModel, field_validator
from typing_extensions import Self

DEFAULT_HASH_ALGORITHM: Final[str] = "md5"
DEFAULT_FINGERPRINT: Final[str] = "content"
DEFAULT_LOG_LEVEL: Final[str] = "INFO"

FingerprintMode = Literal["content", "hash_code"]


class MerkleConfig(BaseModel):
    """Used as a checkpoint between the environment and the engine.

    The defaults are computed like this:

        If supplied explicitly, use that.
        If not, look into the MERKLE_HASH_ALGORITHM, MERKLE_FINGERPRINT and
        MERKLE_LOG_LEVEL environment variables (see `from_env`).
        If not defined, use the standard defaults (md5, content, INFO).
    """

    hash_algorithm: str = DEFAULT_HASH_ALGORITHM
    fingerprint: FingerprintMode = "content"
    log_level: str = DEFAULT_LOG_LEVEL

    @field_validator("hash_algorithm")
    @classmethod
    def _check_hash_algorithm(cls, value: str) -> str:
        name = value.strip().lower()
        if name not in hashlib.algorithms_available:
            raise ValueError(f"unknown hash algorithm: {value!r}")
        # shake_* digests have no fixed width
        if name.startswith("shake_"):
            raise ValueError(
                f"hash algorithm {value!r} does not produce fixed-width digests",
            )
        return name

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        name = value.strip().upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"unknown log level: {value!r}")
        return name

    @classmethod
    def from_env(cls) -> Self:
        """Build a config from MERKLE_* environment variables."""
        return cls(
            hash_algorithm=os.environ.get(
                "MERKLE_HASH_ALGORITHM",
                DEFAULT_HASH_ALGORITHM,
            ),
            fingerprint=os.environ.get(  # type: ignore[arg-type]
                "MERKLE_FINGERPRINT",
                DEFAULT_FINGERPRINT,
            ),
            log_level=os.environ.get("MERKLE_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )


@cache
def get_config() -> MerkleConfig:
    """Return the process-wide config, read once from the environment."""
    return MerkleConfig.from_env()
