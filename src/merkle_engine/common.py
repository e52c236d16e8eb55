"""Common - Shared data."""
# merkle-engine - common.py
# Copyright (C) 2025 The Axiom Contributors
# This program is licensed under the Peer Production License (PPL).
# See the LICENSE file for full details.

from __future__ import annotations

import logging
import sys
from typing import Final

from merkle_engine.config import get_config

ENCODING: Final[str] = "utf-8"

# Partner digest for a node promoted without a sibling.
EMPTY_HASH: Final[str] = ""

NOT_FOUND: Final[int] = -1

LOG_FORMAT: Final[str] = (
    "[%(name)s] %(asctime)s | %(levelname)s | %(filename)s:%(lineno)s >>> %(message)s"
)


def get_logger(name: str) -> logging.Logger:
    """Return a stdout logger named under the merkle-engine prefix."""
    logger = logging.getLogger(f"merkle-engine.{name}")
    # Avoid adding handlers multiple times if the module is reloaded
    if not logger.handlers:
        stdout_handler = logging.StreamHandler(stream=sys.stdout)
        stdout_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(stdout_handler)
        logger.setLevel(get_config().log_level)
        logger.propagate = False
    return logger
