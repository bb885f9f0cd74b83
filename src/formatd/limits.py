"""Numeric limits and defaults - no circular dependencies."""

from __future__ import annotations

import os


def _is_debug_build() -> bool:
    """Check whether verbose diagnostics were requested.

    Debug mode is enabled when FORMATD_DEBUG is "1" or "true" and disabled
    when it is "0", "false" or unset.
    """
    env_debug = os.environ.get("FORMATD_DEBUG", "").lower()
    return env_debug in ("1", "true")


DEBUG_BUILD: bool = _is_debug_build()
"""True when FORMATD_DEBUG asks for debug logging by default."""


READ_CHUNK_SIZE = 64 * 1024
MAX_MESSAGE_BYTES = 64 * 1024 * 1024
HEADER_SEARCH_MULTIPLE = 10
MAX_LOG_MESSAGE_LENGTH = 4096
