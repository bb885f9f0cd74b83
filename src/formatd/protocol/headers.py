"""Header block parsing."""

from __future__ import annotations

from formatd.protocol.constants import CONTENT_LENGTH_HEADER, HEADER_SEPARATOR
from formatd.protocol.errors import FramingError

_SEPARATOR = HEADER_SEPARATOR.decode("ascii")
# Longest accepted Content-Length value.
_MAX_LENGTH_DIGITS = 19


def parse_header_block(block: str) -> dict[str, str]:
    """Parse ``name: value`` lines into a mapping.

    Lines without exactly one colon, or with an empty value, are skipped.
    Names and values are trimmed; a repeated name keeps its first value.
    """
    headers: dict[str, str] = {}
    for line in block.split(_SEPARATOR):
        parts = line.split(":")
        if len(parts) != 2:
            continue
        name, value = parts
        if not value:
            continue
        headers.setdefault(name.strip(), value.strip())
    return headers


def find_content_length(headers: dict[str, str], block: str) -> int:
    """Return the declared body length.

    The header name matches case-insensitively. Raises ``FramingError`` when it
    is absent or not a non-negative integer.
    """
    wanted = CONTENT_LENGTH_HEADER.lower()
    for name, value in headers.items():
        if name.lower() != wanted:
            continue
        if value.isascii() and value.isdigit() and len(value) <= _MAX_LENGTH_DIGITS:
            return int(value)
        break
    raise FramingError(f"Missing or incorrect {CONTENT_LENGTH_HEADER} header: {block}")


__all__ = ["find_content_length", "parse_header_block"]
