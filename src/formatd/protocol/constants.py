"""Wire-level constants shared by the frame reader and writer."""

from __future__ import annotations

from typing import Final

HEADER_SEPARATOR: Final = b"\r\n"
HEADER_TERMINATOR: Final = HEADER_SEPARATOR * 2
CONTENT_LENGTH_HEADER: Final = "Content-Length"

JSONRPC_VERSION: Final = "2.0"
INVALID_REQUEST: Final = -32600  # Used for every error this server reports


class _Unset:
    """Marker for an identifier that was never received."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()

__all__ = [
    "CONTENT_LENGTH_HEADER",
    "HEADER_SEPARATOR",
    "HEADER_TERMINATOR",
    "INVALID_REQUEST",
    "JSONRPC_VERSION",
    "UNSET",
]
