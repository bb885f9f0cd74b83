"""Recoverable protocol errors.

Each error is converted into exactly one wire response; none of them ever
stops the read loop.
"""

from __future__ import annotations

from typing import Any

from formatd.protocol.constants import INVALID_REQUEST, UNSET
from formatd.protocol.contracts import Response


class ProtocolError(Exception):
    """Base for errors reported back to the client as an error response."""

    def __init__(
        self,
        message: str,
        *,
        code: int = INVALID_REQUEST,
        request_id: Any = UNSET,
    ) -> None:
        self.message = message
        self.code = code
        self.request_id = request_id
        super().__init__(message)

    @property
    def correlated(self) -> bool:
        return self.request_id is not UNSET

    def to_response(self) -> Response:
        return Response.failure(self.message, request_id=self.request_id, code=self.code)


class FramingError(ProtocolError):
    """Malformed header block, oversized frame, or premature end of stream."""


class DecodeError(ProtocolError):
    """Frame body is not a JSON object."""


class InvalidRequestError(ProtocolError):
    """Request is missing required fields or carries invalid params."""


__all__ = ["DecodeError", "FramingError", "InvalidRequestError", "ProtocolError"]
