"""Turn a frame body into a ``Request``."""

from __future__ import annotations

import json
from typing import Any

from formatd.protocol.constants import UNSET
from formatd.protocol.contracts import Request
from formatd.protocol.errors import DecodeError, InvalidRequestError


def decode_request(body: str) -> Request:
    """Parse and validate one request body.

    Raises ``DecodeError`` (uncorrelated) when the body is not a JSON object,
    and ``InvalidRequestError`` when ``method`` or ``id`` is missing. The
    latter carries the request id whenever one was present, so the error can
    still be correlated.
    """
    try:
        message = json.loads(body, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        raise DecodeError(f"Failed to parse message '{body}': {exc}") from exc
    if not isinstance(message, dict):
        raise DecodeError(f"Failed to parse message '{body}': expected a JSON object")

    request_id: Any = message.get("id", UNSET)
    method = message.get("method")
    if not isinstance(method, str):
        raise InvalidRequestError(
            f"Message method is undefined: {_dump(message)}",
            request_id=request_id,
        )
    if request_id is UNSET:
        raise InvalidRequestError(f"Message id is undefined: {_dump(message)}")

    return Request(method=method, id=request_id, params=message.get("params"))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not valid JSON")


def _dump(message: dict[str, Any]) -> str:
    return json.dumps(message, separators=(",", ":"), ensure_ascii=False)


__all__ = ["decode_request"]
