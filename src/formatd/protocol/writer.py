"""Frame writer: one locked write per response."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Protocol

from formatd.protocol.constants import CONTENT_LENGTH_HEADER, HEADER_SEPARATOR

if TYPE_CHECKING:
    from formatd.protocol.contracts import Response

logger = logging.getLogger(__name__)


class ByteSink(Protocol):
    """The subset of ``asyncio.StreamWriter`` the frame writer needs."""

    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...


def encode_frame(response: Response) -> bytes:
    """Serialize ``response`` into header block plus UTF-8 JSON body.

    The declared length counts bytes of the encoded body, not characters.
    """
    body = json.dumps(response.to_wire(), separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )
    header = f"{CONTENT_LENGTH_HEADER}: {len(body)}".encode("ascii")
    return header + HEADER_SEPARATOR + HEADER_SEPARATOR + body


class FrameWriter:
    """Write framed responses to a shared sink.

    Responses from concurrently finishing handlers go out in whatever order
    ``send`` is called; the lock only keeps one frame's bytes contiguous.
    """

    def __init__(self, sink: ByteSink) -> None:
        self._sink = sink
        self._lock = asyncio.Lock()

    async def send(self, response: Response) -> None:
        frame = encode_frame(response)
        async with self._lock:
            self._sink.write(frame)
            await self._sink.drain()
        logger.debug("Sent %d byte frame (id=%s)", len(frame), response.id)


__all__ = ["ByteSink", "FrameWriter", "encode_frame"]
