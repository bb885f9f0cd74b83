"""Incremental frame reader for ``Content-Length`` framed input.

The reader owns a FIFO byte buffer and a two-state parser. Bytes are pulled
from a ``ByteSource`` only when the buffer cannot produce another frame, so a
frame split across any number of chunks yields the same body as a frame
delivered whole.

On any framing failure the reader resynchronizes: it reports one
uncorrelated error, drops everything buffered, resets to
``ParseState.AWAITING_HEADERS`` and waits for more input before scanning
again. A single bad frame is sacrificed; the stream is never abandoned.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from formatd.limits import HEADER_SEARCH_MULTIPLE, MAX_MESSAGE_BYTES, READ_CHUNK_SIZE
from formatd.protocol.constants import CONTENT_LENGTH_HEADER, HEADER_TERMINATOR
from formatd.protocol.errors import FramingError
from formatd.protocol.headers import find_content_length, parse_header_block

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    ErrorCallback = Callable[[FramingError], Awaitable[None]]

logger = logging.getLogger(__name__)


class ParseState(Enum):
    """Which part of the current frame the reader is waiting for."""

    AWAITING_HEADERS = "awaiting-headers"
    AWAITING_BODY = "awaiting-body"


class ByteSource(Protocol):
    """Anything that can hand out the next chunk of input.

    ``read`` returns ``b""`` once the stream has ended.
    """

    async def read(self) -> bytes: ...


class StreamByteSource:
    """``ByteSource`` backed by an ``asyncio.StreamReader``."""

    def __init__(self, reader: asyncio.StreamReader, chunk_size: int = READ_CHUNK_SIZE) -> None:
        self._reader = reader
        self._chunk_size = chunk_size

    async def read(self) -> bytes:
        return await self._reader.read(self._chunk_size)


class FrameReader:
    """Turn a chunked byte stream into a sequence of frame bodies.

    Usage::

        reader = FrameReader(source, on_error=report)
        async for body in reader:
            ...

    ``on_error`` receives every ``FramingError`` before the reader
    resynchronizes. Iteration stops when the stream ends between frames.
    """

    def __init__(
        self,
        source: ByteSource,
        on_error: ErrorCallback,
        *,
        max_message_bytes: int = MAX_MESSAGE_BYTES,
        header_search_multiple: int = HEADER_SEARCH_MULTIPLE,
    ) -> None:
        self._source = source
        self._on_error = on_error
        self._max_message_bytes = max_message_bytes
        self._header_search_limit = len(CONTENT_LENGTH_HEADER) * header_search_multiple
        self._buffer = bytearray()
        self._state = ParseState.AWAITING_HEADERS
        self._headers_length = 0
        self._message_length = 0
        self._ended = False

    @property
    def state(self) -> ParseState:
        return self._state

    @property
    def buffered(self) -> int:
        """Number of received bytes not yet consumed."""
        return len(self._buffer)

    def __aiter__(self) -> AsyncIterator[str]:
        return self.messages()

    async def messages(self) -> AsyncIterator[str]:
        """Yield decoded frame bodies until the input ends cleanly."""
        try:
            while True:
                try:
                    body = self._take_message()
                except FramingError as exc:
                    if not await self._resynchronize(exc):
                        return
                    continue

                if body is not None:
                    yield body
                    continue

                if self._ended:
                    if self._state is ParseState.AWAITING_HEADERS and not self._buffer:
                        return
                    if not await self._resynchronize(self._end_of_stream_error()):
                        return
                    continue

                await self._fill()
        except OSError as exc:
            logger.error("Input stream failed: %s", exc)
            await self._on_error(FramingError(f"Error reading input: {exc}"))

    def _take_message(self) -> str | None:
        """Extract the next complete body from the buffer, if there is one."""
        if self._state is ParseState.AWAITING_HEADERS:
            headers_end = self._buffer.find(HEADER_TERMINATOR)
            if headers_end == -1:
                if not self._ended and len(self._buffer) > self._header_search_limit:
                    raise FramingError(
                        "Unexpected stream of bytes: no headers end found after "
                        f"{len(self._buffer)} bytes of input"
                    )
                return None

            block = bytes(self._buffer[:headers_end]).decode("ascii", errors="replace")
            message_length = find_content_length(parse_header_block(block), block)
            if message_length > self._max_message_bytes:
                raise FramingError(
                    f"{CONTENT_LENGTH_HEADER} {message_length} exceeds limit of "
                    f"{self._max_message_bytes} bytes"
                )
            self._headers_length = headers_end + len(HEADER_TERMINATOR)
            self._message_length = message_length
            self._state = ParseState.AWAITING_BODY

        message_end = self._headers_length + self._message_length
        if len(self._buffer) < message_end:
            return None

        body = bytes(self._buffer[self._headers_length : message_end])
        del self._buffer[:message_end]
        self._reset_state()
        return body.decode("utf-8", errors="replace")

    def _end_of_stream_error(self) -> FramingError:
        if self._state is ParseState.AWAITING_HEADERS:
            return FramingError("Unexpected end of stream: headers not found")
        return FramingError(
            f"Unexpected end of stream: buffer length {len(self._buffer)} does not match "
            f"expected header length {self._headers_length} + body length {self._message_length}"
        )

    async def _fill(self) -> None:
        chunk = await self._source.read()
        if chunk:
            self._buffer += chunk
        else:
            self._ended = True

    async def _resynchronize(self, error: FramingError) -> bool:
        """Report ``error``, drop buffered state and wait for fresh input.

        Returns ``False`` when the stream turns out to be finished.
        """
        logger.warning("Discarding %d buffered bytes: %s", len(self._buffer), error.message)
        await self._on_error(error)
        self._buffer.clear()
        self._reset_state()
        self._ended = False
        await self._fill()
        return not self._ended

    def _reset_state(self) -> None:
        self._state = ParseState.AWAITING_HEADERS
        self._headers_length = 0
        self._message_length = 0


__all__ = ["ByteSource", "FrameReader", "ParseState", "StreamByteSource"]
