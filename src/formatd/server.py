"""Stdio server wiring: frame reader -> dispatcher -> frame writer."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING, BinaryIO

from formatd.config import ServerConfig
from formatd.dispatcher import Dispatcher
from formatd.protocol.reader import FrameReader, StreamByteSource
from formatd.protocol.writer import FrameWriter

if TYPE_CHECKING:
    from formatd.context import HandlerContext
    from formatd.protocol.reader import ByteSource
    from formatd.protocol.writer import ByteSink

logger = logging.getLogger(__name__)


class FileByteSource:
    """Blocking binary file read in a worker thread.

    Used when stdin is a regular file, which asyncio pipe transports refuse.
    """

    def __init__(self, stream: BinaryIO, chunk_size: int) -> None:
        self._stream = stream
        self._chunk_size = chunk_size

    async def read(self) -> bytes:
        return await asyncio.to_thread(self._stream.read, self._chunk_size)


class FileByteSink:
    """Blocking binary file write, used when stdout is not a pipe."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def write(self, data: bytes) -> None:
        self._stream.write(data)

    async def drain(self) -> None:
        await asyncio.to_thread(self._stream.flush)


async def open_stdio(chunk_size: int) -> tuple[ByteSource, ByteSink]:
    """Attach stdin/stdout to the running loop."""
    loop = asyncio.get_running_loop()

    source: ByteSource
    reader = asyncio.StreamReader()
    try:
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
        source = StreamByteSource(reader, chunk_size)
    except ValueError:
        logger.debug("stdin is not a pipe; reading it in a worker thread")
        source = FileByteSource(sys.stdin.buffer, chunk_size)

    sink: ByteSink
    try:
        transport, protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, sys.stdout
        )
        # drain() then returns only once the frame has left the process.
        transport.set_write_buffer_limits(high=0)
        sink = asyncio.StreamWriter(transport, protocol, None, loop)
    except ValueError:
        logger.debug("stdout is not a pipe; writing it synchronously")
        sink = FileByteSink(sys.stdout.buffer)

    return source, sink


class FormatServer:
    """Run the request/response loop over one input and one output stream.

    Usage::

        server = FormatServer(context, config)
        await server.serve_stdio()
    """

    def __init__(self, context: HandlerContext, config: ServerConfig | None = None) -> None:
        self._context = context
        self._config = config or ServerConfig()

    async def serve(self, source: ByteSource, sink: ByteSink) -> None:
        """Process frames until ``source`` ends, then wait for pending responses."""
        dispatcher = Dispatcher(self._context, FrameWriter(sink))
        reader = FrameReader(
            source,
            dispatcher.report_async,
            max_message_bytes=self._config.max_message_bytes,
            header_search_multiple=self._config.header_search_multiple,
        )
        frames = 0
        async for body in reader:
            frames += 1
            dispatcher.dispatch(body)
        logger.info(
            "Input closed after %d frames; waiting for %d requests",
            frames,
            dispatcher.in_flight,
        )
        await dispatcher.wait_idle()

    async def serve_stdio(self) -> None:
        source, sink = await open_stdio(self._config.read_chunk_size)
        await self.serve(source, sink)


__all__ = ["FileByteSink", "FileByteSource", "FormatServer", "open_stdio"]
