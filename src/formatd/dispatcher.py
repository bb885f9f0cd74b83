"""Route decoded requests to handlers without blocking the read loop."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from formatd.handlers import build_dispatch_map
from formatd.protocol.contracts import Response
from formatd.protocol.decoder import decode_request
from formatd.protocol.errors import InvalidRequestError, ProtocolError
from formatd.tasks import BackgroundTasks

if TYPE_CHECKING:
    from formatd.context import HandlerContext
    from formatd.handlers import RequestHandler
    from formatd.protocol.contracts import Request
    from formatd.protocol.writer import FrameWriter

logger = logging.getLogger(__name__)


class Dispatcher:
    """Spawn one supervised task per request and funnel every outcome to the writer.

    ``dispatch`` and ``report`` return as soon as the work is scheduled, so
    the frame reader moves on to the next frame immediately. Responses are
    written in completion order, not request order.
    """

    def __init__(
        self,
        context: HandlerContext,
        writer: FrameWriter,
        *,
        handlers: dict[str, RequestHandler] | None = None,
        tasks: BackgroundTasks | None = None,
    ) -> None:
        self._context = context
        self._writer = writer
        self._handlers = handlers if handlers is not None else build_dispatch_map()
        self._tasks = tasks or BackgroundTasks()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def dispatch(self, body: str) -> None:
        """Decode ``body`` and schedule its handling."""
        try:
            request = decode_request(body)
        except ProtocolError as exc:
            logger.warning("Rejected message: %s", exc.message)
            self.report(exc)
            return
        self._tasks.spawn(self._handle(request), name=f"request:{request.method}")

    def report(self, error: ProtocolError) -> None:
        """Schedule the error response for ``error``."""
        self._tasks.spawn(self._writer.send(error.to_response()), name="report-error")

    async def report_async(self, error: ProtocolError) -> None:
        """Awaitable form of ``report`` for use as a frame reader error callback."""
        self.report(error)

    async def wait_idle(self) -> None:
        """Wait for every dispatched request to be answered."""
        await self._tasks.wait_idle()

    async def _handle(self, request: Request) -> None:
        await self._writer.send(await self._respond(request))

    async def _respond(self, request: Request) -> Response:
        handler = self._handlers.get(request.method)
        if handler is None:
            logger.warning("Unknown method %r (id=%r)", request.method, request.id)
            return Response.failure(f"Unknown method: {request.method}", request_id=request.id)
        try:
            result = await handler(self._context, request)
        except InvalidRequestError as exc:
            logger.warning("Invalid %s request: %s", request.method, exc.message)
            return exc.to_response()
        except Exception as exc:
            logger.exception("Handler error for %s (id=%r)", request.method, request.id)
            return Response.failure(
                f"error during message handling: {exc}", request_id=request.id
            )
        return Response.success(request.id, result)


__all__ = ["Dispatcher"]
