"""Request handlers and the method -> handler dispatch map."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from formatd.protocol.contracts import FormatParams
from formatd.protocol.errors import InvalidRequestError

if TYPE_CHECKING:
    from formatd.context import HandlerContext
    from formatd.protocol.contracts import Request

type RequestHandler = Callable[[HandlerContext, Request], Awaitable[Any]]

METHOD_INITIALIZE = "initialize"
METHOD_FORMAT = "format"
METHOD_CLEAR_CACHE = "clear_cache"


async def handle_initialize(ctx: HandlerContext, request: Request) -> dict[str, Any]:
    del ctx, request
    return {"capabilities": {}}


def _require_format_params(request: Request) -> FormatParams:
    params = request.params
    message = json.dumps(request.model_dump(), ensure_ascii=False, default=str)
    if not isinstance(params, dict) or "text" not in params:
        raise InvalidRequestError(
            f"Message params.text is undefined: {message}", request_id=request.id
        )
    if "options" not in params:
        raise InvalidRequestError(
            f"Message params.options is undefined: {message}", request_id=request.id
        )
    try:
        return FormatParams.model_validate(params)
    except ValidationError as exc:
        raise InvalidRequestError(
            f"Invalid format params: {exc.errors(include_url=False)}", request_id=request.id
        ) from exc


def build_engine_options(ctx: HandlerContext, params: FormatParams) -> dict[str, Any]:
    """Explicit engine options win over the cached config; parser and path always apply."""
    options = params.options
    base = options.engine_options if options.engine_options is not None else ctx.config
    merged = dict(base)
    for key, value in (("parser", options.parser), ("path", options.path)):
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


async def handle_format(ctx: HandlerContext, request: Request) -> dict[str, Any]:
    params = _require_format_params(request)
    formatted = await ctx.engine.format(params.text, build_engine_options(ctx, params))
    return {"text": formatted}


async def handle_clear_cache(ctx: HandlerContext, request: Request) -> None:
    del request
    await ctx.engine.clear_config_cache()
    await ctx.refresh_config()
    return None


def build_dispatch_map() -> dict[str, RequestHandler]:
    return {
        METHOD_INITIALIZE: handle_initialize,
        METHOD_FORMAT: handle_format,
        METHOD_CLEAR_CACHE: handle_clear_cache,
    }


__all__ = [
    "METHOD_CLEAR_CACHE",
    "METHOD_FORMAT",
    "METHOD_INITIALIZE",
    "RequestHandler",
    "build_dispatch_map",
    "build_engine_options",
    "handle_clear_cache",
    "handle_format",
    "handle_initialize",
]
