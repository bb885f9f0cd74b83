"""Process-wide state shared by every dispatched request."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from formatd.engine import FormattingEngine

logger = logging.getLogger(__name__)


class HandlerContext:
    """Engine handle plus its cached configuration.

    The configuration is an immutable snapshot that is replaced whole on
    refresh. A handler that captured ``config`` keeps a consistent view even
    while a concurrent ``clear_cache`` swaps in a new one.
    """

    def __init__(
        self,
        engine: FormattingEngine,
        engine_path: str,
        config: Mapping[str, Any] | None = None,
    ) -> None:
        self.engine = engine
        self.engine_path = engine_path
        self._config: Mapping[str, Any] = MappingProxyType(dict(config or {}))

    @property
    def config(self) -> Mapping[str, Any]:
        return self._config

    def replace_config(self, config: Mapping[str, Any] | None) -> None:
        self._config = MappingProxyType(dict(config or {}))

    async def refresh_config(self) -> Mapping[str, Any]:
        """Resolve the engine config again and swap it in."""
        resolved = await self.engine.resolve_config(self.engine_path)
        self.replace_config(resolved)
        logger.debug("Engine config refreshed: %s", dict(self._config))
        return self._config


async def create_context(engine: FormattingEngine, engine_path: str) -> HandlerContext:
    """Build the context once, before the read loop starts."""
    context = HandlerContext(engine, engine_path)
    await context.refresh_config()
    return context


__all__ = ["HandlerContext", "create_context"]
