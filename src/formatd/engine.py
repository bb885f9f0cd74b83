"""Loading and calling the external formatting engine.

The engine is a Python module living in a caller-supplied directory. It must
expose three callables, each either plain or ``async``::

    def format(text: str, options: dict) -> str
    def resolve_config(path: str) -> dict | None
    def clear_config_cache() -> None

Plain callables run in a worker thread so a slow format never stalls the
read loop.
"""

from __future__ import annotations

import asyncio
import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import ModuleType

logger = logging.getLogger(__name__)

REQUIRED_CALLABLES = ("format", "resolve_config", "clear_config_cache")


class EngineLoadError(Exception):
    """Raised when the engine directory or module cannot be used."""


class FormattingEngine(Protocol):
    async def format(self, text: str, options: dict[str, Any]) -> str: ...

    async def resolve_config(self, path: str) -> dict[str, Any] | None: ...

    async def clear_config_cache(self) -> None: ...


async def _invoke(func: Callable[..., Any], *args: Any) -> Any:
    if inspect.iscoroutinefunction(func):
        return await func(*args)
    result = await asyncio.to_thread(func, *args)
    if inspect.isawaitable(result):
        return await result
    return result


class ModuleEngine:
    """Adapt an engine module (or any object with the three callables)."""

    def __init__(self, module: Any, *, name: str | None = None) -> None:
        missing = [attr for attr in REQUIRED_CALLABLES if not callable(getattr(module, attr, None))]
        if missing:
            msg = f"Engine {name or module!r} is missing callables: {', '.join(missing)}"
            raise EngineLoadError(msg)
        self._module = module
        self.name = name or getattr(module, "__name__", type(module).__name__)

    async def format(self, text: str, options: dict[str, Any]) -> str:
        result = await _invoke(self._module.format, text, options)
        if not isinstance(result, str):
            msg = f"Engine format() returned {type(result).__name__}, expected str"
            raise TypeError(msg)
        return result

    async def resolve_config(self, path: str) -> dict[str, Any] | None:
        return await _invoke(self._module.resolve_config, path)

    async def clear_config_cache(self) -> None:
        await _invoke(self._module.clear_config_cache)


def validate_engine_dir(raw_path: str | None) -> Path:
    """Check the engine directory argument, raising ``EngineLoadError`` on misuse."""
    if raw_path is None or raw_path == "":
        raise EngineLoadError("Engine path argument was not specified or empty.")
    path = Path(raw_path)
    if not path.exists():
        raise EngineLoadError(f"Path '{raw_path}' does not exist")
    if not path.is_dir():
        raise EngineLoadError(f"Path '{raw_path}' exists but is not a directory")
    return path


def _module_file(engine_dir: Path, module_name: str) -> Path:
    package_init = engine_dir / module_name / "__init__.py"
    if package_init.is_file():
        return package_init
    module_file = engine_dir / f"{module_name}.py"
    if module_file.is_file():
        return module_file
    msg = f"Path '{engine_dir / module_name}' does not exist (no module or package found)"
    raise EngineLoadError(msg)


def _import_from(file_path: Path, module_name: str) -> ModuleType:
    qualified = f"formatd_engine_{module_name}"
    search_locations = [str(file_path.parent)] if file_path.name == "__init__.py" else None
    spec = importlib.util.spec_from_file_location(
        qualified, file_path, submodule_search_locations=search_locations
    )
    if spec is None or spec.loader is None:
        raise EngineLoadError(f"Cannot build an import spec for '{file_path}'")
    module = importlib.util.module_from_spec(spec)
    sys.modules[qualified] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(qualified, None)
        msg = f"Error importing engine module from path '{file_path}'. Error: {exc}"
        raise EngineLoadError(msg) from exc
    return module


def load_engine(engine_dir: Path, module_name: str = "engine") -> ModuleEngine:
    """Import ``module_name`` from ``engine_dir`` and wrap it."""
    file_path = _module_file(engine_dir, module_name)
    module = _import_from(file_path, module_name)
    engine = ModuleEngine(module, name=module_name)
    logger.debug("Imported engine module %s from %s", module_name, file_path)
    return engine


__all__ = [
    "EngineLoadError",
    "FormattingEngine",
    "ModuleEngine",
    "load_engine",
    "validate_engine_dir",
]
