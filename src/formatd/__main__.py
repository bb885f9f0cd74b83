"""CLI entry point for formatd."""

from __future__ import annotations

# Python version check - must be before any imports that use 3.12+ syntax.
import sys

if sys.version_info < (3, 12):  # noqa: UP036
    print("Error: formatd requires Python 3.12 or higher.", file=sys.stderr)
    sys.exit(1)

import asyncio  # noqa: E402
import logging  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import NoReturn  # noqa: E402

import click  # noqa: E402

from formatd.config import ConfigError, ServerConfig, load_config  # noqa: E402
from formatd.context import HandlerContext, create_context  # noqa: E402
from formatd.debug_log import setup_logging  # noqa: E402
from formatd.engine import EngineLoadError, load_engine, validate_engine_dir  # noqa: E402
from formatd.server import FormatServer  # noqa: E402
from formatd.version import get_formatd_version  # noqa: E402

logger = logging.getLogger("formatd.cli")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _fail(message: str) -> NoReturn:
    click.echo(message, err=True)
    raise SystemExit(1)


async def _load_context(engine_dir: Path, config: ServerConfig) -> HandlerContext:
    try:
        engine = load_engine(engine_dir, config.engine_module)
        return await create_context(engine, str(engine_dir))
    except EngineLoadError:
        raise
    except Exception as exc:
        raise EngineLoadError(str(exc)) from exc


async def _run(engine_dir: Path, config: ServerConfig) -> None:
    context = await _load_context(engine_dir, config)
    click.echo(
        f"Engine at path '{engine_dir / config.engine_module}' loaded successfully, "
        f"config: {dict(context.config)}",
        err=True,
    )
    await FormatServer(context, config).serve_stdio()


@click.command()
@click.argument("engine_path", required=False, default=None)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Path to a TOML file with a [server] table",
)
@click.option(
    "--engine-module",
    default=None,
    help="Module name of the engine inside ENGINE_PATH (default: engine)",
)
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Diagnostics level written to stderr",
)
@click.version_option(get_formatd_version(), prog_name="formatd")
def cli(
    engine_path: str | None,
    config_path: Path | None,
    engine_module: str | None,
    log_level: str | None,
) -> None:
    """Serve formatting requests framed with Content-Length over stdin/stdout.

    ENGINE_PATH is the directory holding the formatting engine module.
    Diagnostics go to stderr; stdout carries protocol frames only.
    """
    try:
        config = load_config(
            config_path,
            overrides={"engine_module": engine_module, "log_level": log_level},
        )
    except ConfigError as exc:
        _fail(str(exc))

    setup_logging(config.log_level)

    try:
        engine_dir = validate_engine_dir(engine_path)
    except EngineLoadError as exc:
        _fail(f"{exc}\nUsage: formatd ENGINE_PATH")

    try:
        asyncio.run(_run(engine_dir, config))
    except EngineLoadError as exc:
        _fail(f"Failed to load engine: {exc}")
    except KeyboardInterrupt:
        logger.info("formatd interrupted")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
