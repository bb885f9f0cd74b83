"""Pytest fixtures for formatd tests."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from hypothesis import Phase, Verbosity, settings

from formatd.context import HandlerContext
from formatd.debug_log import reset_logging
from tests.helpers import MemorySink, StubEngine

if TYPE_CHECKING:
    from collections.abc import Generator


settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "dev",
    max_examples=20,
    deadline=500,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


@pytest.fixture(autouse=True)
def _reset_formatd_logging() -> Generator[None, None, None]:
    """Keep records propagating to caplog even after a test configured logging."""
    yield
    reset_logging()


@pytest.fixture
def engine() -> StubEngine:
    return StubEngine()


@pytest.fixture
def context(engine: StubEngine) -> HandlerContext:
    return HandlerContext(engine, "/engines/stub", {"semi": False})


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()
