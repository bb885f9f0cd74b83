"""Test helpers package."""

from tests.helpers.engines import StubEngine
from tests.helpers.streams import (
    ChunkSource,
    MemorySink,
    frame,
    parse_responses,
    request_frame,
    split_frames,
)
from tests.helpers.wait import wait_until

__all__ = [
    "ChunkSource",
    "MemorySink",
    "StubEngine",
    "frame",
    "parse_responses",
    "request_frame",
    "split_frames",
    "wait_until",
]
