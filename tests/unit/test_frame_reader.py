"""Unit tests for the incremental frame reader and its resynchronization."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from formatd.protocol.errors import FramingError
from formatd.protocol.reader import FrameReader, ParseState
from tests.helpers import ChunkSource, frame

if TYPE_CHECKING:
    from collections.abc import Iterable

pytestmark = pytest.mark.unit


async def _collect(
    chunks: Iterable[bytes], **kwargs: Any
) -> tuple[list[str], list[FramingError]]:
    errors: list[FramingError] = []

    async def _on_error(error: FramingError) -> None:
        errors.append(error)

    reader = FrameReader(ChunkSource(chunks), _on_error, **kwargs)
    bodies = [body async for body in reader]
    return bodies, errors


class TestWellFormedInput:
    async def test_single_frame(self) -> None:
        bodies, errors = await _collect([frame('{"a":1}')])

        assert bodies == ['{"a":1}']
        assert errors == []

    async def test_two_frames_in_one_chunk_keep_order(self) -> None:
        first = '{"jsonrpc":"2.0","id":1,"method":"initialize"}'
        bodies, errors = await _collect([b"Content-Length: 2\r\n\r\n{}" + frame(first)])

        assert bodies == ["{}", first]
        assert errors == []

    async def test_byte_by_byte_delivery(self) -> None:
        data = frame('{"text":"héllo"}') + frame("[]")
        chunks = [data[i : i + 1] for i in range(len(data))]

        bodies, errors = await _collect(chunks)

        assert bodies == ['{"text":"héllo"}', "[]"]
        assert errors == []

    async def test_length_counts_bytes_not_characters(self) -> None:
        body = '"😀 naïve"'
        data = frame(body)

        bodies, _ = await _collect([data])

        assert bodies == [body]
        assert len(body.encode("utf-8")) > len(body)

    async def test_malformed_header_lines_are_ignored(self) -> None:
        data = b"garbage\r\nX-Empty:\r\nX-Url: a:b\r\nContent-Length: 2\r\n\r\n{}"

        bodies, errors = await _collect([data])

        assert bodies == ["{}"]
        assert errors == []

    async def test_lowercase_header_name(self) -> None:
        bodies, errors = await _collect([b"content-length: 2\r\n\r\n{}"])

        assert bodies == ["{}"]
        assert errors == []

    async def test_zero_length_body(self) -> None:
        bodies, errors = await _collect([frame("")])

        assert bodies == [""]
        assert errors == []

    async def test_invalid_utf8_is_replaced_not_raised(self) -> None:
        bodies, errors = await _collect([frame(b'"\xff"')])

        assert bodies == ['"\ufffd"']
        assert errors == []

    async def test_empty_stream(self) -> None:
        bodies, errors = await _collect([])

        assert bodies == []
        assert errors == []


class TestParseStateTracking:
    async def test_state_resets_and_leftover_bytes_stay_buffered(self) -> None:
        partial = b"Content-Length: 5\r\n"

        async def _on_error(error: FramingError) -> None:
            raise AssertionError(error)

        reader = FrameReader(ChunkSource([frame("{}") + partial]), _on_error)
        messages = reader.messages()

        assert await anext(messages) == "{}"
        assert reader.state is ParseState.AWAITING_HEADERS
        assert reader.buffered == len(partial)
        await messages.aclose()


class TestResynchronization:
    async def test_missing_length_header_recovers_on_next_frame(self) -> None:
        bodies, errors = await _collect(
            [b"Content-Type: application/json\r\n\r\n{}", frame('{"ok":true}')]
        )

        assert bodies == ['{"ok":true}']
        assert len(errors) == 1
        assert errors[0].message.startswith("Missing or incorrect Content-Length header")
        assert not errors[0].correlated

    async def test_invalid_length_value_recovers(self) -> None:
        bodies, errors = await _collect([b"Content-Length: -4\r\n\r\n{}", frame("[]")])

        assert bodies == ["[]"]
        assert len(errors) == 1

    async def test_everything_buffered_is_dropped_with_the_bad_frame(self) -> None:
        bodies, errors = await _collect([b"Content-Type: x\r\n\r\n" + frame("[]")])

        assert bodies == []
        assert len(errors) == 1

    async def test_garbage_without_terminator_trips_the_guard(self) -> None:
        bodies, errors = await _collect([b"x" * 200, frame("{}")])

        assert bodies == ["{}"]
        assert len(errors) == 1
        assert errors[0].message == (
            "Unexpected stream of bytes: no headers end found after 200 bytes of input"
        )

    async def test_larger_guard_keeps_scanning_until_terminator(self) -> None:
        # The garbage is glued onto the first header line, so the frame has no length.
        bodies, errors = await _collect([b"x" * 200, frame("{}")], header_search_multiple=20)

        assert bodies == []
        assert len(errors) == 1
        assert errors[0].message.startswith("Missing or incorrect Content-Length header")

    async def test_end_of_stream_inside_headers(self) -> None:
        bodies, errors = await _collect([b"Content-Length: 5\r\n"])

        assert bodies == []
        assert [error.message for error in errors] == [
            "Unexpected end of stream: headers not found"
        ]

    async def test_end_of_stream_inside_body_yields_no_partial_body(self) -> None:
        bodies, errors = await _collect([b"Content-Length: 10\r\n\r\n{}"])

        assert bodies == []
        assert [error.message for error in errors] == [
            "Unexpected end of stream: buffer length 24 does not match expected "
            "header length 22 + body length 10"
        ]

    @pytest.mark.parametrize("digits", [20, 5000])
    async def test_overlong_length_value_recovers(self, digits: int) -> None:
        bodies, errors = await _collect(
            [b"Content-Length: " + b"9" * digits + b"\r\n\r\n{}", frame("[]")]
        )

        assert bodies == ["[]"]
        assert len(errors) == 1
        assert errors[0].message.startswith("Missing or incorrect Content-Length header")
        assert not errors[0].correlated

    async def test_declared_length_over_limit(self) -> None:
        bodies, errors = await _collect(
            [b"Content-Length: 4096\r\n\r\n", frame("{}")], max_message_bytes=1024
        )

        assert bodies == ["{}"]
        assert [error.message for error in errors] == [
            "Content-Length 4096 exceeds limit of 1024 bytes"
        ]

    async def test_reader_restarts_when_source_resumes_after_end(self) -> None:
        # A restartable source: empty read, then more data.
        bodies, errors = await _collect([b"Content-Length: 9\r\n\r\n{", b"", frame("{}")])

        assert bodies == ["{}"]
        assert len(errors) == 1

    async def test_input_failure_ends_iteration_with_one_error(self) -> None:
        class _BrokenSource:
            async def read(self) -> bytes:
                raise OSError("stdin closed unexpectedly")

        errors: list[FramingError] = []

        async def _on_error(error: FramingError) -> None:
            errors.append(error)

        bodies = [body async for body in FrameReader(_BrokenSource(), _on_error)]

        assert bodies == []
        assert [error.message for error in errors] == [
            "Error reading input: stdin closed unexpectedly"
        ]
