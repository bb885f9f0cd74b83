"""Unit tests for header block parsing."""

from __future__ import annotations

import pytest

from formatd.protocol.errors import FramingError
from formatd.protocol.headers import find_content_length, parse_header_block

pytestmark = pytest.mark.unit


class TestParseHeaderBlock:
    def test_parses_name_value_pairs(self) -> None:
        block = "Content-Length: 12\r\nContent-Type: application/json"

        assert parse_header_block(block) == {
            "Content-Length": "12",
            "Content-Type": "application/json",
        }

    def test_skips_line_without_colon(self) -> None:
        assert parse_header_block("garbage\r\nContent-Length: 2") == {"Content-Length": "2"}

    def test_skips_line_with_empty_value(self) -> None:
        assert parse_header_block("X-Empty:\r\nContent-Length: 2") == {"Content-Length": "2"}

    def test_skips_line_with_several_colons(self) -> None:
        block = "X-Url: http://example.com\r\nContent-Length: 2"

        assert parse_header_block(block) == {"Content-Length": "2"}

    def test_first_occurrence_wins(self) -> None:
        block = "Content-Length: 2\r\nContent-Length: 9"

        assert parse_header_block(block) == {"Content-Length": "2"}


class TestFindContentLength:
    @pytest.mark.parametrize(
        "name",
        ["Content-Length", "content-length", "CONTENT-LENGTH", "  Content-Length  "],
    )
    def test_name_match_ignores_case_and_padding(self, name: str) -> None:
        block = f"{name}: 42"

        assert find_content_length(parse_header_block(block), block) == 42

    def test_zero_is_accepted(self) -> None:
        assert find_content_length({"Content-Length": "0"}, "") == 0

    @pytest.mark.parametrize("value", ["-1", "abc", "1.5", "12abc", "٣"])
    def test_rejects_non_integer_values(self, value: str) -> None:
        with pytest.raises(FramingError, match="Missing or incorrect Content-Length header"):
            find_content_length({"Content-Length": value}, f"Content-Length: {value}")

    def test_missing_header_names_the_block(self) -> None:
        block = "Content-Type: text/plain"

        with pytest.raises(FramingError) as excinfo:
            find_content_length(parse_header_block(block), block)

        assert excinfo.value.message == f"Missing or incorrect Content-Length header: {block}"
        assert not excinfo.value.correlated
