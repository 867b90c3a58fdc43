"""Tests for server-sent events decoding."""

import json

import pytest

from chad_llm.core.client.errors import StreamError
from chad_llm.core.client.streaming import (
    SSEDecoder,
    StreamEvent,
    create_content_event,
    create_error_event,
    create_finished_event,
    extract_delta,
    parse_sse_line,
)


def _chunk(content: str) -> str:
    return json.dumps({"choices": [{"index": 0, "delta": {"content": content}}]})


class TestParseSseLine:

    def test_data_line(self) -> None:
        assert parse_sse_line('data: {"a": 1}') == '{"a": 1}'

    def test_data_without_space(self) -> None:
        assert parse_sse_line("data:[DONE]") == "[DONE]"

    def test_carriage_return_stripped(self) -> None:
        assert parse_sse_line("data: x\r") == "x"

    @pytest.mark.parametrize("line", ["", ": keep-alive", "event: message", "id: 3"])
    def test_other_lines_ignored(self, line: str) -> None:
        assert parse_sse_line(line) is None


class TestSSEDecoder:
    """Test cases for SSEDecoder."""

    def test_split_across_chunks(self) -> None:
        decoder = SSEDecoder()
        line = f"data: {_chunk('Hello')}\n\n"
        assert decoder.feed(line[:10]) == []
        assert decoder.feed(line[10:]) == [_chunk("Hello")]

    def test_bytes_input(self) -> None:
        decoder = SSEDecoder()
        assert decoder.feed(f"data: {_chunk('hé')}\n".encode("utf-8")) == [_chunk("hé")]

    def test_done_stops_decoding(self) -> None:
        decoder = SSEDecoder()
        payloads = decoder.feed(f"data: {_chunk('a')}\n\ndata: [DONE]\n\ndata: {_chunk('b')}\n\n")
        assert payloads == [_chunk("a")]
        assert decoder.done
        assert decoder.feed(f"data: {_chunk('c')}\n") == []

    def test_flush_trailing_line(self) -> None:
        decoder = SSEDecoder()
        assert decoder.feed(f"data: {_chunk('tail')}") == []
        assert decoder.flush() == [_chunk("tail")]
        assert decoder.flush() == []

    def test_character_split_between_byte_chunks(self) -> None:
        decoder = SSEDecoder()
        line = 'data: {"choices": [{"delta": {"content": "café"}}]}\n'.encode("utf-8")
        split = line.index("é".encode("utf-8")) + 1

        assert decoder.feed(line[:split]) == []
        payloads = decoder.feed(line[split:])
        assert [extract_delta(p) for p in payloads] == ["café"]


class TestExtractDelta:

    def test_content(self) -> None:
        assert extract_delta(_chunk("Hi")) == "Hi"

    def test_role_only_chunk(self) -> None:
        assert extract_delta(json.dumps({"choices": [{"delta": {"role": "assistant"}}]})) == ""

    def test_malformed_json(self) -> None:
        assert extract_delta("{not json") == ""

    def test_non_object(self) -> None:
        assert extract_delta("[1, 2]") == ""

    def test_error_object_raises(self) -> None:
        with pytest.raises(StreamError) as exc_info:
            extract_delta(json.dumps({"error": {"message": "overloaded", "code": "server_busy"}}))
        assert exc_info.value.message == "overloaded"
        assert exc_info.value.details["api_code"] == "server_busy"


class TestEvents:

    def test_factories(self) -> None:
        assert create_content_event("x").type == StreamEvent.CONTENT
        error = create_error_event("boom", status=500, code="SERVER_ERROR")
        assert error.type == StreamEvent.ERROR
        assert error.value.status == 500
        finished = create_finished_event({"characters": 3})
        assert finished.type == StreamEvent.FINISHED
        assert finished.value == {"characters": 3}
