"""
Server-sent events decoding for streamed chat completions.

The API sends ``data: {json}`` lines separated by blank lines and ends the
stream with ``data: [DONE]``. Network chunks do not respect line boundaries,
so the decoder buffers partial lines between feeds.
"""

import codecs
import json
import logging
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from .errors import StreamError
from .models import ChatCompletionChunk

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


class StreamEvent(Enum):
    """Types of streaming events."""
    CONTENT = "content"
    ERROR = "error"
    FINISHED = "finished"


class ChatStreamEvent(BaseModel):
    """Base class for all streaming events."""
    type: StreamEvent
    value: Optional[Any] = None


class ContentStreamEvent(ChatStreamEvent):
    """Event containing generated content."""
    type: StreamEvent = StreamEvent.CONTENT
    value: str = Field(description="Generated content text")


class StructuredError(BaseModel):
    """Structured error information."""
    message: str = Field(description="Error message")
    status: Optional[int] = Field(default=None, description="HTTP status code if applicable")
    code: Optional[str] = Field(default=None, description="Error code")


class ErrorStreamEvent(ChatStreamEvent):
    """Event containing error information."""
    type: StreamEvent = StreamEvent.ERROR
    value: StructuredError


class FinishedStreamEvent(ChatStreamEvent):
    """Event indicating streaming has finished."""
    type: StreamEvent = StreamEvent.FINISHED
    value: Optional[Dict[str, Any]] = Field(default=None, description="Final metadata")


def create_content_event(content: str) -> ContentStreamEvent:
    """Create a content streaming event."""
    return ContentStreamEvent(value=content)


def create_error_event(
    message: str,
    status: Optional[int] = None,
    code: Optional[str] = None,
) -> ErrorStreamEvent:
    """Create an error streaming event."""
    return ErrorStreamEvent(value=StructuredError(message=message, status=status, code=code))


def create_finished_event(metadata: Optional[Dict[str, Any]] = None) -> FinishedStreamEvent:
    """Create a finished streaming event."""
    return FinishedStreamEvent(value=metadata)


def parse_sse_line(line: str) -> Optional[str]:
    """Return the payload of a ``data:`` line, or None for any other line."""
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):]
    # A single optional space follows the colon
    if payload.startswith(" "):
        payload = payload[1:]
    return payload


class SSEDecoder:
    """Incremental decoder turning raw network chunks into event payloads."""

    def __init__(self):
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.done = False

    def feed(self, chunk: Union[str, bytes]) -> List[str]:
        """Feed a chunk and return the payloads of every completed line."""
        if isinstance(chunk, bytes):
            # A multi-byte character may be split across network chunks
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk

        *lines, self._buffer = self._buffer.split("\n")
        return list(self._collect(lines))

    def flush(self) -> List[str]:
        """Return the payload of a trailing line that had no newline."""
        remainder, self._buffer = self._buffer + self._decoder.decode(b"", final=True), ""
        return list(self._collect([remainder])) if remainder else []

    def _collect(self, lines: List[str]) -> Iterator[str]:
        for line in lines:
            if self.done:
                return
            payload = parse_sse_line(line)
            if payload is None:
                continue
            if payload.strip() == DONE_SENTINEL:
                self.done = True
                return
            yield payload


def extract_delta(payload: str) -> str:
    """
    Extract the text carried by one streamed chunk.

    Args:
        payload: JSON payload of a ``data:`` line

    Returns:
        Concatenated delta content, or "" when the chunk carries none

    Raises:
        StreamError: if the server sent an error object instead of a chunk
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        logger.debug(f"Skipping malformed stream payload: {payload[:200]!r}")
        return ""

    if not isinstance(data, dict):
        return ""

    if "error" in data:
        error = data["error"] if isinstance(data["error"], dict) else {"message": str(data["error"])}
        raise StreamError(error.get("message") or "Stream error", details={"api_code": error.get("code")})

    try:
        return ChatCompletionChunk.model_validate(data).text
    except ValidationError as e:
        logger.debug(f"Skipping unexpected stream chunk: {e}")
        return ""
