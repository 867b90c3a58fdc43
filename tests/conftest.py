"""Shared fixtures for chad-llm tests."""

import json
import os
from pathlib import Path
from typing import Callable, List

import httpx
import pytest

from chad_llm.config.settings import ChadLlmSettings


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the user's real configuration out of every test."""
    for var in list(os.environ):
        if var.startswith("CHAD_LLM_") or var in ("OPENAI_API_KEY", "VISUAL", "EDITOR"):
            monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))


@pytest.fixture
def settings(tmp_path: Path) -> ChadLlmSettings:
    return ChadLlmSettings(api_key="sk-test", data_dir=tmp_path / "data")


def sse_body(deltas: List[str], done: bool = True) -> bytes:
    """Build a chat-completions SSE stream carrying ``deltas``."""
    lines = []
    for delta in deltas:
        chunk = {
            "id": "chatcmpl-1",
            "object": "chat.completion.chunk",
            "model": "gpt-4o",
            "choices": [{"index": 0, "delta": {"content": delta}, "finish_reason": None}],
        }
        lines.append(f"data: {json.dumps(chunk)}\n\n")
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


def streaming_handler(deltas: List[str], requests: List[httpx.Request]) -> Callable[[httpx.Request], httpx.Response]:
    """MockTransport handler answering chat requests with an SSE stream."""
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            headers={"Content-Type": "text/event-stream"},
            content=sse_body(deltas),
        )
    return handler


@pytest.fixture
def make_sse_body() -> Callable[..., bytes]:
    return sse_body


@pytest.fixture
def make_streaming_handler() -> Callable[..., Callable[[httpx.Request], httpx.Response]]:
    return streaming_handler
