"""Tests for the OpenAI chat-completions client."""

import json
from typing import List

import httpx
import pytest

from chad_llm import USER_AGENT
from chad_llm.config.settings import ChadLlmSettings
from chad_llm.core.client.errors import (
    AuthenticationError,
    ConfigurationError,
    NetworkError,
    QuotaExceededError,
    StreamError,
)
from chad_llm.core.client.models import Message
from chad_llm.core.client.openai_client import OpenAIClient, OpenAIClientConfig, create_openai_client
from chad_llm.core.client.retry import RetryConfig


def _client(handler, **kwargs) -> OpenAIClient:
    config = OpenAIClientConfig(
        api_key="sk-test",
        base_url="https://api.test/v1",
        retry_config=RetryConfig(max_attempts=kwargs.pop("max_attempts", 1), initial_delay_ms=0, jitter=False),
        **kwargs,
    )
    return OpenAIClient(config, transport=httpx.MockTransport(handler))


async def _collect(client: OpenAIClient, messages: List[Message], model: str = "gpt-4o") -> List[str]:
    return [delta async for delta in client.stream_chat(messages, model)]


class TestStreamChat:
    """Test cases for OpenAIClient.stream_chat."""

    @pytest.mark.asyncio
    async def test_streams_deltas(self, make_streaming_handler) -> None:
        requests: List[httpx.Request] = []
        async with _client(make_streaming_handler(["Hel", "lo", "!"], requests)) as client:
            deltas = await _collect(client, [Message.system("Be brief."), Message.user("Hi")])

        assert deltas == ["Hel", "lo", "!"]
        request = requests[0]
        assert request.url == "https://api.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert request.headers["User-Agent"] == USER_AGENT

        body = json.loads(request.content)
        assert body["model"] == "gpt-4o"
        assert body["stream"] is True
        assert body["max_tokens"] == 2048
        assert body["temperature"] == 0.5
        assert body["messages"] == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
        ]

    @pytest.mark.asyncio
    async def test_ignores_keepalives_and_malformed_chunks(self) -> None:
        body = (
            ": keep-alive\n\n"
            'data: {"choices": [{"delta": {"role": "assistant"}}]}\n\n'
            "data: {broken\n\n"
            'data: {"choices": [{"delta": {"content": "ok"}}]}\n\n'
            "data: [DONE]\n\n"
        )

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body.encode())

        async with _client(handler) as client:
            assert await _collect(client, [Message.user("x")]) == ["ok"]

    @pytest.mark.asyncio
    async def test_stream_without_done_marker(self, make_sse_body) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=make_sse_body(["a", "b"], done=False))

        async with _client(handler) as client:
            assert await _collect(client, [Message.user("x")]) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_authentication_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": {"message": "Incorrect API key", "code": "invalid_api_key"}})

        async with _client(handler, max_attempts=3) as client:
            with pytest.raises(AuthenticationError) as exc_info:
                await _collect(client, [Message.user("x")])
        assert exc_info.value.message == "Incorrect API key"

    @pytest.mark.asyncio
    async def test_retries_server_errors_before_streaming(self, make_sse_body) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(502, text="bad gateway")
            return httpx.Response(200, content=make_sse_body(["recovered"]))

        async with _client(handler, max_attempts=2) as client:
            assert await _collect(client, [Message.user("x")]) == ["recovered"]
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_rate_limit_reported(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, headers={"Retry-After": "2"}, json={"error": {"message": "Too many"}})

        async with _client(handler) as client:
            with pytest.raises(QuotaExceededError) as exc_info:
                await _collect(client, [Message.user("x")])
        assert exc_info.value.details["retry_after"] == 2

    @pytest.mark.asyncio
    async def test_error_inside_stream(self, make_sse_body) -> None:
        body = make_sse_body(["partial"], done=False) + b'data: {"error": {"message": "overloaded"}}\n\n'

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body)

        received = []
        async with _client(handler) as client:
            with pytest.raises(StreamError):
                async for delta in client.stream_chat([Message.user("x")], "gpt-4o"):
                    received.append(delta)
        assert received == ["partial"]

    @pytest.mark.asyncio
    async def test_connection_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(NetworkError):
                await _collect(client, [Message.user("x")])


class TestOtherEndpoints:

    @pytest.mark.asyncio
    async def test_list_models_sorted(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/models"
            return httpx.Response(200, json={"object": "list", "data": [{"id": "gpt-4o"}, {"id": "chatgpt-4o-latest"}]})

        async with _client(handler) as client:
            assert await client.list_models() == ["chatgpt-4o-latest", "gpt-4o"]

    @pytest.mark.asyncio
    async def test_complete(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content)["stream"] is False
            return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": "Done."}}]})

        async with _client(handler) as client:
            assert await client.complete([Message.user("x")], "gpt-4o") == "Done."


class TestConfiguration:

    @pytest.mark.asyncio
    async def test_missing_api_key(self) -> None:
        client = OpenAIClient(OpenAIClientConfig(api_key=None))
        with pytest.raises(ConfigurationError) as exc_info:
            await client.initialize()
        assert "OPENAI_API_KEY" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, settings: ChadLlmSettings) -> None:
        client = create_openai_client(settings)
        await client.initialize()
        assert client.is_initialized
        await client.close()
        await client.close()
        assert not client.is_initialized

    def test_create_from_settings(self, tmp_path) -> None:
        settings = ChadLlmSettings(
            api_key="sk-x",
            base_url="http://localhost:1234/v1/",
            max_tokens=100,
            temperature=1.0,
            max_retries=5,
            data_dir=tmp_path,
        )
        client = create_openai_client(settings)
        assert client.config.base_url == "http://localhost:1234/v1"
        assert client.config.max_tokens == 100
        assert client.config.temperature == 1.0
        assert client.retry_manager.config.max_attempts == 5
