"""
OpenAI chat-completions client for chad-llm.

This module talks to the OpenAI HTTP API (or any compatible endpoint) with
httpx. Replies are streamed as server-sent events and yielded as text
deltas while they arrive.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, List, Optional, Sequence

import httpx

from ... import USER_AGENT
from ...config.settings import DEFAULT_BASE_URL, ChadLlmSettings
from .errors import (
    ConfigurationError,
    classify_error,
    error_from_response,
)
from .models import ChatCompletion, ChatRequest, Message, ModelList
from .retry import RetryConfig, RetryManager
from .streaming import SSEDecoder, extract_delta

logger = logging.getLogger(__name__)


@dataclass
class OpenAIClientConfig:
    """Configuration for the OpenAI client."""
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = 60.0
    max_tokens: Optional[int] = 2048
    temperature: Optional[float] = 0.5
    retry_config: RetryConfig = field(default_factory=RetryConfig)


class OpenAIClient:
    """Async client for the chat-completions and models endpoints."""

    def __init__(self, config: OpenAIClientConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.retry_manager = RetryManager(config.retry_config)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    async def initialize(self) -> None:
        """Create the HTTP client with authentication headers."""
        if self._client is not None:
            return

        if not self.config.api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY is not set. Export it or add it to a .env file.",
                config_field="api_key",
            )

        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        # Streams can idle for a long time between tokens on reasoning models,
        # so only connecting is bounded by the short timeout.
        timeout = httpx.Timeout(self.config.timeout_seconds, read=None)

        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            headers=headers,
            timeout=timeout,
            transport=self._transport,
        )
        logger.debug(f"Initialized OpenAI client for {self.config.base_url}")

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "OpenAIClient":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def list_models(self) -> List[str]:
        """Return the ids of all models visible to the API key, sorted."""
        await self.initialize()

        async def _fetch() -> httpx.Response:
            response = await self._client.get("/models")
            if response.is_error:
                raise error_from_response(
                    response.status_code,
                    response.text,
                    retry_after=response.headers.get("Retry-After"),
                )
            return response

        response = await self.retry_manager.retry(_fetch, "models request")
        models = ModelList.model_validate(response.json())
        return sorted(model.id for model in models.data)

    async def complete(self, messages: Sequence[Message], model: str) -> str:
        """Send a non-streaming completion request and return the reply text."""
        await self.initialize()
        request = self._create_request(messages, model, stream=False)

        async def _post() -> httpx.Response:
            response = await self._client.post(
                "/chat/completions", json=request.model_dump(exclude_none=True)
            )
            if response.is_error:
                raise error_from_response(
                    response.status_code,
                    response.text,
                    retry_after=response.headers.get("Retry-After"),
                    model=model,
                )
            return response

        response = await self.retry_manager.retry(_post, "chat request")
        return ChatCompletion.model_validate(response.json()).text

    async def stream_chat(self, messages: Sequence[Message], model: str) -> AsyncIterator[str]:
        """
        Stream a chat completion.

        Args:
            messages: Full conversation context, system prompt first
            model: Model id to use

        Yields:
            Text deltas in arrival order

        Raises:
            ChadLlmError: if the request cannot be opened or the stream fails
        """
        await self.initialize()
        request = self._create_request(messages, model, stream=True)
        body = request.model_dump(exclude_none=True)

        async def _open() -> httpx.Response:
            http_request = self._client.build_request("POST", "/chat/completions", json=body)
            response = await self._client.send(http_request, stream=True)
            if response.is_error:
                content = await response.aread()
                await response.aclose()
                raise error_from_response(
                    response.status_code,
                    content,
                    retry_after=response.headers.get("Retry-After"),
                    model=model,
                )
            return response

        response = await self.retry_manager.retry(_open, "chat request")
        decoder = SSEDecoder()
        try:
            async for chunk in response.aiter_text():
                for payload in decoder.feed(chunk):
                    text = extract_delta(payload)
                    if text:
                        yield text
                if decoder.done:
                    break
            for payload in decoder.flush():
                text = extract_delta(payload)
                if text:
                    yield text
        except httpx.HTTPError as e:
            raise classify_error(e) from e
        finally:
            await response.aclose()

    def _create_request(self, messages: Sequence[Message], model: str, stream: bool) -> ChatRequest:
        return ChatRequest(
            model=model,
            messages=list(messages),
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            stream=stream,
        )


def create_openai_client(
    settings: ChadLlmSettings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> OpenAIClient:
    """Create an OpenAI client from settings."""
    config = OpenAIClientConfig(
        api_key=settings.api_key,
        base_url=settings.base_url,
        timeout_seconds=float(settings.timeout),
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        retry_config=RetryConfig(max_attempts=settings.max_retries),
    )
    return OpenAIClient(config, transport=transport)
