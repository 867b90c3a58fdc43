"""
API client for chad-llm.

This package provides the OpenAI chat-completions client together with
its wire models, server-sent events decoding, retry logic and structured
errors.
"""

from .models import (
    AVAILABLE_MODELS,
    ChatRequest,
    ChatCompletionChunk,
    Message,
    MessageRole,
    ModelList,
)
from .errors import (
    ChadLlmError,
    AuthenticationError,
    AuthorizationError,
    QuotaExceededError,
    ModelUnavailableError,
    InvalidRequestError,
    ServerError,
    NetworkError,
    RequestTimeoutError,
    ConfigurationError,
    StreamError,
    classify_error,
    error_from_response,
    create_user_friendly_message,
)
from .retry import (
    RetryManager,
    RetryConfig,
    FailedAttempt,
)
from .streaming import (
    StreamEvent,
    ChatStreamEvent,
    ContentStreamEvent,
    ErrorStreamEvent,
    FinishedStreamEvent,
    SSEDecoder,
    create_content_event,
    create_error_event,
    create_finished_event,
    extract_delta,
    parse_sse_line,
)
from .openai_client import (
    OpenAIClient,
    OpenAIClientConfig,
    create_openai_client,
)

__all__ = [
    # Models
    "AVAILABLE_MODELS",
    "ChatRequest",
    "ChatCompletionChunk",
    "Message",
    "MessageRole",
    "ModelList",
    # Errors
    "ChadLlmError",
    "AuthenticationError",
    "AuthorizationError",
    "QuotaExceededError",
    "ModelUnavailableError",
    "InvalidRequestError",
    "ServerError",
    "NetworkError",
    "RequestTimeoutError",
    "ConfigurationError",
    "StreamError",
    "classify_error",
    "error_from_response",
    "create_user_friendly_message",
    # Retry Logic
    "RetryManager",
    "RetryConfig",
    "FailedAttempt",
    # Streaming
    "StreamEvent",
    "ChatStreamEvent",
    "ContentStreamEvent",
    "ErrorStreamEvent",
    "FinishedStreamEvent",
    "SSEDecoder",
    "create_content_event",
    "create_error_event",
    "create_finished_event",
    "extract_delta",
    "parse_sse_line",
    # Client
    "OpenAIClient",
    "OpenAIClientConfig",
    "create_openai_client",
]
