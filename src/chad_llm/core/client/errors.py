"""
Structured error system for the chad-llm API client.

Every failure that can reach the user is expressed as a ChadLlmError
subclass, so the CLI can print one friendly line instead of a traceback.
"""

import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ChadLlmError(Exception):
    """Base exception for all API related errors."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "message": self.message,
            "status": self.status,
            "code": self.code,
            "details": self.details,
            "type": self.__class__.__name__
        }

    def __str__(self) -> str:
        parts = [self.message]
        if self.status:
            parts.append(f"(Status: {self.status})")
        if self.code:
            parts.append(f"(Code: {self.code})")
        return " ".join(parts)


class AuthenticationError(ChadLlmError):
    """The API key is missing, malformed or revoked."""

    def __init__(self, message: str = "Authentication failed", **kwargs):
        kwargs.setdefault("status", 401)
        kwargs.setdefault("code", "AUTHENTICATION_ERROR")
        super().__init__(message, **kwargs)


class AuthorizationError(ChadLlmError):
    """The key is valid but not allowed to use the resource."""

    def __init__(self, message: str = "Authorization failed", resource: Optional[str] = None, **kwargs):
        kwargs.setdefault("status", 403)
        kwargs.setdefault("code", "AUTHORIZATION_ERROR")
        super().__init__(message, **kwargs)
        if resource:
            self.details["resource"] = resource


class QuotaExceededError(ChadLlmError):
    """Rate limit hit, or the account balance is exhausted."""

    def __init__(
        self,
        message: str = "API quota exceeded",
        quota_type: Optional[str] = None,
        retry_after: Optional[int] = None,
        **kwargs
    ):
        kwargs.setdefault("status", 429)
        kwargs.setdefault("code", "QUOTA_EXCEEDED")
        super().__init__(message, **kwargs)
        if quota_type:
            self.details["quota_type"] = quota_type
        if retry_after:
            self.details["retry_after"] = retry_after

    @property
    def is_insufficient_quota(self) -> bool:
        return self.details.get("quota_type") == "insufficient_quota"


class ModelUnavailableError(ChadLlmError):
    """Requested model does not exist or the key cannot see it."""

    def __init__(self, message: str = "Model unavailable", model: Optional[str] = None, **kwargs):
        kwargs.setdefault("status", 404)
        kwargs.setdefault("code", "MODEL_UNAVAILABLE")
        super().__init__(message, **kwargs)
        if model:
            self.details["model"] = model


class InvalidRequestError(ChadLlmError):
    """Error for invalid API requests."""

    def __init__(self, message: str = "Invalid request", field: Optional[str] = None, **kwargs):
        kwargs.setdefault("status", 400)
        kwargs.setdefault("code", "INVALID_REQUEST")
        super().__init__(message, **kwargs)
        if field:
            self.details["field"] = field


class ServerError(ChadLlmError):
    """Error for server-side issues."""

    def __init__(self, message: str = "Server error", **kwargs):
        kwargs.setdefault("status", 500)
        kwargs.setdefault("code", "SERVER_ERROR")
        super().__init__(message, **kwargs)


class NetworkError(ChadLlmError):
    """Error for network-related issues."""

    def __init__(self, message: str = "Network error", **kwargs):
        kwargs.setdefault("code", "NETWORK_ERROR")
        super().__init__(message, **kwargs)


class RequestTimeoutError(ChadLlmError):
    """Error for request timeouts."""

    def __init__(self, message: str = "Request timeout", timeout_seconds: Optional[float] = None, **kwargs):
        kwargs.setdefault("code", "TIMEOUT_ERROR")
        super().__init__(message, **kwargs)
        if timeout_seconds:
            self.details["timeout_seconds"] = timeout_seconds


class ConfigurationError(ChadLlmError):
    """Error related to client configuration."""

    def __init__(self, message: str = "Configuration error", config_field: Optional[str] = None, **kwargs):
        kwargs.setdefault("code", "CONFIGURATION_ERROR")
        super().__init__(message, **kwargs)
        if config_field:
            self.details["config_field"] = config_field


class StreamError(ChadLlmError):
    """The server reported an error in the middle of a stream."""

    def __init__(self, message: str = "Stream error", **kwargs):
        kwargs.setdefault("code", "STREAM_ERROR")
        super().__init__(message, **kwargs)


def error_from_response(
    status: int,
    body: Any,
    retry_after: Optional[str] = None,
    model: Optional[str] = None,
) -> ChadLlmError:
    """
    Build a structured error from an HTTP error response.

    Args:
        status: HTTP status code
        body: Response body, either raw text or the decoded JSON
        retry_after: Value of the Retry-After header, if any
        model: Model the request was for

    Returns:
        ChadLlmError subclass matching the status and OpenAI error code
    """
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except (TypeError, ValueError):
            body = {"error": {"message": body.decode(errors="replace") if isinstance(body, bytes) else body}}

    error_body = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error_body, dict):
        error_body = {}

    message = error_body.get("message") or f"HTTP {status} error"
    error_type = error_body.get("type")
    error_code = error_body.get("code")
    details = {k: v for k, v in (("type", error_type), ("api_code", error_code)) if v}

    if status == 401:
        return AuthenticationError(message, details=details)
    if status == 403:
        return AuthorizationError(message, details=details)
    if status == 404:
        return ModelUnavailableError(message, model=model, details=details)
    if status == 429:
        seconds = None
        if retry_after:
            try:
                seconds = int(float(retry_after))
            except ValueError:
                seconds = None
        quota_type = "insufficient_quota" if "insufficient_quota" in (error_code, error_type) else "rate_limit"
        return QuotaExceededError(message, quota_type=quota_type, retry_after=seconds, details=details)
    if 400 <= status < 500:
        return InvalidRequestError(message, status=status, details=details)
    if status >= 500:
        return ServerError(message, status=status, details=details)
    return ChadLlmError(message, status=status, details=details)


def classify_error(error: Exception) -> ChadLlmError:
    """
    Classify a generic exception into a structured ChadLlmError.

    Args:
        error: The original exception

    Returns:
        Classified ChadLlmError instance
    """
    if isinstance(error, ChadLlmError):
        return error

    # Imported here so the error module stays usable without the HTTP stack
    import httpx

    if isinstance(error, httpx.TimeoutException):
        return RequestTimeoutError(str(error) or "Request timeout", original_error=error)
    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        classified = error_from_response(
            response.status_code,
            _safe_response_text(response),
            retry_after=response.headers.get("Retry-After"),
        )
        classified.original_error = error
        return classified
    if isinstance(error, httpx.TransportError):
        return NetworkError(str(error) or "Network error", original_error=error)

    error_message = str(error)
    error_lower = error_message.lower()

    status = getattr(error, 'status', None) or getattr(error, 'status_code', None)
    if isinstance(status, int):
        classified = error_from_response(status, {"error": {"message": error_message}})
        classified.original_error = error
        return classified

    if "unauthorized" in error_lower or "api key" in error_lower:
        return AuthenticationError(error_message, original_error=error)
    elif "quota" in error_lower or "rate limit" in error_lower:
        return QuotaExceededError(error_message, original_error=error)
    elif "timeout" in error_lower or "timed out" in error_lower:
        return RequestTimeoutError(error_message, original_error=error)
    elif "network" in error_lower or "connection" in error_lower:
        return NetworkError(error_message, original_error=error)

    return ChadLlmError(error_message or type(error).__name__, original_error=error)


def _safe_response_text(response: Any) -> str:
    try:
        return response.text
    except Exception:
        # Streaming responses that were never read have no text
        return ""


def is_retryable_error(error: Exception) -> bool:
    """
    Check if an error is worth retrying.

    Rate limits, server errors, network failures and timeouts are transient.
    An exhausted account balance is not.
    """
    if isinstance(error, QuotaExceededError):
        return not error.is_insufficient_quota
    if isinstance(error, (ServerError, NetworkError, RequestTimeoutError)):
        return True

    status = getattr(error, 'status', None)
    if isinstance(status, int):
        return status == 429 or 500 <= status < 600

    return False


def get_retry_delay(error: Exception) -> Optional[int]:
    """
    Get the retry delay from an error if available.

    Returns:
        Retry delay in seconds, or None if not specified
    """
    details = getattr(error, 'details', None)
    if isinstance(details, dict) and details.get('retry_after'):
        return details['retry_after']
    return None


def create_user_friendly_message(error: ChadLlmError) -> str:
    """
    Create a user-friendly error message.

    Args:
        error: The ChadLlmError to convert

    Returns:
        One-line message suitable for the terminal
    """
    if isinstance(error, ConfigurationError):
        return error.message

    elif isinstance(error, AuthenticationError):
        return "Authentication failed. Please check the OPENAI_API_KEY environment variable."

    elif isinstance(error, AuthorizationError):
        return "You don't have permission to access this resource. Please check your account permissions."

    elif isinstance(error, QuotaExceededError):
        if error.is_insufficient_quota:
            return "Your OpenAI account has insufficient balance. Please check your plan and billing details."
        retry_after = error.details.get("retry_after")
        if retry_after:
            return f"Rate limit exceeded. Please try again in {retry_after} seconds."
        return "Rate limit exceeded. Please try again later."

    elif isinstance(error, ModelUnavailableError):
        model = error.details.get("model")
        if model:
            return f"The model '{model}' is not available. Please try a different model."
        return "The requested model is not available. Please try a different model."

    elif isinstance(error, NetworkError):
        return "Network error occurred. Please check your internet connection and try again."

    elif isinstance(error, RequestTimeoutError):
        return "The request timed out. Please try again."

    elif isinstance(error, ServerError):
        return "The API server returned an error. Please try again later."

    elif isinstance(error, InvalidRequestError):
        return f"The request was rejected: {error.message}"

    else:
        return f"An error occurred: {error.message}"
