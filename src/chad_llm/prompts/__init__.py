"""
System prompt management for chad-llm.
"""

from .system_prompts import (
    DEFAULT_PROMPT_NAME,
    DEFAULT_PROMPT_TEXT,
    PromptNotFoundError,
    SystemPromptStore,
)

__all__ = [
    "DEFAULT_PROMPT_NAME",
    "DEFAULT_PROMPT_TEXT",
    "PromptNotFoundError",
    "SystemPromptStore",
]
