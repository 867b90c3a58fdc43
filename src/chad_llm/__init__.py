"""
chad-llm - A terminal chat client for the OpenAI API.

This package provides an interactive command-line interface for chatting with
OpenAI models, with streamed replies, code block capture and system prompts.
"""

__version__ = "0.1.0"
__author__ = "chad-llm developers"
__license__ = "MIT"

from typing import Final

# Package metadata
VERSION: Final[str] = __version__
PACKAGE_NAME: Final[str] = "chad-llm"
USER_AGENT: Final[str] = f"{PACKAGE_NAME}/{VERSION}"

__all__ = [
    "__version__",
    "VERSION",
    "PACKAGE_NAME",
    "USER_AGENT",
]
