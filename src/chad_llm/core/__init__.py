"""
Core components for chad-llm.

This module provides the API client, the conversation context, chat
sessions and the application state shared by the CLI.
"""

__all__ = ["client", "conversation", "session", "application"]
