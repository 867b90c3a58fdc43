"""
CLI interface package for chad-llm.

This package contains the command-line interface components including
the Typer application, the chat REPL, slash commands and terminal input.
"""

__all__ = ["app"]
