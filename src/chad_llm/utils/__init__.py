"""
Utilities package for chad-llm.

This package contains shared helpers for logging setup and clipboard access.
"""

__all__ = ["clipboard", "logging"]
