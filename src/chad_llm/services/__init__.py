"""
Service layer for chad-llm.

This module provides backend services used by the CLI, currently the
persistent session history.
"""

__all__ = ["history"]
