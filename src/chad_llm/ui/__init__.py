"""
Terminal output components for chad-llm.
"""

from .renderer import ResponseRenderer

__all__ = ["ResponseRenderer"]
