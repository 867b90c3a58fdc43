"""
Configuration package for chad-llm.

This package contains the settings model and the hierarchical .env loader.
"""

from .settings import ChadLlmSettings, get_settings
from .env_loader import EnvFileLoader, load_env_with_hierarchy

__all__ = [
    "ChadLlmSettings",
    "get_settings",
    "EnvFileLoader",
    "load_env_with_hierarchy",
]
