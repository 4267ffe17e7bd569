"""
Storage Layer.

This package handles configuration persistence. Downloaded resources are kept
as plain files in the target directory and need no separate store.
"""

from .config_manager import ConfigManager

__all__ = ["ConfigManager"]
