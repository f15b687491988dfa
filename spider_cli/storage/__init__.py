"""
Storage Layer.

This package handles configuration persistence: reading the content,
crawler and fetcher files, and writing advanced counters back.
"""

from .config_manager import ConfigManager

__all__ = ["ConfigManager"]
