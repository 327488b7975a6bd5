"""Configuration module for Clientbook."""

from clientbook.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
