"""Clientbook: customer records API with token-based authentication."""

__version__ = "0.1.0"
