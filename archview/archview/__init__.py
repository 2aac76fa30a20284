"""Offline viewer engine for exported chat-server archives."""

__version__ = "0.1.0"
