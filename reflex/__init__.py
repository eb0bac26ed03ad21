"""Reflex — a chat bot that learns to react to what people say."""

__version__ = "0.3.0"
