"""Channels: where Reflex hears people talk.

Each channel implements BaseChannel. Only the local ``shell`` channel
ships with Reflex; others register in channels.manager.CHANNEL_REGISTRY.
"""

from reflex.channels.base import BaseChannel

__all__ = ["BaseChannel"]
