"""Bus: what the channels hear goes in, what the bot says comes out."""

from reflex.bus.events import InboundMessage, OutboundMessage
from reflex.bus.queue import MessageBus

__all__ = ["InboundMessage", "OutboundMessage", "MessageBus"]
