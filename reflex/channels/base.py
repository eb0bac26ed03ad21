"""Base class for the places Reflex listens in.

A channel turns whatever its platform delivers into InboundMessages on
the bus, and delivers OutboundMessages back. Subclasses implement
start(), stop() and send(); the rest lives here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from reflex.bus.events import InboundMessage, OutboundMessage
from reflex.bus.queue import MessageBus

logger = logging.getLogger(__name__)


class BaseChannel(ABC):

    name: str = "base"

    def __init__(self, config: dict[str, Any], bus: MessageBus) -> None:
        """
        Args:
            config: This channel's section of config["channels"].
            bus: The shared message bus.
        """
        self.config = config
        self.bus = bus
        self._running = False

    @abstractmethod
    async def start(self) -> None:
        """Connect and keep listening until stop() is called."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def send(self, msg: OutboundMessage) -> None:
        ...

    def is_ignored(self, sender_id: str) -> bool:
        """Senders listed under ``ignore`` (usually other bots) are never heard."""
        ignore: list[str] = self.config.get("ignore", [])
        return str(sender_id) in ignore

    async def _hear(
        self,
        sender_id: str,
        chat_id: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Put one line from the platform on the bus."""
        if not content.strip():
            return
        if self.is_ignored(sender_id):
            logger.debug(f"[{self.name}] ignoring {sender_id}")
            return

        await self.bus.publish_inbound(InboundMessage(
            channel=self.name,
            sender_id=str(sender_id),
            chat_id=str(chat_id),
            content=content,
            metadata=metadata or {},
        ))

    @property
    def is_running(self) -> bool:
        return self._running
