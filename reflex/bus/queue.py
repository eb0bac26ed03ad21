"""Async message bus between the chat channels and the reactor.

Two queues:
- inbound:  every line the channels hear, directed at us or not
- outbound: replies to commands plus delayed reactions

A reaction is just an outbound message that shows up a few seconds
after the line that triggered it.
"""

from __future__ import annotations

import asyncio
import logging

from reflex.bus.events import InboundMessage, OutboundMessage

logger = logging.getLogger(__name__)


class MessageBus:
    """Shared by the channel manager and the bot. One per process."""

    def __init__(self) -> None:
        self._inbound: asyncio.Queue[InboundMessage] = asyncio.Queue()
        self._outbound: asyncio.Queue[OutboundMessage] = asyncio.Queue()

    # ── Heard (channel → bot) ──────────────────────────────────

    async def publish_inbound(self, msg: InboundMessage) -> None:
        logger.debug(f"[bus] heard {msg.session_key} from {msg.sender_id}")
        await self._inbound.put(msg)

    async def consume_inbound(self) -> InboundMessage:
        return await self._inbound.get()

    # ── Said (bot → channel) ───────────────────────────────────

    async def publish_outbound(self, msg: OutboundMessage) -> None:
        logger.debug(f"[bus] saying to {msg.channel}:{msg.chat_id}")
        await self._outbound.put(msg)

    async def reply(self, to: InboundMessage, content: str, **metadata) -> None:
        """Answer in the same chat the message came from."""
        await self.publish_outbound(OutboundMessage(
            channel=to.channel,
            chat_id=to.chat_id,
            content=content,
            reply_to=to.metadata.get("message_id"),
            metadata=metadata,
        ))

    async def consume_outbound(self) -> OutboundMessage:
        return await self._outbound.get()

    # ── Utility ────────────────────────────────────────────────

    @property
    def inbound_pending(self) -> int:
        return self._inbound.qsize()

    @property
    def outbound_pending(self) -> int:
        return self._outbound.qsize()
