"""Channel manager: starts the enabled channels and delivers what the bot says.

Channels are imported lazily by name, so a platform library is only
needed when its channel is switched on in config.
"""

from __future__ import annotations

import asyncio
import importlib
import logging
from typing import Any

from reflex.bus.events import OutboundMessage
from reflex.bus.queue import MessageBus
from reflex.channels.base import BaseChannel

logger = logging.getLogger(__name__)

# channel name → (module path, class name)
CHANNEL_REGISTRY: dict[str, tuple[str, str]] = {
    "shell": ("reflex.channels.shell", "ShellChannel"),
}


class ChannelManager:

    def __init__(self, channels_config: dict[str, Any], bus: MessageBus) -> None:
        self.bus = bus
        self.channels: dict[str, BaseChannel] = {}
        self._tasks: list[asyncio.Task[None]] = []
        self._dispatch_task: asyncio.Task[None] | None = None

        for name, conf in (channels_config or {}).items():
            if isinstance(conf, dict) and conf.get("enabled", False):
                self._load(name, conf)

    def _load(self, name: str, conf: dict[str, Any]) -> None:
        entry = CHANNEL_REGISTRY.get(name)
        if entry is None:
            logger.warning(f"[channels] unknown channel '{name}' in config")
            return

        module_path, class_name = entry
        try:
            cls = getattr(importlib.import_module(module_path), class_name)
            self.channels[name] = cls(conf, self.bus)
            logger.info(f"[channels] {name} enabled")
        except ImportError as e:
            logger.warning(f"[channels] {name} not available: {e}")
        except Exception as e:
            logger.error(f"[channels] {name} failed to init: {e}")

    def add(self, channel: BaseChannel) -> None:
        """Register an already built channel (embedding, tests)."""
        self.channels[channel.name] = channel

    # ── Lifecycle ──────────────────────────────────────────────

    async def start_all(self) -> None:
        """Start the dispatcher and every channel in the background."""
        if not self.channels:
            logger.warning("[channels] no channels enabled")
            return

        self._dispatch_task = asyncio.create_task(self._dispatch_loop())
        self._tasks = [
            asyncio.create_task(self._run_one(name, ch))
            for name, ch in self.channels.items()
        ]

    async def stop_all(self) -> None:
        for name, ch in self.channels.items():
            try:
                await ch.stop()
            except Exception as e:
                logger.error(f"[channels] error stopping {name}: {e}")

        for task in [*self._tasks, self._dispatch_task]:
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        self._dispatch_task = None

    # ── Internal ───────────────────────────────────────────────

    async def _run_one(self, name: str, channel: BaseChannel) -> None:
        try:
            await channel.start()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[channels] {name} crashed: {e}")

    async def _dispatch_loop(self) -> None:
        while True:
            msg: OutboundMessage = await self.bus.consume_outbound()
            ch = self.channels.get(msg.channel)
            if ch is None:
                logger.warning(f"[channels] nowhere to send to '{msg.channel}'")
                continue
            try:
                await ch.send(msg)
            except Exception as e:
                logger.error(f"[channels] send via {msg.channel} failed: {e}")

    @property
    def enabled(self) -> list[str]:
        return list(self.channels)

    @property
    def finished(self) -> bool:
        """True once every started channel has stopped listening."""
        return bool(self._tasks) and all(t.done() for t in self._tasks)
