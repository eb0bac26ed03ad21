"""Shell channel — talk to Reflex from a terminal.

Every line typed is a chat line from ``user`` in chat ``shell``.
Address the bot ("reflex: react pizza I love pizza!") to give commands;
anything else is just talk it may react to.

Input is read by a daemon thread that hands lines to the event loop.
A blocked read never holds up shutdown: stop() returns at once and the
thread dies with the process.
"""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from typing import Any, TextIO

from reflex.bus.events import OutboundMessage
from reflex.bus.queue import MessageBus
from reflex.channels.base import BaseChannel

logger = logging.getLogger(__name__)


class ShellChannel(BaseChannel):

    name = "shell"

    def __init__(
        self,
        config: dict[str, Any],
        bus: MessageBus,
        *,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        super().__init__(config, bus)
        self.user: str = config.get("user", "shell")
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._lines: asyncio.Queue[str | None] | None = None

    async def start(self) -> None:
        self._running = True
        loop = asyncio.get_running_loop()
        lines: asyncio.Queue[str | None] = asyncio.Queue()
        self._lines = lines
        threading.Thread(
            target=self._read_lines,
            args=(loop, lines),
            name="shell-stdin",
            daemon=True,
        ).start()
        logger.info(f"[shell] listening as '{self.user}'")

        while self._running:
            line = await lines.get()
            if line is None:
                break
            await self._hear(self.user, "shell", line.rstrip("\n"))

        self._running = False
        self._lines = None

    def _read_lines(self, loop: asyncio.AbstractEventLoop, lines: asyncio.Queue[str | None]) -> None:
        """Runs on the reader thread. ``None`` marks end of input."""
        try:
            try:
                for line in iter(self._stdin.readline, ""):
                    loop.call_soon_threadsafe(lines.put_nowait, line)
                logger.info("[shell] end of input")
            except (OSError, ValueError) as e:
                logger.warning(f"[shell] input closed: {e}")
            loop.call_soon_threadsafe(lines.put_nowait, None)
        except RuntimeError:
            # event loop already closed
            return

    async def stop(self) -> None:
        self._running = False
        if self._lines is not None:
            self._lines.put_nowait(None)

    async def send(self, msg: OutboundMessage) -> None:
        self._stdout.write(f"{msg.content}\n")
        self._stdout.flush()
