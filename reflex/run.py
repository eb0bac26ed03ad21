"""
run.py — Reflex entry point

Wires brain + reactor + bus + channels together and runs the listening
loop.

Usage:
    python -m reflex.run                          # uses config/default.yaml
    python -m reflex.run --config my_config.yaml  # custom config
    REFLEX_STORE_SIZE=50 python -m reflex.run -v  # env overrides config
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import signal
import time
from typing import Callable

from reflex.brain import BrainLike, FileBrain
from reflex.bus import InboundMessage, MessageBus
from reflex.channels.manager import ChannelManager
from reflex.commands import (
    CommandKind,
    addressed,
    mention_pattern,
    parse_command,
    success_message,
    undo_message,
)
from reflex.config import DEFAULT_CONFIG, Settings, build_settings, load_config
from reflex.reactor import Reactor
from reflex.store import Response

log = logging.getLogger("reflex")


# ── assembly ────────────────────────────────────────────────────────

class Reflex:
    """A fully assembled bot: one brain, one reactor, one bus."""

    def __init__(
        self,
        settings: Settings,
        *,
        brain: BrainLike | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.brain = brain if brain is not None else FileBrain(settings.state_dir / "brain")
        self.reactor = Reactor(
            capacity=settings.store_size,
            cooldown=settings.throttle_expiration,
            brain=self.brain,
            rng=rng,
            clock=clock,
        )
        self.bus = MessageBus()
        self.channel_manager = ChannelManager(settings.channels, self.bus)
        self._mention = mention_pattern(settings.name, settings.alias)
        self._pending: set[asyncio.Task[None]] = set()
        self._late_load: asyncio.Task[None] | None = None
        self._running = False

        log.info(
            "Reflex assembled: name=%s, capacity=%d, cooldown=%.0fs, delay=%.1fs",
            settings.name, settings.store_size,
            settings.throttle_expiration, settings.reaction_delay,
        )

    # ── startup ──────────────────────────────────────────────────────

    async def start(self) -> None:
        """Wait (bounded) for the brain, then restore what we know.

        If the brain is slow we start anyway with whatever it has. The
        load keeps going in the background and is merged in when it lands.
        """
        timeout = self.settings.init_timeout_seconds
        loading = asyncio.ensure_future(self.brain.wait_loaded())
        try:
            await asyncio.wait_for(asyncio.shield(loading), timeout=timeout)
        except asyncio.TimeoutError:
            log.warning("Brain not loaded after %.1fs, starting without it", timeout)
            self._late_load = asyncio.create_task(self._restore_when_loaded(loading))
        self.reactor.restore()

    async def _restore_when_loaded(self, loading: asyncio.Future[None]) -> None:
        try:
            await loading
        except Exception as e:
            log.error("Brain failed to load: %s", e, exc_info=True)
            return
        log.info("Brain loaded late, merging it in")
        self.reactor.restore(keep_current=True)

    @property
    def late_load(self) -> asyncio.Task[None] | None:
        """The background restore started when the brain missed the startup wait."""
        return self._late_load

    # ── handling one message ─────────────────────────────────────────

    async def handle(self, msg: InboundMessage) -> None:
        """Commands if it's addressed to us, otherwise maybe react."""
        rest = addressed(msg.content, self._mention)
        if rest is not None:
            await self._command(msg, rest)
            return

        picked = self.reactor.choose(msg.content)
        if picked is None:
            return

        # no lock is held here; fire() takes it again after the delay
        task = asyncio.create_task(self._react_later(msg, picked))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _command(self, msg: InboundMessage, text: str) -> None:
        cmd = parse_command(text)
        if cmd is None:
            log.debug("Not a command: %r", text[:80])
            return

        if cmd.kind is CommandKind.REACT:
            rec = self.reactor.teach(cmd.term, cmd.response)
            await self.bus.reply(msg, success_message(rec))
        elif cmd.kind is CommandKind.IGNORE:
            result = self.reactor.undo_last()
            log.info("Undo by %s: %s", msg.sender_id, result.outcome.value)
            await self.bus.reply(msg, undo_message(result))

    async def _react_later(self, msg: InboundMessage, rec: Response) -> None:
        """Say ``rec`` after a human-ish pause."""
        if self.settings.reaction_delay > 0:
            await asyncio.sleep(self.settings.reaction_delay)
        self.reactor.fire(rec)
        await self.bus.reply(msg, rec.response, term=rec.term)

    @property
    def pending_reactions(self) -> int:
        return len(self._pending)

    # ── main loop ────────────────────────────────────────────────────

    async def run(self) -> None:
        self._running = True
        await self.start()
        await self.channel_manager.start_all()
        log.info("Listening on: %s", ", ".join(self.channel_manager.enabled) or "nothing")

        while self._running:
            try:
                msg = await asyncio.wait_for(self.bus.consume_inbound(), timeout=1.0)
            except asyncio.TimeoutError:
                if self._idle():
                    log.info("All channels closed.")
                    break
                continue

            try:
                await self.handle(msg)
            except Exception as e:
                log.error("Error handling %s: %s", msg.session_key, e, exc_info=True)

        await self.shutdown()

    def _idle(self) -> bool:
        return (
            self.channel_manager.finished
            and not self._pending
            and self.bus.inbound_pending == 0
            and self.bus.outbound_pending == 0
        )

    async def shutdown(self) -> None:
        """Drop reactions not yet said and close the channels."""
        if self._late_load is not None and not self._late_load.done():
            self._late_load.cancel()
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self.channel_manager.stop_all()
        log.info("Reflex stopped.")

    def stop(self) -> None:
        self._running = False


# ── CLI ─────────────────────────────────────────────────────────────

def main():
    parser = argparse.ArgumentParser(description="Reflex — learns to react to what people say")
    parser.add_argument(
        "--config", "-c",
        default=str(DEFAULT_CONFIG),
        help="Path to config YAML (default: config/default.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    settings = build_settings(load_config(args.config))
    bot = Reflex(settings)

    def shutdown(sig, frame):
        log.info("Shutdown signal received.")
        bot.stop()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    asyncio.run(bot.run())


if __name__ == "__main__":
    main()
