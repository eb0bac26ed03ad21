"""
brain.py — Where Reflex keeps what it knows between runs

Three named blobs, nothing else:

    reactMessageStore   term key → response text → record
    reactTermSizes      stem count → number of responses
    reactThrottles      term key → last time it fired

A brain only has to load and save them by name. Loading never raises
(bad data reads as missing) and saving never raises (a full disk costs
us a write, not the bot).

FileBrain reads everything up front, off the event loop, and serves
loads from memory after that. Until ``wait_loaded()`` finishes every
load comes back empty, which is what the bot runs with if startup times
out. Saves made before then stay in memory: nothing is written to disk
until what is already there has been read.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from reflex import codec

log = logging.getLogger(__name__)


class BlobName(str, Enum):
    MESSAGE_STORE = "reactMessageStore"
    TERM_SIZES = "reactTermSizes"
    THROTTLES = "reactThrottles"


# ── protocol ────────────────────────────────────────────────────────

@runtime_checkable
class BrainLike(Protocol):
    """What the store and the reactor need from persistence."""
    def load(self, name: BlobName) -> Any | None: ...
    def save(self, name: BlobName, data: Any) -> None: ...
    async def wait_loaded(self) -> None: ...

    @property
    def is_loaded(self) -> bool: ...


def _encode(name: BlobName, data: Any) -> bytes | None:
    try:
        return codec.encode(data)
    except codec.CodecError as e:
        log.warning("Not saving %s: %s", name.value, e)
        return None


# ── in memory ───────────────────────────────────────────────────────

class MemoryBrain:
    """Keeps encoded blobs in a dict. Loaded from the start."""

    def __init__(self, payloads: dict[BlobName, bytes | str] | None = None):
        self.payloads: dict[BlobName, bytes | str] = dict(payloads or {})

    def load(self, name: BlobName) -> Any | None:
        return codec.decode(self.payloads.get(name))

    def save(self, name: BlobName, data: Any) -> None:
        payload = _encode(name, data)
        if payload is not None:
            self.payloads[name] = payload

    async def wait_loaded(self) -> None:
        return None

    @property
    def is_loaded(self) -> bool:
        return True


# ── on disk ─────────────────────────────────────────────────────────

class FileBrain:
    """One file per blob under ``state_dir``.

    ``<name>.bin`` holds the current format. A ``<name>.json`` left by
    an older release is read when no ``.bin`` exists yet; the next save
    writes the ``.bin`` next to it.
    """

    def __init__(self, state_dir: str | Path):
        self.state_dir = Path(state_dir)
        self._cache: dict[BlobName, bytes] = {}
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def path_for(self, name: BlobName, suffix: str = ".bin") -> Path:
        return self.state_dir / f"{name.value}{suffix}"

    async def wait_loaded(self) -> None:
        """Read every blob from disk (once)."""
        if self._loaded:
            return
        loop = asyncio.get_running_loop()
        cache = await loop.run_in_executor(None, self._read_all)
        # what is on disk wins over anything saved while we were reading
        self._cache.update(cache)
        self._loaded = True
        log.info("Brain loaded from %s (%d blobs)", self.state_dir, len(cache))

    def _read_all(self) -> dict[BlobName, bytes]:
        cache: dict[BlobName, bytes] = {}
        for name in BlobName:
            for suffix in (".bin", ".json"):
                p = self.path_for(name, suffix)
                if not p.exists():
                    continue
                try:
                    cache[name] = p.read_bytes()
                    break
                except OSError as e:
                    log.warning("Cannot read %s: %s", p, e)
        return cache

    def load(self, name: BlobName) -> Any | None:
        return codec.decode(self._cache.get(name))

    def save(self, name: BlobName, data: Any) -> None:
        payload = _encode(name, data)
        if payload is None:
            return
        self._cache[name] = payload
        if not self._loaded:
            log.debug("Brain not loaded yet, holding %s in memory", name.value)
            return

        p = self.path_for(name)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            tmp = p.with_suffix(".tmp")
            tmp.write_bytes(payload)
            tmp.replace(p)
        except OSError as e:
            log.warning("Failed to save %s: %s", name.value, e)
