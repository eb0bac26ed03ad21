"""
throttle.py — Per-term cooldown

Once a term fires, every response under that term stays quiet until
the cooldown has passed. Old stamps are never cleaned up; an expired
stamp simply stops mattering.
"""

from __future__ import annotations

import time
from typing import Callable

DEFAULT_COOLDOWN = 300.0   # seconds


class ThrottleLedger:
    """Term key → time it last fired.

    Not thread-safe on its own; the reactor's lock covers it.
    """

    def __init__(
        self,
        cooldown: float = DEFAULT_COOLDOWN,
        *,
        clock: Callable[[], float] = time.time,
        stamps: dict[str, float] | None = None,
    ):
        self.cooldown = cooldown
        self._clock = clock
        self._stamps: dict[str, float] = dict(stamps or {})

    def now(self) -> float:
        return self._clock()

    def is_throttled(self, key: str, now: float | None = None) -> bool:
        stamp = self._stamps.get(key)
        if stamp is None:
            return False
        if now is None:
            now = self._clock()
        return now < stamp + self.cooldown

    def touch(self, key: str, now: float | None = None) -> float:
        """Start the cooldown for ``key``. Returns the stamp used."""
        stamp = self._clock() if now is None else now
        self._stamps[key] = stamp
        return stamp

    def last_used(self, key: str) -> float | None:
        return self._stamps.get(key)

    def __len__(self) -> int:
        return len(self._stamps)

    def to_dict(self) -> dict[str, float]:
        return dict(self._stamps)

    def load(self, d: dict | None) -> int:
        """Replace all stamps from a persisted mapping, skipping anything
        malformed. Returns how many were kept."""
        stamps: dict[str, float] = {}
        for key, value in (d or {}).items():
            try:
                stamps[str(key)] = float(value)
            except (TypeError, ValueError):
                continue
        self._stamps = stamps
        return len(stamps)
