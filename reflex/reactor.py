"""
reactor.py — The reacting self

Ties the term store, the matcher and the throttle ledger together
behind one lock, and remembers the last thing it said so that
"ignore that" knows what to forget.

One Reactor per process. The store, its term-size index and the
throttle ledger change together or not at all; every mutating call
holds the lock for its whole duration and reads hold it too, so a
match never sees a store and index that disagree.

Usage:
    reactor = Reactor(capacity=200, cooldown=300, brain=brain)
    reactor.restore()
    reactor.teach("pizza", "I love pizza!")

    picked = reactor.choose("I had pizza today")
    if picked:
        # ... a few seconds later
        reactor.fire(picked)
        say(picked.response)

    result = reactor.undo_last()
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from reflex.brain import BlobName, BrainLike
from reflex.matcher import Matcher
from reflex.stems import PorterTokenizer, Stemmer
from reflex.store import DEFAULT_CAPACITY, Response, TermStore
from reflex.throttle import DEFAULT_COOLDOWN, ThrottleLedger

log = logging.getLogger(__name__)


class UndoOutcome(str, Enum):
    NOTHING_TO_UNDO = "nothing_to_undo"   # nothing has fired since the last undo
    FORGOTTEN = "forgotten"
    NOT_FOUND = "not_found"               # fired, but already gone from the store


@dataclass
class UndoResult:
    outcome: UndoOutcome
    response: Response | None = None

    @property
    def forgotten(self) -> bool:
        return self.outcome is UndoOutcome.FORGOTTEN


class Reactor:
    """Teach, match, fire, undo."""

    def __init__(
        self,
        stemmer: Stemmer | None = None,
        *,
        capacity: int = DEFAULT_CAPACITY,
        cooldown: float = DEFAULT_COOLDOWN,
        brain: BrainLike | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._stemmer = stemmer or PorterTokenizer()
        self._brain = brain
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self.store = TermStore(self._stemmer, capacity, brain=brain, rng=self._rng)
        self.throttle = ThrottleLedger(cooldown, clock=clock)
        self.matcher = Matcher(self.store, self._stemmer, self.throttle)
        self._last_fired: Response | None = None

    @property
    def last_fired(self) -> Response | None:
        return self._last_fired

    # ── startup ─────────────────────────────────────────────────────

    def restore(self, *, keep_current: bool = False) -> None:
        """Pull store, index and throttle stamps from the brain.

        ``keep_current`` merges what is already in memory into what the
        brain holds instead of replacing it (a brain that loaded late).
        """
        if self._brain is None:
            return
        with self._lock:
            self.store.restore(keep_current=keep_current)
            fresh = self.throttle.to_dict() if keep_current else {}
            stamps = self._brain.load(BlobName.THROTTLES)
            self.throttle.load(stamps if isinstance(stamps, dict) else None)
            for key, stamp in fresh.items():
                last = self.throttle.last_used(key)
                if last is None or stamp > last:
                    self.throttle.touch(key, stamp)
            if fresh and self._brain.is_loaded:
                self._brain.save(BlobName.THROTTLES, self.throttle.to_dict())
        log.info("Reactor ready: %d responses, %d throttle stamps",
                 self.store.size, len(self.throttle))

    # ── teaching ────────────────────────────────────────────────────

    def teach(self, term: str, response: str) -> Response:
        with self._lock:
            return self.store.teach(term, response)

    def forget(self, rec: Response) -> bool:
        with self._lock:
            return self.store.forget(rec)

    # ── reacting ────────────────────────────────────────────────────

    def candidates(self, text: str) -> list[Response]:
        with self._lock:
            return self.matcher.find_candidates(text)

    def choose(self, text: str) -> Response | None:
        """Pick one candidate for ``text`` uniformly at random."""
        found = self.candidates(text)
        if not found:
            return None
        return self._rng.choice(found)

    def fire(self, rec: Response) -> Response:
        """Record that ``rec`` was just said and start its key's cooldown."""
        with self._lock:
            self._last_fired = rec
            self.throttle.touch(rec.key)
            if self._brain is not None:
                self._brain.save(BlobName.THROTTLES, self.throttle.to_dict())
        log.debug("Fired %r -> %r", rec.term, rec.response)
        return rec

    # ── "ignore that" ───────────────────────────────────────────────

    def undo_last(self) -> UndoResult:
        """Forget the last response that fired.

        The last-fired record is cleared whatever happens, so a second
        undo in a row always has nothing to undo.
        """
        with self._lock:
            rec = self._last_fired
            self._last_fired = None
            if rec is None:
                return UndoResult(UndoOutcome.NOTHING_TO_UNDO)
            if self.store.forget(rec):
                return UndoResult(UndoOutcome.FORGOTTEN, rec)
            return UndoResult(UndoOutcome.NOT_FOUND, rec)
