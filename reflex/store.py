"""
store.py — The Term Store

What Reflex has been taught: term key → response text → Response.

Bounded. When a new response would push the store over capacity, a
random response is thrown out first. Not the oldest, not the least
used: any of them, picked uniformly (first a key, then a response
under it). Forgetting at random is how this bot has always behaved.

Alongside the store sits the term-size index: how many responses are
filed under keys of 1 stem, 2 stems, ... (0 for literal keys). The
matcher uses it to decide which n-gram lengths are worth generating.
It is a cache of the store and can always be rebuilt from it.

Usage:
    store = TermStore(PorterTokenizer(), capacity=200, brain=brain)
    store.restore()
    rec = store.teach("pizza", "I love pizza!")
    store.forget(rec)
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterator

from reflex.brain import BlobName, BrainLike
from reflex.stems import Stemmer, term_key, unique_sorted

log = logging.getLogger(__name__)

DEFAULT_CAPACITY = 200


# ── data types ──────────────────────────────────────────────────────

@dataclass
class Response:
    """One taught reaction. Identified by (key, response)."""
    term: str                   # as the user typed it
    stems: list[str] = field(default_factory=list)  # sorted, unique; empty for literal terms
    key: str = ""
    response: str = ""

    @property
    def size(self) -> int:
        return len(self.stems)

    @property
    def is_literal(self) -> bool:
        return not self.stems

    def to_dict(self) -> dict:
        return {
            "term": self.term,
            "stems": list(self.stems),
            "key": self.key,
            "response": self.response,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Response":
        return cls(
            term=str(d["term"]),
            stems=[str(s) for s in d["stems"]],
            key=str(d["key"]),
            response=str(d["response"]),
        )


def compute_term_sizes(store: dict[str, dict[str, Response]]) -> dict[int, int]:
    """Aggregate stem counts over every response in ``store``."""
    sizes: Counter[int] = Counter()
    for responses in store.values():
        for rec in responses.values():
            sizes[rec.size] += 1
    return dict(sizes)


# ── the store ───────────────────────────────────────────────────────

class TermStore:
    """Bounded term → responses mapping plus its term-size index.

    Not thread-safe; the Reactor serializes access.
    """

    def __init__(
        self,
        stemmer: Stemmer,
        capacity: int = DEFAULT_CAPACITY,
        *,
        brain: BrainLike | None = None,
        rng: random.Random | None = None,
    ):
        self._stemmer = stemmer
        self.capacity = max(1, int(capacity))
        self._brain = brain
        self._rng = rng or random.Random()
        self._store: dict[str, dict[str, Response]] = {}
        self._sizes: dict[int, int] = {}
        self._count = 0

    # ── reads ───────────────────────────────────────────────────────

    @property
    def size(self) -> int:
        """Total number of responses across all keys."""
        return self._count

    def __len__(self) -> int:
        return self._count

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def keys(self) -> list[str]:
        return list(self._store)

    def get(self, key: str) -> list[Response]:
        return list(self._store.get(key, {}).values())

    def literal_keys(self) -> list[str]:
        """Keys of terms that had no stems (matched by substring)."""
        return [
            key for key, responses in self._store.items()
            if any(rec.is_literal for rec in responses.values())
        ]

    def term_sizes(self) -> dict[int, int]:
        return dict(self._sizes)

    def responses(self) -> Iterator[Response]:
        for responses in self._store.values():
            yield from responses.values()

    # ── building records ────────────────────────────────────────────

    def make_record(self, term: str, response: str) -> Response:
        stems = unique_sorted(self._stemmer.tokenize_and_stem(term))
        return Response(term=term, stems=stems, key=term_key(stems, term), response=response)

    # ── mutation ────────────────────────────────────────────────────

    def teach(self, term: str, response: str) -> Response:
        """Store ``response`` under ``term``, evicting first if full.

        Teaching a (term, response) pair that already exists overwrites
        it; it never creates a second copy.
        """
        rec = self.make_record(term, response)

        self.ensure_size(self.capacity - 1)
        self._insert(rec)
        self.save()

        log.info("Learned %r -> %r (key=%s, size=%d/%d)",
                 term, response, rec.key, self._count, self.capacity)
        return rec

    def forget(self, rec: Response) -> bool:
        """Remove ``rec`` if it is still stored. Idempotent."""
        responses = self._store.get(rec.key)
        if responses is None or rec.response not in responses:
            return False

        self._remove(rec.key, rec.response)
        self.save()
        log.info("Forgot %r -> %r", rec.term, rec.response)
        return True

    def ensure_size(self, limit: int) -> int:
        """Evict random responses until at most ``limit`` remain.

        Returns the number evicted. An empty store evicts nothing.
        """
        evicted = 0
        while self._count > limit and self._store:
            key = self._rng.choice(list(self._store))
            response = self._rng.choice(list(self._store[key]))
            rec = self._remove(key, response)
            evicted += 1
            log.debug("Evicted %r -> %r", rec.term, rec.response)
        return evicted

    def _insert(self, rec: Response) -> None:
        responses = self._store.setdefault(rec.key, {})
        old = responses.get(rec.response)
        if old is not None:
            self._dec_size(old.size)
        else:
            self._count += 1
        responses[rec.response] = rec
        self._sizes[rec.size] = self._sizes.get(rec.size, 0) + 1

    def _remove(self, key: str, response: str) -> Response:
        responses = self._store[key]
        rec = responses.pop(response)
        if not responses:
            del self._store[key]
        self._count -= 1
        self._dec_size(rec.size)
        return rec

    def _dec_size(self, size: int) -> None:
        left = self._sizes.get(size, 0) - 1
        if left > 0:
            self._sizes[size] = left
        else:
            self._sizes.pop(size, None)

    # ── index repair ────────────────────────────────────────────────

    def rebuild_index(self) -> dict[int, int]:
        """Recompute the term-size index (and count) from the store."""
        self._sizes = compute_term_sizes(self._store)
        self._count = sum(len(r) for r in self._store.values())
        return dict(self._sizes)

    # ── persistence ─────────────────────────────────────────────────

    def to_dict(self) -> dict[str, dict[str, dict]]:
        return {
            key: {text: rec.to_dict() for text, rec in responses.items()}
            for key, responses in self._store.items()
        }

    def save(self) -> None:
        if self._brain is None:
            return
        self._brain.save(BlobName.MESSAGE_STORE, self.to_dict())
        self._brain.save(BlobName.TERM_SIZES, dict(self._sizes))

    def restore(self, *, keep_current: bool = False) -> None:
        """Load store and index from the brain, repairing as needed.

        - records in the old ``{term, stem, response}`` shape are
          re-derived from their term text (one-time upgrade)
        - a missing or disagreeing term-size index is recomputed
        - with ``keep_current``, responses already in memory (taught
          before a slow brain finished loading) are added on top
        - the store is trimmed to capacity
        Anything changed is written back in the current format, but only
        once the brain has loaded; before that an empty read is not proof
        that nothing is stored.
        """
        if self._brain is None:
            return

        current = list(self.responses()) if keep_current else []
        raw = self._brain.load(BlobName.MESSAGE_STORE)
        upgraded = self._load_store(raw if isinstance(raw, dict) else {})

        stored_sizes = _int_keyed(self._brain.load(BlobName.TERM_SIZES))
        actual = self.rebuild_index()
        repaired = stored_sizes != actual
        if repaired:
            log.info("Term-size index %s; rebuilt from %d responses",
                     "missing" if stored_sizes is None else "out of sync", self._count)

        for rec in current:
            self._insert(rec)
        if current:
            log.info("Kept %d responses taught before the brain loaded", len(current))

        evicted = self.ensure_size(self.capacity)
        if evicted:
            log.info("Trimmed %d responses to fit capacity %d", evicted, self.capacity)

        if not self._brain.is_loaded:
            log.warning("Brain not loaded, not writing the store back")
        elif upgraded or repaired or current or evicted:
            self.save()

        log.info("Term store restored: %d responses under %d keys",
                 self._count, len(self._store))

    def _load_store(self, raw: dict) -> int:
        """Fill the store from a persisted mapping. Returns upgrade count."""
        self._store = {}
        upgraded = 0
        for responses in raw.values():
            if not isinstance(responses, dict):
                continue
            for text, d in responses.items():
                if not isinstance(d, dict):
                    continue
                try:
                    if "stems" in d and "key" in d:
                        rec = Response.from_dict(d)
                    else:
                        rec = self.make_record(str(d["term"]), str(d.get("response", text)))
                        upgraded += 1
                except (KeyError, TypeError) as e:
                    log.warning("Skipping unreadable response %r: %s", text, e)
                    continue
                self._store.setdefault(rec.key, {})[rec.response] = rec
        if upgraded:
            log.info("Upgraded %d responses from the legacy format", upgraded)
        return upgraded


def _int_keyed(d: Any) -> dict[int, int] | None:
    """Normalize a persisted term-size index (JSON gives string keys)."""
    if not isinstance(d, dict):
        return None
    try:
        return {int(k): int(v) for k, v in d.items() if int(v) > 0}
    except (TypeError, ValueError):
        return None
