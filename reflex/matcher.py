"""
matcher.py — Which taught terms does this line contain?

The line is stemmed, de-duplicated and sorted once, the same way term
keys are built. Then, for every term length that exists in the store,
each run of that many consecutive stems is joined into a key and looked
up. Literal terms (no stems) are checked by plain substring instead.

A literal term and a stemmed one can end up with the same key ("do" is
a stopword, "dos" stems to "do"), so a hit only brings in the responses
of the length it was found at.

Keys still inside their cooldown are skipped.
"""

from __future__ import annotations

import logging

from reflex.stems import Stemmer, ngrams, unique_sorted
from reflex.store import Response, TermStore
from reflex.throttle import ThrottleLedger

log = logging.getLogger(__name__)


class Matcher:

    def __init__(self, store: TermStore, stemmer: Stemmer, throttle: ThrottleLedger):
        self._store = store
        self._stemmer = stemmer
        self._throttle = throttle

    def matches(self, text: str) -> list[tuple[str, int]]:
        """``(key, size)`` for every stored term ``text`` contains."""
        lowered = text.lower()
        stems = unique_sorted(self._stemmer.tokenize_and_stem(lowered))

        found: list[tuple[str, int]] = []
        for n, count in sorted(self._store.term_sizes().items()):
            if count <= 0:
                continue
            if n == 0:
                keys = [k for k in self._store.literal_keys() if k in lowered]
            else:
                keys = [k for k in dict.fromkeys(ngrams(stems, n)) if k in self._store]
            found.extend((key, n) for key in keys)
        return found

    def candidate_keys(self, text: str) -> list[str]:
        """Every stored key ``text`` matches, throttled or not."""
        return list(dict.fromkeys(key for key, _ in self.matches(text)))

    def find_candidates(self, text: str) -> list[Response]:
        """All responses ``text`` could trigger right now."""
        now = self._throttle.now()
        candidates: list[Response] = []
        for key, n in self.matches(text):
            if self._throttle.is_throttled(key, now):
                log.debug("Key %r is cooling down", key)
                continue
            candidates.extend(r for r in self._store.get(key) if r.size == n)
        return candidates
