"""
stems.py — Tokenizing, stemming, term keys

Everything Reflex compares goes through here first. A taught term and
an overheard line are both reduced to a sorted set of Porter stems, so
"good mornings" and "Morning, good!" land on the same key.

Terms with no real words in them (":)", "\\o/") have no stems at all.
Those keep their lowercased literal text as the key and are matched by
substring instead.
"""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

from nltk.stem.porter import PorterStemmer

KEY_SEPARATOR = ","

_WORD_SPLIT = re.compile(r"\W+")

# the usual small english stopword list plus single letters and digits
STOPWORDS = frozenset("""
about above after again all also am an and another any are as at
be because been before being below between both but by
came can cannot come could did do does doing during each few for from further
get got has had he have her here him himself his how
if in into is it its itself like make many me might more most much must my myself
never now of on only other our ours ourselves out over own
said same see should since so some still such take than that the their theirs
them themselves then there these they this those through to too under until up
very was way we well were what where when which while who whom with would why
you your yours yourself
""".split()) | frozenset("abcdefghijklmnopqrstuvwxyz0123456789_")


# ── protocol ────────────────────────────────────────────────────────

@runtime_checkable
class Stemmer(Protocol):
    """What the store and the matcher need from a stemmer."""
    def tokenize_and_stem(self, text: str) -> list[str]: ...


# ── porter ──────────────────────────────────────────────────────────

class PorterTokenizer:
    """Split on non-word characters, drop stopwords, Porter-stem the rest.

    Output keeps input order and may contain repeats; callers that
    need a canonical form use :func:`unique_sorted`.
    """

    def __init__(self, stopwords: frozenset[str] = STOPWORDS):
        self._stemmer = PorterStemmer()
        self._stopwords = stopwords
        self._cache: dict[str, str] = {}

    def tokenize(self, text: str) -> list[str]:
        tokens = _WORD_SPLIT.split(text.lower())
        return [t for t in tokens if t and t not in self._stopwords]

    def stem(self, token: str) -> str:
        cached = self._cache.get(token)
        if cached is None:
            cached = self._stemmer.stem(token)
            self._cache[token] = cached
        return cached

    def tokenize_and_stem(self, text: str) -> list[str]:
        return [self.stem(t) for t in self.tokenize(text)]


# ── keys ────────────────────────────────────────────────────────────

def unique_sorted(stems: list[str]) -> list[str]:
    return sorted(set(stems))


def term_key(stems: list[str], term: str) -> str:
    """Canonical key for a term.

    Sorted stems joined by a comma, or the lowercased literal term when
    there are no stems.
    """
    if stems:
        return KEY_SEPARATOR.join(stems)
    return term.lower()


def ngrams(stems: list[str], n: int) -> list[str]:
    """All contiguous n-grams of ``stems`` as joined keys."""
    if n <= 0 or n > len(stems):
        return []
    return [KEY_SEPARATOR.join(stems[i:i + n]) for i in range(len(stems) - n + 1)]
