from __future__ import annotations

import pytest

from reflex.stems import PorterTokenizer


class FakeClock:
    """Settable stand-in for time.time."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stemmer() -> PorterTokenizer:
    return PorterTokenizer()
