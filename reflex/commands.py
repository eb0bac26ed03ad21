"""
commands.py — What people can tell Reflex to do

Only lines addressed to the bot count as commands ("reflex: ...",
"@reflex, ..."). Everything else is chatter the bot may react to.

    react <term> <response>       term is one word, or a "quoted phrase"
    ignore that                   forget whatever it just said
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from reflex.reactor import UndoOutcome, UndoResult
from reflex.store import Response

_REACT = re.compile(
    r"""^react\s+(?:"([^"]+)"|'([^']+)'|(\S+))\s+(.+)$""",
    re.IGNORECASE | re.DOTALL,
)
_IGNORE = re.compile(r"^ignore that\b", re.IGNORECASE)


class CommandKind(str, Enum):
    REACT = "react"
    IGNORE = "ignore"


@dataclass
class Command:
    kind: CommandKind
    term: str = ""
    response: str = ""


def mention_pattern(name: str, alias: str | None = None) -> re.Pattern[str]:
    """``^[@]?name[:,]?\\s``, case-insensitive, alias allowed too."""
    names = [re.escape(n) for n in (name, alias) if n]
    return re.compile(r"^[@]?(?:%s)[:,]?\s+" % "|".join(names), re.IGNORECASE)


def addressed(text: str, pattern: re.Pattern[str]) -> str | None:
    """The rest of ``text`` if it is addressed to the bot, else None."""
    m = pattern.match(text)
    if m is None:
        return None
    return text[m.end():].strip()


def parse_command(text: str) -> Command | None:
    text = text.strip()

    m = _REACT.match(text)
    if m:
        term = next(g for g in m.groups()[:3] if g is not None)
        return Command(CommandKind.REACT, term=term, response=m.group(4).strip())

    if _IGNORE.match(text):
        return Command(CommandKind.IGNORE)

    return None


# ── replies ─────────────────────────────────────────────────────────

def success_message(rec: Response) -> str:
    return f"Reacting to {rec.term} with {rec.response}"


def ignored_message(rec: Response) -> str:
    return f"No longer reacting to {rec.term} with {rec.response}"


def not_found_message() -> str:
    return "Wat."


def undo_message(result: UndoResult) -> str:
    if result.outcome is UndoOutcome.FORGOTTEN and result.response is not None:
        return ignored_message(result.response)
    return not_found_message()
