from reflex.commands import (
    CommandKind,
    addressed,
    mention_pattern,
    not_found_message,
    parse_command,
    success_message,
    undo_message,
)
from reflex.reactor import UndoOutcome, UndoResult
from reflex.store import Response


def test_mention_prefix_variants():
    pattern = mention_pattern("reflex")
    assert addressed("reflex react pizza yum", pattern) == "react pizza yum"
    assert addressed("@Reflex: ignore that", pattern) == "ignore that"
    assert addressed("REFLEX, ignore that", pattern) == "ignore that"
    assert addressed("reflexes are fast", pattern) is None
    assert addressed("hey reflex ignore that", pattern) is None


def test_mention_alias():
    pattern = mention_pattern("reflex", "rx")
    assert addressed("rx: ignore that", pattern) == "ignore that"


def test_parse_react_bare_term():
    cmd = parse_command("react pizza I love pizza!")
    assert cmd.kind is CommandKind.REACT
    assert cmd.term == "pizza"
    assert cmd.response == "I love pizza!"


def test_parse_react_quoted_term():
    cmd = parse_command('react "good morning" Good morning!')
    assert cmd.term == "good morning"
    assert cmd.response == "Good morning!"

    cmd = parse_command("react 'hot dog' relish")
    assert cmd.term == "hot dog"
    assert cmd.response == "relish"


def test_parse_ignore():
    assert parse_command("ignore that").kind is CommandKind.IGNORE
    assert parse_command("Ignore that, please").kind is CommandKind.IGNORE


def test_parse_other_text():
    assert parse_command("what is the weather") is None
    assert parse_command("react pizza") is None


def test_messages():
    rec = Response(term="pizza", stems=["pizza"], key="pizza", response="yum")
    assert success_message(rec) == "Reacting to pizza with yum"
    assert undo_message(UndoResult(UndoOutcome.FORGOTTEN, rec)) == "No longer reacting to pizza with yum"
    assert undo_message(UndoResult(UndoOutcome.NOTHING_TO_UNDO)) == not_found_message()
    assert undo_message(UndoResult(UndoOutcome.NOT_FOUND, rec)) == not_found_message()
