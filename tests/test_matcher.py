import random

from reflex.matcher import Matcher
from reflex.store import TermStore
from reflex.throttle import ThrottleLedger


def _setup(stemmer, clock, cooldown=300):
    store = TermStore(stemmer, 200, rng=random.Random(1))
    ledger = ThrottleLedger(cooldown, clock=clock)
    return store, ledger, Matcher(store, stemmer, ledger)


def _texts(candidates):
    return sorted(r.response for r in candidates)


def test_single_word_term(stemmer, clock):
    store, ledger, matcher = _setup(stemmer, clock)
    store.teach("pizza", "I love pizza!")

    assert _texts(matcher.find_candidates("I had pizza today")) == ["I love pizza!"]
    assert _texts(matcher.find_candidates("Pizzas for everyone")) == ["I love pizza!"]


def test_no_match_is_empty(stemmer, clock):
    store, ledger, matcher = _setup(stemmer, clock)
    store.teach("pizza", "I love pizza!")
    assert matcher.find_candidates("nothing to see here") == []


def test_empty_store_matches_nothing(stemmer, clock):
    store, ledger, matcher = _setup(stemmer, clock)
    assert matcher.find_candidates("pizza") == []


def test_multi_word_term_any_order(stemmer, clock):
    store, ledger, matcher = _setup(stemmer, clock)
    store.teach("good morning", "Good morning!")

    assert _texts(matcher.find_candidates("well, good morning to you")) == ["Good morning!"]
    assert _texts(matcher.find_candidates("morning good")) == ["Good morning!"]
    assert matcher.find_candidates("good evening") == []


def test_all_responses_under_a_key(stemmer, clock):
    store, ledger, matcher = _setup(stemmer, clock)
    store.teach("pizza", "I love pizza!")
    store.teach("pizza", "Pizza time")
    store.teach("taco", "Taco tuesday")

    assert _texts(matcher.find_candidates("pizza")) == ["I love pizza!", "Pizza time"]
    assert _texts(matcher.find_candidates("pizza and tacos")) == [
        "I love pizza!", "Pizza time", "Taco tuesday",
    ]


def test_terms_of_different_lengths(stemmer, clock):
    store, ledger, matcher = _setup(stemmer, clock)
    store.teach("coffee", "Coffee!")
    store.teach("hot coffee", "Careful, it's hot")
    assert _texts(matcher.find_candidates("one hot coffee please")) == [
        "Careful, it's hot", "Coffee!",
    ]


def test_literal_term_matches_by_substring(stemmer, clock):
    store, ledger, matcher = _setup(stemmer, clock)
    store.teach(":)", "(:")

    assert _texts(matcher.find_candidates("nice :) thanks")) == ["(:"]
    assert _texts(matcher.find_candidates("nice:)")) == ["(:"]
    assert matcher.find_candidates("nice :(") == []


def test_literal_match_ignores_case(stemmer, clock):
    store, ledger, matcher = _setup(stemmer, clock)
    store.teach("THE", "the what?")
    assert _texts(matcher.find_candidates("The End")) == ["the what?"]


def test_throttled_key_is_skipped(stemmer, clock):
    store, ledger, matcher = _setup(stemmer, clock, cooldown=300)
    rec = store.teach("pizza", "I love pizza!")

    ledger.touch(rec.key)
    assert matcher.find_candidates("I had pizza today") == []

    clock.advance(299)
    assert matcher.find_candidates("pizza again") == []

    clock.advance(2)
    assert _texts(matcher.find_candidates("pizza again")) == ["I love pizza!"]


def test_throttle_covers_whole_key(stemmer, clock):
    store, ledger, matcher = _setup(stemmer, clock)
    first = store.teach("pizza", "I love pizza!")
    store.teach("pizza", "Pizza time")
    store.teach("taco", "Taco tuesday")

    ledger.touch(first.key)
    assert _texts(matcher.find_candidates("pizza and tacos")) == ["Taco tuesday"]


def test_throttled_literal_key_is_skipped(stemmer, clock):
    store, ledger, matcher = _setup(stemmer, clock)
    rec = store.teach(":)", "(:")
    ledger.touch(rec.key)
    assert matcher.find_candidates(":)") == []


def test_forgotten_response_never_matches(stemmer, clock):
    store, ledger, matcher = _setup(stemmer, clock)
    rec = store.teach("pizza", "I love pizza!")
    store.forget(rec)
    assert matcher.find_candidates("pizza") == []


def test_literal_and_stemmed_terms_sharing_a_key(stemmer, clock):
    store, ledger, matcher = _setup(stemmer, clock)
    stemmed = store.teach("dos", "stemmed")
    literal = store.teach("do", "literal")
    assert stemmed.key == literal.key == "do"
    assert not stemmed.is_literal and literal.is_literal

    # "do" is a stopword, so only the substring match applies
    assert _texts(matcher.find_candidates("I do")) == ["literal"]
    # "dos" stems to "do" and also contains "do"
    assert _texts(matcher.find_candidates("two dos")) == ["literal", "stemmed"]
