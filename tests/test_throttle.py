from reflex.throttle import ThrottleLedger


def test_unknown_key_is_not_throttled(clock):
    ledger = ThrottleLedger(300, clock=clock)
    assert not ledger.is_throttled("pizza")


def test_cooldown_window(clock):
    ledger = ThrottleLedger(300, clock=clock)
    ledger.touch("pizza")

    clock.advance(299)
    assert ledger.is_throttled("pizza")

    clock.advance(2)
    assert not ledger.is_throttled("pizza")


def test_load_skips_malformed_stamps(clock):
    ledger = ThrottleLedger(300, clock=clock)
    kept = ledger.load({"pizza": 12.5, "bad": "soon", "none": None})
    assert kept == 1
    assert ledger.last_used("pizza") == 12.5
    assert ledger.to_dict() == {"pizza": 12.5}


def test_load_none_clears(clock):
    ledger = ThrottleLedger(300, clock=clock)
    ledger.touch("pizza")
    ledger.load(None)
    assert len(ledger) == 0
