import logging

from shredbox.models.expiry_entry import ExpiryEntry
from shredbox.services.ledger import ExpiryLedger


def test_put_is_visible_from_another_session(db_session, session_factory):
    ExpiryLedger(db_session).put("abc123.txt", 1700000000)

    with session_factory() as other:
        entry = other.get(ExpiryEntry, "abc123.txt")
        assert entry is not None
        assert entry.expires_at == "1700000000"


def test_put_overwrites_existing_entry(db_session):
    ledger = ExpiryLedger(db_session)
    ledger.put("a.txt", 10)
    ledger.put("a.txt", 20)

    assert ledger.get("a.txt") == 20
    assert len(ledger.entries()) == 1


def test_get_unknown_name_returns_none(db_session):
    assert ExpiryLedger(db_session).get("missing") is None


def test_scan_all_yields_entries_in_key_order(db_session):
    ledger = ExpiryLedger(db_session)
    ledger.put("ccc", 3)
    ledger.put("aaa", 1)
    ledger.put("bbb", 2)

    assert list(ledger.scan_all()) == [("aaa", 1), ("bbb", 2), ("ccc", 3)]


def test_scan_all_skips_unparsable_values(db_session, caplog):
    db_session.add(ExpiryEntry(name="broken", expires_at="soon"))
    db_session.commit()
    ledger = ExpiryLedger(db_session)
    ledger.put("fine", 5)

    with caplog.at_level(logging.ERROR, logger="shredbox.services.ledger"):
        assert list(ledger.scan_all()) == [("fine", 5)]

    assert any("broken" in r.getMessage() for r in caplog.records)
    # Left in place for an operator to look at.
    assert db_session.get(ExpiryEntry, "broken") is not None


def test_delete_is_committed_by_caller(db_session, session_factory):
    ledger = ExpiryLedger(db_session)
    ledger.put("gone.txt", 1)

    ledger.delete("gone.txt")
    with session_factory() as other:
        assert other.get(ExpiryEntry, "gone.txt") is not None

    db_session.commit()
    with session_factory() as other:
        assert other.get(ExpiryEntry, "gone.txt") is None


def test_delete_unknown_name_is_a_no_op(db_session):
    ExpiryLedger(db_session).delete("never-existed")
    db_session.commit()


def test_delete_with_expected_value_keeps_reissued_entry(db_session):
    ledger = ExpiryLedger(db_session)
    ledger.put("reused.txt", 100)
    ledger.put("reused.txt", 500)

    assert ledger.delete("reused.txt", expires_at=100) is False
    db_session.commit()
    assert ledger.get("reused.txt") == 500

    assert ledger.delete("reused.txt", expires_at=500) is True
    db_session.commit()
    assert ledger.get("reused.txt") is None
