import logging

import pytest

from shredbox.config import DEFAULT_ALPHABET
from shredbox.services import naming
from shredbox.services.naming import allocate_name, claim_path, new_name, release_name
from shredbox.services.shredder import pending_path


def test_new_name_has_requested_length_and_alphabet():
    for length in (1, 3, 6, 128):
        name = new_name(length)
        assert len(name) == length
        assert set(name) <= set(DEFAULT_ALPHABET)


def test_new_name_uses_custom_alphabet():
    name = new_name(64, alphabet="ab")
    assert set(name) <= {"a", "b"}


@pytest.mark.parametrize("length", [0, -1])
def test_new_name_rejects_non_positive_length(length):
    with pytest.raises(ValueError):
        new_name(length)


def test_default_alphabet_has_no_confusable_characters():
    assert not set("ilIoO") & set(DEFAULT_ALPHABET)


def test_allocate_name_skips_existing_files(tmp_path, monkeypatch):
    (tmp_path / "aaa.txt").write_bytes(b"taken")
    names = iter(["aaa", "bbb"])  # first collides, second is free
    monkeypatch.setattr(naming, "new_name", lambda length, alphabet=DEFAULT_ALPHABET: next(names))

    assert allocate_name(tmp_path, ".txt", 3) == "bbb.txt"


def test_allocate_name_skips_names_being_shredded(tmp_path, monkeypatch):
    pending_path(tmp_path, "aaa.txt").write_bytes(b"doomed")
    names = iter(["aaa", "ccc"])
    monkeypatch.setattr(naming, "new_name", lambda length, alphabet=DEFAULT_ALPHABET: next(names))

    assert allocate_name(tmp_path, ".txt", 3) == "ccc.txt"


def test_allocate_name_warns_after_repeated_collisions(tmp_path, monkeypatch, caplog):
    (tmp_path / "aaa").write_bytes(b"taken")
    names = iter(["aaa"] * 6 + ["zzz"])
    monkeypatch.setattr(naming, "new_name", lambda length, alphabet=DEFAULT_ALPHABET: next(names))

    with caplog.at_level(logging.WARNING, logger="shredbox.services.naming"):
        assert allocate_name(tmp_path, "", 3) == "zzz"

    assert any("collisions" in r.getMessage() for r in caplog.records)


def test_claimed_name_is_not_handed_out_twice(tmp_path, monkeypatch):
    names = iter(["abc", "abc", "def"])
    monkeypatch.setattr(naming, "new_name", lambda length, alphabet=DEFAULT_ALPHABET: next(names))

    assert allocate_name(tmp_path, ".txt", 3) == "abc.txt"
    assert claim_path(tmp_path, "abc.txt").exists()
    # The first claim is still being written; nothing public exists yet.
    assert not (tmp_path / "abc.txt").exists()
    assert allocate_name(tmp_path, ".txt", 3) == "def.txt"


def test_released_name_can_be_reused(tmp_path, monkeypatch):
    names = iter(["abc", "abc"])
    monkeypatch.setattr(naming, "new_name", lambda length, alphabet=DEFAULT_ALPHABET: next(names))

    assert allocate_name(tmp_path, "", 3) == "abc"
    release_name(tmp_path, "abc")

    assert not claim_path(tmp_path, "abc").exists()
    assert allocate_name(tmp_path, "", 3) == "abc"
