import pytest

from tokenvm.ids import (
    EMPTY_ID,
    ID_LEN,
    NAME,
    VM_ID,
    id_from_string,
    id_to_string,
    to_id,
)


def test_empty_id_string():
    assert id_to_string(EMPTY_ID) == "11111111111111111111111111111111LpoYY"


def test_to_id_is_sha256():
    assert to_id(b"").hex() == (
        "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    )


def test_to_id_length_and_determinism():
    assert len(to_id(b"abc")) == ID_LEN
    assert to_id(b"abc") == to_id(b"abc")
    assert to_id(b"abc") != to_id(b"abd")


@pytest.mark.parametrize(
    "raw", [EMPTY_ID, bytes(range(32)), to_id(b"x"), b"\xff" * 32, b"\0" * 31 + b"\1"]
)
def test_round_trip(raw):
    assert id_from_string(id_to_string(raw)) == raw


def test_round_trip_tolerates_whitespace():
    raw = to_id(b"space")
    assert id_from_string("  " + id_to_string(raw) + "\n") == raw


def test_corrupted_checksum_rejected():
    text = id_to_string(to_id(b"corrupt"))
    last = text[-1]
    replacement = "2" if last != "2" else "3"
    with pytest.raises(ValueError):
        id_from_string(text[:-1] + replacement)


def test_invalid_character_rejected():
    with pytest.raises(ValueError):
        id_from_string("0OIl")


def test_empty_string_rejected():
    with pytest.raises(ValueError):
        id_from_string("")


def test_wrong_length_rejected_on_encode():
    with pytest.raises(ValueError):
        id_to_string(b"abc")


def test_vm_id_holds_name():
    assert VM_ID[: len(NAME)] == NAME.encode()
    assert VM_ID[len(NAME):] == bytes(ID_LEN - len(NAME))