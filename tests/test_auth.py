import pytest

from tokenvm.auth import (
    ED25519,
    ED25519Factory,
    InsufficientBalanceError,
    InvalidSignatureError,
    generate_private_key,
    get_actor,
    get_signer,
    public_key,
    unmarshal_ed25519,
)
from tokenvm.chain import BalanceError, State
from tokenvm.codec import CodecError, Reader, Writer
from tokenvm.ids import EMPTY_ID, EMPTY_PUBLIC_KEY


@pytest.fixture
def private_key():
    return generate_private_key()


def test_private_key_layout(private_key):
    assert len(private_key) == 64
    assert public_key(private_key) == private_key[32:]


def test_public_key_rejects_bad_length():
    with pytest.raises(ValueError):
        public_key(b"\x01" * 10)


def test_sign_and_verify(private_key):
    auth = ED25519Factory(private_key).sign(b"hello", None)
    assert auth.signer == public_key(private_key)
    assert auth.async_verify(b"hello") is None
    with pytest.raises(InvalidSignatureError):
        auth.async_verify(b"hellp")


def test_garbage_signature(private_key):
    auth = ED25519(signer=public_key(private_key), signature=bytes(64))
    with pytest.raises(InvalidSignatureError):
        auth.async_verify(b"hello")


def test_units_and_range(private_key):
    auth = ED25519Factory(private_key).sign(b"m", None)
    assert auth.max_units() == 352
    assert auth.verify() == auth.max_units()
    assert auth.valid_range() == (-1, -1)
    assert auth.payer() == auth.signer


def test_marshal_round_trip(private_key):
    auth = ED25519Factory(private_key).sign(b"payload", None)
    writer = Writer()
    auth.marshal(writer)
    reader = Reader(writer.to_bytes())
    assert unmarshal_ed25519(reader, None) == auth
    assert reader.remaining() == 0


def test_unmarshal_requires_signer():
    writer = Writer()
    writer.pack_public_key(EMPTY_PUBLIC_KEY)
    writer.pack_signature(bytes(64))
    with pytest.raises(CodecError):
        unmarshal_ed25519(Reader(writer.to_bytes()), None)


def test_fee_accounting(private_key):
    auth = ED25519Factory(private_key).sign(b"m", None)
    state = State()
    state.set_balance(auth.signer, EMPTY_ID, 100)
    auth.can_deduct(state, 100)
    with pytest.raises(InsufficientBalanceError):
        auth.can_deduct(state, 101)
    auth.deduct(state, 60)
    assert state.get_balance(auth.signer, EMPTY_ID) == 40
    auth.refund(state, 15)
    assert state.get_balance(auth.signer, EMPTY_ID) == 55
    with pytest.raises(BalanceError):
        auth.deduct(state, 56)


def test_actor_and_signer(private_key):
    auth = ED25519Factory(private_key).sign(b"m", None)
    assert get_actor(auth) == public_key(private_key)
    assert get_signer(auth) == public_key(private_key)
    assert get_actor(object()) == EMPTY_PUBLIC_KEY
    assert get_signer(None) == EMPTY_PUBLIC_KEY