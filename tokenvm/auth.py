"""Ed25519 authorisation of transactions and fee accounting."""

from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from .chain import BalanceError, TokenVMError
from .ids import (
    EMPTY_ID,
    EMPTY_PUBLIC_KEY,
    PRIVATE_KEY_LEN,
    PUBLIC_KEY_LEN,
    SIGNATURE_LEN,
)

_SEED_LEN = 32


class InvalidSignatureError(TokenVMError):
    """A signature does not match the signer and message."""

    def __init__(self, message: str = "invalid signature"):
        super().__init__(message)


class InsufficientBalanceError(BalanceError):
    """The signer cannot pay the requested fee."""


def _signing_key(private_key: bytes) -> Ed25519PrivateKey:
    private_key = bytes(private_key)
    if len(private_key) != PRIVATE_KEY_LEN:
        raise ValueError(
            f"private key must be {PRIVATE_KEY_LEN} bytes, got {len(private_key)}"
        )
    return Ed25519PrivateKey.from_private_bytes(private_key[:_SEED_LEN])


def _raw_public(key: Ed25519PrivateKey) -> bytes:
    return key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


def generate_private_key() -> bytes:
    """Return a new private key: the seed followed by its public key."""
    key = Ed25519PrivateKey.generate()
    seed = key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
    return seed + _raw_public(key)


def public_key(private_key: bytes) -> bytes:
    """Return the public key belonging to *private_key*."""
    return _raw_public(_signing_key(private_key))


@dataclass
class ED25519:
    """Authorisation by an Ed25519 signature over the transaction."""

    signer: bytes
    signature: bytes

    def max_units(self) -> int:
        # Signatures are priced higher than their size.
        return PUBLIC_KEY_LEN + SIGNATURE_LEN * 5

    def valid_range(self) -> tuple:
        return -1, -1

    def async_verify(self, msg: bytes) -> None:
        try:
            Ed25519PublicKey.from_public_bytes(bytes(self.signer)).verify(
                bytes(self.signature), bytes(msg)
            )
        except (InvalidSignature, ValueError):
            raise InvalidSignatureError() from None

    def verify(self) -> int:
        return self.max_units()

    def payer(self) -> bytes:
        return bytes(self.signer)

    def marshal(self, writer) -> None:
        writer.pack_public_key(self.signer)
        writer.pack_signature(self.signature)

    def can_deduct(self, db, amount: int) -> None:
        balance = db.get_balance(self.signer, EMPTY_ID)
        if balance < amount:
            raise InsufficientBalanceError(
                f"invalid balance: have {balance}, need {amount}"
            )

    def deduct(self, db, amount: int) -> None:
        db.sub_balance(self.signer, EMPTY_ID, amount)

    def refund(self, db, amount: int) -> None:
        db.add_balance(self.signer, EMPTY_ID, amount)


def unmarshal_ed25519(reader, warp_message) -> ED25519:
    """Read an ED25519 authorisation; the signer must be set."""
    signer = reader.unpack_public_key(True)
    signature = reader.unpack_signature()
    return ED25519(signer=signer, signature=signature)


class ED25519Factory:
    """Signs transactions with one private key."""

    def __init__(self, private_key: bytes):
        self._key = _signing_key(private_key)

    def sign(self, msg: bytes, action) -> ED25519:
        return ED25519(signer=_raw_public(self._key), signature=self._key.sign(bytes(msg)))


def get_actor(auth) -> bytes:
    """Return the account acting in a transaction."""
    return auth.signer if isinstance(auth, ED25519) else EMPTY_PUBLIC_KEY


def get_signer(auth) -> bytes:
    """Return the account that signed a transaction."""
    return auth.signer if isinstance(auth, ED25519) else EMPTY_PUBLIC_KEY