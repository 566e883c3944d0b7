"""Identifiers, fixed sizes and chain-wide constants."""

import hashlib

ID_LEN = 32
UINT64_LEN = 8
PUBLIC_KEY_LEN = 32
SIGNATURE_LEN = 64
PRIVATE_KEY_LEN = 64

MAX_UINT64 = 2**64 - 1
MAX_INT64 = 2**63 - 1
MIN_INT64 = -(2**63)

EMPTY_ID = bytes(ID_LEN)
EMPTY_PUBLIC_KEY = bytes(PUBLIC_KEY_LEN)

HRP = "RARE"
NAME = "RABBIT"
SYMBOL = "RR"

_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_INDEX = {char: index for index, char in enumerate(_ALPHABET)}
_CHECKSUM_LEN = 4


def _b58encode(data: bytes) -> str:
    number = int.from_bytes(data, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 58)
        digits.append(_ALPHABET[remainder])
    leading = len(data) - len(data.lstrip(b"\0"))
    return "1" * leading + "".join(reversed(digits))


def _b58decode(text: str) -> bytes:
    number = 0
    for char in text:
        try:
            number = number * 58 + _INDEX[char]
        except KeyError:
            raise ValueError(f"invalid base58 character {char!r}") from None
    leading = len(text) - len(text.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\0" * leading + body


def _checksum(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()[-_CHECKSUM_LEN:]


def to_id(data: bytes) -> bytes:
    """Return the identifier of *data*: its SHA-256 digest."""
    return hashlib.sha256(bytes(data)).digest()


def id_to_string(id_bytes: bytes) -> str:
    """Encode a 32-byte identifier as checksummed base58 text."""
    raw = bytes(id_bytes)
    if len(raw) != ID_LEN:
        raise ValueError(f"identifier must be {ID_LEN} bytes, got {len(raw)}")
    return _b58encode(raw + _checksum(raw))


def id_from_string(text: str) -> bytes:
    """Decode checksummed base58 text into a 32-byte identifier."""
    decoded = _b58decode(text.strip())
    if len(decoded) < _CHECKSUM_LEN:
        raise ValueError("encoded identifier is missing its checksum")
    body, check = decoded[:-_CHECKSUM_LEN], decoded[-_CHECKSUM_LEN:]
    if _checksum(body) != check:
        raise ValueError("invalid identifier checksum")
    if len(body) != ID_LEN:
        raise ValueError(f"identifier must be {ID_LEN} bytes, got {len(body)}")
    return body


VM_ID = NAME.encode().ljust(ID_LEN, b"\0")