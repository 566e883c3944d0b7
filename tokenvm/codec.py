"""Binary packing of action fields, with a bitset for optional values."""

import struct

from .ids import (
    EMPTY_ID,
    EMPTY_PUBLIC_KEY,
    ID_LEN,
    MAX_INT64,
    MAX_UINT64,
    MIN_INT64,
    PUBLIC_KEY_LEN,
    SIGNATURE_LEN,
)

_MAX_OPTIONAL_ITEMS = 64


class CodecError(ValueError):
    """Raised when a value cannot be packed or unpacked."""


class Writer:
    """Accumulates packed fields into a byte string."""

    def __init__(self, limit=None):
        self._buffer = bytearray()
        self._limit = limit

    def _write(self, data: bytes) -> None:
        if self._limit is not None and len(self._buffer) + len(data) > self._limit:
            raise CodecError("packer exceeded its maximum size")
        self._buffer += data

    def _pack_fixed(self, value: bytes, size: int, what: str) -> None:
        value = bytes(value)
        if len(value) != size:
            raise CodecError(f"{what} must be {size} bytes, got {len(value)}")
        self._write(value)

    def pack_id(self, value: bytes) -> None:
        self._pack_fixed(value, ID_LEN, "identifier")

    def pack_uint64(self, value: int) -> None:
        if not 0 <= value <= MAX_UINT64:
            raise CodecError(f"{value} does not fit in an unsigned 64-bit integer")
        self._write(struct.pack(">Q", value))

    def pack_int64(self, value: int) -> None:
        if not MIN_INT64 <= value <= MAX_INT64:
            raise CodecError(f"{value} does not fit in a signed 64-bit integer")
        self._write(struct.pack(">q", value))

    def pack_bool(self, value: bool) -> None:
        self._write(b"\x01" if value else b"\x00")

    def pack_bytes(self, value: bytes) -> None:
        value = bytes(value)
        self._write(struct.pack(">I", len(value)))
        self._write(value)

    def pack_public_key(self, value: bytes) -> None:
        self._pack_fixed(value, PUBLIC_KEY_LEN, "public key")

    def pack_signature(self, value: bytes) -> None:
        self._pack_fixed(value, SIGNATURE_LEN, "signature")

    def pack_optional(self, optional: "OptionalWriter") -> None:
        self.pack_uint64(optional.bits)
        self._write(optional.to_bytes())

    def to_bytes(self) -> bytes:
        return bytes(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)


class OptionalWriter:
    """Packs values that are left out when they hold their zero value."""

    def __init__(self):
        self.bits = 0
        self._offset = 0
        self._inner = Writer()

    def _mark(self, present: bool) -> None:
        if self._offset >= _MAX_OPTIONAL_ITEMS:
            raise CodecError("too many optional items")
        if present:
            self.bits |= 1 << self._offset
        self._offset += 1

    def pack_uint64(self, value: int) -> None:
        if value:
            self._inner.pack_uint64(value)
        self._mark(bool(value))

    def pack_int64(self, value: int) -> None:
        if value:
            self._inner.pack_int64(value)
        self._mark(bool(value))

    def pack_id(self, value: bytes) -> None:
        present = bytes(value) != EMPTY_ID
        if present:
            self._inner.pack_id(value)
        self._mark(present)

    def to_bytes(self) -> bytes:
        return self._inner.to_bytes()


class Reader:
    """Reads packed fields from a byte string in order."""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._offset = 0

    def _read(self, size: int) -> bytes:
        end = self._offset + size
        if end > len(self._data):
            raise CodecError("insufficient length")
        chunk = self._data[self._offset:end]
        self._offset = end
        return chunk

    def unpack_id(self, required: bool) -> bytes:
        value = self._read(ID_LEN)
        if required and value == EMPTY_ID:
            raise CodecError("identifier field is not populated")
        return value

    def unpack_uint64(self, required: bool) -> int:
        (value,) = struct.unpack(">Q", self._read(8))
        if required and value == 0:
            raise CodecError("uint64 field is not populated")
        return value

    def unpack_int64(self, required: bool) -> int:
        (value,) = struct.unpack(">q", self._read(8))
        if required and value == 0:
            raise CodecError("int64 field is not populated")
        return value

    def unpack_bool(self) -> bool:
        byte = self._read(1)[0]
        if byte > 1:
            raise CodecError(f"invalid boolean byte {byte}")
        return byte == 1

    def unpack_bytes(self, limit: int, required: bool) -> bytes:
        (size,) = struct.unpack(">I", self._read(4))
        if size > limit:
            raise CodecError(f"byte field of {size} exceeds limit {limit}")
        value = self._read(size)
        if required and not value:
            raise CodecError("byte field is not populated")
        return value

    def unpack_public_key(self, required: bool) -> bytes:
        value = self._read(PUBLIC_KEY_LEN)
        if required and value == EMPTY_PUBLIC_KEY:
            raise CodecError("public key field is not populated")
        return value

    def unpack_signature(self) -> bytes:
        return self._read(SIGNATURE_LEN)

    def optional_reader(self) -> "OptionalReader":
        return OptionalReader(self, self.unpack_uint64(False))

    def remaining(self) -> int:
        return len(self._data) - self._offset


class OptionalReader:
    """Reads values written by an OptionalWriter."""

    def __init__(self, reader: Reader, bits: int):
        self._reader = reader
        self._bits = bits
        self._offset = 0

    def _present(self) -> bool:
        if self._offset >= _MAX_OPTIONAL_ITEMS:
            raise CodecError("too many optional items")
        present = bool((self._bits >> self._offset) & 1)
        self._offset += 1
        return present

    def unpack_uint64(self) -> int:
        return self._reader.unpack_uint64(True) if self._present() else 0

    def unpack_int64(self) -> int:
        return self._reader.unpack_int64(True) if self._present() else 0

    def unpack_id(self) -> bytes:
        return self._reader.unpack_id(True) if self._present() else EMPTY_ID

    def done(self) -> None:
        if self._bits >> self._offset:
            raise CodecError("unexpected optional fields")