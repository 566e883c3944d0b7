"""Cross-chain messages and the transfer payload they carry."""

from dataclasses import dataclass

from .chain import InvalidObjectError
from .codec import OptionalWriter, Reader, Writer
from .ids import (
    EMPTY_ID,
    EMPTY_PUBLIC_KEY,
    ID_LEN,
    PUBLIC_KEY_LEN,
    UINT64_LEN,
    to_id,
)

WARP_TRANSFER_SIZE = (
    PUBLIC_KEY_LEN
    + ID_LEN
    + UINT64_LEN
    + 1
    + UINT64_LEN
    + UINT64_LEN
    + ID_LEN
    + UINT64_LEN
    + UINT64_LEN
    + ID_LEN
)


@dataclass(frozen=True)
class UnsignedWarpMessage:
    """A message bound for another chain, before it is signed."""

    destination_chain_id: bytes
    payload: bytes
    source_chain_id: bytes = EMPTY_ID


@dataclass(frozen=True)
class WarpMessage:
    """A signed message received from another chain."""

    source_chain_id: bytes
    destination_chain_id: bytes
    payload: bytes
    num_signers: int = 0

    @property
    def unsigned(self) -> UnsignedWarpMessage:
        return UnsignedWarpMessage(
            destination_chain_id=self.destination_chain_id,
            payload=self.payload,
            source_chain_id=self.source_chain_id,
        )


@dataclass
class WarpTransfer:
    """Funds moved between chains, with an optional swap on arrival."""

    to: bytes = EMPTY_PUBLIC_KEY
    asset: bytes = EMPTY_ID
    value: int = 0
    is_return: bool = False
    reward: int = 0
    swap_in: int = 0
    asset_out: bytes = EMPTY_ID
    swap_out: int = 0
    swap_expiry: int = 0
    tx_id: bytes = EMPTY_ID

    def marshal(self) -> bytes:
        writer = Writer()
        writer.pack_public_key(self.to)
        writer.pack_id(self.asset)
        writer.pack_uint64(self.value)
        writer.pack_bool(self.is_return)
        optional = OptionalWriter()
        optional.pack_uint64(self.reward)
        optional.pack_uint64(self.swap_in)
        optional.pack_id(self.asset_out)
        optional.pack_uint64(self.swap_out)
        optional.pack_int64(self.swap_expiry)
        writer.pack_optional(optional)
        writer.pack_id(self.tx_id)
        return writer.to_bytes()


def unmarshal_warp_transfer(data: bytes) -> WarpTransfer:
    """Decode a transfer payload, rejecting trailing bytes and bad swaps."""
    reader = Reader(data)
    to = reader.unpack_public_key(False)
    asset = reader.unpack_id(False)
    value = reader.unpack_uint64(True)
    is_return = reader.unpack_bool()
    optional = reader.optional_reader()
    reward = optional.unpack_uint64()
    swap_in = optional.unpack_uint64()
    asset_out = optional.unpack_id()
    swap_out = optional.unpack_uint64()
    swap_expiry = optional.unpack_int64()
    optional.done()
    tx_id = reader.unpack_id(True)
    if reader.remaining():
        raise InvalidObjectError()
    if not valid_swap_params(value, swap_in, asset_out, swap_out, swap_expiry):
        raise InvalidObjectError()
    return WarpTransfer(
        to=to,
        asset=asset,
        value=value,
        is_return=is_return,
        reward=reward,
        swap_in=swap_in,
        asset_out=asset_out,
        swap_out=swap_out,
        swap_expiry=swap_expiry,
        tx_id=tx_id,
    )


def imported_asset_metadata(asset_id: bytes, source_chain_id: bytes) -> bytes:
    """Metadata of an imported asset: the original asset and its chain."""
    return bytes(asset_id) + bytes(source_chain_id)


def imported_asset_id(asset_id: bytes, source_chain_id: bytes) -> bytes:
    """Identifier under which an asset from another chain is tracked."""
    return to_id(imported_asset_metadata(asset_id, source_chain_id))


def valid_swap_params(
    value: int, swap_in: int, asset_out: bytes, swap_out: int, swap_expiry: int
) -> bool:
    """Check that swap fields are either all unset or consistent."""
    if swap_expiry < 0:
        return False
    if swap_in > value:
        return False
    if swap_in > 0:
        return swap_out != 0
    if bytes(asset_out) != EMPTY_ID:
        return False
    if swap_out != 0:
        return False
    return swap_expiry == 0