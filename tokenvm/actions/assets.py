"""Actions that move, create, mint, burn and modify assets."""

from dataclasses import dataclass

from ..chain import (
    MAX_METADATA_SIZE,
    OUTPUT_ASSET_IS_NATIVE,
    OUTPUT_ASSET_MISSING,
    OUTPUT_METADATA_TOO_LARGE,
    OUTPUT_VALUE_ZERO,
    OUTPUT_WARP_ASSET,
    OUTPUT_WRONG_OWNER,
    Result,
    TokenVMError,
    error_output,
    failure,
)
from ..ids import EMPTY_ID, EMPTY_PUBLIC_KEY, ID_LEN, MAX_UINT64, PUBLIC_KEY_LEN, UINT64_LEN


def _always_valid() -> tuple:
    return -1, -1


@dataclass
class Transfer:
    """Send an amount of an asset to another account."""

    to: bytes = EMPTY_PUBLIC_KEY
    asset: bytes = EMPTY_ID
    value: int = 0

    def execute(self, db, timestamp, actor, tx_id, warp_verified) -> Result:
        units = self.max_units()
        if self.value == 0:
            return failure(units, OUTPUT_VALUE_ZERO)
        try:
            db.sub_balance(actor, self.asset, self.value)
            db.add_balance(self.to, self.asset, self.value)
        except TokenVMError as error:
            return failure(units, error_output(error))
        return Result(success=True, units=units)

    def max_units(self) -> int:
        return PUBLIC_KEY_LEN + ID_LEN + UINT64_LEN

    def marshal(self, writer) -> None:
        writer.pack_public_key(self.to)
        writer.pack_id(self.asset)
        writer.pack_uint64(self.value)

    def valid_range(self) -> tuple:
        return _always_valid()


def unmarshal_transfer(reader, warp_message) -> Transfer:
    """Read a transfer; the recipient and asset may be empty."""
    to = reader.unpack_public_key(False)
    asset = reader.unpack_id(False)
    value = reader.unpack_uint64(True)
    return Transfer(to=to, asset=asset, value=value)


@dataclass
class CreateAsset:
    """Create a new asset owned by the actor, identified by the transaction."""

    metadata: bytes = b""

    def execute(self, db, timestamp, actor, tx_id, warp_verified) -> Result:
        units = self.max_units()
        if len(self.metadata) > MAX_METADATA_SIZE:
            return failure(units, OUTPUT_METADATA_TOO_LARGE)
        db.set_asset(tx_id, self.metadata, 0, actor, False)
        return Result(success=True, units=units)

    def max_units(self) -> int:
        return len(self.metadata)

    def marshal(self, writer) -> None:
        writer.pack_bytes(self.metadata)

    def valid_range(self) -> tuple:
        return _always_valid()


def unmarshal_create_asset(reader, warp_message) -> CreateAsset:
    """Read an asset creation."""
    return CreateAsset(metadata=reader.unpack_bytes(MAX_METADATA_SIZE, False))


@dataclass
class MintAsset:
    """Mint new units of an owned asset to a recipient."""

    to: bytes = EMPTY_PUBLIC_KEY
    asset: bytes = EMPTY_ID
    value: int = 0

    def execute(self, db, timestamp, actor, tx_id, warp_verified) -> Result:
        units = self.max_units()
        if bytes(self.asset) == EMPTY_ID:
            return failure(units, OUTPUT_ASSET_IS_NATIVE)
        if self.value == 0:
            return failure(units, OUTPUT_VALUE_ZERO)
        info = db.get_asset(self.asset)
        if info is None:
            return failure(units, OUTPUT_ASSET_MISSING)
        if info.warp:
            return failure(units, OUTPUT_WARP_ASSET)
        if info.owner != bytes(actor):
            return failure(units, OUTPUT_WRONG_OWNER)
        new_supply = info.supply + self.value
        if new_supply > MAX_UINT64:
            return failure(units, error_output(TokenVMError("overflow")))
        try:
            db.set_asset(self.asset, info.metadata, new_supply, actor, info.warp)
            db.add_balance(self.to, self.asset, self.value)
        except TokenVMError as error:
            return failure(units, error_output(error))
        return Result(success=True, units=units)

    def max_units(self) -> int:
        return PUBLIC_KEY_LEN + ID_LEN + UINT64_LEN

    def marshal(self, writer) -> None:
        writer.pack_public_key(self.to)
        writer.pack_id(self.asset)
        writer.pack_uint64(self.value)

    def valid_range(self) -> tuple:
        return _always_valid()


def unmarshal_mint_asset(reader, warp_message) -> MintAsset:
    """Read a mint; recipient and asset must be set."""
    to = reader.unpack_public_key(True)
    asset = reader.unpack_id(True)
    value = reader.unpack_uint64(True)
    return MintAsset(to=to, asset=asset, value=value)


@dataclass
class BurnAsset:
    """Destroy units of an asset held by the actor."""

    asset: bytes = EMPTY_ID
    value: int = 0

    def execute(self, db, timestamp, actor, tx_id, warp_verified) -> Result:
        units = self.max_units()
        if self.value == 0:
            return failure(units, OUTPUT_VALUE_ZERO)
        try:
            db.sub_balance(actor, self.asset, self.value)
        except TokenVMError as error:
            return failure(units, error_output(error))
        info = db.get_asset(self.asset)
        if info is None:
            return failure(units, OUTPUT_ASSET_MISSING)
        if info.supply < self.value:
            return failure(units, error_output(TokenVMError("underflow")))
        db.set_asset(
            self.asset, info.metadata, info.supply - self.value, info.owner, info.warp
        )
        return Result(success=True, units=units)

    def max_units(self) -> int:
        return ID_LEN + UINT64_LEN

    def marshal(self, writer) -> None:
        writer.pack_id(self.asset)
        writer.pack_uint64(self.value)

    def valid_range(self) -> tuple:
        return _always_valid()


def unmarshal_burn_asset(reader, warp_message) -> BurnAsset:
    """Read a burn; the native asset may be burned."""
    asset = reader.unpack_id(False)
    value = reader.unpack_uint64(True)
    return BurnAsset(asset=asset, value=value)


@dataclass
class ModifyAsset:
    """Replace the owner and metadata of an owned asset."""

    asset: bytes = EMPTY_ID
    owner: bytes = EMPTY_PUBLIC_KEY
    metadata: bytes = b""

    def execute(self, db, timestamp, actor, tx_id, warp_verified) -> Result:
        units = self.max_units()
        if bytes(self.asset) == EMPTY_ID:
            return failure(units, OUTPUT_ASSET_IS_NATIVE)
        if len(self.metadata) > MAX_METADATA_SIZE:
            return failure(units, OUTPUT_METADATA_TOO_LARGE)
        info = db.get_asset(self.asset)
        if info is None:
            return failure(units, OUTPUT_ASSET_MISSING)
        if info.warp:
            return failure(units, OUTPUT_WARP_ASSET)
        if info.owner != bytes(actor):
            return failure(units, OUTPUT_WRONG_OWNER)
        db.set_asset(self.asset, self.metadata, info.supply, self.owner, info.warp)
        return Result(success=True, units=units)

    def max_units(self) -> int:
        return ID_LEN + PUBLIC_KEY_LEN + len(self.metadata)

    def marshal(self, writer) -> None:
        writer.pack_id(self.asset)
        writer.pack_public_key(self.owner)
        writer.pack_bytes(self.metadata)

    def valid_range(self) -> tuple:
        return _always_valid()


def unmarshal_modify_asset(reader, warp_message) -> ModifyAsset:
    """Read a modification; an empty owner revokes ownership."""
    asset = reader.unpack_id(True)
    owner = reader.unpack_public_key(False)
    metadata = reader.unpack_bytes(MAX_METADATA_SIZE, False)
    return ModifyAsset(asset=asset, owner=owner, metadata=metadata)