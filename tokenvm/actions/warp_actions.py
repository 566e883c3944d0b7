"""Actions that send assets to another chain and receive them back."""

from dataclasses import dataclass
from typing import Optional

from ..chain import (
    OUTPUT_ANYCAST,
    OUTPUT_ASSET_MISSING,
    OUTPUT_CONFLICTING_ASSET,
    OUTPUT_MUST_FILL,
    OUTPUT_NOT_WARP_ASSET,
    OUTPUT_VALUE_ZERO,
    OUTPUT_WARP_ASSET,
    OUTPUT_WARP_VERIFICATION_FAILED,
    OUTPUT_WRONG_DESTINATION,
    InvalidObjectError,
    NoSwapToFillError,
    Result,
    TokenVMError,
    error_output,
    failure,
)
from ..ids import (
    EMPTY_ID,
    EMPTY_PUBLIC_KEY,
    ID_LEN,
    MAX_UINT64,
    PUBLIC_KEY_LEN,
    UINT64_LEN,
)
from ..warp import (
    UnsignedWarpMessage,
    WarpMessage,
    WarpTransfer,
    imported_asset_id,
    imported_asset_metadata,
    unmarshal_warp_transfer,
    valid_swap_params,
)


def _always_valid() -> tuple:
    return -1, -1


def _as_id(data: bytes) -> bytes:
    data = bytes(data)
    if len(data) != ID_LEN:
        raise TokenVMError(f"expected {ID_LEN} bytes but got {len(data)}")
    return data


def _checked_sub(current: int, amount: int) -> int:
    if amount > current:
        raise TokenVMError("underflow")
    return current - amount


def _checked_add(current: int, amount: int) -> int:
    total = current + amount
    if total > MAX_UINT64:
        raise TokenVMError("overflow")
    return total


@dataclass
class ExportAsset:
    """Send assets to another chain, either as a loan or as a return home."""

    to: bytes = EMPTY_PUBLIC_KEY
    asset: bytes = EMPTY_ID
    value: int = 0
    is_return: bool = False
    reward: int = 0
    swap_in: int = 0
    asset_out: bytes = EMPTY_ID
    swap_out: int = 0
    swap_expiry: int = 0
    destination: bytes = EMPTY_ID

    def _warp_result(self, units: int, asset: bytes, tx_id: bytes) -> Result:
        transfer = WarpTransfer(
            to=self.to,
            asset=asset,
            value=self.value,
            is_return=self.is_return,
            reward=self.reward,
            swap_in=self.swap_in,
            asset_out=self.asset_out,
            swap_out=self.swap_out,
            swap_expiry=self.swap_expiry,
            tx_id=tx_id,
        )
        message = UnsignedWarpMessage(
            destination_chain_id=bytes(self.destination),
            payload=transfer.marshal(),
        )
        return Result(success=True, units=units, warp_message=message)

    def _execute_return(self, db, actor, tx_id, units) -> Result:
        info = db.get_asset(self.asset)
        if info is None:
            return failure(units, OUTPUT_ASSET_MISSING)
        if not info.warp:
            return failure(units, OUTPUT_NOT_WARP_ASSET)
        try:
            allowed_destination = _as_id(info.metadata[ID_LEN:])
        except TokenVMError as error:
            return failure(units, error_output(error))
        if allowed_destination != bytes(self.destination):
            return failure(units, OUTPUT_WRONG_DESTINATION)
        try:
            new_supply = _checked_sub(info.supply, self.value)
            new_supply = _checked_sub(new_supply, self.reward)
            if new_supply > 0:
                db.set_asset(
                    self.asset, info.metadata, new_supply, EMPTY_PUBLIC_KEY, True
                )
            else:
                db.delete_asset(self.asset)
            db.sub_balance(actor, self.asset, self.value)
            if self.reward > 0:
                db.sub_balance(actor, self.asset, self.reward)
            original_asset = _as_id(info.metadata[:ID_LEN])
        except TokenVMError as error:
            return failure(units, error_output(error))
        return self._warp_result(units, original_asset, tx_id)

    def _execute_loan(self, db, actor, tx_id, units) -> Result:
        info = db.get_asset(self.asset)
        if info is None:
            return failure(units, OUTPUT_ASSET_MISSING)
        if info.warp:
            # An asset that arrived by warp can only be sent back home.
            return failure(units, OUTPUT_WARP_ASSET)
        try:
            db.add_loan(self.asset, self.destination, self.value)
            db.sub_balance(actor, self.asset, self.value)
            if self.reward > 0:
                db.add_loan(self.asset, self.destination, self.reward)
                db.sub_balance(actor, self.asset, self.reward)
        except TokenVMError as error:
            return failure(units, error_output(error))
        return self._warp_result(units, bytes(self.asset), tx_id)

    def execute(self, db, timestamp, actor, tx_id, warp_verified) -> Result:
        units = self.max_units()
        if self.value == 0:
            return failure(units, OUTPUT_VALUE_ZERO)
        if bytes(self.destination) == EMPTY_ID:
            # Every importer could otherwise claim the same export.
            return failure(units, OUTPUT_ANYCAST)
        if self.is_return:
            return self._execute_return(db, actor, tx_id, units)
        return self._execute_loan(db, actor, tx_id, units)

    def max_units(self) -> int:
        return (
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

    def marshal(self, writer) -> None:
        from ..codec import OptionalWriter

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
        writer.pack_id(self.destination)

    def valid_range(self) -> tuple:
        return _always_valid()


def unmarshal_export_asset(reader, warp_message) -> ExportAsset:
    """Read an export; the destination must be set and swap fields consistent."""
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
    destination = reader.unpack_id(True)
    if not valid_swap_params(value, swap_in, asset_out, swap_out, swap_expiry):
        raise InvalidObjectError()
    return ExportAsset(
        to=to,
        asset=asset,
        value=value,
        is_return=is_return,
        reward=reward,
        swap_in=swap_in,
        asset_out=asset_out,
        swap_out=swap_out,
        swap_expiry=swap_expiry,
        destination=destination,
    )


@dataclass
class ImportAsset:
    """Receive assets sent from another chain, optionally filling a swap."""

    fill: bool = False
    warp_transfer: Optional[WarpTransfer] = None
    warp_message: Optional[WarpMessage] = None

    def _asset_in(self) -> bytes:
        if self.warp_transfer.is_return:
            return bytes(self.warp_transfer.asset)
        return imported_asset_id(
            self.warp_transfer.asset, self.warp_message.source_chain_id
        )

    def _execute_mint(self, db, actor) -> bytes:
        transfer = self.warp_transfer
        source = self.warp_message.source_chain_id
        asset = imported_asset_id(transfer.asset, source)
        info = db.get_asset(asset)
        if info is not None and not info.warp:
            return OUTPUT_CONFLICTING_ASSET
        if info is None:
            metadata = imported_asset_metadata(transfer.asset, source)
            supply = 0
        else:
            metadata = info.metadata
            supply = info.supply
        try:
            new_supply = _checked_add(supply, transfer.value)
            new_supply = _checked_add(new_supply, transfer.reward)
            db.set_asset(asset, metadata, new_supply, EMPTY_PUBLIC_KEY, True)
            db.add_balance(transfer.to, asset, transfer.value)
            if transfer.reward > 0:
                db.add_balance(actor, asset, transfer.reward)
        except TokenVMError as error:
            return error_output(error)
        return b""

    def _execute_return(self, db, actor) -> bytes:
        transfer = self.warp_transfer
        source = self.warp_message.source_chain_id
        try:
            db.sub_loan(transfer.asset, source, transfer.value)
            db.add_balance(transfer.to, transfer.asset, transfer.value)
            if transfer.reward > 0:
                db.sub_loan(transfer.asset, source, transfer.reward)
                db.add_balance(actor, transfer.asset, transfer.reward)
        except TokenVMError as error:
            return error_output(error)
        return b""

    def execute(self, db, timestamp, actor, tx_id, warp_verified) -> Result:
        units = self.max_units()
        if not warp_verified:
            return failure(units, OUTPUT_WARP_VERIFICATION_FAILED)
        transfer = self.warp_transfer
        if transfer.value == 0:
            return failure(units, OUTPUT_VALUE_ZERO)
        if transfer.is_return:
            output = self._execute_return(db, actor)
        else:
            output = self._execute_mint(db, actor)
        if output:
            return failure(units, output)
        if transfer.swap_in == 0:
            return Result(success=True, units=units)
        if not self.fill:
            if transfer.swap_expiry > timestamp:
                return failure(units, OUTPUT_MUST_FILL)
            return Result(success=True, units=units)
        asset_in = self._asset_in()
        try:
            db.sub_balance(transfer.to, asset_in, transfer.swap_in)
            db.add_balance(actor, asset_in, transfer.swap_in)
            db.sub_balance(actor, transfer.asset_out, transfer.swap_out)
            db.add_balance(transfer.to, transfer.asset_out, transfer.swap_out)
        except TokenVMError as error:
            return failure(units, error_output(error))
        return Result(success=True, units=units)

    def max_units(self) -> int:
        return len(self.warp_message.payload) + 1

    def marshal(self, writer) -> None:
        writer.pack_bool(self.fill)

    def valid_range(self) -> tuple:
        return _always_valid()


def unmarshal_import_asset(reader, warp_message) -> ImportAsset:
    """Read an import and decode the transfer carried by *warp_message*."""
    fill = reader.unpack_bool()
    if warp_message is None:
        raise InvalidObjectError("missing warp message")
    transfer = unmarshal_warp_transfer(warp_message.payload)
    if fill and transfer.swap_in == 0:
        raise NoSwapToFillError()
    return ImportAsset(fill=fill, warp_transfer=transfer, warp_message=warp_message)