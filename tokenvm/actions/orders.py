"""Actions that open, fill and close orders between two assets."""

from dataclasses import dataclass

from ..chain import (
    OUTPUT_IN_TICK_ZERO,
    OUTPUT_INSUFFICIENT_INPUT,
    OUTPUT_INSUFFICIENT_OUTPUT,
    OUTPUT_ORDER_MISSING,
    OUTPUT_OUT_TICK_ZERO,
    OUTPUT_SAME_IN_OUT,
    OUTPUT_SUPPLY_MISALIGNED,
    OUTPUT_SUPPLY_ZERO,
    OUTPUT_UNAUTHORIZED,
    OUTPUT_VALUE_MISALIGNED,
    OUTPUT_VALUE_ZERO,
    OUTPUT_WRONG_IN,
    OUTPUT_WRONG_OUT,
    OUTPUT_WRONG_OWNER,
    Result,
    TokenVMError,
    error_output,
    failure,
)
from ..codec import CodecError, Reader, Writer
from ..ids import (
    EMPTY_ID,
    EMPTY_PUBLIC_KEY,
    ID_LEN,
    MAX_UINT64,
    PUBLIC_KEY_LEN,
    UINT64_LEN,
    id_to_string,
)

BASE_PRICE = 3 * ID_LEN + UINT64_LEN + PUBLIC_KEY_LEN
TRADE_SUCCEEDED_PRICE = 1_000
ORDER_RESULT_SIZE = UINT64_LEN * 3


def _always_valid() -> tuple:
    return -1, -1


def pair_id(asset_in: bytes, asset_out: bytes) -> str:
    """Name of the order book trading *asset_in* for *asset_out*."""
    return f"{id_to_string(asset_in)}-{id_to_string(asset_out)}"


@dataclass
class CreateOrder:
    """Lock up *supply* of *asset_out*, sold in blocks of *out_tick* per *in_tick*."""

    asset_in: bytes = EMPTY_ID
    in_tick: int = 0
    asset_out: bytes = EMPTY_ID
    out_tick: int = 0
    supply: int = 0

    def execute(self, db, timestamp, actor, tx_id, warp_verified) -> Result:
        units = self.max_units()
        if bytes(self.asset_in) == bytes(self.asset_out):
            return failure(units, OUTPUT_SAME_IN_OUT)
        if self.in_tick == 0:
            return failure(units, OUTPUT_IN_TICK_ZERO)
        if self.out_tick == 0:
            return failure(units, OUTPUT_OUT_TICK_ZERO)
        if self.supply == 0:
            return failure(units, OUTPUT_SUPPLY_ZERO)
        if self.supply % self.out_tick:
            return failure(units, OUTPUT_SUPPLY_MISALIGNED)
        try:
            db.sub_balance(actor, self.asset_out, self.supply)
        except TokenVMError as error:
            return failure(units, error_output(error))
        db.set_order(
            tx_id,
            self.asset_in,
            self.in_tick,
            self.asset_out,
            self.out_tick,
            self.supply,
            actor,
        )
        return Result(success=True, units=units)

    def max_units(self) -> int:
        return ID_LEN * 2 + UINT64_LEN * 3

    def marshal(self, writer) -> None:
        writer.pack_id(self.asset_in)
        writer.pack_uint64(self.in_tick)
        writer.pack_id(self.asset_out)
        writer.pack_uint64(self.out_tick)
        writer.pack_uint64(self.supply)

    def valid_range(self) -> tuple:
        return _always_valid()


def unmarshal_create_order(reader, warp_message) -> CreateOrder:
    """Read an order creation; either asset may be the native one."""
    asset_in = reader.unpack_id(False)
    in_tick = reader.unpack_uint64(True)
    asset_out = reader.unpack_id(False)
    out_tick = reader.unpack_uint64(True)
    supply = reader.unpack_uint64(True)
    return CreateOrder(
        asset_in=asset_in,
        in_tick=in_tick,
        asset_out=asset_out,
        out_tick=out_tick,
        supply=supply,
    )


@dataclass
class OrderResult:
    """Amounts exchanged by a successful fill and what is left of the order."""

    in_amount: int = 0
    out_amount: int = 0
    remaining: int = 0

    def marshal(self) -> bytes:
        writer = Writer(ORDER_RESULT_SIZE)
        writer.pack_uint64(self.in_amount)
        writer.pack_uint64(self.out_amount)
        writer.pack_uint64(self.remaining)
        return writer.to_bytes()


def unmarshal_order_result(data: bytes) -> OrderResult:
    """Decode the output of a successful fill; zero remaining means deleted."""
    data = bytes(data)
    if len(data) > ORDER_RESULT_SIZE:
        raise CodecError("oversized order result")
    reader = Reader(data)
    in_amount = reader.unpack_uint64(True)
    out_amount = reader.unpack_uint64(True)
    remaining = reader.unpack_uint64(False)
    return OrderResult(in_amount=in_amount, out_amount=out_amount, remaining=remaining)


@dataclass
class FillOrder:
    """Trade up to *value* of *asset_in* against an open order."""

    order: bytes = EMPTY_ID
    owner: bytes = EMPTY_PUBLIC_KEY
    asset_in: bytes = EMPTY_ID
    asset_out: bytes = EMPTY_ID
    value: int = 0

    def execute(self, db, timestamp, actor, tx_id, warp_verified) -> Result:
        info = db.get_order(self.order)
        if info is None:
            return failure(BASE_PRICE, OUTPUT_ORDER_MISSING)
        if info.owner != bytes(self.owner):
            return failure(BASE_PRICE, OUTPUT_WRONG_OWNER)
        if info.asset_in != bytes(self.asset_in):
            return failure(BASE_PRICE, OUTPUT_WRONG_IN)
        if info.asset_out != bytes(self.asset_out):
            return failure(BASE_PRICE, OUTPUT_WRONG_OUT)
        if self.value == 0:
            return failure(BASE_PRICE, OUTPUT_VALUE_ZERO)
        if self.value % info.in_tick:
            return failure(BASE_PRICE, OUTPUT_VALUE_MISALIGNED)
        output_amount = info.out_tick * (self.value // info.in_tick)
        if output_amount > MAX_UINT64:
            return failure(BASE_PRICE, error_output(TokenVMError("overflow")))
        if output_amount == 0:
            return failure(BASE_PRICE, OUTPUT_INSUFFICIENT_OUTPUT)

        input_amount = self.value
        order_remaining = 0
        if output_amount > info.remaining:
            # Several fills of one order may race; take only what is left.
            blocks_over = (output_amount - info.remaining) // info.out_tick
            input_amount -= blocks_over * info.in_tick
            output_amount = info.remaining
            should_delete = True
        elif output_amount == info.remaining:
            should_delete = True
        else:
            should_delete = False
            order_remaining = info.remaining - output_amount
        if input_amount == 0:
            return failure(BASE_PRICE, OUTPUT_INSUFFICIENT_INPUT)

        try:
            db.sub_balance(actor, self.asset_in, input_amount)
            db.add_balance(self.owner, self.asset_in, input_amount)
            db.add_balance(actor, self.asset_out, output_amount)
        except TokenVMError as error:
            return failure(BASE_PRICE, error_output(error))
        if should_delete:
            db.delete_order(self.order)
        else:
            db.set_order(
                self.order,
                info.asset_in,
                info.in_tick,
                info.asset_out,
                info.out_tick,
                order_remaining,
                info.owner,
            )
        output = OrderResult(input_amount, output_amount, order_remaining).marshal()
        return Result(success=True, units=BASE_PRICE + TRADE_SUCCEEDED_PRICE, output=output)

    def max_units(self) -> int:
        return BASE_PRICE + TRADE_SUCCEEDED_PRICE

    def marshal(self, writer) -> None:
        writer.pack_id(self.order)
        writer.pack_public_key(self.owner)
        writer.pack_id(self.asset_in)
        writer.pack_id(self.asset_out)
        writer.pack_uint64(self.value)

    def valid_range(self) -> tuple:
        return _always_valid()


def unmarshal_fill_order(reader, warp_message) -> FillOrder:
    """Read a fill; the order and its owner must be set."""
    order = reader.unpack_id(True)
    owner = reader.unpack_public_key(True)
    asset_in = reader.unpack_id(False)
    asset_out = reader.unpack_id(False)
    value = reader.unpack_uint64(True)
    return FillOrder(
        order=order, owner=owner, asset_in=asset_in, asset_out=asset_out, value=value
    )


@dataclass
class CloseOrder:
    """Close an owned order and reclaim what remains of its supply."""

    order: bytes = EMPTY_ID
    out: bytes = EMPTY_ID

    def execute(self, db, timestamp, actor, tx_id, warp_verified) -> Result:
        units = self.max_units()
        info = db.get_order(self.order)
        if info is None:
            return failure(units, OUTPUT_ORDER_MISSING)
        if info.owner != bytes(actor):
            return failure(units, OUTPUT_UNAUTHORIZED)
        if info.asset_out != bytes(self.out):
            return failure(units, OUTPUT_WRONG_OUT)
        db.delete_order(self.order)
        try:
            db.add_balance(actor, self.out, info.remaining)
        except TokenVMError as error:
            return failure(units, error_output(error))
        return Result(success=True, units=units)

    def max_units(self) -> int:
        return ID_LEN * 2

    def marshal(self, writer) -> None:
        writer.pack_id(self.order)
        writer.pack_id(self.out)

    def valid_range(self) -> tuple:
        return _always_valid()


def unmarshal_close_order(reader, warp_message) -> CloseOrder:
    """Read an order closure; the order must be set."""
    order = reader.unpack_id(True)
    out = reader.unpack_id(False)
    return CloseOrder(order=order, out=out)