import pytest

from tokenvm.actions.orders import (
    BASE_PRICE,
    CloseOrder,
    CreateOrder,
    FillOrder,
    OrderResult,
    pair_id,
    unmarshal_close_order,
    unmarshal_create_order,
    unmarshal_fill_order,
    unmarshal_order_result,
)
from tokenvm.chain import (
    OUTPUT_IN_TICK_ZERO,
    OUTPUT_ORDER_MISSING,
    OUTPUT_OUT_TICK_ZERO,
    OUTPUT_SAME_IN_OUT,
    OUTPUT_SUPPLY_MISALIGNED,
    OUTPUT_SUPPLY_ZERO,
    OUTPUT_UNAUTHORIZED,
    OUTPUT_VALUE_MISALIGNED,
    OUTPUT_WRONG_IN,
    OUTPUT_WRONG_OUT,
    OUTPUT_WRONG_OWNER,
    State,
)
from tokenvm.codec import CodecError, Reader, Writer
from tokenvm.ids import EMPTY_ID, id_from_string

ASSET_A = b"\x0a" * 32
ASSET_B = b"\x0b" * 32
OWNER = b"\x01" * 32
TAKER = b"\x02" * 32
ORDER_ID = b"\x07" * 32


def _roundtrip(action, unmarshal):
    writer = Writer()
    action.marshal(writer)
    return unmarshal(Reader(writer.to_bytes()), None)


def _state_with_order(in_tick=2, out_tick=5, supply=20):
    db = State()
    db.set_balance(OWNER, ASSET_B, supply)
    db.set_balance(TAKER, ASSET_A, 1_000)
    create = CreateOrder(ASSET_A, in_tick, ASSET_B, out_tick, supply)
    assert create.execute(db, 0, OWNER, ORDER_ID, False).success
    return db


def test_pair_id_joins_both_identifiers():
    left, right = pair_id(EMPTY_ID, ASSET_B).split("-")
    assert id_from_string(left) == EMPTY_ID
    assert id_from_string(right) == ASSET_B


def test_create_order_roundtrip():
    action = CreateOrder(EMPTY_ID, 3, ASSET_B, 4, 40)
    assert _roundtrip(action, unmarshal_create_order) == action


def test_create_order_requires_ticks_on_wire():
    writer = Writer()
    CreateOrder(ASSET_A, 0, ASSET_B, 1, 1).marshal(writer)
    with pytest.raises(CodecError):
        unmarshal_create_order(Reader(writer.to_bytes()), None)


@pytest.mark.parametrize(
    "action, output",
    [
        (CreateOrder(ASSET_A, 1, ASSET_A, 1, 1), OUTPUT_SAME_IN_OUT),
        (CreateOrder(ASSET_A, 0, ASSET_B, 1, 1), OUTPUT_IN_TICK_ZERO),
        (CreateOrder(ASSET_A, 1, ASSET_B, 0, 1), OUTPUT_OUT_TICK_ZERO),
        (CreateOrder(ASSET_A, 1, ASSET_B, 1, 0), OUTPUT_SUPPLY_ZERO),
        (CreateOrder(ASSET_A, 1, ASSET_B, 3, 10), OUTPUT_SUPPLY_MISALIGNED),
    ],
)
def test_create_order_rejections(action, output):
    db = State()
    db.set_balance(OWNER, ASSET_B, 100)
    result = action.execute(db, 0, OWNER, ORDER_ID, False)
    assert not result.success
    assert result.output == output
    assert result.units == action.max_units()
    assert db.get_order(ORDER_ID) is None


def test_create_order_max_units():
    assert CreateOrder().max_units() == 88


def test_create_order_insufficient_balance_keeps_state():
    db = State()
    db.set_balance(OWNER, ASSET_B, 5)
    result = CreateOrder(ASSET_A, 1, ASSET_B, 5, 10).execute(db, 0, OWNER, ORDER_ID, False)
    assert not result.success
    assert db.get_balance(OWNER, ASSET_B) == 5
    assert db.get_order(ORDER_ID) is None


def test_create_order_locks_supply():
    db = _state_with_order(in_tick=2, out_tick=5, supply=20)
    assert db.get_balance(OWNER, ASSET_B) == 0
    info = db.get_order(ORDER_ID)
    assert info.remaining == 20
    assert info.owner == OWNER
    assert (info.asset_in, info.asset_out) == (ASSET_A, ASSET_B)


def test_fill_order_roundtrip():
    action = FillOrder(ORDER_ID, OWNER, ASSET_A, EMPTY_ID, 9)
    assert _roundtrip(action, unmarshal_fill_order) == action


def test_fill_order_requires_owner_on_wire():
    writer = Writer()
    FillOrder(ORDER_ID, bytes(32), ASSET_A, ASSET_B, 1).marshal(writer)
    with pytest.raises(CodecError):
        unmarshal_fill_order(Reader(writer.to_bytes()), None)


def test_fill_order_partial():
    db = _state_with_order()
    fill = FillOrder(ORDER_ID, OWNER, ASSET_A, ASSET_B, 4)
    result = fill.execute(db, 0, TAKER, EMPTY_ID, False)
    assert result.success
    assert result.units == fill.max_units()
    summary = unmarshal_order_result(result.output)
    assert summary.in_amount == 4
    assert summary.out_amount + summary.remaining == 20
    assert db.get_balance(OWNER, ASSET_A) == summary.in_amount
    assert db.get_balance(TAKER, ASSET_A) == 1_000 - summary.in_amount
    assert db.get_balance(TAKER, ASSET_B) == summary.out_amount
    assert db.get_order(ORDER_ID).remaining == summary.remaining


def test_fill_order_over_remaining_takes_rest_and_deletes():
    db = _state_with_order()
    result = FillOrder(ORDER_ID, OWNER, ASSET_A, ASSET_B, 10).execute(
        db, 0, TAKER, EMPTY_ID, False
    )
    assert result.success
    summary = unmarshal_order_result(result.output)
    assert summary.out_amount == 20
    assert summary.remaining == 0
    assert summary.in_amount < 10
    assert db.get_order(ORDER_ID) is None
    assert db.get_balance(OWNER, ASSET_A) == summary.in_amount
    assert db.get_balance(TAKER, ASSET_B) == 20


@pytest.mark.parametrize(
    "fill, output",
    [
        (FillOrder(b"\x09" * 32, OWNER, ASSET_A, ASSET_B, 2), OUTPUT_ORDER_MISSING),
        (FillOrder(ORDER_ID, TAKER, ASSET_A, ASSET_B, 2), OUTPUT_WRONG_OWNER),
        (FillOrder(ORDER_ID, OWNER, ASSET_B, ASSET_B, 2), OUTPUT_WRONG_IN),
        (FillOrder(ORDER_ID, OWNER, ASSET_A, ASSET_A, 2), OUTPUT_WRONG_OUT),
        (FillOrder(ORDER_ID, OWNER, ASSET_A, ASSET_B, 3), OUTPUT_VALUE_MISALIGNED),
    ],
)
def test_fill_order_rejections(fill, output):
    db = _state_with_order()
    result = fill.execute(db, 0, TAKER, EMPTY_ID, False)
    assert not result.success
    assert result.output == output
    assert result.units == BASE_PRICE
    assert db.get_order(ORDER_ID).remaining == 20


def test_fill_order_insufficient_balance():
    db = _state_with_order()
    db.set_balance(TAKER, ASSET_A, 0)
    result = FillOrder(ORDER_ID, OWNER, ASSET_A, ASSET_B, 2).execute(
        db, 0, TAKER, EMPTY_ID, False
    )
    assert not result.success
    assert db.get_order(ORDER_ID).remaining == 20


def test_close_order_roundtrip():
    action = CloseOrder(ORDER_ID, EMPTY_ID)
    assert _roundtrip(action, unmarshal_close_order) == action


def test_close_order_requires_order_on_wire():
    writer = Writer()
    CloseOrder(EMPTY_ID, ASSET_B).marshal(writer)
    with pytest.raises(CodecError):
        unmarshal_close_order(Reader(writer.to_bytes()), None)


def test_close_order_returns_remaining():
    db = _state_with_order()
    result = CloseOrder(ORDER_ID, ASSET_B).execute(db, 0, OWNER, EMPTY_ID, False)
    assert result.success
    assert db.get_order(ORDER_ID) is None
    assert db.get_balance(OWNER, ASSET_B) == 20


def test_close_order_unauthorized():
    db = _state_with_order()
    result = CloseOrder(ORDER_ID, ASSET_B).execute(db, 0, TAKER, EMPTY_ID, False)
    assert result.output == OUTPUT_UNAUTHORIZED
    assert db.get_order(ORDER_ID) is not None
    assert db.get_balance(TAKER, ASSET_B) == 0


def test_close_order_wrong_out_and_missing():
    db = _state_with_order()
    wrong = CloseOrder(ORDER_ID, ASSET_A).execute(db, 0, OWNER, EMPTY_ID, False)
    assert wrong.output == OUTPUT_WRONG_OUT
    missing = CloseOrder(b"\x09" * 32, ASSET_B).execute(db, 0, OWNER, EMPTY_ID, False)
    assert missing.output == OUTPUT_ORDER_MISSING


def test_order_result_roundtrip_and_size():
    summary = OrderResult(in_amount=6, out_amount=15, remaining=0)
    data = summary.marshal()
    assert len(data) == 24
    assert unmarshal_order_result(data) == summary


def test_order_result_rejects_oversized_and_zero_in():
    with pytest.raises(CodecError):
        unmarshal_order_result(OrderResult(1, 1, 1).marshal() + b"\x00")
    with pytest.raises(CodecError):
        unmarshal_order_result(OrderResult(0, 1, 1).marshal())