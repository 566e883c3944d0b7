import json

import pytest

from tokenvm.chain import State, TokenVMError
from tokenvm.genesis import (
    CustomAllocation,
    Genesis,
    InvalidTargetError,
    address,
    default_genesis,
    load_genesis,
    parse_address,
)
from tokenvm.ids import EMPTY_ID, EMPTY_PUBLIC_KEY, MAX_UINT64

PK_A = bytes(range(32))
PK_B = bytes(range(32, 64))


def test_default_values_match_source():
    g = default_genesis()
    assert g.hrp == "RARE"
    assert g.max_block_txs == 20_000
    assert g.max_block_units == 1_800_000
    assert g.warp_base_fee == 1_024
    assert g.custom_allocation == []


def test_empty_data_gives_default():
    assert load_genesis(b"") == default_genesis()
    assert load_genesis(None) == default_genesis()


def test_json_overrides_fields():
    g = load_genesis(json.dumps({"minUnitPrice": 7, "validityWindow": 30}).encode())
    assert g.min_unit_price == 7
    assert g.validity_window == 30
    assert g.max_block_units == default_genesis().max_block_units


def test_zero_targets_rejected():
    with pytest.raises(InvalidTargetError):
        load_genesis(b'{"windowTargetUnits": 0}')
    with pytest.raises(InvalidTargetError):
        load_genesis(b'{"windowTargetBlocks": 0}')


def test_invalid_json_rejected():
    with pytest.raises(ValueError):
        load_genesis(b"{not json")
    with pytest.raises(ValueError):
        load_genesis(b'{"maxBlockUnits": -1}')


def test_to_json_round_trip():
    g = default_genesis()
    g.custom_allocation = [CustomAllocation(address(PK_A), 5)]
    assert load_genesis(g.to_json().encode()) == g


def test_rules_reflect_genesis():
    g = Genesis(max_block_units=99)
    rules = g.rules(0)
    assert rules.max_block_units == 99
    assert rules.get_warp_config(EMPTY_ID) == (True, 4, 5)
    assert rules.fetch_custom("anything") == (None, False)


def test_address_round_trip():
    text = address(PK_A)
    assert text.startswith("rare1")
    assert parse_address(text) == PK_A
    assert parse_address(text.upper()) == PK_A


def test_parse_address_rejects_bad_input():
    text = address(PK_A)
    corrupted = text[:-1] + ("q" if text[-1] != "q" else "p")
    with pytest.raises(ValueError):
        parse_address(corrupted)
    with pytest.raises(ValueError):
        parse_address(address(PK_A, hrp="other"))


def test_load_sets_balances_and_supply():
    g = default_genesis()
    g.custom_allocation = [
        CustomAllocation(address(PK_A), 10),
        CustomAllocation(address(PK_B), 32),
    ]
    state = State()
    g.load(state)
    assert state.get_balance(PK_A, EMPTY_ID) == 10
    assert state.get_balance(PK_B, EMPTY_ID) == 32
    native = state.get_asset(EMPTY_ID)
    assert native.supply == 42
    assert native.metadata == b"RR"
    assert native.owner == EMPTY_PUBLIC_KEY
    assert native.warp is False


def test_load_rejects_bad_address_and_overflow():
    g = Genesis(custom_allocation=[CustomAllocation("nonsense", 1)])
    with pytest.raises(ValueError):
        g.load(State())
    g = Genesis(
        custom_allocation=[
            CustomAllocation(address(PK_A), MAX_UINT64),
            CustomAllocation(address(PK_B), 1),
        ]
    )
    with pytest.raises(TokenVMError):
        g.load(State())