import pytest

from tokenvm.actions.assets import BurnAsset, CreateAsset, MintAsset, ModifyAsset, Transfer
from tokenvm.actions.orders import CloseOrder, CreateOrder, FillOrder
from tokenvm.actions.warp_actions import ExportAsset, ImportAsset
from tokenvm.auth import ED25519
from tokenvm.chain import InvalidObjectError, TokenVMError
from tokenvm.registry import (
    ACTION_REGISTRY,
    AUTH_REGISTRY,
    TypeParser,
    marshal_action,
    parse_action,
)
from tokenvm.ids import to_id
from tokenvm.warp import WarpMessage, WarpTransfer

PK = bytes(range(1, 33))
ASSET = to_id(b"asset")
DEST = to_id(b"dest")


def test_type_ids_follow_registration_order():
    assert ACTION_REGISTRY.type_id(Transfer()) == 0
    assert ACTION_REGISTRY.type_id(CreateOrder()) == 5
    assert ACTION_REGISTRY.type_id(ExportAsset()) == 9
    assert AUTH_REGISTRY.type_id(ED25519(PK, bytes(64))) == 0


@pytest.mark.parametrize(
    "action",
    [
        Transfer(to=PK, asset=ASSET, value=5),
        CreateAsset(metadata=b"meta"),
        MintAsset(to=PK, asset=ASSET, value=3),
        BurnAsset(asset=ASSET, value=2),
        ModifyAsset(asset=ASSET, owner=PK, metadata=b"m"),
        CreateOrder(asset_in=ASSET, in_tick=1, asset_out=DEST, out_tick=2, supply=4),
        FillOrder(order=ASSET, owner=PK, asset_in=ASSET, asset_out=DEST, value=3),
        CloseOrder(order=ASSET, out=DEST),
        ExportAsset(to=PK, asset=ASSET, value=9, destination=DEST),
    ],
)
def test_round_trip(action):
    data = marshal_action(action)
    assert data[0] == ACTION_REGISTRY.type_id(action)
    assert parse_action(data) == action


def test_import_requires_warp_message():
    payload = WarpTransfer(to=PK, asset=ASSET, value=7, tx_id=DEST).marshal()
    message = WarpMessage(source_chain_id=DEST, destination_chain_id=ASSET, payload=payload)
    data = marshal_action(ImportAsset(fill=False))
    parsed = parse_action(data, message)
    assert parsed.warp_transfer.value == 7
    assert parsed.warp_message == message
    with pytest.raises(InvalidObjectError):
        parse_action(data)


def test_unexpected_warp_message_rejected():
    message = WarpMessage(source_chain_id=DEST, destination_chain_id=ASSET, payload=b"")
    with pytest.raises(InvalidObjectError):
        parse_action(marshal_action(Transfer(to=PK, value=1)), message)


def test_unknown_type_and_trailing_bytes():
    with pytest.raises(InvalidObjectError):
        parse_action(bytes([200]))
    with pytest.raises(InvalidObjectError):
        parse_action(marshal_action(BurnAsset(asset=ASSET, value=1)) + b"\x00")


def test_duplicate_registration_rejected():
    parser = TypeParser()
    assert parser.register(Transfer, lambda r, w: None, False) == 0
    with pytest.raises(TokenVMError):
        parser.register(Transfer, lambda r, w: None, False)
    with pytest.raises(TokenVMError):
        parser.type_id(BurnAsset())