"""Type identifiers for actions and authorisations, and their wire framing."""

from typing import Callable, Dict, List, Optional, Tuple

from .actions.assets import (
    BurnAsset,
    CreateAsset,
    MintAsset,
    ModifyAsset,
    Transfer,
    unmarshal_burn_asset,
    unmarshal_create_asset,
    unmarshal_mint_asset,
    unmarshal_modify_asset,
    unmarshal_transfer,
)
from .actions.orders import (
    CloseOrder,
    CreateOrder,
    FillOrder,
    unmarshal_close_order,
    unmarshal_create_order,
    unmarshal_fill_order,
)
from .actions.warp_actions import (
    ExportAsset,
    ImportAsset,
    unmarshal_export_asset,
    unmarshal_import_asset,
)
from .auth import ED25519, unmarshal_ed25519
from .chain import InvalidObjectError, TokenVMError
from .codec import CodecError, Reader, Writer

_MAX_TYPES = 256


class TypeParser:
    """Assigns each registered type the next one-byte identifier."""

    def __init__(self):
        self._entries: List[Tuple[type, Callable, bool]] = []
        self._ids: Dict[type, int] = {}

    def register(self, type_cls: type, unmarshal: Callable, uses_warp: bool) -> int:
        if type_cls in self._ids:
            raise TokenVMError(f"{type_cls.__name__} is already registered")
        if len(self._entries) >= _MAX_TYPES:
            raise TokenVMError("too many registered types")
        type_id = len(self._entries)
        self._entries.append((type_cls, unmarshal, bool(uses_warp)))
        self._ids[type_cls] = type_id
        return type_id

    def lookup(self, type_id: int) -> Tuple[Callable, bool]:
        """Return the unmarshal function and warp flag of *type_id*."""
        if not 0 <= type_id < len(self._entries):
            raise InvalidObjectError(f"unknown type id {type_id}")
        _, unmarshal, uses_warp = self._entries[type_id]
        return unmarshal, uses_warp

    def type_id(self, instance) -> int:
        try:
            return self._ids[type(instance)]
        except KeyError:
            raise TokenVMError(f"{type(instance).__name__} is not registered") from None


ACTION_REGISTRY = TypeParser()
AUTH_REGISTRY = TypeParser()

# New types must always be appended so that existing identifiers stay stable.
ACTION_REGISTRY.register(Transfer, unmarshal_transfer, False)
ACTION_REGISTRY.register(CreateAsset, unmarshal_create_asset, False)
ACTION_REGISTRY.register(MintAsset, unmarshal_mint_asset, False)
ACTION_REGISTRY.register(BurnAsset, unmarshal_burn_asset, False)
ACTION_REGISTRY.register(ModifyAsset, unmarshal_modify_asset, False)
ACTION_REGISTRY.register(CreateOrder, unmarshal_create_order, False)
ACTION_REGISTRY.register(FillOrder, unmarshal_fill_order, False)
ACTION_REGISTRY.register(CloseOrder, unmarshal_close_order, False)
ACTION_REGISTRY.register(ImportAsset, unmarshal_import_asset, True)
ACTION_REGISTRY.register(ExportAsset, unmarshal_export_asset, False)

AUTH_REGISTRY.register(ED25519, unmarshal_ed25519, False)


def marshal_action(action) -> bytes:
    """Encode an action as its type byte followed by its fields."""
    writer = Writer()
    action.marshal(writer)
    return bytes([ACTION_REGISTRY.type_id(action)]) + writer.to_bytes()


def parse_action(data: bytes, warp_message=None):
    """Decode an action written by marshal_action."""
    data = bytes(data)
    if not data:
        raise CodecError("insufficient length")
    unmarshal, uses_warp = ACTION_REGISTRY.lookup(data[0])
    if uses_warp and warp_message is None:
        raise InvalidObjectError("expected warp message")
    if not uses_warp and warp_message is not None:
        raise InvalidObjectError("unexpected warp message")
    reader = Reader(data[1:])
    action = unmarshal(reader, warp_message)
    if reader.remaining():
        raise InvalidObjectError("trailing bytes after action")
    return action