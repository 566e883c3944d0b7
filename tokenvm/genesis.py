"""Chain genesis parameters, the rules derived from them and address text."""

import json
from dataclasses import dataclass, field, fields
from typing import Any, List, Optional, Tuple

from .chain import TokenVMError
from .ids import EMPTY_ID, EMPTY_PUBLIC_KEY, HRP, MAX_UINT64, PUBLIC_KEY_LEN, SYMBOL

STATE_LOCKUP_FIELD = "state_lockup"

_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_CHARSET_INDEX = {char: index for index, char in enumerate(_CHARSET)}
_GENERATORS = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_MAX_ADDRESS_LEN = 90


class InvalidTargetError(TokenVMError):
    """A window target in the genesis is zero."""

    def __init__(self, message: str = "invalid target"):
        super().__init__(message)


class StateLockupMissingError(TokenVMError):
    """The state lockup parameter is missing."""

    def __init__(self, message: str = "state lockup parameter missing"):
        super().__init__(message)


def _polymod(values) -> int:
    checksum = 1
    for value in values:
        top = checksum >> 25
        checksum = ((checksum & 0x1FFFFFF) << 5) ^ value
        for bit, generator in enumerate(_GENERATORS):
            if (top >> bit) & 1:
                checksum ^= generator
    return checksum


def _hrp_expand(hrp: str) -> List[int]:
    return [ord(char) >> 5 for char in hrp] + [0] + [ord(char) & 31 for char in hrp]


def _convert_bits(data, from_bits: int, to_bits: int, pad: bool) -> List[int]:
    accumulator = 0
    bits = 0
    result = []
    max_value = (1 << to_bits) - 1
    for value in data:
        accumulator = (accumulator << from_bits) | value
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            result.append((accumulator >> bits) & max_value)
    if pad:
        if bits:
            result.append((accumulator << (to_bits - bits)) & max_value)
    elif bits >= from_bits or ((accumulator << (to_bits - bits)) & max_value):
        raise ValueError("invalid padding in address data")
    return result


def address(public_key: bytes, hrp: str = HRP) -> str:
    """Encode a public key as bech32 text under *hrp*."""
    hrp = hrp.lower()
    data = _convert_bits(bytes(public_key), 8, 5, True)
    polymod = _polymod(_hrp_expand(hrp) + data + [0] * 6) ^ 1
    checksum = [(polymod >> 5 * (5 - index)) & 31 for index in range(6)]
    return hrp + "1" + "".join(_CHARSET[value] for value in data + checksum)


def parse_address(text: str, hrp: str = HRP) -> bytes:
    """Decode bech32 address text into a public key, checking its prefix."""
    text = text.strip()
    if len(text) > _MAX_ADDRESS_LEN:
        raise ValueError("address is too long")
    if text.lower() != text and text.upper() != text:
        raise ValueError("address mixes upper and lower case")
    text = text.lower()
    separator = text.rfind("1")
    if separator < 1 or separator + 7 > len(text):
        raise ValueError("invalid address separator position")
    prefix = text[:separator]
    try:
        data = [_CHARSET_INDEX[char] for char in text[separator + 1 :]]
    except KeyError as error:
        raise ValueError(f"invalid address character {error.args[0]!r}") from None
    if _polymod(_hrp_expand(prefix) + data) != 1:
        raise ValueError("invalid address checksum")
    if prefix != hrp.lower():
        raise ValueError(f"expected hrp {hrp.lower()!r} but got {prefix!r}")
    payload = bytes(_convert_bits(data[:-6], 5, 8, False))
    if len(payload) != PUBLIC_KEY_LEN:
        raise ValueError(
            f"address must hold {PUBLIC_KEY_LEN} bytes, got {len(payload)}"
        )
    return payload


@dataclass
class CustomAllocation:
    """Initial balance of the native asset given to one address."""

    address: str
    balance: int


_JSON_NAMES = {
    "hrp": "hrp",
    "max_block_txs": "maxBlockTxs",
    "max_block_units": "maxBlockUnits",
    "base_units": "baseUnits",
    "validity_window": "validityWindow",
    "min_unit_price": "minUnitPrice",
    "unit_price_change_denominator": "unitPriceChangeDenominator",
    "window_target_units": "windowTargetUnits",
    "min_block_cost": "minBlockCost",
    "block_cost_change_denominator": "blockCostChangeDenominator",
    "window_target_blocks": "windowTargetBlocks",
    "warp_base_fee": "warpBaseFee",
    "warp_fee_per_signer": "warpFeePerSigner",
    "custom_allocation": "customAllocation",
}
_SIGNED_FIELDS = {"max_block_txs", "validity_window"}


@dataclass
class Genesis:
    """Parameters that a chain starts with."""

    hrp: str = HRP
    max_block_txs: int = 20_000
    max_block_units: int = 1_800_000
    base_units: int = 48
    validity_window: int = 60
    min_unit_price: int = 1
    unit_price_change_denominator: int = 48
    window_target_units: int = 20_000_000
    min_block_cost: int = 0
    block_cost_change_denominator: int = 48
    window_target_blocks: int = 20
    warp_base_fee: int = 1_024
    warp_fee_per_signer: int = 128
    custom_allocation: List[CustomAllocation] = field(default_factory=list)

    def rules(self, timestamp: int) -> "Rules":
        return Rules(self)

    def to_json(self) -> str:
        document = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if item.name == "custom_allocation":
                value = [
                    {"address": alloc.address, "balance": alloc.balance}
                    for alloc in value
                ]
            document[_JSON_NAMES[item.name]] = value
        return json.dumps(document, separators=(",", ":"))

    def load(self, db) -> None:
        """Credit every allocation and record the native asset's supply."""
        supply = 0
        for alloc in self.custom_allocation:
            public_key = parse_address(alloc.address)
            supply += alloc.balance
            if supply > MAX_UINT64:
                raise TokenVMError("overflow")
            db.set_balance(public_key, EMPTY_ID, alloc.balance)
        db.set_asset(EMPTY_ID, SYMBOL.encode(), supply, EMPTY_PUBLIC_KEY, False)


class Rules:
    """Chain rules, read from the genesis."""

    def __init__(self, genesis: Genesis):
        self._genesis = genesis

    def get_warp_config(self, source_chain_id: bytes) -> Tuple[bool, int, int]:
        # Inbound transfers are accepted from any chain once 4/5 of stake signs;
        # assets are scoped by their source chain.
        return True, 4, 5

    def fetch_custom(self, key: str) -> Tuple[Any, bool]:
        return None, False

    @property
    def warp_base_fee(self) -> int:
        return self._genesis.warp_base_fee

    @property
    def warp_fee_per_signer(self) -> int:
        return self._genesis.warp_fee_per_signer

    @property
    def max_block_txs(self) -> int:
        return self._genesis.max_block_txs

    @property
    def validity_window(self) -> int:
        return self._genesis.validity_window

    @property
    def max_block_units(self) -> int:
        return self._genesis.max_block_units

    @property
    def base_units(self) -> int:
        return self._genesis.base_units

    @property
    def min_unit_price(self) -> int:
        return self._genesis.min_unit_price

    @property
    def unit_price_change_denominator(self) -> int:
        return self._genesis.unit_price_change_denominator

    @property
    def window_target_units(self) -> int:
        return self._genesis.window_target_units

    @property
    def min_block_cost(self) -> int:
        return self._genesis.min_block_cost

    @property
    def block_cost_change_denominator(self) -> int:
        return self._genesis.block_cost_change_denominator

    @property
    def window_target_blocks(self) -> int:
        return self._genesis.window_target_blocks


def default_genesis() -> Genesis:
    """Return the genesis used when none is given."""
    return Genesis()


def _check_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer")
    if name in _SIGNED_FIELDS:
        if not -(2**63) <= value < 2**63:
            raise ValueError(f"{name} is out of range")
    elif not 0 <= value <= MAX_UINT64:
        raise ValueError(f"{name} is out of range")
    return value


def _parse_allocations(value: Any) -> List[CustomAllocation]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("customAllocation must be a list")
    allocations = []
    for entry in value:
        if not isinstance(entry, dict):
            raise ValueError("allocation must be an object")
        lowered = {key.lower(): item for key, item in entry.items()}
        address_text = lowered.get("address", "")
        if not isinstance(address_text, str):
            raise ValueError("allocation address must be a string")
        balance = _check_int("balance", lowered.get("balance", 0))
        allocations.append(CustomAllocation(address=address_text, balance=balance))
    return allocations


def load_genesis(data: Optional[bytes]) -> Genesis:
    """Read a genesis from JSON, filling unset fields with the defaults."""
    genesis = default_genesis()
    if data:
        text = data.decode() if isinstance(data, (bytes, bytearray)) else str(data)
        by_json = {json_name.lower(): attr for attr, json_name in _JSON_NAMES.items()}
        try:
            document = json.loads(text)
            if not isinstance(document, dict):
                raise ValueError("genesis must be an object")
            for key, value in document.items():
                attr = by_json.get(key.lower())
                if attr is None:
                    continue
                if attr == "custom_allocation":
                    value = _parse_allocations(value)
                elif attr == "hrp":
                    if not isinstance(value, str):
                        raise ValueError("hrp must be a string")
                else:
                    value = _check_int(attr, value)
                setattr(genesis, attr, value)
        except ValueError as error:
            raise ValueError(f"failed to unmarshal config {text}: {error}") from error
    if genesis.window_target_units == 0:
        raise InvalidTargetError()
    if genesis.window_target_blocks == 0:
        raise InvalidTargetError()
    return genesis