"""Execution results, action outputs, errors and the in-memory chain state."""

from dataclasses import dataclass, field
from typing import Any, NamedTuple, Optional

from .ids import MAX_UINT64

MAX_METADATA_SIZE = 256

OUTPUT_VALUE_ZERO = b"value is zero"
OUTPUT_ASSET_IS_NATIVE = b"cannot mint native asset"
OUTPUT_ASSET_ALREADY_EXISTS = b"asset already exists"
OUTPUT_ASSET_MISSING = b"asset missing"
OUTPUT_IN_TICK_ZERO = b"in rate is zero"
OUTPUT_OUT_TICK_ZERO = b"out rate is zero"
OUTPUT_SUPPLY_ZERO = b"supply is zero"
OUTPUT_SUPPLY_MISALIGNED = b"supply is misaligned"
OUTPUT_ORDER_MISSING = b"order is missing"
OUTPUT_UNAUTHORIZED = b"unauthorized"
OUTPUT_WRONG_IN = b"wrong in asset"
OUTPUT_WRONG_OUT = b"wrong out asset"
OUTPUT_WRONG_OWNER = b"wrong owner"
OUTPUT_INSUFFICIENT_INPUT = b"insufficient input"
OUTPUT_INSUFFICIENT_OUTPUT = b"insufficient output"
OUTPUT_VALUE_MISALIGNED = b"value is misaligned"
OUTPUT_METADATA_TOO_LARGE = b"metadata is too large"
OUTPUT_SAME_IN_OUT = b"same asset used for in and out"
OUTPUT_CONFLICTING_ASSET = b"warp has same asset as another"
OUTPUT_ANYCAST = b"anycast output"
OUTPUT_NOT_WARP_ASSET = b"not warp asset"
OUTPUT_WARP_ASSET = b"warp asset"
OUTPUT_WRONG_DESTINATION = b"wrong destination"
OUTPUT_MUST_FILL = b"must fill request"
OUTPUT_WARP_VERIFICATION_FAILED = b"warp verification failed"


class TokenVMError(Exception):
    """Base class of errors raised by the token machine."""


class InvalidObjectError(TokenVMError):
    """An encoded object is well formed but not acceptable."""

    def __init__(self, message: str = "invalid object"):
        super().__init__(message)


class NoSwapToFillError(TokenVMError):
    """An import asked to fill a swap the transfer does not offer."""

    def __init__(self, message: str = "no swap to fill"):
        super().__init__(message)


class BalanceError(TokenVMError):
    """A balance or loan is too small for the requested change."""

    def __init__(self, message: str = "invalid balance"):
        super().__init__(message)


@dataclass
class Result:
    """Outcome of executing an action."""

    success: bool
    units: int
    output: bytes = b""
    warp_message: Optional[Any] = None


def failure(units: int, output: bytes) -> Result:
    """Return an unsuccessful result carrying *output*."""
    return Result(success=False, units=units, output=output)


def error_output(error: BaseException) -> bytes:
    """Return the output bytes that report *error*."""
    return str(error).encode()


class AssetInfo(NamedTuple):
    metadata: bytes
    supply: int
    owner: bytes
    warp: bool


class OrderInfo(NamedTuple):
    asset_in: bytes
    in_tick: int
    asset_out: bytes
    out_tick: int
    remaining: int
    owner: bytes


def _checked_add(current: int, amount: int) -> int:
    total = current + amount
    if total > MAX_UINT64:
        raise TokenVMError("overflow")
    return total


@dataclass
class State:
    """Balances, assets, orders and loans held in memory."""

    balances: dict = field(default_factory=dict)
    assets: dict = field(default_factory=dict)
    orders: dict = field(default_factory=dict)
    loans: dict = field(default_factory=dict)

    def get_balance(self, public_key: bytes, asset: bytes) -> int:
        return self.balances.get((bytes(public_key), bytes(asset)), 0)

    def set_balance(self, public_key: bytes, asset: bytes, value: int) -> None:
        key = (bytes(public_key), bytes(asset))
        if value:
            self.balances[key] = value
        else:
            self.balances.pop(key, None)

    def add_balance(self, public_key: bytes, asset: bytes, amount: int) -> None:
        current = self.get_balance(public_key, asset)
        self.set_balance(public_key, asset, _checked_add(current, amount))

    def sub_balance(self, public_key: bytes, asset: bytes, amount: int) -> None:
        current = self.get_balance(public_key, asset)
        if current < amount:
            raise BalanceError(f"invalid balance: have {current}, need {amount}")
        self.set_balance(public_key, asset, current - amount)

    def get_asset(self, asset: bytes) -> Optional[AssetInfo]:
        return self.assets.get(bytes(asset))

    def set_asset(
        self, asset: bytes, metadata: bytes, supply: int, owner: bytes, warp: bool
    ) -> None:
        self.assets[bytes(asset)] = AssetInfo(
            bytes(metadata), supply, bytes(owner), bool(warp)
        )

    def delete_asset(self, asset: bytes) -> None:
        self.assets.pop(bytes(asset), None)

    def get_order(self, order_id: bytes) -> Optional[OrderInfo]:
        return self.orders.get(bytes(order_id))

    def set_order(
        self,
        order_id: bytes,
        asset_in: bytes,
        in_tick: int,
        asset_out: bytes,
        out_tick: int,
        remaining: int,
        owner: bytes,
    ) -> None:
        self.orders[bytes(order_id)] = OrderInfo(
            bytes(asset_in), in_tick, bytes(asset_out), out_tick, remaining, bytes(owner)
        )

    def delete_order(self, order_id: bytes) -> None:
        self.orders.pop(bytes(order_id), None)

    def get_loan(self, asset: bytes, destination: bytes) -> int:
        return self.loans.get((bytes(asset), bytes(destination)), 0)

    def add_loan(self, asset: bytes, destination: bytes, amount: int) -> None:
        key = (bytes(asset), bytes(destination))
        self.loans[key] = _checked_add(self.loans.get(key, 0), amount)

    def sub_loan(self, asset: bytes, destination: bytes, amount: int) -> None:
        key = (bytes(asset), bytes(destination))
        current = self.loans.get(key, 0)
        if current < amount:
            raise BalanceError(f"invalid loan: have {current}, need {amount}")
        if current == amount:
            self.loans.pop(key, None)
        else:
            self.loans[key] = current - amount