"""In-memory book of open orders for the asset pairs being tracked."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .actions.orders import CreateOrder, pair_id
from .genesis import address

ALL_PAIRS = "*"


@dataclass
class Order:
    """An open order as reported to clients."""

    id: bytes
    owner: str
    in_tick: int
    out_tick: int
    remaining: int
    owner_key: bytes = field(default=b"", repr=False)

    @property
    def rate(self) -> float:
        return self.in_tick / self.out_tick


class OrderBook:
    """Open orders grouped by pair, best rate first."""

    def __init__(
        self, tracked_pairs: Iterable[str], logger: Optional[logging.Logger] = None
    ):
        self._log = logger or logging.getLogger(__name__)
        pairs = list(tracked_pairs)
        self._orders: Dict[str, Dict[bytes, Order]] = {}
        self._order_to_pair: Dict[bytes, str] = {}
        self._lock = threading.RLock()
        self._track_all = pairs == [ALL_PAIRS]
        if self._track_all:
            self._log.info("tracking all order books")
        else:
            for pair in pairs:
                self._orders[pair] = {}
                self._log.info("tracking order book pair=%s", pair)

    def add(self, tx_id: bytes, actor: bytes, action: CreateOrder) -> None:
        pair = pair_id(action.asset_in, action.asset_out)
        order = Order(
            id=bytes(tx_id),
            owner=address(actor),
            in_tick=action.in_tick,
            out_tick=action.out_tick,
            remaining=action.supply,
            owner_key=bytes(actor),
        )
        with self._lock:
            book = self._orders.get(pair)
            if book is None:
                if not self._track_all:
                    return
                self._log.info("tracking order book pair=%s", pair)
                book = self._orders[pair] = {}
            book[order.id] = order
            self._order_to_pair[order.id] = pair

    def remove(self, order_id: bytes) -> None:
        with self._lock:
            pair = self._order_to_pair.pop(bytes(order_id), None)
            if pair is None:
                return
            self._orders.get(pair, {}).pop(bytes(order_id), None)

    def update_remaining(self, order_id: bytes, remaining: int) -> None:
        with self._lock:
            pair = self._order_to_pair.get(bytes(order_id))
            if pair is None:
                return
            order = self._orders.get(pair, {}).get(bytes(order_id))
            if order is not None:
                order.remaining = remaining

    def orders(self, pair: str, limit: int) -> List[Order]:
        """Return at most *limit* orders of *pair*, highest rate first."""
        if limit < 0:
            raise ValueError("limit must not be negative")
        with self._lock:
            book = self._orders.get(pair)
            if book is None:
                return []
            ranked = sorted(book.values(), key=lambda order: order.rate, reverse=True)
            return ranked[:limit]