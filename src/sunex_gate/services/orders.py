"""In-memory record of orders placed through signed endpoints."""

from __future__ import annotations

from datetime import UTC, datetime
from itertools import count
from threading import Lock

from sunex_gate.schemas.order import OrderCreate, OrderResponse


class OrderLedger:
    """Append-only, process-local list of accepted orders."""

    def __init__(self) -> None:
        self._orders: list[OrderResponse] = []
        self._ids = count(1)
        self._lock = Lock()

    def record(self, client_id: str, order: OrderCreate) -> OrderResponse:
        with self._lock:
            recorded = OrderResponse(
                id=next(self._ids),
                client_id=client_id,
                order_type=order.order_type,
                asset_id=order.asset_id,
                price=order.price,
                amount=order.amount,
                timestamp=datetime.now(UTC),
            )
            self._orders.append(recorded)
            return recorded

    def list_orders(self, client_id: str | None = None) -> list[OrderResponse]:
        with self._lock:
            if client_id is None:
                return list(self._orders)
            return [order for order in self._orders if order.client_id == client_id]
