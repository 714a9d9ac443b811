"""In-process stub adapter for the orders repository port.

``InMemoryOrderRepository`` implements ``OrderRepositoryPort`` with a
plain dict. It is intended for unit tests and local development where a
database is not available; ids are sequential and statuses follow the same
conditional-update rule as the SQL repository.
"""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

from .domain import Order, OrderStatus


class InMemoryOrderRepository:
    """Stub implementation of ``OrderRepositoryPort``.

    Stored orders are copied on the way in and out so callers cannot
    mutate persisted state behind the repository's back.
    """

    def __init__(self):
        self._rows: dict[int, Order] = {}
        self._next_id = 1

    async def create(self, order: Order) -> int:
        order_id = self._next_id
        self._next_id += 1
        self._rows[order_id] = replace(
            order, id=order_id, status=OrderStatus.NEW, created_at=datetime.now(timezone.utc)
        )
        return order_id

    async def get(self, order_id: int) -> Order | None:
        row = self._rows.get(order_id)
        return replace(row) if row else None

    async def get_status(self, order_id: int) -> OrderStatus | None:
        row = self._rows.get(order_id)
        return row.status if row else None

    async def mark_paid(self, order_id: int) -> bool:
        row = self._rows.get(order_id)
        if row is None or row.status is not OrderStatus.NEW:
            return False
        row.status = OrderStatus.PAID
        return True

    async def paid_revenue(self) -> Decimal:
        return sum(
            (r.unit_price * r.qty for r in self._rows.values() if r.status is OrderStatus.PAID),
            Decimal("0"),
        )

    async def fetch_page(self, limit: int, offset: int) -> list[Order]:
        rows = sorted(self._rows.values(), key=lambda r: r.id, reverse=True)
        return [replace(r) for r in rows[offset:offset + limit]]

    async def count(self) -> int:
        return len(self._rows)

    async def commit(self) -> None:
        pass
