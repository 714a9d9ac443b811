"""Repository layer for persisting orders.

``SqlOrderRepository`` implements ``OrderRepositoryPort`` on top of a
SQLAlchemy :class:`AsyncSession`. The session is handed in by the caller;
``create`` flushes so generated ids are available and ``commit`` is
called by the service once a write has succeeded.
"""

from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .domain import CENTS, Order, OrderStatus
from .models import OrderRecord


def _record_to_order(record: OrderRecord) -> Order:
    return Order(
        id=record.id,
        customer_email=record.customer_email,
        item=record.item,
        qty=record.qty,
        unit_price=Decimal(str(record.unit_price)).quantize(CENTS),
        status=OrderStatus(record.status),
        created_at=record.created_at,
    )


class SqlOrderRepository:
    """Repository that persists Order domain objects with SQLAlchemy.

    The repository returns domain objects and primitive values so the
    service layer never touches ORM types.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, order: Order) -> int:
        """Insert a NEW order row and return its generated id."""
        record = OrderRecord(
            customer_email=order.customer_email,
            item=order.item,
            qty=order.qty,
            unit_price=order.unit_price,
            status=OrderStatus.NEW.value,
        )
        self._session.add(record)
        await self._session.flush()
        return record.id

    async def get(self, order_id: int) -> Order | None:
        record = await self._session.get(OrderRecord, order_id)
        return _record_to_order(record) if record else None

    async def get_status(self, order_id: int) -> OrderStatus | None:
        result = await self._session.execute(select(OrderRecord.status).where(OrderRecord.id == order_id))
        status = result.scalar_one_or_none()
        return OrderStatus(status) if status is not None else None

    async def mark_paid(self, order_id: int) -> bool:
        """Run ``UPDATE orders SET status='PAID' WHERE id=:id AND status='NEW'``.

        The predicate makes the check-and-set atomic at the statement level,
        so two concurrent payers cannot both succeed.

        Returns:
            True if exactly one row was updated.
        """
        result = await self._session.execute(
            update(OrderRecord)
            .where(OrderRecord.id == order_id, OrderRecord.status == OrderStatus.NEW.value)
            .values(status=OrderStatus.PAID.value)
        )
        return result.rowcount == 1

    async def paid_revenue(self) -> Decimal:
        result = await self._session.execute(
            select(func.coalesce(func.sum(OrderRecord.qty * OrderRecord.unit_price), 0)).where(
                OrderRecord.status == OrderStatus.PAID.value
            )
        )
        # sqlite hands back a float here, postgres a Decimal
        return Decimal(str(result.scalar_one()))

    async def fetch_page(self, limit: int, offset: int) -> list[Order]:
        result = await self._session.execute(
            select(OrderRecord).order_by(OrderRecord.id.desc()).limit(limit).offset(offset)
        )
        return [_record_to_order(r) for r in result.scalars().all()]

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(OrderRecord))
        return result.scalar_one()

    async def commit(self) -> None:
        await self._session.commit()
