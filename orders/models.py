"""SQLAlchemy model for the ``orders`` table.

The table layout mirrors the persisted order shape: an integer surrogate
key, the customer e-mail, a free-form item, a positive quantity, a
two-digit fixed point unit price, a status restricted to NEW, PAID or
CANCELLED and a timezone aware creation timestamp. Positivity and the
status domain are also enforced with CHECK constraints so rows written
outside the service cannot break them.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Integer, Numeric, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .domain import OrderStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class OrderRecord(Base):
    """SQLAlchemy model representing one order row.

    Attributes:
        id: Autoincrement primary key returned to callers.
        customer_email: Buyer e-mail (validated to contain ``@`` upstream).
        item: Item description.
        qty: Units ordered, ``qty > 0``.
        unit_price: ``NUMERIC(10, 2)``, ``unit_price > 0``.
        status: One of NEW, PAID, CANCELLED; defaults to NEW.
        created_at: Set once on insert.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_email: Mapped[str] = mapped_column(Text, nullable=False)
    item: Mapped[str] = mapped_column(Text, nullable=False)
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=OrderStatus.NEW.value, server_default=OrderStatus.NEW.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("qty > 0", name="ck_orders_qty_positive"),
        CheckConstraint("unit_price > 0", name="ck_orders_unit_price_positive"),
        CheckConstraint("status IN ('NEW', 'PAID', 'CANCELLED')", name="ck_orders_status"),
    )
