"""Domain models, errors, ports and service for orders.

This module contains the ``Order`` entity, the tagged error taxonomy raised
by the service, the repository protocol (port) the service depends on, and
the ``OrderService`` that validates input and enforces the single permitted
status transition, ``NEW -> PAID``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
MAX_PAGE_SIZE = 100
# NUMERIC(10, 2) and INTEGER column bounds
MAX_PRICE = Decimal("99999999.99")
MAX_QTY = 2**31 - 1


# ---- Enums ----
class OrderStatus(str, Enum):
    """Lifecycle statuses persisted in the ``orders.status`` column.

    ``CANCELLED`` is accepted by storage but no operation produces it."""

    NEW = "NEW"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


# ---- Errors ----
class OrderError(Exception):
    """Base class for every error the order service reports.

    Attributes:
        kind: Distinguished error kind (``ValidationError``, ``OrderNotFound``,
            ``InvalidState`` or ``StorageError``).
        code: Upper-case code used in HTTP payloads.
        detail: Human readable description.
    """

    kind = "OrderError"
    code = "ORDER_ERROR"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{self.kind}: {detail}")


class ValidationError(OrderError, ValueError):
    kind = "ValidationError"
    code = "VALIDATION_ERROR"


class OrderNotFound(OrderError):
    kind = "OrderNotFound"
    code = "NOT_FOUND"


class InvalidState(OrderError):
    kind = "InvalidState"
    code = "INVALID_STATE"


class StorageError(OrderError):
    """Raised when the storage layer fails; the original exception is chained."""

    kind = "StorageError"
    code = "STORAGE_UNAVAILABLE"


# ---- Entities / DTOs ----
@dataclass
class Order:
    """Container for order data.

    Attributes:
        id: Storage generated identifier, or None if not yet saved.
        customer_email: Buyer e-mail address.
        item: Free-form description of the purchased item.
        qty: Number of units, always positive.
        unit_price: Price per unit as a two-digit fixed point Decimal.
        status: Current OrderStatus.
        created_at: Creation timestamp (timezone aware), set by storage.
    """

    id: int | None
    customer_email: str
    item: str
    qty: int
    unit_price: Decimal
    status: OrderStatus = OrderStatus.NEW
    created_at: datetime | None = None

    @property
    def total(self) -> Decimal:
        return (self.unit_price * self.qty).quantize(CENTS)


# ---- Ports (DIP) ----
class OrderRepositoryPort(Protocol):
    """Port describing the storage operations used by the service.

    All methods are coroutines; implementations suspend only while waiting
    on the storage round-trip.
    """

    async def create(self, order: Order) -> int:
        """Insert ``order`` with status NEW and return the generated id."""
        raise NotImplementedError()

    async def get(self, order_id: int) -> Order | None:
        raise NotImplementedError()

    async def get_status(self, order_id: int) -> OrderStatus | None:
        raise NotImplementedError()

    async def mark_paid(self, order_id: int) -> bool:
        """Flip the row from NEW to PAID in a single conditional update.

        Returns:
            True when exactly that row was updated, False when no row with
            this id is currently NEW.
        """
        raise NotImplementedError()

    async def paid_revenue(self) -> Decimal:
        """Return ``sum(qty * unit_price)`` over PAID rows (0 when none)."""
        raise NotImplementedError()

    async def fetch_page(self, limit: int, offset: int) -> list[Order]:
        raise NotImplementedError()

    async def count(self) -> int:
        raise NotImplementedError()

    async def commit(self) -> None:
        """Make the writes of this unit of work durable."""
        raise NotImplementedError()


# ---- Validation helpers ----
def _to_price(price) -> Decimal | None:
    """Coerce ``price`` to a cent-quantized Decimal, or None when not numeric."""
    if isinstance(price, bool):
        return None
    try:
        value = price if isinstance(price, Decimal) else Decimal(str(price))
        if not value.is_finite() or abs(value) > MAX_PRICE:
            return None
        return value.quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        return None


def _storage_error(exc: SQLAlchemyError) -> StorageError:
    # driver text may carry host and port; it stays in the logs
    orig = getattr(exc, "orig", None)
    logger.error("storage failure", extra={"error": str(orig if orig is not None else exc)})
    return StorageError("storage unavailable")


# ---- Domain service ----
class OrderService:
    """Domain service for the order lifecycle.

    The service validates input, delegates persistence to the injected
    repository and enforces the ``NEW -> PAID`` transition. It owns no
    connection state: the caller scopes the repository (and the session
    behind it). Writes are committed before the call returns, so a
    returned id or success flag always refers to durable state; the
    caller rolls back when a call raises.
    """

    def __init__(self, repository: OrderRepositoryPort):
        self.repository = repository

    async def create_order(self, email: str, item: str, qty: int, price) -> int:
        """Validate the input and persist a NEW order.

        Checks run in a fixed order and the first failure wins: email,
        qty, price, item.

        Args:
            email: Customer e-mail, must contain ``@``.
            item: Non-blank item description.
            qty: Strictly positive integer quantity.
            price: Strictly positive unit price (int, float, str or Decimal).
                It is rounded half-up to cents before the check.

        Returns:
            The generated order id.

        Raises:
            ValidationError: ``invalid email``, ``invalid qty``,
                ``invalid price`` or ``invalid item``.
            StorageError: If the insert fails.
        """
        if not isinstance(email, str) or "@" not in email:
            raise ValidationError("invalid email")
        if isinstance(qty, bool) or not isinstance(qty, int) or not 0 < qty <= MAX_QTY:
            raise ValidationError("invalid qty")
        unit_price = _to_price(price)
        if unit_price is None or unit_price <= 0:
            raise ValidationError("invalid price")
        if not isinstance(item, str) or not item.strip():
            raise ValidationError("invalid item")

        order = Order(id=None, customer_email=email, item=item, qty=qty, unit_price=unit_price)
        try:
            order_id = await self.repository.create(order)
            await self.repository.commit()
        except SQLAlchemyError as exc:
            raise _storage_error(exc) from exc

        logger.info("order created", extra={"order_id": order_id, "qty": qty, "unit_price": str(unit_price)})
        return order_id

    async def pay_order(self, order_id: int) -> bool:
        """Transition an order from NEW to PAID.

        The transition is a single conditional update. When it touches no
        row, a status lookup tells a missing order apart from one that is
        no longer NEW.

        Returns:
            True once the order is PAID.

        Raises:
            OrderNotFound: No order has this id.
            InvalidState: The order exists but its status is not NEW.
            StorageError: If the storage layer fails.
        """
        try:
            if await self.repository.mark_paid(order_id):
                await self.repository.commit()
                logger.info("order paid", extra={"order_id": order_id})
                return True
            current = await self.repository.get_status(order_id)
        except SQLAlchemyError as exc:
            raise _storage_error(exc) from exc

        if current is None:
            raise OrderNotFound(f"no order with id {order_id}")
        logger.warning("payment rejected", extra={"order_id": order_id, "status": current.value})
        raise InvalidState("order must have NEW status")

    async def calculate_revenue(self) -> Decimal:
        """Sum ``qty * unit_price`` over PAID orders, to the cent."""
        try:
            total = await self.repository.paid_revenue()
        except SQLAlchemyError as exc:
            raise _storage_error(exc) from exc
        return Decimal(str(total)).quantize(CENTS)

    async def get_order(self, order_id: int) -> Order:
        try:
            order = await self.repository.get(order_id)
        except SQLAlchemyError as exc:
            raise _storage_error(exc) from exc
        if order is None:
            raise OrderNotFound(f"no order with id {order_id}")
        return order

    async def list_orders(self, page: int = 1, page_size: int = 20) -> tuple[list[Order], int]:
        """Return one page of orders, newest first, plus the total count.

        Raises:
            ValidationError: ``invalid page`` or ``invalid page size``.
        """
        if page < 1:
            raise ValidationError("invalid page")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValidationError("invalid page size")
        try:
            orders = await self.repository.fetch_page(limit=page_size, offset=(page - 1) * page_size)
            total = await self.repository.count()
        except SQLAlchemyError as exc:
            raise _storage_error(exc) from exc
        return orders, total
