"""Pydantic schemas for the orders HTTP API.

Schemas only check the shape and types of payloads. Business rules
(e-mail format, positive quantity and price) are enforced by
``OrderService`` so HTTP and library callers see the same error kinds.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from .domain import Order, OrderStatus


class CreateOrderDTO(BaseModel):
    """Request body for creating an order.

    Attributes:
        customer_email: Buyer e-mail.
        item: Item description.
        qty: Units ordered.
        price: Unit price; strings such as ``"50.40"`` keep exact cents.
    """

    customer_email: str
    item: str
    qty: int
    price: Decimal


class OrderCreatedDTO(BaseModel):
    id: int
    status: OrderStatus


class OrderReadDTO(BaseModel):
    """Read model for a persisted order; decimals serialize as strings."""

    id: int
    customer_email: str
    item: str
    qty: int
    unit_price: Decimal
    total: Decimal
    status: OrderStatus
    created_at: datetime | None = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderReadDTO":
        return cls(
            id=order.id,
            customer_email=order.customer_email,
            item=order.item,
            qty=order.qty,
            unit_price=order.unit_price,
            total=order.total,
            status=order.status,
            created_at=order.created_at,
        )


class OrderPageDTO(BaseModel):
    count: int
    page: int
    page_size: int
    results: list[OrderReadDTO]


class PayOrderResponse(BaseModel):
    id: int
    paid: bool


class RevenueDTO(BaseModel):
    revenue: Decimal


class ErrorDTO(BaseModel):
    detail: str
    message: str
