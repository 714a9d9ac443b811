"""Orders service API built with FastAPI.

This module exposes endpoints to create orders, pay them, read them back
and aggregate revenue over paid orders. Payloads are shaped by Pydantic
models, business rules live in ``domain.OrderService`` and persistence is
delegated to the SQLAlchemy-backed ``repository.SqlOrderRepository``.

The database engine is created on startup from ``settings.get_settings``
and disposed on shutdown; each request runs in its own transaction.
"""

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from .db import create_all, create_engine, create_session_factory, wait_for_database
from .domain import (
    InvalidState,
    OrderError,
    OrderNotFound,
    OrderService,
    OrderStatus,
    StorageError,
    ValidationError,
)
from .logging_config import configure_logging
from .middleware import add_request_id
from .providers import get_order_service
from .schemas import (
    CreateOrderDTO,
    ErrorDTO,
    OrderCreatedDTO,
    OrderPageDTO,
    OrderReadDTO,
    PayOrderResponse,
    RevenueDTO,
)
from .settings import get_settings

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger("orders.api")

app = FastAPI(title="Orders Service")
app.middleware("http")(add_request_id)

ERROR_STATUS = {
    ValidationError: 422,
    OrderNotFound: 404,
    InvalidState: 409,
    StorageError: 503,
}
ERROR_RESPONSES = {code: {"model": ErrorDTO} for code in (404, 409, 503)}


@app.on_event("startup")
async def _startup_db():
    engine = create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        echo=settings.db_echo,
    )
    await wait_for_database(engine, timeout=settings.db_startup_timeout)
    if settings.db_create_tables:
        await create_all(engine)
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)


@app.on_event("shutdown")
async def _shutdown_db():
    engine = getattr(app.state, "engine", None)
    if engine is not None:
        await engine.dispose()
        logger.info("engine disposed")


@app.exception_handler(OrderError)
async def order_error_handler(request: Request, exc: OrderError):
    status_code = ERROR_STATUS.get(type(exc), 400)
    if status_code >= 500:
        logger.error("request failed", extra={"path": request.url.path, "detail": exc.code})
    return JSONResponse(status_code=status_code, content={"detail": exc.code, "message": exc.detail})


@app.get("/health")
def health():
    """Liveness/health probe endpoint."""
    return {"ok": True}


@app.post("/orders", status_code=201, response_model=OrderCreatedDTO, responses=ERROR_RESPONSES)
async def create_order(req: CreateOrderDTO, service: OrderService = Depends(get_order_service)):
    """Create a NEW order.

    Returns:
        OrderCreatedDTO: The generated id and the NEW status.

    Raises:
        ValidationError: Mapped to 422 with detail ``VALIDATION_ERROR`` when
            the e-mail, quantity, price or item is rejected.
    """
    order_id = await service.create_order(req.customer_email, req.item, req.qty, req.price)
    return OrderCreatedDTO(id=order_id, status=OrderStatus.NEW)


@app.get("/orders", response_model=OrderPageDTO)
async def list_orders(
    page: int = 1,
    page_size: int | None = None,
    service: OrderService = Depends(get_order_service),
):
    size = page_size if page_size is not None else settings.page_size
    orders, total = await service.list_orders(page=page, page_size=size)
    return OrderPageDTO(
        count=total,
        page=page,
        page_size=size,
        results=[OrderReadDTO.from_order(o) for o in orders],
    )


@app.get("/orders/{order_id}", response_model=OrderReadDTO, responses=ERROR_RESPONSES)
async def get_order(order_id: int, service: OrderService = Depends(get_order_service)):
    return OrderReadDTO.from_order(await service.get_order(order_id))


@app.post("/orders/{order_id}/pay", response_model=PayOrderResponse, responses=ERROR_RESPONSES)
async def pay_order(order_id: int, service: OrderService = Depends(get_order_service)):
    """Move an order from NEW to PAID.

    Responds 404 (``NOT_FOUND``) for an unknown id and 409
    (``INVALID_STATE``) when the order is not NEW.
    """
    paid = await service.pay_order(order_id)
    return PayOrderResponse(id=order_id, paid=paid)


@app.get("/revenue", response_model=RevenueDTO)
async def revenue(service: OrderService = Depends(get_order_service)):
    return RevenueDTO(revenue=await service.calculate_revenue())
