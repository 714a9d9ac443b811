"""FastAPI dependencies that wire ``OrderService`` to its repository.

``get_session`` opens one session per request from the session factory
stored on ``app.state`` at startup. The service commits its writes before
the endpoint returns; the scope only rolls back on error. ``get_order_service`` wraps that
session in a ``SqlOrderRepository``. Tests swap either dependency through
``app.dependency_overrides`` (for example with ``InMemoryOrderRepository``).
"""

from typing import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .db import session_scope
from .domain import OrderService
from .repository import SqlOrderRepository


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with session_scope(request.app.state.session_factory) as session:
        yield session


def get_order_service(session: AsyncSession = Depends(get_session)) -> OrderService:
    return OrderService(SqlOrderRepository(session))
