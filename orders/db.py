"""Async engine, session scoping and schema helpers.

The engine is never held in module state: the application (or a test)
creates one with ``create_engine``, builds a session factory from it and
opens a transaction per unit of work with ``session_scope``. Disposing the
engine is the owner's job.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from .models import Base

logger = logging.getLogger(__name__)


def create_engine(
    url: str,
    *,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_recycle: int = 1800,
    echo: bool = False,
    use_null_pool: bool = False,
) -> AsyncEngine:
    """Create an :class:`AsyncEngine` for ``url``.

    Args:
        url: Async SQLAlchemy URL, e.g. ``postgresql+psycopg://...``.
        pool_size: Persistent pooled connections.
        max_overflow: Extra connections beyond ``pool_size``.
        pool_recycle: Seconds after which pooled connections are recycled.
        echo: Log every SQL statement.
        use_null_pool: Open a fresh connection per checkout. Useful for
            tests and one-off scripts.
    """
    pool_kwargs: dict = {}
    if use_null_pool:
        pool_kwargs["poolclass"] = NullPool
    else:
        pool_kwargs.update(
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_recycle=pool_recycle,
            pool_pre_ping=True,
        )
    engine = create_async_engine(url, echo=echo, **pool_kwargs)
    logger.info("engine created", extra={"database": url.split("@")[-1]})
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def session_scope(factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Yield a session that commits on success and rolls back on error.

    The session is always closed on exit.
    """
    session = factory()
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise
    finally:
        await session.close()


async def create_all(engine: AsyncEngine) -> None:
    """Create the ``orders`` table (and its constraints) when missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database tables created / verified")


async def drop_all(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def wait_for_database(engine: AsyncEngine, timeout: float = 30.0, interval: float = 1.0) -> None:
    """Poll ``select 1`` until the database accepts connections.

    Raises:
        The last connection error once ``timeout`` seconds have elapsed.
    """
    deadline = time.monotonic() + timeout
    while True:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("select 1"))
            return
        except Exception:
            if time.monotonic() > deadline:
                raise
            logger.warning("database not ready, retrying")
            await asyncio.sleep(interval)
