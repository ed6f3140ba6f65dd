"""
Database Connection Module

Wraps the SQLAlchemy async engine and session factory in an explicitly
constructed Database object. One instance is created at process start,
opened once, passed to every repository and closed at shutdown.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from foodorder.core.config import Settings, get_settings
from foodorder.core.errors import DuplicateRecord, PersistenceError

logger = logging.getLogger(__name__)


# Base class for all our models
class Base(DeclarativeBase):
    pass


class Database:
    """
    Storage handle shared by all repositories.

    Attributes:
        url: SQLAlchemy async URL
        engine: Async engine
        session_maker: Session factory (objects stay usable after commit)
    """

    def __init__(self, url: str, echo: bool = False):
        engine_kwargs = {"echo": echo}
        if not url.startswith("sqlite"):
            engine_kwargs.update(pool_size=5, max_overflow=10)

        self.url = url
        self.engine = create_async_engine(url, **engine_kwargs)
        self.session_maker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Database":
        settings = settings or get_settings()
        return cls(settings.database_url, echo=settings.database_echo)

    async def open(self, counters: Optional[dict[str, int]] = None) -> None:
        """
        Create all tables and seed the id counters.

        Args:
            counters: Counter name -> first id to issue. Existing counters
                are left untouched.
        """
        from foodorder.models import IdCounter  # registers every table on Base

        db_path = self.engine.url.database
        if self.engine.url.get_backend_name() == "sqlite" and db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        if counters:
            async with self.transaction() as session:
                for name, first_value in counters.items():
                    existing = await session.get(IdCounter, name)
                    if existing is None:
                        session.add(IdCounter(name=name, last_value=first_value - 1))

        logger.info(f"Database ready ({self.engine.url.render_as_string(hide_password=True)})")

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Yield a session inside a transaction that commits on exit.

        SQLAlchemy failures are re-raised as PersistenceError (or
        DuplicateRecord for integrity violations); domain errors raised
        inside the block roll back and propagate unchanged.
        """
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    yield session
        except IntegrityError as e:
            logger.warning(f"Integrity violation: {e.orig}")
            raise DuplicateRecord("Record violates a uniqueness or integrity constraint") from e
        except SQLAlchemyError as e:
            logger.exception("Database error")
            raise PersistenceError(f"Database error: {e.__class__.__name__}") from e

    async def ping(self) -> bool:
        """Run a trivial query to check connectivity."""
        try:
            async with self.session_maker() as session:
                await session.execute(select(1))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False


async def next_sequence_value(session: AsyncSession, name: str) -> int:
    """
    Issue the next value of a named counter.

    The increment runs before the read inside the caller's transaction, so
    the row is write-locked before anyone can observe the new value.
    """
    from foodorder.models import IdCounter

    result = await session.execute(
        update(IdCounter)
        .where(IdCounter.name == name)
        .values(last_value=IdCounter.last_value + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise PersistenceError(f"Id counter {name!r} is not initialized")

    value = await session.execute(select(IdCounter.last_value).where(IdCounter.name == name))
    return value.scalar_one()
