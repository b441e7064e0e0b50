import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core import config

logger = logging.getLogger(__name__)


def _in_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return False
    return parsed.database in (None, "", ":memory:") or parsed.query.get("mode") == "memory"


def make_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine with a bounded connection pool."""
    kwargs = {"echo": echo, "future": True, "pool_pre_ping": True}
    # In-memory SQLite shares one connection through a StaticPool, which takes no sizing
    if not _in_memory_sqlite(url):
        kwargs.update(
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW,
            pool_timeout=config.DB_POOL_TIMEOUT,
            pool_recycle=config.DB_POOL_RECYCLE,
        )

    engine = create_async_engine(url, **kwargs)
    if url.startswith("sqlite"):
        # SQLite only honours ON DELETE CASCADE with this pragma set per connection
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


class Database:
    """
    Process-wide handle on the engine and its pool.

    Sessions are checked out with ``session()`` and released when the block
    exits. ``dispose()`` waits for every checked-out session to come back
    before closing the pool.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = make_engine(url, echo=echo)
        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        self._in_flight += 1
        self._idle.clear()
        try:
            async with self.sessionmaker() as session:
                yield session
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()

    async def dispose(self, timeout: Optional[float] = None) -> None:
        if self._in_flight:
            logger.info(f"Waiting for {self._in_flight} in-flight session(s) to finish")
            try:
                await asyncio.wait_for(self._idle.wait(), timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Closing pool with {self._in_flight} session(s) still checked out"
                )
        await self.engine.dispose()
        logger.info("Database pool closed")


database = Database(config.DATABASE_URL, echo=config.DB_ECHO)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with database.session() as session:
        yield session
