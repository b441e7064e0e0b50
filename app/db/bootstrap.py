"""
app/db/bootstrap.py
-------------------
Brings the database to the expected schema on every process start.

Tables and indexes are created with IF NOT EXISTS so concurrent instances
can race safely. Columns declared on a model but missing from an existing
table are added in place. Everything runs in one transaction, so a failure
leaves the schema untouched.

Run directly to bootstrap without starting the API:
    python -m app.db.bootstrap
"""

import asyncio
import logging
from typing import List

from sqlalchemy import inspect
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.schema import CreateColumn, CreateIndex, CreateTable

from app.db.base import Base
from app.db import models  # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger(__name__)


def _add_missing_columns(conn: Connection) -> List[str]:
    dialect = conn.dialect
    preparer = dialect.identifier_preparer
    inspector = inspect(conn)
    added = []

    for table in Base.metadata.sorted_tables:
        existing = {col["name"] for col in inspector.get_columns(table.name)}
        for column in table.columns:
            if column.name in existing:
                continue
            spec = str(CreateColumn(column).compile(dialect=dialect))
            guard = "IF NOT EXISTS " if dialect.name == "postgresql" else ""
            conn.exec_driver_sql(
                f"ALTER TABLE {preparer.format_table(table)} ADD COLUMN {guard}{spec}"
            )
            added.append(f"{table.name}.{column.name}")
            logger.info(f"Added column {table.name}.{column.name}")

    return added


def _bootstrap(conn: Connection) -> List[str]:
    for table in Base.metadata.sorted_tables:
        conn.execute(CreateTable(table, if_not_exists=True))

    added = _add_missing_columns(conn)

    for table in Base.metadata.sorted_tables:
        for index in table.indexes:
            conn.execute(CreateIndex(index, if_not_exists=True))

    return added


async def bootstrap(engine: AsyncEngine) -> List[str]:
    """
    Create absent tables, columns and indexes.

    Safe to call on every start. Returns the ``table.column`` names that
    were added (empty when the schema was already current).
    """
    try:
        async with engine.begin() as conn:
            added = await conn.run_sync(_bootstrap)
    except Exception as e:
        logger.error(f"Schema bootstrap failed, nothing was applied: {e}")
        raise

    logger.info("Database schema is up to date")
    return added


async def _main() -> None:
    from app.db.session import database

    try:
        await bootstrap(database.engine)
    finally:
        await database.dispose()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    asyncio.run(_main())
