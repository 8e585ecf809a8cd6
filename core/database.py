"""
Database session management with SQLAlchemy async
"""

import base64
import hashlib
import logging
import time
from typing import List

from sqlalchemy import select, insert, func
from sqlalchemy.exc import OperationalError, ProgrammingError, SQLAlchemyError
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from sqlalchemy.schema import CreateTable

from core.exceptions import SchemaMissingError, StoreUnavailableError
from models.base import Base
from models.schema_entry import SchemaEntry

logger = logging.getLogger(__name__)


def create_engine_for(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for an index or reference database"""
    return create_async_engine(
        database_url,
        echo=echo,
        poolclass=NullPool,
        future=True
    )


def make_session_factory(db_engine: AsyncEngine) -> async_sessionmaker:
    """Session factory bound to an engine"""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False
    )


def mask_url(database_url: str) -> str:
    """Render a database URL with its password hidden, for logs and errors"""
    return make_url(database_url).render_as_string(hide_password=True)


def schema_checksum(description: str, notes: str, sql: str) -> str:
    """base64 MD5 (padding stripped) of description + notes + DDL"""
    digest = hashlib.md5((description + notes + sql).encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii").rstrip("=")


async def init_schema(db_engine: AsyncEngine) -> List[str]:
    """
    Create all index tables and log each one in the 'schema' table.

    Tables already present in the log are left alone, so this is safe to run
    against an initialized database.

    Returns:
        Names of tables newly logged
    """
    applied: List[str] = []

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

        result = await conn.execute(select(SchemaEntry.name))
        existing = set(result.scalars().all())

        for table in Base.metadata.sorted_tables:
            if table.name in existing:
                continue

            description = table.comment or ""
            notes = ""
            sql = str(CreateTable(table).compile(dialect=db_engine.dialect)).strip()

            await conn.execute(
                insert(SchemaEntry).values(
                    date_applied=int(time.time()),
                    name=table.name,
                    description=description,
                    notes=notes,
                    checksum=schema_checksum(description, notes, sql),
                )
            )
            applied.append(table.name)

    logger.info(f"Schema initialized: {len(applied)} new entries ({', '.join(applied) or 'none'})")
    return applied


async def check_schema(session: AsyncSession, label: str = "index") -> int:
    """
    Verify that a database is reachable and has applied schema entries.

    Returns:
        Number of entries in the 'schema' table

    Raises:
        StoreUnavailableError: The database cannot be reached
        SchemaMissingError: The 'schema' table is missing or empty
    """
    try:
        result = await session.execute(select(func.count()).select_from(SchemaEntry))
        count = result.scalar_one()
    except (OperationalError, ProgrammingError) as e:
        await session.rollback()
        if _is_missing_table(e):
            raise SchemaMissingError(
                f"No schema table in {label} database",
                context={"database": label, "table_name": SchemaEntry.__tablename__},
                original_exception=e
            )
        raise StoreUnavailableError(
            f"Cannot connect to {label} database",
            context={"database": label},
            original_exception=e
        )
    except (SQLAlchemyError, OSError) as e:
        raise StoreUnavailableError(
            f"Cannot connect to {label} database",
            context={"database": label},
            original_exception=e
        )

    if count == 0:
        raise SchemaMissingError(
            f"No schema entries applied to {label} database",
            context={"database": label, "table_name": SchemaEntry.__tablename__}
        )

    logger.info(f"Found {count} schema entries in {label} database")
    return count


def _is_missing_table(error: Exception) -> bool:
    text = str(getattr(error, "orig", error)).lower()
    return "no such table" in text or "does not exist" in text or "undefined" in text
