"""
Cutover and rollback by table rename.

Renames are transactional metadata operations in PostgreSQL, so a reader
sees either the complete old generation or the complete new one. Both
functions run on the caller's connection and never commit.
"""

from datetime import datetime
from typing import Iterable, List
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection
from core.exceptions import CutoverError, RollbackError
from ingestion.pipeline.tables import (
    TARGET_TABLES,
    shadow_name,
    old_name,
    failed_name,
    table_exists,
)
import logging

logger = logging.getLogger(__name__)


async def promote_shadow_tables(conn: AsyncConnection, tables: Iterable[str] = TARGET_TABLES) -> List[str]:
    """
    Rename production -> _old and _new -> production for every table.

    Raises CutoverError before renaming anything if a shadow table is
    missing or an _old generation from an earlier cutover was never dropped.
    """
    tables = list(tables)

    missing = [shadow_name(t) for t in tables if not await table_exists(conn, shadow_name(t))]
    if missing:
        raise CutoverError(
            "Shadow tables are missing; build and transform before swapping",
            context={"missing_tables": missing}
        )

    stale = [old_name(t) for t in tables if await table_exists(conn, old_name(t))]
    if stale:
        raise CutoverError(
            "Previous generation was never dropped; drop it or roll back first",
            context={"stale_tables": stale}
        )

    promoted = []
    for table in tables:
        try:
            if await table_exists(conn, table):
                await conn.execute(text(f"ALTER TABLE {table} RENAME TO {old_name(table)}"))
            await conn.execute(text(f"ALTER TABLE {shadow_name(table)} RENAME TO {table}"))
        except Exception as e:
            raise CutoverError(
                f"Failed to promote {shadow_name(table)}",
                context={"table_name": table},
                original_exception=e
            )
        promoted.append(table)
        logger.info(f"Swapped {shadow_name(table)} -> {table}")

    return promoted


async def drop_old_tables(conn: AsyncConnection, tables: Iterable[str] = TARGET_TABLES) -> List[str]:
    """Drop the _old generation. After this, rollback is no longer possible."""
    dropped = []
    for table in reversed(list(tables)):
        name = old_name(table)
        if not await table_exists(conn, name):
            continue
        try:
            await conn.execute(text(f"DROP TABLE {name} CASCADE"))
        except Exception as e:
            raise CutoverError(
                f"Failed to drop {name}",
                context={"table_name": name},
                original_exception=e
            )
        dropped.append(name)
        logger.info(f"Dropped {name}")
    return dropped


async def rollback_import(conn: AsyncConnection, tables: Iterable[str] = TARGET_TABLES) -> List[str]:
    """
    Discard shadow tables and restore the _old generation where one exists.

    The production table being replaced is kept under a _failed name for
    inspection. If a _failed table is already present from an earlier
    rollback, the new quarantine gets a UTC timestamp suffix.
    """
    tables = list(tables)
    restored = []
    stamp = datetime.utcnow().strftime("%Y%m%d%H%M%S")

    try:
        for table in reversed(tables):
            await conn.execute(text(f"DROP TABLE IF EXISTS {shadow_name(table)} CASCADE"))

        for table in tables:
            if not await table_exists(conn, old_name(table)):
                continue

            if await table_exists(conn, table):
                quarantine = failed_name(table)
                if await table_exists(conn, quarantine):
                    quarantine = f"{quarantine}_{stamp}"
                await conn.execute(text(f"ALTER TABLE {table} RENAME TO {quarantine}"))
                logger.info(f"Quarantined {table} as {quarantine}")

            await conn.execute(text(f"ALTER TABLE {old_name(table)} RENAME TO {table}"))
            restored.append(table)
            logger.info(f"Restored {table} from {old_name(table)}")
    except Exception as e:
        raise RollbackError(
            "Rollback failed",
            context={"restored_tables": restored},
            original_exception=e
        )

    if not restored:
        logger.warning("No previous generation found; only shadow tables were discarded")
    return restored
