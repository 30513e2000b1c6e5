"""
Shadow table creation for the bulk import.
"""

from typing import Iterable
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection
from core.exceptions import TableBuildError
from ingestion.pipeline.tables import TARGET_TABLES, shadow_name
import logging

logger = logging.getLogger(__name__)

# Returns NULL instead of raising on malformed MM/DD/YYYY text so that one bad
# date never aborts a set-based statement.
DATE_HELPER_SQL = """
CREATE OR REPLACE FUNCTION nppes_to_date(value text) RETURNS date AS $$
BEGIN
    IF value IS NULL OR btrim(value) = '' THEN
        RETURN NULL;
    END IF;
    IF btrim(value) !~ '^\\d{1,2}/\\d{1,2}/\\d{4}$' THEN
        RETURN NULL;
    END IF;
    RETURN to_date(btrim(value), 'MM/DD/YYYY');
EXCEPTION WHEN others THEN
    RETURN NULL;
END;
$$ LANGUAGE plpgsql IMMUTABLE
"""


async def install_helper_functions(conn: AsyncConnection) -> None:
    await conn.execute(text(DATE_HELPER_SQL))


async def build_shadow_tables(conn: AsyncConnection, tables: Iterable[str] = TARGET_TABLES) -> None:
    """
    Drop and recreate an empty shadow copy of every target table.

    Shadow tables copy columns, defaults, identity, check constraints and
    indexes of their production table (foreign keys are not copied). Safe to
    re-run after a failed attempt.
    """
    await install_helper_functions(conn)

    for table in tables:
        shadow = shadow_name(table)
        try:
            await conn.execute(text(f"DROP TABLE IF EXISTS {shadow} CASCADE"))
            await conn.execute(text(f"CREATE TABLE {shadow} (LIKE {table} INCLUDING ALL)"))
        except Exception as e:
            raise TableBuildError(
                f"Failed to create shadow table {shadow}",
                context={"table_name": table, "shadow_table": shadow},
                original_exception=e
            )
        logger.info(f"Created shadow table {shadow}")
