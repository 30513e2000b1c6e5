"""
Table generations used by the bulk pipeline.

Each target table exists in up to four generations, distinguished by name:

    providers          production (read by the API)
    providers_new      shadow, populated by the current import
    providers_old      previous production, kept between cutover and drop
    providers_failed   quarantined production after a rollback
"""

from typing import Tuple
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

# Parents before children
TARGET_TABLES: Tuple[str, ...] = (
    "providers",
    "addresses",
    "provider_taxonomies",
    "identifiers",
    "authorized_officials",
)

SHADOW_SUFFIX = "_new"
OLD_SUFFIX = "_old"
FAILED_SUFFIX = "_failed"


def shadow_name(table: str) -> str:
    return f"{table}{SHADOW_SUFFIX}"


def old_name(table: str) -> str:
    return f"{table}{OLD_SUFFIX}"


def failed_name(table: str) -> str:
    return f"{table}{FAILED_SUFFIX}"


async def table_exists(conn: AsyncConnection, name: str) -> bool:
    """Check whether a table of that name exists in the current schema."""
    result = await conn.execute(
        text(
            "SELECT EXISTS ("
            " SELECT FROM information_schema.tables"
            " WHERE table_schema = current_schema() AND table_name = :name"
            ")"
        ),
        {"name": name},
    )
    return bool(result.scalar())


async def count_rows(conn: AsyncConnection, table: str, where: str = "") -> int:
    sql = f"SELECT COUNT(*) FROM {table}"
    if where:
        sql += f" WHERE {where}"
    result = await conn.execute(text(sql))
    return int(result.scalar() or 0)
