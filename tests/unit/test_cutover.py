import pytest
from unittest.mock import AsyncMock, patch
from ingestion.pipeline.cutover import promote_shadow_tables, drop_old_tables, rollback_import
from ingestion.pipeline.tables import TARGET_TABLES
from core.exceptions import CutoverError, RollbackError


def existing(*names):
    """table_exists replacement backed by a fixed set of table names."""
    tables = set(names)

    async def _exists(conn, name):
        return name in tables

    return _exists


def executed_sql(conn):
    return [call.args[0].text for call in conn.execute.call_args_list]


@pytest.mark.asyncio
async def test_promote_renames_production_then_shadow():
    conn = AsyncMock()
    tables = list(TARGET_TABLES) + [f"{t}_new" for t in TARGET_TABLES]

    with patch("ingestion.pipeline.cutover.table_exists", side_effect=existing(*tables)):
        promoted = await promote_shadow_tables(conn)

    assert promoted == list(TARGET_TABLES)
    statements = executed_sql(conn)
    assert statements[:2] == [
        "ALTER TABLE providers RENAME TO providers_old",
        "ALTER TABLE providers_new RENAME TO providers",
    ]
    assert len(statements) == 2 * len(TARGET_TABLES)
    conn.commit.assert_not_called()


@pytest.mark.asyncio
async def test_promote_first_generation_has_nothing_to_retire():
    conn = AsyncMock()

    with patch("ingestion.pipeline.cutover.table_exists", side_effect=existing("providers_new")):
        await promote_shadow_tables(conn, tables=["providers"])

    assert executed_sql(conn) == ["ALTER TABLE providers_new RENAME TO providers"]


@pytest.mark.asyncio
async def test_promote_refuses_when_shadow_missing():
    conn = AsyncMock()
    tables = list(TARGET_TABLES) + ["providers_new", "addresses_new"]

    with patch("ingestion.pipeline.cutover.table_exists", side_effect=existing(*tables)):
        with pytest.raises(CutoverError) as exc_info:
            await promote_shadow_tables(conn)

    assert "identifiers_new" in exc_info.value.context["missing_tables"]
    conn.execute.assert_not_called()


@pytest.mark.asyncio
async def test_promote_refuses_with_stale_old_generation():
    conn = AsyncMock()
    tables = [f"{t}_new" for t in TARGET_TABLES] + ["providers_old"]

    with patch("ingestion.pipeline.cutover.table_exists", side_effect=existing(*tables)):
        with pytest.raises(CutoverError) as exc_info:
            await promote_shadow_tables(conn)

    assert exc_info.value.context["stale_tables"] == ["providers_old"]
    conn.execute.assert_not_called()


@pytest.mark.asyncio
async def test_promote_wraps_database_errors():
    conn = AsyncMock()
    conn.execute.side_effect = RuntimeError("lock timeout")

    with patch("ingestion.pipeline.cutover.table_exists", side_effect=existing("providers_new")):
        with pytest.raises(CutoverError) as exc_info:
            await promote_shadow_tables(conn, tables=["providers"])

    assert isinstance(exc_info.value.original_exception, RuntimeError)


@pytest.mark.asyncio
async def test_drop_old_children_first():
    conn = AsyncMock()
    tables = [f"{t}_old" for t in TARGET_TABLES]

    with patch("ingestion.pipeline.cutover.table_exists", side_effect=existing(*tables)):
        dropped = await drop_old_tables(conn)

    assert dropped[0] == "authorized_officials_old"
    assert dropped[-1] == "providers_old"
    assert executed_sql(conn)[-1] == "DROP TABLE providers_old CASCADE"


@pytest.mark.asyncio
async def test_rollback_restores_and_quarantines():
    conn = AsyncMock()

    with patch(
        "ingestion.pipeline.cutover.table_exists",
        side_effect=existing("providers", "providers_old"),
    ):
        restored = await rollback_import(conn, tables=["providers"])

    assert restored == ["providers"]
    assert executed_sql(conn) == [
        "DROP TABLE IF EXISTS providers_new CASCADE",
        "ALTER TABLE providers RENAME TO providers_failed",
        "ALTER TABLE providers_old RENAME TO providers",
    ]


@pytest.mark.asyncio
async def test_rollback_timestamps_second_quarantine():
    conn = AsyncMock()

    with patch(
        "ingestion.pipeline.cutover.table_exists",
        side_effect=existing("providers", "providers_old", "providers_failed"),
    ):
        await rollback_import(conn, tables=["providers"])

    quarantine = executed_sql(conn)[1]
    assert quarantine.startswith("ALTER TABLE providers RENAME TO providers_failed_")
    assert len(quarantine.rsplit("_", 1)[-1]) == 14


@pytest.mark.asyncio
async def test_rollback_without_old_generation_only_drops_shadow():
    conn = AsyncMock()

    with patch("ingestion.pipeline.cutover.table_exists", side_effect=existing("providers")):
        restored = await rollback_import(conn, tables=["providers"])

    assert restored == []
    assert executed_sql(conn) == ["DROP TABLE IF EXISTS providers_new CASCADE"]


@pytest.mark.asyncio
async def test_rollback_wraps_database_errors():
    conn = AsyncMock()
    conn.execute.side_effect = RuntimeError("connection lost")

    with patch("ingestion.pipeline.cutover.table_exists", side_effect=existing()):
        with pytest.raises(RollbackError):
            await rollback_import(conn)
