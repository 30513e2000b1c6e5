"""
Cutover and rollback with committed transactions against a real PostgreSQL.
"""

import asyncio
import pytest
import pytest_asyncio
from sqlalchemy import text
from ingestion.base import ImportRunTracker
from ingestion.runner import BulkImportRunner
from ingestion.pipeline import table_exists, promote_shadow_tables
from ingestion.pipeline.tables import TARGET_TABLES
from core.exceptions import CutoverError
from models.base import PipelineStage
from models.staging import staging_providers

pytestmark = pytest.mark.integration

GENERATION_A = ["1000000001", "1000000002", "1000000003"]
GENERATION_B = ["2000000001", "2000000002", "2000000003", "2000000004", "2000000005"]


def generation_rows(staging_row, npis):
    """Staging rows with an identifier on the first NPI and an organization with an official on the second."""
    extras = [
        {"identifier_1": "MCD1", "identifier_type_1": "05", "identifier_state_1": "TX"},
        {
            "entity_type_code": "2",
            "org_name": "AUSTIN FAMILY CLINIC",
            "first_name": None,
            "last_name": None,
            "gender": None,
            "ao_last_name": "SMITH",
            "taxonomy_code_2": "363L00000X",
            "taxonomy_primary_2": "N",
        },
    ]
    return [
        staging_row(npi=npi, **(extras[i] if i < len(extras) else {}))
        for i, npi in enumerate(npis)
    ]


@pytest.fixture
def runner(test_engine, session_factory):
    return BulkImportRunner(
        test_engine,
        tracker=ImportRunTracker(session_factory),
        grace_seconds=0,
        require_validation=False,
    )


@pytest.fixture
def reload_staging(test_engine, staging_row):
    async def _reload(npis):
        async with test_engine.begin() as conn:
            await conn.execute(staging_providers.delete())
            await conn.execute(staging_providers.insert(), generation_rows(staging_row, npis))
    return _reload


@pytest_asyncio.fixture
async def production_a(runner, reload_staging):
    """Production populated by a complete first import."""
    await reload_staging(GENERATION_A)
    await runner.run_all()
    return runner


async def snapshot(engine, table="providers"):
    async with engine.connect() as conn:
        result = await conn.execute(text(
            f"SELECT npi, last_name, enumeration_date FROM {table} ORDER BY npi"
        ))
        return [tuple(r) for r in result.all()]


async def snapshot_generation(engine):
    """Every row of every production table, ordered by primary key."""
    tables = {}
    async with engine.connect() as conn:
        for table in TARGET_TABLES:
            result = await conn.execute(text(f"SELECT * FROM {table} ORDER BY id"))
            tables[table] = [tuple(r) for r in result.all()]
    return tables


async def exists(engine, name):
    async with engine.connect() as conn:
        return await table_exists(conn, name)


@pytest.mark.asyncio
async def test_first_import_goes_live(test_engine, production_a):
    assert [r[0] for r in await snapshot(test_engine)] == GENERATION_A
    assert not await exists(test_engine, "providers_new")
    assert not await exists(test_engine, "providers_old")
    assert await production_a.tracker.current_stage() == PipelineStage.OLD_DROPPED

    summary = await production_a.summary()
    assert summary["providers"] == 3
    assert summary["addresses"] == 6


@pytest.mark.asyncio
async def test_swap_then_rollback_restores_previous_generation(test_engine, production_a, reload_staging):
    runner = production_a
    before = await snapshot_generation(test_engine)
    assert before["identifiers"]
    assert before["authorized_officials"]
    assert len(before["provider_taxonomies"]) == 4

    await reload_staging(GENERATION_B)
    await runner.build()
    await runner.transform()
    result = await runner.swap(keep_old=True)

    assert result["dropped"] == []
    assert [r[0] for r in await snapshot(test_engine)] == GENERATION_B
    assert await exists(test_engine, "providers_old")

    restored = await runner.rollback()

    assert sorted(restored) == sorted(TARGET_TABLES)
    after = await snapshot_generation(test_engine)
    for table in TARGET_TABLES:
        assert after[table] == before[table], table
    assert [r[0] for r in await snapshot(test_engine, "providers_failed")] == GENERATION_B
    assert not await exists(test_engine, "providers_old")
    assert await runner.tracker.current_stage() == PipelineStage.ROLLED_BACK


@pytest.mark.asyncio
async def test_second_rollback_quarantine_gets_timestamp(test_engine, production_a, reload_staging):
    runner = production_a

    for _ in range(2):
        await reload_staging(GENERATION_B)
        await runner.build()
        await runner.transform()
        await runner.swap(keep_old=True)
        await runner.rollback()

    async with test_engine.connect() as conn:
        result = await conn.execute(text("""
            SELECT table_name FROM information_schema.tables
            WHERE table_schema = current_schema() AND table_name LIKE 'providers\\_failed%'
            ORDER BY table_name
        """))
        names = [r[0] for r in result.all()]

    assert names[0] == "providers_failed"
    assert len(names) == 2
    assert len(names[1]) == len("providers_failed_") + 14
    assert [r[0] for r in await snapshot(test_engine)] == GENERATION_A


@pytest.mark.asyncio
async def test_rollback_discards_unswapped_shadow(test_engine, production_a, reload_staging):
    runner = production_a
    before = await snapshot(test_engine)

    await reload_staging(GENERATION_B)
    await runner.build()
    await runner.transform()

    restored = await runner.rollback()

    assert restored == []
    assert not await exists(test_engine, "providers_new")
    assert await snapshot(test_engine) == before


@pytest.mark.asyncio
async def test_swap_refuses_stale_old_generation(test_engine, production_a, reload_staging):
    runner = production_a

    await reload_staging(GENERATION_B)
    await runner.build()
    await runner.transform()
    await runner.swap(keep_old=True)

    await runner.build()
    await runner.transform()
    with pytest.raises(CutoverError):
        await runner.swap()

    # The failed swap changed nothing
    assert [r[0] for r in await snapshot(test_engine)] == GENERATION_B
    assert await exists(test_engine, "providers_old")

    assert await runner.drop_old()
    await runner.swap()
    assert [r[0] for r in await snapshot(test_engine)] == GENERATION_B


@pytest.mark.asyncio
async def test_readers_see_one_complete_generation(test_engine, production_a, reload_staging):
    """A concurrent reader observes either the old or the new row count, never a mix."""
    await reload_staging(GENERATION_B)
    await production_a.build()
    await production_a.transform()

    observed = []
    done = asyncio.Event()

    async def poll():
        async with test_engine.connect() as conn:
            while not done.is_set():
                result = await conn.execute(text("""
                    SELECT (SELECT COUNT(*) FROM providers),
                           (SELECT COUNT(*) FROM addresses)
                """))
                observed.append(tuple(result.one()))
                await conn.rollback()
                await asyncio.sleep(0.005)

    reader = asyncio.create_task(poll())
    await asyncio.sleep(0.05)

    async with test_engine.begin() as conn:
        await promote_shadow_tables(conn)
        # Hold the renames uncommitted while the reader keeps polling
        await asyncio.sleep(0.2)

    await asyncio.sleep(0.05)
    done.set()
    await reader

    assert set(observed) <= {(3, 6), (5, 10)}
    assert observed[0] == (3, 6)
    assert observed[-1] == (5, 10)
