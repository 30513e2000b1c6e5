import pytest
from unittest.mock import AsyncMock, MagicMock
from ingestion.transformers.staging import StagingTransformer, DEDUP_TABLE
from ingestion.slots import TAXONOMY_SLOTS, IDENTIFIER_SLOTS, STAGING_ADDRESSES
from core.exceptions import TransformationError


def mock_conn(scalar=0, rowcount=1):
    result = MagicMock()
    result.scalar.return_value = scalar
    result.rowcount = rowcount
    conn = AsyncMock()
    conn.execute.return_value = result
    return conn


def test_taxonomy_slot_sql_reads_its_own_columns():
    transformer = StagingTransformer(mock_conn(), staging_table="staging_providers")
    sql = transformer._taxonomy_slot_sql(TAXONOMY_SLOTS[2])

    assert "s.taxonomy_code_3" in sql
    assert "s.taxonomy_primary_3" in sql
    assert "taxonomy_code_2" not in sql
    assert "NOT EXISTS" in sql
    assert "ON CONFLICT (provider_id, taxonomy_id) DO NOTHING" in sql
    assert "INNER JOIN taxonomies t" in sql


def test_identifier_slot_sql_defaults_type():
    transformer = StagingTransformer(mock_conn())
    sql = transformer._identifier_slot_sql(IDENTIFIER_SLOTS[49])

    assert "s.identifier_50" in sql
    assert "'01'" in sql


def test_address_sql_keeps_unresolved_references():
    transformer = StagingTransformer(mock_conn())
    sql = transformer._address_sql(STAGING_ADDRESSES[1])

    assert "'LOCATION'" in sql
    assert "LEFT JOIN states st" in sql
    assert "s.practice_city" in sql


@pytest.mark.asyncio
async def test_prepare_uses_staging_table_without_duplicates():
    conn = mock_conn(scalar=0)
    transformer = StagingTransformer(conn, staging_table="staging_providers")

    await transformer.prepare()

    assert transformer.source == "staging_providers"
    assert conn.execute.await_count == 1


@pytest.mark.asyncio
async def test_prepare_deduplicates_into_temp_table():
    conn = mock_conn(scalar=3)
    transformer = StagingTransformer(conn, staging_table="staging_providers")

    await transformer.prepare()

    assert transformer.source == DEDUP_TABLE
    create_sql = conn.execute.call_args_list[-1].args[0].text
    assert "ON COMMIT DROP" in create_sql
    assert "DISTINCT ON (btrim(npi))" in create_sql
    assert "ctid DESC" in create_sql


@pytest.mark.asyncio
async def test_identifier_slots_are_batched():
    conn = mock_conn(rowcount=2)
    transformer = StagingTransformer(conn, identifier_batch_size=20)

    total = await transformer.import_identifiers()

    # TRUNCATE plus one statement per slot
    assert conn.execute.await_count == 1 + len(IDENTIFIER_SLOTS)
    assert total == 2 * len(IDENTIFIER_SLOTS)


@pytest.mark.asyncio
async def test_failing_step_raises_transformation_error():
    conn = AsyncMock()
    conn.execute.side_effect = RuntimeError("relation does not exist")
    transformer = StagingTransformer(conn)

    with pytest.raises(TransformationError) as exc_info:
        await transformer.import_providers()

    assert exc_info.value.context["step"] == "providers"
    assert exc_info.value.context["table_name"] == "providers_new"
