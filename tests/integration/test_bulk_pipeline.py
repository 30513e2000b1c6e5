"""
Bulk pipeline against a real PostgreSQL: staging -> shadow tables -> validation.

Everything runs on one connection whose transaction is rolled back after
each test.
"""

import pytest
from datetime import date
from sqlalchemy import text
from ingestion.pipeline import build_shadow_tables, ImportValidator, import_summary
from ingestion.transformers.staging import StagingTransformer

pytestmark = pytest.mark.integration


async def rows(conn, sql, **params):
    result = await conn.execute(text(sql), params)
    return result.mappings().all()


async def scalar(conn, sql, **params):
    result = await conn.execute(text(sql), params)
    return result.scalar()


@pytest.mark.asyncio
async def test_single_provider_end_to_end(conn, staging_row, load_staging):
    await load_staging(conn, staging_row(
        taxonomy_code_2="UNKNOWN000X",
        taxonomy_primary_2="N",
    ))

    await build_shadow_tables(conn)
    counts = await StagingTransformer(conn).run()

    assert counts["providers"] == 1
    assert counts["addresses"] == 2
    assert counts["provider_taxonomies"] == 1
    assert counts["authorized_officials"] == 0

    provider = (await rows(conn, "SELECT * FROM providers_new"))[0]
    assert provider["npi"] == "1234567890"
    assert provider["entity_type"] == 1
    assert provider["enumeration_date"] == date(2005, 5, 23)
    assert provider["gender"] == "F"

    link = (await rows(conn, """
        SELECT t.code, pt.is_primary, pt.slot, pt.license_number
        FROM provider_taxonomies_new pt JOIN taxonomies t ON t.id = pt.taxonomy_id
    """))[0]
    assert link["code"] == "207Q00000X"
    assert link["is_primary"] is True
    assert link["slot"] == 1
    assert link["license_number"] == "L12345"

    # Production is untouched until cutover
    assert await scalar(conn, "SELECT COUNT(*) FROM providers") == 0


@pytest.mark.asyncio
async def test_transform_is_idempotent(conn, staging_row, load_staging):
    await load_staging(
        conn,
        staging_row(npi="1000000001", identifier_1="MCD1", identifier_type_1="05"),
        staging_row(npi="1000000002"),
    )
    await build_shadow_tables(conn)

    first = await StagingTransformer(conn).run()
    second = await StagingTransformer(conn).run()

    assert first == second
    assert first["providers"] == 2
    assert first["identifiers"] == 1


@pytest.mark.asyncio
async def test_only_first_primary_taxonomy_is_primary(conn, staging_row, load_staging):
    await load_staging(conn, staging_row(
        taxonomy_code_2="363L00000X",
        taxonomy_primary_2="Y",
        taxonomy_code_3="207Q00000X",
        taxonomy_primary_3="Y",
    ))
    await build_shadow_tables(conn)
    await StagingTransformer(conn).run()

    links = await rows(conn, "SELECT slot, is_primary FROM provider_taxonomies_new ORDER BY slot")

    # slot 3 repeats the slot 1 code and is dropped
    assert [(link["slot"], link["is_primary"]) for link in links] == [(1, True), (2, False)]


@pytest.mark.asyncio
async def test_primary_may_come_from_a_later_slot(conn, staging_row, load_staging):
    await load_staging(conn, staging_row(
        taxonomy_primary_1="N",
        taxonomy_code_2="363L00000X",
        taxonomy_primary_2="Y",
    ))
    await build_shadow_tables(conn)
    await StagingTransformer(conn).run()

    primary = await scalar(conn, """
        SELECT t.code FROM provider_taxonomies_new pt
        JOIN taxonomies t ON t.id = pt.taxonomy_id
        WHERE pt.is_primary
    """)
    assert primary == "363L00000X"


@pytest.mark.asyncio
async def test_address_reference_resolution(conn, staging_row, load_staging):
    austin_id = await scalar(conn, """
        INSERT INTO cities (name, state_id)
        SELECT 'Austin', id FROM states WHERE code = 'TX'
        RETURNING id
    """)
    await load_staging(
        conn,
        staging_row(npi="1000000001", practice_city=" austin ", practice_state="tx"),
        staging_row(npi="1000000002", practice_city="ROUND ROCK"),
        staging_row(npi="1000000003", practice_state="ZZ"),
        staging_row(npi="1000000004", practice_country_code="CA", practice_state="ON"),
    )
    await build_shadow_tables(conn)
    await StagingTransformer(conn).run()

    location = {
        r["npi"]: r for r in await rows(conn, """
            SELECT p.npi, a.city_id, a.city_name, a.state_id, a.address_type, a.country_code
            FROM addresses_new a JOIN providers_new p ON p.id = a.provider_id
            WHERE a.address_purpose = 'LOCATION'
        """)
    }

    assert location["1000000001"]["city_id"] == austin_id
    assert location["1000000002"]["city_id"] is None
    assert location["1000000002"]["city_name"] == "ROUND ROCK"
    assert location["1000000003"]["state_id"] is None
    assert location["1000000004"]["address_type"] == "FGN"
    assert location["1000000004"]["country_code"] == "CA"

    # The bulk path never creates cities
    assert await scalar(conn, "SELECT COUNT(*) FROM cities") == 1


@pytest.mark.asyncio
async def test_malformed_values_become_null(conn, staging_row, load_staging):
    await load_staging(conn, staging_row(
        npi="  1000000001 ",
        enumeration_date="13/45/2020",
        last_update_date="not a date",
        gender="Q",
        sole_proprietor="y",
        credential="   ",
        entity_type_code="",
    ))
    await build_shadow_tables(conn)
    await StagingTransformer(conn).run()

    provider = (await rows(conn, "SELECT * FROM providers_new"))[0]
    assert provider["npi"] == "1000000001"
    assert provider["enumeration_date"] is None
    assert provider["last_update_date"] is None
    assert provider["gender"] is None
    assert provider["sole_proprietor"] is True
    assert provider["credential"] is None
    assert provider["entity_type"] is None


@pytest.mark.asyncio
async def test_rows_without_npi_are_skipped(conn, staging_row, load_staging):
    await load_staging(
        conn,
        staging_row(npi="1000000001"),
        staging_row(npi="   "),
        staging_row(npi=None),
    )
    await build_shadow_tables(conn)
    counts = await StagingTransformer(conn).run()

    assert counts["providers"] == 1
    assert counts["addresses"] == 2


@pytest.mark.asyncio
async def test_duplicate_npi_last_row_wins(conn, staging_row, load_staging):
    await load_staging(conn, staging_row(last_name="FIRST", taxonomy_code_1="207Q00000X"))
    await load_staging(conn, staging_row(last_name="SECOND", taxonomy_code_1="207R00000X"))
    await build_shadow_tables(conn)
    counts = await StagingTransformer(conn).run()

    assert counts["providers"] == 1
    assert counts["addresses"] == 2
    assert await scalar(conn, "SELECT last_name FROM providers_new") == "SECOND"
    assert await scalar(conn, """
        SELECT t.code FROM provider_taxonomies_new pt JOIN taxonomies t ON t.id = pt.taxonomy_id
    """) == "207R00000X"


@pytest.mark.asyncio
async def test_identifiers_and_officials(conn, staging_row, load_staging):
    await load_staging(
        conn,
        staging_row(
            npi="1000000001",
            identifier_1="MCD1",
            identifier_type_1="",
            identifier_state_1="TX",
            identifier_2="MCD1",
            identifier_type_2="",
            identifier_3="UPIN9",
            identifier_type_3="02",
            ao_last_name="SMITH",
        ),
        staging_row(
            npi="1000000002",
            entity_type_code="2",
            org_name="AUSTIN FAMILY CLINIC",
            first_name=None,
            last_name=None,
            gender=None,
            ao_last_name=" SMITH ",
            ao_first_name="JOHN",
            ao_title="CEO",
        ),
    )
    await build_shadow_tables(conn)
    counts = await StagingTransformer(conn).run()

    identifiers = await rows(conn, """
        SELECT identifier_type, identifier_value, state_id IS NOT NULL AS has_state
        FROM identifiers_new ORDER BY identifier_value
    """)
    assert [(i["identifier_type"], i["identifier_value"]) for i in identifiers] == [
        ("01", "MCD1"),
        ("02", "UPIN9"),
    ]
    assert identifiers[0]["has_state"] is True

    # Individuals never get an authorized official
    assert counts["authorized_officials"] == 1
    official = (await rows(conn, "SELECT * FROM authorized_officials_new"))[0]
    assert official["last_name"] == "SMITH"
    assert official["title_or_position"] == "CEO"


@pytest.mark.asyncio
async def test_validation_of_clean_generation(conn, staging_row, load_staging):
    await load_staging(conn, staging_row(npi="1000000001"), staging_row(npi="1000000002"))
    await build_shadow_tables(conn)
    await StagingTransformer(conn).run()

    report = await ImportValidator(conn).run()

    assert report.integrity_ok
    checks = {c.name: c for c in report.checks}
    assert checks["providers_count"].value == 2
    assert checks["authorized_officials_count"].passed is False
    assert checks["authorized_officials_count"].informational


@pytest.mark.asyncio
async def test_validation_detects_orphans(conn, staging_row, load_staging):
    await load_staging(conn, staging_row())
    await build_shadow_tables(conn)
    await StagingTransformer(conn).run()

    # Shadow tables carry no foreign keys, so nothing stops a dangling row
    await conn.execute(text("""
        INSERT INTO addresses_new (provider_id, address_purpose, address_1)
        VALUES (999999, 'MAILING', '1 NOWHERE')
    """))

    report = await ImportValidator(conn).run()

    assert not report.integrity_ok
    assert report.failed_checks == ["orphaned_addresses"]


@pytest.mark.asyncio
async def test_shadow_summary(conn, staging_row, load_staging):
    await load_staging(
        conn,
        staging_row(npi="1000000001"),
        staging_row(npi="1000000002", deactivation_date="01/15/2020"),
        staging_row(npi="1000000003", entity_type_code="2", org_name="CLINIC", ao_last_name="SMITH"),
    )
    await build_shadow_tables(conn)
    await StagingTransformer(conn).run()

    summary = await import_summary(conn, "_new")

    assert summary["providers"] == 3
    assert summary["individuals"] == 2
    assert summary["organizations"] == 1
    assert summary["deactivated"] == 1
    assert summary["location_addresses"] == 3
    assert summary["primary_taxonomy_links"] == 3
    assert summary["authorized_officials"] == 1
