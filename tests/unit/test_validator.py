import pytest
from unittest.mock import AsyncMock, MagicMock
from ingestion.pipeline.validator import ImportValidator, ValidationReport, CheckResult


def mock_conn(*scalars):
    result = MagicMock()
    result.scalar.side_effect = list(scalars)
    conn = AsyncMock()
    conn.execute.return_value = result
    return conn


def test_informational_checks_do_not_fail_integrity():
    report = ValidationReport(generation="_new", checks=[
        CheckResult("providers_count", False, "0 rows", value=0, informational=True),
        CheckResult("orphaned_addresses", True, "0 orphans", value=0),
    ])

    assert report.integrity_ok is True
    assert report.failed_checks == []
    assert "[WARN] providers_count" in report.format()
    assert "Integrity: OK" in report.format()


def test_failed_integrity_check():
    report = ValidationReport(generation="_new", checks=[
        CheckResult("orphaned_addresses", False, "3 orphans", value=3),
        CheckResult("duplicate_npis", True, "0 duplicates", value=0),
    ])

    assert report.integrity_ok is False
    assert report.failed_checks == ["orphaned_addresses"]
    assert report.as_dict() == {"orphaned_addresses": False, "duplicate_npis": True}
    assert "[FAIL] orphaned_addresses" in report.format()


@pytest.mark.asyncio
async def test_validator_clean_generation():
    # five table counts, four orphan checks, multiple primaries, duplicate NPIs
    conn = mock_conn(10, 18, 12, 4, 2, 0, 0, 0, 0, 0, 0)

    report = await ImportValidator(conn).run()

    assert report.integrity_ok
    assert report.generation == "_new"
    assert len(report.checks) == 11
    first_sql = conn.execute.call_args_list[0].args[0].text
    assert "providers_new" in first_sql


@pytest.mark.asyncio
async def test_validator_reports_orphans_and_primary_collisions():
    conn = mock_conn(10, 18, 12, 4, 2, 5, 0, 0, 0, 2, 0)

    report = await ImportValidator(conn).run()

    assert not report.integrity_ok
    assert report.failed_checks == ["orphaned_addresses", "multiple_primary_taxonomies"]


@pytest.mark.asyncio
async def test_validator_production_generation():
    conn = mock_conn(*([1] * 5 + [0] * 6))

    report = await ImportValidator(conn, generation="").run()

    sql = conn.execute.call_args_list[0].args[0].text
    assert sql == "SELECT COUNT(*) FROM providers"
    assert report.integrity_ok
