"""
Post-transform checks over one table generation.

The validator only reads. Count checks are informational; the integrity
checks (orphans, primary-taxonomy collisions, duplicate NPIs) decide
ValidationReport.integrity_ok, which cutover consults only when
CUTOVER_REQUIRE_VALIDATION is enabled.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection
from ingestion.pipeline.tables import TARGET_TABLES, SHADOW_SUFFIX, count_rows
import logging

logger = logging.getLogger(__name__)

# (check name, child table, description)
ORPHAN_CHECKS = (
    ("orphaned_addresses", "addresses", "addresses without a provider"),
    ("orphaned_taxonomy_links", "provider_taxonomies", "taxonomy links without a provider"),
    ("orphaned_identifiers", "identifiers", "identifiers without a provider"),
    ("orphaned_officials", "authorized_officials", "officials without a provider"),
)


@dataclass
class CheckResult:
    name: str
    passed: bool
    detail: str
    value: Optional[int] = None
    informational: bool = False


@dataclass
class ValidationReport:
    generation: str
    checks: List[CheckResult] = field(default_factory=list)

    @property
    def integrity_ok(self) -> bool:
        return all(c.passed for c in self.checks if not c.informational)

    @property
    def failed_checks(self) -> List[str]:
        return [c.name for c in self.checks if not c.passed and not c.informational]

    def as_dict(self) -> Dict[str, bool]:
        return {c.name: c.passed for c in self.checks}

    def format(self) -> str:
        lines = []
        for check in self.checks:
            mark = "PASS" if check.passed else ("WARN" if check.informational else "FAIL")
            lines.append(f"  [{mark}] {check.name}: {check.detail}")
        verdict = "OK" if self.integrity_ok else "FAILED"
        lines.append(f"  Integrity: {verdict}")
        return "\n".join(lines)


class ImportValidator:
    """
    Count and integrity checks against the shadow tables (or any other
    generation, e.g. "" for production after a cutover).
    """

    def __init__(self, conn: AsyncConnection, generation: str = SHADOW_SUFFIX):
        self.conn = conn
        self.generation = generation

    def _table(self, name: str) -> str:
        return f"{name}{self.generation}"

    async def run(self) -> ValidationReport:
        report = ValidationReport(generation=self.generation)

        for table in TARGET_TABLES:
            count = await count_rows(self.conn, self._table(table))
            report.checks.append(CheckResult(
                name=f"{table}_count",
                passed=count > 0,
                detail=f"{count:,} rows in {self._table(table)}",
                value=count,
                informational=True,
            ))

        for name, child, description in ORPHAN_CHECKS:
            orphans = await self._orphan_count(child)
            report.checks.append(CheckResult(
                name=name,
                passed=orphans == 0,
                detail=f"{orphans:,} {description}",
                value=orphans,
            ))

        multiple_primary = await self._scalar(f"""
            SELECT COUNT(*) FROM (
                SELECT provider_id
                FROM {self._table("provider_taxonomies")}
                WHERE is_primary
                GROUP BY provider_id
                HAVING COUNT(*) > 1
            ) AS multi
        """)
        report.checks.append(CheckResult(
            name="multiple_primary_taxonomies",
            passed=multiple_primary == 0,
            detail=f"{multiple_primary:,} providers with more than one primary taxonomy",
            value=multiple_primary,
        ))

        duplicate_npis = await self._scalar(f"""
            SELECT COUNT(*) FROM (
                SELECT npi FROM {self._table("providers")}
                GROUP BY npi
                HAVING COUNT(*) > 1
            ) AS dupes
        """)
        report.checks.append(CheckResult(
            name="duplicate_npis",
            passed=duplicate_npis == 0,
            detail=f"{duplicate_npis:,} NPIs appearing more than once",
            value=duplicate_npis,
        ))

        if report.integrity_ok:
            logger.info(f"Validation of generation '{self.generation}' passed")
        else:
            logger.warning(
                f"Validation of generation '{self.generation}' failed: {', '.join(report.failed_checks)}"
            )
        return report

    async def _orphan_count(self, child: str) -> int:
        return await self._scalar(f"""
            SELECT COUNT(*)
            FROM {self._table(child)} c
            LEFT JOIN {self._table("providers")} p ON p.id = c.provider_id
            WHERE p.id IS NULL
        """)

    async def _scalar(self, sql: str) -> int:
        result = await self.conn.execute(text(sql))
        return int(result.scalar() or 0)


async def import_summary(conn: AsyncConnection, generation: str = "") -> Dict[str, int]:
    """Row counts describing one table generation (production by default)."""
    providers = f"providers{generation}"
    addresses = f"addresses{generation}"
    links = f"provider_taxonomies{generation}"

    return {
        "providers": await count_rows(conn, providers),
        "individuals": await count_rows(conn, providers, "entity_type = 1"),
        "organizations": await count_rows(conn, providers, "entity_type = 2"),
        "active": await count_rows(conn, providers, "deactivation_date IS NULL"),
        "deactivated": await count_rows(conn, providers, "deactivation_date IS NOT NULL"),
        "addresses": await count_rows(conn, addresses),
        "location_addresses": await count_rows(conn, addresses, "address_purpose = 'LOCATION'"),
        "mailing_addresses": await count_rows(conn, addresses, "address_purpose = 'MAILING'"),
        "taxonomy_links": await count_rows(conn, links),
        "primary_taxonomy_links": await count_rows(conn, links, "is_primary"),
        "identifiers": await count_rows(conn, f"identifiers{generation}"),
        "authorized_officials": await count_rows(conn, f"authorized_officials{generation}"),
    }
