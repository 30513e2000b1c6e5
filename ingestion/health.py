"""
Read-only health checks over the production tables.

Usage:
    report = await HealthReporter(session).verify_import_health()
    report["status"]   # "healthy" or "unhealthy"
    report["checks"]   # check name -> bool
"""

from typing import Any, Dict, List
from sqlalchemy import select, func, text
from sqlalchemy.ext.asyncio import AsyncSession
from core.config import settings
from models.provider import Provider, Address, ProviderTaxonomy, Identifier, AuthorizedOfficial
from models.reference import State, City, Taxonomy
import logging

logger = logging.getLogger(__name__)


class HealthReporter:
    """Count thresholds and integrity conditions over live data."""

    def __init__(self, session: AsyncSession):
        self.db = session

    async def verify_import_health(self) -> Dict[str, Any]:
        providers = await self._count(Provider)
        addresses = await self._count(Address)
        links = await self._count(ProviderTaxonomy)
        primary_links = await self._count(ProviderTaxonomy, ProviderTaxonomy.is_primary.is_(True))

        checks = {
            "sufficient_providers": providers >= settings.HEALTH_MIN_PROVIDERS,
            "sufficient_addresses": addresses >= int(providers * settings.HEALTH_ADDRESS_RATIO),
            "sufficient_taxonomies": links >= int(providers * settings.HEALTH_TAXONOMY_RATIO),
            "primary_taxonomies_exist": primary_links >= int(providers * settings.HEALTH_PRIMARY_RATIO),
            "no_orphaned_addresses": await self._orphans("addresses") == 0,
            "no_orphaned_taxonomies": await self._orphans("provider_taxonomies") == 0,
            "no_duplicate_npis": await self._scalar(
                "SELECT COUNT(*) FROM (SELECT npi FROM providers GROUP BY npi HAVING COUNT(*) > 1) AS dupes"
            ) == 0,
            "no_multiple_primary_taxonomies": await self._scalar(
                "SELECT COUNT(*) FROM ("
                " SELECT provider_id FROM provider_taxonomies WHERE is_primary"
                " GROUP BY provider_id HAVING COUNT(*) > 1"
                ") AS multi"
            ) == 0,
            "states_seeded": await self._count(State) >= settings.HEALTH_MIN_STATES,
            "taxonomies_seeded": await self._count(Taxonomy) >= settings.HEALTH_MIN_TAXONOMIES,
        }

        healthy = all(checks.values())
        if not healthy:
            failed = [name for name, passed in checks.items() if not passed]
            logger.warning(f"Health checks failed: {', '.join(failed)}")

        return {
            "status": "healthy" if healthy else "unhealthy",
            "checks": checks,
            "summary": self.summarize(checks),
        }

    @staticmethod
    def summarize(checks: Dict[str, bool]) -> str:
        total = len(checks)
        passed = sum(1 for ok in checks.values() if ok)
        failed = total - passed
        if failed == 0:
            return f"All {total} health checks passed. Data quality is good."
        return f"{passed}/{total} health checks passed. {failed} check(s) failed."

    async def data_counts(self) -> Dict[str, int]:
        return {
            "providers": await self._count(Provider),
            "individuals": await self._count(Provider, Provider.entity_type == 1),
            "organizations": await self._count(Provider, Provider.entity_type == 2),
            "active": await self._count(Provider, Provider.deactivation_date.is_(None)),
            "deactivated": await self._count(Provider, Provider.deactivation_date.isnot(None)),
            "addresses": await self._count(Address),
            "location_addresses": await self._count(Address, Address.address_purpose == "LOCATION"),
            "mailing_addresses": await self._count(Address, Address.address_purpose == "MAILING"),
            "provider_taxonomies": await self._count(ProviderTaxonomy),
            "primary_taxonomies": await self._count(ProviderTaxonomy, ProviderTaxonomy.is_primary.is_(True)),
            "identifiers": await self._count(Identifier),
            "authorized_officials": await self._count(AuthorizedOfficial),
            "cities": await self._count(City),
            "states": await self._count(State),
            "taxonomies": await self._count(Taxonomy),
        }

    async def find_data_quality_issues(self) -> List[str]:
        issues = []

        no_name = await self._scalar(
            "SELECT COUNT(*) FROM providers"
            " WHERE COALESCE(first_name, '') = '' AND COALESCE(organization_name, '') = ''"
        )
        if no_name:
            issues.append(f"{no_name} providers without names")

        no_address = await self._scalar(
            "SELECT COUNT(*) FROM providers p"
            " WHERE NOT EXISTS (SELECT 1 FROM addresses a WHERE a.provider_id = p.id)"
        )
        if no_address:
            issues.append(f"{no_address} providers without addresses")

        no_taxonomy = await self._scalar(
            "SELECT COUNT(*) FROM providers p"
            " WHERE NOT EXISTS (SELECT 1 FROM provider_taxonomies pt WHERE pt.provider_id = p.id)"
        )
        if no_taxonomy:
            issues.append(f"{no_taxonomy} providers without taxonomies")

        bad_npi = await self._count(Provider, func.length(Provider.npi) != 10)
        if bad_npi:
            issues.append(f"{bad_npi} providers with invalid NPI length")

        return issues

    async def providers_by_state(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(text(
            "SELECT s.code, s.name, COUNT(DISTINCT a.provider_id) AS provider_count"
            " FROM states s"
            " LEFT JOIN addresses a ON a.state_id = s.id AND a.address_purpose = 'LOCATION'"
            " GROUP BY s.code, s.name"
            " ORDER BY provider_count DESC, s.code"
        ))
        return [dict(row._mapping) for row in result]

    async def providers_by_taxonomy(self, limit: int = 20) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            text(
                "SELECT t.code, t.specialization, COUNT(DISTINCT pt.provider_id) AS provider_count"
                " FROM taxonomies t"
                " LEFT JOIN provider_taxonomies pt ON pt.taxonomy_id = t.id"
                " GROUP BY t.code, t.specialization"
                " ORDER BY provider_count DESC, t.code"
                " LIMIT :limit"
            ),
            {"limit": limit},
        )
        return [dict(row._mapping) for row in result]

    async def _count(self, model, *criteria) -> int:
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        result = await self.db.execute(stmt)
        return int(result.scalar() or 0)

    async def _scalar(self, sql: str) -> int:
        result = await self.db.execute(text(sql))
        return int(result.scalar() or 0)

    async def _orphans(self, child: str) -> int:
        return await self._scalar(
            f"SELECT COUNT(*) FROM {child} c"
            " WHERE NOT EXISTS (SELECT 1 FROM providers p WHERE p.id = c.provider_id)"
        )
