"""
Set-based transformation of the wide staging table into shadow tables.

Every step is a single INSERT ... SELECT over the whole staging table (one
statement per slot for the repeated column groups), never a per-row loop.

Coercion rules shared by all steps:
- text fields are trimmed, blank strings become NULL
- dates go through nppes_to_date(), malformed values become NULL
- unknown gender codes become NULL, Y/N flags become booleans
- rows whose reference lookups fail keep NULL references (addresses) or are
  skipped (taxonomy links with unknown codes)
"""

import time
from typing import Dict, Optional
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection
from core.config import settings
from core.exceptions import TransformationError
from ingestion.pipeline.tables import TARGET_TABLES, shadow_name, count_rows
from models.base import GENDER_SQL_LIST
from ingestion.slots import (
    AddressColumns,
    TaxonomySlot,
    IdentifierSlot,
    STAGING_ADDRESSES,
    TAXONOMY_SLOTS,
    IDENTIFIER_SLOTS,
)
import logging

logger = logging.getLogger(__name__)

DEDUP_TABLE = "nppes_staging_dedup"
OTHER_IDENTIFIER_TYPE = "01"


def _clean(column: str) -> str:
    return f"NULLIF(btrim(s.{column}), '')"


def _flag(column: str) -> str:
    return f"COALESCE(upper(btrim(s.{column})) = 'Y', false)"


class StagingTransformer:
    """
    Populate the shadow tables from the staging table.

    The transformer never commits; all statements run on the connection it
    is given, so the caller decides the transaction boundary.

    Usage:
        async with engine.begin() as conn:
            counts = await StagingTransformer(conn).run()
    """

    def __init__(
        self,
        conn: AsyncConnection,
        staging_table: Optional[str] = None,
        identifier_batch_size: Optional[int] = None,
    ):
        self.conn = conn
        self.staging_table = staging_table or settings.STAGING_TABLE
        self.identifier_batch_size = identifier_batch_size or settings.IDENTIFIER_SLOT_BATCH
        self.source = self.staging_table

    async def run(self) -> Dict[str, int]:
        """Run every transformation step and return shadow table row counts."""
        logger.info(f"Transforming {self.staging_table} into shadow tables")

        await self.prepare()
        await self.import_providers()
        await self.import_addresses()
        await self.import_provider_taxonomies()
        await self.import_identifiers()
        await self.import_authorized_officials()
        await self.analyze_tables()

        counts = {}
        for table in TARGET_TABLES:
            counts[table] = await count_rows(self.conn, shadow_name(table))

        logger.info(f"Data transformation complete: {counts}")
        return counts

    async def prepare(self) -> None:
        """
        Choose the source relation.

        The dissemination file has one row per NPI. If the staging table holds
        duplicates anyway, the last loaded row per NPI is materialized into a
        transaction-scoped temp table and used as the source instead.
        """
        duplicates = await self._scalar(f"""
            SELECT COUNT(*) FROM (
                SELECT btrim(npi)
                FROM {self.staging_table}
                WHERE NULLIF(btrim(npi), '') IS NOT NULL
                GROUP BY btrim(npi)
                HAVING COUNT(*) > 1
            ) AS dupes
        """, step="prepare")

        if not duplicates:
            self.source = self.staging_table
            return

        logger.warning(f"{duplicates} NPIs appear more than once in {self.staging_table}; last row wins")
        await self._execute(f"DROP TABLE IF EXISTS pg_temp.{DEDUP_TABLE}", step="prepare")
        await self._execute(f"""
            CREATE TEMP TABLE {DEDUP_TABLE} ON COMMIT DROP AS
            SELECT DISTINCT ON (btrim(npi)) *
            FROM {self.staging_table}
            WHERE NULLIF(btrim(npi), '') IS NOT NULL
            ORDER BY btrim(npi), ctid DESC
        """, step="prepare")
        self.source = DEDUP_TABLE

    # =====================================================================
    # PROVIDERS
    # =====================================================================

    async def import_providers(self) -> int:
        start = time.monotonic()
        target = shadow_name("providers")

        await self._execute(f"""
            INSERT INTO {target} (
                npi, entity_type, replacement_npi, ein,
                first_name, last_name, middle_name, name_prefix, name_suffix,
                credential, gender, organization_name,
                sole_proprietor, organization_subpart,
                enumeration_date, last_update_date, deactivation_date,
                deactivation_reason, reactivation_date,
                created_at, updated_at
            )
            SELECT
                btrim(s.npi),
                CASE btrim(s.entity_type_code) WHEN '1' THEN 1 WHEN '2' THEN 2 END,
                {_clean("replacement_npi")},
                {_clean("ein")},
                {_clean("first_name")},
                {_clean("last_name")},
                {_clean("middle_name")},
                {_clean("name_prefix")},
                {_clean("name_suffix")},
                {_clean("credential")},
                CASE WHEN upper(btrim(s.gender)) IN ({GENDER_SQL_LIST})
                    THEN upper(btrim(s.gender))
                END,
                {_clean("org_name")},
                {_flag("sole_proprietor")},
                {_flag("org_subpart")},
                nppes_to_date(s.enumeration_date),
                nppes_to_date(s.last_update_date),
                nppes_to_date(s.deactivation_date),
                {_clean("deactivation_reason")},
                nppes_to_date(s.reactivation_date),
                NOW(),
                NOW()
            FROM {self.source} s
            WHERE NULLIF(btrim(s.npi), '') IS NOT NULL
              AND char_length(btrim(s.npi)) <= 10
            ON CONFLICT (npi) DO UPDATE SET
                entity_type = EXCLUDED.entity_type,
                replacement_npi = EXCLUDED.replacement_npi,
                ein = EXCLUDED.ein,
                first_name = EXCLUDED.first_name,
                last_name = EXCLUDED.last_name,
                middle_name = EXCLUDED.middle_name,
                name_prefix = EXCLUDED.name_prefix,
                name_suffix = EXCLUDED.name_suffix,
                credential = EXCLUDED.credential,
                gender = EXCLUDED.gender,
                organization_name = EXCLUDED.organization_name,
                sole_proprietor = EXCLUDED.sole_proprietor,
                organization_subpart = EXCLUDED.organization_subpart,
                enumeration_date = EXCLUDED.enumeration_date,
                last_update_date = EXCLUDED.last_update_date,
                deactivation_date = EXCLUDED.deactivation_date,
                deactivation_reason = EXCLUDED.deactivation_reason,
                reactivation_date = EXCLUDED.reactivation_date,
                updated_at = NOW()
        """, step="providers", table=target)

        count = await count_rows(self.conn, target)
        logger.info(f"Imported {count:,} providers in {time.monotonic() - start:.1f}s")
        return count

    # =====================================================================
    # ADDRESSES
    # =====================================================================

    async def import_addresses(self) -> int:
        start = time.monotonic()
        target = shadow_name("addresses")

        await self._execute(f"TRUNCATE {target}", step="addresses", table=target)
        for columns in STAGING_ADDRESSES:
            await self._execute(self._address_sql(columns), step=f"addresses:{columns.purpose}", table=target)

        count = await count_rows(self.conn, target)
        logger.info(f"Imported {count:,} addresses in {time.monotonic() - start:.1f}s")
        return count

    def _address_sql(self, c: AddressColumns) -> str:
        return f"""
            INSERT INTO {shadow_name("addresses")} (
                provider_id, address_purpose, address_type,
                address_1, address_2, city_name, city_id, state_id,
                postal_code, country_code, telephone, fax,
                created_at, updated_at
            )
            SELECT
                p.id,
                '{c.purpose}',
                CASE WHEN COALESCE({_clean(c.country_code)}, 'US') = 'US' THEN 'DOM' ELSE 'FGN' END,
                btrim(s.{c.line_1}),
                {_clean(c.line_2)},
                {_clean(c.city)},
                (
                    SELECT ci.id FROM cities ci
                    WHERE ci.state_id = st.id
                      AND upper(ci.name) = upper(btrim(s.{c.city}))
                    ORDER BY ci.id
                    LIMIT 1
                ),
                st.id,
                {_clean(c.postal_code)},
                COALESCE({_clean(c.country_code)}, 'US'),
                {_clean(c.telephone)},
                {_clean(c.fax)},
                NOW(),
                NOW()
            FROM {self.source} s
            INNER JOIN {shadow_name("providers")} p ON p.npi = btrim(s.npi)
            LEFT JOIN states st ON st.code = upper(btrim(s.{c.state}))
            WHERE NULLIF(btrim(s.{c.line_1}), '') IS NOT NULL
        """

    # =====================================================================
    # PROVIDER TAXONOMIES
    # =====================================================================

    async def import_provider_taxonomies(self) -> int:
        start = time.monotonic()
        target = shadow_name("provider_taxonomies")
        total = 0

        await self._execute(f"TRUNCATE {target}", step="provider_taxonomies", table=target)
        for slot in TAXONOMY_SLOTS:
            imported = await self._execute(
                self._taxonomy_slot_sql(slot),
                step=f"provider_taxonomies:slot_{slot.position}",
                table=target,
            )
            total += imported

        logger.info(f"Imported {total:,} provider-taxonomy relationships in {time.monotonic() - start:.1f}s")
        return total

    def _taxonomy_slot_sql(self, slot: TaxonomySlot) -> str:
        target = shadow_name("provider_taxonomies")
        # A slot claims primary only if no earlier slot of the provider did.
        return f"""
            INSERT INTO {target} (
                provider_id, taxonomy_id, license_number, license_state_id,
                is_primary, slot, created_at, updated_at
            )
            SELECT
                p.id,
                t.id,
                {_clean(slot.license)},
                lst.id,
                (
                    {_flag(slot.primary)}
                    AND NOT EXISTS (
                        SELECT 1 FROM {target} x
                        WHERE x.provider_id = p.id AND x.is_primary
                    )
                ),
                {slot.position},
                NOW(),
                NOW()
            FROM {self.source} s
            INNER JOIN {shadow_name("providers")} p ON p.npi = btrim(s.npi)
            INNER JOIN taxonomies t ON t.code = btrim(s.{slot.code})
            LEFT JOIN states lst ON lst.code = upper(btrim(s.{slot.state}))
            WHERE NULLIF(btrim(s.{slot.code}), '') IS NOT NULL
            ON CONFLICT (provider_id, taxonomy_id) DO NOTHING
        """

    # =====================================================================
    # IDENTIFIERS
    # =====================================================================

    async def import_identifiers(self) -> int:
        start = time.monotonic()
        target = shadow_name("identifiers")
        total = 0

        await self._execute(f"TRUNCATE {target}", step="identifiers", table=target)

        batch_size = self.identifier_batch_size
        for offset in range(0, len(IDENTIFIER_SLOTS), batch_size):
            batch = IDENTIFIER_SLOTS[offset:offset + batch_size]
            batch_total = 0
            for slot in batch:
                batch_total += await self._execute(
                    self._identifier_slot_sql(slot),
                    step=f"identifiers:slot_{slot.position}",
                    table=target,
                )
            total += batch_total
            logger.info(
                f"Identifier slots {batch[0].position}-{batch[-1].position}: {batch_total:,} rows"
            )

        logger.info(f"Imported {total:,} identifiers in {time.monotonic() - start:.1f}s")
        return total

    def _identifier_slot_sql(self, slot: IdentifierSlot) -> str:
        return f"""
            INSERT INTO {shadow_name("identifiers")} (
                provider_id, identifier_type, identifier_value,
                state_id, issuer, created_at, updated_at
            )
            SELECT
                p.id,
                COALESCE({_clean(slot.type)}, '{OTHER_IDENTIFIER_TYPE}'),
                btrim(s.{slot.value}),
                st.id,
                {_clean(slot.issuer)},
                NOW(),
                NOW()
            FROM {self.source} s
            INNER JOIN {shadow_name("providers")} p ON p.npi = btrim(s.npi)
            LEFT JOIN states st ON st.code = upper(btrim(s.{slot.state}))
            WHERE NULLIF(btrim(s.{slot.value}), '') IS NOT NULL
            ON CONFLICT (provider_id, identifier_type, identifier_value) DO NOTHING
        """

    # =====================================================================
    # AUTHORIZED OFFICIALS
    # =====================================================================

    async def import_authorized_officials(self) -> int:
        start = time.monotonic()
        target = shadow_name("authorized_officials")

        await self._execute(f"TRUNCATE {target}", step="authorized_officials", table=target)
        await self._execute(f"""
            INSERT INTO {target} (
                provider_id, first_name, last_name, middle_name,
                title_or_position, telephone, name_prefix, name_suffix,
                credential, created_at, updated_at
            )
            SELECT
                p.id,
                {_clean("ao_first_name")},
                btrim(s.ao_last_name),
                {_clean("ao_middle_name")},
                {_clean("ao_title")},
                {_clean("ao_phone")},
                {_clean("ao_prefix")},
                {_clean("ao_suffix")},
                {_clean("ao_credential")},
                NOW(),
                NOW()
            FROM {self.source} s
            INNER JOIN {shadow_name("providers")} p ON p.npi = btrim(s.npi)
            WHERE p.entity_type = 2
              AND NULLIF(btrim(s.ao_last_name), '') IS NOT NULL
        """, step="authorized_officials", table=target)

        count = await count_rows(self.conn, target)
        logger.info(f"Imported {count:,} authorized officials in {time.monotonic() - start:.1f}s")
        return count

    # =====================================================================
    # STATISTICS
    # =====================================================================

    async def analyze_tables(self) -> None:
        start = time.monotonic()
        for table in TARGET_TABLES:
            await self._execute(f"ANALYZE {shadow_name(table)}", step="analyze", table=shadow_name(table))
        logger.info(f"Updated planner statistics in {time.monotonic() - start:.1f}s")

    # =====================================================================
    # HELPERS
    # =====================================================================

    async def _execute(self, sql: str, step: str, table: Optional[str] = None) -> int:
        try:
            result = await self.conn.execute(text(sql))
        except Exception as e:
            raise TransformationError(
                f"Transformation step '{step}' failed",
                context={"step": step, "table_name": table, "staging_table": self.staging_table},
                original_exception=e
            )
        return max(result.rowcount or 0, 0)

    async def _scalar(self, sql: str, step: str) -> int:
        try:
            result = await self.conn.execute(text(sql))
        except Exception as e:
            raise TransformationError(
                f"Transformation step '{step}' failed",
                context={"step": step, "staging_table": self.staging_table},
                original_exception=e
            )
        return int(result.scalar() or 0)
