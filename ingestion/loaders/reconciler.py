"""
Row-level reconciliation of one feed record into the production tables.
"""

from typing import Dict, Optional, Set, Tuple
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from models.provider import Provider, Address, ProviderTaxonomy, Identifier, AuthorizedOfficial
from models.reference import State, City, Taxonomy
from schemas.nppes import ProviderRecord
import logging

logger = logging.getLogger(__name__)


class ProviderReconciler:
    """
    Apply one ProviderRecord to the live tables.

    Ensures:
    - One provider per NPI (fetched or created)
    - Addresses and taxonomy links are replaced wholesale, never diffed
    - At most one primary taxonomy link (first primary slot wins)
    - The authorized official is replaced only when the record names one

    The reconciler does not open or commit transactions; the caller wraps
    each reconcile() call in its own transaction.
    """

    def __init__(self, session: AsyncSession, sync_identifiers: bool = False):
        self.db = session
        self.sync_identifiers = sync_identifiers
        self._state_ids: Dict[str, Optional[int]] = {}
        self._taxonomy_ids: Dict[str, Optional[int]] = {}

    async def reconcile(self, record: ProviderRecord) -> bool:
        """
        Upsert the provider and rebuild its child rows.

        Returns:
            True if the provider was created, False if it already existed
        """
        result = await self.db.execute(select(Provider).where(Provider.npi == record.npi))
        provider = result.scalar_one_or_none()
        created = provider is None

        if created:
            provider = Provider(npi=record.npi)
            self.db.add(provider)

        for field_name, value in record.provider_fields().items():
            setattr(provider, field_name, value)

        await self.db.flush()

        await self._replace_addresses(provider.id, record)
        await self._replace_taxonomies(provider.id, record)
        if self.sync_identifiers:
            await self._replace_identifiers(provider.id, record)
        if record.is_organization and record.authorized_official is not None:
            await self._replace_official(provider.id, record)

        await self.db.flush()
        return created

    # =====================================================================
    # CHILD ROWS
    # =====================================================================

    async def _replace_addresses(self, provider_id: int, record: ProviderRecord) -> None:
        await self.db.execute(delete(Address).where(Address.provider_id == provider_id))

        for address in record.addresses:
            state_id = await self.state_id(address.state_code)
            city_id = await self.city_id(address.city, state_id)
            self.db.add(Address(
                provider_id=provider_id,
                address_purpose=address.purpose,
                address_type=address.address_type,
                address_1=address.address_1,
                address_2=address.address_2,
                city_name=address.city,
                city_id=city_id,
                state_id=state_id,
                postal_code=address.postal_code,
                country_code=address.country_code or "US",
                telephone=address.telephone,
                fax=address.fax,
            ))

    async def _replace_taxonomies(self, provider_id: int, record: ProviderRecord) -> None:
        await self.db.execute(delete(ProviderTaxonomy).where(ProviderTaxonomy.provider_id == provider_id))
        # Deleted rows must be gone before the primary index sees new ones
        await self.db.flush()

        seen: Set[int] = set()
        primary_claimed = False
        for taxonomy in record.taxonomies:
            taxonomy_id = await self.taxonomy_id(taxonomy.code)
            if taxonomy_id is None or taxonomy_id in seen:
                continue
            seen.add(taxonomy_id)

            is_primary = taxonomy.is_primary and not primary_claimed
            primary_claimed = primary_claimed or is_primary

            self.db.add(ProviderTaxonomy(
                provider_id=provider_id,
                taxonomy_id=taxonomy_id,
                license_number=taxonomy.license_number,
                license_state_id=await self.state_id(taxonomy.license_state_code),
                is_primary=is_primary,
                slot=taxonomy.slot,
            ))

    async def _replace_identifiers(self, provider_id: int, record: ProviderRecord) -> None:
        await self.db.execute(delete(Identifier).where(Identifier.provider_id == provider_id))
        await self.db.flush()

        seen: Set[Tuple[str, str]] = set()
        for identifier in record.identifiers:
            key = (identifier.identifier_type, identifier.value)
            if key in seen:
                continue
            seen.add(key)
            self.db.add(Identifier(
                provider_id=provider_id,
                identifier_type=identifier.identifier_type,
                identifier_value=identifier.value,
                state_id=await self.state_id(identifier.state_code),
                issuer=identifier.issuer,
            ))

    async def _replace_official(self, provider_id: int, record: ProviderRecord) -> None:
        await self.db.execute(delete(AuthorizedOfficial).where(AuthorizedOfficial.provider_id == provider_id))
        await self.db.flush()

        official = record.authorized_official
        self.db.add(AuthorizedOfficial(
            provider_id=provider_id,
            first_name=official.first_name,
            last_name=official.last_name,
            middle_name=official.middle_name,
            title_or_position=official.title_or_position,
            telephone=official.telephone,
            name_prefix=official.name_prefix,
            name_suffix=official.name_suffix,
            credential=official.credential,
        ))

    # =====================================================================
    # REFERENCE LOOKUPS
    # =====================================================================

    async def state_id(self, code: Optional[str]) -> Optional[int]:
        if not code:
            return None
        code = code.upper()
        if code not in self._state_ids:
            result = await self.db.execute(select(State.id).where(State.code == code))
            self._state_ids[code] = result.scalar_one_or_none()
        return self._state_ids[code]

    async def taxonomy_id(self, code: str) -> Optional[int]:
        if code not in self._taxonomy_ids:
            result = await self.db.execute(select(Taxonomy.id).where(Taxonomy.code == code))
            self._taxonomy_ids[code] = result.scalar_one_or_none()
        return self._taxonomy_ids[code]

    async def city_id(self, name: Optional[str], state_id: Optional[int]) -> Optional[int]:
        """Find a city by name within the state, creating it if missing."""
        if not name or state_id is None:
            return None

        result = await self.db.execute(
            select(City.id)
            .where(City.state_id == state_id, func.upper(City.name) == name.upper())
            .order_by(City.id)
            .limit(1)
        )
        city_id = result.scalar_one_or_none()
        if city_id is not None:
            return city_id

        city = City(name=name, state_id=state_id)
        self.db.add(city)
        await self.db.flush()
        logger.debug(f"Created city {name} (state_id={state_id})")
        return city.id
