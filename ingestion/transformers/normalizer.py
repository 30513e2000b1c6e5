"""
Transform one NPPES feed row into a validated ProviderRecord.

The coercion helpers never raise: malformed dates, unknown gender codes and
unexpected flag values become None/False. Only a row that cannot identify
its provider (blank NPI) or that fails schema validation is rejected.
"""

from typing import Dict, Any, Optional, List
from datetime import date, datetime
from pydantic import ValidationError
from schemas.nppes import (
    ProviderRecord,
    AddressRecord,
    TaxonomyRecord,
    IdentifierRecord,
    OfficialRecord,
)
from models.base import EntityType, GENDER_CODES
from core.exceptions import RecordFormatError
from ingestion.slots import (
    FeedColumns,
    FEED_ADDRESSES,
    FEED_TAXONOMY_SLOTS,
    FEED_IDENTIFIER_SLOTS,
)
import logging

logger = logging.getLogger(__name__)

NPPES_DATE_FORMAT = "%m/%d/%Y"
OTHER_IDENTIFIER_TYPE = "01"


def clean(value: Any) -> Optional[str]:
    """Strip a raw cell; blank or missing becomes None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_date(value: Any) -> Optional[date]:
    """Parse MM/DD/YYYY; anything else becomes None."""
    value = clean(value)
    if value is None:
        return None
    try:
        return datetime.strptime(value, NPPES_DATE_FORMAT).date()
    except ValueError:
        return None


def parse_gender(value: Any) -> Optional[str]:
    value = clean(value)
    if value is None:
        return None
    value = value.upper()
    return value if value in GENDER_CODES else None


def parse_flag(value: Any) -> bool:
    """Y means True; N, blank or anything else means False."""
    value = clean(value)
    return value is not None and value.upper() == "Y"


def parse_entity_type(value: Any) -> Optional[EntityType]:
    value = clean(value)
    if value is None:
        return None
    try:
        return EntityType(int(value))
    except ValueError:
        return None


class FeedNormalizer:
    """
    Map NPPES CSV rows (keyed by header name) to ProviderRecord.

    Handles:
    - Header mapping for scalar fields
    - Collapsing address, taxonomy and identifier column groups
    - Coercion of blanks, dates, gender codes and Y/N flags
    """

    def normalize(self, row: Dict[str, Any]) -> ProviderRecord:
        npi = clean(row.get(FeedColumns.NPI))
        if npi is None:
            raise RecordFormatError(
                "Feed row has no NPI",
                context={"field_name": FeedColumns.NPI, "field_value": row.get(FeedColumns.NPI)}
            )

        raw_entity_type = clean(row.get(FeedColumns.ENTITY_TYPE))
        entity_type = parse_entity_type(raw_entity_type)
        if raw_entity_type is not None and entity_type is None:
            raise RecordFormatError(
                f"Unknown entity type for NPI {npi}",
                context={"npi": npi, "field_name": FeedColumns.ENTITY_TYPE, "field_value": raw_entity_type}
            )

        try:
            return ProviderRecord(
                npi=npi,
                entity_type=entity_type,
                replacement_npi=clean(row.get(FeedColumns.REPLACEMENT_NPI)),
                ein=clean(row.get(FeedColumns.EIN)),
                first_name=clean(row.get(FeedColumns.FIRST_NAME)),
                last_name=clean(row.get(FeedColumns.LAST_NAME)),
                middle_name=clean(row.get(FeedColumns.MIDDLE_NAME)),
                name_prefix=clean(row.get(FeedColumns.NAME_PREFIX)),
                name_suffix=clean(row.get(FeedColumns.NAME_SUFFIX)),
                credential=clean(row.get(FeedColumns.CREDENTIAL)),
                gender=parse_gender(row.get(FeedColumns.GENDER)),
                organization_name=clean(row.get(FeedColumns.ORGANIZATION_NAME)),
                organization_subpart=parse_flag(row.get(FeedColumns.ORGANIZATION_SUBPART)),
                sole_proprietor=parse_flag(row.get(FeedColumns.SOLE_PROPRIETOR)),
                enumeration_date=parse_date(row.get(FeedColumns.ENUMERATION_DATE)),
                last_update_date=parse_date(row.get(FeedColumns.LAST_UPDATE_DATE)),
                deactivation_date=parse_date(row.get(FeedColumns.DEACTIVATION_DATE)),
                deactivation_reason=clean(row.get(FeedColumns.DEACTIVATION_REASON)),
                reactivation_date=parse_date(row.get(FeedColumns.REACTIVATION_DATE)),
                addresses=self._addresses(row),
                taxonomies=self._taxonomies(row),
                identifiers=self._identifiers(row),
                authorized_official=self._official(row),
            )
        except ValidationError as e:
            raise RecordFormatError(
                f"Feed row for NPI {npi} failed validation",
                context={"npi": npi},
                original_exception=e
            )

    def _addresses(self, row: Dict[str, Any]) -> List[AddressRecord]:
        addresses = []
        for columns in FEED_ADDRESSES:
            line_1 = clean(row.get(columns.line_1))
            if line_1 is None:
                continue
            addresses.append(AddressRecord(
                purpose=columns.purpose,
                address_1=line_1,
                address_2=clean(row.get(columns.line_2)),
                city=clean(row.get(columns.city)),
                state_code=clean(row.get(columns.state)),
                postal_code=clean(row.get(columns.postal_code)),
                country_code=clean(row.get(columns.country_code)),
                telephone=clean(row.get(columns.telephone)),
                fax=clean(row.get(columns.fax)),
            ))
        return addresses

    def _taxonomies(self, row: Dict[str, Any]) -> List[TaxonomyRecord]:
        taxonomies = []
        for slot in FEED_TAXONOMY_SLOTS:
            code = clean(row.get(slot.code))
            if code is None:
                continue
            if len(code) > 10:
                logger.debug(f"Skipping malformed taxonomy code {code!r} in slot {slot.position}")
                continue
            taxonomies.append(TaxonomyRecord(
                slot=slot.position,
                code=code,
                license_number=clean(row.get(slot.license)),
                license_state_code=clean(row.get(slot.state)),
                is_primary=parse_flag(row.get(slot.primary)),
            ))
        return taxonomies

    def _identifiers(self, row: Dict[str, Any]) -> List[IdentifierRecord]:
        identifiers = []
        for slot in FEED_IDENTIFIER_SLOTS:
            value = clean(row.get(slot.value))
            if value is None:
                continue
            identifiers.append(IdentifierRecord(
                slot=slot.position,
                value=value,
                identifier_type=clean(row.get(slot.type)) or OTHER_IDENTIFIER_TYPE,
                state_code=clean(row.get(slot.state)),
                issuer=clean(row.get(slot.issuer)),
            ))
        return identifiers

    def _official(self, row: Dict[str, Any]) -> Optional[OfficialRecord]:
        last_name = clean(row.get(FeedColumns.AO_LAST_NAME))
        if last_name is None:
            return None
        return OfficialRecord(
            last_name=last_name,
            first_name=clean(row.get(FeedColumns.AO_FIRST_NAME)),
            middle_name=clean(row.get(FeedColumns.AO_MIDDLE_NAME)),
            title_or_position=clean(row.get(FeedColumns.AO_TITLE)),
            telephone=clean(row.get(FeedColumns.AO_TELEPHONE)),
            name_prefix=clean(row.get(FeedColumns.AO_PREFIX)),
            name_suffix=clean(row.get(FeedColumns.AO_SUFFIX)),
            credential=clean(row.get(FeedColumns.AO_CREDENTIAL)),
        )
