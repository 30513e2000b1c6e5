"""
Column layout of the wide NPPES record.

The source packs variable-length lists into numbered column groups
("slots"). Each group is described once here as a tuple of column names so
that every step that walks the slots (set-based SQL, row-level reconciler)
iterates the same ordered structure instead of formatting column names on
the fly.

Two naming schemes are covered:
- staging columns (snake_case, as bulk-loaded into the staging table)
- feed headers (as published in the NPPES CSV files)
"""

from typing import NamedTuple, Tuple

TAXONOMY_SLOT_COUNT = 15
IDENTIFIER_SLOT_COUNT = 50


class TaxonomySlot(NamedTuple):
    position: int
    code: str
    license: str
    state: str
    primary: str


class IdentifierSlot(NamedTuple):
    position: int
    value: str
    type: str
    state: str
    issuer: str


class AddressColumns(NamedTuple):
    purpose: str
    line_1: str
    line_2: str
    city: str
    state: str
    postal_code: str
    country_code: str
    telephone: str
    fax: str


# ============================================================================
# Staging table layout
# ============================================================================

def _staging_taxonomy_slot(position: int) -> TaxonomySlot:
    return TaxonomySlot(
        position=position,
        code=f"taxonomy_code_{position}",
        license=f"taxonomy_license_{position}",
        state=f"taxonomy_state_{position}",
        primary=f"taxonomy_primary_{position}",
    )


def _staging_identifier_slot(position: int) -> IdentifierSlot:
    return IdentifierSlot(
        position=position,
        value=f"identifier_{position}",
        type=f"identifier_type_{position}",
        state=f"identifier_state_{position}",
        issuer=f"identifier_issuer_{position}",
    )


def _staging_address(purpose: str, prefix: str) -> AddressColumns:
    return AddressColumns(
        purpose=purpose,
        line_1=f"{prefix}_address_1",
        line_2=f"{prefix}_address_2",
        city=f"{prefix}_city",
        state=f"{prefix}_state",
        postal_code=f"{prefix}_postal_code",
        country_code=f"{prefix}_country_code",
        telephone=f"{prefix}_phone",
        fax=f"{prefix}_fax",
    )


TAXONOMY_SLOTS: Tuple[TaxonomySlot, ...] = tuple(
    _staging_taxonomy_slot(i) for i in range(1, TAXONOMY_SLOT_COUNT + 1)
)

IDENTIFIER_SLOTS: Tuple[IdentifierSlot, ...] = tuple(
    _staging_identifier_slot(i) for i in range(1, IDENTIFIER_SLOT_COUNT + 1)
)

STAGING_ADDRESSES: Tuple[AddressColumns, ...] = (
    _staging_address("MAILING", "mail"),
    _staging_address("LOCATION", "practice"),
)

# Scalar staging columns, in feed order
STAGING_PROVIDER_COLUMNS: Tuple[str, ...] = (
    "npi",
    "entity_type_code",
    "replacement_npi",
    "ein",
    "org_name",
    "last_name",
    "first_name",
    "middle_name",
    "name_prefix",
    "name_suffix",
    "credential",
    "enumeration_date",
    "last_update_date",
    "deactivation_reason",
    "deactivation_date",
    "reactivation_date",
    "gender",
    "sole_proprietor",
    "org_subpart",
)

STAGING_OFFICIAL_COLUMNS: Tuple[str, ...] = (
    "ao_last_name",
    "ao_first_name",
    "ao_middle_name",
    "ao_title",
    "ao_phone",
    "ao_prefix",
    "ao_suffix",
    "ao_credential",
)


# ============================================================================
# NPPES feed headers
# ============================================================================

def _feed_address(purpose: str, label: str) -> AddressColumns:
    return AddressColumns(
        purpose=purpose,
        line_1=f"Provider First Line Business {label} Address",
        line_2=f"Provider Second Line Business {label} Address",
        city=f"Provider Business {label} Address City Name",
        state=f"Provider Business {label} Address State Name",
        postal_code=f"Provider Business {label} Address Postal Code",
        country_code=f"Provider Business {label} Address Country Code (If outside U.S.)",
        telephone=f"Provider Business {label} Address Telephone Number",
        fax=f"Provider Business {label} Address Fax Number",
    )


FEED_TAXONOMY_SLOTS: Tuple[TaxonomySlot, ...] = tuple(
    TaxonomySlot(
        position=i,
        code=f"Healthcare Provider Taxonomy Code_{i}",
        license=f"Provider License Number_{i}",
        state=f"Provider License Number State Code_{i}",
        primary=f"Healthcare Provider Primary Taxonomy Switch_{i}",
    )
    for i in range(1, TAXONOMY_SLOT_COUNT + 1)
)

FEED_IDENTIFIER_SLOTS: Tuple[IdentifierSlot, ...] = tuple(
    IdentifierSlot(
        position=i,
        value=f"Other Provider Identifier_{i}",
        type=f"Other Provider Identifier Type Code_{i}",
        state=f"Other Provider Identifier State_{i}",
        issuer=f"Other Provider Identifier Issuer_{i}",
    )
    for i in range(1, IDENTIFIER_SLOT_COUNT + 1)
)

FEED_ADDRESSES: Tuple[AddressColumns, ...] = (
    _feed_address("MAILING", "Mailing"),
    _feed_address("LOCATION", "Practice Location"),
)


class FeedColumns:
    """Scalar NPPES feed headers."""
    NPI = "NPI"
    ENTITY_TYPE = "Entity Type Code"
    REPLACEMENT_NPI = "Replacement NPI"
    EIN = "Employer Identification Number (EIN)"
    ORGANIZATION_NAME = "Provider Organization Name (Legal Business Name)"
    LAST_NAME = "Provider Last Name (Legal Name)"
    FIRST_NAME = "Provider First Name"
    MIDDLE_NAME = "Provider Middle Name"
    NAME_PREFIX = "Provider Name Prefix Text"
    NAME_SUFFIX = "Provider Name Suffix Text"
    CREDENTIAL = "Provider Credential Text"
    GENDER = "Provider Gender Code"
    ENUMERATION_DATE = "Provider Enumeration Date"
    LAST_UPDATE_DATE = "Last Update Date"
    DEACTIVATION_REASON = "NPI Deactivation Reason Code"
    DEACTIVATION_DATE = "NPI Deactivation Date"
    REACTIVATION_DATE = "NPI Reactivation Date"
    SOLE_PROPRIETOR = "Is Sole Proprietor"
    ORGANIZATION_SUBPART = "Is Organization Subpart"

    AO_LAST_NAME = "Authorized Official Last Name"
    AO_FIRST_NAME = "Authorized Official First Name"
    AO_MIDDLE_NAME = "Authorized Official Middle Name"
    AO_TITLE = "Authorized Official Title or Position"
    AO_TELEPHONE = "Authorized Official Telephone Number"
    AO_PREFIX = "Authorized Official Name Prefix Text"
    AO_SUFFIX = "Authorized Official Name Suffix Text"
    AO_CREDENTIAL = "Authorized Official Credential Text"
