"""
Pydantic schemas for one incremental NPPES feed record.

A ProviderRecord is the normalized, typed form of one CSV row: blank
strings are already None, dates are parsed and slot groups are collapsed
into lists holding only the populated slots.
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import date
from models.base import EntityType, AddressPurpose, GENDER_CODES


class AddressRecord(BaseModel):
    """Mailing or practice-location address"""
    purpose: AddressPurpose
    address_1: str = Field(..., min_length=1)
    address_2: Optional[str] = None
    city: Optional[str] = None
    state_code: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: Optional[str] = None
    telephone: Optional[str] = None
    fax: Optional[str] = None

    @validator("state_code", "country_code", pre=True)
    def upper_code(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v

    @property
    def address_type(self) -> str:
        return "DOM" if (self.country_code or "US") == "US" else "FGN"

    class Config:
        use_enum_values = True


class TaxonomyRecord(BaseModel):
    """One populated taxonomy slot"""
    slot: int = Field(..., ge=1)
    code: str = Field(..., min_length=1, max_length=10)
    license_number: Optional[str] = None
    license_state_code: Optional[str] = None
    is_primary: bool = False


class IdentifierRecord(BaseModel):
    """One populated other-identifier slot"""
    slot: int = Field(..., ge=1)
    value: str = Field(..., min_length=1)
    identifier_type: str = "01"
    state_code: Optional[str] = None
    issuer: Optional[str] = None


class OfficialRecord(BaseModel):
    """Authorized official of an organization"""
    last_name: str = Field(..., min_length=1)
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    title_or_position: Optional[str] = None
    telephone: Optional[str] = None
    name_prefix: Optional[str] = None
    name_suffix: Optional[str] = None
    credential: Optional[str] = None


class ProviderRecord(BaseModel):
    """
    One provider as published in the weekly NPPES update file.

    Only npi is required. Deactivated NPIs are published with nothing but
    the NPI and the deactivation date.
    """

    npi: str = Field(..., min_length=1, max_length=10)
    entity_type: Optional[EntityType] = None
    replacement_npi: Optional[str] = None
    ein: Optional[str] = None

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    name_prefix: Optional[str] = None
    name_suffix: Optional[str] = None
    credential: Optional[str] = None
    gender: Optional[str] = None

    organization_name: Optional[str] = None
    organization_subpart: bool = False
    sole_proprietor: bool = False

    enumeration_date: Optional[date] = None
    last_update_date: Optional[date] = None
    deactivation_date: Optional[date] = None
    deactivation_reason: Optional[str] = None
    reactivation_date: Optional[date] = None

    addresses: List[AddressRecord] = Field(default_factory=list)
    taxonomies: List[TaxonomyRecord] = Field(default_factory=list)
    identifiers: List[IdentifierRecord] = Field(default_factory=list)
    authorized_official: Optional[OfficialRecord] = None

    @validator("npi")
    def clean_npi(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("NPI cannot be blank")
        return v

    @validator("gender")
    def validate_gender(cls, v):
        if v is not None and v not in GENDER_CODES:
            raise ValueError(f"gender must be one of {', '.join(GENDER_CODES)}")
        return v

    @property
    def is_organization(self) -> bool:
        return self.entity_type == EntityType.ORGANIZATION

    def provider_fields(self) -> dict:
        """Mutable provider columns, keyed by Provider attribute name."""
        fields = self.dict(exclude={"addresses", "taxonomies", "identifiers", "authorized_official"})
        if self.entity_type is not None:
            fields["entity_type"] = int(self.entity_type)
        return fields
