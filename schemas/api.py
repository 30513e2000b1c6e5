"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import date, datetime


# ============================================================================
# Reference Data Schemas
# ============================================================================

class TaxonomyResponse(BaseModel):
    """Healthcare provider taxonomy (specialty)"""
    id: int
    code: str
    classification: Optional[str] = None
    specialization: Optional[str] = None
    description: Optional[str] = None

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "code": "207Q00000X",
                "classification": "Allopathic & Osteopathic Physicians",
                "specialization": "Family Medicine",
                "description": "A physician who specializes in family medicine"
            }
        }


# ============================================================================
# Provider Schemas
# ============================================================================

class AddressResponse(BaseModel):
    address_purpose: str
    address_type: Optional[str] = None
    address_1: Optional[str] = None
    address_2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: Optional[str] = None
    telephone: Optional[str] = None
    fax: Optional[str] = None


class ProviderTaxonomyResponse(BaseModel):
    code: str
    classification: Optional[str] = None
    specialization: Optional[str] = None
    license_number: Optional[str] = None
    license_state: Optional[str] = None
    is_primary: bool = False


class IdentifierResponse(BaseModel):
    identifier_type: str
    identifier_value: str
    issuer: Optional[str] = None

    class Config:
        from_attributes = True


class AuthorizedOfficialResponse(BaseModel):
    first_name: Optional[str] = None
    last_name: str
    middle_name: Optional[str] = None
    title_or_position: Optional[str] = None
    telephone: Optional[str] = None
    credential: Optional[str] = None

    class Config:
        from_attributes = True


class ProviderSummary(BaseModel):
    """Provider row as returned by search"""
    id: int
    npi: str
    entity_type: Optional[int] = None
    name: str
    credential: Optional[str] = None
    active: bool

    @classmethod
    def from_orm(cls, provider):
        return cls(
            id=provider.id,
            npi=provider.npi,
            entity_type=provider.entity_type,
            name=provider.full_name,
            credential=provider.credential,
            active=provider.is_active,
        )


class ProviderResponse(ProviderSummary):
    """Full provider with child rows"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    organization_name: Optional[str] = None
    gender: Optional[str] = None
    sole_proprietor: bool = False
    enumeration_date: Optional[date] = None
    last_update_date: Optional[date] = None
    deactivation_date: Optional[date] = None
    reactivation_date: Optional[date] = None
    replacement_npi: Optional[str] = None

    addresses: List[AddressResponse] = Field(default_factory=list)
    taxonomies: List[ProviderTaxonomyResponse] = Field(default_factory=list)
    identifiers: List[IdentifierResponse] = Field(default_factory=list)
    authorized_official: Optional[AuthorizedOfficialResponse] = None

    @classmethod
    def from_orm(cls, provider):
        """Build from a Provider with addresses, taxonomy links, identifiers and official loaded"""
        official = provider.authorized_official
        return cls(
            id=provider.id,
            npi=provider.npi,
            entity_type=provider.entity_type,
            name=provider.full_name,
            credential=provider.credential,
            active=provider.is_active,
            first_name=provider.first_name,
            last_name=provider.last_name,
            middle_name=provider.middle_name,
            organization_name=provider.organization_name,
            gender=provider.gender,
            sole_proprietor=provider.sole_proprietor,
            enumeration_date=provider.enumeration_date,
            last_update_date=provider.last_update_date,
            deactivation_date=provider.deactivation_date,
            reactivation_date=provider.reactivation_date,
            replacement_npi=provider.replacement_npi,
            addresses=[
                AddressResponse(
                    address_purpose=a.address_purpose,
                    address_type=a.address_type,
                    address_1=a.address_1,
                    address_2=a.address_2,
                    city=a.city_name,
                    state=a.state.code if a.state else None,
                    postal_code=a.postal_code,
                    country_code=a.country_code,
                    telephone=a.telephone,
                    fax=a.fax,
                )
                for a in provider.addresses
            ],
            taxonomies=[
                ProviderTaxonomyResponse(
                    code=link.taxonomy.code,
                    classification=link.taxonomy.classification,
                    specialization=link.taxonomy.specialization,
                    license_number=link.license_number,
                    license_state=link.license_state.code if link.license_state else None,
                    is_primary=link.is_primary,
                )
                for link in sorted(provider.taxonomy_links, key=lambda link: (not link.is_primary, link.slot or 0))
            ],
            identifiers=[IdentifierResponse.model_validate(i) for i in provider.identifiers],
            authorized_official=AuthorizedOfficialResponse.model_validate(official) if official else None,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": 42,
                "npi": "1234567890",
                "entity_type": 1,
                "name": "JANE DOE MD",
                "credential": "MD",
                "active": True,
                "addresses": [
                    {"address_purpose": "LOCATION", "address_1": "100 MAIN ST", "city": "AUSTIN", "state": "TX"}
                ],
                "taxonomies": [
                    {"code": "207Q00000X", "specialization": "Family Medicine", "is_primary": True}
                ]
            }
        }


# ============================================================================
# Insurance & Network Schemas
# ============================================================================

class InsuranceCarrierResponse(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    carrier_type: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    website: Optional[str] = None
    state: Optional[str] = None
    status: Optional[str] = None

    class Config:
        from_attributes = True


class InsurancePlanResponse(BaseModel):
    id: int
    plan_name: str
    carrier_name: Optional[str] = None
    plan_type: Optional[str] = None
    network_type: Optional[str] = None
    coverage_area: Optional[str] = None
    status: Optional[str] = None
    effective_date: Optional[date] = None
    termination_date: Optional[date] = None

    class Config:
        from_attributes = True


class ProviderNetworkResponse(BaseModel):
    id: int
    network_name: str
    network_type: Optional[str] = None
    carrier_name: Optional[str] = None
    coverage_area: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None

    class Config:
        from_attributes = True


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field(..., description="Overall status: healthy or unhealthy")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    database_connected: bool
    checks: Dict[str, bool] = Field(default_factory=dict)
    summary: Optional[str] = None
    data_quality_issues: List[str] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "timestamp": "2024-01-15T10:30:00Z",
                "database_connected": True,
                "checks": {"sufficient_providers": True, "no_duplicate_npis": True},
                "summary": "All 10 health checks passed. Data quality is good.",
                "data_quality_issues": []
            }
        }


# ============================================================================
# Statistics Schemas
# ============================================================================

class ImportRunSummary(BaseModel):
    run_id: str
    run_type: str
    stage: Optional[str] = None
    status: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    records_processed: int = 0
    records_created: int = 0
    records_updated: int = 0
    records_failed: int = 0
    error_message: Optional[str] = None

    @classmethod
    def from_orm(cls, run):
        return cls(
            run_id=str(run.run_id),
            run_type=run.run_type.value,
            stage=run.stage.value if run.stage else None,
            status=run.status.value,
            started_at=run.started_at,
            completed_at=run.completed_at,
            duration_seconds=run.duration_seconds,
            records_processed=run.records_processed or 0,
            records_created=run.records_created or 0,
            records_updated=run.records_updated or 0,
            records_failed=run.records_failed or 0,
            error_message=run.error_message,
        )


class StatsResponse(BaseModel):
    """Statistics response model"""
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    counts: Dict[str, int]
    providers_by_state: List[Dict[str, Any]] = Field(default_factory=list)
    top_taxonomies: List[Dict[str, Any]] = Field(default_factory=list)
    pipeline_stage: Optional[str] = None
    recent_runs: List[ImportRunSummary] = Field(default_factory=list)
    last_bulk_success: Optional[datetime] = None
    last_update_success: Optional[datetime] = None
