"""
Provider search and lookup endpoints
"""

from fastapi import APIRouter, Depends, Query, Request, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.orm import selectinload
from api.dependencies import get_db
from schemas.api import ProviderSummary, ProviderResponse
from models.provider import Provider, Address, ProviderTaxonomy
from models.reference import State, Taxonomy
from models.insurance import InsurancePlan, ProviderInsurancePlan
from models.base import AddressPurpose
from typing import List, Optional
import uuid
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Providers"])


def _provider_detail_query():
    return select(Provider).options(
        selectinload(Provider.addresses).selectinload(Address.state),
        selectinload(Provider.taxonomy_links).selectinload(ProviderTaxonomy.taxonomy),
        selectinload(Provider.taxonomy_links).selectinload(ProviderTaxonomy.license_state),
        selectinload(Provider.identifiers),
        selectinload(Provider.authorized_official),
    )


@router.get("/providers", response_model=List[ProviderSummary])
async def search_providers(
    request: Request,
    name: Optional[str] = Query(None, description="Substring of first, last or organization name"),
    npi: Optional[str] = Query(None, description="Exact NPI"),
    specialty: Optional[str] = Query(None, description="Substring of taxonomy classification, specialization or description"),
    state: Optional[str] = Query(None, min_length=2, max_length=2, description="Practice location state code"),
    city: Optional[str] = Query(None, description="Substring of practice location city"),
    insurance_carrier: Optional[str] = Query(None, description="Substring of insurance carrier name"),
    active_only: bool = Query(True, description="Only providers without a deactivation date"),
    limit: int = Query(50, ge=1, le=1000, description="Maximum number of results"),
    db: AsyncSession = Depends(get_db)
):
    """
    Search providers.

    Filters combine with AND. State and city filters apply to the same
    practice-location address.
    """
    request_id = getattr(request.state, "request_id", f"req_{uuid.uuid4().hex[:12]}")
    logger.info(
        f"[{request_id}] GET /providers - name={name}, npi={npi}, specialty={specialty}, "
        f"state={state}, city={city}, insurance_carrier={insurance_carrier}, limit={limit}"
    )

    query = select(Provider)

    if active_only:
        query = query.where(Provider.deactivation_date.is_(None))

    if name:
        pattern = f"%{name}%"
        query = query.where(or_(
            Provider.first_name.ilike(pattern),
            Provider.last_name.ilike(pattern),
            Provider.organization_name.ilike(pattern),
        ))

    if npi:
        query = query.where(Provider.npi == npi)

    if specialty:
        pattern = f"%{specialty}%"
        query = query.where(Provider.id.in_(
            select(ProviderTaxonomy.provider_id)
            .join(Taxonomy, Taxonomy.id == ProviderTaxonomy.taxonomy_id)
            .where(or_(
                Taxonomy.specialization.ilike(pattern),
                Taxonomy.classification.ilike(pattern),
                Taxonomy.description.ilike(pattern),
            ))
        ))

    if state or city:
        locations = select(Address.provider_id).where(Address.address_purpose == AddressPurpose.LOCATION.value)
        if state:
            locations = locations.join(State, State.id == Address.state_id).where(State.code == state.upper())
        if city:
            locations = locations.where(Address.city_name.ilike(f"%{city}%"))
        query = query.where(Provider.id.in_(locations))

    if insurance_carrier:
        query = query.where(Provider.id.in_(
            select(ProviderInsurancePlan.provider_id)
            .join(InsurancePlan, InsurancePlan.id == ProviderInsurancePlan.insurance_plan_id)
            .where(InsurancePlan.carrier_name.ilike(f"%{insurance_carrier}%"))
        ))

    result = await db.execute(query.order_by(Provider.id).limit(limit))
    return [ProviderSummary.from_orm(p) for p in result.scalars().all()]


@router.get("/providers/npi/{npi}", response_model=ProviderResponse)
async def get_provider_by_npi(npi: str, db: AsyncSession = Depends(get_db)):
    result = await db.execute(_provider_detail_query().where(Provider.npi == npi))
    provider = result.scalar_one_or_none()
    if provider is None:
        raise HTTPException(status_code=404, detail=f"Provider with NPI {npi} not found")
    return ProviderResponse.from_orm(provider)


@router.get("/providers/{provider_id}", response_model=ProviderResponse)
async def get_provider(provider_id: int, db: AsyncSession = Depends(get_db)):
    result = await db.execute(_provider_detail_query().where(Provider.id == provider_id))
    provider = result.scalar_one_or_none()
    if provider is None:
        raise HTTPException(status_code=404, detail=f"Provider {provider_id} not found")
    return ProviderResponse.from_orm(provider)
