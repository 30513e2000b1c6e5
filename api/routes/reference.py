"""
Taxonomy, insurance and network lookup endpoints
"""

from fastapi import APIRouter, Depends, Query, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from api.dependencies import get_db
from schemas.api import (
    TaxonomyResponse,
    InsurancePlanResponse,
    InsuranceCarrierResponse,
    ProviderNetworkResponse,
)
from models.reference import Taxonomy
from models.insurance import InsuranceCarrier, InsurancePlan, ProviderNetwork
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Reference"])


async def _get_or_404(db: AsyncSession, model, object_id: int, label: str):
    obj = await db.get(model, object_id)
    if obj is None:
        raise HTTPException(status_code=404, detail=f"{label} {object_id} not found")
    return obj


# ============================================================================
# Taxonomies
# ============================================================================

@router.get("/taxonomies", response_model=List[TaxonomyResponse])
async def list_taxonomies(
    classification: Optional[str] = Query(None, description="Substring of the classification"),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db)
):
    query = select(Taxonomy)
    if classification:
        query = query.where(Taxonomy.classification.ilike(f"%{classification}%"))
    result = await db.execute(query.order_by(Taxonomy.code).limit(limit))
    return [TaxonomyResponse.model_validate(t) for t in result.scalars().all()]


@router.get("/taxonomies/{code}", response_model=TaxonomyResponse)
async def get_taxonomy(code: str, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Taxonomy).where(Taxonomy.code == code))
    taxonomy = result.scalar_one_or_none()
    if taxonomy is None:
        raise HTTPException(status_code=404, detail=f"Taxonomy {code} not found")
    return TaxonomyResponse.model_validate(taxonomy)


# ============================================================================
# Insurance
# ============================================================================

@router.get("/insurance-plans", response_model=List[InsurancePlanResponse])
async def list_insurance_plans(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(InsurancePlan).order_by(InsurancePlan.id))
    return [InsurancePlanResponse.model_validate(p) for p in result.scalars().all()]


@router.get("/insurance-plans/{plan_id}", response_model=InsurancePlanResponse)
async def get_insurance_plan(plan_id: int, db: AsyncSession = Depends(get_db)):
    plan = await _get_or_404(db, InsurancePlan, plan_id, "Insurance plan")
    return InsurancePlanResponse.model_validate(plan)


@router.get("/insurance-carriers", response_model=List[InsuranceCarrierResponse])
async def list_insurance_carriers(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(InsuranceCarrier).order_by(InsuranceCarrier.id))
    return [InsuranceCarrierResponse.model_validate(c) for c in result.scalars().all()]


@router.get("/insurance-carriers/{carrier_id}", response_model=InsuranceCarrierResponse)
async def get_insurance_carrier(carrier_id: int, db: AsyncSession = Depends(get_db)):
    carrier = await _get_or_404(db, InsuranceCarrier, carrier_id, "Insurance carrier")
    return InsuranceCarrierResponse.model_validate(carrier)


# ============================================================================
# Networks
# ============================================================================

@router.get("/provider-networks", response_model=List[ProviderNetworkResponse])
async def list_provider_networks(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(ProviderNetwork).order_by(ProviderNetwork.id))
    return [ProviderNetworkResponse.model_validate(n) for n in result.scalars().all()]


@router.get("/provider-networks/{network_id}", response_model=ProviderNetworkResponse)
async def get_provider_network(network_id: int, db: AsyncSession = Depends(get_db)):
    network = await _get_or_404(db, ProviderNetwork, network_id, "Provider network")
    return ProviderNetworkResponse.model_validate(network)
