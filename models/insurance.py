"""
Insurance and network read models.

These tables are maintained outside the NPPES import and are only read by
the query API. Links to providers are keyed by provider id.
"""

from sqlalchemy import Column, BigInteger, Integer, String, Text, Boolean, Date, DateTime, ForeignKey, Identity, func
from sqlalchemy.orm import relationship
from models.base import Base


class InsuranceCarrier(Base):
    __tablename__ = "insurance_carriers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), nullable=True, index=True)
    carrier_type = Column(String(50), nullable=True)
    contact_email = Column(String(200), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    website = Column(String(500), nullable=True)
    state = Column(String(2), nullable=True)
    status = Column(String(20), nullable=True, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


class InsurancePlan(Base):
    __tablename__ = "insurance_plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plan_name = Column(String(200), nullable=False)
    carrier_name = Column(String(200), nullable=True, index=True)
    plan_type = Column(String(50), nullable=True)
    network_type = Column(String(50), nullable=True)
    coverage_area = Column(String(200), nullable=True)
    status = Column(String(20), nullable=True, index=True)
    effective_date = Column(Date, nullable=True)
    termination_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


class ProviderInsurancePlan(Base):
    __tablename__ = "provider_insurance_plans"

    id = Column(BigInteger, Identity(), primary_key=True)
    provider_id = Column(BigInteger, ForeignKey("providers.id"), nullable=False, index=True)
    insurance_plan_id = Column(Integer, ForeignKey("insurance_plans.id"), nullable=False, index=True)
    accepts_new_patients = Column(Boolean, nullable=True)
    network_tier = Column(String(50), nullable=True)
    status = Column(String(20), nullable=True)
    effective_date = Column(Date, nullable=True)
    termination_date = Column(Date, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    insurance_plan = relationship("InsurancePlan")


class ProviderNetwork(Base):
    __tablename__ = "provider_networks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    network_name = Column(String(200), nullable=False)
    network_type = Column(String(50), nullable=True)
    carrier_name = Column(String(200), nullable=True)
    coverage_area = Column(String(200), nullable=True)
    status = Column(String(20), nullable=True, index=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


class ProviderNetworkMembership(Base):
    __tablename__ = "provider_network_memberships"

    id = Column(BigInteger, Identity(), primary_key=True)
    provider_id = Column(BigInteger, ForeignKey("providers.id"), nullable=False, index=True)
    provider_network_id = Column(Integer, ForeignKey("provider_networks.id"), nullable=False, index=True)
    member_since = Column(Date, nullable=True)
    termination_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=True, index=True)
    tier_level = Column(String(50), nullable=True)
    accepts_new_patients = Column(Boolean, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
