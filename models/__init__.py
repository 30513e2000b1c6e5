"""
SQLAlchemy ORM models for database tables.

This package defines the registry schema using SQLAlchemy ORM models:

Models:
    base: Base declarative class and shared enums (EntityType, AddressPurpose, PipelineStage, ...)
    reference: State, City and Taxonomy reference data
    provider: Provider and its child tables (Address, ProviderTaxonomy, Identifier, AuthorizedOfficial)
    insurance: Insurance carriers, plans and networks (read models)
    staging: Wide staging table loaded from the NPPES dissemination file
    import_run: Import run audit and pipeline state tracking
    seed: Reference data seeding (states, base taxonomy list)

Database Schema:
    All models inherit from the Base declarative class. The five provider
    tables are replaced wholesale by each bulk import (shadow tables are
    swapped in by rename), so their primary keys are IDENTITY columns.

Usage:
    from models import Provider, Address, ProviderTaxonomy
    from models.base import EntityType, PipelineStage

Relationships:
    - Provider → Address (one-to-many, at most one per purpose)
    - Provider → ProviderTaxonomy → Taxonomy (at most one primary link)
    - Provider → Identifier (one-to-many)
    - Provider → AuthorizedOfficial (one-to-one, organizations only)
"""

from models.base import Base, EntityType, Gender, AddressPurpose, RunType, ImportStatus, PipelineStage
from models.reference import State, City, Taxonomy
from models.provider import Provider, Address, ProviderTaxonomy, Identifier, AuthorizedOfficial
from models.insurance import (
    InsuranceCarrier,
    InsurancePlan,
    ProviderInsurancePlan,
    ProviderNetwork,
    ProviderNetworkMembership,
)
from models.staging import staging_providers
from models.import_run import ImportRun

__all__ = [
    "Base",
    "EntityType",
    "Gender",
    "AddressPurpose",
    "RunType",
    "ImportStatus",
    "PipelineStage",
    "State",
    "City",
    "Taxonomy",
    "Provider",
    "Address",
    "ProviderTaxonomy",
    "Identifier",
    "AuthorizedOfficial",
    "InsuranceCarrier",
    "InsurancePlan",
    "ProviderInsurancePlan",
    "ProviderNetwork",
    "ProviderNetworkMembership",
    "staging_providers",
    "ImportRun",
]
