"""
Pydantic schemas for data validation and serialization.

Schemas:
    nppes: One incremental feed record (ProviderRecord and its nested
           address, taxonomy, identifier and official records)
    api: Read API response models (providers, reference data, insurance,
         networks, health, statistics)

Usage:
    from schemas.nppes import ProviderRecord
    from schemas.api import ProviderResponse, HealthCheckResponse

Validation:
    Feed records are built by ingestion.transformers.normalizer, which has
    already coerced blanks, dates and flags; the schemas enforce the
    remaining invariants (non-blank NPI, gender domain, slot positions).
"""

from schemas.nppes import ProviderRecord, AddressRecord, TaxonomyRecord, IdentifierRecord, OfficialRecord

__all__ = [
    "ProviderRecord",
    "AddressRecord",
    "TaxonomyRecord",
    "IdentifierRecord",
    "OfficialRecord",
]
