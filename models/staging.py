"""
Wide staging table holding one raw NPPES row per record.

The table is bulk-loaded by an external loader (COPY of the dissemination
file). Every column is free text; all typing, trimming and null handling
happens in the set-based transformation.
"""

from sqlalchemy import Table, Column, Text
from core.config import settings
from ingestion.slots import (
    STAGING_PROVIDER_COLUMNS,
    STAGING_OFFICIAL_COLUMNS,
    STAGING_ADDRESSES,
    TAXONOMY_SLOTS,
    IDENTIFIER_SLOTS,
)
from models.base import Base


def staging_column_names():
    """All staging columns in load order."""
    names = list(STAGING_PROVIDER_COLUMNS)
    for address in STAGING_ADDRESSES:
        names.extend(address[1:])
    names.extend(STAGING_OFFICIAL_COLUMNS)
    for slot in TAXONOMY_SLOTS:
        names.extend(slot[1:])
    for slot in IDENTIFIER_SLOTS:
        names.extend(slot[1:])
    return names


staging_providers = Table(
    settings.STAGING_TABLE,
    Base.metadata,
    *(Column(name, Text, nullable=True) for name in staging_column_names()),
)
