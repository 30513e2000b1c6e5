from sqlalchemy import (
    Column, BigInteger, Integer, SmallInteger, String, Boolean, Date, DateTime,
    ForeignKey, Index, CheckConstraint, UniqueConstraint, Identity, text, func
)
from sqlalchemy.orm import relationship
from models.base import Base, EntityType, GENDER_SQL_LIST


class Provider(Base):
    """
    Identity record for one NPI.

    Purpose:
    - One row per NPI (natural key, unique)
    - Individual (entity_type=1) or organization (entity_type=2) name shape
    - Lifecycle dates; deactivation_date IS NULL means active

    Design:
    - Primary key is an IDENTITY column so that a shadow copy created with
      LIKE ... INCLUDING ALL gets its own sequence
    - entity_type is nullable: deactivated NPPES records carry only the NPI
      and deactivation date
    """
    __tablename__ = "providers"

    id = Column(BigInteger, Identity(), primary_key=True)
    npi = Column(String(10), nullable=False, unique=True)
    entity_type = Column(SmallInteger, nullable=True, index=True)
    replacement_npi = Column(String(10), nullable=True)

    # Individual provider fields
    first_name = Column(String(150), nullable=True)
    last_name = Column(String(150), nullable=True)
    middle_name = Column(String(150), nullable=True)
    name_prefix = Column(String(10), nullable=True)
    name_suffix = Column(String(10), nullable=True)
    credential = Column(String(100), nullable=True, index=True)
    gender = Column(String(1), nullable=True)

    # Organization fields
    organization_name = Column(String(300), nullable=True)
    organization_subpart = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    # Business information
    ein = Column(String(9), nullable=True)
    sole_proprietor = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    # Status & dates
    enumeration_date = Column(Date, nullable=True)
    last_update_date = Column(Date, nullable=True)
    deactivation_date = Column(Date, nullable=True, index=True)
    deactivation_reason = Column(String(100), nullable=True)
    reactivation_date = Column(Date, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    addresses = relationship("Address", back_populates="provider")
    taxonomy_links = relationship("ProviderTaxonomy", back_populates="provider")
    identifiers = relationship("Identifier", back_populates="provider")
    authorized_official = relationship("AuthorizedOfficial", back_populates="provider", uselist=False)
    insurance_plans = relationship("InsurancePlan", secondary="provider_insurance_plans", viewonly=True)
    networks = relationship("ProviderNetwork", secondary="provider_network_memberships", viewonly=True)

    __table_args__ = (
        CheckConstraint("entity_type IN (1, 2)", name="check_entity_type"),
        CheckConstraint(f"gender IN ({GENDER_SQL_LIST}) OR gender IS NULL", name="check_gender"),
        Index("ix_providers_last_name_individual", "last_name", postgresql_where=text("entity_type = 1")),
        Index("ix_providers_org_name", "organization_name", postgresql_where=text("entity_type = 2")),
    )

    @property
    def is_active(self) -> bool:
        return self.deactivation_date is None

    @property
    def is_organization(self) -> bool:
        return self.entity_type == EntityType.ORGANIZATION

    @property
    def full_name(self) -> str:
        if self.is_organization:
            return self.organization_name or ""
        parts = (self.name_prefix, self.first_name, self.middle_name, self.last_name, self.name_suffix, self.credential)
        return " ".join(p for p in parts if p)

    def __repr__(self):
        return f"<Provider(npi={self.npi}, entity_type={self.entity_type})>"


class Address(Base):
    """
    Mailing or practice-location address of a provider.

    At most one address per (provider, purpose); city/state references are
    optional and fall back to the free-text city_name.
    """
    __tablename__ = "addresses"

    id = Column(BigInteger, Identity(), primary_key=True)
    provider_id = Column(BigInteger, ForeignKey("providers.id"), nullable=False, index=True)

    address_purpose = Column(String(10), nullable=False, index=True)
    address_type = Column(String(3), nullable=True, default="DOM", server_default="DOM")

    address_1 = Column(String(300), nullable=True)
    address_2 = Column(String(300), nullable=True)
    city_id = Column(Integer, ForeignKey("cities.id"), nullable=True, index=True)
    city_name = Column(String(200), nullable=True)
    state_id = Column(Integer, ForeignKey("states.id"), nullable=True, index=True)
    postal_code = Column(String(20), nullable=True, index=True)
    country_code = Column(String(2), nullable=True, default="US", server_default="US")

    telephone = Column(String(20), nullable=True)
    fax = Column(String(20), nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider", back_populates="addresses")
    city = relationship("City")
    state = relationship("State")

    __table_args__ = (
        CheckConstraint("address_purpose IN ('LOCATION', 'MAILING')", name="check_address_purpose"),
        CheckConstraint("address_type IN ('DOM', 'FGN')", name="check_address_type"),
        Index("ix_addresses_provider_purpose", "provider_id", "address_purpose"),
        Index(
            "ix_addresses_location_search", "state_id", "city_id", "address_purpose",
            postgresql_where=text("address_purpose = 'LOCATION'"),
        ),
    )


class ProviderTaxonomy(Base):
    """
    Link between a provider and a taxonomy.

    At most one link per provider may be primary; enforced by the partial
    unique index ix_provider_taxonomies_one_primary.
    """
    __tablename__ = "provider_taxonomies"

    id = Column(BigInteger, Identity(), primary_key=True)
    provider_id = Column(BigInteger, ForeignKey("providers.id"), nullable=False, index=True)
    taxonomy_id = Column(Integer, ForeignKey("taxonomies.id"), nullable=False, index=True)
    license_number = Column(String(100), nullable=True)
    license_state_id = Column(Integer, ForeignKey("states.id"), nullable=True)
    is_primary = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    slot = Column(SmallInteger, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider", back_populates="taxonomy_links")
    taxonomy = relationship("Taxonomy")
    license_state = relationship("State")

    __table_args__ = (
        UniqueConstraint("provider_id", "taxonomy_id", name="uq_provider_taxonomies_provider_taxonomy"),
        Index(
            "ix_provider_taxonomies_one_primary", "provider_id",
            unique=True, postgresql_where=text("is_primary"),
        ),
    )


class Identifier(Base):
    """Other provider identifiers (Medicaid, Medicare legacy ids, ...)."""
    __tablename__ = "identifiers"

    id = Column(BigInteger, Identity(), primary_key=True)
    provider_id = Column(BigInteger, ForeignKey("providers.id"), nullable=False, index=True)
    identifier_type = Column(String(50), nullable=False, index=True)
    identifier_value = Column(String(100), nullable=False, index=True)
    state_id = Column(Integer, ForeignKey("states.id"), nullable=True)
    issuer = Column(String(200), nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider", back_populates="identifiers")
    state = relationship("State")

    __table_args__ = (
        UniqueConstraint(
            "provider_id", "identifier_type", "identifier_value",
            name="uq_identifiers_provider_type_value",
        ),
    )


class AuthorizedOfficial(Base):
    """Authorized official of an organization provider (one per provider)."""
    __tablename__ = "authorized_officials"

    id = Column(BigInteger, Identity(), primary_key=True)
    provider_id = Column(BigInteger, ForeignKey("providers.id"), nullable=False, unique=True)
    first_name = Column(String(150), nullable=True)
    last_name = Column(String(150), nullable=False)
    middle_name = Column(String(150), nullable=True)
    title_or_position = Column(String(200), nullable=True)
    telephone = Column(String(20), nullable=True)
    name_prefix = Column(String(10), nullable=True)
    name_suffix = Column(String(10), nullable=True)
    credential = Column(String(100), nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider", back_populates="authorized_official")
