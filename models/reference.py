from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, UniqueConstraint, func
from sqlalchemy.orm import relationship
from models.base import Base


class State(Base):
    """
    U.S. states and territories, seeded once.

    Looked up by two-letter code during transformation; never created by
    the import pipeline.
    """
    __tablename__ = "states"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(2), nullable=False, unique=True)
    name = Column(String(100), nullable=False)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    cities = relationship("City", back_populates="state")

    def __repr__(self):
        return f"<State(code={self.code})>"


class City(Base):
    """
    Normalized city names scoped to a state.

    The bulk import only resolves against existing rows; the incremental
    reconciler creates missing cities on demand.
    """
    __tablename__ = "cities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    state_id = Column(Integer, ForeignKey("states.id"), nullable=False, index=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    state = relationship("State", back_populates="cities")

    __table_args__ = (
        UniqueConstraint("state_id", "name", name="uq_cities_state_name"),
        Index("ix_cities_upper_name", func.upper(name)),
    )

    def __repr__(self):
        return f"<City(name={self.name}, state_id={self.state_id})>"


class Taxonomy(Base):
    """Healthcare provider taxonomy codes (specialties), seeded."""
    __tablename__ = "taxonomies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(10), nullable=False, unique=True)
    classification = Column(String(200), nullable=True, index=True)
    specialization = Column(String(200), nullable=True, index=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Taxonomy(code={self.code})>"
