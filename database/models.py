"""
Caribbean BCP Content Database Models

SQLAlchemy ORM models for the wizard content store: hazards, business
types, parishes and mitigation strategies.
"""

from sqlalchemy import (
    Column, Integer, String, Float, DateTime, JSON, Text,
    Boolean, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
import enum

Base = declarative_base()


class HazardCategory(enum.Enum):
    """Hazard classification."""
    NATURAL = "natural"
    TECHNOLOGICAL = "technological"
    ECONOMIC = "economic"
    HUMAN = "human"


class StrategyCategory(enum.Enum):
    """Mitigation strategy phase."""
    PREVENTION = "prevention"
    PREPARATION = "preparation"
    RESPONSE = "response"
    RECOVERY = "recovery"


class ConditionType(enum.Enum):
    """How a risk multiplier tests a business characteristic."""
    BOOLEAN = "boolean"
    THRESHOLD = "threshold"
    RANGE = "range"


class HazardType(Base):
    """
    Reference list of hazards (hurricane, flood, cyber_attack, ...).
    Created and edited only through admin tooling.
    """
    __tablename__ = 'hazard_types'

    hazard_id = Column(String(50), primary_key=True)  # e.g., "hurricane"
    name = Column(JSON, nullable=False)  # {"en": ..., "es": ..., "fr": ...}
    category = Column(String(30), default=HazardCategory.NATURAL.value)

    # Defaults used when a business type mapping leaves them blank
    default_frequency = Column(String(30))
    default_impact = Column(String(30))

    seasonal_pattern = Column(String(100))
    peak_months = Column(JSON)  # ["6", "7", ...]

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class BusinessType(Base):
    """Business categorization used to look up default vulnerability data."""
    __tablename__ = 'business_types'

    business_type_id = Column(String(50), primary_key=True)  # e.g., "restaurant"
    name = Column(JSON, nullable=False)
    category = Column(String(50))
    subcategory = Column(String(100))
    description = Column(JSON)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    hazards = relationship("BusinessTypeHazard", back_populates="business_type", cascade="all, delete-orphan")


class BusinessTypeHazard(Base):
    """Per-hazard vulnerability record for a business type."""
    __tablename__ = 'business_type_hazards'

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_type_id = Column(String(50), ForeignKey('business_types.business_type_id'), nullable=False)
    hazard_id = Column(String(50), ForeignKey('hazard_types.hazard_id'), nullable=False)

    risk_level = Column(String(20))  # low, medium, high, very_high
    frequency = Column(String(30))  # rare .. almost_certain
    impact = Column(String(30))  # minimal .. catastrophic
    notes = Column(Text)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    business_type = relationship("BusinessType", back_populates="hazards")
    hazard = relationship("HazardType")

    __table_args__ = (
        UniqueConstraint('business_type_id', 'hazard_id', name='uq_business_type_hazard'),
        Index('idx_bth_business_type', 'business_type_id'),
    )


class Parish(Base):
    """Geographic unit supplying location-specific hazard levels."""
    __tablename__ = 'parishes'

    id = Column(Integer, primary_key=True, autoincrement=True)
    country_code = Column(String(5), nullable=False)
    name = Column(String(100), nullable=False)
    region = Column(String(100))
    is_coastal = Column(Boolean, default=False)
    is_urban = Column(Boolean, default=False)
    population = Column(Integer)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    risk = relationship("ParishRisk", back_populates="parish", uselist=False, cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('country_code', 'name', name='uq_parish_country_name'),
    )


class ParishRisk(Base):
    """
    Hazard levels (0-10, 0 = not set) for a parish.

    Six legacy hazards live in fixed columns; everything added later lives
    in risk_profile_json as {hazard_id: {"level": n, "notes": "..."}}.
    """
    __tablename__ = 'parish_risks'

    id = Column(Integer, primary_key=True, autoincrement=True)
    parish_id = Column(Integer, ForeignKey('parishes.id'), nullable=False, unique=True)

    hurricane_level = Column(Integer, default=0)
    hurricane_notes = Column(Text, default="")
    flood_level = Column(Integer, default=0)
    flood_notes = Column(Text, default="")
    earthquake_level = Column(Integer, default=0)
    earthquake_notes = Column(Text, default="")
    drought_level = Column(Integer, default=0)
    drought_notes = Column(Text, default="")
    landslide_level = Column(Integer, default=0)
    landslide_notes = Column(Text, default="")
    power_outage_level = Column(Integer, default=0)
    power_outage_notes = Column(Text, default="")

    risk_profile_json = Column(Text, default="{}")

    updated_by = Column(String(100), default="system")
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    parish = relationship("Parish", back_populates="risk")


class RiskMitigationStrategy(Base):
    """Recommended mitigation strategy, owned by admin content editors."""
    __tablename__ = 'risk_mitigation_strategies'

    strategy_id = Column(String(80), primary_key=True)
    name = Column(JSON, nullable=False)
    description = Column(JSON)
    sme_description = Column(JSON)

    # Applicability
    applicable_risks = Column(JSON, default=list)  # ["hurricane", "flood"]
    applicable_business_types = Column(JSON)  # null = applies to all

    priority = Column(String(20), default="medium")  # critical, high, medium, low
    category = Column(String(20), default=StrategyCategory.PREVENTION.value)

    # Cost / return estimates
    implementation_cost = Column(String(20))  # low, medium, high, very_high
    cost_estimate_jmd = Column(String(100))
    roi = Column(Float)
    effectiveness = Column(Integer)  # 1-10, editor estimate

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    action_steps = relationship(
        "ActionStep", back_populates="strategy",
        cascade="all, delete-orphan", order_by="ActionStep.sort_order"
    )

    __table_args__ = (
        Index('idx_strategies_category', 'category'),
        Index('idx_strategies_active', 'is_active'),
    )


class ActionStep(Base):
    """Concrete step belonging to a mitigation strategy."""
    __tablename__ = 'action_steps'

    id = Column(Integer, primary_key=True, autoincrement=True)
    strategy_id = Column(String(80), ForeignKey('risk_mitigation_strategies.strategy_id'), nullable=False)
    phase = Column(String(20))  # immediate, short_term, medium_term, long_term
    action = Column(JSON, nullable=False)
    timeframe = Column(String(100))
    responsibility = Column(String(200))
    sort_order = Column(Integer, default=0)

    # Relationships
    strategy = relationship("RiskMitigationStrategy", back_populates="action_steps")


class RiskMultiplier(Base):
    """
    Admin-defined multiplier applied to a hazard's parish level when the
    user's business characteristics meet its condition.
    """
    __tablename__ = 'risk_multipliers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)

    characteristic_type = Column(String(50), nullable=False)  # e.g., "tourism_share"
    condition_type = Column(String(20), nullable=False)  # boolean, threshold, range
    threshold_value = Column(Float)
    min_value = Column(Float)
    max_value = Column(Float)

    multiplier_factor = Column(Float, nullable=False)
    applicable_hazards = Column(JSON, default=list)

    priority = Column(Integer, default=0)
    reasoning = Column(Text)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
