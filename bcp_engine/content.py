"""
BCP Engine — Content store reads.

Loads business types, hazards, parishes, strategies and multipliers from
the content database into plain snapshots, localized to the request
locale. The engine never writes to the content store.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import func

from database.models import (
    BusinessType, BusinessTypeHazard, HazardType, Parish,
    RiskMitigationStrategy, RiskMultiplier,
)
from .config.hazard_mapping import (
    FIXED_PARISH_COLUMNS, normalize_hazard_key, to_snake_case, hazard_display_name,
)

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"


def localize(value, locale: str = DEFAULT_LOCALE) -> str:
    """
    Pick the locale's text from a multilingual field.

    Accepts {"en": ..., "es": ..., "fr": ...} maps, JSON strings of such
    maps, and plain strings. Falls back to English, then any translation.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        text = value.strip()
        if not text.startswith("{"):
            return value
        try:
            value = json.loads(text)
        except ValueError:
            return value
    if isinstance(value, dict):
        for key in (locale, DEFAULT_LOCALE):
            if value.get(key):
                return value[key]
        for text in value.values():
            if text:
                return text
        return ""
    return str(value)


def as_list(value) -> list:
    """JSON list columns occasionally hold legacy JSON strings or CSV text."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [v for v in value if v]
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            parsed = json.loads(text)
        except ValueError:
            return [v.strip() for v in text.split(",") if v.strip()]
        return as_list(parsed) if isinstance(parsed, list) else [str(parsed)]
    return [value]


# ---------------------------------------------------------------------------
#  Snapshots
# ---------------------------------------------------------------------------

@dataclass
class HazardInfo:
    hazard_id: str
    name: str
    category: Optional[str] = None
    default_frequency: Optional[str] = None
    default_impact: Optional[str] = None


@dataclass
class VulnerabilityRecord:
    hazard_id: str
    risk_level: Optional[str] = None
    frequency: Optional[str] = None
    impact: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class BusinessTypeProfile:
    business_type_id: str
    name: str
    category: Optional[str] = None
    hazards: dict = field(default_factory=dict)  # hazard_id -> VulnerabilityRecord

    def vulnerability_for(self, hazard_id: str) -> Optional[VulnerabilityRecord]:
        record = self.hazards.get(hazard_id)
        if record is not None:
            return record
        key = normalize_hazard_key(hazard_id)
        for candidate_id, candidate in self.hazards.items():
            if normalize_hazard_key(candidate_id) == key:
                return candidate
        return None


@dataclass
class ParishProfile:
    name: str
    country_code: Optional[str] = None
    is_coastal: bool = False
    is_urban: bool = False
    fixed_levels: dict = field(default_factory=dict)  # column -> (level, notes)
    risk_profile_json: Optional[str] = None


@dataclass
class StrategyRecord:
    strategy_id: str
    name: str
    category: str
    priority: str = "medium"
    description: str = ""
    sme_description: str = ""
    applicable_risks: list = field(default_factory=list)
    applicable_business_types: Optional[list] = None
    implementation_cost: Optional[str] = None
    cost_estimate_jmd: Optional[str] = None
    roi: Optional[float] = None
    action_steps: list = field(default_factory=list)
    is_active: bool = True


@dataclass
class MultiplierRule:
    name: str
    characteristic_type: str
    condition_type: str
    multiplier_factor: float
    applicable_hazards: list = field(default_factory=list)
    threshold_value: Optional[float] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    priority: int = 0
    reasoning: Optional[str] = None


# ---------------------------------------------------------------------------
#  Parish risk profile
# ---------------------------------------------------------------------------

def fixed_levels_from_row(parish_risk) -> dict:
    """column prefix -> (level, notes) for the legacy parish columns."""
    if parish_risk is None:
        return {}
    levels = {}
    for column in sorted(set(FIXED_PARISH_COLUMNS.values())):
        level = getattr(parish_risk, f"{column}_level") or 0
        notes = getattr(parish_risk, f"{column}_notes") or ""
        levels[column] = (int(level), notes)
    return levels


def normalize_risk_profile(profile: dict) -> dict:
    """
    Uniform {snake_case_hazard_id: {"level": 0-10, "notes": str}} map.

    Used at write time so stored keys follow one convention.
    """
    normalized = {}
    for hazard_id, entry in (profile or {}).items():
        if isinstance(entry, dict):
            level, notes = entry.get("level", 0), entry.get("notes", "")
        else:
            level, notes = entry, ""
        try:
            level = int(float(level or 0))
        except (TypeError, ValueError):
            raise ValueError(f"Level for {hazard_id} must be a number, got {level!r}")
        if not 0 <= level <= 10:
            raise ValueError(f"Level for {hazard_id} must be between 0 and 10, got {level}")
        normalized[to_snake_case(hazard_id)] = {"level": level, "notes": notes or ""}
    return normalized


def build_risk_profile(parish_risk) -> dict:
    """Merge fixed columns and the dynamic JSON map into one uniform map."""
    profile = {}
    for column, (level, notes) in fixed_levels_from_row(parish_risk).items():
        profile[column] = {"level": level, "notes": notes}
    if parish_risk is not None and parish_risk.risk_profile_json:
        try:
            dynamic = json.loads(parish_risk.risk_profile_json)
        except ValueError as e:
            logger.warning(f"Malformed risk profile JSON for parish_id={parish_risk.parish_id}: {e}")
            dynamic = {}
        for hazard_id, entry in normalize_risk_profile_lenient(dynamic).items():
            if entry["level"] or hazard_id not in profile:
                profile[hazard_id] = entry
    return profile


def normalize_risk_profile_lenient(profile) -> dict:
    """Like normalize_risk_profile, but skips bad entries instead of raising."""
    if not isinstance(profile, dict):
        return {}
    normalized = {}
    for hazard_id, entry in profile.items():
        try:
            normalized.update(normalize_risk_profile({hazard_id: entry}))
        except ValueError as e:
            logger.warning(f"Skipping risk profile entry: {e}")
    return normalized


# ---------------------------------------------------------------------------
#  Loaders
# ---------------------------------------------------------------------------

def load_business_type(session, business_type_id: str,
                       locale: str = DEFAULT_LOCALE) -> Optional[BusinessTypeProfile]:
    business_type = session.query(BusinessType).filter(
        BusinessType.business_type_id == business_type_id
    ).first()
    if business_type is None:
        return None

    mappings = session.query(BusinessTypeHazard).filter(
        BusinessTypeHazard.business_type_id == business_type_id,
        BusinessTypeHazard.is_active.is_(True)
    ).all()

    return BusinessTypeProfile(
        business_type_id=business_type.business_type_id,
        name=localize(business_type.name, locale) or business_type.business_type_id,
        category=business_type.category,
        hazards={
            m.hazard_id: VulnerabilityRecord(
                hazard_id=m.hazard_id,
                risk_level=m.risk_level,
                frequency=m.frequency,
                impact=m.impact,
                notes=m.notes,
            )
            for m in mappings
        },
    )


def load_hazards(session, hazard_ids: list[str],
                 locale: str = DEFAULT_LOCALE) -> dict[str, HazardInfo]:
    """HazardInfo for every requested id, with a title-cased name fallback."""
    rows = session.query(HazardType).all()
    by_key = {normalize_hazard_key(h.hazard_id): h for h in rows}

    hazards = {}
    for hazard_id in hazard_ids:
        row = by_key.get(normalize_hazard_key(hazard_id))
        if row is None:
            hazards[hazard_id] = HazardInfo(hazard_id=hazard_id, name=hazard_display_name(hazard_id))
            continue
        hazards[hazard_id] = HazardInfo(
            hazard_id=hazard_id,
            name=localize(row.name, locale) or hazard_display_name(hazard_id),
            category=row.category,
            default_frequency=row.default_frequency,
            default_impact=row.default_impact,
        )
    return hazards


def load_parish(session, country_code: Optional[str],
                parish_name: Optional[str]) -> Optional[ParishProfile]:
    if not parish_name:
        return None

    query = session.query(Parish).filter(
        func.lower(Parish.name) == parish_name.strip().lower()
    )
    if country_code:
        query = query.filter(func.upper(Parish.country_code) == country_code.strip().upper())
    parish = query.first()
    if parish is None:
        logger.info(f"No parish data for {parish_name} ({country_code})")
        return None

    return ParishProfile(
        name=parish.name,
        country_code=parish.country_code,
        is_coastal=bool(parish.is_coastal),
        is_urban=bool(parish.is_urban),
        fixed_levels=fixed_levels_from_row(parish.risk),
        risk_profile_json=parish.risk.risk_profile_json if parish.risk else None,
    )


def load_strategies(session, locale: str = DEFAULT_LOCALE) -> list[StrategyRecord]:
    rows = session.query(RiskMitigationStrategy).filter(
        RiskMitigationStrategy.is_active.is_(True)
    ).all()

    strategies = []
    for s in rows:
        business_types = as_list(s.applicable_business_types)
        strategies.append(StrategyRecord(
            strategy_id=s.strategy_id,
            name=localize(s.name, locale) or s.strategy_id,
            category=(s.category or "").lower(),
            priority=(s.priority or "medium").lower(),
            description=localize(s.description, locale),
            sme_description=localize(s.sme_description, locale),
            applicable_risks=as_list(s.applicable_risks),
            applicable_business_types=business_types or None,
            implementation_cost=s.implementation_cost,
            cost_estimate_jmd=s.cost_estimate_jmd,
            roi=s.roi,
            action_steps=[
                {
                    "phase": step.phase,
                    "action": localize(step.action, locale),
                    "timeframe": step.timeframe,
                    "responsibility": step.responsibility,
                }
                for step in s.action_steps
            ],
            is_active=bool(s.is_active),
        ))
    return strategies


def load_multipliers(session) -> list[MultiplierRule]:
    rows = session.query(RiskMultiplier).filter(
        RiskMultiplier.is_active.is_(True)
    ).order_by(RiskMultiplier.priority.asc()).all()

    return [
        MultiplierRule(
            name=m.name,
            characteristic_type=m.characteristic_type,
            condition_type=m.condition_type,
            multiplier_factor=m.multiplier_factor,
            applicable_hazards=as_list(m.applicable_hazards),
            threshold_value=m.threshold_value,
            min_value=m.min_value,
            max_value=m.max_value,
            priority=m.priority or 0,
            reasoning=m.reasoning or m.description,
        )
        for m in rows
    ]
