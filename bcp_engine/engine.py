"""
BCP Engine — Main orchestrator.

Central entry point: compute(session, request) → the wizard's
get-risk-calculations response:
{riskCalculations: [...], strategies: {prevention, response, recovery}, metadata}

Per hazard, resolution falls back through:
  business-type mapping (+ parish + environment) → parish only → not applicable
No hazard is ever dropped; missing data lowers confidence instead.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from config.settings import get_settings, DATA_QUALITY_BANDS
from .config.hazard_mapping import hazard_display_name
from .content import (
    HazardInfo, load_business_type, load_hazards, load_parish,
    load_strategies, load_multipliers,
)
from .computation.ordinals import (
    is_valid_likelihood, is_valid_severity, normalize_likelihood,
    normalize_severity, risk_level_score, DEFAULT_LIKELIHOOD, DEFAULT_SEVERITY,
)
from .computation.risk_level import calculate_risk_level
from .computation.location import (
    lookup_parish_level, parish_level_to_likelihood,
    apply_location_modifier, apply_environmental_modifiers,
)
from .computation.multipliers import apply_multipliers
from .computation.strategies import aggregate_strategies, group_by_category
from .computation.compatibility import annotate_compatibility, ConflictPolicy
from .computation.preselection import PreSelectionPolicy
from .computation.validation import validate_calculations

logger = logging.getLogger(__name__)


class BusinessTypeNotFound(LookupError):
    """The requested business type does not exist in the content store."""

    def __init__(self, business_type_id: str):
        super().__init__(f"Business type not found: {business_type_id}")
        self.business_type_id = business_type_id


@dataclass
class RiskRequest:
    hazard_ids: list
    business_type_id: str
    country_code: Optional[str] = None
    parish: Optional[str] = None
    near_coast: Optional[bool] = None  # None: take the parish's own flag
    urban_area: Optional[bool] = None
    characteristics: dict = field(default_factory=dict)
    locale: str = "en"


# ---------------------------------------------------------------------------
#  Hazard resolution
# ---------------------------------------------------------------------------

def _environment_flags(request: RiskRequest, parish) -> tuple[bool, bool]:
    """Request flags win; unset flags fall back to the parish profile."""
    near_coast, urban_area = request.near_coast, request.urban_area
    if near_coast is None:
        near_coast = bool(parish and parish.is_coastal)
    if urban_area is None:
        urban_area = bool(parish and parish.is_urban)
    return near_coast, urban_area


def _resolve_mapped(hazard: HazardInfo, record, business_type, parish,
                    request: RiskRequest, multipliers: list,
                    policy: PreSelectionPolicy) -> dict:
    """Business-type vulnerability record present."""
    raw_frequency = record.frequency or hazard.default_frequency
    raw_impact = record.impact or hazard.default_impact
    complete = is_valid_likelihood(record.frequency) and is_valid_severity(record.impact)
    if raw_frequency and not is_valid_likelihood(raw_frequency):
        logger.warning(f"{business_type.business_type_id}/{hazard.hazard_id}: bad frequency {raw_frequency!r}")
    if raw_impact and not is_valid_severity(raw_impact):
        logger.warning(f"{business_type.business_type_id}/{hazard.hazard_id}: bad impact {raw_impact!r}")

    likelihood = normalize_likelihood(raw_frequency or DEFAULT_LIKELIHOOD)
    severity = normalize_severity(raw_impact or DEFAULT_SEVERITY)

    parish_level, _ = lookup_parish_level(parish, hazard.hazard_id)
    scaled = apply_multipliers(parish_level, hazard.hazard_id, request.characteristics, multipliers)

    location_modifier = None
    if parish is not None:
        likelihood, location_modifier = apply_location_modifier(
            likelihood, scaled["final_level"], parish.name
        )
    likelihood, environmental = apply_environmental_modifiers(
        likelihood, hazard.hazard_id, *_environment_flags(request, parish)
    )
    risk_level = calculate_risk_level(likelihood, severity)

    reasoning = f"Based on {business_type.name} vulnerability data"
    if location_modifier:
        reasoning += f", {location_modifier}"
    if environmental:
        reasoning += f", {' and '.join(environmental)} increases risk"
    if scaled["applied"]:
        reasoning += f". {scaled['reasoning']}"

    confidence = "high" if complete and parish_level > 0 else "medium"

    return {
        "hazardId": hazard.hazard_id,
        "hazardName": hazard.name,
        "likelihood": likelihood,
        "severity": severity,
        "riskLevel": risk_level,
        "reasoning": reasoning,
        "confidence": confidence,
        "isCalculated": True,
        "isPreSelected": policy.is_pre_selected(parish_level, confidence, risk_level),
        "dataSource": "admin_configured",
        "parishLevel": parish_level,
        "locationModifier": location_modifier,
        "environmentalModifiers": environmental,
        "appliedMultipliers": scaled["applied"],
    }


def _resolve_parish_only(hazard: HazardInfo, business_type, parish,
                         request: RiskRequest, multipliers: list,
                         policy: PreSelectionPolicy) -> dict:
    """No business-type record: parish level alone, or not applicable."""
    parish_level, notes = lookup_parish_level(parish, hazard.hazard_id)

    if parish_level > 0:
        # Parish data is the only evidence here, so the raw level sets the
        # likelihood; multipliers are reported but do not move it.
        scaled = apply_multipliers(parish_level, hazard.hazard_id, request.characteristics, multipliers)
        likelihood = parish_level_to_likelihood(parish_level)
        severity = DEFAULT_SEVERITY
        risk_level = calculate_risk_level(likelihood, severity)
        confidence = "medium"
        reasoning = (
            f"No {business_type.name} vulnerability data for this hazard; "
            f"based on {parish.name} risk level {parish_level}/10"
        )
        if notes:
            reasoning += f" ({notes})"
        if scaled["applied"]:
            reasoning += f". {scaled['reasoning']}"
        return {
            "hazardId": hazard.hazard_id,
            "hazardName": hazard.name,
            "likelihood": likelihood,
            "severity": severity,
            "riskLevel": risk_level,
            "reasoning": reasoning,
            "confidence": confidence,
            "isCalculated": True,
            "isPreSelected": policy.is_pre_selected(parish_level, confidence, risk_level),
            "dataSource": "parish_only",
            "parishLevel": parish_level,
            "locationModifier": f"based on {parish.name} risk data",
            "environmentalModifiers": [],
            "appliedMultipliers": scaled["applied"],
        }

    where = parish.name if parish is not None else "this location"
    likelihood, severity = "rare", "minimal"
    return {
        "hazardId": hazard.hazard_id,
        "hazardName": hazard.name,
        "likelihood": likelihood,
        "severity": severity,
        "riskLevel": calculate_risk_level(likelihood, severity),
        "reasoning": (
            f"No risk data for {hazard.name} for {business_type.name} in {where}; "
            f"available for manual selection"
        ),
        "confidence": "low",
        "isCalculated": False,
        "isPreSelected": False,
        "dataSource": "not_applicable",
        "parishLevel": 0,
        "locationModifier": None,
        "environmentalModifiers": [],
        "appliedMultipliers": [],
    }


def resolve_hazard(hazard: HazardInfo, business_type, parish, request: RiskRequest,
                   multipliers: list, policy: PreSelectionPolicy) -> dict:
    record = business_type.vulnerability_for(hazard.hazard_id)
    if record is not None:
        return _resolve_mapped(hazard, record, business_type, parish, request, multipliers, policy)
    return _resolve_parish_only(hazard, business_type, parish, request, multipliers, policy)


# ---------------------------------------------------------------------------
#  Response assembly
# ---------------------------------------------------------------------------

def calculate_data_quality(calculations: list[dict]) -> str:
    """excellent/good/fair/limited from the share of high-confidence results."""
    if not calculations:
        return "limited"
    high = sum(1 for c in calculations if c["confidence"] == "high")
    percentage = high / len(calculations) * 100
    for minimum, label in DATA_QUALITY_BANDS:
        if percentage >= minimum:
            return label
    return "limited"


def _unique(hazard_ids: list) -> list:
    seen = set()
    ordered = []
    for hazard_id in hazard_ids:
        if hazard_id and hazard_id not in seen:
            seen.add(hazard_id)
            ordered.append(hazard_id)
    return ordered


def calculate_risks(request: RiskRequest, business_type, parish, hazards: dict,
                    strategies: list, multipliers: Optional[list] = None,
                    settings=None, conflict_policy: Optional[ConflictPolicy] = None) -> dict:
    """
    Pure computation over content snapshots.

    Args:
        request: The wizard request.
        business_type: BusinessTypeProfile for the request's business type.
        parish: ParishProfile, or None when no location data was found.
        hazards: hazard_id -> HazardInfo for the requested hazards.
        strategies: StrategyRecord list (active strategies).
        multipliers: MultiplierRule list.
    """
    settings = settings or get_settings()
    policy = PreSelectionPolicy.from_settings(settings)
    multipliers = multipliers or []

    calculations = []
    for hazard_id in _unique(request.hazard_ids):
        hazard = hazards.get(hazard_id) or HazardInfo(
            hazard_id=hazard_id, name=hazard_display_name(hazard_id)
        )
        calculations.append(
            resolve_hazard(hazard, business_type, parish, request, multipliers, policy)
        )

    calculations.sort(key=lambda c: -risk_level_score(c["riskLevel"]))

    aggregated = aggregate_strategies(
        calculations, strategies, business_type.business_type_id,
        multi_hazard_bonus=settings.multi_hazard_bonus,
        max_effectiveness=settings.max_effectiveness,
    )
    annotate_compatibility(aggregated, conflict_policy, limit=settings.max_compatible_strategies)

    metadata = {
        "businessTypeName": business_type.name,
        "locationFound": parish is not None,
        "parishName": parish.name if parish is not None else None,
        "totalStrategies": len(aggregated),
        "highConfidenceCalculations": sum(1 for c in calculations if c["confidence"] == "high"),
        "dataQuality": calculate_data_quality(calculations),
    }
    errors = validate_calculations(calculations)
    if errors:
        metadata["validationWarnings"] = errors

    return {
        "riskCalculations": calculations,
        "strategies": group_by_category(aggregated),
        "metadata": metadata,
    }


def compute(session, request: RiskRequest, settings=None) -> dict:
    """
    Load content for a request and compute the full response.

    Raises:
        BusinessTypeNotFound: unknown business type id.
    """
    business_type = load_business_type(session, request.business_type_id, request.locale)
    if business_type is None:
        raise BusinessTypeNotFound(request.business_type_id)

    parish = load_parish(session, request.country_code, request.parish)
    hazards = load_hazards(session, request.hazard_ids, request.locale)
    strategies = load_strategies(session, request.locale)
    multipliers = load_multipliers(session) if request.characteristics else []

    logger.info(
        f"Computing {len(request.hazard_ids)} hazards for {business_type.business_type_id} "
        f"(parish={parish.name if parish else None})"
    )
    return calculate_risks(request, business_type, parish, hazards, strategies, multipliers, settings)
