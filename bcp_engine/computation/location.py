"""
BCP Engine — Location modifier.

Parish hazard levels (0-10) map onto the 1-5 likelihood scale:
  >= 9 almost_certain, >= 7 likely, >= 5 possible, >= 3 unlikely,
  > 0 rare, 0 = no data (leave the business-type default alone)

Environmental flags (coastal, urban) then bump likelihood by one step for
the hazards they are relevant to, saturating at almost_certain.
"""

import json
import logging
from typing import Optional

from ..config.hazard_mapping import (
    FIXED_PARISH_COLUMNS, ENVIRONMENTAL_FLAGS,
    normalize_hazard_key, to_snake_case, to_camel_case,
)
from .ordinals import likelihood_score, likelihood_label

logger = logging.getLogger(__name__)

# (minimum parish level, likelihood), checked top down
PARISH_LEVEL_BREAKPOINTS = [
    (9, "almost_certain"),
    (7, "likely"),
    (5, "possible"),
    (3, "unlikely"),
]


def parish_level_to_likelihood(level) -> Optional[str]:
    """Likelihood label for a parish level, or None when the level is unset."""
    if not level or level <= 0:
        return None
    for minimum, label in PARISH_LEVEL_BREAKPOINTS:
        if level >= minimum:
            return label
    return "rare"


def _coerce_level(value, parish_name: str, hazard_id: str) -> int:
    if isinstance(value, dict):
        value = value.get("level", 0)
    try:
        level = int(float(value or 0))
    except (TypeError, ValueError):
        logger.warning(f"Non-numeric {hazard_id} level {value!r} for {parish_name}, treating as unset")
        return 0
    return max(0, min(10, level))


def _parse_risk_profile(parish) -> Optional[dict]:
    raw = parish.risk_profile_json
    if not raw:
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        profile = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Malformed risk profile JSON for parish {parish.name}: {e}")
        return None
    if not isinstance(profile, dict):
        logger.warning(f"Risk profile for parish {parish.name} is not a JSON object")
        return None
    return profile


def lookup_parish_level(parish, hazard_id: str) -> tuple[int, str]:
    """
    Parish level and notes for a hazard; (0, "") when there is no data.

    Probes the fixed legacy columns first, then the dynamic profile map
    under the raw, snake_case and camelCase forms of the identifier.
    """
    if parish is None:
        return 0, ""

    column = FIXED_PARISH_COLUMNS.get(normalize_hazard_key(hazard_id))
    if column:
        level, notes = parish.fixed_levels.get(column, (0, ""))
        if level and level > 0:
            return int(level), notes or ""

    profile = _parse_risk_profile(parish)
    if not profile:
        return 0, ""

    for key in (hazard_id, to_snake_case(hazard_id), to_camel_case(hazard_id)):
        if key in profile:
            entry = profile[key]
            level = _coerce_level(entry, parish.name, hazard_id)
            notes = entry.get("notes", "") if isinstance(entry, dict) else ""
            return level, notes or ""
    return 0, ""


def apply_location_modifier(base_likelihood: str, parish_level,
                            parish_name: str) -> tuple[str, Optional[str]]:
    """
    Adjust a business-type likelihood with the parish level.

    Returns (likelihood, note); note is None when the parish has no data.
    """
    parish_likelihood = parish_level_to_likelihood(parish_level)
    if parish_likelihood is None:
        return base_likelihood, None

    base = likelihood_score(base_likelihood)
    local = likelihood_score(parish_likelihood)
    if local > base:
        return parish_likelihood, f"increased due to {parish_name} risk data"
    if local < base:
        return parish_likelihood, f"reduced due to {parish_name} risk data"
    return base_likelihood, f"confirmed by {parish_name} risk data"


def apply_environmental_modifiers(likelihood: str, hazard_id: str,
                                  near_coast: bool = False,
                                  urban_area: bool = False) -> tuple[str, list[str]]:
    """Bump likelihood one step per relevant environmental flag, capped at 5."""
    flags = {"near_coast": near_coast, "urban_area": urban_area}
    key = normalize_hazard_key(hazard_id)
    score = likelihood_score(likelihood)
    notes = []

    for flag, note, hazards in ENVIRONMENTAL_FLAGS:
        if flags.get(flag) and key in hazards:
            notes.append(note)
            score = min(5, score + 1)

    if not notes:
        return likelihood, notes
    return likelihood_label(score), notes
