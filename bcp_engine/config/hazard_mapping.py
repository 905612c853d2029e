"""
BCP Engine — Hazard identifier mapping.

Hazard identifier normalization, the legacy fixed parish columns and the
environmental relevance sets used by the location modifier.
"""

import re

# Parish risk columns that predate the dynamic risk profile map.
# Keyed by normalized hazard id -> ParishRisk column prefix.
FIXED_PARISH_COLUMNS = {
    "hurricane": "hurricane",
    "flood": "flood",
    "flooding": "flood",
    "earthquake": "earthquake",
    "drought": "drought",
    "landslide": "landslide",
    "poweroutage": "power_outage",
}

# Environmental flags -> hazards they make more likely (normalized ids)
COASTAL_EXPOSURE_HAZARDS = frozenset({
    "hurricane", "flood", "flooding", "stormsurge", "coastalerosion",
})
URBAN_ENVIRONMENT_HAZARDS = frozenset({
    "crime", "crimetheft", "supplychaindisruption", "fire",
})

ENVIRONMENTAL_FLAGS = [
    # (request flag, note, relevant hazards)
    ("near_coast", "coastal exposure", COASTAL_EXPOSURE_HAZARDS),
    ("urban_area", "urban environment", URBAN_ENVIRONMENT_HAZARDS),
]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def normalize_hazard_key(hazard_id: str) -> str:
    """Case/underscore/hyphen/space-insensitive form used for matching."""
    return re.sub(r"[\s_\-]", "", str(hazard_id)).lower()


def to_snake_case(hazard_id: str) -> str:
    """cyberAttack -> cyber_attack; 'Power Outage' -> power_outage."""
    value = _CAMEL_BOUNDARY.sub(r"_\1", str(hazard_id).strip())
    value = re.sub(r"[\s\-]+", "_", value)
    return re.sub(r"_+", "_", value).lower()


def to_camel_case(hazard_id: str) -> str:
    """cyber_attack -> cyberAttack."""
    parts = to_snake_case(hazard_id).split("_")
    return parts[0] + "".join(p.capitalize() for p in parts[1:])


def hazard_display_name(hazard_id: str) -> str:
    """Fallback display name when the content store has none."""
    return " ".join(w.capitalize() for w in to_snake_case(hazard_id).split("_") if w)
