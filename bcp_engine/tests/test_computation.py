"""
BCP Engine — Computation unit tests.

Covers the ordinal tables, risk level calculator, location modifier,
characteristic multipliers and pre-selection policy.
"""

import json
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import pytest

from bcp_engine.config.hazard_mapping import (
    normalize_hazard_key, to_snake_case, to_camel_case, hazard_display_name,
)
from bcp_engine.content import ParishProfile, MultiplierRule
from bcp_engine.computation.ordinals import (
    LIKELIHOOD_SCORES, SEVERITY_SCORES, RISK_LEVELS,
    likelihood_score, severity_score, likelihood_label, severity_label,
    normalize_likelihood, normalize_severity, risk_level_score,
)
from bcp_engine.computation.risk_level import calculate_risk_level, risk_score
from bcp_engine.computation.location import (
    parish_level_to_likelihood, lookup_parish_level,
    apply_location_modifier, apply_environmental_modifiers,
)
from bcp_engine.computation.multipliers import (
    apply_multipliers, condition_met, convert_simplified_inputs,
)
from bcp_engine.computation.preselection import PreSelectionPolicy


def _parish(fixed=None, profile=None, name="Kingston"):
    return ParishProfile(
        name=name,
        country_code="JM",
        fixed_levels=fixed or {},
        risk_profile_json=profile if isinstance(profile, str) or profile is None else json.dumps(profile),
    )


# ---------------------------------------------------------------------------
#  Normalizer
# ---------------------------------------------------------------------------

def test_label_round_trips():
    for label in LIKELIHOOD_SCORES:
        assert likelihood_label(likelihood_score(label)) == label
    for label in SEVERITY_SCORES:
        assert severity_label(severity_score(label)) == label


def test_unknown_labels_default_to_middle():
    assert likelihood_score("sometimes") == 3
    assert severity_score(None) == 3
    assert normalize_likelihood("weekly") == "possible"
    assert normalize_severity("") == "moderate"


def test_labels_are_case_and_separator_insensitive():
    assert likelihood_score("Almost Certain") == 5
    assert likelihood_score("almost-certain") == 5
    assert severity_score(" MAJOR ") == 4


def test_risk_level_order_matches_calculator_buckets():
    assert [risk_level_score(l) for l in ("low", "medium", "high", "very_high")] == [1, 2, 3, 4]
    assert set(RISK_LEVELS) == {"low", "medium", "high", "very_high"}
    assert risk_level_score("unknown") == 2


# ---------------------------------------------------------------------------
#  Risk level calculator
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("likelihood,severity,expected", [
    ("rare", "minimal", "low"),          # 1
    ("rare", "moderate", "low"),         # 3
    ("unlikely", "minor", "medium"),     # 4
    ("possible", "moderate", "high"),    # 9
    ("likely", "moderate", "high"),      # 12
    ("likely", "major", "very_high"),    # 16
    ("almost_certain", "catastrophic", "very_high"),  # 25
])
def test_risk_level_thresholds(likelihood, severity, expected):
    assert calculate_risk_level(likelihood, severity) == expected


def test_risk_level_is_a_function_of_the_product():
    for l in LIKELIHOOD_SCORES:
        for s in SEVERITY_SCORES:
            level = calculate_risk_level(l, s)
            assert level == calculate_risk_level(l, s)
            score = risk_score(l, s)
            assert score == LIKELIHOOD_SCORES[l] * SEVERITY_SCORES[s]
            if score >= 16:
                assert level == "very_high"
            elif score >= 9:
                assert level == "high"
            elif score >= 4:
                assert level == "medium"
            else:
                assert level == "low"


# ---------------------------------------------------------------------------
#  Hazard identifiers
# ---------------------------------------------------------------------------

def test_hazard_identifier_forms():
    assert to_snake_case("cyberAttack") == "cyber_attack"
    assert to_snake_case("Power Outage") == "power_outage"
    assert to_camel_case("cyber_attack") == "cyberAttack"
    assert normalize_hazard_key("Supply-Chain_Disruption") == "supplychaindisruption"
    assert hazard_display_name("storm_surge") == "Storm Surge"


# ---------------------------------------------------------------------------
#  Location modifier
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("level,expected", [
    (0, None), (1, "rare"), (2, "rare"), (3, "unlikely"), (4, "unlikely"),
    (5, "possible"), (6, "possible"), (7, "likely"), (8, "likely"),
    (9, "almost_certain"), (10, "almost_certain"),
])
def test_parish_level_breakpoints(level, expected):
    assert parish_level_to_likelihood(level) == expected


def test_location_modifier_directions():
    assert apply_location_modifier("possible", 9, "Kingston") == (
        "almost_certain", "increased due to Kingston risk data"
    )
    assert apply_location_modifier("likely", 3, "Kingston") == (
        "unlikely", "reduced due to Kingston risk data"
    )
    assert apply_location_modifier("likely", 8, "Kingston") == (
        "likely", "confirmed by Kingston risk data"
    )


def test_location_modifier_ignores_unset_level():
    assert apply_location_modifier("likely", 0, "Kingston") == ("likely", None)


def test_environmental_flags_bump_relevant_hazards():
    assert apply_environmental_modifiers("possible", "hurricane", near_coast=True) == (
        "likely", ["coastal exposure"]
    )
    assert apply_environmental_modifiers("possible", "fire", urban_area=True) == (
        "likely", ["urban environment"]
    )
    # Not relevant: no change
    assert apply_environmental_modifiers("possible", "earthquake", near_coast=True, urban_area=True) == (
        "possible", []
    )


def test_environmental_bump_saturates():
    assert apply_environmental_modifiers("almost_certain", "flooding", near_coast=True) == (
        "almost_certain", ["coastal exposure"]
    )


def test_lookup_prefers_fixed_columns():
    parish = _parish(fixed={"hurricane": (8, "exposed")}, profile={"hurricane": {"level": 2}})
    assert lookup_parish_level(parish, "hurricane") == (8, "exposed")


def test_lookup_maps_flooding_to_flood_column():
    parish = _parish(fixed={"flood": (6, "")})
    assert lookup_parish_level(parish, "flooding")[0] == 6


def test_lookup_tries_snake_and_camel_case():
    snake = _parish(profile={"cyber_attack": {"level": 7}})
    camel = _parish(profile={"cyberAttack": {"level": 5, "notes": "ransomware"}})
    assert lookup_parish_level(snake, "cyberAttack") == (7, "")
    assert lookup_parish_level(camel, "cyber_attack") == (5, "ransomware")


def test_lookup_survives_malformed_json():
    parish = _parish(profile="{not json")
    assert lookup_parish_level(parish, "cyber_attack") == (0, "")
    assert lookup_parish_level(None, "hurricane") == (0, "")


# ---------------------------------------------------------------------------
#  Multipliers
# ---------------------------------------------------------------------------

TOURISM = MultiplierRule(
    name="Tourism dependency", characteristic_type="tourism_share",
    condition_type="threshold", threshold_value=50, multiplier_factor=1.2,
    applicable_hazards=["hurricane", "pandemicDisease"], priority=1,
)
PERISHABLE = MultiplierRule(
    name="Perishable stock", characteristic_type="perishable_goods",
    condition_type="boolean", multiplier_factor=1.5,
    applicable_hazards=["power_outage"], priority=2,
)
MID_SIZE = MultiplierRule(
    name="Mid-size staff", characteristic_type="employees",
    condition_type="range", min_value=10, max_value=50, multiplier_factor=0.8,
    applicable_hazards=["pandemic_disease"], priority=3,
)


def test_multiplier_conditions():
    assert condition_met(TOURISM, {"tourism_share": 80})
    assert not condition_met(TOURISM, {"tourism_share": 20})
    assert condition_met(PERISHABLE, {"perishable_goods": True})
    assert not condition_met(PERISHABLE, {"perishable_goods": 1})
    assert condition_met(MID_SIZE, {"employees": 10})
    assert not condition_met(MID_SIZE, {"employees": 51})
    assert not condition_met(MID_SIZE, {})


def test_multipliers_scale_and_cap_parish_level():
    result = apply_multipliers(6, "hurricane", {"tourism_share": 80}, [TOURISM])
    assert result["final_level"] == pytest.approx(7.2)
    assert [m["name"] for m in result["applied"]] == ["Tourism dependency"]

    capped = apply_multipliers(9, "hurricane", {"tourism_share": 80}, [TOURISM])
    assert capped["final_level"] == 10


def test_multipliers_match_hazard_casing_and_chain():
    chars = {"tourism_share": 90, "employees": 20}
    result = apply_multipliers(5, "pandemic_disease", chars, [MID_SIZE, TOURISM])
    assert result["final_level"] == pytest.approx(4.8)  # 5 × 1.2 × 0.8
    assert [m["name"] for m in result["applied"]] == ["Tourism dependency", "Mid-size staff"]


def test_zero_level_is_never_multiplied():
    result = apply_multipliers(0, "hurricane", {"tourism_share": 80}, [TOURISM])
    assert result["final_level"] == 0
    assert result["applied"] == []


def test_simplified_inputs():
    chars = convert_simplified_inputs({
        "customer_base": "mainly_tourists",
        "power_dependency": "cannot_operate",
        "sells_perishable": True,
    })
    assert chars["tourism_share"] == 80
    assert chars["power_dependency"] == 95
    assert chars["perishable_goods"] is True
    assert chars["supply_chain_complex"] is True
    assert chars["water_dependency"] == 90


# ---------------------------------------------------------------------------
#  Pre-selection
# ---------------------------------------------------------------------------

def test_preselection_policy():
    policy = PreSelectionPolicy()
    assert policy.is_pre_selected(3, "medium", "low")
    assert policy.is_pre_selected(0, "high", "medium")
    assert not policy.is_pre_selected(0, "high", "low")
    assert not policy.is_pre_selected(0, "medium", "very_high")


def test_preselection_thresholds_are_configurable():
    strict = PreSelectionPolicy(min_parish_level=5, min_risk_level="high")
    assert not strict.is_pre_selected(4, "high", "medium")
    assert strict.is_pre_selected(5, "low", "low")
    assert strict.is_pre_selected(0, "high", "very_high")
