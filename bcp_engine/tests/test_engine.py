"""
BCP Engine — Orchestrator tests.

Runs calculate_risks over in-memory content snapshots, so no database
is needed. Scenario content mirrors the bundled Jamaican sample data.
"""

import json
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import pytest

from config.settings import Settings
from bcp_engine.content import (
    BusinessTypeProfile, VulnerabilityRecord, ParishProfile, HazardInfo,
    StrategyRecord, MultiplierRule,
)
from bcp_engine.engine import RiskRequest, calculate_risks, calculate_data_quality
from bcp_engine.computation.ordinals import risk_level_score
from bcp_engine.computation.risk_level import calculate_risk_level
from bcp_engine.computation.validation import validate_calculation


SETTINGS = Settings()


def _restaurant():
    return BusinessTypeProfile(
        business_type_id="restaurant",
        name="Restaurant",
        category="food_service",
        hazards={
            "hurricane": VulnerabilityRecord("hurricane", "high", "likely", "major"),
            "power_outage": VulnerabilityRecord("power_outage", "high", "likely", "moderate"),
            "fire": VulnerabilityRecord("fire", "medium", "unlikely", "major"),
        },
    )


def _grocery():
    return BusinessTypeProfile(
        business_type_id="grocery_store",
        name="Grocery Store",
        hazards={"fire": VulnerabilityRecord("fire", "medium", "possible", "major")},
    )


def _kingston():
    return ParishProfile(
        name="Kingston",
        country_code="JM",
        is_coastal=True,
        is_urban=True,
        fixed_levels={
            "hurricane": (8, "Direct exposure"),
            "flood": (6, ""),
            "earthquake": (9, "Major fault lines"),
            "drought": (0, ""),
            "landslide": (0, ""),
            "power_outage": (5, ""),
        },
        risk_profile_json=json.dumps({"cyber_attack": {"level": 7, "notes": "Banking district"}}),
    )


def _hazards(*ids):
    return {h: HazardInfo(hazard_id=h, name=h.replace("_", " ").title()) for h in ids}


def _run(hazard_ids, business_type=None, parish=None, strategies=None, multipliers=None,
         settings=SETTINGS, **kwargs):
    # Explicit flags unless a test is checking the parish defaults
    kwargs.setdefault("near_coast", False)
    kwargs.setdefault("urban_area", False)
    request = RiskRequest(
        hazard_ids=hazard_ids,
        business_type_id=(business_type or _restaurant()).business_type_id,
        country_code="JM" if parish else None,
        parish=parish.name if parish else None,
        **kwargs
    )
    return calculate_risks(
        request, business_type or _restaurant(), parish, _hazards(*hazard_ids),
        strategies or [], multipliers, settings
    )


def _by_id(result):
    return {c["hazardId"]: c for c in result["riskCalculations"]}


# ---------------------------------------------------------------------------
#  Mapped hazards
# ---------------------------------------------------------------------------

def test_kingston_restaurant_hurricane():
    result = _run(["hurricane"], parish=_kingston())
    calc = _by_id(result)["hurricane"]

    print(f"\nHurricane: {calc['likelihood']} × {calc['severity']} = {calc['riskLevel']}")
    assert calc["likelihood"] == "likely"
    assert calc["severity"] == "major"
    assert calc["riskLevel"] == "very_high"
    assert calc["confidence"] == "high"
    assert calc["isPreSelected"] is True
    assert calc["dataSource"] == "admin_configured"
    assert calc["locationModifier"] == "confirmed by Kingston risk data"
    assert result["metadata"]["locationFound"] is True
    assert result["metadata"]["parishName"] == "Kingston"


def test_coastal_flag_bumps_hurricane_likelihood():
    calc = _by_id(_run(["hurricane"], parish=_kingston(), near_coast=True))["hurricane"]
    assert calc["likelihood"] == "almost_certain"
    assert calc["environmentalModifiers"] == ["coastal exposure"]
    assert "coastal exposure increases risk" in calc["reasoning"]


def test_no_parish_gives_medium_confidence():
    result = _run(["fire"], business_type=_grocery())
    calc = _by_id(result)["fire"]
    assert calc["likelihood"] == "possible"
    assert calc["severity"] == "major"
    assert calc["riskLevel"] == "high"
    assert calc["confidence"] == "medium"
    assert calc["dataSource"] == "admin_configured"
    assert calc["locationModifier"] is None
    assert result["metadata"]["locationFound"] is False
    assert result["metadata"]["parishName"] is None


def test_parish_lowers_likelihood():
    parish = _kingston()
    parish.fixed_levels["power_outage"] = (3, "")
    calc = _by_id(_run(["power_outage"], parish=parish))["power_outage"]
    assert calc["likelihood"] == "unlikely"
    assert calc["locationModifier"] == "reduced due to Kingston risk data"
    assert calc["riskLevel"] == calculate_risk_level("unlikely", "moderate")


def test_mapped_hazard_without_parish_level_is_medium_confidence():
    # Kingston has no fire level
    calc = _by_id(_run(["fire"], parish=_kingston()))["fire"]
    assert calc["confidence"] == "medium"
    assert calc["parishLevel"] == 0
    assert calc["locationModifier"] is None


def test_incomplete_record_falls_back_to_hazard_defaults():
    business_type = BusinessTypeProfile(
        business_type_id="bakery", name="Bakery",
        hazards={"drought": VulnerabilityRecord("drought", frequency=None, impact="sometimes")},
    )
    request = RiskRequest(hazard_ids=["drought"], business_type_id="bakery")
    hazards = {"drought": HazardInfo("drought", "Drought", default_frequency="unlikely", default_impact="minor")}
    calc = calculate_risks(request, business_type, None, hazards, [], settings=SETTINGS)["riskCalculations"][0]
    assert calc["likelihood"] == "unlikely"
    assert calc["severity"] == "moderate"
    assert calc["confidence"] == "medium"


# ---------------------------------------------------------------------------
#  Parish-only and not-applicable hazards
# ---------------------------------------------------------------------------

def test_camel_case_request_finds_snake_case_parish_key():
    calc = _by_id(_run(["cyberAttack"], parish=_kingston()))["cyberAttack"]
    assert calc["dataSource"] == "parish_only"
    assert calc["likelihood"] == "likely"
    assert calc["severity"] == "moderate"
    assert calc["riskLevel"] == "high"
    assert calc["confidence"] == "medium"
    assert calc["isPreSelected"] is True
    assert "Banking district" in calc["reasoning"]


def test_parish_level_nine_is_almost_certain():
    calc = _by_id(_run(["earthquake"], parish=_kingston()))["earthquake"]
    assert calc["likelihood"] == "almost_certain"
    assert calc["dataSource"] == "parish_only"
    assert calc["parishLevel"] == 9


def test_zero_level_is_not_applicable():
    calc = _by_id(_run(["drought"], parish=_kingston()))["drought"]
    assert calc["dataSource"] == "not_applicable"
    assert calc["isCalculated"] is False
    assert calc["isPreSelected"] is False
    assert calc["confidence"] == "low"
    assert calc["riskLevel"] == "low"


def test_unknown_hazard_is_never_dropped():
    result = _run(["hurricane", "meteor_strike", "hurricane"], parish=_kingston())
    ids = [c["hazardId"] for c in result["riskCalculations"]]
    assert sorted(ids) == ["hurricane", "meteor_strike"]
    assert _by_id(result)["meteor_strike"]["hazardName"] == "Meteor Strike"


# ---------------------------------------------------------------------------
#  Multipliers
# ---------------------------------------------------------------------------

def test_multipliers_raise_parish_level_before_mapping():
    tourism = MultiplierRule(
        name="Tourism dependency", characteristic_type="tourism_share",
        condition_type="threshold", threshold_value=50, multiplier_factor=1.5,
        applicable_hazards=["power_outage"],
    )
    plain = _by_id(_run(["power_outage"], parish=_kingston()))["power_outage"]
    boosted = _by_id(_run(
        ["power_outage"], parish=_kingston(), multipliers=[tourism],
        characteristics={"tourism_share": 80},
    ))["power_outage"]

    # level 5 -> possible, below the record's likely
    assert plain["likelihood"] == "possible"
    assert plain["appliedMultipliers"] == []
    # 5 × 1.5 = 7.5 -> likely
    assert boosted["likelihood"] == "likely"
    assert boosted["appliedMultipliers"][0]["name"] == "Tourism dependency"
    assert boosted["locationModifier"] == "confirmed by Kingston risk data"
    assert boosted["parishLevel"] == 5


# ---------------------------------------------------------------------------
#  Response invariants
# ---------------------------------------------------------------------------

def test_calculations_sorted_by_risk_level():
    result = _run(["drought", "fire", "hurricane", "cyberAttack"], parish=_kingston())
    scores = [risk_level_score(c["riskLevel"]) for c in result["riskCalculations"]]
    assert scores == sorted(scores, reverse=True)


def test_every_calculation_is_consistent():
    result = _run(
        ["hurricane", "flood", "earthquake", "drought", "fire", "power_outage", "cyberAttack"],
        parish=_kingston(), near_coast=True, urban_area=True,
    )
    for calc in result["riskCalculations"]:
        assert validate_calculation(calc) == [], calc["hazardId"]
        assert calc["riskLevel"] == calculate_risk_level(calc["likelihood"], calc["severity"])
    assert "validationWarnings" not in result["metadata"]


def test_strategies_are_grouped_and_deduplicated():
    strategies = [
        StrategyRecord("hurricane_shutters", "Hurricane Shutters", "prevention", "critical",
                       applicable_risks=["hurricane"]),
        StrategyRecord("flood_barriers", "Flood Barriers", "prevention", "high",
                       applicable_risks=["flood"]),
        StrategyRecord("data_backup", "Data Backup", "recovery", "medium",
                       applicable_risks=["cyber_attack", "power_outage"]),
    ]
    result = _run(["hurricane", "flooding", "cyberAttack", "power_outage"],
                  parish=_kingston(), strategies=strategies)
    grouped = result["strategies"]

    assert [s["strategyId"] for s in grouped["prevention"]] == ["hurricane_shutters", "flood_barriers"]
    backup = grouped["recovery"][0]
    assert backup["hazards"] == ["cyberAttack", "power_outage"]
    assert result["metadata"]["totalStrategies"] == 3
    assert grouped["prevention"][0]["worksWellWith"] == ["flood_barriers"]


@pytest.mark.parametrize("high,total,expected", [
    (4, 5, "excellent"), (3, 5, "good"), (2, 5, "fair"), (1, 5, "limited"), (0, 0, "limited"),
])
def test_data_quality_bands(high, total, expected):
    calcs = [{"confidence": "high"}] * high + [{"confidence": "medium"}] * (total - high)
    assert calculate_data_quality(calcs) == expected


# ---------------------------------------------------------------------------
#  Policy and defaults
# ---------------------------------------------------------------------------

def test_parish_only_follows_preselection_threshold():
    strict = Settings(preselect_min_parish_level=5)
    parish = _kingston()
    parish.risk_profile_json = json.dumps({"cyber_attack": {"level": 3}})

    low = _by_id(_run(["cyberAttack"], parish=parish, settings=strict))["cyberAttack"]
    assert low["dataSource"] == "parish_only"
    assert low["isPreSelected"] is False

    # Earthquake is at 9 in Kingston
    high = _by_id(_run(["earthquake"], parish=_kingston(), settings=strict))["earthquake"]
    assert high["isPreSelected"] is True


def test_parish_only_likelihood_uses_raw_level():
    dampener = MultiplierRule(
        name="Reinforced structure", characteristic_type="own_building",
        condition_type="boolean", multiplier_factor=0.7,
        applicable_hazards=["earthquake"],
    )
    calc = _by_id(_run(
        ["earthquake"], parish=_kingston(), multipliers=[dampener],
        characteristics={"own_building": True},
    ))["earthquake"]
    assert calc["likelihood"] == "almost_certain"
    assert calc["parishLevel"] == 9
    assert [m["name"] for m in calc["appliedMultipliers"]] == ["Reinforced structure"]


def test_parish_flags_apply_when_request_leaves_them_unset():
    parish = _kingston()
    defaulted = _by_id(_run(
        ["hurricane", "fire"], parish=parish, near_coast=None, urban_area=None,
    ))
    assert defaulted["hurricane"]["environmentalModifiers"] == ["coastal exposure"]
    assert defaulted["hurricane"]["likelihood"] == "almost_certain"
    assert defaulted["fire"]["environmentalModifiers"] == ["urban environment"]

    # An explicit False overrides the parish
    explicit = _by_id(_run(["hurricane"], parish=parish, near_coast=False, urban_area=None))
    assert explicit["hurricane"]["environmentalModifiers"] == []

    # No parish, no defaults
    bare = _by_id(_run(["hurricane"], near_coast=None, urban_area=None))
    assert bare["hurricane"]["environmentalModifiers"] == []


def test_empty_hazard_list():
    result = _run([], parish=_kingston())
    assert result["riskCalculations"] == []
    assert result["metadata"]["totalStrategies"] == 0
    assert result["metadata"]["dataQuality"] == "limited"
    assert result["strategies"] == {"prevention": [], "response": [], "recovery": []}
