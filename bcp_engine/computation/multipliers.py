"""
BCP Engine — Business characteristic multipliers.

Admin-defined multipliers scale a hazard's parish level (0-10) when the
user's declared business characteristics meet a condition:
  boolean   — characteristic is True
  threshold — characteristic >= threshold_value
  range     — min_value <= characteristic <= max_value

final_level = parish_level × ∏(factors), clipped to [0, 10]
"""

import logging

from ..config.hazard_mapping import normalize_hazard_key

logger = logging.getLogger(__name__)

MAX_LEVEL = 10.0


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def condition_met(rule, characteristics: dict) -> bool:
    """Check a multiplier's condition against the user's characteristics."""
    value = characteristics.get(rule.characteristic_type)
    if value is None:
        return False

    if rule.condition_type == "boolean":
        return value is True

    if rule.condition_type == "threshold":
        if _is_number(value) and rule.threshold_value is not None:
            return value >= rule.threshold_value
        return False

    if rule.condition_type == "range":
        if _is_number(value) and rule.min_value is not None and rule.max_value is not None:
            return rule.min_value <= value <= rule.max_value
        return False

    logger.warning(f"Unknown multiplier condition type: {rule.condition_type}")
    return False


def applies_to_hazard(rule, hazard_id: str) -> bool:
    key = normalize_hazard_key(hazard_id)
    return any(normalize_hazard_key(h) == key for h in rule.applicable_hazards)


def apply_multipliers(base_level, hazard_id: str, characteristics: dict,
                      rules: list) -> dict:
    """
    Apply every matching multiplier to a parish level, lowest priority first.

    A zero level is never scaled: no data stays no data.

    Returns:
        Dict with base_level, final_level, applied (name/factor/reasoning)
        and a reasoning string.
    """
    result = {
        "base_level": base_level,
        "final_level": base_level,
        "applied": [],
        "reasoning": "No multipliers applied",
    }
    if not base_level or not characteristics or not rules:
        return result

    level = float(base_level)
    applied = []
    for rule in sorted(rules, key=lambda r: r.priority or 0):
        if not applies_to_hazard(rule, hazard_id):
            continue
        if not condition_met(rule, characteristics):
            continue
        level *= rule.multiplier_factor
        applied.append({
            "name": rule.name,
            "factor": rule.multiplier_factor,
            "reasoning": rule.reasoning or "",
        })

    if not applied:
        return result

    result["final_level"] = round(max(0.0, min(MAX_LEVEL, level)), 1)
    result["applied"] = applied
    result["reasoning"] = "Multipliers applied: " + ", ".join(
        f"{m['name']} ×{m['factor']}" for m in applied
    )
    return result


def convert_simplified_inputs(answers: dict) -> dict:
    """
    Convert the wizard's yes/no answers into the characteristics that
    multipliers test.
    """
    customer_base = answers.get("customer_base")
    power = answers.get("power_dependency")
    digital = answers.get("digital_dependency")
    perishable = bool(answers.get("sells_perishable"))
    minimal_inventory = bool(answers.get("minimal_inventory"))

    return {
        "location_coastal": bool(answers.get("is_coastal")),
        "location_urban": bool(answers.get("is_urban")),
        "location_flood_prone": (answers.get("flood_risk") or 0) > 7,
        "tourism_share": {"mainly_tourists": 80, "mix": 40}.get(customer_base, 10),
        "local_customer_share": {"mainly_tourists": 15, "mix": 50}.get(customer_base, 85),
        "export_share": 5,
        "power_dependency": {"cannot_operate": 95, "partially": 50}.get(power, 10),
        "digital_dependency": {"essential": 95, "helpful": 50}.get(digital, 10),
        "water_dependency": 90 if perishable else 30,
        "supply_chain_complex": bool(
            answers.get("imports_from_overseas") or minimal_inventory or perishable
        ),
        "perishable_goods": perishable,
        "just_in_time_inventory": minimal_inventory,
        "seasonal_business": bool(answers.get("seasonal_business")),
        "physical_asset_intensive": bool(answers.get("expensive_equipment")),
        "own_building": bool(answers.get("own_building")),
        "significant_inventory": not minimal_inventory,
    }
