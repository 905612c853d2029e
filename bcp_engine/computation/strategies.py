"""
BCP Engine — Mitigation strategy aggregation.

Collects the strategies that address the resolved hazards, one entry per
strategy, and scores them:

  effectiveness = risk_level (1-4) × priority × category × 20
                  + 10 per additional matched hazard, capped at 100

The base risk level is the highest among the hazards a strategy matches,
so the score does not depend on request order.
"""

import logging

from config.settings import (
    PRIORITY_MULTIPLIERS, DEFAULT_PRIORITY_MULTIPLIER,
    CATEGORY_MULTIPLIERS, DEFAULT_CATEGORY_MULTIPLIER,
    STRATEGY_BUCKETS,
)
from ..config.hazard_mapping import normalize_hazard_key
from .ordinals import risk_level_score

logger = logging.getLogger(__name__)

MULTI_HAZARD_BONUS = 10
MAX_EFFECTIVENESS = 100


def hazard_matches(applicable_risk: str, hazard_id: str) -> bool:
    """
    Fuzzy match between a strategy's applicable risk and a hazard id.

    "flood" matches "flooding" and "flood_risk"; casing, underscores,
    hyphens and spaces are ignored.
    """
    a = normalize_hazard_key(applicable_risk)
    b = normalize_hazard_key(hazard_id)
    if not a or not b:
        return False
    return a == b or a in b or b in a


def applies_to_business_type(strategy, business_type_id: str) -> bool:
    """Unset applicable_business_types means the strategy applies to all."""
    allowed = strategy.applicable_business_types
    if not allowed:
        return True
    key = normalize_hazard_key(business_type_id)
    return any(normalize_hazard_key(b) == key for b in allowed)


def calculate_strategy_effectiveness(risk_level: str, priority: str, category: str) -> int:
    """Effectiveness score (0-100) for a strategy addressing a risk level."""
    risk = risk_level_score(risk_level)
    priority_multiplier = PRIORITY_MULTIPLIERS.get(priority, DEFAULT_PRIORITY_MULTIPLIER)
    category_multiplier = CATEGORY_MULTIPLIERS.get(category, DEFAULT_CATEGORY_MULTIPLIER)
    return round(risk * priority_multiplier * category_multiplier * 20)


def aggregate_strategies(calculations: list[dict], strategies: list,
                         business_type_id: str,
                         multi_hazard_bonus: int = MULTI_HAZARD_BONUS,
                         max_effectiveness: int = MAX_EFFECTIVENESS) -> list[dict]:
    """
    Deduplicated, scored strategy entries for a set of risk calculations.

    Args:
        calculations: Resolved risk calculation dicts (hazardId, hazardName, riskLevel).
        strategies: Strategy snapshots from the content store.
        business_type_id: The caller's business type.
    """
    aggregated = []

    for strategy in strategies:
        if not strategy.is_active:
            continue
        if not applies_to_business_type(strategy, business_type_id):
            continue

        matched = {}
        for calc in calculations:
            hazard_id = calc["hazardId"]
            if hazard_id in matched:
                continue
            if any(hazard_matches(r, hazard_id) for r in strategy.applicable_risks):
                matched[hazard_id] = calc
        if not matched:
            continue

        top = max(matched.values(), key=lambda c: risk_level_score(c["riskLevel"]))
        effectiveness = calculate_strategy_effectiveness(
            top["riskLevel"], strategy.priority, strategy.category
        )
        effectiveness = min(max_effectiveness, effectiveness + multi_hazard_bonus * (len(matched) - 1))

        hazard_ids = sorted(matched)
        hazard_names = [matched[h]["hazardName"].lower() for h in hazard_ids]
        aggregated.append({
            "strategyId": strategy.strategy_id,
            "title": strategy.name,
            "description": strategy.description,
            "smeDescription": strategy.sme_description,
            "category": strategy.category,
            "hazards": hazard_ids,
            "priority": strategy.priority,
            "effectiveness": effectiveness,
            "implementationCost": strategy.implementation_cost,
            "costEstimateJMD": strategy.cost_estimate_jmd,
            "roi": strategy.roi,
            "actionSteps": list(strategy.action_steps),
            "reasoning": f"Effective {strategy.category} strategy for {' and '.join(hazard_names)}",
            "worksWellWith": [],
            "conflictsWith": [],
        })

    logger.debug(f"Aggregated {len(aggregated)} strategies for {len(calculations)} hazards")
    return aggregated


def sort_key(strategy: dict):
    return (-strategy["effectiveness"], strategy["strategyId"])


def group_by_category(strategies: list[dict]) -> dict[str, list[dict]]:
    """Bucket strategies into prevention/response/recovery, best first."""
    grouped = {"prevention": [], "response": [], "recovery": []}
    for strategy in strategies:
        bucket = STRATEGY_BUCKETS.get(strategy["category"])
        if bucket is None:
            logger.warning(
                f"Strategy {strategy['strategyId']} has unknown category "
                f"{strategy['category']!r}, left out of the grouped output"
            )
            continue
        grouped[bucket].append(strategy)
    for bucket in grouped.values():
        bucket.sort(key=sort_key)
    return grouped
