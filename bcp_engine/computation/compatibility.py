"""
BCP Engine — Strategy compatibility hints.

worksWellWith: other recommended strategies in the same output bucket
(preparation strategies sit with prevention).
conflictsWith: whatever the registered conflict rules report. No rules
are defined yet, so the default policy always returns an empty list.
"""

import logging
from typing import Callable, Optional

from config.settings import STRATEGY_BUCKETS
from .strategies import sort_key

logger = logging.getLogger(__name__)

# rule(strategy, all_strategies) -> list of conflicting strategy ids
ConflictRule = Callable[[dict, list], list]


class ConflictPolicy:
    """Registry of strategy conflict rules."""

    def __init__(self, rules: Optional[list] = None):
        self._rules: list[ConflictRule] = list(rules or [])

    def register(self, rule: ConflictRule) -> ConflictRule:
        """Add a rule; usable as a decorator."""
        self._rules.append(rule)
        return rule

    @property
    def rules(self) -> list:
        return list(self._rules)

    def find_conflicts(self, strategy: dict, all_strategies: list[dict]) -> list[str]:
        conflicts = []
        for rule in self._rules:
            for strategy_id in rule(strategy, all_strategies):
                if strategy_id != strategy["strategyId"] and strategy_id not in conflicts:
                    conflicts.append(strategy_id)
        return conflicts


def default_conflict_policy() -> ConflictPolicy:
    """Policy with no conflict rules registered."""
    return ConflictPolicy()


def find_compatible_strategies(strategy: dict, all_strategies: list[dict],
                               limit: int = 2) -> list[str]:
    """Up to `limit` other strategies in the same output bucket."""
    bucket = STRATEGY_BUCKETS.get(strategy["category"], strategy["category"])
    same_category = [
        s for s in sorted(all_strategies, key=sort_key)
        if STRATEGY_BUCKETS.get(s["category"], s["category"]) == bucket
        and s["strategyId"] != strategy["strategyId"]
    ]
    return [s["strategyId"] for s in same_category[:limit]]


def annotate_compatibility(strategies: list[dict],
                           policy: Optional[ConflictPolicy] = None,
                           limit: int = 2) -> list[dict]:
    """Fill worksWellWith / conflictsWith on every aggregated strategy."""
    policy = policy or default_conflict_policy()
    for strategy in strategies:
        strategy["worksWellWith"] = find_compatible_strategies(strategy, strategies, limit)
        strategy["conflictsWith"] = policy.find_conflicts(strategy, strategies)
    return strategies
