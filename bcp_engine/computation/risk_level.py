"""
BCP Engine — Risk level calculation.

risk_score = likelihood (1-5) × severity (1-5), range [1, 25]
  >= 16 very_high, >= 9 high, >= 4 medium, else low
"""

from .ordinals import likelihood_score, severity_score

# (minimum score, level), checked top down
RISK_LEVEL_THRESHOLDS = [
    (16, "very_high"),
    (9, "high"),
    (4, "medium"),
    (1, "low"),
]


def risk_score(likelihood: str, severity: str) -> int:
    """Ordinal product of a likelihood/severity pair."""
    return likelihood_score(likelihood) * severity_score(severity)


def calculate_risk_level(likelihood: str, severity: str) -> str:
    """Map a likelihood/severity label pair to low/medium/high/very_high."""
    score = risk_score(likelihood, severity)
    for minimum, level in RISK_LEVEL_THRESHOLDS:
        if score >= minimum:
            return level
    return "low"
