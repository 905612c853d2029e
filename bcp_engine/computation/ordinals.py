"""
BCP Engine — Canonical ordinal tables.

Single source of truth for likelihood, severity and risk-level ordering.
The risk level calculator, strategy scoring and response sorting all
import from here.
"""

import logging

logger = logging.getLogger(__name__)

LIKELIHOOD_SCORES = {
    "rare": 1,
    "unlikely": 2,
    "possible": 3,
    "likely": 4,
    "almost_certain": 5,
}

SEVERITY_SCORES = {
    "minimal": 1,
    "minor": 2,
    "moderate": 3,
    "major": 4,
    "catastrophic": 5,
}

RISK_LEVELS = {
    "low": 1,
    "medium": 2,
    "high": 3,
    "very_high": 4,
}

DEFAULT_LIKELIHOOD = "possible"
DEFAULT_SEVERITY = "moderate"
DEFAULT_RISK_LEVEL = "medium"

_LIKELIHOOD_BY_SCORE = {v: k for k, v in LIKELIHOOD_SCORES.items()}
_SEVERITY_BY_SCORE = {v: k for k, v in SEVERITY_SCORES.items()}


def _clean(label) -> str:
    if label is None:
        return ""
    return str(label).strip().lower().replace(" ", "_").replace("-", "_")


def is_valid_likelihood(label) -> bool:
    return _clean(label) in LIKELIHOOD_SCORES


def is_valid_severity(label) -> bool:
    return _clean(label) in SEVERITY_SCORES


def likelihood_score(label) -> int:
    """Ordinal 1-5 for a frequency label; unknown labels score 3."""
    score = LIKELIHOOD_SCORES.get(_clean(label))
    if score is None:
        logger.warning(f"Unknown likelihood label {label!r}, defaulting to {DEFAULT_LIKELIHOOD}")
        return LIKELIHOOD_SCORES[DEFAULT_LIKELIHOOD]
    return score


def severity_score(label) -> int:
    """Ordinal 1-5 for an impact label; unknown labels score 3."""
    score = SEVERITY_SCORES.get(_clean(label))
    if score is None:
        logger.warning(f"Unknown severity label {label!r}, defaulting to {DEFAULT_SEVERITY}")
        return SEVERITY_SCORES[DEFAULT_SEVERITY]
    return score


def likelihood_label(score: int) -> str:
    """Inverse of likelihood_score; scores are clamped to 1-5."""
    return _LIKELIHOOD_BY_SCORE[max(1, min(5, int(score)))]


def severity_label(score: int) -> str:
    """Inverse of severity_score; scores are clamped to 1-5."""
    return _SEVERITY_BY_SCORE[max(1, min(5, int(score)))]


def normalize_likelihood(label) -> str:
    return likelihood_label(likelihood_score(label))


def normalize_severity(label) -> str:
    return severity_label(severity_score(label))


def risk_level_score(level) -> int:
    """Sort order for a risk level; unknown levels sort as medium."""
    return RISK_LEVELS.get(_clean(level), RISK_LEVELS[DEFAULT_RISK_LEVEL])
