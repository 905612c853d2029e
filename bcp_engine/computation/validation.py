"""
BCP Engine — Validation rules for computed risk calculations.

Every calculation is checked before it leaves the engine. Problems are
reported as warnings in the response metadata, not raised.
"""

import logging

from .ordinals import LIKELIHOOD_SCORES, SEVERITY_SCORES, RISK_LEVELS
from .risk_level import calculate_risk_level

logger = logging.getLogger(__name__)

VALID_CONFIDENCE = ("high", "medium", "low")
VALID_DATA_SOURCES = ("admin_configured", "parish_only", "not_applicable")


def validate_calculation(calc: dict) -> list[str]:
    """
    Validate one risk calculation against the engine's invariants.

    Returns list of validation errors (empty = all good).
    """
    errors = []
    hazard_id = calc.get("hazardId", "?")

    likelihood = calc.get("likelihood")
    severity = calc.get("severity")
    if likelihood not in LIKELIHOOD_SCORES:
        errors.append(f"{hazard_id}: likelihood {likelihood!r} outside vocabulary")
    if severity not in SEVERITY_SCORES:
        errors.append(f"{hazard_id}: severity {severity!r} outside vocabulary")
    if calc.get("riskLevel") not in RISK_LEVELS:
        errors.append(f"{hazard_id}: riskLevel {calc.get('riskLevel')!r} outside vocabulary")
    elif not errors and calc["riskLevel"] != calculate_risk_level(likelihood, severity):
        errors.append(
            f"{hazard_id}: riskLevel {calc['riskLevel']} does not follow from "
            f"{likelihood} × {severity}"
        )

    confidence = calc.get("confidence")
    if confidence not in VALID_CONFIDENCE:
        errors.append(f"{hazard_id}: confidence {confidence!r} invalid")
    if confidence == "high" and (
        calc.get("dataSource") != "admin_configured" or not calc.get("parishLevel")
    ):
        errors.append(f"{hazard_id}: high confidence without business-type and parish data")

    if calc.get("dataSource") not in VALID_DATA_SOURCES:
        errors.append(f"{hazard_id}: dataSource {calc.get('dataSource')!r} invalid")

    return errors


def validate_calculations(calculations: list[dict]) -> list[str]:
    """Validate a full set of calculations; hazards must be unique."""
    errors = []
    seen = set()
    for calc in calculations:
        hazard_id = calc.get("hazardId")
        if hazard_id in seen:
            errors.append(f"{hazard_id}: duplicate calculation")
        seen.add(hazard_id)
        errors.extend(validate_calculation(calc))
    if errors:
        logger.warning(f"Risk calculation validation issues: {errors}")
    return errors
