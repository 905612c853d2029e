"""
BCP Engine — Wizard pre-selection policy.

A hazard starts checked in the wizard when the parish has a level for it,
or when the calculation is high-confidence and not low risk. This only
sets the default checkbox; users can always add or remove hazards.
"""

from dataclasses import dataclass

from .ordinals import risk_level_score


@dataclass(frozen=True)
class PreSelectionPolicy:
    min_parish_level: float = 1
    min_risk_level: str = "medium"

    @classmethod
    def from_settings(cls, settings) -> "PreSelectionPolicy":
        return cls(
            min_parish_level=settings.preselect_min_parish_level,
            min_risk_level=settings.preselect_min_risk_level,
        )

    def is_pre_selected(self, parish_level, confidence: str, risk_level: str) -> bool:
        if parish_level and parish_level >= self.min_parish_level:
            return True
        return (
            confidence == "high"
            and risk_level_score(risk_level) >= risk_level_score(self.min_risk_level)
        )
