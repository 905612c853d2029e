"""
Caribbean BCP Risk Engine — per-hazard risk calculation and strategy
recommendation for the business continuity plan wizard.

Merges business-type vulnerability data, parish hazard levels and
declared business characteristics into likelihood/severity/risk-level
triples, then recommends mitigation strategies for the resolved hazards.
"""

__version__ = "1.0.0"
