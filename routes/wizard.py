"""
Wizard endpoints.

- POST /api/wizard/get-risk-calculations (per-hazard risk + recommended strategies)
- POST /api/wizard/risk-calculations/export (same calculations as CSV)
"""

import logging
from typing import List, Optional, Dict, Any

import pandas as pd
from fastapi import HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from config.settings import get_settings
from bcp_engine.engine import compute, RiskRequest, BusinessTypeNotFound
from bcp_engine.computation.multipliers import convert_simplified_inputs

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "hazardId", "hazardName", "likelihood", "severity", "riskLevel",
    "confidence", "dataSource", "isPreSelected", "reasoning",
]


# ============== Pydantic Models ==============

class RiskCalculationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hazard_ids: Optional[List[str]] = Field(None, alias="hazardIds")
    business_type_id: Optional[str] = Field(None, alias="businessTypeId")
    country_code: Optional[str] = Field(None, alias="countryCode")
    parish: Optional[str] = None
    near_coast: Optional[bool] = Field(None, alias="nearCoast")
    urban_area: Optional[bool] = Field(None, alias="urbanArea")
    characteristics: Optional[Dict[str, Any]] = None
    simplified_answers: Optional[Dict[str, Any]] = Field(None, alias="simplifiedAnswers")
    locale: Optional[str] = None


def to_engine_request(body: RiskCalculationRequest) -> RiskRequest:
    """Validate the wizard payload and build the engine request."""
    # An empty hazard list is valid and yields an empty result
    if body.hazard_ids is None or not body.business_type_id:
        raise HTTPException(
            status_code=400,
            detail="hazardIds (array) and businessTypeId are required"
        )

    characteristics = dict(body.characteristics or {})
    if body.simplified_answers:
        converted = convert_simplified_inputs(body.simplified_answers)
        converted.update(characteristics)
        characteristics = converted

    return RiskRequest(
        hazard_ids=body.hazard_ids,
        business_type_id=body.business_type_id,
        country_code=body.country_code,
        parish=body.parish,
        near_coast=body.near_coast,
        urban_area=body.urban_area,
        characteristics=characteristics,
        locale=body.locale or get_settings().default_locale,
    )


# ============== Route Registration ==============

def register_wizard_routes(app, get_session_context):
    """Register the wizard risk-calculation endpoints on the FastAPI app."""

    def _run(body: RiskCalculationRequest) -> dict:
        request = to_engine_request(body)
        try:
            with get_session_context() as session:
                return compute(session, request)
        except BusinessTypeNotFound as e:
            logger.info(str(e))
            raise HTTPException(status_code=404, detail="Business type not found")

    @app.post("/api/wizard/get-risk-calculations")
    async def get_risk_calculations(body: RiskCalculationRequest):
        """Risk calculations and grouped strategy recommendations for the wizard."""
        return _run(body)

    @app.post("/api/wizard/risk-calculations/export")
    async def export_risk_calculations(body: RiskCalculationRequest):
        """Risk calculations as a CSV attachment."""
        result = _run(body)
        df = pd.DataFrame(result["riskCalculations"], columns=EXPORT_COLUMNS)
        df["environmentalModifiers"] = [
            "; ".join(c["environmentalModifiers"]) for c in result["riskCalculations"]
        ]
        csv = df.to_csv(index=False)
        return Response(
            content=csv,
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="risk_calculations.csv"'}
        )
