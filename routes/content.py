"""
Content store endpoints (V1 API).

Read access to the wizard content plus the two admin writes whose
identifiers need normalizing at entry time:
- PUT /api/v1/parishes/{parish_id}/risks (hazard keys stored as snake_case)
- POST /api/v1/strategies (applicable_risks checked against known hazards)
"""

import json
from datetime import datetime
from typing import Optional, List, Dict, Any

from fastapi import HTTPException, Query
from pydantic import BaseModel

from database.models import (
    HazardType, BusinessType, Parish, ParishRisk,
    RiskMitigationStrategy, ActionStep, RiskMultiplier, StrategyCategory,
)
from bcp_engine.config.hazard_mapping import (
    FIXED_PARISH_COLUMNS, normalize_hazard_key, to_snake_case,
)
from bcp_engine.content import (
    localize, as_list, build_risk_profile, normalize_risk_profile,
)


# ============== Pydantic Models ==============

class ParishRiskUpdate(BaseModel):
    risks: Dict[str, Any]
    updated_by: str = "admin"

class ActionStepCreate(BaseModel):
    phase: str = "immediate"
    action: Dict[str, str]
    timeframe: str = ""
    responsibility: str = ""

class StrategyCreate(BaseModel):
    strategy_id: str
    name: Dict[str, str]
    description: Dict[str, str] = {}
    sme_description: Dict[str, str] = {}
    category: str = "prevention"
    priority: str = "medium"
    applicable_risks: List[str]
    applicable_business_types: Optional[List[str]] = None
    implementation_cost: Optional[str] = None
    cost_estimate_jmd: Optional[str] = None
    roi: Optional[float] = None
    effectiveness: Optional[int] = None
    action_steps: List[ActionStepCreate] = []


STRATEGY_CATEGORIES = tuple(c.value for c in StrategyCategory)
STRATEGY_PRIORITIES = ("critical", "high", "medium", "low")


def _parish_summary(p: Parish) -> dict:
    return {
        "id": p.id,
        "country_code": p.country_code,
        "name": p.name,
        "region": p.region,
        "is_coastal": p.is_coastal,
        "is_urban": p.is_urban,
        "population": p.population,
    }


def _strategy_summary(s: RiskMitigationStrategy, locale: str) -> dict:
    return {
        "strategy_id": s.strategy_id,
        "name": localize(s.name, locale),
        "description": localize(s.description, locale),
        "category": s.category,
        "priority": s.priority,
        "applicable_risks": as_list(s.applicable_risks),
        "applicable_business_types": as_list(s.applicable_business_types) or None,
        "implementation_cost": s.implementation_cost,
        "cost_estimate_jmd": s.cost_estimate_jmd,
        "roi": s.roi,
        "action_steps": [
            {"phase": a.phase, "action": localize(a.action, locale), "timeframe": a.timeframe}
            for a in s.action_steps
        ],
    }


# ============== Route Registration ==============

def register_content_routes(app, get_session_context):
    """Register content store endpoints on the FastAPI app."""

    # ---- Hazards ----

    @app.get("/api/v1/hazards")
    async def list_hazards(locale: str = "en"):
        """List active hazard types."""
        with get_session_context() as session:
            hazards = session.query(HazardType).filter(
                HazardType.is_active.is_(True)
            ).order_by(HazardType.hazard_id).all()
            return {
                "total": len(hazards),
                "hazards": [
                    {
                        "hazard_id": h.hazard_id,
                        "name": localize(h.name, locale),
                        "category": h.category,
                        "default_frequency": h.default_frequency,
                        "default_impact": h.default_impact,
                        "seasonal_pattern": h.seasonal_pattern,
                    }
                    for h in hazards
                ]
            }

    # ---- Business Types ----

    @app.get("/api/v1/business-types")
    async def list_business_types(category: Optional[str] = None, locale: str = "en"):
        """List business types, optionally filtered by category."""
        with get_session_context() as session:
            query = session.query(BusinessType).filter(BusinessType.is_active.is_(True))
            if category:
                query = query.filter(BusinessType.category == category)
            business_types = query.order_by(BusinessType.business_type_id).all()
            return {
                "total": len(business_types),
                "business_types": [
                    {
                        "business_type_id": b.business_type_id,
                        "name": localize(b.name, locale),
                        "category": b.category,
                        "subcategory": b.subcategory,
                    }
                    for b in business_types
                ]
            }

    @app.get("/api/v1/business-types/{business_type_id}")
    async def get_business_type(business_type_id: str, locale: str = "en"):
        """Get a business type with its hazard vulnerability records."""
        with get_session_context() as session:
            b = session.query(BusinessType).filter(
                BusinessType.business_type_id == business_type_id
            ).first()
            if not b:
                raise HTTPException(status_code=404, detail="Business type not found")
            return {
                "business_type_id": b.business_type_id,
                "name": localize(b.name, locale),
                "category": b.category,
                "subcategory": b.subcategory,
                "description": localize(b.description, locale),
                "hazards": [
                    {
                        "hazard_id": h.hazard_id,
                        "risk_level": h.risk_level,
                        "frequency": h.frequency,
                        "impact": h.impact,
                        "notes": h.notes,
                    }
                    for h in b.hazards if h.is_active
                ]
            }

    # ---- Parishes ----

    @app.get("/api/v1/parishes")
    async def list_parishes(country_code: Optional[str] = None):
        """List parishes, optionally for one country."""
        with get_session_context() as session:
            query = session.query(Parish)
            if country_code:
                query = query.filter(Parish.country_code == country_code.upper())
            parishes = query.order_by(Parish.country_code, Parish.name).all()
            return {
                "total": len(parishes),
                "parishes": [_parish_summary(p) for p in parishes]
            }

    @app.get("/api/v1/parishes/{parish_id}")
    async def get_parish(parish_id: int):
        """Get a parish with its uniform hazard risk profile."""
        with get_session_context() as session:
            parish = session.query(Parish).filter(Parish.id == parish_id).first()
            if not parish:
                raise HTTPException(status_code=404, detail="Parish not found")
            result = _parish_summary(parish)
            result["risk_profile"] = build_risk_profile(parish.risk)
            result["last_updated"] = (
                parish.risk.last_updated.isoformat()
                if parish.risk and parish.risk.last_updated else None
            )
            return result

    @app.put("/api/v1/parishes/{parish_id}/risks")
    async def update_parish_risks(parish_id: int, update: ParishRiskUpdate):
        """
        Set hazard levels for a parish.

        Keys are normalized to snake_case; legacy hazards also update their
        fixed column so older readers stay consistent.
        """
        try:
            risks = normalize_risk_profile(update.risks)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        with get_session_context() as session:
            parish = session.query(Parish).filter(Parish.id == parish_id).first()
            if not parish:
                raise HTTPException(status_code=404, detail="Parish not found")
            if parish.risk is None:
                parish.risk = ParishRisk()

            profile = {
                k: v for k, v in build_risk_profile(parish.risk).items()
                if k not in FIXED_PARISH_COLUMNS.values()
            }
            for hazard_id, entry in risks.items():
                column = FIXED_PARISH_COLUMNS.get(normalize_hazard_key(hazard_id))
                if column:
                    setattr(parish.risk, f"{column}_level", entry["level"])
                    setattr(parish.risk, f"{column}_notes", entry["notes"])
                else:
                    profile[hazard_id] = entry

            parish.risk.risk_profile_json = json.dumps(profile, sort_keys=True)
            parish.risk.updated_by = update.updated_by
            parish.risk.last_updated = datetime.utcnow()
            return {
                "message": "Parish risks updated successfully",
                "updated": sorted(risks)
            }

    # ---- Strategies ----

    @app.get("/api/v1/strategies")
    async def list_strategies(
        category: Optional[str] = None,
        hazard: Optional[str] = None,
        locale: str = "en",
        skip: int = Query(0, ge=0),
        limit: int = Query(100, ge=1, le=500)
    ):
        """List active mitigation strategies."""
        with get_session_context() as session:
            query = session.query(RiskMitigationStrategy).filter(
                RiskMitigationStrategy.is_active.is_(True)
            )
            if category:
                query = query.filter(RiskMitigationStrategy.category == category)
            strategies = query.order_by(RiskMitigationStrategy.strategy_id).all()
            if hazard:
                key = normalize_hazard_key(hazard)
                strategies = [
                    s for s in strategies
                    if any(normalize_hazard_key(r) == key for r in as_list(s.applicable_risks))
                ]
            page = strategies[skip:skip + limit]
            return {
                "total": len(strategies),
                "skip": skip,
                "limit": limit,
                "strategies": [_strategy_summary(s, locale) for s in page]
            }

    @app.post("/api/v1/strategies")
    async def create_strategy(strategy: StrategyCreate):
        """Create a strategy; every applicable risk must be a known hazard id."""
        if strategy.category not in STRATEGY_CATEGORIES:
            raise HTTPException(status_code=400, detail=f"Unknown category '{strategy.category}'")
        if strategy.priority not in STRATEGY_PRIORITIES:
            raise HTTPException(status_code=400, detail=f"Unknown priority '{strategy.priority}'")

        with get_session_context() as session:
            known = {h.hazard_id for h in session.query(HazardType).all()}
            applicable = [to_snake_case(r) for r in strategy.applicable_risks]
            unknown = sorted(set(applicable) - known)
            if unknown:
                raise HTTPException(
                    status_code=400,
                    detail=f"Unknown hazard ids in applicable_risks: {', '.join(unknown)}"
                )
            exists = session.query(RiskMitigationStrategy).filter(
                RiskMitigationStrategy.strategy_id == strategy.strategy_id
            ).first()
            if exists:
                raise HTTPException(status_code=409, detail="Strategy already exists")

            db_strategy = RiskMitigationStrategy(
                strategy_id=strategy.strategy_id,
                name=strategy.name,
                description=strategy.description,
                sme_description=strategy.sme_description,
                category=strategy.category,
                priority=strategy.priority,
                applicable_risks=applicable,
                applicable_business_types=strategy.applicable_business_types,
                implementation_cost=strategy.implementation_cost,
                cost_estimate_jmd=strategy.cost_estimate_jmd,
                roi=strategy.roi,
                effectiveness=strategy.effectiveness,
                action_steps=[
                    ActionStep(
                        phase=step.phase,
                        action=step.action,
                        timeframe=step.timeframe,
                        responsibility=step.responsibility,
                        sort_order=i,
                    )
                    for i, step in enumerate(strategy.action_steps)
                ],
            )
            session.add(db_strategy)
            return {"strategy_id": strategy.strategy_id, "message": "Strategy created successfully"}

    # ---- Multipliers ----

    @app.get("/api/v1/multipliers")
    async def list_multipliers():
        """List active characteristic multipliers in application order."""
        with get_session_context() as session:
            multipliers = session.query(RiskMultiplier).filter(
                RiskMultiplier.is_active.is_(True)
            ).order_by(RiskMultiplier.priority.asc()).all()
            return {
                "total": len(multipliers),
                "multipliers": [
                    {
                        "id": m.id,
                        "name": m.name,
                        "characteristic_type": m.characteristic_type,
                        "condition_type": m.condition_type,
                        "threshold_value": m.threshold_value,
                        "min_value": m.min_value,
                        "max_value": m.max_value,
                        "multiplier_factor": m.multiplier_factor,
                        "applicable_hazards": as_list(m.applicable_hazards),
                        "priority": m.priority,
                    }
                    for m in multipliers
                ]
            }
