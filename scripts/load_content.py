#!/usr/bin/env python3
"""
Load Wizard Content from JSON

Loads hazards, business types (with hazard vulnerability records),
parishes (with risk levels), mitigation strategies and characteristic
multipliers into the content database.

Hazard identifiers are normalized to snake_case on the way in.
"""

import json
import sys
import logging
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from database.connection import init_db, get_session_context
from database.models import (
    HazardType, BusinessType, BusinessTypeHazard, Parish, ParishRisk,
    RiskMitigationStrategy, ActionStep, RiskMultiplier, ConditionType,
)
from bcp_engine.config.hazard_mapping import FIXED_PARISH_COLUMNS, normalize_hazard_key, to_snake_case
from bcp_engine.content import normalize_risk_profile

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_CONTENT_FILE = Path(__file__).parent.parent / "data" / "caribbean_content.json"


def _hazard(data: dict) -> HazardType:
    return HazardType(
        hazard_id=to_snake_case(data['hazard_id']),
        name=data['name'],
        category=data.get('category'),
        default_frequency=data.get('default_frequency'),
        default_impact=data.get('default_impact'),
        seasonal_pattern=data.get('seasonal_pattern'),
        peak_months=data.get('peak_months'),
        is_active=data.get('is_active', True)
    )


def _business_type(session, data: dict) -> BusinessType:
    business_type_id = data['business_type_id']
    business_type = BusinessType(
        business_type_id=business_type_id,
        name=data['name'],
        category=data.get('category'),
        subcategory=data.get('subcategory'),
        description=data.get('description'),
        is_active=data.get('is_active', True)
    )
    session.merge(business_type)

    # Replace vulnerability records wholesale
    session.query(BusinessTypeHazard).filter(
        BusinessTypeHazard.business_type_id == business_type_id
    ).delete()
    for h in data.get('hazards', []):
        session.add(BusinessTypeHazard(
            business_type_id=business_type_id,
            hazard_id=to_snake_case(h['hazard_id']),
            risk_level=h.get('risk_level'),
            frequency=h.get('frequency'),
            impact=h.get('impact'),
            notes=h.get('notes')
        ))
    return business_type


def _parish(session, data: dict) -> Parish:
    country_code = data['country_code'].upper()
    parish = session.query(Parish).filter(
        Parish.country_code == country_code,
        Parish.name == data['name']
    ).first()
    if parish is None:
        parish = Parish(country_code=country_code, name=data['name'])
        session.add(parish)

    parish.region = data.get('region')
    parish.is_coastal = data.get('is_coastal', False)
    parish.is_urban = data.get('is_urban', False)
    parish.population = data.get('population')

    risks = normalize_risk_profile(data.get('risks', {}))
    risk = parish.risk or ParishRisk()
    dynamic = {}
    for hazard_id, entry in risks.items():
        column = FIXED_PARISH_COLUMNS.get(normalize_hazard_key(hazard_id))
        if column:
            setattr(risk, f"{column}_level", entry['level'])
            setattr(risk, f"{column}_notes", entry['notes'])
        else:
            dynamic[hazard_id] = entry
    risk.risk_profile_json = json.dumps(dynamic, sort_keys=True)
    risk.updated_by = 'seed'
    parish.risk = risk
    return parish


def _strategy(session, data: dict) -> RiskMitigationStrategy:
    strategy = RiskMitigationStrategy(
        strategy_id=data['strategy_id'],
        name=data['name'],
        description=data.get('description'),
        sme_description=data.get('sme_description'),
        category=data.get('category', 'prevention'),
        priority=data.get('priority', 'medium'),
        applicable_risks=[to_snake_case(r) for r in data.get('applicable_risks', [])],
        applicable_business_types=data.get('applicable_business_types'),
        implementation_cost=data.get('implementation_cost'),
        cost_estimate_jmd=data.get('cost_estimate_jmd'),
        roi=data.get('roi'),
        effectiveness=data.get('effectiveness'),
        is_active=data.get('is_active', True),
        action_steps=[
            ActionStep(
                phase=step.get('phase'),
                action=step['action'],
                timeframe=step.get('timeframe'),
                responsibility=step.get('responsibility'),
                sort_order=i
            )
            for i, step in enumerate(data.get('action_steps', []))
        ]
    )
    return session.merge(strategy)


def _multiplier(session, data: dict) -> RiskMultiplier:
    multiplier = session.query(RiskMultiplier).filter(
        RiskMultiplier.name == data['name']
    ).first() or RiskMultiplier(name=data['name'])
    multiplier.description = data.get('description')
    multiplier.characteristic_type = data['characteristic_type']
    multiplier.condition_type = ConditionType(data['condition_type']).value
    multiplier.threshold_value = data.get('threshold_value')
    multiplier.min_value = data.get('min_value')
    multiplier.max_value = data.get('max_value')
    multiplier.multiplier_factor = data['multiplier_factor']
    multiplier.applicable_hazards = [to_snake_case(h) for h in data.get('applicable_hazards', [])]
    multiplier.priority = data.get('priority', 0)
    multiplier.reasoning = data.get('reasoning')
    multiplier.is_active = data.get('is_active', True)
    session.add(multiplier)
    return multiplier


LOADERS = [
    # (section, loader, key used in error reports)
    ('hazards', lambda session, d: session.merge(_hazard(d)), 'hazard_id'),
    ('business_types', _business_type, 'business_type_id'),
    ('parishes', _parish, 'name'),
    ('strategies', _strategy, 'strategy_id'),
    ('multipliers', _multiplier, 'name'),
]


def load_content(filepath, database_url: str = None, dry_run: bool = False) -> dict:
    """
    Load wizard content from a JSON file into the database.

    Args:
        filepath: Path to the content JSON file
        database_url: Override for the configured database URL
        dry_run: If True, validate but don't commit

    Returns:
        Count of records loaded per section
    """
    logger.info(f"Loading content from {filepath}")

    with open(filepath, 'r', encoding='utf-8') as f:
        content = json.load(f)

    init_db(database_url)

    counts = {}
    errors = []

    with get_session_context() as session:
        for section, loader, key in LOADERS:
            counts[section] = 0
            for item in content.get(section, []):
                try:
                    loader(session, item)
                    counts[section] += 1
                except Exception as e:
                    errors.append({
                        'section': section,
                        'id': item.get(key, 'UNKNOWN'),
                        'error': str(e)
                    })
                    logger.error(f"Error loading {section} {item.get(key)}: {e}")
            session.flush()
            logger.info(f"Processed {counts[section]} {section}")

        if dry_run:
            logger.info("Dry run - rolling back changes")
            session.rollback()

    # Summary
    logger.info("=" * 50)
    logger.info(f"Load complete: {counts}")

    if errors:
        logger.warning(f"Errors encountered: {len(errors)}")
        for err in errors[:5]:  # Show first 5 errors
            logger.warning(f"  - {err['section']}/{err['id']}: {err['error']}")

    return counts


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description='Load wizard content into database')
    parser.add_argument('filepath', nargs='?', default=str(DEFAULT_CONTENT_FILE),
                        help='Path to content JSON (default: bundled Caribbean content)')
    parser.add_argument('--database-url', help='Override DATABASE_URL')
    parser.add_argument('--dry-run', action='store_true', help='Validate without committing')

    args = parser.parse_args()

    if not Path(args.filepath).exists():
        logger.error(f"File not found: {args.filepath}")
        sys.exit(1)

    counts = load_content(args.filepath, database_url=args.database_url, dry_run=args.dry_run)
    logger.info(f"Successfully loaded {sum(counts.values())} records")


if __name__ == '__main__':
    main()
