"""
Scenario Variable API.

GET  /api/v1/scenarios                       — registered categories with definitions
GET  /api/v1/scenarios/{category}/defaults   — default value map
POST /api/v1/scenarios/{category}/sanitize   — coerce a raw value map
"""

from typing import Any, Optional

from fastapi import APIRouter, Body

from casecast.config import settings
from casecast.exceptions import InputValidationError
from casecast.scenarios.registry import ScenarioCategory, ScenarioValues
from casecast.services.registry import get_services

router = APIRouter(prefix=f"{settings.api_prefix}/scenarios", tags=["scenarios"])

_services = get_services()


def _require_category(category: str) -> None:
    if category not in _services.scenario_registry:
        raise InputValidationError(
            f"Unknown scenario category: {category}",
            field="category",
            details={"category": category},
        )


@router.get("", response_model=list[ScenarioCategory])
async def list_categories():
    return _services.scenario_registry.categories()


@router.get("/{category}/defaults", response_model=ScenarioValues)
async def category_defaults(category: str):
    _require_category(category)
    return _services.scenario_registry.defaults(category)


@router.post("/{category}/sanitize", response_model=ScenarioValues)
async def sanitize_values(category: str, raw: Optional[dict[str, Any]] = Body(default=None)):
    """Always returns exactly the category's variable ids."""
    _require_category(category)
    return _services.scenario_registry.sanitize(category, raw)
