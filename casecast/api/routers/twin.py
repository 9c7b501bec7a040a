"""
Digital Twin API.

POST /api/v1/twin/simulate — heuristic success estimate, blended with the
                             external generator when one is configured
"""

from fastapi import APIRouter

from casecast.config import settings
from casecast.schemas.twin import TwinAnalysis, TwinSimulationInput
from casecast.services.registry import get_services

router = APIRouter(prefix=f"{settings.api_prefix}/twin", tags=["twin"])

_services = get_services()


@router.post("/simulate", response_model=TwinAnalysis)
async def simulate_twin(body: TwinSimulationInput):
    """Unknown scenario categories are rejected with 400 before scoring."""
    return await _services.blend_orchestrator.run(body)
