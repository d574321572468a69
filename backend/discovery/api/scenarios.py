"""
Scenario API endpoints - Public scenario catalogue.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..config import settings
from ..core.errors import INVALID_SCENARIO
from ..models import ScenarioSummary
from .deps import AppServices, get_services
from .validation import SCENARIO_ID_PATTERN

router = APIRouter(prefix="/scenarios", tags=["scenarios"])


@router.get("", response_model=List[ScenarioSummary])
async def list_scenarios(services: AppServices = Depends(get_services)):
    """List every available scenario (without persona prompts)."""
    scenarios = await services.scenarios.list()
    return [ScenarioSummary.from_scenario(s, settings.default_max_turns) for s in scenarios]


@router.get("/{scenario_id}", response_model=ScenarioSummary)
async def get_scenario(scenario_id: str, services: AppServices = Depends(get_services)):
    """Get one scenario's public details."""
    scenario = None
    if SCENARIO_ID_PATTERN.match(scenario_id):
        scenario = await services.scenarios.get(scenario_id)
    if scenario is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=INVALID_SCENARIO)
    return ScenarioSummary.from_scenario(scenario, settings.default_max_turns)
