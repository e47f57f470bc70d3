"""
Mission API Routes.

Read access to materialized missions and the step kind catalog.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from dominion.api.deps import Engine
from dominion.core.proposals import DEFAULT_CATALOG
from dominion.core.schemas import MissionRead, StepKindInfo

router = APIRouter(tags=["missions"])


@router.get("/missions/{mission_id}", response_model=MissionRead)
async def get_mission(mission_id: UUID, engine: Engine):
    """Mission with its steps in step_order."""
    mission = await engine.get_mission(mission_id)
    if mission is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Mission {mission_id} not found",
        )
    return mission


@router.get("/catalog/step-kinds", response_model=list[StepKindInfo])
async def list_step_kinds():
    return [
        StepKindInfo(
            kind=spec.kind.value,
            base_cost_usd=spec.base_cost_usd,
            risk_level=spec.risk_level,
            cap_per_day=spec.cap_per_day,
        )
        for spec in DEFAULT_CATALOG
    ]
