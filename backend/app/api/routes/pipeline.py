"""Pipeline Routes — stage analytics, revenue projection, and the Kanban board.

Invariants:
    - Read-only: no route here writes to the database
    - Aggregation happens in core/pipeline_analytics.py over the full deal list
    - months defaults to settings.projection_months

Design Decisions:
    - Deals loaded once per request, then every chart is derived in memory
      (pipeline sizes are small enough that SQL GROUP BY buys nothing)
"""

import logging

from fastapi import APIRouter, Depends, Query

from app.api.routes.deals import get_deal_repository
from app.config import get_settings
from app.core.pipeline_analytics import group_by_stage, pipeline_summary
from app.infrastructure.deal_repository import SqlDealRepository
from app.schemas.deal import DealResponse
from app.schemas.forecast import PipelineAnalyticsResponse, PipelineBoardResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/pipeline", tags=["pipeline"])


@router.get("/analytics", response_model=PipelineAnalyticsResponse)
async def pipeline_analytics(
    months: int | None = Query(None, ge=1, le=24),
    repo: SqlDealRepository = Depends(get_deal_repository),
):
    """Stage totals, stage share and projected monthly revenue."""
    months_ahead = months or get_settings().projection_months
    deals = await repo.list_all()
    logger.debug(
        f"Aggregating {len(deals)} deals",
        extra={"months_ahead": months_ahead},
    )
    return pipeline_summary(deals, months_ahead)


@router.get("/board", response_model=PipelineBoardResponse)
async def pipeline_board(
    repo: SqlDealRepository = Depends(get_deal_repository),
):
    """Deals grouped into one column per active pipeline stage."""
    deals = await repo.list_all()
    return {
        "columns": [
            {
                "stage": stage.value,
                "count": len(stage_deals),
                "deals": [DealResponse.model_validate(d) for d in stage_deals],
            }
            for stage, stage_deals in group_by_stage(deals).items()
        ],
    }
