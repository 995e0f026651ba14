"""Deal Routes — CRUD over deals plus their activity log.

Invariants:
    - Payloads validated by Pydantic before reaching the handler (400 on failure)
    - Creating a deal writes a deal_created activity in the same transaction
    - A PATCH that changes stage writes a deal_stage_changed activity
    - Unknown deal id → 404 with the RESOURCE_NOT_FOUND envelope
    - Dangling assigned_user_id or lead_id → 404 before anything is written

Design Decisions:
    - get_deal_or_404 exported for reuse by forecasting routes
    - Repository flushes, route commits: one commit per request
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ActivityType, DealId, parse_stage
from app.core.errors import ErrorContext, InvalidStageError, ResourceNotFoundError
from app.infrastructure.database import get_db
from app.infrastructure.deal_repository import SqlDealRepository
from app.infrastructure.references import ensure_references_exist
from app.models.deal import Deal
from app.schemas.deal import (
    ActivityResponse, DealCreate, DealResponse, DealUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/deals", tags=["deals"])


def get_deal_repository(db: AsyncSession = Depends(get_db)) -> SqlDealRepository:
    return SqlDealRepository(db)


async def get_deal_or_404(deal_id: int, repo: SqlDealRepository) -> Deal:
    """Get deal or raise 404. Exported for forecasting."""
    deal = await repo.get_by_id(DealId(deal_id))
    if not deal:
        raise HTTPException(
            status.HTTP_404_NOT_FOUND,
            detail=ResourceNotFoundError(
                "Deal", str(deal_id), ErrorContext(deal_id=deal_id),
            ).to_response(),
        )
    return deal


@router.get("", response_model=list[DealResponse])
async def list_deals(repo: SqlDealRepository = Depends(get_deal_repository)):
    """List all deals."""
    return await repo.list_all()


@router.get("/stage/{stage}", response_model=list[DealResponse])
async def list_deals_by_stage(
    stage: str, repo: SqlDealRepository = Depends(get_deal_repository),
):
    """List deals in one pipeline stage."""
    parsed = parse_stage(stage)
    if parsed is None:
        raise InvalidStageError(stage)
    return await repo.list_by_stage(parsed.value)


@router.get("/{deal_id}", response_model=DealResponse)
async def get_deal(
    deal_id: int, repo: SqlDealRepository = Depends(get_deal_repository),
):
    """Get one deal."""
    return await get_deal_or_404(deal_id, repo)


@router.post(
    "", response_model=DealResponse, status_code=status.HTTP_201_CREATED,
)
async def create_deal(
    body: DealCreate,
    repo: SqlDealRepository = Depends(get_deal_repository),
):
    """Create a deal and log it."""
    await ensure_references_exist(
        repo.db, assigned_user_id=body.assigned_user_id, lead_id=body.lead_id,
    )
    data = body.model_dump()
    data["stage"] = body.stage.value
    deal = await repo.create(data)
    await repo.record_activity(
        ActivityType.DEAL_CREATED,
        f"New deal created: {deal.name} ({deal.value})",
        deal_id=DealId(deal.id),
        lead_id=deal.lead_id,
        user_id=deal.assigned_user_id,
    )
    await repo.db.commit()
    return deal


@router.patch("/{deal_id}", response_model=DealResponse)
async def update_deal(
    deal_id: int,
    body: DealUpdate,
    repo: SqlDealRepository = Depends(get_deal_repository),
):
    """Apply a partial update; stage changes are logged."""
    deal = await get_deal_or_404(deal_id, repo)
    changes = body.changes()
    await ensure_references_exist(
        repo.db,
        assigned_user_id=changes.get("assigned_user_id"),
        lead_id=changes.get("lead_id"),
    )
    previous_stage = deal.stage
    deal = await repo.update(deal, changes)

    new_stage = changes.get("stage")
    if new_stage and new_stage != previous_stage:
        await repo.record_activity(
            ActivityType.DEAL_STAGE_CHANGED,
            f"Deal stage changed from {previous_stage} to {new_stage}",
            deal_id=DealId(deal.id),
            lead_id=deal.lead_id,
            user_id=deal.assigned_user_id,
        )
    await repo.db.commit()
    return deal


@router.delete("/{deal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deal(
    deal_id: int, repo: SqlDealRepository = Depends(get_deal_repository),
):
    """Delete a deal and its activity log."""
    deal = await get_deal_or_404(deal_id, repo)
    await repo.delete(deal)
    await repo.db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{deal_id}/activities", response_model=list[ActivityResponse])
async def list_deal_activities(
    deal_id: int, repo: SqlDealRepository = Depends(get_deal_repository),
):
    """Activity log for one deal, oldest first."""
    await get_deal_or_404(deal_id, repo)
    return await repo.list_activities(DealId(deal_id))
