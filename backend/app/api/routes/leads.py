"""Lead Routes — CRUD over leads plus their activity log.

Invariants:
    - Creating a lead writes a lead_created activity in the same transaction
    - A PATCH that changes status writes a lead_status_changed activity
    - Unknown lead id → 404; dangling assigned_user_id → 404 before any write

Design Decisions:
    - Mirrors routes/deals.py: repository flushes, route commits once
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ActivityType, LeadId
from app.core.errors import ErrorContext, ResourceNotFoundError
from app.infrastructure import activity_log
from app.infrastructure.database import get_db
from app.infrastructure.lead_repository import SqlLeadRepository
from app.infrastructure.references import ensure_references_exist
from app.models.lead import Lead
from app.schemas.deal import ActivityResponse
from app.schemas.lead import LeadCreate, LeadResponse, LeadUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/leads", tags=["leads"])


def get_lead_repository(db: AsyncSession = Depends(get_db)) -> SqlLeadRepository:
    return SqlLeadRepository(db)


async def get_lead_or_404(lead_id: int, repo: SqlLeadRepository) -> Lead:
    lead = await repo.get_by_id(LeadId(lead_id))
    if not lead:
        raise HTTPException(
            status.HTTP_404_NOT_FOUND,
            detail=ResourceNotFoundError(
                "Lead", str(lead_id), ErrorContext(operation="get_lead"),
            ).to_response(),
        )
    return lead


@router.get("", response_model=list[LeadResponse])
async def list_leads(repo: SqlLeadRepository = Depends(get_lead_repository)):
    return await repo.list_all()


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: int, repo: SqlLeadRepository = Depends(get_lead_repository),
):
    return await get_lead_or_404(lead_id, repo)


@router.post(
    "", response_model=LeadResponse, status_code=status.HTTP_201_CREATED,
)
async def create_lead(
    body: LeadCreate,
    repo: SqlLeadRepository = Depends(get_lead_repository),
):
    """Create a lead and log it."""
    await ensure_references_exist(repo.db, assigned_user_id=body.assigned_user_id)
    lead = await repo.create(body.model_dump())
    await activity_log.record_activity(
        repo.db,
        ActivityType.LEAD_CREATED,
        f"New lead created: {lead.name} from {lead.company}",
        lead_id=lead.id,
        user_id=lead.assigned_user_id,
    )
    await repo.db.commit()
    return lead


@router.patch("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: int,
    body: LeadUpdate,
    repo: SqlLeadRepository = Depends(get_lead_repository),
):
    """Apply a partial update; status changes are logged."""
    lead = await get_lead_or_404(lead_id, repo)
    changes = body.changes()
    await ensure_references_exist(
        repo.db, assigned_user_id=changes.get("assigned_user_id"),
    )
    previous_status = lead.status
    lead = await repo.update(lead, changes)

    new_status = changes.get("status")
    if new_status and new_status != previous_status:
        await activity_log.record_activity(
            repo.db,
            ActivityType.LEAD_STATUS_CHANGED,
            f"Lead status changed from {previous_status} to {new_status}",
            lead_id=lead.id,
            user_id=lead.assigned_user_id,
        )
    await repo.db.commit()
    return lead


@router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lead(
    lead_id: int, repo: SqlLeadRepository = Depends(get_lead_repository),
):
    """Delete a lead; its deals and activities keep existing without it."""
    lead = await get_lead_or_404(lead_id, repo)
    await repo.delete(lead)
    await repo.db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{lead_id}/activities", response_model=list[ActivityResponse])
async def list_lead_activities(
    lead_id: int, repo: SqlLeadRepository = Depends(get_lead_repository),
):
    """Activity log for one lead, oldest first."""
    await get_lead_or_404(lead_id, repo)
    return await activity_log.list_activities(repo.db, lead_id=lead_id)
