"""Activity Log — append and read timeline entries for deals and leads.

Invariants:
    - Entries are only appended, never edited
    - Caller owns the transaction: record_activity flushes, the route commits
    - Reads are ordered oldest first (created_at, id)
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ActivityType
from app.models.activity import Activity

logger = logging.getLogger(__name__)


async def record_activity(
    db: AsyncSession,
    activity_type: ActivityType,
    description: str,
    *,
    deal_id: int | None = None,
    lead_id: int | None = None,
    user_id: int | None = None,
) -> Activity:
    activity = Activity(
        type=activity_type.value,
        description=description,
        deal_id=deal_id,
        lead_id=lead_id,
        user_id=user_id,
    )
    db.add(activity)
    await db.flush()
    logger.info(
        description,
        extra={
            "deal_id": deal_id,
            "lead_id": lead_id,
            "activity_type": activity_type.value,
        },
    )
    return activity


async def list_activities(
    db: AsyncSession, *, deal_id: int | None = None, lead_id: int | None = None,
) -> list[Activity]:
    """Entries for one deal or one lead."""
    query = select(Activity).order_by(Activity.created_at, Activity.id)
    if deal_id is not None:
        query = query.where(Activity.deal_id == deal_id)
    if lead_id is not None:
        query = query.where(Activity.lead_id == lead_id)
    result = await db.execute(query)
    return list(result.scalars().all())
