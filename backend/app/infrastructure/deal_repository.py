"""Deal Repository — SQLAlchemy implementation of the DealRepository protocol.

Invariants:
    - Caller owns the transaction: create/update/delete flush, the route commits
    - update() stamps last_updated_at; create() never does
    - list_all() ordering is stable (created_at, id) so charts don't reshuffle

Design Decisions:
    - Thin wrapper over AsyncSession, constructed per request from get_db
    - Returns ORM objects: they satisfy core's DealLike protocol directly
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ActivityType, DealId
from app.infrastructure import activity_log
from app.models.activity import Activity
from app.models.deal import Deal

logger = logging.getLogger(__name__)


class SqlDealRepository:
    """Deal persistence backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_all(self) -> list[Deal]:
        result = await self.db.execute(
            select(Deal).order_by(Deal.created_at, Deal.id),
        )
        return list(result.scalars().all())

    async def get_by_id(self, deal_id: DealId) -> Deal | None:
        result = await self.db.execute(select(Deal).where(Deal.id == deal_id))
        return result.scalar_one_or_none()

    async def list_by_stage(self, stage: str) -> list[Deal]:
        result = await self.db.execute(
            select(Deal)
            .where(Deal.stage == stage)
            .order_by(Deal.created_at, Deal.id),
        )
        return list(result.scalars().all())

    async def create(self, data: dict) -> Deal:
        deal = Deal(**data)
        self.db.add(deal)
        await self.db.flush()
        logger.info(
            f"Deal created: {deal.name}",
            extra={"deal_id": deal.id, "stage": deal.stage},
        )
        return deal

    async def update(self, deal: Deal, data: dict) -> Deal:
        for key, val in data.items():
            setattr(deal, key, val)
        deal.last_updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        return deal

    async def delete(self, deal: Deal) -> None:
        await self.db.delete(deal)
        await self.db.flush()
        logger.info("Deal deleted", extra={"deal_id": deal.id})

    async def record_activity(
        self,
        activity_type: ActivityType,
        description: str,
        deal_id: DealId | None = None,
        lead_id: int | None = None,
        user_id: int | None = None,
    ) -> Activity:
        return await activity_log.record_activity(
            self.db, activity_type, description,
            deal_id=deal_id, lead_id=lead_id, user_id=user_id,
        )

    async def list_activities(self, deal_id: DealId) -> list[Activity]:
        return await activity_log.list_activities(self.db, deal_id=deal_id)
