"""Lead Repository — SQLAlchemy implementation of the LeadRepository protocol.

Invariants:
    - Caller owns the transaction: create/update/delete flush, the route commits
    - list_all() is ordered newest first, the order the leads table shows
    - Deleting a lead leaves its deals and activities in place (lead_id SET NULL)
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import LeadId
from app.models.lead import Lead

logger = logging.getLogger(__name__)


class SqlLeadRepository:
    """Lead persistence backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_all(self) -> list[Lead]:
        result = await self.db.execute(
            select(Lead).order_by(Lead.created_at.desc(), Lead.id.desc()),
        )
        return list(result.scalars().all())

    async def get_by_id(self, lead_id: LeadId) -> Lead | None:
        return await self.db.get(Lead, lead_id)

    async def create(self, data: dict) -> Lead:
        lead = Lead(**data)
        self.db.add(lead)
        await self.db.flush()
        logger.info(f"Lead created: {lead.company}", extra={"lead_id": lead.id})
        return lead

    async def update(self, lead: Lead, data: dict) -> Lead:
        for key, val in data.items():
            setattr(lead, key, val)
        await self.db.flush()
        return lead

    async def delete(self, lead: Lead) -> None:
        await self.db.delete(lead)
        await self.db.flush()
        logger.info("Lead deleted", extra={"lead_id": lead.id})
