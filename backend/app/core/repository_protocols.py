"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE the deals are never async themselves —
      the shell loads deals, then hands plain objects to the core
"""

from datetime import datetime
from typing import Protocol

from app.core.domain_types import ActivityType, DealId, LeadId


class DealLike(Protocol):
    """Structural contract for deals handed to the scorer and aggregator.

    The ORM Deal satisfies it; tests use lightweight stand-ins.
    Any field may be None on degenerate records — the core substitutes defaults.
    """
    value: float | None
    stage: str | None
    probability: int | None
    expected_close_date: datetime | None


class DealRepository(Protocol):
    """Contract for deal persistence — implemented by shell."""
    async def list_all(self) -> list: ...
    async def get_by_id(self, deal_id: DealId) -> object | None: ...
    async def list_by_stage(self, stage: str) -> list: ...
    async def create(self, data: dict) -> object: ...
    async def update(self, deal: object, data: dict) -> object: ...
    async def delete(self, deal: object) -> None: ...
    async def record_activity(
        self,
        activity_type: ActivityType,
        description: str,
        deal_id: DealId | None = None,
        lead_id: int | None = None,
        user_id: int | None = None,
    ) -> None: ...


class LeadRepository(Protocol):
    """Contract for lead persistence — implemented by shell."""
    async def list_all(self) -> list: ...
    async def get_by_id(self, lead_id: LeadId) -> object | None: ...
    async def create(self, data: dict) -> object: ...
    async def update(self, lead: object, data: dict) -> object: ...
    async def delete(self, lead: object) -> None: ...
