"""Reference Checks — verify that foreign keys in a request point at real rows.

Invariants:
    - A dangling assigned_user_id or lead_id raises ResourceNotFoundError (404)
      before any write is flushed
    - None means "no reference" and is always accepted
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ErrorContext, ResourceNotFoundError
from app.models.lead import Lead
from app.models.user import User


async def ensure_references_exist(
    db: AsyncSession,
    *,
    assigned_user_id: int | None = None,
    lead_id: int | None = None,
) -> None:
    if assigned_user_id is not None and await db.get(User, assigned_user_id) is None:
        raise ResourceNotFoundError(
            "User", str(assigned_user_id),
            ErrorContext(operation="resolve_assigned_user"),
        )
    if lead_id is not None and await db.get(Lead, lead_id) is None:
        raise ResourceNotFoundError(
            "Lead", str(lead_id), ErrorContext(operation="resolve_lead"),
        )
