"""User Routes — sales reps available as deal assignees.

Invariants:
    - Read-only listing, ordered by id
"""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.database import get_db
from app.models.user import User
from app.schemas.deal import UserResponse

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    """List all sales reps."""
    result = await db.execute(select(User).order_by(User.id))
    return result.scalars().all()
