"""Deal ORM — persists sales opportunities moving through the pipeline.

Invariants:
    - id is an autoincrement integer primary key
    - value is non-negative; probability is an integer percent 0–100
      (enforced by schemas/deal.py at the API boundary)
    - stage stores a DealStage label as plain text
    - expected_close_date, assigned_user_id, lead_id are optional (NULL, never sentinels)

Design Decisions:
    - stage as String, not a DB enum: unknown labels from legacy rows must
      load cleanly so the aggregator can skip them
    - last_updated_at stays NULL until the first PATCH
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, Float, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Deal(Base):
    """Deal entity — one sales opportunity."""
    __tablename__ = "deals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    stage: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    probability: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    expected_close_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    assigned_user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    lead_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    last_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    # Relationships
    activities: Mapped[list["Activity"]] = relationship(
        "Activity", back_populates="deal",
        cascade="all, delete-orphan", lazy="selectin",
    )
