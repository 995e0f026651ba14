"""Deal Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - DealCreate.name: 1-200 chars, stripped, non-empty
    - value is finite, 0 <= value <= MAX_DEAL_VALUE; probability is an integer 0-100
    - stage must be a DealStage label (Closed Lost accepted)
    - DealUpdate: every field optional, explicit nulls on required columns rejected

Design Decisions:
    - DealStage enum field: Pydantic rejects unknown labels with a 400 before
      anything reaches the repository
    - from_attributes on responses: routes return ORM objects unchanged
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.domain_types import DealStage

_NON_NULLABLE = ("name", "value", "stage", "probability")

MAX_DEAL_VALUE = 1e12


def _strip_name(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("name cannot be empty or whitespace")
    return v


class DealCreate(BaseModel):
    """Deal creation payload."""
    name: str = Field(min_length=1, max_length=200)
    value: float = Field(ge=0, le=MAX_DEAL_VALUE, allow_inf_nan=False)
    stage: DealStage
    probability: int = Field(ge=0, le=100)
    expected_close_date: datetime | None = None
    assigned_user_id: int | None = None
    lead_id: int | None = None
    notes: str | None = Field(None, max_length=5000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_name(v)


class DealUpdate(BaseModel):
    """Partial deal update — only fields present in the body are applied."""
    name: str | None = Field(None, min_length=1, max_length=200)
    value: float | None = Field(
        None, ge=0, le=MAX_DEAL_VALUE, allow_inf_nan=False,
    )
    stage: DealStage | None = None
    probability: int | None = Field(None, ge=0, le=100)
    expected_close_date: datetime | None = None
    assigned_user_id: int | None = None
    lead_id: int | None = None
    notes: str | None = Field(None, max_length=5000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        return _strip_name(v)

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for name in _NON_NULLABLE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields explicitly sent by the client, enums flattened to labels."""
        data = self.model_dump(exclude_unset=True)
        if data.get("stage") is not None:
            data["stage"] = DealStage(data["stage"]).value
        return data


class DealResponse(BaseModel):
    """Deal as returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    value: float
    stage: str
    probability: int
    expected_close_date: datetime | None = None
    assigned_user_id: int | None = None
    lead_id: int | None = None
    notes: str | None = None
    created_at: datetime
    last_updated_at: datetime | None = None


class ActivityResponse(BaseModel):
    """Activity log entry."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    description: str
    deal_id: int | None = None
    lead_id: int | None = None
    user_id: int | None = None
    created_at: datetime


class UserResponse(BaseModel):
    """Sales rep — public fields only."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    full_name: str
    role: str
    avatar: str | None = None
