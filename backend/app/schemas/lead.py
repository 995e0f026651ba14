"""Lead Schemas — Pydantic models for the leads endpoints.

Invariants:
    - name and company 1-200 chars, source 1-100, all stripped and non-empty
    - email must be a syntactically valid address
    - status is free text (default "new"); score, when given, is 1-100
    - LeadUpdate: every field optional, explicit nulls on required columns rejected
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

_NON_NULLABLE = ("name", "company", "email", "status", "source")
_STRIPPED = ("name", "company", "status", "source")


def _strip_required(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("cannot be empty or whitespace")
    return v


class LeadCreate(BaseModel):
    """Lead creation payload."""
    name: str = Field(min_length=1, max_length=200)
    company: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone: str | None = Field(None, max_length=50)
    status: str = Field("new", min_length=1, max_length=30)
    source: str = Field(min_length=1, max_length=100)
    score: int | None = Field(None, ge=1, le=100)
    assigned_user_id: int | None = None
    last_contacted_at: datetime | None = None
    notes: str | None = Field(None, max_length=5000)

    @field_validator(*_STRIPPED)
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _strip_required(v)


class LeadUpdate(BaseModel):
    """Partial lead update — only fields present in the body are applied."""
    name: str | None = Field(None, min_length=1, max_length=200)
    company: str | None = Field(None, min_length=1, max_length=200)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    status: str | None = Field(None, min_length=1, max_length=30)
    source: str | None = Field(None, min_length=1, max_length=100)
    score: int | None = Field(None, ge=1, le=100)
    assigned_user_id: int | None = None
    last_contacted_at: datetime | None = None
    notes: str | None = Field(None, max_length=5000)

    @field_validator(*_STRIPPED)
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return _strip_required(v)

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for name in _NON_NULLABLE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class LeadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    company: str
    email: str
    phone: str | None = None
    status: str
    source: str
    score: int | None = None
    assigned_user_id: int | None = None
    last_contacted_at: datetime | None = None
    notes: str | None = None
    created_at: datetime
