"""Forecast & Pipeline Schemas — request/response contracts for analytics endpoints.

Invariants:
    - PredictRequest: deal_id optional (absent → generic forecast), custom_input <= 2000 chars
    - ForecastResponse.probability in [0, 1]
    - Pipeline responses mirror core/pipeline_analytics.py dict keys one-to-one

Design Decisions:
    - All-whitespace custom_input normalized to None: no acknowledgement sentence
      for blank notes. Any other note is kept verbatim, whitespace included
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.deal import DealResponse


class PredictRequest(BaseModel):
    """Forecast request for one deal, or for no deal in particular."""
    deal_id: int | None = Field(None, ge=1)
    custom_input: str | None = Field(None, max_length=2000)

    @field_validator("custom_input")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v


class ForecastFactorResponse(BaseModel):
    name: str
    impact: Literal["positive", "negative", "neutral"]
    weight: float


class ForecastResponse(BaseModel):
    """Scored forecast for a deal."""
    probability: float = Field(ge=0, le=1)
    predicted_close_date: datetime
    recommendation: str
    factors: list[ForecastFactorResponse]


class StageTotal(BaseModel):
    stage: str
    total_value: float
    count: int
    avg_value: int


class StageShare(BaseModel):
    stage: str
    percent_of_total: int


class MonthlyProjection(BaseModel):
    month: str
    label: str
    projected: int
    worst_case: int
    best_case: int


class PipelineAnalyticsResponse(BaseModel):
    """Everything the pipeline analytics tab charts."""
    stage_totals: list[StageTotal]
    conversion: list[StageShare]
    projected_revenue: list[MonthlyProjection]


class StageColumn(BaseModel):
    """One Kanban column."""
    stage: str
    count: int
    deals: list[DealResponse]


class PipelineBoardResponse(BaseModel):
    columns: list[StageColumn]
