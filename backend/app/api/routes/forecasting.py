"""Forecasting Routes — AI-style win-probability prediction for a deal.

Invariants:
    - No deal_id → generic forecast (200), never an error
    - Unknown deal_id → 404
    - Scoring happens in core/forecast_scoring.py; this module only loads and serializes

Design Decisions:
    - Random source is a FastAPI dependency: tests override it with a zero-noise
      generator, FORECAST_SEED pins it for demos
"""

import logging
import random

from fastapi import APIRouter, Depends

from app.api.routes.deals import get_deal_or_404, get_deal_repository
from app.config import get_settings
from app.core.forecast_scoring import score_deal
from app.infrastructure.deal_repository import SqlDealRepository
from app.schemas.forecast import ForecastResponse, PredictRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/forecasting", tags=["forecasting"])


def get_forecast_rng() -> random.Random:
    """Per-request random source for forecast noise."""
    return random.Random(get_settings().forecast_seed)  # nosec B311


@router.post("/predict", response_model=ForecastResponse)
async def predict(
    body: PredictRequest,
    repo: SqlDealRepository = Depends(get_deal_repository),
    rng: random.Random = Depends(get_forecast_rng),
):
    """Score one deal, or return the generic outlook when no deal is given."""
    deal = None
    if body.deal_id is not None:
        deal = await get_deal_or_404(body.deal_id, repo)

    result = score_deal(deal, body.custom_input, rng=rng)
    logger.info(
        f"Forecast generated: probability={result.probability}",
        extra={"deal_id": body.deal_id},
    )
    return result.to_dict()
