"""Forecast Scoring — heuristic win-probability adjustment for a single deal.

Invariants:
    - All functions are pure (no IO, no async, no DB); the only nondeterminism
      is rng.uniform() in score_deal, and rng is injectable
    - adjusted_probability() and final probability are clamped to [0, 1]
    - Final probability rounded to 2 decimals
    - Absent deal is a valid input → generic forecast, never an error
    - Naive datetimes are interpreted as UTC

Design Decisions:
    - Effects computed separately (DealEffects) so tests can pin each term
      without fighting the noise draw
    - Stage effects keyed by DealStage: unknown labels fall through to the
      lowest tier instead of raising
    - rng defaults to a fresh random.Random(): production stays non-deterministic,
      tests pass a seeded or zero-noise generator
"""

import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from app.core.domain_types import DealStage, FactorImpact, parse_stage
from app.core.repository_protocols import DealLike

NOISE_AMPLITUDE = 0.05
DEFAULT_DAYS_TO_CLOSE = 30
MAX_CLOSE_DELAY_DAYS = 14
FACTOR_WEIGHT_SCALE = 5

_STAGE_EFFECTS: dict[DealStage, float] = {
    DealStage.CLOSED_WON: 0.30,
    DealStage.NEGOTIATION: 0.15,
    DealStage.PROPOSAL: 0.05,
    DealStage.PRODUCT_DEMO: 0.0,
}
_EARLY_STAGE_EFFECT = -0.10

_LOW_TIER_ADVICE = (
    "Consider offering additional incentives or discounts to improve close chances."
)
_MID_TIER_ADVICE = (
    "Focus on addressing the client's specific pain points and emphasize ROI."
)
_HIGH_TIER_ADVICE = (
    "Maintain regular contact and start preparing implementation plans "
    "to ensure a smooth transition."
)
_GENERIC_ADVICE = (
    "Focus on building relationship with the decision makers and "
    "addressing any concerns about pricing."
)


@dataclass(frozen=True)
class ForecastFactor:
    """One weighted contributor to a forecast."""
    name: str
    impact: FactorImpact
    weight: float

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "impact": self.impact.value,
            "weight": self.weight,
        }


@dataclass(frozen=True)
class ForecastResult:
    """Derived forecast bundle — never persisted."""
    probability: float
    predicted_close_date: datetime
    recommendation: str
    factors: list[ForecastFactor] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "probability": self.probability,
            "predicted_close_date": self.predicted_close_date.isoformat(),
            "recommendation": self.recommendation,
            "factors": [f.to_dict() for f in self.factors],
        }


@dataclass(frozen=True)
class DealEffects:
    """The three additive adjustments applied to a deal's base probability."""
    timing: float
    stage: float
    value: float

    @property
    def total(self) -> float:
        return self.timing + self.stage + self.value


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _now_utc(now: datetime | None) -> datetime:
    return _as_utc(now) if now is not None else datetime.now(timezone.utc)


def _clamp(x: float, low: float = 0.0, high: float = 1.0) -> float:
    return min(high, max(low, x))


def days_until_close(
    expected_close_date: datetime | None, now: datetime,
) -> int:
    """Whole days until expected close, floored at 0. No date → 30."""
    if expected_close_date is None:
        return DEFAULT_DAYS_TO_CLOSE
    delta = _as_utc(expected_close_date) - _as_utc(now)
    return max(0, delta // timedelta(days=1))


def timing_effect(days: int) -> float:
    """Deals closing within a week gain certainty; distant ones lose it."""
    if days < 7:
        return 0.10
    if days > 30:
        return -0.05
    return 0.0


def stage_effect(stage: str | None) -> float:
    """Later stages raise probability; early or unknown stages lower it."""
    parsed = parse_stage(stage)
    if parsed is None:
        return _EARLY_STAGE_EFFECT
    return _STAGE_EFFECTS.get(parsed, _EARLY_STAGE_EFFECT)


def value_effect(value: float | None) -> float:
    """Large deals are slightly harder to close, small ones slightly easier."""
    amount = value or 0
    if amount > 50_000:
        return -0.05
    if amount < 10_000:
        return 0.05
    return 0.0


def compute_effects(deal: DealLike, now: datetime | None = None) -> DealEffects:
    """Timing, stage and value effects for a deal at the given moment."""
    moment = _now_utc(now)
    return DealEffects(
        timing=timing_effect(days_until_close(deal.expected_close_date, moment)),
        stage=stage_effect(deal.stage),
        value=value_effect(deal.value),
    )


def adjusted_probability(deal: DealLike, now: datetime | None = None) -> float:
    """Base probability plus all effects, clamped to [0, 1]. Deterministic."""
    base = (deal.probability or 0) / 100
    return _clamp(base + compute_effects(deal, now).total)


def _impact_of(effect: float) -> FactorImpact:
    if effect > 0:
        return FactorImpact.POSITIVE
    if effect < 0:
        return FactorImpact.NEGATIVE
    return FactorImpact.NEUTRAL


def _factor(name: str, effect: float) -> ForecastFactor:
    return ForecastFactor(
        name=name,
        impact=_impact_of(effect),
        weight=abs(effect) * FACTOR_WEIGHT_SCALE,
    )


def build_recommendation(probability: float, custom_note: str | None = None) -> str:
    """Tiered advice by final probability, acknowledging a custom note verbatim."""
    if probability < 0.4:
        text = _LOW_TIER_ADVICE
    elif probability < 0.7:
        text = _MID_TIER_ADVICE
    else:
        text = _HIGH_TIER_ADVICE
    if custom_note:
        text += (
            f' Regarding "{custom_note}": This is an important consideration '
            "that should be addressed in your next client meeting."
        )
    return text


def generic_forecast(now: datetime | None = None) -> ForecastResult:
    """Fallback when no specific deal is analysed."""
    return ForecastResult(
        probability=0.75,
        predicted_close_date=_now_utc(now) + timedelta(days=14),
        recommendation=_GENERIC_ADVICE,
        factors=[
            ForecastFactor("Market conditions", FactorImpact.POSITIVE, 0.7),
            ForecastFactor("Competition", FactorImpact.NEGATIVE, 0.3),
            ForecastFactor("Budget alignment", FactorImpact.POSITIVE, 0.8),
        ],
    )


def score_deal(
    deal: DealLike | None,
    custom_note: str | None = None,
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> ForecastResult:
    """Score a deal's likelihood of closing.

    Probability = clamp(clamp(base + effects) + noise), noise drawn uniformly
    from [-0.05, 0.05]. Predicted close slips up to 14 days for low-probability
    deals; deals without an expected close date default to now + 30 days.
    """
    moment = _now_utc(now)
    if deal is None:
        return generic_forecast(moment)

    effects = compute_effects(deal, moment)
    adjusted = adjusted_probability(deal, moment)
    noise = (rng or random.Random()).uniform(-NOISE_AMPLITUDE, NOISE_AMPLITUDE)  # nosec B311
    probability = round(_clamp(adjusted + noise), 2)

    if deal.expected_close_date is not None:
        delay = timedelta(days=(1 - probability) * MAX_CLOSE_DELAY_DAYS)
        predicted = _as_utc(deal.expected_close_date) + delay
    else:
        predicted = moment + timedelta(days=DEFAULT_DAYS_TO_CLOSE)

    return ForecastResult(
        probability=probability,
        predicted_close_date=predicted,
        recommendation=build_recommendation(probability, custom_note),
        factors=[
            _factor("Deal stage", effects.stage),
            _factor("Timeline", effects.timing),
            _factor("Deal size", effects.value),
        ],
    )
