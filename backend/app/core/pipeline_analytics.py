"""Pipeline Analytics — pure aggregations of deals by stage and by close month.

Invariants:
    - All functions are pure (no IO, no DB); inputs are never mutated
    - Never raises — missing value/probability default to 0, deals outside the
      stage enumeration or without expected_close_date are skipped
    - Sums saturate at the largest float (NaN counts as 0), so every figure
      stays finite and JSON-serializable
    - Zero-count stages yield 0 averages; zero deals yield empty conversion
    - Output order follows the stages argument (defaults to PIPELINE_STAGES)

Design Decisions:
    - Flat dicts as output: serializable as JSON straight into response models
    - Half-up rounding (not Python's banker's rounding): dashboard figures
      round like spreadsheet figures
    - Month buckets compared in UTC
"""

import calendar
import math
import sys
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from app.core.domain_types import DealStage, PIPELINE_STAGES
from app.core.repository_protocols import DealLike

WORST_CASE_FACTOR = 0.7
BEST_CASE_FACTOR = 1.3
DEFAULT_MONTHS_AHEAD = 6

_MAX_FLOAT = sys.float_info.max


def _finite(x: float) -> float:
    if math.isnan(x):
        return 0.0
    return max(-_MAX_FLOAT, min(_MAX_FLOAT, x))


def round_half_up(x: float) -> int:
    """Round to nearest integer, .5 away from zero. Infinities saturate, NaN → 0."""
    x = _finite(x)
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


def _value_of(deal: DealLike) -> float:
    return float(deal.value or 0)


def _probability_of(deal: DealLike) -> float:
    return float(deal.probability or 0)


def _stage_label(stage: str | None) -> str | None:
    if isinstance(stage, DealStage):
        return stage.value
    return stage


def group_by_stage(
    deals: Iterable[DealLike],
    stages: Sequence[DealStage] = PIPELINE_STAGES,
) -> dict[DealStage, list[DealLike]]:
    """Bucket deals by stage. Every stage gets a bucket; unknown stages are dropped."""
    buckets: dict[DealStage, list[DealLike]] = {stage: [] for stage in stages}
    by_label = {stage.value: stage for stage in stages}
    for deal in deals:
        stage = by_label.get(_stage_label(deal.stage))
        if stage is not None:
            buckets[stage].append(deal)
    return buckets


def stage_totals(
    deals: Iterable[DealLike],
    stages: Sequence[DealStage] = PIPELINE_STAGES,
) -> list[dict]:
    """Per-stage total value, count and rounded average value."""
    totals = []
    for stage, stage_deals in group_by_stage(deals, stages).items():
        total_value = _finite(sum(_value_of(d) for d in stage_deals))
        count = len(stage_deals)
        totals.append({
            "stage": stage.value,
            "total_value": total_value,
            "count": count,
            "avg_value": round_half_up(total_value / count) if count else 0,
        })
    return totals


def stage_conversion(
    deals: Iterable[DealLike],
    stages: Sequence[DealStage] = PIPELINE_STAGES,
) -> list[dict]:
    """Share of all deals sitting in each stage, as a whole percentage."""
    deals = list(deals)
    if not deals:
        return []
    total = len(deals)
    return [
        {
            "stage": stage.value,
            "percent_of_total": round_half_up(100 * len(stage_deals) / total),
        }
        for stage, stage_deals in group_by_stage(deals, stages).items()
    ]


def _month_sequence(start: datetime, months_ahead: int) -> list[tuple[int, int]]:
    months = []
    for offset in range(months_ahead):
        index = start.month - 1 + offset
        months.append((start.year + index // 12, index % 12 + 1))
    return months


def _close_month(deal: DealLike) -> tuple[int, int] | None:
    closes = deal.expected_close_date
    if closes is None:
        return None
    if closes.tzinfo is not None:
        closes = closes.astimezone(timezone.utc)
    return closes.year, closes.month


def projected_revenue_by_month(
    deals: Iterable[DealLike],
    months_ahead: int = DEFAULT_MONTHS_AHEAD,
    *,
    now: datetime | None = None,
) -> list[dict]:
    """Probability-weighted revenue for the current and following months.

    projected = Σ value × probability/100 over deals closing that month;
    worst/best case bands are 70% / 130% of the unrounded projection.
    """
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)

    weighted: dict[tuple[int, int], float] = {}
    for deal in deals:
        month = _close_month(deal)
        if month is None:
            continue
        weighted[month] = (
            weighted.get(month, 0.0)
            + _value_of(deal) * _probability_of(deal) / 100
        )

    projection = []
    for year, month in _month_sequence(moment, months_ahead):
        raw = _finite(weighted.get((year, month), 0.0))
        label = calendar.month_abbr[month]
        if year != moment.year:
            label = f"{label} {year}"
        projection.append({
            "month": f"{year:04d}-{month:02d}",
            "label": label,
            "projected": round_half_up(raw),
            "worst_case": round_half_up(raw * WORST_CASE_FACTOR),
            "best_case": round_half_up(raw * BEST_CASE_FACTOR),
        })
    return projection


def pipeline_summary(
    deals: Iterable[DealLike],
    months_ahead: int = DEFAULT_MONTHS_AHEAD,
    *,
    now: datetime | None = None,
    stages: Sequence[DealStage] = PIPELINE_STAGES,
) -> dict:
    """Everything the pipeline analytics view charts."""
    deals = list(deals)
    return {
        "stage_totals": stage_totals(deals, stages),
        "conversion": stage_conversion(deals, stages),
        "projected_revenue": projected_revenue_by_month(
            deals, months_ahead, now=now,
        ),
    }
