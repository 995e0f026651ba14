"""Pipeline Analytics tests — stage buckets, totals, share, monthly projection.

Tests cover:
    - group_by_stage keeps every stage, drops unknown and Closed Lost deals
    - stage_totals on empty input and with mixed deals (half-up averages)
    - Aggregation completeness (counts never exceed input size)
    - stage_conversion empty guard and percentages
    - projected_revenue_by_month buckets, bands, horizon, year rollover, UTC
    - pipeline_summary bundles all three views
"""

import math
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from app.core.domain_types import DealStage, PIPELINE_STAGES
from app.core.pipeline_analytics import (
    group_by_stage, pipeline_summary, projected_revenue_by_month,
    round_half_up, stage_conversion, stage_totals,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@dataclass
class _Deal:
    stage: str | None = "Proposal"
    value: float | None = 10_000.0
    probability: int | None = 50
    expected_close_date: datetime | None = None


def _closing(year: int, month: int, day: int = 15, **fields) -> _Deal:
    return _Deal(
        expected_close_date=datetime(year, month, day, tzinfo=timezone.utc),
        **fields,
    )


# ─── round_half_up ──────────────────────────────────────────────


@pytest.mark.parametrize("x, expected", [
    (2.5, 3), (3.5, 4), (0.49, 0), (12500.5, 12501), (0.0, 0), (-2.5, -3),
])
def test_round_half_up(x, expected):
    assert round_half_up(x) == expected


def test_round_half_up_is_total_over_non_finite():
    assert round_half_up(float("nan")) == 0
    assert round_half_up(float("inf")) == int(sys.float_info.max)
    assert round_half_up(float("-inf")) == -int(sys.float_info.max)


def test_stage_totals_saturates_overflowing_sum():
    totals = stage_totals([_Deal(value=1e308), _Deal(value=1e308)])
    proposal = next(t for t in totals if t["stage"] == "Proposal")
    assert proposal["count"] == 2
    assert math.isfinite(proposal["total_value"])
    assert proposal["avg_value"] > 0


def test_projection_saturates_overflowing_month():
    deals = [
        _closing(2026, 4, value=1e308, probability=100),
        _closing(2026, 4, value=1e308, probability=100),
    ]
    april = projected_revenue_by_month(deals, 2, now=NOW)[1]
    assert april["projected"] == int(sys.float_info.max)
    assert april["best_case"] == int(sys.float_info.max)
    assert 0 < april["worst_case"] < april["projected"]


# ─── group_by_stage ─────────────────────────────────────────────


def test_group_by_stage_has_bucket_per_stage_in_order():
    buckets = group_by_stage([])
    assert list(buckets) == list(PIPELINE_STAGES)
    assert all(b == [] for b in buckets.values())


def test_group_by_stage_drops_unknown_and_closed_lost():
    deals = [
        _Deal(stage="Proposal"),
        _Deal(stage="Closed Lost"),
        _Deal(stage="Discovery"),
        _Deal(stage=None),
        _Deal(stage="Closed Won"),
    ]
    buckets = group_by_stage(deals)
    assert buckets[DealStage.PROPOSAL] == [deals[0]]
    assert buckets[DealStage.CLOSED_WON] == [deals[4]]
    assert sum(len(b) for b in buckets.values()) == 2


def test_group_by_stage_accepts_enum_stage_values():
    deal = _Deal(stage=DealStage.NEGOTIATION)
    assert group_by_stage([deal])[DealStage.NEGOTIATION] == [deal]


def test_group_by_stage_honours_custom_stage_list():
    stages = (DealStage.CLOSED_WON, DealStage.CLOSED_LOST)
    buckets = group_by_stage([_Deal(stage="Closed Lost")], stages)
    assert list(buckets) == list(stages)
    assert len(buckets[DealStage.CLOSED_LOST]) == 1


# ─── stage_totals ───────────────────────────────────────────────


def test_stage_totals_empty_yields_zero_rows():
    totals = stage_totals([])
    assert [t["stage"] for t in totals] == [s.value for s in PIPELINE_STAGES]
    for row in totals:
        assert row["count"] == 0
        assert row["total_value"] == 0
        assert row["avg_value"] == 0


def test_stage_totals_sums_counts_and_averages():
    deals = [
        _Deal(stage="Proposal", value=10_000),
        _Deal(stage="Proposal", value=15_001),
        _Deal(stage="Negotiation", value=40_000),
    ]
    by_stage = {t["stage"]: t for t in stage_totals(deals)}
    assert by_stage["Proposal"]["total_value"] == 25_001
    assert by_stage["Proposal"]["count"] == 2
    assert by_stage["Proposal"]["avg_value"] == 12_501
    assert by_stage["Negotiation"]["avg_value"] == 40_000
    assert by_stage["Qualified Lead"]["avg_value"] == 0


def test_stage_totals_missing_value_counts_as_zero():
    deals = [_Deal(stage="Proposal", value=None), _Deal(stage="Proposal", value=300)]
    row = next(t for t in stage_totals(deals) if t["stage"] == "Proposal")
    assert row["total_value"] == 300
    assert row["count"] == 2
    assert row["avg_value"] == 150


def test_stage_counts_never_exceed_deal_count():
    deals = [_Deal(stage=s) for s in ("Proposal", "Closed Lost", "Other", "Closed Won")]
    assert sum(t["count"] for t in stage_totals(deals)) <= len(deals)
    assert sum(t["count"] for t in stage_totals(deals)) == 2


def test_stage_counts_equal_deal_count_when_all_stages_known():
    deals = [_Deal(stage=s.value) for s in PIPELINE_STAGES for _ in range(2)]
    assert sum(t["count"] for t in stage_totals(deals)) == len(deals)


def test_stage_totals_accepts_generator():
    deals = (_Deal(stage="Proposal") for _ in range(3))
    row = next(t for t in stage_totals(deals) if t["stage"] == "Proposal")
    assert row["count"] == 3


# ─── stage_conversion ───────────────────────────────────────────


def test_stage_conversion_empty_returns_empty_list():
    assert stage_conversion([]) == []


def test_stage_conversion_percentages():
    deals = [
        _Deal(stage="Qualified Lead"),
        _Deal(stage="Proposal"),
        _Deal(stage="Proposal"),
    ]
    shares = {s["stage"]: s["percent_of_total"] for s in stage_conversion(deals)}
    assert shares == {
        "Qualified Lead": 33,
        "Product Demo": 0,
        "Proposal": 67,
        "Negotiation": 0,
        "Closed Won": 0,
    }


def test_stage_conversion_denominator_includes_unknown_stages():
    deals = [_Deal(stage="Qualified Lead"), _Deal(stage="Closed Lost")]
    shares = {s["stage"]: s["percent_of_total"] for s in stage_conversion(deals)}
    assert shares["Qualified Lead"] == 50


def test_stage_conversion_only_unknown_stages_yields_zero_rows():
    shares = stage_conversion([_Deal(stage="Closed Lost")])
    assert len(shares) == len(PIPELINE_STAGES)
    assert all(s["percent_of_total"] == 0 for s in shares)


# ─── projected_revenue_by_month ─────────────────────────────────


def test_next_month_deal_projection_and_bands():
    deals = [_closing(2026, 4, value=10_000, probability=50)]
    rows = projected_revenue_by_month(deals, 6, now=NOW)
    april = rows[1]
    assert april["month"] == "2026-04"
    assert april["projected"] == 5_000
    assert april["worst_case"] == 3_500
    assert april["best_case"] == 6_500
    assert all(r["projected"] == 0 for i, r in enumerate(rows) if i != 1)


def test_projection_covers_current_month_first():
    rows = projected_revenue_by_month([], 6, now=NOW)
    assert [r["month"] for r in rows] == [
        "2026-03", "2026-04", "2026-05", "2026-06", "2026-07", "2026-08",
    ]
    assert [r["label"] for r in rows] == ["Mar", "Apr", "May", "Jun", "Jul", "Aug"]


def test_projection_sums_deals_in_same_month():
    deals = [
        _closing(2026, 3, 1, value=20_000, probability=25),
        _closing(2026, 3, 31, value=1_000, probability=100),
    ]
    current = projected_revenue_by_month(deals, 1, now=NOW)[0]
    assert current["projected"] == 6_000
    assert current["worst_case"] == 4_200
    assert current["best_case"] == 7_800


def test_projection_skips_deals_without_close_date():
    deals = [_Deal(value=99_999, probability=100)]
    assert all(r["projected"] == 0 for r in projected_revenue_by_month(deals, 6, now=NOW))


def test_projection_ignores_past_and_out_of_horizon_months():
    deals = [
        _closing(2026, 2, value=10_000, probability=100),
        _closing(2026, 9, value=10_000, probability=100),
        _closing(2025, 4, value=10_000, probability=100),
    ]
    rows = projected_revenue_by_month(deals, 6, now=NOW)
    assert sum(r["projected"] for r in rows) == 0


def test_projection_rolls_over_year_end():
    now = datetime(2026, 11, 5, tzinfo=timezone.utc)
    deals = [_closing(2027, 1, value=8_000, probability=50)]
    rows = projected_revenue_by_month(deals, 4, now=now)
    assert [r["month"] for r in rows] == ["2026-11", "2026-12", "2027-01", "2027-02"]
    assert [r["label"] for r in rows] == ["Nov", "Dec", "Jan 2027", "Feb 2027"]
    assert rows[2]["projected"] == 4_000


def test_projection_buckets_by_utc_month():
    late_april_eastern = datetime(
        2026, 4, 30, 23, 30, tzinfo=timezone(timedelta(hours=-5)),
    )
    deals = [_Deal(value=1_000, probability=100,
                   expected_close_date=late_april_eastern)]
    rows = {r["month"]: r["projected"] for r in projected_revenue_by_month(deals, 6, now=NOW)}
    assert rows["2026-04"] == 0
    assert rows["2026-05"] == 1_000


def test_projection_missing_probability_contributes_nothing():
    deals = [_closing(2026, 3, value=50_000, probability=None)]
    assert projected_revenue_by_month(deals, 1, now=NOW)[0]["projected"] == 0


@pytest.mark.parametrize("months", [0, -3])
def test_projection_non_positive_horizon_is_empty(months):
    assert projected_revenue_by_month([_closing(2026, 3)], months, now=NOW) == []


def test_projection_bands_round_from_unrounded_total():
    # raw 1.5 → projected 2, worst 1.05 → 1, best 1.95 → 2
    deals = [_closing(2026, 3, value=3, probability=50)]
    row = projected_revenue_by_month(deals, 1, now=NOW)[0]
    assert (row["projected"], row["worst_case"], row["best_case"]) == (2, 1, 2)


# ─── pipeline_summary ───────────────────────────────────────────


def test_pipeline_summary_bundles_views():
    deals = [_closing(2026, 4, stage="Negotiation", value=10_000, probability=50)]
    summary = pipeline_summary(deals, 3, now=NOW)
    assert set(summary) == {"stage_totals", "conversion", "projected_revenue"}
    assert len(summary["stage_totals"]) == 5
    assert len(summary["projected_revenue"]) == 3
    negotiation = next(s for s in summary["conversion"] if s["stage"] == "Negotiation")
    assert negotiation["percent_of_total"] == 100


def test_pipeline_summary_empty_pipeline():
    summary = pipeline_summary([], 2, now=NOW)
    assert summary["conversion"] == []
    assert all(t["count"] == 0 for t in summary["stage_totals"])
    assert [r["projected"] for r in summary["projected_revenue"]] == [0, 0]
