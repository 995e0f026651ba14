"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - DealStage is the single source of stage labels (scorer, aggregator, schemas)
    - PIPELINE_STAGES is ordered: Qualified Lead → ... → Closed Won
    - CLOSED_LOST is a valid stored stage but never part of PIPELINE_STAGES

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders, compare equal to raw labels
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

DealId = NewType("DealId", int)
UserId = NewType("UserId", int)
LeadId = NewType("LeadId", int)


# ─── Value Types ─────────────────────────────────────────────────

WinProbability = NewType("WinProbability", float)   # 0.0–1.0


# ─── Enums ───────────────────────────────────────────────────────

class DealStage(str, Enum):
    """Pipeline stages in pipeline order — maps to DB `stage` column."""
    QUALIFIED_LEAD = "Qualified Lead"
    PRODUCT_DEMO = "Product Demo"
    PROPOSAL = "Proposal"
    NEGOTIATION = "Negotiation"
    CLOSED_WON = "Closed Won"
    CLOSED_LOST = "Closed Lost"


# Active pipeline: Closed Lost is stored but not charted
PIPELINE_STAGES: tuple[DealStage, ...] = (
    DealStage.QUALIFIED_LEAD,
    DealStage.PRODUCT_DEMO,
    DealStage.PROPOSAL,
    DealStage.NEGOTIATION,
    DealStage.CLOSED_WON,
)


class FactorImpact(str, Enum):
    """Direction of a forecast factor's contribution."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class ActivityType(str, Enum):
    """Activity log entries written by the shell."""
    DEAL_CREATED = "deal_created"
    DEAL_STAGE_CHANGED = "deal_stage_changed"
    LEAD_CREATED = "lead_created"
    LEAD_STATUS_CHANGED = "lead_status_changed"


def parse_stage(label: str | None) -> DealStage | None:
    """Map a raw stage label to DealStage, None when unrecognized."""
    if label is None:
        return None
    try:
        return DealStage(label)
    except ValueError:
        return None
