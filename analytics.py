from fastapi import APIRouter, Depends
from typing import Dict, List, Optional
import statistics

from admin import fetch_responses
from db import ResponseStore, get_store
from schemas import DashboardSummary, ResponseRecord
from surveys import UNITS, LITERACY_LEVELS, LIFECYCLE_OPTIONS

router = APIRouter()

# Every lifecycle tag except the catch-all
LIFECYCLE_STAGES = [(val, label) for val, label in LIFECYCLE_OPTIONS if val != "all"]


def _filled(text: Optional[str]) -> bool:
    return bool(text and text.strip())


SIGNALS: List[tuple] = [
    ("low_confidence", "Low trust in data (confidence 2 or below)",
     lambda r: r.confidence is not None and r.confidence <= 2),
    ("low_literacy", "Team needs data literacy support (level 1-2)",
     lambda r: r.literacy_level in ("1", "2")),
    ("year_round", "Year-round retention impact",
     lambda r: "year_round" in r.lifecycle_role),
    ("underused_tools", "Has tools that may be underused",
     lambda r: _filled(r.underused_tools)),
    ("magic_wand", "Named a magic-wand request",
     lambda r: _filled(r.magic_wand)),
    ("distrust_source", "Named a source of data distrust",
     lambda r: _filled(r.distrust_source)),
]

# ================= AGGREGATIONS =================

def in_unit_order(rows: List[ResponseRecord]) -> List[ResponseRecord]:
    """Rows sorted by unit declaration order; within a unit the fetched order is kept."""
    rank = {unit: i for i, unit in enumerate(UNITS)}
    return sorted(rows, key=lambda r: rank.get(r.unit, len(UNITS)))


def latest_by_unit(rows: List[ResponseRecord]) -> Dict[str, ResponseRecord]:
    """
    The response that represents each unit.

    A unit may submit more than once; the most recent submission wins.
    Rows without a timestamp lose to rows with one.
    """
    latest = {}
    for row in rows:
        current = latest.get(row.unit)
        if current is None or _newer(row, current):
            latest[row.unit] = row
    return latest


def _newer(a: ResponseRecord, b: ResponseRecord) -> bool:
    if a.submitted_at is None:
        return False
    if b.submitted_at is None:
        return True
    return a.submitted_at > b.submitted_at


def unit_confidence(rows: List[ResponseRecord]) -> List[dict]:
    latest = latest_by_unit(rows)
    return [
        {"unit": unit, "confidence": latest[unit].confidence if unit in latest else None}
        for unit in UNITS
    ]


def average_confidence(rows: List[ResponseRecord]) -> Optional[float]:
    """Mean of every non-null confidence, None when nobody rated it."""
    values = [r.confidence for r in rows if r.confidence is not None]
    if not values:
        return None
    return float(statistics.mean(values))


def pending_units(rows: List[ResponseRecord]) -> List[str]:
    submitted = {r.unit for r in rows}
    return [unit for unit in UNITS if unit not in submitted]


def literacy_distribution(rows: List[ResponseRecord]) -> List[dict]:
    ordered = in_unit_order(rows)
    return [
        {"level": level, "label": label, "units": [r.unit for r in ordered if r.literacy_level == level]}
        for level, label in LITERACY_LEVELS
    ]


def lifecycle_overlap(rows: List[ResponseRecord]) -> List[dict]:
    ordered = in_unit_order(rows)
    overlap = []
    for stage, label in LIFECYCLE_STAGES:
        units = [r.unit for r in ordered if stage in r.lifecycle_role]
        overlap.append({
            "stage": stage,
            "label": label,
            "count": len(units),
            "total": len(rows),
            "units": units,
        })
    return overlap


def cross_unit_signals(rows: List[ResponseRecord]) -> List[dict]:
    ordered = in_unit_order(rows)
    return [
        {"key": key, "label": label, "units": [r.unit for r in ordered if predicate(r)]}
        for key, label, predicate in SIGNALS
    ]


def text_rollup(rows: List[ResponseRecord], field: str) -> List[dict]:
    return [
        {"unit": r.unit, "text": getattr(r, field).strip()}
        for r in in_unit_order(rows)
        if _filled(getattr(r, field))
    ]


def build_dashboard(rows: List[ResponseRecord]) -> DashboardSummary:
    return DashboardSummary(
        total_responses=len(rows),
        average_confidence=average_confidence(rows),
        unit_confidence=unit_confidence(rows),
        pending_units=pending_units(rows),
        literacy_distribution=literacy_distribution(rows),
        lifecycle_overlap=lifecycle_overlap(rows),
        signals=cross_unit_signals(rows),
        magic_wand=text_rollup(rows, "magic_wand"),
        blindspots=text_rollup(rows, "blindspot"),
    )

# ================= ANALYTICS ENDPOINTS =================

@router.get("/api/analytics/dashboard", response_model=DashboardSummary)
def painel(store: ResponseStore = Depends(get_store)):
    """
    Aggregates every stored response for the admin dashboard.
    """
    return build_dashboard(fetch_responses(store))
