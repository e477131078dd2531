from datetime import datetime, timedelta

from analytics import (
    average_confidence, build_dashboard, cross_unit_signals, latest_by_unit, lifecycle_overlap,
    literacy_distribution, pending_units, text_rollup, unit_confidence,
)
from schemas import ResponseRecord
from surveys import UNITS

NOW = datetime(2025, 3, 1, 12, 0)


def rec(unit, **fields):
    fields.setdefault("name", f"{unit} director")
    fields.setdefault("submitted_at", NOW)
    return ResponseRecord(unit=unit, **fields)


def test_average_confidence_ignores_missing():
    rows = [rec("Registrar", confidence=2), rec("Admissions", confidence=4), rec("One-Stop")]

    assert average_confidence(rows) == 3.0


def test_average_confidence_without_ratings_is_no_data():
    assert average_confidence([]) is None
    assert average_confidence([rec("Registrar"), rec("One-Stop")]) is None


def test_pending_units():
    rows = [rec("Registrar"), rec("Financial Aid")]

    assert pending_units(rows) == [
        "Admissions", "Business Services", "Center for Pre-College Programs", "One-Stop",
    ]


def test_unit_confidence_covers_every_unit_in_order():
    result = unit_confidence([rec("Registrar", confidence=5), rec("Admissions", confidence=1)])

    assert [r["unit"] for r in result] == UNITS
    by_unit = {r["unit"]: r["confidence"] for r in result}
    assert by_unit["Registrar"] == 5
    assert by_unit["Admissions"] == 1
    assert by_unit["One-Stop"] is None


def test_most_recent_submission_wins_for_a_unit():
    rows = [
        rec("Registrar", confidence=2, submitted_at=NOW - timedelta(days=3)),
        rec("Registrar", confidence=4, submitted_at=NOW),
        rec("Registrar", confidence=3, submitted_at=NOW - timedelta(days=1)),
    ]

    assert latest_by_unit(rows)["Registrar"].confidence == 4
    assert unit_confidence(rows)[UNITS.index("Registrar")]["confidence"] == 4


def test_lifecycle_overlap_counts_rows():
    rows = [
        rec("Registrar", lifecycle_role=["year_round", "transition"]),
        rec("Financial Aid", lifecycle_role=["year_round"]),
        rec("One-Stop", lifecycle_role=["year_round", "return"]),
        rec("Admissions", lifecycle_role=["pre_enroll"]),
        rec("Business Services", lifecycle_role=["all"]),
    ]

    overlap = {entry["stage"]: entry for entry in lifecycle_overlap(rows)}

    assert list(overlap) == ["pre_college", "pre_enroll", "transition", "year_round", "return"]
    assert (overlap["year_round"]["count"], overlap["year_round"]["total"]) == (3, 5)
    assert overlap["year_round"]["units"] == ["Financial Aid", "One-Stop", "Registrar"]
    assert overlap["pre_college"]["count"] == 0


def test_literacy_distribution_buckets():
    rows = [
        rec("Registrar", literacy_level="4"),
        rec("Admissions", literacy_level="4"),
        rec("One-Stop", literacy_level="1"),
        rec("Financial Aid"),
    ]

    buckets = {b["level"]: b["units"] for b in literacy_distribution(rows)}

    assert list(buckets) == ["1", "2", "3", "4", "5"]
    assert buckets["4"] == ["Admissions", "Registrar"]
    assert buckets["1"] == ["One-Stop"]
    assert buckets["3"] == []


def test_cross_unit_signals():
    rows = [
        rec("Registrar", confidence=2, literacy_level="3", magic_wand="holds dashboard"),
        rec("Financial Aid", confidence=1, literacy_level="2", distrust_source="ISIR loads",
            underused_tools="Argos", lifecycle_role=["year_round"]),
        rec("Admissions", confidence=4, literacy_level="1", magic_wand="   "),
    ]

    signals = {s["key"]: s["units"] for s in cross_unit_signals(rows)}

    assert signals == {
        "low_confidence": ["Financial Aid", "Registrar"],
        "low_literacy": ["Admissions", "Financial Aid"],
        "year_round": ["Financial Aid"],
        "underused_tools": ["Financial Aid"],
        "magic_wand": ["Registrar"],
        "distrust_source": ["Financial Aid"],
    }


def test_text_rollup_skips_blank_answers():
    rows = [
        rec("Registrar", blindspot="Which holds block enrollment"),
        rec("Admissions", blindspot=""),
        rec("One-Stop", blindspot="  Wait times by hour  "),
    ]

    assert text_rollup(rows, "blindspot") == [
        {"unit": "One-Stop", "text": "Wait times by hour"},
        {"unit": "Registrar", "text": "Which holds block enrollment"},
    ]


def test_null_lists_read_as_empty():
    row = ResponseRecord.model_validate({
        "name": "A", "unit": "Registrar", "training_methods": None, "lifecycle_role": None,
        "magic_wand": None,
    })

    assert row.training_methods == []
    assert row.lifecycle_role == []
    assert row.magic_wand == ""


def test_build_dashboard_on_empty_set():
    summary = build_dashboard([])

    assert summary.total_responses == 0
    assert summary.average_confidence is None
    assert summary.pending_units == UNITS
    assert all(entry.count == 0 and entry.total == 0 for entry in summary.lifecycle_overlap)


def test_dashboard_endpoint(client, store):
    store.insert("responses", [
        {"name": "A", "unit": "Registrar", "confidence": 2, "lifecycle_role": ["year_round"],
         "submitted_at": NOW},
        {"name": "B", "unit": "Admissions", "confidence": 4, "lifecycle_role": [],
         "submitted_at": NOW - timedelta(hours=1)},
    ])

    body = client.get("/api/analytics/dashboard").json()

    assert body["total_responses"] == 2
    assert body["average_confidence"] == 3.0
    assert "Registrar" not in body["pending_units"]
    year_round = next(e for e in body["lifecycle_overlap"] if e["stage"] == "year_round")
    assert (year_round["count"], year_round["total"]) == (1, 2)
