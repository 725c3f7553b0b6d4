# tests/test_priority.py

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from study_planner.core import Tier, classify, days_until

from .conftest import NOW


@pytest.mark.parametrize(
    ("due", "expected"),
    [
        ("2024-05-14", Tier.OVERDUE),
        ("2024-05-15", Tier.TODAY),
        ("2024-05-16", Tier.URGENT),
        ("2024-05-17", Tier.URGENT),
        ("2024-05-18", Tier.WARNING),
        ("2024-05-22", Tier.WARNING),
        ("2024-05-23", Tier.NORMAL),
    ],
)
def test_classify_tiers(due: str, expected: Tier) -> None:
    assert classify(date.fromisoformat(due), NOW) is expected


def test_time_of_day_is_ignored() -> None:
    late = datetime(2024, 5, 15, 23, 59, tzinfo=timezone.utc)
    early = datetime(2024, 5, 15, 0, 1, tzinfo=timezone.utc)
    assert days_until(date(2024, 5, 16), late) == 1
    assert days_until(date(2024, 5, 16), early) == 1
    assert classify(date(2024, 5, 15), late) is Tier.TODAY


def test_classify_accepts_iso_strings() -> None:
    assert classify("2024-05-10", "2024-05-15T08:00:00+00:00") is Tier.OVERDUE


def test_tier_is_monotonic_in_due_date() -> None:
    start = date(2024, 4, 1)
    ranks = [classify(start + timedelta(days=offset), NOW).rank for offset in range(90)]
    assert ranks == sorted(ranks)


def test_tier_rank_orders_most_urgent_first() -> None:
    assert [tier.rank for tier in (Tier.OVERDUE, Tier.TODAY, Tier.URGENT, Tier.WARNING, Tier.NORMAL)] == [
        0,
        1,
        2,
        3,
        4,
    ]
