from __future__ import annotations

import math
from datetime import timedelta
from typing import List

from .models import DayPlan, parse_date
from .priority import DateLike, days_until

MIN_DAILY_HOURS = 0.5
MAX_DAILY_HOURS = 3.0
WEEKEND_FACTOR = 1.5
_EPSILON = 1e-9


def round_quarter(hours: float) -> float:
    """Round half up to the nearest quarter hour."""

    return math.floor(hours * 4 + 0.5) / 4


def optimal_daily_hours(total_hours: float, days: int) -> float:
    return min(MAX_DAILY_HOURS, max(MIN_DAILY_HOURS, total_hours / max(days, 1)))


def allocate(due_date: DateLike, total_hours: float, now: DateLike) -> List[DayPlan]:
    """Spread ``total_hours`` across the days from ``now`` until ``due_date``.

    A deadline today or in the past still gets a one-day plan. Weekend days take
    half again the weekday load. Hours are emitted on a quarter-hour grid by
    rounding the running total, so the emitted hours never drift more than an
    eighth of an hour from what was allocated.
    """

    start = parse_date(now)
    days = max(1, days_until(due_date, start))
    daily = optimal_daily_hours(total_hours, days)

    plan: List[DayPlan] = []
    remaining = float(total_hours)
    allocated = 0.0
    emitted = 0.0
    for offset in range(days):
        if remaining <= _EPSILON:
            break
        day = start + timedelta(days=offset)
        is_weekend = day.weekday() >= 5
        share = min(remaining, daily * WEEKEND_FACTOR if is_weekend else daily)
        allocated += share
        remaining -= share
        hours = round_quarter(allocated) - emitted
        emitted += hours
        plan.append(DayPlan(date=day, hours=hours, is_weekend=is_weekend))
    return plan


__all__ = ["allocate", "optimal_daily_hours", "round_quarter"]
