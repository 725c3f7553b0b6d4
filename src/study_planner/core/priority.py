from __future__ import annotations

from datetime import date, datetime
from typing import Union

from .enums import Tier
from .models import parse_date

DateLike = Union[date, datetime, str]


def days_until(due_date: DateLike, now: DateLike) -> int:
    """Whole calendar days from ``now`` to ``due_date``; time of day is ignored."""

    return (parse_date(due_date) - parse_date(now)).days


def classify(due_date: DateLike, now: DateLike) -> Tier:
    remaining = days_until(due_date, now)
    if remaining < 0:
        return Tier.OVERDUE
    if remaining == 0:
        return Tier.TODAY
    if remaining <= 2:
        return Tier.URGENT
    if remaining <= 7:
        return Tier.WARNING
    return Tier.NORMAL


__all__ = ["classify", "days_until"]
