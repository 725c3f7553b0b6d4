# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from study_planner.core import MemoryKeyValueStore, PersistenceGateway
from study_planner.services import StudySession

# A Wednesday, so the next three days are all weekdays.
NOW = datetime(2024, 5, 15, 10, 30, tzinfo=timezone.utc)


class FixedClock:
    """Deterministic clock; tests move it forward explicitly."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def gateway(kv: MemoryKeyValueStore) -> PersistenceGateway:
    return PersistenceGateway(kv)


@pytest.fixture()
def session(gateway: PersistenceGateway, clock: FixedClock) -> StudySession:
    """Session wired to an in-memory key-value store and a fixed clock."""
    return StudySession(gateway=gateway, clock=clock)


def draft(title: str = "Essay", due: str = "2024-05-18", **extra: object) -> dict:
    payload: dict = {"title": title, "dueDate": due, "estimatedHours": 2}
    payload.update(extra)
    return payload
