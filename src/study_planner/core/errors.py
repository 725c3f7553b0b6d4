"""Error taxonomy shared by the store, history and persistence layers."""

from __future__ import annotations


class StudyPlannerError(Exception):
    """Base class for every refused operation or degraded persistence."""


class ValidationError(StudyPlannerError):
    """A task draft or settings change is missing or has invalid fields."""


class NotFoundError(StudyPlannerError):
    """An operation referenced a task, plan day or snapshot that does not exist."""


class FormatError(StudyPlannerError):
    """An exchange document or stored record could not be understood."""


class StorageError(StudyPlannerError):
    """The external key-value store failed to read or write a key."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"{key}: {message}")
        self.key = key
