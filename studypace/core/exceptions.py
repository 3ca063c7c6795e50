"""Errors raised at the collaborator boundary. The engines never raise these."""

from __future__ import annotations


class RecordValidationError(ValueError):
    """A persisted payload could not be normalized into a current record."""

    def __init__(self, message: str, payload: dict | None = None):
        super().__init__(message)
        self.payload = payload or {}


class RecordNotFoundError(KeyError):
    """No session or observation exists with the requested id."""

    def __init__(self, record_id: str, kind: str = "session"):
        super().__init__(record_id)
        self.record_id = record_id
        self.kind = kind

    def __str__(self) -> str:
        return f"Unknown {self.kind}: {self.record_id}"
