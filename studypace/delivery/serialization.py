"""
Versioned persistence shapes for sessions and test observations.

Persisted payloads use camelCase keys and ISO-8601 timestamps. Version 1
payloads (written by the legacy tracker) use different field names and
may lack review state entirely; they are normalized once here, at load
time, so the engines only ever see current ReviewState values.

Version history:
    1 - pagesRead / timeSpentMinutes / timestamp, optional reviewStep,
        nextReviewDate, isCondensed, isReviewed
    2 - current shape (quantity / durationMinutes / observedAt, step,
        nextDueAt, graduated)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from loguru import logger
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from studypace.core.exceptions import RecordValidationError
from studypace.core.models import ReviewState, SessionRecord, TestObservation

SCHEMA_VERSION = 2

# Version 1 key -> version 2 key
LEGACY_SESSION_KEYS = {
    "pagesRead": "quantity",
    "timeSpentMinutes": "durationMinutes",
    "timestamp": "observedAt",
    "reviewStep": "step",
    "nextReviewDate": "nextDueAt",
    "isCondensed": "graduated",
}

# Review keys in both alias and field-name form
REVIEW_FIELD_KEYS = {"step", "nextDueAt", "next_due_at", "graduated"}


def _drop_null_review_fields(data: dict) -> dict:
    # Explicit nulls mean "never set", in every schema version
    return {
        k: v for k, v in data.items() if not (k in REVIEW_FIELD_KEYS and v is None)
    }


def _as_utc(value: datetime | None) -> datetime | None:
    # Naive timestamps were written as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# Sessions
# =============================================================================


class SessionPayload(BaseModel):
    """Persisted form of a SessionRecord plus its ReviewState."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    schema_version: int = Field(default=SCHEMA_VERSION, alias="schemaVersion")
    id: str
    subject_id: str = Field(alias="subjectId")
    quantity: float
    duration_minutes: float = Field(alias="durationMinutes")
    observed_at: datetime = Field(alias="observedAt")
    step: int = Field(default=0, ge=0)
    next_due_at: datetime | None = Field(default=None, alias="nextDueAt")
    graduated: bool = False
    start_page: int | None = Field(default=None, alias="startPage")
    end_page: int | None = Field(default=None, alias="endPage")

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        version = data.get("schemaVersion")
        if version is None:
            version = 1 if any(k in data for k in LEGACY_SESSION_KEYS) else SCHEMA_VERSION
        if version >= SCHEMA_VERSION:
            return _drop_null_review_fields(data)

        upgraded = _drop_null_review_fields(
            {LEGACY_SESSION_KEYS.get(k, k): v for k, v in data.items()}
        )
        # Reviewed under the old yes/no flag: count it as one completed step
        if "step" not in upgraded and upgraded.pop("isReviewed", False):
            upgraded["step"] = 1
        upgraded.pop("isReviewed", None)
        upgraded["schemaVersion"] = SCHEMA_VERSION

        logger.debug(f"Upgraded session {data.get('id')} from schema v{version}")
        return upgraded

    @field_validator("observed_at", "next_due_at")
    @classmethod
    def ensure_timezone(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @model_validator(mode="after")
    def default_due_date(self) -> SessionPayload:
        # Missing due date means the session predates scheduling: due now
        if self.next_due_at is None:
            self.next_due_at = self.observed_at
        return self

    def to_record(self) -> SessionRecord:
        return SessionRecord(
            id=self.id,
            subject_id=self.subject_id,
            quantity=self.quantity,
            duration_minutes=self.duration_minutes,
            observed_at=self.observed_at,
            review=ReviewState(
                step=self.step,
                next_due_at=self.next_due_at,
                graduated=self.graduated,
            ),
            start_page=self.start_page,
            end_page=self.end_page,
        )

    @classmethod
    def from_record(cls, record: SessionRecord) -> SessionPayload:
        return cls(
            id=record.id,
            subject_id=record.subject_id,
            quantity=record.quantity,
            duration_minutes=record.duration_minutes,
            observed_at=record.observed_at,
            step=record.review.step,
            next_due_at=record.review.next_due_at,
            graduated=record.review.graduated,
            start_page=record.start_page,
            end_page=record.end_page,
        )


# =============================================================================
# Test Observations
# =============================================================================


class ObservationPayload(BaseModel):
    """Persisted form of a TestObservation; accepts the legacy short keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    space_id: str = Field(
        validation_alias=AliasChoices("spaceId", "space_id"),
        serialization_alias="spaceId",
    )
    observed_at: datetime = Field(
        validation_alias=AliasChoices("observedAt", "timestamp", "observed_at"),
        serialization_alias="observedAt",
    )
    score: float = Field(
        ge=0,
        validation_alias=AliasChoices("score", "h1"),
    )
    volume_invested: float = Field(
        default=0.0,
        validation_alias=AliasChoices("volumeInvested", "b", "volume_invested"),
        serialization_alias="volumeInvested",
    )
    study_hours: float = Field(
        default=0.0,
        validation_alias=AliasChoices("studyHours", "tStudy", "study_hours"),
        serialization_alias="studyHours",
    )
    test_minutes_actual: float = Field(
        default=0.0,
        validation_alias=AliasChoices("testMinutesActual", "tTest", "test_minutes_actual"),
        serialization_alias="testMinutesActual",
    )
    test_minutes_recommended: float = Field(
        default=0.0,
        validation_alias=AliasChoices(
            "testMinutesRecommended", "tRec", "test_minutes_recommended"
        ),
        serialization_alias="testMinutesRecommended",
    )

    @field_validator("observed_at")
    @classmethod
    def ensure_timezone(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def to_observation(self) -> TestObservation:
        return TestObservation(**self.model_dump())

    @classmethod
    def from_observation(cls, observation: TestObservation) -> ObservationPayload:
        return cls(
            id=observation.id,
            space_id=observation.space_id,
            observed_at=observation.observed_at,
            score=observation.score,
            volume_invested=observation.volume_invested,
            study_hours=observation.study_hours,
            test_minutes_actual=observation.test_minutes_actual,
            test_minutes_recommended=observation.test_minutes_recommended,
        )


# =============================================================================
# Public Helpers
# =============================================================================


def load_session(payload: dict) -> SessionRecord:
    """Normalize a persisted payload of any schema version into a record."""
    if not isinstance(payload, dict):
        raise RecordValidationError(f"Expected a session object, got {type(payload).__name__}")
    try:
        return SessionPayload.model_validate(payload).to_record()
    except ValidationError as e:
        raise RecordValidationError(
            f"Invalid session payload {payload.get('id', '<no id>')}: {e}",
            payload,
        ) from e


def dump_session(record: SessionRecord) -> dict:
    """Current-version JSON-ready payload for a record."""
    try:
        payload = SessionPayload.from_record(record)
    except ValidationError as e:
        raise RecordValidationError(f"Invalid session {record.id}: {e}") from e
    return payload.model_dump(mode="json", by_alias=True)


def load_observation(payload: dict, space_id: str | None = None) -> TestObservation:
    """
    Normalize a persisted observation.

    Legacy payloads were nested inside their space and carry no space id;
    pass it explicitly for those.
    """
    if not isinstance(payload, dict):
        raise RecordValidationError(
            f"Expected an observation object, got {type(payload).__name__}"
        )
    if space_id is not None and "spaceId" not in payload and "space_id" not in payload:
        payload = {**payload, "spaceId": space_id}
    try:
        return ObservationPayload.model_validate(payload).to_observation()
    except ValidationError as e:
        raise RecordValidationError(
            f"Invalid observation payload {payload.get('id', '<no id>')}: {e}",
            payload,
        ) from e


def dump_observation(observation: TestObservation) -> dict:
    try:
        payload = ObservationPayload.from_observation(observation)
    except ValidationError as e:
        raise RecordValidationError(f"Invalid observation {observation.id}: {e}") from e
    return payload.model_dump(mode="json", by_alias=True)
