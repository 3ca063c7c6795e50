"""
Study Service - glue between a RecordStore and the analytics engines.

Implements the tracker's event flow:
- Logging a session initializes its review state
- Recording a test refreshes predictions for its analysis space
- Completing or graduating a review transitions state and re-queues

Every time-dependent call takes an explicit `now`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable

from loguru import logger

from config import Settings, get_settings
from studypace.analytics.pace_statistics import (
    aggregate,
    daily_time_needed,
    days_until,
    recommended_daily_quantity,
    volume_since,
)
from studypace.analytics.predictor import (
    PerformancePredictor,
    PredictorConfig,
    analyze_space,
    inputs_from_pair,
    latest_pair,
)
from studypace.core.exceptions import RecordValidationError
from studypace.core.models import (
    PredictionResult,
    QueuePartition,
    SessionRecord,
    SpaceTrend,
    Stats,
    TestObservation,
    VolumeSince,
)
from studypace.delivery.review_queue import ReviewQueue
from studypace.delivery.scheduler import SchedulerConfig, SpacedRepetitionScheduler
from studypace.delivery.serialization import load_observation, load_session
from studypace.delivery.state_store import RecordStore


@dataclass
class SubjectPlan:
    """Pace statistics for a subject plus what they imply for the deadline."""

    stats: Stats
    days_left: int | None = None
    daily_minutes_needed: float | None = None
    daily_quantity_needed: int | None = None


@dataclass
class SpaceInsight:
    """Trend and prediction for one analysis space."""

    trend: SpaceTrend
    prediction: PredictionResult
    target_delta: float


def _new_id() -> str:
    return uuid.uuid4().hex[:9]


class StudyService:
    """
    High-level operations for the tracker UI or CLI.

    Args:
        store: Any RecordStore implementation
        settings: Configuration (loaded from environment if None)
    """

    def __init__(self, store: RecordStore, settings: Settings | None = None):
        self.store = store
        self.settings = settings or get_settings()
        self.scheduler = SpacedRepetitionScheduler(
            SchedulerConfig(
                initial_delay_hours=self.settings.review_initial_delay_hours,
                stability_reviewed_days=self.settings.retention_stability_reviewed_days,
                stability_unreviewed_days=self.settings.retention_stability_unreviewed_days,
            )
        )
        self.predictor = PerformancePredictor(
            PredictorConfig(
                effort_subintervals=self.settings.effort_subintervals,
                burden_subintervals=self.settings.burden_subintervals,
            )
        )
        self.queue = ReviewQueue()

    # =========================================================================
    # Sessions
    # =========================================================================

    def log_session(
        self,
        subject_id: str,
        quantity: float,
        duration_minutes: float,
        now: datetime,
        start_page: int | None = None,
        end_page: int | None = None,
    ) -> SessionRecord:
        """Append a session and schedule its first review."""
        record = SessionRecord(
            id=_new_id(),
            subject_id=subject_id,
            quantity=quantity,
            duration_minutes=duration_minutes,
            observed_at=now,
            review=self.scheduler.initialize(now),
            start_page=start_page,
            end_page=end_page,
        )
        self.store.save_session(record)
        logger.info(
            f"Logged session {record.id} for {subject_id}: "
            f"{quantity:g} units in {duration_minutes:g} min"
        )
        return record

    def subject_plan(
        self,
        subject_id: str,
        remaining_quantity: float,
        now: datetime,
        target_date: datetime | None = None,
    ) -> SubjectPlan:
        """Pace statistics and, with a target date, daily requirements."""
        stats = aggregate(self.store.load_sessions(subject_id), remaining_quantity)
        if target_date is None:
            return SubjectPlan(stats=stats)

        days_left = days_until(target_date, now)
        return SubjectPlan(
            stats=stats,
            days_left=days_left,
            daily_minutes_needed=daily_time_needed(stats, days_left),
            daily_quantity_needed=recommended_daily_quantity(remaining_quantity, days_left),
        )

    # =========================================================================
    # Tests
    # =========================================================================

    def record_test(
        self,
        space_id: str,
        score: float,
        now: datetime,
        test_minutes_actual: float = 0.0,
        test_minutes_recommended: float = 0.0,
        volume_invested: float | None = None,
        study_hours: float | None = None,
        subject_id: str | None = None,
    ) -> TestObservation:
        """
        Record a test observation.

        When volume or study hours are omitted and a subject is linked, they
        are filled from the sessions logged since the previous test in this
        space.

        Raises:
            RecordValidationError: the observation cannot be persisted
                (e.g. a negative score)
        """
        if volume_invested is None or study_hours is None:
            linked = self._volume_since_last_test(space_id, subject_id)
            if volume_invested is None:
                volume_invested = linked.quantity
            if study_hours is None:
                study_hours = linked.study_hours

        observation = TestObservation(
            id=_new_id(),
            space_id=space_id,
            observed_at=now,
            score=score,
            volume_invested=volume_invested,
            study_hours=study_hours,
            test_minutes_actual=test_minutes_actual,
            test_minutes_recommended=test_minutes_recommended,
        )
        self.store.save_observation(observation)
        logger.info(f"Recorded test {observation.id} in {space_id}: score {score:g}")
        return observation

    def _volume_since_last_test(self, space_id: str, subject_id: str | None) -> VolumeSince:
        if subject_id is None:
            return VolumeSince()
        observations = self.store.load_observations(space_id)
        since = max((o.observed_at for o in observations), default=None)
        return volume_since(self.store.load_sessions(subject_id), since)

    def space_insight(self, space_id: str, target_delta: float | None = None) -> SpaceInsight:
        """Trend plus prediction for the latest adjacent pair in a space."""
        h3 = self.settings.default_target_delta if target_delta is None else target_delta
        observations = self.store.load_observations(space_id)
        trend = analyze_space(observations)

        pair = latest_pair(observations)
        if pair is None:
            logger.debug(f"Space {space_id} has fewer than two observations")
            prediction = PredictionResult()
        else:
            prediction = self.predictor.predict(inputs_from_pair(*pair, h3=h3))

        return SpaceInsight(trend=trend, prediction=prediction, target_delta=h3)

    # =========================================================================
    # Reviews
    # =========================================================================

    def review_queue(self, now: datetime) -> QueuePartition:
        sessions = self.store.load_sessions()
        return self.queue.partition(((s.id, s.review) for s in sessions), now)

    def complete_review(self, session_id: str, now: datetime) -> SessionRecord:
        record = self.store.get_session(session_id)
        new_state = self.scheduler.complete(record.review, now)
        if new_state is record.review:
            return record

        updated = replace(record, review=new_state)
        self.store.save_session(updated)
        self.store.log_review_event(
            session_id, "complete", now, record.review.step, new_state.step
        )
        logger.info(
            f"Review of {session_id} complete; next due {new_state.next_due_at:%Y-%m-%d %H:%M}"
        )
        return updated

    def graduate_session(self, session_id: str, now: datetime) -> SessionRecord:
        record = self.store.get_session(session_id)
        new_state = self.scheduler.graduate(record.review)
        if new_state is record.review:
            return record

        updated = replace(record, review=new_state)
        self.store.save_session(updated)
        self.store.log_review_event(
            session_id, "graduate", now, record.review.step, new_state.step
        )
        logger.info(f"Session {session_id} graduated")
        return updated

    def retention(self, record: SessionRecord, now: datetime) -> int:
        return self.scheduler.estimate_retention(
            record.observed_at, record.review.has_been_reviewed, now
        )

    # =========================================================================
    # Import
    # =========================================================================

    def import_records(
        self,
        sessions: Iterable[dict] = (),
        spaces: dict[str, list[dict]] | None = None,
    ) -> tuple[int, int]:
        """
        Bulk import persisted payloads of any schema version.

        Invalid payloads are skipped with a warning so one bad record does
        not block the rest.

        Returns:
            (sessions imported, observations imported)
        """
        session_count = 0
        for payload in sessions:
            try:
                record = load_session(payload)
            except RecordValidationError as e:
                logger.warning(f"Skipping session: {e}")
                continue
            self.store.save_session(record)
            session_count += 1

        observation_count = 0
        for space_id, payloads in (spaces or {}).items():
            for payload in payloads:
                try:
                    observation = load_observation(payload, space_id=space_id)
                except RecordValidationError as e:
                    logger.warning(f"Skipping observation: {e}")
                    continue
                self.store.save_observation(observation)
                observation_count += 1

        logger.info(f"Imported {session_count} sessions, {observation_count} observations")
        return session_count, observation_count
