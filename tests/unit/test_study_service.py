"""
Unit tests for StudyService.

Tests:
- Logging a session schedules its first review
- Recording a test pre-fills volume from linked sessions
- Space insight uses the latest adjacent pair
- Review completion and graduation are logged
- Bulk import tolerates legacy and invalid payloads
"""

from datetime import timedelta

import pytest

from studypace.core.exceptions import RecordNotFoundError, RecordValidationError
from studypace.delivery.state_store import StateStore
from studypace.delivery.study_service import StudyService


@pytest.fixture
def store(settings):
    store = StateStore(settings.state_db_path)
    yield store
    store.close()


@pytest.fixture
def service(store, settings):
    return StudyService(store, settings)


class TestSessions:
    def test_log_session_schedules_first_review(self, service, store, now):
        record = service.log_session("math", 12, 90, now, start_page=1, end_page=13)

        assert record.review.step == 0
        assert record.review.next_due_at == now + timedelta(hours=2)
        assert store.get_session(record.id) == record

    def test_subject_plan_with_target_date(self, service, now):
        service.log_session("math", 10, 100, now - timedelta(days=2))
        service.log_session("math", 20, 100, now - timedelta(days=1))
        service.log_session("bio", 1, 500, now)

        plan = service.subject_plan("math", 40, now, target_date=now + timedelta(days=3, hours=1))

        assert plan.stats.mean_pace_per_unit == pytest.approx(7.5)
        assert plan.stats.estimated_remaining_duration == pytest.approx(300.0)
        assert plan.days_left == 4
        assert plan.daily_minutes_needed == pytest.approx(75.0)
        assert plan.daily_quantity_needed == 10

    def test_subject_plan_without_target(self, service, now):
        plan = service.subject_plan("math", 40, now)

        assert plan.stats.total_duration == 0
        assert plan.days_left is None


class TestTests:
    def test_record_test_fills_volume_since_previous_test(self, service, now):
        service.log_session("math", 100, 600, now - timedelta(days=8))
        service.record_test("mock", 50, now - timedelta(days=7), volume_invested=100, study_hours=10)
        service.log_session("math", 10, 60, now - timedelta(days=3))
        service.log_session("math", 5, 30, now - timedelta(days=1))

        observation = service.record_test("mock", 60, now, subject_id="math")

        assert observation.volume_invested == 15
        assert observation.study_hours == 1.5

    def test_record_test_without_subject_leaves_zero_volume(self, service, now):
        observation = service.record_test("mock", 60, now)

        assert observation.volume_invested == 0
        assert observation.study_hours == 0

    def test_record_test_rejects_negative_score(self, service, store, now):
        with pytest.raises(RecordValidationError):
            service.record_test("mock", -5, now)

        assert store.load_observations("mock") == []

    def test_space_insight(self, service, store, observation_pair):
        for observation in observation_pair:
            store.save_observation(observation)

        insight = service.space_insight("mock-exam")

        assert insight.target_delta == 10
        assert insight.trend.count == 2
        assert insight.prediction.computable
        assert insight.prediction.cubic_volume == pytest.approx(27.912, abs=1e-3)

    def test_space_insight_needs_two_observations(self, service, store, observation_pair):
        store.save_observation(observation_pair[0])

        insight = service.space_insight("mock-exam", target_delta=5)

        assert insight.target_delta == 5
        assert not insight.prediction.computable


class TestReviews:
    def test_queue(self, service, now):
        overdue = service.log_session("math", 10, 60, now - timedelta(days=1))
        fresh = service.log_session("math", 10, 60, now)

        queue = service.review_queue(now)

        assert queue.due == [overdue.id]
        assert queue.upcoming == [fresh.id]

    def test_complete_review(self, service, store, now):
        record = service.log_session("math", 10, 60, now)
        completed_at = now + timedelta(hours=3)

        updated = service.complete_review(record.id, completed_at)

        assert updated.review.step == 1
        assert updated.review.next_due_at == completed_at + timedelta(days=1)
        assert store.get_session(record.id).review == updated.review
        history = store.get_review_history(record.id)
        assert [e.event for e in history] == ["complete"]
        assert history[0].step_before == 0

    def test_graduated_session_ignores_completion(self, service, store, now):
        record = service.log_session("math", 10, 60, now)
        graduated = service.graduate_session(record.id, now)

        after = service.complete_review(record.id, now + timedelta(days=30))

        assert after.review == graduated.review
        assert [e.event for e in store.get_review_history(record.id)] == ["graduate"]
        assert service.review_queue(now + timedelta(days=30)).due == []

    def test_graduate_twice_logs_once(self, service, store, now):
        record = service.log_session("math", 10, 60, now)

        service.graduate_session(record.id, now)
        service.graduate_session(record.id, now)

        assert len(store.get_review_history(record.id)) == 1

    def test_unknown_session(self, service, now):
        with pytest.raises(RecordNotFoundError):
            service.complete_review("missing", now)

    def test_retention(self, service, now):
        record = service.log_session("math", 10, 60, now - timedelta(days=8))

        assert service.retention(record, now) == 14


class TestImport:
    def test_import_legacy_records(self, service, store, now):
        sessions = [
            {
                "id": "old1",
                "subjectId": "bio",
                "pagesRead": 12,
                "timeSpentMinutes": 45,
                "timestamp": "2026-02-20T09:15:00.000Z",
            },
            {"id": "broken", "subjectId": "bio", "pagesRead": 3},
        ]
        spaces = {
            "bio-midterm": [
                {"id": "t1", "timestamp": "2026-02-01T10:00:00Z", "h1": 50, "b": 15},
                {"id": "t2", "timestamp": "2026-02-15T10:00:00Z", "h1": 62, "b": 20},
                {"id": "t3", "h1": 70},
            ]
        }

        imported = service.import_records(sessions, spaces)

        assert imported == (1, 2)
        assert store.get_session("old1").review.is_due(now)
        assert [o.id for o in store.load_observations("bio-midterm")] == ["t1", "t2"]
        assert service.review_queue(now).due == ["old1"]
