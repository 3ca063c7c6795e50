"""
Unit tests for ReviewQueue partitioning.
"""

from datetime import timedelta

import pytest

from studypace.core.models import QueuePartition, ReviewState, SessionRecord
from studypace.delivery.review_queue import ReviewQueue


@pytest.fixture
def queue():
    return ReviewQueue()


def test_partition_and_ordering(queue, now):
    states = [
        ("recent", ReviewState(step=1, next_due_at=now - timedelta(hours=1))),
        ("later", ReviewState(step=0, next_due_at=now + timedelta(days=3))),
        ("oldest", ReviewState(step=2, next_due_at=now - timedelta(days=2))),
        ("retired", ReviewState(step=4, next_due_at=now - timedelta(days=5), graduated=True)),
    ]

    result = queue.partition(states, now)

    assert result.due == ["oldest", "recent"]
    assert result.upcoming == ["later"]
    assert "retired" not in result.due + result.upcoming


def test_due_boundary_is_inclusive(queue, now):
    result = queue.partition([("exact", ReviewState(next_due_at=now))], now)

    assert result.due == ["exact"]


def test_upcoming_sorted_soonest_first(queue, now):
    states = [
        ("c", ReviewState(next_due_at=now + timedelta(days=9))),
        ("a", ReviewState(next_due_at=now + timedelta(hours=1))),
        ("b", ReviewState(next_due_at=now + timedelta(days=2))),
    ]

    assert queue.partition(states, now).upcoming == ["a", "b", "c"]


def test_ties_keep_insertion_order(queue, now):
    same_time = now - timedelta(hours=3)
    states = [(name, ReviewState(next_due_at=same_time)) for name in ("x", "y", "z", "w")]

    assert queue.partition(states, now).due == ["x", "y", "z", "w"]
    assert queue.partition(list(reversed(states)), now).due == ["w", "z", "y", "x"]


def test_empty_input(queue, now):
    assert queue.partition([], now) == QueuePartition()


def test_count_due(queue, now):
    states = [
        ("a", ReviewState(next_due_at=now - timedelta(days=1))),
        ("b", ReviewState(next_due_at=now + timedelta(days=1))),
    ]

    assert queue.count_due(states, now) == 1


def test_unscheduled_state_is_due_first(queue, now):
    states = [
        ("overdue", ReviewState(step=1, next_due_at=now - timedelta(days=1))),
        ("unscheduled", ReviewState()),
        ("retired", ReviewState(graduated=True)),
    ]

    result = queue.partition(states, now)

    assert result.due == ["unscheduled", "overdue"]
    assert result.upcoming == []


def test_session_without_review_state_is_due(queue, now):
    record = SessionRecord(
        id="x",
        subject_id="math",
        quantity=5,
        duration_minutes=30,
        observed_at=now - timedelta(days=2),
    )

    assert record.review.next_due_at == record.observed_at
    assert record.review.is_due(now)
    assert queue.partition([(record.id, record.review)], now).due == ["x"]
