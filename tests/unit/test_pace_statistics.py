"""
Unit tests for pace statistics and planner helpers.

Tests:
- Empty and ineligible input returns zeros
- Mean pace, population standard deviation, remaining estimate
- Totals include ineligible samples
- Days left, daily targets, day summary, volume since last test
"""

from datetime import datetime, timedelta, timezone

import pytest

from studypace.analytics.pace_statistics import (
    aggregate,
    daily_time_needed,
    days_until,
    recommended_daily_quantity,
    summarize_day,
    volume_since,
)
from studypace.core.models import Stats


class TestAggregate:
    """Tests for aggregate()."""

    @pytest.mark.parametrize("remaining", [0, 4, 250, -3])
    def test_empty_input_returns_zeros(self, remaining):
        assert aggregate([], remaining) == Stats()

    def test_mean_pace_and_remaining_estimate(self, make_session):
        samples = [
            make_session(id="a", quantity=10, duration_minutes=100),
            make_session(id="b", quantity=20, duration_minutes=150),
        ]

        stats = aggregate(samples, 4)

        # paces 10.0 and 7.5 minutes per page
        assert stats.mean_pace_per_unit == pytest.approx(8.75)
        assert stats.estimated_remaining_duration == pytest.approx(35.0)
        assert stats.total_duration == pytest.approx(250.0)

    def test_population_standard_deviation(self, make_session):
        samples = [
            make_session(id="a", quantity=10, duration_minutes=100),
            make_session(id="b", quantity=20, duration_minutes=150),
        ]

        stats = aggregate(samples, 0)

        # Divide by N: sqrt(((10 - 8.75)^2 + (7.5 - 8.75)^2) / 2) = 1.25
        assert stats.std_dev_per_unit == pytest.approx(1.25)

    def test_singleton_has_zero_spread(self, make_session):
        stats = aggregate([make_session(quantity=4, duration_minutes=30)], 2)

        assert stats.mean_pace_per_unit == pytest.approx(7.5)
        assert stats.std_dev_per_unit == 0.0
        assert stats.estimated_remaining_duration == pytest.approx(15.0)

    def test_total_includes_ineligible_samples(self, make_session):
        samples = [
            make_session(id="a", quantity=10, duration_minutes=100),
            make_session(id="b", quantity=0, duration_minutes=40),
        ]

        stats = aggregate(samples, 0)

        assert stats.mean_pace_per_unit == pytest.approx(10.0)
        assert stats.total_duration == pytest.approx(140.0)

    def test_only_ineligible_samples_returns_zeros(self, make_session):
        samples = [
            make_session(id="a", quantity=0, duration_minutes=40),
            make_session(id="b", quantity=5, duration_minutes=0),
        ]

        assert aggregate(samples, 10) == Stats()

    def test_negative_remaining_is_clamped(self, make_session):
        stats = aggregate([make_session(quantity=10, duration_minutes=100)], -5)

        assert stats.estimated_remaining_duration == 0.0


class TestPlannerHelpers:
    """Tests for deadline planning helpers."""

    def test_days_until_rounds_up(self, now):
        target = datetime(2026, 3, 5, 0, 0, tzinfo=timezone.utc)

        # 3.5 days away
        assert days_until(target, now) == 4

    def test_days_until_past_target(self, now):
        assert days_until(now - timedelta(days=2), now) == -2

    def test_daily_time_needed(self):
        stats = Stats(estimated_remaining_duration=300)

        assert daily_time_needed(stats, 4) == pytest.approx(75.0)
        assert daily_time_needed(stats, 0) == pytest.approx(300.0)

    def test_recommended_daily_quantity(self):
        assert recommended_daily_quantity(100, 3) == 34
        assert recommended_daily_quantity(100, 0) == 100
        assert recommended_daily_quantity(-10, 3) == 0


class TestDayAndVolumeSummaries:
    """Tests for summarize_day() and volume_since()."""

    def test_summarize_day(self, make_session, now):
        records = [
            make_session(id="a", quantity=10, duration_minutes=60, observed_at=now),
            make_session(
                id="b", quantity=5, duration_minutes=30, observed_at=now - timedelta(hours=3)
            ),
            make_session(
                id="c", quantity=50, duration_minutes=300, observed_at=now - timedelta(days=1)
            ),
        ]

        summary = summarize_day(records, now.date())

        assert summary.session_count == 2
        assert summary.total_quantity == 15
        assert summary.total_minutes == 90

    def test_volume_since_previous_test(self, make_session, now):
        last_test = now - timedelta(days=2)
        records = [
            make_session(id="old", quantity=99, duration_minutes=600, observed_at=now - timedelta(days=3)),
            make_session(id="a", quantity=12, duration_minutes=45, observed_at=now - timedelta(days=1)),
            make_session(id="b", quantity=8, duration_minutes=50, observed_at=now),
        ]

        volume = volume_since(records, last_test)

        assert volume.quantity == 20
        # 95 minutes -> 1.6 hours
        assert volume.study_hours == pytest.approx(1.6)

    def test_volume_since_none_counts_everything(self, make_session):
        records = [make_session(id="a", quantity=3, duration_minutes=30)]

        volume = volume_since(records, None)

        assert volume.quantity == 3
        assert volume.study_hours == pytest.approx(0.5)
