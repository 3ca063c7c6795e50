"""
Study Pace Statistics.

Turns raw (quantity, duration) session samples into pace estimates:
- Mean minutes per unit and its population standard deviation
- Total observed effort
- Remaining-time estimate for the unfinished quantity

Plus the planner helpers used by the dashboard (days left, daily
targets, today's totals, volume logged since the previous test).
"""

from __future__ import annotations

import math
import statistics
from datetime import date, datetime
from typing import Iterable, Protocol

from loguru import logger

from studypace.core.models import DaySummary, SessionRecord, Stats, VolumeSince


class PaceSample(Protocol):
    """Anything carrying a quantity and a duration (SessionRecord qualifies)."""

    quantity: float
    duration_minutes: float


def aggregate(samples: Iterable[PaceSample], remaining_quantity: float) -> Stats:
    """
    Aggregate session samples into pace statistics.

    Only samples with positive quantity and duration contribute a pace.
    total_duration still counts every sample, since all observed effort
    belongs in the totals.

    Args:
        samples: Session samples for a single subject
        remaining_quantity: Units still left to study (negative treated as 0)

    Returns:
        Stats (all zeros when no sample is eligible)
    """
    samples = list(samples)
    paces = [
        s.duration_minutes / s.quantity
        for s in samples
        if s.quantity > 0 and s.duration_minutes > 0
    ]

    if not paces:
        logger.debug(f"No eligible pace samples among {len(samples)} records")
        return Stats()

    mean_pace = statistics.fmean(paces)
    std_dev = statistics.pstdev(paces, mu=mean_pace)

    return Stats(
        mean_pace_per_unit=mean_pace,
        std_dev_per_unit=std_dev,
        total_duration=sum(s.duration_minutes for s in samples),
        estimated_remaining_duration=mean_pace * max(0.0, remaining_quantity),
    )


# =============================================================================
# Planner Helpers
# =============================================================================


def days_until(target: datetime, now: datetime) -> int:
    """Whole days until target, rounded up. Zero or negative once passed."""
    return math.ceil((target - now).total_seconds() / 86400)


def daily_time_needed(stats: Stats, days_left: int) -> float:
    """Minutes per day required to finish on time."""
    if days_left > 0:
        return stats.estimated_remaining_duration / days_left
    return stats.estimated_remaining_duration


def recommended_daily_quantity(remaining_quantity: float, days_left: int) -> int:
    """Units per day required to finish on time."""
    remaining = max(0.0, remaining_quantity)
    if days_left <= 0:
        return math.ceil(remaining)
    return math.ceil(remaining / days_left)


def summarize_day(records: Iterable[SessionRecord], day: date) -> DaySummary:
    """Totals for the sessions observed on a calendar day."""
    todays = [r for r in records if r.observed_at.date() == day]
    return DaySummary(
        total_minutes=sum(r.duration_minutes for r in todays),
        total_quantity=sum(r.quantity for r in todays),
        session_count=len(todays),
    )


def volume_since(
    records: Iterable[SessionRecord],
    since: datetime | None,
) -> VolumeSince:
    """
    Study volume logged strictly after `since`.

    Pre-fills a new test observation: quantity becomes its volume invested
    and the minutes become study hours, rounded to one decimal.
    """
    relevant = [r for r in records if since is None or r.observed_at > since]
    minutes = sum(r.duration_minutes for r in relevant)
    return VolumeSince(
        quantity=sum(r.quantity for r in relevant),
        study_hours=round(minutes / 60, 1),
    )
