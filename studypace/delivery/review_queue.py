"""
Review queue: splits active sessions into due and upcoming.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from loguru import logger

from studypace.core.models import QueuePartition, ReviewState


class ReviewQueue:
    """
    Partitions review states at a point in time.

    Both lists are ordered by next_due_at ascending, so the most overdue
    session leads the due list. A state with no due date has never been
    scheduled and counts as due before all others. sorted() is stable,
    which keeps ties in insertion order across renders.
    """

    def partition(
        self,
        states: Iterable[tuple[str, ReviewState]],
        now: datetime,
    ) -> QueuePartition:
        due: list[tuple[str, ReviewState]] = []
        upcoming: list[tuple[str, ReviewState]] = []

        for record_id, state in states:
            if state.graduated:
                continue
            if state.is_due(now):
                due.append((record_id, state))
            else:
                upcoming.append((record_id, state))

        due.sort(
            key=lambda item: (item[1].next_due_at is not None, item[1].next_due_at or now)
        )
        upcoming.sort(key=lambda item: item[1].next_due_at)

        logger.debug(f"Review queue: {len(due)} due, {len(upcoming)} upcoming")

        return QueuePartition(
            due=[record_id for record_id, _ in due],
            upcoming=[record_id for record_id, _ in upcoming],
        )

    def count_due(self, states: Iterable[tuple[str, ReviewState]], now: datetime) -> int:
        return len(self.partition(states, now).due)
