"""
Graduated-Interval Spaced Repetition Scheduler.

Each logged study session carries a ReviewState. Completing a review
advances the step and pushes the next due time out along a fixed table:

    step (before completing)   interval
    0                          1 day
    1                          4 days
    2                          7 days
    3                          14 days
    4                          28 days
    >= 5                       28 days * 2^(step - 4)

Graduating a session retires it from scheduling for good. Transitions on
a graduated state are no-ops, since double submits from the UI are normal.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from loguru import logger

from studypace.core.models import ReviewState

# =============================================================================
# Configuration
# =============================================================================


@dataclass
class SchedulerConfig:
    """Configuration for the review scheduler."""

    initial_delay_hours: float = 2.0  # first review is deferred, not immediate
    interval_days: tuple[int, ...] = field(default=(1, 4, 7, 14, 28))
    # Forgetting curve stability (days) for the retention estimate
    stability_reviewed_days: float = 14.0
    stability_unreviewed_days: float = 4.0


class SpacedRepetitionScheduler:
    """
    Pure state transitions for per-session review scheduling.

    Every method takes the current state and an explicit `now` and returns
    a new ReviewState; nothing here reads the clock.
    """

    def __init__(self, config: SchedulerConfig | None = None):
        self.config = config or SchedulerConfig()

    def interval(self, step: int) -> timedelta:
        """Interval granted when the review scheduled for `step` completes."""
        table = self.config.interval_days
        if step < len(table):
            return timedelta(days=table[step])
        # Doubling continues from the last table entry
        last = len(table) - 1
        return timedelta(days=table[last] * 2 ** (step - last))

    def initialize(self, observed_at: datetime) -> ReviewState:
        """State for a freshly logged session."""
        return ReviewState(
            step=0,
            next_due_at=observed_at + timedelta(hours=self.config.initial_delay_hours),
            graduated=False,
        )

    def complete(self, state: ReviewState, now: datetime) -> ReviewState:
        """
        Record a completed review.

        Args:
            state: Current review state
            now: Completion time

        Returns:
            New state with step + 1 and next_due_at = now + interval(step),
            or the same state if it has graduated
        """
        if state.graduated:
            logger.debug("Ignoring review completion on a graduated session")
            return state

        new_state = replace(
            state,
            step=state.step + 1,
            next_due_at=now + self.interval(state.step),
        )
        logger.debug(
            f"Review completed: step {state.step} -> {new_state.step}, "
            f"next due {new_state.next_due_at.isoformat()}"
        )
        return new_state

    def graduate(self, state: ReviewState) -> ReviewState:
        """Retire a session from scheduling permanently."""
        if state.graduated:
            return state
        logger.debug(f"Session graduated at step {state.step}")
        return replace(state, graduated=True)

    def estimate_retention(
        self,
        observed_at: datetime,
        reviewed: bool,
        now: datetime,
    ) -> int:
        """
        Simplified Ebbinghaus estimate R = e^(-t/S), as a percentage.

        t is days since the session was logged; S is the reviewed or
        unreviewed stability from the config.
        """
        days_since = (now - observed_at).total_seconds() / 86400
        stability = (
            self.config.stability_reviewed_days
            if reviewed
            else self.config.stability_unreviewed_days
        )
        retention = math.exp(-days_since / stability)
        return max(0, min(100, round(retention * 100)))


def legacy_review_state(observed_at: datetime) -> ReviewState:
    """Default for sessions logged before scheduling existed: due immediately."""
    return ReviewState(step=0, next_due_at=observed_at, graduated=False)
