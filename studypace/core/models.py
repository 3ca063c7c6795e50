"""
Core value types for the analytics engine.

Everything here is a plain frozen dataclass so that engines can return new
values instead of mutating caller state. Persistence shapes live in
studypace.delivery.serialization; these types never touch storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

# =============================================================================
# Sessions and Review State
# =============================================================================


@dataclass(frozen=True)
class ReviewState:
    """Spaced repetition metadata attached 1:1 to a SessionRecord."""

    step: int = 0
    next_due_at: datetime | None = None
    graduated: bool = False

    def is_due(self, now: datetime) -> bool:
        """
        Check if this state is due for review at `now`.

        A state with no due date has never been scheduled and is due.
        """
        if self.graduated:
            return False
        return self.next_due_at is None or self.next_due_at <= now

    @property
    def has_been_reviewed(self) -> bool:
        return self.step > 0


@dataclass(frozen=True)
class SessionRecord:
    """One unit of observed study work."""

    id: str
    subject_id: str
    quantity: float  # e.g. pages
    duration_minutes: float
    observed_at: datetime
    review: ReviewState = field(default_factory=ReviewState)
    start_page: int | None = None
    end_page: int | None = None

    def __post_init__(self) -> None:
        # Sessions logged before scheduling existed are due from the moment
        # they were observed
        if self.review.next_due_at is None and not self.review.graduated:
            object.__setattr__(
                self, "review", replace(self.review, next_due_at=self.observed_at)
            )

    @property
    def is_pace_eligible(self) -> bool:
        """Only positive quantity and duration count toward pace statistics."""
        return self.quantity > 0 and self.duration_minutes > 0


# =============================================================================
# Test Observations and Predictions
# =============================================================================


@dataclass(frozen=True)
class TestObservation:
    """One scored assessment within an analysis space."""

    __test__ = False  # not a pytest class

    id: str
    space_id: str
    observed_at: datetime
    score: float  # h1
    volume_invested: float  # b, volume since the previous observation
    study_hours: float = 0.0  # tStudy
    test_minutes_actual: float = 0.0  # tTest
    test_minutes_recommended: float = 0.0  # tRec


@dataclass(frozen=True)
class PredictionInputs:
    """
    Observation pair reduced to the predictor's parameters.

    h1: previous score
    h2: score delta between the pair
    h3: target additional delta chosen by the caller
    b: volume invested between the pair
    """

    h1: float
    h2: float
    h3: float
    b: float
    t_study: float = 0.0
    t_test: float = 0.0
    t_rec: float = 0.0


@dataclass(frozen=True)
class MentalBurden:
    """Entry cost plus sustained cost of a fitted effort curve."""

    total: float = 0.0
    initial: float = 0.0
    arc_length: float = 0.0


@dataclass(frozen=True)
class PredictionResult:
    linear_volume: float = 0.0
    cubic_volume: float = 0.0
    effort_index: float = 0.0
    mental_burden: MentalBurden = field(default_factory=MentalBurden)
    density_coefficient: float = 0.0
    computable: bool = False


@dataclass(frozen=True)
class SpaceTrend:
    """Summary of all observations in one analysis space."""

    count: int = 0
    average_score: float = 0.0
    average_increase_rate: float | None = None  # score gained per unit volume
    latest_delta: float | None = None
    time_margin_minutes: float | None = None  # tRec - tTest of the latest test


# =============================================================================
# Statistics
# =============================================================================


@dataclass(frozen=True)
class Stats:
    mean_pace_per_unit: float = 0.0  # minutes per unit
    std_dev_per_unit: float = 0.0
    total_duration: float = 0.0
    estimated_remaining_duration: float = 0.0


@dataclass(frozen=True)
class DaySummary:
    total_minutes: float = 0.0
    total_quantity: float = 0.0
    session_count: int = 0


@dataclass(frozen=True)
class VolumeSince:
    """Study volume logged after a reference time."""

    quantity: float = 0.0
    study_hours: float = 0.0


@dataclass(frozen=True)
class QueuePartition:
    due: list[str] = field(default_factory=list)
    upcoming: list[str] = field(default_factory=list)
