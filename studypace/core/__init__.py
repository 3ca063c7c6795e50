"""
Core types shared by the analytics and delivery modules.
"""

from studypace.core.exceptions import RecordNotFoundError, RecordValidationError
from studypace.core.models import (
    DaySummary,
    MentalBurden,
    PredictionInputs,
    PredictionResult,
    QueuePartition,
    ReviewState,
    SessionRecord,
    SpaceTrend,
    Stats,
    TestObservation,
    VolumeSince,
)

__all__ = [
    # Records
    "SessionRecord",
    "ReviewState",
    "TestObservation",
    # Derived values
    "Stats",
    "DaySummary",
    "VolumeSince",
    "PredictionInputs",
    "PredictionResult",
    "MentalBurden",
    "SpaceTrend",
    "QueuePartition",
    # Errors
    "RecordNotFoundError",
    "RecordValidationError",
]
