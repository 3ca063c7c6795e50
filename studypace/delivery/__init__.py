"""
studypace delivery layer.

Components:
- SpacedRepetitionScheduler: Graduated review intervals per session
- ReviewQueue: Due / upcoming partition
- Serialization: Versioned payloads and legacy migration
- StateStore: SQLite persistence behind the RecordStore interface
- StudyService: Event flow between storage and the engines
"""

from .review_queue import ReviewQueue
from .scheduler import SchedulerConfig, SpacedRepetitionScheduler, legacy_review_state
from .serialization import dump_observation, dump_session, load_observation, load_session
from .state_store import RecordStore, ReviewEvent, StateStore
from .study_service import SpaceInsight, StudyService, SubjectPlan

__all__ = [
    # Scheduling
    "SpacedRepetitionScheduler",
    "SchedulerConfig",
    "ReviewQueue",
    "legacy_review_state",
    # Persistence
    "RecordStore",
    "StateStore",
    "ReviewEvent",
    "load_session",
    "dump_session",
    "load_observation",
    "dump_observation",
    # Service
    "StudyService",
    "SubjectPlan",
    "SpaceInsight",
]
