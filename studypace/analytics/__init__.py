"""
Learning-pace analytics.

Provides:
- Pace statistics and planner helpers
- Score-gain volume projections (linear and cubic)
- Effort index and mental burden via arc-length integration
"""

from studypace.analytics.pace_statistics import (
    aggregate,
    daily_time_needed,
    days_until,
    recommended_daily_quantity,
    summarize_day,
    volume_since,
)
from studypace.analytics.predictor import (
    PerformancePredictor,
    PredictorConfig,
    analyze_space,
    inputs_from_pair,
    latest_pair,
)

__all__ = [
    "aggregate",
    "daily_time_needed",
    "days_until",
    "recommended_daily_quantity",
    "summarize_day",
    "volume_since",
    "PerformancePredictor",
    "PredictorConfig",
    "analyze_space",
    "inputs_from_pair",
    "latest_pair",
]
