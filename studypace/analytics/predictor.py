"""
Performance Predictor - Study Volume Needed for the Next Score Gain.

Given two temporally adjacent test observations in one analysis space,
estimates:
1. Linear projection - volume scales with the observed delta
2. Cubic projection - score grows as the cube root of cumulative effort
3. Effort index - arc length of the fitted effort curve y = C * x^0.4
4. Mental burden - entry cost plus a coarser arc length, used as a weight

Degenerate pairs (no improvement, no volume, zero prior score) never raise:
every sub-algorithm returns its zero sentinel and the dashboard shows a
placeholder instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from loguru import logger

from studypace.analytics.numerics import (
    arc_length,
    compute_c,
    curve_height,
    integration_bounds,
)
from studypace.core.models import (
    MentalBurden,
    PredictionInputs,
    PredictionResult,
    SpaceTrend,
    TestObservation,
)

MIN_EFFORT_SUBINTERVALS = 2000
MIN_BURDEN_SUBINTERVALS = 50


@dataclass
class PredictorConfig:
    """Integration precision for the predictor."""

    # Reported effort index values depend on this; do not lower it
    effort_subintervals: int = MIN_EFFORT_SUBINTERVALS
    burden_subintervals: int = MIN_BURDEN_SUBINTERVALS

    def __post_init__(self) -> None:
        if self.effort_subintervals < MIN_EFFORT_SUBINTERVALS:
            raise ValueError(
                f"effort_subintervals must be >= {MIN_EFFORT_SUBINTERVALS}, "
                f"got {self.effort_subintervals}"
            )
        if self.burden_subintervals < MIN_BURDEN_SUBINTERVALS:
            raise ValueError(
                f"burden_subintervals must be >= {MIN_BURDEN_SUBINTERVALS}, "
                f"got {self.burden_subintervals}"
            )


def is_computable(inputs: PredictionInputs) -> bool:
    """Shared precondition: positive prior score, volume and improvement."""
    return inputs.h1 > 0 and inputs.b > 0 and inputs.h2 > 0


class PerformancePredictor:
    """
    Projects the study volume needed for a target score gain.

    Stateless apart from its precision config; results are never cached
    because they depend on the caller's target delta (h3).
    """

    def __init__(self, config: PredictorConfig | None = None):
        self.config = config or PredictorConfig()

    def linear_volume(self, inputs: PredictionInputs) -> float:
        """(b / h2) * h3"""
        if not is_computable(inputs):
            return 0.0
        return (inputs.b / inputs.h2) * inputs.h3

    def cubic_volume(self, inputs: PredictionInputs) -> float:
        """
        Volume needed under the cube-root growth model.

        ratio1 = ((h1 + h2) / h1)^3
        bucket = b + b / (ratio1 - 1)   effective volume accumulated so far
        ratio2 = ((h1 + h2 + h3) / (h1 + h2))^3
        cubic  = bucket * (ratio2 - 1)
        """
        if not is_computable(inputs):
            return 0.0

        h1, h2, h3, b = inputs.h1, inputs.h2, inputs.h3, inputs.b
        try:
            ratio1 = ((h1 + h2) / h1) ** 3
            if ratio1 == 1:
                return 0.0
            bucket = b + b / (ratio1 - 1)
            ratio2 = ((h1 + h2 + h3) / (h1 + h2)) ** 3
        except (OverflowError, ZeroDivisionError) as e:
            logger.warning(f"Cubic projection failed for {inputs}: {e}")
            return 0.0

        return max(0.0, bucket * (ratio2 - 1))

    def density_coefficient(self, inputs: PredictionInputs) -> float:
        if not is_computable(inputs):
            return 0.0
        try:
            return compute_c(inputs.h1, inputs.h2, inputs.b, inputs.t_study)
        except OverflowError as e:
            logger.warning(f"Density coefficient overflow for {inputs}: {e}")
            return 0.0

    def effort_index(self, inputs: PredictionInputs) -> float:
        """Arc length of the effort curve at full precision."""
        return self._arc_length(inputs, self.config.effort_subintervals)

    def mental_burden(self, inputs: PredictionInputs) -> MentalBurden:
        """
        Entry cost C * 2^0.4 plus a lower-precision arc length.

        The arc length is zero when the test has no valid domain, in which
        case the burden is the entry cost alone.
        """
        if not is_computable(inputs):
            return MentalBurden()

        c = self.density_coefficient(inputs)
        initial = curve_height(c)
        sustained = self._arc_length(inputs, self.config.burden_subintervals)
        return MentalBurden(
            total=initial + sustained,
            initial=initial,
            arc_length=sustained,
        )

    def predict(self, inputs: PredictionInputs) -> PredictionResult:
        """Run every sub-algorithm on one observation pair."""
        if not is_computable(inputs):
            logger.debug(f"Prediction not computable: {inputs}")
            return PredictionResult()

        return PredictionResult(
            linear_volume=self.linear_volume(inputs),
            cubic_volume=self.cubic_volume(inputs),
            effort_index=self.effort_index(inputs),
            mental_burden=self.mental_burden(inputs),
            density_coefficient=self.density_coefficient(inputs),
            computable=True,
        )

    def _arc_length(self, inputs: PredictionInputs, subintervals: int) -> float:
        if not is_computable(inputs):
            return 0.0

        c = self.density_coefficient(inputs)
        try:
            bounds = integration_bounds(inputs.t_test, inputs.t_rec)
            if bounds is None:
                return 0.0
            return arc_length(c, bounds[0], bounds[1], subintervals)
        except OverflowError as e:
            logger.warning(f"Arc length integration failed for {inputs}: {e}")
            return 0.0


# =============================================================================
# Observation Pairs
# =============================================================================


def latest_pair(
    observations: Iterable[TestObservation],
) -> tuple[TestObservation, TestObservation] | None:
    """
    The latest observation and the one immediately preceding it.

    Returns:
        (previous, latest), or None with fewer than two observations
    """
    ordered = sorted(observations, key=lambda o: o.observed_at)
    if len(ordered) < 2:
        return None
    return ordered[-2], ordered[-1]


def inputs_from_pair(
    previous: TestObservation,
    latest: TestObservation,
    h3: float,
) -> PredictionInputs:
    """Reduce an adjacent pair to predictor inputs; timing comes from latest."""
    return PredictionInputs(
        h1=previous.score,
        h2=latest.score - previous.score,
        h3=h3,
        b=latest.volume_invested,
        t_study=latest.study_hours,
        t_test=latest.test_minutes_actual,
        t_rec=latest.test_minutes_recommended,
    )


def analyze_space(observations: Sequence[TestObservation]) -> SpaceTrend:
    """
    Trend summary for one analysis space.

    average_increase_rate averages score gained per unit volume over
    adjacent pairs whose later observation invested some volume.
    """
    ordered = sorted(observations, key=lambda o: o.observed_at)
    if not ordered:
        return SpaceTrend()

    latest = ordered[-1]
    average_score = sum(o.score for o in ordered) / len(ordered)

    increase_rate = None
    latest_delta = None
    if len(ordered) >= 2:
        rates = [
            (cur.score - prev.score) / cur.volume_invested
            for prev, cur in zip(ordered, ordered[1:])
            if cur.volume_invested > 0
        ]
        increase_rate = sum(rates) / len(rates) if rates else 0.0
        latest_delta = latest.score - ordered[-2].score

    return SpaceTrend(
        count=len(ordered),
        average_score=average_score,
        average_increase_rate=increase_rate,
        latest_delta=latest_delta,
        time_margin_minutes=(
            latest.test_minutes_recommended - latest.test_minutes_actual
        ),
    )
