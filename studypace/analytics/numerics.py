"""
Numerical helpers for the effort-curve model.

The effort curve is y = C * x^0.4 on a normalized progress axis. Its
arc length over [x_start, x_end] is the effort index.
"""

from __future__ import annotations

import math
from typing import Callable

CURVE_EXPONENT = 0.4
X_START = 2.0
DOMAIN_EXPONENT = 2.5


def trapezoidal(f: Callable[[float], float], a: float, b: float, n: int) -> float:
    """Composite trapezoidal rule with n equal subintervals."""
    h = (b - a) / n
    s = (f(a) + f(b)) / 2
    for i in range(1, n):
        s += f(a + i * h)
    return s * h


def compute_c(h1: float, h2: float, b: float, t_study: float) -> float:
    """
    Density coefficient C of the effort curve.

    C = ((h1+h2)^3 / ((h1+h2)^3 - h1^3)) * (t_study / b)

    The first factor is the cubic model's volume ratio, the second the
    study-time efficiency. Returns 0.0 when either denominator is zero.
    """
    if b <= 0:
        return 0.0
    sum_cube = (h1 + h2) ** 3
    denominator = sum_cube - h1**3
    if denominator == 0:
        return 0.0
    return (sum_cube / denominator) * (t_study / b)


def integration_bounds(t_test: float, t_rec: float) -> tuple[float, float] | None:
    """
    Domain of the effort curve, or None when there is no valid interval.

    x_end = (t_test / t_rec)^2.5 + 1; a test finished well under the
    recommended time gives x_end <= x_start.

    Raises:
        OverflowError: the ratio is too large for a finite domain
    """
    if t_rec <= 0:
        return None
    k = t_test / t_rec
    if k <= 0:
        return None
    x_end = k**DOMAIN_EXPONENT + 1
    if not math.isfinite(x_end):
        raise OverflowError(f"integration domain unbounded for t_test/t_rec = {k}")
    if x_end <= X_START:
        return None
    return X_START, x_end


def arc_length(c: float, x_start: float, x_end: float, subintervals: int) -> float:
    """Arc length of y = C * x^0.4 between the bounds."""

    def integrand(x: float) -> float:
        dy_dx = CURVE_EXPONENT * c * x ** (CURVE_EXPONENT - 1)
        return math.sqrt(1 + dy_dx**2)

    return trapezoidal(integrand, x_start, x_end, subintervals)


def curve_height(c: float, x: float = X_START) -> float:
    """y = C * x^0.4, the entry cost at the start of the domain."""
    return c * x**CURVE_EXPONENT
