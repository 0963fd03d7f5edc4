"""
One-dimensional searches used by the smooth tables.

Smooth ovals have no closed-form tangent points or boundary
parameters, so the tables fall back to three small searches:

* ``find_on_interval``: ternary search for the minimum of a unimodal
  function on an interval.
* ``find_on_circle``: the same on the periodic domain ``[0, 1)``.  The
  function must have exactly one local minimum and one local maximum
  per period.  Three samples decide which third of the circle cannot
  hold the minimum.  If the assumption fails the result may be a
  spurious local minimum, so callers verify it.
* ``bisect``: bisection on a sign change, returning a best-effort
  midpoint once the tolerance or the iteration budget is reached.
"""

from __future__ import annotations

import logging
from typing import Callable

from .errors import DegenerateGeometry
from .math_helpers import fix_time

logger = logging.getLogger(__name__)

__all__ = ["find_on_interval", "find_on_circle", "bisect"]

# Interval width at which the ternary search stops.
INTERVAL_TOLERANCE: float = 1e-10
MAX_TERNARY_STEPS: int = 200


def find_on_interval(
    f: Callable[[float], float],
    start: float,
    end: float,
    tolerance: float = INTERVAL_TOLERANCE,
) -> float:
    """Locate the minimum of a unimodal ``f`` on ``[start, end]``.

    Args:
        f: Function to minimise.
        start: Left end of the search interval.
        end: Right end of the search interval.
        tolerance: Interval width at which the search stops.

    Returns:
        The midpoint of the final bracket.
    """
    for _ in range(MAX_TERNARY_STEPS):
        if end - start < tolerance:
            break
        g2 = start + (end - start) / 3.0
        g3 = start + 2.0 * (end - start) / 3.0
        v2 = f(g2)
        v3 = f(g3)
        if v2 == v3:
            start, end = g2, g3
        elif v2 < v3:
            end = g3
        else:
            start = g2
    return 0.5 * (start + end)


def find_on_circle(
    f: Callable[[float], float],
    tolerance: float = INTERVAL_TOLERANCE,
) -> float:
    """Locate the minimum of a 1-periodic ``f`` with one min and one max.

    Returns:
        A parameter in ``[0, 1)``.  Constant functions return ``0``.
    """
    x, y, z = 0.0, 1.0 / 3.0, 2.0 / 3.0
    v1, v2, v3 = f(x), f(y), f(z)
    # Break exact ties by moving one sample.
    if v1 == v2:
        y = 0.5
        v2 = f(y)
    elif v2 == v3:
        z = 0.75
        v3 = f(z)
    elif v3 == v1:
        x = 0.25
        v1 = f(x)
    if v1 == v2 or v2 == v3:
        return 0.0

    if v1 > v2:
        if v2 > v3:
            # falling through the middle sample; minimum past z
            return fix_time(find_on_interval(f, y, x + 1.0, tolerance))
        return fix_time(find_on_interval(f, x, z, tolerance))
    if v2 < v3:
        return fix_time(find_on_interval(f, z, y + 1.0, tolerance))
    if v3 < v1:
        return fix_time(find_on_interval(f, y, x + 1.0, tolerance))
    return fix_time(find_on_interval(f, z, y + 1.0, tolerance))


def bisect(
    f: Callable[[float], float],
    lo: float,
    hi: float,
    tolerance: float = 1e-7,
    max_iterations: int = 100,
) -> float:
    """Bisect a sign change of ``f`` on ``[lo, hi]``.

    Stops when ``|f(mid)| < tolerance`` or after ``max_iterations``
    halvings and returns the current midpoint either way.

    Raises:
        DegenerateGeometry: if ``f(lo)`` and ``f(hi)`` do not bracket a root.
    """
    f_lo = f(lo)
    f_hi = f(hi)
    if f_lo == 0.0:
        return lo
    if f_hi == 0.0:
        return hi
    if (f_lo > 0.0) == (f_hi > 0.0):
        raise DegenerateGeometry("interval does not bracket a sign change")
    mid = 0.5 * (lo + hi)
    for _ in range(max_iterations):
        mid = 0.5 * (lo + hi)
        f_mid = f(mid)
        if abs(f_mid) < tolerance:
            return mid
        if (f_mid > 0.0) == (f_lo > 0.0):
            lo, f_lo = mid, f_mid
        else:
            hi = mid
    logger.debug("bisection stopped after %d iterations at %.3g", max_iterations, mid)
    return mid
