"""Small numeric helpers shared by every geometry module."""

from __future__ import annotations

import math

EPSILON: float = 1e-6
TAU: float = 2.0 * math.pi


def close_enough(a: float, b: float, eps: float = EPSILON) -> bool:
    """Return True if ``a`` and ``b`` differ by less than ``eps``."""
    return abs(a - b) < eps


def normalize_angle(theta: float, low: float = -math.pi) -> float:
    """Reduce ``theta`` into the half-open window ``[low, low + 2*pi)``."""
    reduced = (theta - low) % TAU
    # Floating point modulo can return exactly TAU for tiny negative inputs.
    if reduced >= TAU:
        reduced -= TAU
    return low + reduced


def fix_time(t: float) -> float:
    """Reduce a boundary time into ``[0, 1)``."""
    reduced = t % 1.0
    if reduced >= 1.0:
        return 0.0
    return reduced


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
