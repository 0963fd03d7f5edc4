"""
Semidisk tables: the unit disk cut by a horizontal chord.

The chord sits at ``y = -cos(beta)`` and has half-length ``sin(beta)``,
so ``beta = 0`` is the full unit disk and ``beta = pi/2`` the upper
half disk.  Time 0 is the right corner.  The arc runs counter-clockwise
over the top to the left corner, which is reached at ``curve_time``,
and the flat edge takes the remaining ``flat_time`` back to the right
corner.

Tangent points have a closed form: a support point is either one of the
corners or a tangency point of the unit circle that lies on the arc.
"""

from __future__ import annotations

import math
from typing import List, Optional

from .errors import PointNotOnBoundary
from .geometry import UNIT_CIRCLE, AffineRay, Vec2, polar
from .math_helpers import EPSILON, close_enough, fix_time, normalize_angle
from .tables import AffineTable, check_exterior, extreme_tangent_point

__all__ = ["SemidiskTable"]


def _arc_tangent(theta: float) -> Vec2:
    """Counter-clockwise unit tangent of the unit circle at angle ``theta``."""
    return Vec2(-math.sin(theta), math.cos(theta))


def _dedupe(rays: List[AffineRay]) -> List[AffineRay]:
    unique: List[AffineRay] = []
    for ray in rays:
        if not any(ray.start.is_close(u.start) and ray.end.is_close(u.end) for u in unique):
            unique.append(ray)
    return unique


class SemidiskTable(AffineTable):
    """Unit disk minus the cap below ``y = -cos(beta)``."""

    def __init__(self, beta: float = math.pi / 2.0) -> None:
        if not 0.0 <= beta < math.pi:
            raise ValueError("semidisk beta must lie in [0, pi)")
        self.beta = beta
        self.perimeter: float = 2.0 * (math.pi - beta) + 2.0 * math.sin(beta)
        self.curve_time: float = 2.0 * (math.pi - beta) / self.perimeter
        self.flat_time: float = 2.0 * math.sin(beta) / self.perimeter
        self.x: float = math.sin(beta)
        self.y: float = -math.cos(beta)
        self.left_corner = Vec2(-self.x, self.y)
        self.right_corner = Vec2(self.x, self.y)
        self._start_angle = beta - math.pi / 2.0
        self._end_angle = 1.5 * math.pi - beta

    # -- parametrization --------------------------------------------------

    def point(self, time: float) -> Vec2:
        t = fix_time(time)
        if t <= self.curve_time or self.flat_time == 0.0:
            return polar(1.0, t * self.perimeter + self._start_angle)
        alpha = (t - self.curve_time) / self.flat_time
        return Vec2((2.0 * alpha - 1.0) * self.x, self.y)

    def time(self, point: Vec2) -> float:
        if point.y >= self.y - EPSILON and close_enough(point.length_sq(), 1.0):
            arc = normalize_angle(point.angle() - self._start_angle, 0.0)
            t = arc / self.perimeter
            if t <= self.curve_time + EPSILON:
                return fix_time(min(t, self.curve_time))
        if self.x > 0.0 and close_enough(point.y, self.y) and abs(point.x) <= self.x + EPSILON:
            alpha = min(1.0, max(0.0, 0.5 * (point.x / self.x + 1.0)))
            return fix_time(self.curve_time + self.flat_time * alpha)
        raise PointNotOnBoundary("point is not on the semidisk boundary")

    def tangent_heading(self, time: float) -> Optional[float]:
        t = fix_time(time)
        if self.beta > 0.0 and (
            t < 1e-9 or t > 1.0 - 1e-9 or abs(t - self.curve_time) < 1e-9
        ):
            return None
        if t <= self.curve_time:
            return t * self.perimeter + self._start_angle + math.pi / 2.0
        return 0.0

    # -- membership -------------------------------------------------------

    def contains_point(self, point: Vec2) -> bool:
        return point.y - self.y > EPSILON and point.length() < 1.0 - EPSILON

    def _strictly_inside(self, point: Vec2) -> bool:
        return point.y > self.y and point.length_sq() < 1.0

    def point_on_boundary(self, point: Vec2) -> bool:
        on_arc = point.y >= self.y - EPSILON and close_enough(point.length(), 1.0)
        on_flat = close_enough(point.y, self.y) and abs(point.x) <= self.x + EPSILON
        return on_arc or on_flat

    # -- tangency ---------------------------------------------------------

    @property
    def reference_point(self) -> Vec2:
        return Vec2(0.0, 0.5 * (self.y + 1.0))

    def _candidates(self, point: Vec2) -> List[Vec2]:
        candidates = [self.left_corner, self.right_corner]
        if point.length() > 1.0:
            for tp in (UNIT_CIRCLE.left_tangent_point(point), UNIT_CIRCLE.right_tangent_point(point)):
                if tp.y >= self.y:
                    candidates.append(tp)
        return candidates

    def left_tangent_point(self, point: Vec2) -> Vec2:
        check_exterior(self, point)
        return extreme_tangent_point(point, self._candidates(point), self.reference_point, right=False)

    def right_tangent_point(self, point: Vec2) -> Vec2:
        check_exterior(self, point)
        return extreme_tangent_point(point, self._candidates(point), self.reference_point, right=True)

    # -- singular set -----------------------------------------------------

    @property
    def seed_rays(self) -> List[AffineRay]:
        """Lines behind each corner along which the right support point jumps or kinks."""
        return _dedupe([
            AffineRay.from_direction(self.left_corner, Vec2(-1.0, 0.0)),
            AffineRay.from_direction(self.left_corner, -_arc_tangent(self._end_angle)),
            AffineRay.from_direction(self.right_corner, -_arc_tangent(self._start_angle)),
        ])

    @property
    def slicing_rays(self) -> List[AffineRay]:
        return _dedupe([
            AffineRay.from_direction(self.right_corner, Vec2(1.0, 0.0)),
            AffineRay.from_direction(self.left_corner, _arc_tangent(self._end_angle)),
            AffineRay.from_direction(self.right_corner, _arc_tangent(self._start_angle)),
        ])

    def shape(self, divisions: int) -> List[Vec2]:
        """Arc samples from the right corner to the left one; the flat edge closes the loop."""
        if divisions < 3:
            raise ValueError("shape needs at least three divisions")
        return [self.point(self.curve_time * i / divisions) for i in range(divisions + 1)]
