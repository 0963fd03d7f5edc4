"""
Smooth oval tables: superellipses ``|x / xs|^p + |y|^p = 1``.

Nothing about a superellipse has a closed form, so this is the table
that exercises the root finders.  The boundary is parametrized by the
polar angle of the unscaled curve, ``theta = 2 pi t``; boundary times
are recovered with ``find_on_circle`` and tangent points by bisecting
the angle between the sight line and the boundary tangent.
"""

from __future__ import annotations

import math
from typing import List, Optional

from .errors import DegenerateGeometry, PointNotOnBoundary
from .geometry import AffineRay, Vec2
from .math_helpers import EPSILON, TAU, fix_time, normalize_angle
from .root_finding import bisect, find_on_circle
from .tables import AffineTable, check_exterior

__all__ = ["SuperellipseTable"]

TANGENT_TOLERANCE: float = 1e-7
TANGENT_ITERATIONS: int = 100

# Boundary times of the four axis vertices.
AXIS_TIMES = (0.0, 0.25, 0.5, 0.75)


class SuperellipseTable(AffineTable):
    """Superellipse with exponent ``p > 1`` stretched by ``x_scale`` along x."""

    def __init__(self, p: float = 1.5, x_scale: float = 1.0) -> None:
        if p <= 1.0:
            raise ValueError("superellipse exponent must exceed 1")
        if x_scale <= 0.0:
            raise ValueError("x_scale must be positive")
        self.p = p
        self.x_scale = x_scale

    def _radius(self, c: float, s: float) -> float:
        return (abs(c) ** self.p + abs(s) ** self.p) ** (-1.0 / self.p)

    def point(self, time: float) -> Vec2:
        theta = TAU * time
        c, s = math.cos(theta), math.sin(theta)
        r = self._radius(c, s)
        return Vec2(r * c * self.x_scale, r * s)

    def tangent_vector(self, time: float) -> Vec2:
        theta = TAU * time
        c, s = math.cos(theta), math.sin(theta)
        r = self._radius(c, s)
        p = self.p
        dr = -(r ** (p + 1.0)) * (
            math.copysign(abs(s) ** (p - 1.0), s) * c - math.copysign(abs(c) ** (p - 1.0), c) * s
        )
        return Vec2((dr * c - r * s) * self.x_scale, dr * s + r * c).normalize()

    def tangent_heading(self, time: float) -> Optional[float]:
        return self.tangent_vector(time).angle()

    def _polar_time(self, point: Vec2) -> float:
        """Parameter whose boundary point lies in the direction of ``point``."""
        return fix_time(Vec2(point.x / self.x_scale, point.y).angle() / TAU)

    def time(self, point: Vec2) -> float:
        target = Vec2(point.x / self.x_scale, point.y).angle()
        t = find_on_circle(lambda u: abs(normalize_angle(TAU * u - target)))
        if self.point(t).distance_to(point) >= EPSILON:
            raise PointNotOnBoundary("point is not on the superellipse")
        return t

    def _level(self, point: Vec2) -> float:
        return abs(point.x / self.x_scale) ** self.p + abs(point.y) ** self.p

    def contains_point(self, point: Vec2) -> bool:
        return self._level(point) < 1.0 - EPSILON

    def _strictly_inside(self, point: Vec2) -> bool:
        return self._level(point) < 1.0

    def point_on_boundary(self, point: Vec2) -> bool:
        try:
            self.time(point)
        except PointNotOnBoundary:
            return False
        return True

    @property
    def extent(self) -> float:
        return math.sqrt(2.0) * max(self.x_scale, 1.0)

    # -- tangency ---------------------------------------------------------

    def _tangential_angle(self, point: Vec2, time: float, sign: float) -> float:
        r = self.point(time)
        return normalize_angle((point - r).angle() - (self.tangent_vector(time) * sign).angle())

    def _tangent_time(self, point: Vec2, right: bool) -> float:
        base = self._polar_time(point)
        if right:
            lo, hi, sign = base, base + 0.5, -1.0
        else:
            lo, hi, sign = base + 0.5, base + 1.0, 1.0

        def angle(t: float) -> float:
            return self._tangential_angle(point, t, sign)

        if not (angle(lo) > 0.0 > angle(hi)):
            raise DegenerateGeometry("tangent search interval does not bracket the tangent")
        return fix_time(bisect(angle, lo, hi, TANGENT_TOLERANCE, TANGENT_ITERATIONS))

    def left_tangent_point(self, point: Vec2) -> Vec2:
        check_exterior(self, point)
        return self.point(self._tangent_time(point, right=False))

    def right_tangent_point(self, point: Vec2) -> Vec2:
        check_exterior(self, point)
        return self.point(self._tangent_time(point, right=True))

    # -- singular set -----------------------------------------------------

    @property
    def seed_rays(self) -> List[AffineRay]:
        """Backward tangent rays at the four axis vertices."""
        return [
            AffineRay.from_direction(self.point(t), -self.tangent_vector(t)) for t in AXIS_TIMES
        ]

    @property
    def slicing_rays(self) -> List[AffineRay]:
        # The outer map of a smooth strictly convex oval is continuous.
        return []
