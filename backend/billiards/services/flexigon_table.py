"""
Flexigon tables: regular polygons with circular, outward bulging sides.

A flexigon with parameters ``(n, k)`` starts from the regular n-gon
inscribed in the unit circle (same orientation as the polygon table)
and replaces every edge by a circular arc through its two vertices
whose sagitta is ``k`` times that of the circumcircle.  ``k -> 0``
recovers the polygon and ``k -> 1`` the circle; for ``0 < k < 1`` the
table is strictly convex with ``n`` genuine corners.

The outer billiard map is continuous on a flexigon but not smooth
across the one-sided tangent lines at each corner, so both one-sided
tangent rays behind a corner seed the singular set.
"""

from __future__ import annotations

import math
from typing import List, Optional, Tuple

from .errors import PointNotOnBoundary
from .geometry import AffineCircle, AffineRay, Vec2, polar
from .math_helpers import EPSILON, TAU, close_enough, fix_time, normalize_angle
from .polygon_table import regular_polygon_vertices
from .tables import AffineTable, check_exterior, extreme_tangent_point

__all__ = ["FlexigonTable"]


class FlexigonTable(AffineTable):
    """Regular flexigon with ``n`` circular sides of bulge ``k``."""

    def __init__(self, n: int = 3, k: float = 0.5) -> None:
        if n < 3:
            raise ValueError("a flexigon needs at least three sides")
        if not 0.0 < k < 1.0:
            raise ValueError("flexigon bulge k must lie strictly between 0 and 1")
        self.n = n
        self.k = k
        self.vertices: Tuple[Vec2, ...] = tuple(regular_polygon_vertices(n, 1.0))
        half = math.pi / n
        chord = math.sin(half)
        apothem = math.cos(half)
        sagitta = k * (1.0 - apothem)
        self.radius: float = (chord * chord + sagitta * sagitta) / (2.0 * sagitta)
        self.half_angle: float = math.asin(chord / self.radius)
        self._offset = half - math.pi / 2.0
        self._mid_angles: Tuple[float, ...] = tuple(self._offset + (2 * i + 1) * half for i in range(n))
        self.centers: Tuple[Vec2, ...] = tuple(
            polar(apothem + sagitta - self.radius, phi) for phi in self._mid_angles
        )
        self.arcs: Tuple[AffineCircle, ...] = tuple(AffineCircle(c, self.radius) for c in self.centers)
        self.perimeter: float = n * 2.0 * self.radius * self.half_angle

    def _sector(self, p: Vec2) -> int:
        theta = normalize_angle(p.angle() - self._offset, 0.0)
        return int(theta / (TAU / self.n)) % self.n

    def _arc_heading(self, i: int, tau: float) -> float:
        return self._mid_angles[i] + tau + math.pi / 2.0

    # -- parametrization --------------------------------------------------

    def point(self, time: float) -> Vec2:
        u = fix_time(time) * self.n
        i = min(int(u), self.n - 1)
        tau = self.half_angle * (2.0 * (u - i) - 1.0)
        return self.centers[i] + polar(self.radius, self._mid_angles[i] + tau)

    def time(self, point: Vec2) -> float:
        i = self._sector(point)
        rel = point - self.centers[i]
        if not close_enough(rel.length(), self.radius):
            raise PointNotOnBoundary("point is not on the flexigon boundary")
        tau = normalize_angle(rel.angle() - self._mid_angles[i])
        if abs(tau) > self.half_angle + EPSILON:
            raise PointNotOnBoundary("point is not on the flexigon boundary")
        frac = min(1.0, max(0.0, (tau + self.half_angle) / (2.0 * self.half_angle)))
        return fix_time((i + frac) / self.n)

    def tangent_heading(self, time: float) -> Optional[float]:
        u = fix_time(time) * self.n
        i = min(int(u), self.n - 1)
        frac = u - i
        if frac < 1e-9 or frac > 1.0 - 1e-9:
            return None
        return self._arc_heading(i, self.half_angle * (2.0 * frac - 1.0))

    # -- membership -------------------------------------------------------

    def contains_point(self, point: Vec2) -> bool:
        i = self._sector(point)
        return point.distance_to(self.centers[i]) < self.radius - EPSILON

    def _strictly_inside(self, point: Vec2) -> bool:
        return point.distance_to(self.centers[self._sector(point)]) < self.radius

    def point_on_boundary(self, point: Vec2) -> bool:
        i = self._sector(point)
        return close_enough(point.distance_to(self.centers[i]), self.radius)

    # -- tangency ---------------------------------------------------------

    def _candidates(self, point: Vec2) -> List[Vec2]:
        candidates = list(self.vertices)
        for i, circle in enumerate(self.arcs):
            if point.distance_to(circle.center) <= self.radius:
                continue
            for tp in (circle.left_tangent_point(point), circle.right_tangent_point(point)):
                tau = normalize_angle((tp - circle.center).angle() - self._mid_angles[i])
                if abs(tau) <= self.half_angle:
                    candidates.append(tp)
        return candidates

    def left_tangent_point(self, point: Vec2) -> Vec2:
        check_exterior(self, point)
        return extreme_tangent_point(point, self._candidates(point), self.reference_point, right=False)

    def right_tangent_point(self, point: Vec2) -> Vec2:
        check_exterior(self, point)
        return extreme_tangent_point(point, self._candidates(point), self.reference_point, right=True)

    # -- singular set -----------------------------------------------------

    def _corner_tangents(self, i: int) -> Tuple[Vec2, Vec2]:
        """Unit tangents at corner ``i``: end of the incoming arc, start of the outgoing one."""
        incoming = polar(1.0, self._arc_heading((i - 1) % self.n, self.half_angle))
        outgoing = polar(1.0, self._arc_heading(i, -self.half_angle))
        return incoming, outgoing

    @property
    def seed_rays(self) -> List[AffineRay]:
        rays = []
        for i, v in enumerate(self.vertices):
            incoming, outgoing = self._corner_tangents(i)
            rays.append(AffineRay.from_direction(v, -outgoing))
            rays.append(AffineRay.from_direction(v, -incoming))
        return rays

    @property
    def slicing_rays(self) -> List[AffineRay]:
        rays = []
        for i, v in enumerate(self.vertices):
            incoming, outgoing = self._corner_tangents(i)
            rays.append(AffineRay.from_direction(v, incoming))
            rays.append(AffineRay.from_direction(v, outgoing))
        return rays
