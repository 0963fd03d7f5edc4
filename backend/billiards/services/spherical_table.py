"""
Convex polygons on the unit sphere.

The polygon must fit in an open hemisphere and is stored
counter-clockwise as seen from outside the sphere, so the interior is
on the left of every edge (positive dot product with the edge normal).

Outer billiards is only defined outside both the polygon and its
antipodal copy: every great circle through a point of the antipodal
polygon also crosses the polygon itself, so no tangent arc exists
there.  The antipodal polygon is part of the singular set and is
emitted by the preimage propagator for drawing.
"""

from __future__ import annotations

import bisect as _bisect
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .errors import DegenerateGeometry, PointNotOnBoundary
from .math_helpers import EPSILON, fix_time
from .spherical import (
    NORTH_POLE,
    SpherePoint,
    SphericalArc,
    SphericalPolygon,
    arc_parameter,
    spherical_lerp,
)
from .tables import BilliardTable, Geometry, check_exterior

__all__ = [
    "SphericalPolygonTable",
    "spherical_tangent_index",
    "regular_spherical_vertices",
    "regular_spherical_polygon_table",
]


def spherical_tangent_index(vertices: Sequence[SpherePoint], point: SpherePoint, right: bool) -> int:
    """Index of the support vertex of a convex spherical polygon seen from ``point``.

    Same scan as the planar polygon, with the triple product
    ``(point x v) . w`` deciding which side of the arc ``point -> v`` the
    vertex ``w`` lies on.

    Raises:
        DegenerateGeometry: if no vertex qualifies.
    """
    n = len(vertices)
    p = point.vector
    for i in range(n):
        normal = np.cross(p, vertices[i].vector)
        prev_side = float(np.dot(normal, vertices[i - 1].vector))
        next_side = float(np.dot(normal, vertices[(i + 1) % n].vector))
        if right:
            if next_side > 0.0 and prev_side >= 0.0:
                return i
        elif prev_side <= 0.0 and next_side < 0.0:
            return i
    raise DegenerateGeometry("no spherical support vertex found")


def regular_spherical_vertices(n: int, r: float) -> List[SpherePoint]:
    """Regular n-gon centred on the north pole with angular circumradius ``r``."""
    if n < 3:
        raise ValueError("a spherical polygon needs at least three vertices")
    if not 0.0 < r < math.pi / 2.0:
        raise ValueError("spherical polygon radius must lie in (0, pi/2)")
    return [
        spherical_lerp(NORTH_POLE, SpherePoint.equator_point(i * 2.0 * math.pi / n + math.pi / 2.0), r / (math.pi / 2.0))
        for i in range(n)
    ]


class SphericalPolygonTable(BilliardTable):
    """Convex spherical polygon parametrized by arc length."""

    geometry = Geometry.SPHERICAL

    def __init__(self, vertices: Sequence[SpherePoint]) -> None:
        pts = list(vertices)
        if len(pts) < 3:
            raise ValueError("a spherical polygon needs at least three vertices")
        center = SpherePoint.from_vector(sum(v.vector for v in pts))
        first = SphericalArc(pts[0], pts[1])
        if not first.point_on_left(center):
            pts.reverse()
        n = len(pts)
        for i in range(n):
            arc = SphericalArc(pts[i], pts[(i + 1) % n])
            if not arc.point_on_left(pts[(i + 2) % n], 1e-12):
                raise ValueError("spherical polygon vertices must be strictly convex")
        self.polygon = SphericalPolygon(pts)
        self.vertices: Tuple[SpherePoint, ...] = self.polygon.vertices
        self.n = n
        self.arcs: Tuple[SphericalArc, ...] = self.polygon.arcs
        self.perimeter: float = self.polygon.perimeter
        cumulative = [0.0]
        for arc in self.arcs:
            cumulative.append(cumulative[-1] + arc.length)
        self._cumulative: Tuple[float, ...] = tuple(cumulative)
        self.center = center

    # -- parametrization --------------------------------------------------

    def _locate(self, time: float) -> Tuple[int, float]:
        s = fix_time(time) * self.perimeter
        i = min(_bisect.bisect_right(self._cumulative, s) - 1, self.n - 1)
        return i, s - self._cumulative[i]

    def point(self, time: float) -> SpherePoint:
        i, offset = self._locate(time)
        arc = self.arcs[i]
        return arc.lerp(offset / arc.length)

    def time(self, point: SpherePoint) -> float:
        for i, arc in enumerate(self.arcs):
            if arc.contains_point(point):
                s = self._cumulative[i] + arc_parameter(arc, point) * arc.length
                return fix_time(s / self.perimeter)
        raise PointNotOnBoundary("point is not on the spherical polygon")

    def tangent_heading(self, time: float) -> Optional[np.ndarray]:
        """Unit tangent 3-vector of the boundary, ``None`` at a vertex."""
        i, offset = self._locate(time)
        tol = 1e-9 * self.perimeter
        if offset < tol or self.arcs[i].length - offset < tol:
            return None
        p = self.point(time)
        return np.cross(self.arcs[i].normal.vector, p.vector)

    # -- membership -------------------------------------------------------

    def contains_point(self, point: SpherePoint) -> bool:
        return all(arc.point_on_left(point, EPSILON) for arc in self.arcs)

    def point_on_boundary(self, point: SpherePoint) -> bool:
        return any(arc.contains_point(point) for arc in self.arcs)

    def in_antipodal_polygon(self, point: SpherePoint) -> bool:
        return all(arc.normal.dot(point) < -EPSILON for arc in self.arcs)

    # -- tangency ---------------------------------------------------------

    def _support(self, point: SpherePoint, right: bool) -> SpherePoint:
        check_exterior(self, point)
        if self.in_antipodal_polygon(point):
            raise DegenerateGeometry("no tangent arcs from inside the antipodal polygon")
        return self.vertices[spherical_tangent_index(self.vertices, point, right)]

    def left_tangent_point(self, point: SpherePoint) -> SpherePoint:
        return self._support(point, right=False)

    def right_tangent_point(self, point: SpherePoint) -> SpherePoint:
        return self._support(point, right=True)

    # -- singular set -----------------------------------------------------

    @property
    def seed_arcs(self) -> List[SphericalArc]:
        """Edges continued backwards from their start vertex to the antipode of their end."""
        return [SphericalArc(arc.p1, arc.p2.antipode) for arc in self.arcs]

    @property
    def antipodal_arcs(self) -> List[SphericalArc]:
        return self.polygon.antipodal_arcs

    @property
    def slicing_arcs(self) -> List[SphericalArc]:
        """Edges continued forwards from their end vertex to the antipode of their start."""
        return [SphericalArc(arc.p2, arc.p1.antipode) for arc in self.arcs]

    def shape(self, divisions: int) -> List[SpherePoint]:
        if divisions < 3:
            raise ValueError("shape needs at least three divisions")
        per_arc = max(1, divisions // self.n)
        samples: List[SpherePoint] = []
        for arc in self.arcs:
            samples.extend(arc.lerp(j / per_arc) for j in range(per_arc))
        return samples


def regular_spherical_polygon_table(n: int = 5, r: float = 0.40235) -> SphericalPolygonTable:
    return SphericalPolygonTable(regular_spherical_vertices(n, r))
