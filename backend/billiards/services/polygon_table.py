"""
Convex polygon tables.

Everything about a polygon table is combinatorial: tangent points are
vertices found by an O(n) scan, the boundary is parametrized by arc
length, and inner billiard chords end on an exact ray/edge
intersection.

The singular set of the forward outer billiard map (reflection through
the right tangent vertex) is the union of rays continuing each edge
backwards past its start vertex.  Along such a ray both ends of the
edge are right tangent points.  The inverse map is discontinuous
along the rays continuing each edge forwards past its end vertex;
these are the slicing rays used by the preimage propagator.

``polygon_tangent_index`` is shared with the hyperbolic polygon, which
runs the same scan on Klein model coordinates.
"""

from __future__ import annotations

import bisect as _bisect
import math
from typing import List, Optional, Sequence, Tuple

from .errors import DegenerateGeometry, PointNotOnBoundary
from .geometry import AffineRay, LineSegment, Vec2, polar
from .math_helpers import EPSILON, fix_time
from .tables import AffineTable, check_exterior

__all__ = [
    "ConvexPolygonTable",
    "polygon_tangent_index",
    "polygon_signed_area",
    "regular_polygon_vertices",
    "regular_polygon_table",
]

# Relative tolerance for deciding that a boundary time sits on a vertex.
CORNER_TOLERANCE: float = 1e-9


def polygon_signed_area(points: Sequence[Vec2]) -> float:
    """Signed area by the shoelace formula (positive for counter-clockwise)."""
    n = len(points)
    if n < 3:
        return 0.0
    area = 0.0
    for i in range(n):
        p = points[i]
        q = points[(i + 1) % n]
        area += p.x * q.y - q.x * p.y
    return 0.5 * area


def polygon_tangent_index(vertices: Sequence[Vec2], point: Vec2, right: bool) -> int:
    """Index of the support vertex of a CCW convex polygon seen from ``point``.

    For the right support vertex both neighbours lie to the left of the ray
    from ``point`` to the vertex; for the left one both lie to the right.
    When ``point`` is collinear with an edge the far end of the edge wins,
    which keeps exactly one vertex eligible even under rounding.

    Raises:
        DegenerateGeometry: if no vertex qualifies (``point`` not exterior).
    """
    n = len(vertices)
    for i in range(n):
        to_v = vertices[i] - point
        prev_side = to_v.cross(vertices[i - 1] - point)
        next_side = to_v.cross(vertices[(i + 1) % n] - point)
        if right:
            if next_side > 0.0 and prev_side >= 0.0:
                return i
        elif prev_side <= 0.0 and next_side < 0.0:
            return i
    raise DegenerateGeometry("no support vertex found")


def regular_polygon_vertices(n: int, r: float) -> List[Vec2]:
    """Vertices of the regular n-gon of circumradius ``r`` with a flat bottom edge."""
    if n < 3:
        raise ValueError("a polygon needs at least three vertices")
    if r <= 0.0:
        raise ValueError("polygon radius must be positive")
    offset = math.pi / n - math.pi / 2.0
    return [polar(r, i * 2.0 * math.pi / n + offset) for i in range(n)]


class ConvexPolygonTable(AffineTable):
    """Strictly convex polygon, stored counter-clockwise."""

    def __init__(self, vertices: Sequence[Vec2]) -> None:
        pts = list(vertices)
        if len(pts) < 3:
            raise ValueError("a polygon needs at least three vertices")
        if polygon_signed_area(pts) < 0.0:
            pts.reverse()
        n = len(pts)
        for i in range(n):
            a, b, c = pts[i - 1], pts[i], pts[(i + 1) % n]
            if (b - a).cross(c - b) <= 1e-12:
                raise ValueError("polygon vertices must be strictly convex")
        self.vertices: Tuple[Vec2, ...] = tuple(pts)
        self.n = n
        self.edges: Tuple[LineSegment, ...] = tuple(
            LineSegment(pts[i], pts[(i + 1) % n]) for i in range(n)
        )
        lengths = [edge.length for edge in self.edges]
        cumulative = [0.0]
        for length in lengths:
            cumulative.append(cumulative[-1] + length)
        self.perimeter: float = cumulative[-1]
        self._lengths: Tuple[float, ...] = tuple(lengths)
        self._cumulative: Tuple[float, ...] = tuple(cumulative)
        self._headings: Tuple[float, ...] = tuple((e.end - e.start).angle() for e in self.edges)

    # -- parametrization --------------------------------------------------

    def point(self, time: float) -> Vec2:
        s = fix_time(time) * self.perimeter
        i = min(_bisect.bisect_right(self._cumulative, s) - 1, self.n - 1)
        edge = self.edges[i]
        return edge.start.lerp(edge.end, (s - self._cumulative[i]) / self._lengths[i])

    def time(self, point: Vec2) -> float:
        for i, edge in enumerate(self.edges):
            if edge.contains_point(point):
                s = self._cumulative[i] + edge.start.distance_to(point)
                return fix_time(s / self.perimeter)
        raise PointNotOnBoundary("point is not on the polygon boundary")

    def vertex_time(self, index: int) -> float:
        return self._cumulative[index % self.n] / self.perimeter

    def tangent_heading(self, time: float) -> Optional[float]:
        s = fix_time(time) * self.perimeter
        tol = CORNER_TOLERANCE * self.perimeter
        i = min(_bisect.bisect_right(self._cumulative, s) - 1, self.n - 1)
        if abs(s - self._cumulative[i]) < tol or abs(self._cumulative[i + 1] - s) < tol:
            return None
        return self._headings[i]

    # -- membership -------------------------------------------------------

    def contains_point(self, point: Vec2) -> bool:
        for edge in self.edges:
            if edge.line.signed_distance(point) <= EPSILON:
                return False
        return True

    def point_on_boundary(self, point: Vec2) -> bool:
        return any(edge.contains_point(point) for edge in self.edges)

    # -- tangency ---------------------------------------------------------

    def left_tangent_point(self, point: Vec2) -> Vec2:
        check_exterior(self, point)
        return self.vertices[polygon_tangent_index(self.vertices, point, right=False)]

    def right_tangent_point(self, point: Vec2) -> Vec2:
        check_exterior(self, point)
        return self.vertices[polygon_tangent_index(self.vertices, point, right=True)]

    # -- singular set -----------------------------------------------------

    @property
    def seed_rays(self) -> List[AffineRay]:
        """Edges continued backwards past their start vertex."""
        return [
            AffineRay.from_direction(e.start, e.start - e.end) for e in self.edges
        ]

    @property
    def slicing_rays(self) -> List[AffineRay]:
        """Edges continued forwards past their end vertex."""
        return [
            AffineRay.from_direction(e.end, e.end - e.start) for e in self.edges
        ]

    # -- inner billiards / rendering ------------------------------------------

    @property
    def extent(self) -> float:
        return max(v.length() for v in self.vertices)

    @property
    def reference_point(self) -> Vec2:
        sx = sum(v.x for v in self.vertices) / self.n
        sy = sum(v.y for v in self.vertices) / self.n
        return Vec2(sx, sy)

    def ray_exit(self, origin: Vec2, direction: Vec2) -> Vec2:
        ray = AffineRay.from_direction(origin, direction)
        best: Optional[float] = None
        for edge in self.edges:
            t = ray.intersection_parameter(AffineRay(edge.start, edge.end))
            if t is None or t <= 1e-9:
                continue
            if best is None or t < best:
                best = t
        if best is None:
            raise DegenerateGeometry("ray does not cross the polygon")
        return ray.point_at(best)

    def shape(self, divisions: int = 0) -> List[Vec2]:
        return list(self.vertices)


def regular_polygon_table(n: int = 5, r: float = 1.0) -> ConvexPolygonTable:
    return ConvexPolygonTable(regular_polygon_vertices(n, r))
