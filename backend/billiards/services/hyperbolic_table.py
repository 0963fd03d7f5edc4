"""
Convex polygons in the hyperbolic plane.

The polygon keeps two views of itself.  For everything combinatorial
(membership, tangent vertices, the singular rays) it is a Euclidean
convex polygon in the Klein model, where hyperbolic geodesics are
straight chords; the planar polygon table does that work unchanged.
For metric questions (arc length, inner billiard flow) it uses the
hyperboloid, where each edge is the intersection with a timelike plane
with unit spacelike normal ``N`` and the interior is ``<X, N> > 0``.
"""

from __future__ import annotations

import bisect as _bisect
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .errors import DegenerateGeometry, PointNotOnBoundary
from .geometry import Vec2, polar
from .hyperbolic import (
    HyperGeodesic,
    HyperPoint,
    minkowski_cross,
    minkowski_dot,
    true_to_poincare,
)
from .math_helpers import fix_time
from .polygon_table import ConvexPolygonTable, polygon_tangent_index
from .tables import BilliardTable, Geometry, check_exterior

__all__ = [
    "HyperbolicPolygonTable",
    "regular_hyperbolic_vertices",
    "regular_hyperbolic_polygon_table",
]


def _ideal_endpoint(start: Vec2, direction: Vec2) -> HyperPoint:
    """Ideal point hit by the Klein ray from ``start`` along ``direction``."""
    d = direction.normalize()
    b = start.dot(d)
    c = start.length_sq() - 1.0
    s = -b + math.sqrt(max(0.0, b * b - c))
    return HyperPoint.ideal(start + d * s)


def _unit(v: np.ndarray) -> np.ndarray:
    norm = minkowski_dot(v, v)
    if norm <= 0.0:
        raise DegenerateGeometry("expected a spacelike vector")
    return v / math.sqrt(norm)


def regular_hyperbolic_vertices(n: int, r: float) -> List[HyperPoint]:
    """Regular n-gon about the origin with hyperbolic circumradius ``r``."""
    if n < 3:
        raise ValueError("a hyperbolic polygon needs at least three vertices")
    if r <= 0.0:
        raise ValueError("hyperbolic polygon radius must be positive")
    pr = true_to_poincare(r)
    return [
        HyperPoint.from_poincare(polar(pr, i * 2.0 * math.pi / n + math.pi / n - math.pi / 2.0))
        for i in range(n)
    ]


class HyperbolicPolygonTable(BilliardTable):
    """Convex hyperbolic polygon with finite vertices."""

    geometry = Geometry.HYPERBOLIC

    def __init__(self, vertices: Sequence[HyperPoint]) -> None:
        if any(v.is_ideal for v in vertices):
            raise ValueError("hyperbolic polygon vertices must be finite")
        self.klein_polygon = ConvexPolygonTable([v.klein for v in vertices])
        self.klein_vertices: Tuple[Vec2, ...] = self.klein_polygon.vertices
        self.vertices: Tuple[HyperPoint, ...] = tuple(HyperPoint.from_klein(k) for k in self.klein_vertices)
        self.n = len(self.vertices)
        self.edges: Tuple[HyperGeodesic, ...] = tuple(
            HyperGeodesic(self.vertices[i], self.vertices[(i + 1) % self.n]) for i in range(self.n)
        )
        center = HyperPoint.from_klein(self.klein_polygon.reference_point).vector
        normals = []
        for edge in self.edges:
            normal = _unit(minkowski_cross(edge.start.vector, edge.end.vector))
            if minkowski_dot(center, normal) < 0.0:
                normal = -normal
            normals.append(normal)
        self.normals: Tuple[np.ndarray, ...] = tuple(normals)
        cumulative = [0.0]
        for edge in self.edges:
            cumulative.append(cumulative[-1] + edge.length)
        self.perimeter: float = cumulative[-1]
        self._cumulative: Tuple[float, ...] = tuple(cumulative)

    # -- parametrization --------------------------------------------------

    def _locate(self, time: float) -> Tuple[int, float]:
        s = fix_time(time) * self.perimeter
        i = min(_bisect.bisect_right(self._cumulative, s) - 1, self.n - 1)
        return i, s - self._cumulative[i]

    def _edge_index(self, point: HyperPoint) -> int:
        for i, edge in enumerate(self.klein_polygon.edges):
            if edge.contains_point(point.klein):
                return i
        raise PointNotOnBoundary("point is not on the hyperbolic polygon")

    def point(self, time: float) -> HyperPoint:
        i, offset = self._locate(time)
        edge = self.edges[i]
        return edge.lerp(offset / edge.length)

    def time(self, point: HyperPoint) -> float:
        i = self._edge_index(point)
        s = self._cumulative[i] + min(self.edges[i].start.distance_to(point), self.edges[i].length)
        return fix_time(s / self.perimeter)

    def boundary_tangent(self, i: int, point: HyperPoint) -> np.ndarray:
        """Unit Minkowski tangent of edge ``i`` at ``point``, pointing along the edge."""
        edge = self.edges[i]
        tangent = _unit(minkowski_cross(self.normals[i], point.vector))
        if minkowski_dot(tangent, edge.end.vector - edge.start.vector) < 0.0:
            tangent = -tangent
        return tangent

    def tangent_heading(self, time: float) -> Optional[float]:
        """Heading of the boundary in the Poincare model, ``None`` at a vertex."""
        i, offset = self._locate(time)
        tol = 1e-9 * self.perimeter
        if offset < tol or self.edges[i].length - offset < tol:
            return None
        x = self.point(time)
        t = self.boundary_tangent(i, x)
        w = 1.0 + x.t
        dx = (t[0] * w - x.x * t[2]) / (w * w)
        dy = (t[1] * w - x.y * t[2]) / (w * w)
        return math.atan2(dy, dx)

    # -- membership -------------------------------------------------------

    def contains_point(self, point: HyperPoint) -> bool:
        return not point.is_ideal and self.klein_polygon.contains_point(point.klein)

    def point_on_boundary(self, point: HyperPoint) -> bool:
        return self.klein_polygon.point_on_boundary(point.klein)

    # -- tangency ---------------------------------------------------------

    def left_tangent_point(self, point: HyperPoint) -> HyperPoint:
        check_exterior(self, point)
        return self.vertices[polygon_tangent_index(self.klein_vertices, point.klein, right=False)]

    def right_tangent_point(self, point: HyperPoint) -> HyperPoint:
        check_exterior(self, point)
        return self.vertices[polygon_tangent_index(self.klein_vertices, point.klein, right=True)]

    # -- singular set -----------------------------------------------------

    @property
    def seed_geodesics(self) -> List[HyperGeodesic]:
        """Edges continued backwards from their start vertex to the ideal boundary."""
        rays = []
        for edge in self.klein_polygon.edges:
            rays.append(HyperGeodesic(HyperPoint.from_klein(edge.start), _ideal_endpoint(edge.start, edge.start - edge.end)))
        return rays

    @property
    def slicing_geodesics(self) -> List[HyperGeodesic]:
        rays = []
        for edge in self.klein_polygon.edges:
            rays.append(HyperGeodesic(HyperPoint.from_klein(edge.end), _ideal_endpoint(edge.end, edge.end - edge.start)))
        return rays

    # -- inner billiards --------------------------------------------------

    def initial_velocity(self, time: float, angle: float) -> Tuple[HyperPoint, np.ndarray]:
        """Boundary point and unit velocity leaving it at ``angle`` from the boundary."""
        i, offset = self._locate(time)
        x = self.point(time)
        tangent = self.boundary_tangent(i, x)
        return x, math.cos(angle) * tangent + math.sin(angle) * self.normals[i]

    def flow_to_boundary(self, x: HyperPoint, v: np.ndarray) -> Tuple[HyperPoint, np.ndarray]:
        """Follow the geodesic from ``x`` with velocity ``v`` to the next edge and reflect.

        Returns the hit point and the reflected unit velocity there.

        Raises:
            DegenerateGeometry: if the geodesic never meets an edge plane.
        """
        xv = x.vector
        best: Optional[Tuple[float, int]] = None
        for j, normal in enumerate(self.normals):
            vn = minkowski_dot(v, normal)
            xn = minkowski_dot(xv, normal)
            if vn >= -1e-15 or xn <= 1e-12:
                continue
            ratio = -xn / vn
            if ratio >= 1.0:
                continue
            s = math.atanh(ratio)
            if best is None or s < best[0]:
                best = (s, j)
        if best is None:
            raise DegenerateGeometry("geodesic does not reach the boundary")
        s, j = best
        hit = HyperPoint.from_vector(math.cosh(s) * xv + math.sinh(s) * v)
        w = math.sinh(s) * xv + math.cosh(s) * v
        w = w - 2.0 * minkowski_dot(w, self.normals[j]) * self.normals[j]
        # Re-project onto the tangent space at the hit point.
        y = hit.vector
        w = w + minkowski_dot(w, y) * y
        return hit, _unit(w)

    def shape(self, divisions: int) -> List[HyperPoint]:
        if divisions < 3:
            raise ValueError("shape needs at least three divisions")
        per_edge = max(1, divisions // self.n)
        samples: List[HyperPoint] = []
        for edge in self.edges:
            samples.extend(edge.lerp(j / per_edge) for j in range(per_edge))
        return samples


def regular_hyperbolic_polygon_table(n: int = 5, r: float = 0.40235) -> HyperbolicPolygonTable:
    return HyperbolicPolygonTable(regular_hyperbolic_vertices(n, r))
