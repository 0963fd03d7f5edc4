"""
Euclidean primitives used by the planar billiard tables.

This module is deliberately free of any table or billiard specific
logic.  It provides an immutable 2D vector type, infinite lines in
normal form, finite segments, circles with closed-form tangency
constructions and the ``AffineRay`` segment type produced by the
preimage propagator.

Conventions:

* Lines are stored as ``a*x + b*y = c`` with ``(a, b)`` a unit normal
  pointing to the *left* of the line's direction.  ``signed_distance``
  is therefore positive on the left.
* "Left" and "right" tangent points are named from the point of view of
  a viewer standing at the external point and looking at the circle.
* Constructions that have no answer (parallel lines, points inside a
  circle) raise the exceptions in :mod:`.errors`; callers on the orbit
  and preimage paths catch them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .errors import DegenerateGeometry, PointInsideTable
from .math_helpers import EPSILON, clamp, close_enough

__all__ = [
    "Vec2",
    "polar",
    "vec_from_complex",
    "Line",
    "LineSegment",
    "AffineCircle",
    "AffineRay",
    "UNIT_CIRCLE",
]

# Determinant below which two unit-normal lines are treated as parallel.
PARALLEL_TOLERANCE: float = 1e-12


@dataclass(frozen=True)
class Vec2:
    """Immutable point / vector in the Euclidean plane."""

    x: float
    y: float

    def __add__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, s: float) -> "Vec2":
        return Vec2(self.x * s, self.y * s)

    __rmul__ = __mul__

    def __truediv__(self, s: float) -> "Vec2":
        return Vec2(self.x / s, self.y / s)

    def __neg__(self) -> "Vec2":
        return Vec2(-self.x, -self.y)

    def dot(self, other: "Vec2") -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: "Vec2") -> float:
        """Z component of the 3D cross product; positive if ``other`` is CCW."""
        return self.x * other.y - self.y * other.x

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def length_sq(self) -> float:
        return self.x * self.x + self.y * self.y

    def distance_to(self, other: "Vec2") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def angle(self) -> float:
        """Heading of the vector in ``(-pi, pi]``."""
        return math.atan2(self.y, self.x)

    def normalize(self) -> "Vec2":
        norm = self.length()
        if norm < PARALLEL_TOLERANCE:
            raise DegenerateGeometry("cannot normalize a zero-length vector")
        return Vec2(self.x / norm, self.y / norm)

    def rotate(self, theta: float) -> "Vec2":
        c, s = math.cos(theta), math.sin(theta)
        return Vec2(c * self.x - s * self.y, s * self.x + c * self.y)

    def perp(self) -> "Vec2":
        """The vector rotated a quarter turn counter-clockwise."""
        return Vec2(-self.y, self.x)

    def lerp(self, other: "Vec2", t: float) -> "Vec2":
        return Vec2(self.x + (other.x - self.x) * t, self.y + (other.y - self.y) * t)

    def reflect_through(self, pivot: "Vec2") -> "Vec2":
        """Point reflection of ``self`` through ``pivot``."""
        return Vec2(2.0 * pivot.x - self.x, 2.0 * pivot.y - self.y)

    def is_close(self, other: "Vec2", eps: float = EPSILON) -> bool:
        return close_enough(self.x, other.x, eps) and close_enough(self.y, other.y, eps)

    def to_complex(self) -> complex:
        return complex(self.x, self.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


ORIGIN = Vec2(0.0, 0.0)


def polar(r: float, theta: float) -> Vec2:
    """Vector of length ``r`` with heading ``theta``."""
    return Vec2(r * math.cos(theta), r * math.sin(theta))


def vec_from_complex(z: complex) -> Vec2:
    return Vec2(z.real, z.imag)


# -----------------------------------------------------------------------------
# Lines and segments


@dataclass(frozen=True)
class Line:
    """Infinite directed line ``a*x + b*y = c`` with unit normal ``(a, b)``."""

    a: float
    b: float
    c: float

    @staticmethod
    def src_dir(src: Vec2, direction: Vec2) -> "Line":
        d = direction.normalize()
        a, b = -d.y, d.x
        return Line(a, b, a * src.x + b * src.y)

    @staticmethod
    def through_two_points(p1: Vec2, p2: Vec2) -> "Line":
        return Line.src_dir(p1, p2 - p1)

    @property
    def normal(self) -> Vec2:
        return Vec2(self.a, self.b)

    @property
    def direction(self) -> Vec2:
        return Vec2(self.b, -self.a)

    @property
    def slope(self) -> float:
        if abs(self.b) < PARALLEL_TOLERANCE:
            return math.inf
        return -self.a / self.b

    def signed_distance(self, p: Vec2) -> float:
        """Distance from the line, positive on the left of its direction."""
        return self.a * p.x + self.b * p.y - self.c

    def contains_point(self, p: Vec2, eps: float = EPSILON) -> bool:
        return abs(self.signed_distance(p)) < eps

    def project(self, p: Vec2) -> Vec2:
        return p - self.normal * self.signed_distance(p)

    def perp_at_point(self, p: Vec2) -> "Line":
        return Line.src_dir(p, self.normal)

    def intersect_line(self, other: "Line") -> Vec2:
        """Return the unique intersection point.

        Raises:
            DegenerateGeometry: if the lines are parallel or coincident.
        """
        det = self.a * other.b - other.a * self.b
        if abs(det) < PARALLEL_TOLERANCE:
            raise DegenerateGeometry("lines are parallel")
        x = (self.c * other.b - other.c * self.b) / det
        y = (self.a * other.c - other.a * self.c) / det
        return Vec2(x, y)


@dataclass(frozen=True)
class LineSegment:
    """Finite segment from ``start`` to ``end``."""

    start: Vec2
    end: Vec2

    @property
    def line(self) -> Line:
        return Line.through_two_points(self.start, self.end)

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)

    @property
    def midpoint(self) -> Vec2:
        return self.start.lerp(self.end, 0.5)

    def closest_point(self, p: Vec2) -> Vec2:
        d = self.end - self.start
        denom = d.length_sq()
        if denom == 0.0:
            return self.start
        t = clamp((p - self.start).dot(d) / denom, 0.0, 1.0)
        return self.start + d * t

    def contains_point(self, p: Vec2, eps: float = EPSILON) -> bool:
        return self.closest_point(p).distance_to(p) < eps


# -----------------------------------------------------------------------------
# Circles


@dataclass(frozen=True)
class AffineCircle:
    """Circle with closed-form tangency constructions."""

    center: Vec2
    radius: float

    def point_at_angle(self, theta: float) -> Vec2:
        return self.center + polar(self.radius, theta)

    def contains_point(self, p: Vec2) -> bool:
        return p.distance_to(self.center) < self.radius and not self.point_on_boundary(p)

    def point_on_boundary(self, p: Vec2, eps: float = EPSILON) -> bool:
        return close_enough(p.distance_to(self.center), self.radius, eps)

    def _tangent_angles(self, point: Vec2) -> Tuple[float, float]:
        d = point.distance_to(self.center)
        if d < self.radius and not close_enough(d, self.radius):
            raise PointInsideTable("point lies inside the circle")
        if d == 0.0:
            raise DegenerateGeometry("zero radius circle seen from its centre")
        alpha = math.acos(clamp(self.radius / d, -1.0, 1.0))
        phi = (point - self.center).angle()
        return phi - alpha, phi + alpha

    def left_tangent_point(self, point: Vec2) -> Vec2:
        """Tangency point on the viewer's left, looking from ``point``."""
        left, _ = self._tangent_angles(point)
        return self.point_at_angle(left)

    def right_tangent_point(self, point: Vec2) -> Vec2:
        _, right = self._tangent_angles(point)
        return self.point_at_angle(right)

    def _outer_tangent(self, other: "AffineCircle", sign: float) -> LineSegment:
        offset = other.center - self.center
        d = offset.length()
        if d <= abs(self.radius - other.radius) + PARALLEL_TOLERANCE:
            raise DegenerateGeometry("one circle contains the other")
        gamma = math.acos(clamp((other.radius - self.radius) / d, -1.0, 1.0))
        n = polar(1.0, offset.angle() + sign * gamma)
        return LineSegment(self.center - n * self.radius, other.center - n * other.radius)

    def left_tangent_line_segment(self, other: "AffineCircle") -> LineSegment:
        """Common outer tangent on the left, looking from ``self`` to ``other``.

        The segment runs from the tangency point on ``self`` to the one on
        ``other``; both circles lie on its right.
        """
        return self._outer_tangent(other, -1.0)

    def right_tangent_line_segment(self, other: "AffineCircle") -> LineSegment:
        return self._outer_tangent(other, 1.0)


UNIT_CIRCLE = AffineCircle(ORIGIN, 1.0)


# -----------------------------------------------------------------------------
# Rays


@dataclass(frozen=True)
class AffineRay:
    """Directed segment, or ray when ``infinite`` is set.

    For an infinite ray ``end`` is any point further along the ray; the
    propagator keeps it one unit from ``start`` so that point reflections
    preserve the convention.
    """

    start: Vec2
    end: Vec2
    infinite: bool = False

    @staticmethod
    def from_direction(start: Vec2, direction: Vec2) -> "AffineRay":
        return AffineRay(start, start + direction.normalize(), True)

    @property
    def vector(self) -> Vec2:
        return self.end - self.start

    @property
    def length(self) -> float:
        if self.infinite:
            return math.inf
        return self.start.distance_to(self.end)

    @property
    def midpoint(self) -> Vec2:
        return self.start.lerp(self.end, 0.5)

    def point_at(self, t: float) -> Vec2:
        return self.start + self.vector * t

    def intersection_parameter(self, other: "AffineRay", eps: float = 1e-12) -> Optional[float]:
        """Parameter along ``self`` where it crosses ``other``, if it does."""
        r = self.vector
        s = other.vector
        denom = r.cross(s)
        if abs(denom) < PARALLEL_TOLERANCE:
            return None
        qp = other.start - self.start
        t = qp.cross(s) / denom
        u = qp.cross(r) / denom
        if t < -eps or u < -eps:
            return None
        if not self.infinite and t > 1.0 + eps:
            return None
        if not other.infinite and u > 1.0 + eps:
            return None
        return t

    def intersect(self, other: "AffineRay") -> Optional[Vec2]:
        t = self.intersection_parameter(other)
        if t is None:
            return None
        return self.point_at(t)

    def reflect_through(self, pivot: Vec2) -> "AffineRay":
        return AffineRay(self.start.reflect_through(pivot), self.end.reflect_through(pivot), self.infinite)

    def slice(self, cutters: Iterable["AffineRay"], eps: float = 1e-9) -> List["AffineRay"]:
        """Split at every crossing with ``cutters``.

        Crossings within ``eps`` (in parameter units) of an endpoint are
        ignored so a segment that starts on a cutter is not split there.
        """
        cuts: List[float] = []
        for cutter in cutters:
            t = self.intersection_parameter(cutter)
            if t is None or t <= eps:
                continue
            if not self.infinite and t >= 1.0 - eps:
                continue
            cuts.append(t)
        cuts.sort()
        params = [0.0]
        for t in cuts:
            if t - params[-1] > eps:
                params.append(t)
        pieces: List[AffineRay] = []
        for t0, t1 in zip(params, params[1:]):
            pieces.append(AffineRay(self.point_at(t0), self.point_at(t1)))
        last = self.point_at(params[-1])
        if self.infinite:
            pieces.append(AffineRay(last, last + self.vector, True))
        else:
            pieces.append(AffineRay(last, self.end))
        return pieces
