"""
Spherical geometry on the unit sphere.

Points are unit vectors in R^3.  Great circles are represented by their
unit normal; a directed arc ``p1 -> p2`` (shorter than a half turn) uses
the normal ``p1 x p2`` so that, seen from outside the sphere, the arc
turns counter-clockwise about the normal.  Points with a positive dot
product against that normal lie on the *left* of the arc.  Every
sidedness test in the spherical tables reduces to that single dot
product.

numpy is used for the 3-vector algebra; the public value types store
plain floats so they stay hashable and immutable.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import cached_property
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import DegenerateGeometry
from .geometry import Vec2
from .math_helpers import EPSILON, clamp

__all__ = [
    "SpherePoint",
    "GreatCircle",
    "SphericalArc",
    "SphericalPolygon",
    "spherical_lerp",
    "NORTH_POLE",
]

# Norm below which a cross product means the two points are (anti)parallel.
ANTIPODAL_TOLERANCE: float = 1e-12


@dataclass(frozen=True)
class SpherePoint:
    """Unit vector on the sphere."""

    x: float
    y: float
    z: float

    @staticmethod
    def from_vector(v: Union[Sequence[float], np.ndarray]) -> "SpherePoint":
        arr = np.asarray(v, dtype=float)
        if arr.shape != (3,):
            raise ValueError("sphere points need exactly three coordinates")
        norm = float(np.linalg.norm(arr))
        if norm < ANTIPODAL_TOLERANCE:
            raise DegenerateGeometry("cannot project the zero vector onto the sphere")
        arr = arr / norm
        return SpherePoint(float(arr[0]), float(arr[1]), float(arr[2]))

    @staticmethod
    def from_spherical(polar_angle: float, azimuth: float) -> "SpherePoint":
        """Point at ``polar_angle`` from the north pole and longitude ``azimuth``."""
        s = math.sin(polar_angle)
        return SpherePoint(s * math.cos(azimuth), s * math.sin(azimuth), math.cos(polar_angle))

    @staticmethod
    def equator_point(theta: float) -> "SpherePoint":
        return SpherePoint(math.cos(theta), math.sin(theta), 0.0)

    @property
    def vector(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z])

    @property
    def antipode(self) -> "SpherePoint":
        return SpherePoint(-self.x, -self.y, -self.z)

    def dot(self, other: "SpherePoint") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def distance_to(self, other: "SpherePoint") -> float:
        """Great-circle distance (an angle in ``[0, pi]``)."""
        # atan2 keeps precision for nearly coincident points.
        cross_norm = float(np.linalg.norm(np.cross(self.vector, other.vector)))
        return math.atan2(cross_norm, self.dot(other))

    def reflect_through(self, pivot: "SpherePoint") -> "SpherePoint":
        """Half turn of ``self`` about ``pivot``."""
        d = 2.0 * self.dot(pivot)
        return SpherePoint.from_vector(
            (d * pivot.x - self.x, d * pivot.y - self.y, d * pivot.z - self.z)
        )

    def stereograph(self) -> Vec2:
        """Stereographic projection from the south pole onto the equatorial plane."""
        denom = 1.0 + self.z
        if denom < ANTIPODAL_TOLERANCE:
            raise DegenerateGeometry("the south pole has no stereographic image")
        return Vec2(self.x / denom, self.y / denom)

    def is_close(self, other: "SpherePoint", eps: float = EPSILON) -> bool:
        return self.distance_to(other) < eps

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


NORTH_POLE = SpherePoint(0.0, 0.0, 1.0)


def spherical_lerp(a: SpherePoint, b: SpherePoint, t: float) -> SpherePoint:
    """Interpolate along the shorter great circle from ``a`` to ``b``.

    Raises:
        DegenerateGeometry: if ``a`` and ``b`` are antipodal.
    """
    omega = a.distance_to(b)
    if omega < ANTIPODAL_TOLERANCE:
        return a
    if math.pi - omega < 1e-9:
        raise DegenerateGeometry("interpolation between antipodal points is undefined")
    s = math.sin(omega)
    wa = math.sin((1.0 - t) * omega) / s
    wb = math.sin(t * omega) / s
    return SpherePoint.from_vector(wa * a.vector + wb * b.vector)


@dataclass(frozen=True)
class GreatCircle:
    """Great circle identified by its unit normal."""

    normal: SpherePoint

    @staticmethod
    def through(p1: SpherePoint, p2: SpherePoint) -> "GreatCircle":
        n = np.cross(p1.vector, p2.vector)
        if float(np.linalg.norm(n)) < ANTIPODAL_TOLERANCE:
            raise DegenerateGeometry("points are coincident or antipodal")
        return GreatCircle(SpherePoint.from_vector(n))

    def side(self, p: SpherePoint) -> float:
        return self.normal.dot(p)

    def contains_point(self, p: SpherePoint, eps: float = EPSILON) -> bool:
        return abs(self.side(p)) < eps

    def intersections(self, other: "GreatCircle") -> Tuple[SpherePoint, SpherePoint]:
        d = np.cross(self.normal.vector, other.normal.vector)
        if float(np.linalg.norm(d)) < ANTIPODAL_TOLERANCE:
            raise DegenerateGeometry("great circles coincide")
        p = SpherePoint.from_vector(d)
        return p, p.antipode


@dataclass(frozen=True)
class SphericalArc:
    """Directed great-circle arc from ``p1`` to ``p2`` (shorter than pi)."""

    p1: SpherePoint
    p2: SpherePoint

    @cached_property
    def great_circle(self) -> GreatCircle:
        return GreatCircle.through(self.p1, self.p2)

    @property
    def normal(self) -> SpherePoint:
        return self.great_circle.normal

    @cached_property
    def length(self) -> float:
        return self.p1.distance_to(self.p2)

    @property
    def t1(self) -> np.ndarray:
        """Unit tangent at ``p1`` pointing along the arc."""
        return np.cross(self.normal.vector, self.p1.vector)

    @property
    def t2(self) -> np.ndarray:
        """Unit tangent at ``p2`` continuing the direction of travel."""
        return np.cross(self.normal.vector, self.p2.vector)

    def lerp(self, t: float) -> SpherePoint:
        return spherical_lerp(self.p1, self.p2, t)

    @property
    def midpoint(self) -> SpherePoint:
        return self.lerp(0.5)

    def point_on_left(self, p: SpherePoint, eps: float = 0.0) -> bool:
        return self.normal.dot(p) > eps

    def contains_point(self, p: SpherePoint, eps: float = EPSILON) -> bool:
        if not self.great_circle.contains_point(p, eps):
            return False
        return abs(self.p1.distance_to(p) + p.distance_to(self.p2) - self.length) < eps

    def intersect_arc(self, other: "SphericalArc") -> Optional[SpherePoint]:
        """Crossing point of two arcs, or ``None`` if they do not meet."""
        try:
            candidates = self.great_circle.intersections(other.great_circle)
        except DegenerateGeometry:
            return None
        for c in candidates:
            if self.contains_point(c) and other.contains_point(c):
                return c
        return None

    def reflect_through(self, pivot: SpherePoint) -> "SphericalArc":
        return SphericalArc(self.p1.reflect_through(pivot), self.p2.reflect_through(pivot))

    def points(self, n: int, stereograph: bool = False) -> List[Union[SpherePoint, Vec2]]:
        """Sample ``n + 1`` points along the arc, optionally projected."""
        samples = [self.lerp(i / n) for i in range(n + 1)] if n > 0 else [self.p1, self.p2]
        if stereograph:
            return [p.stereograph() for p in samples]
        return list(samples)


class SphericalPolygon:
    """Closed chain of arcs through ``vertices`` (counter-clockwise from outside)."""

    def __init__(self, vertices: Sequence[SpherePoint]) -> None:
        if len(vertices) < 3:
            raise ValueError("a spherical polygon needs at least three vertices")
        self.vertices: Tuple[SpherePoint, ...] = tuple(vertices)
        self.n = len(self.vertices)
        self.arcs: Tuple[SphericalArc, ...] = tuple(
            SphericalArc(self.vertices[i], self.vertices[(i + 1) % self.n]) for i in range(self.n)
        )
        self.perimeter: float = sum(arc.length for arc in self.arcs)

    @property
    def antipodal_arcs(self) -> List[SphericalArc]:
        return [SphericalArc(a.p1.antipode, a.p2.antipode) for a in self.arcs]


def arc_parameter(arc: SphericalArc, p: SpherePoint) -> float:
    """Fraction of the way along ``arc`` at which ``p`` sits."""
    length = arc.length
    if length == 0.0:
        return 0.0
    return clamp(arc.p1.distance_to(p) / length, 0.0, 1.0)
