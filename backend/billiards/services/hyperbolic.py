"""
Hyperbolic plane: points, geodesics and disk model conversions.

Points are stored on the upper sheet of the hyperboloid
``x^2 + y^2 - t^2 = -1`` in Minkowski space, which makes them
independent of the disk model used to draw them.  Isometries are then
plain linear maps: the half turn about a point ``P`` (the hyperbolic
analogue of point reflection used by outer billiards) is
``X -> -X - 2<X, P> P``.

Ideal points (the circle at infinity) are stored as null vectors scaled
to ``t = 1``.  The same linear isometries act on them, so a geodesic
ray running off to the boundary can be reflected exactly.

Two disk models are supported:

* Klein: ``k = (x, y) / t``.  Geodesics are straight chords, which is
  what lets the hyperbolic polygon reuse the Euclidean polygon
  tangent scan.
* Poincare: ``p = (x, y) / (1 + t)``.  Conformal, so headings are
  reported here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Union

import numpy as np

from .errors import DegenerateGeometry
from .geometry import Vec2

__all__ = [
    "HyperbolicModel",
    "HyperPoint",
    "HyperGeodesic",
    "minkowski_dot",
    "minkowski_cross",
    "true_to_poincare",
    "poincare_to_true",
    "true_to_klein",
    "klein_to_true",
    "poincare_to_klein",
    "klein_to_poincare",
]

# Tolerance on the Minkowski norm used to recognise ideal points.
IDEAL_TOLERANCE: float = 1e-9

_J = np.array([1.0, 1.0, -1.0])


class HyperbolicModel(str, Enum):
    POINCARE = "Poincare"
    KLEIN = "Klein"


def minkowski_dot(u: np.ndarray, v: np.ndarray) -> float:
    return float(u[0] * v[0] + u[1] * v[1] - u[2] * v[2])


def minkowski_cross(u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Vector Minkowski-orthogonal to both ``u`` and ``v``."""
    return _J * np.cross(u, v)


# -----------------------------------------------------------------------------
# Disk radius conversions


def true_to_poincare(d: float) -> float:
    """Poincare disk radius of a point at hyperbolic distance ``d`` from the centre."""
    return math.tanh(d / 2.0)


def poincare_to_true(r: float) -> float:
    return 2.0 * math.atanh(r)


def true_to_klein(d: float) -> float:
    return math.tanh(d)


def klein_to_true(k: float) -> float:
    return math.atanh(k)


def poincare_to_klein(r: float) -> float:
    return 2.0 * r / (1.0 + r * r)


def klein_to_poincare(k: float) -> float:
    return k / (1.0 + math.sqrt(max(0.0, 1.0 - k * k)))


# -----------------------------------------------------------------------------
# Points


@dataclass(frozen=True)
class HyperPoint:
    """Point of the hyperbolic plane (or of its ideal boundary)."""

    x: float
    y: float
    t: float

    @staticmethod
    def from_vector(v: Union[Sequence[float], np.ndarray]) -> "HyperPoint":
        """Project a timelike or null vector back onto the model."""
        arr = np.asarray(v, dtype=float)
        if arr[2] < 0.0:
            arr = -arr
        norm = minkowski_dot(arr, arr)
        if abs(norm) <= IDEAL_TOLERANCE * arr[2] * arr[2]:
            if arr[2] == 0.0:
                raise DegenerateGeometry("zero vector is not a hyperbolic point")
            arr = arr / arr[2]
        elif norm < 0.0:
            arr = arr / math.sqrt(-norm)
        else:
            raise DegenerateGeometry("spacelike vector is not a hyperbolic point")
        return HyperPoint(float(arr[0]), float(arr[1]), float(arr[2]))

    @staticmethod
    def from_klein(k: Union[Vec2, complex]) -> "HyperPoint":
        if isinstance(k, complex):
            k = Vec2(k.real, k.imag)
        r2 = k.length_sq()
        if r2 > 1.0 + IDEAL_TOLERANCE:
            raise ValueError("Klein coordinates must lie in the closed unit disk")
        if r2 >= 1.0 - IDEAL_TOLERANCE:
            return HyperPoint.ideal(k)
        s = 1.0 / math.sqrt(1.0 - r2)
        return HyperPoint(k.x * s, k.y * s, s)

    @staticmethod
    def from_poincare(p: Union[Vec2, complex]) -> "HyperPoint":
        if isinstance(p, complex):
            p = Vec2(p.real, p.imag)
        r2 = p.length_sq()
        if r2 > 1.0 + IDEAL_TOLERANCE:
            raise ValueError("Poincare coordinates must lie in the closed unit disk")
        if r2 >= 1.0 - IDEAL_TOLERANCE:
            return HyperPoint.ideal(p)
        s = 1.0 / (1.0 - r2)
        return HyperPoint(2.0 * p.x * s, 2.0 * p.y * s, (1.0 + r2) * s)

    @staticmethod
    def ideal(direction: Vec2) -> "HyperPoint":
        d = direction.normalize()
        return HyperPoint(d.x, d.y, 1.0)

    @property
    def vector(self) -> np.ndarray:
        return np.array([self.x, self.y, self.t])

    @property
    def is_ideal(self) -> bool:
        return abs(self.x * self.x + self.y * self.y - self.t * self.t) <= IDEAL_TOLERANCE * self.t * self.t

    @property
    def klein(self) -> Vec2:
        return Vec2(self.x / self.t, self.y / self.t)

    @property
    def poincare(self) -> Vec2:
        if self.is_ideal:
            return self.klein
        return Vec2(self.x / (1.0 + self.t), self.y / (1.0 + self.t))

    def resolve(self, model: HyperbolicModel) -> Vec2:
        """Disk coordinates of the point in ``model``."""
        if model == HyperbolicModel.KLEIN:
            return self.klein
        return self.poincare

    def distance_to(self, other: "HyperPoint") -> float:
        if self.is_ideal or other.is_ideal:
            return math.inf
        return math.acosh(max(1.0, -minkowski_dot(self.vector, other.vector)))

    def reflect_through(self, pivot: "HyperPoint") -> "HyperPoint":
        """Half turn about ``pivot``; ideal points stay ideal."""
        if pivot.is_ideal:
            raise DegenerateGeometry("cannot reflect through an ideal point")
        x = self.vector
        p = pivot.vector
        return HyperPoint.from_vector(-x - 2.0 * minkowski_dot(x, p) * p)

    def is_close(self, other: "HyperPoint", eps: float = 1e-6) -> bool:
        return self.klein.is_close(other.klein, eps)


ORIGIN = HyperPoint(0.0, 0.0, 1.0)


# -----------------------------------------------------------------------------
# Geodesics


@dataclass(frozen=True)
class HyperGeodesic:
    """Geodesic segment between two (possibly ideal) points."""

    start: HyperPoint
    end: HyperPoint

    @property
    def infinite(self) -> bool:
        return self.start.is_ideal or self.end.is_ideal

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)

    def lerp(self, fraction: float) -> HyperPoint:
        """Point at ``fraction`` of the hyperbolic length (finite geodesics)."""
        if self.infinite:
            raise DegenerateGeometry("arc-length interpolation needs finite endpoints")
        d = self.length
        if d < 1e-15:
            return self.start
        a = math.sinh((1.0 - fraction) * d) / math.sinh(d)
        b = math.sinh(fraction * d) / math.sinh(d)
        return HyperPoint.from_vector(a * self.start.vector + b * self.end.vector)

    def point_at(self, fraction: float) -> HyperPoint:
        """Point at ``fraction`` of the way along the Klein chord."""
        if fraction >= 1.0:
            return self.end
        if fraction <= 0.0:
            return self.start
        return HyperPoint.from_klein(self.start.klein.lerp(self.end.klein, fraction))

    def reflect_through(self, pivot: HyperPoint) -> "HyperGeodesic":
        return HyperGeodesic(self.start.reflect_through(pivot), self.end.reflect_through(pivot))

    def interpolate(self, model: HyperbolicModel, samples: int = 2) -> List[Vec2]:
        """Polyline approximating the geodesic in ``model`` coordinates."""
        if model == HyperbolicModel.KLEIN or samples <= 2:
            return [self.start.resolve(model), self.end.resolve(model)]
        return [self.point_at(i / (samples - 1)).resolve(model) for i in range(samples)]
