"""
The billiard table contract shared by every table variant.

A table is an immutable description of a convex region with a
periodic boundary parametrization.  The orbit iterator and the
preimage propagator only talk to tables through the methods declared
on ``BilliardTable``:

* ``point(time)`` / ``time(point)``: boundary parametrization with
  period one and its partial inverse.
* ``tangent_heading(time)``: direction of the boundary, ``None`` at
  corners.
* ``left_tangent_point`` / ``right_tangent_point``: support points seen
  from an exterior point.  The table lies on the left of the ray from
  the point to its right tangent point and on the right of the ray to
  its left tangent point.  The forward outer billiard map pivots on the
  right tangent point and its inverse on the left one.
* ``contains_point`` (strict interior) and ``point_on_boundary``.
* ``shape(divisions)``: a polyline for renderers.

Each variant lives in its own module and derives from one of the
geometry specific bases below; there is no shared mutable state.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional, TYPE_CHECKING

from .errors import DegenerateGeometry, PointInsideTable, PointOnBoundary
from .geometry import ORIGIN, Vec2
from .math_helpers import normalize_angle

if TYPE_CHECKING:  # pragma: no cover
    from .settings import PreimageSettings

__all__ = [
    "Duality",
    "Generator",
    "Geometry",
    "Chord",
    "BilliardTable",
    "AffineTable",
    "check_exterior",
    "extreme_tangent_point",
]


class Duality(str, Enum):
    INNER = "Inner"
    OUTER = "Outer"


class Generator(str, Enum):
    LENGTH = "Length"
    AREA = "Area"


class Geometry(str, Enum):
    EUCLIDEAN = "Euclidean"
    HYPERBOLIC = "Hyperbolic"
    SPHERICAL = "Spherical"


@dataclass(frozen=True)
class Chord:
    """One inner billiard bounce from ``p1`` to ``p2``."""

    p1: Any
    p2: Any
    start_time: float
    end_time: float


class BilliardTable(ABC):
    """Abstract convex billiard table."""

    geometry: Geometry

    @abstractmethod
    def point(self, time: float) -> Any:
        """Boundary point at ``time`` (taken mod 1)."""

    @abstractmethod
    def time(self, point: Any) -> float:
        """Boundary parameter of ``point``.

        Raises:
            PointNotOnBoundary: if ``point`` is not on the boundary.
        """

    @abstractmethod
    def tangent_heading(self, time: float) -> Optional[Any]:
        """Boundary direction at ``time`` or ``None`` at a corner."""

    @abstractmethod
    def left_tangent_point(self, point: Any) -> Any:
        """Support point on the viewer's left, seen from ``point``."""

    @abstractmethod
    def right_tangent_point(self, point: Any) -> Any:
        """Support point on the viewer's right, seen from ``point``."""

    @abstractmethod
    def contains_point(self, point: Any) -> bool:
        """Strict interior test."""

    @abstractmethod
    def point_on_boundary(self, point: Any) -> bool:
        """Boundary test within tolerance."""

    def shape(self, divisions: int) -> List[Any]:
        """Boundary polyline with ``divisions`` samples."""
        if divisions < 3:
            raise ValueError("shape needs at least three divisions")
        return [self.point(i / divisions) for i in range(divisions)]

    def preimages(
        self,
        generator: Generator,
        iterations: int,
        skip_interval: int = 0,
        settings: Optional["PreimageSettings"] = None,
    ) -> List[Any]:
        """Singular set of the outer billiard map and its preimages."""
        from .preimages import preimages

        return preimages(self, generator, iterations, skip_interval=skip_interval, settings=settings)


def check_exterior(table: BilliardTable, point: Any) -> None:
    """Raise unless ``point`` lies strictly outside ``table``."""
    if table.point_on_boundary(point):
        raise PointOnBoundary("point lies on the table boundary")
    if table.contains_point(point):
        raise PointInsideTable("point lies inside the table")


def extreme_tangent_point(
    point: Vec2,
    candidates: Iterable[Vec2],
    reference: Vec2,
    right: bool,
) -> Vec2:
    """Pick the support point among ``candidates`` seen from ``point``.

    The candidates must include every possible support point (corners and
    smooth tangency points).  Headings are measured relative to the
    direction towards an interior ``reference`` point, so no wrap-around
    occurs for an exterior ``point``.  The right support point has the most
    clockwise heading.
    """
    base = (reference - point).angle()

    def relative(c: Vec2) -> float:
        return normalize_angle((c - point).angle() - base)

    pool = list(candidates)
    if not pool:
        raise DegenerateGeometry("no tangent point candidates")
    return min(pool, key=relative) if right else max(pool, key=relative)


# -----------------------------------------------------------------------------
# Euclidean tables

# Number of marching steps across the table diameter when searching for
# the far end of an inner billiard chord.
RAY_MARCH_STEPS: int = 512


class AffineTable(BilliardTable):
    """Base for planar tables: shared chord search and sampling."""

    geometry = Geometry.EUCLIDEAN

    @property
    def extent(self) -> float:
        """Radius of a disk about the origin containing the table."""
        return 1.0

    @property
    def reference_point(self) -> Vec2:
        """An interior point used to orient tangent searches."""
        return ORIGIN

    def _strictly_inside(self, point: Vec2) -> bool:
        """Interior test without the boundary tolerance of ``contains_point``."""
        return self.contains_point(point)

    def ray_exit(self, origin: Vec2, direction: Vec2) -> Vec2:
        """Second boundary intersection of the ray from boundary point ``origin``.

        The chord is found by marching across the table until the ray leaves
        it and then bisecting ``_strictly_inside``.

        Raises:
            DegenerateGeometry: if the ray does not enter the table.
        """
        d = direction.normalize()
        step = 2.0 * self.extent / RAY_MARCH_STEPS
        s = step
        for _ in range(24):
            if self._strictly_inside(origin + d * s):
                break
            s *= 0.25
        else:
            raise DegenerateGeometry("ray does not enter the table")
        inside = s
        s = inside + step
        limit = 4.0 * self.extent + step
        while self._strictly_inside(origin + d * s):
            inside = s
            s += step
            if s > limit:
                raise DegenerateGeometry("ray never leaves the table")
        lo, hi = inside, s
        for _ in range(80):
            mid = 0.5 * (lo + hi)
            if self._strictly_inside(origin + d * mid):
                lo = mid
            else:
                hi = mid
            if hi - lo < 1e-14:
                break
        return origin + d * (0.5 * (lo + hi))

    def tangent_vector(self, time: float) -> Optional[Vec2]:
        heading = self.tangent_heading(time)
        if heading is None:
            return None
        return Vec2(math.cos(heading), math.sin(heading))
