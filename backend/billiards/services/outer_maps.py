"""
Outer billiard steps.

Two invariants generate an outer billiard map:

AREA
    The classical map: reflect the point through its right tangent
    point.  Works unchanged in every geometry because each point type
    implements ``reflect_through`` as the half turn about the pivot.

LENGTH
    The outer length (symplectic) billiard, Euclidean only.  From ``p``
    with forward tangent point ``t1`` and backward tangent point ``t2``
    build the circle tangent to line ``p t1`` at ``t1`` and to line
    ``p t2`` at the point ``m`` beyond ``p`` with ``|p m| = |p t1|``.
    The image ``y`` lies on the ray from ``p`` through ``t1``, beyond
    ``t1``, where the other tangent line from ``y`` to the table also
    touches that circle.  On a disk this reduces to the AREA map.

The reverse maps swap the roles of the left and right tangent points.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from .errors import DegenerateGeometry, UnsupportedBilliard
from .geometry import AffineCircle, Line, Vec2
from .root_finding import bisect
from .tables import BilliardTable, Generator, Geometry

logger = logging.getLogger(__name__)

__all__ = [
    "OuterStep",
    "MapDerivative",
    "outer_area_step",
    "outer_length_circle",
    "outer_length_step",
    "outer_step",
    "outer_derivative",
]

# Bisection settings for locating the LENGTH image.
LENGTH_TOLERANCE: float = 1e-10
LENGTH_ITERATIONS: int = 200
MAX_BRACKET_DOUBLINGS: int = 64

DERIVATIVE_DELTA: float = 1e-6


@dataclass(frozen=True)
class OuterStep:
    """One application of an outer billiard map."""

    image: Any
    pivot: Any
    center: Optional[Vec2] = None


@dataclass(frozen=True)
class MapDerivative:
    """Numerical Jacobian of the forward map at a point.

    Attributes:
        jacobian: 2x2 matrix whose columns are the images of the unit
            x and y displacements.
        det: Its determinant, close to 1 wherever the AREA map is smooth.
        rot_x: Heading of the image of the x displacement.
        rot_y: Heading of the image of the y displacement minus pi/2.
        d: Change in distance to the right tangent point over the step
            (zero for the AREA map).
    """

    jacobian: np.ndarray
    det: float
    rot_x: float
    rot_y: float
    d: float


def outer_area_step(table: BilliardTable, point: Any, reverse: bool = False) -> OuterStep:
    pivot = table.left_tangent_point(point) if reverse else table.right_tangent_point(point)
    return OuterStep(point.reflect_through(pivot), pivot)


def _tangent_pair(table: BilliardTable, point: Vec2, reverse: bool):
    if reverse:
        return table.left_tangent_point(point), table.right_tangent_point(point)
    return table.right_tangent_point(point), table.left_tangent_point(point)


def outer_length_circle(table: BilliardTable, point: Vec2, reverse: bool = False) -> AffineCircle:
    """Circle used by the LENGTH map at ``point``.

    Raises:
        DegenerateGeometry: if the two tangent lines are parallel.
    """
    t1, t2 = _tangent_pair(table, point, reverse)
    return _length_circle(point, t1, t2)


def _length_circle(point: Vec2, t1: Vec2, t2: Vec2) -> AffineCircle:
    d = point.distance_to(t1)
    m = point + (point - t2).normalize() * d
    l1 = Line.through_two_points(point, t1).perp_at_point(t1)
    l2 = Line.through_two_points(point, t2).perp_at_point(m)
    center = l1.intersect_line(l2)
    return AffineCircle(center, center.distance_to(t1))


def outer_length_step(table: BilliardTable, point: Vec2, reverse: bool = False) -> OuterStep:
    """Apply the LENGTH map (or its inverse) to ``point``.

    Raises:
        DegenerateGeometry: if no image can be bracketed.
    """
    t1, t2 = _tangent_pair(table, point, reverse)
    circle = _length_circle(point, t1, t2)
    d = point.distance_to(t1)
    u = (t1 - point).normalize()

    def gap(s: float) -> float:
        y = point + u * s
        if reverse:
            line = Line.through_two_points(y, table.left_tangent_point(y))
            return -line.signed_distance(circle.center) - circle.radius
        line = Line.through_two_points(y, table.right_tangent_point(y))
        return line.signed_distance(circle.center) - circle.radius

    offset = 0.01 * d
    for _ in range(32):
        if gap(d + offset) < 0.0:
            break
        offset *= 0.5
    else:
        logger.debug("length map: gap stays positive next to pivot %s", t1)
        raise DegenerateGeometry("length map image is not bracketed near the pivot")
    lo = d + offset
    hi = 2.0 * d
    for _ in range(MAX_BRACKET_DOUBLINGS):
        if gap(hi) > 0.0:
            break
        lo = hi
        hi *= 2.0
    else:
        raise DegenerateGeometry("length map image escapes to infinity")
    s = bisect(gap, lo, hi, LENGTH_TOLERANCE, LENGTH_ITERATIONS)
    return OuterStep(point + u * s, t1, circle.center)


def outer_step(
    table: BilliardTable,
    point: Any,
    generator: Generator,
    reverse: bool = False,
) -> OuterStep:
    """Dispatch on ``generator``.

    Raises:
        UnsupportedBilliard: for LENGTH on a non-Euclidean table.
    """
    if generator == Generator.AREA:
        return outer_area_step(table, point, reverse)
    if table.geometry != Geometry.EUCLIDEAN:
        raise UnsupportedBilliard(f"outer length billiards is not available in {table.geometry.value} geometry")
    return outer_length_step(table, point, reverse)


def outer_derivative(
    table: BilliardTable,
    point: Vec2,
    generator: Generator,
    delta: float = DERIVATIVE_DELTA,
) -> MapDerivative:
    """Central-difference Jacobian of the forward map at ``point``.

    Raises:
        UnsupportedBilliard: for non-Euclidean tables.
        GeometryError: if the map is undefined near ``point``.
    """
    if table.geometry != Geometry.EUCLIDEAN:
        raise UnsupportedBilliard("map derivatives are only available for Euclidean tables")
    ex = Vec2(delta, 0.0)
    ey = Vec2(0.0, delta)
    step = outer_step(table, point, generator)
    dx = (outer_step(table, point + ex, generator).image - outer_step(table, point - ex, generator).image) / (2.0 * delta)
    dy = (outer_step(table, point + ey, generator).image - outer_step(table, point - ey, generator).image) / (2.0 * delta)
    jacobian = np.array([[dx.x, dy.x], [dx.y, dy.y]])
    pivot = table.right_tangent_point(point)
    d = step.image.distance_to(pivot) - point.distance_to(pivot)
    return MapDerivative(
        jacobian=jacobian,
        det=float(np.linalg.det(jacobian)),
        rot_x=dx.angle(),
        rot_y=dy.angle() - math.pi / 2.0,
        d=d,
    )
