"""
Orbit iteration for every supported duality, generator and geometry.

An orbit stops early, returning the prefix computed so far, when a
geometric construction fails (the point hit a singular line, a chord
ended in a corner, ...) or when the next point coincides with the
current one.  Only asking for a combination that does not exist is an
error, and it is raised before any work is done.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Tuple

from .errors import DegenerateGeometry, GeometryError, UnsupportedBilliard
from .geometry import Vec2, polar
from .math_helpers import fix_time
from .outer_maps import outer_step
from .tables import BilliardTable, Chord, Duality, Generator, Geometry

logger = logging.getLogger(__name__)

__all__ = ["OrbitResult", "SUPPORTED_BILLIARDS", "check_supported", "orbit"]

SUPPORTED_BILLIARDS: Dict[Geometry, FrozenSet[Tuple[Duality, Generator]]] = {
    Geometry.EUCLIDEAN: frozenset({
        (Duality.OUTER, Generator.AREA),
        (Duality.OUTER, Generator.LENGTH),
        (Duality.INNER, Generator.LENGTH),
        (Duality.INNER, Generator.AREA),
    }),
    Geometry.HYPERBOLIC: frozenset({
        (Duality.OUTER, Generator.AREA),
        (Duality.INNER, Generator.LENGTH),
    }),
    Geometry.SPHERICAL: frozenset({
        (Duality.OUTER, Generator.AREA),
    }),
}


@dataclass
class OrbitResult:
    """Output of ``orbit``.

    Attributes:
        points: Outer orbit points (starting with the start point) or the
            successive bounce points of an inner orbit.
        chords: Inner billiard chords.
        centers: Outer length circle centres, one per LENGTH step.
        pivots: Tangent points used by each outer step.
    """

    points: List[Any] = field(default_factory=list)
    chords: List[Chord] = field(default_factory=list)
    centers: List[Vec2] = field(default_factory=list)
    pivots: List[Any] = field(default_factory=list)


def check_supported(table: BilliardTable, duality: Duality, generator: Generator) -> None:
    if (duality, generator) not in SUPPORTED_BILLIARDS[table.geometry]:
        raise UnsupportedBilliard(
            f"{duality.value} {generator.value.lower()} billiards is not available "
            f"in {table.geometry.value} geometry"
        )


def orbit(
    table: BilliardTable,
    start: Any,
    generator: Generator,
    iterations: int,
    duality: Duality = Duality.OUTER,
    reverse: bool = False,
) -> OrbitResult:
    """Iterate a billiard map ``iterations`` times.

    Args:
        table: The billiard table.
        start: An exterior point for outer billiards, or a
            ``(time, angle)`` pair for inner billiards where ``angle`` in
            ``(0, pi)`` is measured counter-clockwise from the boundary
            tangent.
        generator: AREA or LENGTH.
        iterations: Maximum number of steps.
        duality: INNER or OUTER.
        reverse: Iterate the inverse map (outer billiards only).

    Raises:
        UnsupportedBilliard: if the table geometry lacks this billiard.
        ValueError: on a negative iteration count or a bad inner start.
    """
    if iterations < 0:
        raise ValueError("iterations must be non-negative")
    check_supported(table, duality, generator)
    if duality == Duality.OUTER:
        return _outer_orbit(table, start, generator, iterations, reverse)
    time, angle = start
    if not 0.0 < angle < math.pi:
        raise ValueError("inner billiard angle must lie strictly between 0 and pi")
    if table.geometry == Geometry.HYPERBOLIC:
        return _hyperbolic_inner_orbit(table, fix_time(time), angle, iterations)
    if generator == Generator.LENGTH:
        return _inner_length_orbit(table, fix_time(time), angle, iterations)
    return _inner_area_orbit(table, fix_time(time), angle, iterations)


# -----------------------------------------------------------------------------
# Outer billiards


def _outer_orbit(
    table: BilliardTable,
    start: Any,
    generator: Generator,
    iterations: int,
    reverse: bool,
) -> OrbitResult:
    result = OrbitResult(points=[start])
    current = start
    for i in range(iterations):
        try:
            step = outer_step(table, current, generator, reverse)
        except GeometryError as exc:
            logger.debug("outer orbit stopped after %d steps: %s", i, exc)
            break
        if step.image.is_close(current):
            logger.debug("outer orbit reached a fixed point after %d steps", i)
            break
        result.points.append(step.image)
        result.pivots.append(step.pivot)
        if step.center is not None:
            result.centers.append(step.center)
        current = step.image
    return result


# -----------------------------------------------------------------------------
# Inner billiards


def _inner_length_orbit(table, time: float, angle: float, iterations: int) -> OrbitResult:
    heading = table.tangent_heading(time)
    if heading is None:
        logger.debug("inner orbit starts at a corner")
        return OrbitResult()
    x = table.point(time)
    result = OrbitResult(points=[x])
    theta = heading + angle
    for i in range(iterations):
        try:
            y = table.ray_exit(x, polar(1.0, theta))
            t_y = table.time(y)
        except GeometryError as exc:
            logger.debug("inner orbit stopped after %d chords: %s", i, exc)
            break
        y = table.point(t_y)
        if y.is_close(x):
            break
        result.chords.append(Chord(x, y, time, t_y))
        result.points.append(y)
        heading = table.tangent_heading(t_y)
        if heading is None:
            logger.debug("inner orbit hit a corner after %d chords", i + 1)
            break
        theta = 2.0 * heading - theta
        x, time = y, t_y
    return result


def _chord_direction(table, origin: Vec2, direction: Vec2) -> Vec2:
    """Orient ``direction`` so that it enters the table from boundary point ``origin``."""
    eps = 1e-4 * table.extent
    if table.contains_point(origin + direction * eps):
        return direction
    if table.contains_point(origin - direction * eps):
        return -direction
    raise DegenerateGeometry("chord direction is tangent to the boundary")


def _inner_area_orbit(table, time: float, angle: float, iterations: int) -> OrbitResult:
    heading = table.tangent_heading(time)
    if heading is None:
        logger.debug("inner orbit starts at a corner")
        return OrbitResult()
    x = table.point(time)
    result = OrbitResult(points=[x])
    if iterations == 0:
        return result
    try:
        t_y = table.time(table.ray_exit(x, polar(1.0, heading + angle)))
    except GeometryError as exc:
        logger.debug("symplectic orbit has no first chord: %s", exc)
        return result
    y = table.point(t_y)
    result.chords.append(Chord(x, y, time, t_y))
    result.points.append(y)
    for i in range(1, iterations):
        tangent = table.tangent_vector(t_y)
        if tangent is None:
            logger.debug("symplectic orbit hit a corner after %d chords", i)
            break
        try:
            d = _chord_direction(table, x, tangent)
            t_z = table.time(table.ray_exit(x, d))
        except GeometryError as exc:
            logger.debug("symplectic orbit stopped after %d chords: %s", i, exc)
            break
        z = table.point(t_z)
        if z.is_close(y):
            break
        result.chords.append(Chord(y, z, t_y, t_z))
        result.points.append(z)
        x, y, t_y = y, z, t_z
    return result


def _hyperbolic_inner_orbit(table, time: float, angle: float, iterations: int) -> OrbitResult:
    if table.tangent_heading(time) is None:
        logger.debug("inner orbit starts at a corner")
        return OrbitResult()
    x, v = table.initial_velocity(time, angle)
    result = OrbitResult(points=[x])
    for i in range(iterations):
        try:
            hit, v = table.flow_to_boundary(x, v)
            t_hit = table.time(hit)
        except GeometryError as exc:
            logger.debug("hyperbolic inner orbit stopped after %d chords: %s", i, exc)
            break
        result.chords.append(Chord(x, hit, time, t_hit))
        result.points.append(hit)
        if table.tangent_heading(t_hit) is None:
            logger.debug("hyperbolic inner orbit hit a corner after %d chords", i + 1)
            break
        x, time = hit, t_hit
    return result
