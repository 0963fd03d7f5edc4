"""
Construction of tables from plain parameters.

``TableSpec`` is what the HTTP layer (or any other caller holding user
parameters) fills in; ``build_table`` validates it and returns one of
the table variants.  Unset fields fall back to the defaults below.

The tiling radii give the circumradius of the regular n-gon for which
outer billiards tiles the plane by regular k-gons in the curved
geometries.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from .flexigon_table import FlexigonTable
from .geometry import Vec2
from .hyperbolic import HyperPoint, klein_to_true, poincare_to_klein
from .hyperbolic_table import HyperbolicPolygonTable, regular_hyperbolic_polygon_table
from .oval_table import SuperellipseTable
from .polygon_table import ConvexPolygonTable, regular_polygon_table
from .semidisk_table import SemidiskTable
from .spherical import SpherePoint
from .spherical_table import SphericalPolygonTable, regular_spherical_polygon_table
from .tables import BilliardTable, Geometry

__all__ = [
    "TableType",
    "TableSpec",
    "build_table",
    "kite_vertices",
    "hyperbolic_tiling_radius",
    "spherical_tiling_radius",
]

DEFAULT_POLYGON_SIDES = 5
DEFAULT_EUCLIDEAN_RADIUS = 1.0
DEFAULT_CURVED_RADIUS = 0.40235
DEFAULT_FLEXIGON_SIDES = 3
DEFAULT_FLEXIGON_K = 0.5
DEFAULT_SUPERELLIPSE_P = 1.5
DEFAULT_SEMIDISK_BETA = math.pi / 2.0

PRESETS = ("kite",)


class TableType(str, Enum):
    POLYGON = "polygon"
    FLEXIGON = "flexigon"
    SEMIDISK = "semidisk"
    SUPERELLIPSE = "superellipse"


@dataclass(frozen=True)
class TableSpec:
    """Parameters of a billiard table.

    Attributes:
        geometry: Ambient geometry.
        table_type: Which family of table to build.  Only polygons exist
            in the curved geometries.
        n: Number of sides (polygons and flexigons).
        r: Circumradius of a regular polygon, in the geometry's own metric.
        k: Flexigon bulge in ``(0, 1)``.
        beta: Semidisk cut angle in ``[0, pi)``.
        p: Superellipse exponent, greater than 1.
        x_scale: Superellipse horizontal stretch.
        vertices: Explicit polygon vertices: ``(x, y)`` pairs in the plane,
            Poincare disk coordinates for hyperbolic polygons, or unit
            ``(x, y, z)`` vectors on the sphere.  Overrides ``n`` and ``r``.
        preset: Named Euclidean polygon; currently only ``"kite"``.
    """

    geometry: Geometry = Geometry.EUCLIDEAN
    table_type: TableType = TableType.POLYGON
    n: Optional[int] = None
    r: Optional[float] = None
    k: Optional[float] = None
    beta: Optional[float] = None
    p: Optional[float] = None
    x_scale: Optional[float] = None
    vertices: Optional[Tuple[Tuple[float, ...], ...]] = None
    preset: Optional[str] = None


def kite_vertices() -> Tuple[Vec2, ...]:
    """Penrose kite with its long axis vertical."""
    phi_inv = (math.sqrt(5.0) - 1.0) / 2.0
    pi10 = math.pi / 10.0
    return (
        Vec2(0.0, 1.0),
        Vec2(math.cos(11 * pi10), math.sin(11 * pi10)),
        Vec2(0.0, -phi_inv),
        Vec2(math.cos(19 * pi10), math.sin(19 * pi10)),
    )


def _coords(vertices: Sequence[Sequence[float]], dimension: int) -> None:
    for v in vertices:
        if len(v) != dimension:
            raise ValueError(f"vertices must have exactly {dimension} coordinates")


def _build_euclidean(spec: TableSpec) -> BilliardTable:
    if spec.table_type == TableType.POLYGON:
        if spec.preset is not None:
            if spec.preset not in PRESETS:
                raise ValueError(f"unknown table preset {spec.preset!r}")
            return ConvexPolygonTable(kite_vertices())
        if spec.vertices is not None:
            _coords(spec.vertices, 2)
            return ConvexPolygonTable([Vec2(float(v[0]), float(v[1])) for v in spec.vertices])
        return regular_polygon_table(
            spec.n if spec.n is not None else DEFAULT_POLYGON_SIDES,
            spec.r if spec.r is not None else DEFAULT_EUCLIDEAN_RADIUS,
        )
    if spec.table_type == TableType.FLEXIGON:
        return FlexigonTable(
            spec.n if spec.n is not None else DEFAULT_FLEXIGON_SIDES,
            spec.k if spec.k is not None else DEFAULT_FLEXIGON_K,
        )
    if spec.table_type == TableType.SEMIDISK:
        return SemidiskTable(spec.beta if spec.beta is not None else DEFAULT_SEMIDISK_BETA)
    return SuperellipseTable(
        spec.p if spec.p is not None else DEFAULT_SUPERELLIPSE_P,
        spec.x_scale if spec.x_scale is not None else 1.0,
    )


def build_table(spec: TableSpec) -> BilliardTable:
    """Validate ``spec`` and construct the table it describes.

    Raises:
        ValueError: for malformed or inconsistent parameters.
    """
    if spec.geometry == Geometry.EUCLIDEAN:
        return _build_euclidean(spec)
    if spec.table_type != TableType.POLYGON:
        raise ValueError(f"{spec.table_type.value} tables only exist in Euclidean geometry")
    if spec.preset is not None:
        raise ValueError("presets are only available for Euclidean polygons")
    n = spec.n if spec.n is not None else DEFAULT_POLYGON_SIDES
    r = spec.r if spec.r is not None else DEFAULT_CURVED_RADIUS
    if spec.geometry == Geometry.SPHERICAL:
        if spec.vertices is not None:
            _coords(spec.vertices, 3)
            return SphericalPolygonTable([SpherePoint.from_vector(v) for v in spec.vertices])
        return regular_spherical_polygon_table(n, r)
    if spec.vertices is not None:
        _coords(spec.vertices, 2)
        return HyperbolicPolygonTable([HyperPoint.from_poincare(Vec2(v[0], v[1])) for v in spec.vertices])
    return regular_hyperbolic_polygon_table(n, r)


# -----------------------------------------------------------------------------
# Tiling radii


def hyperbolic_tiling_radius(n: int, k: int) -> Optional[float]:
    """Circumradius of the regular hyperbolic n-gon whose outer billiard tiles by k-gons.

    Returns ``None`` unless the ``{n, k}`` pair is hyperbolic.
    """
    if n < 3 or k < 3:
        raise ValueError("polygons need at least three sides")
    n_interior = (n - 2) * math.pi / n
    k_interior = (k - 2) * math.pi / k
    if n_interior + k_interior <= math.pi:
        return None
    t = math.tan(math.pi / n) * math.tan(math.pi / k)
    po = math.sqrt((1.0 - t) / (1.0 + t))
    ko = poincare_to_klein(po)
    return klein_to_true(ko * math.cos(math.pi / n))


# Side length of the tiling polygon, by the larger of n and k.
_SPHERICAL_SIDES = {3: math.pi / 2.0, 4: math.pi / 3.0, 5: math.pi / 5.0}


def spherical_tiling_radius(n: int, k: int) -> Optional[float]:
    """Angular circumradius of the regular spherical n-gon tiling by k-gons.

    Returns ``None`` unless ``1/n + 1/k > 1/2`` and the pair is one of the
    tabulated Platonic cases.
    """
    if n < 3 or k < 3:
        raise ValueError("polygons need at least three sides")
    if 1.0 / n + 1.0 / k <= 0.5:
        return None
    side = _SPHERICAL_SIDES.get(max(n, k))
    if side is None:
        return None
    a = math.cos(side)
    b = math.cos(2.0 * math.pi / n)
    return math.acos(abs(math.sqrt((b - a) / (b - 1.0))))
