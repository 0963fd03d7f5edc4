"""
Tests for building tables from parameters and for the tiling radii.
"""

import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
from billiards.services.flexigon_table import FlexigonTable  # type: ignore
from billiards.services.hyperbolic_table import HyperbolicPolygonTable  # type: ignore
from billiards.services.polygon_table import ConvexPolygonTable  # type: ignore
from billiards.services.spherical_table import SphericalPolygonTable  # type: ignore
from billiards.services.table_factory import (  # type: ignore
    TableSpec,
    TableType,
    build_table,
    hyperbolic_tiling_radius,
    spherical_tiling_radius,
)
from billiards.services.tables import Geometry  # type: ignore


def test_default_spec_builds_regular_pentagon() -> None:
    """An empty spec is a unit regular pentagon in the plane."""
    table = build_table(TableSpec())
    assert isinstance(table, ConvexPolygonTable)
    assert table.n == 5
    assert all(v.length() == pytest.approx(1.0) for v in table.vertices)


def test_kite_preset() -> None:
    """The kite preset has four vertices and a vertical symmetry axis."""
    table = build_table(TableSpec(preset="kite"))
    assert table.n == 4
    xs = sorted(round(v.x, 9) for v in table.vertices)
    assert xs[0] == pytest.approx(-xs[-1])
    with pytest.raises(ValueError):
        build_table(TableSpec(preset="dart"))


def test_explicit_vertices() -> None:
    """Explicit vertices override n and r and must have the right dimension."""
    table = build_table(TableSpec(vertices=((0.0, 0.0), (2.0, 0.0), (0.0, 1.0)), n=7))
    assert table.n == 3
    with pytest.raises(ValueError):
        build_table(TableSpec(vertices=((0.0, 0.0, 1.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))))
    sphere = build_table(
        TableSpec(geometry=Geometry.SPHERICAL, vertices=((1.0, 0.0, 1.0), (0.0, 1.0, 1.0), (-1.0, -1.0, 1.0)))
    )
    assert isinstance(sphere, SphericalPolygonTable)


def test_curved_geometries_only_have_polygons() -> None:
    """Smooth tables and presets exist only in the plane."""
    with pytest.raises(ValueError):
        build_table(TableSpec(geometry=Geometry.HYPERBOLIC, table_type=TableType.FLEXIGON))
    with pytest.raises(ValueError):
        build_table(TableSpec(geometry=Geometry.SPHERICAL, preset="kite"))
    assert isinstance(build_table(TableSpec(geometry=Geometry.HYPERBOLIC, n=6)), HyperbolicPolygonTable)


def test_smooth_table_parameters_are_validated() -> None:
    """Out of range shape parameters are rejected."""
    assert isinstance(build_table(TableSpec(table_type=TableType.FLEXIGON, n=4, k=0.3)), FlexigonTable)
    with pytest.raises(ValueError):
        build_table(TableSpec(table_type=TableType.FLEXIGON, k=1.5))
    with pytest.raises(ValueError):
        build_table(TableSpec(table_type=TableType.SEMIDISK, beta=4.0))
    with pytest.raises(ValueError):
        build_table(TableSpec(table_type=TableType.SUPERELLIPSE, p=0.5))


def test_hyperbolic_tiling_radius() -> None:
    """Only hyperbolic {n, k} pairs have a hyperbolic tiling radius."""
    r = hyperbolic_tiling_radius(5, 4)
    assert r is not None and r > 0.0
    assert hyperbolic_tiling_radius(3, 3) is None
    assert hyperbolic_tiling_radius(4, 4) is None
    with pytest.raises(ValueError):
        hyperbolic_tiling_radius(2, 5)


def test_spherical_tiling_radius() -> None:
    """The tetrahedral pair gives the circumradius of a spherical triangle face."""
    assert spherical_tiling_radius(3, 3) == pytest.approx(math.acos(1.0 / math.sqrt(3.0)))
    assert spherical_tiling_radius(4, 4) is None
    assert spherical_tiling_radius(5, 4) is None
