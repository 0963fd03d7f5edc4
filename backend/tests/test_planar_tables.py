"""
Tests for the planar billiard tables.

Every table must agree with itself: mapping a boundary time to a point
and back gives the same time, the point lies on the boundary, and the
tangent points seen from outside leave the whole table on the expected
side of the sight line.
"""

import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
from billiards.services.errors import PointInsideTable  # type: ignore
from billiards.services.flexigon_table import FlexigonTable  # type: ignore
from billiards.services.geometry import Vec2  # type: ignore
from billiards.services.oval_table import SuperellipseTable  # type: ignore
from billiards.services.polygon_table import (  # type: ignore
    ConvexPolygonTable,
    polygon_signed_area,
    regular_polygon_table,
)
from billiards.services.semidisk_table import SemidiskTable  # type: ignore
from billiards.services.table_factory import kite_vertices  # type: ignore

TABLES = [
    pytest.param(lambda: regular_polygon_table(5, 1.0), id="pentagon"),
    pytest.param(lambda: ConvexPolygonTable(kite_vertices()), id="kite"),
    pytest.param(lambda: FlexigonTable(3, 0.5), id="flexigon-3"),
    pytest.param(lambda: FlexigonTable(5, 0.2), id="flexigon-5"),
    pytest.param(lambda: SemidiskTable(math.pi / 2.0), id="semidisk"),
    pytest.param(lambda: SemidiskTable(0.0), id="disk"),
    pytest.param(lambda: SemidiskTable(2.0), id="cap"),
    pytest.param(lambda: SuperellipseTable(1.5), id="superellipse"),
    pytest.param(lambda: SuperellipseTable(3.0, 1.5), id="stretched-superellipse"),
]

TIMES = [0.0, 0.05, 0.2, 0.37, 0.5, 0.61, 0.75, 0.9]


def _circular_distance(a: float, b: float) -> float:
    return abs((a - b + 0.5) % 1.0 - 0.5)


@pytest.mark.parametrize("factory", TABLES)
def test_time_inverts_point(factory) -> None:
    """time(point(t)) recovers t on every table."""
    table = factory()
    for t in TIMES:
        p = table.point(t)
        assert table.point_on_boundary(p)
        assert not table.contains_point(p)
        assert _circular_distance(table.time(p), t) < 1e-5


@pytest.mark.parametrize("factory", TABLES)
def test_tangent_points_support_the_table(factory) -> None:
    """The table lies left of the sight line to the right tangent point and vice versa."""
    table = factory()
    viewer = Vec2(2.5, 1.7)
    right = table.right_tangent_point(viewer)
    left = table.left_tangent_point(viewer)
    assert table.point_on_boundary(right)
    assert table.point_on_boundary(left)
    for q in table.shape(200):
        assert (right - viewer).cross(q - viewer) >= -1e-5
        assert (left - viewer).cross(q - viewer) <= 1e-5


@pytest.mark.parametrize("factory", TABLES)
def test_tangent_point_from_inside_raises(factory) -> None:
    """Interior points have no tangent points."""
    table = factory()
    with pytest.raises(PointInsideTable):
        table.right_tangent_point(table.reference_point)


def test_square_tangent_points() -> None:
    """From (3, 0) the square's right tangent is (1, 1), its left (1, -1)."""
    square = regular_polygon_table(4, math.sqrt(2.0))
    viewer = Vec2(3.0, 0.0)
    assert square.right_tangent_point(viewer).is_close(Vec2(1.0, 1.0))
    assert square.left_tangent_point(viewer).is_close(Vec2(1.0, -1.0))


def test_square_vertex_times() -> None:
    """Vertices of the square sit at quarter times, wrapping around."""
    square = regular_polygon_table(4, math.sqrt(2.0))
    assert square.vertex_time(0) == pytest.approx(0.0)
    assert square.vertex_time(5) == pytest.approx(0.25)
    assert square.point(square.vertex_time(2)).is_close(Vec2(-1.0, 1.0))


def test_polygon_is_stored_counter_clockwise() -> None:
    """Clockwise input is reversed; non-convex input is rejected."""
    clockwise = [Vec2(0.0, 0.0), Vec2(0.0, 1.0), Vec2(1.0, 1.0), Vec2(1.0, 0.0)]
    table = ConvexPolygonTable(clockwise)
    assert polygon_signed_area(table.vertices) == pytest.approx(1.0)
    with pytest.raises(ValueError):
        ConvexPolygonTable([Vec2(0.0, 0.0), Vec2(2.0, 0.0), Vec2(1.0, 0.2), Vec2(1.0, 2.0)])


def test_polygon_singular_rays_continue_edges() -> None:
    """Seeds run backwards out of each edge's start, slicers forwards out of its end."""
    square = regular_polygon_table(4, math.sqrt(2.0))
    seeds = square.seed_rays
    slicers = square.slicing_rays
    assert len(seeds) == len(slicers) == 4
    # First edge runs from (1, -1) up to (1, 1).
    assert seeds[0].start.is_close(Vec2(1.0, -1.0))
    assert seeds[0].vector.is_close(Vec2(0.0, -1.0))
    assert slicers[0].start.is_close(Vec2(1.0, 1.0))
    assert slicers[0].vector.is_close(Vec2(0.0, 1.0))
    assert all(ray.infinite for ray in seeds + slicers)


def test_polygon_corners_have_no_tangent() -> None:
    """Tangent headings are undefined at vertices and constant along edges."""
    square = regular_polygon_table(4, math.sqrt(2.0))
    assert square.tangent_heading(0.0) is None
    assert square.tangent_heading(0.25) is None
    assert square.tangent_heading(0.125) == pytest.approx(math.pi / 2.0)


def test_disk_parametrisation() -> None:
    """The semidisk with beta = 0 is the unit disk starting at its bottom point."""
    disk = SemidiskTable(0.0)
    assert disk.curve_time + disk.flat_time == pytest.approx(1.0)
    assert disk.flat_time == pytest.approx(0.0)
    for t in TIMES:
        theta = 2.0 * math.pi * t - math.pi / 2.0
        assert disk.point(t).is_close(Vec2(math.cos(theta), math.sin(theta)))
    assert len(disk.seed_rays) == 1


def test_half_disk_corners() -> None:
    """The half disk has two corners where the tangent is undefined."""
    half = SemidiskTable(math.pi / 2.0)
    assert half.curve_time + half.flat_time == pytest.approx(1.0)
    assert half.tangent_heading(half.curve_time) is None
    assert half.tangent_heading(0.0) is None
    assert half.tangent_heading(half.curve_time + 0.5 * half.flat_time) == pytest.approx(0.0)
    assert half.point(half.curve_time + 0.5 * half.flat_time).is_close(Vec2(0.0, 0.0))
    assert len(half.seed_rays) == 3


def test_flexigon_vertices_are_corners() -> None:
    """Flexigon vertices sit on the boundary at multiples of 1/n."""
    table = FlexigonTable(3, 0.5)
    assert table.contains_point(Vec2(0.0, 0.0))
    for i in range(3):
        assert table.point_on_boundary(table.point(i / 3.0))
        assert table.tangent_heading(i / 3.0) is None
    assert len(table.seed_rays) == 6
