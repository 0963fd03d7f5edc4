"""
Tests for the forward and inverse outer billiard maps on planar tables.
"""

import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
from billiards.services.errors import UnsupportedBilliard  # type: ignore
from billiards.services.flexigon_table import FlexigonTable  # type: ignore
from billiards.services.geometry import Vec2  # type: ignore
from billiards.services.hyperbolic import HyperPoint  # type: ignore
from billiards.services.hyperbolic_table import regular_hyperbolic_polygon_table  # type: ignore
from billiards.services.outer_maps import (  # type: ignore
    outer_derivative,
    outer_length_circle,
    outer_step,
)
from billiards.services.polygon_table import regular_polygon_table  # type: ignore
from billiards.services.semidisk_table import SemidiskTable  # type: ignore
from billiards.services.tables import Generator  # type: ignore


def test_area_map_reflects_through_vertex() -> None:
    """On a square the AREA map is a half turn about the right tangent vertex."""
    square = regular_polygon_table(4, math.sqrt(2.0))
    step = outer_step(square, Vec2(3.0, 0.0), Generator.AREA)
    assert step.pivot.is_close(Vec2(1.0, 1.0))
    assert step.image.is_close(Vec2(-1.0, 2.0))
    assert step.center is None


def test_length_circle_on_disk() -> None:
    """The length circle is tangent to both sight lines at equal distances."""
    disk = SemidiskTable(0.0)
    circle = outer_length_circle(disk, Vec2(0.0, -2.0))
    assert circle.center.x == pytest.approx(2.0 * math.sqrt(3.0))
    assert circle.center.y == pytest.approx(-2.0)
    assert circle.radius == pytest.approx(3.0)


def test_length_map_matches_area_map_on_disk() -> None:
    """For a round table both generators give the same image."""
    disk = SemidiskTable(0.0)
    p = Vec2(0.0, -2.0)
    area = outer_step(disk, p, Generator.AREA)
    length = outer_step(disk, p, Generator.LENGTH)
    assert area.image.x == pytest.approx(math.sqrt(3.0), abs=1e-6)
    assert area.image.y == pytest.approx(1.0, abs=1e-6)
    assert length.image.is_close(area.image)
    assert length.pivot.is_close(area.pivot)


@pytest.mark.parametrize("generator", [Generator.AREA, Generator.LENGTH])
def test_inverse_undoes_forward_on_polygon(generator: Generator) -> None:
    """Mapping forwards then backwards returns to the start."""
    pentagon = regular_polygon_table(5, 1.0)
    p = Vec2(2.3, 0.7)
    q = outer_step(pentagon, p, generator).image
    back = outer_step(pentagon, q, generator, reverse=True).image
    assert back.is_close(p)


def test_inverse_undoes_forward_on_flexigon() -> None:
    """The inverse AREA map pivots on the same tangent point."""
    table = FlexigonTable(3, 0.5)
    p = Vec2(1.4, 1.9)
    forward = outer_step(table, p, Generator.AREA)
    backward = outer_step(table, forward.image, Generator.AREA, reverse=True)
    assert backward.pivot.is_close(forward.pivot)
    assert backward.image.is_close(p)


def test_derivative_of_area_map_has_unit_determinant() -> None:
    """A half turn has Jacobian -I and leaves the pivot distance unchanged."""
    pentagon = regular_polygon_table(5, 1.0)
    probe = outer_derivative(pentagon, Vec2(2.3, 0.7), Generator.AREA)
    assert probe.det == pytest.approx(1.0, abs=1e-6)
    assert probe.jacobian[0][0] == pytest.approx(-1.0, abs=1e-6)
    assert probe.jacobian[1][1] == pytest.approx(-1.0, abs=1e-6)
    assert probe.d == pytest.approx(0.0, abs=1e-9)


def test_derivative_of_length_map_on_disk() -> None:
    """On the disk the LENGTH map is still area preserving."""
    disk = SemidiskTable(0.0)
    probe = outer_derivative(disk, Vec2(0.3, -2.1), Generator.LENGTH)
    assert probe.det == pytest.approx(1.0, abs=1e-2)


def test_length_map_needs_euclidean_table() -> None:
    """Curved geometries only have the AREA outer map."""
    table = regular_hyperbolic_polygon_table(5)
    p = HyperPoint.from_poincare(Vec2(0.6, 0.1))
    with pytest.raises(UnsupportedBilliard):
        outer_step(table, p, Generator.LENGTH)
    with pytest.raises(UnsupportedBilliard):
        outer_derivative(table, Vec2(0.6, 0.1), Generator.AREA)
