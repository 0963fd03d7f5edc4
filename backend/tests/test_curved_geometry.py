"""
Tests for spherical and hyperbolic points, segments and polygon tables.
"""

import math
import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
from billiards.services.errors import DegenerateGeometry  # type: ignore
from billiards.services.geometry import Vec2  # type: ignore
from billiards.services.hyperbolic import (  # type: ignore
    ORIGIN,
    HyperbolicModel,
    HyperGeodesic,
    HyperPoint,
    klein_to_poincare,
    minkowski_dot,
    poincare_to_klein,
    poincare_to_true,
    true_to_poincare,
)
from billiards.services.hyperbolic_table import regular_hyperbolic_polygon_table  # type: ignore
from billiards.services.spherical import NORTH_POLE, SpherePoint, SphericalArc  # type: ignore
from billiards.services.spherical_table import (  # type: ignore
    SphericalPolygonTable,
    regular_spherical_polygon_table,
    regular_spherical_vertices,
)


def _circular_distance(a: float, b: float) -> float:
    return abs((a - b + 0.5) % 1.0 - 0.5)


# -----------------------------------------------------------------------------
# Sphere


def test_sphere_point_reflection_is_half_turn() -> None:
    """Reflecting twice through the same pivot is the identity."""
    p = SpherePoint.from_spherical(1.0, 0.4)
    pivot = SpherePoint.from_spherical(0.3, 2.0)
    q = p.reflect_through(pivot)
    assert q.distance_to(pivot) == pytest.approx(p.distance_to(pivot))
    assert q.reflect_through(pivot).is_close(p)


def test_sphere_point_needs_three_coordinates() -> None:
    """Malformed vectors are rejected as bad input."""
    with pytest.raises(ValueError):
        SpherePoint.from_vector([1.0, 0.0])


def test_arc_midpoint_and_side() -> None:
    """The equatorial arc from x to y has the north pole on its left."""
    arc = SphericalArc(SpherePoint(1.0, 0.0, 0.0), SpherePoint(0.0, 1.0, 0.0))
    assert arc.length == pytest.approx(math.pi / 2.0)
    mid = arc.midpoint
    assert mid.is_close(SpherePoint.from_vector([1.0, 1.0, 0.0]))
    assert arc.point_on_left(NORTH_POLE)
    assert not arc.point_on_left(NORTH_POLE.antipode)


def test_regular_spherical_vertices_are_equidistant_from_pole() -> None:
    """Vertices sit at the requested angular radius."""
    for v in regular_spherical_vertices(5, 0.4):
        assert v.distance_to(NORTH_POLE) == pytest.approx(0.4)
    with pytest.raises(ValueError):
        regular_spherical_vertices(5, 2.0)


def test_spherical_table_time_round_trip() -> None:
    """time(point(t)) recovers t along the spherical polygon."""
    table = regular_spherical_polygon_table(5)
    for t in (0.0, 0.13, 0.4, 0.77):
        p = table.point(t)
        assert table.point_on_boundary(p)
        assert _circular_distance(table.time(p), t) < 1e-6
    assert table.contains_point(NORTH_POLE)
    assert table.tangent_heading(0.0) is None


def test_spherical_tangent_vertices_support_the_polygon() -> None:
    """Every vertex lies left of the great circle through the right tangent vertex."""
    table = regular_spherical_polygon_table(5)
    viewer = SpherePoint.from_spherical(1.1, 0.2)
    right = table.right_tangent_point(viewer)
    left = table.left_tangent_point(viewer)
    assert right != left
    for v in table.vertices:
        if v != right:
            assert SphericalArc(viewer, right).point_on_left(v, -1e-12)
        if v != left:
            assert not SphericalArc(viewer, left).point_on_left(v, 1e-12)


def test_no_tangents_from_antipodal_polygon() -> None:
    """Points inside the antipodal polygon see the polygon from all sides."""
    table = regular_spherical_polygon_table(5)
    with pytest.raises(DegenerateGeometry):
        table.right_tangent_point(NORTH_POLE.antipode)


def test_spherical_polygon_orientation() -> None:
    """Clockwise vertex lists are reversed on construction."""
    vertices = regular_spherical_vertices(4, 0.5)
    table = SphericalPolygonTable(list(reversed(vertices)))
    assert table.contains_point(NORTH_POLE)
    for arc in table.arcs:
        assert arc.point_on_left(NORTH_POLE)


# -----------------------------------------------------------------------------
# Hyperbolic plane


def test_model_conversions_are_inverse() -> None:
    """Distances and disk radii convert back and forth."""
    assert poincare_to_true(true_to_poincare(1.3)) == pytest.approx(1.3)
    assert klein_to_poincare(poincare_to_klein(0.4)) == pytest.approx(0.4)
    p = HyperPoint.from_poincare(Vec2(0.3, -0.2))
    assert p.poincare.is_close(Vec2(0.3, -0.2))
    assert HyperPoint.from_klein(p.klein).is_close(p)
    assert minkowski_dot(p.vector, p.vector) == pytest.approx(-1.0)
    assert p.resolve(HyperbolicModel.KLEIN).is_close(p.klein)


def test_hyperbolic_distance_from_origin() -> None:
    """The Poincare radius tanh(d / 2) is at distance d from the origin."""
    p = HyperPoint.from_poincare(Vec2(math.tanh(0.75), 0.0))
    assert p.distance_to(ORIGIN) == pytest.approx(1.5)


def test_hyperbolic_reflection_keeps_ideal_points_ideal() -> None:
    """Half turns are isometries that preserve the ideal boundary."""
    pivot = HyperPoint.from_poincare(Vec2(0.2, 0.1))
    p = HyperPoint.from_poincare(Vec2(-0.5, 0.4))
    q = p.reflect_through(pivot)
    assert q.distance_to(pivot) == pytest.approx(p.distance_to(pivot))
    ideal = HyperPoint.ideal(Vec2(0.0, 1.0))
    assert ideal.reflect_through(pivot).is_ideal


def test_geodesic_interpolation() -> None:
    """Poincare geodesics are sampled along their circle arcs."""
    geodesic = HyperGeodesic(HyperPoint.from_poincare(Vec2(-0.5, 0.2)), HyperPoint.from_poincare(Vec2(0.4, 0.3)))
    samples = geodesic.interpolate(HyperbolicModel.POINCARE, 9)
    assert len(samples) == 9
    assert samples[0].is_close(Vec2(-0.5, 0.2))
    assert samples[-1].is_close(Vec2(0.4, 0.3))
    mid = geodesic.lerp(0.5)
    assert mid.distance_to(geodesic.start) == pytest.approx(0.5 * geodesic.length)


def test_hyperbolic_table_vertices_and_boundary() -> None:
    """Regular hyperbolic polygons have their vertices at the requested radius."""
    table = regular_hyperbolic_polygon_table(5, 0.5)
    for v in table.vertices:
        assert v.distance_to(ORIGIN) == pytest.approx(0.5)
    for t in (0.05, 0.3, 0.55, 0.9):
        p = table.point(t)
        assert table.point_on_boundary(p)
        assert _circular_distance(table.time(p), t) < 1e-6
        assert table.tangent_heading(t) is not None
    assert table.tangent_heading(0.0) is None
    assert table.contains_point(ORIGIN)


def test_hyperbolic_edge_normals_point_inwards() -> None:
    """Edge normals are unit spacelike and positive on the interior."""
    table = regular_hyperbolic_polygon_table(5)
    for normal in table.normals:
        assert minkowski_dot(normal, normal) == pytest.approx(1.0)
        assert minkowski_dot(ORIGIN.vector, normal) > 0.0
        assert isinstance(normal, np.ndarray)


def test_hyperbolic_seeds_end_on_ideal_boundary() -> None:
    """Singular geodesics leave the polygon at a vertex and run to infinity."""
    table = regular_hyperbolic_polygon_table(5)
    for seed, vertex in zip(table.seed_geodesics, table.vertices):
        assert seed.start.is_close(vertex)
        assert seed.end.is_ideal
        assert seed.infinite
