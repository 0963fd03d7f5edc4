"""
Tests for the planar geometry primitives.

Lines, circle tangency constructions and ray slicing underpin every
planar table, so their sign conventions are pinned down here: left
tangent points lie on the viewer's left when looking at the circle, and
ray slicing ignores crossings at the ray's own start.
"""

import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
from billiards.services.errors import DegenerateGeometry, PointInsideTable  # type: ignore
from billiards.services.geometry import (  # type: ignore
    AffineCircle,
    AffineRay,
    Line,
    Vec2,
    polar,
    vec_from_complex,
)
from billiards.services.math_helpers import fix_time, normalize_angle  # type: ignore


def test_line_intersection_and_parallel_lines() -> None:
    """Crossing lines meet in one point; parallel lines raise."""
    horizontal = Line.src_dir(Vec2(0.0, 1.0), Vec2(1.0, 0.0))
    vertical = Line.through_two_points(Vec2(2.0, -5.0), Vec2(2.0, 5.0))
    p = horizontal.intersect_line(vertical)
    assert p.x == pytest.approx(2.0)
    assert p.y == pytest.approx(1.0)

    shifted = Line.src_dir(Vec2(0.0, 3.0), Vec2(-2.0, 0.0))
    with pytest.raises(DegenerateGeometry):
        horizontal.intersect_line(shifted)


def test_signed_distance_is_positive_on_the_left() -> None:
    """A line pointing along +x has the upper half plane on its left."""
    line = Line.src_dir(Vec2(0.0, 0.0), Vec2(1.0, 0.0))
    assert line.signed_distance(Vec2(3.0, 2.0)) == pytest.approx(2.0)
    assert line.signed_distance(Vec2(-1.0, -0.5)) == pytest.approx(-0.5)


def test_circle_tangent_points_from_exterior_point() -> None:
    """From (3, 0) the unit circle's left tangent point is the lower one."""
    circle = AffineCircle(Vec2(0.0, 0.0), 1.0)
    viewer = Vec2(3.0, 0.0)
    left = circle.left_tangent_point(viewer)
    right = circle.right_tangent_point(viewer)
    assert left.x == pytest.approx(1.0 / 3.0)
    assert left.y == pytest.approx(-math.sqrt(8.0) / 3.0)
    assert right.x == pytest.approx(1.0 / 3.0)
    assert right.y == pytest.approx(math.sqrt(8.0) / 3.0)
    # Tangent points are perpendicular to the sight line.
    assert (left - viewer).dot(left) == pytest.approx(0.0, abs=1e-12)


def test_circle_tangent_from_inside_raises() -> None:
    """Tangent points do not exist from inside a circle."""
    circle = AffineCircle(Vec2(1.0, 1.0), 2.0)
    with pytest.raises(PointInsideTable):
        circle.left_tangent_point(Vec2(1.5, 1.0))


def test_outer_tangent_segments_between_circles() -> None:
    """Both circles lie to the right of the left common tangent."""
    a = AffineCircle(Vec2(0.0, 0.0), 1.0)
    b = AffineCircle(Vec2(4.0, 0.0), 1.0)
    left = a.left_tangent_line_segment(b)
    assert left.start.x == pytest.approx(0.0, abs=1e-12)
    assert left.start.y == pytest.approx(1.0)
    assert left.end.x == pytest.approx(4.0)
    assert left.end.y == pytest.approx(1.0)
    right = a.right_tangent_line_segment(b)
    assert right.start.y == pytest.approx(-1.0)
    assert right.end.y == pytest.approx(-1.0)


def test_tangent_segment_of_nested_circles_raises() -> None:
    """Nested circles have no common outer tangent."""
    big = AffineCircle(Vec2(0.0, 0.0), 3.0)
    small = AffineCircle(Vec2(0.5, 0.0), 1.0)
    with pytest.raises(DegenerateGeometry):
        big.left_tangent_line_segment(small)


def test_ray_slice_splits_at_crossings() -> None:
    """An infinite ray is cut into finite pieces and an infinite tail."""
    ray = AffineRay.from_direction(Vec2(0.0, 0.0), Vec2(1.0, 0.0))
    cutters = [
        AffineRay(Vec2(3.0, -1.0), Vec2(3.0, 1.0)),
        AffineRay(Vec2(1.0, -1.0), Vec2(1.0, 1.0)),
        # Misses the ray.
        AffineRay(Vec2(2.0, 0.5), Vec2(2.0, 2.0)),
    ]
    pieces = ray.slice(cutters)
    assert len(pieces) == 3
    assert pieces[0].end.x == pytest.approx(1.0)
    assert pieces[1].start.x == pytest.approx(1.0)
    assert pieces[1].end.x == pytest.approx(3.0)
    assert pieces[2].infinite
    assert pieces[2].start.x == pytest.approx(3.0)
    assert not pieces[0].infinite and not pieces[1].infinite


def test_ray_slice_ignores_crossing_at_start() -> None:
    """A segment starting on a cutter is left whole."""
    segment = AffineRay(Vec2(1.0, 0.0), Vec2(2.0, 0.0))
    cutter = AffineRay(Vec2(1.0, -1.0), Vec2(1.0, 1.0))
    assert segment.slice([cutter]) == [segment]


def test_point_reflection_of_ray() -> None:
    """Reflecting a ray through a point reverses its direction."""
    ray = AffineRay.from_direction(Vec2(1.0, 0.0), Vec2(0.0, 1.0))
    image = ray.reflect_through(Vec2(0.0, 0.0))
    assert image.start.is_close(Vec2(-1.0, 0.0))
    assert image.vector.is_close(Vec2(0.0, -1.0))
    assert image.infinite


def test_vector_helpers() -> None:
    """Complex conversion, angle normalisation and time wrapping."""
    v = polar(2.0, math.pi / 3.0)
    assert vec_from_complex(v.to_complex()).is_close(v)
    assert normalize_angle(2.5 * math.pi) == pytest.approx(0.5 * math.pi)
    assert normalize_angle(-0.5, 0.0) == pytest.approx(2.0 * math.pi - 0.5)
    assert fix_time(-0.25) == pytest.approx(0.75)
    assert fix_time(1.0) == 0.0


def test_rotation_and_slope() -> None:
    """Quarter turns agree with ``perp``; slopes follow the line direction."""
    v = Vec2(2.0, 1.0)
    assert v.rotate(math.pi / 2.0).is_close(v.perp())
    assert Line.through_two_points(Vec2(0.0, 0.0), Vec2(1.0, 2.0)).slope == pytest.approx(2.0)
    assert Line.through_two_points(Vec2(1.0, 0.0), Vec2(1.0, 3.0)).slope == math.inf


def test_segment_intersection_point() -> None:
    """Crossing diagonals meet in the middle; disjoint segments do not meet."""
    a = AffineRay(Vec2(0.0, 0.0), Vec2(2.0, 2.0))
    b = AffineRay(Vec2(0.0, 2.0), Vec2(2.0, 0.0))
    hit = a.intersect(b)
    assert hit is not None and hit.is_close(Vec2(1.0, 1.0))
    assert a.intersect(AffineRay(Vec2(3.0, 0.0), Vec2(4.0, 0.0))) is None
