"""
Tests for preimage propagation of the outer billiard singular set.

The propagator is resumable, so besides checking what each strategy
produces these tests check that advancing a cursor in slices yields
exactly the segments of a one-shot computation.
"""

import logging
import math
import sys
from dataclasses import replace
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
from billiards.services.errors import UnsupportedBilliard  # type: ignore
from billiards.services.geometry import AffineRay  # type: ignore
from billiards.services.hyperbolic import HyperGeodesic  # type: ignore
from billiards.services.hyperbolic_table import regular_hyperbolic_polygon_table  # type: ignore
from billiards.services.oval_table import SuperellipseTable  # type: ignore
from billiards.services.polygon_table import regular_polygon_table  # type: ignore
from billiards.services.preimage_cache import (  # type: ignore
    clear_cursors,
    get_cursor,
    put_cursor,
)
from billiards.services.preimages import (  # type: ignore
    advance_preimages,
    iter_preimage_generations,
    preimages,
    start_preimages,
)
from billiards.services.semidisk_table import SemidiskTable  # type: ignore
from billiards.services.settings import DEFAULT_SETTINGS  # type: ignore
from billiards.services.spherical import SphericalArc  # type: ignore
from billiards.services.spherical_table import regular_spherical_polygon_table  # type: ignore
from billiards.services.tables import Generator  # type: ignore

SMALL = replace(DEFAULT_SETTINGS, preimage_pieces=20, preimage_length=4.0)


def test_zero_iterations_returns_seed_rays() -> None:
    """With no iterations only the singular set itself is returned."""
    square = regular_polygon_table(4, math.sqrt(2.0))
    assert preimages(square, Generator.AREA, 0) == square.seed_rays


@pytest.mark.parametrize("n", [4, 5, 6])
def test_polygon_preimages_lie_outside_table(n: int) -> None:
    """No preimage segment runs through or along the table."""
    table = regular_polygon_table(n, 1.0)
    segments = preimages(table, Generator.AREA, 6, settings=DEFAULT_SETTINGS)
    assert len(segments) > len(table.seed_rays)
    assert segments[:n] == table.seed_rays
    for segment in segments:
        assert isinstance(segment, AffineRay)
        params = (0.5, 1.0, 2.0) if segment.infinite else (0.1, 0.25, 0.5, 0.75, 0.9)
        for t in params:
            p = segment.point_at(t)
            assert not table.contains_point(p), segment
            assert not table.point_on_boundary(p), segment


def test_piece_along_slicing_ray_is_not_mapped_onto_an_edge() -> None:
    """A segment lying on a slicing ray yields no image on the boundary."""
    pentagon = regular_polygon_table(5, 1.0)
    cutter = pentagon.slicing_rays[2]
    piece = AffineRay(cutter.point_at(1.0), cutter.point_at(2.0))
    cursor = start_preimages(pentagon, Generator.AREA, 1, settings=DEFAULT_SETTINGS)
    cursor.seeded = True
    cursor.frontier = [piece]
    assert advance_preimages(cursor) == []


def test_dropped_pieces_are_logged_only_in_debug_mode(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    """BILLIARDS_DEBUG is read on every drop, not once at import."""
    pentagon = regular_polygon_table(5, 1.0)
    caplog.set_level(logging.DEBUG, logger="billiards.services.preimages")
    cursor = start_preimages(pentagon, Generator.AREA, 1, settings=DEFAULT_SETTINGS)
    cursor.seeded = True
    cursor.frontier = [pentagon.slicing_rays[0]]

    monkeypatch.delenv("BILLIARDS_DEBUG", raising=False)
    advance_preimages(cursor)
    assert not any("dropping preimage piece" in r.getMessage() for r in caplog.records)

    cursor = start_preimages(pentagon, Generator.AREA, 1, settings=DEFAULT_SETTINGS)
    cursor.seeded = True
    cursor.frontier = [pentagon.slicing_rays[0]]
    monkeypatch.setenv("BILLIARDS_DEBUG", "1")
    advance_preimages(cursor)
    assert any("dropping preimage piece" in r.getMessage() for r in caplog.records)


def test_resumed_computation_matches_one_shot() -> None:
    """Advancing a cursor in slices gives the same segments as one call."""
    pentagon = regular_polygon_table(5, 1.0)
    one_shot = preimages(pentagon, Generator.AREA, 4, settings=DEFAULT_SETTINGS)
    cursor = start_preimages(pentagon, Generator.AREA, 4, settings=DEFAULT_SETTINGS)
    first = advance_preimages(cursor, generations=2)
    assert not cursor.complete
    assert cursor.generation == 1
    rest = advance_preimages(cursor)
    assert cursor.complete
    assert cursor.generation == 4
    assert first + rest == one_shot


def test_skip_interval_keeps_seed_and_every_nth_generation() -> None:
    """Only the seeds and generations divisible by the interval are emitted."""
    pentagon = regular_polygon_table(5, 1.0)
    cursor = start_preimages(pentagon, Generator.AREA, 4, settings=DEFAULT_SETTINGS)
    by_generation = dict(iter_preimage_generations(cursor))
    assert sorted(by_generation) == [0, 1, 2, 3, 4]
    expected = by_generation[0] + by_generation[2] + by_generation[4]
    assert preimages(pentagon, Generator.AREA, 4, skip_interval=2, settings=DEFAULT_SETTINGS) == expected


def test_frontier_cap_stops_propagation() -> None:
    """A generation larger than the cap ends the computation early."""
    pentagon = regular_polygon_table(5, 1.0)
    capped = replace(DEFAULT_SETTINGS, max_frontier=1)
    cursor = start_preimages(pentagon, Generator.AREA, 10, settings=capped)
    advance_preimages(cursor)
    assert cursor.complete
    assert cursor.exhausted
    assert cursor.generation == 1


def test_negative_arguments_are_rejected() -> None:
    """Iteration counts and skip intervals must be non-negative."""
    pentagon = regular_polygon_table(5, 1.0)
    with pytest.raises(ValueError):
        start_preimages(pentagon, Generator.AREA, -1)
    with pytest.raises(ValueError):
        start_preimages(pentagon, Generator.AREA, 3, skip_interval=-2)


def test_curved_table_seeds_are_discretised() -> None:
    """Smooth tables cut each singular ray into short pieces, skipping the first."""
    half = SemidiskTable(math.pi / 2.0)
    seeds = preimages(half, Generator.AREA, 0, settings=SMALL)
    assert len(seeds) == len(half.seed_rays) * (SMALL.preimage_pieces - 1)
    for piece in seeds:
        assert not piece.infinite
        assert piece.length == pytest.approx(SMALL.dl)


@pytest.mark.parametrize(
    "factory, generator",
    [
        (lambda: SemidiskTable(math.pi / 2.0), Generator.AREA),
        (lambda: SuperellipseTable(1.5), Generator.AREA),
        (lambda: regular_polygon_table(5, 1.0), Generator.LENGTH),
    ],
)
def test_discretised_propagation_produces_segments(factory, generator) -> None:
    """Endpoint-mapped generations are finite segments outside the table."""
    table = factory()
    cursor = start_preimages(table, generator, 2, settings=SMALL)
    generations = dict(iter_preimage_generations(cursor))
    assert generations[1]
    for segment in generations[1] + generations.get(2, []):
        assert isinstance(segment, AffineRay)
        assert not segment.infinite
        assert not table.contains_point(segment.start)


def test_spherical_seeds_include_antipodal_polygon() -> None:
    """Spherical seeds come with the edges of the antipodal polygon."""
    table = regular_spherical_polygon_table(5)
    seeds = preimages(table, Generator.AREA, 0)
    assert len(seeds) == 10
    assert seeds[:5] == table.seed_arcs
    assert seeds[5:] == table.antipodal_arcs


def test_spherical_propagation() -> None:
    """Spherical preimages are arcs outside the polygon."""
    table = regular_spherical_polygon_table(5)
    segments = preimages(table, Generator.AREA, 3)
    assert len(segments) > 10
    for arc in segments:
        assert isinstance(arc, SphericalArc)
        assert not table.contains_point(arc.midpoint)


def test_hyperbolic_propagation() -> None:
    """Hyperbolic seeds run to the ideal boundary and propagate as geodesics."""
    table = regular_hyperbolic_polygon_table(5)
    cursor = start_preimages(table, Generator.AREA, 2)
    generations = dict(iter_preimage_generations(cursor))
    assert len(generations[0]) == 5
    assert all(g.end.is_ideal for g in generations[0])
    assert generations[1]
    for geodesic in generations[1] + generations[2]:
        assert isinstance(geodesic, HyperGeodesic)
        assert not table.contains_point(geodesic.point_at(0.5))


@pytest.mark.parametrize("factory", [regular_spherical_polygon_table, regular_hyperbolic_polygon_table])
def test_curved_geometries_have_no_length_preimages(factory) -> None:
    """LENGTH preimages only exist for Euclidean tables."""
    with pytest.raises(UnsupportedBilliard):
        preimages(factory(), Generator.LENGTH, 1)


def test_cursor_cache_round_trip() -> None:
    """Cursors are stored under fresh identifiers and evicted on clear."""
    clear_cursors()
    cursor = start_preimages(regular_polygon_table(5, 1.0), Generator.AREA, 2)
    cursor_id = put_cursor(cursor)
    assert get_cursor(cursor_id) is cursor
    assert get_cursor("missing") is None
    clear_cursors()
    assert get_cursor(cursor_id) is None
