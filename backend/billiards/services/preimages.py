"""
Preimage propagation of the outer billiard singular set.

The singular set of the forward outer billiard map is where the right
tangent point jumps (or, on curved tables, stops being smooth).  Its
preimages under iterates of the map trace out the visible structure
of the dynamics.  Propagation works generation by generation:

1. Seed the frontier with the singular set of the table.
2. Slice every frontier segment at the fixed slicing set, the
   discontinuity set of the inverse map.
3. Map each surviving piece backwards.  Polygons (in every geometry)
   reflect the whole piece through the left tangent point of its
   midpoint, which is exact.  Curved Euclidean tables, and the LENGTH
   map, map the two endpoints separately, so their seeds are first cut
   into short pieces of nominal length ``dl``.
4. Drop pieces that are degenerate, far away or unstable, and re-split
   long ones.

The work is driven by a ``PreimageCursor`` that remembers the frontier
and the generation index, so a long computation can be advanced in
slices (``advance_preimages``) and produces exactly the same segments
as a one-shot ``preimages`` call.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from .errors import GeometryError, UnsupportedBilliard
from .geometry import AffineRay
from .hyperbolic import HyperGeodesic, HyperPoint
from .outer_maps import outer_step
from .polygon_table import ConvexPolygonTable
from .settings import PreimageSettings, debug_enabled, load_preimage_settings
from .spherical import SphericalArc, arc_parameter
from .tables import BilliardTable, Generator, Geometry

logger = logging.getLogger(__name__)

__all__ = [
    "PreimageCursor",
    "preimages",
    "iter_preimage_generations",
    "start_preimages",
    "advance_preimages",
]

# Collinearity tolerance for pieces lying along a slicing ray.
COLLINEAR_TOLERANCE: float = 1e-9

# Parameters at which exact images are checked against the table.
_INTERIOR_SAMPLES = (0.1, 0.25, 0.5, 0.75, 0.9)

# Strategies
EXACT = "exact"
DISCRETIZED = "discretized"
SPHERICAL = "spherical"
HYPERBOLIC = "hyperbolic"


@dataclass
class PreimageCursor:
    """Resumable state of a preimage computation.

    ``generation`` counts the generations computed after the seed;
    ``frontier`` holds the most recent one.  Callers that share a cursor
    between threads advance it while holding ``lock``.
    """

    table: BilliardTable
    generator: Generator
    iterations: int
    skip_interval: int
    settings: PreimageSettings
    strategy: str
    frontier: List[Any] = field(default_factory=list)
    generation: int = 0
    seeded: bool = False
    exhausted: bool = False
    lock: Any = field(default_factory=RLock, repr=False, compare=False)

    @property
    def complete(self) -> bool:
        if not self.seeded:
            return False
        return self.exhausted or not self.frontier or self.generation >= self.iterations

    def emits(self, generation: int) -> bool:
        if generation == 0 or self.skip_interval <= 1:
            return True
        return generation % self.skip_interval == 0


def _strategy(table: BilliardTable, generator: Generator) -> str:
    if table.geometry == Geometry.SPHERICAL:
        if generator != Generator.AREA:
            raise UnsupportedBilliard("spherical preimages are only available for the area map")
        return SPHERICAL
    if table.geometry == Geometry.HYPERBOLIC:
        if generator != Generator.AREA:
            raise UnsupportedBilliard("hyperbolic preimages are only available for the area map")
        return HYPERBOLIC
    if isinstance(table, ConvexPolygonTable) and generator == Generator.AREA:
        return EXACT
    return DISCRETIZED


# -----------------------------------------------------------------------------
# Seeds


def _discretize(rays: Sequence[AffineRay], settings: PreimageSettings) -> List[AffineRay]:
    """Cut each singular ray into pieces of length ``dl``, skipping the first."""
    dl = settings.dl
    pieces: List[AffineRay] = []
    for ray in rays:
        direction = ray.vector.normalize()
        for i in range(1, settings.preimage_pieces):
            pieces.append(AffineRay(ray.start + direction * (i * dl), ray.start + direction * ((i + 1) * dl)))
    return pieces


def _seed(cursor: PreimageCursor) -> Tuple[List[Any], List[Any]]:
    """Return ``(frontier, emitted)`` for generation zero."""
    table = cursor.table
    if cursor.strategy == SPHERICAL:
        seeds = list(table.seed_arcs)
        return seeds, seeds + list(table.antipodal_arcs)
    if cursor.strategy == HYPERBOLIC:
        seeds = list(table.seed_geodesics)
        return seeds, list(seeds)
    if cursor.strategy == EXACT:
        seeds = list(table.seed_rays)
        return seeds, list(seeds)
    seeds = _discretize(table.seed_rays, cursor.settings)
    return seeds, list(seeds)


# -----------------------------------------------------------------------------
# One generation per strategy


def _drop(piece: Any, reason: Any) -> None:
    if debug_enabled():
        logger.debug("dropping preimage piece %s: %s", piece, reason)


def _runs_along(piece: AffineRay, cutter: AffineRay) -> bool:
    """Whether ``piece`` lies on the line of ``cutter`` and overlaps the ray itself."""
    d = cutter.vector.normalize()
    s0 = d.dot(piece.start - cutter.start)
    s1 = d.dot(piece.end - cutter.start)
    for p in (piece.start, piece.end):
        if abs(d.cross(p - cutter.start)) > COLLINEAR_TOLERANCE * max(1.0, abs(s0), abs(s1)):
            return False
    if piece.infinite and s1 > s0:
        return True
    return max(s0, s1) > COLLINEAR_TOLERANCE


def _touches_table(table, segment: AffineRay) -> bool:
    """Whether an interior sample of ``segment`` is inside or on the table."""
    params = (0.5, 1.0, 2.0) if segment.infinite else _INTERIOR_SAMPLES
    for t in params:
        p = segment.point_at(t)
        if table.contains_point(p) or table.point_on_boundary(p):
            return True
    return False


def _propagate_exact(table, frontier: List[AffineRay], settings: PreimageSettings) -> List[AffineRay]:
    cutters = table.slicing_rays
    out: List[AffineRay] = []
    for segment in frontier:
        for piece in segment.slice(cutters):
            # Pieces on a slicing ray have no single pivot.
            if any(_runs_along(piece, cutter) for cutter in cutters):
                _drop(piece, "collinear with a slicing ray")
                continue
            if piece.infinite:
                # Diverging rays far from the table never come back.
                if piece.start.length() > settings.far_radius and piece.vector.dot(piece.start) > 0.0:
                    continue
                probe = piece.end
            else:
                if piece.length < settings.min_piece_length:
                    continue
                probe = piece.midpoint
                if probe.length() > settings.far_radius:
                    continue
            try:
                pivot = table.left_tangent_point(probe)
            except GeometryError as exc:
                _drop(piece, exc)
                continue
            image = piece.reflect_through(pivot)
            if _touches_table(table, image):
                _drop(image, "image meets the table")
                continue
            out.append(image)
    return out


def _propagate_discretized(
    table,
    generator: Generator,
    frontier: List[AffineRay],
    settings: PreimageSettings,
) -> List[AffineRay]:
    cutters = list(table.slicing_rays)
    if generator == Generator.LENGTH:
        cutters.extend(table.seed_rays)
    dl = settings.dl
    out: List[AffineRay] = []
    for segment in frontier:
        for piece in segment.slice(cutters):
            if piece.midpoint.length() > settings.far_radius:
                continue
            length = piece.length
            if length < settings.min_piece_ratio * dl or length > settings.max_piece_ratio * dl:
                continue
            parts = [piece]
            if length > settings.split_ratio * dl:
                count = int(math.ceil(length / dl))
                parts = [
                    AffineRay(piece.point_at(j / count), piece.point_at((j + 1) / count))
                    for j in range(count)
                ]
            for part in parts:
                try:
                    start = outer_step(table, part.start, generator, reverse=True).image
                    end = outer_step(table, part.end, generator, reverse=True).image
                except GeometryError as exc:
                    _drop(part, exc)
                    continue
                out.append(AffineRay(start, end))
    return out


def _slice_arc(arc: SphericalArc, cutters: Sequence[SphericalArc]) -> List[SphericalArc]:
    cuts = []
    for cutter in cutters:
        crossing = arc.intersect_arc(cutter)
        if crossing is None:
            continue
        t = arc_parameter(arc, crossing)
        if 1e-9 < t < 1.0 - 1e-9:
            cuts.append(t)
    if not cuts:
        return [arc]
    points = [arc.p1] + [arc.lerp(t) for t in sorted(cuts)] + [arc.p2]
    return [SphericalArc(a, b) for a, b in zip(points, points[1:])]


def _propagate_spherical(table, frontier: List[SphericalArc], settings: PreimageSettings) -> List[SphericalArc]:
    cutters = table.slicing_arcs
    out: List[SphericalArc] = []
    for arc in frontier:
        for piece in _slice_arc(arc, cutters):
            if piece.length < settings.min_arc_length:
                continue
            try:
                pivot = table.left_tangent_point(piece.midpoint)
            except GeometryError as exc:
                _drop(piece, exc)
                continue
            out.append(piece.reflect_through(pivot))
    return out


def _propagate_hyperbolic(table, frontier: List[HyperGeodesic], settings: PreimageSettings) -> List[HyperGeodesic]:
    cutters = [AffineRay(g.start.klein, g.end.klein) for g in table.slicing_geodesics]
    out: List[HyperGeodesic] = []
    for geodesic in frontier:
        chord = AffineRay(geodesic.start.klein, geodesic.end.klein)
        for piece in chord.slice(cutters):
            if piece.length < settings.min_geodesic_length:
                continue
            try:
                segment = HyperGeodesic(HyperPoint.from_klein(piece.start), HyperPoint.from_klein(piece.end))
                pivot = table.left_tangent_point(segment.point_at(0.5))
                out.append(segment.reflect_through(pivot))
            except GeometryError as exc:
                _drop(piece, exc)
    return out


def _propagate(cursor: PreimageCursor) -> List[Any]:
    table, settings = cursor.table, cursor.settings
    if cursor.strategy == EXACT:
        return _propagate_exact(table, cursor.frontier, settings)
    if cursor.strategy == SPHERICAL:
        return _propagate_spherical(table, cursor.frontier, settings)
    if cursor.strategy == HYPERBOLIC:
        return _propagate_hyperbolic(table, cursor.frontier, settings)
    return _propagate_discretized(table, cursor.generator, cursor.frontier, settings)


# -----------------------------------------------------------------------------
# Drivers


def start_preimages(
    table: BilliardTable,
    generator: Generator,
    iterations: int,
    skip_interval: int = 0,
    settings: Optional[PreimageSettings] = None,
) -> PreimageCursor:
    """Create a cursor; no geometry is computed until it is advanced.

    Raises:
        UnsupportedBilliard: if the table has no preimages for ``generator``.
        ValueError: on negative ``iterations`` or ``skip_interval``.
    """
    if iterations < 0:
        raise ValueError("iterations must be non-negative")
    if skip_interval < 0:
        raise ValueError("skip_interval must be non-negative")
    return PreimageCursor(
        table=table,
        generator=generator,
        iterations=iterations,
        skip_interval=skip_interval,
        settings=settings if settings is not None else load_preimage_settings(),
        strategy=_strategy(table, generator),
    )


def _advance_one(cursor: PreimageCursor) -> Tuple[int, List[Any]]:
    """Compute the next generation; return its index and all of its segments."""
    if not cursor.seeded:
        cursor.frontier, emitted = _seed(cursor)
        cursor.seeded = True
        logger.debug("preimage seed: %d segments", len(cursor.frontier))
        return 0, emitted
    cursor.frontier = _propagate(cursor)
    cursor.generation += 1
    logger.debug("preimage generation %d: %d segments", cursor.generation, len(cursor.frontier))
    if len(cursor.frontier) > cursor.settings.max_frontier:
        logger.warning(
            "preimage frontier grew to %d segments at generation %d; stopping",
            len(cursor.frontier),
            cursor.generation,
        )
        cursor.exhausted = True
    return cursor.generation, list(cursor.frontier)


def iter_preimage_generations(cursor: PreimageCursor) -> Iterator[Tuple[int, List[Any]]]:
    """Yield ``(generation, segments)`` until the cursor completes.

    Every generation is yielded regardless of ``skip_interval``; the
    consumer may stop iterating at any point and resume later from the
    same cursor.
    """
    while not cursor.complete:
        yield _advance_one(cursor)


def advance_preimages(
    cursor: PreimageCursor,
    generations: Optional[int] = None,
    time_budget: Optional[float] = None,
) -> List[Any]:
    """Advance ``cursor`` and return the segments it emits.

    Args:
        cursor: Cursor from ``start_preimages``.
        generations: Maximum number of generations to compute (the seed
            counts as one).  ``None`` means no limit.
        time_budget: Wall clock budget in seconds.  At least one
            generation is computed per call.

    Returns:
        Segments of the emitted generations, in generation order.
    """
    deadline = None if time_budget is None else time.monotonic() + time_budget
    segments: List[Any] = []
    done = 0
    for generation, batch in iter_preimage_generations(cursor):
        if cursor.emits(generation):
            segments.extend(batch)
        done += 1
        if generations is not None and done >= generations:
            break
        if deadline is not None and time.monotonic() >= deadline:
            break
    return segments


def preimages(
    table: BilliardTable,
    generator: Generator,
    iterations: int,
    skip_interval: int = 0,
    settings: Optional[PreimageSettings] = None,
) -> List[Any]:
    """Seeds plus ``iterations`` generations of preimages.

    With ``skip_interval > 1`` only generations divisible by it are
    returned after the seeds.  The result is a flat list of
    ``AffineRay``, ``SphericalArc`` or ``HyperGeodesic`` segments.
    """
    cursor = start_preimages(table, generator, iterations, skip_interval, settings)
    return advance_preimages(cursor)
