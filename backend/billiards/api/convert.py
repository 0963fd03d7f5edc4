"""
Conversions between API coordinate lists and core value types.
"""

from __future__ import annotations

from typing import Any, List, Sequence

from fastapi import HTTPException

from ..services.errors import GeometryError
from ..services.geometry import AffineRay, Vec2
from ..services.hyperbolic import HyperGeodesic, HyperbolicModel, HyperPoint
from ..services.spherical import SpherePoint, SphericalArc
from ..services.table_factory import build_table
from ..services.tables import BilliardTable, Chord, Geometry
from .models import ChordOut, SegmentOut, TableParams


def table_from_params(params: TableParams) -> BilliardTable:
    """Build the table or answer 400."""
    try:
        return build_table(params.to_spec())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def point_from_coords(table: BilliardTable, coords: Sequence[float], model: HyperbolicModel) -> Any:
    """Parse a start point for ``table``.

    Raises:
        ValueError: on a wrong number of coordinates or an invalid point.
    """
    try:
        if table.geometry == Geometry.SPHERICAL:
            return SpherePoint.from_vector(coords)
        if len(coords) != 2:
            raise ValueError("points need exactly two coordinates")
        v = Vec2(float(coords[0]), float(coords[1]))
        if table.geometry == Geometry.EUCLIDEAN:
            return v
        if model == HyperbolicModel.KLEIN:
            return HyperPoint.from_klein(v)
        return HyperPoint.from_poincare(v)
    except GeometryError as exc:
        raise ValueError(str(exc)) from exc


def coords(point: Any, model: HyperbolicModel) -> List[float]:
    if isinstance(point, HyperPoint):
        return list(point.resolve(model).as_tuple())
    return list(point.as_tuple())


def chord_out(chord: Chord, model: HyperbolicModel) -> ChordOut:
    return ChordOut(
        p1=coords(chord.p1, model),
        p2=coords(chord.p2, model),
        startTime=chord.start_time,
        endTime=chord.end_time,
    )


def segment_out(segment: Any, model: HyperbolicModel, samples: int) -> SegmentOut:
    if isinstance(segment, AffineRay):
        return SegmentOut(
            points=[list(segment.start.as_tuple()), list(segment.end.as_tuple())],
            infinite=segment.infinite,
        )
    if isinstance(segment, SphericalArc):
        return SegmentOut(points=[list(p.as_tuple()) for p in segment.points(samples - 1)])
    if isinstance(segment, HyperGeodesic):
        return SegmentOut(
            points=[list(p.as_tuple()) for p in segment.interpolate(model, samples)],
            infinite=segment.infinite,
        )
    raise TypeError(f"unexpected segment type {type(segment).__name__}")
