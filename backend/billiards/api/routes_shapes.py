"""
Routes describing tables: boundary polylines and tiling radii.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from ..services.table_factory import hyperbolic_tiling_radius, spherical_tiling_radius
from ..services.tables import Geometry
from .convert import coords, table_from_params
from .models import ShapeRequest, ShapeResponse, TilingRadiusResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/shape", response_model=ShapeResponse)
def get_shape(body: ShapeRequest) -> ShapeResponse:
    """Return the boundary of the table as a polyline.

    Polygons return their vertices; curved tables return ``divisions``
    samples.  Hyperbolic points are given in ``body.model`` coordinates.
    """
    table = table_from_params(body.table)
    try:
        points = table.shape(body.divisions)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        logger.exception("shape endpoint error: %s", exc)
        raise HTTPException(status_code=500, detail=f"Failed to compute shape: {exc}")
    return ShapeResponse(geometry=table.geometry, points=[coords(p, body.model) for p in points])


@router.get("/tiling-radius", response_model=TilingRadiusResponse)
def get_tiling_radius(
    n: int = Query(..., ge=3, description="Sides of the billiard table"),
    k: int = Query(..., ge=3, description="Sides of the tiles"),
) -> TilingRadiusResponse:
    """Circumradius of the regular n-gon whose outer billiard tiles by k-gons.

    The geometry follows from the pair: ``6/n + 6/k`` equal to 3 is
    Euclidean (no radius needed), above 3 spherical, below 3 hyperbolic.
    """
    v = 6 * k + 6 * n
    if v == 3 * n * k:
        return TilingRadiusResponse(geometry=Geometry.EUCLIDEAN, n=n, k=k, radius=None)
    if v > 3 * n * k:
        return TilingRadiusResponse(geometry=Geometry.SPHERICAL, n=n, k=k, radius=spherical_tiling_radius(n, k))
    return TilingRadiusResponse(geometry=Geometry.HYPERBOLIC, n=n, k=k, radius=hyperbolic_tiling_radius(n, k))
