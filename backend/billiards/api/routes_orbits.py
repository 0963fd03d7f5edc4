"""
Routes for orbit iteration and the Jacobian probe of the outer maps.

Orbit computations never fail on geometry: an orbit that runs into a
singular line is returned truncated.  Requests that ask for something
the table cannot do (an unsupported duality/generator/geometry
combination, a start point with the wrong number of coordinates) are
answered with 400.
"""

from __future__ import annotations

import logging
import math
from typing import List

from fastapi import APIRouter, HTTPException

from ..services.errors import GeometryError
from ..services.geometry import Vec2
from ..services.orbits import orbit
from ..services.outer_maps import outer_derivative
from ..services.tables import Duality
from .convert import chord_out, coords, point_from_coords, table_from_params
from .models import (
    MAX_DERIVATIVE_SAMPLES,
    DerivativeRequest,
    DerivativeResponse,
    DerivativeSample,
    OrbitRequest,
    OrbitResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Determinants below this are treated as a failed probe.
MIN_DETERMINANT: float = 1e-7


@router.post("/orbit", response_model=OrbitResponse)
def compute_orbit(body: OrbitRequest) -> OrbitResponse:
    """Iterate an inner or outer billiard map from the given start.

    Outer orbits need ``start``; inner orbits start at boundary time
    ``startTime`` with angle ``startAngle`` from the tangent.
    """
    table = table_from_params(body.table)
    try:
        if body.duality == Duality.OUTER:
            if body.start is None:
                raise ValueError("outer billiards needs a start point")
            start = point_from_coords(table, body.start, body.model)
        else:
            start = (body.startTime, body.startAngle)
        result = orbit(table, start, body.generator, body.iterations, body.duality, body.reverse)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        logger.exception("orbit endpoint error: %s", exc)
        raise HTTPException(status_code=500, detail=f"Failed to compute orbit: {exc}")
    return OrbitResponse(
        points=[coords(p, body.model) for p in result.points],
        chords=[chord_out(c, body.model) for c in result.chords],
        centers=[list(c.as_tuple()) for c in result.centers],
        pivots=[coords(p, body.model) for p in result.pivots],
    )


def _grid(bound: float, step: float) -> List[float]:
    count = int(math.floor(2.0 * bound / step + 1e-9)) + 1
    return [-bound + i * step for i in range(count)]


@router.post("/derivatives", response_model=DerivativeResponse)
def compute_derivatives(body: DerivativeRequest) -> DerivativeResponse:
    """Sample the Jacobian of the forward outer map over a square grid.

    Grid points inside the table, on singular lines or with a vanishing
    determinant are skipped.
    """
    table = table_from_params(body.table)
    axis = _grid(body.bound, body.step)
    if len(axis) * len(axis) > MAX_DERIVATIVE_SAMPLES:
        raise HTTPException(status_code=400, detail="Derivative grid is too fine; increase step or reduce bound")
    samples: List[DerivativeSample] = []
    try:
        for x in axis:
            for y in axis:
                try:
                    probe = outer_derivative(table, Vec2(x, y), body.generator)
                except GeometryError:
                    continue
                if abs(probe.det) < MIN_DETERMINANT:
                    continue
                samples.append(DerivativeSample(
                    x=x, y=y, det=probe.det, rotX=probe.rot_x, rotY=probe.rot_y, d=probe.d,
                ))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        logger.exception("derivatives endpoint error: %s", exc)
        raise HTTPException(status_code=500, detail=f"Failed to compute derivatives: {exc}")
    return DerivativeResponse(samples=samples)
