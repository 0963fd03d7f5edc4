"""
Pydantic data models for the billiards API.

Points travel as plain coordinate lists: ``[x, y]`` for planar tables,
disk coordinates in the requested model (``[x, y]``) for hyperbolic
tables and unit vectors ``[x, y, z]`` on the sphere.  Field names are
camelCase to match the front end.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..services.hyperbolic import HyperbolicModel
from ..services.table_factory import TableSpec, TableType
from ..services.tables import Duality, Generator, Geometry

# Request limits.  Larger computations should be split with cursors.
MAX_ORBIT_ITERATIONS: int = 100_000
MAX_PREIMAGE_ITERATIONS: int = 1_000
MAX_DERIVATIVE_SAMPLES: int = 40_000


class TableParams(BaseModel):
    """Parameters of the billiard table; unset fields take the defaults."""

    geometry: Geometry = Field(default=Geometry.EUCLIDEAN, description="Ambient geometry")
    tableType: TableType = Field(default=TableType.POLYGON, description="Table family")
    n: Optional[int] = Field(default=None, ge=3, description="Number of sides")
    r: Optional[float] = Field(default=None, gt=0.0, description="Circumradius of a regular polygon")
    k: Optional[float] = Field(default=None, description="Flexigon bulge in (0, 1)")
    beta: Optional[float] = Field(default=None, description="Semidisk cut angle in [0, pi)")
    p: Optional[float] = Field(default=None, description="Superellipse exponent (> 1)")
    xScale: Optional[float] = Field(default=None, gt=0.0, description="Superellipse horizontal stretch")
    vertices: Optional[List[List[float]]] = Field(
        default=None,
        description="Explicit polygon vertices; overrides n and r",
    )
    preset: Optional[str] = Field(default=None, description="Named polygon preset ('kite')")

    def to_spec(self) -> TableSpec:
        return TableSpec(
            geometry=self.geometry,
            table_type=self.tableType,
            n=self.n,
            r=self.r,
            k=self.k,
            beta=self.beta,
            p=self.p,
            x_scale=self.xScale,
            vertices=None if self.vertices is None else tuple(tuple(v) for v in self.vertices),
            preset=self.preset,
        )


class ShapeRequest(BaseModel):
    table: TableParams = Field(default_factory=TableParams)
    divisions: int = Field(default=256, ge=3, le=100_000, description="Boundary samples for curved tables")
    model: HyperbolicModel = Field(default=HyperbolicModel.POINCARE, description="Disk model for hyperbolic output")


class ShapeResponse(BaseModel):
    geometry: Geometry
    points: List[List[float]] = Field(..., description="Closed boundary polyline")


class OrbitRequest(BaseModel):
    """Request body for an orbit computation."""

    table: TableParams = Field(default_factory=TableParams)
    duality: Duality = Field(default=Duality.OUTER)
    generator: Generator = Field(default=Generator.AREA)
    iterations: int = Field(default=100, ge=0, le=MAX_ORBIT_ITERATIONS)
    start: Optional[List[float]] = Field(default=None, description="Exterior start point (outer billiards)")
    startTime: float = Field(default=0.1, description="Boundary time of the first bounce (inner billiards)")
    startAngle: float = Field(default=1.0, description="Angle from the boundary tangent in (0, pi) (inner billiards)")
    reverse: bool = Field(default=False, description="Iterate the inverse outer map")
    model: HyperbolicModel = Field(default=HyperbolicModel.POINCARE)


class ChordOut(BaseModel):
    p1: List[float]
    p2: List[float]
    startTime: float
    endTime: float


class OrbitResponse(BaseModel):
    points: List[List[float]]
    chords: List[ChordOut] = Field(default_factory=list)
    centers: List[List[float]] = Field(default_factory=list, description="Outer length circle centres")
    pivots: List[List[float]] = Field(default_factory=list, description="Tangent points used per step")


class PreimageRequest(BaseModel):
    """Request body for a preimage computation."""

    table: TableParams = Field(default_factory=TableParams)
    generator: Generator = Field(default=Generator.AREA)
    iterations: int = Field(default=10, ge=0, le=MAX_PREIMAGE_ITERATIONS)
    skipInterval: int = Field(default=0, ge=0, description="Only return every n-th generation after the seeds")
    preimagePieces: Optional[int] = Field(default=None, ge=2, description="Pieces per discretised singular ray")
    preimageLength: Optional[float] = Field(default=None, gt=0.0, description="Length of discretised singular rays")
    timeBudgetMs: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Stop after this much computation and return a cursor to continue",
    )
    model: HyperbolicModel = Field(default=HyperbolicModel.POINCARE)
    samples: int = Field(default=16, ge=2, le=1024, description="Samples per curved segment")


class PreimageContinueRequest(BaseModel):
    generations: Optional[int] = Field(default=None, ge=1)
    timeBudgetMs: Optional[float] = Field(default=None, gt=0.0)
    model: HyperbolicModel = Field(default=HyperbolicModel.POINCARE)
    samples: int = Field(default=16, ge=2, le=1024)


class SegmentOut(BaseModel):
    points: List[List[float]] = Field(..., description="Polyline of the segment")
    infinite: bool = Field(default=False, description="Whether the segment runs off to infinity")


class PreimageResponse(BaseModel):
    segments: List[SegmentOut]
    generation: int = Field(..., description="Last generation computed")
    complete: bool
    cursorId: Optional[str] = Field(default=None, description="Cursor to continue an incomplete computation")


class DerivativeRequest(BaseModel):
    table: TableParams = Field(default_factory=TableParams)
    generator: Generator = Field(default=Generator.AREA)
    bound: float = Field(default=5.0, gt=0.0, description="Half width of the sampled square")
    step: float = Field(default=0.5, gt=0.0, description="Grid spacing")


class DerivativeSample(BaseModel):
    x: float
    y: float
    det: float
    rotX: float
    rotY: float
    d: float


class DerivativeResponse(BaseModel):
    samples: List[DerivativeSample]


class TilingRadiusResponse(BaseModel):
    geometry: Geometry
    n: int
    k: int
    radius: Optional[float] = Field(default=None, description="Circumradius, or null if the pair does not tile")
