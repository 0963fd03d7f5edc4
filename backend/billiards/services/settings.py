"""
Tunable thresholds for preimage propagation.

The values below were tuned empirically for the default tables and have
no analytic derivation, so they are kept together in one frozen
dataclass instead of being scattered through the propagator.  Every
field can be overridden per call (``dataclasses.replace``) or, for the
HTTP service, from the environment:

``BILLIARDS_PREIMAGE_PIECES``
    Number of pieces a discretised singular ray is cut into.
``BILLIARDS_PREIMAGE_LENGTH``
    Length of a discretised singular ray.
``BILLIARDS_FAR_RADIUS``
    Pieces whose midpoint is further than this from the origin are dropped.
``BILLIARDS_MAX_FRONTIER``
    Safety cap on the number of segments in one generation.

``BILLIARDS_DEBUG`` enables verbose per-piece debug logging in the
propagator.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Optional

logger = logging.getLogger(__name__)

__all__ = ["PreimageSettings", "DEFAULT_SETTINGS", "load_preimage_settings", "debug_enabled"]


@dataclass(frozen=True)
class PreimageSettings:
    """Thresholds controlling which preimage pieces survive a generation.

    Attributes:
        preimage_pieces: Pieces per discretised singular ray on curved tables.
        preimage_length: Length of each discretised singular ray.
        far_radius: Distance beyond which finite pieces (and diverging
            infinite rays) are dropped.
        min_piece_length: Polygon pieces shorter than this are dropped.
        min_piece_ratio: Curved-table pieces shorter than
            ``min_piece_ratio * dl`` are dropped.
        split_ratio: Curved-table pieces longer than ``split_ratio * dl``
            are re-split into pieces of length about ``dl``.
        max_piece_ratio: Curved-table pieces longer than
            ``max_piece_ratio * dl`` are dropped as unstable.
        min_arc_length: Spherical pieces shorter than this are dropped.
        min_geodesic_length: Hyperbolic pieces shorter than this (in Klein
            coordinates) are dropped.
        max_frontier: Propagation stops once a generation grows past this.
    """

    preimage_pieces: int = 2000
    preimage_length: float = 20.0
    far_radius: float = 100.0
    min_piece_length: float = 1e-4
    min_piece_ratio: float = 0.2
    split_ratio: float = 5.0
    max_piece_ratio: float = 10.0
    min_arc_length: float = 1e-6
    min_geodesic_length: float = 1e-9
    max_frontier: int = 250_000

    def __post_init__(self) -> None:
        if self.preimage_pieces < 2:
            raise ValueError("preimage_pieces must be at least 2")
        if self.preimage_length <= 0.0 or self.far_radius <= 0.0:
            raise ValueError("preimage_length and far_radius must be positive")
        if not 0.0 < self.min_piece_ratio < self.split_ratio <= self.max_piece_ratio:
            raise ValueError("piece ratios must satisfy 0 < min < split <= max")
        if self.max_frontier < 1:
            raise ValueError("max_frontier must be positive")

    @property
    def dl(self) -> float:
        """Nominal piece length on curved tables."""
        return self.preimage_length / self.preimage_pieces


DEFAULT_SETTINGS = PreimageSettings()


def _env_number(name: str, cast: type) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return cast(raw)
    except ValueError:
        logger.warning("ignoring malformed %s=%r", name, raw)
        return None


def load_preimage_settings(base: PreimageSettings = DEFAULT_SETTINGS) -> PreimageSettings:
    """Apply environment overrides on top of ``base``."""
    overrides = {}
    pieces = _env_number("BILLIARDS_PREIMAGE_PIECES", int)
    if pieces is not None:
        overrides["preimage_pieces"] = pieces
    length = _env_number("BILLIARDS_PREIMAGE_LENGTH", float)
    if length is not None:
        overrides["preimage_length"] = length
    far = _env_number("BILLIARDS_FAR_RADIUS", float)
    if far is not None:
        overrides["far_radius"] = far
    cap = _env_number("BILLIARDS_MAX_FRONTIER", int)
    if cap is not None:
        overrides["max_frontier"] = cap
    if not overrides:
        return base
    try:
        return replace(base, **overrides)
    except ValueError as exc:
        logger.warning("ignoring preimage settings from the environment: %s", exc)
        return base


def debug_enabled() -> bool:
    return bool(os.getenv("BILLIARDS_DEBUG"))
