"""
Exception taxonomy for the billiards core.

Geometric constructions in this package fail in a handful of
well-understood ways: two lines are parallel, a point that should be
on a table boundary is not, or a tangent point is requested from a
point that is not outside the table.  These are ordinary events for an
outer billiard orbit (every orbit that lands on a singular line hits
one) so the orbit iterator and the preimage propagator catch
``GeometryError`` and treat it as "stop this branch".  They are never
reported to API clients as failures.

Malformed caller input is different: it derives from ``ValueError`` so
that the HTTP layer maps it to a 400 response.
"""

from __future__ import annotations

__all__ = [
    "GeometryError",
    "DegenerateGeometry",
    "PointNotOnBoundary",
    "PointInsideTable",
    "PointOnBoundary",
    "NonsenseVelocity",
    "UnsupportedBilliard",
]


class GeometryError(Exception):
    """Base class for recoverable geometric construction failures."""


class DegenerateGeometry(GeometryError):
    """Parallel or coincident lines, zero-length vectors, failed brackets."""


class PointNotOnBoundary(GeometryError):
    """A boundary parameter was requested for a point off the boundary."""


class PointInsideTable(GeometryError):
    """A tangent point was requested from a point inside the table."""


class PointOnBoundary(PointInsideTable):
    """A tangent point was requested from a point on the table boundary."""


class NonsenseVelocity(ValueError):
    """A Lorentz boost was requested with speed of at least one."""


class UnsupportedBilliard(ValueError):
    """The table geometry does not implement the requested dynamics."""
