"""Per-axis Lorentz boost used to slice flat spacetime billiard pictures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from .errors import NonsenseVelocity

__all__ = ["LorentzBoost"]


@dataclass(frozen=True)
class LorentzBoost:
    """Boost with velocity ``(vx, vy)`` in units of the speed of light.

    ``gamma`` holds the Lorentz factors of the x component, the y
    component and the full speed.  The transform boosts each spatial axis
    by its own component, which is exact for boosts along an axis.

    Raises:
        NonsenseVelocity: if the speed is at least one.
    """

    vx: float
    vy: float
    gamma: Tuple[float, float, float] = field(init=False)

    def __post_init__(self) -> None:
        v2 = self.vx * self.vx + self.vy * self.vy
        if v2 >= 1.0:
            raise NonsenseVelocity(f"speed {v2 ** 0.5:.6g} is not below the speed of light")
        gamma = (
            (1.0 - self.vx * self.vx) ** -0.5,
            (1.0 - self.vy * self.vy) ** -0.5,
            (1.0 - v2) ** -0.5,
        )
        object.__setattr__(self, "gamma", gamma)

    def apply(self, x: float, y: float, t: float) -> Tuple[float, float, float]:
        gx, gy, gt = self.gamma
        return (
            gx * (x - t * self.vx),
            gy * (y - t * self.vy),
            gt * (t - x * self.vx - y * self.vy),
        )
