"""Ray segments with cached reciprocal directions."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from .common import EPSILON


def _format_vector(v) -> str:
    return "[" + ", ".join(f"{float(x):g}" for x in v) + "]"


@dataclass(eq=False)
class Ray:
    """Ray segment ``o + t*d`` for ``t`` in ``[mint, maxt]``.

    After changing ``d`` call :meth:`update` to refresh ``d_rcp``.
    ``dataclasses.replace`` gives a copy with a different segment.
    """

    o: np.ndarray = field(default_factory=lambda: np.zeros(3))
    d: np.ndarray = field(default_factory=lambda: np.zeros(3))
    mint: float = EPSILON
    maxt: float = math.inf
    d_rcp: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.o = np.array(self.o, dtype=float)
        self.d = np.array(self.d, dtype=float)
        self.update()

    def update(self) -> None:
        """Recompute the componentwise reciprocals of the direction."""
        with np.errstate(divide="ignore"):
            self.d_rcp = 1.0 / self.d

    def __call__(self, t: float) -> np.ndarray:
        """Return the point at parameter *t* along the ray."""
        return self.o + t * self.d

    def reverse(self) -> "Ray":
        """Return a ray pointing in the opposite direction."""
        result = Ray(self.o, -self.d, self.mint, self.maxt)
        result.d_rcp = -self.d_rcp
        return result

    def __str__(self) -> str:
        return (
            "Ray[\n"
            f"  o = {_format_vector(self.o)},\n"
            f"  d = {_format_vector(self.d)},\n"
            f"  mint = {self.mint:f},\n"
            f"  maxt = {self.maxt:f}\n"
            "]"
        )