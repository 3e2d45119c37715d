"""A particle in a harmonic well confined to a hard box.

Moves that would leave ``[-half_width, half_width]`` are declined by the
system itself, so the engine sees them as internal rejections.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from sadmc.interfaces import Energy, MovableSystem, RandomStream

__all__ = ["BoxWalker"]


@dataclass
class BoxWalker(MovableSystem):
    """E(x) = k x^2 / 2 with uniform trial displacements of size ``scale``."""

    k: float = 1.0
    half_width: float = 4.0
    x: float = 0.0
    _previous_x: Optional[float] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        assert self.k > 0.0, "k must be positive"
        assert self.half_width > 0.0, "half_width must be positive"
        assert abs(self.x) <= self.half_width, "x must start inside the box"

    def energy(self) -> Energy:
        return 0.5 * self.k * self.x * self.x

    def attempt_move(self, rng: RandomStream, scale: float) -> Optional[Energy]:
        x_new = self.x + scale * (2.0 * float(rng.random()) - 1.0)
        if abs(x_new) > self.half_width:
            return None
        self._previous_x = self.x
        self.x = x_new
        return self.energy()

    def undo(self) -> None:
        assert self._previous_x is not None, "no move to undo"
        self.x = self._previous_x
        self._previous_x = None

    def suggested_bin_width(self) -> Optional[Energy]:
        return None

    def state_dict(self) -> Mapping[str, Any]:
        return {"k": float(self.k), "half_width": float(self.half_width), "x": float(self.x)}

    def load_state_dict(self, state: Mapping[str, Any]) -> None:
        self.k = float(state["k"])
        self.half_width = float(state["half_width"])
        self.x = float(state["x"])
        self._previous_x = None
