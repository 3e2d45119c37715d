"""Periodic one-dimensional Ising chain with single-spin-flip moves.

Energy:
    E = -J Σ_i s_i s_{i+1},   s_{n} ≡ s_0

Domain walls come in pairs on a ring, so the levels are spaced by 4J and
the exact density of states is g(E) = 2·C(n, k) for k = (E + Jn)/(2J) walls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
import math

import numpy as np

from sadmc.interfaces import Energy, MovableSystem, RandomStream

__all__ = ["IsingChain", "exact_ln_dos"]


def exact_ln_dos(n: int, J: float = 1.0) -> Dict[float, float]:
    """Map energy -> ln g(E) for the periodic chain of ``n`` spins."""
    assert n >= 2, "need at least two spins"
    out: Dict[float, float] = {}
    for k in range(0, n + 1, 2):
        out[float(-J * (n - 2 * k))] = math.log(2.0) + math.log(math.comb(n, k))
    return out


@dataclass
class IsingChain(MovableSystem):
    """Ring of ``n`` spins; starts fully aligned unless ``seed`` is given."""

    n: int = 16
    J: float = 1.0
    seed: Optional[int] = None

    spins: np.ndarray = field(init=False, repr=False)
    _energy: float = field(default=0.0, init=False, repr=False)
    _last_flip: Optional[int] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        assert self.n >= 2, "need at least two spins"
        assert self.J > 0.0, "J must be positive"
        if self.seed is None:
            self.spins = np.ones(self.n, dtype=np.int8)
        else:
            rng = np.random.default_rng(self.seed)
            self.spins = (rng.integers(0, 2, size=self.n, dtype=np.int8) * 2 - 1).astype(np.int8)
        self._energy = self._total_energy()

    def _total_energy(self) -> float:
        s = self.spins.astype(np.int64)
        return float(-self.J * int(np.sum(s * np.roll(s, -1))))

    def _flip_delta(self, i: int) -> float:
        s = int(self.spins[i])
        neighbours = int(self.spins[i - 1]) + int(self.spins[(i + 1) % self.n])
        return float(2.0 * self.J * s * neighbours)

    def energy(self) -> Energy:
        return self._energy

    def attempt_move(self, rng: RandomStream, scale: float) -> Optional[Energy]:
        # spin flips have no size, so ``scale`` is unused
        i = min(int(rng.random() * self.n), self.n - 1)
        self._energy += self._flip_delta(i)
        self.spins[i] = -self.spins[i]
        self._last_flip = i
        return self._energy

    def undo(self) -> None:
        assert self._last_flip is not None, "no move to undo"
        i = self._last_flip
        self._energy += self._flip_delta(i)
        self.spins[i] = -self.spins[i]
        self._last_flip = None

    def suggested_bin_width(self) -> Optional[Energy]:
        return 4.0 * self.J

    def state_dict(self) -> Mapping[str, Any]:
        return {"n": int(self.n), "J": float(self.J), "spins": self.spins.astype(int).tolist()}

    def load_state_dict(self, state: Mapping[str, Any]) -> None:
        assert int(state["n"]) == self.n, "spin count mismatch"
        self.J = float(state["J"])
        self.spins = np.asarray(state["spins"], dtype=np.int8)
        self._energy = self._total_energy()
        self._last_flip = None
