"""Dynamically growing energy bin table holding visit counts and ln weights."""

from __future__ import annotations

from dataclasses import dataclass, field
import math

import numpy as np

from .interfaces import Energy

__all__ = ["BinIndexError", "EnergyBinTable"]


class BinIndexError(IndexError):
    """Raised when an energy is looked up outside the table's current range."""


@dataclass
class EnergyBinTable:
    """Contiguous run of fixed-width energy bins on a grid anchored at ``origin``.

    Grid edges sit at ``origin + k*energy_bin`` for integer ``k``; table index
    ``i`` is grid cell ``k = i + offset`` and covers
    ``[energy_of(i), energy_of(i + 1))``. Growing the table only moves
    ``offset``, so an energy keeps its grid cell however many bins are added.
    ``histogram`` and ``lnw`` always have the same length.
    """

    origin: Energy
    energy_bin: Energy
    offset: int = 0
    histogram: np.ndarray = field(default_factory=lambda: np.zeros(1, dtype=np.int64))
    lnw: np.ndarray = field(default_factory=lambda: np.zeros(1, dtype=float))

    def __post_init__(self) -> None:
        assert self.energy_bin > 0.0, "energy_bin must be positive"
        self.offset = int(self.offset)
        self.histogram = np.asarray(self.histogram, dtype=np.int64)
        self.lnw = np.asarray(self.lnw, dtype=float)
        assert self.histogram.ndim == 1 and self.lnw.ndim == 1, "bin arrays must be 1D"
        assert len(self.histogram) == len(self.lnw), "histogram and lnw length mismatch"

    @classmethod
    def starting_at(cls, energy: Energy, energy_bin: Energy, initial_count: int = 1) -> "EnergyBinTable":
        """Single-bin table whose only bin starts at ``energy``."""
        return cls(
            origin=float(energy),
            energy_bin=float(energy_bin),
            histogram=np.array([initial_count], dtype=np.int64),
            lnw=np.zeros(1, dtype=float),
        )

    def __len__(self) -> int:
        return int(len(self.lnw))

    @property
    def min_energy_bin(self) -> Energy:
        """Lower edge of bin 0."""
        return self.energy_of(0)

    @property
    def max_energy(self) -> Energy:
        """Exclusive upper edge of the last bin."""
        return self.energy_of(len(self))

    def _edge(self, k: int) -> Energy:
        return self.origin + float(k) * self.energy_bin

    def _cell(self, e: Energy) -> int:
        # the quotient can land one cell off near an edge; settle it against the edges
        k = math.floor((e - self.origin) / self.energy_bin)
        while e < self._edge(k):
            k -= 1
        while e >= self._edge(k + 1):
            k += 1
        return int(k)

    def index_of(self, e: Energy) -> int:
        """Bin index of ``e``; raises BinIndexError outside the table."""
        i = self._cell(e) - self.offset
        if i < 0 or i >= len(self):
            raise BinIndexError(
                f"energy {e!r} outside table [{self.min_energy_bin!r}, {self.max_energy!r})"
            )
        return i

    def energy_of(self, i: int) -> Energy:
        return self._edge(int(i) + self.offset)

    def energies(self) -> np.ndarray:
        """Lower edge of every bin, in index order."""
        return np.array([self.energy_of(i) for i in range(len(self))], dtype=float)

    def ensure_range(self, e: Energy) -> None:
        """Grow the table with zero-valued bins until ``e`` is covered."""
        assert self.energy_bin > 0.0, "energy_bin must be positive"
        k = self._cell(e)
        prepend = max(0, self.offset - k)
        append = max(0, k - (self.offset + len(self)) + 1)
        if prepend or append:
            self.offset -= prepend
            self.histogram = np.concatenate([
                np.zeros(prepend, dtype=np.int64),
                self.histogram,
                np.zeros(append, dtype=np.int64),
            ])
            self.lnw = np.concatenate([
                np.zeros(prepend, dtype=float),
                self.lnw,
                np.zeros(append, dtype=float),
            ])
