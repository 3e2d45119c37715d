"""Weighted Metropolis acceptance test over the bin table's ln weights."""

from __future__ import annotations

import math

from .bins import EnergyBinTable
from .interfaces import Energy, RandomStream
from .methods import AdaptiveMethod, SadMethod

__all__ = ["effective_lnw", "reject_move"]


def effective_lnw(table: EnergyBinTable, method: AdaptiveMethod, e: Energy) -> float:
    """ln weight used for acceptance at energy ``e``.

    SAD clamps energies outside ``[too_lo, too_hi]`` to the nearer window
    edge instead of trusting bins it has not characterized yet.
    """
    if isinstance(method, SadMethod):
        if e < method.too_lo:
            return float(table.lnw[table.index_of(method.too_lo)])
        if e > method.too_hi:
            return float(table.lnw[table.index_of(method.too_hi)])
    return float(table.lnw[table.index_of(e)])


def reject_move(
    table: EnergyBinTable,
    method: AdaptiveMethod,
    e1: Energy,
    e2: Energy,
    rng: RandomStream,
    moves: int,
) -> bool:
    """Decide whether the transition ``e1 -> e2`` is rejected.

    Accepts with probability ``min(1, exp(lnw(e1) - lnw(e2)))``. Exactly one
    uniform value is drawn per call, whatever the outcome. For SAD an accepted
    move into a never-visited bin records a discovery (``n_found``, ``tL``).
    """
    # contract check only: raises BinIndexError unless e1 is already binned
    table.index_of(e1)
    i2 = table.index_of(e2)
    lnw1 = effective_lnw(table, method, e1)
    lnw2 = effective_lnw(table, method, e2)
    u = float(rng.random())
    rejected = lnw2 > lnw1 and u > math.exp(lnw1 - lnw2)
    if isinstance(method, SadMethod) and not rejected and table.histogram[i2] == 0:
        method.n_found += 1
        method.tL = int(moves)
    return bool(rejected)
