"""Per-step ln-weight updates for the SAD and SAMC schedules.

SAMC:
    lnw[i] += t0/t  if t > t0  else 1

SAD (once the window [too_lo, too_hi] is non-degenerate and tL > 0):
    gamma = (too_hi - too_lo)/(3 min_T t) * (n^2 + t(t/tL - 1) + n t)/(n^2 + t(t/tL - 1) + t)
    inside the window:   lnw[i] += gamma
    outside the window:  1/w_new = 1/w_old + gamma/w0, anchored on the nearer edge

followed by the two window-growth checks, which run on every call.
"""

from __future__ import annotations

import math

from .bins import EnergyBinTable
from .interfaces import Energy
from .methods import AdaptiveMethod, SadMethod, SamcMethod

__all__ = ["samc_gamma", "sad_gamma", "anchored_log_update", "update_weights"]


def samc_gamma(t0: int, t: int) -> float:
    return float(t0) / float(t) if t > t0 else 1.0


def sad_gamma(method: SadMethod, t: int) -> float:
    assert method.tL > 0, "SAD update reached before any bin was discovered (tL == 0)"
    t = float(t)
    tL = float(method.tL)
    n = float(method.n_found)
    dE = method.too_hi - method.too_lo
    return dE / (3.0 * method.min_T * t) * (n * n + t * (t / tL - 1.0) + n * t) / (n * n + t * (t / tL - 1.0) + t)


def anchored_log_update(lnw: float, lnw0: float, gamma: float) -> float:
    """Return ln(w') for w' where 1/w' is 1/w plus gamma/w0, evaluated in logs.

    The branch is picked by which of ``lnw0`` and ``lnw`` is larger so the
    exponential never sees a positive argument.
    """
    if lnw0 >= lnw:
        return lnw0 + math.log((math.exp(gamma) - 1.0) + math.exp(lnw - lnw0))
    return lnw + math.log(1.0 + (math.exp(gamma) - 1.0) * math.exp(lnw0 - lnw))


def _update_sad(table: EnergyBinTable, method: SadMethod, energy: Energy, i: int, moves: int, max_S: float) -> None:
    # gamma divides by tL, so nothing is added before the first discovery
    if method.has_window and method.tL > 0:
        gamma = sad_gamma(method, moves)
        if energy < method.too_lo or energy > method.too_hi:
            edge = method.too_hi if energy > method.too_hi else method.too_lo
            lnw0 = float(table.lnw[table.index_of(edge)])
            table.lnw[i] = anchored_log_update(float(table.lnw[i]), lnw0, gamma)
        else:
            table.lnw[i] += gamma

    lnw_i = float(table.lnw[i])
    # upward growth toward newly important high-energy bins
    if lnw_i > max_S and energy > method.too_hi:
        method.too_hi = energy
    boltz = float(table.lnw[table.index_of(method.min_important_energy)]) + method.min_important_energy / method.min_T
    if lnw_i + energy / method.min_T > boltz:
        method.min_important_energy = energy
        if energy < method.too_lo:
            method.too_lo = energy


def update_weights(
    table: EnergyBinTable,
    method: AdaptiveMethod,
    energy: Energy,
    moves: int,
    max_S: float,
) -> None:
    """Apply one step of the active schedule at ``energy``.

    ``moves`` is the engine's move count after this step's increment and
    ``max_S`` the running maximum ln weight before this step.
    """
    assert moves > 0, "weights are only updated after at least one move"
    i = table.index_of(energy)
    if isinstance(method, SamcMethod):
        table.lnw[i] += samc_gamma(method.t0, moves)
        return
    _update_sad(table, method, energy, i, moves, max_S)
