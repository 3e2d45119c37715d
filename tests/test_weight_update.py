from __future__ import annotations

import math
from typing import List, Optional

import pytest

from sadmc.bins import EnergyBinTable
from sadmc.config import EnergyMCParams
from sadmc.engine import EnergyMC
from sadmc.methods import SadMethod, SamcMethod, SamcParams
from sadmc.weights import anchored_log_update, sad_gamma, samc_gamma, update_weights


class _DecliningSystem:
    """Never moves, so every trial lands in the starting bin."""

    def __init__(self, energy: float) -> None:
        self._energy = energy

    def energy(self) -> float:
        return self._energy

    def attempt_move(self, rng, scale: float) -> Optional[float]:
        return None

    def undo(self) -> None:
        raise AssertionError("nothing to undo")

    def suggested_bin_width(self) -> Optional[float]:
        return 1.0


class _CountingStream:
    def __init__(self) -> None:
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return 0.5


def _table(n: int) -> EnergyBinTable:
    table = EnergyBinTable.starting_at(0.0, 1.0)
    table.ensure_range(float(n - 1))
    return table


def test_samc_step_size_schedule() -> None:
    assert samc_gamma(100, 1) == 1.0
    assert samc_gamma(100, 100) == 1.0
    assert samc_gamma(100, 101) == 100.0 / 101.0
    assert samc_gamma(100, 400) == 0.25


def test_samc_thousand_steps_in_one_bin() -> None:
    rng = _CountingStream()
    engine = EnergyMC.from_params(EnergyMCParams(method=SamcParams(t0=100)), _DecliningSystem(2.0), rng=rng)
    for _ in range(1000):
        engine.move_once()
    expected = 0.0
    for t in range(1, 1001):
        expected += 100.0 / t if t > 100 else 1.0
    assert engine.lnw.tolist() == [expected]
    assert engine.lnw[0] == pytest.approx(100.0 + 100.0 * sum(1.0 / t for t in range(101, 1001)))
    assert engine.histogram.tolist() == [1001]
    assert engine.moves == engine.rejected_moves == 1000
    # system-level declines never reach the acceptance test
    assert rng.calls == 0


def test_sad_without_window_leaves_weights_alone() -> None:
    table = _table(5)
    method = SadMethod(min_T=0.2, too_lo=2.0, too_hi=2.0, min_important_energy=2.0)
    update_weights(table, method, 2.0, moves=7, max_S=0.0)
    assert table.lnw.tolist() == [0.0] * 5


def test_sad_growth_checks_run_without_window() -> None:
    table = _table(5)
    method = SadMethod(min_T=0.2, too_lo=2.0, too_hi=2.0, min_important_energy=2.0, tL=1, n_found=2)
    # higher energy with equal weight looks more important at T=min_T
    update_weights(table, method, 3.0, moves=1, max_S=0.0)
    assert method.min_important_energy == 3.0
    assert (method.too_lo, method.too_hi) == (2.0, 2.0)

    table.lnw[4] = 1.0
    update_weights(table, method, 4.0, moves=2, max_S=0.5)
    assert method.too_hi == 4.0

    table.lnw[0] = 25.0
    update_weights(table, method, 0.0, moves=3, max_S=1.0)
    assert method.min_important_energy == 0.0
    assert method.too_lo == 0.0
    assert method.has_window


def test_sad_gamma_formula() -> None:
    method = SadMethod(min_T=0.5, too_lo=1.0, too_hi=3.0, min_important_energy=1.0, tL=5, n_found=3)
    # n^2 + t(t/tL - 1) = 9 + 10 = 19
    expected = 2.0 / (3.0 * 0.5 * 10.0) * (19.0 + 30.0) / (19.0 + 10.0)
    assert sad_gamma(method, 10) == pytest.approx(expected, rel=1e-15)
    # t == tL is well defined
    method.tL = 10
    assert sad_gamma(method, 10) == pytest.approx(2.0 / 15.0 * (9.0 + 30.0) / (9.0 + 10.0))


def test_sad_gamma_requires_a_discovery() -> None:
    method = SadMethod(min_T=0.5, too_lo=1.0, too_hi=3.0, min_important_energy=1.0, tL=0, n_found=1)
    with pytest.raises(AssertionError):
        sad_gamma(method, 10)


def test_sad_inside_window_is_additive() -> None:
    table = _table(5)
    method = SadMethod(min_T=0.5, too_lo=1.0, too_hi=3.0, min_important_energy=1.0, tL=5, n_found=3)
    gamma = sad_gamma(method, 10)
    update_weights(table, method, 2.0, moves=10, max_S=0.0)
    assert table.lnw[2] == 0.0 + gamma
    assert table.lnw[[0, 1, 3, 4]].tolist() == [0.0] * 4
    # the Boltzmann check still moved the important energy up
    assert method.min_important_energy == 2.0
    assert (method.too_lo, method.too_hi) == (1.0, 3.0)


@pytest.mark.parametrize("lnw, lnw0", [(0.5, 2.0), (5.0, 1.0), (1.0, 1.0)])
def test_anchored_update_matches_linear_space(lnw: float, lnw0: float) -> None:
    gamma = 0.3
    expected = math.log(math.exp(lnw) + (math.exp(gamma) - 1.0) * math.exp(lnw0))
    assert anchored_log_update(lnw, lnw0, gamma) == pytest.approx(expected, rel=1e-12)


def test_anchored_update_branches_survive_large_gaps() -> None:
    gamma = 0.3
    high = anchored_log_update(1000.0, 0.0, gamma)
    assert high == pytest.approx(1000.0, abs=1e-12)
    low = anchored_log_update(0.0, 1000.0, gamma)
    assert low == pytest.approx(1000.0 + math.log(math.exp(gamma) - 1.0), rel=1e-12)
    assert math.isfinite(high) and math.isfinite(low)


def test_sad_outside_window_anchors_on_nearer_edge() -> None:
    table = _table(5)
    table.lnw[:] = [0.2, 1.5, 0.0, 2.5, 0.7]
    method = SadMethod(min_T=10.0, too_lo=1.0, too_hi=3.0, min_important_energy=1.0, tL=5, n_found=3)
    gamma = sad_gamma(method, 10)

    update_weights(table, method, 4.0, moves=10, max_S=100.0)
    assert table.lnw[4] == anchored_log_update(0.7, 2.5, gamma)

    update_weights(table, method, 0.0, moves=10, max_S=100.0)
    assert table.lnw[0] == anchored_log_update(0.2, 1.5, gamma)
    assert (method.too_lo, method.too_hi) == (1.0, 3.0)


def test_sad_window_never_shrinks() -> None:
    table = _table(9)
    method = SadMethod(min_T=0.5, too_lo=3.0, too_hi=5.0, min_important_energy=3.0, tL=2, n_found=3)
    lo, hi = method.too_lo, method.too_hi
    energies: List[float] = [4.0, 8.0, 0.0, 6.0, 3.0, 1.0, 7.0, 5.0, 2.0] * 5
    max_S = 0.0
    for t, e in enumerate(energies, start=3):
        update_weights(table, method, e, moves=t, max_S=max_S)
        max_S = max(max_S, float(table.lnw.max()))
        assert method.too_lo <= lo and method.too_hi >= hi
        lo, hi = method.too_lo, method.too_hi


def test_sad_update_skipped_until_first_discovery() -> None:
    table = _table(5)
    method = SadMethod(min_T=0.5, too_lo=1.0, too_hi=3.0, min_important_energy=1.0, tL=0, n_found=1)
    update_weights(table, method, 2.0, moves=10, max_S=0.0)
    assert table.lnw.tolist() == [0.0] * 5
    # growth checks still ran
    assert method.min_important_energy == 2.0
