from __future__ import annotations

import math

import numpy as np

from systems.ising.ising_chain import IsingChain, exact_ln_dos


def test_exact_dos_counts_every_configuration() -> None:
    n = 10
    ln_g = exact_ln_dos(n)
    assert min(ln_g) == -10.0 and max(ln_g) == 10.0
    total = sum(math.exp(v) for v in ln_g.values())
    assert round(total) == 2 ** n
    assert ln_g[-10.0] == math.log(2.0)


def test_moves_track_energy_and_undo_restores() -> None:
    chain = IsingChain(n=9, J=1.5, seed=4)
    rng = np.random.default_rng(0)
    for step in range(500):
        before = chain.spins.copy()
        e_before = chain.energy()
        e_after = chain.attempt_move(rng, 0.1)
        assert e_after == chain.energy() == chain._total_energy()
        if step % 3 == 0:
            chain.undo()
            assert chain.energy() == e_before
            assert np.array_equal(chain.spins, before)


def test_levels_are_spaced_by_four_j() -> None:
    chain = IsingChain(n=6, J=0.5)
    assert chain.energy() == -3.0
    assert chain.suggested_bin_width() == 2.0
    rng = np.random.default_rng(1)
    for _ in range(200):
        e = chain.attempt_move(rng, 0.1)
        assert ((e + 3.0) / 2.0).is_integer()


def test_state_dict_restores_configuration() -> None:
    chain = IsingChain(n=8, seed=3)
    other = IsingChain(n=8)
    other.load_state_dict(chain.state_dict())
    assert np.array_equal(other.spins, chain.spins)
    assert other.energy() == chain.energy()
