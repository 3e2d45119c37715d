from __future__ import annotations

from pathlib import Path

import polars as pl
import pytest

import mc_logging.metrics_log as metrics_log
from mc_logging.observability import SamplingTracker, density_of_states_rows, dump_density_of_states
from sadmc.config import EnergyMCParams
from sadmc.engine import EnergyMC
from sadmc.methods import SadParams, SamcParams
from systems.ising.ising_chain import IsingChain


def test_tracker_buffers_every_nth_step_and_flushes(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(metrics_log, "LOG_DIR", tmp_path)
    engine = EnergyMC.from_params(EnergyMCParams(method=SadParams(min_T=0.5), seed=2), IsingChain(n=8))
    tracker = SamplingTracker(name="trace_test", run_id="run1", every=10, flush_on_finish=False)
    tracker.attach(engine)
    engine.run(max_moves=55)
    assert [row["moves"] for row in tracker.buffer] == [10, 20, 30, 40, 50]
    row = tracker.buffer[-1]
    assert {"too_lo", "too_hi", "n_found", "tL", "window_acceptance"} <= set(row)
    assert 0.0 <= row["window_acceptance"] <= 1.0
    out = tracker.flush()
    assert out == tmp_path / "trace_test.csv"
    assert tracker.buffer == []
    df = pl.read_csv(out)
    assert df.filter(pl.col("run_id") == "run1").height == 5


def test_tracker_flushes_when_run_finishes(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(metrics_log, "LOG_DIR", tmp_path)
    engine = EnergyMC.from_params(EnergyMCParams(method=SamcParams(t0=10), seed=2), IsingChain(n=8))
    SamplingTracker(name="finish_trace", every=5).attach(engine)
    engine.run(max_moves=20)
    df = pl.read_csv(tmp_path / "finish_trace.csv")
    assert df["moves"].to_list() == [5, 10, 15, 20]
    assert "too_lo" not in df.columns


def test_density_of_states_dump_has_one_row_per_bin(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(metrics_log, "LOG_DIR", tmp_path)
    engine = EnergyMC.from_params(EnergyMCParams(method=SamcParams(t0=10), seed=8), IsingChain(n=8))
    engine.run(max_moves=300)
    rows = density_of_states_rows(engine, run_id="dos")
    assert len(rows) == len(engine.table)
    assert sum(r["histogram"] for r in rows) == engine.moves + 1
    df = pl.read_csv(dump_density_of_states(engine, name="dos_test", run_id="dos"))
    assert df["energy"].to_list() == engine.table.energies().tolist()
    assert df["lnw"].to_list() == pytest.approx(engine.lnw.tolist())
