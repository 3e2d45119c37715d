from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional
import time

from mc_logging.metrics_log import log_records

if TYPE_CHECKING:
    from sadmc.engine import EnergyMC


@dataclass
class SamplingTracker:
    """Attach to EnergyMC step hooks and log sampling traces to Polars CSV.

    Usage:
        tracker = SamplingTracker(name="sampling_trace", run_id="demo", every=1000)
        tracker.attach(engine)
        engine.run()
        tracker.flush()
    """
    name: str = "sampling_trace"
    run_id: str = "default"
    every: int = 1
    flush_on_finish: bool = True
    buffer: List[Dict[str, Any]] = field(default_factory=list)
    _last_timestamp: Optional[float] = field(default=None, init=False, repr=False)
    _last_moves: int = field(default=0, init=False, repr=False)
    _last_rejected: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        assert self.every > 0, "every must be positive"

    def attach(self, engine: "EnergyMC") -> None:
        engine.on_step.append(self.on_step)
        if self.flush_on_finish:
            engine.on_finish.append(self.on_finish)
        self._last_timestamp = time.perf_counter()
        self._last_moves = int(engine.moves)
        self._last_rejected = int(engine.rejected_moves)

    def on_step(self, engine: "EnergyMC") -> None:
        if engine.moves % self.every != 0:
            return
        now = time.perf_counter()
        moves_per_second = float("nan")
        window = int(engine.moves) - self._last_moves
        if self._last_timestamp is not None and now > self._last_timestamp and window > 0:
            moves_per_second = window / (now - self._last_timestamp)
        # acceptance over the moves since the previous row
        window_acceptance = float("nan")
        if window > 0:
            window_acceptance = 1.0 - (int(engine.rejected_moves) - self._last_rejected) / float(window)
        self._last_timestamp = now
        self._last_moves = int(engine.moves)
        self._last_rejected = int(engine.rejected_moves)
        row: Dict[str, Any] = {"run_id": self.run_id}
        row.update(engine.summary())
        row["window_acceptance"] = float(window_acceptance)
        row["moves_per_second"] = float(moves_per_second)
        self.buffer.append(row)

    def on_finish(self, engine: "EnergyMC") -> None:
        self.flush()

    def flush(self) -> Optional[Path]:
        if not self.buffer:
            return None
        out = log_records(self.name, self.buffer)
        self.buffer.clear()
        return out


def density_of_states_rows(engine: "EnergyMC", run_id: str = "default") -> List[Dict[str, Any]]:
    """Per-bin energy, visit count and ln weight."""
    energies = engine.table.energies()
    return [
        {
            "run_id": run_id,
            "moves": int(engine.moves),
            "bin": int(i),
            "energy": float(energies[i]),
            "histogram": int(engine.table.histogram[i]),
            "lnw": float(engine.table.lnw[i]),
        }
        for i in range(len(engine.table))
    ]


def dump_density_of_states(engine: "EnergyMC", name: str = "density_of_states", run_id: str = "default") -> Path:
    """Write the current per-bin table to ``logs/<name>.csv``."""
    return log_records(name, density_of_states_rows(engine, run_id=run_id))
