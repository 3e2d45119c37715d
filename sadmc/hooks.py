"""Standard report and termination hooks for ``EnergyMC``.

Hooks only read engine state. Step hooks return True to request a stop.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from mc_logging.metrics_log import log_record
from mc_logging.observability import SamplingTracker

if TYPE_CHECKING:
    from .config import EnergyMCParams
    from .engine import EnergyMC

__all__ = [
    "MaxIter",
    "PeriodicCheckpoint",
    "FinalReport",
    "install_default_hooks",
]


@dataclass
class MaxIter:
    """Stop once the engine has made ``max_iter`` moves."""

    max_iter: int

    def __post_init__(self) -> None:
        assert self.max_iter > 0, "max_iter must be positive"

    def __call__(self, engine: "EnergyMC") -> bool:
        return engine.moves >= self.max_iter


@dataclass
class PeriodicCheckpoint:
    """Write the engine to ``engine.save_as`` every ``every`` moves."""

    every: int
    saved: List[Path] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        assert self.every > 0, "checkpoint cadence must be positive"

    def __call__(self, engine: "EnergyMC") -> None:
        if engine.moves % self.every == 0:
            self.saved.append(engine.save())

    def finish(self, engine: "EnergyMC") -> None:
        self.saved.append(engine.save())


@dataclass
class FinalReport:
    """Append a one-row run summary to ``logs/<name>.csv`` when a run ends."""

    name: str = "run_summary"
    run_id: str = "default"
    last: Optional[Dict[str, Any]] = field(default=None, repr=False)

    def __call__(self, engine: "EnergyMC") -> None:
        row: Dict[str, Any] = {"run_id": self.run_id}
        row.update(engine.summary())
        self.last = row
        log_record(self.name, row)


def install_default_hooks(engine: "EnergyMC", params: "EnergyMCParams", run_id: str = "default") -> None:
    """Attach the hooks implied by the run configuration."""
    if params.max_iter is not None:
        engine.on_step.append(MaxIter(int(params.max_iter)))
    if params.report_every is not None:
        tracker = SamplingTracker(run_id=run_id, every=int(params.report_every))
        tracker.attach(engine)
    if params.checkpoint_every is not None:
        checkpoint = PeriodicCheckpoint(int(params.checkpoint_every))
        engine.on_step.append(checkpoint)
        engine.on_finish.append(checkpoint.finish)
    engine.on_finish.append(FinalReport(run_id=run_id))
