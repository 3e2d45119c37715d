"""Adaptive-weight Monte Carlo engine estimating a density of states.

One call to ``move_once`` performs a single trial:
  1. count the move
  2. ask the system for a move at the fixed proposal scale; a declined move
     only counts as rejected, otherwise grow the table and run the weighted
     acceptance test (undoing on rejection)
  3. bump the histogram at the system's current energy and update the
     weights at the pre-move energy
  4. track the running ln-weight maximum
  5. run the step hooks

Event hooks:
- on_step: called with the engine after every trial; returning True stops ``run``
- on_finish: called once with the engine when ``run`` returns
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional
import json
import warnings

import numpy as np

from .acceptance import reject_move
from .bins import EnergyBinTable
from .config import DEFAULT_MOVE_SCALE, DEFAULT_SEED, EnergyMCParams
from .interfaces import Energy, MovableSystem, RandomStream, StepHook, SupportsSystemState
from .methods import AdaptiveMethod, SadMethod, method_from_dict, method_from_params, method_to_dict
from .weights import update_weights

__all__ = ["EnergyMC", "DEFAULT_ENERGY_BIN", "STATE_VERSION"]

DEFAULT_ENERGY_BIN = 1.0
STATE_VERSION = 1

FinishCallback = Callable[["EnergyMC"], None]


def _rng_state(rng: RandomStream) -> Optional[Dict[str, Any]]:
    if isinstance(rng, np.random.Generator):
        return dict(rng.bit_generator.state)
    return None


def _table_from_state(table: Mapping[str, Any]) -> EnergyBinTable:
    return EnergyBinTable(
        origin=float(table["origin"]),
        energy_bin=float(table["energy_bin"]),
        offset=int(table["offset"]),
        histogram=np.asarray(table["histogram"], dtype=np.int64),
        lnw=np.asarray(table["lnw"], dtype=float),
    )


def _rng_from_state(state: Mapping[str, Any]) -> np.random.Generator:
    bit_generator_cls = getattr(np.random, str(state["bit_generator"]))
    bit_generator = bit_generator_cls()
    bit_generator.state = dict(state)
    return np.random.Generator(bit_generator)


@dataclass
class EnergyMC:
    """Monte Carlo engine with SAD or SAMC adaptive weights.

    The bin table and method state are owned by the engine and only change
    inside ``move_once``. Hooks get read access to the whole engine.
    """

    system: MovableSystem
    method: AdaptiveMethod
    table: EnergyBinTable
    rng: RandomStream
    seed: int = DEFAULT_SEED
    save_as: Path = Path("resume.json")
    move_scale: float = DEFAULT_MOVE_SCALE
    moves: int = 0
    time_L: int = 0
    rejected_moves: int = 0
    max_entropy_energy: Energy = 0.0
    max_S: float = 0.0

    on_step: List[StepHook] = field(default_factory=list)
    on_finish: List[FinishCallback] = field(default_factory=list)

    stop_requested: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.save_as = Path(self.save_as)
        assert self.move_scale > 0.0, "move_scale must be positive"

    @classmethod
    def from_params(
        cls,
        params: EnergyMCParams,
        system: MovableSystem,
        save_as: str | Path = "resume.json",
        rng: Optional[RandomStream] = None,
    ) -> "EnergyMC":
        """Start a fresh run at the system's current energy."""
        e0 = float(system.energy())
        width = system.suggested_bin_width()
        energy_bin = DEFAULT_ENERGY_BIN if width is None else float(width)
        seed = params.effective_seed
        return cls(
            system=system,
            method=method_from_params(params.method, e0),
            table=EnergyBinTable.starting_at(e0, energy_bin),
            rng=np.random.default_rng(seed) if rng is None else rng,
            seed=seed,
            save_as=Path(save_as),
            move_scale=float(params.move_scale),
            max_entropy_energy=e0,
            max_S=0.0,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def histogram(self) -> np.ndarray:
        return self.table.histogram

    @property
    def lnw(self) -> np.ndarray:
        return self.table.lnw

    @property
    def acceptance_rate(self) -> float:
        if self.moves == 0:
            return float("nan")
        return 1.0 - float(self.rejected_moves) / float(self.moves)

    def summary(self) -> Dict[str, Any]:
        """Flat snapshot of counters, maxima and method state."""
        row: Dict[str, Any] = {
            "method": self.method.name,
            "seed": int(self.seed),
            "moves": int(self.moves),
            "rejected_moves": int(self.rejected_moves),
            "acceptance_rate": float(self.acceptance_rate),
            "bins": len(self.table),
            "min_energy_bin": float(self.table.min_energy_bin),
            "energy_bin": float(self.table.energy_bin),
            "max_S": float(self.max_S),
            "max_entropy_energy": float(self.max_entropy_energy),
            "energy": float(self.system.energy()),
        }
        if isinstance(self.method, SadMethod):
            row["too_lo"] = float(self.method.too_lo)
            row["too_hi"] = float(self.method.too_hi)
            row["min_important_energy"] = float(self.method.min_important_energy)
            row["n_found"] = int(self.method.n_found)
            row["tL"] = int(self.method.tL)
        return row

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------
    def move_once(self) -> None:
        self.moves += 1
        e1 = float(self.system.energy())
        e2 = self.system.attempt_move(self.rng, self.move_scale)
        if e2 is None:
            # declined by the system itself
            self.rejected_moves += 1
        else:
            e2 = float(e2)
            self.table.ensure_range(e2)
            if reject_move(self.table, self.method, e1, e2, self.rng, self.moves):
                self.system.undo()
                self.rejected_moves += 1

        energy = float(self.system.energy())
        i = self.table.index_of(energy)
        self.table.histogram[i] += 1
        # weights are updated at the pre-move energy, not at ``energy``
        update_weights(self.table, self.method, e1, self.moves, self.max_S)

        if self.table.lnw[i] > self.max_S:
            self.max_S = float(self.table.lnw[i])
            self.max_entropy_energy = energy

        for hook in self.on_step:
            if hook(self):
                self.stop_requested = True

    def run(self, max_moves: Optional[int] = None) -> "EnergyMC":
        """Step until a hook asks to stop (or ``max_moves`` more trials ran)."""
        assert self.on_step or max_moves is not None, "run needs a stopping hook or max_moves"
        self.stop_requested = False
        start = self.moves
        while not self.stop_requested:
            if max_moves is not None and self.moves - start >= max_moves:
                break
            self.move_once()
        for callback in self.on_finish:
            callback(self)
        return self

    # ------------------------------------------------------------------
    # Checkpoints
    # ------------------------------------------------------------------
    def state_dict(self) -> Dict[str, Any]:
        system_state = None
        if isinstance(self.system, SupportsSystemState):
            system_state = dict(self.system.state_dict())
        return {
            "version": STATE_VERSION,
            "seed": int(self.seed),
            "save_as": str(self.save_as),
            "move_scale": float(self.move_scale),
            "moves": int(self.moves),
            "time_L": int(self.time_L),
            "rejected_moves": int(self.rejected_moves),
            "max_entropy_energy": float(self.max_entropy_energy),
            "max_S": float(self.max_S),
            "method": method_to_dict(self.method),
            "table": {
                "origin": float(self.table.origin),
                "energy_bin": float(self.table.energy_bin),
                "offset": int(self.table.offset),
                "histogram": self.table.histogram.tolist(),
                "lnw": self.table.lnw.tolist(),
            },
            "rng": _rng_state(self.rng),
            "system": system_state,
        }

    def load_state_dict(self, state: Mapping[str, Any]) -> None:
        assert int(state.get("version", 0)) == STATE_VERSION, "unsupported checkpoint version"
        self.table = _table_from_state(state["table"])
        self.method = method_from_dict(state["method"])
        self.seed = int(state["seed"])
        self.save_as = Path(state["save_as"])
        self.move_scale = float(state["move_scale"])
        self.moves = int(state["moves"])
        self.time_L = int(state["time_L"])
        self.rejected_moves = int(state["rejected_moves"])
        self.max_entropy_energy = float(state["max_entropy_energy"])
        self.max_S = float(state["max_S"])
        if state.get("rng") is not None:
            self.rng = _rng_from_state(state["rng"])
        else:
            warnings.warn(
                "Checkpoint carries no generator state; keeping the current "
                f"{type(self.rng).__name__} stream, so the resumed run will not repeat the saved trajectory.",
                RuntimeWarning,
            )
        system_state = state.get("system")
        if system_state is not None:
            if isinstance(self.system, SupportsSystemState):
                self.system.load_state_dict(system_state)
            else:
                warnings.warn(
                    f"Checkpoint carries system state but {type(self.system).__name__} cannot restore it; "
                    "the supplied system is used as-is.",
                    RuntimeWarning,
                )

    def save(self, path: str | Path | None = None) -> Path:
        path = Path(self.save_as if path is None else path)
        path.write_text(json.dumps(self.state_dict(), indent=2))
        return path

    @classmethod
    def from_state_dict(cls, state: Mapping[str, Any], system: MovableSystem) -> "EnergyMC":
        """Rebuild an engine around ``system`` from ``state_dict`` output.

        Without a stored numpy generator state the stream is re-seeded from
        the recorded seed, which does not continue the saved trajectory.
        """
        engine = cls(
            system=system,
            method=method_from_dict(state["method"]),
            table=_table_from_state(state["table"]),
            rng=np.random.default_rng(int(state.get("seed", DEFAULT_SEED))),
        )
        engine.load_state_dict(state)
        return engine

    @classmethod
    def load(cls, path: str | Path, system: MovableSystem) -> "EnergyMC":
        state = json.loads(Path(path).read_text())
        return cls.from_state_dict(state, system)
