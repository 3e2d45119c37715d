"""Run configuration for the adaptive-weight Monte Carlo engine."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .methods import MethodParams, SadParams, SamcParams

__all__ = ["DEFAULT_SEED", "DEFAULT_MOVE_SCALE", "EnergyMCParams"]

DEFAULT_SEED = 0
DEFAULT_MOVE_SCALE = 0.1


@dataclass
class EnergyMCParams:
    """Parameters needed to configure one run.

    ``max_iter``, ``report_every`` and ``checkpoint_every`` are only read by
    the report hooks; the engine itself never looks at them.
    """

    method: MethodParams = field(default_factory=SadParams)
    seed: Optional[int] = None
    move_scale: float = DEFAULT_MOVE_SCALE
    max_iter: Optional[int] = None
    report_every: Optional[int] = None
    checkpoint_every: Optional[int] = None

    def __post_init__(self) -> None:
        assert isinstance(self.method, (SadParams, SamcParams)), "method must be SadParams or SamcParams"
        assert self.move_scale > 0.0, "move_scale must be positive"
        for name in ("max_iter", "report_every", "checkpoint_every"):
            value = getattr(self, name)
            assert value is None or int(value) > 0, f"{name} must be positive when set"

    @property
    def effective_seed(self) -> int:
        return DEFAULT_SEED if self.seed is None else int(self.seed)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EnergyMCParams":
        """Build parameters from a plain mapping (e.g. parsed JSON).

        The method is given either as ``{"sad": {"min_T": ...}}`` /
        ``{"samc": {"t0": ...}}`` or flat as ``{"kind": "sad", "min_T": ...}``.
        """
        raw = data.get("method", {"sad": {}})
        method: MethodParams
        if isinstance(raw, Mapping) and "kind" in raw:
            kind = str(raw["kind"]).lower()
            opts: Mapping[str, Any] = raw
        else:
            assert isinstance(raw, Mapping) and len(raw) == 1, "method must name exactly one scheme"
            kind, opts = next(iter(raw.items()))
            kind = str(kind).lower()
            opts = opts or {}
        if kind == "sad":
            method = SadParams(min_T=float(opts.get("min_T", SadParams().min_T)))
        elif kind == "samc":
            assert "t0" in opts, "samc requires t0"
            method = SamcParams(t0=int(opts["t0"]))
        else:
            raise ValueError(f"Unknown method: {kind!r}")

        def _opt_int(key: str) -> Optional[int]:
            value = data.get(key)
            return None if value is None else int(value)

        return cls(
            method=method,
            seed=_opt_int("seed"),
            move_scale=float(data.get("move_scale", DEFAULT_MOVE_SCALE)),
            max_iter=_opt_int("max_iter"),
            report_every=_opt_int("report_every"),
            checkpoint_every=_opt_int("checkpoint_every"),
        )

    def to_mapping(self) -> dict[str, Any]:
        if isinstance(self.method, SamcParams):
            method = {"samc": {"t0": int(self.method.t0)}}
        else:
            method = {"sad": {"min_T": float(self.method.min_T)}}
        return {
            "method": method,
            "seed": self.effective_seed,
            "move_scale": float(self.move_scale),
            "max_iter": self.max_iter,
            "report_every": self.report_every,
            "checkpoint_every": self.checkpoint_every,
        }

    @staticmethod
    def add_arguments(parser: argparse.ArgumentParser) -> None:
        group = parser.add_mutually_exclusive_group()
        group.add_argument("--sad-min-T", type=float, default=None, help="Use SAD with this minimum temperature")
        group.add_argument("--samc-t0", type=int, default=None, help="Use SAMC with this t0")
        parser.add_argument("--seed", type=int, default=None)
        parser.add_argument("--move-scale", type=float, default=DEFAULT_MOVE_SCALE)
        parser.add_argument("--max-iter", type=int, default=None)
        parser.add_argument("--report-every", type=int, default=None)
        parser.add_argument("--checkpoint-every", type=int, default=None)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "EnergyMCParams":
        method: MethodParams
        if getattr(args, "samc_t0", None) is not None:
            method = SamcParams(t0=int(args.samc_t0))
        elif getattr(args, "sad_min_T", None) is not None:
            method = SadParams(min_T=float(args.sad_min_T))
        else:
            method = SadParams()
        return cls(
            method=method,
            seed=args.seed,
            move_scale=float(args.move_scale),
            max_iter=args.max_iter,
            report_every=args.report_every,
            checkpoint_every=args.checkpoint_every,
        )
