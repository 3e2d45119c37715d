"""Adaptive weighting schemes: configuration variants and mutable run state.

Two schemes are supported:
- SAD: flattens the histogram above a temperature floor ``min_T`` and clamps
  weights outside the characterized window ``[too_lo, too_hi]``.
- SAMC: stochastic approximation with a 1/t step size past move ``t0``.

The active scheme is chosen once at construction and never changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Union

from .interfaces import Energy

__all__ = [
    "SadParams",
    "SamcParams",
    "MethodParams",
    "SadMethod",
    "SamcMethod",
    "AdaptiveMethod",
    "method_from_params",
    "method_to_dict",
    "method_from_dict",
]


@dataclass(frozen=True)
class SadParams:
    """SAD configuration."""

    min_T: Energy = 0.2

    def __post_init__(self) -> None:
        assert self.min_T > 0.0, "min_T must be positive"


@dataclass(frozen=True)
class SamcParams:
    """SAMC configuration; ``t0`` is how many moves keep gamma at 1."""

    t0: int

    def __post_init__(self) -> None:
        assert int(self.t0) == self.t0 and self.t0 >= 0, "t0 must be a non-negative integer"


MethodParams = Union[SadParams, SamcParams]


@dataclass
class SadMethod:
    """SAD run state.

    ``tL`` is the move count at the most recent first visit of a bin and
    ``n_found`` the number of distinct bins found so far (the starting bin
    counts as one).
    """

    min_T: Energy
    too_lo: Energy
    too_hi: Energy
    min_important_energy: Energy
    tL: int = 0
    n_found: int = 1

    name = "sad"

    @property
    def has_window(self) -> bool:
        return self.too_lo < self.too_hi


@dataclass
class SamcMethod:
    """SAMC run state."""

    t0: int

    name = "samc"


AdaptiveMethod = Union[SadMethod, SamcMethod]


def method_from_params(params: MethodParams, energy: Energy) -> AdaptiveMethod:
    """Build the initial method state at the system's starting energy."""
    if isinstance(params, SadParams):
        e = float(energy)
        return SadMethod(
            min_T=float(params.min_T),
            too_lo=e,
            too_hi=e,
            min_important_energy=e,
            tL=0,
            n_found=1,
        )
    if isinstance(params, SamcParams):
        return SamcMethod(t0=int(params.t0))
    raise TypeError(f"Unsupported method parameters: {params!r}")


def method_to_dict(method: AdaptiveMethod) -> Dict[str, Any]:
    if isinstance(method, SadMethod):
        return {
            "kind": SadMethod.name,
            "min_T": float(method.min_T),
            "too_lo": float(method.too_lo),
            "too_hi": float(method.too_hi),
            "min_important_energy": float(method.min_important_energy),
            "tL": int(method.tL),
            "n_found": int(method.n_found),
        }
    return {"kind": SamcMethod.name, "t0": int(method.t0)}


def method_from_dict(state: Mapping[str, Any]) -> AdaptiveMethod:
    kind = state.get("kind")
    if kind == SadMethod.name:
        return SadMethod(
            min_T=float(state["min_T"]),
            too_lo=float(state["too_lo"]),
            too_hi=float(state["too_hi"]),
            min_important_energy=float(state["min_important_energy"]),
            tL=int(state["tL"]),
            n_found=int(state["n_found"]),
        )
    if kind == SamcMethod.name:
        return SamcMethod(t0=int(state["t0"]))
    raise ValueError(f"Unknown method kind in state: {kind!r}")
