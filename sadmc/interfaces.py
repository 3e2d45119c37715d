"""Interfaces for the adaptive-weight Monte Carlo core.

Exposes typed Protocols for the collaborators the engine consumes: the
simulated system, the random stream and the per-step report hooks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .engine import EnergyMC

__all__ = [
    "Energy",
    "RandomStream",
    "MovableSystem",
    "SupportsSystemState",
    "StepHook",
]

Energy = float


@runtime_checkable
class RandomStream(Protocol):
    """Deterministic, seedable source of uniform floats in [0, 1)."""

    def random(self) -> float:
        ...


@runtime_checkable
class MovableSystem(Protocol):
    """A simulated system that can propose and undo single trial moves."""

    def energy(self) -> Energy:
        """Current energy of the configuration."""
        ...

    def attempt_move(self, rng: RandomStream, scale: float) -> Optional[Energy]:
        """Perform one trial move and return the new energy.

        Returns None when the system declines the move internally; in that
        case the configuration must be left untouched.
        """
        ...

    def undo(self) -> None:
        """Revert the most recently performed move."""
        ...

    def suggested_bin_width(self) -> Optional[Energy]:
        """Natural energy spacing, or None when the system has none."""
        ...


@runtime_checkable
class SupportsSystemState(Protocol):
    """Optional checkpoint support for a system."""

    def state_dict(self) -> Mapping[str, Any]:
        ...

    def load_state_dict(self, state: Mapping[str, Any]) -> None:
        ...


@runtime_checkable
class StepHook(Protocol):
    """Called once per trial with read access to the engine.

    Returning True asks the engine to stop after the current step.
    """

    def __call__(self, engine: "EnergyMC") -> Optional[bool]:
        ...
