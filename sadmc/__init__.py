"""Adaptive-weight (SAD / SAMC) Monte Carlo core for density-of-states estimation."""

from .bins import BinIndexError, EnergyBinTable
from .config import EnergyMCParams
from .engine import EnergyMC
from .methods import SadMethod, SadParams, SamcMethod, SamcParams

__all__ = [
    "BinIndexError",
    "EnergyBinTable",
    "EnergyMCParams",
    "EnergyMC",
    "SadMethod",
    "SadParams",
    "SamcMethod",
    "SamcParams",
]
