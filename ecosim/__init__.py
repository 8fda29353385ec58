"""
Grid ecosystem simulation.

Provides:
    - CFG (run configuration)
    - Simulation (one world advanced day by day)
    - SimulationEngine (threaded runner with pause/resume)
    - MapVariant (boundary behaviour of the map)
"""

from .config import CFG
from .engine import SimulationEngine
from .errors import ConfigurationError, EcosimError, InvariantViolation, OccupationError
from .sim import Simulation
from .topology import MapVariant

__all__ = [
    "CFG", "Simulation", "SimulationEngine", "MapVariant",
    "EcosimError", "ConfigurationError", "OccupationError", "InvariantViolation",
]
