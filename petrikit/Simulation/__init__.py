"""
Simulation driver and run configuration.

Re-exported names
-----------------
- :class:`~petrikit.Simulation.context.SimulationContext`
- :class:`~petrikit.Simulation.context.RunConfig`
- :class:`~petrikit.Simulation.clock_system.ClockSystem`
- :func:`~petrikit.Simulation.clock_system.to_clock_system`
- :class:`~petrikit.Simulation.driver.SimulationDriver`
- :func:`~petrikit.Simulation.driver.run`
- :class:`~petrikit.Simulation.trajectory.Trajectory`
"""

from __future__ import annotations
from typing import List

from .context import CancellationToken, RunConfig, SimulationContext
from .clock_system import ClockSystem, to_clock_system
from .driver import (
    FiringRecord,
    HaltReason,
    SimulationDriver,
    SimulationResult,
    run,
)
from .trajectory import Trajectory

__all__: List[str] = [
    "CancellationToken",
    "RunConfig",
    "SimulationContext",
    "ClockSystem",
    "to_clock_system",
    "FiringRecord",
    "HaltReason",
    "SimulationDriver",
    "SimulationResult",
    "run",
    "Trajectory",
]
