"""
Stochastic simulation of Petri nets presented as rewrite rules.

Each transition is compiled into a rule that destroys its input tokens and
creates fresh output tokens. Every place the rule applies (a *match*) gets
its own clock sampled from the transition's firing-time distribution, and
the earliest clock fires next.

Re-exported names
-----------------
- :class:`~petrikit.Net.net.PetriNet`, :class:`~petrikit.Net.net.Transition`
- :class:`~petrikit.Net.state.TokenState`
- :func:`~petrikit.Simulation.clock_system.to_clock_system`
- :class:`~petrikit.Simulation.driver.SimulationDriver`
- :func:`~petrikit.Simulation.driver.run`
"""

from __future__ import annotations
from typing import List

from .version import __version__
from .exceptions import (
    PetriKitError,
    MalformedNet,
    MissingDistribution,
    InvariantViolation,
)
from .Net import Multiset, NetKind, PetriNet, Transition, TokenState, species_name
from .Rule import Rule, compile_rule, compile_rules
from .Match import MatchIndex
from .Clock import ClockBank
from .Simulation import (
    CancellationToken,
    ClockSystem,
    FiringRecord,
    HaltReason,
    RunConfig,
    SimulationContext,
    SimulationDriver,
    SimulationResult,
    Trajectory,
    run,
    to_clock_system,
)

__all__: List[str] = [
    "__version__",
    "PetriKitError",
    "MalformedNet",
    "MissingDistribution",
    "InvariantViolation",
    "Multiset",
    "NetKind",
    "PetriNet",
    "Transition",
    "TokenState",
    "species_name",
    "Rule",
    "compile_rule",
    "compile_rules",
    "MatchIndex",
    "ClockBank",
    "CancellationToken",
    "ClockSystem",
    "FiringRecord",
    "HaltReason",
    "RunConfig",
    "SimulationContext",
    "SimulationDriver",
    "SimulationResult",
    "Trajectory",
    "run",
    "to_clock_system",
]
