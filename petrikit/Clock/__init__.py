"""
Clocks and firing-time distributions.

Re-exported names
-----------------
- :class:`~petrikit.Clock.clock_bank.Clock`
- :class:`~petrikit.Clock.clock_bank.ClockBank`
- :class:`~petrikit.Clock.distributions.FiringDistribution` and its
  parametric subclasses
"""

from __future__ import annotations
from typing import List

from .clock_bank import Clock, ClockBank, ClockKey
from .distributions import (
    Deterministic,
    Exponential,
    FiringDistribution,
    Gamma,
    LogNormal,
    Uniform,
    Weibull,
    as_distribution,
)

__all__: List[str] = [
    "Clock",
    "ClockBank",
    "ClockKey",
    "FiringDistribution",
    "Exponential",
    "Weibull",
    "Gamma",
    "LogNormal",
    "Uniform",
    "Deterministic",
    "as_distribution",
]
