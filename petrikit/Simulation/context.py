from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np

__all__ = ["SimulationContext", "CancellationToken", "RunConfig"]


@dataclass
class SimulationContext:
    """
    Per-run mutable context shared by reference with every clock enable.

    :param rng: The run's single random source.
    :type rng: numpy.random.Generator
    :param now: Current simulation time; only the driver advances it.
    :type now: float
    :param sampler_state: Auxiliary state passed to every distribution
        factory; factories may read and update it.
    :type sampler_state: Dict[str, Any]
    """

    rng: np.random.Generator = field(default_factory=np.random.default_rng)
    now: float = 0.0
    sampler_state: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_seed(cls, seed: Optional[int] = None, now: float = 0.0) -> SimulationContext:
        """Context with ``numpy.random.default_rng(seed)``."""
        return cls(rng=np.random.default_rng(seed), now=float(now))

    def advance(self, t: float) -> None:
        """
        Move the clock forward to ``t``.

        :raises ValueError: If ``t`` is earlier than :attr:`now`.
        """
        if t < self.now:
            raise ValueError(f"Time cannot go backwards: {t} < {self.now}")
        self.now = float(t)


class CancellationToken:
    """Cooperative cancellation flag, polled between firings."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"


@dataclass
class RunConfig:
    """
    Stop conditions and options for one simulation run.

    :param max_events: Halt after this many firings (``None`` = unbounded).
    :type max_events: Optional[int]
    :param max_time: Halt before firing any clock later than this time.
    :type max_time: Optional[float]
    :param seed: Seed for a fresh random source when no context is given.
    :type seed: Optional[int]
    :param cancel: Token checked before each firing.
    :type cancel: Optional[CancellationToken]
    :param validate: Re-check token conservation and match consistency
        after every firing (slow; for debugging and tests).
    :type validate: bool
    """

    max_events: Optional[int] = None
    max_time: Optional[float] = None
    seed: Optional[int] = None
    cancel: Optional[CancellationToken] = None
    validate: bool = False

    def __post_init__(self) -> None:
        if self.max_events is not None and self.max_events < 0:
            raise ValueError(f"max_events must be non-negative, got {self.max_events}")
        if self.max_time is not None and self.max_time < 0:
            raise ValueError(f"max_time must be non-negative, got {self.max_time}")
