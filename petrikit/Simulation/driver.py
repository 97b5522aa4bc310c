"""
First-to-fire event loop.

Each step takes the earliest clock, advances simulation time to it, applies
the rule to the token state and then reconciles matches and clocks:

1. every rule consuming a changed species folds the token delta into its
   :class:`~petrikit.Match.match_index.MatchIndex`;
2. clocks of invalidated matches are disabled;
3. clocks of new matches are enabled;
4. a fired match that survives its own firing (an always-enabled event) has
   its single clock re-armed in place.

Rules that consume none of the changed species cannot gain or lose matches,
so their indices are not consulted. The loop is strictly sequential and a
step is atomic as seen from the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional

import numpy as np

from ..Clock.clock_bank import Clock
from ..Clock.distributions import DistributionFactory
from ..exceptions import InvariantViolation
from ..Net.net import PetriNet
from ..Net.state import TokenState
from ..Rule.rule import Match, TokenDelta
from .clock_system import ClockSystem, InitLike, to_clock_system
from .context import CancellationToken, RunConfig, SimulationContext
from .trajectory import Trajectory

__all__ = [
    "HaltReason",
    "FiringRecord",
    "SimulationDriver",
    "SimulationResult",
    "run",
]


class HaltReason(Enum):
    """Why a run stopped."""

    DEADLOCK = "deadlock"
    MAX_EVENTS = "max_events"
    MAX_TIME = "max_time"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class FiringRecord:
    """
    One firing.

    :param time: Simulation time of the firing.
    :param transition: Name of the fired transition.
    :param match: Tokens bound by the firing, in before-pattern slot order.
    :param consumed: Destroyed tokens per species.
    :param produced: Created tokens per species.
    """

    time: float
    transition: str
    match: Match
    consumed: TokenDelta = field(default_factory=dict)
    produced: TokenDelta = field(default_factory=dict)

    def net_change(self) -> Dict[str, int]:
        """Count change per species caused by this firing."""
        out: Dict[str, int] = {}
        for sp, toks in self.produced.items():
            out[sp] = out.get(sp, 0) + len(toks)
        for sp, toks in self.consumed.items():
            out[sp] = out.get(sp, 0) - len(toks)
        return out


class SimulationDriver:
    """
    Runs a :class:`ClockSystem` until a stop condition or deadlock.

    The driver is *Running* until it halts; once halted it never mutates the
    state again and :attr:`halt_reason` tells why.

    :param system: A seeded clock system; the driver takes ownership.
    :type system: ClockSystem
    :param config: Stop conditions; defaults to an unbounded run.
    :type config: Optional[RunConfig]
    :param logger: Logger for progress messages; module logger by default.
    :type logger: Optional[logging.Logger]
    """

    def __init__(
        self,
        system: ClockSystem,
        config: Optional[RunConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.system = system
        self.config = config or RunConfig()
        self.logger = logger or logging.getLogger(__name__)
        self._halt_reason: Optional[HaltReason] = None
        self._n_events = 0
        self._started = False
        self._stoich: Optional[np.ndarray] = (
            system.net.stoichiometric_matrix() if self.config.validate else None
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def context(self) -> SimulationContext:
        return self.system.context

    @property
    def now(self) -> float:
        return self.system.context.now

    @property
    def state(self) -> TokenState:
        return self.system.state

    @property
    def n_events(self) -> int:
        return self._n_events

    @property
    def halted(self) -> bool:
        return self._halt_reason is not None

    @property
    def halt_reason(self) -> Optional[HaltReason]:
        return self._halt_reason

    def counts(self) -> Dict[str, int]:
        """Token count per species."""
        return self.system.state.counts()

    def matches(self, transition: str) -> List[Match]:
        """Current matches of ``transition``."""
        return list(self.system.indices[transition].matches())

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    def events(self) -> Iterator[FiringRecord]:
        """
        Lazily fire events until the run halts.

        The sequence is not restartable: a second call raises.

        :raises RuntimeError: If called more than once.
        """
        if self._started:
            raise RuntimeError("SimulationDriver.events() can only be consumed once")
        self._started = True
        return self._drain()

    def _drain(self) -> Iterator[FiringRecord]:
        while True:
            record = self.step()
            if record is None:
                return
            yield record

    def step(self) -> Optional[FiringRecord]:
        """
        Fire the next event.

        :returns: The firing record, or ``None`` once the run is halted.
        """
        if self._halt_reason is not None:
            return None

        cfg = self.config
        cancel: Optional[CancellationToken] = cfg.cancel
        if cancel is not None and cancel.cancelled:
            return self._halt(HaltReason.CANCELLED)
        if cfg.max_events is not None and self._n_events >= cfg.max_events:
            return self._halt(HaltReason.MAX_EVENTS)

        clock = self.system.bank.peek_min()
        if clock is None:
            return self._halt(HaltReason.DEADLOCK)
        if cfg.max_time is not None and clock.fire_time > cfg.max_time:
            return self._halt(HaltReason.MAX_TIME)
        return self._fire(clock)

    def _halt(self, reason: HaltReason) -> None:
        self._halt_reason = reason
        self.logger.info(
            "Simulation halted (%s) after %d events at t=%g",
            reason.value,
            self._n_events,
            self.now,
        )
        return None

    def _fire(self, clock: Clock) -> FiringRecord:
        system = self.system
        ctx = system.context
        rule = system.rule(clock.rule)
        before = system.state.counts() if self._stoich is not None else None

        ctx.advance(clock.fire_time)
        removed, added = rule.apply(system.state, clock.match)

        affected: List[str] = []
        for sp in list(removed) + list(added):
            for name in system.dependents.get(sp, ()):
                if name not in affected:
                    affected.append(name)
        affected.sort(key=lambda name: system.rule(name).index)

        destroyed = {tok for toks in removed.values() for tok in toks}
        enable: List[tuple] = []
        for name in affected:
            new, invalidated = system.indices[name].apply_state_delta(removed, added)
            for m in invalidated:
                if destroyed.isdisjoint(m):
                    raise InvariantViolation(
                        f"Match {m} of {name!r} invalidated without a destroyed token"
                    )
                system.bank.disable(name, m)
            enable.extend((name, m) for m in new)
        for name, m in enable:
            system.bank.enable(name, m, ctx.now, ctx)

        if clock.key in system.bank:
            if clock.match:
                raise InvariantViolation(f"Clock {clock.key} survived its own firing")
            system.bank.rearm(rule, clock.match, ctx.now, ctx)

        self._n_events += 1
        record = FiringRecord(
            time=ctx.now,
            transition=rule.name,
            match=clock.match,
            consumed=removed,
            produced=added,
        )
        self.logger.debug(
            "t=%g fire %s match=%s (%d clocks live)",
            ctx.now,
            rule.name,
            clock.match,
            len(system.bank),
        )
        if before is not None:
            self._validate(rule.index, before)
        return record

    def _validate(self, column: int, before: Dict[str, int]) -> None:
        system = self.system
        after = system.state.counts()
        delta = np.array([after[sp] - before[sp] for sp in system.net.species])
        if not np.array_equal(delta, self._stoich[:, column]):
            raise InvariantViolation(
                f"Token conservation broken by {system.rules[column].name!r}: "
                f"{dict(zip(system.net.species, delta.tolist()))}"
            )
        for name, index in system.indices.items():
            if not index.is_consistent():
                raise InvariantViolation(f"Match index of {name!r} diverged from state")
            if set(system.bank.keys(name)) != {(name, m) for m in index.matches()}:
                raise InvariantViolation(f"Clocks of {name!r} diverged from its matches")


# ---------------------------------------------------------------------------
# One-shot convenience
# ---------------------------------------------------------------------------


@dataclass
class SimulationResult:
    """
    Outcome of :func:`run`.

    :param records: Every firing, in order.
    :param initial_counts: Token counts before the first firing.
    :param final_counts: Token counts at halt.
    :param halt_reason: Why the run stopped.
    :param end_time: Simulation time at halt.
    :param start_time: Simulation time before the first firing.
    """

    records: List[FiringRecord]
    initial_counts: Dict[str, int]
    final_counts: Dict[str, int]
    halt_reason: HaltReason
    end_time: float
    start_time: float = 0.0

    @property
    def n_events(self) -> int:
        return len(self.records)

    def trajectory(self) -> Trajectory:
        """Replay the records into a :class:`Trajectory`."""
        return Trajectory.from_records(
            self.initial_counts, self.records, start_time=self.start_time
        )


def run(
    net: PetriNet,
    clockdists: Mapping[str, DistributionFactory],
    init: Optional[InitLike] = None,
    *,
    context: Optional[SimulationContext] = None,
    logger: Optional[logging.Logger] = None,
    **config: Any,
) -> SimulationResult:
    """
    Build a clock system for ``net`` and run it to completion.

    Keyword arguments not listed are passed to :class:`RunConfig`
    (``max_events``, ``max_time``, ``seed``, ``cancel``, ``validate``).

    .. code-block:: python

        res = run(sir, {"infect": Exponential(0.5), "recover": Exponential(1.0)},
                  {"S": 50, "I": 1}, max_time=100.0, seed=7)
        res.final_counts, res.halt_reason

    :returns: Records, final counts and halt reason.
    :rtype: SimulationResult
    """
    cfg = RunConfig(**config)
    system = to_clock_system(net, init, clockdists, context=context, seed=cfg.seed)
    driver = SimulationDriver(system, cfg, logger=logger)
    initial = driver.counts()
    start = driver.now
    records = list(driver.events())
    return SimulationResult(
        records=records,
        initial_counts=initial,
        final_counts=driver.counts(),
        halt_reason=driver.halt_reason,
        end_time=driver.now,
        start_time=start,
    )
