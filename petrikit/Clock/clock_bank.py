"""
One clock per enabled (rule, match) pair, with first-to-fire selection.

Clocks live in a binary heap ordered by ``(fire_time, seq)`` where ``seq``
is a bank-wide insertion counter, so ties between equal fire times resolve
to the clock enabled first. Disabled clocks are left in the heap and skipped
lazily when they surface at the top.

Disabled keys are retired for good: token identities are never reused, so a
second disable of the same key means reconciliation went stale.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from ..exceptions import InvariantViolation, MissingDistribution
from ..Rule.rule import Match, Rule
from .distributions import DistributionFactory, as_distribution

if TYPE_CHECKING:
    from ..Simulation.context import SimulationContext

__all__ = ["Clock", "ClockBank", "ClockKey"]

logger = logging.getLogger(__name__)

ClockKey = Tuple[str, Match]
RuleRef = Union[Rule, str]


@dataclass(frozen=True)
class Clock:
    """
    A scheduled firing.

    :param rule: Name of the rule that will fire.
    :param match: Bound tokens.
    :param fire_time: Absolute simulation time of the firing.
    :param enabled_at: Simulation time at which the clock was (re-)enabled.
    :param seq: Insertion counter used to break fire-time ties.
    """

    rule: str
    match: Match
    fire_time: float
    enabled_at: float
    seq: int

    @property
    def key(self) -> ClockKey:
        return (self.rule, self.match)


def _name(rule: RuleRef) -> str:
    return rule.name if isinstance(rule, Rule) else str(rule)


class ClockBank:
    """
    Owner of every live clock.

    :param distributions: Mapping ``transition name -> distribution factory``.
    :type distributions: Mapping[str, DistributionFactory]
    :param transitions: Names that must have a distribution.
    :type transitions: Iterable[str]
    :raises MissingDistribution: If one of ``transitions`` has no entry.
    """

    def __init__(
        self,
        distributions: Mapping[str, DistributionFactory],
        transitions: Iterable[str] = (),
    ) -> None:
        missing = [t for t in transitions if t not in distributions]
        if missing:
            raise MissingDistribution(f"No firing-time distribution for {missing}")
        self._dists = dict(distributions)
        self._live: Dict[ClockKey, Clock] = {}
        self._heap: List[Tuple[float, int, ClockKey]] = []
        self._retired: Set[ClockKey] = set()
        self._seq = 0

    # ------------------------------------------------------------------
    # Enable / disable
    # ------------------------------------------------------------------
    def enable(
        self, rule: RuleRef, match: Match, now: float, context: SimulationContext
    ) -> Clock:
        """
        Schedule a clock for ``(rule, match)``.

        The rule's distribution factory is resolved at ``now`` and sampled
        once with ``context.rng``.

        :raises InvariantViolation: If the key already has a live clock.
        :raises MissingDistribution: If the rule has no distribution.
        """
        key = (_name(rule), tuple(match))
        if key in self._live:
            raise InvariantViolation(f"Clock {key} is already enabled")
        return self._schedule(key, now, context)

    def disable(self, rule: RuleRef, match: Match) -> Optional[Clock]:
        """
        Remove the clock for ``(rule, match)``.

        A key that was never enabled is ignored.

        :returns: The removed clock, or ``None`` for a never-enabled key.
        :raises InvariantViolation: If the key was already disabled.
        """
        key = (_name(rule), tuple(match))
        clock = self._live.pop(key, None)
        if clock is None:
            if key in self._retired:
                raise InvariantViolation(f"Clock {key} is already disabled")
            logger.debug("disable(%s): never enabled, ignored", key)
            return None
        self._retired.add(key)
        if len(self._heap) > 2 * len(self._live) + 64:
            self._compact()
        return clock

    def _compact(self) -> None:
        self._heap = [(c.fire_time, c.seq, c.key) for c in self._live.values()]
        heapq.heapify(self._heap)

    def rearm(
        self, rule: RuleRef, match: Match, now: float, context: SimulationContext
    ) -> Clock:
        """
        Resample the live clock of ``(rule, match)`` in place.

        Used for a match that survives its own firing (an always-enabled
        event): the key keeps exactly one clock.

        :raises InvariantViolation: If the key has no live clock.
        """
        key = (_name(rule), tuple(match))
        if key not in self._live:
            raise InvariantViolation(f"Cannot re-arm {key}: no live clock")
        del self._live[key]
        return self._schedule(key, now, context)

    def _schedule(self, key: ClockKey, now: float, context: SimulationContext) -> Clock:
        try:
            entry = self._dists[key[0]]
        except KeyError:
            raise MissingDistribution(f"No firing-time distribution for {key[0]!r}") from None
        # A clock always starts fresh, so no enabled time has elapsed yet.
        dist = as_distribution(
            entry, 0.0, now=now, sampler_state=context.sampler_state
        )
        delay = dist.sample(context.rng)
        clock = Clock(
            rule=key[0],
            match=key[1],
            fire_time=now + delay,
            enabled_at=now,
            seq=self._seq,
        )
        self._seq += 1
        self._live[key] = clock
        heapq.heappush(self._heap, (clock.fire_time, clock.seq, key))
        return clock

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def peek_min(self) -> Optional[Clock]:
        """
        Earliest live clock, or ``None`` when nothing is enabled.

        Ties on fire time go to the clock enabled first.
        """
        heap = self._heap
        while heap:
            _, seq, key = heap[0]
            clock = self._live.get(key)
            if clock is not None and clock.seq == seq:
                return clock
            heapq.heappop(heap)
        return None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def clock(self, rule: RuleRef, match: Match) -> Optional[Clock]:
        return self._live.get((_name(rule), tuple(match)))

    def keys(self, rule: Optional[RuleRef] = None) -> List[ClockKey]:
        """Live keys in enable order, optionally restricted to one rule."""
        clocks = sorted(self._live.values(), key=lambda c: c.seq)
        if rule is None:
            return [c.key for c in clocks]
        name = _name(rule)
        return [c.key for c in clocks if c.rule == name]

    def __contains__(self, key: object) -> bool:
        return key in self._live

    def __len__(self) -> int:
        return len(self._live)

    def __repr__(self) -> str:
        return f"ClockBank(n_live={len(self._live)}, heap={len(self._heap)})"
