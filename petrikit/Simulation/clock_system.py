from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

from ..Clock.clock_bank import ClockBank
from ..Clock.distributions import DistributionFactory
from ..exceptions import MalformedNet
from ..Match.match_index import MatchIndex
from ..Net.net import PetriNet
from ..Net.state import TokenState
from ..Rule.compiler import compile_rules
from ..Rule.rule import Rule
from .context import SimulationContext

__all__ = ["ClockSystem", "to_clock_system"]

logger = logging.getLogger(__name__)

InitLike = Union[TokenState, Mapping[str, int], Sequence[int]]


@dataclass
class ClockSystem:
    """
    Everything a simulation run needs, wired together and seeded.

    :param net: Source net.
    :param rules: Compiled rules, in net order.
    :param indices: One match index per rule, keyed by rule name.
    :param bank: Clocks for every initial match.
    :param state: Token state owned by the run.
    :param context: Random source and simulation clock.
    :param dependents: ``species -> names of rules consuming it``.
    """

    net: PetriNet
    rules: Tuple[Rule, ...]
    indices: Dict[str, MatchIndex]
    bank: ClockBank
    state: TokenState
    context: SimulationContext
    dependents: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    def rule(self, name: str) -> Rule:
        """Compiled rule of transition ``name`` (``KeyError`` if unknown)."""
        return self.indices[name].rule

    def always_enabled(self) -> Tuple[str, ...]:
        return tuple(r.name for r in self.rules if r.is_always_enabled)


def _as_state(net: PetriNet, init: Optional[InitLike]) -> TokenState:
    if init is None:
        return TokenState.empty(net)
    if isinstance(init, TokenState):
        if init.species != net.species:
            raise MalformedNet(
                f"Initial state species {init.species} do not match net species {net.species}"
            )
        return init.copy()
    return TokenState.from_counts(net, init)


def to_clock_system(
    net: PetriNet,
    init: Optional[InitLike],
    clockdists: Mapping[str, DistributionFactory],
    *,
    context: Optional[SimulationContext] = None,
    seed: Optional[int] = None,
) -> ClockSystem:
    """
    Compile ``net`` and seed one clock per match of ``init``.

    ``init`` is copied; the returned system owns its state. Clocks are
    enabled rule by rule in net order, matches in canonical order, all at
    ``context.now``.

    .. code-block:: python

        sys = to_clock_system(sir, {"S": 5, "I": 1}, {"infect": Exponential(0.5),
                                                      "recover": Exponential(1.0)},
                              seed=42)

    :param net: Net to simulate.
    :type net: PetriNet
    :param init: Initial state, as a :class:`TokenState`, counts by name, or
        counts aligned with ``net.species``.
    :type init: Optional[InitLike]
    :param clockdists: ``transition name -> distribution factory``.
    :type clockdists: Mapping[str, DistributionFactory]
    :param context: Shared context; built from ``seed`` when omitted.
    :type context: Optional[SimulationContext]
    :param seed: Seed for the random source when ``context`` is omitted.
    :type seed: Optional[int]
    :returns: A ready-to-run clock system.
    :rtype: ClockSystem
    :raises MalformedNet: On an invalid net or initial state.
    :raises MissingDistribution: If a transition lacks a distribution.
    """
    rules = compile_rules(net)
    bank = ClockBank(clockdists, [r.name for r in rules])
    state = _as_state(net, init)
    if context is None:
        context = SimulationContext.from_seed(seed)

    indices: Dict[str, MatchIndex] = {}
    for r in rules:
        indices[r.name] = MatchIndex(r, state)

    n_clocks = 0
    for r in rules:
        for m in indices[r.name].initialize():
            bank.enable(r, m, context.now, context)
            n_clocks += 1

    dependents = {sp: net.consumers(sp) for sp in net.species}
    logger.debug(
        "Clock system ready: %d rules, %d clocks, always enabled=%s",
        len(rules),
        n_clocks,
        net.always_enabled(),
    )
    return ClockSystem(
        net=net,
        rules=rules,
        indices=indices,
        bank=bank,
        state=state,
        context=context,
        dependents=dependents,
    )
