from __future__ import annotations

from typing import Tuple, Union

from ..exceptions import MalformedNet
from ..Net.net import PetriNet, Transition
from .rule import Rule

__all__ = ["compile_rule", "compile_rules"]


def compile_rule(net: PetriNet, transition: Union[str, int, Transition]) -> Rule:
    """
    Compile one transition of ``net`` into a :class:`Rule`.

    Tokens are deleted and recreated rather than preserved: the rule's
    before and after patterns never share a slot.

    :param net: Owning net; provides the declared species.
    :type net: PetriNet
    :param transition: The transition, its name or its 0-based index.
    :type transition: Union[str, int, Transition]
    :returns: The compiled rule.
    :rtype: Rule
    :raises MalformedNet: If the net declares no species or the transition
        references an undeclared species.
    """
    if net.n_species == 0:
        raise MalformedNet("Net declares no species")

    if isinstance(transition, Transition):
        t = transition
    elif isinstance(transition, int):
        t = net.transitions[transition]
    else:
        try:
            t = net.transition(transition)
        except KeyError:
            raise MalformedNet(f"Unknown transition {transition!r}") from None

    unknown = sorted(sp for sp in t.species() if not net.has_species(sp))
    if unknown:
        raise MalformedNet(
            f"Transition {t.name!r} references undeclared species {unknown}"
        )

    index = next(
        (j for j, other in enumerate(net.transitions) if other.name == t.name), -1
    )
    return Rule(name=t.name, index=index, consumes=t.inputs, produces=t.outputs)


def compile_rules(net: PetriNet) -> Tuple[Rule, ...]:
    """Compile every transition of ``net``, in net order."""
    if net.n_species == 0:
        raise MalformedNet("Net declares no species")
    return tuple(compile_rule(net, j) for j in range(net.n_transitions))
