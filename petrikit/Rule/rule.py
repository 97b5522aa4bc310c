from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from ..exceptions import InvariantViolation
from ..Net.multiset import Multiset
from ..Net.state import TokenState

__all__ = ["Rule", "Match", "TokenDelta"]

# A match binds one token identity per before-pattern slot, in slot order.
Match = Tuple[int, ...]
# species -> token identities destroyed or created by one firing
TokenDelta = Dict[str, Tuple[int, ...]]


@dataclass(frozen=True)
class Rule:
    """
    Rewrite rule compiled from one transition.

    The *before* pattern has one slot per consumed token and the *after*
    pattern one slot per produced token. The two patterns share nothing:
    firing destroys every bound token and creates fresh ones, even for a
    species that appears on both sides.

    Slots are grouped by species in sorted order, so a match is a
    concatenation of one token group per consumed species.

    :param name: Name of the source transition.
    :type name: str
    :param index: Position of the source transition in its net.
    :type index: int
    :param consumes: Input multiset.
    :type consumes: Multiset
    :param produces: Output multiset.
    :type produces: Multiset
    """

    name: str
    index: int
    consumes: Multiset
    produces: Multiset
    before: Tuple[str, ...] = field(init=False)
    after: Tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "before", tuple(self.consumes.elements()))
        object.__setattr__(self, "after", tuple(self.produces.elements()))

    @property
    def is_always_enabled(self) -> bool:
        return not self.before

    def groups(self) -> List[Tuple[str, int]]:
        """``(species, multiplicity)`` for each consumed species, in slot order."""
        return [(sp, self.consumes[sp]) for sp in sorted(self.consumes)]

    def bindings(self, match: Match) -> TokenDelta:
        """
        Split a match into its per-species token groups.

        :raises InvariantViolation: If the match does not fit the before pattern.
        """
        if len(match) != len(self.before):
            raise InvariantViolation(
                f"Match {match} has {len(match)} slots; rule {self.name!r} "
                f"needs {len(self.before)}"
            )
        out: TokenDelta = {}
        pos = 0
        for sp, k in self.groups():
            out[sp] = tuple(match[pos : pos + k])
            pos += k
        return out

    def apply(self, state: TokenState, match: Match) -> Tuple[TokenDelta, TokenDelta]:
        """
        Fire the rule on ``state`` at ``match``.

        :returns: ``(removed, added)`` token identities per species.
        :rtype: Tuple[TokenDelta, TokenDelta]
        :raises InvariantViolation: If a bound token is no longer present.
        """
        removed = self.bindings(match)
        stale = [
            (sp, tok)
            for sp, toks in removed.items()
            for tok in toks
            if not state.has_token(sp, tok)
        ]
        if stale or any(len(set(toks)) != len(toks) for toks in removed.values()):
            raise InvariantViolation(
                f"Rule {self.name!r}: match {tuple(match)} binds absent or repeated tokens {stale}"
            )
        for sp, toks in removed.items():
            state.remove(sp, toks)
        added: TokenDelta = {
            sp: tuple(state.add(sp, k)) for sp, k in sorted(self.produces.items())
        }
        return removed, added

    def __repr__(self) -> str:
        return f"Rule({self.name!r}: {self.consumes!r} >> {self.produces!r})"
