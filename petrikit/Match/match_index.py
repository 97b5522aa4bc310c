"""
Incremental maintenance of the matches of one rule.

A match of a rule picks, for every consumed species ``s`` with multiplicity
``k``, a ``k``-subset of the tokens currently in ``s``'s pool. The full match
set is therefore the Cartesian product of those combinations. Within a
species group the chosen tokens are kept in ascending identity order, which
makes every match a canonical tuple.

:class:`MatchIndex` stores the matches in an insertion-ordered arena plus a
reverse index ``token -> matches binding it``. A state delta then costs:

* removal: one reverse-index lookup per destroyed token, touching only the
  matches that bound it;
* addition: enumeration of only those combinations that include at least one
  new token.

Neither path rescans unaffected matches.
"""

from __future__ import annotations

from itertools import combinations, product
from typing import Dict, Iterable, Iterator, List, Sequence, Set, Tuple

from ..exceptions import InvariantViolation
from ..Net.state import TokenState
from ..Rule.rule import Match, Rule, TokenDelta

__all__ = ["MatchIndex", "scan_matches"]


def scan_matches(rule: Rule, state: TokenState) -> List[Match]:
    """
    Enumerate every match of ``rule`` in ``state`` from scratch.

    A rule with an empty before pattern has exactly one match, ``()``.

    :param rule: Compiled rule.
    :type rule: Rule
    :param state: Current token state.
    :type state: TokenState
    :returns: All matches, in canonical enumeration order.
    :rtype: List[Match]
    """
    per_group = [
        list(combinations(sorted(state.pool(sp)), k)) for sp, k in rule.groups()
    ]
    return [_join(parts) for parts in product(*per_group)]


def _join(parts: Iterable[Tuple[int, ...]]) -> Match:
    out: List[int] = []
    for p in parts:
        out.extend(p)
    return tuple(out)


def _with_new(
    old: Iterable[int], new: Sequence[int], k: int
) -> Iterator[Tuple[int, ...]]:
    """``k``-subsets of ``old + new`` that contain at least one token of ``new``."""
    for j in range(1, min(k, len(new)) + 1):
        for picked_new in combinations(new, j):
            if j == k:
                yield tuple(picked_new)
                continue
            for picked_old in combinations(old, k - j):
                yield tuple(sorted(picked_old + picked_new))


class MatchIndex:
    """
    Complete, deduplicated match set of one rule against a shared state.

    The index holds a read-only view of ``state``; it never mutates it.
    After :meth:`initialize`, every firing (of any rule) must be reported
    through :meth:`apply_state_delta` once the state has been updated, so
    that the maintained set stays equal to :func:`scan_matches`.

    The index mirrors the pools of the species it consumes, in ascending
    identity order, so a delta is folded in without reading the state's
    pools again.

    :param rule: Rule whose before pattern is matched.
    :type rule: Rule
    :param state: Shared token state.
    :type state: TokenState
    """

    def __init__(self, rule: Rule, state: TokenState) -> None:
        self.rule = rule
        self.state = state
        self._groups = rule.groups()
        self._consumed = {sp for sp, _ in self._groups}
        self._matches: Dict[Match, None] = {}
        self._by_token: Dict[int, Set[Match]] = {}
        self._pools: Dict[str, Dict[int, None]] = {sp: {} for sp in self._consumed}

    # ------------------------------------------------------------------
    # Full scan
    # ------------------------------------------------------------------
    def initialize(self) -> List[Match]:
        """
        Rebuild the index with a full scan of the state.

        :returns: Every current match, in canonical order.
        :rtype: List[Match]
        """
        self._matches.clear()
        self._by_token.clear()
        self._pools = {
            sp: dict.fromkeys(sorted(self.state.pool(sp))) for sp in self._consumed
        }
        found = scan_matches(self.rule, self.state)
        for m in found:
            self._insert(m)
        return found

    def rescan(self) -> List[Match]:
        """Full scan of the state without touching the index."""
        return scan_matches(self.rule, self.state)

    def is_consistent(self) -> bool:
        """``True`` if the maintained set equals a full rescan."""
        return set(self._matches) == set(self.rescan())

    # ------------------------------------------------------------------
    # Incremental update
    # ------------------------------------------------------------------
    def apply_state_delta(
        self, removed: TokenDelta, added: TokenDelta
    ) -> Tuple[List[Match], List[Match]]:
        """
        Fold one firing's token changes into the index.

        Must be called after the state already reflects the firing. The cost
        is proportional to the tokens in the delta plus the matches gained or
        lost, not to the size of the state.

        :param removed: Tokens destroyed by the firing, per species.
        :type removed: TokenDelta
        :param added: Tokens created by the firing, per species.
        :type added: TokenDelta
        :returns: ``(new_matches, invalidated_matches)``.
        :rtype: Tuple[List[Match], List[Match]]
        :raises InvariantViolation: If ``added`` tokens are missing from the
            state or ``removed`` tokens are still present.
        """
        invalidated = self._drop_removed(removed)
        new = self._collect_added(added)
        for m in new:
            self._insert(m)
        return new, invalidated

    def _drop_removed(self, removed: TokenDelta) -> List[Match]:
        out: Dict[Match, None] = {}
        for sp, toks in removed.items():
            if sp not in self._consumed:
                continue
            pool = self._pools[sp]
            for tok in toks:
                if self.state.has_token(sp, tok):
                    raise InvariantViolation(
                        f"Token {tok} of {sp!r} reported removed but still present"
                    )
                pool.pop(tok, None)
                for m in self._by_token.pop(tok, ()):
                    out[m] = None
        for m in out:
            self._discard(m)
        return list(out)

    def _collect_added(self, added: TokenDelta) -> List[Match]:
        fresh: Dict[str, List[int]] = {}
        for sp, toks in added.items():
            if sp not in self._consumed or not toks:
                continue
            pool = self._pools[sp]
            for tok in toks:
                if not self.state.has_token(sp, tok):
                    raise InvariantViolation(
                        f"Token {tok} of {sp!r} reported added but not present"
                    )
                if tok in pool:
                    raise InvariantViolation(
                        f"Token {tok} of {sp!r} reported added twice"
                    )
            fresh[sp] = sorted(toks)
        if not fresh:
            return []

        # Each new match is emitted exactly once, under the first group that
        # holds one of its new tokens: earlier groups draw old tokens only.
        # The mirrored pools still hold old tokens only at this point.
        out: List[Match] = []
        for i, (sp, k) in enumerate(self._groups):
            if sp not in fresh or not self._feasible(i, fresh):
                continue
            per_group: List[Iterable[Tuple[int, ...]]] = []
            for j, (spj, kj) in enumerate(self._groups):
                if j < i:
                    per_group.append(combinations(self._pools[spj], kj))
                elif j == i:
                    per_group.append(_with_new(self._pools[sp], fresh[sp], k))
                elif spj in fresh:
                    per_group.append(
                        combinations(list(self._pools[spj]) + fresh[spj], kj)
                    )
                else:
                    per_group.append(combinations(self._pools[spj], kj))
            for parts in product(*per_group):
                m = _join(parts)
                if m in self._matches:
                    raise InvariantViolation(
                        f"Rule {self.rule.name!r}: new match {m} already indexed"
                    )
                out.append(m)

        for sp, toks in fresh.items():
            self._extend_pool(sp, toks)
        return out

    def _feasible(self, i: int, fresh: Dict[str, List[int]]) -> bool:
        # Some group cannot be filled: skip without materialising the others.
        for j, (sp, k) in enumerate(self._groups):
            n = len(self._pools[sp])
            if j >= i:
                n += len(fresh.get(sp, ()))
            if n < k:
                return False
        return True

    def _extend_pool(self, sp: str, toks: List[int]) -> None:
        pool = self._pools[sp]
        if pool and toks[0] < next(reversed(pool)):
            merged = sorted(list(pool) + toks)
            self._pools[sp] = dict.fromkeys(merged)
            return
        for tok in toks:
            pool[tok] = None

    # ------------------------------------------------------------------
    # Arena bookkeeping
    # ------------------------------------------------------------------
    def _insert(self, m: Match) -> None:
        self._matches[m] = None
        for tok in m:
            self._by_token.setdefault(tok, set()).add(m)

    def _discard(self, m: Match) -> None:
        del self._matches[m]
        for tok in m:
            refs = self._by_token.get(tok)
            if refs is not None:
                refs.discard(m)
                if not refs:
                    del self._by_token[tok]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def matches(self) -> Tuple[Match, ...]:
        """Current matches in insertion order."""
        return tuple(self._matches)

    def matches_of(self, token: int) -> Tuple[Match, ...]:
        """Matches currently binding ``token``."""
        return tuple(self._by_token.get(token, ()))

    def __contains__(self, m: object) -> bool:
        return m in self._matches

    def __len__(self) -> int:
        return len(self._matches)

    def __iter__(self) -> Iterator[Match]:
        return iter(tuple(self._matches))

    def __repr__(self) -> str:
        return f"MatchIndex(rule={self.rule.name!r}, n_matches={len(self._matches)})"
