from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..exceptions import InvariantViolation, MalformedNet
from .net import PetriNet

__all__ = ["TokenState"]

Counts = Union[Sequence[int], Mapping[str, int]]


class TokenState:
    """
    Mutable token configuration of a net.

    Every species owns an insertion-ordered pool of opaque integer token
    identities. Tokens are interchangeable for enabling purposes but each has
    its own identity, so a match can say *which* tokens it binds. Identities
    come from a monotone counter and are never reused.

    :param species: Declared species names, in net order.
    :type species: Sequence[str]
    """

    def __init__(self, species: Sequence[str]) -> None:
        self._pools: Dict[str, Dict[int, None]] = {str(s): {} for s in species}
        self._next_id = 0

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def empty(cls, net: PetriNet) -> TokenState:
        """A state with one empty pool per declared species."""
        return cls(net.species)

    @classmethod
    def from_counts(
        cls, net: PetriNet, counts: Optional[Counts] = None, **kw: int
    ) -> TokenState:
        """
        Build a state holding the given number of tokens per species.

        ``counts`` is either a sequence aligned with ``net.species`` or a
        mapping by species name; keyword arguments add tokens by name on top.

        .. code-block:: python

            init = TokenState.from_counts(sir, S=20, I=1)
            init = TokenState.from_counts(sir, [20, 1, 0])

        :raises MalformedNet: On unknown species, negative counts or a
            sequence longer than the species list.
        """
        state = cls.empty(net)
        if counts is None:
            pairs: List[Tuple[str, int]] = []
        elif isinstance(counts, Mapping):
            pairs = [(str(k), v) for k, v in counts.items()]
        else:
            counts = list(counts)
            if len(counts) > net.n_species:
                raise MalformedNet(
                    f"{len(counts)} initial counts given for {net.n_species} species"
                )
            pairs = list(zip(net.species, counts))
        pairs.extend(kw.items())

        for sp, n in pairs:
            if sp not in state._pools:
                raise MalformedNet(f"Initial state references undeclared species {sp!r}")
            n = int(n)
            if n < 0:
                raise MalformedNet(f"Negative initial count {n} for species {sp!r}")
            state.add(sp, n)
        return state

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def add(self, species: str, n: int = 1) -> List[int]:
        """
        Create ``n`` fresh tokens of ``species``.

        :returns: The new token identities, in creation order.
        :rtype: List[int]
        """
        pool = self._pool(species)
        ids = list(range(self._next_id, self._next_id + n))
        self._next_id += n
        for tok in ids:
            pool[tok] = None
        return ids

    def remove(self, species: str, tokens: Iterable[int]) -> None:
        """
        Destroy specific tokens of ``species``.

        :raises InvariantViolation: If a token is not currently present.
        """
        pool = self._pool(species)
        tokens = list(tokens)
        missing = [t for t in tokens if t not in pool]
        if missing or len(set(tokens)) != len(tokens):
            raise InvariantViolation(
                f"Cannot remove tokens {tokens} from {species!r}: not all present"
            )
        for tok in tokens:
            del pool[tok]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def species(self) -> Tuple[str, ...]:
        return tuple(self._pools)

    def pool(self, species: str) -> Tuple[int, ...]:
        """Current token identities of ``species`` in insertion order."""
        return tuple(self._pool(species))

    def has_token(self, species: str, token: int) -> bool:
        return token in self._pool(species)

    def count(self, species: str) -> int:
        return len(self._pool(species))

    def counts(self) -> Dict[str, int]:
        """Token count per species."""
        return {sp: len(pool) for sp, pool in self._pools.items()}

    def copy(self) -> TokenState:
        """Independent copy; identities and the id counter are preserved."""
        other = TokenState(self.species)
        other._pools = {sp: dict(pool) for sp, pool in self._pools.items()}
        other._next_id = self._next_id
        return other

    def _pool(self, species: str) -> Dict[int, None]:
        try:
            return self._pools[species]
        except KeyError:
            raise MalformedNet(f"Unknown species {species!r}") from None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TokenState):
            return NotImplemented
        return self.counts() == other.counts()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        body = ", ".join(f"{sp}={n}" for sp, n in self.counts().items())
        return f"TokenState({body})"
