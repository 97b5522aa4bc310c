"""
Petri net definitions.

A net is a tagged variant over two naming schemes:

* :attr:`NetKind.LABELLED`: species carry explicit labels (``"S"``, ``"I"``).
* :attr:`NetKind.INDEXED`: species are anonymous and named by position
  (``"S1"``, ``"S2"``, ...).

:func:`species_name` is the single capability that resolves a species index
to its name for either variant. It is evaluated once per species when the
net is built; everything downstream works with names only.

The bipartite view returned by :meth:`PetriNet.to_bipartite` follows the
usual species/reaction conventions:

- Nodes:
    * species: ``kind="species"``, ``bipartite=0``, with a ``label``.
    * transitions: ``kind="reaction"``, ``bipartite=1``, with a ``label``.

- Edges:
    * ``role``: ``"reactant"`` (species -> transition) or ``"product"``
      (transition -> species).
    * ``stoich``: multiplicity on that side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import networkx as nx
import numpy as np

from ..exceptions import MalformedNet
from .multiset import Multiset, MultisetLike

__all__ = ["NetKind", "Transition", "PetriNet", "species_name"]

TransitionLike = Union["Transition", Tuple[str, Any, Any]]


class NetKind(Enum):
    """Naming scheme of a net's species."""

    LABELLED = "labelled"
    INDEXED = "indexed"


@dataclass(frozen=True)
class Transition:
    """
    Immutable transition definition.

    :param name: Unique transition name; also the key of its distribution.
    :type name: str
    :param inputs: Tokens consumed on firing (species -> count).
    :type inputs: Multiset
    :param outputs: Tokens produced on firing (species -> count).
    :type outputs: Multiset
    """

    name: str
    inputs: Multiset = field(default_factory=Multiset)
    outputs: Multiset = field(default_factory=Multiset)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise MalformedNet(f"Transition name must be a non-empty string: {self.name!r}")
        object.__setattr__(self, "inputs", Multiset.from_any(self.inputs))
        object.__setattr__(self, "outputs", Multiset.from_any(self.outputs))

    @classmethod
    def from_str(cls, name: str, reaction: str) -> Transition:
        """
        Parse ``"S + I >> 2I"`` into a transition.

        :raises MalformedNet: If the string lacks exactly one ``>>``.
        """
        if reaction.count(">>") != 1:
            raise MalformedNet(f"Transition {name!r}: expected 'lhs >> rhs', got {reaction!r}")
        lhs, rhs = reaction.split(">>")
        try:
            return cls(name, Multiset.from_str(lhs), Multiset.from_str(rhs))
        except ValueError as exc:
            raise MalformedNet(f"Transition {name!r}: {exc}") from exc

    @property
    def is_always_enabled(self) -> bool:
        """``True`` when the transition consumes nothing."""
        return not self.inputs

    def species(self) -> set:
        """All species mentioned on either side."""
        return self.inputs.species() | self.outputs.species()

    def __repr__(self) -> str:
        return f"{self.name}: {self.inputs!r} >> {self.outputs!r}"


def species_name(net: PetriNet, index: int) -> str:
    """
    Name of the species at 0-based ``index``.

    Labelled nets return the declared label; indexed nets return ``S<k>``
    with ``k = index + 1``.

    :raises IndexError: If ``index`` is out of range.
    """
    if not 0 <= index < net.n_species:
        raise IndexError(f"Species index {index} out of range for {net.n_species} species")
    if net.kind is NetKind.LABELLED:
        return net.labels[index]
    return f"S{index + 1}"


@dataclass(frozen=True)
class PetriNet:
    """
    A place/transition net.

    Use :meth:`labelled`, :meth:`indexed` or :meth:`from_reactions` rather
    than the raw constructor. Transition sides are *not* checked against the
    declared species here; that happens when rules are compiled.

    :param kind: Naming scheme of the species.
    :type kind: NetKind
    :param n_species: Number of declared species.
    :type n_species: int
    :param transitions: Ordered transitions.
    :type transitions: Tuple[Transition, ...]
    :param labels: Species labels (labelled nets only).
    :type labels: Tuple[str, ...]
    """

    kind: NetKind
    n_species: int
    transitions: Tuple[Transition, ...] = ()
    labels: Tuple[str, ...] = ()
    species: Tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "transitions", tuple(self.transitions))
        object.__setattr__(self, "labels", tuple(str(s) for s in self.labels))
        if self.kind is NetKind.LABELLED and len(self.labels) != self.n_species:
            raise MalformedNet(
                f"Labelled net declares {self.n_species} species but {len(self.labels)} labels"
            )
        names = tuple(species_name(self, i) for i in range(self.n_species))
        if len(set(names)) != len(names):
            raise MalformedNet(f"Duplicate species names: {names}")
        object.__setattr__(self, "species", names)

        seen = set()
        for t in self.transitions:
            if not isinstance(t, Transition):
                raise TypeError(f"Expected Transition, got {type(t).__name__}")
            if t.name in seen:
                raise MalformedNet(f"Duplicate transition name {t.name!r}")
            seen.add(t.name)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def labelled(
        cls, species: Sequence[str], transitions: Iterable[TransitionLike] = ()
    ) -> PetriNet:
        """
        Build a labelled net.

        .. code-block:: python

            net = PetriNet.labelled(
                ["S", "I", "R"],
                [("infect", {"S": 1, "I": 1}, {"I": 2}), ("recover", "I", "R")],
            )
        """
        species = list(species)
        return cls(
            kind=NetKind.LABELLED,
            n_species=len(species),
            transitions=tuple(_as_transition(t) for t in transitions),
            labels=tuple(species),
        )

    @classmethod
    def indexed(cls, n_species: int, transitions: Iterable[TransitionLike] = ()) -> PetriNet:
        """
        Build an indexed (unlabelled) net with species ``S1..Sn``.

        Transition sides may reference species by 0-based integer index or by
        their ``S<k>`` name.
        """
        if n_species < 0:
            raise ValueError("n_species must be non-negative")
        out: List[Transition] = []
        for t in transitions:
            if isinstance(t, Transition):
                out.append(t)
                continue
            name, inputs, outputs = t
            out.append(Transition(name, _index_side(inputs), _index_side(outputs)))
        return cls(kind=NetKind.INDEXED, n_species=n_species, transitions=tuple(out))

    @classmethod
    def from_reactions(
        cls, species: Sequence[str], reactions: Mapping[str, str]
    ) -> PetriNet:
        """
        Build a labelled net from ``{name: "lhs >> rhs"}`` reaction strings.

        .. code-block:: python

            net = PetriNet.from_reactions(
                ["S", "I", "R"], {"infect": "S + I >> 2I", "recover": "I >> R"}
            )
        """
        return cls.labelled(
            species, [Transition.from_str(name, rxn) for name, rxn in reactions.items()]
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def n_transitions(self) -> int:
        return len(self.transitions)

    @cached_property
    def _transition_index(self) -> Dict[str, int]:
        return {t.name: j for j, t in enumerate(self.transitions)}

    @cached_property
    def _species_index(self) -> Dict[str, int]:
        return {s: i for i, s in enumerate(self.species)}

    def transition(self, name: str) -> Transition:
        """Look up a transition by name (``KeyError`` if unknown)."""
        return self.transitions[self._transition_index[name]]

    def species_index(self, name: str) -> int:
        """0-based index of a declared species (``KeyError`` if unknown)."""
        return self._species_index[name]

    def has_species(self, name: str) -> bool:
        return name in self._species_index

    def always_enabled(self) -> Tuple[str, ...]:
        """Names of transitions with an empty input multiset."""
        return tuple(t.name for t in self.transitions if t.is_always_enabled)

    # ------------------------------------------------------------------
    # Structural views
    # ------------------------------------------------------------------
    def stoichiometric_matrix(self) -> np.ndarray:
        """
        Build the species x transition stoichiometric matrix S.

        ``S[i, j]`` is the net change of species ``i`` when transition ``j``
        fires once (outputs minus inputs).

        :returns: Matrix of shape ``(n_species, n_transitions)``.
        :rtype: numpy.ndarray
        :raises MalformedNet: If a transition references an undeclared species.
        """
        S = np.zeros((self.n_species, self.n_transitions), dtype=int)
        for j, t in enumerate(self.transitions):
            for sp, c in t.outputs.items():
                S[self._require_species(t, sp), j] += c
            for sp, c in t.inputs.items():
                S[self._require_species(t, sp), j] -= c
        return S

    @cached_property
    def _bipartite(self) -> nx.DiGraph:
        G = nx.DiGraph()
        for s in self.species:
            G.add_node(("species", s), kind="species", bipartite=0, label=s)
        for t in self.transitions:
            r = ("reaction", t.name)
            G.add_node(r, kind="reaction", bipartite=1, label=t.name)
            for sp, c in t.inputs.items():
                G.add_edge(("species", sp), r, role="reactant", stoich=c)
            for sp, c in t.outputs.items():
                G.add_edge(r, ("species", sp), role="product", stoich=c)
        return G

    def to_bipartite(self) -> nx.DiGraph:
        """
        Species/transition bipartite graph.

        Species nodes are keyed ``("species", name)`` and transition nodes
        ``("reaction", name)``. Undeclared species referenced by a
        transition still appear as nodes; they are rejected at compile time.

        :returns: A fresh copy of the bipartite graph.
        :rtype: networkx.DiGraph
        """
        return self._bipartite.copy()

    def consumers(self, species: str) -> Tuple[str, ...]:
        """
        Transitions whose input multiset mentions ``species``, in net order.

        These are the only transitions whose matches can change when tokens
        of ``species`` are created or destroyed.
        """
        node = ("species", species)
        if node not in self._bipartite:
            return ()
        names = {
            self._bipartite.nodes[r]["label"]
            for _, r, data in self._bipartite.out_edges(node, data=True)
            if data.get("role") == "reactant"
        }
        return tuple(t.name for t in self.transitions if t.name in names)

    def _require_species(self, t: Transition, sp: str) -> int:
        try:
            return self._species_index[sp]
        except KeyError:
            raise MalformedNet(
                f"Transition {t.name!r} references undeclared species {sp!r}"
            ) from None

    def __repr__(self) -> str:
        return (
            f"PetriNet(kind={self.kind.value}, n_species={self.n_species}, "
            f"n_transitions={self.n_transitions})"
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _as_transition(t: TransitionLike) -> Transition:
    if isinstance(t, Transition):
        return t
    name, inputs, outputs = t
    return Transition(name, inputs, outputs)


def _index_name(key: Any) -> str:
    if isinstance(key, (int, np.integer)) and not isinstance(key, bool):
        return f"S{int(key) + 1}"
    return str(key)


def _index_side(side: Optional[MultisetLike]) -> Multiset:
    if side is None or isinstance(side, (Multiset, str)):
        return Multiset.from_any(side)
    if isinstance(side, Mapping):
        return Multiset({_index_name(k): v for k, v in side.items()})
    return Multiset.from_any(
        [
            (_index_name(item[0]), item[1])
            if isinstance(item, tuple)
            else _index_name(item)
            for item in side
        ]
    )
