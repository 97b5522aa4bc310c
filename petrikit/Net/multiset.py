from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple, Union

MultisetLike = Union[
    "Multiset", Mapping[str, int], Iterable[str], Iterable[Tuple[str, int]], str, None
]

# Tokens that denote the empty side (no species)
_EMPTY_SIDE_TOKENS = {"", "0", "Ø", "ø", "∅"}


@dataclass(frozen=True)
class Multiset:
    """
    Token demand or supply of one side of a transition.

    Species names are kept as strings and only positive token counts are
    stored, so ``{"A": 1, "B": 0}`` and ``"A"`` are the same side. Reads like a
    ``Dict[str, int]`` of species to token count.

    :param data: Species to token count, a list of species names (one token
        each) or a list of ``(species, count)`` pairs.
    :type data: Union[Mapping[str, int], Iterable[str], Iterable[Tuple[str, int]], None]
    """

    data: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", Multiset._normalize_any(self.data or {}))

    # ---- normalization helpers ----
    @staticmethod
    def _pairs(obj: Any) -> Iterator[Tuple[str, int]]:
        if isinstance(obj, Mapping):
            yield from obj.items()
            return
        for item in obj:
            if isinstance(item, tuple) and len(item) == 2:
                yield item
            elif item != "":
                yield item, 1

    @staticmethod
    def _normalize_any(obj: Any) -> Dict[str, int]:
        """Sum the positive token counts per species name."""
        out: Dict[str, int] = {}
        for species, n in Multiset._pairs(obj):
            n = int(n)
            if n > 0:
                key = str(species)
                out[key] = out.get(key, 0) + n
        return out

    # ---- constructors ----
    @classmethod
    def from_any(cls, obj: MultisetLike) -> Multiset:
        """
        Build from a multiset, mapping, iterable or side string.

        :param obj: Mapping, iterable (labels or ``(label, count)`` pairs),
            a side string such as ``"2A + B"``, or ``None`` for the empty side.
        :type obj: MultisetLike
        :returns: Normalized multiset.
        :rtype: Multiset
        """
        if obj is None:
            return cls()
        if isinstance(obj, Multiset):
            return obj
        if isinstance(obj, str):
            return cls.from_str(obj)
        return cls(cls._normalize_any(obj))

    @classmethod
    def from_str(cls, side: str) -> Multiset:
        """
        Parse a side like ``"2A + B"`` or ``"2*I"``.

        Supported patterns include ``'2A+B'``, ``'2 A + B'``, ``'2*A+B'``, ``'A+B'``.
        ``'∅'``, ``'0'`` or an empty string return an empty side.

        :param side: String for one side of a transition.
        :type side: str
        :returns: Parsed and normalized side.
        :rtype: Multiset
        :raises ValueError: If a term carries a coefficient but no species.
        """
        side = side.strip()
        if side in _EMPTY_SIDE_TOKENS:
            return cls()

        out: Dict[str, int] = {}
        for part in (p.strip() for p in side.split("+")):
            if not part:
                continue

            # Normalize "2*A" -> "2 A"
            toks = part.replace("*", " ").split()

            if len(toks) == 1:
                token = toks[0]
                m = re.match(r"^(\d+)(.*)$", token)
                if m:
                    c, sp = int(m.group(1)), m.group(2)
                    if not sp:
                        raise ValueError(f"Coefficient without species in {side!r}")
                else:
                    c, sp = 1, token
            else:
                try:
                    c = int(toks[0])
                    sp = " ".join(toks[1:])
                except ValueError:
                    c, sp = 1, " ".join(toks)
            if c > 0:
                out[sp] = out.get(sp, 0) + c
        return cls(out)

    # ---- mapping-like API ----
    def __getitem__(self, key: str) -> int:
        return self.data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)

    def __contains__(self, key: object) -> bool:
        return key in self.data

    def __bool__(self) -> bool:
        return bool(self.data)

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.data.items())))

    def items(self):
        return self.data.items()

    def keys(self):
        return self.data.keys()

    def values(self):
        return self.data.values()

    def get(self, key: str, default: Optional[int] = None) -> Optional[int]:
        return self.data.get(key, default)

    # ---- utilities ----
    def to_dict(self) -> Dict[str, int]:
        """Export as a plain ``{species: count}`` dict."""
        return dict(self.data)

    def species(self) -> Set[str]:
        """Species present on this side."""
        return set(self.data.keys())

    def total(self) -> int:
        """Sum of all multiplicities."""
        return sum(self.data.values())

    def elements(self) -> List[str]:
        """
        Expand to a flat list of species labels respecting multiplicity.

        Species are emitted in sorted order so the expansion is stable:
        ``{B:1, A:2} -> ["A", "A", "B"]``.

        :returns: Expanded list of species labels.
        :rtype: List[str]
        """
        out: List[str] = []
        for sp in sorted(self.data):
            out.extend([sp] * self.data[sp])
        return out

    def __repr__(self) -> str:
        if not self.data:
            return "∅"
        parts = []
        for s in sorted(self.data.keys()):
            c = self.data[s]
            parts.append(f"{s}" if c == 1 else f"{c}{s}")
        return " + ".join(parts)
