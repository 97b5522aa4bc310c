"""
Net definitions and token state.

Re-exported classes
-------------------
- :class:`~petrikit.Net.multiset.Multiset`
- :class:`~petrikit.Net.net.NetKind`
- :class:`~petrikit.Net.net.Transition`
- :class:`~petrikit.Net.net.PetriNet`
- :class:`~petrikit.Net.state.TokenState`
"""

from __future__ import annotations
from typing import List

from .multiset import Multiset
from .net import NetKind, PetriNet, Transition, species_name
from .state import TokenState

__all__: List[str] = [
    "Multiset",
    "NetKind",
    "PetriNet",
    "Transition",
    "TokenState",
    "species_name",
]
