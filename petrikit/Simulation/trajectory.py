from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional

import pandas as pd

if TYPE_CHECKING:
    from .driver import FiringRecord

__all__ = ["Trajectory"]


@dataclass
class Trajectory:
    """
    Species counts after each firing of a run.

    Row 0 is the initial state (``transition`` is ``None``); row ``i`` is the
    state right after the ``i``-th firing.

    :param species: Column order.
    :type species: List[str]
    :param times: Time of each row.
    :type times: List[float]
    :param transitions: Fired transition of each row.
    :type transitions: List[Optional[str]]
    :param counts: Species counts of each row.
    :type counts: List[Dict[str, int]]
    """

    species: List[str]
    times: List[float] = field(default_factory=list)
    transitions: List[Optional[str]] = field(default_factory=list)
    counts: List[Dict[str, int]] = field(default_factory=list)

    @classmethod
    def from_records(
        cls,
        initial_counts: Mapping[str, int],
        records: Iterable[FiringRecord],
        start_time: float = 0.0,
    ) -> Trajectory:
        """Replay ``records`` on top of ``initial_counts``."""
        current = dict(initial_counts)
        traj = cls(species=list(current))
        traj._append(start_time, None, current)
        for rec in records:
            for sp, d in rec.net_change().items():
                current[sp] = current.get(sp, 0) + d
            traj._append(rec.time, rec.transition, current)
        return traj

    def _append(self, t: float, transition: Optional[str], counts: Dict[str, int]) -> None:
        self.times.append(float(t))
        self.transitions.append(transition)
        self.counts.append(dict(counts))

    def __len__(self) -> int:
        return len(self.times)

    def final(self) -> Dict[str, int]:
        return dict(self.counts[-1]) if self.counts else {}

    def to_frame(self) -> pd.DataFrame:
        """
        Tabular view with columns ``time``, ``transition`` and one column
        per species.

        :rtype: pandas.DataFrame
        """
        df = pd.DataFrame(self.counts, columns=self.species)
        df.insert(0, "transition", self.transitions)
        df.insert(0, "time", self.times)
        return df
