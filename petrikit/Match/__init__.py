"""
Incremental match maintenance.

Re-exported names
-----------------
- :class:`~petrikit.Match.match_index.MatchIndex`
- :func:`~petrikit.Match.match_index.scan_matches`
"""

from __future__ import annotations
from typing import List

from .match_index import MatchIndex, scan_matches

__all__: List[str] = ["MatchIndex", "scan_matches"]
