"""
Transition-to-rewrite-rule compilation.

Re-exported names
-----------------
- :class:`~petrikit.Rule.rule.Rule`
- :func:`~petrikit.Rule.compiler.compile_rule`
- :func:`~petrikit.Rule.compiler.compile_rules`
"""

from __future__ import annotations
from typing import List

from .rule import Match, Rule, TokenDelta
from .compiler import compile_rule, compile_rules

__all__: List[str] = ["Match", "Rule", "TokenDelta", "compile_rule", "compile_rules"]
