# toygram/limits.py
from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class ParseLimits:
    """
    Ceilings enforced by every parse.

    - max_depth: nonterminal nesting depth; left-factoring tails do not add a
      level, so the count matches the tree after fold_synthesized
    - max_steps: symbol match attempts (terminals and nonterminals)
    """
    max_depth: int = 200
    max_steps: int = 200_000

    def __post_init__(self):
        if self.max_depth < 1 or self.max_steps < 1:
            raise ValueError("parse limits must be positive")


DEFAULT_LIMITS = ParseLimits()
