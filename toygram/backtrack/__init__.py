# toygram/backtrack/__init__.py
"""Backtracking recursive-descent parser.

Works on any grammar, including ambiguous and left-recursive ones, at the
price of exponential worst-case time (bounded by ``ParseLimits``).
"""

from .engine import BacktrackingParser
