# toygram/ll/runtime.py
"""Predictive (LL(1)) recursive-descent parser.

- Every nonterminal is expanded by the single alternative the `LLTable`
  selects for the next token kind (or end of input); nothing is retried.
- Errors carry the expected set: kinds the failing decision accepts, plus
  kinds an earlier ε-choice at the same position would have taken.
"""

from __future__ import annotations
import logging
import sys
from typing import Dict, Optional, Sequence, Set

from ..errors import (NotBacktrackFree, ParseError, ResourceExhausted,
                      UnexpectedEndOfInput, UnexpectedToken)
from ..grammar.model import Grammar, NonTerminal, Terminal
from ..lex import TokenKind
from ..limits import DEFAULT_LIMITS, ParseLimits
from ..tree import ParseNode
from .table import LLTable, build_ll_table

log = logging.getLogger(__name__)


class _Run:
    """Per-parse cursor and counters."""

    def __init__(self, tokens: Sequence, limits: ParseLimits):
        self.tokens = tokens
        self.limits = limits
        self.pos = 0
        self.steps = 0
        # kinds passed over by ε-choices, by position
        self.skipped: Dict[int, Set[TokenKind]] = {}

    def look(self) -> TokenKind:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos].kind
        return TokenKind.EOF

    def tick(self) -> None:
        self.steps += 1
        if self.steps > self.limits.max_steps:
            raise ResourceExhausted("step", self.limits.max_steps, self.pos)

    def fail(self, expected: Set[TokenKind]) -> ParseError:
        expected = set(expected) | self.skipped.get(self.pos, set())
        if self.pos < len(self.tokens):
            return UnexpectedToken(self.pos, self.tokens[self.pos], expected)
        return UnexpectedEndOfInput(self.pos, expected)


class PredictiveParser:
    """
    PredictiveParser
    ================
    Linear-time parser for backtrack-free grammars.

    Parameters
    ----------
    grammar : Grammar
        Usually the output of `eliminate_left_recursion` + `left_factor`.
    allow_conflicts : bool
        Accept a conflicting grammar. A contested cell goes to the first
        alternative whose FIRST set holds the kind, else to the first nullable
        one (the parser may reject valid input).
    limits : ParseLimits, optional
        Depth and step ceilings.

    Raises
    ------
    NotBacktrackFree
        The grammar has LL(1) conflicts and ``allow_conflicts`` is off.
    """

    def __init__(self, grammar: Grammar, *, allow_conflicts: bool = False,
                 limits: Optional[ParseLimits] = None):
        grammar.validate()
        self.grammar = grammar
        self.limits = limits or DEFAULT_LIMITS
        self.table: LLTable = build_ll_table(grammar)
        if self.table.conflicts:
            if not allow_conflicts:
                raise NotBacktrackFree(self.table.conflicts)
            log.debug("predictive parser built with %d conflict(s):\n%s",
                      len(self.table.conflicts), self.table.pretty_conflicts())

    def parse(self, tokens: Sequence) -> ParseNode:
        tokens = list(tokens)
        run = _Run(tokens, self.limits)
        try:
            node = self._parse_nonterminal(run, self.grammar.start, 0)
        except RecursionError:
            raise ResourceExhausted("recursion", sys.getrecursionlimit(), run.pos) from None
        if run.pos < len(tokens):
            raise run.fail({TokenKind.EOF})
        log.debug("predictive parse ok: %d token(s), %d step(s)", len(tokens), run.steps)
        return node

    def accepts(self, tokens: Sequence) -> bool:
        try:
            self.parse(tokens)
        except ParseError:
            return False
        return True

    def _parse_nonterminal(self, run: _Run, name: str, depth: int) -> ParseNode:
        if depth > self.limits.max_depth:
            raise ResourceExhausted("depth", self.limits.max_depth, run.pos)
        run.tick()
        kind = run.look()
        i = self.table.select(name, kind)
        if i is None:
            raise run.fail(self.table.expected(name))
        if self.table.alt_nullable[name][i] and kind not in self.table.alt_first[name][i]:
            skipped = run.skipped.setdefault(run.pos, set())
            for j, first in enumerate(self.table.alt_first[name]):
                if j != i:
                    skipped |= first

        children = []
        for sym in self.grammar.alternatives(name)[i]:
            if isinstance(sym, Terminal):
                run.tick()
                if run.look() is not sym.kind:
                    raise run.fail({sym.kind})
                children.append(ParseNode(sym, [], run.tokens[run.pos]))
                run.pos += 1
            else:
                step = 0 if self.grammar.is_factor_tail(sym.name) else 1
                children.append(self._parse_nonterminal(run, sym.name, depth + step))
        return ParseNode(NonTerminal(name), children)
