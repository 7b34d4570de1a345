# toygram/backtrack/engine.py
from __future__ import annotations
import logging
import sys
from collections import Counter
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from ..errors import ParseError, ResourceExhausted, UnexpectedEndOfInput, UnexpectedToken
from ..grammar.model import Alternative, Grammar, NonTerminal, Symbol, Terminal
from ..lex import TokenKind
from ..limits import DEFAULT_LIMITS, ParseLimits
from ..tree import ParseNode

log = logging.getLogger(__name__)

# Backtracking engine:
# - every match is a generator of (end, node) results, tried in priority order
# - a sequence keeps an explicit trail of choice points (one generator per
#   matched symbol); a failing symbol resumes the previous choice point
# - a call of N at p is curtailed while N is already active at p
#   (remaining tokens + 1) times, so left recursion terminates

Match = Tuple[int, ParseNode]


class _Attempt:
    """State of one parse call. Never shared between parses."""

    def __init__(self, grammar: Grammar, tokens: Sequence, limits: ParseLimits):
        self.g = grammar
        self.tokens = tokens
        self.limits = limits
        self.furthest = 0
        self.expected: Set[TokenKind] = set()
        self.steps = 0
        self.active: Counter = Counter()

    # ---- diagnostics ----
    def note(self, pos: int, kind: TokenKind) -> None:
        if pos > self.furthest:
            self.furthest = pos
            self.expected = {kind}
        elif pos == self.furthest:
            self.expected.add(kind)

    def _tick(self, pos: int) -> None:
        self.steps += 1
        if self.steps > self.limits.max_steps:
            raise ResourceExhausted("step", self.limits.max_steps, pos)

    # ---- matching ----
    def match_symbol(self, sym: Symbol, pos: int, depth: int) -> Iterator[Match]:
        self._tick(pos)
        if isinstance(sym, Terminal):
            if pos < len(self.tokens) and self.tokens[pos].kind == sym.kind:
                yield pos + 1, ParseNode(sym, [], self.tokens[pos])
            else:
                self.note(pos, sym.kind)
            return
        step = 0 if self.g.is_factor_tail(sym.name) else 1
        yield from self.match_nonterminal(sym.name, pos, depth + step)

    def match_nonterminal(self, name: str, pos: int, depth: int) -> Iterator[Match]:
        key = (name, pos)
        if self.active[key] >= len(self.tokens) - pos + 1:
            return
        if depth > self.limits.max_depth:
            raise ResourceExhausted("depth", self.limits.max_depth, pos)

        sym = NonTerminal(name)
        self.active[key] += 1
        try:
            for alt in self.g.alternatives(name):
                for end, kids in self.match_sequence(alt, pos, depth):
                    # suspended while the caller continues
                    self.active[key] -= 1
                    try:
                        yield end, ParseNode(sym, kids)
                    finally:
                        self.active[key] += 1
        finally:
            self.active[key] -= 1

    def match_sequence(self, alt: Alternative, pos: int, depth: int) -> Iterator[Tuple[int, List[ParseNode]]]:
        if not alt:
            yield pos, []
            return

        trail = [self.match_symbol(alt[0], pos, depth)]
        matched: List[Match] = []
        try:
            while trail:
                k = len(trail) - 1
                hit = next(trail[k], None)
                if hit is None:
                    trail.pop()
                    continue
                del matched[k:]
                matched.append(hit)
                if k + 1 == len(alt):
                    yield hit[0], [node for _, node in matched]
                else:
                    trail.append(self.match_symbol(alt[k + 1], hit[0], depth))
        finally:
            for it in reversed(trail):
                it.close()


class BacktrackingParser:
    """
    BacktrackingParser
    ==================
    Tries alternatives in declared order and backtracks across choice
    points until the start symbol covers the whole token list.

    One instance over a frozen grammar can serve any number of parses;
    per-parse state lives in a private ``_Attempt``.
    """

    def __init__(self, grammar: Grammar, limits: Optional[ParseLimits] = None):
        grammar.validate()
        self.grammar = grammar
        self.limits = limits or DEFAULT_LIMITS

    def parse(self, tokens: Sequence) -> ParseNode:
        """
        Parse ``tokens`` (objects with a ``kind``) from the start symbol.

        Raises
        ------
        UnexpectedToken / UnexpectedEndOfInput
            At the furthest position any alternative reached.
        ResourceExhausted
            Depth, step or interpreter recursion ceiling hit.
        """
        tokens = list(tokens)
        att = _Attempt(self.grammar, tokens, self.limits)
        results = att.match_nonterminal(self.grammar.start, 0, 0)
        try:
            for end, node in results:
                if end == len(tokens):
                    log.debug("backtracking parse ok: %d token(s), %d step(s)", len(tokens), att.steps)
                    return node
                att.note(end, TokenKind.EOF)
        except RecursionError:
            raise ResourceExhausted("recursion", sys.getrecursionlimit(), att.furthest) from None
        finally:
            results.close()

        log.debug("backtracking parse failed at token #%d after %d step(s)", att.furthest, att.steps)
        if att.furthest < len(tokens):
            raise UnexpectedToken(att.furthest, tokens[att.furthest], att.expected)
        raise UnexpectedEndOfInput(att.furthest, att.expected)

    def accepts(self, tokens: Sequence) -> bool:
        try:
            self.parse(tokens)
        except ParseError:
            return False
        return True
