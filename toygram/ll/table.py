# toygram/ll/table.py
"""
LL(1) decision table
- (nonterminal, token kind) -> alternative index
- conflicts: cells claimed by two or more alternatives
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from ..grammar.model import Grammar
from ..lex import TokenKind
from .first_follow import FFResult, compute_nullable_first_follow


@dataclass(frozen=True)
class Conflict:
    """
    One LL(1) conflict: on ``kind``, the parser for ``name`` could pick any
    of the alternatives in ``alts`` (0-based indices, declaration order).
    """
    name: str
    kind: TokenKind
    alts: Tuple[int, ...]

    def __str__(self) -> str:
        which = ", ".join(f"#{i}" for i in self.alts)
        return f"{self.name}, on {self.kind.display}: alternatives {which}"


@dataclass
class LLTable:
    """
    LLTable
    =======
    Everything the predictive parser looks up while parsing.

    Fields
    ------
    - ff         : NULLABLE/FIRST/FOLLOW of the grammar
    - alt_first  : name -> FIRST set per alternative (declaration order)
    - alt_nullable: name -> nullability per alternative
    - decide     : (name, kind) -> alternative index. A nullable alternative
                   claims FOLLOW(name) and TokenKind.EOF as well as its FIRST.
    - conflicts  : cells claimed by more than one alternative; the cell keeps
                   the first declared one that claims it through FIRST.
    """
    ff: FFResult
    alt_first: Dict[str, List[Set[TokenKind]]]
    alt_nullable: Dict[str, List[bool]]
    decide: Dict[Tuple[str, TokenKind], int]
    conflicts: List[Conflict] = field(default_factory=list)

    def select(self, name: str, kind: TokenKind) -> Optional[int]:
        return self.decide.get((name, kind))

    def expected(self, name: str) -> Set[TokenKind]:
        """
        Token kinds that select some alternative of ``name``. End of input
        counts only where it may follow ``name``.
        """
        eof_ok = TokenKind.EOF in self.ff.follow.get(name, set())
        return {k for (n, k) in self.decide
                if n == name and (k is not TokenKind.EOF or eof_ok)}

    def pretty_conflicts(self) -> str:
        """
        Conflict report, one line per conflicting cell.

        Returns
        -------
        str
            Newline separated report, or '(no conflicts)'.
        """
        if not self.conflicts:
            return "(no conflicts)"
        return "\n".join(str(c) for c in self.conflicts)


def build_ll_table(grammar: Grammar) -> LLTable:
    """
    build_ll_table
    ==============
    Fill the decision map alternative by alternative. A contested cell goes
    to the first declared alternative whose FIRST set holds the kind; a
    nullable alternative keeps it only when no FIRST set does.
    """
    ff = compute_nullable_first_follow(grammar)
    alt_first: Dict[str, List[Set[TokenKind]]] = {}
    alt_nullable: Dict[str, List[bool]] = {}
    # (alternative, claimed through FIRST)
    claims: Dict[Tuple[str, TokenKind], List[Tuple[int, bool]]] = {}

    for prod in grammar.productions():
        name = prod.lhs
        firsts: List[Set[TokenKind]] = []
        nulls: List[bool] = []
        for i, alt in enumerate(prod.alts):
            f, is_null = ff.first_of_sequence(alt)
            firsts.append(f)
            nulls.append(is_null)
            for kind in f:
                claims.setdefault((name, kind), []).append((i, True))
            if is_null:
                for kind in (ff.follow.get(name, set()) | {TokenKind.EOF}) - f:
                    claims.setdefault((name, kind), []).append((i, False))
        alt_first[name] = firsts
        alt_nullable[name] = nulls

    decide: Dict[Tuple[str, TokenKind], int] = {}
    conflicts: List[Conflict] = []
    for (name, kind), claimants in claims.items():
        alts = sorted(i for i, _ in claimants)
        by_first = [i for i, via_first in claimants if via_first]
        decide[(name, kind)] = min(by_first) if by_first else alts[0]
        if len(alts) > 1:
            conflicts.append(Conflict(name, kind, tuple(alts)))

    order = {n: i for i, n in enumerate(grammar.nonterminals())}
    conflicts.sort(key=lambda c: (order.get(c.name, len(order)), c.kind.display))
    return LLTable(ff, alt_first, alt_nullable, decide, conflicts)


def find_conflicts(grammar: Grammar) -> List[Conflict]:
    """LL(1) conflicts of ``grammar``; empty when it is backtrack-free."""
    return build_ll_table(grammar).conflicts
