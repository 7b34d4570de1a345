# toygram/ll/first_follow.py
from __future__ import annotations
from typing import Dict, Set, List, Sequence, Tuple
from dataclasses import dataclass

from ..grammar.model import Alternative, Grammar, NonTerminal, Terminal
from ..lex import TokenKind


@dataclass
class FFResult:
    """
    FFResult
    ========
    Plain container for the NULLABLE/FIRST/FOLLOW fixed points.

    - nullable: nonterminals that derive the empty sequence
    - first   : nonterminal name -> FIRST set (token kinds)
    - follow  : nonterminal name -> FOLLOW set (token kinds)
      * FOLLOW(start) always holds TokenKind.EOF.

    Epsilon is never stored in a FIRST set; `nullable` stands in for it.
    """
    nullable: Set[str]
    first: Dict[str, Set[TokenKind]]
    follow: Dict[str, Set[TokenKind]]

    def first_of_sequence(self, seq: Sequence) -> Tuple[Set[TokenKind], bool]:
        """FIRST(seq) and whether seq as a whole is nullable."""
        return _first_of_sequence(seq, self.first, self.nullable)


def _first_of_sequence(seq: Sequence, first: Dict[str, Set[TokenKind]],
                       nullable: Set[str]) -> Tuple[Set[TokenKind], bool]:
    out: Set[TokenKind] = set()
    for X in seq:
        if isinstance(X, Terminal):
            out.add(X.kind)
            return out, False
        out |= first.get(X.name, set())
        if X.name not in nullable:
            return out, False
    return out, True


def compute_nullable_first_follow(grammar: Grammar) -> FFResult:
    """
    compute_nullable_first_follow
    =============================
    NULLABLE/FIRST/FOLLOW for ``grammar``, each as a fixed point.

    Algorithm
    ---------
    1) NULLABLE
       - A -> ε makes A nullable
       - A -> X1 ... Xn with every Xi a nullable nonterminal makes A nullable
    2) FIRST
       - FIRST(A) is the union of FIRST(α) over A -> α
       - FIRST(α) scans α left to right, stopping at the first terminal or
         non-nullable nonterminal
    3) FOLLOW
       - FOLLOW(start) holds EOF
       - for A -> X1 ... Xn, walk right to left with trailer := FOLLOW(A);
         a nonterminal Xi gets trailer, then
         trailer := FIRST(Xi) ∪ (trailer if Xi is nullable)
    """
    prods: List[Tuple[str, Alternative]] = [
        (p.lhs, alt) for p in grammar.productions() for alt in p.alts
    ]
    nonterms = grammar.nonterminals()

    # ---------- 1) NULLABLE ----------
    nullable: Set[str] = set()
    changed = True
    while changed:
        changed = False
        for A, alpha in prods:
            if A in nullable:
                continue
            if all(isinstance(X, NonTerminal) and X.name in nullable for X in alpha):
                nullable.add(A)
                changed = True

    # ---------- 2) FIRST ----------
    first: Dict[str, Set[TokenKind]] = {A: set() for A in nonterms}
    changed = True
    while changed:
        changed = False
        for A, alpha in prods:
            f_alpha, _ = _first_of_sequence(alpha, first, nullable)
            before = len(first[A])
            first[A] |= f_alpha
            if len(first[A]) != before:
                changed = True

    # ---------- 3) FOLLOW ----------
    follow: Dict[str, Set[TokenKind]] = {A: set() for A in nonterms}
    if grammar.start in follow:
        follow[grammar.start].add(TokenKind.EOF)

    changed = True
    while changed:
        changed = False
        for A, alpha in prods:
            trailer: Set[TokenKind] = set(follow[A])
            for X in reversed(alpha):
                if isinstance(X, NonTerminal):
                    target = follow.setdefault(X.name, set())
                    before = len(target)
                    target |= trailer
                    if len(target) != before:
                        changed = True
                    trailer = set(first.get(X.name, set())) | (trailer if X.name in nullable else set())
                else:
                    trailer = {X.kind}

    return FFResult(nullable=nullable, first=first, follow=follow)
