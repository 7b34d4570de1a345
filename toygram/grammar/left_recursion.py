# toygram/grammar/left_recursion.py
"""Left-recursion elimination (direct and indirect) and detection"""

from __future__     import annotations
import logging
from typing         import Dict, List, Sequence, Set

from ..errors       import UnfixableLeftRecursion
from ..ll.first_follow import compute_nullable_first_follow
from .model         import (Alternative, Grammar, LEFT_RECURSION, NonTerminal,
                            format_alternative, starts_with)

log = logging.getLogger(__name__)


def splice_leading(alt: Alternative, replacements: Sequence[Alternative]) -> List[Alternative]:
    """
    ``N β`` with N's alternatives ``γ1 | γ2 | ...`` -> ``[γ1 β, γ2 β, ...]``.
    """
    rest = alt[1:]
    return [tuple(g) + rest for g in replacements]


def dedupe(alts: Sequence[Alternative]) -> List[Alternative]:
    """Drop repeated alternatives, keeping the first occurrence."""
    seen: Set[Alternative] = set()
    out: List[Alternative] = []
    for a in alts:
        if a not in seen:
            seen.add(a)
            out.append(a)
    return out


def _substitute_earlier(g: Grammar, name: str, earlier: Set[str]) -> List[Alternative]:
    """
    Alternatives of ``name`` with every leading reference to an earlier
    nonterminal spliced away, in priority order.
    """
    out: List[Alternative] = []
    seen: Set[Alternative] = set()

    def expand(alt: Alternative) -> None:
        if alt in seen:
            return
        seen.add(alt)
        if alt and isinstance(alt[0], NonTerminal) and alt[0].name in earlier:
            for sub in splice_leading(alt, g.alternatives(alt[0].name)):
                expand(sub)
        else:
            out.append(alt)

    for alt in g.alternatives(name):
        expand(alt)
    return dedupe(out)


def _eliminate_direct(g: Grammar, name: str, alts: List[Alternative]) -> None:
    """
    A -> A β1 | ... | α1 | ...   =>   A -> α1 A' | ... ;  A' -> β1 A' | ... | ε
    """
    betas: List[Alternative] = []
    alphas: List[Alternative] = []
    recursive = False
    for alt in alts:
        if starts_with(alt, name):
            recursive = True
            if len(alt) > 1:        # A -> A adds nothing
                betas.append(alt[1:])
        else:
            alphas.append(alt)

    if not recursive:
        g.set_production(name, alts)
        return
    if not alphas:
        raise UnfixableLeftRecursion(name)
    if not betas:
        log.debug("dropping trivial self-loop %s -> %s", name, name)
        g.set_production(name, alphas)
        return

    tail = g.fresh(LEFT_RECURSION, owner=name)
    ref = (NonTerminal(tail),)
    g.set_production(name, [a + ref for a in alphas])
    g.set_production(tail, dedupe([b + ref for b in betas]) + [()])
    log.debug("direct left recursion on %s: tail %s -> %s", name, tail,
              " | ".join(format_alternative(a) for a in g.alternatives(tail)))


def eliminate_left_recursion(grammar: Grammar) -> Grammar:
    """
    eliminate_left_recursion
    ========================
    Classic ordered substitution over ``grammar.nonterminals()`` (declaration
    order, taken when the pass starts):

    for each A_i:
      1) splice every alternative ``A_j β`` with j < i into ``γ β`` for each
         alternative γ of A_j, until no alternative starts with an earlier
         nonterminal
      2) rewrite direct recursion on A_i into a fresh right-recursive tail

    The input is left untouched; the result is a new frozen Grammar.

    Raises
    ------
    UndefinedNonTerminal
        The input references a nonterminal without alternatives.
    UnfixableLeftRecursion
        Some A_i ends up with only ``A_i ...`` alternatives.
    """
    grammar.validate()
    g = grammar.copy()
    order = g.nonterminals()
    earlier: Set[str] = set()
    for name in order:
        alts = _substitute_earlier(g, name, earlier)
        _eliminate_direct(g, name, alts)
        earlier.add(name)
    log.debug("left recursion eliminated: %d -> %d nonterminals", len(order), len(g))
    return g.freeze()


def left_recursive(grammar: Grammar) -> List[str]:
    """
    Nonterminals that can derive a sentential form starting with themselves
    (directly, indirectly, or behind nullable prefixes), in grammar order.
    """
    nullable = compute_nullable_first_follow(grammar).nullable
    starters: Dict[str, Set[str]] = {n: set() for n in grammar.nonterminals()}

    # A can-start-with B
    for prod in grammar.productions():
        for alt in prod.alts:
            for s in alt:
                if not isinstance(s, NonTerminal):
                    break
                starters[prod.lhs].add(s.name)
                if s.name not in nullable:
                    break

    # transitive closure
    changed = True
    while changed:
        changed = False
        for a, entries in starters.items():
            before = len(entries)
            for b in list(entries):
                entries |= starters.get(b, set())
            if len(entries) != before:
                changed = True

    return [a for a, entries in starters.items() if a in entries]
