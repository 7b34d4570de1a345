# toygram/grammar/left_factor.py
"""Left factoring toward a backtrack-free (LL(1)) grammar"""

from __future__     import annotations
import logging
import warnings
from collections    import deque
from dataclasses    import dataclass, field
from typing         import Dict, List, Sequence

from ..errors       import IncompleteFactoring, UnfixableLeftRecursion
from ..ll.table     import Conflict, find_conflicts
from .left_recursion import dedupe, eliminate_left_recursion, left_recursive, splice_leading
from .model         import FACTOR, Alternative, Grammar, NonTerminal, format_alternative

log = logging.getLogger(__name__)


@dataclass
class FactorResult:
    """
    FactorResult
    ============
    - grammar  : the factored grammar (frozen)
    - complete : True when ``grammar`` has no LL(1) conflicts
    - conflicts: what is left when incomplete
    - rounds   : factoring rounds spent
    """
    grammar: Grammar
    complete: bool
    conflicts: List[Conflict] = field(default_factory=list)
    rounds: int = 0


def _common_prefix(alts: Sequence[Alternative]) -> Alternative:
    first = alts[0]
    n = min(len(a) for a in alts)
    i = 0
    while i < n and all(a[i] == first[i] for a in alts):
        i += 1
    return first[:i]


def _factor_once(g: Grammar, name: str) -> List[str]:
    """
    One factoring step on ``name``. Returns the fresh tails it created.

    Alternatives sharing a first symbol collapse into ``π T`` at the position
    of the group's first member; ``T`` gets the remainders (ε for a member
    equal to π).
    """
    alts = dedupe(g.alternatives(name))
    groups: Dict[object, List[int]] = {}
    for i, alt in enumerate(alts):
        if alt:
            groups.setdefault(alt[0], []).append(i)

    out: List[Alternative] = []
    tails: List[str] = []
    done = set()
    for i, alt in enumerate(alts):
        if i in done:
            continue
        members = groups.get(alt[0], [i]) if alt else [i]
        if len(members) < 2:
            out.append(alt)
            continue
        group = [alts[j] for j in members]
        done.update(members)
        prefix = _common_prefix(group)
        tail = g.fresh(FACTOR, owner=name)
        g.set_production(tail, dedupe([a[len(prefix):] for a in group]))
        out.append(prefix + (NonTerminal(tail),))
        tails.append(tail)
        log.debug("factor %s: %s %s -> %s", name, format_alternative(prefix), tail,
                  " | ".join(format_alternative(a) for a in g.alternatives(tail)))

    if out != list(g.alternatives(name)):
        g.set_production(name, out)
    return tails


def _factor_all(g: Grammar) -> bool:
    changed = False
    queue = deque(g.nonterminals())
    while queue:
        name = queue.popleft()
        before = g.alternatives(name)
        tails = _factor_once(g, name)
        if tails or g.alternatives(name) != before:
            changed = True
        queue.extend(tails)
    return changed


def _expand_conflicts(g: Grammar, conflicts: Sequence[Conflict]) -> bool:
    """
    Splice the leading nonterminal of every conflicting alternative.
    Returns whether anything changed.
    """
    targets: Dict[str, set] = {}
    for c in conflicts:
        targets.setdefault(c.name, set()).update(c.alts)

    changed = False
    for name, indices in targets.items():
        out: List[Alternative] = []
        for i, alt in enumerate(g.alternatives(name)):
            lead = alt[0] if alt else None
            if i in indices and isinstance(lead, NonTerminal) and lead.name != name:
                out.extend(splice_leading(alt, g.alternatives(lead.name)))
                changed = True
            else:
                out.append(alt)
        g.set_production(name, dedupe(out))
    return changed


def _size(g: Grammar) -> int:
    """Symbols plus alternatives over the whole grammar."""
    return sum(len(alt) + 1 for prod in g.productions() for alt in prod.alts)


def left_factor(grammar: Grammar, *, max_rounds: int = 16, max_growth: int = 8,
                expand: bool = True) -> FactorResult:
    """
    left_factor
    ===========
    Factor common prefixes out of alternatives, round by round, until the
    grammar has no LL(1) conflicts.

    Each round:
      1) factor every nonterminal (new tails are factored in turn)
      2) compute the conflicts; none -> done
      3) with ``expand``: splice the leading nonterminal of each conflicting
         alternative, re-running left-recursion elimination if that
         introduced left recursion

    Stops when the budget runs out or a round makes no progress; the result
    is then incomplete and an IncompleteFactoring warning is issued. The
    budget is ``max_rounds`` rounds, and an expansion that would grow the
    grammar past ``max_growth`` times its input size is rolled back. The
    input grammar is not modified.
    """
    grammar.validate()
    g = grammar.copy()
    size_limit = max_growth * _size(g)
    rounds = 0
    conflicts: List[Conflict] = []

    while rounds < max_rounds:
        rounds += 1
        _factor_all(g)
        conflicts = find_conflicts(g)
        log.debug("factoring round %d: %d conflict(s)", rounds, len(conflicts))
        if not conflicts:
            return FactorResult(g.freeze(), True, [], rounds)
        if not expand or rounds >= max_rounds:
            break

        snapshot = g.copy()
        if not _expand_conflicts(g, conflicts):
            break
        if left_recursive(g):
            try:
                g = eliminate_left_recursion(g).copy()
            except UnfixableLeftRecursion as e:
                log.debug("expansion abandoned: %s", e)
                g = snapshot
                break
        if _size(g) > size_limit:
            log.debug("expansion abandoned: grammar grew past %d symbols", size_limit)
            g = snapshot
            break

    # final factoring so the returned grammar carries no shared prefixes
    _factor_all(g)
    conflicts = find_conflicts(g)
    if not conflicts:
        return FactorResult(g.freeze(), True, [], rounds)

    warnings.warn(IncompleteFactoring(
        f"left factoring stopped after {rounds} round(s) with {len(conflicts)} conflict(s):\n"
        + "\n".join("  " + str(c) for c in conflicts)
    ), stacklevel=2)
    return FactorResult(g.freeze(), False, conflicts, rounds)
