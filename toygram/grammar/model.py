# toygram/grammar/model.py
"""Grammar model
- Terminal / NonTerminal: the two symbol tags (closed variant)
- Alternative: tuple of symbols, () is epsilon
- Production: nonterminal name + ordered alternatives
- Grammar: ordered productions, start symbol, fresh-name registry, origins
"""

from __future__     import annotations
from dataclasses    import dataclass, field
from typing         import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from ..errors       import GrammarError, UndefinedNonTerminal
from ..lex          import TokenKind

RESERVED_PREFIX = "__"


@dataclass(frozen=True)
class Terminal:
    kind: TokenKind

    def __str__(self) -> str:
        return self.kind.display


@dataclass(frozen=True)
class NonTerminal:
    name: str

    def __str__(self) -> str:
        return self.name


Symbol = Union[Terminal, NonTerminal]
Alternative = Tuple[Symbol, ...]

EPSILON: Alternative = ()


def format_alternative(alt: Alternative) -> str:
    return " ".join(str(s) for s in alt) if alt else "ε"


def starts_with(alt: Alternative, name: str) -> bool:
    return bool(alt) and isinstance(alt[0], NonTerminal) and alt[0].name == name


@dataclass
class Production:
    """
    One production.
    - lhs : nonterminal name
    - alts: alternatives in priority order
    """
    lhs: str
    alts: List[Alternative] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.lhs} -> " + " | ".join(format_alternative(a) for a in self.alts)


@dataclass(frozen=True)
class Origin:
    """
    Where a synthesized nonterminal came from.
    - kind : 'left_recursion' (tail of a direct-recursion rewrite) | 'factor' (left-factoring tail)
    - owner: nonterminal the tail was split from
    """
    kind: str
    owner: str


LEFT_RECURSION = "left_recursion"
FACTOR = "factor"

_FRESH_TAGS = {LEFT_RECURSION: "lr", FACTOR: "lf"}


@dataclass
class FreshNames:
    """Monotonic counter behind ``__<tag><n>`` names; shared by every pass over one grammar."""
    counter: int = 0

    def next_name(self, tag: str, taken: Iterable[str]) -> str:
        taken = set(taken)
        while True:
            self.counter += 1
            name = f"{RESERVED_PREFIX}{tag}{self.counter}"
            if name not in taken:
                return name


class Grammar:
    """
    Grammar
    =======
    Productions keyed by nonterminal name, in **declaration order**, plus the
    start symbol.

    Build it with `add_alternative` / `set_production` (or `Grammar.build`),
    then `freeze()` it. Transformations never touch their input: they take a
    `copy()`, rewrite the copy and freeze it.

    Order contract
    --------------
    `nonterminals()` yields names in the order their production was first
    created. Synthesized nonterminals are created last, in the order they are
    synthesized. Left-recursion elimination depends on this order.
    """

    def __init__(self, start: Optional[str] = None):
        self.start: Optional[str] = start
        self._prods: Dict[str, Production] = {}
        self.origins: Dict[str, Origin] = {}
        self.fresh_names = FreshNames()
        self._frozen = False

    # ----- construction -----
    @classmethod
    def build(cls, start: str, rules: Dict[str, Sequence[Sequence[Union[Symbol, str, TokenKind]]]]) -> "Grammar":
        """
        Programmatic constructor.

        ``rules`` maps each nonterminal to its alternatives. Inside an
        alternative a ``TokenKind`` or ``Terminal`` is a terminal, a
        ``NonTerminal`` or a ``str`` is a nonterminal name.
        """
        g = cls(start)
        for name, alts in rules.items():
            g.set_production(name, [tuple(_coerce(s) for s in alt) for alt in alts])
        g.validate()
        g.freeze()
        return g

    def _check_mutable(self) -> None:
        if self._frozen:
            raise GrammarError("grammar is frozen; use copy() to derive a new one")

    def add_alternative(self, name: str, alt: Iterable[Symbol]) -> None:
        self._check_mutable()
        prod = self._prods.get(name)
        if prod is None:
            prod = self._prods[name] = Production(name)
        prod.alts.append(tuple(alt))

    def set_production(self, name: str, alts: Iterable[Iterable[Symbol]]) -> None:
        """Add or replace the production of ``name`` (keeps its position if it exists)."""
        self._check_mutable()
        prod = Production(name, [tuple(a) for a in alts])
        self._prods[name] = prod

    def fresh(self, kind: str, owner: str) -> str:
        """Synthesize an unused nonterminal name and remember where it came from."""
        self._check_mutable()
        name = self.fresh_names.next_name(_FRESH_TAGS[kind], self._all_names())
        self._prods[name] = Production(name)
        self.origins[name] = Origin(kind, owner)
        return name

    def freeze(self) -> "Grammar":
        self._frozen = True
        return self

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def copy(self) -> "Grammar":
        """Independent, unfrozen copy (alternative tuples are immutable and shared)."""
        g = Grammar(self.start)
        for name, prod in self._prods.items():
            g._prods[name] = Production(name, list(prod.alts))
        g.origins = dict(self.origins)
        g.fresh_names = FreshNames(self.fresh_names.counter)
        return g

    # ----- queries -----
    def __contains__(self, name: str) -> bool:
        return name in self._prods

    def __len__(self) -> int:
        return len(self._prods)

    def nonterminals(self) -> List[str]:
        return list(self._prods)

    def productions(self) -> List[Production]:
        return list(self._prods.values())

    def production(self, name: str) -> Production:
        try:
            return self._prods[name]
        except KeyError:
            raise UndefinedNonTerminal(name) from None

    def alternatives(self, name: str, strict: bool = True) -> Tuple[Alternative, ...]:
        prod = self._prods.get(name)
        if prod is None:
            if strict:
                raise UndefinedNonTerminal(name)
            return ()
        return tuple(prod.alts)

    def is_factor_tail(self, name: str) -> bool:
        """True for a left-factoring tail; its subtree folds into the parent node."""
        o = self.origins.get(name)
        return o is not None and o.kind == FACTOR

    def terminals(self) -> Set[TokenKind]:
        out: Set[TokenKind] = set()
        for prod in self._prods.values():
            for alt in prod.alts:
                out.update(s.kind for s in alt if isinstance(s, Terminal))
        return out

    def references(self) -> Set[str]:
        out: Set[str] = set()
        for prod in self._prods.values():
            for alt in prod.alts:
                out.update(s.name for s in alt if isinstance(s, NonTerminal))
        return out

    def reachable(self) -> List[str]:
        """Nonterminals reachable from the start symbol, in grammar order."""
        seen: Set[str] = set()
        todo = [self.start] if self.start in self._prods else []
        while todo:
            name = todo.pop()
            if name in seen:
                continue
            seen.add(name)
            for alt in self._prods[name].alts:
                for s in alt:
                    if isinstance(s, NonTerminal) and s.name in self._prods and s.name not in seen:
                        todo.append(s.name)
        return [n for n in self._prods if n in seen]

    def validate(self) -> None:
        """
        Every referenced nonterminal needs a production with at least one
        alternative; so does the start symbol.
        """
        if self.start is None:
            raise GrammarError("grammar has no start symbol")
        if not self._prods.get(self.start, Production(self.start)).alts:
            raise UndefinedNonTerminal(self.start)
        for prod in self._prods.values():
            for alt in prod.alts:
                for s in alt:
                    if isinstance(s, NonTerminal):
                        target = self._prods.get(s.name)
                        if target is None or not target.alts:
                            raise UndefinedNonTerminal(s.name, referenced_by=prod.lhs)

    def _all_names(self) -> Set[str]:
        return set(self._prods) | self.references()

    # ----- rendering -----
    def __str__(self) -> str:
        if not self._prods:
            return ""
        width = max(len(n) for n in self._prods)
        lines = []
        if self.start is not None and self.start != next(iter(self._prods)):
            lines.append(f"%start {self.start}")
        for prod in self._prods.values():
            rhs = " | ".join(format_alternative(a) for a in prod.alts)
            lines.append(f"{prod.lhs:<{width}} -> {rhs}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"Grammar(start={self.start!r}, nonterminals={self.nonterminals()!r})"


def _coerce(s: Union[Symbol, str, TokenKind]) -> Symbol:
    if isinstance(s, (Terminal, NonTerminal)):
        return s
    if isinstance(s, TokenKind):
        return Terminal(s)
    if isinstance(s, str):
        return NonTerminal(s)
    raise TypeError(f"cannot use {s!r} as a grammar symbol")
