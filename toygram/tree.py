# toygram/tree.py
"""Parse trees

- ParseNode: one node; terminal nodes carry the matched token
- fold_synthesized: undo the tree-shape effect of synthesized nonterminals
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .grammar.model import FACTOR, LEFT_RECURSION, Grammar, NonTerminal, Symbol, Terminal


@dataclass
class ParseNode:
    symbol: Symbol
    children: List["ParseNode"] = field(default_factory=list)
    token: Optional[Any] = None     # set on terminal nodes only

    @property
    def is_terminal(self) -> bool:
        return isinstance(self.symbol, Terminal)

    @property
    def name(self) -> str:
        return str(self.symbol)

    def shape(self) -> Tuple:
        """
        Nested ``(tag, children-shapes)`` tuples. Terminals have no children.
        Two trees are structurally equivalent when their shapes are equal.
        """
        return (self.name, tuple(c.shape() for c in self.children))

    def tokens(self) -> List[Any]:
        """Leaf tokens, left to right."""
        out: List[Any] = []
        stack = [self]
        while stack:
            n = stack.pop()
            if n.is_terminal:
                out.append(n.token)
            else:
                stack.extend(reversed(n.children))
        return out

    def pretty(self, indent: str = "  ") -> str:
        lines: List[str] = []

        def walk(n: ParseNode, depth: int) -> None:
            pad = indent * depth
            if n.is_terminal:
                text = getattr(n.token, "text", None)
                lines.append(f"{pad}{n.name} {text!r}" if text is not None else f"{pad}{n.name}")
            else:
                lines.append(f"{pad}{n.name}" + ("" if n.children else " ε"))
                for c in n.children:
                    walk(c, depth + 1)

        walk(self, 0)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.pretty()


def _origin(grammar: Grammar, node: ParseNode):
    if isinstance(node.symbol, NonTerminal):
        return grammar.origins.get(node.symbol.name)
    return None


def fold_synthesized(tree: ParseNode, grammar: Grammar) -> ParseNode:
    """
    fold_synthesized
    ================
    Rebuild ``tree`` (produced with ``grammar``) in the shape of the grammar
    its synthesized nonterminals were split from. Works bottom-up:

    - a factoring tail is replaced by its children, in place
    - a left-recursion tail ``T`` in last position under its owner ``A``
      (``A -> α T``, ``T -> β T | ε``) is unrolled into ``A(A(α) β ...)``,
      one level per repetition

    Substitution leaves no trace in the grammar and is not undone.
    """
    if tree.is_terminal:
        return tree

    children: List[ParseNode] = []
    for c in tree.children:
        fc = fold_synthesized(c, grammar)
        o = _origin(grammar, fc)
        if o is not None and o.kind == FACTOR:
            children.extend(fc.children)
        else:
            children.append(fc)

    if children:
        o = _origin(grammar, children[-1])
        if o is not None and o.kind == LEFT_RECURSION and o.owner == tree.name \
                and _origin(grammar, tree) is None:
            return _unroll(tree.symbol, children[:-1], children[-1])
    return ParseNode(tree.symbol, children, tree.token)


def _unroll(owner: Symbol, base: List[ParseNode], tail: ParseNode) -> ParseNode:
    cur = ParseNode(owner, base)
    t: Optional[ParseNode] = tail
    while t is not None and t.children:
        nxt = t.children[-1]
        if nxt.symbol == t.symbol:
            beta, t = t.children[:-1], nxt
        else:
            beta, t = t.children, None
        cur = ParseNode(owner, [cur] + beta)
    return cur
