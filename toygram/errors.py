# toygram/errors.py
"""Error taxonomy shared by the grammar front end, the transforms and the parsers.

Grammar-level problems and parse failures are ``SyntaxError`` subclasses so
callers (and the CLI) can treat them uniformly as "bad input" with a friendly
message. ``ResourceExhausted`` is a ``RuntimeError``: the input may be fine,
the search just ran out of budget.
"""

from __future__ import annotations
from typing import FrozenSet, Iterable, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .lex import LexTok, TokenKind
    from .ll.table import Conflict


def _kinds_text(kinds: Iterable["TokenKind"]) -> str:
    names = sorted(k.display for k in kinds)
    return "{" + ", ".join(names) + "}"


# ---------- grammar ----------

class GrammarError(SyntaxError):
    """A grammar cannot be loaded, transformed or handed to a parser."""


class GrammarSyntaxError(GrammarError):
    """The textual grammar description is malformed."""


class UndefinedNonTerminal(GrammarError):
    def __init__(self, name: str, referenced_by: Optional[str] = None):
        self.name = name
        self.referenced_by = referenced_by
        if referenced_by is None:
            msg = f"undefined nonterminal '{name}'"
        else:
            msg = f"undefined nonterminal '{name}' (referenced by '{referenced_by}')"
        super().__init__(msg)


class UnfixableLeftRecursion(GrammarError):
    """Every alternative of the nonterminal starts with the nonterminal itself."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"left recursion on '{name}' cannot be eliminated: "
            f"no alternative of '{name}' starts with anything but '{name}'"
        )


class NotBacktrackFree(GrammarError):
    """The predictive parser was given a grammar with LL(1) conflicts."""

    def __init__(self, conflicts: List["Conflict"]):
        self.conflicts = list(conflicts)
        lines = "\n".join("  " + str(c) for c in self.conflicts)
        super().__init__(
            "grammar is not backtrack-free; use the backtracking parser "
            "or pass allow_conflicts=True\n" + lines
        )


class IncompleteFactoring(UserWarning):
    """Left factoring stopped before reaching a backtrack-free grammar."""


# ---------- lexing / parsing ----------

class LexError(SyntaxError):
    def __init__(self, msg: str, pos: int, line: int, col: int):
        self.pos = pos
        self.line = line
        self.col = col
        super().__init__(msg)


class ParseError(SyntaxError):
    """
    A token stream does not belong to the grammar's language.

    - pos      : token index at which parsing failed (== len(tokens) at EOF)
    - token    : the offending token, None at end of input
    - expected : token kinds acceptable at ``pos`` (TokenKind.EOF for end of input)
    """

    def __init__(self, msg: str, pos: int,
                 token: Optional["LexTok"] = None,
                 expected: Iterable["TokenKind"] = ()):
        self.pos = pos
        self.token = token
        self.expected: FrozenSet["TokenKind"] = frozenset(expected)
        super().__init__(msg)


class UnexpectedToken(ParseError):
    def __init__(self, pos: int, token: "LexTok", expected: Iterable["TokenKind"] = ()):
        expected = frozenset(expected)
        where = f" at {token.line}:{token.col}" if getattr(token, "line", 0) else ""
        msg = f"unexpected {token.kind.display} {token.text!r}{where} (token #{pos})"
        if expected:
            msg += f", expected one of {_kinds_text(expected)}"
        super().__init__(msg, pos, token, expected)


class UnexpectedEndOfInput(ParseError):
    def __init__(self, pos: int, expected: Iterable["TokenKind"] = ()):
        expected = frozenset(expected)
        msg = "unexpected end of input"
        if expected:
            msg += f", expected one of {_kinds_text(expected)}"
        super().__init__(msg, pos, None, expected)


class ResourceExhausted(RuntimeError):
    """A parse exceeded its depth or step ceiling."""

    def __init__(self, what: str, limit: int, pos: int):
        self.what = what
        self.limit = limit
        self.pos = pos
        super().__init__(f"{what} limit ({limit}) exceeded at token #{pos}")

