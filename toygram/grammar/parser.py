"""toygram grammar description parser
- one production per line: lhs -> alt | alt | ...   ('→' works too)
- repeated lhs lines append alternatives
- names declared on a left-hand side are nonterminals
- otherwise: token-kind names (ID, INT, ...) and punctuation are terminals,
  other UPPERCASE names are errors, other names are nonterminals
- ε / EPSILON / nothing between bars: epsilon (must stand alone)
- comments: '#' or '//' to end of line
- %start name
"""

from __future__ import annotations
import regex as re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..errors import GrammarSyntaxError
from ..lex import TokenKind
from .model import Alternative, Grammar, NonTerminal, RESERVED_PREFIX, Symbol, Terminal

# ---- description tokens ----
_TOKEN_SPEC = [
    ("NEWLINE",  r"\n"),
    ("WS",       r"[ \t\f\r]+"),
    ("COMMENT",  r"(?:#|//)[^\n]*"),
    ("ARROW",    r"->|→"),
    ("OR",       r"\|"),
    ("DIRECTIVE", r"%[A-Za-z_]+"),
    ("EPS",      r"ε"),
    ("IDENT",    r"[\p{XID_Start}_][\p{XID_Continue}]*"),
    ("PUNCT",    r"[(){}\[\];,=/*+\-]"),
]
MASTER_RE = re.compile("|".join(f"(?P<{n}>{p})" for n, p in _TOKEN_SPEC))

_EPSILON_NAMES = ("EPSILON", "EPS")


@dataclass
class Tok:
    kind: str
    lexeme: str
    start: int
    end: int
    line: int
    col: int


def _scan(src: str) -> List[Tok]:
    """Newlines are significant (they end a production); whitespace and comments are dropped."""
    toks: List[Tok] = []
    line = col = 1
    i = 0
    while i < len(src):
        m = MASTER_RE.match(src, i)
        if not m:
            raise GrammarSyntaxError(
                f"Unexpected char {src[i]!r} at {line}:{col}\n" + _snippet_caret_at_pos(src, i)
            )
        kind = m.lastgroup or ""
        lex = m.group(0)
        if kind not in ("WS", "COMMENT"):
            toks.append(Tok(kind, lex, i, m.end(), line, col))
        if kind == "NEWLINE":
            line += 1
            col = 1
        else:
            col += len(lex)
        i = m.end()
    toks.append(Tok("EOF", "", len(src), len(src), line, col))
    return toks


# ---------- error handling utils ----------
def _line_bounds(src: str, pos: int) -> Tuple[int, int]:
    start = src.rfind("\n", 0, pos)
    start = 0 if start == -1 else start + 1
    end = src.find("\n", pos)
    if end == -1:
        end = len(src)
    return start, end


def _snippet_caret_at_pos(src: str, pos: int) -> str:
    start, end = _line_bounds(src, pos)
    col = (pos - start) + 1
    return f"{src[start:end]}\n" + " " * (col - 1) + "^"


def _error(src: str, tok: Tok, msg: str) -> GrammarSyntaxError:
    return GrammarSyntaxError(f"{msg} at {tok.line}:{tok.col}\n" + _snippet_caret_at_pos(src, tok.start))


# --- token stream ---
class _TS:
    def __init__(self, toks: List[Tok], src: str):
        self.toks = toks
        self.i = 0
        self.src = src

    def la(self) -> Tok:
        return self.toks[self.i]

    def eat(self, kind: str) -> Tok:
        t = self.la()
        if t.kind != kind:
            got = "end of line" if t.kind == "NEWLINE" else t.kind
            raise _error(self.src, t, f"Expected {kind}, got {got}")
        self.i += 1
        return t

    def match(self, kind: str) -> Optional[Tok]:
        if self.la().kind == kind:
            return self.eat(kind)
        return None

    def at_line_end(self) -> bool:
        return self.la().kind in ("NEWLINE", "EOF")


# symbols of one alternative, as scanned
_RawAlt = List[Tok]


@dataclass
class _RawRule:
    lhs: Tok
    alts: List[_RawAlt]


def _parse_rule_line(ts: _TS) -> _RawRule:
    lhs = ts.la()
    if lhs.kind != "IDENT":
        raise _error(ts.src, lhs, f"Expected a nonterminal name, got {lhs.kind}")
    ts.eat("IDENT")
    ts.eat("ARROW")
    alts: List[_RawAlt] = [[]]
    while not ts.at_line_end():
        t = ts.la()
        if t.kind == "OR":
            ts.eat("OR")
            alts.append([])
        elif t.kind in ("IDENT", "PUNCT", "EPS"):
            ts.i += 1
            alts[-1].append(t)
        else:
            raise _error(ts.src, t, f"Unexpected {t.kind} in production of '{lhs.lexeme}'")
    return _RawRule(lhs, alts)


def _parse_directive(ts: _TS, options: Dict[str, Tok]) -> None:
    d = ts.eat("DIRECTIVE")
    name = d.lexeme[1:]
    if name != "start":
        raise _error(ts.src, d, f"Unknown directive %{name}")
    if "start" in options:
        raise _error(ts.src, d, "Duplicate %start directive")
    options["start"] = ts.eat("IDENT")
    if not ts.at_line_end():
        raise _error(ts.src, ts.la(), "Expected end of line after %start name")


def _is_epsilon(t: Tok) -> bool:
    return t.kind == "EPS" or (t.kind == "IDENT" and t.lexeme in _EPSILON_NAMES)


def parse_grammar(src: str, *, validate: bool = True) -> Grammar:
    """
    Grammar description text -> frozen Grammar.

    Raises GrammarSyntaxError on malformed text and, when ``validate`` is on,
    UndefinedNonTerminal for references without a production.
    """
    ts = _TS(_scan(src), src)
    rules: List[_RawRule] = []
    options: Dict[str, Tok] = {}

    while ts.la().kind != "EOF":
        if ts.match("NEWLINE"):
            continue
        if ts.la().kind == "DIRECTIVE":
            _parse_directive(ts, options)
        else:
            rules.append(_parse_rule_line(ts))
        if not ts.match("NEWLINE"):
            ts.eat("EOF")
            break

    if not rules:
        raise GrammarSyntaxError("Grammar has no productions")

    # pass 1: every left-hand side is a nonterminal
    declared: Dict[str, Tok] = {}
    for r in rules:
        name = r.lhs.lexeme
        if name.startswith(RESERVED_PREFIX):
            raise _error(src, r.lhs, f"Names starting with '{RESERVED_PREFIX}' are reserved: '{name}'")
        if TokenKind.from_text(name) is not None or _is_epsilon(r.lhs):
            raise _error(src, r.lhs, f"'{name}' is a token kind and cannot have productions")
        declared.setdefault(name, r.lhs)

    # pass 2: classify right-hand side symbols
    def _symbol(t: Tok) -> Symbol:
        if t.kind == "PUNCT":
            return Terminal(TokenKind(t.lexeme))
        name = t.lexeme
        if name in declared:
            return NonTerminal(name)
        kind = TokenKind.from_text(name)
        if kind is not None:
            return Terminal(kind)
        if name.isupper():
            raise _error(src, t, f"Unknown token kind '{name}'")
        return NonTerminal(name)

    start_tok = options.get("start")
    g = Grammar(start_tok.lexeme if start_tok else rules[0].lhs.lexeme)
    for r in rules:
        for raw in r.alts:
            eps = [t for t in raw if _is_epsilon(t)]
            if eps and len(raw) > 1:
                raise _error(src, eps[0], "Epsilon must stand alone in its alternative")
            alt: Alternative = () if eps else tuple(_symbol(t) for t in raw)
            g.add_alternative(r.lhs.lexeme, alt)

    if start_tok is not None and start_tok.lexeme not in declared:
        raise _error(src, start_tok, f"%start names an undeclared nonterminal '{start_tok.lexeme}'")

    if validate:
        g.validate()
    return g.freeze()
