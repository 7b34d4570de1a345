# toygram/lex/__init__.py
"""toygram tokenizer (runtime) - reference lexer for the toy language.

Features
--------
- Produces a stream of typed tokens over the **fixed** `TokenKind` set
  shared with the grammar's terminals.
- Keywords (`fn`, `return`) are recognized after an identifier has been
  scanned, so `fnord` stays an identifier.
- Identifiers follow the Unicode XID rules (`regex` property classes).
- Integers glued to letters (`12ab`) and unterminated strings are errors.

Matching order:
  1) skip whitespace and newlines (line/column are tracked)
  2) master pattern: STRING | INT | IDENT | single-character punctuation
  3) no match -> LexError with a caret snippet

API
---
- `TokenKind` - enumeration of token kinds, `TokenKind.EOF` marks end of input
- `LexTok(kind, text, pos, line, col)` - one token
- `Lexer` - `reset(text)`, `peek()`, `next()`
- `tokenize(text) -> List[LexTok]`
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple
import regex as re

from ..errors import LexError


# --------- Token kinds ---------

class TokenKind(Enum):
    """
    Predefined token kinds. The value is the spelling used in grammar text:
    the upper-case name for word-like kinds, the punctuation itself otherwise.
    """
    ID = "ID"
    FN = "FN"
    RETURN = "RETURN"
    INT = "INT"
    STRING = "STRING"
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    SEMI = ";"
    COMMA = ","
    EQUAL = "="
    SLASH = "/"
    STAR = "*"
    MINUS = "-"
    PLUS = "+"
    EOF = "$"

    @property
    def display(self) -> str:
        return self.value

    @classmethod
    def from_text(cls, text: str) -> Optional["TokenKind"]:
        """Spelling (or alias) used in grammar text -> kind; None when unknown."""
        kind = _BY_SPELLING.get(text)
        if kind is TokenKind.EOF:
            return None
        return kind


_ALIASES: Dict[str, TokenKind] = {
    "IDT": TokenKind.ID,
    "FUN": TokenKind.FN,
    "FUNCTION": TokenKind.FN,
    "RET": TokenKind.RETURN,
    "INTEGER": TokenKind.INT,
    "STR": TokenKind.STRING,
    "TXT": TokenKind.STRING,
}

_BY_SPELLING: Dict[str, TokenKind] = {k.value: k for k in TokenKind}
_BY_SPELLING.update(_ALIASES)

KEYWORDS: Dict[str, TokenKind] = {
    "fn": TokenKind.FN,
    "return": TokenKind.RETURN,
}


# --------- Public datatypes ---------

@dataclass(frozen=True)
class LexTok:
    kind: TokenKind
    text: str   # lexeme; string literals keep their escapes, quotes removed
    pos: int    # absolute offset in the source
    line: int   # 1-based
    col: int    # 1-based

    def __str__(self) -> str:
        return f"{self.kind.display}[{self.text}]@{self.line}:{self.col}"


# --------- Helpers ---------

_TOKEN_SPEC: List[Tuple[str, str]] = [
    ("NEWLINE", r"\n"),
    ("WS",      r"[ \t\f\r]+"),
    ("STRING",  r'"(?:\\.|[^"\\\n])*"'),
    ("BADSTR",  r'"(?:\\.|[^"\\\n])*'),
    ("INT",     r"[0-9]+(?![\p{XID_Continue}])"),
    ("BADINT",  r"[0-9]+[\p{XID_Continue}]+"),
    ("IDENT",   r"[\p{XID_Start}_][\p{XID_Continue}]*"),
    ("PUNCT",   r"[(){}\[\];,=/*+\-]"),
]
MASTER_RE = re.compile("|".join(f"(?P<{n}>{p})" for n, p in _TOKEN_SPEC))


def _line_bounds(src: str, pos: int) -> Tuple[int, int]:
    """[start, end) of the line holding pos."""
    start = src.rfind("\n", 0, pos)
    start = 0 if start < 0 else start + 1
    end = src.find("\n", pos)
    end = len(src) if end < 0 else end
    return start, end


def caret_snippet(src: str, pos: int) -> str:
    """Line holding the absolute offset pos, with a caret (^) under it."""
    start, end = _line_bounds(src, pos)
    col = (pos - start) + 1
    return f"{src[start:end]}\n" + " " * (col - 1) + "^"


# --------- Core implementation ---------

class Lexer:
    """
    Lexer
    =====
    Pull-style tokenizer over one source text.

    - reset(text) binds a new input and rewinds.
    - peek() returns the next token without consuming it (None at end).
    - next() consumes and returns the next token (None at end).
    """

    def __init__(self, text: str = ""):
        self.reset(text)

    # ---- Input binding ----
    def reset(self, text: str, *, line: int = 1, col: int = 1) -> None:
        self._text = text
        self._i = 0
        self._line = line
        self._col = col
        self._peek_cache: Optional[LexTok] = None

    # ---- Public API ----
    def peek(self) -> Optional[LexTok]:
        if self._peek_cache is None:
            self._peek_cache = self._next_token()
        return self._peek_cache

    def next(self) -> Optional[LexTok]:
        if self._peek_cache is not None:
            t = self._peek_cache
            self._peek_cache = None
            return t
        return self._next_token()

    def __iter__(self):
        while True:
            t = self.next()
            if t is None:
                return
            yield t

    # ---- Internals ----
    def _error(self, msg: str) -> LexError:
        return LexError(
            f"{msg} at {self._line}:{self._col}\n" + caret_snippet(self._text, self._i),
            self._i, self._line, self._col,
        )

    def _next_token(self) -> Optional[LexTok]:
        while self._i < len(self._text):
            m = MASTER_RE.match(self._text, self._i)
            if not m:
                raise self._error(f"unexpected character {self._text[self._i]!r}")
            kind = m.lastgroup
            lexeme = m.group(0)

            if kind == "BADSTR":
                raise self._error("unterminated string")
            if kind == "BADINT":
                raise self._error(f"malformed number {lexeme!r}")

            tok: Optional[LexTok] = None
            if kind == "STRING":
                tok = LexTok(TokenKind.STRING, lexeme[1:-1], self._i, self._line, self._col)
            elif kind == "INT":
                tok = LexTok(TokenKind.INT, lexeme, self._i, self._line, self._col)
            elif kind == "IDENT":
                tk = KEYWORDS.get(lexeme, TokenKind.ID)
                tok = LexTok(tk, lexeme, self._i, self._line, self._col)
            elif kind == "PUNCT":
                tok = LexTok(TokenKind(lexeme), lexeme, self._i, self._line, self._col)

            # position update
            if kind == "NEWLINE":
                self._line += 1
                self._col = 1
            else:
                self._col += len(lexeme)
            self._i = m.end()

            if tok is not None:
                return tok
        return None


# Convenience
def tokenize(text: str) -> List[LexTok]:
    """Tokenize the whole text eagerly."""
    return list(Lexer(text))
