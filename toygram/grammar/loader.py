"""Reads .g grammar description files"""

from __future__ import annotations
from pathlib    import Path

from .model     import Grammar
from .parser    import parse_grammar


def load_grammar_text(path: str) -> str:
    """File contents with line endings normalized to '\\n'."""
    text = Path(path).read_text(encoding="utf-8")
    return text.replace("\r\n", "\n").replace("\r", "\n")


def load_grammar(path: str) -> Grammar:
    return parse_grammar(load_grammar_text(path))
