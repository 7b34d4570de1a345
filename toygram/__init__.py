"""toygram: grammar toolkit for a small language.

Grammar model and description front end, left-recursion elimination, left
factoring, a backtracking parser and a predictive (LL(1)) parser.
"""

from .errors import (
    GrammarError, GrammarSyntaxError, UndefinedNonTerminal, UnfixableLeftRecursion,
    NotBacktrackFree, IncompleteFactoring, LexError, ParseError, UnexpectedToken,
    UnexpectedEndOfInput, ResourceExhausted,
)
from .lex import TokenKind, LexTok, Lexer, tokenize
from .grammar.model import (
    Terminal, NonTerminal, Production, Grammar, Origin, EPSILON,
)
from .grammar.parser import parse_grammar
from .grammar.loader import load_grammar
from .grammar.left_recursion import eliminate_left_recursion, left_recursive
from .grammar.left_factor import left_factor, FactorResult
from .ll.first_follow import compute_nullable_first_follow
from .ll.table import Conflict, LLTable, build_ll_table, find_conflicts
from .ll.runtime import PredictiveParser
from .backtrack import BacktrackingParser
from .limits import ParseLimits
from .tree import ParseNode, fold_synthesized

__version__ = "0.1.0"
