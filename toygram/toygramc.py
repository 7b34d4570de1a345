# toygram/toygramc.py
"""toygramc – toygram CLI

Examples
    $ python -m toygram.toygramc check toygram/tests/grammar_test/program.g -D
    $ python -m toygram.toygramc transform toygram/tests/grammar_test/expr_lr.g
    $ python -m toygram.toygramc lex --text 'fn f(int a) { return a; }'
    $ python -m toygram.toygramc parse toygram/tests/grammar_test/program.g --input prog.toy --parser predictive --fold

Commands
--------
- check     : load a grammar, report left recursion and LL(1) conflicts
- transform : eliminate left recursion, left-factor, print the result
- lex       : tokenize a program with the reference lexer
- parse     : tokenize and parse a program, print the tree

-D/--debug prints pipeline summaries and turns on debug logging.
"""

from __future__ import annotations
import argparse
import logging
import sys
import warnings
from typing import Optional

from .errors import IncompleteFactoring
from .limits import ParseLimits

# ------------------------------
# helpers
# ------------------------------

def _eprint(*args, **kw) -> None:
    print(*args, file=sys.stderr, **kw)


def _read_text(args) -> str:
    if args.text is not None:
        return args.text
    with open(args.input, "r", encoding="utf-8") as f:
        return f.read()


def _limits(args) -> ParseLimits:
    return ParseLimits(max_depth=args.max_depth, max_steps=args.max_steps)

# ------------------------------
# pipeline
# ------------------------------

def _load(grammar_path: str, debug: bool):
    from .grammar.loader import load_grammar

    g = load_grammar(grammar_path)
    if debug: _eprint("[DEBUG] grammar ready | nonterms=%d terms=%d start=%s" %
                      (len(g), len(g.terminals()), g.start))
    return g


def _transform(g, args):
    """Left-recursion elimination followed by left factoring."""
    from .grammar.left_recursion import eliminate_left_recursion
    from .grammar.left_factor import left_factor

    g2 = eliminate_left_recursion(g)
    if args.debug: _eprint("[DEBUG] left recursion eliminated | nonterms=%d" % len(g2))

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", IncompleteFactoring)
        res = left_factor(g2, max_rounds=args.factor_rounds)
    for w in caught:
        if issubclass(w.category, IncompleteFactoring):
            _eprint("[WARN]", str(w.message))
    if args.debug: _eprint("[DEBUG] left factoring | rounds=%d complete=%s nonterms=%d" %
                           (res.rounds, res.complete, len(res.grammar)))
    return res

# ------------------------------
# debug output helpers
# ------------------------------

def _print_grammar(g, title: str = "Grammar") -> None:
    _eprint(f"\n[{title}]\n" + str(g))


def _print_first_follow(g) -> None:
    from .ll.first_follow import compute_nullable_first_follow

    ff = compute_nullable_first_follow(g)
    _eprint("\n[NULLABLE]")
    _eprint(", ".join(n for n in g.nonterminals() if n in ff.nullable) or "(none)")

    def _fmt(kinds) -> str:
        return "{" + ", ".join(sorted(k.display for k in kinds)) + "}"

    width = max((len(n) for n in g.nonterminals()), default=0)
    _eprint("\n[FIRST(nonterminals)]")
    for A in g.nonterminals():
        _eprint(f"{A:>{width}} : {_fmt(ff.first[A])}")
    _eprint("\n[FOLLOW(nonterminals)]")
    for A in g.nonterminals():
        _eprint(f"{A:>{width}} : {_fmt(ff.follow[A])}")

# ------------------------------
# commands
# ------------------------------

def cmd_check(args) -> int:
    from .grammar.left_recursion import left_recursive
    from .ll.table import build_ll_table

    try:
        g = _load(args.file, debug=args.debug)
        lr = left_recursive(g)
        tbl = build_ll_table(g)
    except SyntaxError as e:
        _eprint("[SYNTAX ERROR]")
        _eprint(str(e))
        return 2
    except Exception as e:
        _eprint("[ERROR]", type(e).__name__, str(e))
        return 2

    if args.debug:
        _print_grammar(g)
        _print_first_follow(g)
        if tbl.conflicts:
            _eprint("\n[Conflicts Detail]")
            _eprint(tbl.pretty_conflicts())

    if lr:
        print("[LEFT RECURSION] " + ", ".join(lr))
    print(f"[CHECK OK] nonterms={len(g)} terms={len(g.terminals())} "
          f"left_recursive={len(lr)} conflicts={len(tbl.conflicts)}")
    return 0


def cmd_transform(args) -> int:
    try:
        g = _load(args.file, debug=args.debug)
        res = _transform(g, args)
    except SyntaxError as e:
        _eprint("[SYNTAX ERROR]")
        _eprint(str(e))
        return 2
    except Exception as e:
        _eprint("[ERROR]", type(e).__name__, str(e))
        return 2

    if args.debug:
        _print_grammar(g, "Input")
        _print_first_follow(res.grammar)
    print(res.grammar)
    return 0


def cmd_lex(args) -> int:
    """Tokenize the input and list the tokens on stdout."""
    from .lex import Lexer

    try:
        text = _read_text(args)
        i = 0
        for tok in Lexer(text):
            print(f"{i:03d}: {tok.kind.name:<12} {tok.text!r}  @{tok.line}:{tok.col}")
            i += 1
        return 0
    except SyntaxError as e:
        _eprint("[LEX ERROR]", str(e))
        return 2
    except Exception as e:
        _eprint("[ERROR]", type(e).__name__, str(e))
        return 2


def cmd_parse(args) -> int:
    from .backtrack import BacktrackingParser
    from .lex import tokenize
    from .ll.runtime import PredictiveParser
    from .tree import fold_synthesized

    try:
        g = _load(args.file, debug=args.debug)
        tokens = tokenize(_read_text(args))
        if args.debug: _eprint("[DEBUG] tokens=%d" % len(tokens))

        used = g
        if args.parser == "predictive":
            if not args.no_transform:
                used = _transform(g, args).grammar
                if args.debug: _print_grammar(used, "Transformed")
            parser = PredictiveParser(used, allow_conflicts=args.allow_conflicts, limits=_limits(args))
        else:
            parser = BacktrackingParser(used, limits=_limits(args))

        tree = parser.parse(tokens)
    except SyntaxError as e:
        _eprint("[SYNTAX ERROR]")
        _eprint(str(e))
        return 2
    except Exception as e:
        _eprint("[ERROR]", type(e).__name__, str(e))
        return 2

    if args.fold:
        tree = fold_synthesized(tree, used)
    print(tree.pretty())
    return 0


# ------------------------------
# entry point
# ------------------------------

def _add_debug(p: argparse.ArgumentParser) -> None:
    p.add_argument("-D", "--debug", action="store_true", help="print pipeline details")


def _add_factoring(p: argparse.ArgumentParser) -> None:
    p.add_argument("--factor-rounds", type=int, default=16, help="left factoring round budget")


def _add_limits(p: argparse.ArgumentParser) -> None:
    p.add_argument("--max-depth", type=int, default=ParseLimits.max_depth, help="nonterminal nesting ceiling")
    p.add_argument("--max-steps", type=int, default=ParseLimits.max_steps, help="match attempt ceiling")


def _add_source(p: argparse.ArgumentParser) -> None:
    src_group = p.add_mutually_exclusive_group(required=True)
    src_group.add_argument("--text", help="program text")
    src_group.add_argument("--input", help="program file path")


def main(argv: Optional[list] = None) -> int:
    ap = argparse.ArgumentParser(prog="toygramc", description="toygram grammar toolkit CLI")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_check = sub.add_parser("check", help="load a grammar and report left recursion and conflicts")
    p_check.add_argument("file", help=".g grammar file")
    _add_debug(p_check)
    p_check.set_defaults(func=cmd_check)

    p_tr = sub.add_parser("transform", help="eliminate left recursion and left-factor a grammar")
    p_tr.add_argument("file", help=".g grammar file")
    _add_factoring(p_tr)
    _add_debug(p_tr)
    p_tr.set_defaults(func=cmd_transform)

    p_lex = sub.add_parser("lex", help="tokenize a program")
    _add_source(p_lex)
    _add_debug(p_lex)
    p_lex.set_defaults(func=cmd_lex)

    p_parse = sub.add_parser("parse", help="parse a program with a grammar")
    p_parse.add_argument("file", help=".g grammar file")
    _add_source(p_parse)
    p_parse.add_argument("--parser", choices=["backtrack", "predictive"], default="backtrack", help="parsing strategy")
    p_parse.add_argument("--no-transform", action="store_true", help="(predictive) use the grammar as written")
    p_parse.add_argument("--allow-conflicts", action="store_true", help="(predictive) parse despite LL(1) conflicts")
    p_parse.add_argument("--fold", action="store_true", help="fold synthesized nonterminals out of the tree")
    _add_factoring(p_parse)
    _add_limits(p_parse)
    _add_debug(p_parse)
    p_parse.set_defaults(func=cmd_parse)

    args = ap.parse_args(argv)
    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="[%(name)s] %(message)s")
    return int(args.func(args))

if __name__ == "__main__":
    sys.exit(main())
