import unittest
from pathlib import Path

from toygram.backtrack import BacktrackingParser
from toygram.errors import (NotBacktrackFree, ResourceExhausted, UnexpectedEndOfInput,
                            UnexpectedToken)
from toygram.grammar.left_factor import left_factor
from toygram.grammar.left_recursion import eliminate_left_recursion
from toygram.grammar.loader import load_grammar
from toygram.grammar.parser import parse_grammar
from toygram.lex import TokenKind, tokenize
from toygram.limits import ParseLimits
from toygram.ll.first_follow import compute_nullable_first_follow
from toygram.ll.runtime import PredictiveParser
from toygram.ll.table import Conflict, build_ll_table

GRAMMARS = Path(__file__).parent / "grammar_test"

K = TokenKind


def prepared(name):
    g = load_grammar(str(GRAMMARS / name))
    return left_factor(eliminate_left_recursion(g)).grammar


class TestFirstFollow(unittest.TestCase):
    def test_expr(self):
        g = load_grammar(str(GRAMMARS / "expr_lr.g"))
        ff = compute_nullable_first_follow(g)
        self.assertEqual(ff.nullable, set())
        self.assertEqual(ff.first["expr"], {K.LPAREN, K.INT, K.ID})
        self.assertEqual(ff.follow["expr"], {K.EOF, K.PLUS, K.MINUS, K.RPAREN})
        self.assertEqual(ff.follow["factor"],
                         {K.EOF, K.PLUS, K.MINUS, K.RPAREN, K.STAR, K.SLASH})

    def test_nullable_sequence(self):
        g = parse_grammar("s -> a b ID\na -> INT | ε\nb -> STRING | ε")
        ff = compute_nullable_first_follow(g)
        self.assertEqual(ff.nullable, {"a", "b"})
        self.assertEqual(ff.first["s"], {K.INT, K.STRING, K.ID})
        self.assertEqual(ff.follow["a"], {K.STRING, K.ID})
        first, nullable = ff.first_of_sequence(g.alternatives("s")[0][:2])
        self.assertEqual(first, {K.INT, K.STRING})
        self.assertTrue(nullable)


class TestLLTable(unittest.TestCase):
    def test_conflicts(self):
        g = parse_grammar("s -> ID INT | ID STRING | RETURN")
        tbl = build_ll_table(g)
        self.assertEqual(tbl.conflicts, [Conflict("s", K.ID, (0, 1))])
        self.assertEqual(str(tbl.conflicts[0]), "s, on ID: alternatives #0, #1")
        self.assertEqual(tbl.select("s", K.ID), 0)
        self.assertEqual(tbl.select("s", K.RETURN), 2)
        self.assertIsNone(tbl.select("s", K.INT))

    def test_two_nullable_alternatives_conflict(self):
        tbl = build_ll_table(parse_grammar("s -> a | ε\na -> ε"))
        self.assertTrue(any(c.kind is K.EOF for c in tbl.conflicts))

    def test_pretty(self):
        self.assertEqual(build_ll_table(parse_grammar("s -> ID")).pretty_conflicts(), "(no conflicts)")


class TestPredictiveParser(unittest.TestCase):
    def test_refuses_conflicting_grammar(self):
        g = load_grammar(str(GRAMMARS / "program.g"))
        with self.assertRaises(NotBacktrackFree) as cm:
            PredictiveParser(g)
        self.assertTrue(cm.exception.conflicts)

    def test_allow_conflicts_prefers_first_alternative(self):
        g = parse_grammar("s -> ID INT | ID STRING")
        p = PredictiveParser(g, allow_conflicts=True)
        self.assertTrue(p.accepts(tokenize("x 1")))
        # valid, but the second alternative is never chosen
        self.assertFalse(p.accepts(tokenize('x "y"')))

    def test_allow_conflicts_prefers_first_set_over_epsilon(self):
        g = parse_grammar("s -> a ID\na -> ε | ID")
        table = build_ll_table(g)
        self.assertEqual(table.conflicts, [Conflict("a", K.ID, (0, 1))])
        self.assertEqual(table.select("a", K.ID), 1)
        p = PredictiveParser(g, allow_conflicts=True)
        self.assertTrue(p.accepts(tokenize("x y")))
        self.assertTrue(BacktrackingParser(g).accepts(tokenize("x y")))
        # the ε alternative is no longer reachable on ID
        self.assertFalse(p.accepts(tokenize("x")))

    def test_agrees_with_backtracking(self):
        g = prepared("expr_lr.g")
        pred = PredictiveParser(g)
        back = BacktrackingParser(g)
        for text in ["1", "1 + 2 * 3", "(a - 1) / b", "((x))", "1 +", "* 2", "1 2", "(1", "1 )", ""]:
            toks = tokenize(text)
            self.assertEqual(pred.accepts(toks), back.accepts(toks), text)
            if pred.accepts(toks):
                self.assertEqual(pred.parse(toks).shape(), back.parse(toks).shape(), text)

    def test_epsilon_on_empty_input(self):
        p = PredictiveParser(parse_grammar("s -> ID s | ε"))
        tree = p.parse([])
        self.assertEqual(tree.name, "s")
        self.assertEqual(tree.children, [])

    def test_expected_set_matches_backtracking(self):
        g = prepared("expr_lr.g")
        toks = tokenize("1 +")
        with self.assertRaises(UnexpectedEndOfInput) as pc:
            PredictiveParser(g).parse(toks)
        with self.assertRaises(UnexpectedEndOfInput) as bc:
            BacktrackingParser(g).parse(toks)
        self.assertEqual(pc.exception.pos, 2)
        self.assertEqual(pc.exception.expected, {K.LPAREN, K.INT, K.ID})
        self.assertEqual(pc.exception.expected, bc.exception.expected)

    def test_unexpected_token(self):
        g = prepared("program.g")
        with self.assertRaises(UnexpectedToken) as cm:
            PredictiveParser(g).parse(tokenize("f(1 2);"))
        e = cm.exception
        self.assertEqual((e.pos, e.token.text), (3, "2"))
        self.assertEqual(e.expected, {K.COMMA, K.RPAREN})

    def test_trailing_tokens(self):
        p = PredictiveParser(parse_grammar("s -> ID"))
        with self.assertRaises(UnexpectedToken) as cm:
            p.parse(tokenize("x y"))
        self.assertEqual(cm.exception.expected, {K.EOF})

    def test_depth_limit(self):
        p = PredictiveParser(prepared("expr_lr.g"), limits=ParseLimits(max_depth=5))
        with self.assertRaises(ResourceExhausted) as cm:
            p.parse(tokenize("((((1))))"))
        self.assertEqual(cm.exception.what, "depth")

    def test_step_limit(self):
        p = PredictiveParser(prepared("expr_lr.g"), limits=ParseLimits(max_steps=3))
        with self.assertRaises(ResourceExhausted):
            p.parse(tokenize("1 + 2"))


if __name__ == "__main__":
    unittest.main()
