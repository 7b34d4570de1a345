import unittest
import warnings
from pathlib import Path

from toygram.errors import IncompleteFactoring
from toygram.grammar.left_factor import left_factor
from toygram.grammar.left_recursion import eliminate_left_recursion
from toygram.grammar.loader import load_grammar
from toygram.grammar.model import FACTOR, NonTerminal, Origin, Terminal
from toygram.grammar.parser import parse_grammar
from toygram.lex import TokenKind
from toygram.ll.table import find_conflicts

GRAMMARS = Path(__file__).parent / "grammar_test"

K = TokenKind
N = NonTerminal
T = Terminal


class TestLeftFactor(unittest.TestCase):
    def test_common_prefix(self):
        g = parse_grammar("a -> ID ID ; | ID ID = INT ; | RETURN")
        res = left_factor(g)
        self.assertTrue(res.complete)
        self.assertEqual(res.conflicts, [])
        out = res.grammar
        self.assertEqual(out.alternatives("a"), ((T(K.ID), T(K.ID), N("__lf1")), (T(K.RETURN),)))
        self.assertEqual(out.alternatives("__lf1"),
                         ((T(K.SEMI),), (T(K.EQUAL), T(K.INT), T(K.SEMI))))
        self.assertEqual(out.origins["__lf1"], Origin(FACTOR, "a"))

    def test_prefix_equal_to_alternative_gives_epsilon(self):
        res = left_factor(parse_grammar("a -> ID , a | ID"))
        self.assertTrue(res.complete)
        self.assertEqual(res.grammar.alternatives("a"), ((T(K.ID), N("__lf1")),))
        self.assertEqual(res.grammar.alternatives("__lf1"), ((T(K.COMMA), N("a")), ()))

    def test_tails_are_factored_in_turn(self):
        res = left_factor(parse_grammar("a -> ID ID ; | ID ID = INT ; | ID = INT ; | ID ( ) ;"))
        self.assertTrue(res.complete)
        out = res.grammar
        self.assertEqual(out.alternatives("a"), ((T(K.ID), N("__lf1")),))
        self.assertEqual(out.alternatives("__lf1"),
                         ((T(K.ID), N("__lf2")),
                          (T(K.EQUAL), T(K.INT), T(K.SEMI)),
                          (T(K.LPAREN), T(K.RPAREN), T(K.SEMI))))
        self.assertEqual(out.alternatives("__lf2"),
                         ((T(K.SEMI),), (T(K.EQUAL), T(K.INT), T(K.SEMI))))
        self.assertEqual(out.origins["__lf2"], Origin(FACTOR, "__lf1"))

    def test_duplicates_collapse(self):
        res = left_factor(parse_grammar("a -> ID INT | ID INT | RETURN"))
        self.assertEqual(res.grammar.alternatives("a"), ((T(K.ID), T(K.INT)), (T(K.RETURN),)))

    def test_input_untouched(self):
        g = parse_grammar("a -> ID , a | ID")
        left_factor(g)
        self.assertEqual(len(g.alternatives("a")), 2)
        self.assertEqual(g.nonterminals(), ["a"])

    def test_expansion_resolves_hidden_prefix(self):
        g = parse_grammar("a -> b INT | ID ;\nb -> ID")
        self.assertTrue(find_conflicts(g))
        res = left_factor(g)
        self.assertTrue(res.complete)
        self.assertEqual(find_conflicts(res.grammar), [])

    def test_program_grammar_becomes_backtrack_free(self):
        g = eliminate_left_recursion(load_grammar(str(GRAMMARS / "program.g")))
        self.assertTrue(find_conflicts(g))
        res = left_factor(g)
        self.assertTrue(res.complete)
        self.assertEqual(find_conflicts(res.grammar), [])

    def test_expr_grammar_becomes_backtrack_free(self):
        g = eliminate_left_recursion(load_grammar(str(GRAMMARS / "expr_lr.g")))
        res = left_factor(g)
        self.assertTrue(res.complete)

    def test_incomplete_factoring_warns(self):
        # FIRST(a ID) and FOLLOW(a) share ID: no amount of factoring helps
        g = parse_grammar("s -> a ID\na -> ID | ε")
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            res = left_factor(g)
        self.assertFalse(res.complete)
        self.assertTrue(res.conflicts)
        self.assertTrue(any(issubclass(w.category, IncompleteFactoring) for w in caught))

    def test_no_expansion(self):
        g = parse_grammar("a -> b INT | ID ;\nb -> ID")
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", IncompleteFactoring)
            res = left_factor(g, expand=False)
        self.assertFalse(res.complete)
        self.assertEqual(res.rounds, 1)

    def test_expansion_growth_is_bounded(self):
        # every expansion round roughly doubles this grammar
        g = eliminate_left_recursion(parse_grammar(
            "a -> , a b | , , INT | c\n"
            "b -> ε\n"
            "c -> b a | c a | b ID"))

        def size(gr):
            return sum(len(alt) + 1 for p in gr.productions() for alt in p.alts)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            res = left_factor(g)
        self.assertFalse(res.complete)
        self.assertTrue(res.conflicts)
        self.assertLess(res.rounds, 16)
        self.assertLessEqual(size(res.grammar), 2 * 8 * size(g))
        self.assertTrue(any(issubclass(w.category, IncompleteFactoring) for w in caught))

    def test_round_budget(self):
        g = parse_grammar("s -> a ID\na -> ID | ε")
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", IncompleteFactoring)
            res = left_factor(g, max_rounds=1)
        self.assertFalse(res.complete)
        self.assertEqual(res.rounds, 1)


if __name__ == "__main__":
    unittest.main()
