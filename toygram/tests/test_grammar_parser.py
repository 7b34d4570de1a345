import unittest
from pathlib import Path

from toygram.errors import GrammarSyntaxError, UndefinedNonTerminal
from toygram.grammar.loader import load_grammar
from toygram.grammar.model import NonTerminal, Terminal
from toygram.grammar.parser import parse_grammar
from toygram.lex import TokenKind

GRAMMARS = Path(__file__).parent / "grammar_test"

K = TokenKind
N = NonTerminal
T = Terminal


class TestGrammarParser(unittest.TestCase):
    def test_program_grammar(self):
        g = load_grammar(str(GRAMMARS / "program.g"))
        self.assertEqual(g.start, "s")
        self.assertEqual(g.nonterminals()[:3], ["s", "fn_call_or_decl", "fn_call"])
        self.assertEqual(
            g.alternatives("args"),
            ((N("arg"), T(K.COMMA), N("args")), (N("arg"),), ()))
        self.assertEqual(
            g.alternatives("fn_call"),
            ((T(K.ID), T(K.LPAREN), N("args"), T(K.RPAREN), T(K.SEMI)),))
        self.assertIn(K.FN, g.terminals())
        self.assertTrue(g.is_frozen)

    def test_uppercase_lhs_is_nonterminal(self):
        g = parse_grammar("S -> S ID | RETURN")
        self.assertEqual(g.alternatives("S"), ((N("S"), T(K.ID)), (T(K.RETURN),)))

    def test_aliases(self):
        g = parse_grammar("a -> IDT FUN RET INTEGER TXT STR")
        self.assertEqual(g.alternatives("a")[0],
                         (T(K.ID), T(K.FN), T(K.RETURN), T(K.INT), T(K.STRING), T(K.STRING)))

    def test_epsilon_spellings(self):
        g = parse_grammar("a -> ID | ε\nb -> ID | EPSILON\nc -> ID |")
        for name in "abc":
            self.assertEqual(g.alternatives(name), ((T(K.ID),), ()))

    def test_unicode_arrow_and_comments(self):
        g = parse_grammar("# header\na → ID  // trailing\n\n")
        self.assertEqual(g.alternatives("a"), ((T(K.ID),),))

    def test_repeated_lhs_appends(self):
        g = parse_grammar("a -> ID\nb -> a\na -> INT")
        self.assertEqual(g.alternatives("a"), ((T(K.ID),), (T(K.INT),)))
        self.assertEqual(g.nonterminals(), ["a", "b"])

    def test_start_directive(self):
        g = parse_grammar("%start b\na -> ID\nb -> a")
        self.assertEqual(g.start, "b")
        self.assertTrue(str(g).startswith("%start b\n"))

    def test_round_trip(self):
        g = load_grammar(str(GRAMMARS / "program.g"))
        g2 = parse_grammar(str(g))
        self.assertEqual(g2.nonterminals(), g.nonterminals())
        for name in g.nonterminals():
            self.assertEqual(g2.alternatives(name), g.alternatives(name))

    def test_unknown_token_kind(self):
        with self.assertRaises(GrammarSyntaxError) as cm:
            parse_grammar("a -> ID BOGUS")
        self.assertIn("BOGUS", str(cm.exception))
        self.assertIn("^", str(cm.exception))

    def test_undefined_nonterminal(self):
        with self.assertRaises(UndefinedNonTerminal) as cm:
            parse_grammar("a -> b ID")
        self.assertEqual(cm.exception.name, "b")
        self.assertEqual(cm.exception.referenced_by, "a")

    def test_epsilon_must_stand_alone(self):
        with self.assertRaises(GrammarSyntaxError):
            parse_grammar("a -> ID ε")

    def test_reserved_names(self):
        with self.assertRaises(GrammarSyntaxError):
            parse_grammar("__lr1 -> ID")

    def test_token_kind_lhs(self):
        with self.assertRaises(GrammarSyntaxError):
            parse_grammar("ID -> INT")

    def test_missing_arrow(self):
        with self.assertRaises(GrammarSyntaxError):
            parse_grammar("a ID")

    def test_bad_character(self):
        with self.assertRaises(GrammarSyntaxError):
            parse_grammar("a -> ID @")

    def test_empty_grammar(self):
        with self.assertRaises(GrammarSyntaxError):
            parse_grammar("# nothing\n")

    def test_unknown_directive(self):
        with self.assertRaises(GrammarSyntaxError):
            parse_grammar("%token X\na -> ID")

    def test_start_must_be_declared(self):
        with self.assertRaises(GrammarSyntaxError):
            parse_grammar("%start nope\na -> ID")


if __name__ == "__main__":
    unittest.main()
