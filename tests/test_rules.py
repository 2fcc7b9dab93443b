"""
Tests for the python-chess rules adapter, board orientation and hints.
"""

import unittest

import chess

from tactics.hints import HintProvider, NO_MORE_HINTS
from tactics.orientation import Orientation, resolve
from tactics.rules import RulesEngine


PROMOTION_FEN = "8/4P3/8/8/8/8/k7/7K w - - 0 1"


class TestRulesEngine(unittest.TestCase):

    def test_starts_from_initial_position(self):
        rules = RulesEngine()
        self.assertEqual(rules.current_position(), chess.STARTING_FEN)
        self.assertEqual(rules.side_to_move(), chess.WHITE)
        self.assertIsNone(rules.last_move())
        self.assertEqual(len(rules.legal_moves_uci()), 20)

    def test_parse_san_and_uci(self):
        rules = RulesEngine()
        self.assertEqual(rules.san("Nf3"), "Nf3")
        self.assertEqual(rules.san("g1f3"), "Nf3")
        self.assertEqual(rules.san("G1F3"), "Nf3")
        self.assertIsNone(rules.san("Nf4"))
        self.assertIsNone(rules.san(""))
        self.assertFalse(rules.is_legal("e2e5"))

    def test_null_moves_are_not_legal(self):
        rules = RulesEngine()
        for candidate in ("--", "0000", "Z0", "@@@@"):
            self.assertIsNone(rules.parse(candidate))
        with self.assertRaises(ValueError):
            rules.apply_move("--")
        self.assertEqual(rules.current_position(), chess.STARTING_FEN)

    def test_apply_move(self):
        rules = RulesEngine()
        applied = rules.apply_move("e4")
        self.assertEqual(applied.san, "e4")
        self.assertEqual(applied.uci, "e2e4")
        self.assertEqual(applied.fen_before, chess.STARTING_FEN)
        self.assertEqual(applied.fen_after, rules.current_position())
        self.assertEqual(rules.side_to_move(), chess.BLACK)
        self.assertEqual(rules.last_move(), chess.Move.from_uci("e2e4"))

    def test_apply_illegal_move_raises(self):
        rules = RulesEngine()
        with self.assertRaises(ValueError):
            rules.apply_move("e5")
        self.assertEqual(rules.current_position(), chess.STARTING_FEN)

    def test_invalid_positions(self):
        with self.assertRaises(ValueError):
            RulesEngine("not a fen")
        rules = RulesEngine()
        with self.assertRaises(ValueError):
            rules.load_position("8/8/8/8/8/8/8/8 w - - 0 1")
        self.assertEqual(rules.current_position(), chess.STARTING_FEN)

    def test_uci_promotion_defaults_to_queen(self):
        rules = RulesEngine(PROMOTION_FEN)
        self.assertEqual(rules.san("e7e8"), "e8=Q")
        self.assertEqual(rules.san("e7e8n"), "e8=N")

    def test_game_state_queries(self):
        rules = RulesEngine("6k1/5ppp/8/8/8/8/5PPP/4R1K1 w - - 0 1")
        rules.apply_move("Re8#")
        self.assertTrue(rules.is_check())
        self.assertTrue(rules.is_checkmate())
        self.assertFalse(rules.is_stalemate())
        self.assertFalse(rules.is_draw())

        stalemate = RulesEngine("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
        self.assertTrue(stalemate.is_stalemate())
        self.assertTrue(stalemate.is_draw())

    def test_board_is_a_copy(self):
        rules = RulesEngine()
        board = rules.board()
        board.push_san("e4")
        self.assertEqual(rules.current_position(), chess.STARTING_FEN)


class TestOrientation(unittest.TestCase):

    def test_resolve(self):
        self.assertEqual(resolve(chess.WHITE), Orientation.WHITE_BOTTOM)
        self.assertEqual(resolve(chess.BLACK), Orientation.BLACK_BOTTOM)
        self.assertEqual(resolve("b"), Orientation.BLACK_BOTTOM)
        self.assertEqual(resolve("Black"), Orientation.BLACK_BOTTOM)
        self.assertEqual(resolve("w"), Orientation.WHITE_BOTTOM)
        self.assertEqual(resolve(None), Orientation.WHITE_BOTTOM)
        self.assertEqual(resolve("sideways"), Orientation.WHITE_BOTTOM)

    def test_flipped(self):
        self.assertTrue(Orientation.BLACK_BOTTOM.flipped)
        self.assertFalse(Orientation.WHITE_BOTTOM.flipped)


class TestHintProvider(unittest.TestCase):

    def test_hints_in_order(self):
        hints = HintProvider(["first", "", "  ", "second"])
        self.assertEqual(len(hints), 2)
        self.assertEqual(hints.next(), "first")
        self.assertEqual(hints.revealed, ["first"])
        self.assertEqual(hints.remaining, 1)
        self.assertEqual(hints.next(), "second")
        self.assertTrue(hints.exhausted)

    def test_exhaustion_never_raises(self):
        hints = HintProvider()
        for _ in range(5):
            self.assertIs(hints.next(), NO_MORE_HINTS)
        self.assertFalse(NO_MORE_HINTS)

    def test_reset(self):
        hints = HintProvider(["a"])
        hints.next()
        hints.reset(["b", "c"])
        self.assertEqual(hints.revealed, [])
        self.assertEqual(hints.next(), "b")


if __name__ == "__main__":
    unittest.main()
