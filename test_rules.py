#!/usr/bin/env python
"""
Tests for the tic-tac-toe rules used by the search engine.
"""
import unittest

from tictactoe_mcts.core.constants import DRAW, WIN_LINES, Player, winning_lines
from tictactoe_mcts.core.rules import (
    TicTacToeRules, board_from_string, board_to_string, empty_board, outcome_for
)
from tictactoe_mcts.errors import PreconditionViolation


class TestTicTacToeRules(unittest.TestCase):
    """Test case for winner detection and legal moves."""

    def setUp(self):
        self.rules = TicTacToeRules()

    def test_empty_board_is_undecided(self):
        board = empty_board()
        self.assertEqual(len(board), 9)
        self.assertIsNone(self.rules.winner(board))
        self.assertEqual(self.rules.legal_moves(board), list(range(9)))
        self.assertFalse(self.rules.is_terminal(board))

    def test_row_win(self):
        board = board_from_string("XXX|OO.|...")
        self.assertIs(self.rules.winner(board), Player.X)

    def test_column_win(self):
        board = board_from_string("XO.|XO.|.O.")
        self.assertIs(self.rules.winner(board), Player.O)

    def test_diagonal_wins(self):
        self.assertIs(self.rules.winner(board_from_string("O.X|.OX|..O")), Player.O)
        self.assertIs(self.rules.winner(board_from_string("O.X|.XO|X..")), Player.X)

    def test_full_board_without_line_is_draw(self):
        board = board_from_string("XOX|XOO|OXX")
        self.assertEqual(self.rules.winner(board), DRAW)
        self.assertEqual(self.rules.legal_moves(board), [])
        self.assertTrue(self.rules.is_terminal(board))

    def test_win_on_last_cell_is_not_a_draw(self):
        board = board_from_string("XOX|OXO|OXX")
        self.assertIs(self.rules.winner(board), Player.X)

    def test_legal_moves_are_empty_cells_in_order(self):
        board = board_from_string("X..|.O.|..X")
        self.assertEqual(self.rules.legal_moves(board), [1, 2, 3, 5, 6, 7])

    def test_apply_move_returns_new_board(self):
        board = empty_board()
        after = self.rules.apply_move(board, 4, Player.X)
        self.assertIs(after[4], Player.X)
        self.assertIsNone(board[4])
        self.assertEqual(sum(cell is not None for cell in after), 1)

    def test_apply_move_rejects_occupied_and_out_of_range_cells(self):
        board = board_from_string("X........")
        with self.assertRaises(PreconditionViolation):
            self.rules.apply_move(board, 0, Player.O)
        with self.assertRaises(PreconditionViolation):
            self.rules.apply_move(board, 9, Player.O)
        with self.assertRaises(ValueError):
            self.rules.apply_move(board, -1, Player.O)

    def test_larger_board(self):
        rules = TicTacToeRules(side=4)
        self.assertEqual(len(rules.lines), 10)
        board = board_from_string("XXX.|OOO.|....|....")
        self.assertIsNone(rules.winner(board))
        self.assertIs(rules.winner(rules.apply_move(board, 3, Player.X)), Player.X)


class TestBoardHelpers(unittest.TestCase):
    """Test case for board parsing and scoring helpers."""

    def test_winning_lines(self):
        self.assertEqual(len(WIN_LINES), 8)
        self.assertIn((0, 4, 8), WIN_LINES)
        self.assertIn((2, 4, 6), WIN_LINES)
        self.assertEqual(winning_lines(1), [(0,), (0,), (0,), (0,)])

    def test_board_from_string_accepts_layouts(self):
        self.assertEqual(board_from_string("X.O\n...\n..x"), board_from_string("X.O|...|..X"))
        self.assertEqual(board_from_string("x-o ___ ..."), board_from_string("X.O......"))

    def test_board_from_string_rejects_bad_input(self):
        with self.assertRaises(ValueError):
            board_from_string("XX?|...|...")
        with self.assertRaises(ValueError):
            board_from_string("XX.|...")

    def test_board_to_string(self):
        board = board_from_string("XO.|...|..X")
        self.assertEqual(board_to_string(board), "XO.|...|..X")
        self.assertEqual(board_to_string(board, separator="\n"), "XO.\n...\n..X")

    def test_outcome_mapping(self):
        self.assertEqual(outcome_for(Player.O, Player.O), 1.0)
        self.assertEqual(outcome_for(Player.X, Player.O), 0.0)
        self.assertEqual(outcome_for(DRAW, Player.O), 0.5)
        self.assertEqual(outcome_for(None, Player.X), 0.5)

    def test_player_opponent(self):
        self.assertIs(Player.X.opponent, Player.O)
        self.assertIs(Player.O.opponent, Player.X)


if __name__ == "__main__":
    unittest.main()
