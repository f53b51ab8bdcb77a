"""
Tic-tac-toe core package.

This package contains the game side of the engine:
- Player marks and board geometry
- Rules (winner detection, legal moves)
- The authoritative host game

All core components can be imported directly from this package.
"""

from tictactoe_mcts.core.constants import (
    Player, DRAW, Board, Winner,
    BOARD_SIDE, BOARD_SIZE, WIN_LINES, winning_lines
)

from tictactoe_mcts.core.rules import (
    GameRules, TicTacToeRules,
    empty_board, board_from_string, board_to_string, outcome_for
)

from tictactoe_mcts.core.game import Game, GameResult

__all__ = [
    # Constants
    'Player', 'DRAW', 'Board', 'Winner',
    'BOARD_SIDE', 'BOARD_SIZE', 'WIN_LINES', 'winning_lines',

    # Rules
    'GameRules', 'TicTacToeRules',
    'empty_board', 'board_from_string', 'board_to_string', 'outcome_for',

    # Game
    'Game', 'GameResult',
]
