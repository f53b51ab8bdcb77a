"""
Tic-tac-toe MCTS - a Monte Carlo Tree Search engine for tic-tac-toe.

This package provides the rules of tic-tac-toe, an authoritative host game,
and an MCTS engine that searches in cancellable batches so a host can watch
it think.
"""

__version__ = "0.1.0"
__author__ = "Tic-tac-toe MCTS Team"

# Make key components available at package level
from tictactoe_mcts.core.constants import Player, DRAW
from tictactoe_mcts.core.game import Game, GameResult
from tictactoe_mcts.core.rules import TicTacToeRules
from tictactoe_mcts.errors import MCTSError, PreconditionViolation, EmptyTreeError
from tictactoe_mcts.mcts.config import MCTSConfig
from tictactoe_mcts.mcts.scheduler import start_search

# Version info as a tuple for programmatic access
VERSION_INFO = tuple(map(int, __version__.split('.')))
