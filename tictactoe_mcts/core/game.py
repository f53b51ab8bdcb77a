"""
Authoritative game state and flow management for tic-tac-toe.

This module defines the host side of the engine:
- GameResult: Status of a game
- Game: Owner of the real board, the side to move and the move history

The game carries a generation counter that is bumped on every reset. Moves
computed by a search started in an earlier generation are refused, so a
search that finishes after a reset can never write to the new board.
"""
from __future__ import annotations
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Tuple

from tictactoe_mcts.core.constants import BOARD_SIDE, DRAW, Board, Player, Winner
from tictactoe_mcts.core.rules import TicTacToeRules, board_to_string


class GameResult(Enum):
    """Enum representing possible game results."""
    IN_PROGRESS = auto()
    WINNER = auto()
    DRAW = auto()


class Game:
    """
    Manager for tic-tac-toe game flow.

    X always moves first. Agents can be registered per side as callbacks
    taking ``(board, player)`` and returning a cell index.
    """

    def __init__(
        self,
        rules: Optional[TicTacToeRules] = None,
        first_player: Player = Player.X,
    ):
        """
        Initialize a new game.

        Args:
            rules: Rules to play by (defaults to a standard 3x3 board)
            first_player: Side that moves first
        """
        self.rules = rules or TicTacToeRules(BOARD_SIDE)
        self.first_player = first_player
        self.generation = 0
        self.agent_callbacks: Dict[Player, Callable[[Board, Player], int]] = {}
        self.reset_listeners: List[Callable[[], None]] = []
        self._setup_game()

    def _setup_game(self) -> None:
        self.board: Board = self.rules.empty_board()
        self.current_player = self.first_player
        self.history: List[Tuple[Player, int]] = []
        self.winner: Optional[Winner] = None

    def reset(self) -> Board:
        """
        Reset the game to an empty board and start a new generation.

        Every reset listener is called afterwards, so searches started for
        the old board can stop.

        Returns:
            The new board
        """
        self.generation += 1
        self._setup_game()
        for listener in list(self.reset_listeners):
            listener()
        return self.board

    @property
    def game_over(self) -> bool:
        return self.winner is not None

    @property
    def result(self) -> GameResult:
        if self.winner is None:
            return GameResult.IN_PROGRESS
        if self.winner == DRAW:
            return GameResult.DRAW
        return GameResult.WINNER

    def legal_moves(self) -> List[int]:
        if self.game_over:
            return []
        return self.rules.legal_moves(self.board)

    def apply_move(self, move: int, generation: Optional[int] = None) -> bool:
        """
        Place the current player's mark on ``move``.

        Args:
            move: Cell index to take
            generation: Generation the move was computed for; a move from an
                earlier generation is ignored

        Returns:
            True if the move was applied, False if it was stale

        Raises:
            ValueError: If the game is over
            PreconditionViolation: If the cell is out of range or occupied
        """
        if generation is not None and generation != self.generation:
            return False
        if self.game_over:
            raise ValueError("Game is already over")

        self.board = self.rules.apply_move(self.board, move, self.current_player)
        self.history.append((self.current_player, move))
        self.winner = self.rules.winner(self.board)
        if self.winner is None:
            self.current_player = self.current_player.opponent
        return True

    def register_agent(self, player: Player, agent_callback: Callable[[Board, Player], int]) -> None:
        """
        Register an AI agent for a side.

        Args:
            player: Side the agent plays
            agent_callback: Function returning a cell index for a board
        """
        self.agent_callbacks[player] = agent_callback

    def add_reset_listener(self, listener: Callable[[], None]) -> None:
        self.reset_listeners.append(listener)

    def remove_reset_listener(self, listener: Callable[[], None]) -> None:
        if listener in self.reset_listeners:
            self.reset_listeners.remove(listener)

    def step(self, move: Optional[int] = None) -> Tuple[Board, bool]:
        """
        Advance the game by one move.

        If no move is given the registered agent for the side to move picks one.

        Returns:
            Tuple of (new board, whether the game is over)
        """
        if self.game_over:
            return self.board, True

        if move is None and self.current_player in self.agent_callbacks:
            move = self.agent_callbacks[self.current_player](self.board, self.current_player)

        if move is None:
            raise ValueError("No move provided and no agent registered for the current player")

        self.apply_move(move)
        return self.board, self.game_over

    def run_game(self) -> Optional[Winner]:
        """
        Play until the game ends. Both sides need a registered agent.

        Returns:
            The winner (Player or DRAW)
        """
        for player in Player:
            if player not in self.agent_callbacks:
                raise ValueError(f"No agent registered for player {player}")

        while not self.game_over:
            self.step()
        return self.winner

    def get_game_statistics(self) -> Dict[str, Any]:
        return {
            "generation": self.generation,
            "moves": len(self.history),
            "result": self.result.name,
            "winner": None if self.winner is None else str(self.winner),
            "history": [(str(player), move) for player, move in self.history],
        }

    def __str__(self) -> str:
        text = board_to_string(self.board, separator="\n")
        if self.winner == DRAW:
            status = "Result: Draw"
        elif self.winner is not None:
            status = f"Winner: {self.winner}"
        else:
            status = f"{self.current_player} to move"
        return f"{text}\n{status}"
