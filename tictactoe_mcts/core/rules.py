"""
Game rules consumed by the search engine.

The engine only needs two pure queries over a board: who (if anyone) has won,
and which cells are still playable. ``GameRules`` is the abstract contract;
``TicTacToeRules`` implements it for N x N boards where a full row, column or
diagonal wins.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple

from tictactoe_mcts.core.constants import (
    BOARD_SIDE, DRAW, EMPTY_SYMBOL, SYMBOLS, Board, Player, Winner, winning_lines
)
from tictactoe_mcts.errors import PreconditionViolation


class GameRules(ABC):
    """Pure, side-effect free rules of a two-player alternating game."""

    @abstractmethod
    def winner(self, board: Board) -> Optional[Winner]:
        """
        Determine the result of a board.

        Returns:
            None if undecided, the winning Player, or DRAW
        """

    @abstractmethod
    def legal_moves(self, board: Board) -> List[int]:
        """Return the playable cell indices in ascending order."""

    def is_terminal(self, board: Board) -> bool:
        return self.winner(board) is not None

    def apply_move(self, board: Board, move: int, player: Player) -> Board:
        """
        Return a new board with ``move`` taken by ``player``.

        Raises:
            PreconditionViolation: If the cell is out of range or occupied
        """
        if not 0 <= move < len(board):
            raise PreconditionViolation(f"Move {move} is outside the board")
        if board[move] is not None:
            raise PreconditionViolation(f"Cell {move} is already taken by {board[move]}")
        return board[:move] + (player,) + board[move + 1:]


class TicTacToeRules(GameRules):
    """Rules for an N x N board won by completing a full line."""

    def __init__(self, side: int = BOARD_SIDE):
        if side < 1:
            raise ValueError("side must be positive")
        self.side = side
        self.size = side * side
        self.lines: List[Tuple[int, ...]] = winning_lines(side)

    def winner(self, board: Board) -> Optional[Winner]:
        for line in self.lines:
            first = board[line[0]]
            if first is not None and all(board[i] is first for i in line[1:]):
                return first
        return None if None in board else DRAW

    def legal_moves(self, board: Board) -> List[int]:
        return [i for i, cell in enumerate(board) if cell is None]

    def empty_board(self) -> Board:
        return empty_board(self.side)

    def __repr__(self) -> str:
        return f"TicTacToeRules(side={self.side})"


def empty_board(side: int = BOARD_SIDE) -> Board:
    """Create an empty side x side board."""
    return (None,) * (side * side)


_CHAR_TO_CELL: Dict[str, Optional[Player]] = {
    **{symbol: None for symbol in SYMBOLS},
    "X": Player.X,
    "x": Player.X,
    "O": Player.O,
    "o": Player.O,
}


def board_from_string(text: str) -> Board:
    """
    Parse a board written row by row, e.g. ``"XX.|.O.|..O"``.

    Whitespace, newlines and ``|`` separators are ignored; ``.``, ``-`` and
    ``_`` mark empty cells.

    Raises:
        ValueError: On unknown characters or a non-square cell count
    """
    cells = [ch for ch in text.replace("|", "").replace("\n", "") if not ch.isspace()]
    try:
        board = tuple(_CHAR_TO_CELL[ch] for ch in cells)
    except KeyError as e:
        raise ValueError(f"Unknown board character: {e.args[0]!r}") from None

    side = int(round(len(board) ** 0.5))
    if side * side != len(board) or side == 0:
        raise ValueError(f"Board must be square, got {len(board)} cells")
    return board


def board_to_string(board: Sequence[Optional[Player]], separator: str = "|") -> str:
    """Inverse of ``board_from_string``: rows joined by ``separator``."""
    side = int(round(len(board) ** 0.5))
    chars = [EMPTY_SYMBOL if cell is None else cell.value for cell in board]
    return separator.join("".join(chars[r * side:(r + 1) * side]) for r in range(side))


def outcome_for(winner: Optional[Winner], player: Player) -> float:
    """
    Score a finished game from ``player``'s point of view.

    Returns:
        1.0 for a win, 0.0 for a loss, 0.5 for a draw (or an undecided board
        with no moves left)
    """
    if winner is player:
        return 1.0
    if winner is None or winner == DRAW:
        return 0.5
    return 0.0
