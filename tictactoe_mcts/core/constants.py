"""
Constants for the tic-tac-toe game.

This module defines the player marks, the draw marker and the board geometry
used throughout the engine, including the precomputed winning lines.
"""
from enum import Enum
from typing import Final, List, Literal, Optional, Tuple, Union


class Player(Enum):
    """Enum representing the two sides of the game."""
    X = "X"
    O = "O"

    @property
    def opponent(self) -> "Player":
        """The side that moves after this one."""
        return Player.O if self is Player.X else Player.X

    def __str__(self) -> str:
        return self.value


# Winner value for a full board without a line
DRAW: Final = "draw"

# Type aliases
Cell = Optional[Player]
Board = Tuple[Cell, ...]
Winner = Union[Player, Literal["draw"]]

# Standard board geometry
BOARD_SIDE: Final[int] = 3
BOARD_SIZE: Final[int] = BOARD_SIDE * BOARD_SIDE

# Characters used when reading/writing boards as text
EMPTY_SYMBOL: Final[str] = "."
SYMBOLS: Final[Tuple[str, ...]] = (EMPTY_SYMBOL, "-", "_")


def winning_lines(side: int) -> List[Tuple[int, ...]]:
    """
    Build every winning line for a side x side board.

    Args:
        side: Length of a board side

    Returns:
        Rows, then columns, then the two diagonals, as tuples of cell indices
    """
    rows = [tuple(r * side + c for c in range(side)) for r in range(side)]
    cols = [tuple(r * side + c for r in range(side)) for c in range(side)]
    diagonals = [
        tuple(i * side + i for i in range(side)),
        tuple(i * side + (side - 1 - i) for i in range(side)),
    ]
    return rows + cols + diagonals


WIN_LINES: Final[List[Tuple[int, ...]]] = winning_lines(BOARD_SIDE)
