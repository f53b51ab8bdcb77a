"""
Exceptions raised by the tic-tac-toe MCTS engine.

Contract violations (``PreconditionViolation``) and empty-tree lookups
(``EmptyTreeError``) indicate caller or logic bugs and always propagate.
Any other exception raised while a batch of simulations runs is treated as a
runtime fault and recovered by the scheduler's random-move fallback.
"""


class MCTSError(Exception):
    """Base class for all engine errors."""


class PreconditionViolation(MCTSError, ValueError):
    """A caller broke an operation's precondition (illegal move, bad state)."""


class EmptyTreeError(MCTSError, LookupError):
    """A best move was requested from a root that has no children."""

    def __init__(self, message: str = "Search tree has no expanded moves"):
        super().__init__(message)
