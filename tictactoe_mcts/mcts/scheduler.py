"""
Batched, cancellable execution of an MCTS search.

The BatchScheduler slices one search into fixed-size batches of simulations.
After every batch it produces a SearchProgress snapshot, and once the budget
is spent it finalizes with a SearchResult carrying the chosen move. It is a
small state machine:

    IDLE --start()--> RUNNING --finalize()--> DONE
                         |
                      cancel()
                         v
                     CANCELLED

Every batch and the finalize step take the generation token returned by
``start()``. Cancelling bumps the generation, so a continuation scheduled for
an old generation becomes a no-op instead of applying a stale move.

``start_search`` wraps a scheduler in an asyncio task that sleeps between
batches, giving the host a chance to render progress or cancel.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, Optional
import asyncio
import logging
import random

from tictactoe_mcts.core.constants import Board, Player
from tictactoe_mcts.core.rules import GameRules
from tictactoe_mcts.errors import EmptyTreeError, MCTSError, PreconditionViolation
from tictactoe_mcts.mcts.config import MCTSConfig
from tictactoe_mcts.mcts.node import SearchTree
from tictactoe_mcts.mcts.search import MCTSEngine

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    """Lifecycle of one scheduled search."""
    IDLE = auto()
    RUNNING = auto()
    CANCELLED = auto()
    DONE = auto()


@dataclass
class SearchProgress:
    """Snapshot reported after every batch."""
    simulations_completed: int
    budget: int
    move_visit_fractions: Dict[int, float] = field(default_factory=dict)
    current_best_move: Optional[int] = None
    phase: str = "simulation"

    @property
    def complete(self) -> bool:
        return self.simulations_completed >= self.budget

    def to_dict(self) -> Dict[str, Any]:
        return {
            "simulations_completed": self.simulations_completed,
            "budget": self.budget,
            "move_visit_fractions": dict(self.move_visit_fractions),
            "current_best_move": self.current_best_move,
            "phase": self.phase,
        }


@dataclass
class SearchResult:
    """
    Terminal event of a search.

    ``error`` is None for a normal result. When a batch failed it holds the
    reason, and ``final_move`` is a random legal move the host should still
    play.
    """
    final_move: int
    final_stats: SearchProgress
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.error is not None


class BatchScheduler:
    """
    Drives an MCTSEngine over one search in bounded batches.

    The scheduler exclusively owns the search tree while it runs. Batches
    must be issued one after another; nothing here is safe for concurrent
    writers.
    """

    def __init__(
        self,
        board: Board,
        player_to_move: Player,
        config: Optional[MCTSConfig] = None,
        rules: Optional[GameRules] = None,
        rng: Optional[random.Random] = None,
        engine: Optional[MCTSEngine] = None,
    ):
        """
        Initialize a scheduler for one move decision.

        Args:
            board: Board the engine must move on
            player_to_move: Side the engine plays
            config: MCTS configuration parameters
            rules: Game rules (ignored when ``engine`` is given)
            rng: Random source (ignored when ``engine`` is given)
            engine: Preconfigured engine to drive
        """
        self.engine = engine or MCTSEngine(config=config, rules=rules, rng=rng)
        self.config = config or self.engine.config
        self.board = tuple(board)
        self.player_to_move = player_to_move

        self.budget = self.config.simulation_budget
        self.batch_size = self.config.batch_size

        self.state = SchedulerState.IDLE
        self.generation = 0
        self.tree: Optional[SearchTree] = None
        self.simulations_completed = 0
        self.fault: Optional[str] = None

    @property
    def remaining(self) -> int:
        return max(0, self.budget - self.simulations_completed)

    @property
    def exhausted(self) -> bool:
        return self.fault is not None or self.simulations_completed >= self.budget

    def is_current(self, generation: int) -> bool:
        """True if ``generation`` belongs to the running search."""
        return self.state is SchedulerState.RUNNING and generation == self.generation

    def start(self) -> int:
        """
        Build a fresh root and enter RUNNING.

        Returns:
            Generation token to pass to ``run_batch`` and ``finalize``

        Raises:
            PreconditionViolation: If the board is undecided but has no legal moves
        """
        rules = self.engine.rules
        if rules.winner(self.board) is None and not rules.legal_moves(self.board):
            raise PreconditionViolation("Board is undecided but has no legal moves")

        self.generation += 1
        self.tree = self.engine.new_tree(self.board, self.player_to_move)
        self.simulations_completed = 0
        self.fault = None
        self.state = SchedulerState.RUNNING
        logger.debug("Search generation %d started for %s (budget %d)",
                     self.generation, self.player_to_move, self.budget)
        return self.generation

    def run_batch(self, generation: int) -> Optional[SearchProgress]:
        """
        Run up to ``min(batch_size, remaining)`` simulations.

        Unexpected exceptions abort the rest of the budget and are recorded in
        ``fault``; engine contract violations propagate.

        Returns:
            Progress snapshot, or None if ``generation`` is stale
        """
        if not self.is_current(generation):
            return None

        count = min(self.batch_size, self.remaining)
        try:
            for _ in range(count):
                self.engine.run_simulation(self.tree)
                self.simulations_completed += 1
        except MCTSError:
            raise
        except Exception as e:
            logger.warning("Batch failed after %d simulations: %s",
                           self.simulations_completed, e, exc_info=True)
            self.fault = f"{type(e).__name__}: {e}"

        logger.debug("Batch done: %d/%d simulations", self.simulations_completed, self.budget)
        return self.progress()

    def progress(self) -> SearchProgress:
        """Snapshot of the running search."""
        if self.tree is None:
            return SearchProgress(self.simulations_completed, self.budget, phase="cancelled")
        phase = "error" if self.fault else ("complete" if self.state is SchedulerState.DONE else "simulation")
        return SearchProgress(
            simulations_completed=self.simulations_completed,
            budget=self.budget,
            move_visit_fractions=self.engine.move_visit_fractions(self.tree),
            current_best_move=self.engine.current_best_move(self.tree),
            phase=phase,
        )

    def finalize(self, generation: int) -> Optional[SearchResult]:
        """
        Finish the search and pick the move to play.

        Returns:
            The result, or None if ``generation`` is stale

        Raises:
            EmptyTreeError: If the root has no children (board already decided)
        """
        if not self.is_current(generation):
            return None

        self.state = SchedulerState.DONE
        if self.fault is not None:
            moves = self.engine.rules.legal_moves(self.tree.root.board)
            if self.tree.root.is_terminal() or not moves:
                raise EmptyTreeError(f"No legal move to fall back to after fault: {self.fault}")
            move = self.engine.rng.choice(moves)
            logger.warning("Falling back to random move %d after fault: %s", move, self.fault)
            return SearchResult(final_move=move, final_stats=self.progress(), error=self.fault)

        move = self.engine.best_move(self.tree)
        logger.debug("Search generation %d chose move %d", generation, move)
        return SearchResult(final_move=move, final_stats=self.progress())

    def cancel(self) -> None:
        """Abandon the search; pending batches of this generation become no-ops."""
        if self.state in (SchedulerState.DONE, SchedulerState.CANCELLED):
            return
        self.generation += 1
        self.state = SchedulerState.CANCELLED
        self.tree = None
        logger.debug("Search cancelled (now generation %d)", self.generation)

    def run(self, on_progress: Optional[Callable[[SearchProgress], None]] = None) -> SearchResult:
        """
        Run the whole search synchronously, without delays between batches.

        Args:
            on_progress: Called with the snapshot after every batch

        Returns:
            Final result
        """
        generation = self.start()
        while not self.exhausted:
            progress = self.run_batch(generation)
            if on_progress is not None:
                on_progress(progress)
        return self.finalize(generation)


class SearchHandle:
    """
    A search running as an asyncio task.

    Progress and completion are delivered through the callbacks given to
    ``start_search``. A search that fails with an MCTSError reports it to
    ``on_error`` instead of ``on_complete``. ``wait()`` returns the final
    result, or None if the search was cancelled.
    """

    def __init__(
        self,
        scheduler: BatchScheduler,
        on_progress: Optional[Callable[[SearchProgress], None]] = None,
        on_complete: Optional[Callable[[SearchResult], None]] = None,
        on_error: Optional[Callable[[MCTSError], None]] = None,
    ):
        self.scheduler = scheduler
        self.on_progress = on_progress
        self.on_complete = on_complete
        self.on_error = on_error
        self.generation = scheduler.start()
        self.result: Optional[SearchResult] = None
        self.error: Optional[MCTSError] = None
        self._task = asyncio.get_running_loop().create_task(self._drive())

    async def _drive(self) -> Optional[SearchResult]:
        try:
            return await self._run()
        except MCTSError as e:
            logger.warning("Search generation %d failed: %s", self.generation, e)
            self.error = e
            if self.on_error is not None:
                self.on_error(e)
            raise

    async def _run(self) -> Optional[SearchResult]:
        config = self.scheduler.config
        await asyncio.sleep(config.initial_delay_ms / 1000)

        while True:
            progress = self.scheduler.run_batch(self.generation)
            if progress is None:
                return None
            if self.on_progress is not None:
                self.on_progress(progress)
            if self.scheduler.exhausted:
                break
            await asyncio.sleep(config.batch_delay_ms / 1000)

        result = self.scheduler.finalize(self.generation)
        if result is None:
            return None
        self.result = result
        if self.on_complete is not None:
            self.on_complete(result)
        return result

    def cancel(self) -> None:
        """Cancel the search. Any scheduled continuation becomes a no-op."""
        self.scheduler.cancel()

    @property
    def cancelled(self) -> bool:
        return self.scheduler.state is SchedulerState.CANCELLED

    def done(self) -> bool:
        return self._task.done()

    async def wait(self) -> Optional[SearchResult]:
        """
        Wait for the search to finish.

        Returns:
            Final result, or None if the search was cancelled

        Raises:
            EmptyTreeError: If the root board was already decided
        """
        return await self._task


def start_search(
    board: Board,
    player_to_move: Player,
    config: Optional[MCTSConfig] = None,
    *,
    rules: Optional[GameRules] = None,
    rng: Optional[random.Random] = None,
    on_progress: Optional[Callable[[SearchProgress], None]] = None,
    on_complete: Optional[Callable[[SearchResult], None]] = None,
    on_error: Optional[Callable[[MCTSError], None]] = None,
) -> SearchHandle:
    """
    Start a search on the running event loop.

    Args:
        board: Board to move on
        player_to_move: Side the engine plays
        config: MCTS configuration parameters
        rules: Game rules (defaults to standard 3x3 tic-tac-toe)
        rng: Random source, for reproducible searches
        on_progress: Called with a SearchProgress after every batch
        on_complete: Called with the SearchResult once the budget is spent
        on_error: Called with the MCTSError if the search fails

    Returns:
        Handle to cancel or await the search

    Raises:
        PreconditionViolation: If the board is undecided but has no legal moves
    """
    scheduler = BatchScheduler(board, player_to_move, config=config, rules=rules, rng=rng)
    return SearchHandle(scheduler, on_progress=on_progress, on_complete=on_complete,
                        on_error=on_error)
