"""
Monte Carlo Tree Search agents for tic-tac-toe.

This module provides the MCTSAgent class, a ready-to-use AI player that
chooses moves with batched MCTS, either synchronously or cooperatively on an
asyncio loop while a host renders progress. RandomAgent is the baseline
opponent used in evaluations.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple
import json
import random
import time

from tictactoe_mcts.core.constants import Board, Player
from tictactoe_mcts.core.game import Game
from tictactoe_mcts.core.rules import GameRules
from tictactoe_mcts.errors import MCTSError
from tictactoe_mcts.mcts.config import MCTSConfig
from tictactoe_mcts.mcts.scheduler import (
    BatchScheduler, SearchHandle, SearchProgress, SearchResult, start_search
)
from tictactoe_mcts.mcts.search import get_move_statistics, get_principal_variation
from tictactoe_mcts.mcts.node import SearchTree


class MCTSAgent:
    """
    Monte Carlo Tree Search agent for playing tic-tac-toe.

    Every decision builds a new tree from scratch; nothing is reused between
    moves.
    """

    def __init__(
        self,
        config: Optional[MCTSConfig] = None,
        name: str = "MCTS Agent",
        rules: Optional[GameRules] = None,
        rng: Optional[random.Random] = None,
        verbose: bool = False
    ):
        """
        Initialize an MCTS agent.

        Args:
            config: MCTS configuration parameters
            name: Name of the agent
            rules: Game rules (defaults to standard 3x3 tic-tac-toe)
            rng: Random source shared by all searches of this agent
            verbose: Whether to print a summary after each search
        """
        self.config = config or MCTSConfig()
        self.name = name
        self.rules = rules
        self.rng = rng or random.Random()
        self.verbose = verbose

        # Statistics from the most recent search
        self.last_result: Optional[SearchResult] = None
        self.last_tree: Optional[SearchTree] = None
        self.move_history: List[Tuple[int, Dict[str, Any]]] = []

        self._handle: Optional[SearchHandle] = None

    def select_move(self, board: Board, player: Player) -> int:
        """
        Choose a move by running the whole search synchronously.

        Args:
            board: Current board
            player: Side to play

        Returns:
            Selected cell index

        Raises:
            EmptyTreeError: If the board is already decided
        """
        scheduler = BatchScheduler(board, player, config=self.config, rules=self.rules, rng=self.rng)
        start_time = time.time()
        result = scheduler.run()
        self._record(result, scheduler.tree, time.time() - start_time)
        return result.final_move

    async def play_turn(
        self,
        game: Game,
        on_progress: Optional[Callable[[SearchProgress], None]] = None,
        on_error: Optional[Callable[[MCTSError], None]] = None,
    ) -> Optional[SearchResult]:
        """
        Search for the side to move in ``game`` and play the chosen move.

        Batches are interleaved with delays on the running event loop.
        Resetting the game cancels the search, so no further batches run and
        no move is applied to the new board.

        Args:
            game: Host game to move in
            on_progress: Called with progress after every batch
            on_error: Called with the error if the search fails

        Returns:
            The search result, or None if the search was cancelled or went stale
        """
        generation = game.generation
        self.cancel()

        start_time = time.time()
        handle = start_search(
            game.board, game.current_player, self.config,
            rules=self.rules, rng=self.rng, on_progress=on_progress, on_error=on_error,
        )
        self._handle = handle
        game.add_reset_listener(handle.cancel)
        try:
            result = await handle.wait()
        finally:
            game.remove_reset_listener(handle.cancel)
            if self._handle is handle:
                self._handle = None

        if result is None:
            return None
        self._record(result, handle.scheduler.tree, time.time() - start_time)
        if not game.apply_move(result.final_move, generation=generation):
            return None
        return result

    def cancel(self) -> None:
        """Cancel the in-flight cooperative search, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _record(self, result: SearchResult, tree: Optional[SearchTree], elapsed: float) -> None:
        stats = result.final_stats.to_dict()
        stats["time_elapsed"] = elapsed
        stats["error"] = result.error
        self.last_result = result
        self.last_tree = tree
        self.move_history.append((result.final_move, stats))

        if self.verbose:
            self._print_search_info(result, elapsed)

    def _print_search_info(self, result: SearchResult, elapsed: float) -> None:
        """
        Print information about the search.

        Args:
            result: Search result
            elapsed: Seconds spent searching
        """
        stats = result.final_stats
        print(f"\n{self.name} selected: {result.final_move}")
        print(f"Simulations: {stats.simulations_completed}/{stats.budget} in {elapsed:.3f}s")
        if result.degraded:
            print(f"Search failed, played a random move: {result.error}")

        print("\nTop moves:")
        ranked = sorted(stats.move_visit_fractions.items(), key=lambda x: x[1], reverse=True)
        for i, (move, fraction) in enumerate(ranked[:5]):
            print(f"{i+1}. cell {move} - {fraction:.1%} of visits")

    def get_action_callback(self) -> Callable[[Board, Player], int]:
        """
        Get a callback for registering this agent with a Game.

        Returns:
            Callback taking a board and a player and returning a move
        """
        return lambda board, player: self.select_move(board, player)

    def register_with_game(self, game: Game, player: Player) -> None:
        game.register_agent(player, self.get_action_callback())

    def get_principal_variation(self) -> List[Tuple[int, float]]:
        """Most visited line of the last search."""
        if self.last_tree is None:
            return []
        return get_principal_variation(self.last_tree)

    def get_move_statistics(self) -> Dict[int, Dict[str, Any]]:
        """Per-move statistics of the last search."""
        if self.last_tree is None:
            return {}
        return get_move_statistics(self.last_tree, self.config.exploration_constant)

    def reset_statistics(self) -> None:
        """Reset all statistics."""
        self.last_result = None
        self.last_tree = None
        self.move_history = []

    def save_statistics(self, filename: str) -> None:
        """
        Save the move history to a JSON file.

        Args:
            filename: Name of the file to save to
        """
        data = {
            "agent_name": self.name,
            "config": self.config.to_dict(),
            "history": [{"move": move, "stats": stats} for move, stats in self.move_history],
            "total_moves": len(self.move_history),
        }
        with open(filename, 'w') as f:
            json.dump(data, f, indent=2)

    def __str__(self) -> str:
        return f"{self.name} (MCTS, {self.config.simulation_budget} simulations)"


class RandomAgent:
    """Plays a uniformly random legal move."""

    def __init__(self, name: str = "Random Agent", rules: Optional[GameRules] = None,
                 rng: Optional[random.Random] = None):
        self.name = name
        self.rules = rules
        self.rng = rng or random.Random()

    def select_move(self, board: Board, player: Player) -> int:
        if self.rules is not None:
            moves = self.rules.legal_moves(board)
        else:
            moves = [i for i, cell in enumerate(board) if cell is None]
        if not moves:
            raise ValueError(f"No legal moves for player {player}")
        return self.rng.choice(moves)

    def get_action_callback(self) -> Callable[[Board, Player], int]:
        return lambda board, player: self.select_move(board, player)

    def __str__(self) -> str:
        return self.name


class MCTSAgentFactory:
    """
    Factory for creating MCTS agents of different strengths.
    """

    @staticmethod
    def create_fast(rng: Optional[random.Random] = None) -> MCTSAgent:
        return MCTSAgent(config=MCTSConfig.fast(), name="Fast MCTS", rng=rng)

    @staticmethod
    def create_standard(rng: Optional[random.Random] = None) -> MCTSAgent:
        return MCTSAgent(config=MCTSConfig.default(), name="Standard MCTS", rng=rng)

    @staticmethod
    def create_strong(rng: Optional[random.Random] = None) -> MCTSAgent:
        return MCTSAgent(config=MCTSConfig.strong(), name="Strong MCTS", rng=rng)

    @staticmethod
    def create_custom(
        simulations_per_move: int = 500,
        exploration_constant: float = 1.4,
        speed: int = 50,
        name: str = "Custom MCTS",
        rng: Optional[random.Random] = None,
    ) -> MCTSAgent:
        """
        Create a custom MCTS agent.

        Args:
            simulations_per_move: Requested simulations (clamped by the config)
            exploration_constant: UCB1 exploration parameter
            speed: Pacing for cooperative searches (0-100)
            name: Name of the agent
            rng: Random source

        Returns:
            MCTSAgent
        """
        config = MCTSConfig(
            simulations_per_move=simulations_per_move,
            exploration_constant=exploration_constant,
            speed=speed,
        )
        return MCTSAgent(config=config, name=name, rng=rng)
