"""
Monte Carlo Tree Search (MCTS) algorithm for tic-tac-toe.

This module implements the core MCTS algorithm with the four standard phases:
1. Selection: Descend by UCB1 while nodes are fully expanded and undecided
2. Expansion: Add one child for a random untried move
3. Simulation: Play uniformly random moves to the end of the game
4. Backpropagation: Update statistics up to the root, alternating perspective

The engine draws every random choice from an injected ``random.Random`` so a
seeded search is fully reproducible.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import logging
import random

from tictactoe_mcts.core.constants import Board, Player
from tictactoe_mcts.core.rules import GameRules, TicTacToeRules, outcome_for
from tictactoe_mcts.errors import EmptyTreeError
from tictactoe_mcts.mcts.config import MCTSConfig
from tictactoe_mcts.mcts.node import SearchNode, SearchTree

logger = logging.getLogger(__name__)


class MCTSEngine:
    """
    Runs MCTS simulations against a SearchTree.

    The engine itself holds no tree: every operation takes the tree it works
    on, so the scheduler decides which search a batch belongs to.
    """

    def __init__(
        self,
        config: Optional[MCTSConfig] = None,
        rules: Optional[GameRules] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: MCTS configuration parameters
            rules: Game rules (defaults to standard 3x3 tic-tac-toe)
            rng: Random source for expansion and rollouts
        """
        self.config = config or MCTSConfig()
        self.rules = rules or TicTacToeRules()
        self.rng = rng or random.Random()

    def new_tree(self, board: Board, player_to_move: Player) -> SearchTree:
        """Create a fresh tree rooted at ``board``; no tree is reused between moves."""
        return SearchTree(board, player_to_move, self.rules)

    def select(self, tree: SearchTree) -> int:
        """
        Selection phase: descend from the root by UCB1.

        Returns:
            Index of the first node that is terminal or not fully expanded
        """
        index = SearchTree.ROOT
        node = tree[index]
        while not node.is_terminal() and node.is_fully_expanded():
            index = tree.select_child(index, self.config.exploration_constant)
            node = tree[index]
        return index

    def expand(self, tree: SearchTree, index: int) -> int:
        """
        Expansion phase: add a child for a random untried move.

        Terminal nodes (and nodes without untried moves) are returned as-is.

        Returns:
            Index of the node to simulate from
        """
        node = tree[index]
        if node.is_terminal() or not node.untried_moves:
            return index
        move = self.rng.choice(node.untried_moves)
        return tree.add_child(index, move)

    def simulate(self, tree: SearchTree, index: int) -> float:
        """
        Simulation phase: random playout from a node.

        Returns:
            1.0 if the reference player wins, 0.0 if it loses, 0.5 for a draw
        """
        node = tree[index]
        board = list(node.board)
        player = node.player_to_move
        rules = self.rules

        winner = rules.winner(board)
        while winner is None:
            moves = rules.legal_moves(board)
            if not moves:
                break
            board[self.rng.choice(moves)] = player
            player = player.opponent
            winner = rules.winner(board)

        return outcome_for(winner, tree.reference_player)

    def backpropagate(self, tree: SearchTree, index: int, outcome: float) -> None:
        """
        Backpropagation phase: update ``index`` and every ancestor.

        ``outcome`` is scored for the player who moved into ``index``; it is
        flipped (``1 - outcome``) at each step up since consecutive levels
        belong to opposing players.
        """
        current: Optional[int] = index
        while current is not None:
            node = tree[current]
            node.update(outcome)
            outcome = 1.0 - outcome
            current = node.parent

    def run_simulation(self, tree: SearchTree) -> int:
        """
        Run one full select/expand/simulate/backpropagate step.

        Returns:
            Index of the node the simulation was absorbed at
        """
        index = self.expand(tree, self.select(tree))
        outcome = self.simulate(tree, index)

        # Rollouts are scored for the reference player; re-score them for the
        # player who moved into the absorbing node.
        if tree[index].player_to_move is tree.reference_player:
            outcome = 1.0 - outcome

        self.backpropagate(tree, index, outcome)
        return index

    def run(self, tree: SearchTree, simulations: int) -> int:
        """
        Run ``simulations`` steps against ``tree``.

        Returns:
            Number of simulations executed
        """
        for _ in range(simulations):
            self.run_simulation(tree)
        return simulations

    def best_move(self, tree: SearchTree) -> int:
        """
        Get the root move with the most visits.

        Visit count is used rather than mean reward because it is robust to
        high-variance estimates of rarely visited moves. Ties go to the child
        expanded first.

        Raises:
            EmptyTreeError: If the root has no children
        """
        children = tree.children(SearchTree.ROOT)
        if not children:
            raise EmptyTreeError()
        return max(children, key=lambda child: child.visits).move

    def current_best_move(self, tree: SearchTree) -> Optional[int]:
        """Like ``best_move`` but returns None for an empty tree."""
        try:
            return self.best_move(tree)
        except EmptyTreeError:
            return None

    def move_visit_fractions(self, tree: SearchTree) -> Dict[int, float]:
        """
        Share of all search effort spent on each legal root move.

        Child visits are divided by the root's visit count. Legal moves not
        expanded yet report 0.0.

        Returns:
            Mapping of cell index to a fraction in [0, 1]
        """
        root = tree.root
        fractions = {move: 0.0 for move in self.rules.legal_moves(root.board)}
        if root.visits == 0:
            return fractions
        for child in tree.children(SearchTree.ROOT):
            fractions[child.move] = child.visits / root.visits
        return fractions

    def search(self, board: Board, player_to_move: Player, simulations: Optional[int] = None) -> Tuple[int, SearchTree]:
        """
        Run a complete search synchronously.

        Args:
            board: Board to move on
            player_to_move: Side the engine plays
            simulations: Number of simulations (default: the config budget)

        Returns:
            Tuple of (best move, search tree)
        """
        if simulations is None:
            simulations = self.config.simulation_budget
        tree = self.new_tree(board, player_to_move)
        self.run(tree, simulations)
        logger.debug("Search of %d simulations grew %d nodes", simulations, len(tree))
        return self.best_move(tree), tree


def count_nodes(tree: SearchTree, index: int = SearchTree.ROOT) -> int:
    """
    Count the nodes in the subtree rooted at ``index``.

    Args:
        tree: Search tree
        index: Subtree root

    Returns:
        Total number of nodes
    """
    count = 1
    for child in tree[index].children:
        count += count_nodes(tree, child)
    return count


def get_principal_variation(tree: SearchTree, max_depth: int = 9) -> List[Tuple[int, float]]:
    """
    Get the principal variation (most visited path) from the root.

    This is useful for analysis and debugging.

    Args:
        tree: Search tree
        max_depth: Maximum depth to explore

    Returns:
        List of (move, value) pairs along the most visited path
    """
    result = []
    current: SearchNode = tree.root
    depth = 0

    while current.children and depth < max_depth:
        best_child = max(tree.children(current.index), key=lambda c: c.visits)
        result.append((best_child.move, best_child.value))
        current = best_child
        depth += 1

    return result


def get_move_statistics(tree: SearchTree, exploration_constant: float) -> Dict[int, Dict[str, Any]]:
    """
    Get statistics for every expanded root move.

    Args:
        tree: Search tree
        exploration_constant: UCB1 constant to report scores with

    Returns:
        Dictionary mapping moves to visits, total reward, mean value and UCB1
    """
    result = {}
    for child in tree.children(SearchTree.ROOT):
        result[child.move] = {
            "visits": child.visits,
            "reward": child.total_reward,
            "value": child.value,
            "ucb1": tree.ucb1(child.index, exploration_constant),
        }
    return result
