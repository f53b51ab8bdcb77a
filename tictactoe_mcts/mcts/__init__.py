"""
Monte Carlo Tree Search (MCTS) engine for tic-tac-toe.

The engine chooses moves without any training. Each simulation runs:

1. Selection: Starting from the root, descend by UCB1 while nodes are fully
   expanded and the game is undecided.
2. Expansion: Add a child for one randomly chosen untried move.
3. Simulation: Play random moves from the new node to the end of the game.
4. Backpropagation: Update visit counts and rewards up to the root, flipping
   the perspective at every level.

Simulations are run in small batches by the BatchScheduler so a host can show
progress between batches, throttle the search, or cancel it.
"""

from tictactoe_mcts.mcts.config import MCTSConfig
from tictactoe_mcts.mcts.node import SearchNode, SearchTree
from tictactoe_mcts.mcts.search import (
    MCTSEngine,
    count_nodes,
    get_principal_variation,
    get_move_statistics
)
from tictactoe_mcts.mcts.scheduler import (
    BatchScheduler,
    SchedulerState,
    SearchHandle,
    SearchProgress,
    SearchResult,
    start_search
)
from tictactoe_mcts.mcts.agent import MCTSAgent, MCTSAgentFactory, RandomAgent

__all__ = [
    'MCTSConfig',
    'SearchNode',
    'SearchTree',
    'MCTSEngine',
    'count_nodes',
    'get_principal_variation',
    'get_move_statistics',
    'BatchScheduler',
    'SchedulerState',
    'SearchHandle',
    'SearchProgress',
    'SearchResult',
    'start_search',
    'MCTSAgent',
    'MCTSAgentFactory',
    'RandomAgent'
]
