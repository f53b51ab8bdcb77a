"""
Monte Carlo Tree Search nodes for tic-tac-toe.

This module defines the SearchNode class, which holds one game state and its
visit statistics, and the SearchTree arena that owns every node of a search.
Nodes refer to each other by integer index into the arena instead of by
object reference: a node stores the index of its parent and the indices of
its children, so the tree has no reference cycles and can be dumped to plain
dictionaries for debugging.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional
import math

from tictactoe_mcts.core.constants import Board, Player
from tictactoe_mcts.core.rules import GameRules, board_to_string
from tictactoe_mcts.errors import PreconditionViolation


@dataclass
class SearchNode:
    """
    A node in the Monte Carlo search tree.

    ``total_reward`` is accumulated from the point of view of the player who
    moved *into* this node, i.e. the opponent of ``player_to_move``.
    """
    index: int
    board: Board
    player_to_move: Player
    move: Optional[int] = None
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)
    untried_moves: List[int] = field(default_factory=list)
    terminal: bool = False

    # Node statistics
    visits: int = 0
    total_reward: float = 0.0

    def is_fully_expanded(self) -> bool:
        """True once every legal move has a child."""
        return not self.untried_moves

    def is_terminal(self) -> bool:
        """True if the game is decided at this node."""
        return self.terminal

    def is_root(self) -> bool:
        return self.parent is None

    def update(self, outcome: float) -> None:
        """
        Record one simulation passing through this node.

        Args:
            outcome: 0, 0.5 or 1 from the perspective of the player who moved
                into this node
        """
        self.visits += 1
        self.total_reward += outcome

    @property
    def value(self) -> float:
        """Mean reward, 0 for an unvisited node."""
        return self.total_reward / self.visits if self.visits else 0.0

    def __str__(self) -> str:
        return (f"SearchNode(index={self.index}, move={self.move}, "
                f"to_move={self.player_to_move}, "
                f"visits={self.visits}, "
                f"reward={self.total_reward:.2f}, "
                f"children={len(self.children)}, "
                f"untried={len(self.untried_moves)})")


class SearchTree:
    """
    Arena owning every node of one search.

    The root is always index 0. Nodes are only ever appended (one per
    expansion) and never removed; the whole tree is discarded when a new
    search begins.
    """

    ROOT: int = 0

    def __init__(self, board: Board, player_to_move: Player, rules: GameRules):
        """
        Create a tree holding a fresh root.

        Args:
            board: Board at the root; copied into the root node
            player_to_move: Side to move at the root, which is also the
                reference player simulations are scored for
            rules: Game rules used to detect terminal states and legal moves
        """
        self.rules = rules
        self.reference_player = player_to_move
        self.nodes: List[SearchNode] = []
        self._new_node(tuple(board), player_to_move, move=None, parent=None)

    def _new_node(
        self,
        board: Board,
        player_to_move: Player,
        move: Optional[int],
        parent: Optional[int],
    ) -> SearchNode:
        terminal = self.rules.winner(board) is not None
        node = SearchNode(
            index=len(self.nodes),
            board=board,
            player_to_move=player_to_move,
            move=move,
            parent=parent,
            untried_moves=[] if terminal else self.rules.legal_moves(board),
            terminal=terminal,
        )
        self.nodes.append(node)
        return node

    @property
    def root(self) -> SearchNode:
        return self.nodes[self.ROOT]

    def __getitem__(self, index: int) -> SearchNode:
        return self.nodes[index]

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[SearchNode]:
        return iter(self.nodes)

    def children(self, index: int) -> List[SearchNode]:
        """Child nodes of ``index`` in insertion order."""
        return [self.nodes[i] for i in self.nodes[index].children]

    def parent(self, index: int) -> Optional[SearchNode]:
        parent = self.nodes[index].parent
        return None if parent is None else self.nodes[parent]

    def ucb1(self, index: int, exploration_constant: float) -> float:
        """
        Calculate the UCB1 score of a node relative to its parent.

        UCB1 = mean_reward + c * sqrt(ln(parent_visits) / visits)

        An unvisited node scores infinity so every sibling is tried once
        before any of them is exploited.

        Raises:
            PreconditionViolation: For a visited root (it has no parent)
        """
        node = self.nodes[index]
        if node.visits == 0:
            return math.inf
        if node.parent is None:
            raise PreconditionViolation("UCB1 is undefined for the root node")

        parent_visits = self.nodes[node.parent].visits
        exploitation = node.total_reward / node.visits
        exploration = math.sqrt(math.log(parent_visits) / node.visits)
        return exploitation + exploration_constant * exploration

    def select_child(self, index: int, exploration_constant: float) -> int:
        """
        Select the child with the highest UCB1 score.

        Ties go to the child expanded first.

        Returns:
            Index of the selected child
        """
        children = self.nodes[index].children
        if not children:
            raise PreconditionViolation(f"Node {index} has no children to select from")
        return max(children, key=lambda child: self.ucb1(child, exploration_constant))

    def add_child(self, index: int, move: int) -> int:
        """
        Expand ``move`` from node ``index`` into a new child.

        The child's board is the parent's with ``move`` taken by the parent's
        side to move, and the opponent moves next.

        Returns:
            Index of the new child

        Raises:
            PreconditionViolation: If ``move`` is not an untried move
        """
        node = self.nodes[index]
        if move not in node.untried_moves:
            raise PreconditionViolation(
                f"Move {move} is not an untried move of node {index}: {node.untried_moves}"
            )

        board = self.rules.apply_move(node.board, move, node.player_to_move)
        node.untried_moves.remove(move)
        child = self._new_node(board, node.player_to_move.opponent, move=move, parent=index)
        node.children.append(child.index)
        return child.index

    def path_to_root(self, index: int) -> List[int]:
        """Indices from ``index`` up to and including the root."""
        path = []
        current: Optional[int] = index
        while current is not None:
            path.append(current)
            current = self.nodes[current].parent
        return path

    def depth(self, index: int) -> int:
        return len(self.path_to_root(index)) - 1

    def to_dict(self, max_depth: Optional[int] = None) -> Dict[str, Any]:
        """
        Export the tree as nested dictionaries.

        Args:
            max_depth: Stop descending below this depth (None = whole tree)

        Returns:
            JSON-serializable description of the root and its subtree
        """
        def export(index: int, depth: int) -> Dict[str, Any]:
            node = self.nodes[index]
            data: Dict[str, Any] = {
                "index": node.index,
                "move": node.move,
                "board": board_to_string(node.board),
                "player_to_move": node.player_to_move.value,
                "visits": node.visits,
                "total_reward": node.total_reward,
                "untried_moves": list(node.untried_moves),
                "terminal": node.terminal,
            }
            if max_depth is None or depth < max_depth:
                data["children"] = [export(child, depth + 1) for child in node.children]
            return data

        return export(self.ROOT, 0)
