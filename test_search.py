#!/usr/bin/env python
"""
Tests for the MCTS engine: the four phases, best-move extraction and the
end-to-end behaviour of complete searches.
"""
import random
import unittest

from tictactoe_mcts.core.constants import Player
from tictactoe_mcts.core.rules import TicTacToeRules, board_from_string, empty_board
from tictactoe_mcts.errors import EmptyTreeError
from tictactoe_mcts.mcts.config import MCTSConfig
from tictactoe_mcts.mcts.node import SearchTree
from tictactoe_mcts.mcts.search import (
    MCTSEngine, count_nodes, get_move_statistics, get_principal_variation
)

# O has 0 and 1, so 2 wins on the spot
FORCED_WIN = "OO.|XX.|..X"


def make_engine(seed: int = 0, **config_kwargs) -> MCTSEngine:
    return MCTSEngine(config=MCTSConfig(**config_kwargs), rng=random.Random(seed))


class TestPhases(unittest.TestCase):
    """Test case for the individual MCTS phases."""

    def setUp(self):
        self.rules = TicTacToeRules()
        self.engine = make_engine()

    def test_select_stops_at_unexpanded_root(self):
        tree = self.engine.new_tree(empty_board(), Player.X)
        self.assertEqual(self.engine.select(tree), SearchTree.ROOT)

    def test_select_descends_fully_expanded_nodes(self):
        tree = self.engine.new_tree(board_from_string("XOX|OXO|O.."), Player.X)
        first = tree.add_child(SearchTree.ROOT, 7)
        second = tree.add_child(SearchTree.ROOT, 8)
        tree.root.visits = 2
        tree[first].visits = 1
        tree[first].total_reward = 0.0
        tree[second].visits = 1
        tree[second].total_reward = 1.0
        self.assertEqual(self.engine.select(tree), second)

    def test_expand_adds_one_untried_child(self):
        tree = self.engine.new_tree(empty_board(), Player.X)
        index = self.engine.expand(tree, SearchTree.ROOT)
        self.assertNotEqual(index, SearchTree.ROOT)
        self.assertEqual(len(tree), 2)
        self.assertEqual(len(tree.root.untried_moves), 8)
        self.assertNotIn(tree[index].move, tree.root.untried_moves)

    def test_expand_terminal_node_is_noop(self):
        tree = self.engine.new_tree(board_from_string("XXX|OO.|..."), Player.O)
        self.assertEqual(self.engine.expand(tree, SearchTree.ROOT), SearchTree.ROOT)
        self.assertEqual(len(tree), 1)

    def test_simulate_outcome_mapping(self):
        x_wins = board_from_string("XXX|OO.|...")
        draw = board_from_string("XOX|XOO|OXX")

        self.assertEqual(self.engine.simulate(self.engine.new_tree(x_wins, Player.X), 0), 1.0)
        self.assertEqual(self.engine.simulate(self.engine.new_tree(x_wins, Player.O), 0), 0.0)
        self.assertEqual(self.engine.simulate(self.engine.new_tree(draw, Player.O), 0), 0.5)

    def test_simulate_returns_valid_outcomes(self):
        tree = self.engine.new_tree(empty_board(), Player.X)
        for _ in range(50):
            self.assertIn(self.engine.simulate(tree, SearchTree.ROOT), (0.0, 0.5, 1.0))
        # the rollout works on a copy
        self.assertEqual(tree.root.board, empty_board())

    def test_backpropagation_alternates(self):
        tree = self.engine.new_tree(empty_board(), Player.X)
        child = tree.add_child(SearchTree.ROOT, 0)
        grandchild = tree.add_child(child, 4)

        self.engine.backpropagate(tree, grandchild, 1.0)
        self.assertEqual(tree[grandchild].total_reward, 1.0)
        self.assertEqual(tree[child].total_reward, 0.0)
        self.assertEqual(tree.root.total_reward, 1.0)

        self.engine.backpropagate(tree, grandchild, 0.0)
        self.assertEqual(tree[grandchild].total_reward, 1.0)
        self.assertEqual(tree[child].total_reward, 1.0)
        self.assertEqual(tree.root.total_reward, 1.0)

        for index in (grandchild, child, SearchTree.ROOT):
            self.assertEqual(tree[index].visits, 2)

    def test_rewards_are_scored_for_the_player_who_moved_in(self):
        engine = make_engine(seed=3)
        tree = engine.new_tree(board_from_string(FORCED_WIN), Player.O)
        engine.run(tree, 100)
        winning_child = next(c for c in tree.children(SearchTree.ROOT) if c.move == 2)
        self.assertTrue(winning_child.is_terminal())
        self.assertGreater(winning_child.visits, 0)
        self.assertEqual(winning_child.total_reward, winning_child.visits)


class TestBestMove(unittest.TestCase):
    """Test case for best-move extraction and reported statistics."""

    def setUp(self):
        self.engine = make_engine()

    def test_most_visited_child_wins(self):
        tree = self.engine.new_tree(empty_board(), Player.X)
        a = tree.add_child(SearchTree.ROOT, 0)
        b = tree.add_child(SearchTree.ROOT, 4)
        tree[a].visits, tree[a].total_reward = 3, 3.0
        tree[b].visits, tree[b].total_reward = 5, 1.0
        self.assertEqual(self.engine.best_move(tree), 4)

    def test_ties_go_to_first_child(self):
        tree = self.engine.new_tree(empty_board(), Player.X)
        for move in (6, 2, 4):
            tree[tree.add_child(SearchTree.ROOT, move)].visits = 3
        self.assertEqual(self.engine.best_move(tree), 6)

    def test_empty_tree_has_no_best_move(self):
        tree = self.engine.new_tree(empty_board(), Player.X)
        with self.assertRaises(EmptyTreeError):
            self.engine.best_move(tree)
        self.assertIsNone(self.engine.current_best_move(tree))

    def test_terminal_root_raises(self):
        board = board_from_string("XXX|OO.|...")
        with self.assertRaises(EmptyTreeError):
            self.engine.search(board, Player.O, simulations=30)

        tree = self.engine.new_tree(board, Player.O)
        self.engine.run(tree, 30)
        self.assertEqual(tree.root.visits, 30)
        self.assertEqual(tree.root.children, [])

    def test_visit_fractions(self):
        board = board_from_string("X..|...|...")
        tree = self.engine.new_tree(board, Player.O)
        fractions = self.engine.move_visit_fractions(tree)
        self.assertEqual(sorted(fractions), list(range(1, 9)))
        self.assertTrue(all(f == 0.0 for f in fractions.values()))

        self.engine.run(tree, 120)
        fractions = self.engine.move_visit_fractions(tree)
        self.assertEqual(sorted(fractions), list(range(1, 9)))
        self.assertAlmostEqual(sum(fractions.values()), 1.0)
        for child in tree.children(SearchTree.ROOT):
            self.assertAlmostEqual(fractions[child.move], child.visits / tree.root.visits)

    def test_analysis_helpers(self):
        tree = self.engine.new_tree(empty_board(), Player.X)
        self.engine.run(tree, 100)
        self.assertEqual(count_nodes(tree), len(tree))

        variation = get_principal_variation(tree)
        self.assertGreater(len(variation), 0)
        self.assertEqual(variation[0][0], self.engine.best_move(tree))

        stats = get_move_statistics(tree, 1.4)
        self.assertEqual(sum(s["visits"] for s in stats.values()), 100)
        for s in stats.values():
            self.assertGreaterEqual(s["ucb1"], s["value"])


class TestSearchTreeConsistency(unittest.TestCase):
    """Test case for whole-tree consistency after a search."""

    def setUp(self):
        self.engine = make_engine(seed=11)
        self.tree = self.engine.new_tree(empty_board(), Player.X)
        self.engine.run(self.tree, 300)

    def test_root_visits_equal_simulations(self):
        self.assertEqual(self.tree.root.visits, 300)
        self.assertEqual(sum(c.visits for c in self.tree.children(SearchTree.ROOT)), 300)

    def test_visit_conservation(self):
        for node in self.tree:
            child_visits = sum(c.visits for c in self.tree.children(node.index))
            if node.is_root():
                self.assertEqual(node.visits, child_visits)
            elif node.is_terminal():
                self.assertEqual(child_visits, 0)
            else:
                # the simulation that created the node was absorbed by it
                self.assertEqual(node.visits, child_visits + 1)

    def test_board_consistency(self):
        rules = TicTacToeRules()
        for node in self.tree:
            if node.is_root():
                continue
            parent = self.tree[node.parent]
            changed = [i for i in range(9) if node.board[i] != parent.board[i]]
            self.assertEqual(changed, [node.move])
            self.assertIsNone(parent.board[node.move])
            self.assertIs(node.board[node.move], parent.player_to_move)
            self.assertIs(node.player_to_move, parent.player_to_move.opponent)

            child_moves = {c.move for c in self.tree.children(node.index)}
            self.assertEqual(child_moves & set(node.untried_moves), set())
            self.assertEqual(child_moves | set(node.untried_moves), set(rules.legal_moves(node.board))
                             if not node.is_terminal() else set())

    def test_one_node_per_simulation_at_most(self):
        self.assertLessEqual(len(self.tree), 301)


class TestEndToEnd(unittest.TestCase):
    """Test case for complete searches."""

    def test_deterministic_under_fixed_seed(self):
        board = board_from_string("X..|.O.|...")
        move_a, tree_a = make_engine(seed=5).search(board, Player.X, simulations=200)
        move_b, tree_b = make_engine(seed=5).search(board, Player.X, simulations=200)
        self.assertEqual(move_a, move_b)
        self.assertEqual(tree_a.to_dict(), tree_b.to_dict())

    def test_forced_win_is_found(self):
        board = board_from_string(FORCED_WIN)
        for simulations in (50, 200):
            for seed in range(5):
                move, _ = make_engine(seed=seed).search(board, Player.O, simulations=simulations)
                self.assertEqual(move, 2, f"seed={seed} simulations={simulations}")

    def test_empty_board_moves_are_legal(self):
        board = empty_board()
        for seed in range(5):
            engine = make_engine(seed=seed, simulations_per_move=500)
            move, tree = engine.search(board, Player.O)
            self.assertIn(move, range(9))
            self.assertIsNone(board[move])
            self.assertEqual(tree.root.visits, 500)

    def test_center_draws_most_effort_on_empty_board(self):
        fractions = []
        for seed in range(10):
            engine = make_engine(seed=seed, simulations_per_move=500)
            _, tree = engine.search(empty_board(), Player.X)
            fractions.append(engine.move_visit_fractions(tree))

        def mean_fraction(move):
            return sum(f[move] for f in fractions) / len(fractions)

        # edges are the weakest openings
        for edge in (1, 3, 5, 7):
            self.assertGreater(mean_fraction(4), mean_fraction(edge), f"edge={edge}")
        self.assertGreater(mean_fraction(4), 1 / 9)

    def test_moves_are_legal_on_partial_boards(self):
        board = board_from_string("XO.|.X.|...")
        for seed in range(5):
            move, _ = make_engine(seed=seed).search(board, Player.O, simulations=100)
            self.assertIsNone(board[move])


if __name__ == "__main__":
    unittest.main()
