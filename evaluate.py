#!/usr/bin/env python
"""
Evaluate the MCTS engine over a series of games.

The engine plays a baseline (random mover or a second MCTS agent), swapping
sides every game so it moves first half of the time.

Example usage:
    # 100 games against a random mover
    python evaluate.py --games 100

    # Self-play between two budgets
    python evaluate.py --opponent mcts --simulations 500 --opponent-simulations 50
"""
import argparse
import logging
import random
from typing import Any, Dict

import numpy as np
from tqdm import tqdm

from tictactoe_mcts.core.constants import DRAW, Player
from tictactoe_mcts.core.game import Game
from tictactoe_mcts.mcts.agent import MCTSAgent, RandomAgent
from tictactoe_mcts.mcts.config import MCTSConfig


def parse_args():
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Evaluate the MCTS tic-tac-toe engine")
    parser.add_argument("--games", type=int, default=50,
                        help="Number of games to play")
    parser.add_argument("--opponent", type=str, default="random",
                        choices=["random", "mcts"],
                        help="Baseline opponent")
    parser.add_argument("--simulations", type=int, default=500,
                        help="Simulations per move for the evaluated engine")
    parser.add_argument("--opponent-simulations", type=int, default=50,
                        help="Simulations per move for an MCTS opponent")
    parser.add_argument("--exploration", type=float, default=1.4,
                        help="UCB1 exploration constant")
    parser.add_argument("--seed", type=int, default=0,
                        help="Random seed")
    parser.add_argument("--log-level", type=str, default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")
    return parser.parse_args()


def evaluate_agent(agent: MCTSAgent, opponent, num_games: int = 50) -> Dict[str, Any]:
    """
    Play ``num_games`` games and collect results from ``agent``'s side.

    Args:
        agent: Engine under evaluation
        opponent: Any agent with ``get_action_callback``
        num_games: Number of games

    Returns:
        Dictionary of win/loss/draw rates and mean game length
    """
    print(f"Evaluating {agent.name} against {opponent.name} for {num_games} games...")

    outcomes = []
    lengths = []
    first_move_counts: Dict[int, int] = {}

    for game_index in tqdm(range(num_games), desc="Evaluating"):
        game = Game()
        agent_side = Player.X if game_index % 2 == 0 else Player.O
        agent.register_with_game(game, agent_side)
        game.register_agent(agent_side.opponent, opponent.get_action_callback())

        winner = game.run_game()
        if winner == DRAW:
            outcomes.append(0.5)
        else:
            outcomes.append(1.0 if winner is agent_side else 0.0)
        lengths.append(len(game.history))

        if agent_side is Player.X:
            first_move = game.history[0][1]
            first_move_counts[first_move] = first_move_counts.get(first_move, 0) + 1

    outcomes = np.array(outcomes)
    stats = {
        "win_rate": float(np.mean(outcomes == 1.0)),
        "loss_rate": float(np.mean(outcomes == 0.0)),
        "draw_rate": float(np.mean(outcomes == 0.5)),
        "mean_score": float(np.mean(outcomes)),
        "mean_length": float(np.mean(lengths)),
        "first_moves": first_move_counts,
    }

    print("Evaluation results:")
    print(f"  Win rate: {stats['win_rate']:.2f}")
    print(f"  Loss rate: {stats['loss_rate']:.2f}")
    print(f"  Draw rate: {stats['draw_rate']:.2f}")
    print(f"  Mean game length: {stats['mean_length']:.2f}")
    print(f"  Opening moves as X: {dict(sorted(first_move_counts.items()))}")
    return stats


def main():
    """Main function."""
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level))

    rng = random.Random(args.seed)
    agent = MCTSAgent(
        config=MCTSConfig(simulations_per_move=args.simulations,
                          exploration_constant=args.exploration),
        name=f"MCTS-{args.simulations}",
        rng=random.Random(rng.random()),
    )

    if args.opponent == "random":
        opponent = RandomAgent(name="Random", rng=random.Random(rng.random()))
    else:
        opponent = MCTSAgent(
            config=MCTSConfig(simulations_per_move=args.opponent_simulations,
                              exploration_constant=args.exploration),
            name=f"MCTS-{args.opponent_simulations}",
            rng=random.Random(rng.random()),
        )

    evaluate_agent(agent, opponent, num_games=args.games)


if __name__ == "__main__":
    main()
