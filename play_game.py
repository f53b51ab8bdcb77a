#!/usr/bin/env python
"""
Interactive tic-tac-toe interface for playing against the MCTS engine.

The human plays X and moves first; the engine plays O. While the engine
thinks, the share of search effort spent on each cell is redrawn after every
batch of simulations.

Example usage:
    # Play with the default settings
    python play_game.py

    # A faster, weaker opponent
    python play_game.py --simulations 100 --speed 100

    # Reproducible engine play
    python play_game.py --seed 42
"""
import argparse
import asyncio
import logging
import random
import sys
from typing import Optional

from rich.console import Console
from rich.live import Live
from rich.table import Table

from tictactoe_mcts.core.constants import DRAW, Player
from tictactoe_mcts.core.game import Game
from tictactoe_mcts.mcts.agent import MCTSAgent
from tictactoe_mcts.mcts.config import MCTSConfig
from tictactoe_mcts.mcts.scheduler import SearchProgress

console = Console()

HUMAN = Player.X
ENGINE = Player.O


def parse_args():
    """Parse command-line arguments for game configuration."""
    parser = argparse.ArgumentParser(description="Play tic-tac-toe against an MCTS engine")

    # MCTS configuration
    parser.add_argument("--simulations", type=int, default=1000,
                        help="Simulations per move (clamped to --max-simulations)")
    parser.add_argument("--max-simulations", type=int, default=500,
                        help="Upper bound on simulations per move")
    parser.add_argument("--exploration", type=float, default=1.4,
                        help="UCB1 exploration constant")
    parser.add_argument("--speed", type=int, default=50,
                        help="Visualization speed from 0 to 100")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for the engine")

    # Output configuration
    parser.add_argument("--verbose", action="store_true",
                        help="Print a summary after each engine move")
    parser.add_argument("--log-level", type=str, default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")

    return parser.parse_args()


def render_board(game: Game, progress: Optional[SearchProgress] = None) -> Table:
    """
    Render the board, overlaying visit fractions on empty cells.

    Args:
        game: Game to draw
        progress: Latest search snapshot, if the engine is thinking
    """
    side = game.rules.side
    title = "Tic-tac-toe"
    if progress is not None:
        title = f"Thinking: {progress.simulations_completed}/{progress.budget} simulations"

    table = Table(title=title, show_header=False, show_lines=True)
    for _ in range(side):
        table.add_column(justify="center", min_width=7)

    for row in range(side):
        cells = []
        for col in range(side):
            index = row * side + col
            mark = game.board[index]
            if mark is HUMAN:
                cells.append("[bold blue]X[/bold blue]")
            elif mark is ENGINE:
                cells.append("[bold red]O[/bold red]")
            elif progress is not None and index in progress.move_visit_fractions:
                fraction = progress.move_visit_fractions[index]
                style = "bold green" if index == progress.current_best_move else "dim"
                cells.append(f"[{style}]{fraction:.0%}[/{style}]")
            else:
                cells.append(f"[dim]{index}[/dim]")
        table.add_row(*cells)
    return table


async def get_human_move(game: Game) -> int:
    """Ask the human for a cell index until a legal one is entered."""
    legal = game.legal_moves()
    while True:
        text = await asyncio.to_thread(input, f"\nYour move {legal}: ")
        try:
            move = int(text)
        except ValueError:
            console.print("[red]Invalid input. Please enter a cell number.[/red]")
            continue
        if move in legal:
            return move
        console.print(f"[red]Cell {move} is not available.[/red]")


async def play_game(args) -> None:
    """Play one game against the engine."""
    config = MCTSConfig(
        simulations_per_move=args.simulations,
        max_simulations=args.max_simulations,
        exploration_constant=args.exploration,
        speed=args.speed,
    )
    rng = random.Random(args.seed) if args.seed is not None else None
    agent = MCTSAgent(config=config, name="MCTS AI", rng=rng, verbose=args.verbose)
    game = Game()

    console.print(f"Playing against: {agent}")

    while not game.game_over:
        console.print(render_board(game))

        if game.current_player == HUMAN:
            game.apply_move(await get_human_move(game))
            continue

        with Live(render_board(game), console=console, refresh_per_second=20) as live:
            result = await agent.play_turn(
                game, on_progress=lambda progress: live.update(render_board(game, progress))
            )
        if result is None:
            console.print("[yellow]Search was cancelled.[/yellow]")
            return
        if result.degraded:
            console.print(f"[yellow]Engine fault, played a random move: {result.error}[/yellow]")
        console.print(f"{agent.name} plays cell {result.final_move}")

    console.print(render_board(game))
    console.print("\n[bold yellow]=== GAME OVER ===[/bold yellow]")
    if game.winner == DRAW:
        console.print("[bold yellow]It's a draw![/bold yellow]")
    elif game.winner is HUMAN:
        console.print("[bold green]You win![/bold green]")
    else:
        console.print(f"[bold red]{agent.name} wins![/bold red]")


def main():
    """Main function."""
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")

    console.print("[bold yellow]Welcome to MCTS tic-tac-toe![/bold yellow]")
    console.print("You are X and move first. Cells are numbered 0-8 left to right.")

    try:
        asyncio.run(play_game(args))
        while True:
            play_again = input("\nPlay again? (y/n): ").lower()
            if play_again in ['y', 'yes']:
                asyncio.run(play_game(args))
            elif play_again in ['n', 'no']:
                print("Thanks for playing!")
                break
            else:
                print("Please enter 'y' or 'n'.")
    except KeyboardInterrupt:
        print("\nGame interrupted by user.")
        sys.exit(0)


if __name__ == "__main__":
    main()
