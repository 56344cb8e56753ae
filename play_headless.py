"""Run the Snake core without a window, steered by a random autopilot."""
from __future__ import annotations

import argparse

try:
    from .game_logic import GameState, SnakeState
    from .utils import (
        Autopilot,
        SessionStats,
        add_config_arguments,
        config_from_args,
        encode_board_state,
        make_game,
        render_board_text,
        run_session,
    )
except ImportError:
    from game_logic import GameState, SnakeState
    from utils import (
        Autopilot,
        SessionStats,
        add_config_arguments,
        config_from_args,
        encode_board_state,
        make_game,
        render_board_text,
        run_session,
    )


def _print_board(game: GameState, snake: SnakeState, frame: int) -> None:
    print(f"Frame {frame}  phase={game.phase.value}  length={snake.length}  head={snake.head}")
    print(render_board_text(encode_board_state(game, snake)))
    print()


def _print_summary(stats: SessionStats) -> None:
    print("=" * 40)
    print("SESSION SUMMARY")
    print("=" * 40)
    print(f"{'Frames':<20} {stats.frames:>15}")
    print(f"{'Moves':<20} {stats.moves:>15}")
    print(f"{'Restarts':<20} {stats.restarts:>15}")
    print(f"{'Longest snake':<20} {stats.max_length:>15}")
    print(f"{'Final phase':<20} {stats.final_phase.value:>15}")
    print("=" * 40)
    if stats.quit:
        print("Board filled; the game asked to quit.")


def play_headless(args: argparse.Namespace) -> SessionStats:
    """Simulate `args.ticks` frames and print a summary."""
    cfg = config_from_args(args)
    game, snake = make_game(cfg)
    pilot = Autopilot(seed=args.seed)

    show_every = args.show_every

    def render_step(game: GameState, snake: SnakeState, frame: int) -> None:
        if show_every > 0 and frame % show_every == 0:
            _print_board(game, snake, frame)

    stats = run_session(game, snake, pilot, frames=args.ticks, render_step=render_step)
    _print_summary(stats)
    return stats


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Headless Snake session with a random autopilot")
    add_config_arguments(parser)
    parser.add_argument("--ticks", type=int, default=500, help="Number of frames to simulate")
    parser.add_argument(
        "--show-every",
        type=int,
        default=0,
        help="Print the board every N frames (0 disables)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        play_headless(args)
    except ValueError as exc:
        parser.error(str(exc))


if __name__ == "__main__":
    main()
