# Shared helpers: key bindings, config parsing, board encoding, and session simulation.
from __future__ import annotations

import argparse
from dataclasses import dataclass
import random
from typing import Callable, Iterable

import numpy as np

try:
    from .game_logic import (
        DIRECTION_PRIORITY,
        MAX_CANVAS_PIXELS,
        MAX_SPEED,
        MAX_TILE_SIZE,
        MIN_CANVAS_PIXELS,
        MIN_INITIAL_LENGTH,
        MIN_SPEED,
        MIN_TILE_SIZE,
        Controls,
        Direction,
        GameState,
        Phase,
        SnakeConfig,
        SnakeState,
        run_frame,
    )
except ImportError:
    from game_logic import (
        DIRECTION_PRIORITY,
        MAX_CANVAS_PIXELS,
        MAX_SPEED,
        MAX_TILE_SIZE,
        MIN_CANVAS_PIXELS,
        MIN_INITIAL_LENGTH,
        MIN_SPEED,
        MIN_TILE_SIZE,
        Controls,
        Direction,
        GameState,
        Phase,
        SnakeConfig,
        SnakeState,
        run_frame,
    )


# Tk keysyms per direction: arrows, WASD and vi keys.
KEY_BINDINGS = {
    Direction.UP: ("Up", "w", "k"),
    Direction.DOWN: ("Down", "s", "j"),
    Direction.LEFT: ("Left", "a", "h"),
    Direction.RIGHT: ("Right", "d", "l"),
}
CONFIRM_KEY = "space"   # begin / restart when pressed, boost while held

EMPTY = 0.0
APPLE = 0.5
BODY = -0.5
HEAD = 1.0
BOARD_GLYPHS = {EMPTY: ".", APPLE: "*", BODY: "o", HEAD: "@"}


def held_directions(pressed_keys: Iterable[str]) -> frozenset[Direction]:
    """Map currently held keysyms to the directions they stand for."""
    keys = {key.lower() if len(key) == 1 else key for key in pressed_keys}
    return frozenset(
        direction for direction, names in KEY_BINDINGS.items() if any(name in keys for name in names)
    )


class KeyTracker:
    """
    Held-key state fed by KeyPress/KeyRelease events.

    X11 auto-repeat reports a held key as release/press pairs, so a release
    is only applied after RELEASE_DELAY_MS; a press for the same key inside
    that window cancels it and counts as the key still being down.
    `scheduler` is anything with Tk's `after`/`after_cancel`.
    """
    RELEASE_DELAY_MS = 25

    def __init__(self, scheduler) -> None:
        self.scheduler = scheduler
        self.pressed: set[str] = set()
        self.pending_release: dict[str, str] = {}   # keysym -> after id
        self.confirm_pending = False                # confirm went down since last poll

    def press(self, keysym: str) -> None:
        release_id = self.pending_release.pop(keysym, None)
        if release_id is not None:
            self.scheduler.after_cancel(release_id)
            return
        if keysym == CONFIRM_KEY and keysym not in self.pressed:
            self.confirm_pending = True
        self.pressed.add(keysym)

    def release(self, keysym: str) -> None:
        if keysym in self.pending_release:
            return
        self.pending_release[keysym] = self.scheduler.after(
            self.RELEASE_DELAY_MS, lambda: self._apply_release(keysym)
        )

    def _apply_release(self, keysym: str) -> None:
        self.pending_release.pop(keysym, None)
        self.pressed.discard(keysym)

    def poll(self) -> Controls:
        """Controls for one frame; clears the confirm edge."""
        controls = Controls(
            held=held_directions(self.pressed),
            confirm=self.confirm_pending,
            boost=CONFIRM_KEY in self.pressed,
        )
        self.confirm_pending = False
        return controls


def validate_config(cfg: SnakeConfig) -> SnakeConfig:
    """Range-check user supplied settings with a clear error message."""
    for label, value in (("Width", cfg.width), ("Height", cfg.height)):
        if not (MIN_CANVAS_PIXELS <= value <= MAX_CANVAS_PIXELS):
            raise ValueError(f"{label} must be between {MIN_CANVAS_PIXELS} and {MAX_CANVAS_PIXELS}.")
    if not (MIN_TILE_SIZE <= cfg.tile_size <= MAX_TILE_SIZE):
        raise ValueError(f"Tile size must be between {MIN_TILE_SIZE} and {MAX_TILE_SIZE}.")
    if not (MIN_SPEED <= cfg.speed <= MAX_SPEED):
        raise ValueError(f"Speed must be between {MIN_SPEED} and {MAX_SPEED} seconds.")
    if cfg.initial_length < MIN_INITIAL_LENGTH:
        raise ValueError(f"Initial length must be >= {MIN_INITIAL_LENGTH}.")
    if cfg.phase_delay < 0:
        raise ValueError("Phase delay must be >= 0.")

    # Truncating division is accepted when the tile does not divide the canvas.
    columns, rows = cfg.width // cfg.tile_size, cfg.height // cfg.tile_size
    if columns * rows < 2:
        raise ValueError(f"Grid of {columns}x{rows} cells is too small to play on.")
    return cfg


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    defaults = SnakeConfig()
    parser.add_argument("--width", type=int, default=defaults.width, help="Canvas width in pixels")
    parser.add_argument("--height", type=int, default=defaults.height, help="Canvas height in pixels")
    parser.add_argument("--tile-size", type=int, default=defaults.tile_size, help="Pixels per grid cell")
    parser.add_argument("--speed", type=float, default=defaults.speed, help="Seconds between moves")
    parser.add_argument("--seed", type=int, default=None, help="Seed for apple placement")


def config_from_args(args: argparse.Namespace) -> SnakeConfig:
    cfg = SnakeConfig(
        width=args.width,
        height=args.height,
        tile_size=args.tile_size,
        speed=args.speed,
        seed=args.seed,
    )
    return validate_config(cfg)


def make_game(cfg: SnakeConfig) -> tuple[GameState, SnakeState]:
    """Build the board and snake and place the first apple, leaving the game in Menu."""
    game = GameState(cfg)
    snake = SnakeState((0, 0), cfg.initial_length)
    game.spawn_apple(snake)
    return game, snake


def encode_board_state(game: GameState, snake: SnakeState) -> np.ndarray:
    """
    Board encoding indexed [y, x]:
    - 0.0: empty
    - 0.5: apple
    - -0.5: snake body
    - 1.0: snake head
    """
    width, height = game.grid_size
    board = np.full((height, width), EMPTY, dtype=np.float32)

    for x, y in game.apples:
        board[y, x] = APPLE
    for x, y in snake.trail:
        board[y, x] = BODY
    hx, hy = snake.head
    board[hy, hx] = HEAD
    return board


def render_board_text(board: np.ndarray) -> str:
    rows = []
    for row in board:
        rows.append("".join(BOARD_GLYPHS[float(value)] for value in row))
    return "\n".join(rows)


class Autopilot:
    """Random steering that avoids cells the snake already occupies."""
    def __init__(self, seed: int | None = None, turn_chance: float = 0.25) -> None:
        self.rng = random.Random(seed)
        self.turn_chance = turn_chance
        self.current = Direction.RIGHT

    def _safe(self, game: GameState, snake: SnakeState, direction: Direction) -> bool:
        if direction is snake.last_direction.opposite:
            return False
        dx, dy = direction.value
        width, height = game.grid_size
        # Stricter than advance(): wrapping onto the body is legal but leaves the head on a trail cell.
        target = ((snake.head[0] + dx) % width, (snake.head[1] + dy) % height)
        return target not in snake.trail

    def controls(self, game: GameState, snake: SnakeState) -> Controls:
        if game.phase is not Phase.PLAYING:
            return Controls(confirm=True)

        if not self._safe(game, snake, self.current) or self.rng.random() < self.turn_chance:
            options = [d for d in DIRECTION_PRIORITY if self._safe(game, snake, d)]
            if options:
                self.current = self.rng.choice(options)
        return Controls(held=frozenset({self.current}))


@dataclass
class SessionStats:
    frames: int = 0
    moves: int = 0
    restarts: int = 0
    max_length: int = 0
    final_phase: Phase = Phase.MENU
    quit: bool = False


def run_session(
    game: GameState,
    snake: SnakeState,
    pilot: Autopilot,
    frames: int,
    frame_time: float | None = None,
    render_step: Callable[[GameState, SnakeState, int], None] | None = None,
) -> SessionStats:
    """Drive the frame loop with a simulated clock until quit or `frames` run out."""
    if frames <= 0:
        raise ValueError("frames must be > 0")
    if frame_time is None:
        frame_time = game.speed

    stats = SessionStats(max_length=snake.length)
    now = 0.0
    last_update = 0.0

    for frame in range(frames):
        result = run_frame(game, snake, now - last_update, pilot.controls(game, snake))
        stats.frames = frame + 1
        if result.moved:
            last_update = now
            stats.moves += 1
        if result.restarted:
            stats.restarts += 1
        stats.max_length = max(stats.max_length, snake.length)

        if render_step is not None:
            render_step(game, snake, frame)
        if result.quit:
            stats.quit = True
            break
        now += frame_time

    stats.final_phase = game.phase
    return stats
