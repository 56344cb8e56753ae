"""
Tests for utils.py - key mapping, config validation, board encoding and simulation.
"""

import argparse

import numpy as np
import pytest

from game_logic import Direction, GameState, Phase, SnakeConfig, SnakeState
from utils import (
    APPLE,
    BODY,
    EMPTY,
    HEAD,
    Autopilot,
    KeyTracker,
    add_config_arguments,
    config_from_args,
    encode_board_state,
    held_directions,
    make_game,
    render_board_text,
    run_session,
    validate_config,
)


class TestHeldDirections:
    """Tests for keysym to direction mapping."""

    def test_arrow_wasd_and_vi_keys(self):
        assert held_directions({"Up"}) == {Direction.UP}
        assert held_directions({"s"}) == {Direction.DOWN}
        assert held_directions({"h"}) == {Direction.LEFT}
        assert held_directions({"l", "Left"}) == {Direction.RIGHT, Direction.LEFT}

    def test_shifted_letters(self):
        assert held_directions({"W", "J"}) == {Direction.UP, Direction.DOWN}

    def test_unrelated_keys_ignored(self):
        assert held_directions({"space", "Shift_L", "q"}) == frozenset()


class FakeScheduler:
    """Stands in for a Tk root: queues `after` callbacks until flushed."""

    def __init__(self):
        self.jobs = {}
        self.cancelled = []
        self._next = 0

    def after(self, ms, callback):
        self._next += 1
        job_id = f"after#{self._next}"
        self.jobs[job_id] = callback
        return job_id

    def after_cancel(self, job_id):
        self.cancelled.append(job_id)
        self.jobs.pop(job_id, None)

    def flush(self):
        jobs, self.jobs = self.jobs, {}
        for callback in jobs.values():
            callback()


class TestKeyTracker:
    """Tests for held-key tracking under auto-repeat."""

    def test_auto_repeat_gives_single_confirm(self):
        root = FakeScheduler()
        keys = KeyTracker(root)
        keys.press("space")
        assert keys.poll().confirm is True

        # Auto-repeat: release immediately followed by press.
        for _ in range(5):
            keys.release("space")
            keys.press("space")
            controls = keys.poll()
            assert controls.confirm is False
            assert controls.boost is True
        assert len(root.cancelled) == 5
        assert root.jobs == {}

    def test_real_release_then_press_confirms_again(self):
        root = FakeScheduler()
        keys = KeyTracker(root)
        keys.press("space")
        keys.poll()
        keys.release("space")
        assert keys.poll().boost is True
        root.flush()
        assert keys.poll().boost is False

        keys.press("space")
        assert keys.poll().confirm is True

    def test_direction_stays_held_through_repeat(self):
        root = FakeScheduler()
        keys = KeyTracker(root)
        keys.press("Up")
        keys.release("Up")
        keys.press("Up")
        root.flush()
        assert keys.poll().held == {Direction.UP}

    def test_duplicate_release_schedules_once(self):
        root = FakeScheduler()
        keys = KeyTracker(root)
        keys.press("a")
        keys.release("a")
        keys.release("a")
        assert len(root.jobs) == 1
        root.flush()
        assert keys.poll().held == frozenset()


class TestConfig:
    """Tests for validation and argparse wiring."""

    def test_defaults_are_valid(self):
        cfg = validate_config(SnakeConfig())
        assert cfg.width == 640
        assert cfg.height == 320
        assert cfg.tile_size == 20
        assert cfg.speed == 0.08
        assert cfg.title == "dasnake"

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"width": 10}, "Width"),
            ({"height": 5000}, "Height"),
            ({"tile_size": 2}, "Tile size"),
            ({"speed": 0.0}, "Speed"),
            ({"initial_length": 0}, "Initial length"),
            ({"phase_delay": -1.0}, "Phase delay"),
            ({"width": 40, "height": 40, "tile_size": 40}, "too small"),
        ],
    )
    def test_rejects_out_of_range(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            validate_config(SnakeConfig(**kwargs))

    def test_non_dividing_tile_is_accepted(self):
        cfg = validate_config(SnakeConfig(width=650, height=330, tile_size=20))
        assert GameState(cfg).grid_size == (32, 16)

    def test_config_from_args(self):
        parser = argparse.ArgumentParser()
        add_config_arguments(parser)
        args = parser.parse_args(["--width", "200", "--height", "100", "--tile-size", "10", "--speed", "0.2", "--seed", "4"])
        cfg = config_from_args(args)
        assert (cfg.width, cfg.height, cfg.tile_size) == (200, 100, 10)
        assert cfg.speed == 0.2
        assert cfg.seed == 4

    def test_config_from_args_validates(self):
        parser = argparse.ArgumentParser()
        add_config_arguments(parser)
        with pytest.raises(ValueError):
            config_from_args(parser.parse_args(["--tile-size", "1"]))


class TestBoardEncoding:
    """Tests for the numpy board snapshot."""

    def test_encodes_head_body_and_apples(self):
        game = GameState(SnakeConfig(width=80, height=60, tile_size=20))
        snake = SnakeState((2, 1))
        snake.trail = [(1, 1), (0, 1)]
        game.apples = [(3, 2)]

        board = encode_board_state(game, snake)
        assert board.shape == (3, 4)
        assert board.dtype == np.float32
        assert board[1, 2] == HEAD
        assert board[1, 1] == BODY
        assert board[1, 0] == BODY
        assert board[2, 3] == APPLE
        assert int(np.count_nonzero(board == EMPTY)) == 8

    def test_render_text(self):
        game = GameState(SnakeConfig(width=80, height=40, tile_size=20))
        snake = SnakeState((1, 0))
        snake.trail = [(0, 0)]
        game.apples = [(3, 1)]
        text = render_board_text(encode_board_state(game, snake))
        assert text == "o@..\n...*"


class TestSession:
    """Tests for make_game / Autopilot / run_session."""

    def test_make_game_starts_in_menu_with_one_apple(self):
        game, snake = make_game(SnakeConfig(seed=1))
        assert game.phase is Phase.MENU
        assert len(game.apples) == 1
        assert game.apples[0] != snake.head

    def test_autopilot_confirms_outside_play(self):
        game, snake = make_game(SnakeConfig(seed=1))
        controls = Autopilot(seed=1).controls(game, snake)
        assert controls.confirm is True
        assert controls.held == frozenset()

    def test_autopilot_avoids_reversal_and_body(self):
        game = GameState(SnakeConfig(width=100, height=100, tile_size=20))
        game.phase = Phase.PLAYING
        snake = SnakeState((2, 2))
        snake.trail = [(1, 2), (1, 1), (2, 1)]
        pilot = Autopilot(seed=5, turn_chance=1.0)
        for _ in range(20):
            held = pilot.controls(game, snake).held
            assert held in ({Direction.RIGHT}, {Direction.DOWN})

    def test_autopilot_will_not_wrap_onto_body(self):
        game = GameState(SnakeConfig(width=80, height=80, tile_size=20))
        game.phase = Phase.PLAYING
        snake = SnakeState((3, 1))
        snake.trail = [(3, 2), (2, 2), (1, 2), (0, 1)]
        pilot = Autopilot(seed=1, turn_chance=1.0)
        for _ in range(20):
            assert pilot.controls(game, snake).held == {Direction.UP}

    def test_rejects_non_positive_frames(self):
        game, snake = make_game(SnakeConfig(seed=1))
        with pytest.raises(ValueError):
            run_session(game, snake, Autopilot(seed=1), frames=0)

    def test_session_keeps_trail_bounded(self):
        game, snake = make_game(SnakeConfig(width=120, height=120, tile_size=20, seed=9))
        seen = []

        def check(game, snake, frame):
            assert len(snake.trail) <= snake.length
            assert 0 <= snake.head[0] < game.grid_size[0]
            assert 0 <= snake.head[1] < game.grid_size[1]
            seen.append(frame)

        stats = run_session(game, snake, Autopilot(seed=9), frames=300, render_step=check)
        assert seen == list(range(stats.frames))
        assert stats.moves > 0
        assert stats.max_length >= 3

    def test_session_is_deterministic(self):
        def play():
            game, snake = make_game(SnakeConfig(width=120, height=120, tile_size=20, seed=3))
            stats = run_session(game, snake, Autopilot(seed=3), frames=200)
            return stats, snake.head, list(game.apples)

        assert play() == play()

    def test_tiny_board_reaches_win_and_quits(self):
        game, snake = make_game(SnakeConfig(width=40, height=20, tile_size=20, seed=2, initial_length=1))
        stats = run_session(game, snake, Autopilot(seed=2), frames=500)
        assert stats.quit is True
        assert stats.final_phase is Phase.WIN
