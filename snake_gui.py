# Tkinter driving loop for the Snake core: window, key polling, clock, and drawing.
from __future__ import annotations

import argparse
import time
import tkinter as tk
from tkinter import messagebox

# Support both package imports and running this file directly.
try:
    from .game_logic import GameState, Phase, SnakeConfig, SnakeState, run_frame
    from .utils import KeyTracker, add_config_arguments, config_from_args, make_game
except ImportError:
    from game_logic import GameState, Phase, SnakeConfig, SnakeState, run_frame
    from utils import KeyTracker, add_config_arguments, config_from_args, make_game


class SnakeApp:
    """Tkinter presentation layer for GameState/SnakeState."""
    FRAME_MS = 8                    # redraw/poll cadence, independent of move speed
    BG = "#000000"
    SNAKE_COLOR = "#00e430"
    APPLE_COLOR = "#e62937"
    TEXT_COLOR = "#ffffff"

    def __init__(self, root: tk.Tk, config: SnakeConfig, clock=time.monotonic) -> None:
        self.root = root
        self.config = config
        self.clock = clock
        self.root.title(config.title)
        self.root.configure(bg=self.BG)
        self.root.resizable(False, False)

        self.game: GameState
        self.snake: SnakeState
        self.game, self.snake = make_game(config)
        self.last_update = self.clock()

        self.keys = KeyTracker(self.root)
        self.after_id: str | None = None    # Tkinter timer id for the frame loop

        self.canvas = tk.Canvas(
            self.root,
            width=config.width,
            height=config.height,
            bg=self.BG,
            highlightthickness=0,
            bd=0,
        )
        self.canvas.pack()
        self._bind_keys()

    def _bind_keys(self) -> None:
        """Track held keys so direction and boost can be polled each frame."""
        self.root.bind("<KeyPress>", self._on_key_press)
        self.root.bind("<KeyRelease>", self._on_key_release)

    def _on_key_press(self, event: tk.Event) -> None:
        self.keys.press(event.keysym)

    def _on_key_release(self, event: tk.Event) -> None:
        self.keys.release(event.keysym)

    def start(self) -> None:
        self.frame()

    def stop(self) -> None:
        """Cancel the scheduled frame and close the window."""
        if self.after_id is not None:
            self.root.after_cancel(self.after_id)
            self.after_id = None
        self.root.destroy()

    def frame(self) -> None:
        """Single frame of the game loop; reschedules itself until the game asks to quit."""
        self.after_id = None
        now = self.clock()
        result = run_frame(self.game, self.snake, now - self.last_update, self.keys.poll())
        if result.moved:
            self.last_update = now
        if result.quit:
            self.stop()
            return

        self.draw()
        self.after_id = self.root.after(self.FRAME_MS, self.frame)

    def _draw_tile(self, x: int, y: int, color: str) -> None:
        tile = self.config.tile_size
        self.canvas.create_rectangle(x * tile, y * tile, (x + 1) * tile, (y + 1) * tile, fill=color, outline="")

    def draw(self) -> None:
        """Render snake and apples while playing, otherwise the phase message."""
        self.canvas.delete("all")

        if self.game.phase is Phase.PLAYING:
            for x, y in self.snake.cells():
                self._draw_tile(x, y, self.SNAKE_COLOR)
            for x, y in self.game.apples:
                self._draw_tile(x, y, self.APPLE_COLOR)
            return

        message = self.game.message()
        if message is not None:
            text, font_size = message
            self.canvas.create_text(
                self.config.width // 2,
                self.config.height // 2,
                text=text,
                fill=self.TEXT_COLOR,
                font=("Helvetica", font_size),
            )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play Snake on a wrap-around board")
    add_config_arguments(parser)
    return parser.parse_args(argv)


def run_player_gui(argv: list[str] | None = None) -> None:
    """Launch the Snake window."""
    args = parse_args(argv)
    root = tk.Tk()
    try:
        config = config_from_args(args)
    except ValueError as exc:
        root.withdraw()
        messagebox.showerror("Invalid Setting", str(exc))
        root.destroy()
        raise SystemExit(2)

    app = SnakeApp(root, config)
    app.start()
    root.mainloop()


if __name__ == "__main__":
    run_player_gui()
