# Core Snake game state and rules, independent from GUI/runner code.
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import random


# Bounds used by the entrypoints when validating user input.
MIN_CANVAS_PIXELS = 40
MAX_CANVAS_PIXELS = 4000
MIN_TILE_SIZE = 4
MAX_TILE_SIZE = 200
MIN_SPEED = 0.01
MAX_SPEED = 2.0
MIN_INITIAL_LENGTH = 1

Cell = tuple[int, int]


class Direction(Enum):
    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def opposite(self) -> Direction:
        return OPPOSITE[self]


OPPOSITE = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}

# Order in which simultaneously held directions are considered.
DIRECTION_PRIORITY = (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)


class MoveOutcome(Enum):
    CONTINUED = "continued"
    SELF_COLLISION = "self_collision"


class TickOutcome(Enum):
    IDLE = "idle"
    MOVED = "moved"
    COLLIDED = "collided"


class Phase(Enum):
    MENU = "menu"
    PLAYING = "playing"
    LOSE = "lose"
    WIN = "win"


# Text shown over the board per phase, with the font size it is drawn at.
PHASE_MESSAGES = {
    Phase.MENU: ("Press Space To Begin...", 50),
    Phase.LOSE: ("Sorry, you failed. RESETTING.", 40),
    Phase.WIN: ("YOU DID IT? WHY? GET HELP", 40),
}


@dataclass
class SnakeConfig:
    """Runtime settings shared between the logic layer and the drivers."""
    width: int = 640
    height: int = 320
    tile_size: int = 20
    speed: float = 0.08                 # seconds between forced moves
    initial_length: int = 3
    phase_delay: float = 1.0            # Lose -> restart and Win -> quit
    spawn_attempts: int = 10_000        # random draws before scanning free cells
    seed: int | None = None
    title: str = "dasnake"


class SnakeState:
    """The player's snake: head, trailing body and steering."""
    def __init__(self, origin: Cell = (0, 0), initial_length: int = 3) -> None:
        self.initial_length = initial_length
        self.reset(origin)

    def reset(self, origin: Cell = (0, 0)) -> None:
        """Put the snake back at its starting cell, heading right."""
        self.head: Cell = origin
        self.trail: list[Cell] = []                 # most recent segment first
        self.length = self.initial_length           # bound on len(trail)
        self.pending = Direction.RIGHT              # applied on the next advance
        self.last_direction = Direction.RIGHT       # used to reject reversals
        self.boost = False

    def cells(self) -> list[Cell]:
        return [self.head, *self.trail]

    def advance(self, grid_size: Cell, direction: Direction | None = None) -> MoveOutcome:
        """Move one cell. The head is left untouched on self-collision."""
        dx, dy = (direction or self.pending).value
        new_x, new_y = self.head[0] + dx, self.head[1] + dy

        # Checked against the unwrapped cell and the pre-move trail.
        if (new_x, new_y) in self.trail:
            return MoveOutcome.SELF_COLLISION

        width, height = grid_size
        old_head = self.head
        self.head = (new_x % width, new_y % height)
        self.trail.insert(0, old_head)
        del self.trail[self.length:]
        return MoveOutcome.CONTINUED

    def set_direction(self, requested: Direction) -> bool:
        """Queue a direction unless it reverses the last accepted one."""
        if requested is self.last_direction.opposite:
            return False
        self.pending = requested
        self.last_direction = requested
        return True

    def steer(self, held) -> Direction | None:
        """Accept the first held, non-reversing direction in priority order."""
        for direction in DIRECTION_PRIORITY:
            if direction in held and self.set_direction(direction):
                return direction
        return None

    def grow(self) -> None:
        # Only raises the bound; the trail fills in on later moves.
        self.length += 1


class GameState:
    """Board, apples and phase transitions (no Tkinter/UI code)."""
    def __init__(self, config: SnakeConfig, rng: random.Random | None = None) -> None:
        self.config = config
        self.grid_size: Cell = (config.width // config.tile_size, config.height // config.tile_size)
        self.speed = config.speed
        self.boosted_speed = config.speed / 2
        self.rng = rng if rng is not None else random.Random(config.seed)
        self.apples: list[Cell] = []
        self.phase = Phase.MENU

    @property
    def area(self) -> int:
        return self.grid_size[0] * self.grid_size[1]

    def message(self) -> tuple[str, int] | None:
        """Overlay text and font size for the current phase, if any."""
        return PHASE_MESSAGES.get(self.phase)

    def _is_free(self, cell: Cell, snake: SnakeState) -> bool:
        return cell != snake.head and cell not in self.apples and cell not in snake.trail

    def spawn_apple(self, snake: SnakeState) -> bool:
        """Place one apple on a free cell. Returns False when the board is full (phase -> Win)."""
        width, height = self.grid_size

        # Fullness precondition compares trail length only, head excluded.
        if len(snake.trail) > self.area - 1:
            self.phase = Phase.WIN
            return False

        for _ in range(self.config.spawn_attempts):
            pos = (self.rng.randrange(width), self.rng.randrange(height))
            if self._is_free(pos, snake):
                self.apples.insert(0, pos)
                return True

        # Near-full board: pick directly from what is left.
        free = [(x, y) for y in range(height) for x in range(width) if self._is_free((x, y), snake)]
        if not free:
            self.phase = Phase.WIN
            return False
        self.apples.insert(0, self.rng.choice(free))
        return True

    def begin(self) -> None:
        if self.phase is Phase.MENU:
            self.phase = Phase.PLAYING

    def tick(self, snake: SnakeState, elapsed: float, boosted: bool) -> TickOutcome:
        """Advance the snake if enough time has passed since the last move."""
        if self.phase is not Phase.PLAYING:
            return TickOutcome.IDLE
        if not (elapsed >= self.speed or (boosted and elapsed >= self.boosted_speed)):
            return TickOutcome.IDLE

        if snake.advance(self.grid_size) is MoveOutcome.SELF_COLLISION:
            self.phase = Phase.LOSE
            return TickOutcome.COLLIDED

        eaten = [apple for apple in self.apples if apple == snake.head]
        if eaten:
            self.apples = [apple for apple in self.apples if apple != snake.head]
            for _ in eaten:
                snake.grow()
        if not self.apples:
            self.spawn_apple(snake)
        return TickOutcome.MOVED

    def restart(self, snake: SnakeState) -> None:
        """Reset snake and apples in place and resume play."""
        snake.reset()
        self.apples.clear()
        self.phase = Phase.PLAYING
        self.spawn_apple(snake)


@dataclass
class Controls:
    """Input sampled by the driving loop for one frame."""
    held: frozenset[Direction] = field(default_factory=frozenset)
    confirm: bool = False       # edge-triggered (key went down this frame)
    boost: bool = False         # level-triggered (key is held)


@dataclass
class FrameResult:
    moved: bool = False         # caller resets its move timer
    restarted: bool = False
    quit: bool = False          # caller should end the process


def run_frame(game: GameState, snake: SnakeState, elapsed: float, controls: Controls) -> FrameResult:
    """One pass of the main loop. `elapsed` is seconds since the last committed move."""
    result = FrameResult()
    phase = game.phase

    if phase is Phase.MENU:
        if controls.confirm:
            game.begin()
    elif phase is Phase.PLAYING:
        # Boost from the previous frame gates this move, as in the classic loop.
        outcome = game.tick(snake, elapsed, snake.boost)
        if outcome is TickOutcome.COLLIDED:
            return result
        result.moved = outcome is TickOutcome.MOVED
        snake.steer(controls.held)
        snake.boost = controls.boost
    elif phase is Phase.LOSE:
        if elapsed >= game.config.phase_delay or controls.confirm:
            game.restart(snake)
            result.restarted = True
    elif phase is Phase.WIN:
        if elapsed >= game.config.phase_delay:
            result.quit = True
    return result
