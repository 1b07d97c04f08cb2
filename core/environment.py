"""
Single Snake Environment - Gymnasium Compatible

Deterministic, replayable Snake simulator used as the fitness evaluator of the
genetic search:
- Absolute actions (UP, RIGHT, DOWN, LEFT); instant reversal keeps the heading
- Configurable grid width and height
- Seeded food placement, explicit terminal reasons
"""

import numpy as np
import gymnasium as gym
from gymnasium import spaces
from typing import Tuple, Dict, Optional, List
from enum import Enum, IntEnum

from core.board import Board, Cell, Position


class Direction(IntEnum):
    """Cardinal directions for snake movement"""
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    @property
    def delta(self) -> Tuple[int, int]:
        """(dx, dy) movement delta, y grows downward"""
        return _DELTAS[self]

    @property
    def opposite(self) -> 'Direction':
        return Direction((self + 2) % 4)

    def turn_left(self) -> 'Direction':
        return Direction((self - 1) % 4)

    def turn_right(self) -> 'Direction':
        return Direction((self + 1) % 4)


_DELTAS = {
    Direction.UP: (0, -1),
    Direction.RIGHT: (1, 0),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0)
}


class TerminalReason(str, Enum):
    """Why a game ended"""
    WALL = 'wall'
    SELF_COLLISION = 'self_collision'
    STEP_LIMIT = 'step_limit'
    BOARD_FULL = 'board_full'


def next_position(pos: Position, direction: Direction) -> Position:
    """Position one cell away from `pos` towards `direction`"""
    dx, dy = direction.delta
    return (pos[0] + dx, pos[1] + dy)


class SnakeEnv(gym.Env):
    """
    Single Snake Environment

    Observation:
        (height, width) int8 grid of `Cell` codes

    Actions:
        4 absolute directions (UP, RIGHT, DOWN, LEFT)

    Reward:
        1.0 when food is eaten, 0.0 otherwise. The score is the number of
        food items eaten.
    """

    metadata = {'render_modes': ['ansi']}

    def __init__(
        self,
        width: int = 10,
        height: int = 10,
        initial_length: int = 3,
        max_steps: int = 1000,
        seed: Optional[int] = None
    ):
        super().__init__()

        if initial_length < 1:
            raise ValueError(f"initial_length must be >= 1, got {initial_length}")
        if max_steps < 1:
            raise ValueError(f"max_steps must be >= 1, got {max_steps}")
        # The starting snake trails left of the centre and food needs one free cell
        if width // 2 - (initial_length - 1) < 0 or width * height < initial_length + 1:
            raise ValueError(
                f"Grid {width}x{height} is too small for a snake of length "
                f"{initial_length} plus food"
            )

        # Configuration
        self.board = Board(width, height)
        self.initial_length = initial_length
        self.max_steps = max_steps

        self.action_space = spaces.Discrete(4)
        self.observation_space = spaces.Box(
            low=0, high=int(Cell.FOOD),
            shape=(height, width),
            dtype=np.int8
        )

        # Game state
        self.snake: List[Position] = []  # head at index 0
        self.direction = Direction.RIGHT
        self.food: Optional[Position] = None
        self.steps = 0
        self.score = 0
        self.done = False
        self.terminal_reason: Optional[TerminalReason] = None

        if seed is not None:
            self.seed(seed)

    @property
    def width(self) -> int:
        return self.board.width

    @property
    def height(self) -> int:
        return self.board.height

    def seed(self, seed: Optional[int] = None):
        """Set random seed for reproducibility"""
        self.np_random, seed = gym.utils.seeding.np_random(seed)
        return [seed]

    def reset(
        self,
        seed: Optional[int] = None,
        options: Optional[dict] = None
    ) -> Tuple[np.ndarray, Dict]:
        """
        Reset environment to initial state

        Args:
            seed: Seed for the food placement stream
            options: Optional overrides for deterministic scenarios:
                'snake': list of (x, y) positions, head first
                'direction': starting heading
                'food': fixed food position
        """
        super().reset(seed=seed)
        options = options or {}

        if 'snake' in options:
            self.snake = self._validate_snake(options['snake'])
        else:
            # Initialize snake in center, trailing left
            center_x, center_y = self.width // 2, self.height // 2
            self.snake = [(center_x - i, center_y) for i in range(self.initial_length)]

        if 'direction' in options:
            self.direction = Direction(options['direction'])
            if len(self.snake) > 1 and next_position(self.snake[0], self.direction) == self.snake[1]:
                raise ValueError(
                    f"Direction {self.direction.name} points the head into the neck at {self.snake[1]}"
                )
        elif len(self.snake) > 1:
            # Heading follows the neck-to-head segment
            (hx, hy), (nx, ny) = self.snake[0], self.snake[1]
            self.direction = self._delta_to_direction(hx - nx, hy - ny)
        else:
            self.direction = Direction.RIGHT

        if 'food' in options:
            food = tuple(options['food'])
            if not self.board.in_bounds(food) or food in self.snake:
                raise ValueError(f"Food {food} must be an in-bounds cell not on the snake")
            self.food = food
        else:
            self._spawn_food()

        # Reset counters
        self.steps = 0
        self.score = 0
        self.done = False
        self.terminal_reason = None

        return self._get_observation(), self._get_info()

    def step(self, action) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        """
        Execute one step in the environment

        Returns:
            observation, reward, terminated, truncated, info
        """
        if self.done:
            raise RuntimeError("Episode is done. Call reset() to start a new episode.")

        new_direction = Direction(action)

        # Prevent 180-degree turns: keep the current heading instead
        if new_direction == self.direction.opposite:
            new_direction = self.direction

        self.direction = new_direction
        new_head = next_position(self.snake[0], self.direction)

        terminated = False
        truncated = False
        reward = 0.0

        if not self.board.in_bounds(new_head):
            terminated = True
            self.terminal_reason = TerminalReason.WALL
        elif new_head in self._blocking_body(eats=new_head == self.food):
            terminated = True
            self.terminal_reason = TerminalReason.SELF_COLLISION
        else:
            self.snake.insert(0, new_head)

            if new_head == self.food:
                reward = 1.0
                self.score += 1
                if len(self.snake) == self.board.num_cells:
                    # Grid is full (snake won!)
                    self.food = None
                    terminated = True
                    self.terminal_reason = TerminalReason.BOARD_FULL
                else:
                    self._spawn_food()
            else:
                # Remove tail if no food eaten
                self.snake.pop()

        self.steps += 1

        if not terminated and self.steps >= self.max_steps:
            truncated = True
            self.terminal_reason = TerminalReason.STEP_LIMIT

        self.done = terminated or truncated

        return self._get_observation(), reward, terminated, truncated, self._get_info()

    def _blocking_body(self, eats: bool) -> List[Position]:
        """Body cells a new head collides with; the tail vacates unless the snake grows"""
        return self.snake if eats else self.snake[:-1]

    def _validate_snake(self, snake) -> List[Position]:
        positions = [tuple(pos) for pos in snake]
        if not positions:
            raise ValueError("Snake override must contain at least one position")
        if len(set(positions)) != len(positions):
            raise ValueError(f"Snake override has duplicate positions: {positions}")
        for pos in positions:
            if not self.board.in_bounds(pos):
                raise ValueError(f"Snake position {pos} is out of bounds")
        if len(positions) >= self.board.num_cells:
            raise ValueError("Snake override leaves no free cell for food")
        return positions

    def _delta_to_direction(self, dx: int, dy: int) -> Direction:
        for direction, delta in _DELTAS.items():
            if delta == (dx, dy):
                return direction
        raise ValueError(f"Snake override is not contiguous at the head: delta {(dx, dy)}")

    def _spawn_food(self):
        """Spawn food at a uniformly random empty position"""
        empty_cells = self.board.free_cells(self.snake)

        if not empty_cells:
            # Winning moves never get here: a full board ends the game first
            raise RuntimeError(
                f"No free cell for food on a {self.width}x{self.height} board "
                f"with a snake of length {len(self.snake)}"
            )

        self.food = empty_cells[self.np_random.integers(0, len(empty_cells))]

    def _get_observation(self) -> np.ndarray:
        """Cell-code grid of the current state"""
        return self.board.to_grid(self.snake, self.food)

    def _get_info(self) -> Dict:
        """Get additional information about current state"""
        return {
            'score': self.score,
            'steps': self.steps,
            'snake_length': len(self.snake),
            'terminal_reason': self.terminal_reason
        }

    def render(self) -> str:
        """Render the current state as a text frame"""
        grid = [[' ' for _ in range(self.width)] for _ in range(self.height)]

        # Place snake
        for i, (x, y) in enumerate(self.snake):
            grid[y][x] = 'H' if i == 0 else 'o'

        # Place food
        if self.food:
            food_x, food_y = self.food
            grid[food_y][food_x] = 'F'

        lines = ['+' + '-' * self.width + '+']
        lines.extend('|' + ''.join(row) + '|' for row in grid)
        lines.append('+' + '-' * self.width + '+')
        status = f"Score: {self.score}, Steps: {self.steps}, Length: {len(self.snake)}"
        if self.terminal_reason is not None:
            status += f", Ended: {self.terminal_reason.value}"
        lines.append(status)
        return '\n'.join(lines)
