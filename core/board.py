"""
Board / Grid Model

Fixed-size grid whose occupancy is derived from the snake body and the food
position instead of being stored. Anything outside the grid is a wall.
"""

import numpy as np
from enum import IntEnum
from typing import Iterable, List, Optional, Tuple

Position = Tuple[int, int]


class Cell(IntEnum):
    """Cell occupancy codes (also used in the grid observation)"""
    EMPTY = 0
    SNAKE_BODY = 1
    SNAKE_HEAD = 2
    FOOD = 3


class Board:
    """
    Grid geometry and occupancy queries

    The board never owns the snake: every query that needs occupancy receives
    the body (and food) from the caller, so hypothetical bodies can be queried
    without touching the game state.
    """

    def __init__(self, width: int, height: int):
        if width < 1 or height < 1:
            raise ValueError(f"Board dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height

    @property
    def num_cells(self) -> int:
        return self.width * self.height

    def in_bounds(self, pos: Position) -> bool:
        """Check if position is within grid bounds"""
        x, y = pos
        return 0 <= x < self.width and 0 <= y < self.height

    def neighbors(self, pos: Position) -> List[Position]:
        """In-bounds 4-neighbours (UP, RIGHT, DOWN, LEFT)"""
        x, y = pos
        result = []
        for dx, dy in [(0, -1), (1, 0), (0, 1), (-1, 0)]:
            neighbor = (x + dx, y + dy)
            if self.in_bounds(neighbor):
                result.append(neighbor)
        return result

    def free_cells(self, occupied: Iterable[Position]) -> List[Position]:
        """All in-bounds cells not in `occupied`, in row-major order"""
        occupied = set(occupied)
        return [
            (x, y)
            for y in range(self.height)
            for x in range(self.width)
            if (x, y) not in occupied
        ]

    def cell_at(
        self,
        pos: Position,
        snake: List[Position],
        food: Optional[Position]
    ) -> Cell:
        """Occupancy of an in-bounds cell"""
        if not self.in_bounds(pos):
            raise ValueError(f"Position {pos} is outside the {self.width}x{self.height} board")
        if snake and pos == snake[0]:
            return Cell.SNAKE_HEAD
        if pos in snake:
            return Cell.SNAKE_BODY
        if food is not None and pos == food:
            return Cell.FOOD
        return Cell.EMPTY

    def to_grid(self, snake: List[Position], food: Optional[Position]) -> np.ndarray:
        """
        Materialise the occupancy as a (height, width) int8 array

        Indexed as grid[y, x]; this is the environment's observation.
        """
        grid = np.zeros((self.height, self.width), dtype=np.int8)

        for x, y in snake[1:]:
            grid[y, x] = Cell.SNAKE_BODY
        if snake:
            head_x, head_y = snake[0]
            grid[head_y, head_x] = Cell.SNAKE_HEAD
        if food is not None:
            food_x, food_y = food
            grid[food_y, food_x] = Cell.FOOD

        return grid

    @staticmethod
    def manhattan_distance(pos1: Position, pos2: Position) -> int:
        """Calculate Manhattan distance between two positions"""
        return abs(pos1[0] - pos2[0]) + abs(pos1[1] - pos2[1])

    def __repr__(self) -> str:
        return f"Board(width={self.width}, height={self.height})"
