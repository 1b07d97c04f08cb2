"""
State Representation Encoders

Turns a Snake board state plus one candidate direction into the fixed,
ordered set of heuristic scores the weighted policy consumes:
- Open space reachable after the move (flood-fill)
- Proximity and reachability of the food
- Tail reachability (can the snake still follow itself out)
- Immediate death
"""

import numpy as np
from collections import deque
from typing import List, NamedTuple, Optional, Set, Tuple

from core.board import Board, Position
from core.environment import Direction, SnakeEnv, next_position

# Sight distance of the flood-fill, in moves from the new head
MAX_DEPTH = 30


class FeatureVector(NamedTuple):
    """
    Heuristic features of one candidate move, in weight-index order

    [0] open_space: reachable free cells / free cells after the move
    [1] food_proximity: 1 - manhattan(new_head, food) / max manhattan
    [2] food_reachable: 1 if the food is in the reachable region
    [3] tail_reachable: 1 if the tail can still be reached from the head
    [4] immediate_death: 1 if the move hits a wall or the body
    """
    open_space: float
    food_proximity: float
    food_reachable: float
    tail_reachable: float
    immediate_death: float

    def as_array(self) -> np.ndarray:
        return np.array(self, dtype=np.float64)


FEATURE_NAMES: Tuple[str, ...] = FeatureVector._fields
NUM_FEATURES = len(FEATURE_NAMES)

FATAL_FEATURES = FeatureVector(
    open_space=0.0,
    food_proximity=0.0,
    food_reachable=0.0,
    tail_reachable=0.0,
    immediate_death=1.0
)


def candidate_directions(heading: Direction) -> List[Direction]:
    """Non-reverse directions in tie-break priority: straight, left, right"""
    return [heading, heading.turn_left(), heading.turn_right()]


class HeuristicFeatureEncoder:
    """
    Encodes a hypothetical move as a FeatureVector

    The move is applied to a copy of the body list, so encoding never mutates
    the real game state and is deterministic for a given state and direction.
    """

    def __init__(self, width: int, height: int, max_depth: Optional[int] = MAX_DEPTH):
        self.board = Board(width, height)
        self.max_depth = max_depth

    def encode(
        self,
        snake: List[Position],
        food: Optional[Position],
        direction: Direction
    ) -> FeatureVector:
        """
        Encode the move of `snake` towards `direction`

        Args:
            snake: List of (x, y) positions, head at index 0
            food: (x, y) position of food
            direction: Candidate direction (callers exclude the reverse)

        Returns:
            FeatureVector for the move
        """
        new_head = next_position(snake[0], direction)
        eats = food is not None and new_head == food

        if not self.board.in_bounds(new_head):
            return FATAL_FEATURES
        # The tail vacates this step unless the snake grows
        blocking = snake if eats else snake[:-1]
        if new_head in blocking:
            return FATAL_FEATURES

        new_body = [new_head] + (snake if eats else snake[:-1])
        body_set = set(new_body)

        reachable = self._flood_fill(new_head, body_set)
        free_after = self.board.num_cells - len(new_body)
        open_space = len(reachable) / free_after if free_after > 0 else 0.0

        if food is None:
            food_proximity = 0.0
            food_reachable = 0.0
        else:
            max_distance = max(self.board.width + self.board.height - 2, 1)
            distance = Board.manhattan_distance(new_head, food)
            food_proximity = 1.0 - distance / max_distance
            food_reachable = float(eats or food in reachable)

        return FeatureVector(
            open_space=min(1.0, open_space),
            food_proximity=food_proximity,
            food_reachable=food_reachable,
            tail_reachable=self._tail_reachability(new_body),
            immediate_death=0.0
        )

    def encode_env(self, env: SnakeEnv, direction: Direction) -> FeatureVector:
        """Encode a candidate move from the env's current state"""
        return self.encode(env.snake, env.food, direction)

    def encode_candidates(self, env: SnakeEnv) -> List[Tuple[Direction, FeatureVector]]:
        """FeatureVectors for every non-reverse direction, in tie-break order"""
        return [
            (direction, self.encode_env(env, direction))
            for direction in candidate_directions(env.direction)
        ]

    def _flood_fill(self, start_pos: Position, body_set: Set[Position]) -> Set[Position]:
        """
        Free cells reachable from the new head using BFS flood-fill

        The head cell itself is occupied and not counted. Exploration stops
        at `max_depth` moves from the head.
        """
        visited = {start_pos}
        reachable = set()
        queue = deque([(start_pos, 0)])

        while queue:
            current, depth = queue.popleft()
            if self.max_depth is not None and depth >= self.max_depth:
                continue

            for neighbor in self.board.neighbors(current):
                if neighbor in visited or neighbor in body_set:
                    continue
                visited.add(neighbor)
                reachable.add(neighbor)
                queue.append((neighbor, depth + 1))

        return reachable

    def _tail_reachability(self, body: List[Position]) -> float:
        """
        Check if the tail is reachable via flood-fill from the head

        The tail cell moves away on the next step, so it counts as a target
        rather than an obstacle.
        """
        if len(body) < 2:
            return 1.0  # Always reachable if very short

        head = body[0]
        tail = body[-1]
        obstacles = set(body[:-1])

        visited = {head}
        queue = deque([head])

        while queue:
            current = queue.popleft()
            for neighbor in self.board.neighbors(current):
                if neighbor == tail:
                    return 1.0
                if neighbor in visited or neighbor in obstacles:
                    continue
                visited.add(neighbor)
                queue.append(neighbor)

        return 0.0
