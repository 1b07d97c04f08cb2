"""
Random Agent Baseline

Agent that selects random non-fatal moves
"""

import numpy as np

from core.environment import Direction, SnakeEnv
from core.state_representations import candidate_directions, HeuristicFeatureEncoder


class RandomAgent:
    """
    Random action agent for Snake

    Picks uniformly among the non-reverse moves that do not die immediately,
    and goes straight when every move is fatal.
    Useful as a baseline to measure evolution progress.
    """

    def __init__(self, seed: int = None):
        """
        Initialize random agent

        Args:
            seed: Random seed for reproducibility
        """
        self.rng = np.random.default_rng(seed)
        self.encoder = None

    def get_action(self, env: SnakeEnv) -> Direction:
        """
        Get random safe action

        Args:
            env: SnakeEnv instance

        Returns:
            Random non-fatal direction
        """
        if self.encoder is None or self.encoder.board.width != env.width \
                or self.encoder.board.height != env.height:
            # Depth 0: only the immediate-death feature is needed
            self.encoder = HeuristicFeatureEncoder(env.width, env.height, max_depth=0)

        safe = [
            direction
            for direction in candidate_directions(env.direction)
            if self.encoder.encode_env(env, direction).immediate_death == 0.0
        ]
        if not safe:
            return env.direction  # We're doomed
        return safe[self.rng.integers(0, len(safe))]
