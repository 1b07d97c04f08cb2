"""
Heuristic Agent - Weighted Decision Policy

Scores every non-reverse candidate move as the dot product of a weight vector
with the move's FeatureVector and plays the best one. The hand-tuned
reference bot and every individual of the genetic search are this same agent
with different weights.
"""

import math
import numpy as np
from typing import Iterable, List, Optional, Sequence, Tuple

from core.environment import Direction, SnakeEnv
from core.state_representations import (
    FEATURE_NAMES,
    NUM_FEATURES,
    FeatureVector,
    HeuristicFeatureEncoder,
    MAX_DEPTH
)


def make_weights(values: Iterable[float]) -> np.ndarray:
    """
    Build a read-only weight vector

    Index i of the result pairs with FEATURE_NAMES[i].

    Raises:
        ValueError: if the vector is empty, has the wrong length or holds
            non-finite values
    """
    weights = np.array(list(values), dtype=np.float64)
    if weights.ndim != 1 or weights.size == 0:
        raise ValueError("Weight vector must be a non-empty 1-D sequence")
    if weights.size != NUM_FEATURES:
        raise ValueError(
            f"Got {weights.size} weights, but {NUM_FEATURES} are needed "
            f"({', '.join(FEATURE_NAMES)})"
        )
    if not np.all(np.isfinite(weights)):
        raise ValueError(f"Weight vector has non-finite values: {weights}")
    weights.flags.writeable = False
    return weights


# Human-tuned good weights (the Heuristic Bot)
GOOD_WEIGHTS = make_weights([
    1.0,    # open_space
    0.2,    # food_proximity
    0.07,   # food_reachable
    0.1,    # tail_reachable
    -1.0,   # immediate_death
])


class HeuristicAgent:
    """
    Weighted argmax policy over candidate moves

    Ties go to the earliest candidate, and candidates come in the order
    straight, left, right, so identical inputs always give the same move.
    """

    def __init__(
        self,
        weights: Sequence[float] = GOOD_WEIGHTS,
        encoder: Optional[HeuristicFeatureEncoder] = None,
        max_depth: Optional[int] = MAX_DEPTH
    ):
        """
        Initialize heuristic agent

        Args:
            weights: One weight per feature, in FEATURE_NAMES order
            encoder: Feature encoder; built lazily from the env when None
            max_depth: Flood-fill sight distance for a lazily built encoder
        """
        self.weights = make_weights(weights)
        self.encoder = encoder
        self.max_depth = max_depth

    def score(self, features: FeatureVector) -> float:
        """Weighted sum of one candidate's features"""
        if len(features) != len(self.weights):
            raise ValueError(
                f"Feature vector has {len(features)} entries but the weight "
                f"vector has {len(self.weights)}"
            )
        value = float(np.dot(self.weights, np.asarray(features, dtype=np.float64)))
        if math.isnan(value):
            raise ValueError(f"NaN score for features {features}")
        return value

    def choose(self, candidates: List[Tuple[Direction, FeatureVector]]) -> Direction:
        """
        Pick the candidate with the maximal score

        Args:
            candidates: (direction, features) pairs in tie-break priority

        Returns:
            Chosen direction
        """
        if not candidates:
            raise ValueError("No candidate moves to choose from")

        best_direction, best_score = None, -math.inf
        for direction, features in candidates:
            value = self.score(features)
            # Strict comparison keeps the earlier candidate on ties
            if best_direction is None or value > best_score:
                best_direction, best_score = direction, value

        return best_direction

    def get_action(self, env: SnakeEnv) -> Direction:
        """
        Get action for the env's current state

        Args:
            env: SnakeEnv instance

        Returns:
            Direction to play
        """
        if self.encoder is None or self.encoder.board.width != env.width \
                or self.encoder.board.height != env.height:
            self.encoder = HeuristicFeatureEncoder(env.width, env.height, self.max_depth)
        return self.choose(self.encoder.encode_candidates(env))
