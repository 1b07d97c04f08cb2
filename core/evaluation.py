"""
Fitness Evaluation

Plays full games with a decision policy and turns the outcomes into a single
scalar fitness. Every weight vector of a run is played on the same tuple of
game seeds, so all individuals face identical food sequences.
"""

import numpy as np
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

from agents.heuristic_agent import HeuristicAgent
from core.environment import SnakeEnv, TerminalReason
from core.state_representations import HeuristicFeatureEncoder, MAX_DEPTH


@dataclass(frozen=True)
class EpisodeResult:
    """Outcome of one game"""
    score: int
    steps: int
    terminal_reason: TerminalReason
    snake_length: int


@dataclass
class EvaluationResult:
    """Outcome of a weight vector over the evaluator's games"""
    fitness: float
    mean_score: float
    max_score: int
    mean_steps: float
    terminal_reasons: Counter = field(default_factory=Counter)


def episode_fitness(result: EpisodeResult, max_steps: int) -> float:
    """
    Fitness of one game: food eaten, then survival length

    steps / (max_steps + 1) is always < 1, so any extra food item outranks
    any amount of extra survival.
    """
    return result.score + result.steps / (max_steps + 1)


def play_episode(
    env: SnakeEnv,
    agent,
    seed: Optional[int] = None,
    options: Optional[dict] = None
) -> EpisodeResult:
    """
    Run one game to completion

    Args:
        env: SnakeEnv instance, reset here
        agent: Any object with get_action(env) -> Direction
        seed: Seed for the game's food placement
        options: Reset overrides (see SnakeEnv.reset)

    Returns:
        EpisodeResult of the finished game
    """
    env.reset(seed=seed, options=options)

    while not env.done:
        env.step(agent.get_action(env))

    return EpisodeResult(
        score=env.score,
        steps=env.steps,
        terminal_reason=env.terminal_reason,
        snake_length=len(env.snake)
    )


class FitnessEvaluator:
    """
    Scores weight vectors by playing seeded games with the heuristic agent

    Holds only configuration, so it pickles cleanly into worker processes;
    each call builds its own env.
    """

    def __init__(
        self,
        seeds: Sequence[int],
        width: int = 10,
        height: int = 10,
        initial_length: int = 3,
        max_steps: int = 1000,
        max_depth: Optional[int] = MAX_DEPTH
    ):
        """
        Initialize fitness evaluator

        Args:
            seeds: One game is played per seed; shared by every individual
            width, height: Grid dimensions
            initial_length: Starting snake length
            max_steps: Step cap per game
            max_depth: Flood-fill sight distance of the features
        """
        if len(seeds) == 0:
            raise ValueError("FitnessEvaluator needs at least one game seed")
        self.seeds: Tuple[int, ...] = tuple(int(s) for s in seeds)
        self.width = width
        self.height = height
        self.initial_length = initial_length
        self.max_steps = max_steps
        self.max_depth = max_depth

        # Fail fast on an unusable grid
        SnakeEnv(width, height, initial_length, max_steps)

    def make_env(self) -> SnakeEnv:
        return SnakeEnv(
            width=self.width,
            height=self.height,
            initial_length=self.initial_length,
            max_steps=self.max_steps
        )

    def evaluate_agent(self, agent) -> EvaluationResult:
        """Play every seeded game with `agent` and aggregate the outcomes"""
        env = self.make_env()
        results = [play_episode(env, agent, seed=seed) for seed in self.seeds]

        fitnesses = [episode_fitness(r, self.max_steps) for r in results]
        scores = [r.score for r in results]

        return EvaluationResult(
            fitness=float(np.mean(fitnesses)),
            mean_score=float(np.mean(scores)),
            max_score=int(max(scores)),
            mean_steps=float(np.mean([r.steps for r in results])),
            terminal_reasons=Counter(r.terminal_reason for r in results)
        )

    def evaluate(self, weights) -> EvaluationResult:
        """
        Fitness of a weight vector

        Args:
            weights: One weight per feature, in FEATURE_NAMES order

        Returns:
            EvaluationResult; `fitness` is the mean per-game fitness
        """
        encoder = HeuristicFeatureEncoder(self.width, self.height, self.max_depth)
        return self.evaluate_agent(HeuristicAgent(weights, encoder=encoder))

    def __call__(self, weights) -> EvaluationResult:
        return self.evaluate(weights)

    def describe(self) -> Dict:
        return {
            'seeds': list(self.seeds),
            'width': self.width,
            'height': self.height,
            'initial_length': self.initial_length,
            'max_steps': self.max_steps,
            'max_depth': self.max_depth
        }
