"""
Genetic Algorithm Operators

Population, selection, crossover, mutation and elitism over weight vectors.
Operators take an explicit numpy Generator so every run is reproducible from
its seed, and always build new weight arrays instead of editing parents.
"""

import numpy as np
from typing import List, Optional, Sequence

from agents.heuristic_agent import make_weights
from core.evaluation import EvaluationResult
from core.state_representations import NUM_FEATURES

GENOME_MIN_VALUE = -1.0
GENOME_MAX_VALUE = 1.0

SELECTION_METHODS = ('tournament', 'truncation')
CROSSOVER_METHODS = ('single_point', 'blend')


class Individual:
    """
    One candidate weight vector and its cached fitness

    Replacing the weights clears the cached evaluation.
    """

    def __init__(self, weights: Sequence[float], evaluation: Optional[EvaluationResult] = None):
        self._weights = make_weights(weights)
        self.evaluation = evaluation

    @property
    def weights(self) -> np.ndarray:
        return self._weights

    @weights.setter
    def weights(self, values: Sequence[float]):
        self._weights = make_weights(values)
        self.evaluation = None

    @property
    def fitness(self) -> Optional[float]:
        return None if self.evaluation is None else self.evaluation.fitness

    @property
    def is_evaluated(self) -> bool:
        return self.evaluation is not None

    def __repr__(self) -> str:
        fitness = 'None' if self.fitness is None else f"{self.fitness:.4f}"
        return f"Individual(fitness={fitness}, weights={np.round(self._weights, 4).tolist()})"


def random_population(
    size: int,
    rng: np.random.Generator,
    low: float = GENOME_MIN_VALUE,
    high: float = GENOME_MAX_VALUE,
    seed_weights: Optional[Sequence[float]] = None
) -> List[Individual]:
    """
    Uniform random initial population

    Args:
        size: Number of individuals
        rng: Random generator
        low, high: Bounds of the uniform initial weights
        seed_weights: Optional known-good vector placed as the first individual

    Returns:
        List of unevaluated individuals
    """
    if size < 1:
        raise ValueError(f"Population size must be >= 1, got {size}")
    if low >= high:
        raise ValueError(f"Initial weight range is empty: [{low}, {high}]")

    population = []
    if seed_weights is not None:
        population.append(Individual(seed_weights))
    while len(population) < size:
        population.append(Individual(rng.uniform(low, high, NUM_FEATURES)))
    return population


def _check_evaluated(population: Sequence[Individual]):
    if not population:
        raise ValueError("Cannot select from an empty population")
    for individual in population:
        if not individual.is_evaluated:
            raise ValueError(f"Cannot select among unevaluated individuals: {individual}")


def rank_population(population: Sequence[Individual]) -> List[Individual]:
    """Individuals sorted by fitness, best first (stable on ties)"""
    _check_evaluated(population)
    return sorted(population, key=lambda ind: ind.fitness, reverse=True)


def select_elites(population: Sequence[Individual], elite_count: int) -> List[Individual]:
    """Top `elite_count` individuals, carried over unchanged"""
    if elite_count <= 0:
        return []
    return rank_population(population)[:elite_count]


def tournament_select(
    population: Sequence[Individual],
    rng: np.random.Generator,
    tournament_size: int = 3
) -> Individual:
    """Best of `tournament_size` individuals drawn with replacement"""
    _check_evaluated(population)
    indices = rng.integers(0, len(population), size=max(1, tournament_size))
    contenders = [population[i] for i in indices]
    return max(contenders, key=lambda ind: ind.fitness)


def truncation_select(
    population: Sequence[Individual],
    rng: np.random.Generator,
    selection_ratio: float = 0.7
) -> Individual:
    """Uniform pick among the best `selection_ratio` share of the population"""
    ranked = rank_population(population)
    pool_size = max(1, int(round(len(ranked) * selection_ratio)))
    return ranked[rng.integers(0, pool_size)]


def single_point_crossover(
    parent1: np.ndarray,
    parent2: np.ndarray,
    rng: np.random.Generator
) -> np.ndarray:
    """Child takes parent1's genes before a random split point and parent2's after"""
    _check_same_length(parent1, parent2)
    if len(parent1) < 2:
        return np.array(parent1, dtype=np.float64)
    point = rng.integers(1, len(parent1))
    return np.concatenate([parent1[:point], parent2[point:]]).astype(np.float64)


def blend_crossover(
    parent1: np.ndarray,
    parent2: np.ndarray,
    rng: Optional[np.random.Generator] = None
) -> np.ndarray:
    """Per-component average of the parents"""
    _check_same_length(parent1, parent2)
    return (np.asarray(parent1, dtype=np.float64) + np.asarray(parent2, dtype=np.float64)) / 2.0


def _check_same_length(parent1: np.ndarray, parent2: np.ndarray):
    if len(parent1) != len(parent2):
        raise ValueError(
            f"Parents have different lengths: {len(parent1)} and {len(parent2)}"
        )


def crossover(
    parent1: np.ndarray,
    parent2: np.ndarray,
    rng: np.random.Generator,
    method: str = 'single_point',
    crossover_rate: float = 1.0
) -> np.ndarray:
    """
    Combine two parents into a new child vector

    With probability 1 - crossover_rate the child is a copy of parent1.
    """
    if method not in CROSSOVER_METHODS:
        raise ValueError(f"Unknown crossover method: {method}")
    if rng.random() >= crossover_rate:
        _check_same_length(parent1, parent2)
        return np.array(parent1, dtype=np.float64)
    if method == 'single_point':
        return single_point_crossover(parent1, parent2, rng)
    return blend_crossover(parent1, parent2, rng)


def mutate(
    weights: np.ndarray,
    rng: np.random.Generator,
    mutation_rate: float,
    mutation_strength: float
) -> np.ndarray:
    """
    Perturb each component with probability `mutation_rate`

    Noise is uniform in [-mutation_strength, mutation_strength] and results
    are not clipped, so weights can drift outside the initial range.
    """
    mutated = np.array(weights, dtype=np.float64)
    mask = rng.random(len(mutated)) < mutation_rate
    if mask.any():
        noise = rng.uniform(-mutation_strength, mutation_strength, len(mutated))
        mutated[mask] += noise[mask]
    return mutated


def select_parent(
    population: Sequence[Individual],
    rng: np.random.Generator,
    method: str = 'tournament',
    tournament_size: int = 3,
    selection_ratio: float = 0.7
) -> Individual:
    if method == 'tournament':
        return tournament_select(population, rng, tournament_size)
    if method == 'truncation':
        return truncation_select(population, rng, selection_ratio)
    raise ValueError(f"Unknown selection method: {method}")


def next_generation(
    population: Sequence[Individual],
    rng: np.random.Generator,
    elite_count: int = 2,
    selection: str = 'tournament',
    tournament_size: int = 3,
    selection_ratio: float = 0.7,
    crossover_method: str = 'single_point',
    crossover_rate: float = 0.9,
    mutation_rate: float = 0.05,
    mutation_strength: float = 0.5
) -> List[Individual]:
    """
    Elites plus bred children, same size as `population`

    Elites keep their cached evaluation; children are unevaluated.
    """
    _check_evaluated(population)
    size = len(population)
    new_population = list(select_elites(population, min(elite_count, size)))

    while len(new_population) < size:
        parent1 = select_parent(population, rng, selection, tournament_size, selection_ratio)
        parent2 = select_parent(population, rng, selection, tournament_size, selection_ratio)
        child = crossover(parent1.weights, parent2.weights, rng, crossover_method, crossover_rate)
        child = mutate(child, rng, mutation_rate, mutation_strength)
        new_population.append(Individual(child))

    return new_population
