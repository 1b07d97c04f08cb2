"""
Genetic Algorithm Training for the Heuristic Snake Agent

Evolves the weight vector of the heuristic agent. Each individual is scored by
playing the same seeded games; elites survive unchanged so the best fitness
never decreases from one generation to the next.

Usage:
    python scripts/training/train_genetic.py --population 100 --generations 200
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import argparse
import json
import time
from collections import Counter
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import List, Optional

import numpy as np

from agents.heuristic_agent import GOOD_WEIGHTS
from core.evaluation import FitnessEvaluator, EvaluationResult
from core.genetic import (
    CROSSOVER_METHODS,
    GENOME_MAX_VALUE,
    GENOME_MIN_VALUE,
    SELECTION_METHODS,
    Individual,
    next_generation,
    random_population,
    rank_population
)
from core.state_representations import FEATURE_NAMES, MAX_DEPTH
from core.utils import EvolutionTracker, derive_seeds, save_weights, set_seed


@dataclass
class GeneticConfig:
    """Configuration for genetic weight search"""
    # Environment
    width: int = 10
    height: int = 10
    initial_length: int = 3
    max_steps: int = 1000
    max_depth: Optional[int] = MAX_DEPTH

    # Population
    population_size: int = 100
    elite_count: int = 2
    seed_with_reference: bool = False
    weight_min: float = GENOME_MIN_VALUE
    weight_max: float = GENOME_MAX_VALUE

    # Operators
    selection: str = 'tournament'
    tournament_size: int = 3
    selection_ratio: float = 0.7
    crossover: str = 'single_point'
    crossover_rate: float = 0.9
    mutation_rate: float = 0.05
    mutation_strength: float = 0.5

    # Evaluation
    games_per_eval: int = 15
    num_workers: int = 1

    # Stopping
    max_generations: int = 200
    target_fitness: Optional[float] = None
    max_time: Optional[float] = None  # seconds

    # Output
    save_dir: str = 'results/weights/genetic'
    seed: int = 67
    log_interval: int = 1

    def __post_init__(self):
        """Reject unusable configurations before any generation runs"""
        if self.population_size < 1:
            raise ValueError(f"population_size must be >= 1, got {self.population_size}")
        # At least one elite keeps the best fitness non-decreasing
        if not 1 <= self.elite_count < self.population_size:
            raise ValueError(
                f"elite_count must be in [1, population_size), got {self.elite_count}"
            )
        if self.selection not in SELECTION_METHODS:
            raise ValueError(f"Unknown selection: {self.selection} (choose from {SELECTION_METHODS})")
        if self.crossover not in CROSSOVER_METHODS:
            raise ValueError(f"Unknown crossover: {self.crossover} (choose from {CROSSOVER_METHODS})")
        for name in ('mutation_rate', 'crossover_rate', 'selection_ratio'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if self.selection_ratio == 0.0:
            raise ValueError("selection_ratio must be > 0")
        if self.mutation_strength < 0:
            raise ValueError(f"mutation_strength must be >= 0, got {self.mutation_strength}")
        if self.tournament_size < 1:
            raise ValueError(f"tournament_size must be >= 1, got {self.tournament_size}")
        if self.weight_min >= self.weight_max:
            raise ValueError(f"Empty weight range [{self.weight_min}, {self.weight_max}]")
        if self.games_per_eval < 1:
            raise ValueError(f"games_per_eval must be >= 1, got {self.games_per_eval}")
        if self.max_generations < 1:
            raise ValueError(f"max_generations must be >= 1, got {self.max_generations}")
        if self.num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {self.num_workers}")
        if self.log_interval < 1:
            raise ValueError(f"log_interval must be >= 1, got {self.log_interval}")


class GeneticTrainer:
    """Generational loop: evaluate, record, breed"""

    def __init__(self, config: GeneticConfig):
        self.config = config
        set_seed(config.seed)

        # Operators and evaluation seeds draw from independent streams
        self.rng = np.random.default_rng(np.random.SeedSequence(config.seed).spawn(2)[1])
        self.evaluator = FitnessEvaluator(
            seeds=derive_seeds(config.seed, config.games_per_eval),
            width=config.width,
            height=config.height,
            initial_length=config.initial_length,
            max_steps=config.max_steps,
            max_depth=config.max_depth
        )

        self.save_dir = Path(config.save_dir)

        self.population: List[Individual] = random_population(
            config.population_size,
            self.rng,
            low=config.weight_min,
            high=config.weight_max,
            seed_weights=GOOD_WEIGHTS if config.seed_with_reference else None
        )

        # Metrics
        self.generation = 0
        self.metrics = EvolutionTracker()
        self.best: Optional[Individual] = None
        self.best_generation = 0
        self.reference: Optional[EvaluationResult] = None
        self.stop_reason: Optional[str] = None

    def evaluate_population(self, population: List[Individual]):
        """
        Fill in the fitness of every unevaluated individual

        All evaluations finish before this returns, so selection only ever
        sees a fully evaluated population.
        """
        pending = [ind for ind in population if not ind.is_evaluated]
        if not pending:
            return

        weights = [ind.weights for ind in pending]
        if self.config.num_workers > 1:
            with ProcessPoolExecutor(max_workers=self.config.num_workers) as executor:
                results = list(executor.map(self.evaluator.evaluate, weights))
        else:
            results = [self.evaluator.evaluate(w) for w in weights]

        for individual, result in zip(pending, results):
            individual.evaluation = result

    def evaluate_reference(self) -> EvaluationResult:
        """Score the hand-tuned weights on the same games"""
        self.reference = self.evaluator.evaluate(GOOD_WEIGHTS)
        return self.reference

    def record_generation(self):
        """Track the current (evaluated) generation"""
        ranked = rank_population(self.population)
        leader = ranked[0]

        if self.best is None or leader.fitness > self.best.fitness:
            self.best = leader
            self.best_generation = self.generation

        terminal_reasons = Counter()
        for individual in self.population:
            terminal_reasons.update(individual.evaluation.terminal_reasons)

        self.metrics.add_generation(
            generation=self.generation,
            fitnesses=[ind.fitness for ind in self.population],
            best_score=leader.evaluation.mean_score,
            best_weights=leader.weights,
            terminal_reasons=terminal_reasons
        )

    def should_stop(self, start_time: float) -> bool:
        if self.generation + 1 >= self.config.max_generations:
            self.stop_reason = f"Generation limit {self.config.max_generations} reached"
            return True
        if self.config.target_fitness is not None and self.best.fitness >= self.config.target_fitness:
            self.stop_reason = f"Target fitness {self.config.target_fitness} reached"
            return True
        if self.config.max_time is not None and time.time() - start_time >= self.config.max_time:
            self.stop_reason = f"Max time {self.config.max_time}s reached"
            return True
        return False

    def step(self):
        """Breed the next generation from the current evaluated one"""
        cfg = self.config
        self.population = next_generation(
            self.population,
            self.rng,
            elite_count=cfg.elite_count,
            selection=cfg.selection,
            tournament_size=cfg.tournament_size,
            selection_ratio=cfg.selection_ratio,
            crossover_method=cfg.crossover,
            crossover_rate=cfg.crossover_rate,
            mutation_rate=cfg.mutation_rate,
            mutation_strength=cfg.mutation_strength
        )
        self.generation += 1
        self.evaluate_population(self.population)
        self.record_generation()

    def train(self, verbose: bool = True) -> Individual:
        """
        Run the generational loop until a stopping criterion is met

        Returns:
            Best individual found
        """
        cfg = self.config
        start_time = time.time()

        if verbose:
            print("\n" + "=" * 70, flush=True)
            print("GENETIC WEIGHT SEARCH", flush=True)
            print("=" * 70, flush=True)
            print(f"Grid: {cfg.width}x{cfg.height}, max steps: {cfg.max_steps}", flush=True)
            print(f"Population: {cfg.population_size}, elites: {cfg.elite_count}", flush=True)
            print(f"Selection: {cfg.selection}, crossover: {cfg.crossover} ({cfg.crossover_rate})", flush=True)
            print(f"Mutation: rate {cfg.mutation_rate}, strength {cfg.mutation_strength}", flush=True)
            print(f"Games per evaluation: {cfg.games_per_eval}, workers: {cfg.num_workers}", flush=True)
            print(f"Features: {', '.join(FEATURE_NAMES)}", flush=True)
            print("=" * 70 + "\n", flush=True)

        reference = self.evaluate_reference()
        if verbose:
            print(f"Reference weights: fitness {reference.fitness:.4f}, "
                  f"avg score {reference.mean_score:.2f}", flush=True)
            print(flush=True)

        self.evaluate_population(self.population)
        self.record_generation()
        if verbose:
            self._log_generation(start_time)

        while not self.should_stop(start_time):
            self.step()
            if verbose and self.generation % cfg.log_interval == 0:
                self._log_generation(start_time)

        total_time = time.time() - start_time

        if verbose:
            print("\n" + "=" * 70, flush=True)
            print("EVOLUTION COMPLETE!", flush=True)
            print("=" * 70, flush=True)
            print(self.stop_reason, flush=True)
            print(f"Total time: {total_time:.1f}s, generations: {self.generation + 1}", flush=True)
            print(f"Best fitness {self.best.fitness:.4f} found in generation {self.best_generation}", flush=True)
            print(f"Best avg score: {self.best.evaluation.mean_score:.2f}", flush=True)
            print(f"Reference fitness: {reference.fitness:.4f} "
                  f"({'beaten' if self.best.fitness > reference.fitness else 'not beaten'})", flush=True)
            print(f"Best weights: {self._format_weights(self.best.weights)}", flush=True)
            print("=" * 70 + "\n", flush=True)

        return self.best

    def _log_generation(self, start_time: float):
        stats = self.metrics.get_recent_stats()
        print(f"Generation {self.generation}", flush=True)
        print(f"  Best Fitness: {stats['best_fitness']:.4f}", flush=True)
        print(f"  Avg Fitness: {self.metrics.mean_fitness[-1]:.4f}", flush=True)
        print(f"  Best Avg Score: {stats['best_score']:.2f}", flush=True)
        print(f"  Elapsed: {time.time() - start_time:.1f}s", flush=True)
        print(f"  Best Weights: {self._format_weights(self.metrics.best_weights[-1])}", flush=True)
        print(flush=True)

    @staticmethod
    def _format_weights(weights) -> str:
        return ', '.join(f"{name}={w:+.3f}" for name, w in zip(FEATURE_NAMES, weights))

    def save(self, filename: str) -> Path:
        """Save the best weight vector"""
        if self.best is None:
            raise RuntimeError("Nothing to save: no generation has been evaluated")
        filepath = self.save_dir / filename
        save_weights(self.best.weights, filepath, {
            'fitness': self.best.fitness,
            'mean_score': self.best.evaluation.mean_score,
            'generation': self.best_generation,
            'config': asdict(self.config)
        })
        return filepath

    def save_history(self, filepath: Path) -> Path:
        """Save evolution history to JSON"""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w') as f:
            json.dump({
                'generations': self.generation + 1,
                'stop_reason': self.stop_reason,
                'best_fitness': self.best.fitness if self.best else None,
                'best_generation': self.best_generation,
                'best_weights': self.best.weights.tolist() if self.best else None,
                'reference_fitness': self.reference.fitness if self.reference else None,
                'feature_names': list(FEATURE_NAMES),
                'evaluation': self.evaluator.describe(),
                'history': self.metrics.to_history(),
                'config': asdict(self.config)
            }, f, indent=2)

        print(f"Saved evolution history: {filepath}", flush=True)
        return filepath


def main():
    parser = argparse.ArgumentParser(
        description='Evolve heuristic Snake weights with a genetic algorithm',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    # Environment config
    parser.add_argument('--width', type=int, default=10, help='Grid width')
    parser.add_argument('--height', type=int, default=10, help='Grid height')
    parser.add_argument('--max-steps', type=int, default=1000, help='Step cap per game')

    # GA config
    parser.add_argument('--population', type=int, default=100, help='Population size')
    parser.add_argument('--generations', type=int, default=200, help='Maximum number of generations')
    parser.add_argument('--elites', type=int, default=2, help='Individuals carried over unchanged')
    parser.add_argument('--selection', choices=SELECTION_METHODS, default='tournament', help='Parent selection')
    parser.add_argument('--tournament-size', type=int, default=3, help='Tournament size')
    parser.add_argument('--selection-ratio', type=float, default=0.7, help='Truncation selection ratio')
    parser.add_argument('--crossover', choices=CROSSOVER_METHODS, default='single_point', help='Crossover operator')
    parser.add_argument('--crossover-rate', type=float, default=0.9, help='Crossover probability')
    parser.add_argument('--mutation-rate', type=float, default=0.05, help='Per-weight mutation probability')
    parser.add_argument('--mutation-strength', type=float, default=0.5, help='Max mutation noise')
    parser.add_argument('--seed-reference', action='store_true', help='Seed the population with the reference weights')

    # Evaluation / stopping
    parser.add_argument('--games', type=int, default=15, help='Seeded games per evaluation')
    parser.add_argument('--workers', type=int, default=1, help='Parallel evaluation processes')
    parser.add_argument('--target-fitness', type=float, default=None, help='Stop once reached')
    parser.add_argument('--max-time', type=float, default=None, help='Wall-clock budget in seconds')

    # Other
    parser.add_argument('--seed', type=int, default=67, help='Random seed')
    parser.add_argument('--log-interval', type=int, default=1, help='Logging interval (generations)')
    parser.add_argument('--save-dir', type=str, default='results/weights/genetic', help='Directory for weights')
    parser.add_argument('--history-dir', type=str, default='results/data', help='Directory for history JSON')

    args = parser.parse_args()

    config = GeneticConfig(
        width=args.width,
        height=args.height,
        max_steps=args.max_steps,
        population_size=args.population,
        max_generations=args.generations,
        elite_count=args.elites,
        selection=args.selection,
        tournament_size=args.tournament_size,
        selection_ratio=args.selection_ratio,
        crossover=args.crossover,
        crossover_rate=args.crossover_rate,
        mutation_rate=args.mutation_rate,
        mutation_strength=args.mutation_strength,
        seed_with_reference=args.seed_reference,
        games_per_eval=args.games,
        num_workers=args.workers,
        target_fitness=args.target_fitness,
        max_time=args.max_time,
        seed=args.seed,
        log_interval=args.log_interval,
        save_dir=args.save_dir
    )

    trainer = GeneticTrainer(config)
    trainer.train(verbose=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    trainer.save(f"genetic_{config.width}x{config.height}_gen{trainer.generation + 1}_{timestamp}.pt")
    trainer.save_history(Path(args.history_dir) / f"genetic_{timestamp}_history.json")


if __name__ == '__main__':
    main()
