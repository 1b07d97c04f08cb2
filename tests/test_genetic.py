"""
Tests for the genetic algorithm operators and the training loop
"""

import json
import pytest
import numpy as np
from core.evaluation import EvaluationResult
from core.genetic import (
    Individual,
    blend_crossover,
    crossover,
    mutate,
    next_generation,
    random_population,
    rank_population,
    select_elites,
    single_point_crossover,
    tournament_select,
    truncation_select
)
from core.state_representations import NUM_FEATURES
from core.utils import load_weights
from scripts.training.train_genetic import GeneticConfig, GeneticTrainer


def evaluated(weights, fitness: float) -> Individual:
    return Individual(weights, EvaluationResult(
        fitness=fitness, mean_score=fitness, max_score=int(fitness), mean_steps=1.0
    ))


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def population():
    return [evaluated(np.full(NUM_FEATURES, i / 10), float(i)) for i in range(5)]


class TestIndividual:
    """Test Individual bookkeeping"""

    def test_unevaluated(self):
        """Test a fresh individual has no fitness"""
        individual = Individual([0.0] * NUM_FEATURES)
        assert not individual.is_evaluated
        assert individual.fitness is None

    def test_replacing_weights_clears_fitness(self):
        """Test cached evaluation is dropped on new weights"""
        individual = evaluated([0.0] * NUM_FEATURES, 3.0)
        assert individual.fitness == 3.0

        individual.weights = [1.0] * NUM_FEATURES
        assert not individual.is_evaluated

    def test_rejects_bad_weights(self):
        """Test wrong-length weights are rejected"""
        with pytest.raises(ValueError):
            Individual([0.0])


class TestPopulation:
    """Test population creation and ranking"""

    def test_random_population(self, rng):
        """Test size and initial range"""
        population = random_population(20, rng)
        assert len(population) == 20
        for individual in population:
            assert individual.weights.shape == (NUM_FEATURES,)
            assert np.all(individual.weights >= -1.0)
            assert np.all(individual.weights <= 1.0)

    def test_seeded_population(self, rng):
        """Test the seed vector comes first"""
        seed_weights = [0.3] * NUM_FEATURES
        population = random_population(4, rng, seed_weights=seed_weights)
        assert len(population) == 4
        assert np.array_equal(population[0].weights, seed_weights)

    def test_invalid_population(self, rng):
        """Test invalid sizes and ranges"""
        with pytest.raises(ValueError):
            random_population(0, rng)
        with pytest.raises(ValueError):
            random_population(5, rng, low=1.0, high=1.0)

    def test_rank_population(self, population):
        """Test best-first ranking"""
        ranked = rank_population(population)
        assert [ind.fitness for ind in ranked] == [4.0, 3.0, 2.0, 1.0, 0.0]

    def test_rank_requires_evaluation(self, population):
        """Test ranking refuses unevaluated individuals"""
        with pytest.raises(ValueError):
            rank_population(population + [Individual([0.0] * NUM_FEATURES)])

    def test_select_elites(self, population):
        """Test elites are the top individuals"""
        elites = select_elites(population, 2)
        assert [ind.fitness for ind in elites] == [4.0, 3.0]
        assert select_elites(population, 0) == []


class TestSelection:
    """Test parent selection"""

    def test_tournament_returns_member(self, population, rng):
        """Test tournament winners come from the population"""
        for _ in range(20):
            assert tournament_select(population, rng, 2) in population

    def test_large_tournament_finds_best(self, population, rng):
        """Test a large tournament returns the best individual"""
        winner = tournament_select(population, rng, tournament_size=100)
        assert winner.fitness == 4.0

    def test_truncation_pool(self, population, rng):
        """Test truncation only picks from the top share"""
        for _ in range(20):
            assert truncation_select(population, rng, selection_ratio=0.4).fitness >= 3.0
        assert truncation_select(population, rng, selection_ratio=0.01).fitness == 4.0

    def test_selection_requires_evaluation(self, rng):
        """Test selection refuses an unevaluated population"""
        with pytest.raises(ValueError):
            tournament_select([Individual([0.0] * NUM_FEATURES)], rng)
        with pytest.raises(ValueError):
            tournament_select([], rng)


class TestCrossover:
    """Test crossover operators"""

    def test_single_point(self, rng):
        """Test the child is a prefix of one parent and a suffix of the other"""
        parent1 = np.zeros(NUM_FEATURES)
        parent2 = np.ones(NUM_FEATURES)

        for _ in range(20):
            child = single_point_crossover(parent1, parent2, rng)
            assert len(child) == NUM_FEATURES
            point = int(np.argmax(child))
            assert 1 <= point < NUM_FEATURES
            assert np.all(child[:point] == 0.0)
            assert np.all(child[point:] == 1.0)

    def test_blend(self):
        """Test the blend child is the average"""
        child = blend_crossover(np.zeros(NUM_FEATURES), np.full(NUM_FEATURES, 0.5))
        assert np.allclose(child, 0.25)

    def test_zero_rate_copies_parent(self, rng):
        """Test no crossover copies the first parent"""
        parent1 = np.arange(NUM_FEATURES, dtype=float)
        child = crossover(parent1, np.zeros(NUM_FEATURES), rng, crossover_rate=0.0)
        assert np.array_equal(child, parent1)
        assert child is not parent1

    def test_length_mismatch(self, rng):
        """Test parents of different lengths are rejected"""
        with pytest.raises(ValueError):
            crossover(np.zeros(3), np.zeros(4), rng)

    def test_unknown_method(self, rng):
        """Test unknown crossover names are rejected"""
        with pytest.raises(ValueError):
            crossover(np.zeros(3), np.zeros(3), rng, method='uniform')


class TestMutation:
    """Test mutation"""

    def test_zero_rate_is_identity(self, rng):
        """Test no mutation leaves the weights unchanged"""
        weights = np.linspace(-1, 1, NUM_FEATURES)
        assert np.array_equal(mutate(weights, rng, 0.0, 0.5), weights)

    def test_full_rate_bounded_noise(self, rng):
        """Test every gene moves by at most the strength"""
        weights = np.zeros(NUM_FEATURES)
        mutated = mutate(weights, rng, 1.0, 0.5)

        assert mutated.shape == weights.shape
        assert np.all(np.abs(mutated) <= 0.5)
        assert np.all(weights == 0.0)

    def test_not_clipped(self, rng):
        """Test mutation can leave the initial range"""
        mutated = mutate(np.ones(NUM_FEATURES), rng, 1.0, 0.5)
        assert np.all(mutated >= 0.5)
        assert np.all(mutated <= 1.5)


class TestNextGeneration:
    """Test generational replacement"""

    def test_size_and_elites(self, population, rng):
        """Test elites are carried over and children are fresh"""
        children = next_generation(population, rng, elite_count=2)

        assert len(children) == len(population)
        assert children[0] is population[4]
        assert children[1] is population[3]
        assert children[0].fitness == 4.0
        assert all(not ind.is_evaluated for ind in children[2:])

    def test_parents_untouched(self, population, rng):
        """Test breeding never edits the parents"""
        before = [ind.weights.copy() for ind in population]
        next_generation(population, rng, elite_count=1, mutation_rate=1.0)
        for ind, weights in zip(population, before):
            assert np.array_equal(ind.weights, weights)

    def test_reproducible(self, population):
        """Test the same seed breeds the same children"""
        first = next_generation(population, np.random.default_rng(7), elite_count=1)
        second = next_generation(population, np.random.default_rng(7), elite_count=1)
        for a, b in zip(first, second):
            assert np.array_equal(a.weights, b.weights)


class TestGeneticConfig:
    """Test configuration validation"""

    def test_defaults(self):
        """Test default configuration"""
        config = GeneticConfig()
        assert config.population_size == 100
        assert config.games_per_eval == 15
        assert config.mutation_rate == 0.05

    @pytest.mark.parametrize('overrides', [
        {'population_size': 0},
        {'population_size': 4, 'elite_count': 4},
        {'elite_count': 0},
        {'elite_count': -1},
        {'selection': 'roulette'},
        {'crossover': 'uniform'},
        {'mutation_rate': 1.5},
        {'crossover_rate': -0.1},
        {'selection_ratio': 0.0},
        {'mutation_strength': -1.0},
        {'games_per_eval': 0},
        {'max_generations': 0},
        {'weight_min': 1.0, 'weight_max': -1.0},
    ])
    def test_invalid(self, overrides):
        """Test invalid settings are rejected"""
        with pytest.raises(ValueError):
            GeneticConfig(**overrides)


class TestGeneticTrainer:
    """Test the generational loop"""

    @pytest.fixture
    def config(self, tmp_path):
        return GeneticConfig(
            width=8,
            height=8,
            max_steps=100,
            population_size=6,
            elite_count=1,
            games_per_eval=2,
            max_generations=4,
            save_dir=str(tmp_path / 'weights'),
            seed=3
        )

    def test_best_fitness_never_decreases(self, config):
        """Test elitism keeps the best fitness monotone"""
        trainer = GeneticTrainer(config)
        best = trainer.train(verbose=False)

        history = trainer.metrics.best_fitness
        assert len(history) == 4
        assert all(b >= a for a, b in zip(history, history[1:]))
        assert best.fitness == max(history)
        assert trainer.reference is not None

    def test_single_elite_survives_heavy_mutation(self, tmp_path):
        """Test one elite keeps the best fitness monotone under disruptive mutation"""
        config = GeneticConfig(
            width=8,
            height=8,
            max_steps=100,
            population_size=4,
            elite_count=1,
            games_per_eval=2,
            max_generations=6,
            mutation_rate=1.0,
            mutation_strength=2.0,
            save_dir=str(tmp_path),
            seed=0
        )
        trainer = GeneticTrainer(config)
        trainer.train(verbose=False)

        history = trainer.metrics.best_fitness
        assert len(history) == 6
        assert all(b >= a for a, b in zip(history, history[1:]))

    def test_parallel_matches_serial(self, config):
        """Test worker-process evaluation gives the same run as serial evaluation"""
        serial = GeneticTrainer(config)
        serial.train(verbose=False)

        config.num_workers = 2
        parallel = GeneticTrainer(config)
        parallel.train(verbose=False)

        assert parallel.metrics.best_fitness == serial.metrics.best_fitness
        assert parallel.metrics.mean_fitness == serial.metrics.mean_fitness
        assert np.array_equal(parallel.best.weights, serial.best.weights)
        assert all(ind.is_evaluated for ind in parallel.population)

    def test_same_seed_same_run(self, config):
        """Test a run is reproducible from its seed"""
        first = GeneticTrainer(config)
        first.train(verbose=False)
        second = GeneticTrainer(config)
        second.train(verbose=False)

        assert first.metrics.best_fitness == second.metrics.best_fitness
        assert np.array_equal(first.best.weights, second.best.weights)

    def test_target_fitness_stops_early(self, config):
        """Test a reachable target ends the run after the first generation"""
        config.target_fitness = 0.0
        trainer = GeneticTrainer(config)
        trainer.train(verbose=False)

        assert trainer.generation == 0
        assert 'Target fitness' in trainer.stop_reason

    def test_save_and_history(self, config, tmp_path):
        """Test best weights and history are written"""
        trainer = GeneticTrainer(config)
        trainer.train(verbose=False)

        path = trainer.save('best.pt')
        weights, info = load_weights(path)
        assert np.allclose(weights, trainer.best.weights)
        assert info['fitness'] == trainer.best.fitness

        history_path = trainer.save_history(tmp_path / 'history.json')
        with open(history_path) as f:
            history = json.load(f)
        assert history['generations'] == 4
        assert len(history['history']) == 4
        assert history['best_fitness'] == trainer.best.fitness

    def test_save_before_training(self, config):
        """Test saving without an evaluated generation"""
        with pytest.raises(RuntimeError):
            GeneticTrainer(config).save('best.pt')


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
