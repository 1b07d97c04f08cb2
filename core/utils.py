"""
Utility Functions for Evolved Snake

Includes:
- Seeding helpers
- Per-generation metric tracking
- Weight vector persistence
"""

import numpy as np
import torch
import random
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from core.environment import TerminalReason
from core.state_representations import FEATURE_NAMES, NUM_FEATURES


class EvolutionTracker:
    """
    Track evolution metrics (fitness per generation, terminal reasons, etc.)
    """

    def __init__(self, window_size: int = 10):
        """
        Initialize metrics tracker

        Args:
            window_size: Window size (in generations) for moving averages
        """
        self.window_size = window_size
        self.generations: List[int] = []
        self.best_fitness: List[float] = []
        self.mean_fitness: List[float] = []
        self.std_fitness: List[float] = []
        self.best_scores: List[float] = []
        self.best_weights: List[List[float]] = []

        # Terminal reasons over every game played by each generation
        self.terminal_counts_per_generation: List[Counter] = []

    def add_generation(
        self,
        generation: int,
        fitnesses: Sequence[float],
        best_score: float,
        best_weights: Sequence[float],
        terminal_reasons: Optional[Counter] = None
    ):
        """
        Record one evaluated generation

        Args:
            generation: Generation index
            fitnesses: Fitness of every individual
            best_score: Mean food eaten by the best individual
            best_weights: Weight vector of the best individual
            terminal_reasons: Counts of how the generation's games ended
        """
        self.generations.append(generation)
        self.best_fitness.append(float(np.max(fitnesses)))
        self.mean_fitness.append(float(np.mean(fitnesses)))
        self.std_fitness.append(float(np.std(fitnesses)))
        self.best_scores.append(float(best_score))
        self.best_weights.append([float(w) for w in best_weights])
        self.terminal_counts_per_generation.append(Counter(terminal_reasons or {}))

    def get_recent_stats(self) -> dict:
        """Get statistics for recent generations"""
        if not self.generations:
            return {}

        window = min(self.window_size, len(self.generations))

        return {
            'best_fitness': self.best_fitness[-1],
            'avg_best_fitness': float(np.mean(self.best_fitness[-window:])),
            'avg_mean_fitness': float(np.mean(self.mean_fitness[-window:])),
            'best_score': self.best_scores[-1],
            'generations': len(self.generations)
        }

    def get_terminal_stats(self) -> dict:
        """Get terminal reason rates of the latest generation"""
        if not self.terminal_counts_per_generation:
            return {reason.value: 0.0 for reason in TerminalReason}

        counts = self.terminal_counts_per_generation[-1]
        total = sum(counts.values())
        return {
            reason.value: (counts.get(reason, 0) / total if total else 0.0)
            for reason in TerminalReason
        }

    def to_history(self) -> List[Dict]:
        """Per-generation records for JSON export"""
        return [
            {
                'generation': gen,
                'best_fitness': best,
                'mean_fitness': mean,
                'std_fitness': std,
                'best_score': score,
                'best_weights': weights,
                'terminal_reasons': {
                    TerminalReason(reason).value: count for reason, count in counts.items()
                }
            }
            for gen, best, mean, std, score, weights, counts in zip(
                self.generations, self.best_fitness, self.mean_fitness,
                self.std_fitness, self.best_scores, self.best_weights,
                self.terminal_counts_per_generation
            )
        ]

    def save_to_csv(self, filepath: str):
        """Save metrics to CSV file"""
        import csv

        with open(filepath, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(['generation', 'best_fitness', 'mean_fitness', 'std_fitness', 'best_score']
                            + [f'w_{name}' for name in FEATURE_NAMES])

            for gen, best, mean, std, score, weights in zip(
                self.generations, self.best_fitness, self.mean_fitness,
                self.std_fitness, self.best_scores, self.best_weights
            ):
                writer.writerow([gen, best, mean, std, score] + list(weights))


def set_seed(seed: int):
    """
    Set random seeds for reproducibility

    Args:
        seed: Random seed value
    """
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)


def derive_seeds(seed: int, count: int) -> Tuple[int, ...]:
    """Independent game seeds derived from a run seed"""
    if count < 1:
        raise ValueError(f"Need at least one game seed, got count={count}")
    rng = np.random.default_rng(np.random.SeedSequence(seed).spawn(1)[0])
    return tuple(int(s) for s in rng.integers(0, 2**31 - 1, size=count))


def save_weights(weights: Sequence[float], filepath: Union[str, Path], additional_info: dict = None):
    """
    Save a weight vector and optional metadata

    Args:
        weights: One weight per feature, in FEATURE_NAMES order
        filepath: Path to save file
        additional_info: Optional dictionary with fitness, generation, etc.
    """
    weights = np.asarray(weights, dtype=np.float64)
    if weights.shape != (NUM_FEATURES,):
        raise ValueError(f"Expected {NUM_FEATURES} weights, got shape {weights.shape}")

    save_dict = {
        'weights': torch.tensor(weights, dtype=torch.float64),
        'feature_names': list(FEATURE_NAMES)
    }

    if additional_info:
        save_dict.update(additional_info)

    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    torch.save(save_dict, filepath)
    print(f"Weights saved to {filepath}")


def load_weights(filepath: Union[str, Path]) -> Tuple[np.ndarray, dict]:
    """
    Load a weight vector and its metadata

    Args:
        filepath: Path to saved file

    Returns:
        (weights, additional info)

    Raises:
        ValueError: if the file was written for a different feature schema
    """
    checkpoint = torch.load(filepath, map_location='cpu', weights_only=False)

    feature_names = list(checkpoint.get('feature_names', []))
    if feature_names != list(FEATURE_NAMES):
        raise ValueError(
            f"Weights in {filepath} were saved for features {feature_names}, "
            f"expected {list(FEATURE_NAMES)}"
        )

    weights = checkpoint['weights'].detach().cpu().numpy().astype(np.float64)
    if weights.shape != (NUM_FEATURES,):
        raise ValueError(f"Expected {NUM_FEATURES} weights in {filepath}, got shape {weights.shape}")

    print(f"Weights loaded from {filepath}")

    # Return additional info
    info = {k: v for k, v in checkpoint.items() if k not in ('weights', 'feature_names')}
    return weights, info
