"""
Generate fitness and terminal-reason plots from an evolution history JSON.

Creates:
- Best / mean fitness per generation, with the reference weights' fitness
- Share of games per terminal reason per generation

Usage:
    python scripts/generate_evolution_plots.py results/data/genetic_..._history.json
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import argparse
import json
import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from core.environment import TerminalReason


def plot_fitness(history: dict, output_path: Path):
    """Generate and save best/mean fitness plot"""
    records = history['history']
    generations = [r['generation'] for r in records]
    best = np.array([r['best_fitness'] for r in records])
    mean = np.array([r['mean_fitness'] for r in records])
    std = np.array([r['std_fitness'] for r in records])

    fig, ax = plt.subplots(figsize=(8, 5))

    ax.plot(generations, best, color='green', linewidth=2, label='Best')
    ax.plot(generations, mean, color='blue', linewidth=1.5, label='Mean')
    ax.fill_between(generations, mean - std, mean + std, color='blue', alpha=0.15)

    reference = history.get('reference_fitness')
    if reference is not None:
        ax.axhline(y=reference, color='darkred', linestyle='--', linewidth=1.5, alpha=0.8)
        ax.text(generations[0], reference, f'Reference: {reference:.2f}',
                color='darkred', fontsize=10, fontweight='bold', va='bottom')

    ax.set_xlabel('Generation', fontsize=12)
    ax.set_ylabel('Fitness (food eaten + survival)', fontsize=12)
    ax.set_title('Genetic Weight Search - Fitness', fontsize=14)
    ax.legend(loc='lower right', fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close()

    print(f"Saved: {output_path}")


def plot_terminal_reasons(history: dict, output_path: Path):
    """Generate terminal reason share plot"""
    records = history['history']
    generations = [r['generation'] for r in records]

    fig, ax = plt.subplots(figsize=(8, 5))

    colors = {
        TerminalReason.WALL: 'red',
        TerminalReason.SELF_COLLISION: 'blue',
        TerminalReason.STEP_LIMIT: 'orange',
        TerminalReason.BOARD_FULL: 'green'
    }
    for reason, color in colors.items():
        shares = []
        for r in records:
            counts = r['terminal_reasons']
            total = sum(counts.values())
            shares.append(counts.get(reason.value, 0) / total * 100 if total else 0.0)
        ax.plot(generations, shares, linewidth=2, label=reason.value, color=color)

    ax.set_xlabel('Generation', fontsize=12)
    ax.set_ylabel('Games (%)', fontsize=12)
    ax.set_title('Genetic Weight Search - Terminal Reasons', fontsize=14)
    ax.legend(loc='upper right', fontsize=10)
    ax.grid(True, alpha=0.3)
    ax.set_ylim(0, 100)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close()

    print(f"Saved: {output_path}")


def main():
    parser = argparse.ArgumentParser(description='Plot a genetic evolution history')
    parser.add_argument('history', type=str, help='History JSON written by train_genetic.py')
    parser.add_argument('--output-dir', type=str, default='results/figures', help='Figure directory')
    args = parser.parse_args()

    with open(args.history) as f:
        history = json.load(f)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    stem = Path(args.history).stem
    plot_fitness(history, output_dir / f"{stem}_fitness.png")
    plot_terminal_reasons(history, output_dir / f"{stem}_terminal_reasons.png")


if __name__ == '__main__':
    main()
