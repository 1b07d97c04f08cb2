"""
Weight Evaluation Script

Compares saved weight vectors against the hand-tuned reference weights and
the random baseline over the same seeded games.

Usage:
    python scripts/evaluate_weights.py results/weights/genetic/*.pt --games 100
    python scripts/evaluate_weights.py best.pt --render --seed 3
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import argparse

from agents.heuristic_agent import HeuristicAgent, GOOD_WEIGHTS
from core.evaluation import FitnessEvaluator, EvaluationResult, play_episode
from core.environment import SnakeEnv
from core.utils import derive_seeds, load_weights
from scripts.baselines.random_agent import RandomAgent


def render_game(agent, width: int, height: int, max_steps: int, seed: int):
    """Play one game and print every frame"""
    env = SnakeEnv(width=width, height=height, max_steps=max_steps)
    env.reset(seed=seed)
    print(env.render())
    while not env.done:
        env.step(agent.get_action(env))
        print(env.render())


def format_row(name: str, result: EvaluationResult) -> str:
    reasons = ', '.join(f"{reason.value}={count}" for reason, count in sorted(
        result.terminal_reasons.items(), key=lambda item: item[0].value))
    return (f"{name:<40} {result.fitness:>9.3f} {result.mean_score:>9.2f} "
            f"{result.max_score:>6} {result.mean_steps:>9.1f}  {reasons}")


def main():
    parser = argparse.ArgumentParser(
        description='Evaluate heuristic weight vectors',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('weights', nargs='*', help='Saved weight files (.pt)')
    parser.add_argument('--games', type=int, default=100, help='Seeded games per agent')
    parser.add_argument('--width', type=int, default=10, help='Grid width')
    parser.add_argument('--height', type=int, default=10, help='Grid height')
    parser.add_argument('--max-steps', type=int, default=1000, help='Step cap per game')
    parser.add_argument('--seed', type=int, default=2024, help='Seed for the game seeds')
    parser.add_argument('--render', action='store_true', help='Print one game of the first weight file')
    args = parser.parse_args()

    evaluator = FitnessEvaluator(
        seeds=derive_seeds(args.seed, args.games),
        width=args.width,
        height=args.height,
        max_steps=args.max_steps
    )

    loaded = []
    for path in args.weights:
        weights, info = load_weights(path)
        loaded.append((Path(path).name, weights))

    if args.render:
        weights = loaded[0][1] if loaded else GOOD_WEIGHTS
        render_game(HeuristicAgent(weights), args.width, args.height, args.max_steps, evaluator.seeds[0])
        return

    print("=" * 100)
    print(f"{'Agent':<40} {'Fitness':>9} {'AvgScore':>9} {'Max':>6} {'AvgSteps':>9}  Terminal reasons")
    print("-" * 100)
    print(format_row('random (non-suicide)', evaluator.evaluate_agent(RandomAgent(seed=args.seed))))
    print(format_row('reference (good weights)', evaluator.evaluate(GOOD_WEIGHTS)))
    for name, weights in loaded:
        print(format_row(name, evaluator.evaluate(weights)))
    print("=" * 100)


if __name__ == '__main__':
    main()
