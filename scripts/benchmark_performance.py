"""
Performance Benchmark Script

Measures simulation speed of the heuristic and random agents: games per
second and steps per second over many seeded games.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import argparse
import json
import time
from datetime import datetime

import numpy as np

from agents.heuristic_agent import HeuristicAgent, GOOD_WEIGHTS
from core.environment import SnakeEnv
from core.evaluation import play_episode
from core.utils import set_seed
from scripts.baselines.random_agent import RandomAgent


def benchmark_agent(name: str, agent, num_games: int, width: int, height: int, max_steps: int) -> dict:
    """Play `num_games` seeded games and time them"""
    env = SnakeEnv(width=width, height=height, max_steps=max_steps)

    start_time = time.time()
    steps = 0
    scores = []
    for seed in range(num_games):
        result = play_episode(env, agent, seed=seed)
        steps += result.steps
        scores.append(result.score)
    duration = time.time() - start_time

    print(f"Simulation with {name} ended:")
    print(f"\t- {num_games:12} simulations")
    print(f"\t- {steps:12} total steps")
    print(f"\t- {duration * 1000:12.3f} total time ms")
    print(f"\t- {steps / num_games:12.3f} steps/simulation")
    print(f"\t- {num_games / duration:12.3f} simulations/sec")
    print(f"\t- {steps / duration:12.3f} steps/sec")
    print(f"\t- {np.mean(scores):12.3f} avg score")
    print()

    return {
        'agent': name,
        'games': num_games,
        'total_steps': steps,
        'total_time': duration,
        'games_per_sec': num_games / duration,
        'steps_per_sec': steps / duration,
        'avg_score': float(np.mean(scores))
    }


def main():
    parser = argparse.ArgumentParser(description='Benchmark Snake simulation speed')
    parser.add_argument('--games', type=int, default=200, help='Games per agent')
    parser.add_argument('--width', type=int, default=10, help='Grid width')
    parser.add_argument('--height', type=int, default=10, help='Grid height')
    parser.add_argument('--max-steps', type=int, default=1000, help='Step cap per game')
    parser.add_argument('--output', type=str, default=None, help='Optional JSON results path')
    args = parser.parse_args()

    set_seed(67)

    print("=" * 80)
    print("SIMULATION BENCHMARK")
    print("=" * 80)
    print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print()

    results = [
        benchmark_agent('random', RandomAgent(seed=67), args.games,
                        args.width, args.height, args.max_steps),
        benchmark_agent('heuristic', HeuristicAgent(GOOD_WEIGHTS), args.games,
                        args.width, args.height, args.max_steps),
    ]

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, 'w') as f:
            json.dump(results, f, indent=2)
        print(f"Results saved to: {output}")


if __name__ == '__main__':
    main()
