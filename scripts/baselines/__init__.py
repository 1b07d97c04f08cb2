"""
Baseline Agents for Snake

Non-evolved agents for comparison
"""

from scripts.baselines.random_agent import RandomAgent

__all__ = ['RandomAgent']
