"""
Core Evolved Snake Components

This package contains the foundational components of the weight search:
- Board model and Snake environment
- Heuristic feature encoder
- Utility functions

Fitness evaluation (core.evaluation) and genetic operators (core.genetic)
build on the agents package and are imported from their modules.
"""

from core.board import Board, Cell
from core.environment import SnakeEnv, Direction, TerminalReason
from core.state_representations import (
    FeatureVector,
    HeuristicFeatureEncoder,
    FEATURE_NAMES,
    NUM_FEATURES
)

__all__ = [
    'Board',
    'Cell',
    'SnakeEnv',
    'Direction',
    'TerminalReason',
    'FeatureVector',
    'HeuristicFeatureEncoder',
    'FEATURE_NAMES',
    'NUM_FEATURES'
]
