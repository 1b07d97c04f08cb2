"""
Snake Agents

Weighted heuristic policy shared by the reference bot and evolved individuals
"""

from agents.heuristic_agent import HeuristicAgent, GOOD_WEIGHTS, make_weights

__all__ = ['HeuristicAgent', 'GOOD_WEIGHTS', 'make_weights']
