"""
Reproducibility test module for the evolved Snake agent

Tests to verify reproducibility across:
- Same seed produces same random streams
- Same game seed replays the same game
- Same run seed produces the same evolution
"""
