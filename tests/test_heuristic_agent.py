"""
Unit tests for the weighted decision policy
"""

import pytest
import numpy as np
from agents.heuristic_agent import GOOD_WEIGHTS, HeuristicAgent, make_weights
from core.environment import Direction, SnakeEnv
from core.state_representations import FATAL_FEATURES, FeatureVector, NUM_FEATURES

POCKET_SNAKE = [(0, 1), (1, 1), (1, 0), (2, 0), (3, 0)]


def features(**values) -> FeatureVector:
    defaults = dict(open_space=0.0, food_proximity=0.0, food_reachable=0.0,
                    tail_reachable=0.0, immediate_death=0.0)
    defaults.update(values)
    return FeatureVector(**defaults)


class TestMakeWeights:
    """Test weight vector construction"""

    def test_valid(self):
        """Test a valid vector is converted and frozen"""
        weights = make_weights([0.5, -0.5, 0.0, 1.0, -1.0])
        assert weights.dtype == np.float64
        assert weights.shape == (NUM_FEATURES,)
        with pytest.raises(ValueError):
            weights[0] = 2.0

    def test_empty(self):
        """Test empty vector is rejected"""
        with pytest.raises(ValueError):
            make_weights([])

    def test_wrong_length(self):
        """Test length mismatch is rejected"""
        with pytest.raises(ValueError):
            make_weights([1.0, 2.0])

    def test_non_finite(self):
        """Test NaN and inf are rejected"""
        with pytest.raises(ValueError):
            make_weights([float('nan'), 0.0, 0.0, 0.0, 0.0])
        with pytest.raises(ValueError):
            make_weights([float('inf'), 0.0, 0.0, 0.0, 0.0])

    def test_reference_weights(self):
        """Test the hand-tuned reference vector"""
        assert GOOD_WEIGHTS.shape == (NUM_FEATURES,)
        assert GOOD_WEIGHTS[0] == 1.0
        assert not GOOD_WEIGHTS.flags.writeable


class TestHeuristicAgent:
    """Test cases for HeuristicAgent"""

    def test_score_is_dot_product(self):
        """Test scoring a feature vector"""
        agent = HeuristicAgent([1.0, 2.0, 3.0, 4.0, 5.0])
        value = agent.score(FeatureVector(0.5, 0.5, 1.0, 0.0, 0.0))
        assert value == pytest.approx(0.5 + 1.0 + 3.0)

    def test_score_length_mismatch(self):
        """Test scoring a vector of the wrong length"""
        agent = HeuristicAgent(GOOD_WEIGHTS)
        with pytest.raises(ValueError):
            agent.score((1.0, 0.0))

    def test_choose_best(self):
        """Test the highest scoring candidate wins"""
        agent = HeuristicAgent([1.0, 0.0, 0.0, 0.0, -1.0])
        candidates = [
            (Direction.RIGHT, FATAL_FEATURES),
            (Direction.UP, features(open_space=0.2)),
            (Direction.DOWN, features(open_space=0.9)),
        ]
        assert agent.choose(candidates) == Direction.DOWN

    def test_tie_break_prefers_earlier(self):
        """Test ties go to the first candidate (straight)"""
        agent = HeuristicAgent([0.0] * NUM_FEATURES)
        candidates = [
            (Direction.UP, features(open_space=0.1)),
            (Direction.LEFT, features(open_space=0.9)),
            (Direction.RIGHT, features(open_space=0.5)),
        ]
        assert agent.choose(candidates) == Direction.UP

    def test_tie_between_later_candidates(self):
        """Test a tie not involving straight goes to left"""
        agent = HeuristicAgent([1.0, 0.0, 0.0, 0.0, 0.0])
        candidates = [
            (Direction.UP, features(open_space=0.1)),
            (Direction.LEFT, features(open_space=0.5)),
            (Direction.RIGHT, features(open_space=0.5)),
        ]
        assert agent.choose(candidates) == Direction.LEFT

    def test_choose_empty(self):
        """Test choosing from no candidates"""
        with pytest.raises(ValueError):
            HeuristicAgent().choose([])

    def test_moves_straight_to_food(self):
        """Test a food-proximity agent walks straight onto the food"""
        env = SnakeEnv(width=10, height=10)
        env.reset(options={'food': (8, 5)})
        agent = HeuristicAgent([0.0, 1.0, 0.0, 0.0, 0.0])

        for _ in range(3):
            action = agent.get_action(env)
            assert action == Direction.RIGHT
            _, reward, _, _, _ = env.step(action)

        assert reward == 1.0
        assert env.score == 1
        assert env.steps == 3

    def test_avoids_pocket(self):
        """Test the reference weights refuse the dead-end move"""
        env = SnakeEnv(width=10, height=10)
        env.reset(options={'snake': POCKET_SNAKE, 'food': (9, 9)})

        assert HeuristicAgent(GOOD_WEIGHTS).get_action(env) == Direction.DOWN

    def test_open_space_weight_controls_pocket(self):
        """Test a negative open-space weight walks into the pocket"""
        env = SnakeEnv(width=10, height=10)
        env.reset(options={'snake': POCKET_SNAKE, 'food': (9, 9)})

        agent = HeuristicAgent([-1.0, 0.0, 0.0, 0.0, -1.0])
        assert agent.get_action(env) == Direction.UP

    def test_avoids_death_when_possible(self):
        """Test a negative death weight never picks a fatal move"""
        env = SnakeEnv(width=10, height=10)
        env.reset(options={'snake': [(9, 5), (8, 5), (7, 5)], 'food': (0, 0)})

        action = HeuristicAgent([0.0, 0.0, 0.0, 0.0, -1.0]).get_action(env)
        assert action in (Direction.UP, Direction.DOWN)

    def test_determinism(self):
        """Test two agents with the same weights play identical games"""
        env1 = SnakeEnv(width=8, height=8, max_steps=200)
        env2 = SnakeEnv(width=8, height=8, max_steps=200)
        env1.reset(seed=5)
        env2.reset(seed=5)
        agent1 = HeuristicAgent(GOOD_WEIGHTS)
        agent2 = HeuristicAgent(GOOD_WEIGHTS)

        while not env1.done:
            action1 = agent1.get_action(env1)
            action2 = agent2.get_action(env2)
            assert action1 == action2
            env1.step(action1)
            env2.step(action2)

        assert env2.done
        assert env1.snake == env2.snake

    def test_encoder_rebuilt_for_new_grid(self):
        """Test the lazily built encoder follows the env size"""
        agent = HeuristicAgent(GOOD_WEIGHTS)
        small = SnakeEnv(width=6, height=6)
        small.reset(seed=0)
        agent.get_action(small)
        assert agent.encoder.board.width == 6

        large = SnakeEnv(width=12, height=9)
        large.reset(seed=0)
        agent.get_action(large)
        assert (agent.encoder.board.width, agent.encoder.board.height) == (12, 9)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
