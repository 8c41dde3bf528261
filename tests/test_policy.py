import numpy as np
import pytest

from bandwidth_rl.actions import BALANCED_PROTECTIVE, ActionCatalog
from bandwidth_rl.models import Action
from bandwidth_rl.orchestrator import ExplorationSchedule
from bandwidth_rl.policy import EpsilonGreedyPolicy
from bandwidth_rl.q_table import TabularQLearner
from bandwidth_rl.state_encoder import StateEncoder
from bandwidth_rl.tracker import PerformanceTracker


def make_policy(initial=0.6, min_rate=0.15, seed=0):
    catalog = ActionCatalog.balanced()
    tracker = PerformanceTracker()
    model = TabularQLearner(StateEncoder(), len(catalog))
    schedule = ExplorationSchedule(initial, 0.998, min_rate, tracker=tracker)
    return EpsilonGreedyPolicy(model, catalog, schedule, tracker, rng=np.random.default_rng(seed))


def feed(policy, state, sat, n=20):
    for _ in range(n):
        policy.tracker.record(state, state.with_satisfaction(sat, sat, sat))


def test_adaptive_exploration_without_history():
    policy = make_policy()
    assert policy.adaptive_exploration() == (0.6, True)


def test_adaptive_exploration_poor(calm_state):
    policy = make_policy()
    feed(policy, calm_state, 30.0)
    rate, biased = policy.adaptive_exploration()
    assert rate == pytest.approx(0.72)
    assert biased

    policy.schedule.set_rate(0.8)
    assert policy.adaptive_exploration()[0] == pytest.approx(0.9)


def test_adaptive_exploration_moderate_and_good(calm_state):
    policy = make_policy()
    feed(policy, calm_state, 60.0)
    assert policy.adaptive_exploration() == (0.6, True)

    feed(policy, calm_state, 90.0)
    rate, biased = policy.adaptive_exploration()
    assert rate == pytest.approx(0.54)
    assert not biased

    policy.schedule.set_rate(0.15)
    assert policy.adaptive_exploration()[0] == pytest.approx(0.15)


def test_selection_respects_valid_set(calm_state):
    policy = make_policy()
    picks = {policy.select(calm_state, {3, 7}) for _ in range(300)}
    assert picks <= {3, 7}


def test_empty_valid_set_means_everything(calm_state):
    policy = make_policy()
    picks = {policy.select(calm_state, []) for _ in range(500)}
    assert picks <= set(range(19))
    assert len(picks) > 1


def test_exploitation_prefers_best_value(calm_state):
    policy = make_policy(initial=0.0, min_rate=0.0)
    row = policy.value_model.encoder.index(calm_state)
    policy.value_model.Qtable[row, 7] = 5.0
    policy.value_model.Qtable[row, 3] = 4.0

    picks = [policy.select(calm_state) for _ in range(1000)]
    assert set(picks) <= {3, 7}
    assert picks.count(7) > 800
    assert picks.count(3) > 0


def test_exploitation_ties_keep_lowest_index(calm_state):
    policy = make_policy(initial=0.0, min_rate=0.0)
    picks = [policy.select(calm_state, {4, 9, 12}) for _ in range(200)]
    assert set(picks) <= {4, 9}
    assert picks.count(4) > picks.count(9)


def test_emergency_override_prefers_protective(calm_state):
    policy = make_policy(initial=1.0, min_rate=0.15)
    dire = calm_state.with_satisfaction(5.0, 100.0, 100.0)
    picks = [policy.select(dire) for _ in range(500)]
    protective = sum(1 for p in picks if p in BALANCED_PROTECTIVE)
    assert protective / len(picks) > 0.8


def test_idle_class_does_not_trigger_override(state_factory):
    policy = make_policy(initial=0.0, min_rate=0.0)
    state = state_factory(users=(5, 5, 0), demands=(20.0, 20.0, 0.0), sats=(100.0, 100.0, 0.0))
    picks = [policy.select(state) for _ in range(200)]
    assert set(picks) <= {0, 1}


def test_finalize_caps_video_under_extreme_demand(overloaded_state):
    policy = make_policy()
    action = policy.finalize(Action(0.1, 0.1, 0.8), overloaded_state)
    assert action.video_ratio == pytest.approx(0.6)
    assert action.web_ratio == pytest.approx(0.2)
    assert action.audio_ratio == pytest.approx(0.2)

    lopsided = policy.finalize(Action(0.0, 0.0, 1.0), overloaded_state)
    assert lopsided.ratios == pytest.approx((0.2, 0.2, 0.6))


def test_finalize_leaves_calm_allocations_alone(calm_state):
    policy = make_policy()
    action = policy.finalize(Action(0.1, 0.1, 0.8), calm_state)
    assert action.ratios == pytest.approx((0.1, 0.1, 0.8))


def test_act_returns_normalized_split(overloaded_state):
    policy = make_policy()
    valid = policy.catalog.valid_indices(overloaded_state)
    for _ in range(100):
        index, action = policy.act(overloaded_state, valid)
        assert index in valid
        assert sum(action.ratios) == pytest.approx(1.0)
        assert action.video_ratio <= 0.6 + 1e-9
