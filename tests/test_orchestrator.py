import numpy as np
import pytest

from bandwidth_rl.actions import ActionCatalog
from bandwidth_rl.models import Action
from bandwidth_rl.orchestrator import ExplorationSchedule, TrainingOrchestrator
from bandwidth_rl.q_table import TabularQLearner
from bandwidth_rl.state_encoder import StateEncoder
from bandwidth_rl.tracker import PerformanceTracker


@pytest.fixture
def parts():
    catalog = ActionCatalog.balanced()
    tracker = PerformanceTracker()
    model = TabularQLearner(StateEncoder(), len(catalog))
    schedule = ExplorationSchedule(0.6, 0.998, 0.15, tracker=tracker)
    return TrainingOrchestrator(model, catalog, schedule, tracker)


def feed(tracker, state, sat, n):
    for _ in range(n):
        tracker.record(state, state.with_satisfaction(sat, sat, sat))


def test_schedule_plain_decay():
    schedule = ExplorationSchedule(0.5, 0.9, 0.1)
    assert schedule.step() == pytest.approx(0.45)


def test_schedule_stays_within_bounds(calm_state):
    tracker = PerformanceTracker()
    schedule = ExplorationSchedule(1.0, 0.999, 0.2, tracker=tracker)
    feed(tracker, calm_state, 10.0, 20)
    # poor performance turns the decay into a small increase
    for _ in range(500):
        assert 0.2 <= schedule.step() <= 1.0
    assert schedule.rate == 1.0

    feed(tracker, calm_state, 95.0, 20)
    for _ in range(2000):
        assert 0.2 <= schedule.step() <= 1.0
    assert schedule.rate == pytest.approx(0.2)


def test_schedule_adaptive_factor(calm_state):
    tracker = PerformanceTracker()
    schedule = ExplorationSchedule(0.5, 0.99, 0.1, tracker=tracker)
    assert schedule.decay_factor() == 0.99
    feed(tracker, calm_state, 90.0, 10)
    assert schedule.decay_factor() == pytest.approx(0.99 * 0.99)
    feed(tracker, calm_state, 20.0, 10)
    assert schedule.decay_factor() == pytest.approx(0.99 * 1.01)


def test_set_rate_and_reset():
    schedule = ExplorationSchedule(0.6, 0.99, 0.15)
    schedule.set_rate(0.01)
    assert schedule.rate == 0.15
    schedule.set_rate(3.0)
    assert schedule.rate == 1.0
    schedule.reset()
    assert schedule.rate == 0.6


def test_update_records_history(parts, calm_state, overloaded_state):
    loss = parts.update(calm_state, 4, 5.0, overloaded_state)
    assert loss > 0.0
    assert parts.episode_count == 1
    entry = parts.history[0]
    assert entry.action_index == 4
    assert entry.reward == 5.0
    assert entry.web_sat == overloaded_state.web_sat
    assert entry.exploration_rate == parts.exploration_rate


def test_update_maps_applied_action_to_nearest(parts, calm_state):
    parts.update(calm_state, Action(0.41, 0.39, 0.20), 1.0, calm_state)
    assert parts.history[-1].action_index == 18
    assert parts.history[-1].video_ratio == pytest.approx(0.20)
    parts.update(calm_state, (0.5, 0.25, 0.25), 1.0, calm_state)
    assert parts.history[-1].action_index == 4


def test_update_prefers_known_index_over_nearest(calm_state):
    catalog = ActionCatalog.video_priority()
    tracker = PerformanceTracker()
    model = TabularQLearner(StateEncoder(), len(catalog))
    orchestrator = TrainingOrchestrator(
        model, catalog, ExplorationSchedule(0.6, 0.998, 0.15, tracker=tracker), tracker)
    # row 8 repeats row 6
    assert catalog.nearest_index(catalog[8]) == 6

    orchestrator.update(calm_state, catalog[8], 5.0, calm_state, action_index=8)
    assert orchestrator.history[-1].action_index == 8
    s = model.encoder.index(calm_state)
    assert model.Qtable[s, 8] != 0.0
    assert model.Qtable[s, 6] == 0.0


def test_reset_training_keeps_learned_values(parts, calm_state):
    for _ in range(10):
        parts.update(calm_state, 0, 3.0, calm_state)
    table = parts.value_model.Qtable.copy()
    parts.tracker.record(calm_state, calm_state)

    parts.reset_training()
    assert parts.history == []
    assert parts.episode_count == 0
    assert parts.tracker.ticks == 0
    assert parts.exploration_rate == 0.6
    assert np.array_equal(parts.value_model.Qtable, table)


def test_evaluate_performance(parts, calm_state, state_factory):
    assert parts.evaluate_performance() == {}

    starving = calm_state.with_satisfaction(30.0, 100.0, 100.0)
    parts.update(calm_state, 0, 10.0, calm_state)
    parts.update(calm_state, 1, -10.0, starving)
    performance = parts.evaluate_performance()
    assert performance["average_reward"] == 0.0
    assert performance["min_reward"] == -10.0
    assert performance["total_episodes"] == 2
    assert performance["avg_web_sat"] == pytest.approx(65.0)
    assert performance["web_starvation_time"] == pytest.approx(50.0)
    assert performance["avg_min_sat"] == pytest.approx(65.0)
    assert performance["action_space_size"] == 19
    assert "q_table_coverage" in performance


def test_history_frame(parts, calm_state):
    assert list(parts.history_frame().columns)[:3] == ["episode", "action_index", "web_ratio"]
    assert len(parts.history_frame()) == 0
    for i in range(3):
        parts.update(calm_state, i, float(i), calm_state)
    frame = parts.history_frame()
    assert len(frame) == 3
    assert frame["reward"].tolist() == [0.0, 1.0, 2.0]


def test_reward_trend(parts, calm_state):
    assert len(parts.reward_trend()) == 0
    for r in (0.0, 10.0, 0.0, 10.0):
        parts.update(calm_state, 0, r, calm_state)
    trend = parts.reward_trend(size=2)
    assert len(trend) == 4
    assert np.all((trend >= 0.0) & (trend <= 10.0))


def test_action_distribution_and_analysis(parts, calm_state):
    for index, reward in ((2, 1.0), (2, 3.0), (5, 4.0)):
        parts.update(calm_state, index, reward, calm_state)
    usage = parts.action_distribution()
    assert usage[2] == (2, 2.0)
    assert usage[5] == (1, 4.0)

    report = parts.policy_analysis()
    assert "Total training episodes: 3" in report
    assert "Action 2:" in report
