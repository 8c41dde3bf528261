import logging

import numpy as np

from bandwidth_rl.agent import BandwidthAgent
from bandwidth_rl.persistence import load_agent, save_agent
from bandwidth_rl.rl_env import BandwidthEnv, UserPattern


def train(agent, ticks=60):
    env = BandwidthEnv(UserPattern.constant(10, 20, 8))
    state = env.reset()
    for _ in range(ticks):
        action = agent.predict(state)
        outcome, next_state = env.step(action)
        agent.step(state, action, outcome)
        state = next_state


def test_tabular_round_trip(tmp_path, calm_state):
    agent = BandwidthAgent("tabular", seed=0)
    train(agent)
    path = str(tmp_path / "models" / "tabular.pt")
    save_agent(agent, path)

    restored = BandwidthAgent("tabular", seed=1)
    assert load_agent(restored, path)
    assert np.array_equal(restored.value_model.Qtable, agent.value_model.Qtable)
    assert restored.exploration_rate == agent.exploration_rate
    assert restored.episode_count == agent.episode_count
    assert restored.tracker.snapshot() == agent.tracker.snapshot()


def test_approximate_round_trip(tmp_path, calm_state):
    agent = BandwidthAgent("approximate", seed=0, device="cpu")
    train(agent)
    path = str(tmp_path / "approx.pt")
    save_agent(agent, path)

    restored = BandwidthAgent("approximate", seed=1, device="cpu")
    assert load_agent(restored, path)
    assert restored.value_model.training_step == agent.value_model.training_step
    assert np.allclose(restored.value_model.q_values(calm_state), agent.value_model.q_values(calm_state))


def test_missing_file_is_a_warning(tmp_path, caplog):
    agent = BandwidthAgent("tabular", seed=0)
    with caplog.at_level(logging.WARNING):
        assert not load_agent(agent, str(tmp_path / "nothing.pt"))
    assert "No saved agent" in caplog.text


def test_corrupt_file_is_a_warning(tmp_path, caplog):
    path = tmp_path / "broken.pt"
    path.write_bytes(b"definitely not a checkpoint")
    agent = BandwidthAgent("tabular", seed=0)
    with caplog.at_level(logging.WARNING):
        assert not load_agent(agent, str(path))
    assert agent.episode_count == 0


def test_incompatible_blob_keeps_current_parameters(tmp_path, calm_state):
    tabular = BandwidthAgent("tabular", seed=0)
    path = str(tmp_path / "tabular.pt")
    save_agent(tabular, path)

    approximate = BandwidthAgent("approximate", seed=0, device="cpu")
    before = approximate.value_model.q_values(calm_state)
    assert not load_agent(approximate, path)
    assert np.allclose(approximate.value_model.q_values(calm_state), before)
