"""
agent.py

`BandwidthAgent` ties the engine together for one learner preset.

Per tick (driven by the caller):

    action = agent.predict(state)
    ... environment applies action, returns next_state ...
    reward = agent.calculate_reward(state, action, next_state)
    agent.update(state, action, reward, next_state)
"""

import logging
from dataclasses import replace
from typing import Dict, Optional, Union

import numpy as np

from .actions import ActionCatalog
from .dqn_agent import ApproximateQLearner
from .learner_config import LearnerConfig, get_preset
from .models import Action, NetworkState
from .orchestrator import ExplorationSchedule, TrainingOrchestrator
from .policy import EpsilonGreedyPolicy
from .q_table import TabularQLearner
from .reward import RewardConfig, RewardModel
from .state_encoder import StateEncoder
from .tracker import PerformanceTracker

logger = logging.getLogger(__name__)


class BandwidthAgent:

    def __init__(
        self,
        config: Union[str, LearnerConfig] = "tabular",
        seed: Optional[int] = None,
        catalog: Optional[ActionCatalog] = None,
        reward_config: Optional[RewardConfig] = None,
        device: str = None,
    ):
        self.config = get_preset(config) if isinstance(config, str) else config
        cfg = self.config
        self.rng = np.random.default_rng(seed)

        if catalog is None:
            catalog = (ActionCatalog.balanced(cfg.capacity) if cfg.catalog == "balanced"
                       else ActionCatalog.video_priority(cfg.capacity))
        self.catalog = catalog
        self.encoder = StateEncoder(cfg.capacity)
        self.tracker = PerformanceTracker()

        if cfg.tabular:
            self.value_model = TabularQLearner(
                self.encoder, len(catalog),
                learning_rate=cfg.learning_rate,
                discount=cfg.discount,
            )
        else:
            self.value_model = ApproximateQLearner(
                self.encoder, len(catalog),
                learning_rate=cfg.learning_rate,
                discount=cfg.discount,
                hidden_size=cfg.hidden_size,
                replay_size=cfg.replay_size,
                batch_size=cfg.batch_size,
                target_update=cfg.target_update,
                warmup_steps=cfg.warmup_steps,
                shallow_update=cfg.shallow_update,
                rng=self.rng,
                seed=seed,
                device=device,
            )

        self.schedule = ExplorationSchedule(
            cfg.exploration, cfg.exploration_decay, cfg.min_exploration, tracker=self.tracker)
        self.policy = EpsilonGreedyPolicy(
            self.value_model, catalog, self.schedule, self.tracker, rng=self.rng, capacity=cfg.capacity)

        if reward_config is None:
            shaping = RewardConfig.tabular() if cfg.tabular else RewardConfig.approximate()
            reward_config = replace(shaping, clip=cfg.reward_clip)
        self.reward_model = RewardModel(reward_config, self.tracker, capacity=cfg.capacity)
        self.orchestrator = TrainingOrchestrator(self.value_model, catalog, self.schedule, self.tracker)

        self.last_action_index: Optional[int] = None
        self.last_action: Optional[Action] = None
        logger.info("Initialized %s agent with %d actions", cfg.name, len(catalog))

    # ===== Decision =====
    @property
    def exploration_rate(self) -> float:
        return self.schedule.rate

    @property
    def episode_count(self) -> int:
        return self.orchestrator.episode_count

    def predict(self, state: NetworkState) -> Action:
        valid = self.catalog.valid_indices(state)
        index, action = self.policy.act(state, valid)
        self.last_action_index = index
        self.last_action = action
        return action

    def calculate_reward(self, state: NetworkState, action: Optional[Action], next_state: NetworkState) -> float:
        return self.reward_model.reward(state, action, next_state)

    def update(self, state: NetworkState, action, reward: float, next_state: NetworkState) -> float:
        # catalogs may repeat a split; keep the row predict() chose
        index = self.last_action_index if action is self.last_action else None
        return self.orchestrator.update(state, action, reward, next_state, action_index=index)

    def step(self, state: NetworkState, action: Action, next_state: NetworkState) -> float:
        """Reward the transition and learn from it in one call."""
        reward = self.calculate_reward(state, action, next_state)
        self.update(state, action, reward, next_state)
        return reward

    def reset_training(self):
        self.orchestrator.reset_training()
        self.last_action_index = None
        self.last_action = None

    # ===== Reporting =====
    def evaluate_performance(self, window: int = 100) -> Dict:
        return self.orchestrator.evaluate_performance(window)

    def print_policy_analysis(self):
        print(self.orchestrator.policy_analysis())

    # ===== Persistence fields =====
    def get_state(self) -> Dict:
        return {
            "preset": self.config.name,
            "mode": self.config.mode,
            "value_model": self.value_model.get_state(),
            "exploration_rate": self.schedule.rate,
            "episode_count": self.orchestrator.episode_count,
            "performance": self.tracker.snapshot(),
        }

    def load_state(self, state: Dict):
        if state["mode"] != self.config.mode:
            raise ValueError(f"Saved state is for a {state['mode']} agent, not {self.config.mode}")
        self.value_model.load_state(state["value_model"])
        self.schedule.set_rate(float(state["exploration_rate"]))
        self.orchestrator.episode_count = int(state["episode_count"])
        self.tracker.restore(state["performance"])
