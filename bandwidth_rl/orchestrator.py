"""
orchestrator.py

Drives one learning step per tick and owns the training bookkeeping
(exploration rate, episode counter, history) that would otherwise live
as loose attributes on the agent.
"""

from collections import Counter
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.ndimage import uniform_filter1d

from .AgentConfig import AgentConfig
from .actions import ActionCatalog
from .models import TRAFFIC_CLASSES, Action, NetworkState, Transition
from .tracker import PerformanceTracker
from .value_model import ValueModel


class ExplorationSchedule:
    """
    Exploration rate kept inside [min_rate, 1.0].

    The decay factor adapts to recent performance: it shrinks faster
    while the worst-served class is doing well and slows down (or turns
    into a small increase) while it is not.
    """

    def __init__(
        self,
        initial: float,
        decay: float,
        min_rate: float,
        tracker: Optional[PerformanceTracker] = None,
        adaptive: bool = True,
    ):
        self.initial = initial
        self.decay = decay
        self.min_rate = min_rate
        self.tracker = tracker
        self.adaptive = adaptive
        self.rate = self._bound(initial)

    def _bound(self, rate: float) -> float:
        return float(min(1.0, max(self.min_rate, rate)))

    def decay_factor(self) -> float:
        if not self.adaptive or self.tracker is None:
            return self.decay
        recent = self.tracker.recent_mean(AgentConfig.DECAY_WINDOW)
        if recent is None:
            return self.decay
        if recent > AgentConfig.DECAY_GOOD_THRESHOLD:
            return self.decay * AgentConfig.DECAY_FAST_FACTOR
        return self.decay * AgentConfig.DECAY_SLOW_FACTOR

    def step(self) -> float:
        self.rate = self._bound(self.rate * self.decay_factor())
        return self.rate

    def set_rate(self, rate: float):
        self.rate = self._bound(rate)

    def reset(self):
        self.rate = self._bound(self.initial)


@dataclass
class HistoryEntry:
    episode: int
    action_index: int
    web_ratio: float
    audio_ratio: float
    video_ratio: float
    reward: float
    exploration_rate: float
    loss: float
    web_sat: float
    audio_sat: float
    video_sat: float


class TrainingOrchestrator:
    """
    update(state, action, reward, next_state) -> loss

    record transition -> value-model update -> exploration decay ->
    history entry. A no-op learning step (buffer not filled yet) yields
    a loss of 0.0.
    """

    def __init__(
        self,
        value_model: ValueModel,
        catalog: ActionCatalog,
        schedule: ExplorationSchedule,
        tracker: PerformanceTracker,
    ):
        self.value_model = value_model
        self.catalog = catalog
        self.schedule = schedule
        self.tracker = tracker
        self.episode_count = 0
        self.history: List[HistoryEntry] = []

    @property
    def exploration_rate(self) -> float:
        return self.schedule.rate

    def update(
        self,
        state: NetworkState,
        action,
        reward: float,
        next_state: NetworkState,
        action_index: Optional[int] = None,
    ) -> float:
        """
        `action` may be a catalog index, an `Action` or a ratio triple.

        Pass `action_index` when the catalog row behind an applied `Action`
        is known; otherwise the nearest row is looked up, which cannot tell
        duplicate catalog entries apart.
        """
        if action_index is not None:
            action_index = self.catalog.clamp(action_index)
        elif isinstance(action, (int, np.integer)):
            action_index = self.catalog.clamp(action)
        else:
            action_index = self.catalog.nearest_index(action)
        applied = action if isinstance(action, Action) else self.catalog[action_index]

        transition = Transition(state, action_index, float(reward), next_state, applied)
        loss = self.value_model.learn(transition)
        rate = self.schedule.step()

        self.episode_count += 1
        self.history.append(HistoryEntry(
            episode=self.episode_count,
            action_index=action_index,
            web_ratio=applied.web_ratio,
            audio_ratio=applied.audio_ratio,
            video_ratio=applied.video_ratio,
            reward=float(reward),
            exploration_rate=rate,
            loss=float(loss),
            web_sat=next_state.web_sat,
            audio_sat=next_state.audio_sat,
            video_sat=next_state.video_sat,
        ))
        return float(loss)

    def reset_training(self):
        """Clear logs and counters; learned values are kept."""
        self.history = []
        self.episode_count = 0
        self.tracker.reset()
        self.schedule.reset()
        self.value_model.reset_training()

    # ===== Reporting =====
    def history_frame(self) -> pd.DataFrame:
        columns = list(HistoryEntry.__dataclass_fields__)
        return pd.DataFrame([asdict(e) for e in self.history], columns=columns)

    def _recent(self, window: int) -> List[HistoryEntry]:
        return self.history[-window:] if window > 0 else []

    def reward_trend(self, size: int = 10) -> np.ndarray:
        rewards = np.array([e.reward for e in self.history], dtype=np.float64)
        if len(rewards) == 0:
            return rewards
        return uniform_filter1d(rewards, size=min(size, len(rewards)))

    def evaluate_performance(self, window: int = 100) -> Dict:
        recent = self._recent(window)
        if not recent:
            return {}

        rewards = np.array([e.reward for e in recent])
        sats = np.array([[e.web_sat, e.audio_sat, e.video_sat] for e in recent])
        performance = {
            "average_reward": float(rewards.mean()),
            "std_reward": float(rewards.std()),
            "min_reward": float(rewards.min()),
            "max_reward": float(rewards.max()),
            "total_episodes": self.episode_count,
            "current_exploration": self.exploration_rate,
            "action_space_size": len(self.catalog),
            "avg_min_sat": float(sats.min(axis=1).mean()),
        }
        for i, name in enumerate(TRAFFIC_CLASSES):
            performance[f"avg_{name}_sat"] = float(sats[:, i].mean())
            performance[f"{name}_starvation_time"] = float(
                100.0 * np.mean(sats[:, i] < AgentConfig.STARVATION_SATISFACTION))

        model = self.value_model
        if model.tabular:
            performance["q_table_coverage"] = model.coverage
        else:
            performance["training_steps"] = model.training_step
            performance["replay_buffer_usage"] = model.replay_buffer.usage
        return performance

    def action_distribution(self, window: int = 100) -> Dict[int, Tuple[int, float]]:
        """catalog index -> (times used, mean reward) over the last `window` updates."""
        counts = Counter()
        totals = Counter()
        for e in self._recent(window):
            counts[e.action_index] += 1
            totals[e.action_index] += e.reward
        return {i: (counts[i], totals[i] / counts[i]) for i in counts}

    def policy_analysis(self, window: int = 50, top: int = 5) -> str:
        lines = [
            "=== RL AGENT POLICY ANALYSIS ===",
            f"Total training episodes: {self.episode_count}",
            f"Exploration rate: {self.exploration_rate:.3f}",
        ]
        recent = self._recent(window)
        if recent:
            rewards = np.array([e.reward for e in recent])
            lines.append(f"Recent average reward: {rewards.mean():.2f}")
            lines.append(f"Recent reward std: {rewards.std():.2f}")
            recent_min = self.tracker.recent_mean(len(self.tracker.recent_min_satisfaction))
            if recent_min is not None:
                lines.append(f"Recent min satisfaction: {recent_min:.1f}%")
                lines.append(f"Consecutive bad episodes: {self.tracker.consecutive_bad}")

            usage = self.action_distribution(window)
            ranked = sorted(usage.items(), key=lambda kv: (-kv[1][0], kv[0]))[:top]
            lines.append(f"Top {len(ranked)} most used actions:")
            for index, (count, mean_reward) in ranked:
                lines.append(f"  Action {index}: {self.catalog.describe(index)} "
                             f"(used {count} times, avg reward: {mean_reward:.2f})")
        return "\n".join(lines)
