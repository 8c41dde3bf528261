"""
policy.py

Epsilon-greedy action selection over the masked action catalog.

The exploration rate used for a decision is derived from the schedule's
stored rate and the recent minimum-satisfaction history:

- poor recent performance  -> explore more, biased toward protective actions
- moderate performance     -> stored rate, still biased
- good performance         -> explore less, among neutral actions
"""

from typing import Iterable, List, Optional, Tuple

import numpy as np

from .AgentConfig import AgentConfig
from .actions import ActionCatalog
from .models import Action, NetworkState
from .orchestrator import ExplorationSchedule
from .tracker import PerformanceTracker
from .value_model import ValueModel


class EpsilonGreedyPolicy:

    def __init__(
        self,
        value_model: ValueModel,
        catalog: ActionCatalog,
        schedule: ExplorationSchedule,
        tracker: PerformanceTracker,
        rng: Optional[np.random.Generator] = None,
        capacity: float = AgentConfig.CAPACITY_MBPS,
    ):
        self.value_model = value_model
        self.catalog = catalog
        self.schedule = schedule
        self.tracker = tracker
        self.rng = rng if rng is not None else np.random.default_rng()
        self.capacity = capacity

    def adaptive_exploration(self) -> Tuple[float, bool]:
        """(rate, protective bias) for the next decision."""
        rate = self.schedule.rate
        recent = self.tracker.recent_mean(AgentConfig.ADAPTIVE_WINDOW)
        if recent is None:
            return rate, True
        if recent < AgentConfig.POOR_PERFORMANCE:
            boosted = rate * AgentConfig.POOR_EXPLORATION_BOOST
            return min(AgentConfig.POOR_EXPLORATION_CEILING, boosted), True
        if recent < AgentConfig.GOOD_PERFORMANCE:
            return rate, True
        return max(self.schedule.min_rate, rate * AgentConfig.GOOD_EXPLORATION_SHRINK), False

    # ----------------------------------------------------------
    def select(self, state: NetworkState, valid_indices: Optional[Iterable[int]] = None) -> int:
        valid = self._valid_list(valid_indices)

        # Emergency override: an active class is close to starving outright
        if state.min_active_satisfaction < AgentConfig.OVERRIDE_SATISFACTION:
            protective = self._subset(self.catalog.protective, valid)
            if protective and self.rng.random() < AgentConfig.OVERRIDE_PROB:
                return int(self.rng.choice(protective))

        rate, biased = self.adaptive_exploration()
        if self.rng.random() < rate:
            return self._explore(valid, biased)
        return self._exploit(state, valid)

    def _explore(self, valid: List[int], biased: bool) -> int:
        if biased:
            protective = self._subset(self.catalog.protective, valid)
            if protective and self.rng.random() < AgentConfig.PRIORITY_EXPLORATION_PROB:
                return int(self.rng.choice(protective))
            return int(self.rng.choice(valid))
        neutral = self._subset(self.catalog.neutral, valid) or valid
        return int(self.rng.choice(neutral))

    def _exploit(self, state: NetworkState, valid: List[int]) -> int:
        q_values = np.asarray(self.value_model.q_values(state), dtype=np.float64)
        candidates = np.array(valid)
        # stable sort keeps the lower index first on ties
        order = candidates[np.argsort(-q_values[candidates], kind="stable")]
        if len(order) > 1 and self.rng.random() < AgentConfig.SECOND_BEST_PROB:
            return int(order[1])
        return int(order[0])

    def _valid_list(self, valid_indices) -> List[int]:
        everything = list(range(len(self.catalog)))
        if valid_indices is None:
            return everything
        valid = sorted({self.catalog.clamp(i) for i in valid_indices})
        return valid or everything

    @staticmethod
    def _subset(indices, valid: List[int]) -> List[int]:
        return [i for i in valid if i in indices]

    # ----------------------------------------------------------
    def finalize(self, action: Action, state: NetworkState) -> Action:
        """
        Renormalize the chosen split and, under extreme demand, cap the
        video share by handing the excess to web and audio in proportion
        to their current shares.
        """
        web, audio, video = action.ratios
        total = web + audio + video
        web, audio, video = web / total, audio / total, video / total

        overload = state.total_demand > AgentConfig.SEVERE_CONGESTION * self.capacity
        ceiling = AgentConfig.VIDEO_CEILING
        if overload and video > ceiling:
            excess = video - ceiling
            others = web + audio
            if others > 0:
                web += excess * web / others
                audio += excess * audio / others
            else:
                web += excess / 2
                audio += excess / 2
            video = ceiling
        return Action(web, audio, video)

    def act(self, state: NetworkState, valid_indices: Optional[Iterable[int]] = None) -> Tuple[int, Action]:
        index = self.select(state, valid_indices)
        return index, self.finalize(self.catalog[index], state)
