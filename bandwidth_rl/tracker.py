"""
tracker.py

Rolling statistics shared by the policy (adaptive exploration), the
reward model and the exploration schedule.
"""

from collections import deque
from typing import Dict, Optional

import numpy as np

from .AgentConfig import AgentConfig
from .models import TRAFFIC_CLASSES, NetworkState, active_satisfactions


class PerformanceTracker:
    """Recent minimum-satisfaction samples and starvation counters."""

    def __init__(
        self,
        history_length: int = AgentConfig.HISTORY_LENGTH,
        bad_threshold: float = AgentConfig.BAD_TICK_THRESHOLD,
        starvation_threshold: float = AgentConfig.STARVATION_SATISFACTION,
    ):
        self.history_length = history_length
        self.bad_threshold = bad_threshold
        self.starvation_threshold = starvation_threshold
        self.reset()

    def reset(self):
        self.recent_min_satisfaction = deque(maxlen=self.history_length)
        self.class_satisfaction = {c: deque(maxlen=self.history_length) for c in TRAFFIC_CLASSES}
        self.consecutive_bad = 0
        self.starvation_ticks = {c: 0 for c in TRAFFIC_CLASSES}
        self.ticks = 0

    def record(self, state: NetworkState, next_state: NetworkState) -> float:
        """
        Record the outcome of one allocation.

        `state` decides which classes were active; satisfactions are read
        from `next_state`. Returns the minimum satisfaction over the
        active classes.
        """
        min_sat = min(active_satisfactions(state.users, next_state.satisfactions))
        self.recent_min_satisfaction.append(min_sat)
        self.ticks += 1

        if min_sat < self.bad_threshold:
            self.consecutive_bad += 1
        else:
            self.consecutive_bad = max(0, self.consecutive_bad - 1)

        for name, users, sat in zip(TRAFFIC_CLASSES, state.users, next_state.satisfactions):
            self.class_satisfaction[name].append(sat)
            if users > 0 and sat < self.starvation_threshold:
                self.starvation_ticks[name] += 1
        return min_sat

    def recent_mean(self, window: int) -> Optional[float]:
        """Mean of the last `window` minimum-satisfaction samples, None if too few."""
        if window <= 0 or len(self.recent_min_satisfaction) < window:
            return None
        recent = list(self.recent_min_satisfaction)[-window:]
        return float(np.mean(recent))

    def starvation_rate(self) -> Dict[str, float]:
        """Percent of recorded ticks each class spent starving."""
        ticks = max(1, self.ticks)
        return {c: 100.0 * n / ticks for c, n in self.starvation_ticks.items()}

    # ----------------------------------------------------------
    def snapshot(self) -> Dict:
        return {
            "recent_min_satisfaction": list(self.recent_min_satisfaction),
            "class_satisfaction": {c: list(v) for c, v in self.class_satisfaction.items()},
            "consecutive_bad": self.consecutive_bad,
            "starvation_ticks": dict(self.starvation_ticks),
            "ticks": self.ticks,
        }

    def restore(self, snapshot: Dict):
        self.reset()
        self.recent_min_satisfaction.extend(float(v) for v in snapshot["recent_min_satisfaction"])
        for c in TRAFFIC_CLASSES:
            self.class_satisfaction[c].extend(float(v) for v in snapshot["class_satisfaction"].get(c, []))
            self.starvation_ticks[c] = int(snapshot["starvation_ticks"].get(c, 0))
        self.consecutive_bad = int(snapshot["consecutive_bad"])
        self.ticks = int(snapshot["ticks"])
