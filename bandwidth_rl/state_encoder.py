"""
state_encoder.py

Turns raw `NetworkState` telemetry into what the value models consume:
a bounded integer index for the Q-table or a scaled feature vector for
the network.
"""

import numpy as np

from .AgentConfig import AgentConfig
from .models import NetworkState


class StateEncoder:
    """
    Encodes network telemetry.

    Tabular index = mixed-radix combination of
      dominant class (3) x congestion (4) x starvation severity (4) x
      worst satisfaction (6)  ->  288 states.
    """

    N_DOMINANT = 3
    N_CONGESTION = len(AgentConfig.CONGESTION_EDGES) + 1
    N_SEVERITY = AgentConfig.MAX_SEVERITY + 1
    N_SATISFACTION = len(AgentConfig.SATISFACTION_EDGES)

    def __init__(self, capacity: float = AgentConfig.CAPACITY_MBPS):
        self.capacity = max(float(capacity), AgentConfig.MIN_DEMAND_MBPS)

    @property
    def num_states(self) -> int:
        return self.N_DOMINANT * self.N_CONGESTION * self.N_SEVERITY * self.N_SATISFACTION

    @property
    def feature_dim(self) -> int:
        return AgentConfig.FEATURE_DIM

    # ===== Tabular features =====
    def dominant_class(self, state: NetworkState) -> int:
        """Class with the most active users (web when nobody is active)."""
        users = state.users
        if sum(users) <= 0:
            return 0
        # argmax keeps the first class on ties
        return int(np.argmax(users))

    def congestion_level(self, state: NetworkState) -> int:
        load = state.total_demand / self.capacity
        for level, edge in enumerate(AgentConfig.CONGESTION_EDGES):
            if load < edge:
                return level
        return len(AgentConfig.CONGESTION_EDGES)

    def starvation_severity(self, state: NetworkState) -> int:
        """Warning-level classes count once, emergency-level classes twice."""
        severity = 0
        for users, sat in zip(state.users, state.satisfactions):
            if users <= 0:
                continue
            if sat < AgentConfig.EMERGENCY_SATISFACTION:
                severity += 2
            elif sat < AgentConfig.WARNING_SATISFACTION:
                severity += 1
        return min(severity, AgentConfig.MAX_SEVERITY)

    def satisfaction_level(self, state: NetworkState) -> int:
        """
        Bin of the worst satisfaction among classes with users. Values
        above 100 get their own bin; negative values, which a physical
        allocation cannot produce, fall into the lowest bin.
        """
        worst = state.min_active_satisfaction
        edges = AgentConfig.SATISFACTION_EDGES
        if worst > edges[-1]:
            return len(edges) - 1
        # right-closed last bin: exactly 100 % belongs to [85, 100]
        level = int(np.searchsorted(edges, worst, side="right")) - 1
        return min(max(level, 0), len(edges) - 2)

    def index(self, state: NetworkState) -> int:
        idx = self.dominant_class(state)
        idx = idx * self.N_CONGESTION + self.congestion_level(state)
        idx = idx * self.N_SEVERITY + self.starvation_severity(state)
        idx = idx * self.N_SATISFACTION + self.satisfaction_level(state)
        return int(min(max(idx, 0), self.num_states - 1))

    # ===== Approximate features =====
    def features(self, state: NetworkState) -> np.ndarray:
        """
        10 features kept roughly inside [-2, 2]:
        users / plausible maximum, capped demand / 100, tanh(sat / 100),
        capped total demand / 100.
        """
        users = [u / s for u, s in zip(state.users, AgentConfig.USER_SCALE)]
        demands = [min(AgentConfig.DEMAND_CAP, d / AgentConfig.DEMAND_SCALE) for d in state.demands]
        sats = [np.tanh(s / AgentConfig.SATISFACTION_SCALE) for s in state.satisfactions]
        total = min(AgentConfig.DEMAND_CAP, state.total_demand / AgentConfig.DEMAND_SCALE)
        vec = np.array(users + demands + sats + [total], dtype=np.float32)
        # user counts are unbounded upstream
        return np.clip(vec, -AgentConfig.DEMAND_CAP, AgentConfig.DEMAND_CAP)

    def encode(self, state: NetworkState, tabular: bool = True):
        return self.index(state) if tabular else self.features(state)
