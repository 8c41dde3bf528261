"""
rl_env.py

Minimal deterministic caller for the allocation agents.

Each tick the environment turns the current user counts into per-class
demand, applies the chosen split of the link and reports how much of
each class's demand was met. No traffic is generated here: user counts
come from a `UserPattern`.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .AgentConfig import AgentConfig
from .models import Action, NetworkState

# Mbps needed by one active user of each class (web, audio, video)
PER_USER_MBPS = (2.0, 1.0, 6.0)


@dataclass(frozen=True)
class UserPattern:
    """
    Active users per tick, cycled when the schedule is shorter than
    the run.
    """
    schedule: Tuple[Tuple[int, int, int], ...]

    def __post_init__(self):
        if len(self.schedule) == 0:
            raise ValueError("User pattern needs at least one entry")
        for users in self.schedule:
            if len(users) != 3 or any(int(u) != u or u < 0 for u in users):
                raise ValueError(f"User counts must be three non-negative integers, got {users}")

    @classmethod
    def constant(cls, web: int, audio: int, video: int) -> "UserPattern":
        return cls(((web, audio, video),))

    @classmethod
    def scripted(cls, schedule: Sequence[Sequence[int]]) -> "UserPattern":
        return cls(tuple(tuple(int(u) for u in users) for users in schedule))

    def users_at(self, tick: int) -> Tuple[int, int, int]:
        return self.schedule[tick % len(self.schedule)]


def proportional_allocation(state: NetworkState, capacity: float = AgentConfig.CAPACITY_MBPS) -> Action:
    """
    Non-learning baseline.

    Under congestion every class gets a demand-proportional share of the
    link; otherwise each gets its full demand and the spare capacity is
    shared the same way. An idle link is split equally.
    """
    demands = state.demands
    total = sum(demands)
    if total <= 0:
        return Action(1.0, 1.0, 1.0)
    if total > capacity:
        return Action(*demands)
    spare = capacity - total
    return Action(*(d + spare * d / total for d in demands))


class BandwidthEnv:
    """
    reset() -> first state
    step(action) -> (outcome, next_state)

    `outcome` is the current tick with the satisfactions produced by
    `action`; `next_state` is the following tick's telemetry, which
    carries the last observed satisfactions.
    """

    def __init__(
        self,
        pattern: UserPattern,
        capacity: float = AgentConfig.CAPACITY_MBPS,
        per_user_mbps: Tuple[float, float, float] = PER_USER_MBPS,
    ):
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self.pattern = pattern
        self.capacity = float(capacity)
        self.per_user_mbps = tuple(float(m) for m in per_user_mbps)
        self.tick = 0
        self.state: Optional[NetworkState] = None

    def state_for(self, users, satisfactions=(100.0, 100.0, 100.0)) -> NetworkState:
        web, audio, video = (int(u) for u in users)
        demands = [u * m for u, m in zip((web, audio, video), self.per_user_mbps)]
        return NetworkState(web, audio, video, *demands, *satisfactions)

    def apply(self, state: NetworkState, action: Action) -> NetworkState:
        """Satisfactions that `action` yields for the demand in `state`."""
        sats = []
        for users, demand, allocated in zip(state.users, state.demands, action.allocate(self.capacity)):
            if users == 0:
                sats.append(100.0)
            else:
                sats.append(allocated / max(demand, AgentConfig.MIN_DEMAND_MBPS) * 100.0)
        return state.with_satisfaction(*sats)

    def reset(self) -> NetworkState:
        self.tick = 0
        first = self.state_for(self.pattern.users_at(0))
        # initial telemetry as if the baseline had been running
        self.state = self.apply(first, proportional_allocation(first, self.capacity))
        return self.state

    def step(self, action: Action) -> Tuple[NetworkState, NetworkState]:
        if self.state is None:
            raise RuntimeError("Call reset() before step()")
        outcome = self.apply(self.state, action)
        self.tick += 1
        self.state = self.state_for(self.pattern.users_at(self.tick), outcome.satisfactions)
        return outcome, self.state
