"""
models.py

Immutable records exchanged between the environment and the agent:

- `NetworkState` – one tick of per-class telemetry
- `Action`       – an allocation split (web, audio, video)
- `Transition`   – (state, action, reward, next_state) used for learning
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

TRAFFIC_CLASSES = ("web", "audio", "video")


def _check_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")


def active_satisfactions(users, satisfactions) -> Tuple[float, ...]:
    """Satisfactions of the classes with users; all of them when every class is idle."""
    active = tuple(sat for count, sat in zip(users, satisfactions) if count > 0)
    return active or tuple(satisfactions)


@dataclass(frozen=True)
class NetworkState:
    """Snapshot of one simulation tick."""
    web_users: int
    audio_users: int
    video_users: int

    # Bandwidth demand per class (Mbps)
    web_demand: float
    audio_demand: float
    video_demand: float

    # Percent of demand met; values above 100 mean over-allocation
    web_sat: float
    audio_sat: float
    video_sat: float

    # Defaults to the sum of the per-class demands
    total_demand: Optional[float] = None

    def __post_init__(self):
        """Validate the snapshot."""
        for name in ("web_users", "audio_users", "video_users"):
            value = getattr(self, name)
            if int(value) != value or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value}")
            object.__setattr__(self, name, int(value))

        for name in ("web_demand", "audio_demand", "video_demand"):
            value = float(getattr(self, name))
            _check_finite(name, value)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
            object.__setattr__(self, name, value)

        for name in ("web_sat", "audio_sat", "video_sat"):
            value = float(getattr(self, name))
            _check_finite(name, value)
            object.__setattr__(self, name, value)

        if self.total_demand is None:
            total = self.web_demand + self.audio_demand + self.video_demand
        else:
            total = float(self.total_demand)
            _check_finite("total_demand", total)
            if total < 0:
                raise ValueError(f"total_demand must be non-negative, got {total}")
        object.__setattr__(self, "total_demand", total)

    @property
    def users(self) -> Tuple[int, int, int]:
        return (self.web_users, self.audio_users, self.video_users)

    @property
    def demands(self) -> Tuple[float, float, float]:
        return (self.web_demand, self.audio_demand, self.video_demand)

    @property
    def satisfactions(self) -> Tuple[float, float, float]:
        return (self.web_sat, self.audio_sat, self.video_sat)

    @property
    def min_satisfaction(self) -> float:
        return min(self.satisfactions)

    @property
    def min_active_satisfaction(self) -> float:
        """Worst satisfaction among classes with users, ignoring idle ones."""
        return min(active_satisfactions(self.users, self.satisfactions))

    def with_satisfaction(self, web_sat: float, audio_sat: float, video_sat: float) -> "NetworkState":
        """Copy of this snapshot carrying new satisfaction values."""
        return NetworkState(
            web_users=self.web_users,
            audio_users=self.audio_users,
            video_users=self.video_users,
            web_demand=self.web_demand,
            audio_demand=self.audio_demand,
            video_demand=self.video_demand,
            web_sat=web_sat,
            audio_sat=audio_sat,
            video_sat=video_sat,
            total_demand=self.total_demand,
        )


@dataclass(frozen=True)
class Action:
    """
    Allocation ratios for (web, audio, video).

    Ratios are renormalized to sum to 1 on construction.
    """
    web_ratio: float
    audio_ratio: float
    video_ratio: float

    def __post_init__(self):
        ratios = [float(self.web_ratio), float(self.audio_ratio), float(self.video_ratio)]
        for name, value in zip(("web_ratio", "audio_ratio", "video_ratio"), ratios):
            _check_finite(name, value)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        total = sum(ratios)
        if total <= 0:
            raise ValueError("Allocation ratios must not all be zero")
        object.__setattr__(self, "web_ratio", ratios[0] / total)
        object.__setattr__(self, "audio_ratio", ratios[1] / total)
        object.__setattr__(self, "video_ratio", ratios[2] / total)

    @classmethod
    def from_ratios(cls, ratios) -> "Action":
        web, audio, video = (float(r) for r in ratios)
        return cls(web, audio, video)

    @property
    def ratios(self) -> Tuple[float, float, float]:
        return (self.web_ratio, self.audio_ratio, self.video_ratio)

    def as_array(self) -> np.ndarray:
        return np.array(self.ratios, dtype=np.float64)

    def allocate(self, capacity: float) -> Tuple[float, float, float]:
        """Bandwidth per class (Mbps) for a link of the given capacity."""
        return tuple(capacity * r for r in self.ratios)


@dataclass(frozen=True)
class Transition:
    """One learning sample."""
    state: NetworkState
    action_index: int
    reward: float
    next_state: NetworkState
    action: Optional[Action] = field(default=None, compare=False)
