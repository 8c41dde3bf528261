"""
reward.py

Reward shaping for the allocation agents. The reward balances three
competing objectives:

1. starvation avoidance  – steep per-class penalties below nested
   thresholds and a large bonus when even the worst-served class is fine
2. fairness              – bonus for a small spread between classes,
   penalty for a large one regardless of the average
3. efficiency            – bonus for serving most of the demand during
   congestion, penalty for allocating far more than a class asked for

The approximate agents use a video-priority variant: the per-class tiers
are replaced by proportional video penalties, video bonuses and a small
bonus for sustained performance, and only the -10 floor of the fairness
tiers remains.

Minimum and spread are taken over the classes that had users in the
pre-action state. The result is clamped to [-clip, clip] so a single
transition cannot produce an unbounded learning step.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .AgentConfig import AgentConfig
from .models import Action, NetworkState, active_satisfactions
from .tracker import PerformanceTracker


@dataclass
class RewardConfig:
    """Shaping constants; thresholds are satisfaction percentages."""

    # (threshold, base penalty, slope): lowest matching tier applies,
    # penalty = base + slope * (threshold - sat) / threshold
    starvation_tiers: Tuple[Tuple[float, float, float], ...] = (
        (20.0, 8.0, 4.0),
        (40.0, 5.0, 3.0),
        (60.0, 2.0, 2.0),
    )
    # (threshold, bonus): highest matching tier applies
    satisfaction_tiers: Tuple[Tuple[float, float], ...] = (
        (90.0, 3.0),
        (80.0, 2.0),
        (70.0, 1.0),
    )
    # Worst-served class
    fairness_tiers: Tuple[Tuple[float, float], ...] = (
        (70.0, 10.0),
        (60.0, 5.0),
        (50.0, 2.0),
    )
    floor_threshold: float = 40.0
    floor_penalty: float = 10.0

    # (max spread, min floor, bonus)
    balance_tiers: Tuple[Tuple[float, float, float], ...] = (
        (15.0, 70.0, 6.0),
        (25.0, 60.0, 3.0),
    )
    imbalance_spread: float = 40.0
    imbalance_penalty: float = 4.0

    penalize_waste: bool = True
    waste_threshold: float = 120.0
    waste_scale: float = 50.0

    efficiency_threshold: float = 0.85
    efficiency_floor: float = 60.0
    efficiency_bonus: float = 4.0

    # Video-priority variant, replaces the per-class tiers when enabled.
    video_priority: bool = False
    # (threshold, weight): lowest matching tier applies,
    # penalty = weight * (1 - sat / threshold)
    video_penalty_tiers: Tuple[Tuple[float, float], ...] = (
        (50.0, 15.0),
        (70.0, 8.0),
    )
    video_bonus_tiers: Tuple[Tuple[float, float], ...] = (
        (90.0, 8.0),
        (80.0, 5.0),
        (70.0, 3.0),
    )
    # Sustained performance: video at or above consistency_sat and the
    # mean of the last consistency_window minimum samples >= consistency_floor
    consistency_sat: float = 75.0
    consistency_window: int = 5
    consistency_floor: float = 70.0
    consistency_bonus: float = 2.0

    clip: float = AgentConfig.TABULAR_REWARD_CLIP

    def __post_init__(self):
        if self.clip <= 0:
            raise ValueError(f"Reward clip must be positive, got {self.clip}")
        for threshold, _, _ in self.starvation_tiers:
            if threshold <= 0:
                raise ValueError(f"Starvation thresholds must be positive, got {threshold}")
        for threshold, _ in self.video_penalty_tiers:
            if threshold <= 0:
                raise ValueError(f"Video penalty thresholds must be positive, got {threshold}")
        self.starvation_tiers = tuple(sorted(self.starvation_tiers))
        self.satisfaction_tiers = tuple(sorted(self.satisfaction_tiers, reverse=True))
        self.fairness_tiers = tuple(sorted(self.fairness_tiers, reverse=True))
        self.video_penalty_tiers = tuple(sorted(self.video_penalty_tiers))
        self.video_bonus_tiers = tuple(sorted(self.video_bonus_tiers, reverse=True))

    @classmethod
    def tabular(cls) -> "RewardConfig":
        return cls(clip=AgentConfig.TABULAR_REWARD_CLIP)

    @classmethod
    def approximate(cls) -> "RewardConfig":
        """Video-priority shaping used with the video-priority catalog."""
        return cls(
            video_priority=True,
            fairness_tiers=(),
            penalize_waste=False,
            clip=AgentConfig.DQN_REWARD_CLIP,
        )


class RewardModel:
    """
    reward(state, action, next_state) -> float in [-clip, clip]

    Every call also records the outcome in the attached
    `PerformanceTracker`, which drives adaptive exploration.
    """

    def __init__(
        self,
        config: Optional[RewardConfig] = None,
        tracker: Optional[PerformanceTracker] = None,
        capacity: float = AgentConfig.CAPACITY_MBPS,
    ):
        self.config = config or RewardConfig()
        self.tracker = tracker
        self.capacity = capacity

    def class_term(self, sat: float) -> float:
        for threshold, base, slope in self.config.starvation_tiers:
            if sat < threshold:
                shortfall = (threshold - max(sat, 0.0)) / threshold
                return -(base + slope * shortfall)
        for threshold, bonus in self.config.satisfaction_tiers:
            if sat >= threshold:
                return bonus
        return 0.0

    def video_term(self, state: NetworkState, next_state: NetworkState) -> float:
        """Zero while nobody watches video."""
        cfg = self.config
        if state.video_users <= 0:
            return 0.0
        sat = next_state.video_sat
        for threshold, weight in cfg.video_penalty_tiers:
            if sat < threshold:
                return -weight * (1.0 - sat / threshold)

        value = 0.0
        for threshold, bonus in cfg.video_bonus_tiers:
            if sat >= threshold:
                value = bonus
                break
        if sat >= cfg.consistency_sat and self.tracker is not None:
            # read before this tick is recorded
            recent = self.tracker.recent_mean(cfg.consistency_window)
            if recent is not None and recent >= cfg.consistency_floor:
                value += cfg.consistency_bonus
        return value

    def fairness_term(self, min_sat: float) -> float:
        cfg = self.config
        for threshold, bonus in cfg.fairness_tiers:
            if min_sat >= threshold:
                return bonus
        if min_sat < cfg.floor_threshold:
            return -cfg.floor_penalty
        return 0.0

    def balance_term(self, sats) -> float:
        cfg = self.config
        spread = max(sats) - min(sats)
        floor = min(sats)
        for max_spread, min_floor, bonus in cfg.balance_tiers:
            if spread < max_spread and floor > min_floor:
                return bonus
        if spread > cfg.imbalance_spread:
            return -cfg.imbalance_penalty
        return 0.0

    def waste_term(self, sats) -> float:
        cfg = self.config
        return -sum((s - cfg.waste_threshold) / cfg.waste_scale for s in sats if s > cfg.waste_threshold)

    def efficiency_term(self, state: NetworkState, next_state: NetworkState) -> float:
        """Only active while total demand exceeds capacity."""
        cfg = self.config
        if state.total_demand <= self.capacity:
            return 0.0
        total = max(sum(state.demands), AgentConfig.MIN_DEMAND_MBPS)
        served = sum(min(sat, 100.0) / 100.0 * demand
                     for sat, demand in zip(next_state.satisfactions, state.demands))
        efficiency = served / total
        floor = min(active_satisfactions(state.users, next_state.satisfactions))
        if efficiency > cfg.efficiency_threshold and floor > cfg.efficiency_floor:
            return cfg.efficiency_bonus
        return 0.0

    def reward(self, state: NetworkState, action: Optional[Action], next_state: NetworkState) -> float:
        cfg = self.config
        sats = next_state.satisfactions
        active = active_satisfactions(state.users, sats)

        value = 0.0
        if cfg.video_priority:
            value += self.video_term(state, next_state)
        else:
            for users, sat in zip(state.users, sats):
                if users > 0:
                    value += self.class_term(sat)
        value += self.fairness_term(min(active))
        value += self.balance_term(active)
        if cfg.penalize_waste:
            value += self.waste_term(sats)
        value += self.efficiency_term(state, next_state)

        if self.tracker is not None:
            self.tracker.record(state, next_state)

        return float(np.clip(value, -cfg.clip, cfg.clip))

    __call__ = reward
