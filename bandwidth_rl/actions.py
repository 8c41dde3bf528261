"""
actions.py

Fixed catalogs of candidate allocation splits and the masking rules that
restrict them under congestion and starvation.
"""

import logging
from typing import List, Optional, Sequence, Set

import numpy as np

from .AgentConfig import AgentConfig
from .models import Action, NetworkState

logger = logging.getLogger(__name__)


# Catalog used by the tabular agent (web, audio, video)
BALANCED_ALLOCATIONS = (
    # Balanced allocations
    (0.33, 0.33, 0.34),   # Equal distribution
    (0.40, 0.30, 0.30),   # Web focus
    (0.30, 0.40, 0.30),   # Audio focus
    (0.30, 0.30, 0.40),   # Video focus
    # Web priority
    (0.50, 0.25, 0.25),
    (0.45, 0.30, 0.25),
    # Audio priority (protect real-time)
    (0.25, 0.50, 0.25),
    (0.30, 0.45, 0.25),
    # Video priority
    (0.25, 0.25, 0.50),
    (0.30, 0.25, 0.45),
    # Balanced combinations
    (0.35, 0.35, 0.30),   # Web+Audio
    (0.35, 0.30, 0.35),   # Web+Video
    (0.30, 0.35, 0.35),   # Audio+Video
    # Protection allocations
    (0.40, 0.35, 0.25),   # Web+Audio protect
    (0.25, 0.40, 0.35),   # Audio+Video protect
    (0.35, 0.25, 0.40),   # Web+Video protect
    # Emergency allocations
    (0.20, 0.40, 0.40),   # Sacrifice web
    (0.40, 0.20, 0.40),   # Sacrifice audio
    (0.40, 0.40, 0.20),   # Sacrifice video
)
BALANCED_PROTECTIVE = (0, 13, 14, 15, 16, 17, 18)
BALANCED_NEUTRAL = (0, 1, 2, 3, 10, 11, 12)

# Catalog used by the approximate agent, video protection first
VIDEO_PRIORITY_ALLOCATIONS = (
    # Video-first allocations
    (0.20, 0.30, 0.50),
    (0.25, 0.25, 0.50),
    (0.25, 0.30, 0.45),
    (0.30, 0.25, 0.45),
    (0.20, 0.35, 0.45),
    # Balanced with video protection
    (0.30, 0.30, 0.40),
    (0.35, 0.25, 0.40),
    (0.25, 0.35, 0.40),
    # Emergency congestion handling
    (0.35, 0.25, 0.40),
    (0.25, 0.35, 0.40),
    (0.30, 0.30, 0.40),
    # Standard balanced
    (0.33, 0.33, 0.34),
    (0.35, 0.35, 0.30),
    (0.35, 0.30, 0.35),
    (0.30, 0.35, 0.35),
    # Web/audio focused (use sparingly)
    (0.45, 0.30, 0.25),
    (0.40, 0.35, 0.25),
    (0.30, 0.45, 0.25),
    (0.25, 0.50, 0.25),
    (0.50, 0.25, 0.25),
)
VIDEO_PRIORITY_PROTECTIVE = tuple(range(11))
VIDEO_PRIORITY_NEUTRAL = tuple(range(5, 15))


class ActionCatalog:
    """
    Ordered, immutable list of allocation splits.

    Args:
        allocations: sequence of (web, audio, video) ratio triples
        protective: indices favoured under starvation and during
            biased exploration
        neutral: indices explored once recent performance is good
    """

    def __init__(
        self,
        allocations: Sequence[Sequence[float]] = BALANCED_ALLOCATIONS,
        protective: Sequence[int] = BALANCED_PROTECTIVE,
        neutral: Optional[Sequence[int]] = None,
        capacity: float = AgentConfig.CAPACITY_MBPS,
    ):
        if len(allocations) == 0:
            raise ValueError("Action catalog needs at least one allocation")
        self._actions = tuple(Action.from_ratios(a) for a in allocations)
        self._matrix = np.array([a.ratios for a in self._actions], dtype=np.float64)
        self._matrix.setflags(write=False)

        neutral = tuple(range(len(self._actions))) if neutral is None else tuple(neutral)
        for name, indices in (("protective", protective), ("neutral", neutral)):
            bad = [i for i in indices if not 0 <= i < len(self._actions)]
            if bad:
                raise ValueError(f"{name} indices out of range: {bad}")
        self.protective = frozenset(protective)
        self.neutral = frozenset(neutral)
        self.capacity = float(capacity)

    @classmethod
    def balanced(cls, capacity: float = AgentConfig.CAPACITY_MBPS) -> "ActionCatalog":
        return cls(BALANCED_ALLOCATIONS, BALANCED_PROTECTIVE, BALANCED_NEUTRAL, capacity)

    @classmethod
    def video_priority(cls, capacity: float = AgentConfig.CAPACITY_MBPS) -> "ActionCatalog":
        return cls(VIDEO_PRIORITY_ALLOCATIONS, VIDEO_PRIORITY_PROTECTIVE,
                   VIDEO_PRIORITY_NEUTRAL, capacity)

    def __len__(self) -> int:
        return len(self._actions)

    def __getitem__(self, index: int) -> Action:
        return self._actions[self.clamp(index)]

    def allocations(self) -> List[Action]:
        return list(self._actions)

    @property
    def matrix(self) -> np.ndarray:
        """Read-only (n_actions, 3) array of ratios."""
        return self._matrix

    def clamp(self, index: int) -> int:
        return int(min(max(int(index), 0), len(self._actions) - 1))

    def nearest_index(self, action) -> int:
        """
        Catalog index closest (Euclidean) to an applied allocation.

        Accepts an `Action` or any ratio triple. Ties resolve to the
        first index with the minimal distance.
        """
        ratios = action.ratios if isinstance(action, Action) else tuple(action)
        distances = np.linalg.norm(self._matrix - np.asarray(ratios, dtype=np.float64), axis=1)
        # argmin returns the first occurrence of the minimum
        return int(np.argmin(distances))

    def describe(self, index: int) -> str:
        web, audio, video = self[index].ratios
        return f"Web={web * 100:.0f}%, Audio={audio * 100:.0f}%, Video={video * 100:.0f}%"

    # ----------------------------------------------------------
    def valid_indices(self, state: NetworkState) -> Set[int]:
        """
        Indices admissible under the current conditions.

        Rules are applied by severity; a rule that would leave nothing
        valid is skipped, so the result is never empty.
        """
        everything = set(range(len(self._actions)))
        valid = set(everything)
        load = state.total_demand / max(self.capacity, AgentConfig.MIN_DEMAND_MBPS)

        if load > AgentConfig.SEVERE_CONGESTION:
            valid = self._restrict(valid, self._share_at_most(AgentConfig.MAX_SINGLE_SHARE), "single-class share")
            valid = self._restrict(valid, self._video_at_most(AgentConfig.SEVERE_VIDEO_CAP), "severe video cap")
        elif load > AgentConfig.MODERATE_CONGESTION:
            valid = self._restrict(valid, self._share_at_most(AgentConfig.MAX_SINGLE_SHARE), "single-class share")
            valid = self._restrict(valid, self._video_at_most(AgentConfig.MODERATE_VIDEO_CAP), "moderate video cap")

        if self._acute_starvation(state):
            valid = self._restrict(valid, set(self.protective), "protective subset")

        return valid if valid else everything

    def _restrict(self, valid: Set[int], allowed: Set[int], reason: str) -> Set[int]:
        restricted = valid & allowed
        if not restricted:
            logger.debug("Masking by %s left no actions, keeping previous set", reason)
            return valid
        return restricted

    def _video_at_most(self, cap: float) -> Set[int]:
        return {i for i in range(len(self._actions)) if self._matrix[i, 2] <= cap + 1e-9}

    def _share_at_most(self, cap: float) -> Set[int]:
        return {i for i in range(len(self._actions)) if self._matrix[i].max() <= cap + 1e-9}

    @staticmethod
    def _acute_starvation(state: NetworkState) -> bool:
        if state.min_active_satisfaction >= AgentConfig.EMERGENCY_SATISFACTION:
            return False
        starving = sum(
            1 for users, sat in zip(state.users, state.satisfactions)
            if users > 0 and sat < AgentConfig.EMERGENCY_SATISFACTION
        )
        return starving >= AgentConfig.ACUTE_STARVATION_CLASSES
