from abc import ABC, abstractmethod
from typing import Dict

import numpy as np

from .models import NetworkState, Transition


class ValueModel(ABC):
    """Common contract of the tabular and approximate learners."""

    tabular = True

    @abstractmethod
    def q_values(self, state: NetworkState) -> np.ndarray: ...

    @abstractmethod
    def learn(self, transition: Transition) -> float:
        """Apply one learning step and return its loss (0.0 for a no-op)."""

    @abstractmethod
    def get_state(self) -> Dict: ...

    @abstractmethod
    def load_state(self, state: Dict): ...

    def reset_training(self):
        """Drop transient training data, keep the learned values."""
