from typing import List, Optional

import numpy as np

from .models import Transition


class ReplayBuffer:
    """
    Fixed-capacity ring buffer of transitions.

    Once full, each push overwrites the oldest entry.
    """

    def __init__(self, capacity: int = 2000):
        if capacity <= 0:
            raise ValueError(f"Replay capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.clear()

    def clear(self):
        self.buffer: List[Optional[Transition]] = [None] * self.capacity
        self.position = 0
        self.full = False

    def push(self, transition: Transition):
        self.buffer[self.position] = transition
        self.position += 1
        if self.position >= self.capacity:
            self.position = 0
            self.full = True

    def __len__(self):
        return self.capacity if self.full else self.position

    def can_sample(self, batch_size: int) -> bool:
        return len(self) >= batch_size

    def sample(self, batch_size: int, rng: np.random.Generator) -> List[Transition]:
        """Uniform sample with replacement from the filled region."""
        size = len(self)
        if size == 0:
            return []
        indices = rng.integers(0, size, size=batch_size)
        return [self.buffer[i] for i in indices]

    def transitions(self) -> List[Transition]:
        """Stored transitions, oldest first."""
        if not self.full:
            return self.buffer[:self.position]
        return self.buffer[self.position:] + self.buffer[:self.position]

    @property
    def usage(self) -> float:
        """Fill level in percent."""
        return 100.0 * len(self) / self.capacity
