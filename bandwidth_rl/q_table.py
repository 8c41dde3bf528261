import numpy as np

from .AgentConfig import AgentConfig
from .models import NetworkState, Transition
from .state_encoder import StateEncoder
from .value_model import ValueModel


class TabularQLearner(ValueModel):
    """
    Dense state x action table updated with one-step Q-learning:

        Q[s, a] += alpha * (r + gamma * max_a' Q[s', a'] - Q[s, a])
    """

    tabular = True

    def __init__(
        self,
        encoder: StateEncoder,
        n_actions: int,
        learning_rate: float = AgentConfig.TABULAR_LEARNING_RATE,
        discount: float = AgentConfig.TABULAR_DISCOUNT,
    ):
        self.encoder = encoder
        self.n_actions = n_actions
        self.learning_rate = learning_rate
        self.discount = discount
        self.Qtable = np.zeros((encoder.num_states, n_actions), dtype=np.float64)

    def _row(self, state: NetworkState) -> int:
        return min(max(self.encoder.index(state), 0), self.Qtable.shape[0] - 1)

    def q_values(self, state: NetworkState) -> np.ndarray:
        return self.Qtable[self._row(state)].copy()

    def td_target(self, reward: float, next_state: NetworkState) -> float:
        return reward + self.discount * self.Qtable[self._row(next_state)].max()

    def learn(self, transition: Transition) -> float:
        s = self._row(transition.state)
        a = min(max(int(transition.action_index), 0), self.n_actions - 1)
        td_error = self.td_target(transition.reward, transition.next_state) - self.Qtable[s, a]
        self.Qtable[s, a] += self.learning_rate * td_error
        return float(td_error ** 2)

    @property
    def coverage(self) -> float:
        """Percent of states with at least one non-zero value."""
        visited = np.count_nonzero(np.any(self.Qtable != 0, axis=1))
        return 100.0 * visited / self.Qtable.shape[0]

    def get_state(self):
        return {"Qtable": self.Qtable.copy()}

    def load_state(self, state):
        table = np.asarray(state["Qtable"], dtype=np.float64)
        if table.shape != self.Qtable.shape:
            raise ValueError(f"Q-table shape mismatch: expected {self.Qtable.shape}, got {table.shape}")
        self.Qtable = table.copy()
