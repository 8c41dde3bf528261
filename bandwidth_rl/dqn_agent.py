"""
dqn_agent.py

Value-function approximation back-end: an online/target pair of small
feed-forward networks trained online from a replay buffer.

By default only the output-layer row of the taken action is adjusted
(`shallow_update=True`), with a clipped, decaying step. This is not
gradient descent through the hidden layers; the learning dynamics of the
tuned agent depend on it. `shallow_update=False` switches to an ordinary
Adam step on the squared TD error.
"""

import logging
from typing import Dict, List, Optional

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim

from .AgentConfig import AgentConfig
from .models import NetworkState, Transition
from .replay_buffer import ReplayBuffer
from .state_encoder import StateEncoder
from .value_model import ValueModel

logger = logging.getLogger(__name__)


class QNetwork(nn.Module):
    """input -> hidden -> hidden -> hidden/2 -> one value per action, ReLU."""

    def __init__(self, state_dim: int, n_actions: int, hidden_size: int = AgentConfig.DQN_HIDDEN_SIZE):
        super().__init__()
        self.body = nn.Sequential(
            nn.Linear(state_dim, hidden_size),
            nn.ReLU(),
            nn.Linear(hidden_size, hidden_size),
            nn.ReLU(),
            nn.Linear(hidden_size, hidden_size // 2),
            nn.ReLU(),
        )
        self.head = nn.Linear(hidden_size // 2, n_actions)

        # He initialization for ReLU networks, zero biases
        for m in self.modules():
            if isinstance(m, nn.Linear):
                nn.init.kaiming_normal_(m.weight, nonlinearity="relu")
                nn.init.constant_(m.bias, 0.0)

    def features(self, x):
        return self.body(x)

    def forward(self, x):
        return self.head(self.body(x))


class ApproximateQLearner(ValueModel):
    """
    DQN-style learner with hard target synchronization.

    - q_values(state) / predict(features, use_target) -> value per action
    - learn(transition): store it, then run one train_step()
    """

    tabular = False

    def __init__(
        self,
        encoder: StateEncoder,
        n_actions: int,
        learning_rate: float = AgentConfig.DQN_LEARNING_RATE,
        discount: float = AgentConfig.DQN_DISCOUNT,
        hidden_size: int = AgentConfig.DQN_HIDDEN_SIZE,
        replay_size: int = AgentConfig.DQN_REPLAY_SIZE,
        batch_size: int = AgentConfig.DQN_BATCH_SIZE,
        target_update: int = AgentConfig.DQN_TARGET_UPDATE,
        warmup_steps: int = AgentConfig.DQN_WARMUP_STEPS,
        update_clip: float = AgentConfig.DQN_UPDATE_CLIP,
        target_clip: float = AgentConfig.DQN_TARGET_CLIP,
        lr_decay: float = AgentConfig.DQN_LR_DECAY,
        shallow_update: bool = True,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        device: str = None,
    ):
        device = device or ("cuda" if torch.cuda.is_available() else "cpu")
        self.device = torch.device(device)
        if seed is not None:
            torch.manual_seed(seed)

        self.encoder = encoder
        self.n_actions = n_actions
        self.learning_rate = learning_rate
        self.discount = discount
        self.hidden_size = hidden_size
        self.batch_size = batch_size
        self.target_update = target_update
        self.warmup_steps = warmup_steps
        self.update_clip = update_clip
        self.target_clip = target_clip
        self.lr_decay = lr_decay
        self.shallow_update = shallow_update
        self.rng = rng if rng is not None else np.random.default_rng(seed)

        self.online = QNetwork(encoder.feature_dim, n_actions, hidden_size).to(self.device)
        self.target = QNetwork(encoder.feature_dim, n_actions, hidden_size).to(self.device)
        self.target.load_state_dict(self.online.state_dict())
        self.target.eval()
        self.optimizer = None
        if not shallow_update:
            self.optimizer = optim.Adam(self.online.parameters(), lr=learning_rate)

        self.replay_buffer = ReplayBuffer(replay_size)
        self.training_step = 0
        self.loss_history: List[float] = []

    def _tensor(self, features) -> torch.Tensor:
        return torch.as_tensor(np.asarray(features, dtype=np.float32), device=self.device)

    @torch.no_grad()
    def predict(self, features, use_target: bool = False) -> np.ndarray:
        """Values for one feature vector (1-D) or a batch (2-D)."""
        net = self.target if use_target else self.online
        return net(self._tensor(features)).cpu().numpy().astype(np.float64)

    def q_values(self, state: NetworkState) -> np.ndarray:
        return self.predict(self.encoder.features(state), use_target=False)

    def learn(self, transition: Transition) -> float:
        self.replay_buffer.push(transition)
        return self.train_step()

    # ----------------------------------------------------------
    def train_step(self) -> float:
        """
        One batched learning step. Returns the mean squared TD error, or
        0.0 without touching any parameter while the buffer holds fewer
        than `batch_size` transitions.
        """
        if not self.replay_buffer.can_sample(self.batch_size):
            return 0.0

        batch = [t for t in self.replay_buffer.sample(self.batch_size, self.rng) if t is not None]
        if not batch:
            return 0.0

        states = self._tensor(np.stack([self.encoder.features(t.state) for t in batch]))
        next_states = self._tensor(np.stack([self.encoder.features(t.next_state) for t in batch]))
        actions = [min(max(int(t.action_index), 0), self.n_actions - 1) for t in batch]
        rewards = torch.tensor([t.reward for t in batch], dtype=torch.float32, device=self.device)

        with torch.no_grad():
            max_next_q = self.target(next_states).max(dim=1).values
            targets = torch.clamp(rewards + self.discount * max_next_q, -self.target_clip, self.target_clip)

        if self.shallow_update:
            loss = self._shallow_step(states, actions, targets)
        else:
            loss = self._backprop_step(states, actions, targets)

        self.training_step += 1
        self.loss_history.append(loss)
        if self.training_step % self.sync_interval() == 0:
            self.sync_target()
        return loss

    @torch.no_grad()
    def _shallow_step(self, states, actions, targets) -> float:
        # Hidden layers are frozen here, so activations can be computed once
        hidden = self.online.features(states)
        weight = self.online.head.weight
        bias = self.online.head.bias
        current_lr = self.learning_rate / (1.0 + self.training_step * self.lr_decay)

        total_loss = 0.0
        for h, a, target in zip(hidden, actions, targets):
            current_q = torch.dot(weight[a], h) + bias[a]
            td_error = float(target - current_q)
            total_loss += td_error ** 2
            update = float(np.clip(current_lr * td_error, -self.update_clip, self.update_clip))
            weight[a] += update
        return total_loss / len(actions)

    def _backprop_step(self, states, actions, targets) -> float:
        index = torch.tensor(actions, dtype=torch.long, device=self.device).unsqueeze(1)
        current_q = self.online(states).gather(1, index).squeeze(1)
        loss = torch.mean((targets - current_q) ** 2)
        self.optimizer.zero_grad()
        loss.backward()
        torch.nn.utils.clip_grad_norm_(self.online.parameters(), max_norm=AgentConfig.DQN_GRAD_CLIP)
        self.optimizer.step()
        return float(loss.item())

    def sync_interval(self) -> int:
        """Shorter target-sync interval during the warm-up phase."""
        if self.training_step < self.warmup_steps:
            return max(AgentConfig.DQN_MIN_WARMUP_INTERVAL, self.target_update // 2)
        return self.target_update

    def sync_target(self):
        self.target.load_state_dict(self.online.state_dict())
        logger.debug("Target network synchronized at step %d", self.training_step)

    def reset_training(self):
        self.replay_buffer.clear()
        self.loss_history = []

    def describe(self) -> str:
        h = self.hidden_size
        return (f"Input:{self.encoder.feature_dim} -> FC:{h} -> FC:{h} -> FC:{h // 2} "
                f"-> Output:{self.n_actions}")

    # ----------------------------------------------------------
    def get_state(self) -> Dict:
        state = {
            "online": {k: v.detach().cpu().clone() for k, v in self.online.state_dict().items()},
            "target": {k: v.detach().cpu().clone() for k, v in self.target.state_dict().items()},
            "training_step": self.training_step,
        }
        if self.optimizer is not None:
            state["optimizer"] = self.optimizer.state_dict()
        return state

    def load_state(self, state: Dict):
        self.online.load_state_dict(state["online"])
        self.target.load_state_dict(state["target"])
        self.training_step = int(state["training_step"])
        if self.optimizer is not None and "optimizer" in state:
            self.optimizer.load_state_dict(state["optimizer"])
