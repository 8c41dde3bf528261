"""
learner_config.py

Named learner presets. Each preset fixes:
- the value-model back-end (tabular Q-table or approximate network)
- the action catalog it chooses from
- learning, exploration and reward-clipping parameters
"""

from dataclasses import dataclass
from typing import Dict

from .AgentConfig import AgentConfig


@dataclass
class LearnerConfig:
    """Configuration of one learning agent."""
    name: str
    description: str

    # "tabular" or "approximate"
    mode: str

    # "balanced" or "video_priority"
    catalog: str

    learning_rate: float
    discount: float

    # Exploration schedule
    exploration: float
    exploration_decay: float
    min_exploration: float

    reward_clip: float
    capacity: float = AgentConfig.CAPACITY_MBPS

    # Approximate back-end only
    hidden_size: int = AgentConfig.DQN_HIDDEN_SIZE
    replay_size: int = AgentConfig.DQN_REPLAY_SIZE
    batch_size: int = AgentConfig.DQN_BATCH_SIZE
    target_update: int = AgentConfig.DQN_TARGET_UPDATE
    warmup_steps: int = AgentConfig.DQN_WARMUP_STEPS
    # Adjust only the output row of the taken action
    shallow_update: bool = True

    def __post_init__(self):
        """Validate configuration."""
        if self.mode not in ("tabular", "approximate"):
            raise ValueError(f"Unknown learner mode: {self.mode}")
        if self.catalog not in ("balanced", "video_priority"):
            raise ValueError(f"Unknown action catalog: {self.catalog}")
        if not 0.0 <= self.discount <= 1.0:
            raise ValueError(f"Discount must be in [0, 1], got {self.discount}")
        if self.learning_rate <= 0:
            raise ValueError(f"Learning rate must be positive, got {self.learning_rate}")
        if not 0.0 <= self.min_exploration <= self.exploration <= 1.0:
            raise ValueError(
                f"Exploration must satisfy 0 <= min ({self.min_exploration}) "
                f"<= initial ({self.exploration}) <= 1"
            )
        if self.exploration_decay <= 0:
            raise ValueError(f"Exploration decay must be positive, got {self.exploration_decay}")
        if self.reward_clip <= 0:
            raise ValueError(f"Reward clip must be positive, got {self.reward_clip}")
        if self.capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {self.capacity}")
        if self.batch_size <= 0 or self.replay_size < self.batch_size:
            raise ValueError(
                f"Replay size ({self.replay_size}) must hold at least one batch ({self.batch_size})"
            )
        if self.target_update <= 0:
            raise ValueError(f"Target update interval must be positive, got {self.target_update}")

    @property
    def tabular(self) -> bool:
        return self.mode == "tabular"


# ============================================================================
# Presets
# ============================================================================

TABULAR = LearnerConfig(
    name="Tabular Q-learning",
    description="288-state Q-table over the balanced catalog",
    mode="tabular",
    catalog="balanced",
    learning_rate=AgentConfig.TABULAR_LEARNING_RATE,
    discount=AgentConfig.TABULAR_DISCOUNT,
    exploration=AgentConfig.TABULAR_EXPLORATION,
    exploration_decay=AgentConfig.TABULAR_EXPLORATION_DECAY,
    min_exploration=AgentConfig.TABULAR_MIN_EXPLORATION,
    reward_clip=AgentConfig.TABULAR_REWARD_CLIP,
)

APPROXIMATE = LearnerConfig(
    name="Approximate Q-learning",
    description="Replay-trained network, output-row updates, video-priority catalog",
    mode="approximate",
    catalog="video_priority",
    learning_rate=AgentConfig.DQN_LEARNING_RATE,
    discount=AgentConfig.DQN_DISCOUNT,
    exploration=AgentConfig.DQN_EXPLORATION,
    exploration_decay=AgentConfig.DQN_EXPLORATION_DECAY,
    min_exploration=AgentConfig.DQN_MIN_EXPLORATION,
    reward_clip=AgentConfig.DQN_REWARD_CLIP,
)

APPROXIMATE_FULL_BACKPROP = LearnerConfig(
    name="Approximate Q-learning (full backprop)",
    description="Same network trained with Adam through every layer",
    mode="approximate",
    catalog="video_priority",
    learning_rate=AgentConfig.DQN_LEARNING_RATE,
    discount=AgentConfig.DQN_DISCOUNT,
    exploration=AgentConfig.DQN_EXPLORATION,
    exploration_decay=AgentConfig.DQN_EXPLORATION_DECAY,
    min_exploration=AgentConfig.DQN_MIN_EXPLORATION,
    reward_clip=AgentConfig.DQN_REWARD_CLIP,
    shallow_update=False,
)

ALL_PRESETS: Dict[str, LearnerConfig] = {
    "tabular": TABULAR,
    "approximate": APPROXIMATE,
    "approximate_full_backprop": APPROXIMATE_FULL_BACKPROP,
}


def get_preset(key: str) -> LearnerConfig:
    """Get learner configuration by key."""
    if key not in ALL_PRESETS:
        raise ValueError(
            f"Unknown preset: {key}. "
            f"Available: {list(ALL_PRESETS.keys())}"
        )
    return ALL_PRESETS[key]


def list_presets() -> None:
    """Print all available presets."""
    print("\nAvailable Learner Presets:")
    print("=" * 80)
    for key, config in ALL_PRESETS.items():
        print(f"\n[{key}]")
        print(f"  Name: {config.name}")
        print(f"  Description: {config.description}")
        print(f"  Catalog: {config.catalog}, lr={config.learning_rate}, gamma={config.discount}")
        print(f"  Exploration: {config.exploration} -> {config.min_exploration} "
              f"(decay {config.exploration_decay})")
    print("\n" + "=" * 80)
