"""
bandwidth_rl
============

Learned bandwidth allocation between web, audio and video traffic:

- `AgentConfig` – default constants and thresholds
- `NetworkState`, `Action`, `Transition` – records exchanged with the caller
- `StateEncoder` – tabular state index and feature vector
- `ActionCatalog` – allocation splits and congestion/starvation masking
- `TabularQLearner`, `ApproximateQLearner` – value-model back-ends
- `RewardModel` – QoS reward shaping
- `EpsilonGreedyPolicy`, `TrainingOrchestrator` – decision and learning loop
- `BandwidthAgent` – everything wired together for one learner preset
- `BandwidthEnv`, `UserPattern` – deterministic reference environment
"""

from .AgentConfig import AgentConfig  # noqa: F401
from .models import (  # noqa: F401
    TRAFFIC_CLASSES,
    NetworkState,
    Action,
    Transition,
)
from .state_encoder import StateEncoder  # noqa: F401
from .actions import ActionCatalog  # noqa: F401
from .tracker import PerformanceTracker  # noqa: F401
from .replay_buffer import ReplayBuffer  # noqa: F401
from .q_table import TabularQLearner  # noqa: F401
from .dqn_agent import ApproximateQLearner, QNetwork  # noqa: F401
from .reward import RewardConfig, RewardModel  # noqa: F401
from .orchestrator import ExplorationSchedule, HistoryEntry, TrainingOrchestrator  # noqa: F401
from .policy import EpsilonGreedyPolicy  # noqa: F401
from .learner_config import (  # noqa: F401
    LearnerConfig,
    ALL_PRESETS,
    get_preset,
    list_presets,
)
from .agent import BandwidthAgent  # noqa: F401
from .persistence import save_agent, load_agent  # noqa: F401
from .rl_env import BandwidthEnv, UserPattern, proportional_allocation  # noqa: F401
