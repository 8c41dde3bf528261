class AgentConfig:
    """
    Default parameters for the bandwidth allocation agents.

    Values are the tuned constants of the starvation prevention
    experiments (tabular Q-learning and the shallow DQN).
    The adaptive-exploration constants in particular were never jointly
    validated; treat them as starting points for tuning.
    """

    # ===== NETWORK =====
    # Core link capacity shared by the three traffic classes (Mbps)
    CAPACITY_MBPS = 100.0

    # Smallest demand used as a denominator (Mbps)
    MIN_DEMAND_MBPS = 0.1

    # ===== SATISFACTION THRESHOLDS (percent of demand met) =====
    EMERGENCY_SATISFACTION = 30.0
    WARNING_SATISFACTION = 60.0
    STARVATION_SATISFACTION = 50.0   # used by the starvation counters
    OVERRIDE_SATISFACTION = 20.0     # hard floor for the emergency override

    # ===== STATE ENCODING (tabular) =====
    # Congestion bins on total_demand / capacity
    CONGESTION_EDGES = (0.7, 0.9, 1.0)
    # Worst-satisfaction bin edges, one extra bin for > 100 %
    SATISFACTION_EDGES = (0.0, 30.0, 50.0, 70.0, 85.0, 100.0)
    MAX_SEVERITY = 3

    # ===== STATE ENCODING (approximate) =====
    # Plausible maxima for active users per class (web, audio, video)
    USER_SCALE = (20.0, 8.0, 15.0)
    DEMAND_SCALE = 100.0
    DEMAND_CAP = 2.0
    SATISFACTION_SCALE = 100.0
    FEATURE_DIM = 10

    # ===== ACTION MASKING =====
    SEVERE_CONGESTION = 1.5      # demand / capacity
    MODERATE_CONGESTION = 1.0
    SEVERE_VIDEO_CAP = 0.40
    MODERATE_VIDEO_CAP = 0.45
    MAX_SINGLE_SHARE = 0.90      # no class may take more under overload
    ACUTE_STARVATION_CLASSES = 2

    # ===== POLICY =====
    ADAPTIVE_WINDOW = 20
    POOR_PERFORMANCE = 50.0
    GOOD_PERFORMANCE = 70.0
    POOR_EXPLORATION_BOOST = 1.2
    POOR_EXPLORATION_CEILING = 0.9
    GOOD_EXPLORATION_SHRINK = 0.9
    PRIORITY_EXPLORATION_PROB = 0.8
    SECOND_BEST_PROB = 0.1
    OVERRIDE_PROB = 0.8
    # Post-selection safeguard under extreme demand
    VIDEO_CEILING = 0.6

    # ===== TABULAR Q-LEARNING =====
    TABULAR_LEARNING_RATE = 0.2
    TABULAR_DISCOUNT = 0.85
    TABULAR_EXPLORATION = 0.6
    TABULAR_EXPLORATION_DECAY = 0.998
    TABULAR_MIN_EXPLORATION = 0.15

    # ===== APPROXIMATE Q-LEARNING (DQN) =====
    DQN_LEARNING_RATE = 0.0005
    DQN_DISCOUNT = 0.85
    DQN_EXPLORATION = 1.0
    DQN_EXPLORATION_DECAY = 0.995
    DQN_MIN_EXPLORATION = 0.05
    # Network: input -> 128 -> 128 -> 64 -> actions
    DQN_HIDDEN_SIZE = 128
    DQN_TARGET_UPDATE = 25
    DQN_WARMUP_STEPS = 500
    DQN_MIN_WARMUP_INTERVAL = 10
    DQN_REPLAY_SIZE = 2000
    DQN_BATCH_SIZE = 32
    DQN_UPDATE_CLIP = 0.1
    DQN_TARGET_CLIP = 20.0
    DQN_LR_DECAY = 1e-6
    DQN_GRAD_CLIP = 1.0  # full-backprop variant only

    # ===== EXPLORATION DECAY ADAPTATION =====
    DECAY_WINDOW = 10
    DECAY_GOOD_THRESHOLD = 70.0
    DECAY_FAST_FACTOR = 0.99
    DECAY_SLOW_FACTOR = 1.01

    # ===== PERFORMANCE TRACKING =====
    HISTORY_LENGTH = 100
    BAD_TICK_THRESHOLD = 70.0

    # ===== REWARD =====
    TABULAR_REWARD_CLIP = 25.0
    DQN_REWARD_CLIP = 20.0
