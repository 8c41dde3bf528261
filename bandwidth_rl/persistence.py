"""
persistence.py

Save/load of the fields that must survive a restart: value-model
parameters, exploration rate, episode counter and performance counters.
A failed load is not fatal; the agent keeps its fresh parameters.
"""

import logging
import os

import torch

logger = logging.getLogger(__name__)


def save_agent(agent, path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    torch.save(agent.get_state(), path)
    logger.info("Agent saved to %s", path)


def load_agent(agent, path: str) -> bool:
    """Restore `agent` from `path`. Returns False (and logs a warning) on failure."""
    if not os.path.exists(path):
        logger.warning("No saved agent at %s, starting fresh", path)
        return False
    try:
        # the blob holds numpy arrays and plain dicts, not only tensors
        state = torch.load(path, map_location="cpu", weights_only=False)
    except Exception as e:
        logger.warning("Could not read saved agent %s: %s", path, e)
        return False

    backup = agent.get_state()
    try:
        agent.load_state(state)
    except (KeyError, TypeError, ValueError, RuntimeError) as e:
        logger.warning("Saved agent %s is incompatible: %s", path, e)
        agent.load_state(backup)
        return False
    logger.info("Agent loaded from %s", path)
    return True
