"""train_rl.py

Trains a bandwidth allocation agent against the deterministic
reference environment.

Usage
-----
    python train_rl.py --list
    python train_rl.py --preset tabular --ticks 5000 --seed 1
    python train_rl.py --preset approximate --users 10 20 8 --save results/approx.pt
"""
import argparse
import logging
import sys

import numpy as np
import torch

from bandwidth_rl.agent import BandwidthAgent
from bandwidth_rl.learner_config import get_preset, list_presets
from bandwidth_rl.persistence import load_agent, save_agent
from bandwidth_rl.rl_env import BandwidthEnv, UserPattern


def train(
    preset: str = "tabular",
    ticks: int = 2000,
    users=(15, 30, 5),
    seed: int = None,
    device: str = None,
    log_every: int = 200,
    save_path: str = None,
    resume: bool = False,
):
    config = get_preset(preset)
    if not config.tabular:
        device = device or ("cuda" if torch.cuda.is_available() else "cpu")
        print(f"[train_rl] Selected device: {device}")

    env = BandwidthEnv(UserPattern.constant(*users))
    agent = BandwidthAgent(config, seed=seed, device=device)
    if resume and save_path:
        load_agent(agent, save_path)

    print("\n" + "=" * 60)
    print(f"TRAINING: {config.name}")
    print("=" * 60)
    print(f"Description: {config.description}")
    print(f"Users (web, audio, video): {users}")
    print(f"Capacity: {env.capacity:.0f} Mbps")
    print(f"Actions: {len(agent.catalog)}")
    if not config.tabular:
        print(f"Network: {agent.value_model.describe()}")
    print(f"Ticks: {ticks}")
    print("=" * 60 + "\n")

    rewards = []
    min_sats = []
    state = env.reset()
    for t in range(ticks):
        action = agent.predict(state)
        outcome, next_state = env.step(action)
        reward = agent.step(state, action, outcome)
        rewards.append(reward)
        min_sats.append(outcome.min_satisfaction)
        state = next_state

        if (t + 1) % log_every == 0 or t == 0:
            print(
                f"Tick {t + 1:05d} | "
                f"reward={reward:7.2f} | "
                f"min_sat={outcome.min_satisfaction:6.1f}% | "
                f"split={agent.catalog.describe(agent.last_action_index)} | "
                f"explore={agent.exploration_rate:5.3f} | "
                f"avg_reward({log_every})={np.mean(rewards[-log_every:]):7.2f}"
            )
            sys.stdout.flush()

    # Training summary
    performance = agent.evaluate_performance()
    print("\n" + "=" * 60)
    print("TRAINING SUMMARY")
    print("=" * 60)
    print(f"Total ticks: {ticks}")
    print(f"Avg reward (last 100 ticks): {np.mean(rewards[-100:]):.3f}")
    print(f"Avg reward (all ticks): {np.mean(rewards):.3f}")
    print(f"Avg min satisfaction (last 100 ticks): {np.mean(min_sats[-100:]):.1f}%")
    for name in ("web", "audio", "video"):
        print(f"{name.capitalize()} starvation time: {performance[f'{name}_starvation_time']:.1f}%")
    if config.tabular:
        print(f"Q-table coverage: {performance['q_table_coverage']:.1f}%")
    else:
        print(f"Training steps: {performance['training_steps']}")
        print(f"Replay buffer usage: {performance['replay_buffer_usage']:.1f}%")
    print("=" * 60 + "\n")
    agent.print_policy_analysis()

    if save_path:
        save_agent(agent, save_path)
        print(f"\nSaved agent to {save_path}")

    return agent, rewards


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Train a bandwidth allocation agent")
    parser.add_argument("--preset", type=str, default="tabular", help="Learner preset")
    parser.add_argument("--list", action="store_true", help="List available presets")
    parser.add_argument("--ticks", type=int, default=2000, help="Number of training ticks")
    parser.add_argument("--users", type=int, nargs=3, default=[15, 30, 5],
                        metavar=("WEB", "AUDIO", "VIDEO"), help="Active users per class")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--device", type=str, default=None, choices=["cuda", "cpu"], help="Device to use")
    parser.add_argument("--log-every", type=int, default=200, help="Tick interval for progress lines")
    parser.add_argument("--save", type=str, default=None, help="Path to save the trained agent")
    parser.add_argument("--resume", action="store_true", help="Load --save path before training")
    parser.add_argument("--verbose", action="store_true", help="Show library log messages")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    if args.list:
        list_presets()
        sys.exit(0)

    train(
        preset=args.preset,
        ticks=args.ticks,
        users=tuple(args.users),
        seed=args.seed,
        device=args.device,
        log_every=args.log_every,
        save_path=args.save,
        resume=args.resume,
    )
