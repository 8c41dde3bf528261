#!/usr/bin/env python3
"""
compare_allocators.py

Runs the demand-proportional baseline and a learning agent on the same
user pattern and prints satisfaction and starvation figures for both.

Usage:
    python compare_allocators.py --preset tabular --ticks 3000
    python compare_allocators.py --preset approximate --csv results/compare.csv
"""

import argparse
import os
import sys

import pandas as pd

from bandwidth_rl.AgentConfig import AgentConfig
from bandwidth_rl.agent import BandwidthAgent
from bandwidth_rl.models import TRAFFIC_CLASSES
from bandwidth_rl.rl_env import BandwidthEnv, UserPattern, proportional_allocation

# Light load, congestion, then video-heavy overload
DEFAULT_PATTERN = UserPattern.scripted(
    [(10, 10, 3)] * 50 + [(15, 30, 8)] * 50 + [(10, 20, 20)] * 50
)


def run_allocator(env: BandwidthEnv, choose, ticks: int, learn=None) -> pd.DataFrame:
    """
    Drive `env` for `ticks` ticks. `choose(state)` returns an Action;
    `learn(state, action, outcome)`, when given, is called after each tick.
    """
    rows = []
    state = env.reset()
    for t in range(ticks):
        action = choose(state)
        outcome, next_state = env.step(action)
        if learn is not None:
            learn(state, action, outcome)
        rows.append({
            "tick": t,
            "web_sat": outcome.web_sat,
            "audio_sat": outcome.audio_sat,
            "video_sat": outcome.video_sat,
            "min_sat": outcome.min_satisfaction,
            "web_users": outcome.web_users,
            "audio_users": outcome.audio_users,
            "video_users": outcome.video_users,
        })
        state = next_state
    return pd.DataFrame(rows)


def summarize(df: pd.DataFrame, window: int) -> dict:
    tail = df.tail(window)
    summary = {
        "avg_min_sat": tail["min_sat"].mean(),
        "worst_min_sat": tail["min_sat"].min(),
    }
    for name in TRAFFIC_CLASSES:
        active = tail[f"{name}_users"] > 0
        starving = active & (tail[f"{name}_sat"] < AgentConfig.STARVATION_SATISFACTION)
        summary[f"avg_{name}_sat"] = tail[f"{name}_sat"].mean()
        summary[f"{name}_starvation_time"] = 100.0 * starving.mean()
    return summary


def main():
    parser = argparse.ArgumentParser(description="Compare the proportional baseline with a learning agent")
    parser.add_argument("--preset", type=str, default="tabular", help="Learner preset")
    parser.add_argument("--ticks", type=int, default=3000, help="Ticks per allocator")
    parser.add_argument("--window", type=int, default=600, help="Trailing ticks used for the summary")
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument("--csv", type=str, default=None, help="Optional CSV of the per-tick results")
    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("ALLOCATOR COMPARISON")
    print("=" * 60)
    print(f"Preset: {args.preset}")
    print(f"Ticks: {args.ticks} (summary over last {args.window})")
    print("=" * 60 + "\n")

    env = BandwidthEnv(DEFAULT_PATTERN)
    print("[compare] Running proportional baseline...")
    baseline = run_allocator(env, lambda s: proportional_allocation(s, env.capacity), args.ticks)

    agent = BandwidthAgent(args.preset, seed=args.seed)
    print(f"[compare] Running {agent.config.name}...")
    learned = run_allocator(env, agent.predict, args.ticks, learn=agent.step)
    sys.stdout.flush()

    results = pd.DataFrame({
        "proportional": summarize(baseline, args.window),
        args.preset: summarize(learned, args.window),
    })
    print("\n" + results.round(2).to_string())

    if args.csv:
        directory = os.path.dirname(args.csv)
        if directory:
            os.makedirs(directory, exist_ok=True)
        combined = pd.concat(
            [baseline.assign(allocator="proportional"), learned.assign(allocator=args.preset)],
            ignore_index=True,
        )
        combined.to_csv(args.csv, index=False)
        print(f"\n[compare] Saved per-tick results to {args.csv}")

    gain = results.loc["avg_min_sat", args.preset] - results.loc["avg_min_sat", "proportional"]
    print(f"\nAverage min satisfaction change vs baseline: {gain:+.2f} points")


if __name__ == "__main__":
    main()
