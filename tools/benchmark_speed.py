"""
Performance Benchmark
=====================

Measures game/environment step throughput and food placement latency.

Usage:
    python -m tools.benchmark_speed [--steps S] [--quick]
"""

from __future__ import annotations

import argparse
import sys
import time
import numpy as np

from adaptive_snake.snake_core.config_loader import load_config
from adaptive_snake.snake_core.engine import AdaptiveEngine
from adaptive_snake.snake_core.env_gym import SnakeEnv
from adaptive_snake.snake_core.game import SnakeGame
from adaptive_snake.snake_core.movement_log import ALL_DIRECTIONS
from adaptive_snake.snake_core.placement import PlacementStrategy


def benchmark_core_game(
    num_steps: int = 1000,
    seed: int = 42
) -> dict:
    """
    Benchmark raw SnakeGame without Gym overhead.

    Args:
        num_steps: Number of steps.
        seed: Random seed.

    Returns:
        Dict with timing results.
    """
    config = load_config()
    game = SnakeGame(config=config, seed=seed)
    rng = np.random.default_rng(seed)

    game.reset(seed=seed)
    start = time.perf_counter()

    for _ in range(num_steps):
        direction = ALL_DIRECTIONS[int(rng.integers(len(ALL_DIRECTIONS)))]
        result = game.step(direction)
        if result.terminated or result.truncated:
            game.reset()

    elapsed = time.perf_counter() - start

    return {
        "mode": "core_game",
        "num_steps": num_steps,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_steps / elapsed,
        "ms_per_step": (elapsed * 1000) / num_steps
    }


def benchmark_single_env(
    num_steps: int = 1000,
    seed: int = 42,
    image_obs: bool = False
) -> dict:
    """
    Benchmark single environment performance.

    Args:
        num_steps: Number of steps to run.
        seed: Random seed.
        image_obs: Include rendered board in observations.

    Returns:
        Dict with timing results.
    """
    env = SnakeEnv(image_obs=image_obs)
    rng = np.random.default_rng(seed)

    obs, _ = env.reset(seed=seed)
    start = time.perf_counter()

    for _ in range(num_steps):
        action = int(rng.integers(env.action_space.n))
        obs, _, terminated, truncated, _ = env.step(action)
        if terminated or truncated:
            obs, _ = env.reset()

    elapsed = time.perf_counter() - start
    env.close()

    return {
        "mode": "env_image" if image_obs else "env",
        "num_steps": num_steps,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_steps / elapsed,
        "ms_per_step": (elapsed * 1000) / num_steps
    }


def benchmark_placement(
    strategy: PlacementStrategy,
    num_calls: int = 200,
    warm_moves: int = 2000,
    seed: int = 42
) -> dict:
    """
    Benchmark suggest_placement on a populated heatmap.

    The strategy is forced through difficulty and movement mix: SPARSE via
    difficulty 7+, MODERATE via difficulty 3 with all four directions used,
    RANDOM via difficulty 5 with all four directions used.
    """
    engine = AdaptiveEngine(load_config(), seed=seed)
    rng = np.random.default_rng(seed)
    geometry = engine.geometry

    for _ in range(warm_moves):
        column = int(rng.integers(geometry.width // 2))
        row = int(rng.integers(geometry.height))
        direction = ALL_DIRECTIONS[int(rng.integers(len(ALL_DIRECTIONS)))]
        engine.record_movement(geometry.to_external(column, row), direction)

    levels = {
        PlacementStrategy.SPARSE: 8,
        PlacementStrategy.MODERATE: 3,
        PlacementStrategy.RANDOM: 5,
    }
    engine.set_difficulty(levels[strategy])

    start = time.perf_counter()
    for _ in range(num_calls):
        engine.suggest_placement()
    elapsed = time.perf_counter() - start

    return {
        "mode": f"placement_{engine.placement_strategy.value}",
        "num_steps": num_calls,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_calls / elapsed,
        "ms_per_step": (elapsed * 1000) / num_calls
    }


def run_all_benchmarks(steps: int = 500) -> list:
    """Run comprehensive benchmarks."""
    results = []

    print("=" * 60)
    print("ADAPTIVE SNAKE PERFORMANCE BENCHMARK")
    print("=" * 60)
    print()

    runs = [
        ("SnakeGame (raw)", lambda: benchmark_core_game(num_steps=steps)),
        ("SnakeEnv", lambda: benchmark_single_env(num_steps=steps)),
        ("SnakeEnv (image obs)", lambda: benchmark_single_env(num_steps=steps, image_obs=True)),
    ]
    for strategy in PlacementStrategy:
        runs.append((
            f"suggest_placement ({strategy.value})",
            lambda s=strategy: benchmark_placement(s, num_calls=max(10, steps // 5))
        ))

    for label, run in runs:
        print(f"Benchmarking {label}...")
        result = run()
        results.append(result)
        print(f"  Calls/sec: {result['steps_per_second']:.1f}")
        print(f"  ms/call:   {result['ms_per_step']:.3f}")
        print()

    print("=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print()
    print(f"{'Mode':<24} {'Calls/s':>12} {'ms/call':>10}")
    print("-" * 48)

    for r in results:
        print(f"{r['mode']:<24} {r['steps_per_second']:>12.1f} {r['ms_per_step']:>10.3f}")

    return results


def main():
    parser = argparse.ArgumentParser(description="Benchmark adaptive snake performance")
    parser.add_argument("--steps", type=int, default=500, help="Steps per benchmark")
    parser.add_argument("--quick", action="store_true", help="Quick benchmark (fewer steps)")

    args = parser.parse_args()

    steps = 100 if args.quick else args.steps

    run_all_benchmarks(steps=steps)

    return 0


if __name__ == "__main__":
    sys.exit(main())
