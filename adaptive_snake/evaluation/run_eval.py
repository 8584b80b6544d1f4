"""
Evaluation Harness
==================

Runs an agent for a number of consecutive sessions on one adaptive engine
and reports scores together with how difficulty evolved.

Usage:
    python -m adaptive_snake.evaluation.run_eval --agent agents/baseline_greedy
"""

from __future__ import annotations

import argparse
import importlib.util
import json
import logging
import sys
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np

from adaptive_snake.snake_core.config_loader import GameConfig, load_config
from adaptive_snake.snake_core.engine import AdaptiveEngine
from adaptive_snake.snake_core.env_gym import SnakeEnv
from adaptive_snake.snake_core.storage import BehaviorStore


@dataclass
class EvalResult:
    """Result for a single session."""
    session: int
    seed: Optional[int]
    final_score: int
    length: int
    steps: int
    difficulty: int
    placement_strategy: str
    termination_reason: str
    elapsed_time: float


@dataclass
class EvalSummary:
    """Summary of evaluation across all sessions."""
    mean_score: float
    std_score: float
    min_score: int
    max_score: int
    median_score: float
    total_time: float
    final_difficulty: int
    difficulty_progression: List[int]
    results: List[EvalResult]


def load_agent(agent_path: str) -> Callable:
    """
    Load an agent from a path.

    Args:
        agent_path: Path to agent directory or agent.py file.

    Returns:
        Agent's act function.
    """
    agent_path = Path(agent_path)

    if agent_path.is_dir():
        agent_file = agent_path / "agent.py"
    else:
        agent_file = agent_path

    if not agent_file.exists():
        raise FileNotFoundError(f"Agent file not found: {agent_file}")

    spec = importlib.util.spec_from_file_location("agent_module", agent_file)
    if spec is None or spec.loader is None:
        raise ImportError(f"Failed to load agent module from {agent_file}")

    module = importlib.util.module_from_spec(spec)
    sys.modules["agent_module"] = module
    spec.loader.exec_module(module)

    if hasattr(module, "SnakeAgent"):
        agent_instance = getattr(module, "SnakeAgent")()
        if hasattr(agent_instance, "act"):
            return agent_instance.act
        raise AttributeError("SnakeAgent class must have an 'act' method")

    elif hasattr(module, "act"):
        return getattr(module, "act")

    else:
        raise AttributeError(
            "Agent module must have either 'SnakeAgent' class with 'act' method "
            "or standalone 'act' function"
        )


def run_session(
    env: SnakeEnv,
    agent_fn: Callable,
    session: int,
    seed: Optional[int] = None,
    verbose: bool = False
) -> EvalResult:
    """
    Play one session to completion.

    Args:
        env: Environment (its engine carries over between sessions).
        agent_fn: Agent's act function (obs) -> action.
        session: Session index, for reporting.
        seed: Placement seed for this session.
        verbose: If True, print the result.

    Returns:
        EvalResult for this session.
    """
    obs, info = env.reset(seed=seed)
    start_time = time.time()

    done = False
    while not done:
        action = agent_fn(obs)
        obs, _, terminated, truncated, info = env.step(action)
        done = terminated or truncated

    elapsed = time.time() - start_time

    result = EvalResult(
        session=session,
        seed=seed,
        final_score=info["score"],
        length=info["length"],
        steps=info["steps"],
        difficulty=info["difficulty"],
        placement_strategy=info["placement_strategy"],
        termination_reason=info["terminated_reason"],
        elapsed_time=elapsed
    )

    if verbose:
        print(f"  Session {session}: score={result.final_score}, "
              f"length={result.length}, difficulty={result.difficulty}, "
              f"strategy={result.placement_strategy}, time={elapsed:.2f}s")

    return result


def evaluate_agent(
    agent_fn: Callable,
    sessions: int = 10,
    seed: Optional[int] = None,
    config: Optional[GameConfig] = None,
    engine: Optional[AdaptiveEngine] = None,
    verbose: bool = True
) -> EvalSummary:
    """
    Evaluate an agent over consecutive sessions on one engine.

    Args:
        agent_fn: Agent's act function (obs) -> action.
        sessions: Number of sessions to play.
        seed: Base seed; session i uses seed + i. Unseeded if None.
        config: Configuration for a new engine. Default config if None.
        engine: Existing engine to continue adapting (e.g. restored state).
        verbose: If True, print progress.

    Returns:
        EvalSummary with aggregate statistics.
    """
    if sessions < 1:
        raise ValueError(f"sessions must be >= 1, got {sessions}")

    if engine is None:
        engine = AdaptiveEngine(config or load_config(), seed=seed)
    env = SnakeEnv(engine=engine)

    if verbose:
        print(f"Evaluating over {sessions} sessions...")

    results: List[EvalResult] = []
    total_start = time.time()

    for i in range(sessions):
        session_seed = seed + i if seed is not None else None
        results.append(run_session(env, agent_fn, i, session_seed, verbose=verbose))

    total_time = time.time() - total_start
    env.close()

    scores = [r.final_score for r in results]
    performance = engine.performance_state()

    summary = EvalSummary(
        mean_score=float(np.mean(scores)),
        std_score=float(np.std(scores)),
        min_score=int(min(scores)),
        max_score=int(max(scores)),
        median_score=float(np.median(scores)),
        total_time=total_time,
        final_difficulty=engine.difficulty_level,
        difficulty_progression=list(performance.difficulty_progression),
        results=results
    )

    if verbose:
        print()
        print("=" * 50)
        print("EVALUATION SUMMARY")
        print("=" * 50)
        print(f"Sessions:         {sessions}")
        print(f"Mean score:       {summary.mean_score:.2f}")
        print(f"Std deviation:    {summary.std_score:.2f}")
        print(f"Min score:        {summary.min_score}")
        print(f"Max score:        {summary.max_score}")
        print(f"Median score:     {summary.median_score:.2f}")
        print(f"Final difficulty: {summary.final_difficulty}")
        print(f"Progression:      {summary.difficulty_progression}")
        print(f"Total time:       {total_time:.2f}s")
        print("=" * 50)

    return summary


def save_results(
    summary: EvalSummary,
    agent_name: str,
    output_path: str
) -> None:
    """Save evaluation results to JSON."""
    data = {"agent": agent_name, "timestamp": time.strftime("%Y-%m-%d %H:%M"), **asdict(summary)}

    with open(output_path, "w") as f:
        json.dump(data, f, indent=2)

    print(f"Results saved to {output_path}")


def main():
    parser = argparse.ArgumentParser(description="Evaluate a snake agent against the adaptive engine")
    parser.add_argument(
        "--agent",
        type=str,
        required=True,
        help="Path to agent directory or agent.py file"
    )
    parser.add_argument(
        "--sessions",
        type=int,
        default=10,
        help="Number of consecutive sessions"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Base seed for food placement"
    )
    parser.add_argument(
        "--store",
        type=str,
        default=None,
        help="Behavior store directory to resume from and save to"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Path to save results JSON"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Reduce output verbosity"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )

    print(f"Loading agent from {args.agent}...")
    try:
        agent_fn = load_agent(args.agent)
    except (FileNotFoundError, ImportError, AttributeError) as e:
        print(f"Error loading agent: {e}")
        return 1

    engine = AdaptiveEngine(load_config(), seed=args.seed)
    store = BehaviorStore(args.store) if args.store else None
    if store is not None:
        snapshot = store.load_behavior_data()
        if snapshot is not None:
            engine.import_state(snapshot)

    summary = evaluate_agent(
        agent_fn,
        sessions=args.sessions,
        seed=args.seed,
        engine=engine,
        verbose=not args.quiet
    )

    if store is not None:
        store.save_behavior_data(engine.export_state())
        store.save_high_score(summary.max_score)

    if args.output:
        agent_name = Path(args.agent).name
        save_results(summary, agent_name, args.output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
