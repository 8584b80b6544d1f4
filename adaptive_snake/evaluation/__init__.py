"""
Evaluation Package
==================

Multi-session evaluation harness: plays an agent against one adaptive
engine and reports scores and difficulty progression.
"""

from adaptive_snake.evaluation.run_eval import evaluate_agent, load_agent

__all__ = ["evaluate_agent", "load_agent"]
