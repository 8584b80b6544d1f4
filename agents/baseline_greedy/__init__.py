"""
Baseline Greedy Agent Package

A simple heuristic agent that walks toward the food while avoiding walls
and its own body. Serves as a benchmark and example.
"""

from .agent import SnakeAgent, create_agent

__all__ = ["SnakeAgent", "create_agent"]
