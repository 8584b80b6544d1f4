"""
Adaptive Snake Package
======================

Behavior-adaptive snake game. The engine watches how the player moves,
builds a movement heatmap, and uses it to steer food placement, difficulty
and visual intensity.

All tunable parameters are in adaptive_config.yaml.
"""
