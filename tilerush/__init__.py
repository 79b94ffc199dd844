"""
TileRush - Timed Merge Puzzle Engine

A deterministic, event-driven engine for a 2048-style game played
against the clock. The engine provides:
- Immutable board snapshots and a single compact-left move algorithm
- Tile identity and weighted random spawning
- Combo scoring based on the time between merges
- A countdown / playing / game-over session lifecycle

Rendering, gestures and persistence belong to the host UI shell.
"""

__version__ = "0.1.0"
