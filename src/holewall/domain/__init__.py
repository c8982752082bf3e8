"""Domain models for holewall.

This module contains the puzzle types consumed by the oracles and the scoring
pipeline. All models are designed to be:

- Immutable where possible (using frozen dataclasses)
- Convertible to and from the decoded contest wire format
- Independent of any solver implementation

Key classes:
- Point: An integer lattice point
- Edge: A pair of figure vertex indices
- Figure: Vertices and edges of the deformable shape
- Problem: Hole, figure, epsilon and bonuses
- Pose: A candidate vertex assignment
"""

from holewall.domain.problem import (
    Bonus,
    BonusKind,
    BonusUsage,
    Edge,
    Figure,
    Point,
    Pose,
    Problem,
)

__all__: list[str] = [
    # Enums
    "BonusKind",
    # Core types
    "Point",
    "Edge",
    "Figure",
    "Bonus",
    "BonusUsage",
    "Problem",
    "Pose",
]
