"""Core algorithms for holewall.

This module contains:

- Exact lattice geometry (segment/rectangle predicates, corner touches)
- Hole containment oracles (exact, quad tree, bloom filter)
- The pose scoring pipeline

Oracles are built once per problem and then only read, so a single instance
can be shared by any number of solver threads.

Key functions:
- create_oracle: Build the configured oracle backend
- score: Validate and score a candidate vertex assignment
- segment_intersects_rect: Exact segment versus rectangle test
- corner_touch: Detect a segment meeting a rectangle at one corner only

Key classes:
- EdgeOracle: Oracle protocol (``is_edge_invalid``)
- ExactPolygonOracle: shapely ground truth
- QuadTreeOracle: Quad tree accelerated oracle
- BloomOracle: Bloom filter accelerated oracle
- ScoringPipeline: Per-problem validation and scoring
"""

from holewall.core.bloom import BloomOracle, SharedBitArray
from holewall.core.geometry import (
    Corner,
    corner_touch,
    on_segment,
    segment_intersects_rect,
    squared_distance,
)
from holewall.core.oracle import EdgeOracle, ExactPolygonOracle, create_oracle
from holewall.core.quad_tree import (
    EdgeCornerTouch,
    Intersection,
    Node,
    NodeKind,
    QuadTreeOracle,
    TreeStats,
)
from holewall.core.scoring import ScoringPipeline, StretchReport, score

__all__ = [
    # Oracles
    "BloomOracle",
    "EdgeOracle",
    "ExactPolygonOracle",
    "QuadTreeOracle",
    "create_oracle",
    # Quad tree internals
    "EdgeCornerTouch",
    "Intersection",
    "Node",
    "NodeKind",
    "TreeStats",
    "SharedBitArray",
    # Scoring
    "ScoringPipeline",
    "StretchReport",
    "score",
    # Geometry
    "Corner",
    "corner_touch",
    "on_segment",
    "segment_intersects_rect",
    "squared_distance",
]
