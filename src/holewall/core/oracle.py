"""Hole containment oracle contract and exact reference implementation.

Every backend answers one question: does the segment between two lattice
points leave the hole? The hole is closed, so segments running along the hole
boundary or touching it are valid.

Key components:
- EdgeOracle: Protocol shared by all backends
- ExactPolygonOracle: shapely-based ground truth, also the fallback path of
  the accelerated backends
- create_oracle: Builds the backend selected by configuration
"""

from typing import Protocol, runtime_checkable

from shapely.geometry import LineString
from shapely.geometry import Point as GeoPoint
from shapely.geometry import Polygon
from shapely.prepared import prep

from holewall.config import OracleBackend, OracleConfig
from holewall.domain import Point, Problem
from holewall.exceptions import (
    HoleIsDegenerateError,
    NoPointsInFigureError,
    NoPointsInHoleError,
)


@runtime_checkable
class EdgeOracle(Protocol):
    """Read-only hole containment query."""

    def is_edge_invalid(self, edge_from: Point, edge_to: Point) -> bool:
        """Check whether the segment leaves the hole."""
        ...


def check_problem(problem: Problem) -> None:
    """Reject problems that cannot produce an oracle.

    Raises:
        NoPointsInHoleError: If the hole has no vertices
        HoleIsDegenerateError: If the hole has fewer than three vertices
        NoPointsInFigureError: If the figure has no vertices
    """
    if not problem.hole:
        raise NoPointsInHoleError()
    if len(problem.hole) < 3:
        raise HoleIsDegenerateError(len(problem.hole))
    if not problem.figure.vertices:
        raise NoPointsInFigureError()


class ExactPolygonOracle:
    """Exact segment containment against the hole polygon.

    Uses a prepared shapely polygon and the ``covers`` predicate: a segment
    is valid iff every one of its points lies inside the hole or on its
    boundary. Correct for every input but slow compared to the accelerated
    backends.
    """

    def __init__(self, hole: Polygon) -> None:
        self._hole = hole
        self._prepared = prep(hole)

        # prepared indexes are built lazily; build them before sharing
        x, y = hole.exterior.coords[0]
        self._prepared.covers(GeoPoint(x, y))
        self._prepared.covers(LineString([(x, y), (x, y + 1)]))

    @classmethod
    def from_problem(cls, problem: Problem) -> "ExactPolygonOracle":
        """Build the oracle for a problem's hole."""
        check_problem(problem)
        return cls(problem.hole_polygon())

    @property
    def hole(self) -> Polygon:
        return self._hole

    def is_point_inside(self, point: Point) -> bool:
        """Check if a lattice point lies inside the hole or on its boundary."""
        return self._prepared.covers(GeoPoint(point.x, point.y))

    def is_edge_invalid(self, edge_from: Point, edge_to: Point) -> bool:
        """Check whether the segment leaves the hole.

        Args:
            edge_from: First segment endpoint
            edge_to: Second segment endpoint

        Returns:
            True if some point of the segment lies outside the hole
        """
        if edge_from == edge_to:
            return not self.is_point_inside(edge_from)
        segment = LineString([edge_from.to_tuple(), edge_to.to_tuple()])
        return not self._prepared.covers(segment)


def create_oracle(problem: Problem, config: OracleConfig | None = None) -> EdgeOracle:
    """Build the oracle backend selected by configuration.

    Args:
        problem: Problem whose hole is indexed
        config: Oracle configuration (defaults to the quad tree backend)

    Returns:
        Ready to query oracle

    Raises:
        OracleBuildError: If the problem cannot produce an oracle
    """
    from holewall.core.bloom import BloomOracle
    from holewall.core.quad_tree import QuadTreeOracle

    if config is None:
        config = OracleConfig()

    if config.backend == OracleBackend.QUAD_TREE:
        return QuadTreeOracle(problem, config.quad_tree)
    if config.backend == OracleBackend.BLOOM:
        return BloomOracle(problem, config.bloom)
    return ExactPolygonOracle.from_problem(problem)
