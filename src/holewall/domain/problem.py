"""Problem and pose definitions.

This module defines the puzzle types shared by every oracle backend and by the
scoring pipeline:
- Point: An integer lattice point
- Edge: A pair of vertex indices
- Figure: The deformable shape (vertices connected by edges)
- Bonus / BonusUsage: Rule relaxations offered by a problem / used by a pose
- Problem: The hole, the figure, epsilon and available bonuses
- Pose: A candidate vertex assignment

Dictionaries accepted by ``from_dict`` follow the contest wire format, i.e.
points are ``[x, y]`` lists and bonus kinds are upper-case names.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from shapely.geometry import Polygon

from holewall.exceptions import InvalidPoseError, InvalidProblemError


@dataclass(frozen=True, slots=True, order=True)
class Point:
    """A point on the integer lattice.

    Immutable, hashable and totally ordered (lexicographically by x, then y)
    so edge keys can be normalized with min/max.

    Attributes:
        x: X coordinate
        y: Y coordinate
    """

    x: int
    y: int

    def to_tuple(self) -> tuple[int, int]:
        """Convert to simple (x, y) tuple."""
        return (self.x, self.y)

    def to_list(self) -> list[int]:
        """Serialize to the ``[x, y]`` wire form."""
        return [self.x, self.y]

    @classmethod
    def from_list(cls, data: list[int] | tuple[int, int]) -> "Point":
        """Deserialize from the ``[x, y]`` wire form."""
        x, y = data
        return cls(int(x), int(y))


@dataclass(frozen=True, slots=True)
class Edge:
    """An edge between two figure vertices.

    Attributes:
        source: Index of the first vertex
        target: Index of the second vertex
    """

    source: int
    target: int

    def normalized(self) -> "Edge":
        """Return the same edge with indices in ascending order."""
        if self.source <= self.target:
            return self
        return Edge(self.target, self.source)

    def touches(self, index: int) -> bool:
        """Check whether the edge is incident to the given vertex index."""
        return self.source == index or self.target == index

    def to_list(self) -> list[int]:
        return [self.source, self.target]

    @classmethod
    def from_list(cls, data: list[int] | tuple[int, int]) -> "Edge":
        source, target = data
        return cls(int(source), int(target))


class BonusKind(str, Enum):
    """Rule relaxation kinds."""

    GLOBALIST = "GLOBALIST"
    SUPERFLEX = "SUPERFLEX"
    WALLHACK = "WALLHACK"
    BREAK_A_LEG = "BREAK_A_LEG"


@dataclass(frozen=True, slots=True)
class Bonus:
    """A bonus offered by a problem.

    Attributes:
        kind: Rule relaxation unlocked by the bonus
        source_problem_id: Problem where the unlocked bonus may be used
        position: Hole location a figure vertex must cover to collect it
    """

    kind: BonusKind
    source_problem_id: int
    position: Point

    def to_dict(self) -> dict[str, Any]:
        return {
            "bonus": self.kind.value,
            "problem": self.source_problem_id,
            "position": self.position.to_list(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Bonus":
        return cls(
            kind=BonusKind(data["bonus"]),
            source_problem_id=int(data["problem"]),
            position=Point.from_list(data["position"]),
        )


@dataclass(frozen=True, slots=True)
class BonusUsage:
    """A bonus used by a pose.

    Attributes:
        kind: Rule relaxation applied while scoring
        source_problem_id: Problem the bonus was collected in
        edge: Broken edge, only meaningful for BREAK_A_LEG
    """

    kind: BonusKind
    source_problem_id: int
    edge: Edge | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "bonus": self.kind.value,
            "problem": self.source_problem_id,
        }
        if self.edge is not None:
            data["edge"] = self.edge.to_list()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BonusUsage":
        edge = data.get("edge")
        return cls(
            kind=BonusKind(data["bonus"]),
            source_problem_id=int(data["problem"]),
            edge=Edge.from_list(edge) if edge is not None else None,
        )


@dataclass
class Figure:
    """The deformable shape being placed.

    Attributes:
        edges: Edges connecting vertices by index
        vertices: Original vertex positions
    """

    edges: list[Edge]
    vertices: list[Point]

    def to_dict(self) -> dict[str, Any]:
        return {
            "edges": [e.to_list() for e in self.edges],
            "vertices": [v.to_list() for v in self.vertices],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Figure":
        return cls(
            edges=[Edge.from_list(e) for e in data["edges"]],
            vertices=[Point.from_list(v) for v in data["vertices"]],
        )


@dataclass
class Problem:
    """A puzzle instance.

    The problem is treated as immutable once constructed: oracles built from
    it cache derived geometry and are shared read-only across solvers.

    Attributes:
        hole: Vertices of the hole polygon (closing edge is implicit)
        figure: Figure to place inside the hole
        epsilon: Allowed squared length deviation in parts per million
        bonuses: Bonuses that can be collected in this problem
    """

    hole: list[Point]
    figure: Figure
    epsilon: int
    bonuses: list[Bonus] = field(default_factory=list)
    _cached_polygon: Polygon | None = field(
        default=None, repr=False, init=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.epsilon < 0:
            raise InvalidProblemError(f"epsilon must be non-negative, got {self.epsilon}")

        vertex_count = len(self.figure.vertices)
        for edge in self.figure.edges:
            for index in (edge.source, edge.target):
                if not 0 <= index < vertex_count:
                    raise InvalidProblemError(
                        f"edge {edge.to_list()} references missing vertex {index}"
                    )

    def hole_polygon(self) -> Polygon:
        """Build the hole as a shapely polygon.

        Result is cached for efficiency.

        Returns:
            Hole polygon

        Raises:
            InvalidProblemError: If the hole has fewer than three vertices
        """
        if self._cached_polygon is not None:
            return self._cached_polygon

        if len(self.hole) < 3:
            raise InvalidProblemError(
                f"hole needs at least 3 vertices, got {len(self.hole)}"
            )

        self._cached_polygon = Polygon([p.to_tuple() for p in self.hole])
        return self._cached_polygon

    def hole_bounds(self) -> tuple[Point, Point]:
        """Integer bounding box of the hole as (min, max) corners."""
        return _bounds(self.hole)

    def field_bounds(self) -> tuple[Point, Point]:
        """Integer bounding box of the hole and the original figure together."""
        return _bounds(self.hole + self.figure.vertices)

    def available_bonuses(self, kind: BonusKind | None = None) -> list[Bonus]:
        """List bonuses offered by the problem, optionally filtered by kind."""
        if kind is None:
            return list(self.bonuses)
        return [b for b in self.bonuses if b.kind == kind]

    def to_dict(self) -> dict[str, Any]:
        return {
            "hole": [p.to_list() for p in self.hole],
            "figure": self.figure.to_dict(),
            "epsilon": self.epsilon,
            "bonuses": [b.to_dict() for b in self.bonuses],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Problem":
        """Build a problem from a decoded contest problem document.

        Args:
            data: Dictionary with hole, figure, epsilon and optional bonuses

        Returns:
            Problem instance

        Raises:
            InvalidProblemError: If required fields are missing or inconsistent
        """
        try:
            return cls(
                hole=[Point.from_list(p) for p in data["hole"]],
                figure=Figure.from_dict(data["figure"]),
                epsilon=int(data["epsilon"]),
                bonuses=[Bonus.from_dict(b) for b in data.get("bonuses") or []],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidProblemError(f"malformed problem document: {e}") from e


@dataclass
class Pose:
    """A candidate solution.

    Attributes:
        vertices: Assigned vertex positions, one per figure vertex
        bonuses: Bonuses used by this pose (at most one may be active)
    """

    vertices: list[Point]
    bonuses: list[BonusUsage] = field(default_factory=list)

    def active_bonus(self) -> BonusKind | None:
        """Get the bonus rule applied when scoring this pose.

        Raises:
            InvalidPoseError: If more than one bonus is used
        """
        if not self.bonuses:
            return None
        if len(self.bonuses) > 1:
            raise InvalidPoseError(
                f"at most one bonus can be used, got {len(self.bonuses)}"
            )
        return self.bonuses[0].kind

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"vertices": [v.to_list() for v in self.vertices]}
        if self.bonuses:
            data["bonuses"] = [b.to_dict() for b in self.bonuses]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Pose":
        try:
            return cls(
                vertices=[Point.from_list(v) for v in data["vertices"]],
                bonuses=[BonusUsage.from_dict(b) for b in data.get("bonuses") or []],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidPoseError(f"malformed pose document: {e}") from e


def _bounds(points: list[Point]) -> tuple[Point, Point]:
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return Point(min(xs), min(ys)), Point(max(xs), max(ys))
