"""Quad tree accelerated hole containment oracle.

The hole's bounding box is split recursively into quadrants of lattice cells.
Each node covers the closed rectangle ``[min.x, max.x + 1] x [min.y, max.y + 1]``
and is classified once, at construction time:

- Inside: every point of the rectangle lies in the closed hole
- Outside: the rectangle shares no point with the closed hole
- ConditionsSet: a unit cell lying outside the hole whose only contacts with
  the hole boundary are some of its corners
- Uncertain: a unit cell too ambiguous to classify structurally
- Branch: up to four children partitioning the rectangle

Queries descend only into nodes the segment touches, so most segments are
answered without any polygon math. Uncertain cells fall back to the exact
oracle.
"""

import time
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum

import structlog
from shapely.geometry import Polygon, box

from holewall.config import QuadTreeConfig
from holewall.core.geometry import Corner, corner_touch, segment_intersects_rect
from holewall.core.oracle import ExactPolygonOracle, check_problem
from holewall.domain import Point, Problem
from holewall.exceptions import FieldIsTooSmallError, OracleBuildError
from holewall.utils import BuildLogger, BuildStats

# DE-9IM patterns for relate(hole, rect)
DISJOINT_PATTERN = "FF*FF****"
CONTAINS_PATTERN = "T*****FF*"


class NodeKind(Enum):
    """Classification of a quad tree node."""

    INSIDE = "inside"
    OUTSIDE = "outside"
    UNCERTAIN = "uncertain"
    CONDITIONS_SET = "conditions_set"
    BRANCH = "branch"


class Intersection(Enum):
    """Result of querying a segment against a node."""

    DOES_NOT = "does_not"
    INSIDE = "inside"
    OUTSIDE = "outside"
    UNCERTAIN = "uncertain"


@dataclass(frozen=True, slots=True)
class EdgeCornerTouch:
    """Hole boundary touches the cell at this corner and nowhere else.

    A query segment whose only contact with the cell is this corner stays on
    the hole boundary there, so the cell does not invalidate it.
    """

    corner: Corner


@dataclass(slots=True)
class Node:
    """A quad tree node.

    Attributes:
        min: Lowest cell of the covered range
        max: Highest cell of the covered range (inclusive)
        kind: Node classification
        conditions: Safe corner touches, only for CONDITIONS_SET
        children: Non-empty quadrants, only for BRANCH
    """

    min: Point
    max: Point
    kind: NodeKind
    conditions: tuple[EdgeCornerTouch, ...] = ()
    children: tuple["Node", ...] = ()

    def rect(self) -> tuple[int, int, int, int]:
        """Closed rectangle covered by the node as (x0, y0, x1, y1)."""
        return (self.min.x, self.min.y, self.max.x + 1, self.max.y + 1)

    def is_unit_cell(self) -> bool:
        return self.min == self.max

    def is_leaf(self) -> bool:
        return self.kind != NodeKind.BRANCH


@dataclass
class TreeStats:
    """Shape of a built quad tree."""

    node_counts: dict[str, int] = field(default_factory=dict)
    max_depth: int = 0

    @property
    def total_nodes(self) -> int:
        return sum(self.node_counts.values())

    @classmethod
    def collect(cls, root: Node) -> "TreeStats":
        """Walk the tree and count nodes per kind."""
        counts = {kind.value: 0 for kind in NodeKind}
        max_depth = 0
        stack = [(root, 0)]
        while stack:
            node, depth = stack.pop()
            counts[node.kind.value] += 1
            max_depth = max(max_depth, depth)
            stack.extend((child, depth + 1) for child in node.children)
        return cls(node_counts=counts, max_depth=max_depth)


def _matches(matrix: str, pattern: str) -> bool:
    """Match a DE-9IM intersection matrix against a pattern."""
    for value, expected in zip(matrix, pattern):
        if expected == "*":
            continue
        if expected == "T":
            if value == "F":
                return False
        elif value != expected:
            return False
    return True


def _quadrants(min_: Point, max_: Point) -> list[tuple[Point, Point]]:
    """Split a cell range at the integer midpoint.

    Quadrants may be empty (min > max) when the range is one cell wide.
    """
    center = Point((min_.x + max_.x) // 2, (min_.y + max_.y) // 2)
    return [
        (min_, center),
        (Point(center.x + 1, min_.y), Point(max_.x, center.y)),
        (Point(min_.x, center.y + 1), Point(center.x, max_.y)),
        (Point(center.x + 1, center.y + 1), max_),
    ]


def _classify_cell(
    boundary: list[tuple[Point, Point]],
    min_: Point,
    x0: int,
    y0: int,
    x1: int,
    y1: int,
) -> Node:
    """Classify a unit cell the hole boundary passes through or touches."""
    conditions: list[EdgeCornerTouch] = []
    for edge_from, edge_to in boundary:
        if not segment_intersects_rect(edge_from, edge_to, x0, y0, x1, y1):
            continue
        corner = corner_touch(edge_from, edge_to, x0, y0, x1, y1)
        if corner is None:
            return Node(min_, min_, NodeKind.UNCERTAIN)
        condition = EdgeCornerTouch(corner)
        if condition not in conditions:
            conditions.append(condition)

    if not conditions:
        return Node(min_, min_, NodeKind.UNCERTAIN)
    return Node(min_, min_, NodeKind.CONDITIONS_SET, conditions=tuple(conditions))


def quad_tree_build(
    hole: Polygon,
    boundary: list[tuple[Point, Point]],
    min_: Point,
    max_: Point,
) -> Node | None:
    """Build the quad tree for a cell range.

    Args:
        hole: Hole polygon
        boundary: Hole boundary edges, closing edge included
        min_: Lowest cell of the range
        max_: Highest cell of the range (inclusive)

    Returns:
        Root node of the subtree, or None for an empty range
    """
    if min_.x > max_.x or min_.y > max_.y:
        return None

    x0, y0, x1, y1 = min_.x, min_.y, max_.x + 1, max_.y + 1
    matrix = hole.relate(box(x0, y0, x1, y1))

    if _matches(matrix, DISJOINT_PATTERN):
        return Node(min_, max_, NodeKind.OUTSIDE)
    if _matches(matrix, CONTAINS_PATTERN):
        return Node(min_, max_, NodeKind.INSIDE)
    if min_ == max_:
        return _classify_cell(boundary, min_, x0, y0, x1, y1)

    children = [
        child
        for child in (
            quad_tree_build(hole, boundary, q_min, q_max)
            for q_min, q_max in _quadrants(min_, max_)
        )
        if child is not None
    ]
    if not children:
        return None
    return Node(min_, max_, NodeKind.BRANCH, children=tuple(children))


def quad_tree_query(node: Node, edge_from: Point, edge_to: Point) -> Intersection:
    """Classify a segment against a subtree.

    Args:
        node: Subtree root
        edge_from: First segment endpoint
        edge_to: Second segment endpoint

    Returns:
        DOES_NOT if the segment misses the node, OUTSIDE if some touched
        region proves the segment leaves the hole, UNCERTAIN if an ambiguous
        cell was touched and nothing proved it invalid, INSIDE otherwise
    """
    x0, y0, x1, y1 = node.rect()
    if not segment_intersects_rect(edge_from, edge_to, x0, y0, x1, y1):
        return Intersection.DOES_NOT

    kind = node.kind
    if kind == NodeKind.INSIDE:
        return Intersection.INSIDE
    if kind == NodeKind.OUTSIDE:
        return Intersection.OUTSIDE
    if kind == NodeKind.UNCERTAIN:
        return Intersection.UNCERTAIN
    if kind == NodeKind.CONDITIONS_SET:
        corner = corner_touch(edge_from, edge_to, x0, y0, x1, y1)
        if corner is not None and EdgeCornerTouch(corner) in node.conditions:
            return Intersection.INSIDE
        return Intersection.OUTSIDE

    result = Intersection.DOES_NOT
    for child in node.children:
        child_result = quad_tree_query(child, edge_from, edge_to)
        if child_result == Intersection.OUTSIDE:
            return Intersection.OUTSIDE
        if child_result == Intersection.UNCERTAIN:
            result = Intersection.UNCERTAIN
        elif child_result == Intersection.INSIDE and result == Intersection.DOES_NOT:
            result = Intersection.INSIDE
    return result


class QuadTreeOracle:
    """Hole containment oracle backed by a quad tree.

    Built once per problem, then queried read-only; safe to share between
    threads.

    Example:
        oracle = QuadTreeOracle(problem)
        if not oracle.is_edge_invalid(Point(0, 0), Point(10, 0)):
            ...
    """

    def __init__(self, problem: Problem, config: QuadTreeConfig | None = None) -> None:
        """Build the tree for a problem's hole.

        Args:
            problem: Problem whose hole is indexed
            config: Quad tree settings

        Raises:
            NoPointsInHoleError: If the hole has no vertices
            HoleIsDegenerateError: If the hole has fewer than three vertices
            NoPointsInFigureError: If the figure has no vertices
            FieldIsTooSmallError: If the hole spans less than a unit in some axis
        """
        self.config = config or QuadTreeConfig()
        self._build_logger = BuildLogger(structlog.get_logger(__name__), "quad_tree")

        try:
            check_problem(problem)
            hole_min, hole_max = problem.hole_bounds()
            width = hole_max.x - hole_min.x
            height = hole_max.y - hole_min.y
            if width < 1 or height < 1:
                raise FieldIsTooSmallError(width, height)
        except OracleBuildError as e:
            self._build_logger.log_build_failed(e)
            raise

        margin = self.config.field_margin
        self.field_min = Point(hole_min.x - margin, hole_min.y - margin)
        self.field_max = Point(hole_max.x + margin, hole_max.y + margin)
        self.exact = ExactPolygonOracle.from_problem(problem)

        stats = self._build_logger.stats
        stats.start_time = time.time()
        self._build_logger.log_build_start(self.field_min.to_tuple(), self.field_max.to_tuple())

        hole = self.exact.hole
        boundary = [
            (problem.hole[i], problem.hole[(i + 1) % len(problem.hole)])
            for i in range(len(problem.hole))
        ]
        # cells are addressed by their lower corner, so the last cell sits one
        # unit below field_max
        cell_max = Point(self.field_max.x - 1, self.field_max.y - 1)
        root = self._build_root(hole, boundary, self.field_min, cell_max)
        if root is None:
            raise FieldIsTooSmallError(width, height)
        self._root = root

        stats.end_time = time.time()
        self.tree_stats = TreeStats.collect(root)
        self._build_logger.log_tree_complete(
            self.tree_stats.node_counts, self.tree_stats.max_depth
        )

    def _build_root(
        self,
        hole: Polygon,
        boundary: list[tuple[Point, Point]],
        min_: Point,
        max_: Point,
    ) -> Node | None:
        max_workers = self.config.max_workers
        if max_workers is None or max_workers <= 1:
            return quad_tree_build(hole, boundary, min_, max_)

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(quad_tree_build, hole, boundary, q_min, q_max)
                for q_min, q_max in _quadrants(min_, max_)
            ]
            children = [f.result() for f in futures]

        children = [child for child in children if child is not None]
        if not children:
            return None
        return Node(min_, max_, NodeKind.BRANCH, children=tuple(children))

    @property
    def root(self) -> Node:
        return self._root

    @property
    def build_stats(self) -> BuildStats:
        """Construction statistics (timing and node counts)."""
        return self._build_logger.stats

    def in_range(self, point: Point) -> bool:
        """Check if a point lies within the indexed field."""
        return (
            self.field_min.x <= point.x <= self.field_max.x
            and self.field_min.y <= point.y <= self.field_max.y
        )

    def query(self, edge_from: Point, edge_to: Point) -> Intersection:
        """Classify a segment against the whole tree without fallback."""
        return quad_tree_query(self._root, edge_from, edge_to)

    def is_edge_invalid(self, edge_from: Point, edge_to: Point) -> bool:
        """Check whether the segment leaves the hole.

        Points outside the indexed field are outside the hole. Otherwise the
        tree answers directly, and only segments touching an uncertain cell
        are resolved with the exact oracle.
        """
        if not self.in_range(edge_from) or not self.in_range(edge_to):
            return True

        result = quad_tree_query(self._root, edge_from, edge_to)
        if result == Intersection.INSIDE:
            return False
        if result == Intersection.UNCERTAIN:
            return self.exact.is_edge_invalid(edge_from, edge_to)
        return True

    def leaves(self) -> Iterator[Node]:
        """Iterate over leaf nodes, depth first."""
        queue = [self._root]
        while queue:
            node = queue.pop()
            if node.kind == NodeKind.BRANCH:
                queue.extend(node.children)
            else:
                yield node
