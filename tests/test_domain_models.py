"""Tests for domain models to verify they work correctly."""

import pytest

from holewall.domain import (
    Bonus,
    BonusKind,
    BonusUsage,
    Edge,
    Figure,
    Point,
    Pose,
    Problem,
)
from holewall.exceptions import InvalidPoseError, InvalidProblemError

PROBLEM_11 = {
    "bonuses": [
        {"bonus": "BREAK_A_LEG", "problem": 31, "position": [5, 5]},
        {"bonus": "GLOBALIST", "problem": 20, "position": [9, 6]},
        {"bonus": "GLOBALIST", "problem": 49, "position": [6, 9]},
    ],
    "hole": [[10, 0], [10, 10], [0, 10]],
    "epsilon": 0,
    "figure": {
        "edges": [[0, 1], [1, 2], [2, 0]],
        "vertices": [[0, 0], [10, 0], [10, 10]],
    },
}


class TestPoint:
    """Tests for Point class."""

    def test_point_creation(self) -> None:
        p = Point(3, -4)
        assert p.x == 3
        assert p.y == -4

    def test_point_ordering_is_lexicographic(self) -> None:
        """Points order by x first, then y."""
        assert Point(0, 5) < Point(1, 0)
        assert Point(1, 0) < Point(1, 2)
        assert min(Point(4, 4), Point(4, 1)) == Point(4, 1)

    def test_point_wire_form(self) -> None:
        p = Point.from_list([7, 8])
        assert p == Point(7, 8)
        assert p.to_list() == [7, 8]
        assert p.to_tuple() == (7, 8)

    def test_point_immutable(self) -> None:
        """Test that point is immutable."""
        p = Point(1, 2)
        with pytest.raises(AttributeError):
            p.x = 3  # type: ignore

    def test_point_hashable(self) -> None:
        assert len({Point(1, 2), Point(1, 2), Point(2, 1)}) == 2


class TestEdge:
    """Tests for Edge class."""

    def test_normalized(self) -> None:
        assert Edge(3, 1).normalized() == Edge(1, 3)
        assert Edge(1, 3).normalized() == Edge(1, 3)

    def test_touches(self) -> None:
        edge = Edge(2, 5)
        assert edge.touches(2)
        assert edge.touches(5)
        assert not edge.touches(3)


class TestProblem:
    """Tests for Problem class."""

    def test_from_dict(self) -> None:
        problem = Problem.from_dict(PROBLEM_11)

        assert problem.hole == [Point(10, 0), Point(10, 10), Point(0, 10)]
        assert problem.epsilon == 0
        assert problem.figure.edges == [Edge(0, 1), Edge(1, 2), Edge(2, 0)]
        assert len(problem.figure.vertices) == 3
        assert len(problem.bonuses) == 3
        assert problem.bonuses[0] == Bonus(BonusKind.BREAK_A_LEG, 31, Point(5, 5))

    def test_serialization_roundtrip(self) -> None:
        problem = Problem.from_dict(PROBLEM_11)
        assert Problem.from_dict(problem.to_dict()) == problem

    def test_bonuses_are_optional(self) -> None:
        data = {key: value for key, value in PROBLEM_11.items() if key != "bonuses"}
        problem = Problem.from_dict(data)
        assert problem.bonuses == []

    def test_available_bonuses_filter(self) -> None:
        problem = Problem.from_dict(PROBLEM_11)
        globalists = problem.available_bonuses(BonusKind.GLOBALIST)
        assert [b.source_problem_id for b in globalists] == [20, 49]
        assert len(problem.available_bonuses()) == 3

    def test_bounds(self) -> None:
        problem = Problem.from_dict(PROBLEM_11)
        assert problem.hole_bounds() == (Point(0, 0), Point(10, 10))
        assert problem.field_bounds() == (Point(0, 0), Point(10, 10))

    def test_hole_polygon_is_cached(self) -> None:
        problem = Problem.from_dict(PROBLEM_11)
        polygon = problem.hole_polygon()
        assert polygon.area == pytest.approx(50.0)
        assert problem.hole_polygon() is polygon

    def test_hole_polygon_needs_three_points(self) -> None:
        problem = Problem(
            hole=[Point(0, 0), Point(5, 5)],
            figure=Figure(edges=[], vertices=[Point(0, 0)]),
            epsilon=0,
        )
        with pytest.raises(InvalidProblemError):
            problem.hole_polygon()

    def test_edge_referencing_missing_vertex(self) -> None:
        with pytest.raises(InvalidProblemError, match="missing vertex 3"):
            Problem(
                hole=[Point(0, 0), Point(5, 0), Point(5, 5)],
                figure=Figure(edges=[Edge(0, 3)], vertices=[Point(0, 0), Point(1, 1)]),
                epsilon=0,
            )

    def test_negative_epsilon(self) -> None:
        with pytest.raises(InvalidProblemError, match="epsilon"):
            Problem(
                hole=[Point(0, 0), Point(5, 0), Point(5, 5)],
                figure=Figure(edges=[], vertices=[Point(0, 0)]),
                epsilon=-1,
            )

    def test_malformed_document(self) -> None:
        with pytest.raises(InvalidProblemError, match="malformed"):
            Problem.from_dict({"hole": [[0, 0]], "epsilon": 0})


class TestPose:
    """Tests for Pose class."""

    def test_from_dict_with_bonus(self) -> None:
        pose = Pose.from_dict(
            {
                "vertices": [[0, 0], [1, 1]],
                "bonuses": [{"bonus": "WALLHACK", "problem": 12}],
            }
        )
        assert pose.vertices == [Point(0, 0), Point(1, 1)]
        assert pose.bonuses == [BonusUsage(BonusKind.WALLHACK, 12)]
        assert pose.active_bonus() == BonusKind.WALLHACK

    def test_break_a_leg_edge(self) -> None:
        usage = BonusUsage.from_dict({"bonus": "BREAK_A_LEG", "problem": 3, "edge": [0, 2]})
        assert usage.edge == Edge(0, 2)
        assert usage.to_dict() == {"bonus": "BREAK_A_LEG", "problem": 3, "edge": [0, 2]}

    def test_no_bonus(self) -> None:
        pose = Pose(vertices=[Point(0, 0)])
        assert pose.active_bonus() is None
        assert pose.to_dict() == {"vertices": [[0, 0]]}

    def test_more_than_one_bonus(self) -> None:
        pose = Pose(
            vertices=[Point(0, 0)],
            bonuses=[
                BonusUsage(BonusKind.GLOBALIST, 1),
                BonusUsage(BonusKind.SUPERFLEX, 2),
            ],
        )
        with pytest.raises(InvalidPoseError):
            pose.active_bonus()

    def test_malformed_document(self) -> None:
        with pytest.raises(InvalidPoseError):
            Pose.from_dict({"vertices": [[0]]})

    def test_unknown_bonus_kind(self) -> None:
        with pytest.raises(InvalidPoseError):
            Pose.from_dict({"vertices": [], "bonuses": [{"bonus": "TELEPORT", "problem": 1}]})
