"""Tests for the exact polygon oracle and backend selection."""

import pytest

from holewall.config import BloomConfig, OracleBackend, OracleConfig
from holewall.core import (
    BloomOracle,
    EdgeOracle,
    ExactPolygonOracle,
    QuadTreeOracle,
    create_oracle,
)
from holewall.domain import Figure, Point, Problem
from holewall.exceptions import (
    HoleIsDegenerateError,
    NoPointsInFigureError,
    NoPointsInHoleError,
)


def make_problem(hole: list[tuple[int, int]], vertices: list[tuple[int, int]] | None = None) -> Problem:
    return Problem(
        hole=[Point(x, y) for x, y in hole],
        figure=Figure(edges=[], vertices=[Point(x, y) for x, y in vertices or [(0, 0)]]),
        epsilon=0,
    )


@pytest.fixture
def square_oracle() -> ExactPolygonOracle:
    """Oracle for the 10x10 square hole."""
    return ExactPolygonOracle.from_problem(make_problem([(0, 0), (10, 0), (10, 10), (0, 10)]))


@pytest.fixture
def notched_oracle() -> ExactPolygonOracle:
    """Oracle for a square with a V notch cut from the top side."""
    return ExactPolygonOracle.from_problem(
        make_problem([(0, 0), (10, 0), (10, 10), (5, 5), (0, 10)])
    )


class TestExactPolygonOracle:
    """Tests for ExactPolygonOracle."""

    def test_satisfies_protocol(self, square_oracle: ExactPolygonOracle) -> None:
        assert isinstance(square_oracle, EdgeOracle)

    def test_boundary_edges_are_valid(self, square_oracle: ExactPolygonOracle) -> None:
        assert not square_oracle.is_edge_invalid(Point(0, 0), Point(10, 0))
        assert not square_oracle.is_edge_invalid(Point(10, 10), Point(10, 0))
        assert not square_oracle.is_edge_invalid(Point(0, 3), Point(0, 7))

    def test_interior_edges_are_valid(self, square_oracle: ExactPolygonOracle) -> None:
        assert not square_oracle.is_edge_invalid(Point(1, 1), Point(9, 8))
        assert not square_oracle.is_edge_invalid(Point(0, 0), Point(10, 10))

    def test_leaving_edges_are_invalid(self, square_oracle: ExactPolygonOracle) -> None:
        assert square_oracle.is_edge_invalid(Point(5, 5), Point(11, 5))
        assert square_oracle.is_edge_invalid(Point(-1, 0), Point(10, 0))
        assert square_oracle.is_edge_invalid(Point(20, 20), Point(30, 30))

    def test_edge_crossing_notch(self, notched_oracle: ExactPolygonOracle) -> None:
        """Both endpoints are hole vertices but the segment spans the notch."""
        assert notched_oracle.is_edge_invalid(Point(0, 10), Point(10, 10))
        assert notched_oracle.is_edge_invalid(Point(2, 7), Point(8, 7))

    def test_edge_along_notch(self, notched_oracle: ExactPolygonOracle) -> None:
        assert not notched_oracle.is_edge_invalid(Point(0, 10), Point(5, 5))
        assert not notched_oracle.is_edge_invalid(Point(5, 5), Point(5, 0))
        assert not notched_oracle.is_edge_invalid(Point(2, 5), Point(8, 5))

    def test_points(self, notched_oracle: ExactPolygonOracle) -> None:
        assert notched_oracle.is_point_inside(Point(5, 5))
        assert notched_oracle.is_point_inside(Point(1, 9))
        assert not notched_oracle.is_point_inside(Point(5, 8))

    def test_zero_length_edge(self, notched_oracle: ExactPolygonOracle) -> None:
        """A zero length edge is valid iff its point is in the hole."""
        assert not notched_oracle.is_edge_invalid(Point(3, 3), Point(3, 3))
        assert notched_oracle.is_edge_invalid(Point(5, 8), Point(5, 8))

    def test_symmetry(self, notched_oracle: ExactPolygonOracle) -> None:
        for a, b in [
            (Point(0, 10), Point(10, 10)),
            (Point(0, 0), Point(10, 10)),
            (Point(1, 1), Point(4, 2)),
        ]:
            assert notched_oracle.is_edge_invalid(a, b) == notched_oracle.is_edge_invalid(b, a)

    def test_empty_hole(self) -> None:
        with pytest.raises(NoPointsInHoleError):
            ExactPolygonOracle.from_problem(make_problem([]))

    def test_two_point_hole(self) -> None:
        with pytest.raises(HoleIsDegenerateError):
            ExactPolygonOracle.from_problem(make_problem([(0, 0), (5, 5)]))

    def test_empty_figure(self) -> None:
        problem = Problem(
            hole=[Point(0, 0), Point(5, 0), Point(5, 5)],
            figure=Figure(edges=[], vertices=[]),
            epsilon=0,
        )
        with pytest.raises(NoPointsInFigureError):
            ExactPolygonOracle.from_problem(problem)


class TestCreateOracle:
    """Tests for backend selection."""

    @pytest.fixture
    def problem(self) -> Problem:
        return make_problem([(0, 0), (6, 0), (6, 6), (0, 6)])

    def test_default_is_quad_tree(self, problem: Problem) -> None:
        assert isinstance(create_oracle(problem), QuadTreeOracle)

    def test_exact_backend(self, problem: Problem) -> None:
        oracle = create_oracle(problem, OracleConfig(backend=OracleBackend.EXACT))
        assert isinstance(oracle, ExactPolygonOracle)

    def test_bloom_backend(self, problem: Problem) -> None:
        config = OracleConfig(backend=OracleBackend.BLOOM, bloom=BloomConfig(max_workers=1))
        oracle = create_oracle(problem, config)
        assert isinstance(oracle, BloomOracle)
        assert not oracle.is_edge_invalid(Point(0, 0), Point(6, 6))

    def test_backend_from_string(self, problem: Problem) -> None:
        config = OracleConfig.model_validate({"backend": "exact"})
        assert isinstance(create_oracle(problem, config), ExactPolygonOracle)

    def test_build_errors_propagate(self) -> None:
        with pytest.raises(NoPointsInHoleError):
            create_oracle(make_problem([]))
