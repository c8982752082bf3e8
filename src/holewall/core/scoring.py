"""Pose validation and scoring.

A candidate vertex assignment goes through four stages, stopping at the first
failure:

1. Count check: one position per figure vertex
2. Stretch check: every edge keeps its squared length within epsilon
3. Containment check: every edge stays inside the hole
4. Dislikes: sum over hole vertices of the squared distance to the nearest
   candidate vertex (lower is better, 0 is a perfect fit)

Bonuses relax stages 2 and 3. Rejections raise ValidationError subclasses,
which solvers treat as "try another candidate".
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from fractions import Fraction

from holewall.core.geometry import squared_distance
from holewall.core.oracle import EdgeOracle, check_problem
from holewall.domain import BonusKind, Point, Pose, Problem
from holewall.exceptions import (
    BrokenEdgesFoundError,
    EdgesNotFitHoleError,
    UnsupportedBonusError,
    ValidationError,
    VerticeCountMismatchError,
)

PPM = 1_000_000


@dataclass
class StretchReport:
    """Outcome of the stretch check.

    Attributes:
        ratios: Per-edge deviation ``|after / before - 1|`` in figure edge order
        broken: Indices of edges over the per-edge threshold, exempt edge excluded
        exempt_edge: Edge forgiven by SUPERFLEX, if any
        ratio_sum: Summed ratio the verdict was based on (broken edges only,
            or all edges under GLOBALIST)
        budget: Allowed ratio (per edge, or pooled under GLOBALIST)
        passed: Whether the stage accepts the candidate
    """

    ratios: list[float] = field(default_factory=list)
    broken: list[int] = field(default_factory=list)
    exempt_edge: int | None = None
    ratio_sum: float = 0.0
    budget: float = 0.0
    passed: bool = True


class ScoringPipeline:
    """Validates and scores candidates for one problem.

    Holds only read-only state derived from the problem, so one pipeline can
    be shared by concurrent solvers along with its oracle.

    Example:
        pipeline = ScoringPipeline(problem, QuadTreeOracle(problem))
        dislikes = pipeline.score(candidate)
    """

    def __init__(self, problem: Problem, oracle: EdgeOracle) -> None:
        """Precompute original edge lengths.

        Raises:
            NoPointsInHoleError: If the hole has no vertices
            HoleIsDegenerateError: If the hole has fewer than three vertices
            NoPointsInFigureError: If the figure has no vertices
        """
        check_problem(problem)
        self.problem = problem
        self.oracle = oracle
        vertices = problem.figure.vertices
        self._original_lengths = [
            squared_distance(vertices[e.source], vertices[e.target])
            for e in problem.figure.edges
        ]

    def score(self, vertices: Sequence[Point], bonus: BonusKind | None = None) -> int:
        """Validate a candidate and compute its dislikes.

        Args:
            vertices: Candidate position of every figure vertex
            bonus: Rule relaxation to apply (at most one)

        Returns:
            Dislikes of the candidate

        Raises:
            UnsupportedBonusError: If the selected bonus is not implemented
            VerticeCountMismatchError: If the vertex count differs from the figure
            BrokenEdgesFoundError: If edges are stretched beyond epsilon
            EdgesNotFitHoleError: If edges leave the hole
        """
        if bonus == BonusKind.BREAK_A_LEG:
            raise UnsupportedBonusError(bonus)

        self.check_count(vertices)

        report = self.check_stretch(vertices, bonus)
        if not report.passed:
            raise BrokenEdgesFoundError(report.ratio_sum, len(report.broken))

        self.check_containment(vertices, bonus)
        return self.dislikes(vertices)

    def score_pose(self, pose: Pose) -> int:
        """Score a pose, applying the bonus it uses."""
        return self.score(pose.vertices, pose.active_bonus())

    def try_score(
        self, vertices: Sequence[Point], bonus: BonusKind | None = None
    ) -> tuple[int | None, ValidationError | None]:
        """Score a candidate, returning the rejection instead of raising it.

        UnsupportedBonusError is still raised.

        Returns:
            Tuple of (dislikes, None) on success or (None, error) on rejection
        """
        try:
            return self.score(vertices, bonus), None
        except ValidationError as e:
            return None, e

    def check_count(self, vertices: Sequence[Point]) -> None:
        """Raise VerticeCountMismatchError unless every figure vertex is placed."""
        expected = len(self.problem.figure.vertices)
        if len(vertices) != expected:
            raise VerticeCountMismatchError(expected, len(vertices))

    def check_stretch(
        self, vertices: Sequence[Point], bonus: BonusKind | None = None
    ) -> StretchReport:
        """Compare every edge's squared length against the original figure.

        An edge is broken when ``|after / before - 1| > epsilon / 1_000_000``;
        the comparison is done on integers. GLOBALIST replaces the per-edge
        threshold with a pooled budget of ``edge_count * epsilon / 1_000_000``,
        also compared exactly (the float ratios in the report are diagnostics).
        SUPERFLEX forgives the first broken edge.

        Args:
            vertices: Candidate positions (count already checked)
            bonus: Rule relaxation to apply

        Returns:
            StretchReport with the verdict
        """
        epsilon = self.problem.epsilon
        report = StretchReport(budget=epsilon / PPM)
        superflex_available = bonus == BonusKind.SUPERFLEX
        # exact pooled deviation; None once a zero-length edge grows
        pooled: Fraction | None = Fraction(0)

        for index, (edge, before) in enumerate(
            zip(self.problem.figure.edges, self._original_lengths)
        ):
            after = squared_distance(vertices[edge.source], vertices[edge.target])
            if before == 0:
                ratio = 0.0 if after == 0 else math.inf
                if after != 0:
                    pooled = None
            else:
                ratio = abs(after / before - 1)
                if pooled is not None:
                    pooled += Fraction(abs(after - before), before)
            report.ratios.append(ratio)

            if PPM * abs(after - before) <= epsilon * before:
                continue
            if superflex_available:
                superflex_available = False
                report.exempt_edge = index
                continue
            report.broken.append(index)

        if bonus == BonusKind.GLOBALIST:
            edges_count = len(report.ratios)
            report.ratio_sum = sum(report.ratios)
            report.budget = edges_count * epsilon / PPM
            report.passed = pooled is not None and pooled <= Fraction(
                edges_count * epsilon, PPM
            )
        else:
            report.ratio_sum = sum(report.ratios[i] for i in report.broken)
            report.passed = not report.broken

        return report

    def check_containment(
        self, vertices: Sequence[Point], bonus: BonusKind | None = None
    ) -> None:
        """Check that every figure edge stays inside the hole.

        Under WALLHACK the first vertex found outside the hole is exempt and
        edges touching it are excused; any other leaving edge still counts.

        Raises:
            EdgesNotFitHoleError: If any non-excused edge leaves the hole
        """
        wallhack = bonus == BonusKind.WALLHACK
        exempt_vertex: int | None = None
        not_fit = 0

        for edge in self.problem.figure.edges:
            edge_from = vertices[edge.source]
            edge_to = vertices[edge.target]
            if not self.oracle.is_edge_invalid(edge_from, edge_to):
                continue

            if wallhack:
                if exempt_vertex is None:
                    for index in (edge.source, edge.target):
                        point = vertices[index]
                        if self.oracle.is_edge_invalid(point, point):
                            exempt_vertex = index
                            break
                if exempt_vertex is not None and edge.touches(exempt_vertex):
                    continue

            not_fit += 1

        if not_fit:
            raise EdgesNotFitHoleError(not_fit)

    def dislikes(self, vertices: Sequence[Point]) -> int:
        """Sum over hole vertices of the squared distance to the nearest vertex."""
        return sum(
            min(squared_distance(hole_point, vertex) for vertex in vertices)
            for hole_point in self.problem.hole
        )


def score(
    problem: Problem,
    vertices: Sequence[Point],
    oracle: EdgeOracle,
    bonus: BonusKind | None = None,
) -> int:
    """Validate and score a candidate vertex assignment.

    Convenience wrapper building a throwaway ScoringPipeline; solvers scoring
    many candidates should keep one pipeline per problem instead.
    """
    return ScoringPipeline(problem, oracle).score(vertices, bonus)
