"""Exception hierarchy for Holewall."""

from typing import Any


class HolewallError(Exception):
    """Base exception for all Holewall errors."""

    pass


class ProblemError(HolewallError):
    """Errors related to problem or pose definitions."""

    pass


class InvalidProblemError(ProblemError):
    """Problem definition is structurally invalid."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid problem: {reason}")


class InvalidPoseError(ProblemError):
    """Pose definition is structurally invalid."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid pose: {reason}")


class OracleBuildError(HolewallError):
    """Errors raised while building a hole containment oracle.

    A problem that cannot produce an oracle is unusable; these errors are
    never retried.
    """

    pass


class NoPointsInHoleError(OracleBuildError):
    """Hole polygon has no vertices."""

    def __init__(self) -> None:
        super().__init__("Hole has no points")


class NoPointsInFigureError(OracleBuildError):
    """Figure has no vertices."""

    def __init__(self) -> None:
        super().__init__("Figure has no points")


class HoleIsDegenerateError(OracleBuildError):
    """Hole has too few vertices to enclose an area."""

    def __init__(self, points_count: int) -> None:
        self.points_count = points_count
        super().__init__(f"Hole is degenerate: {points_count} points")


class FieldIsTooSmallError(OracleBuildError):
    """Hole bounding box collapses to less than a unit in some axis."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        super().__init__(f"Field is too small: {width}x{height}")


class FieldIsTooLargeError(OracleBuildError):
    """Hole bounding square holds too many lattice points for precomputation."""

    def __init__(self, points_count: int, max_points: int) -> None:
        self.points_count = points_count
        self.max_points = max_points
        super().__init__(
            f"Field is too large: {points_count} lattice points (limit {max_points})"
        )


class ValidationError(HolewallError):
    """Candidate pose was rejected.

    Rejections are expected and frequent: solvers treat every subclass as
    "try another candidate".
    """

    pass


class VerticeCountMismatchError(ValidationError):
    """Candidate has a different number of vertices than the figure."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Vertice count mismatch: expected {expected}, got {actual}")


class BrokenEdgesFoundError(ValidationError):
    """Candidate stretches or compresses edges beyond epsilon."""

    def __init__(self, ratio_sum: float, count: int) -> None:
        self.ratio_sum = ratio_sum
        self.count = count
        super().__init__(f"Broken edges found: {count} (ratio sum {ratio_sum:.6f})")


class EdgesNotFitHoleError(ValidationError):
    """Candidate edges leave the hole."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"Edges do not fit hole: {count}")


class UnsupportedBonusError(HolewallError):
    """Selected bonus rule is not implemented.

    Not a ValidationError: callers catching rejections must not mistake an
    unimplemented rule for a normal rejection.
    """

    def __init__(self, kind: Any) -> None:
        self.kind = kind
        super().__init__(f"Bonus '{getattr(kind, 'value', kind)}' is not supported")
