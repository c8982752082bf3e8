"""Holewall - Hole containment oracles and pose scoring.

Holewall answers the two questions every solver of the "fit a figure into a
hole" puzzle asks millions of times: does this segment stay inside the hole,
and how good is this vertex assignment?

Example:
    problem = Problem.from_dict(document)
    oracle = QuadTreeOracle(problem)
    dislikes = score(problem, problem.figure.vertices, oracle)
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
