"""Bloom filter hole containment oracle.

Construction enumerates every pair of lattice points in the hole's bounding
square, asks the exact oracle whether the connecting segment is invalid and
records each invalid edge in a bloom filter. A query then probes ``k`` bits:
any unset bit proves the edge valid (bloom filters have no false negatives),
all bits set may be a false positive and is resolved exactly.

Construction cost grows with the square of the bounding square area, so this
backend only suits small holes; prefer the quad tree otherwise.
"""

import hashlib
import math
import os
import struct
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import structlog

from holewall.config import BloomConfig
from holewall.core.oracle import ExactPolygonOracle, check_problem
from holewall.domain import Point, Problem
from holewall.exceptions import FieldIsTooLargeError, FieldIsTooSmallError, OracleBuildError
from holewall.utils import BuildLogger, BuildStats

_KEY_FORMAT = struct.Struct("<qqqq")


class SharedBitArray:
    """Fixed size bit array shared by construction workers.

    Bits only ever go from unset to set. Readers check without locking;
    writers re-check under the lock before flipping a bit, so concurrent
    workers discovering the same bit at most repeat harmless work.
    """

    def __init__(self, bits_count: int) -> None:
        if bits_count < 1:
            raise ValueError(f"bits_count must be positive, got {bits_count}")
        self.bits_count = bits_count
        self._bytes = bytearray((bits_count + 7) // 8)
        self._lock = threading.Lock()

    def get(self, index: int) -> bool:
        return bool(self._bytes[index >> 3] & (1 << (index & 7)))

    def set(self, index: int) -> bool:
        """Set a bit.

        Returns:
            True if this call flipped the bit, False if it was already set
        """
        if self.get(index):
            return False
        with self._lock:
            if self.get(index):
                return False
            self._bytes[index >> 3] |= 1 << (index & 7)
            return True

    def count(self) -> int:
        """Number of set bits."""
        return sum(byte.bit_count() for byte in self._bytes)


def optimal_bits_count(items_count: int, false_positive_rate: float) -> int:
    """Bit array size meeting the false positive rate for ``items_count`` items.

    Examples:
        >>> optimal_bits_count(1000, 0.01)
        9586
    """
    items_count = max(items_count, 1)
    bits = -items_count * math.log(false_positive_rate) / (math.log(2) ** 2)
    return max(1, math.ceil(bits))


def optimal_hashes_count(bits_count: int, items_count: int) -> int:
    """Number of hash functions minimizing false positives.

    Examples:
        >>> optimal_hashes_count(9586, 1000)
        7
    """
    items_count = max(items_count, 1)
    return max(1, round(bits_count / items_count * math.log(2)))


def edge_key(edge_from: Point, edge_to: Point) -> bytes:
    """Order independent byte key of an edge."""
    a, b = min(edge_from, edge_to), max(edge_from, edge_to)
    return _KEY_FORMAT.pack(a.x, a.y, b.x, b.y)


class BloomOracle:
    """Hole containment oracle backed by a bloom filter of invalid edges.

    Built once per problem, then queried read-only; safe to share between
    threads.
    """

    def __init__(self, problem: Problem, config: BloomConfig | None = None) -> None:
        """Precompute the filter for a problem's hole.

        Args:
            problem: Problem whose hole is indexed
            config: Bloom filter settings

        Raises:
            NoPointsInHoleError: If the hole has no vertices
            HoleIsDegenerateError: If the hole has fewer than three vertices
            NoPointsInFigureError: If the figure has no vertices
            FieldIsTooSmallError: If the hole spans less than a unit in some axis
            FieldIsTooLargeError: If the bounding square holds too many points
        """
        self.config = config or BloomConfig()
        self._build_logger = BuildLogger(structlog.get_logger(__name__), "bloom")

        try:
            check_problem(problem)
            hole_min, hole_max = problem.hole_bounds()
            width = hole_max.x - hole_min.x
            height = hole_max.y - hole_min.y
            if width < 1 or height < 1:
                raise FieldIsTooSmallError(width, height)

            side = max(width, height)
            points_count = (side + 1) ** 2
            if points_count > self.config.max_points:
                raise FieldIsTooLargeError(points_count, self.config.max_points)
        except OracleBuildError as e:
            self._build_logger.log_build_failed(e)
            raise

        self.field_min = hole_min
        self.field_max = Point(hole_min.x + side, hole_min.y + side)
        self.exact = ExactPolygonOracle.from_problem(problem)

        pairs_count = points_count * (points_count + 1) // 2
        self._bits = SharedBitArray(
            optimal_bits_count(pairs_count, self.config.false_positive_rate)
        )
        self._seeds = [
            (self.config.seed + i).to_bytes(8, "little")
            for i in range(optimal_hashes_count(self._bits.bits_count, pairs_count))
        ]

        stats = self._build_logger.stats
        stats.start_time = time.time()
        self._build_logger.log_build_start(self.field_min.to_tuple(), self.field_max.to_tuple())

        invalid_edges = self._populate()

        stats.end_time = time.time()
        self._build_logger.log_bloom_complete(
            bits_count=self._bits.bits_count,
            bits_set=self._bits.count(),
            hashes_count=len(self._seeds),
            invalid_edges=invalid_edges,
        )

    def _positions(self, key: bytes) -> list[int]:
        bits_count = self._bits.bits_count
        return [
            int.from_bytes(hashlib.blake2b(key, digest_size=8, key=seed).digest(), "little")
            % bits_count
            for seed in self._seeds
        ]

    def _populate(self) -> int:
        """Record every invalid edge of the bounding square.

        Point pairs are partitioned by the index of their first point into
        disjoint strided ranges, one per worker thread.

        Returns:
            Number of invalid edges found
        """
        points = [
            Point(x, y)
            for x in range(self.field_min.x, self.field_max.x + 1)
            for y in range(self.field_min.y, self.field_max.y + 1)
        ]
        workers = self.config.max_workers or os.cpu_count() or 1
        workers = max(1, min(workers, len(points)))

        def populate_range(start: int) -> int:
            found = 0
            for i in range(start, len(points), workers):
                edge_from = points[i]
                for edge_to in points[i:]:
                    if not self.exact.is_edge_invalid(edge_from, edge_to):
                        continue
                    found += 1
                    for position in self._positions(edge_key(edge_from, edge_to)):
                        self._bits.set(position)
            return found

        if workers == 1:
            return populate_range(0)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(populate_range, start) for start in range(workers)]
            return sum(f.result() for f in futures)

    @property
    def bits_count(self) -> int:
        return self._bits.bits_count

    @property
    def hashes_count(self) -> int:
        return len(self._seeds)

    @property
    def build_stats(self) -> BuildStats:
        """Construction statistics (timing and filter occupancy)."""
        return self._build_logger.stats

    def in_range(self, point: Point) -> bool:
        """Check if a point lies within the precomputed bounding square."""
        return (
            self.field_min.x <= point.x <= self.field_max.x
            and self.field_min.y <= point.y <= self.field_max.y
        )

    def might_be_invalid(self, edge_from: Point, edge_to: Point) -> bool:
        """Probe the filter without exact fallback.

        False means the edge is certainly valid.
        """
        key = edge_key(edge_from, edge_to)
        return all(self._bits.get(position) for position in self._positions(key))

    def is_edge_invalid(self, edge_from: Point, edge_to: Point) -> bool:
        """Check whether the segment leaves the hole."""
        if not self.in_range(edge_from) or not self.in_range(edge_to):
            return True
        if not self.might_be_invalid(edge_from, edge_to):
            return False
        return self.exact.is_edge_invalid(edge_from, edge_to)
