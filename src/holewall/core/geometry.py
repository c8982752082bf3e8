"""Exact lattice geometry for oracle construction and queries.

This module provides the integer predicates the quad tree relies on:
- Squared distances
- Orientation (cross product) tests
- Segment versus closed axis-aligned rectangle intersection
- Corner touch classification (segment meets a rectangle at one corner only)

All inputs are integers, so every predicate is exact: no tolerance is involved
and the answers match the shapely ground truth at tangencies. Functions are
pure and stateless, safe to call from any thread.
"""

from enum import Enum

from holewall.domain import Point


class Corner(Enum):
    """Corner of an axis-aligned rectangle.

    The value is the (dx, dy) direction pointing from the corner into the
    rectangle.
    """

    BOTTOM_LEFT = (1, 1)
    BOTTOM_RIGHT = (-1, 1)
    TOP_LEFT = (1, -1)
    TOP_RIGHT = (-1, -1)

    def locate(self, x0: int, y0: int, x1: int, y1: int) -> tuple[int, int]:
        """Get the coordinates of this corner on the given rectangle."""
        dx, dy = self.value
        return (x0 if dx > 0 else x1, y0 if dy > 0 else y1)


def squared_distance(a: Point, b: Point) -> int:
    """Calculate squared Euclidean distance between two points.

    Examples:
        >>> squared_distance(Point(0, 0), Point(3, 4))
        25
    """
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def cross(o: Point, a: Point, b: Point) -> int:
    """Z component of (a - o) x (b - o).

    Positive when o -> a -> b turns counter-clockwise, negative when it turns
    clockwise and zero when the three points are collinear.
    """
    return (a.x - o.x) * (b.y - o.y) - (a.y - o.y) * (b.x - o.x)


def on_segment(p: Point, a: Point, b: Point) -> bool:
    """Check if point p lies on the closed segment [a, b].

    Examples:
        >>> on_segment(Point(1, 1), Point(0, 0), Point(2, 2))
        True
        >>> on_segment(Point(3, 3), Point(0, 0), Point(2, 2))
        False
    """
    if cross(a, b, p) != 0:
        return False
    return min(a.x, b.x) <= p.x <= max(a.x, b.x) and min(a.y, b.y) <= p.y <= max(a.y, b.y)


def segment_intersects_rect(a: Point, b: Point, x0: int, y0: int, x1: int, y1: int) -> bool:
    """Test whether a segment meets a closed axis-aligned rectangle.

    Separating axis test: the rectangle axes are checked with bounding boxes,
    the segment normal by checking whether all four rectangle corners lie
    strictly on one side of the segment line. Touching counts as intersecting.
    A degenerate segment (a == b) is treated as a point.

    Args:
        a: First segment endpoint
        b: Second segment endpoint
        x0: Rectangle minimum x
        y0: Rectangle minimum y
        x1: Rectangle maximum x
        y1: Rectangle maximum y

    Returns:
        True if the segment and rectangle share at least one point

    Examples:
        >>> segment_intersects_rect(Point(-1, 0), Point(0, -1), 0, 0, 1, 1)
        False
        >>> segment_intersects_rect(Point(-1, 1), Point(1, -1), 0, 0, 1, 1)
        True
    """
    if max(a.x, b.x) < x0 or min(a.x, b.x) > x1:
        return False
    if max(a.y, b.y) < y0 or min(a.y, b.y) > y1:
        return False

    dx = b.x - a.x
    dy = b.y - a.y
    positive = negative = False
    for cx, cy in ((x0, y0), (x1, y0), (x0, y1), (x1, y1)):
        side = dx * (cy - a.y) - dy * (cx - a.x)
        if side > 0:
            positive = True
        elif side < 0:
            negative = True
        else:
            return True
        if positive and negative:
            return True

    return False


def corner_touch(a: Point, b: Point, x0: int, y0: int, x1: int, y1: int) -> Corner | None:
    """Classify a segment that meets a closed rectangle at exactly one corner.

    The intersection of a segment and a rectangle is convex, so if the segment
    passes through a corner without heading into the rectangle in either of
    its directions, that corner is the whole intersection. Four patterns are
    recognized, one per corner.

    Args:
        a: First segment endpoint
        b: Second segment endpoint
        x0: Rectangle minimum x
        y0: Rectangle minimum y
        x1: Rectangle maximum x
        y1: Rectangle maximum y

    Returns:
        The touched corner, or None if the segment misses every corner or
        also covers other points of the rectangle

    Examples:
        >>> corner_touch(Point(-1, 1), Point(1, -1), 0, 0, 1, 1)
        <Corner.BOTTOM_LEFT: (1, 1)>
        >>> corner_touch(Point(-1, -1), Point(1, 1), 0, 0, 1, 1) is None
        True
    """
    for corner in Corner:
        cx, cy = corner.locate(x0, y0, x1, y1)
        c = Point(cx, cy)
        if not on_segment(c, a, b):
            continue

        qx, qy = corner.value
        for end in (a, b):
            dx = end.x - cx
            dy = end.y - cy
            if dx == 0 and dy == 0:
                continue
            if dx * qx >= 0 and dy * qy >= 0:
                # heads into the rectangle from the corner
                return None
        return corner

    return None
