# File: src/icf_planner/utils/geometry.py

"""Plan-view (2D) geometry helpers shared by the pipeline stages.

All coordinates are millimeters in the floor-plan XY plane. Points are plain
``(x, y)`` tuples; there is exactly one point representation.
"""

import math
from typing import Optional, Tuple

Point2D = Tuple[float, float]


# =============================================================================
# Vectors and Distances
# =============================================================================


def distance(p: Point2D, q: Point2D) -> float:
    """Euclidean distance between two points."""
    return math.hypot(p[0] - q[0], p[1] - q[1])


def unit(v: Point2D) -> Point2D:
    length = math.hypot(v[0], v[1])
    if length <= 0:
        return (0.0, 0.0)
    return (v[0] / length, v[1] / length)


def dot(u: Point2D, v: Point2D) -> float:
    return u[0] * v[0] + u[1] * v[1]


def left_normal(direction: Point2D) -> Point2D:
    """Unit perpendicular pointing to the left of ``direction`` (-y, x)."""
    return unit((-direction[1], direction[0]))


def point_to_segment_distance(
    point: Point2D,
    seg_start: Point2D,
    seg_end: Point2D,
) -> Tuple[float, float]:
    """Distance from a point to a line segment, and parameter t along segment.

    Args:
        point: The query point.
        seg_start: Segment start point.
        seg_end: Segment end point.

    Returns:
        (distance, t) where t is 0.0 at seg_start, 1.0 at seg_end,
        clamped to [0, 1].
    """
    dx = seg_end[0] - seg_start[0]
    dy = seg_end[1] - seg_start[1]
    seg_len_sq = dx * dx + dy * dy

    if seg_len_sq < 1e-12:
        return distance(point, seg_start), 0.0

    t = ((point[0] - seg_start[0]) * dx + (point[1] - seg_start[1]) * dy) / seg_len_sq
    t = max(0.0, min(1.0, t))

    closest = (seg_start[0] + t * dx, seg_start[1] + t * dy)
    return distance(point, closest), t


# =============================================================================
# Angles
# =============================================================================


def normalize_angle(angle: float) -> float:
    """Normalize an undirected line angle to [0, pi)."""
    a = angle % math.pi
    if a < 0:
        a += math.pi
    # Float modulo can land exactly on pi for tiny negative inputs
    if a >= math.pi:
        a -= math.pi
    return a


def segment_angle(start: Point2D, end: Point2D) -> float:
    """Undirected angle of the line through two points, in [0, pi)."""
    return normalize_angle(math.atan2(end[1] - start[1], end[0] - start[0]))


def angles_collinear(a1: float, a2: float, tolerance_rad: float) -> bool:
    """Check whether two undirected angles describe (nearly) parallel lines."""
    diff = abs(normalize_angle(a1) - normalize_angle(a2))
    diff = min(diff, math.pi - diff)
    return diff <= tolerance_rad


def angle_between_directions(d1: Point2D, d2: Point2D) -> float:
    """Angle between two direction vectors in radians (0 to pi)."""
    m1 = math.hypot(d1[0], d1[1])
    m2 = math.hypot(d2[0], d2[1])
    if m1 < 1e-12 or m2 < 1e-12:
        return 0.0
    cos_angle = max(-1.0, min(1.0, dot(d1, d2) / (m1 * m2)))
    return math.acos(cos_angle)


# =============================================================================
# Segment Intersections
# =============================================================================


def crossing_point(
    a_start: Point2D,
    a_end: Point2D,
    b_start: Point2D,
    b_end: Point2D,
    tolerance: float = 1.0,
) -> Optional[Point2D]:
    """Intersection of two segments when they cross strictly inside both.

    Touching at (or within ``tolerance`` of) an endpoint does not count as a
    crossing; those cases are T or L contacts.

    Returns:
        The crossing point, or None for parallel or non-crossing segments.
    """
    x1, y1 = a_start
    x2, y2 = a_end
    x3, y3 = b_start
    x4, y4 = b_end

    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < 1e-10:
        return None

    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
    u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / denom

    eps = tolerance / max(distance(a_start, a_end), distance(b_start, b_end), 1.0)
    if eps < t < 1 - eps and eps < u < 1 - eps:
        return (x1 + t * (x2 - x1), y1 + t * (y2 - y1))
    return None


def point_on_segment_interior(
    point: Point2D,
    seg_start: Point2D,
    seg_end: Point2D,
    tolerance: float,
) -> Optional[Point2D]:
    """Project ``point`` onto a segment if it lies on its interior.

    Returns:
        The projected point when the point is within ``tolerance`` of the
        segment and not within ``tolerance`` of either endpoint, else None.
    """
    length = distance(seg_start, seg_end)
    if length < tolerance:
        return None

    dx = seg_end[0] - seg_start[0]
    dy = seg_end[1] - seg_start[1]
    t = ((point[0] - seg_start[0]) * dx + (point[1] - seg_start[1]) * dy) / (length * length)

    eps = tolerance / length
    if t <= eps or t >= 1 - eps:
        return None

    projected = (seg_start[0] + t * dx, seg_start[1] + t * dy)
    if distance(point, projected) <= tolerance:
        return projected
    return None

