# File: src/icf_planner/chains/chain_builder.py

"""Wall chain reconstruction from raw, possibly fragmented wall segments.

Builds consolidated straight runs ("chains") by:
1. Canonicalizing and sorting the input (order independence)
2. Dropping degenerate and sub-noise segments (counted)
3. Snapping near-orthogonal segments to the axes, then clustering endpoints
4. Removing duplicates and merging overlapping collinear axis-aligned runs
5. Simplifying short jogs between collinear runs
6. Bridging small collinear gaps (larger gaps become opening candidates)
7. Splitting segments at X crossings and T points
8. Building a node graph and merging collinear degree-2 nodes
9. Emitting chains sorted by a stable geometric key

All measurements are in millimeters. Angles are radians unless the name
says otherwise.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

import networkx as nx

from ..config.icf_constants import PANEL_WIDTH_MM
from ..config.planner_config import ChainTolerances
from ..utils.geometry import (
    Point2D,
    angles_collinear,
    crossing_point,
    distance,
    dot,
    point_on_segment_interior,
    segment_angle,
    unit,
)
from ..utils.logging_config import IcfPlannerLogger
from .chain_types import (
    Chain,
    ChainBuildResult,
    ChainBuildStats,
    OpeningCandidate,
    WallSegment,
)

logger = logging.getLogger(__name__)

TRACE = IcfPlannerLogger.TRACE_LEVEL

# Gap centers farther than this from a chain line are not matched to it
CANDIDATE_MAX_LINE_DISTANCE_MM = 100.0


@dataclass
class _WorkSegment:
    """Mutable working segment; ``source_count`` tracks merged raw segments."""
    start: Point2D
    end: Point2D
    source_count: int = 1

    @property
    def length(self) -> float:
        return distance(self.start, self.end)

    @property
    def angle(self) -> float:
        return segment_angle(self.start, self.end)


# =============================================================================
# Keys and Rounding
# =============================================================================


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _node_key(point: Point2D, tolerance: float) -> Tuple[int, int]:
    """Bucket a point onto a grid of ``tolerance`` cells."""
    return (_round_half_up(point[0] / tolerance), _round_half_up(point[1] / tolerance))


def _segment_key(seg: _WorkSegment) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """Direction-independent key on 1 mm rounded endpoints."""
    a = (_round_half_up(seg.start[0]), _round_half_up(seg.start[1]))
    b = (_round_half_up(seg.end[0]), _round_half_up(seg.end[1]))
    return (a, b) if a <= b else (b, a)


def _canonical(start: Point2D, end: Point2D) -> Tuple[Point2D, Point2D]:
    return (start, end) if start <= end else (end, start)


# =============================================================================
# Step 1-2: Preparation and Noise Filter
# =============================================================================


def _prepare_segments(
    segments: Sequence[WallSegment],
    noise_min_mm: float,
    stats: ChainBuildStats,
) -> List[_WorkSegment]:
    """Canonicalize, sort and filter the raw input.

    Non-finite and zero-length segments count as degenerate; segments shorter
    than ``noise_min_mm`` count as noise. Both are dropped but counted.
    """
    prepared: List[_WorkSegment] = []
    for seg in segments:
        if not seg.is_finite() or seg.length < 1e-9:
            stats.dropped_degenerate += 1
            continue
        if seg.length < noise_min_mm:
            stats.dropped_noise += 1
            logger.log(TRACE, "Dropping noise segment %s (%.1f mm)", seg, seg.length)
            continue
        canon = seg.canonical()
        prepared.append(_WorkSegment(canon.start, canon.end))

    prepared.sort(key=lambda s: (s.start, s.end))

    if stats.dropped_degenerate or stats.dropped_noise:
        logger.info(
            "Dropped %d degenerate and %d noise segments (noise threshold %.1f mm)",
            stats.dropped_degenerate,
            stats.dropped_noise,
            noise_min_mm,
        )
    return prepared


# =============================================================================
# Step 3: Orthogonal Snap and Endpoint Clustering
# =============================================================================


def _snap_orthogonal(segments: List[_WorkSegment], angle_tol_rad: float) -> None:
    """Snap near-horizontal and near-vertical segments onto the axes (in place)."""
    limit = math.sin(angle_tol_rad)
    for seg in segments:
        a = math.atan2(seg.end[1] - seg.start[1], seg.end[0] - seg.start[0])
        if abs(math.sin(a)) <= limit:
            y = (seg.start[1] + seg.end[1]) / 2.0
            seg.start = (seg.start[0], y)
            seg.end = (seg.end[0], y)
        elif abs(math.cos(a)) <= limit:
            x = (seg.start[0] + seg.end[0]) / 2.0
            seg.start = (x, seg.start[1])
            seg.end = (x, seg.end[1])


def _cluster_points(points: List[Point2D], snap_tol_mm: float) -> List[Point2D]:
    """Cluster points within ``snap_tol_mm`` using a spatial hash.

    Each point joins the nearest existing cluster whose running centroid is
    within tolerance, otherwise it starts a new cluster. Every point is then
    moved to its cluster's final centroid, so all members coincide exactly.

    Returns:
        Snapped points, index-aligned with the input.
    """
    if snap_tol_mm <= 0:
        return list(points)

    cell = max(1.0, snap_tol_mm)
    tol_sq = snap_tol_mm * snap_tol_mm

    centroids: List[List[float]] = []  # [x, y, count]
    grid: Dict[Tuple[int, int], List[int]] = {}
    membership: List[int] = []

    for p in points:
        cx = int(math.floor(p[0] / cell))
        cy = int(math.floor(p[1] / cell))

        best_id: Optional[int] = None
        best_d2 = math.inf
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for cid in grid.get((cx + dx, cy + dy), ()):
                    c = centroids[cid]
                    d2 = (p[0] - c[0]) ** 2 + (p[1] - c[1]) ** 2
                    if d2 <= tol_sq and d2 < best_d2:
                        best_d2 = d2
                        best_id = cid

        if best_id is None:
            best_id = len(centroids)
            centroids.append([p[0], p[1], 1])
            grid.setdefault((cx, cy), []).append(best_id)
        else:
            c = centroids[best_id]
            c[0] = (c[0] * c[2] + p[0]) / (c[2] + 1)
            c[1] = (c[1] * c[2] + p[1]) / (c[2] + 1)
            c[2] += 1

        membership.append(best_id)

    return [(centroids[cid][0], centroids[cid][1]) for cid in membership]


def _snap_endpoints(
    segments: List[_WorkSegment],
    snap_tol_mm: float,
    stats: ChainBuildStats,
) -> List[_WorkSegment]:
    points: List[Point2D] = []
    for seg in segments:
        points.append(seg.start)
        points.append(seg.end)

    snapped = _cluster_points(points, snap_tol_mm)

    result: List[_WorkSegment] = []
    for i, seg in enumerate(segments):
        start, end = _canonical(snapped[2 * i], snapped[2 * i + 1])
        if distance(start, end) < 1e-9:
            # Both ends collapsed into one cluster
            stats.dropped_degenerate += 1
            continue
        result.append(_WorkSegment(start, end, seg.source_count))
    return result


# =============================================================================
# Step 4: Dedup and Axis-Aligned Overlap Merge
# =============================================================================


def _dedup_segments(segments: List[_WorkSegment]) -> List[_WorkSegment]:
    seen: Set = set()
    out: List[_WorkSegment] = []
    for seg in segments:
        key = _segment_key(seg)
        if key in seen:
            continue
        seen.add(key)
        out.append(seg)
    return out


def _merge_axis_aligned_overlaps(
    segments: List[_WorkSegment],
    angle_tol_rad: float,
    line_tol_mm: float,
) -> List[_WorkSegment]:
    """Merge overlapping or touching collinear horizontal/vertical segments.

    Segments are grouped by their fixed coordinate (y for horizontals, x for
    verticals); within a group, intervals that overlap or touch within
    ``line_tol_mm`` are fused. Oblique segments pass through unchanged.
    """
    limit = math.sin(angle_tol_rad)
    horizontals: List[Tuple[float, float, float, int]] = []
    verticals: List[Tuple[float, float, float, int]] = []
    others: List[_WorkSegment] = []

    for seg in segments:
        dx = seg.end[0] - seg.start[0]
        dy = seg.end[1] - seg.start[1]
        a = math.atan2(dy, dx)
        if abs(dy) <= line_tol_mm and abs(math.sin(a)) <= limit:
            fixed = (seg.start[1] + seg.end[1]) / 2.0
            horizontals.append((fixed, min(seg.start[0], seg.end[0]), max(seg.start[0], seg.end[0]), seg.source_count))
        elif abs(dx) <= line_tol_mm and abs(math.cos(a)) <= limit:
            fixed = (seg.start[0] + seg.end[0]) / 2.0
            verticals.append((fixed, min(seg.start[1], seg.end[1]), max(seg.start[1], seg.end[1]), seg.source_count))
        else:
            others.append(seg)

    def merge(items: List[Tuple[float, float, float, int]], horizontal: bool) -> List[_WorkSegment]:
        items = sorted(items)
        # Group lines whose fixed coordinates chain together within tolerance
        groups: List[List[Tuple[float, float, float, int]]] = []
        for item in items:
            if groups and item[0] - groups[-1][-1][0] <= line_tol_mm:
                groups[-1].append(item)
            else:
                groups.append([item])

        merged: List[_WorkSegment] = []
        for group in groups:
            intervals = sorted(group, key=lambda it: (it[1], it[2]))
            current = list(intervals[0])
            for fixed, lo, hi, count in intervals[1:]:
                if lo <= current[2] + line_tol_mm:
                    current[2] = max(current[2], hi)
                    current[3] += count
                else:
                    merged.append(_interval_to_segment(current, horizontal))
                    current = [fixed, lo, hi, count]
            merged.append(_interval_to_segment(current, horizontal))
        return merged

    result = merge(horizontals, True) + merge(verticals, False) + others
    result.sort(key=lambda s: (s.start, s.end))
    return result


def _interval_to_segment(interval: List, horizontal: bool) -> _WorkSegment:
    fixed, lo, hi, count = interval
    if horizontal:
        return _WorkSegment((lo, fixed), (hi, fixed), count)
    return _WorkSegment((fixed, lo), (fixed, hi), count)


# =============================================================================
# Step 5: Jog Simplification
# =============================================================================


def _simplify_jogs(
    segments: List[_WorkSegment],
    jog_max_mm: float,
    angle_tol_rad: float,
) -> List[_WorkSegment]:
    """Remove short jogs between two collinear runs and join the runs.

    A jog is a segment no longer than ``jog_max_mm`` whose ends each touch
    exactly one other segment, where those two segments are parallel and
    continue in opposite directions. The jog is removed and the two touching
    ends are moved to the jog midpoint so the runs meet.
    """
    if jog_max_mm <= 0:
        return segments

    result = [_WorkSegment(s.start, s.end, s.source_count) for s in segments]
    touch_tol = jog_max_mm * 0.5
    changed = True

    while changed:
        changed = False
        for i, jog in enumerate(result):
            if jog.length > jog_max_mm:
                continue

            at_start: List[Tuple[int, str]] = []
            at_end: List[Tuple[int, str]] = []
            for j, other in enumerate(result):
                if i == j:
                    continue
                for which in ("start", "end"):
                    p = getattr(other, which)
                    if distance(jog.start, p) < touch_tol:
                        at_start.append((j, which))
                    if distance(jog.end, p) < touch_tol:
                        at_end.append((j, which))

            if len(at_start) != 1 or len(at_end) != 1:
                continue
            (a_idx, a_end), (b_idx, b_end) = at_start[0], at_end[0]
            if a_idx == b_idx:
                continue

            seg_a = result[a_idx]
            seg_b = result[b_idx]
            if not angles_collinear(seg_a.angle, seg_b.angle, angle_tol_rad):
                continue

            # Runs must leave the jog in opposite directions (not a U shape)
            far_a = seg_a.end if a_end == "start" else seg_a.start
            far_b = seg_b.end if b_end == "start" else seg_b.start
            dir_a = unit((far_a[0] - jog.start[0], far_a[1] - jog.start[1]))
            dir_b = unit((far_b[0] - jog.end[0], far_b[1] - jog.end[1]))
            if dot(dir_a, dir_b) >= 0:
                continue

            mid = ((jog.start[0] + jog.end[0]) / 2.0, (jog.start[1] + jog.end[1]) / 2.0)
            setattr(seg_a, a_end, mid)
            setattr(seg_b, b_end, mid)
            seg_a.source_count += jog.source_count

            logger.log(TRACE, "Removed jog %s -> %s (%.1f mm)", jog.start, jog.end, jog.length)
            del result[i]
            changed = True
            break

    return result


# =============================================================================
# Step 6: Gap Bridging and Opening Candidates
# =============================================================================


def _build_segment_graph(segments: List[_WorkSegment], key_tol: float) -> nx.Graph:
    """Undirected graph keyed by rounded endpoint; first-seen position wins.

    Edge attribute ``source_count`` sums raw segments merged onto an edge.
    """
    graph = nx.Graph()
    for seg in segments:
        ka = _node_key(seg.start, key_tol)
        kb = _node_key(seg.end, key_tol)
        if ka == kb:
            continue
        if ka not in graph:
            graph.add_node(ka, pos=seg.start)
        if kb not in graph:
            graph.add_node(kb, pos=seg.end)
        if graph.has_edge(ka, kb):
            graph[ka][kb]["source_count"] += seg.source_count
        else:
            graph.add_edge(ka, kb, source_count=seg.source_count)
    return graph


def _bridge_gaps(
    segments: List[_WorkSegment],
    tolerances: ChainTolerances,
    key_tol: float,
    stats: ChainBuildStats,
) -> Tuple[List[_WorkSegment], List[Tuple[Point2D, Point2D]]]:
    """Bridge collinear gaps between free ends; collect opening-sized gaps.

    Only pairs of free ends whose own runs point at each other along a common
    line are considered. Gaps up to ``gap_tol_mm`` are bridged; gaps within
    the candidate width range are returned for candidate reporting. Each free
    end takes part in at most one bridge and one candidate, nearest first.

    Returns:
        (segments with bridges added, list of candidate gap end-point pairs)
    """
    angle_tol = tolerances.angle_tol_rad
    search_limit = tolerances.gap_tol_mm
    if tolerances.detect_candidates:
        search_limit = max(search_limit, tolerances.candidate_max_width_mm)
    if search_limit <= 0:
        return segments, []

    graph = _build_segment_graph(segments, key_tol)
    free_ends = sorted(n for n in graph.nodes if graph.degree(n) == 1)
    if len(free_ends) < 2:
        return segments, []

    pairs: List[Tuple[float, Tuple[int, int], Tuple[int, int]]] = []
    for i, ka in enumerate(free_ends):
        pa = graph.nodes[ka]["pos"]
        other_a = next(iter(graph.neighbors(ka)))
        outward_a = unit((pa[0] - graph.nodes[other_a]["pos"][0], pa[1] - graph.nodes[other_a]["pos"][1]))
        run_angle_a = segment_angle(graph.nodes[other_a]["pos"], pa)

        for kb in free_ends[i + 1:]:
            pb = graph.nodes[kb]["pos"]
            gap = distance(pa, pb)
            if gap > search_limit or gap < 1e-9:
                continue

            other_b = next(iter(graph.neighbors(kb)))
            outward_b = unit((pb[0] - graph.nodes[other_b]["pos"][0], pb[1] - graph.nodes[other_b]["pos"][1]))
            run_angle_b = segment_angle(graph.nodes[other_b]["pos"], pb)

            bridge_angle = segment_angle(pa, pb)
            if not angles_collinear(run_angle_a, bridge_angle, angle_tol):
                continue
            if not angles_collinear(run_angle_b, bridge_angle, angle_tol):
                continue

            # Both runs must face the gap
            toward_b = unit((pb[0] - pa[0], pb[1] - pa[1]))
            if dot(outward_a, toward_b) <= 0 or dot(outward_b, toward_b) >= 0:
                continue

            pairs.append((gap, ka, kb))

    pairs.sort()
    bridged_ends: Set[Tuple[int, int]] = set()
    candidate_ends: Set[Tuple[int, int]] = set()
    bridges: List[_WorkSegment] = []
    candidate_gaps: List[Tuple[Point2D, Point2D]] = []

    for gap, ka, kb in pairs:
        pa = graph.nodes[ka]["pos"]
        pb = graph.nodes[kb]["pos"]
        if gap <= tolerances.gap_tol_mm:
            if ka in bridged_ends or kb in bridged_ends:
                continue
            bridged_ends.update((ka, kb))
            start, end = _canonical(pa, pb)
            bridges.append(_WorkSegment(start, end, 0))
            logger.log(TRACE, "Bridging %.1f mm gap %s -> %s", gap, pa, pb)
        elif (
            tolerances.detect_candidates
            and tolerances.candidate_min_width_mm <= gap <= tolerances.candidate_max_width_mm
        ):
            if ka in candidate_ends or kb in candidate_ends:
                continue
            candidate_ends.update((ka, kb))
            candidate_gaps.append(_canonical(pa, pb))

    stats.bridged_gaps = len(bridges)
    if not bridges:
        return segments, candidate_gaps

    combined = _dedup_segments(segments + bridges)
    combined.sort(key=lambda s: (s.start, s.end))
    return combined, candidate_gaps


# =============================================================================
# Step 7: Split at Intersections
# =============================================================================


def _split_at_intersections(
    segments: List[_WorkSegment],
    tolerance: float,
) -> List[_WorkSegment]:
    """Split segments at X crossings and T points so junctions become nodes."""
    split_points: Dict[int, List[Point2D]] = {}

    def add_split(idx: int, point: Point2D) -> None:
        existing = split_points.setdefault(idx, [])
        if all(distance(p, point) >= tolerance for p in existing):
            existing.append(point)

    n = len(segments)
    for i in range(n):
        for j in range(i + 1, n):
            pt = crossing_point(
                segments[i].start, segments[i].end,
                segments[j].start, segments[j].end,
                tolerance,
            )
            if pt is not None:
                add_split(i, pt)
                add_split(j, pt)

    for i in range(n):
        for j in range(n):
            if i == j:
                continue
            for endpoint in (segments[i].start, segments[i].end):
                on = point_on_segment_interior(endpoint, segments[j].start, segments[j].end, tolerance)
                if on is not None:
                    add_split(j, on)

    if not split_points:
        return segments

    result: List[_WorkSegment] = []
    for idx, seg in enumerate(segments):
        points = split_points.get(idx)
        if not points:
            result.append(seg)
            continue

        dx = seg.end[0] - seg.start[0]
        dy = seg.end[1] - seg.start[1]
        length_sq = dx * dx + dy * dy
        points = sorted(
            points,
            key=lambda p: ((p[0] - seg.start[0]) * dx + (p[1] - seg.start[1]) * dy) / length_sq,
        )

        prev = seg.start
        pieces: List[_WorkSegment] = []
        for p in points + [seg.end]:
            if distance(prev, p) > tolerance:
                pieces.append(_WorkSegment(prev, p, 0))
                prev = p
        if pieces:
            # Source count is attributed to the first piece only
            pieces[0].source_count = seg.source_count
            result.extend(pieces)
        else:
            result.append(seg)

    logger.debug("Split %d segments at intersections -> %d segments", len(split_points), len(result))
    return result


# =============================================================================
# Step 8: Graph Reduction
# =============================================================================


def _reduce_collinear(
    graph: nx.Graph,
    angle_tol_rad: float,
    max_iterations: int,
) -> int:
    """Merge degree-2 nodes whose two edges are collinear (in place).

    Each pass visits nodes in key order. Passes repeat until nothing changes
    or ``max_iterations`` passes have run.

    Returns:
        Number of passes executed.
    """
    iterations = 0
    changed = True
    while changed and iterations < max_iterations:
        changed = False
        iterations += 1
        for node in sorted(graph.nodes):
            if node not in graph or graph.degree(node) != 2:
                continue
            n1, n2 = sorted(graph.neighbors(node))
            if graph.has_edge(n1, n2):
                continue

            pos = graph.nodes[node]["pos"]
            p1 = graph.nodes[n1]["pos"]
            p2 = graph.nodes[n2]["pos"]
            if not angles_collinear(segment_angle(p1, pos), segment_angle(pos, p2), angle_tol_rad):
                continue

            count = graph[node][n1]["source_count"] + graph[node][n2]["source_count"]
            graph.remove_node(node)
            graph.add_edge(n1, n2, source_count=count)
            changed = True

    if changed:
        logger.warning(
            "Collinear reduction stopped at the iteration cap (%d passes)", max_iterations
        )
    return iterations


# =============================================================================
# Step 9: Chains, Candidates and Statistics
# =============================================================================


def _graph_to_chains(graph: nx.Graph) -> List[Chain]:
    raw: List[Tuple[Point2D, Point2D, int]] = []
    for a, b, data in graph.edges(data=True):
        start, end = _canonical(graph.nodes[a]["pos"], graph.nodes[b]["pos"])
        raw.append((start, end, max(1, data["source_count"])))

    raw.sort(key=lambda r: (
        round(r[0][0], 3), round(r[0][1], 3),
        round(r[1][0], 3), round(r[1][1], 3),
    ))
    return [
        Chain.from_points(f"chain-{i}", start, end, segment_count=count)
        for i, (start, end, count) in enumerate(raw)
    ]


def _match_candidates(
    gaps: List[Tuple[Point2D, Point2D]],
    chains: List[Chain],
    angle_tol_rad: float,
) -> List[OpeningCandidate]:
    """Attach each candidate gap to the nearest collinear chain."""
    candidates: List[OpeningCandidate] = []
    for start, end in gaps:
        width = distance(start, end)
        center = ((start[0] + end[0]) / 2.0, (start[1] + end[1]) / 2.0)
        gap_angle = segment_angle(start, end)

        best: Optional[Chain] = None
        best_dist = math.inf
        for chain in chains:
            if chain.length_mm <= 0 or not angles_collinear(gap_angle, chain.angle, angle_tol_rad):
                continue
            dx, dy = chain.direction
            t = (center[0] - chain.start_x) * dx + (center[1] - chain.start_y) * dy
            if t < -width or t > chain.length_mm + width:
                continue
            proj = chain.point_at(t)
            line_dist = distance(center, proj)
            if line_dist < best_dist and line_dist < CANDIDATE_MAX_LINE_DISTANCE_MM:
                best_dist = line_dist
                best = chain

        if best is None:
            logger.debug("Opening-sized gap at %s has no collinear chain", center)
            continue

        dx, dy = best.direction
        t_start = (start[0] - best.start_x) * dx + (start[1] - best.start_y) * dy
        t_end = (end[0] - best.start_x) * dx + (end[1] - best.start_y) * dy
        candidates.append(OpeningCandidate(
            id=f"candidate-{len(candidates)}",
            chain_id=best.id,
            start_dist_mm=max(0.0, min(t_start, t_end)),
            width_mm=width,
            center_x=center[0],
            center_y=center[1],
            label=f"C{len(candidates) + 1}",
        ))
    return candidates


def calculate_waste_stats(
    chains: Sequence[Chain],
    panel_width_mm: float = PANEL_WIDTH_MM,
) -> Tuple[float, float]:
    """Per-row rounding waste if every chain were tiled independently.

    Returns:
        (waste_pct, waste_per_row_mm) where waste_pct is the waste divided by
        the total chain length (0 for no chains).
    """
    waste = 0.0
    total = 0.0
    for chain in chains:
        remainder = chain.length_mm % panel_width_mm
        if remainder > 1e-6:
            waste += panel_width_mm - remainder
        total += chain.length_mm
    return (waste / total if total > 0 else 0.0), waste


def _finalize_stats(stats: ChainBuildStats, chains: List[Chain]) -> None:
    lengths = [c.length_mm for c in chains]
    stats.chains_count = len(chains)
    stats.total_length_mm = sum(lengths)
    stats.min_chain_length_mm = min(lengths) if lengths else 0.0
    stats.max_chain_length_mm = max(lengths) if lengths else 0.0
    stats.avg_chain_length_mm = stats.total_length_mm / len(lengths) if lengths else 0.0
    if stats.original_segments > 0:
        stats.reduction_percent = _round_half_up(
            (1 - len(chains) / stats.original_segments) * 100
        )
    stats.waste_pct, stats.waste_per_row_mm = calculate_waste_stats(chains)


# =============================================================================
# Main Entry Point
# =============================================================================


def build_chains(
    segments: Sequence[WallSegment],
    tolerances: Optional[ChainTolerances] = None,
) -> ChainBuildResult:
    """Merge raw wall segments into consolidated straight chains.

    The result depends only on the set of input segments, not on their order
    or direction: input is canonicalized and sorted first, and chain ids are
    assigned after a geometric sort.

    Args:
        segments: Raw wall segments in millimeters.
        tolerances: Merge tolerances (defaults: snap 5, gap 10, angle 2 deg,
            noise 100).

    Returns:
        ChainBuildResult with chains, opening candidates and statistics.

    Raises:
        ConfigurationError: If the tolerances are invalid.
    """
    tolerances = tolerances or ChainTolerances()
    tolerances.validate()

    stats = ChainBuildStats(
        original_segments=len(segments),
        tolerances=tolerances.to_dict(),
    )
    angle_tol = tolerances.angle_tol_rad
    key_tol = max(tolerances.snap_tol_mm, 1.0)

    logger.info(
        "Building chains from %d segments (snap=%.1f, gap=%.1f, angle=%.1f deg, noise=%.1f)",
        len(segments),
        tolerances.snap_tol_mm,
        tolerances.gap_tol_mm,
        tolerances.angle_tol_deg,
        tolerances.noise_min_mm,
    )

    work = _prepare_segments(segments, tolerances.noise_min_mm, stats)
    stats.after_noise_filter = len(work)

    if tolerances.snap_orthogonal:
        _snap_orthogonal(work, angle_tol)
    work = _snap_endpoints(work, tolerances.snap_tol_mm, stats)

    work = _dedup_segments(work)
    stats.after_dedup = len(work)

    work = _merge_axis_aligned_overlaps(work, angle_tol, max(1.0, tolerances.snap_tol_mm))
    stats.after_overlap_merge = len(work)

    work = _simplify_jogs(work, tolerances.jog_max_mm, angle_tol)
    stats.after_jog_simplify = len(work)

    work, candidate_gaps = _bridge_gaps(work, tolerances, key_tol, stats)

    work = _split_at_intersections(work, max(tolerances.snap_tol_mm, 1.0))
    stats.after_split = len(work)

    graph = _build_segment_graph(work, key_tol)
    stats.reduce_iterations = _reduce_collinear(graph, angle_tol, tolerances.max_reduce_iterations)

    chains = _graph_to_chains(graph)
    candidates = _match_candidates(candidate_gaps, chains, angle_tol) if tolerances.detect_candidates else []
    stats.candidates_detected = len(candidates)
    _finalize_stats(stats, chains)

    logger.info(
        "Built %d chains from %d segments (%d%% reduction, %.2f m total, waste %.1f%%, %d candidates)",
        stats.chains_count,
        stats.original_segments,
        stats.reduction_percent,
        stats.total_length_mm / 1000.0,
        stats.waste_pct * 100.0,
        stats.candidates_detected,
    )

    return ChainBuildResult(
        chains=chains,
        candidates=candidates,
        stats=stats,
        preset=tolerances.preset,
    )
