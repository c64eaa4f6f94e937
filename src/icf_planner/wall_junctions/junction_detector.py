# File: src/icf_planner/wall_junctions/junction_detector.py

"""Chain junction detection and classification.

Builds the junction graph by:
1. Bucketing chain endpoints on a rounding grid
2. Merging neighbouring buckets whose representatives are within tolerance
3. Matching lone endpoints to chain interiors (unsplit T-intersections)
4. Classifying each node by end count and arm angles
5. Assigning deterministic L primary/secondary and T main/branch roles

All measurements are in millimeters; angles are radians.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from ..chains.chain_types import Chain, chain_id_sort_key
from ..config.planner_config import JunctionConfig
from ..utils.geometry import (
    Point2D,
    angle_between_directions,
    distance,
    point_to_segment_distance,
)
from .junction_types import ChainEnd, Junction, JunctionGraph, JunctionKind

logger = logging.getLogger(__name__)

BucketKey = Tuple[int, int]


# =============================================================================
# Endpoint Extraction
# =============================================================================


def _outward_direction(chain: Chain, end: str) -> Point2D:
    """Unit direction pointing from the chain end into the chain."""
    dx, dy = chain.direction
    if end == "start":
        return (dx, dy)
    return (-dx, -dy)


def _extract_ends(chains: Sequence[Chain]) -> List[ChainEnd]:
    ends: List[ChainEnd] = []
    for chain in chains:
        if chain.length_mm <= 0:
            continue
        for which in ("start", "end"):
            ends.append(ChainEnd(
                chain_id=chain.id,
                end=which,
                position=chain.endpoint(which),
                outward=_outward_direction(chain, which),
            ))
    return ends


def _bucket_key(point: Point2D, tolerance: float) -> BucketKey:
    return (
        int(math.floor(point[0] / tolerance + 0.5)),
        int(math.floor(point[1] / tolerance + 0.5)),
    )


def _mean_position(ends: Sequence[ChainEnd]) -> Point2D:
    return (
        sum(e.position[0] for e in ends) / len(ends),
        sum(e.position[1] for e in ends) / len(ends),
    )


# =============================================================================
# Grouping / Union-Find
# =============================================================================


def _group_ends(
    ends: List[ChainEnd],
    tolerance: float,
) -> Dict[BucketKey, List[ChainEnd]]:
    """Group chain ends into nodes.

    Ends are bucketed by rounded coordinates first. Neighbouring buckets
    whose mean positions are within ``tolerance`` are then merged with
    union-find, so two ends on either side of a grid line still meet.

    Returns:
        Mapping of the smallest bucket key in each group to its ends.
    """
    buckets: Dict[BucketKey, List[ChainEnd]] = {}
    for e in ends:
        buckets.setdefault(_bucket_key(e.position, tolerance), []).append(e)

    parent: Dict[BucketKey, BucketKey] = {k: k for k in buckets}

    def find(k: BucketKey) -> BucketKey:
        while parent[k] != k:
            parent[k] = parent[parent[k]]  # Path compression
            k = parent[k]
        return k

    def union(a: BucketKey, b: BucketKey) -> None:
        ra, rb = find(a), find(b)
        if ra != rb:
            # Smaller key becomes the root so group keys are order-independent
            if rb < ra:
                ra, rb = rb, ra
            parent[rb] = ra

    representatives = {k: _mean_position(v) for k, v in buckets.items()}
    for key in sorted(buckets):
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                other = (key[0] + dx, key[1] + dy)
                if other == key or other not in buckets:
                    continue
                if distance(representatives[key], representatives[other]) <= tolerance:
                    union(key, other)

    groups: Dict[BucketKey, List[ChainEnd]] = {}
    for key in sorted(buckets):
        groups.setdefault(find(key), []).extend(buckets[key])
    return groups


# =============================================================================
# T-Intersection Detection
# =============================================================================


def _detect_midspan_contacts(
    groups: Dict[BucketKey, List[ChainEnd]],
    chains: Sequence[Chain],
    tolerance: float,
) -> int:
    """Attach lone endpoints that touch another chain's interior.

    For each group holding a single end, find the nearest other chain whose
    interior (farther than ``tolerance`` from both its ends) passes within
    ``tolerance`` of the endpoint. A midspan end for that chain is added to
    the group, which then classifies as a T-intersection.

    Returns:
        Number of midspan contacts found.
    """
    found = 0
    for key in sorted(groups):
        members = groups[key]
        if len(members) != 1:
            continue
        ep = members[0]

        best: Optional[Tuple[float, Chain, float]] = None
        for chain in chains:
            if chain.id == ep.chain_id or chain.length_mm <= 2 * tolerance:
                continue
            dist, t = point_to_segment_distance(ep.position, chain.start, chain.end)
            along = t * chain.length_mm
            if dist > tolerance or along <= tolerance or along >= chain.length_mm - tolerance:
                continue
            if best is None or dist < best[0]:
                best = (dist, chain, along)

        if best is None:
            continue

        dist, chain, along = best
        logger.debug(
            "T-intersection: %s/%s meets %s at %.1f mm (dist=%.2f)",
            ep.chain_id, ep.end, chain.id, along, dist,
        )
        members.append(ChainEnd(
            chain_id=chain.id,
            end="midspan",
            position=chain.point_at(along),
            outward=chain.direction,
            midspan_offset_mm=along,
        ))
        found += 1
    return found


# =============================================================================
# Junction Classification
# =============================================================================


def _classify(
    ends: List[ChainEnd],
    config: JunctionConfig,
) -> Tuple[JunctionKind, Optional[Tuple[int, int]]]:
    """Classify a node by its end count and outward angles.

    Returns:
        (kind, main pair indices for T-intersections else None)
    """
    n = len(ends)
    if n <= 1:
        return JunctionKind.FREE_END, None

    midspan = [i for i, e in enumerate(ends) if e.is_midspan]
    if n == 2:
        if midspan:
            return JunctionKind.T_INTERSECTION, (midspan[0], midspan[0])
        angle = angle_between_directions(ends[0].outward, ends[1].outward)
        if abs(angle - math.pi / 2) <= config.l_angle_tolerance_rad:
            return JunctionKind.L_CORNER, None
        if angle >= math.radians(config.inline_angle_deg):
            return JunctionKind.INLINE, None
        return JunctionKind.OBLIQUE, None

    if n == 3:
        best_pair: Optional[Tuple[int, int]] = None
        best_angle = -1.0
        for i in range(n):
            for j in range(i + 1, n):
                angle = angle_between_directions(ends[i].outward, ends[j].outward)
                if angle > best_angle:
                    best_angle = angle
                    best_pair = (i, j)
        if best_pair is not None and best_angle >= math.pi - config.collinear_tolerance_rad:
            return JunctionKind.T_INTERSECTION, best_pair
        return JunctionKind.MULTI_WAY, None

    return JunctionKind.X_CROSSING, None


def _make_junction(ends: List[ChainEnd], config: JunctionConfig) -> Junction:
    ends = sorted(ends, key=lambda e: (chain_id_sort_key(e.chain_id), e.end))
    position = _mean_position(ends)
    junction = Junction(
        id=f"node_{int(round(position[0]))}_{int(round(position[1]))}",
        position=position,
        kind=JunctionKind.FREE_END,
        ends=ends,
    )

    kind, main_pair = _classify(ends, config)
    junction.kind = kind

    if kind == JunctionKind.L_CORNER:
        # Primary is a pure function of the two ids
        primary, secondary = ends[0], ends[1]
        junction.primary_chain_id = primary.chain_id
        junction.secondary_chain_id = secondary.chain_id
        junction.arm_angles = (
            math.atan2(primary.outward[1], primary.outward[0]),
            math.atan2(secondary.outward[1], secondary.outward[0]),
        )
    elif kind == JunctionKind.T_INTERSECTION and main_pair is not None:
        main_idx = set(main_pair)
        main = sorted({ends[i].chain_id for i in main_idx}, key=chain_id_sort_key)
        branches = [e for i, e in enumerate(ends) if i not in main_idx]
        junction.main_chain_ids = main
        junction.branch_chain_id = branches[0].chain_id if branches else None

    return junction


# =============================================================================
# Main Entry Point
# =============================================================================


def detect_junctions(
    chains: Sequence[Chain],
    config: Optional[JunctionConfig] = None,
) -> JunctionGraph:
    """Find and classify every point where chain ends meet.

    Args:
        chains: Chains from the chain builder.
        config: Detection parameters (node tolerance 15 mm by default).

    Returns:
        JunctionGraph with junctions sorted by id and a lookup from
        (chain_id, end) to the junction at that end.
    """
    config = config or JunctionConfig()
    config.validate()

    if not chains:
        logger.info("No chains provided, returning empty junction graph")
        return JunctionGraph()

    logger.info(
        "Detecting junctions for %d chains (node_tol=%.1f, midspan=%s)",
        len(chains),
        config.node_tolerance_mm,
        config.detect_midspan,
    )

    ends = _extract_ends(chains)
    groups = _group_ends(ends, config.node_tolerance_mm)
    logger.debug("Grouped %d chain ends into %d nodes", len(ends), len(groups))

    if config.detect_midspan:
        midspan = _detect_midspan_contacts(groups, chains, config.node_tolerance_mm)
        logger.debug("Found %d midspan T contacts", midspan)

    junctions = [_make_junction(members, config) for members in groups.values()]
    junctions.sort(key=lambda j: chain_id_sort_key(j.id))

    end_lookup: Dict[Tuple[str, str], str] = {}
    for junction in junctions:
        for e in junction.ends:
            if e.is_midspan:
                continue
            if distance(e.position, junction.position) > config.end_match_tolerance_mm:
                logger.debug(
                    "End %s/%s is %.1f mm from node %s; not matched for layout",
                    e.chain_id, e.end, distance(e.position, junction.position), junction.id,
                )
                continue
            end_lookup[(e.chain_id, e.end)] = junction.id

    graph = JunctionGraph(junctions=junctions, end_lookup=end_lookup)
    counts = graph.counts_by_kind
    logger.info(
        "Junction graph: %d nodes (L=%d, T=%d, X=%d, free=%d, other=%d)",
        len(junctions),
        counts["l_corner"],
        counts["t_intersection"],
        counts["x_crossing"],
        counts["free_end"],
        counts["inline"] + counts["oblique"] + counts["multi_way"],
    )
    return graph
