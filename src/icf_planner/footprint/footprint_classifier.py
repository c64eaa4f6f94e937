# File: src/icf_planner/footprint/footprint_classifier.py

"""Outer footprint detection and perimeter/partition classification.

Steps:
1. Build an undirected graph of chain endpoints (rounded node keys)
2. Polygonize the graph into closed faces; their union is the outer polygon
   (normalized to counter-clockwise). Dangling walls close no face
3. Fall back to the convex hull of the endpoints when no loop exists
4. Classify each chain from two sample points offset from its midpoint

All measurements are in millimeters.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import networkx as nx
from shapely.geometry import LineString, MultiPoint, MultiPolygon, Point, Polygon
from shapely.geometry.polygon import orient
from shapely.ops import polygonize, unary_union

from ..chains.chain_types import Chain
from ..config.planner_config import FootprintConfig
from ..utils.geometry import Point2D, distance, left_normal
from .footprint_types import (
    ChainClassification,
    ChainSideInfo,
    ExteriorSide,
    FootprintResult,
    FootprintStatus,
)

logger = logging.getLogger(__name__)

# Faces with a smaller absolute area are treated as degenerate
MIN_FACE_AREA_MM2 = 1.0

NodeKey = Tuple[int, int]


# =============================================================================
# Graph Construction
# =============================================================================


def _node_key(point: Point2D, tolerance: float) -> NodeKey:
    return (
        int(math.floor(point[0] / tolerance + 0.5)),
        int(math.floor(point[1] / tolerance + 0.5)),
    )


def _build_endpoint_graph(
    chains: Sequence[Chain],
    tolerance: float,
    min_length: float,
) -> nx.Graph:
    """Graph of chain endpoints; node ``pos`` is the mean of its members."""
    sums: Dict[NodeKey, List[float]] = {}
    edges: List[Tuple[NodeKey, NodeKey]] = []

    for chain in chains:
        if chain.length_mm < min_length:
            continue
        ka = _node_key(chain.start, tolerance)
        kb = _node_key(chain.end, tolerance)
        for key, point in ((ka, chain.start), (kb, chain.end)):
            acc = sums.setdefault(key, [0.0, 0.0, 0])
            acc[0] += point[0]
            acc[1] += point[1]
            acc[2] += 1
        if ka != kb:
            edges.append((ka, kb))

    graph = nx.Graph()
    for key in sorted(sums):
        sx, sy, n = sums[key]
        graph.add_node(key, pos=(sx / n, sy / n))
    graph.add_edges_from(edges)
    return graph


# =============================================================================
# Loop Detection
# =============================================================================


def _ring_points(polygon: Polygon) -> List[Point2D]:
    """Counter-clockwise exterior vertices without the closing repeat."""
    ring = orient(polygon, sign=1.0).exterior
    return [(float(x), float(y)) for x, y in ring.coords[:-1]]


def _closed_faces(graph: nx.Graph) -> List[Polygon]:
    """Polygonize the chain graph into its bounded faces (rooms).

    The edge linework is noded with ``unary_union`` first, so walls that
    touch mid-span still close loops. Dangling walls (spurs) and bridges
    between separate loops bound no face and are dropped by ``polygonize``.
    """
    pos = nx.get_node_attributes(graph, "pos")
    lines = [LineString([pos[a], pos[b]]) for a, b in sorted(graph.edges)]
    if not lines:
        return []
    return [
        face for face in polygonize(unary_union(lines))
        if face.area >= MIN_FACE_AREA_MM2
    ]


def _outer_polygon(chains: Sequence[Chain], config: FootprintConfig) -> Tuple[
    FootprintStatus, Optional[Polygon], int, List[List[Point2D]], Dict[str, int]
]:
    graph = _build_endpoint_graph(chains, config.graph_tolerance_mm, config.min_chain_length_mm)
    faces = _closed_faces(graph)
    graph_stats = {"nodes": graph.number_of_nodes(), "edges": graph.number_of_edges()}

    if faces:
        outline = unary_union(faces)
        if isinstance(outline, MultiPolygon):
            outline = max(outline.geoms, key=lambda p: p.area)
        outer = orient(Polygon(outline.exterior), sign=1.0)
        interior = [_ring_points(face) for face in faces]
        return FootprintStatus.OK, outer, len(faces), interior, graph_stats

    points: List[Point2D] = []
    for chain in chains:
        points.append(chain.start)
        points.append(chain.end)
    hull = MultiPoint(points).convex_hull
    logger.warning(
        "No closed wall loop found; using convex hull of %d endpoints as footprint",
        len(points),
    )
    if not isinstance(hull, Polygon) or hull.area < MIN_FACE_AREA_MM2:
        return FootprintStatus.FALLBACK, None, 0, [], graph_stats
    return FootprintStatus.FALLBACK, orient(hull, sign=1.0), 0, [], graph_stats


# =============================================================================
# Side Classification
# =============================================================================


def _classify_chain(
    chain: Chain,
    polygon: Optional[Polygon],
    centroid: Optional[Point2D],
    config: FootprintConfig,
) -> ChainSideInfo:
    """Classify one chain from its two side samples.

    Exactly one sample inside makes a perimeter chain whose outside sample
    marks the exterior. Both inside makes a partition. Otherwise a chain
    lying on the polygon boundary along its whole length is decided by
    which sample is farther from the centroid, provided the distances
    differ by more than the configured cutoff. Anything else, such as a
    dangling wall outside the outline, stays unresolved.
    """
    if chain.length_mm < config.min_chain_length_mm:
        return ChainSideInfo(chain.id, ChainClassification.UNRESOLVED, method="too_short")

    mid = chain.point_at(chain.length_mm / 2.0)
    nx_, ny_ = left_normal(chain.direction)
    off = config.sample_offset_mm
    left = (mid[0] + nx_ * off, mid[1] + ny_ * off)
    right = (mid[0] - nx_ * off, mid[1] - ny_ * off)

    info = ChainSideInfo(
        chain.id,
        ChainClassification.UNRESOLVED,
        left_sample=left,
        right_sample=right,
    )
    if polygon is None:
        info.method = "no_polygon"
        return info

    info.left_inside = polygon.contains(Point(left))
    info.right_inside = polygon.contains(Point(right))
    # A spur touches the outline at one end only, so test both ends and the middle
    info.on_boundary = all(
        polygon.exterior.distance(Point(p)) <= config.boundary_tolerance_mm
        for p in (chain.start, mid, chain.end)
    )

    if info.left_inside != info.right_inside:
        info.classification = ChainClassification.PERIMETER
        info.exterior_side = ExteriorSide.RIGHT if info.left_inside else ExteriorSide.LEFT
        return info

    if info.left_inside and info.right_inside:
        info.classification = ChainClassification.PARTITION
        return info

    if info.on_boundary and centroid is not None:
        info.left_centroid_dist_mm = distance(left, centroid)
        info.right_centroid_dist_mm = distance(right, centroid)
        diff = info.left_centroid_dist_mm - info.right_centroid_dist_mm
        if abs(diff) > config.centroid_cutoff_mm:
            info.classification = ChainClassification.PERIMETER
            info.exterior_side = ExteriorSide.LEFT if diff > 0 else ExteriorSide.RIGHT
            info.method = "centroid"
        else:
            info.method = "ambiguous"
        return info

    info.method = "outside"
    return info


# =============================================================================
# Main Entry Point
# =============================================================================


def classify_footprint(
    chains: Sequence[Chain],
    config: Optional[FootprintConfig] = None,
) -> FootprintResult:
    """Find the building outline and classify every chain against it.

    Unresolved chains are listed in ``unresolved_chain_ids`` and kept in
    ``sides``; they are never dropped.

    Args:
        chains: Chains from the chain builder.
        config: Classifier parameters.

    Returns:
        FootprintResult for all chains.
    """
    config = config or FootprintConfig()
    config.validate()

    if not chains:
        logger.info("No chains provided, returning empty footprint")
        return FootprintResult(status=FootprintStatus.NO_WALLS)

    status, polygon, loops_found, interior, graph_stats = _outer_polygon(chains, config)
    area = polygon.area if polygon is not None else 0.0
    centroid = (polygon.centroid.x, polygon.centroid.y) if polygon is not None else None

    sides: Dict[str, ChainSideInfo] = {}
    for chain in chains:
        sides[chain.id] = _classify_chain(chain, polygon, centroid, config)

    unresolved = [cid for cid, info in sides.items()
                  if info.classification == ChainClassification.UNRESOLVED]
    counts = {kind.value: 0 for kind in ChainClassification}
    for info in sides.values():
        counts[info.classification.value] += 1

    if unresolved:
        logger.warning(
            "%d chain(s) could not be classified against the footprint: %s",
            len(unresolved),
            ", ".join(unresolved),
        )

    logger.info(
        "Footprint %s: area %.2f m2, %d loops, %d perimeter / %d partition / %d unresolved",
        status.value,
        area / 1e6,
        loops_found,
        counts["perimeter"],
        counts["partition"],
        counts["unresolved"],
    )

    stats = dict(graph_stats)
    stats.update({"chains": len(chains), **counts})

    return FootprintResult(
        status=status,
        outer_polygon=_ring_points(polygon) if polygon is not None else [],
        area_mm2=area,
        centroid=centroid,
        loops_found=loops_found,
        interior_loops=interior,
        sides=sides,
        unresolved_chain_ids=unresolved,
        stats=stats,
    )
