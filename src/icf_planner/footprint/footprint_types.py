# File: src/icf_planner/footprint/footprint_types.py

"""Data models for footprint detection and chain side classification.

Key Types:
    FootprintStatus: Whether a traced loop, a fallback hull or nothing was used
    ChainClassification: PERIMETER, PARTITION or UNRESOLVED
    ExteriorSide: Which side of a perimeter chain faces outside
    ChainSideInfo: Classification plus the evidence behind it
    FootprintResult: Outer polygon, loops and per-chain classification
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..utils.geometry import Point2D


# =============================================================================
# Enumerations
# =============================================================================


class FootprintStatus(Enum):
    """How the outer polygon was obtained."""

    OK = "ok"
    """Largest closed loop of the chain graph."""

    FALLBACK = "fallback"
    """No closed loop; convex hull of the chain endpoints."""

    NO_WALLS = "no_walls"
    """No chains to work with."""


class ChainClassification(Enum):
    """Role of a chain relative to the building footprint."""

    PERIMETER = "perimeter"
    """Lies on the outer boundary; one side faces outside."""

    PARTITION = "partition"
    """Interior wall; both sides face the inside."""

    UNRESOLVED = "unresolved"
    """Could not be classified; still planned, but side-dependent finishing
    cannot be trusted."""


class ExteriorSide(Enum):
    """Exterior side of a perimeter chain, relative to its start->end direction."""

    LEFT = "left"
    RIGHT = "right"


# =============================================================================
# Data Models
# =============================================================================


@dataclass
class ChainSideInfo:
    """Classification of one chain with its evidence.

    Attributes:
        chain_id: Chain identifier.
        classification: PERIMETER, PARTITION or UNRESOLVED.
        exterior_side: Exterior side for PERIMETER chains, else None.
        method: Which rule decided ("samples", "centroid", "too_short",
            "no_polygon", "ambiguous", "outside").
        left_sample: Sample point on the left of the chain midpoint.
        right_sample: Sample point on the right of the chain midpoint.
        left_inside: Whether the left sample is inside the outer polygon.
        right_inside: Whether the right sample is inside the outer polygon.
        on_boundary: Whether the whole chain lies on the outer polygon boundary.
        left_centroid_dist_mm: Left sample distance to the polygon centroid,
            when the centroid heuristic was evaluated.
        right_centroid_dist_mm: Right sample distance to the polygon centroid.
    """
    chain_id: str
    classification: ChainClassification
    exterior_side: Optional[ExteriorSide] = None
    method: str = "samples"
    left_sample: Optional[Point2D] = None
    right_sample: Optional[Point2D] = None
    left_inside: bool = False
    right_inside: bool = False
    on_boundary: bool = False
    left_centroid_dist_mm: Optional[float] = None
    right_centroid_dist_mm: Optional[float] = None

    @property
    def is_perimeter(self) -> bool:
        return self.classification == ChainClassification.PERIMETER

    @property
    def left_is_exterior(self) -> bool:
        """True when the chain's left face is the building exterior."""
        return self.is_perimeter and self.exterior_side == ExteriorSide.LEFT

    def to_dict(self) -> Dict[str, Any]:
        def _pt(p: Optional[Point2D]) -> Optional[List[float]]:
            return [round(p[0], 3), round(p[1], 3)] if p is not None else None

        def _num(v: Optional[float]) -> Optional[float]:
            return round(v, 3) if v is not None else None

        return {
            "chain_id": self.chain_id,
            "classification": self.classification.value,
            "exterior_side": self.exterior_side.value if self.exterior_side else None,
            "method": self.method,
            "left_sample": _pt(self.left_sample),
            "right_sample": _pt(self.right_sample),
            "left_inside": self.left_inside,
            "right_inside": self.right_inside,
            "on_boundary": self.on_boundary,
            "left_centroid_dist_mm": _num(self.left_centroid_dist_mm),
            "right_centroid_dist_mm": _num(self.right_centroid_dist_mm),
        }


@dataclass
class FootprintResult:
    """Outer footprint and per-chain classification.

    Attributes:
        status: OK, FALLBACK or NO_WALLS.
        outer_polygon: Counter-clockwise outer boundary (empty if none).
        area_mm2: Outer polygon area.
        centroid: Outer polygon centroid.
        loops_found: Number of closed faces (rooms) formed by the chains.
        interior_loops: Bounded faces (rooms) of the chain graph, CCW.
        sides: Per-chain classification keyed by chain id.
        unresolved_chain_ids: Chains that could not be classified.
        stats: Counts for diagnostics.
    """
    status: FootprintStatus
    outer_polygon: List[Point2D] = field(default_factory=list)
    area_mm2: float = 0.0
    centroid: Optional[Point2D] = None
    loops_found: int = 0
    interior_loops: List[List[Point2D]] = field(default_factory=list)
    sides: Dict[str, ChainSideInfo] = field(default_factory=dict)
    unresolved_chain_ids: List[str] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    @property
    def used_fallback(self) -> bool:
        return self.status == FootprintStatus.FALLBACK

    def side_info(self, chain_id: str) -> Optional[ChainSideInfo]:
        return self.sides.get(chain_id)

    def classification_of(self, chain_id: str) -> ChainClassification:
        info = self.sides.get(chain_id)
        return info.classification if info else ChainClassification.UNRESOLVED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "used_fallback": self.used_fallback,
            "outer_polygon": [[round(x, 3), round(y, 3)] for x, y in self.outer_polygon],
            "area_mm2": round(self.area_mm2, 3),
            "centroid": (
                [round(self.centroid[0], 3), round(self.centroid[1], 3)]
                if self.centroid else None
            ),
            "loops_found": self.loops_found,
            "interior_loops": [
                [[round(x, 3), round(y, 3)] for x, y in loop] for loop in self.interior_loops
            ],
            "sides": {cid: info.to_dict() for cid, info in self.sides.items()},
            "unresolved_chain_ids": list(self.unresolved_chain_ids),
            "stats": dict(self.stats),
        }
