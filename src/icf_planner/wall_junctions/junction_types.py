# File: src/icf_planner/wall_junctions/junction_types.py

"""Data models for chain junction analysis.

Key Types:
    JunctionKind: How chain ends meet (free end, L, T, X, ...)
    ChainEnd: One chain's participation in a junction
    Junction: A classified node with its L/T role assignment
    JunctionGraph: All junctions plus per-chain-end lookups

All measurements are in millimeters; angles are radians.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..utils.geometry import Point2D


# =============================================================================
# Enumerations
# =============================================================================


class JunctionKind(Enum):
    """Classification of a chain junction."""

    FREE_END = "free_end"
    """Chain end connects to nothing."""

    L_CORNER = "l_corner"
    """Two chain ends meeting at roughly 90 degrees."""

    T_INTERSECTION = "t_intersection"
    """A branch ending on a straight main run (three ends, or one end on the
    interior of another chain)."""

    X_CROSSING = "x_crossing"
    """Four or more chain ends at one node."""

    INLINE = "inline"
    """Two collinear ends (a continuation, not a corner)."""

    OBLIQUE = "oblique"
    """Two ends at an angle that is neither square nor straight."""

    MULTI_WAY = "multi_way"
    """Three ends with no collinear pair."""


# =============================================================================
# Data Models
# =============================================================================


@dataclass
class ChainEnd:
    """A chain's participation in a junction.

    Attributes:
        chain_id: Chain identifier.
        end: "start", "end", or "midspan" when the junction lies on the
            chain's interior.
        position: The chain point at the junction.
        outward: Unit direction pointing from the junction into the chain.
        midspan_offset_mm: Distance from the chain start, for midspan ends.
    """
    chain_id: str
    end: str
    position: Point2D
    outward: Point2D
    midspan_offset_mm: Optional[float] = None

    @property
    def is_midspan(self) -> bool:
        return self.end == "midspan"

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "chain_id": self.chain_id,
            "end": self.end,
            "position": [round(self.position[0], 3), round(self.position[1], 3)],
            "outward": [round(self.outward[0], 6), round(self.outward[1], 6)],
        }
        if self.midspan_offset_mm is not None:
            result["midspan_offset_mm"] = round(self.midspan_offset_mm, 3)
        return result


@dataclass
class Junction:
    """A node where one or more chain ends meet.

    Attributes:
        id: Stable identifier derived from the node's rounded position.
        position: Mean position of the member ends.
        kind: Classified junction kind.
        ends: Member chain ends, sorted by chain id.
        primary_chain_id: L corners only; lower chain id in natural order.
        secondary_chain_id: L corners only; the other arm.
        arm_angles: L corners only; outward angles of (primary, secondary).
        main_chain_ids: T junctions only; chains forming the straight run.
        branch_chain_id: T junctions only; the chain ending on the run.
    """
    id: str
    position: Point2D
    kind: JunctionKind
    ends: List[ChainEnd] = field(default_factory=list)
    primary_chain_id: Optional[str] = None
    secondary_chain_id: Optional[str] = None
    arm_angles: Optional[Tuple[float, float]] = None
    main_chain_ids: List[str] = field(default_factory=list)
    branch_chain_id: Optional[str] = None

    @property
    def chain_ids(self) -> List[str]:
        return [e.chain_id for e in self.ends]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "position": [round(self.position[0], 3), round(self.position[1], 3)],
            "kind": self.kind.value,
            "ends": [e.to_dict() for e in self.ends],
            "primary_chain_id": self.primary_chain_id,
            "secondary_chain_id": self.secondary_chain_id,
            "arm_angles": (
                [round(a, 6) for a in self.arm_angles] if self.arm_angles else None
            ),
            "main_chain_ids": list(self.main_chain_ids),
            "branch_chain_id": self.branch_chain_id,
        }


@dataclass
class JunctionGraph:
    """Complete junction analysis.

    Attributes:
        junctions: Junctions sorted by id.
        end_lookup: (chain_id, "start"/"end") -> junction id.
    """
    junctions: List[Junction] = field(default_factory=list)
    end_lookup: Dict[Tuple[str, str], str] = field(default_factory=dict)

    def __post_init__(self):
        self._by_id: Dict[str, Junction] = {j.id: j for j in self.junctions}

    def get(self, junction_id: str) -> Optional[Junction]:
        return self._by_id.get(junction_id)

    def junction_at(self, chain_id: str, end: str) -> Optional[Junction]:
        """Junction at a chain's "start" or "end", if any."""
        junction_id = self.end_lookup.get((chain_id, end))
        return self._by_id.get(junction_id) if junction_id else None

    def junctions_for_chain(self, chain_id: str) -> List[Junction]:
        """All junctions a chain takes part in, including midspan contacts."""
        return [j for j in self.junctions if chain_id in j.chain_ids]

    def of_kind(self, kind: JunctionKind) -> List[Junction]:
        return [j for j in self.junctions if j.kind == kind]

    @property
    def counts_by_kind(self) -> Dict[str, int]:
        counts = {kind.value: 0 for kind in JunctionKind}
        for j in self.junctions:
            counts[j.kind.value] += 1
        return counts

    @property
    def l_count(self) -> int:
        return len(self.of_kind(JunctionKind.L_CORNER))

    @property
    def t_count(self) -> int:
        return len(self.of_kind(JunctionKind.T_INTERSECTION))

    @property
    def x_count(self) -> int:
        return len(self.of_kind(JunctionKind.X_CROSSING))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "junctions": [j.to_dict() for j in self.junctions],
            "counts": self.counts_by_kind,
        }
