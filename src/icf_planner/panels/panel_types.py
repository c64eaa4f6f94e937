# File: src/icf_planner/panels/panel_types.py

"""Data models for panel layout.

Key Types:
    PanelType: Classification of a placed piece
    PanelSide: Label of a chain's left face ("ext" / "int")
    Panel: One placed piece in one row of one chain
    TopoKind / TopoPlacement: Core-sized filler blocks
    DroppedPiece: A sub-threshold piece that was not placed
    LayoutStats / LayoutResult: Everything the layout engine produces

Panel identity:
    ``chainId:row:side:slot:seedKey``. The seed key names the interval the
    panel was laid into (``i{start}``) and the slot its ordinal inside it, so
    ids survive recomputation as long as the interval layout is unchanged.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..chains.chain_types import chain_id_sort_key


# =============================================================================
# Enumerations
# =============================================================================


class PanelType(Enum):
    """Classification of a placed piece."""

    FULL = "full"
    """Uncut standard panel."""

    CUT_SINGLE = "cut_single"
    """Center remainder cut from one panel."""

    CUT_DOUBLE = "cut_double"
    """Center piece wider than one panel: a full panel plus a short remainder."""

    CORNER_CUT = "corner_cut"
    """Stagger-width piece at an L corner or T branch."""

    END_CUT = "end_cut"
    """Stagger-width stub at a free end on odd rows."""

    TOPO = "topo"
    """Filler block forced by a manual override."""


class PanelSide(Enum):
    """Label of a chain's left face."""

    EXT = "ext"
    INT = "int"

    def flipped(self) -> "PanelSide":
        return PanelSide.INT if self == PanelSide.EXT else PanelSide.EXT


class TopoKind(Enum):
    """Reason a topo was placed."""

    JAMB = "jamb"
    LINTEL = "lintel"
    SILL = "sill"
    CORNER = "corner"
    T_JUNCTION = "t_junction"
    X_JUNCTION = "x_junction"

    @property
    def is_horizontal(self) -> bool:
        """Lintels and sills run along the opening; the rest stand one row high."""
        return self in (TopoKind.LINTEL, TopoKind.SILL)


# =============================================================================
# Panel Identity
# =============================================================================


def generate_panel_id(
    chain_id: str,
    row_index: int,
    side: PanelSide,
    slot_index: int,
    seed_key: str,
) -> str:
    """Build a stable panel id ``chainId:row:side:slot:seedKey``."""
    return f"{chain_id}:{row_index}:{side.value}:{slot_index}:{seed_key}"


def parse_panel_id(panel_id: str) -> Optional[Dict[str, Any]]:
    """Split a panel id into its parts.

    Chain ids may themselves contain colons; the last four fields are
    always row, side, slot and seed key.

    Returns:
        Dict with chain_id, row_index, side, slot_index, seed_key, or None
        when the id is malformed.
    """
    parts = panel_id.rsplit(":", 4)
    if len(parts) != 5:
        return None
    chain_id, row, side, slot, seed_key = parts
    try:
        return {
            "chain_id": chain_id,
            "row_index": int(row),
            "side": PanelSide(side),
            "slot_index": int(slot),
            "seed_key": seed_key,
        }
    except ValueError:
        return None


# =============================================================================
# Placements
# =============================================================================


@dataclass(frozen=True)
class Panel:
    """One placed piece.

    Attributes:
        chain_id: Chain the panel belongs to.
        row_index: Row (0 = base).
        start_mm: Start along the chain.
        width_mm: Placed width.
        type: Panel classification.
        side: Label of the chain's left face.
        is_corner_piece: Placed by an L or T corner template.
        slot_index: Ordinal within its interval.
        seed_key: Interval key (``i{start}``).
        is_overridden: A manual override was applied.
        is_locked: The override is locked by the user.
    """
    chain_id: str
    row_index: int
    start_mm: float
    width_mm: float
    type: PanelType
    side: PanelSide = PanelSide.INT
    is_corner_piece: bool = False
    slot_index: int = 0
    seed_key: str = "i0"
    is_overridden: bool = False
    is_locked: bool = False

    @property
    def end_mm(self) -> float:
        return self.start_mm + self.width_mm

    @property
    def panel_id(self) -> str:
        return generate_panel_id(
            self.chain_id, self.row_index, self.side, self.slot_index, self.seed_key
        )

    @property
    def sort_key(self) -> Tuple:
        return (chain_id_sort_key(self.chain_id), self.row_index, self.start_mm)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "panel_id": self.panel_id,
            "chain_id": self.chain_id,
            "row_index": self.row_index,
            "start_mm": round(self.start_mm, 3),
            "width_mm": round(self.width_mm, 3),
            "type": self.type.value,
            "side": self.side.value,
            "is_corner_piece": self.is_corner_piece,
            "slot_index": self.slot_index,
            "seed_key": self.seed_key,
            "is_overridden": self.is_overridden,
            "is_locked": self.is_locked,
        }


@dataclass(frozen=True)
class TopoPlacement:
    """A core-sized filler block.

    Attributes:
        chain_id: Chain the topo sits on.
        row_index: Row.
        position_mm: Start along the chain.
        width_mm: Core thickness for vertical topos, opening width for
            lintels and sills.
        kind: Why it was placed.
        source_id: Junction id or opening id.
        product: Topo product code for the core thickness.
    """
    chain_id: str
    row_index: int
    position_mm: float
    width_mm: float
    kind: TopoKind
    source_id: str
    product: str = "TOPO_150"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain_id": self.chain_id,
            "row_index": self.row_index,
            "position_mm": round(self.position_mm, 3),
            "width_mm": round(self.width_mm, 3),
            "kind": self.kind.value,
            "source_id": self.source_id,
            "product": self.product,
        }


@dataclass(frozen=True)
class DroppedPiece:
    """A piece below the minimum cut, or a chain too short to lay out.

    Not placed; counted as waste.
    """
    chain_id: str
    row_index: int
    start_mm: float
    width_mm: float
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain_id": self.chain_id,
            "row_index": self.row_index,
            "start_mm": round(self.start_mm, 3),
            "width_mm": round(self.width_mm, 3),
            "reason": self.reason,
        }


@dataclass
class LayoutStats:
    """Counters collected during layout."""
    chains_laid_out: int = 0
    chains_skipped: int = 0
    rows: int = 0
    l_junctions: int = 0
    t_junctions: int = 0
    x_junctions: int = 0
    corner_templates_applied: int = 0
    panels_placed: int = 0
    topos_placed: int = 0
    dropped_count: int = 0
    dropped_width_mm: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chains_laid_out": self.chains_laid_out,
            "chains_skipped": self.chains_skipped,
            "rows": self.rows,
            "l_junctions": self.l_junctions,
            "t_junctions": self.t_junctions,
            "x_junctions": self.x_junctions,
            "corner_templates_applied": self.corner_templates_applied,
            "panels_placed": self.panels_placed,
            "topos_placed": self.topos_placed,
            "dropped_count": self.dropped_count,
            "dropped_width_mm": round(self.dropped_width_mm, 3),
        }


@dataclass
class LayoutResult:
    """Panels, topos and dropped pieces, each sorted by (chain, row, start)."""
    panels: List[Panel] = field(default_factory=list)
    topos: List[TopoPlacement] = field(default_factory=list)
    dropped: List[DroppedPiece] = field(default_factory=list)
    stats: LayoutStats = field(default_factory=LayoutStats)

    def panels_for(self, chain_id: str, row_index: int) -> List[Panel]:
        return [p for p in self.panels if p.chain_id == chain_id and p.row_index == row_index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "panels": [p.to_dict() for p in self.panels],
            "topos": [t.to_dict() for t in self.topos],
            "dropped": [d.to_dict() for d in self.dropped],
            "stats": self.stats.to_dict(),
        }
