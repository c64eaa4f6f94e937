# File: src/icf_planner/bom/bom_types.py

"""Data models for the bill of materials."""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class PackedBin:
    """One purchased unit and the cut pieces taken from it."""
    capacity_mm: float
    pieces_mm: List[float] = field(default_factory=list)

    @property
    def used_mm(self) -> float:
        return sum(self.pieces_mm)

    @property
    def remaining_mm(self) -> float:
        return self.capacity_mm - self.used_mm

    def to_dict(self) -> Dict[str, Any]:
        return {
            "capacity_mm": self.capacity_mm,
            "pieces_mm": [round(p, 3) for p in self.pieces_mm],
            "remaining_mm": round(self.remaining_mm, 3),
        }


@dataclass
class RowPacking:
    """Packing diagnostics for one row.

    Attributes:
        row_index: Row.
        full_units: Units consumed whole (FULL panels and the full part of
            wider pieces).
        bins: Units opened by first-fit-decreasing for cut pieces.
        pieces_packed: Number of cut pieces packed.
        placed_length_mm: Sum of placed widths in the row.
        theoretical_min: ceil(placed length / unit length).
        recommended: full_units + number of bins.
    """
    row_index: int
    full_units: int = 0
    bins: List[PackedBin] = field(default_factory=list)
    pieces_packed: int = 0
    placed_length_mm: float = 0.0
    theoretical_min: int = 0

    @property
    def recommended(self) -> int:
        return self.full_units + len(self.bins)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row_index": self.row_index,
            "full_units": self.full_units,
            "bins": len(self.bins),
            "pieces_packed": self.pieces_packed,
            "placed_length_mm": round(self.placed_length_mm, 3),
            "theoretical_min": self.theoretical_min,
            "recommended": self.recommended,
        }


@dataclass
class ConnectorCounts:
    """Connector (tarugo) counts.

    ``adjustment`` is ``(-L + T + 2X) * rows``; ``total`` never goes
    below zero. Injection connectors are one per purchased panel.
    """
    base: int = 0
    l_corners: int = 0
    t_junctions: int = 0
    x_junctions: int = 0
    adjustment: int = 0
    total: int = 0
    injection: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "base": self.base,
            "l_corners": self.l_corners,
            "t_junctions": self.t_junctions,
            "x_junctions": self.x_junctions,
            "adjustment": self.adjustment,
            "total": self.total,
            "injection": self.injection,
        }


@dataclass
class GridCounts:
    """Stabilization grid counts."""
    rows: List[int] = field(default_factory=list)
    per_row: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"rows": list(self.rows), "per_row": self.per_row, "total": self.total}


@dataclass
class TopoCounts:
    """Topo counts by reason and product, with total meters."""
    by_kind: Dict[str, int] = field(default_factory=dict)
    by_product: Dict[str, int] = field(default_factory=dict)
    vertical_units: int = 0
    horizontal_length_mm: float = 0.0
    meters: float = 0.0

    @property
    def total(self) -> int:
        return sum(self.by_kind.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "by_kind": dict(self.by_kind),
            "by_product": dict(self.by_product),
            "total": self.total,
            "vertical_units": self.vertical_units,
            "horizontal_length_mm": round(self.horizontal_length_mm, 3),
            "meters": round(self.meters, 3),
        }


@dataclass
class BOMResult:
    """Purchase quantities and diagnostics.

    Attributes:
        panels_by_type: Placed panel count per panel type.
        recommended_purchase: Units to buy after bin packing.
        theoretical_min: Lower bound from placed length per row.
        waste_pct: 1 - theoretical_min / recommended_purchase (0 if nothing
            is purchased).
        expected_panels_approx: ceil(total chain length / unit) * rows.
        connectors: Connector counts.
        spacers: Spacers (webs) for the purchased panels.
        webs_per_panel: Spacers per panel for the chosen rebar spacing.
        grids: Stabilization grid counts.
        topos: Topo counts.
        cut_count: Number of placed non-FULL pieces.
        cut_length_mm: Total width of placed non-FULL pieces.
        dropped_count: Pieces dropped from the layout (short cuts and chains).
        dropped_length_mm: Their total width (waste).
        rows: Per-row packing diagnostics.
    """
    panels_by_type: Dict[str, int] = field(default_factory=dict)
    recommended_purchase: int = 0
    theoretical_min: int = 0
    waste_pct: float = 0.0
    expected_panels_approx: int = 0
    connectors: ConnectorCounts = field(default_factory=ConnectorCounts)
    spacers: int = 0
    webs_per_panel: int = 0
    grids: GridCounts = field(default_factory=GridCounts)
    topos: TopoCounts = field(default_factory=TopoCounts)
    cut_count: int = 0
    cut_length_mm: float = 0.0
    dropped_count: int = 0
    dropped_length_mm: float = 0.0
    rows: List[RowPacking] = field(default_factory=list)

    @property
    def total_panels_placed(self) -> int:
        return sum(self.panels_by_type.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "panels_by_type": dict(self.panels_by_type),
            "total_panels_placed": self.total_panels_placed,
            "recommended_purchase": self.recommended_purchase,
            "theoretical_min": self.theoretical_min,
            "waste_pct": round(self.waste_pct, 6),
            "expected_panels_approx": self.expected_panels_approx,
            "connectors": self.connectors.to_dict(),
            "spacers": self.spacers,
            "webs_per_panel": self.webs_per_panel,
            "grids": self.grids.to_dict(),
            "topos": self.topos.to_dict(),
            "cut_count": self.cut_count,
            "cut_length_mm": round(self.cut_length_mm, 3),
            "dropped_count": self.dropped_count,
            "dropped_length_mm": round(self.dropped_length_mm, 3),
            "rows": [r.to_dict() for r in self.rows],
        }
