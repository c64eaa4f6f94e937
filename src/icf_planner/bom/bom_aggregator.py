# File: src/icf_planner/bom/bom_aggregator.py

"""Bill of materials aggregation.

Counts placed panels, packs cut pieces into purchasable units row by row,
and derives connectors, spacers, stabilization grids and topos from the
purchase quantity and the junction counts.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence

from ..chains.chain_types import Chain
from ..config.icf_constants import TOPO_UNIT_HEIGHT_M
from ..config.planner_config import BomConfig
from ..panels.panel_types import DroppedPiece, Panel, PanelType, TopoPlacement
from ..wall_junctions.junction_types import JunctionGraph
from .bin_packing import first_fit_decreasing
from .bom_types import BOMResult, ConnectorCounts, GridCounts, RowPacking, TopoCounts

logger = logging.getLogger(__name__)

EPSILON_MM = 1e-6


# =============================================================================
# Packing
# =============================================================================


def _pack_row(row_index: int, panels: Sequence[Panel], capacity: float) -> RowPacking:
    """Pack one row's pieces.

    FULL pieces take a unit each. Wider pieces take their whole units and
    leave the remainder for packing. Everything else is packed with
    first-fit-decreasing.
    """
    packing = RowPacking(row_index=row_index)
    pieces: List[float] = []

    for panel in panels:
        width = panel.width_mm
        packing.placed_length_mm += width
        if panel.type == PanelType.FULL and abs(width - capacity) <= EPSILON_MM:
            packing.full_units += 1
        elif width > capacity + EPSILON_MM:
            whole = int(math.floor(width / capacity + EPSILON_MM))
            packing.full_units += whole
            remainder = width - whole * capacity
            if remainder > EPSILON_MM:
                pieces.append(remainder)
        else:
            pieces.append(width)

    packing.bins = first_fit_decreasing(pieces, capacity, EPSILON_MM)
    packing.pieces_packed = len(pieces)
    packing.theoretical_min = int(math.ceil(packing.placed_length_mm / capacity - 1e-9))
    return packing


# =============================================================================
# Ancillary Counts
# =============================================================================


def _connector_counts(
    recommended: int,
    junctions: Optional[JunctionGraph],
    row_count: int,
    config: BomConfig,
) -> ConnectorCounts:
    counts = ConnectorCounts(base=recommended * config.connectors_per_panel)
    if junctions is not None:
        counts.l_corners = junctions.l_count
        counts.t_junctions = junctions.t_count
        counts.x_junctions = junctions.x_count
    per_row = -counts.l_corners + counts.t_junctions + 2 * counts.x_junctions
    counts.adjustment = per_row * row_count
    counts.total = max(0, counts.base + counts.adjustment)
    counts.injection = recommended
    return counts


def _grid_counts(total_length_mm: float, row_count: int, config: BomConfig) -> GridCounts:
    rows = config.grid_settings.rows_for(row_count)
    per_row = int(math.ceil(total_length_mm / 1000.0 / config.grid_unit_length_m - 1e-9))
    per_row = max(0, per_row)
    return GridCounts(rows=rows, per_row=per_row, total=per_row * len(rows))


def _topo_counts(topos: Sequence[TopoPlacement]) -> TopoCounts:
    counts = TopoCounts()
    for topo in topos:
        counts.by_kind[topo.kind.value] = counts.by_kind.get(topo.kind.value, 0) + 1
        counts.by_product[topo.product] = counts.by_product.get(topo.product, 0) + 1
        if topo.kind.is_horizontal:
            counts.horizontal_length_mm += topo.width_mm
        else:
            counts.vertical_units += 1
    counts.meters = counts.vertical_units * TOPO_UNIT_HEIGHT_M + counts.horizontal_length_mm / 1000.0
    return counts


# =============================================================================
# Main Entry Point
# =============================================================================


def calculate_bom(
    panels: Sequence[Panel],
    topos: Sequence[TopoPlacement] = (),
    dropped: Sequence[DroppedPiece] = (),
    chains: Sequence[Chain] = (),
    junctions: Optional[JunctionGraph] = None,
    row_count: int = 1,
    config: Optional[BomConfig] = None,
) -> BOMResult:
    """Aggregate placements into purchase quantities.

    Args:
        panels: Placed panels (after any override patch).
        topos: Topo placements.
        dropped: Pieces dropped from the layout.
        chains: Chains, for total wall length.
        junctions: Junction graph, for connector adjustments.
        row_count: Rows evaluated.
        config: BOM parameters.

    Returns:
        BOMResult. ``recommended_purchase >= theoretical_min`` and
        ``waste_pct >= 0`` always hold.
    """
    config = config or BomConfig()
    config.validate()
    capacity = config.bin_capacity_mm

    by_type: Dict[str, int] = {t.value: 0 for t in PanelType}
    rows: Dict[int, List[Panel]] = {}
    cut_count = 0
    cut_length = 0.0

    for panel in panels:
        by_type[panel.type.value] += 1
        if panel.type == PanelType.TOPO:
            continue
        rows.setdefault(panel.row_index, []).append(panel)
        if panel.type != PanelType.FULL:
            cut_count += 1
            cut_length += panel.width_mm

    packings = [_pack_row(r, rows[r], capacity) for r in sorted(rows)]
    recommended = sum(p.recommended for p in packings)
    theoretical = sum(p.theoretical_min for p in packings)
    waste = max(0.0, 1.0 - theoretical / recommended) if recommended > 0 else 0.0

    total_length = sum(c.length_mm for c in chains)
    expected = int(math.ceil(total_length / capacity - 1e-9)) * row_count if total_length > 0 else 0

    result = BOMResult(
        panels_by_type=by_type,
        recommended_purchase=recommended,
        theoretical_min=theoretical,
        waste_pct=waste,
        expected_panels_approx=expected,
        connectors=_connector_counts(recommended, junctions, row_count, config),
        spacers=recommended * config.webs_per_panel,
        webs_per_panel=config.webs_per_panel,
        grids=_grid_counts(total_length, row_count, config),
        topos=_topo_counts(topos),
        cut_count=cut_count,
        cut_length_mm=cut_length,
        dropped_count=len(dropped),
        dropped_length_mm=sum(d.width_mm for d in dropped),
        rows=packings,
    )

    logger.info(
        "BOM: %d panels to buy (min %d, waste %.1f%%), %d connectors, %d spacers, %d grids, %d topos",
        result.recommended_purchase,
        result.theoretical_min,
        result.waste_pct * 100.0,
        result.connectors.total,
        result.spacers,
        result.grids.total,
        result.topos.total,
    )
    return result
