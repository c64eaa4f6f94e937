# File: src/icf_planner/panels/layout_engine.py

"""Panel layout for every chain, row and fillable interval.

Each interval is laid out as:
    [left reservation] [FULL ...] [center cut] [FULL ...] [right reservation]

Reservations come from the junction at each chain end:
    - L corner: even rows give the primary arm a FULL panel and the secondary
      arm a stagger-width CORNER_CUT; odd rows swap the roles.
    - T branch: CORNER_CUT on even rows, FULL on odd rows.
    - Anything else: odd rows start with a stagger-width END_CUT on the left.

Pieces narrower than the minimum cut are not placed; they are returned as
DroppedPiece entries so placed plus dropped widths always add up to the
interval length. Topos (junction and opening fillers) are emitted alongside
and never take part in the stagger logic.

The engine is pure: it has no knowledge of manual overrides, which are a
separate patch stage (see panel_overrides).
"""

import logging
import math
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..chains.chain_types import Chain, chain_id_sort_key
from ..config.icf_constants import CornerMode
from ..config.planner_config import LayoutConfig
from ..errors import LayoutInvariantError
from ..footprint.footprint_types import FootprintResult
from ..openings.interval_calculator import (
    IntervalTable,
    intervals_for_chains,
    opening_topo_rows,
)
from ..openings.opening_types import Interval, Opening
from ..wall_junctions.junction_types import Junction, JunctionGraph, JunctionKind
from .panel_types import (
    DroppedPiece,
    LayoutResult,
    LayoutStats,
    Panel,
    PanelSide,
    PanelType,
    TopoKind,
    TopoPlacement,
)

logger = logging.getLogger(__name__)

# Length comparisons below this are treated as equal
EPSILON_MM = 1e-6

# (width, type, is_corner_piece, drop reason)
_Piece = Tuple[float, PanelType, bool, str]


class EndRole(Enum):
    """What a chain end contributes to the corner template."""

    NONE = "none"
    L_PRIMARY = "l_primary"
    L_SECONDARY = "l_secondary"
    T_BRANCH = "t_branch"


# =============================================================================
# Roles and Sides
# =============================================================================


def end_role(chain_id: str, junction: Optional[Junction]) -> EndRole:
    """Role of a chain end at its junction."""
    if junction is None:
        return EndRole.NONE
    if junction.kind == JunctionKind.L_CORNER:
        if junction.primary_chain_id == chain_id:
            return EndRole.L_PRIMARY
        if junction.secondary_chain_id == chain_id:
            return EndRole.L_SECONDARY
    if junction.kind == JunctionKind.T_INTERSECTION and junction.branch_chain_id == chain_id:
        return EndRole.T_BRANCH
    return EndRole.NONE


def chain_side(
    chain_id: str,
    footprint: Optional[FootprintResult],
    flipped_chain_ids: Optional[Set[str]] = None,
) -> PanelSide:
    """Label of the chain's left face; the flip set swaps it."""
    side = PanelSide.INT
    if footprint is not None:
        info = footprint.side_info(chain_id)
        if info is not None and info.left_is_exterior:
            side = PanelSide.EXT
    if flipped_chain_ids and chain_id in flipped_chain_ids:
        side = side.flipped()
    return side


# =============================================================================
# Interval Layout
# =============================================================================


def _check_width(width: float, chain_id: str, row_index: int, what: str) -> None:
    if not math.isfinite(width) or width < -EPSILON_MM:
        raise LayoutInvariantError(
            f"Invalid {what} width {width!r} on chain {chain_id} row {row_index}",
            extra={"chain_id": chain_id, "row_index": row_index, "width_mm": width},
        )


def _reservation(
    role: EndRole,
    row_index: int,
    at_left: bool,
    config: LayoutConfig,
) -> Optional[_Piece]:
    even = row_index % 2 == 0
    full = (config.panel_width_mm, PanelType.FULL, True, "reservation_below_min_cut")
    corner = (config.stagger_offset_mm, PanelType.CORNER_CUT, True, "reservation_below_min_cut")

    if role == EndRole.L_PRIMARY:
        return full if even else corner
    if role in (EndRole.L_SECONDARY, EndRole.T_BRANCH):
        return corner if even else full
    if at_left and not even:
        return (config.stagger_offset_mm, PanelType.END_CUT, False, "stagger_below_min_cut")
    return None


def _clip(piece: _Piece, available: float) -> _Piece:
    width, ptype, corner, reason = piece
    if width <= available + EPSILON_MM:
        return piece
    width = max(0.0, available)
    if ptype == PanelType.FULL:
        ptype = PanelType.CORNER_CUT
    return (width, ptype, corner, reason)


def _middle_fill(span: float, config: LayoutConfig) -> List[_Piece]:
    """FULL panels from both ends with the remainder at the center.

    A remainder below ``min_center_cut_mm`` is joined with one full panel
    into a CUT_DOUBLE piece when a full panel is available.
    """
    width = config.panel_width_mm
    span = max(0.0, span)
    k = int(math.floor((span + EPSILON_MM) / width))
    r = span - k * width
    if r < EPSILON_MM:
        r = 0.0

    full = (width, PanelType.FULL, False, "below_min_cut")
    if r == 0.0:
        return [full] * k

    if r >= config.min_center_cut_mm - EPSILON_MM:
        center = (r, PanelType.CUT_SINGLE, False, "below_min_cut")
    elif k >= 1:
        k -= 1
        center = (width + r, PanelType.CUT_DOUBLE, False, "below_min_cut")
    else:
        center = (r, PanelType.CUT_SINGLE, False, "below_min_cut")

    left_count = k // 2
    return [full] * left_count + [center] + [full] * (k - left_count)


def layout_interval(
    chain_id: str,
    row_index: int,
    interval: Interval,
    chain_length_mm: float,
    left_role: EndRole = EndRole.NONE,
    right_role: EndRole = EndRole.NONE,
    config: Optional[LayoutConfig] = None,
    side: PanelSide = PanelSide.INT,
) -> Tuple[List[Panel], List[DroppedPiece]]:
    """Lay out one fillable interval.

    Left reservations apply only to intervals starting at the chain start,
    right reservations only to intervals ending at the chain end.

    Args:
        chain_id: Chain identifier.
        row_index: Row (parity drives the corner templates).
        interval: Span to fill.
        chain_length_mm: Full chain length.
        left_role: Role of the chain start at its junction.
        right_role: Role of the chain end at its junction.
        config: Layout parameters.
        side: Label of the chain's left face.

    Returns:
        (panels, dropped) in left-to-right order.

    Raises:
        LayoutInvariantError: If a width is negative or not finite, or the
            placed and dropped widths do not add up to the interval length.
    """
    config = config or LayoutConfig()
    length = interval.length_mm
    _check_width(length, chain_id, row_index, "interval")
    if not math.isfinite(interval.start_mm):
        raise LayoutInvariantError(
            f"Invalid interval start {interval.start_mm!r} on chain {chain_id} row {row_index}"
        )
    if length <= EPSILON_MM:
        return [], []

    remaining = length
    left: Optional[_Piece] = None
    right: Optional[_Piece] = None

    if interval.start_mm <= EPSILON_MM:
        left = _reservation(left_role, row_index, True, config)
        if left is not None:
            left = _clip(left, remaining)
            remaining -= left[0]

    if abs(interval.end_mm - chain_length_mm) <= EPSILON_MM:
        right = _reservation(right_role, row_index, False, config)
        if right is not None:
            right = _clip(right, remaining)
            remaining -= right[0]

    sequence: List[_Piece] = []
    if left is not None:
        sequence.append(left)
    sequence.extend(_middle_fill(remaining, config))
    if right is not None:
        sequence.append(right)

    seed_key = f"i{int(round(interval.start_mm))}"
    panels: List[Panel] = []
    dropped: List[DroppedPiece] = []
    position = interval.start_mm
    slot = 0

    for width, ptype, corner, reason in sequence:
        _check_width(width, chain_id, row_index, ptype.value)
        if width <= EPSILON_MM:
            continue
        if width < config.min_cut_mm - EPSILON_MM:
            dropped.append(DroppedPiece(chain_id, row_index, position, width, reason))
        else:
            panels.append(Panel(
                chain_id=chain_id,
                row_index=row_index,
                start_mm=position,
                width_mm=width,
                type=ptype,
                side=side,
                is_corner_piece=corner,
                slot_index=slot,
                seed_key=seed_key,
            ))
            slot += 1
        position += width

    accounted = sum(p.width_mm for p in panels) + sum(d.width_mm for d in dropped)
    if abs(accounted - length) > 1e-6 * max(1.0, length):
        raise LayoutInvariantError(
            f"Interval accounting mismatch on chain {chain_id} row {row_index}: "
            f"placed+dropped={accounted:.6f}, interval={length:.6f}",
            extra={"chain_id": chain_id, "row_index": row_index},
        )

    return panels, dropped


# =============================================================================
# Topos
# =============================================================================


def _end_position(chain: Chain, end: str, width: float) -> float:
    """Topo start so the block sits inside the chain at the given end."""
    if end == "start":
        return 0.0
    return max(0.0, chain.length_mm - width)


def _junction_topos(
    junctions: JunctionGraph,
    chains: Dict[str, Chain],
    row_count: int,
    config: LayoutConfig,
) -> List[TopoPlacement]:
    width = config.core_thickness_mm
    product = config.core_thickness.topo_product
    odd_rows = [r for r in range(row_count) if r % 2 == 1]
    topos: List[TopoPlacement] = []

    for junction in junctions.junctions:
        target: Optional[Tuple[str, TopoKind]] = None
        if junction.kind == JunctionKind.T_INTERSECTION and junction.branch_chain_id:
            target = (junction.branch_chain_id, TopoKind.T_JUNCTION)
        elif junction.kind == JunctionKind.X_CROSSING:
            candidates = sorted(
                {e.chain_id for e in junction.ends if not e.is_midspan and e.chain_id in chains},
                key=chain_id_sort_key,
            )
            if candidates:
                target = (candidates[0], TopoKind.X_JUNCTION)
        elif (
            junction.kind == JunctionKind.L_CORNER
            and config.corner_mode == CornerMode.TOPO
            and junction.primary_chain_id
        ):
            target = (junction.primary_chain_id, TopoKind.CORNER)

        if target is None or target[0] not in chains:
            continue

        chain_id, kind = target
        end = next(
            (e.end for e in junction.ends if e.chain_id == chain_id and not e.is_midspan),
            None,
        )
        if end is None:
            continue
        position = _end_position(chains[chain_id], end, width)
        for row in odd_rows:
            topos.append(TopoPlacement(chain_id, row, position, width, kind, junction.id, product))

    return topos


def _opening_topos(
    openings: Iterable[Opening],
    chains: Dict[str, Chain],
    row_count: int,
    config: LayoutConfig,
) -> List[TopoPlacement]:
    width = config.core_thickness_mm
    product = config.core_thickness.topo_product
    topos: List[TopoPlacement] = []

    for opening in openings:
        if opening.chain_id not in chains:
            continue
        jamb_rows, lintel_row, sill_row = opening_topo_rows(
            opening, row_count, config.panel_height_mm
        )
        right_jamb = max(opening.offset_mm, opening.end_mm - width)
        for row in jamb_rows:
            topos.append(TopoPlacement(
                opening.chain_id, row, opening.offset_mm, width, TopoKind.JAMB, opening.id, product
            ))
            topos.append(TopoPlacement(
                opening.chain_id, row, right_jamb, width, TopoKind.JAMB, opening.id, product
            ))
        if lintel_row is not None:
            topos.append(TopoPlacement(
                opening.chain_id, lintel_row, opening.offset_mm, opening.width_mm,
                TopoKind.LINTEL, opening.id, product,
            ))
        if sill_row is not None:
            topos.append(TopoPlacement(
                opening.chain_id, sill_row, opening.offset_mm, opening.width_mm,
                TopoKind.SILL, opening.id, product,
            ))

    return topos


# =============================================================================
# Main Entry Point
# =============================================================================


def generate_panel_layout(
    chains: Sequence[Chain],
    junctions: Optional[JunctionGraph] = None,
    intervals: Optional[IntervalTable] = None,
    config: Optional[LayoutConfig] = None,
    footprint: Optional[FootprintResult] = None,
    openings: Optional[Sequence[Opening]] = None,
    flipped_chain_ids: Optional[Set[str]] = None,
) -> LayoutResult:
    """Lay out panels and topos for all chains and visible rows.

    Args:
        chains: Chains to lay out.
        junctions: Junction graph (corner templates and junction topos).
        intervals: Fillable intervals per chain and row; computed from
            ``openings`` when omitted. Rows missing from the table are
            treated as unobstructed.
        config: Layout parameters (rows, core thickness, corner mode).
        footprint: Chain classification, for the panel side label.
        openings: Resolved openings, for jamb/lintel/sill topos.
        flipped_chain_ids: Chains whose side label is forced to the
            opposite face.

    Returns:
        LayoutResult with panels, topos and dropped pieces sorted by
        (chain, row, position).
    """
    config = config or LayoutConfig()
    config.validate()
    junctions = junctions or JunctionGraph()
    openings = list(openings or [])
    row_count = config.row_count

    if intervals is None:
        intervals = intervals_for_chains(chains, openings, row_count, config.panel_height_mm)

    stats = LayoutStats(
        rows=row_count,
        l_junctions=junctions.l_count,
        t_junctions=junctions.t_count,
        x_junctions=junctions.x_count,
    )
    panels: List[Panel] = []
    dropped: List[DroppedPiece] = []
    laid_out: Dict[str, Chain] = {}

    for chain in sorted(chains, key=lambda c: chain_id_sort_key(c.id)):
        _check_width(chain.length_mm, chain.id, 0, "chain")
        if chain.length_mm < config.min_chain_length_mm:
            logger.debug("Skipping chain %s (%.1f mm)", chain.id, chain.length_mm)
            stats.chains_skipped += 1
            dropped.extend(
                DroppedPiece(chain.id, row, 0.0, chain.length_mm, "chain_below_min_length")
                for row in range(row_count)
            )
            continue

        laid_out[chain.id] = chain
        side = chain_side(chain.id, footprint, flipped_chain_ids)
        left_role = end_role(chain.id, junctions.junction_at(chain.id, "start"))
        right_role = end_role(chain.id, junctions.junction_at(chain.id, "end"))
        rows = intervals.get(chain.id, [])

        for row in range(row_count):
            row_intervals = rows[row] if row < len(rows) else [Interval(0.0, chain.length_mm)]
            for interval in row_intervals:
                placed, lost = layout_interval(
                    chain.id, row, interval, chain.length_mm,
                    left_role, right_role, config, side,
                )
                panels.extend(placed)
                dropped.extend(lost)

        logger.debug(
            "Chain %s: %.1f mm, side=%s, roles=(%s, %s)",
            chain.id, chain.length_mm, side.value, left_role.value, right_role.value,
        )

    topos = _junction_topos(junctions, laid_out, row_count, config)
    topos.extend(_opening_topos(openings, laid_out, row_count, config))

    panels.sort(key=lambda p: p.sort_key)
    topos.sort(key=lambda t: (chain_id_sort_key(t.chain_id), t.row_index, t.position_mm, t.kind.value))
    dropped.sort(key=lambda d: (chain_id_sort_key(d.chain_id), d.row_index, d.start_mm))

    stats.chains_laid_out = len(laid_out)
    stats.panels_placed = len(panels)
    stats.corner_templates_applied = sum(1 for p in panels if p.is_corner_piece)
    stats.topos_placed = len(topos)
    stats.dropped_count = len(dropped)
    stats.dropped_width_mm = sum(d.width_mm for d in dropped)

    if dropped:
        logger.warning(
            "%d piece(s) dropped as waste (%.1f mm); minimum cut is %.0f mm",
            stats.dropped_count, stats.dropped_width_mm, config.min_cut_mm,
        )
    logger.info(
        "Layout: %d chains x %d rows -> %d panels, %d topos (%d skipped chains)",
        stats.chains_laid_out, row_count, stats.panels_placed, stats.topos_placed,
        stats.chains_skipped,
    )

    return LayoutResult(panels=panels, topos=topos, dropped=dropped, stats=stats)
