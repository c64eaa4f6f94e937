# File: src/icf_planner/openings/interval_calculator.py

"""Fillable interval computation per chain and row.

A row's band is ``[row * 400, (row + 1) * 400)``. Every opening whose
vertical range touches the band removes its horizontal span from the chain.
What is left are the sorted, disjoint intervals the layout engine fills.
"""

import logging
import math
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from ..chains.chain_types import Chain
from ..config.icf_constants import PANEL_HEIGHT_MM, affected_rows
from .opening_types import Interval, Opening, OpeningResolution

logger = logging.getLogger(__name__)

# Per chain: one list of intervals per row
IntervalTable = Dict[str, List[List[Interval]]]


def resolve_openings(
    chains: Sequence[Chain],
    openings: Sequence[Opening],
) -> OpeningResolution:
    """Bind openings to chains.

    Openings on unknown chains, with non-positive or non-finite size, or
    starting beyond the chain end are dangling: skipped for layout and
    reported. Openings extending past either chain end are clipped to the
    chain and reported.
    """
    by_id = {c.id: c for c in chains}
    result = OpeningResolution()

    for opening in openings:
        chain = by_id.get(opening.chain_id)
        reason: Optional[str] = None

        if chain is None:
            reason = f"opening {opening.id}: unknown chain '{opening.chain_id}'"
        elif not opening.is_finite() or opening.width_mm <= 0 or opening.height_mm <= 0:
            reason = f"opening {opening.id}: width and height must be positive finite numbers"
        elif opening.offset_mm >= chain.length_mm or opening.end_mm <= 0:
            reason = (
                f"opening {opening.id}: span [{opening.offset_mm:.1f}, {opening.end_mm:.1f}] "
                f"lies outside chain {chain.id} (length {chain.length_mm:.1f})"
            )

        if reason is not None:
            logger.warning("Dangling %s", reason)
            result.dangling.append(opening)
            result.warnings.append(reason)
            continue

        start = max(0.0, opening.offset_mm)
        end = min(chain.length_mm, opening.end_mm)
        if start != opening.offset_mm or end != opening.end_mm:
            message = (
                f"opening {opening.id}: clipped to [{start:.1f}, {end:.1f}] "
                f"on chain {chain.id}"
            )
            logger.warning("Clipped %s", message)
            result.clipped_ids.append(opening.id)
            result.warnings.append(message)
            opening = replace(opening, offset_mm=start, width_mm=end - start)

        result.resolved.append(opening)

    logger.debug(
        "Resolved %d openings (%d dangling, %d clipped)",
        len(result.resolved),
        len(result.dangling),
        len(result.clipped_ids),
    )
    return result


def opening_affects_row(
    opening: Opening,
    row: int,
    row_height_mm: float = PANEL_HEIGHT_MM,
) -> bool:
    start_row, end_row = affected_rows(opening.sill_mm, opening.height_mm, row_height_mm)
    return start_row <= row < end_row


def _merge_spans(spans: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
    """Merge strictly overlapping spans; touching spans stay separate."""
    merged: List[Tuple[float, float]] = []
    for start, end in sorted(spans):
        if merged and start < merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def remaining_intervals(
    chain: Chain,
    openings: Sequence[Opening],
    row: int,
    row_height_mm: float = PANEL_HEIGHT_MM,
) -> List[Interval]:
    """Fillable intervals of one chain in one row.

    The gap between two consecutive openings is always reported, even when
    it is below the minimum cut or has zero width, so waste accounting sees
    it. Leading and trailing intervals are reported only when non-empty.

    Args:
        chain: The chain to subtract from.
        openings: Openings (any chain; others are ignored).
        row: Row index.
        row_height_mm: Height of one row.

    Returns:
        Sorted, pairwise disjoint intervals within [0, chain.length_mm].
    """
    length = chain.length_mm
    spans = [
        (max(0.0, o.offset_mm), min(length, o.end_mm))
        for o in openings
        if o.chain_id == chain.id and opening_affects_row(o, row, row_height_mm)
    ]
    spans = [(s, e) for s, e in spans if e > s]

    if not spans:
        return [Interval(0.0, length)] if length > 0 else []

    merged = _merge_spans(spans)
    intervals: List[Interval] = []

    if merged[0][0] > 0:
        intervals.append(Interval(0.0, merged[0][0]))
    for (_, prev_end), (next_start, _) in zip(merged, merged[1:]):
        intervals.append(Interval(prev_end, next_start))
    if merged[-1][1] < length:
        intervals.append(Interval(merged[-1][1], length))

    return intervals


def intervals_for_chains(
    chains: Sequence[Chain],
    openings: Sequence[Opening],
    row_count: int,
    row_height_mm: float = PANEL_HEIGHT_MM,
) -> IntervalTable:
    """Interval table for every chain and row."""
    table: IntervalTable = {}
    for chain in chains:
        table[chain.id] = [
            remaining_intervals(chain, openings, row, row_height_mm)
            for row in range(row_count)
        ]
    return table


def opening_topo_rows(
    opening: Opening,
    row_count: int,
    row_height_mm: float = PANEL_HEIGHT_MM,
) -> Tuple[List[int], Optional[int], Optional[int]]:
    """Rows that receive jamb, lintel and sill topos for an opening.

    Jambs go on every visible row the opening affects. The lintel sits in
    the row containing the opening top, and the sill (for openings above the
    base) in the row containing the sill; either is None when that row is
    outside ``[0, row_count)``.

    Returns:
        (jamb_rows, lintel_row, sill_row)
    """
    start_row, end_row = affected_rows(opening.sill_mm, opening.height_mm, row_height_mm)
    jamb_rows = [r for r in range(max(0, start_row), min(end_row, row_count))]

    lintel_row: Optional[int] = int(math.floor(opening.top_mm / row_height_mm))
    if not 0 <= lintel_row < row_count:
        lintel_row = None

    sill_row: Optional[int] = None
    if opening.sill_mm > 0:
        sill_row = int(math.ceil(opening.sill_mm / row_height_mm)) - 1
        if not 0 <= sill_row < row_count:
            sill_row = None

    return jamb_rows, lintel_row, sill_row
