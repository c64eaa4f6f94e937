# File: src/icf_planner/bom/bin_packing.py

"""First-fit-decreasing bin packing of cut pieces into purchasable units."""

import logging
import math
from typing import List, Sequence

from .bom_types import PackedBin

logger = logging.getLogger(__name__)


def first_fit_decreasing(
    pieces: Sequence[float],
    capacity: float,
    epsilon: float = 1e-6,
) -> List[PackedBin]:
    """Pack pieces into as few bins as first-fit-decreasing manages.

    Pieces are sorted longest first; each goes into the first open bin with
    room for it (within ``epsilon``), or opens a new bin.

    Args:
        pieces: Piece lengths.
        capacity: Bin length.
        epsilon: Slack for floating point comparisons.

    Returns:
        Bins in opening order.

    Raises:
        ValueError: If the capacity is not positive or a piece is negative,
            not finite, or longer than the capacity.
    """
    if not capacity > 0:
        raise ValueError(f"Bin capacity must be positive, got {capacity}")

    bins: List[PackedBin] = []
    for piece in sorted(pieces, reverse=True):
        if not math.isfinite(piece) or piece < 0:
            raise ValueError(f"Invalid piece length {piece!r}")
        if piece > capacity + epsilon:
            raise ValueError(f"Piece {piece:.3f} exceeds bin capacity {capacity:.3f}")
        if piece <= epsilon:
            continue

        for b in bins:
            if b.remaining_mm + epsilon >= piece:
                b.pieces_mm.append(piece)
                break
        else:
            bins.append(PackedBin(capacity_mm=capacity, pieces_mm=[piece]))

    logger.debug("Packed %d pieces into %d bins", len(pieces), len(bins))
    return bins
