# File: src/icf_planner/config/icf_constants.py

"""
Product constants for the ICF wall system.

All dimensions are millimeters. The panel geometry is fixed by the form
manufacturer; the concrete core thickness is chosen per project.
"""

import math
from enum import Enum
from typing import Dict, Tuple


# Standard panel module
PANEL_WIDTH_MM = 1200.0
PANEL_HEIGHT_MM = 400.0

# Base modular unit used for fine offsets and cut validation (1200 / 17)
TOOTH_MM = PANEL_WIDTH_MM / 17.0

# Half-panel offset between consecutive rows (running bond)
STAGGER_OFFSET_MM = 600.0

# Pieces narrower than this are not placed; they count as waste
MIN_CUT_MM = 100.0

# Height of one vertical topo piece in meters (one row)
TOPO_UNIT_HEIGHT_M = PANEL_HEIGHT_MM / 1000.0

# Length of one stabilization grid unit in meters
GRID_UNIT_LENGTH_M = 3.0


class CoreThickness(Enum):
    """Concrete core thickness options (mm)."""

    CORE_150 = 150
    """Standard core; outer wall thickness 4 x TOOTH (~282 mm)."""

    CORE_200 = 200
    """Heavy core for taller or loaded walls."""

    CORE_220 = 220
    """Extra heavy core; outer wall thickness 5 x TOOTH (~353 mm)."""

    @property
    def topo_product(self) -> str:
        """Topo product code matching this core."""
        return f"TOPO_{self.value}"


class CornerMode(Enum):
    """How L corners are closed."""

    OVERLAP_CUT = "overlap_cut"
    """Panels overlap at the corner and are cut to fit (no topo)."""

    TOPO = "topo"
    """A topo closes the corner on alternate rows."""


class RebarSpacing(Enum):
    """Horizontal rebar spacing options (cm)."""

    CM_10 = 10
    CM_15 = 15
    CM_20 = 20


# Spacers (webs) per panel for each rebar spacing
WEBS_PER_PANEL: Dict[RebarSpacing, int] = {
    RebarSpacing.CM_10: 4,
    RebarSpacing.CM_15: 3,
    RebarSpacing.CM_20: 2,
}


def calculate_number_of_rows(wall_height_mm: float) -> int:
    """
    Number of panel rows needed to reach a wall height.

    Args:
        wall_height_mm: Finished wall height in millimeters

    Returns:
        Row count (a partial row counts as a full row)

    Raises:
        ValueError: If the height is negative or not finite
    """
    if not math.isfinite(wall_height_mm) or wall_height_mm < 0:
        raise ValueError(f"Wall height must be a non-negative number, got {wall_height_mm}")
    return int(math.ceil(wall_height_mm / PANEL_HEIGHT_MM))


def affected_rows(
    sill_mm: float,
    height_mm: float,
    row_height_mm: float = PANEL_HEIGHT_MM,
) -> Tuple[int, int]:
    """
    Rows whose height band intersects an opening's vertical range.

    Args:
        sill_mm: Height of the opening bottom above the wall base
        height_mm: Opening height
        row_height_mm: Height of one panel row

    Returns:
        (start_row, end_row) with end_row exclusive
    """
    start_row = int(math.floor(sill_mm / row_height_mm))
    end_row = int(math.ceil((sill_mm + height_mm) / row_height_mm))
    return start_row, end_row
