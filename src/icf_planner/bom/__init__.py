# File: src/icf_planner/bom/__init__.py

"""Bill of materials: counts and first-fit-decreasing purchase packing."""

from .bom_types import (
    PackedBin,
    RowPacking,
    ConnectorCounts,
    GridCounts,
    TopoCounts,
    BOMResult,
)
from .bin_packing import first_fit_decreasing
from .bom_aggregator import calculate_bom

__all__ = [
    "PackedBin",
    "RowPacking",
    "ConnectorCounts",
    "GridCounts",
    "TopoCounts",
    "BOMResult",
    "first_fit_decreasing",
    "calculate_bom",
]
