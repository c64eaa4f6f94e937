# File: src/icf_planner/config/__init__.py

"""
Configuration package for the ICF planner.
Provides a unified interface to:
- Product constants (panel module, TOOTH, stagger, minimum cut)
- Per-stage configuration dataclasses and chain tolerance presets
"""

from .icf_constants import (
    PANEL_WIDTH_MM,
    PANEL_HEIGHT_MM,
    TOOTH_MM,
    STAGGER_OFFSET_MM,
    MIN_CUT_MM,
    TOPO_UNIT_HEIGHT_M,
    GRID_UNIT_LENGTH_M,
    CoreThickness,
    CornerMode,
    RebarSpacing,
    WEBS_PER_PANEL,
    calculate_number_of_rows,
    affected_rows,
)

from .planner_config import (
    CHAIN_PRESETS,
    PRESET_ORDER,
    ChainTolerances,
    FootprintConfig,
    JunctionConfig,
    LayoutConfig,
    GridSettings,
    BomConfig,
    PlannerConfig,
)

__all__ = [
    "PANEL_WIDTH_MM",
    "PANEL_HEIGHT_MM",
    "TOOTH_MM",
    "STAGGER_OFFSET_MM",
    "MIN_CUT_MM",
    "TOPO_UNIT_HEIGHT_M",
    "GRID_UNIT_LENGTH_M",
    "CoreThickness",
    "CornerMode",
    "RebarSpacing",
    "WEBS_PER_PANEL",
    "calculate_number_of_rows",
    "affected_rows",
    "CHAIN_PRESETS",
    "PRESET_ORDER",
    "ChainTolerances",
    "FootprintConfig",
    "JunctionConfig",
    "LayoutConfig",
    "GridSettings",
    "BomConfig",
    "PlannerConfig",
]
