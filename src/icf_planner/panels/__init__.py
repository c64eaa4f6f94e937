# File: src/icf_planner/panels/__init__.py

"""
Panel layout and manual override patching.

This module provides:
- Data types for placed panels, topos and dropped pieces
- The pure layout engine (corner templates, stagger, center-weighted fill)
- The override patch stage applied on top of computed placements
"""

from .panel_types import (
    PanelType,
    PanelSide,
    TopoKind,
    Panel,
    TopoPlacement,
    DroppedPiece,
    LayoutStats,
    LayoutResult,
    generate_panel_id,
    parse_panel_id,
)
from .layout_engine import (
    EndRole,
    end_role,
    chain_side,
    layout_interval,
    generate_panel_layout,
)
from .panel_overrides import (
    ConflictKind,
    ConflictSeverity,
    PanelOverride,
    OverrideConflict,
    OverridePatchResult,
    is_tooth_multiple,
    apply_panel_overrides,
    migrate_overrides_on_chain_flip,
)

__all__ = [
    # Types
    "PanelType",
    "PanelSide",
    "TopoKind",
    "Panel",
    "TopoPlacement",
    "DroppedPiece",
    "LayoutStats",
    "LayoutResult",
    "generate_panel_id",
    "parse_panel_id",
    # Layout
    "EndRole",
    "end_role",
    "chain_side",
    "layout_interval",
    "generate_panel_layout",
    # Overrides
    "ConflictKind",
    "ConflictSeverity",
    "PanelOverride",
    "OverrideConflict",
    "OverridePatchResult",
    "is_tooth_multiple",
    "apply_panel_overrides",
    "migrate_overrides_on_chain_flip",
]
