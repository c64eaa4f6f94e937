# File: src/icf_planner/panels/panel_overrides.py

"""Manual per-panel overrides applied as a patch after layout.

The layout engine is pure and recomputes placements from scratch. Callers
hold a map ``panel_id -> PanelOverride`` and apply it with
``apply_panel_overrides``, which returns new Panel objects plus a list of
conflicts. Conflicted overrides are not applied.

Example:
    >>> result = apply_panel_overrides(layout.panels, {
    ...     "chain-0:0:int:1:i0": PanelOverride(cut_mm=TOOTH_MM * 10),
    ... })
    >>> [c.kind for c in result.conflicts]
    []
"""

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..config.icf_constants import TOOTH_MM
from .panel_types import (
    Panel,
    PanelType,
    generate_panel_id,
    parse_panel_id,
)

logger = logging.getLogger(__name__)

# Allowed deviation of a cut from a TOOTH multiple
TOOTH_TOLERANCE_MM = 0.1

EPSILON_MM = 1e-6


class ConflictKind(Enum):
    """Why an override could not be applied."""

    CUT_NOT_TOOTH_MULTIPLE = "cut_not_tooth_multiple"
    UNKNOWN_PANEL = "unknown_panel"
    INVALID_WIDTH = "invalid_width"
    OVERLAP = "overlap"


class ConflictSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class PanelOverride:
    """A manual change to one panel.

    Attributes:
        override_type: Forced panel type.
        offset_mm: Shift added to the panel start.
        width_mm: Replacement width.
        cut_mm: Replacement cut width; must be a TOOTH multiple and takes
            precedence over ``width_mm``.
        is_locked: User locked the panel against further edits.
    """
    override_type: Optional[PanelType] = None
    offset_mm: Optional[float] = None
    width_mm: Optional[float] = None
    cut_mm: Optional[float] = None
    is_locked: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "override_type": self.override_type.value if self.override_type else None,
            "offset_mm": self.offset_mm,
            "width_mm": self.width_mm,
            "cut_mm": self.cut_mm,
            "is_locked": self.is_locked,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PanelOverride":
        override_type = data.get("override_type")
        return cls(
            override_type=PanelType(override_type) if override_type else None,
            offset_mm=data.get("offset_mm"),
            width_mm=data.get("width_mm"),
            cut_mm=data.get("cut_mm"),
            is_locked=bool(data.get("is_locked", False)),
        )


@dataclass(frozen=True)
class OverrideConflict:
    """An override that was not applied, or a stale one."""
    panel_id: str
    kind: ConflictKind
    severity: ConflictSeverity
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "panel_id": self.panel_id,
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
        }


@dataclass
class OverridePatchResult:
    """Patched panels and the conflicts found while patching."""
    panels: List[Panel] = field(default_factory=list)
    conflicts: List[OverrideConflict] = field(default_factory=list)
    applied_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applied_ids": list(self.applied_ids),
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


def is_tooth_multiple(
    value_mm: float,
    tooth_mm: float = TOOTH_MM,
    tolerance_mm: float = TOOTH_TOLERANCE_MM,
) -> bool:
    """Check whether a length is a TOOTH multiple within tolerance."""
    if not math.isfinite(value_mm):
        return False
    remainder = value_mm % tooth_mm
    return remainder <= tolerance_mm or tooth_mm - remainder <= tolerance_mm


def _patch_panel(panel: Panel, override: PanelOverride) -> Panel:
    start = panel.start_mm + (override.offset_mm or 0.0)
    if override.cut_mm is not None:
        width = override.cut_mm
    elif override.width_mm is not None:
        width = override.width_mm
    else:
        width = panel.width_mm

    ptype = override.override_type
    if ptype is None:
        ptype = panel.type
        if panel.type == PanelType.FULL and abs(width - panel.width_mm) > EPSILON_MM:
            ptype = PanelType.CUT_SINGLE

    return replace(
        panel,
        start_mm=start,
        width_mm=width,
        type=ptype,
        is_overridden=True,
        is_locked=override.is_locked,
    )


def _find_overlaps(panels: Sequence[Panel], patched_ids: set) -> List[Tuple[str, str]]:
    """Pairs (patched panel id, neighbour id) that overlap in one chain/row."""
    rows: Dict[Tuple[str, int], List[Panel]] = {}
    for p in panels:
        rows.setdefault((p.chain_id, p.row_index), []).append(p)

    overlaps: List[Tuple[str, str]] = []
    for key in sorted(rows):
        ordered = sorted(rows[key], key=lambda p: (p.start_mm, p.panel_id))
        for a, b in zip(ordered, ordered[1:]):
            if a.end_mm <= b.start_mm + EPSILON_MM:
                continue
            if b.panel_id in patched_ids:
                overlaps.append((b.panel_id, a.panel_id))
            elif a.panel_id in patched_ids:
                overlaps.append((a.panel_id, b.panel_id))
    return overlaps


def apply_panel_overrides(
    panels: Sequence[Panel],
    overrides: Mapping[str, PanelOverride],
    tooth_mm: float = TOOTH_MM,
) -> OverridePatchResult:
    """Apply manual overrides on top of computed placements.

    Args:
        panels: Panels from the layout engine (not modified).
        overrides: Map of panel id to override.
        tooth_mm: Modular unit cuts must be a multiple of.

    Returns:
        OverridePatchResult with new panels sorted like the input and every
        conflict found. Overrides for ids that no longer exist produce a
        warning; all other conflicts are errors and leave the panel as
        computed.
    """
    by_id: Dict[str, Panel] = {p.panel_id: p for p in panels}
    current: Dict[str, Panel] = dict(by_id)
    conflicts: List[OverrideConflict] = []
    patched: set = set()

    for panel_id in sorted(overrides):
        override = overrides[panel_id]
        original = by_id.get(panel_id)
        if original is None:
            conflicts.append(OverrideConflict(
                panel_id, ConflictKind.UNKNOWN_PANEL, ConflictSeverity.WARNING,
                f"No panel {panel_id} in the current layout (stale override)",
            ))
            continue

        if override.cut_mm is not None and not is_tooth_multiple(override.cut_mm, tooth_mm):
            conflicts.append(OverrideConflict(
                panel_id, ConflictKind.CUT_NOT_TOOTH_MULTIPLE, ConflictSeverity.ERROR,
                f"Cut {override.cut_mm:.1f} mm is not a multiple of TOOTH ({tooth_mm:.2f} mm)",
            ))
            continue

        candidate = _patch_panel(original, override)
        if (
            not math.isfinite(candidate.width_mm)
            or not math.isfinite(candidate.start_mm)
            or candidate.width_mm <= 0
        ):
            conflicts.append(OverrideConflict(
                panel_id, ConflictKind.INVALID_WIDTH, ConflictSeverity.ERROR,
                f"Override gives invalid width {candidate.width_mm!r}",
            ))
            continue

        current[panel_id] = candidate
        patched.add(panel_id)

    # Revert overlapping patches until the layout is consistent again
    while True:
        overlaps = _find_overlaps(list(current.values()), patched)
        if not overlaps:
            break
        for panel_id, neighbour_id in overlaps:
            if panel_id not in patched:
                continue
            conflicts.append(OverrideConflict(
                panel_id, ConflictKind.OVERLAP, ConflictSeverity.ERROR,
                f"Patched panel {panel_id} overlaps {neighbour_id}",
            ))
            current[panel_id] = by_id[panel_id]
            patched.discard(panel_id)

    for conflict in conflicts:
        logger.warning("Override conflict (%s) on %s: %s",
                       conflict.kind.value, conflict.panel_id, conflict.message)

    result_panels = sorted(current.values(), key=lambda p: p.sort_key)
    applied = sorted(patched)
    logger.info("Applied %d of %d panel overrides (%d conflicts)",
                len(applied), len(overrides), len(conflicts))
    return OverridePatchResult(panels=result_panels, conflicts=conflicts, applied_ids=applied)


def migrate_overrides_on_chain_flip(
    overrides: Mapping[str, PanelOverride],
    chain_id: str,
) -> Dict[str, PanelOverride]:
    """Re-key a chain's overrides after its side label was flipped.

    Every ``:ext:`` id of the chain becomes ``:int:`` and vice versa, so an
    ext/int pair swaps places. Overrides of other chains are unchanged.
    """
    migrated: Dict[str, PanelOverride] = {}
    moved = 0
    for panel_id, override in overrides.items():
        parts = parse_panel_id(panel_id)
        if parts is None or parts["chain_id"] != chain_id:
            migrated[panel_id] = override
            continue
        new_id = generate_panel_id(
            parts["chain_id"],
            parts["row_index"],
            parts["side"].flipped(),
            parts["slot_index"],
            parts["seed_key"],
        )
        migrated[new_id] = override
        moved += 1

    logger.debug("Migrated %d overrides for flipped chain %s", moved, chain_id)
    return migrated
