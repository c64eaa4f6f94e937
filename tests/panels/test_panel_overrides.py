# File: tests/panels/test_panel_overrides.py

"""Tests for the manual override patch stage."""

import math

import pytest

from icf_planner.chains.chain_types import Chain
from icf_planner.config.icf_constants import TOOTH_MM
from icf_planner.panels.layout_engine import generate_panel_layout
from icf_planner.panels.panel_overrides import (
    ConflictKind,
    ConflictSeverity,
    PanelOverride,
    apply_panel_overrides,
    is_tooth_multiple,
    migrate_overrides_on_chain_flip,
)
from icf_planner.panels.panel_types import PanelSide, PanelType, parse_panel_id


@pytest.fixture
def wall_panels():
    """One 3000 mm wall, one row: FULL 1200 | CUT_SINGLE 600 | FULL 1200."""
    chains = [Chain.from_points("chain-0", (0, 0), (3000, 0))]
    return generate_panel_layout(chains).panels


FIRST = "chain-0:0:int:0:i0"
MIDDLE = "chain-0:0:int:1:i0"
LAST = "chain-0:0:int:2:i0"


class TestToothMultiple:

    @pytest.mark.parametrize("teeth", [1, 3, 10, 17])
    def test_multiples_accepted(self, teeth):
        assert is_tooth_multiple(TOOTH_MM * teeth)

    def test_within_tolerance(self):
        assert is_tooth_multiple(TOOTH_MM * 5 + 0.05)

    @pytest.mark.parametrize("value", [100.0, 700.0, math.inf, math.nan])
    def test_non_multiples_rejected(self, value):
        assert not is_tooth_multiple(value)


class TestApplyOverrides:
    """Patching panels on top of the computed layout."""

    def test_fixture_ids(self, wall_panels):
        assert [p.panel_id for p in wall_panels] == [FIRST, MIDDLE, LAST]

    def test_no_overrides_returns_same_layout(self, wall_panels):
        result = apply_panel_overrides(wall_panels, {})
        assert result.panels == list(wall_panels)
        assert result.conflicts == []
        assert result.applied_ids == []

    def test_tooth_cut_applied(self, wall_panels):
        cut = TOOTH_MM * 10
        result = apply_panel_overrides(wall_panels, {LAST: PanelOverride(cut_mm=cut)})
        assert result.applied_ids == [LAST]
        patched = result.panels[-1]
        assert patched.width_mm == pytest.approx(cut)
        assert patched.type == PanelType.CUT_SINGLE
        assert patched.is_overridden

    def test_cut_takes_precedence_over_width(self, wall_panels):
        cut = TOOTH_MM * 4
        result = apply_panel_overrides(
            wall_panels, {LAST: PanelOverride(cut_mm=cut, width_mm=1000.0)},
        )
        assert result.panels[-1].width_mm == pytest.approx(cut)

    def test_non_tooth_cut_is_conflict(self, wall_panels):
        result = apply_panel_overrides(wall_panels, {LAST: PanelOverride(cut_mm=700.0)})
        assert result.applied_ids == []
        assert [c.kind for c in result.conflicts] == [ConflictKind.CUT_NOT_TOOTH_MULTIPLE]
        assert result.conflicts[0].severity == ConflictSeverity.ERROR
        assert result.panels[-1].width_mm == pytest.approx(1200.0)

    def test_unknown_panel_is_warning(self, wall_panels):
        result = apply_panel_overrides(
            wall_panels, {"chain-7:0:int:0:i0": PanelOverride(width_mm=500.0)},
        )
        assert len(result.conflicts) == 1
        conflict = result.conflicts[0]
        assert conflict.kind == ConflictKind.UNKNOWN_PANEL
        assert conflict.severity == ConflictSeverity.WARNING
        assert len(result.panels) == 3

    @pytest.mark.parametrize("width", [0.0, -5.0, math.inf])
    def test_invalid_width_is_conflict(self, wall_panels, width):
        result = apply_panel_overrides(wall_panels, {LAST: PanelOverride(width_mm=width)})
        assert [c.kind for c in result.conflicts] == [ConflictKind.INVALID_WIDTH]

    def test_overlapping_patch_reverted(self, wall_panels):
        result = apply_panel_overrides(wall_panels, {FIRST: PanelOverride(width_mm=1500.0)})
        assert [c.kind for c in result.conflicts] == [ConflictKind.OVERLAP]
        assert result.applied_ids == []
        assert result.panels[0].width_mm == pytest.approx(1200.0)
        assert not result.panels[0].is_overridden

    def test_offset_is_added_to_start(self, wall_panels):
        result = apply_panel_overrides(wall_panels, {LAST: PanelOverride(offset_mm=100.0)})
        assert result.conflicts == []
        assert result.panels[-1].start_mm == pytest.approx(1900.0)

    def test_forced_type_and_lock(self, wall_panels):
        result = apply_panel_overrides(
            wall_panels, {MIDDLE: PanelOverride(override_type=PanelType.TOPO, is_locked=True)},
        )
        patched = result.panels[1]
        assert patched.type == PanelType.TOPO
        assert patched.is_locked
        assert patched.width_mm == pytest.approx(600.0)

    def test_input_panels_untouched(self, wall_panels):
        before = [p.to_dict() for p in wall_panels]
        apply_panel_overrides(wall_panels, {LAST: PanelOverride(width_mm=800.0)})
        assert [p.to_dict() for p in wall_panels] == before

    def test_applied_ids_sorted(self, wall_panels):
        result = apply_panel_overrides(wall_panels, {
            LAST: PanelOverride(is_locked=True),
            FIRST: PanelOverride(is_locked=True),
        })
        assert result.applied_ids == [FIRST, LAST]


class TestOverrideSerialization:

    def test_round_trip(self):
        override = PanelOverride(override_type=PanelType.CUT_SINGLE, cut_mm=TOOTH_MM * 2)
        assert PanelOverride.from_dict(override.to_dict()) == override

    def test_from_partial_dict(self):
        override = PanelOverride.from_dict({"width_mm": 450.0})
        assert override.override_type is None
        assert override.width_mm == 450.0
        assert not override.is_locked


class TestPanelIds:

    def test_parse_round_trip(self):
        parts = parse_panel_id("chain-3:2:ext:4:i1800")
        assert parts == {
            "chain_id": "chain-3",
            "row_index": 2,
            "side": PanelSide.EXT,
            "slot_index": 4,
            "seed_key": "i1800",
        }

    def test_chain_id_with_colon(self):
        assert parse_panel_id("site:a:0:int:1:i0")["chain_id"] == "site:a"

    @pytest.mark.parametrize("panel_id", ["garbage", "chain-0:x:int:0:i0", "chain-0:0:top:0:i0"])
    def test_malformed_ids(self, panel_id):
        assert parse_panel_id(panel_id) is None


class TestFlipMigration:

    def test_sides_swap_for_flipped_chain(self):
        ext = PanelOverride(width_mm=500.0)
        internal = PanelOverride(width_mm=700.0)
        other = PanelOverride(is_locked=True)
        migrated = migrate_overrides_on_chain_flip({
            "chain-0:0:ext:1:i0": ext,
            "chain-0:0:int:1:i0": internal,
            "chain-1:0:ext:0:i0": other,
        }, "chain-0")
        assert migrated["chain-0:0:int:1:i0"] is ext
        assert migrated["chain-0:0:ext:1:i0"] is internal
        assert migrated["chain-1:0:ext:0:i0"] is other

    def test_unparseable_ids_kept(self):
        override = PanelOverride()
        assert migrate_overrides_on_chain_flip({"legacy": override}, "chain-0") == {
            "legacy": override
        }
