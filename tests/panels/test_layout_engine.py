# File: tests/panels/test_layout_engine.py

"""Tests for the panel layout engine.

Tests cover:
- Center-weighted fill (FULL / CUT_SINGLE / CUT_DOUBLE)
- Running-bond stagger on odd rows
- L-corner and T-branch templates
- Minimum cut dropping and interval accounting
- Topos at junctions and openings
- Side labels and deterministic panel ids
"""

import math

import pytest

from icf_planner.chains.chain_types import Chain
from icf_planner.config.icf_constants import CoreThickness, CornerMode
from icf_planner.config.planner_config import LayoutConfig
from icf_planner.errors import LayoutInvariantError
from icf_planner.footprint.footprint_classifier import classify_footprint
from icf_planner.openings.opening_types import Interval, Opening, OpeningKind
from icf_planner.panels.layout_engine import (
    EndRole,
    chain_side,
    end_role,
    generate_panel_layout,
    layout_interval,
)
from icf_planner.panels.panel_types import PanelSide, PanelType, TopoKind, parse_panel_id
from icf_planner.wall_junctions.junction_detector import detect_junctions


def _widths(panels):
    return [round(p.width_mm, 3) for p in panels]


def _types(panels):
    return [p.type for p in panels]


def _lay(length, row=0, left=EndRole.NONE, right=EndRole.NONE, config=None):
    return layout_interval(
        "chain-0", row, Interval(0.0, length), length, left, right, config or LayoutConfig(),
    )


# =============================================================================
# Center Fill
# =============================================================================


class TestCenterFill:
    """Interior spans are filled from both ends with the cut in the middle."""

    def test_exact_multiple_is_all_full(self):
        panels, dropped = _lay(2400)
        assert _widths(panels) == [1200, 1200]
        assert _types(panels) == [PanelType.FULL, PanelType.FULL]
        assert dropped == []

    def test_3700_uses_center_double_cut(self):
        panels, dropped = _lay(3700)
        assert _widths(panels) == [1200, 1300, 1200]
        assert _types(panels) == [PanelType.FULL, PanelType.CUT_DOUBLE, PanelType.FULL]
        assert [p.start_mm for p in panels] == pytest.approx([0, 1200, 2500])
        assert dropped == []

    def test_large_remainder_is_single_cut(self):
        panels, _ = _lay(3000)
        assert _widths(panels) == [1200, 600, 1200]
        assert panels[1].type == PanelType.CUT_SINGLE

    def test_short_span_is_single_cut(self):
        panels, _ = _lay(250)
        assert _widths(panels) == [250]
        assert panels[0].type == PanelType.CUT_SINGLE

    def test_center_cut_threshold_is_configurable(self):
        panels, _ = _lay(3700, config=LayoutConfig(min_center_cut_mm=100.0))
        assert _widths(panels) == [1200, 100, 1200, 1200]


# =============================================================================
# Stagger and Templates
# =============================================================================


class TestStagger:
    """Odd rows start half a panel in at free ends."""

    def test_odd_row_starts_with_end_cut(self):
        panels, _ = _lay(3700, row=1)
        assert panels[0].type == PanelType.END_CUT
        assert _widths(panels) == [600, 1200, 700, 1200]

    def test_even_row_has_no_end_cut(self):
        panels, _ = _lay(3700, row=0)
        assert PanelType.END_CUT not in _types(panels)

    def test_interval_after_opening_has_no_stagger(self):
        panels, _ = layout_interval(
            "chain-0", 1, Interval(2000.0, 3000.0), 3000.0, config=LayoutConfig(),
        )
        assert _types(panels) == [PanelType.CUT_SINGLE]
        assert panels[0].seed_key == "i2000"


class TestCornerTemplates:
    """L corners alternate FULL and CORNER_CUT between arms by row parity."""

    def test_l_primary_even_row_starts_full(self):
        panels, _ = _lay(3000, row=0, left=EndRole.L_PRIMARY)
        assert panels[0].type == PanelType.FULL
        assert panels[0].is_corner_piece
        assert _widths(panels) == [1200, 600, 1200]

    def test_l_secondary_even_row_starts_with_corner_cut(self):
        panels, _ = _lay(3000, row=0, left=EndRole.L_SECONDARY)
        assert panels[0].type == PanelType.CORNER_CUT
        assert panels[0].width_mm == pytest.approx(600.0)
        assert _widths(panels) == [600, 1200, 1200]

    def test_roles_swap_on_odd_rows(self):
        primary, _ = _lay(3000, row=1, left=EndRole.L_PRIMARY)
        secondary, _ = _lay(3000, row=1, left=EndRole.L_SECONDARY)
        assert primary[0].type == PanelType.CORNER_CUT
        assert secondary[0].type == PanelType.FULL

    def test_t_branch_follows_secondary_pattern(self):
        even, _ = _lay(3000, row=0, right=EndRole.T_BRANCH)
        odd, _ = _lay(3000, row=1, right=EndRole.T_BRANCH)
        assert even[-1].type == PanelType.CORNER_CUT
        assert odd[-1].type == PanelType.FULL
        assert odd[0].type == PanelType.END_CUT

    def test_reservation_clipped_on_short_chain(self):
        panels, dropped = _lay(900, row=0, left=EndRole.L_PRIMARY)
        assert _types(panels) == [PanelType.CORNER_CUT]
        assert panels[0].width_mm == pytest.approx(900.0)
        assert dropped == []


# =============================================================================
# Minimum Cut and Accounting
# =============================================================================


class TestMinimumCut:
    """Pieces below the minimum cut are dropped, never placed."""

    def test_tiny_span_dropped(self):
        panels, dropped = _lay(50)
        assert panels == []
        assert len(dropped) == 1
        assert dropped[0].width_mm == pytest.approx(50.0)
        assert dropped[0].reason == "below_min_cut"

    def test_stagger_leaves_tiny_remainder(self):
        panels, dropped = _lay(650, row=1)
        assert _types(panels) == [PanelType.END_CUT]
        assert _widths(dropped) == [50]

    @pytest.mark.parametrize("length", [100, 650, 1199, 1250, 3700, 4850, 9999.5])
    @pytest.mark.parametrize("row", [0, 1])
    def test_placed_plus_dropped_equals_interval(self, length, row):
        panels, dropped = _lay(length, row=row, left=EndRole.L_SECONDARY)
        total = sum(p.width_mm for p in panels) + sum(d.width_mm for d in dropped)
        assert total == pytest.approx(length)
        assert all(p.width_mm >= 100.0 - 1e-6 for p in panels)

    def test_panels_are_contiguous(self):
        panels, _ = _lay(4850, row=1)
        for a, b in zip(panels, panels[1:]):
            assert a.end_mm == pytest.approx(b.start_mm)

    def test_empty_interval(self):
        assert _lay(0) == ([], [])

    def test_non_finite_interval_raises(self):
        with pytest.raises(LayoutInvariantError):
            layout_interval("chain-0", 0, Interval(0.0, math.inf), math.inf)

    def test_negative_interval_raises(self):
        with pytest.raises(LayoutInvariantError):
            layout_interval("chain-0", 0, Interval(500.0, 100.0), 1000.0)


# =============================================================================
# Roles and Sides
# =============================================================================


class TestRolesAndSides:

    def test_end_role_from_l_corner(self, l_corner_graph):
        corner = l_corner_graph.junction_at("chain-0", "start")
        assert end_role("chain-0", corner) == EndRole.L_PRIMARY
        assert end_role("chain-1", corner) == EndRole.L_SECONDARY
        assert end_role("chain-9", corner) == EndRole.NONE
        assert end_role("chain-0", None) == EndRole.NONE

    def test_side_defaults_to_int(self):
        assert chain_side("chain-0", None) == PanelSide.INT

    def test_side_from_footprint_and_flip(self, rectangle_chains):
        footprint = classify_footprint(rectangle_chains)
        # chain-0 runs up the west wall; its left face is outside
        assert chain_side("chain-0", footprint) == PanelSide.EXT
        assert chain_side("chain-1", footprint) == PanelSide.INT
        assert chain_side("chain-0", footprint, {"chain-0"}) == PanelSide.INT


@pytest.fixture
def l_corner_chains():
    return [
        Chain.from_points("chain-0", (0, 0), (0, 3000)),
        Chain.from_points("chain-1", (0, 0), (3000, 0)),
    ]


@pytest.fixture
def l_corner_graph(l_corner_chains):
    return detect_junctions(l_corner_chains)


# =============================================================================
# Full Layout
# =============================================================================


class TestGeneratePanelLayout:
    """End-to-end layout over chains and rows."""

    def test_l_corner_rows_alternate(self, l_corner_chains, l_corner_graph):
        result = generate_panel_layout(
            l_corner_chains, l_corner_graph, config=LayoutConfig(max_rows=2),
        )
        row0_primary = result.panels_for("chain-0", 0)
        row0_secondary = result.panels_for("chain-1", 0)
        assert row0_primary[0].type == PanelType.FULL
        assert row0_secondary[0].type == PanelType.CORNER_CUT

        row1_primary = result.panels_for("chain-0", 1)
        row1_secondary = result.panels_for("chain-1", 1)
        assert row1_primary[0].type == PanelType.CORNER_CUT
        assert row1_secondary[0].type == PanelType.FULL

        assert result.stats.l_junctions == 1
        assert result.stats.rows == 2

    def test_visible_rows_limit(self, l_corner_chains):
        result = generate_panel_layout(
            l_corner_chains, config=LayoutConfig(max_rows=5, visible_rows=2),
        )
        assert {p.row_index for p in result.panels} == {0, 1}

    def test_short_chain_skipped(self):
        chains = [Chain.from_points("chain-0", (0, 0), (30, 0))]
        result = generate_panel_layout(chains)
        assert result.panels == []
        assert result.stats.chains_skipped == 1

    def test_short_chain_recorded_as_dropped_per_row(self):
        chains = [Chain.from_points("chain-0", (0, 0), (30, 0))]
        result = generate_panel_layout(chains, config=LayoutConfig(max_rows=3))
        assert [(d.row_index, d.start_mm, d.reason) for d in result.dropped] == [
            (0, 0.0, "chain_below_min_length"),
            (1, 0.0, "chain_below_min_length"),
            (2, 0.0, "chain_below_min_length"),
        ]
        assert all(d.width_mm == pytest.approx(30.0) for d in result.dropped)
        assert result.stats.dropped_width_mm == pytest.approx(90.0)

    def test_output_sorted(self, rectangle_chains):
        result = generate_panel_layout(rectangle_chains, config=LayoutConfig(max_rows=3))
        keys = [p.sort_key for p in result.panels]
        assert keys == sorted(keys)

    def test_deterministic(self, rectangle_chains):
        junctions = detect_junctions(rectangle_chains)
        a = generate_panel_layout(rectangle_chains, junctions, config=LayoutConfig(max_rows=4))
        b = generate_panel_layout(list(reversed(rectangle_chains)), junctions, config=LayoutConfig(max_rows=4))
        assert [p.to_dict() for p in a.panels] == [p.to_dict() for p in b.panels]

    def test_panel_ids_unique_and_parseable(self, rectangle_chains):
        result = generate_panel_layout(rectangle_chains, config=LayoutConfig(max_rows=2))
        ids = [p.panel_id for p in result.panels]
        assert len(ids) == len(set(ids))
        parts = parse_panel_id(ids[0])
        assert parts["chain_id"] == "chain-0"
        assert parts["row_index"] == 0

    def test_missing_rows_treated_as_unobstructed(self, l_corner_chains):
        result = generate_panel_layout(
            l_corner_chains, intervals={}, config=LayoutConfig(max_rows=1),
        )
        assert sum(p.width_mm for p in result.panels_for("chain-1", 0)) == pytest.approx(3000.0)


class TestTopos:
    """Topos at junctions and openings."""

    def test_t_junction_topo_on_branch_odd_rows(self):
        chains = [
            Chain.from_points("chain-0", (0, 0), (2000, 0)),
            Chain.from_points("chain-1", (2000, 0), (2000, 3000)),
            Chain.from_points("chain-2", (2000, 0), (4000, 0)),
        ]
        result = generate_panel_layout(
            chains, detect_junctions(chains), config=LayoutConfig(max_rows=4),
        )
        tees = [t for t in result.topos if t.kind == TopoKind.T_JUNCTION]
        assert [t.row_index for t in tees] == [1, 3]
        assert all(t.chain_id == "chain-1" for t in tees)
        assert all(t.position_mm == 0.0 for t in tees)
        assert all(t.width_mm == 150.0 for t in tees)

    def test_corner_topo_only_in_topo_mode(self, l_corner_chains, l_corner_graph):
        overlap = generate_panel_layout(
            l_corner_chains, l_corner_graph, config=LayoutConfig(max_rows=2),
        )
        assert not [t for t in overlap.topos if t.kind == TopoKind.CORNER]

        topo_mode = generate_panel_layout(
            l_corner_chains, l_corner_graph,
            config=LayoutConfig(max_rows=2, corner_mode=CornerMode.TOPO),
        )
        corners = [t for t in topo_mode.topos if t.kind == TopoKind.CORNER]
        assert len(corners) == 1
        assert corners[0].chain_id == "chain-0"
        assert corners[0].row_index == 1

    def test_opening_topos(self):
        chains = [Chain.from_points("chain-0", (0, 0), (5000, 0))]
        window = Opening("w1", "chain-0", 1000.0, 900.0, 800.0, 1200.0, OpeningKind.WINDOW)
        result = generate_panel_layout(
            chains, openings=[window],
            config=LayoutConfig(max_rows=8, core_thickness=CoreThickness.CORE_200),
        )
        jambs = [t for t in result.topos if t.kind == TopoKind.JAMB]
        assert len(jambs) == 6
        assert {t.position_mm for t in jambs} == {1000.0, 1700.0}
        assert all(t.product == "TOPO_200" for t in result.topos)

        lintels = [t for t in result.topos if t.kind == TopoKind.LINTEL]
        sills = [t for t in result.topos if t.kind == TopoKind.SILL]
        assert [(t.row_index, t.width_mm) for t in lintels] == [(5, 900.0)]
        assert [t.row_index for t in sills] == [1]

    def test_opening_rows_split_panels(self):
        chains = [Chain.from_points("chain-0", (0, 0), (5000, 0))]
        door = Opening("d1", "chain-0", 1000.0, 900.0, 0.0, 2100.0, OpeningKind.DOOR)
        result = generate_panel_layout(chains, openings=[door], config=LayoutConfig(max_rows=7))
        row0 = result.panels_for("chain-0", 0)
        assert all(p.end_mm <= 1000.0 + 1e-6 or p.start_mm >= 1900.0 - 1e-6 for p in row0)
        row6 = result.panels_for("chain-0", 6)
        assert sum(p.width_mm for p in row6) == pytest.approx(5000.0)
