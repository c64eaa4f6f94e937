# File: tests/wall_junctions/test_junction_detector.py

"""Tests for chain junction detection and classification.

Tests cover:
- Endpoint grouping (L-corners) and node tolerance
- T-intersection detection (split and midspan)
- Junction classification (FREE_END, L_CORNER, T_INTERSECTION, X_CROSSING,
  INLINE, OBLIQUE)
- Deterministic L primary/secondary and T main/branch roles
- Edge cases (no chains, single chain)
"""

import math

import pytest

from icf_planner.chains.chain_types import Chain
from icf_planner.config.planner_config import JunctionConfig
from icf_planner.wall_junctions.junction_detector import detect_junctions
from icf_planner.wall_junctions.junction_types import JunctionKind


# =============================================================================
# Classification Tests
# =============================================================================


class TestLCorner:
    """Two ends meeting at roughly 90 degrees."""

    def test_l_corner_detected(self, l_corner_chains):
        graph = detect_junctions(l_corner_chains)
        corners = graph.of_kind(JunctionKind.L_CORNER)
        assert len(corners) == 1
        assert corners[0].id == "node_0_0"
        assert corners[0].position == pytest.approx((0.0, 0.0))

    def test_ids_follow_node_position(self, rectangle_chains):
        # 4000 is not a multiple of the 15 mm node grid
        graph = detect_junctions(rectangle_chains, JunctionConfig(node_tolerance_mm=15.0))
        assert sorted(j.id for j in graph.junctions) == [
            "node_0_0", "node_0_4000", "node_6000_0", "node_6000_4000",
        ]

    def test_primary_is_lower_chain_id(self, l_corner_chains):
        graph = detect_junctions(l_corner_chains)
        corner = graph.junction_at("chain-1", "start")
        assert corner.primary_chain_id == "chain-0"
        assert corner.secondary_chain_id == "chain-1"

    def test_primary_independent_of_input_order(self, l_corner_chains):
        graph = detect_junctions(list(reversed(l_corner_chains)))
        corner = graph.junction_at("chain-0", "start")
        assert corner.primary_chain_id == "chain-0"

    def test_arm_angles(self, l_corner_chains):
        corner = detect_junctions(l_corner_chains).junction_at("chain-0", "start")
        primary_angle, secondary_angle = corner.arm_angles
        assert primary_angle == pytest.approx(math.pi / 2)
        assert secondary_angle == pytest.approx(0.0)

    def test_far_ends_are_free(self, l_corner_chains):
        graph = detect_junctions(l_corner_chains)
        assert graph.junction_at("chain-0", "end").kind == JunctionKind.FREE_END
        assert graph.junction_at("chain-1", "end").kind == JunctionKind.FREE_END
        assert graph.counts_by_kind["free_end"] == 2

    def test_small_gap_within_tolerance(self):
        chains = [
            Chain.from_points("chain-0", (0, 0), (0, 3000)),
            Chain.from_points("chain-1", (8, 0), (4000, 0)),
        ]
        graph = detect_junctions(chains)
        assert graph.l_count == 1

    def test_gap_beyond_tolerance_gives_free_ends(self):
        chains = [
            Chain.from_points("chain-0", (0, 0), (0, 3000)),
            Chain.from_points("chain-1", (100, 0), (4000, 0)),
        ]
        graph = detect_junctions(chains)
        assert graph.l_count == 0
        assert graph.counts_by_kind["free_end"] == 4


class TestTIntersection:
    """Three ends with a collinear pair, or an end on a chain interior."""

    def test_split_t_detected(self, t_intersection_chains):
        graph = detect_junctions(t_intersection_chains)
        tees = graph.of_kind(JunctionKind.T_INTERSECTION)
        assert len(tees) == 1
        tee = tees[0]
        assert tee.main_chain_ids == ["chain-0", "chain-2"]
        assert tee.branch_chain_id == "chain-1"

    def test_midspan_t_detected(self, midspan_t_chains):
        graph = detect_junctions(midspan_t_chains)
        assert graph.t_count == 1
        tee = graph.junction_at("chain-1", "start")
        assert tee.kind == JunctionKind.T_INTERSECTION
        assert tee.main_chain_ids == ["chain-0"]
        assert tee.branch_chain_id == "chain-1"

        midspan = [e for e in tee.ends if e.is_midspan]
        assert len(midspan) == 1
        assert midspan[0].chain_id == "chain-0"
        assert midspan[0].midspan_offset_mm == pytest.approx(2000.0)

    def test_midspan_end_not_in_end_lookup(self, midspan_t_chains):
        graph = detect_junctions(midspan_t_chains)
        assert ("chain-0", "midspan") not in graph.end_lookup
        assert graph.junction_at("chain-0", "start").kind == JunctionKind.FREE_END

    def test_midspan_detection_can_be_disabled(self, midspan_t_chains):
        graph = detect_junctions(midspan_t_chains, JunctionConfig(detect_midspan=False))
        assert graph.t_count == 0

    def test_junctions_for_chain_includes_midspan(self, midspan_t_chains):
        graph = detect_junctions(midspan_t_chains)
        kinds = {j.kind for j in graph.junctions_for_chain("chain-0")}
        assert JunctionKind.T_INTERSECTION in kinds


class TestOtherKinds:

    def test_x_crossing(self, x_crossing_chains):
        graph = detect_junctions(x_crossing_chains)
        assert graph.x_count == 1
        crossing = graph.of_kind(JunctionKind.X_CROSSING)[0]
        assert sorted(crossing.chain_ids) == ["chain-0", "chain-1", "chain-2", "chain-3"]

    def test_free_end(self, free_end_chain):
        graph = detect_junctions(free_end_chain)
        assert len(graph.junctions) == 2
        assert all(j.kind == JunctionKind.FREE_END for j in graph.junctions)

    def test_inline(self, inline_chains):
        graph = detect_junctions(inline_chains)
        node = graph.junction_at("chain-0", "end")
        assert node.kind == JunctionKind.INLINE
        assert node is graph.junction_at("chain-1", "start")

    def test_oblique(self, angled_corner_chains):
        graph = detect_junctions(angled_corner_chains)
        assert graph.junction_at("chain-0", "start").kind == JunctionKind.OBLIQUE
        assert graph.l_count == 0


# =============================================================================
# Graph Tests
# =============================================================================


class TestJunctionGraph:

    def test_no_chains(self):
        graph = detect_junctions([])
        assert graph.junctions == []
        assert graph.junction_at("chain-0", "start") is None

    def test_ids_are_unique_and_sorted(self, x_crossing_chains):
        graph = detect_junctions(x_crossing_chains)
        ids = [j.id for j in graph.junctions]
        assert len(ids) == len(set(ids))
        assert graph.get(ids[0]) is graph.junctions[0]

    def test_ends_sorted_by_chain_id(self, x_crossing_chains):
        graph = detect_junctions(list(reversed(x_crossing_chains)))
        crossing = graph.of_kind(JunctionKind.X_CROSSING)[0]
        assert crossing.chain_ids == ["chain-0", "chain-1", "chain-2", "chain-3"]

    def test_to_dict(self, l_corner_chains):
        data = detect_junctions(l_corner_chains).to_dict()
        assert data["counts"]["l_corner"] == 1
        corner = next(j for j in data["junctions"] if j["kind"] == "l_corner")
        assert corner["primary_chain_id"] == "chain-0"
