# File: tests/footprint/test_footprint_classifier.py

"""Tests for outer footprint detection and chain side classification.

Tests cover:
- Outer loop detection and CCW normalization
- Perimeter exterior side from the sample points
- Partition walls inside the outline
- Dangling walls (spurs) left out of the outline
- Convex hull fallback for open layouts
- Unresolved chains and empty input
"""

import pytest
from shapely.geometry import Polygon

from icf_planner.chains.chain_types import Chain
from icf_planner.config.planner_config import FootprintConfig
from icf_planner.errors import ConfigurationError
from icf_planner.footprint.footprint_classifier import classify_footprint
from icf_planner.footprint.footprint_types import (
    ChainClassification,
    ExteriorSide,
    FootprintStatus,
)


def _chain(chain_id, start, end) -> Chain:
    return Chain.from_points(chain_id, start, end)


class TestOuterPolygon:
    """Largest traced loop becomes the outline."""

    def test_rectangle_outline(self, rectangle_chains):
        result = classify_footprint(rectangle_chains)
        assert result.status == FootprintStatus.OK
        assert not result.used_fallback
        assert result.area_mm2 == pytest.approx(24e6)
        assert Polygon(result.outer_polygon).exterior.is_ccw
        assert result.centroid == pytest.approx((3000.0, 2000.0))
        assert len(result.interior_loops) == 1

    def test_two_rooms_have_two_interior_loops(self):
        # Split the outline at x=3000 so the partition closes two rooms
        chains = [
            _chain("chain-0", (0, 0), (0, 4000)),
            _chain("chain-1", (0, 0), (3000, 0)),
            _chain("chain-2", (0, 4000), (3000, 4000)),
            _chain("chain-3", (3000, 0), (3000, 4000)),
            _chain("chain-4", (3000, 0), (6000, 0)),
            _chain("chain-5", (3000, 4000), (6000, 4000)),
            _chain("chain-6", (6000, 0), (6000, 4000)),
        ]
        result = classify_footprint(chains)
        assert result.status == FootprintStatus.OK
        assert result.area_mm2 == pytest.approx(24e6)
        assert len(result.interior_loops) == 2
        assert result.classification_of("chain-3") == ChainClassification.PARTITION


class TestSideClassification:
    """Exterior side from the two offset samples."""

    def test_bottom_wall_exterior_is_right(self, rectangle_chains):
        result = classify_footprint(rectangle_chains)
        info = result.side_info("chain-1")  # (0,0) -> (6000,0)
        assert info.classification == ChainClassification.PERIMETER
        assert info.exterior_side == ExteriorSide.RIGHT
        assert info.left_inside and not info.right_inside
        assert not info.left_is_exterior

    def test_left_wall_exterior_is_left(self, rectangle_chains):
        result = classify_footprint(rectangle_chains)
        info = result.side_info("chain-0")  # (0,0) -> (0,4000)
        assert info.classification == ChainClassification.PERIMETER
        assert info.exterior_side == ExteriorSide.LEFT
        assert info.left_is_exterior

    def test_every_rectangle_chain_is_perimeter(self, rectangle_chains):
        result = classify_footprint(rectangle_chains)
        assert all(info.is_perimeter for info in result.sides.values())
        assert result.unresolved_chain_ids == []
        assert result.stats["perimeter"] == 4

    def test_interior_wall_is_partition(self, rectangle_chains):
        chains = rectangle_chains + [_chain("chain-4", (3000, 0), (3000, 4000))]
        result = classify_footprint(chains)
        info = result.side_info("chain-4")
        assert info.classification == ChainClassification.PARTITION
        assert info.exterior_side is None

    def test_sample_offset_is_configurable(self, rectangle_chains):
        result = classify_footprint(rectangle_chains, FootprintConfig(sample_offset_mm=300.0))
        info = result.side_info("chain-1")
        assert info.left_sample == pytest.approx((3000.0, 300.0))
        assert info.right_sample == pytest.approx((3000.0, -300.0))


class TestDanglingWalls:
    """Walls that close no loop stay out of the outline."""

    @pytest.mark.parametrize("spur", [
        ((6000, 1000), (8000, 1000)),
        ((-2000, 1000), (0, 1000)),
    ], ids=["right", "left"])
    def test_spur_is_unresolved(self, rectangle_chains, spur):
        chains = rectangle_chains + [_chain("chain-4", *spur)]
        result = classify_footprint(chains)
        assert result.status == FootprintStatus.OK
        assert result.area_mm2 == pytest.approx(24e6)
        assert result.centroid == pytest.approx((3000.0, 2000.0))

        info = result.side_info("chain-4")
        assert info.classification == ChainClassification.UNRESOLVED
        assert info.exterior_side is None
        assert info.method == "outside"
        assert not info.on_boundary
        assert result.unresolved_chain_ids == ["chain-4"]

    def test_rectangle_walls_still_perimeter_with_spur(self, rectangle_chains):
        chains = rectangle_chains + [_chain("chain-4", (6000, 1000), (8000, 1000))]
        result = classify_footprint(chains)
        assert result.stats["perimeter"] == 4
        right = result.side_info("chain-3")
        assert right.classification == ChainClassification.PERIMETER
        assert right.exterior_side == ExteriorSide.RIGHT

    def test_spur_closes_no_loop(self, rectangle_chains):
        chains = rectangle_chains + [_chain("chain-4", (6000, 1000), (8000, 1000))]
        result = classify_footprint(chains)
        assert len(result.interior_loops) == 1
        xs = [x for x, _ in result.outer_polygon]
        assert max(xs) == pytest.approx(6000.0)


class TestFallback:
    """Open layouts fall back to the convex hull."""

    def test_open_l_uses_convex_hull(self):
        chains = [
            _chain("chain-0", (0, 0), (0, 4000)),
            _chain("chain-1", (0, 0), (6000, 0)),
        ]
        result = classify_footprint(chains)
        assert result.status == FootprintStatus.FALLBACK
        assert result.used_fallback
        assert result.area_mm2 == pytest.approx(12e6)
        assert result.loops_found == 0

        bottom = result.side_info("chain-1")
        assert bottom.classification == ChainClassification.PERIMETER
        assert bottom.exterior_side == ExteriorSide.RIGHT

    def test_single_chain_is_unresolved(self):
        result = classify_footprint([_chain("chain-0", (0, 0), (3000, 0))])
        assert result.status == FootprintStatus.FALLBACK
        assert result.outer_polygon == []
        assert result.unresolved_chain_ids == ["chain-0"]
        assert result.side_info("chain-0").method == "no_polygon"

    def test_unresolved_chains_are_kept(self):
        result = classify_footprint([_chain("chain-0", (0, 0), (3000, 0))])
        assert "chain-0" in result.sides


class TestEdgeCases:

    def test_no_chains(self):
        result = classify_footprint([])
        assert result.status == FootprintStatus.NO_WALLS
        assert result.sides == {}
        assert result.classification_of("chain-0") == ChainClassification.UNRESOLVED

    def test_invalid_config_raises(self, rectangle_chains):
        with pytest.raises(ConfigurationError):
            classify_footprint(rectangle_chains, FootprintConfig(sample_offset_mm=0))

    def test_to_dict_is_plain_data(self, rectangle_chains):
        data = classify_footprint(rectangle_chains).to_dict()
        assert data["status"] == "ok"
        assert data["sides"]["chain-1"]["exterior_side"] == "right"
        assert data["used_fallback"] is False
