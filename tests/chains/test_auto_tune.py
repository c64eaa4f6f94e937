# File: tests/chains/test_auto_tune.py

"""Tests for preset-based chain auto-tuning."""

import pytest

from icf_planner.chains.auto_tune import FRAGMENTATION_WEIGHT, auto_tune_chains, score_result
from icf_planner.chains.chain_builder import build_chains
from icf_planner.chains.chain_types import ChainBuildResult, ChainBuildStats, WallSegment
from icf_planner.config.planner_config import CHAIN_PRESETS, PRESET_ORDER, ChainTolerances
from icf_planner.errors import ConfigurationError


class TestPresets:
    """Named tolerance presets."""

    def test_preset_order_is_strict_to_relaxed(self):
        snaps = [CHAIN_PRESETS[name]["snap_tol_mm"] for name in PRESET_ORDER]
        assert snaps == sorted(snaps)

    def test_for_preset_applies_overrides(self):
        tol = ChainTolerances.for_preset("aggressive", gap_tol_mm=5.0)
        assert tol.preset == "aggressive"
        assert tol.gap_tol_mm == 5.0
        assert tol.snap_tol_mm == CHAIN_PRESETS["aggressive"]["snap_tol_mm"]

    def test_unknown_preset_raises(self):
        with pytest.raises(ConfigurationError):
            ChainTolerances.for_preset("reckless")


class TestScore:
    """Auto-tune scoring."""

    def test_score_combines_waste_and_fragmentation(self):
        stats = ChainBuildStats(original_segments=10, chains_count=5, waste_pct=0.1)
        result = ChainBuildResult(stats=stats)
        assert score_result(result) == pytest.approx(0.1 + FRAGMENTATION_WEIGHT * 0.5)

    def test_empty_input_scores_zero(self):
        assert score_result(ChainBuildResult()) == 0.0


class TestAutoTune:
    """Bounded search over the presets."""

    def test_stops_when_chain_count_is_stable(self, rectangle):
        result = auto_tune_chains(rectangle)
        # Conservative and normal agree on 4 chains, so aggressive is never tried
        assert result.tried_presets == ["conservative", "normal"]
        assert result.preset == "conservative"
        assert len(result.chains) == 4

    def test_attempt_cap(self, rectangle):
        result = auto_tune_chains(rectangle, max_attempts=1)
        assert result.tried_presets == ["conservative"]

    def test_cap_is_clamped_to_preset_count(self, rectangle):
        result = auto_tune_chains(rectangle, max_attempts=99, presets=["normal"])
        assert result.tried_presets == ["normal"]

    def test_relaxed_preset_wins_on_noisy_input(self):
        # A 30 mm gap is bridged by "normal" but not by "conservative"
        segments = [
            WallSegment(0, 0, 2000, 0),
            WallSegment(2030, 0, 4000, 0),
        ]
        result = auto_tune_chains(segments)
        assert result.preset == "normal"
        assert len(result.chains) == 1
        assert result.stats.bridged_gaps == 1

    def test_result_matches_direct_build(self, rectangle):
        tuned = auto_tune_chains(rectangle, max_attempts=1)
        direct = build_chains(rectangle, ChainTolerances.for_preset("conservative"))
        assert [c.to_dict() for c in tuned.chains] == [c.to_dict() for c in direct.chains]

    def test_empty_preset_list_raises(self, rectangle):
        with pytest.raises(ConfigurationError):
            auto_tune_chains(rectangle, presets=[])

    def test_first_attempt_is_kept_for_empty_input(self):
        result = auto_tune_chains([], max_attempts=1)
        assert result.tried_presets == ["conservative"]
        assert result.chains == []
