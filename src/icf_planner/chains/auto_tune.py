# File: src/icf_planner/chains/auto_tune.py

"""Automatic tolerance selection for the chain builder.

Presets are tried from strict to relaxed. Each attempt is scored by its panel
rounding waste plus a penalty for fragmentation; the best-scoring result is
returned. The search stops as soon as the chain count stops changing between
two consecutive attempts and never exceeds a hard attempt cap.
"""

import logging
from typing import List, Optional, Sequence

from ..config.planner_config import PRESET_ORDER, ChainTolerances
from ..errors import ConfigurationError
from .chain_builder import build_chains
from .chain_types import ChainBuildResult, WallSegment

logger = logging.getLogger(__name__)

# Weight of the chains/segments ratio in the attempt score
FRAGMENTATION_WEIGHT = 0.3


def score_result(result: ChainBuildResult) -> float:
    """Lower is better: waste fraction plus weighted fragmentation."""
    original = result.stats.original_segments
    fragmentation = result.stats.chains_count / original if original > 0 else 0.0
    return result.stats.waste_pct + FRAGMENTATION_WEIGHT * fragmentation


def auto_tune_chains(
    segments: Sequence[WallSegment],
    max_attempts: int = len(PRESET_ORDER),
    presets: Optional[Sequence[str]] = None,
) -> ChainBuildResult:
    """Build chains with the best of the named presets.

    Args:
        segments: Raw wall segments.
        max_attempts: Hard cap on build attempts (clamped to the preset count).
        presets: Preset names to try, in order (default strict to relaxed).

    Returns:
        The best-scoring ChainBuildResult. Its ``preset`` names the winning
        preset and ``tried_presets`` lists every preset evaluated.

    Raises:
        ConfigurationError: If ``presets`` is empty.
    """
    order: List[str] = list(presets) if presets is not None else list(PRESET_ORDER)
    if not order:
        raise ConfigurationError("auto_tune_chains", ["at least one preset is required"])
    limit = max(1, min(max_attempts, len(order)))

    best: Optional[ChainBuildResult] = None
    best_score = float("inf")
    tried: List[str] = []
    previous_count: Optional[int] = None

    for name in order[:limit]:
        tolerances = ChainTolerances.for_preset(name)
        result = build_chains(segments, tolerances)
        tried.append(name)

        score = score_result(result)
        logger.debug(
            "Auto-tune attempt '%s': %d chains, waste %.3f, score %.4f",
            name,
            result.stats.chains_count,
            result.stats.waste_pct,
            score,
        )

        if best is None or score < best_score:
            best = result
            best_score = score

        if previous_count is not None and result.stats.chains_count == previous_count:
            logger.debug("Chain count stable at %d, stopping auto-tune", previous_count)
            break
        previous_count = result.stats.chains_count

    best.tried_presets = tried
    logger.info(
        "Auto-tune selected preset '%s' after %d attempt(s) (%d chains)",
        best.preset,
        len(tried),
        best.stats.chains_count,
    )
    return best
