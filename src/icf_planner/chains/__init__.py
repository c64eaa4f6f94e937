# File: src/icf_planner/chains/__init__.py

"""
Chain reconstruction: raw wall segments to consolidated straight runs.

Example:
    >>> from icf_planner.chains import WallSegment, build_chains
    >>> result = build_chains([WallSegment(0, 0, 2000, 0), WallSegment(2000, 0, 3700, 0)])
    >>> [c.length_mm for c in result.chains]
    [3700.0]
"""

from .chain_types import (
    WallSegment,
    Chain,
    OpeningCandidate,
    ChainBuildStats,
    ChainBuildResult,
    chain_id_sort_key,
)
from .chain_builder import build_chains, calculate_waste_stats
from .auto_tune import auto_tune_chains, score_result

__all__ = [
    "WallSegment",
    "Chain",
    "OpeningCandidate",
    "ChainBuildStats",
    "ChainBuildResult",
    "chain_id_sort_key",
    "build_chains",
    "calculate_waste_stats",
    "auto_tune_chains",
    "score_result",
]
