# File: src/icf_planner/footprint/__init__.py

"""Building footprint detection and chain side classification."""

from .footprint_types import (
    FootprintStatus,
    ChainClassification,
    ExteriorSide,
    ChainSideInfo,
    FootprintResult,
)
from .footprint_classifier import classify_footprint

__all__ = [
    "classify_footprint",
    "FootprintStatus",
    "ChainClassification",
    "ExteriorSide",
    "ChainSideInfo",
    "FootprintResult",
]
