# File: src/icf_planner/__init__.py

"""
ICF wall planner.

Turns raw 2D wall segments into consolidated wall chains, classifies them
against the building footprint, detects junctions, lays out insulated
concrete form panels row by row around openings, and aggregates a bill of
materials.
"""

__version__ = "0.1.0"

from .errors import (
    IcfPlannerError,
    ConfigurationError,
    PlanInputError,
    LayoutInvariantError,
)
from .config import PlannerConfig, ChainTolerances, LayoutConfig, BomConfig
from .chains import WallSegment, Chain, build_chains, auto_tune_chains
from .openings import Opening, OpeningKind
from .panels import PanelOverride
from .models import PlanRequest, parse_plan_request
from .pipeline import PlanResult, run_pipeline, plan_from_request

__all__ = [
    "__version__",
    "IcfPlannerError",
    "ConfigurationError",
    "PlanInputError",
    "LayoutInvariantError",
    "PlannerConfig",
    "ChainTolerances",
    "LayoutConfig",
    "BomConfig",
    "WallSegment",
    "Chain",
    "build_chains",
    "auto_tune_chains",
    "Opening",
    "OpeningKind",
    "PanelOverride",
    "PlanRequest",
    "parse_plan_request",
    "PlanResult",
    "run_pipeline",
    "plan_from_request",
]
