# File: src/icf_planner/models/__init__.py

"""Pydantic request models for the planning pipeline."""

from .plan_models import (
    WallSegmentModel,
    OpeningModel,
    ChainTolerancesModel,
    GridSettingsModel,
    PanelOverrideModel,
    PlanRequest,
    parse_plan_request,
)

__all__ = [
    "WallSegmentModel",
    "OpeningModel",
    "ChainTolerancesModel",
    "GridSettingsModel",
    "PanelOverrideModel",
    "PlanRequest",
    "parse_plan_request",
]
