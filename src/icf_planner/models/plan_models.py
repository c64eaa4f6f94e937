# File: src/icf_planner/models/plan_models.py

"""Request models validating caller payloads at the pipeline boundary.

The pipeline itself works on dataclasses; these pydantic models check a raw
JSON-like payload and convert it into segments, openings, overrides and a
PlannerConfig.
"""

import math
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..chains.chain_types import WallSegment
from ..config.icf_constants import CoreThickness, CornerMode, RebarSpacing
from ..config.planner_config import (
    BomConfig,
    ChainTolerances,
    GridSettings,
    LayoutConfig,
    PlannerConfig,
    PRESET_ORDER,
)
from ..errors import PlanInputError
from ..openings.opening_types import Opening, OpeningKind
from ..panels.panel_overrides import PanelOverride
from ..panels.panel_types import PanelType


def _require_finite(v: Optional[float]) -> Optional[float]:
    if v is not None and not math.isfinite(v):
        raise ValueError("value must be a finite number")
    return v


class WallSegmentModel(BaseModel):
    """Raw wall segment in millimeters."""
    start_x: float = Field(description="Start X (mm)")
    start_y: float = Field(description="Start Y (mm)")
    end_x: float = Field(description="End X (mm)")
    end_y: float = Field(description="End Y (mm)")

    @field_validator('start_x', 'start_y', 'end_x', 'end_y')
    @classmethod
    def validate_coordinate(cls, v: float) -> float:
        """Reject NaN and infinite coordinates."""
        return _require_finite(v)

    def to_segment(self) -> WallSegment:
        return WallSegment(self.start_x, self.start_y, self.end_x, self.end_y)


class OpeningModel(BaseModel):
    """Door or window bound to a chain."""
    id: str = Field(description="Opening identifier", min_length=1)
    chain_id: str = Field(description="Chain the opening belongs to", min_length=1)
    offset_mm: float = Field(description="Distance from chain start to the opening's left edge")
    width_mm: float = Field(description="Opening width", gt=0)
    sill_mm: float = Field(default=0.0, description="Height of the opening bottom", ge=0)
    height_mm: float = Field(description="Opening height", gt=0)
    kind: Literal["door", "window"] = Field(default="window", description="Opening kind")

    @field_validator('offset_mm', 'width_mm', 'sill_mm', 'height_mm')
    @classmethod
    def validate_dimension(cls, v: float) -> float:
        return _require_finite(v)

    @model_validator(mode='after')
    def validate_opening(self) -> 'OpeningModel':
        """Doors start at the wall base."""
        if self.kind == 'door' and self.sill_mm > 0:
            raise ValueError(f"Door {self.id} must have sill_mm = 0")
        return self

    def to_opening(self) -> Opening:
        return Opening(
            id=self.id,
            chain_id=self.chain_id,
            offset_mm=self.offset_mm,
            width_mm=self.width_mm,
            sill_mm=self.sill_mm,
            height_mm=self.height_mm,
            kind=OpeningKind(self.kind),
        )


class ChainTolerancesModel(BaseModel):
    """Chain builder tolerances; a preset supplies defaults for unset values."""
    snap_tol_mm: float = Field(default=5.0, ge=0)
    gap_tol_mm: float = Field(default=10.0, ge=0)
    angle_tol_deg: float = Field(default=2.0, ge=0, lt=45)
    noise_min_mm: float = Field(default=100.0, ge=0)
    jog_max_mm: float = Field(default=0.0, ge=0)
    snap_orthogonal: bool = True
    detect_candidates: bool = True
    preset: Optional[Literal["conservative", "normal", "aggressive"]] = None

    @field_validator('snap_tol_mm', 'gap_tol_mm', 'angle_tol_deg', 'noise_min_mm', 'jog_max_mm')
    @classmethod
    def validate_tolerance(cls, v: float) -> float:
        return _require_finite(v)

    def to_tolerances(self) -> ChainTolerances:
        values = self.model_dump(exclude={"preset"})
        if self.preset is None:
            return ChainTolerances(**values)
        explicit = {k: v for k, v in values.items() if k in self.model_fields_set}
        return ChainTolerances.for_preset(self.preset, **explicit)


class GridSettingsModel(BaseModel):
    base: bool = True
    mid: bool = False
    top: bool = False


class PanelOverrideModel(BaseModel):
    """Manual change to one panel, keyed by panel id in the request."""
    override_type: Optional[Literal[
        "full", "cut_single", "cut_double", "corner_cut", "end_cut", "topo"
    ]] = None
    offset_mm: Optional[float] = None
    width_mm: Optional[float] = None
    cut_mm: Optional[float] = None
    is_locked: bool = False

    def to_override(self) -> PanelOverride:
        return PanelOverride(
            override_type=PanelType(self.override_type) if self.override_type else None,
            offset_mm=self.offset_mm,
            width_mm=self.width_mm,
            cut_mm=self.cut_mm,
            is_locked=self.is_locked,
        )


class PlanRequest(BaseModel):
    """Everything needed for one planning run.

    Row count comes from either ``wall_height_mm`` (rounded up to whole
    rows) or ``max_rows``; with neither, a single row is planned.
    """
    segments: List[WallSegmentModel] = Field(default_factory=list)
    openings: List[OpeningModel] = Field(default_factory=list)
    tolerances: ChainTolerancesModel = Field(default_factory=ChainTolerancesModel)
    auto_tune: bool = False
    max_auto_tune_attempts: int = Field(default=len(PRESET_ORDER), ge=1, le=len(PRESET_ORDER))
    wall_height_mm: Optional[float] = Field(default=None, gt=0)
    max_rows: Optional[int] = Field(default=None, ge=0)
    visible_rows: Optional[int] = Field(default=None, ge=0)
    core_thickness_mm: Literal[150, 200, 220] = 150
    corner_mode: Literal["overlap_cut", "topo"] = "overlap_cut"
    rebar_spacing_cm: Literal[10, 15, 20] = 20
    grid_settings: GridSettingsModel = Field(default_factory=GridSettingsModel)
    flipped_chain_ids: List[str] = Field(default_factory=list)
    overrides: Dict[str, PanelOverrideModel] = Field(default_factory=dict)

    @field_validator('wall_height_mm')
    @classmethod
    def validate_height(cls, v: Optional[float]) -> Optional[float]:
        return _require_finite(v)

    @model_validator(mode='after')
    def validate_rows(self) -> 'PlanRequest':
        """Height and explicit row count are mutually exclusive."""
        if self.wall_height_mm is not None and self.max_rows is not None:
            raise ValueError("Give either wall_height_mm or max_rows, not both")
        return self

    def to_config(self) -> PlannerConfig:
        layout_kwargs: Dict[str, Any] = {
            "core_thickness": CoreThickness(self.core_thickness_mm),
            "corner_mode": CornerMode(self.corner_mode),
            "visible_rows": self.visible_rows,
        }
        if self.wall_height_mm is not None:
            layout = LayoutConfig.for_wall_height(self.wall_height_mm, **layout_kwargs)
        else:
            layout = LayoutConfig(
                max_rows=self.max_rows if self.max_rows is not None else 1,
                **layout_kwargs,
            )

        return PlannerConfig(
            tolerances=self.tolerances.to_tolerances(),
            auto_tune=self.auto_tune,
            max_auto_tune_attempts=self.max_auto_tune_attempts,
            layout=layout,
            bom=BomConfig(
                rebar_spacing=RebarSpacing(self.rebar_spacing_cm),
                grid_settings=GridSettings(**self.grid_settings.model_dump()),
            ),
        )

    def to_segments(self) -> List[WallSegment]:
        return [s.to_segment() for s in self.segments]

    def to_openings(self) -> List[Opening]:
        return [o.to_opening() for o in self.openings]

    def to_overrides(self) -> Dict[str, PanelOverride]:
        return {pid: o.to_override() for pid, o in self.overrides.items()}


def parse_plan_request(data: Dict[str, Any]) -> PlanRequest:
    """Validate a raw payload.

    Raises:
        PlanInputError: Listing every validation problem.
    """
    try:
        return PlanRequest.model_validate(data)
    except ValidationError as exc:
        errors = [
            {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
            for err in exc.errors()
        ]
        summary = "; ".join(f"{e['loc']}: {e['msg']}" for e in errors)
        raise PlanInputError(f"Invalid plan request: {summary}", errors=errors) from exc
