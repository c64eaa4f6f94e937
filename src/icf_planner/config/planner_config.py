# File: src/icf_planner/config/planner_config.py
"""
Configuration objects for every pipeline stage.

Each stage receives an explicit configuration dataclass; there is no
module-level mutable state. Every class offers ``validate()`` (raising
ConfigurationError with all problems listed), ``to_dict()`` and
``from_dict()``.

Example:
    >>> tolerances = ChainTolerances.for_preset("normal")
    >>> tolerances.snap_tol_mm
    25.0
    >>> config = PlannerConfig(tolerances=tolerances)
    >>> config.validate()
"""

import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from ..errors import ConfigurationError
from .icf_constants import (
    CoreThickness,
    CornerMode,
    MIN_CUT_MM,
    PANEL_HEIGHT_MM,
    PANEL_WIDTH_MM,
    RebarSpacing,
    STAGGER_OFFSET_MM,
    TOOTH_MM,
    WEBS_PER_PANEL,
)


# Chain builder presets, from strict to relaxed
CHAIN_PRESETS: Dict[str, Dict[str, float]] = {
    "conservative": {
        "snap_tol_mm": 10.0,
        "gap_tol_mm": 20.0,
        "angle_tol_deg": 3.0,
        "noise_min_mm": 80.0,
        "jog_max_mm": 80.0,
    },
    "normal": {
        "snap_tol_mm": 25.0,
        "gap_tol_mm": 50.0,
        "angle_tol_deg": 5.0,
        "noise_min_mm": 80.0,
        "jog_max_mm": 150.0,
    },
    "aggressive": {
        "snap_tol_mm": 40.0,
        "gap_tol_mm": 100.0,
        "angle_tol_deg": 10.0,
        "noise_min_mm": 60.0,
        "jog_max_mm": 300.0,
    },
}

PRESET_ORDER = ("conservative", "normal", "aggressive")


def _is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only keys that are dataclass fields of ``cls``."""
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class ChainTolerances:
    """Tolerances for merging raw wall segments into chains.

    Attributes:
        snap_tol_mm: Endpoints closer than this are snapped together
        gap_tol_mm: Collinear gaps up to this width are bridged
        angle_tol_deg: Max angle difference for segments to count as collinear
        noise_min_mm: Segments shorter than this are dropped as scanning noise
        jog_max_mm: Short offsets between collinear runs up to this length are
            removed (0 disables jog simplification)
        snap_orthogonal: Snap near-horizontal/vertical segments to the axes
        detect_candidates: Report large collinear gaps as opening candidates
        candidate_min_width_mm: Smallest gap reported as an opening candidate
        candidate_max_width_mm: Largest gap reported as an opening candidate
        max_reduce_iterations: Hard cap on collinear graph reduction passes
        preset: Name of the preset these values came from, if any
    """
    snap_tol_mm: float = 5.0
    gap_tol_mm: float = 10.0
    angle_tol_deg: float = 2.0
    noise_min_mm: float = 100.0
    jog_max_mm: float = 0.0
    snap_orthogonal: bool = True
    detect_candidates: bool = True
    candidate_min_width_mm: float = 450.0
    candidate_max_width_mm: float = 4000.0
    max_reduce_iterations: int = 1000
    preset: Optional[str] = None

    @property
    def angle_tol_rad(self) -> float:
        return math.radians(self.angle_tol_deg)

    def validate(self) -> None:
        """Validate tolerance values.

        Raises:
            ConfigurationError: If any value is invalid
        """
        errors = []

        for name in ("snap_tol_mm", "gap_tol_mm", "noise_min_mm", "jog_max_mm"):
            value = getattr(self, name)
            if not _is_finite_number(value) or value < 0:
                errors.append(f"{name} must be a non-negative number")

        if not _is_finite_number(self.angle_tol_deg) or not 0 <= self.angle_tol_deg < 45:
            errors.append("angle_tol_deg must be in [0, 45)")

        if self.candidate_min_width_mm < 0:
            errors.append("candidate_min_width_mm cannot be negative")
        if self.candidate_max_width_mm < self.candidate_min_width_mm:
            errors.append(
                f"candidate_max_width_mm ({self.candidate_max_width_mm}) cannot be "
                f"less than candidate_min_width_mm ({self.candidate_min_width_mm})"
            )
        if self.max_reduce_iterations < 1:
            errors.append("max_reduce_iterations must be at least 1")

        if self.preset is not None and self.preset not in CHAIN_PRESETS:
            errors.append(f"Unknown preset '{self.preset}'")

        if errors:
            raise ConfigurationError("ChainTolerances", errors)

    def to_dict(self) -> Dict[str, Any]:
        """Convert tolerances to dictionary for serialization."""
        return {
            "snap_tol_mm": self.snap_tol_mm,
            "gap_tol_mm": self.gap_tol_mm,
            "angle_tol_deg": self.angle_tol_deg,
            "noise_min_mm": self.noise_min_mm,
            "jog_max_mm": self.jog_max_mm,
            "snap_orthogonal": self.snap_orthogonal,
            "detect_candidates": self.detect_candidates,
            "candidate_min_width_mm": self.candidate_min_width_mm,
            "candidate_max_width_mm": self.candidate_max_width_mm,
            "max_reduce_iterations": self.max_reduce_iterations,
            "preset": self.preset,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainTolerances":
        """Create tolerances from dictionary (unknown keys are ignored)."""
        return cls(**_known_fields(cls, data))

    @classmethod
    def for_preset(cls, name: str, **overrides) -> "ChainTolerances":
        """Tolerances for a named preset ("conservative", "normal", "aggressive").

        Args:
            name: Preset name
            **overrides: Individual values replacing the preset's

        Raises:
            ConfigurationError: If the preset name is unknown
        """
        if name not in CHAIN_PRESETS:
            raise ConfigurationError(
                "ChainTolerances",
                [f"Unknown preset '{name}', expected one of {', '.join(PRESET_ORDER)}"],
            )
        values: Dict[str, Any] = dict(CHAIN_PRESETS[name])
        values.update(overrides)
        values["preset"] = name
        return cls(**values)


@dataclass
class FootprintConfig:
    """Parameters for outer-polygon detection and side classification.

    Attributes:
        graph_tolerance_mm: Rounding grid used to join chain endpoints into
            graph nodes for loop tracing
        sample_offset_mm: Distance of the side sample points from the chain
        boundary_tolerance_mm: Max distance from the outer polygon for a chain
            to count as lying on it
        centroid_cutoff_mm: Minimum difference between the two side samples'
            centroid distances for the farther side to be called exterior
        min_chain_length_mm: Chains shorter than this are left unresolved
    """
    graph_tolerance_mm: float = 100.0
    sample_offset_mm: float = 150.0
    boundary_tolerance_mm: float = 50.0
    centroid_cutoff_mm: float = 10.0
    min_chain_length_mm: float = 1.0

    def validate(self) -> None:
        errors = []
        if self.graph_tolerance_mm <= 0:
            errors.append("graph_tolerance_mm must be positive")
        if self.sample_offset_mm <= 0:
            errors.append("sample_offset_mm must be positive")
        if self.boundary_tolerance_mm < 0:
            errors.append("boundary_tolerance_mm cannot be negative")
        if self.centroid_cutoff_mm < 0:
            errors.append("centroid_cutoff_mm cannot be negative")
        if self.min_chain_length_mm < 0:
            errors.append("min_chain_length_mm cannot be negative")
        if errors:
            raise ConfigurationError("FootprintConfig", errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "graph_tolerance_mm": self.graph_tolerance_mm,
            "sample_offset_mm": self.sample_offset_mm,
            "boundary_tolerance_mm": self.boundary_tolerance_mm,
            "centroid_cutoff_mm": self.centroid_cutoff_mm,
            "min_chain_length_mm": self.min_chain_length_mm,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FootprintConfig":
        return cls(**_known_fields(cls, data))


@dataclass
class JunctionConfig:
    """Parameters for junction detection.

    Attributes:
        node_tolerance_mm: Rounding grid (and merge distance) for endpoint nodes
        l_angle_tolerance_rad: Max deviation from 90 degrees for an L corner
        collinear_tolerance_rad: Max deviation for two T arms to form the main run
        inline_angle_deg: Two ends whose outward directions are at least this
            far apart are a straight continuation, not a corner
        detect_midspan: Also detect endpoints that touch the interior of
            another chain (unsplit T-intersections)
        end_match_tolerance_mm: Max distance between a chain end and a node for
            the layout engine to apply that node's templates
    """
    node_tolerance_mm: float = 15.0
    l_angle_tolerance_rad: float = 0.35
    collinear_tolerance_rad: float = 0.25
    inline_angle_deg: float = 170.0
    detect_midspan: bool = True
    end_match_tolerance_mm: float = 20.0

    def validate(self) -> None:
        errors = []
        if self.node_tolerance_mm <= 0:
            errors.append("node_tolerance_mm must be positive")
        if not 0 < self.l_angle_tolerance_rad < math.pi / 4:
            errors.append("l_angle_tolerance_rad must be in (0, pi/4)")
        if not 0 < self.collinear_tolerance_rad < math.pi / 4:
            errors.append("collinear_tolerance_rad must be in (0, pi/4)")
        if not 90 < self.inline_angle_deg <= 180:
            errors.append("inline_angle_deg must be in (90, 180]")
        if self.end_match_tolerance_mm < 0:
            errors.append("end_match_tolerance_mm cannot be negative")
        if errors:
            raise ConfigurationError("JunctionConfig", errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_tolerance_mm": self.node_tolerance_mm,
            "l_angle_tolerance_rad": self.l_angle_tolerance_rad,
            "collinear_tolerance_rad": self.collinear_tolerance_rad,
            "inline_angle_deg": self.inline_angle_deg,
            "detect_midspan": self.detect_midspan,
            "end_match_tolerance_mm": self.end_match_tolerance_mm,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JunctionConfig":
        return cls(**_known_fields(cls, data))


@dataclass
class LayoutConfig:
    """Configuration for the panel layout engine.

    Attributes:
        panel_width_mm: Standard panel width
        panel_height_mm: Height of one row
        tooth_mm: Base modular unit for fine offsets
        stagger_offset_mm: Offset of odd rows (also the corner cut width)
        min_cut_mm: Pieces narrower than this are dropped as waste
        min_center_cut_mm: Center remainders narrower than this are merged
            with one full panel into a CUT_DOUBLE piece
        core_thickness: Concrete core thickness (sizes the topos)
        corner_mode: Whether L corners get topos on alternate rows
        min_chain_length_mm: Chains shorter than this are not laid out
        max_rows: Rows in the full wall height
        visible_rows: Rows to evaluate (progressive evaluation); None means all
    """
    panel_width_mm: float = PANEL_WIDTH_MM
    panel_height_mm: float = PANEL_HEIGHT_MM
    tooth_mm: float = TOOTH_MM
    stagger_offset_mm: float = STAGGER_OFFSET_MM
    min_cut_mm: float = MIN_CUT_MM
    min_center_cut_mm: float = 300.0
    core_thickness: CoreThickness = field(
        default_factory=lambda: CoreThickness.CORE_150
    )
    corner_mode: CornerMode = field(
        default_factory=lambda: CornerMode.OVERLAP_CUT
    )
    min_chain_length_mm: float = 50.0
    max_rows: int = 1
    visible_rows: Optional[int] = None

    def __post_init__(self):
        """Convert enum values given as plain strings or ints."""
        if not isinstance(self.core_thickness, CoreThickness):
            self.core_thickness = CoreThickness(int(self.core_thickness))
        if isinstance(self.corner_mode, str):
            self.corner_mode = CornerMode(self.corner_mode)

    @property
    def row_count(self) -> int:
        """Rows actually evaluated: min(visible_rows, max_rows)."""
        if self.visible_rows is None:
            return self.max_rows
        return max(0, min(self.visible_rows, self.max_rows))

    @property
    def core_thickness_mm(self) -> float:
        return float(self.core_thickness.value)

    def validate(self) -> None:
        """Validate layout parameters.

        Raises:
            ConfigurationError: If any value is invalid
        """
        errors = []

        for name in ("panel_width_mm", "panel_height_mm", "tooth_mm", "stagger_offset_mm"):
            value = getattr(self, name)
            if not _is_finite_number(value) or value <= 0:
                errors.append(f"{name} must be positive")

        if self.stagger_offset_mm >= self.panel_width_mm:
            errors.append(
                f"stagger_offset_mm ({self.stagger_offset_mm}) must be less than "
                f"panel_width_mm ({self.panel_width_mm})"
            )
        if self.min_cut_mm < 0:
            errors.append("min_cut_mm cannot be negative")
        if self.min_cut_mm > self.stagger_offset_mm:
            errors.append("min_cut_mm cannot exceed stagger_offset_mm")
        if self.min_center_cut_mm < self.min_cut_mm:
            errors.append(
                f"min_center_cut_mm ({self.min_center_cut_mm}) cannot be less than "
                f"min_cut_mm ({self.min_cut_mm})"
            )
        if self.min_center_cut_mm > self.panel_width_mm:
            errors.append("min_center_cut_mm cannot exceed panel_width_mm")
        if self.min_chain_length_mm < 0:
            errors.append("min_chain_length_mm cannot be negative")
        if self.max_rows < 0:
            errors.append("max_rows cannot be negative")
        if self.visible_rows is not None and self.visible_rows < 0:
            errors.append("visible_rows cannot be negative")

        if errors:
            raise ConfigurationError("LayoutConfig", errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "panel_width_mm": self.panel_width_mm,
            "panel_height_mm": self.panel_height_mm,
            "tooth_mm": self.tooth_mm,
            "stagger_offset_mm": self.stagger_offset_mm,
            "min_cut_mm": self.min_cut_mm,
            "min_center_cut_mm": self.min_center_cut_mm,
            "core_thickness": self.core_thickness.value,
            "corner_mode": self.corner_mode.value,
            "min_chain_length_mm": self.min_chain_length_mm,
            "max_rows": self.max_rows,
            "visible_rows": self.visible_rows,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LayoutConfig":
        return cls(**_known_fields(cls, data))

    @classmethod
    def for_wall_height(cls, wall_height_mm: float, **kwargs) -> "LayoutConfig":
        """Layout configuration with ``max_rows`` derived from a wall height.

        Raises:
            ConfigurationError: If the height is negative or not finite
        """
        panel_height = kwargs.get("panel_height_mm", PANEL_HEIGHT_MM)
        if not _is_finite_number(wall_height_mm) or wall_height_mm < 0:
            raise ConfigurationError(
                "LayoutConfig", [f"wall height must be non-negative, got {wall_height_mm}"]
            )
        rows = int(math.ceil(wall_height_mm / panel_height))
        return cls(max_rows=rows, **kwargs)


@dataclass
class GridSettings:
    """Which rows receive stabilization grids."""
    base: bool = True
    mid: bool = False
    top: bool = False

    def rows_for(self, row_count: int) -> List[int]:
        """Sorted unique row indices that get grids for a wall of ``row_count`` rows."""
        rows = []
        if row_count <= 0:
            return rows
        if self.base:
            rows.append(0)
        if self.mid and row_count > 2:
            rows.append(row_count // 2)
        if self.top and row_count > 1:
            rows.append(row_count - 1)
        return sorted(set(rows))

    def to_dict(self) -> Dict[str, bool]:
        return {"base": self.base, "mid": self.mid, "top": self.top}


@dataclass
class BomConfig:
    """Configuration for bill of materials aggregation.

    Attributes:
        connectors_per_panel: Connectors (tarugos) per purchased panel
        rebar_spacing: Horizontal rebar spacing; selects spacers per panel
        grid_settings: Rows that receive stabilization grids
        grid_unit_length_m: Length covered by one grid unit
        bin_capacity_mm: Length of one purchasable unit for packing
    """
    connectors_per_panel: int = 2
    rebar_spacing: RebarSpacing = field(
        default_factory=lambda: RebarSpacing.CM_20
    )
    grid_settings: GridSettings = field(default_factory=GridSettings)
    grid_unit_length_m: float = 3.0
    bin_capacity_mm: float = PANEL_WIDTH_MM

    def __post_init__(self):
        if not isinstance(self.rebar_spacing, RebarSpacing):
            self.rebar_spacing = RebarSpacing(int(self.rebar_spacing))
        if isinstance(self.grid_settings, dict):
            self.grid_settings = GridSettings(**self.grid_settings)

    @property
    def webs_per_panel(self) -> int:
        return WEBS_PER_PANEL[self.rebar_spacing]

    def validate(self) -> None:
        errors = []
        if self.connectors_per_panel < 0:
            errors.append("connectors_per_panel cannot be negative")
        if self.grid_unit_length_m <= 0:
            errors.append("grid_unit_length_m must be positive")
        if self.bin_capacity_mm <= 0:
            errors.append("bin_capacity_mm must be positive")
        if errors:
            raise ConfigurationError("BomConfig", errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connectors_per_panel": self.connectors_per_panel,
            "rebar_spacing": self.rebar_spacing.value,
            "grid_settings": self.grid_settings.to_dict(),
            "grid_unit_length_m": self.grid_unit_length_m,
            "bin_capacity_mm": self.bin_capacity_mm,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BomConfig":
        return cls(**_known_fields(cls, data))


@dataclass
class PlannerConfig:
    """Aggregate configuration passed to ``run_pipeline``.

    Attributes:
        tolerances: Chain builder tolerances
        auto_tune: Try the chain presets and keep the best result instead of
            using ``tolerances`` directly
        max_auto_tune_attempts: Hard cap on auto-tune attempts
        footprint: Footprint classifier parameters
        junctions: Junction detector parameters
        layout: Panel layout parameters
        bom: Bill of materials parameters
    """
    tolerances: ChainTolerances = field(default_factory=ChainTolerances)
    auto_tune: bool = False
    max_auto_tune_attempts: int = len(PRESET_ORDER)
    footprint: FootprintConfig = field(default_factory=FootprintConfig)
    junctions: JunctionConfig = field(default_factory=JunctionConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    bom: BomConfig = field(default_factory=BomConfig)

    def validate(self) -> None:
        """Validate every nested configuration.

        Raises:
            ConfigurationError: With the errors of all sections combined
        """
        errors: List[str] = []
        for section in (self.tolerances, self.footprint, self.junctions, self.layout, self.bom):
            try:
                section.validate()
            except ConfigurationError as exc:
                errors.extend(exc.errors)

        if not 1 <= self.max_auto_tune_attempts <= len(PRESET_ORDER):
            errors.append(
                f"max_auto_tune_attempts must be between 1 and {len(PRESET_ORDER)}"
            )

        if errors:
            raise ConfigurationError("PlannerConfig", errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tolerances": self.tolerances.to_dict(),
            "auto_tune": self.auto_tune,
            "max_auto_tune_attempts": self.max_auto_tune_attempts,
            "footprint": self.footprint.to_dict(),
            "junctions": self.junctions.to_dict(),
            "layout": self.layout.to_dict(),
            "bom": self.bom.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlannerConfig":
        """Create configuration from a (possibly partial) dictionary."""
        return cls(
            tolerances=ChainTolerances.from_dict(data.get("tolerances", {})),
            auto_tune=data.get("auto_tune", False),
            max_auto_tune_attempts=data.get("max_auto_tune_attempts", len(PRESET_ORDER)),
            footprint=FootprintConfig.from_dict(data.get("footprint", {})),
            junctions=JunctionConfig.from_dict(data.get("junctions", {})),
            layout=LayoutConfig.from_dict(data.get("layout", {})),
            bom=BomConfig.from_dict(data.get("bom", {})),
        )
