# File: src/icf_planner/pipeline.py

"""
Pipeline orchestration.

Runs the planning stages leaves first and collects every intermediate
result:

    segments -> chains -> footprint -> junctions -> openings/intervals
             -> panel layout -> override patch -> bill of materials

Each stage receives its own configuration section; nothing is mutated in
place between stages.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .bom.bom_aggregator import calculate_bom
from .bom.bom_types import BOMResult
from .chains.auto_tune import auto_tune_chains
from .chains.chain_builder import build_chains
from .chains.chain_types import ChainBuildResult, WallSegment
from .config.planner_config import PlannerConfig
from .footprint.footprint_classifier import classify_footprint
from .footprint.footprint_types import FootprintResult
from .models.plan_models import PlanRequest
from .openings.interval_calculator import intervals_for_chains, resolve_openings
from .openings.opening_types import Opening, OpeningResolution
from .panels.layout_engine import generate_panel_layout
from .panels.panel_overrides import OverridePatchResult, PanelOverride, apply_panel_overrides
from .panels.panel_types import LayoutResult, Panel
from .wall_junctions.junction_detector import detect_junctions
from .wall_junctions.junction_types import JunctionGraph

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    """Outputs of every pipeline stage for one run.

    ``panels`` holds the final placements (after overrides); the unpatched
    layout stays available in ``layout``.
    """
    chains: ChainBuildResult
    footprint: FootprintResult
    junctions: JunctionGraph
    openings: OpeningResolution
    layout: LayoutResult
    overrides: OverridePatchResult
    bom: BOMResult
    config: PlannerConfig = field(default_factory=PlannerConfig)

    @property
    def panels(self) -> List[Panel]:
        return self.overrides.panels

    @property
    def warnings(self) -> List[str]:
        """Data-quality messages gathered from all stages."""
        messages: List[str] = []
        if self.footprint.used_fallback:
            messages.append("Outer polygon not found; convex hull fallback used")
        for chain_id in self.footprint.unresolved_chain_ids:
            messages.append(f"Chain {chain_id} could not be classified")
        messages.extend(self.openings.warnings)
        for piece in self.layout.dropped:
            messages.append(
                f"Dropped {piece.width_mm:.1f} mm piece on {piece.chain_id} "
                f"row {piece.row_index} ({piece.reason})"
            )
        for conflict in self.overrides.conflicts:
            messages.append(conflict.message)
        return messages

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chains": self.chains.to_dict(),
            "footprint": self.footprint.to_dict(),
            "junctions": self.junctions.to_dict(),
            "openings": self.openings.to_dict(),
            "layout": self.layout.to_dict(),
            "panels": [p.to_dict() for p in self.panels],
            "overrides": self.overrides.to_dict(),
            "bom": self.bom.to_dict(),
            "warnings": self.warnings,
            "config": self.config.to_dict(),
        }


def run_pipeline(
    segments: Sequence[WallSegment],
    openings: Sequence[Opening] = (),
    config: Optional[PlannerConfig] = None,
    flipped_chain_ids: Optional[Sequence[str]] = None,
    overrides: Optional[Mapping[str, PanelOverride]] = None,
) -> PlanResult:
    """Plan panels and materials for a set of raw wall segments.

    Args:
        segments: Raw wall segments in millimeters.
        openings: Doors and windows bound to chain ids of this build.
        config: Planner configuration (validated here).
        flipped_chain_ids: Chains whose side label is forced to the other face.
        overrides: Manual panel overrides keyed by panel id.

    Returns:
        PlanResult with every stage's output.

    Raises:
        ConfigurationError: If the configuration is invalid.
        LayoutInvariantError: If layout arithmetic breaks an invariant.
    """
    config = config or PlannerConfig()
    config.validate()
    layout_config = config.layout
    row_count = layout_config.row_count

    logger.info(
        "Planning %d segments, %d openings, %d rows",
        len(segments), len(openings), row_count,
    )

    if config.auto_tune:
        chain_result = auto_tune_chains(segments, max_attempts=config.max_auto_tune_attempts)
    else:
        chain_result = build_chains(segments, config.tolerances)
    chains = chain_result.chains

    footprint = classify_footprint(chains, config.footprint)
    junctions = detect_junctions(chains, config.junctions)

    resolution = resolve_openings(chains, openings)
    intervals = intervals_for_chains(
        chains, resolution.resolved, row_count, layout_config.panel_height_mm
    )

    layout = generate_panel_layout(
        chains,
        junctions=junctions,
        intervals=intervals,
        config=layout_config,
        footprint=footprint,
        openings=resolution.resolved,
        flipped_chain_ids=set(flipped_chain_ids or ()),
    )

    patch = apply_panel_overrides(layout.panels, overrides or {}, layout_config.tooth_mm)

    bom = calculate_bom(
        patch.panels,
        topos=layout.topos,
        dropped=layout.dropped,
        chains=chains,
        junctions=junctions,
        row_count=row_count,
        config=config.bom,
    )

    result = PlanResult(
        chains=chain_result,
        footprint=footprint,
        junctions=junctions,
        openings=resolution,
        layout=layout,
        overrides=patch,
        bom=bom,
        config=config,
    )
    logger.info(
        "Plan complete: %d chains, %d panels, %d topos, %d warnings",
        len(chains), len(result.panels), len(layout.topos), len(result.warnings),
    )
    return result


def plan_from_request(request: PlanRequest) -> PlanResult:
    """Run the pipeline for a validated request."""
    return run_pipeline(
        request.to_segments(),
        openings=request.to_openings(),
        config=request.to_config(),
        flipped_chain_ids=request.flipped_chain_ids,
        overrides=request.to_overrides(),
    )
