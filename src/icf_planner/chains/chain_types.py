# File: src/icf_planner/chains/chain_types.py

"""Data models for wall chain reconstruction.

Key Types:
    WallSegment: Raw straight wall segment from the import layer
    Chain: Consolidated straight wall run (immutable)
    OpeningCandidate: Collinear gap that looks like a door or window
    ChainBuildStats: Per-stage counts and waste diagnostics
    ChainBuildResult: Everything the chain builder produces

All measurements are in millimeters; angles are radians.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..utils.geometry import Point2D, segment_angle


# =============================================================================
# Input
# =============================================================================


@dataclass(frozen=True)
class WallSegment:
    """A raw wall segment in plan coordinates.

    Has no identity beyond its coordinates.
    """
    start_x: float
    start_y: float
    end_x: float
    end_y: float

    @property
    def start(self) -> Point2D:
        return (self.start_x, self.start_y)

    @property
    def end(self) -> Point2D:
        return (self.end_x, self.end_y)

    @property
    def length(self) -> float:
        return math.hypot(self.end_x - self.start_x, self.end_y - self.start_y)

    @property
    def angle(self) -> float:
        """Undirected angle in [0, pi)."""
        return segment_angle(self.start, self.end)

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.start_x, self.start_y, self.end_x, self.end_y))

    def canonical(self) -> "WallSegment":
        """Same segment with the lexicographically smaller endpoint first."""
        if (self.end_x, self.end_y) < (self.start_x, self.start_y):
            return WallSegment(self.end_x, self.end_y, self.start_x, self.start_y)
        return self

    def to_dict(self) -> Dict[str, float]:
        return {
            "start_x": self.start_x,
            "start_y": self.start_y,
            "end_x": self.end_x,
            "end_y": self.end_y,
        }

    @classmethod
    def from_points(cls, start: Point2D, end: Point2D) -> "WallSegment":
        return cls(start[0], start[1], end[0], end[1])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WallSegment":
        return cls(
            float(data["start_x"]),
            float(data["start_y"]),
            float(data["end_x"]),
            float(data["end_y"]),
        )


# =============================================================================
# Output
# =============================================================================


@dataclass(frozen=True)
class Chain:
    """A consolidated straight wall run.

    Attributes:
        id: Stable, order-derived identifier ("chain-0", "chain-1", ...).
        start_x, start_y: Start point (the lexicographically smaller end).
        end_x, end_y: End point.
        length_mm: Run length.
        angle: Undirected angle in [0, pi).
        segment_count: Number of raw segments merged into this run.
    """
    id: str
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    length_mm: float
    angle: float
    segment_count: int = 1

    @property
    def start(self) -> Point2D:
        return (self.start_x, self.start_y)

    @property
    def end(self) -> Point2D:
        return (self.end_x, self.end_y)

    @property
    def direction(self) -> Point2D:
        """Unit vector from start to end ((0, 0) for a degenerate chain)."""
        if self.length_mm <= 0:
            return (0.0, 0.0)
        return (
            (self.end_x - self.start_x) / self.length_mm,
            (self.end_y - self.start_y) / self.length_mm,
        )

    def point_at(self, distance_mm: float) -> Point2D:
        """World point at a distance along the chain from its start."""
        dx, dy = self.direction
        return (self.start_x + dx * distance_mm, self.start_y + dy * distance_mm)

    def endpoint(self, which: str) -> Point2D:
        """Return the "start" or "end" point."""
        return self.start if which == "start" else self.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "start_x": round(self.start_x, 3),
            "start_y": round(self.start_y, 3),
            "end_x": round(self.end_x, 3),
            "end_y": round(self.end_y, 3),
            "length_mm": round(self.length_mm, 3),
            "angle": round(self.angle, 6),
            "segment_count": self.segment_count,
        }

    @classmethod
    def from_points(
        cls,
        chain_id: str,
        start: Point2D,
        end: Point2D,
        segment_count: int = 1,
    ) -> "Chain":
        """Build a chain from two points, computing length and angle."""
        return cls(
            id=chain_id,
            start_x=start[0],
            start_y=start[1],
            end_x=end[0],
            end_y=end[1],
            length_mm=math.hypot(end[0] - start[0], end[1] - start[1]),
            angle=segment_angle(start, end),
            segment_count=segment_count,
        )


@dataclass(frozen=True)
class OpeningCandidate:
    """A collinear gap in the wall geometry that may be a door or window.

    Candidates are detected while bridging gaps. They are never bridged and
    are never turned into openings automatically; the caller decides.

    Attributes:
        id: Candidate identifier ("candidate-0", ...).
        chain_id: Nearest collinear chain.
        start_dist_mm: Gap start measured along that chain from its start.
        width_mm: Gap width.
        center_x, center_y: Gap midpoint.
        label: Short label for display ("C1", "C2", ...).
    """
    id: str
    chain_id: str
    start_dist_mm: float
    width_mm: float
    center_x: float
    center_y: float
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "chain_id": self.chain_id,
            "start_dist_mm": round(self.start_dist_mm, 3),
            "width_mm": round(self.width_mm, 3),
            "center_x": round(self.center_x, 3),
            "center_y": round(self.center_y, 3),
            "label": self.label,
        }


@dataclass
class ChainBuildStats:
    """Diagnostics collected while building chains."""
    original_segments: int = 0
    dropped_degenerate: int = 0
    dropped_noise: int = 0
    after_noise_filter: int = 0
    after_dedup: int = 0
    after_overlap_merge: int = 0
    after_jog_simplify: int = 0
    bridged_gaps: int = 0
    after_split: int = 0
    reduce_iterations: int = 0
    chains_count: int = 0
    reduction_percent: int = 0
    total_length_mm: float = 0.0
    min_chain_length_mm: float = 0.0
    max_chain_length_mm: float = 0.0
    avg_chain_length_mm: float = 0.0
    waste_pct: float = 0.0
    waste_per_row_mm: float = 0.0
    candidates_detected: int = 0
    tolerances: Dict[str, Any] = field(default_factory=dict)

    @property
    def dropped_segments(self) -> int:
        """Total segments dropped as degenerate or noise."""
        return self.dropped_degenerate + self.dropped_noise

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_segments": self.original_segments,
            "dropped_degenerate": self.dropped_degenerate,
            "dropped_noise": self.dropped_noise,
            "dropped_segments": self.dropped_segments,
            "after_noise_filter": self.after_noise_filter,
            "after_dedup": self.after_dedup,
            "after_overlap_merge": self.after_overlap_merge,
            "after_jog_simplify": self.after_jog_simplify,
            "bridged_gaps": self.bridged_gaps,
            "after_split": self.after_split,
            "reduce_iterations": self.reduce_iterations,
            "chains_count": self.chains_count,
            "reduction_percent": self.reduction_percent,
            "total_length_mm": round(self.total_length_mm, 3),
            "min_chain_length_mm": round(self.min_chain_length_mm, 3),
            "max_chain_length_mm": round(self.max_chain_length_mm, 3),
            "avg_chain_length_mm": round(self.avg_chain_length_mm, 3),
            "waste_pct": round(self.waste_pct, 6),
            "waste_per_row_mm": round(self.waste_per_row_mm, 3),
            "candidates_detected": self.candidates_detected,
            "tolerances": dict(self.tolerances),
        }


@dataclass
class ChainBuildResult:
    """Chains, opening candidates and statistics from one build.

    Attributes:
        chains: Chains sorted by id order.
        candidates: Opening candidates detected from collinear gaps.
        stats: Build diagnostics.
        preset: Name of the preset used, if any.
        tried_presets: Presets evaluated by auto-tuning (empty otherwise).
    """
    chains: List[Chain] = field(default_factory=list)
    candidates: List[OpeningCandidate] = field(default_factory=list)
    stats: ChainBuildStats = field(default_factory=ChainBuildStats)
    preset: Optional[str] = None
    tried_presets: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chains": [c.to_dict() for c in self.chains],
            "candidates": [c.to_dict() for c in self.candidates],
            "stats": self.stats.to_dict(),
            "preset": self.preset,
            "tried_presets": list(self.tried_presets),
        }


def chain_id_sort_key(chain_id: str) -> Tuple:
    """Natural-order key so "chain-2" sorts before "chain-10".

    Digit runs compare numerically and text runs lexicographically; the raw
    id is the final tie-breaker so the key is a total order.
    """
    parts: List[Tuple[int, Any]] = []
    token = ""
    is_digit = False
    for ch in chain_id:
        if token and ch.isdigit() != is_digit:
            parts.append((0, int(token)) if is_digit else (1, token))
            token = ""
        token += ch
        is_digit = ch.isdigit()
    if token:
        parts.append((0, int(token)) if is_digit else (1, token))
    return (tuple(parts), chain_id)
