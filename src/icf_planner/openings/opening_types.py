# File: src/icf_planner/openings/opening_types.py

"""Data models for door/window openings and fillable intervals."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class OpeningKind(Enum):
    """Kind of wall opening."""

    DOOR = "door"
    WINDOW = "window"


@dataclass(frozen=True)
class Opening:
    """A door or window bound to one chain.

    Attributes:
        id: Caller-supplied identifier.
        chain_id: Chain the opening cuts through.
        offset_mm: Distance of the opening's left edge from the chain start.
        width_mm: Horizontal opening width.
        sill_mm: Height of the opening bottom above the wall base.
        height_mm: Vertical opening height.
        kind: Door or window.
    """
    id: str
    chain_id: str
    offset_mm: float
    width_mm: float
    sill_mm: float
    height_mm: float
    kind: OpeningKind = OpeningKind.WINDOW

    @property
    def end_mm(self) -> float:
        return self.offset_mm + self.width_mm

    @property
    def top_mm(self) -> float:
        return self.sill_mm + self.height_mm

    def is_finite(self) -> bool:
        return all(
            math.isfinite(v)
            for v in (self.offset_mm, self.width_mm, self.sill_mm, self.height_mm)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "chain_id": self.chain_id,
            "offset_mm": round(self.offset_mm, 3),
            "width_mm": round(self.width_mm, 3),
            "sill_mm": round(self.sill_mm, 3),
            "height_mm": round(self.height_mm, 3),
            "kind": self.kind.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Opening":
        return cls(
            id=str(data["id"]),
            chain_id=str(data["chain_id"]),
            offset_mm=float(data["offset_mm"]),
            width_mm=float(data["width_mm"]),
            sill_mm=float(data.get("sill_mm", 0.0)),
            height_mm=float(data["height_mm"]),
            kind=OpeningKind(data.get("kind", "window")),
        )


@dataclass(frozen=True)
class Interval:
    """A fillable span along a chain, in mm from the chain start."""
    start_mm: float
    end_mm: float

    @property
    def length_mm(self) -> float:
        return self.end_mm - self.start_mm

    def to_dict(self) -> Dict[str, float]:
        return {"start_mm": round(self.start_mm, 3), "end_mm": round(self.end_mm, 3)}


@dataclass
class OpeningResolution:
    """Openings split by whether they could be bound to a chain.

    Attributes:
        resolved: Openings on known chains, clipped to the chain length.
        dangling: Openings skipped for layout (unknown chain, empty or
            out-of-range geometry).
        clipped_ids: Resolved openings that had to be clipped.
        warnings: Human-readable reasons for every dangling or clipped opening.
    """
    resolved: List[Opening] = field(default_factory=list)
    dangling: List[Opening] = field(default_factory=list)
    clipped_ids: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resolved": [o.to_dict() for o in self.resolved],
            "dangling": [o.to_dict() for o in self.dangling],
            "clipped_ids": list(self.clipped_ids),
            "warnings": list(self.warnings),
        }
