# File: src/icf_planner/openings/__init__.py

"""Openings and the fillable intervals they leave on each chain and row."""

from .opening_types import Opening, OpeningKind, Interval, OpeningResolution
from .interval_calculator import (
    IntervalTable,
    resolve_openings,
    opening_affects_row,
    remaining_intervals,
    intervals_for_chains,
    opening_topo_rows,
)

__all__ = [
    "Opening",
    "OpeningKind",
    "Interval",
    "OpeningResolution",
    "IntervalTable",
    "resolve_openings",
    "opening_affects_row",
    "remaining_intervals",
    "intervals_for_chains",
    "opening_topo_rows",
]
