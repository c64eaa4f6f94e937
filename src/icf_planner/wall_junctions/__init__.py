# File: src/icf_planner/wall_junctions/__init__.py

"""Chain junction analysis module.

Detects and classifies the nodes where chain ends meet (L-corners,
T-intersections, X-crossings, free ends) and fixes the deterministic
primary/secondary roles the panel layout relies on.

Usage:
    from icf_planner.wall_junctions import detect_junctions

    graph = detect_junctions(chains)
    corner = graph.junction_at("chain-0", "start")
"""

from .junction_types import (
    JunctionKind,
    ChainEnd,
    Junction,
    JunctionGraph,
)

from .junction_detector import detect_junctions

__all__ = [
    # Main entry point
    "detect_junctions",
    # Types
    "JunctionKind",
    "ChainEnd",
    "Junction",
    "JunctionGraph",
]
