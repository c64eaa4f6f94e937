# tests/conftest.py
import logging
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

import pytest
from typing import List

from icf_planner.chains.chain_types import Chain, WallSegment


def make_chain(chain_id: str, start: tuple, end: tuple) -> Chain:
    """Chain between two plan points (mm)."""
    return Chain.from_points(chain_id, start, end)


def rectangle_segments(width: float = 6000.0, depth: float = 4000.0) -> List[WallSegment]:
    """Closed rectangular outline, counter-clockwise from the origin."""
    return [
        WallSegment(0.0, 0.0, width, 0.0),
        WallSegment(width, 0.0, width, depth),
        WallSegment(width, depth, 0.0, depth),
        WallSegment(0.0, depth, 0.0, 0.0),
    ]


@pytest.fixture
def rectangle() -> List[WallSegment]:
    """6 x 4 m closed outline."""
    return rectangle_segments()


@pytest.fixture
def rectangle_chains() -> List[Chain]:
    """Chains of the 6 x 4 m outline, ids in builder order."""
    return [
        make_chain("chain-0", (0.0, 0.0), (0.0, 4000.0)),
        make_chain("chain-1", (0.0, 0.0), (6000.0, 0.0)),
        make_chain("chain-2", (0.0, 4000.0), (6000.0, 4000.0)),
        make_chain("chain-3", (6000.0, 0.0), (6000.0, 4000.0)),
    ]


@pytest.fixture
def restore_root_logging():
    """Undo IcfPlannerLogger.configure() changes to the root logger."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
