# File: tests/wall_junctions/conftest.py

"""Shared test fixtures for chain junction tests.

Provides chains for various junction configurations:
L-corners, T-intersections (split and midspan), X-crossings, free ends,
inline continuations and non-orthogonal angles. Coordinates in mm.
"""

import math
import pytest
from typing import List

from icf_planner.chains.chain_types import Chain


# =============================================================================
# Helper: Create a single chain
# =============================================================================


def create_chain(chain_id: str, start: tuple, end: tuple) -> Chain:
    """Create a chain between two plan points.

    Args:
        chain_id: Chain identifier.
        start: (x, y) start point.
        end: (x, y) end point.
    """
    return Chain.from_points(chain_id, start, end)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def l_corner_chains() -> List[Chain]:
    """Two chains meeting at the origin: vertical (chain-0) and horizontal (chain-1)."""
    return [
        create_chain("chain-0", (0, 0), (0, 3000)),
        create_chain("chain-1", (0, 0), (4000, 0)),
    ]


@pytest.fixture
def t_intersection_chains() -> List[Chain]:
    """Through wall split at x=2000 with a branch going up."""
    return [
        create_chain("chain-0", (0, 0), (2000, 0)),
        create_chain("chain-1", (2000, 0), (2000, 3000)),
        create_chain("chain-2", (2000, 0), (4000, 0)),
    ]


@pytest.fixture
def midspan_t_chains() -> List[Chain]:
    """Branch ending on the interior of an unsplit through wall."""
    return [
        create_chain("chain-0", (0, 0), (4000, 0)),
        create_chain("chain-1", (2000, 0), (2000, 3000)),
    ]


@pytest.fixture
def x_crossing_chains() -> List[Chain]:
    """Four arms meeting at (2000, 0)."""
    return [
        create_chain("chain-0", (0, 0), (2000, 0)),
        create_chain("chain-1", (2000, -2000), (2000, 0)),
        create_chain("chain-2", (2000, 0), (2000, 2000)),
        create_chain("chain-3", (2000, 0), (4000, 0)),
    ]


@pytest.fixture
def free_end_chain() -> List[Chain]:
    """A single isolated chain."""
    return [create_chain("chain-0", (0, 0), (3000, 0))]


@pytest.fixture
def inline_chains() -> List[Chain]:
    """Two collinear chains meeting end to end."""
    return [
        create_chain("chain-0", (0, 0), (2000, 0)),
        create_chain("chain-1", (2000, 0), (5000, 0)),
    ]


@pytest.fixture
def angled_corner_chains() -> List[Chain]:
    """Two chains meeting at 45 degrees."""
    d = 2000 / math.sqrt(2)
    return [
        create_chain("chain-0", (0, 0), (3000, 0)),
        create_chain("chain-1", (0, 0), (d, d)),
    ]
