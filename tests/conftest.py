"""
Shared test fixtures for modgraph tests.

Provides small graphs with hand-checkable structure, force fields over them,
and seeded random generators.
"""

import numpy as np
import pytest

from modgraph.graph.model import SquareGraph, build_graph
from modgraph.layout.force_field import ForceField
from modgraph.layout.profiles import LayoutProfile, get_profile


@pytest.fixture
def graph8() -> SquareGraph:
    """Modulus 8: successors [0, 1, 4, 1, 0, 1, 4, 1], two components."""
    return build_graph(8)


@pytest.fixture
def graph5() -> SquareGraph:
    """Modulus 5 (prime): {0} alone, everything else in one component."""
    return build_graph(5)


@pytest.fixture
def field8(graph8) -> ForceField:
    return ForceField(graph8)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(12345)


@pytest.fixture
def quick_profile() -> LayoutProfile:
    return get_profile("quick")


@pytest.fixture
def random_positions(rng):
    """Factory for random (N, 3) positions in a cube of side N."""
    def _make(modulus: int) -> np.ndarray:
        return modulus * (rng.random((modulus, 3)) - 0.5)
    return _make
