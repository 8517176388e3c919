"""
Layout Engine

Runs the whole layout for one modulus: build the graph of squares, partition
it into weak components, scatter the nodes randomly in a cube, and minimize
the force field's potential from there.

The random source is an explicit ``numpy.random.Generator``, so a run is
reproducible from its modulus, profile and seed.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

import numpy as np

from ..graph.model import SquareGraph, build_graph
from ..graph.partition import Partition, partition
from .factors import FactorTable
from .force_field import ForceField
from .minimizer import (
    MinimizationDriver,
    MinimizationResult,
    MinimizationState,
    MinimizationStrategy,
    get_strategy,
)
from .profiles import DEFAULT, LayoutProfile

logger = logging.getLogger(__name__)

MAX_PLACEMENT_ATTEMPTS = 10


def initial_positions(
    modulus: int,
    rng: Optional[np.random.Generator] = None,
    spread: Optional[float] = None,
) -> np.ndarray:
    """Uniform random positions in a cube centred on the origin.

    Args:
        modulus: Number of nodes
        rng: Random source; a fresh unseeded generator if omitted
        spread: Side of the cube; defaults to the modulus

    Returns:
        (modulus, 3) array with no two rows identical
    """
    rng = rng if rng is not None else np.random.default_rng()
    side = float(spread if spread is not None else modulus)
    for _ in range(MAX_PLACEMENT_ATTEMPTS):
        positions = side * (rng.random((modulus, 3)) - 0.5)
        # Coincident nodes would sit at the repulsion singularity
        if len(np.unique(positions, axis=0)) == modulus:
            return positions
    raise RuntimeError(
        f"Could not place {modulus} distinct nodes after {MAX_PLACEMENT_ATTEMPTS} attempts"
    )


@dataclass
class LayoutResult:
    """Graph, partition and final placement from one layout run."""
    graph: SquareGraph
    partition: Partition
    minimization: MinimizationResult
    seed: Optional[int] = None

    @property
    def modulus(self) -> int:
        return self.graph.modulus

    @property
    def positions(self) -> np.ndarray:
        return self.minimization.positions

    @property
    def potential(self) -> float:
        return self.minimization.potential

    @property
    def converged(self) -> bool:
        return self.minimization.converged

    def edges(self) -> List[Tuple[int, int]]:
        """Directed edges ``(i, next(i))``, self-loops included."""
        return list(self.graph.edges())

    def labelled_positions(self) -> Iterator[Tuple[int, np.ndarray]]:
        """``(node index, final position)`` pairs in index order."""
        for i in range(self.modulus):
            yield i, self.positions[i]


class LayoutEngine:
    """
    Compute a three-dimensional layout of the graph of squares modulo N.

    Args:
        modulus: Modulus N (> 1)
        profile: Force scales and minimizer settings
        seed: Seed for the initial placement; ignored when ``rng`` is given
        rng: Explicit random generator
        strategy: Overrides the strategy named by the profile
    """

    def __init__(
        self,
        modulus: int,
        profile: Optional[LayoutProfile] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        strategy: Optional[MinimizationStrategy] = None,
    ):
        self.profile = (profile or DEFAULT).validate()
        # Fails fast on a bad modulus, before any numeric work
        self.graph = build_graph(modulus)
        self.seed = seed
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.partition = partition(self.graph)
        self.factors = FactorTable(self.graph.modulus)
        self.field = ForceField.from_profile(self.graph, self.profile, factors=self.factors)
        self.strategy = strategy or get_strategy(self.profile.strategy, self.profile)

        logger.info(
            "Modulus %d: %d nodes in %d components; factors %s",
            self.graph.modulus,
            len(self.graph),
            len(self.partition),
            list(self.factors.factors[1:]) or "none",
        )

    def initial_positions(self) -> np.ndarray:
        return initial_positions(self.graph.modulus, self.rng, self.profile.initial_spread)

    def run(
        self,
        callback: Optional[Callable[[MinimizationState], None]] = None,
        start: Optional[np.ndarray] = None,
    ) -> LayoutResult:
        """
        Place every node and minimize the potential.

        Args:
            callback: Optional function called after every accepted step
            start: Starting positions; random if omitted

        Returns:
            LayoutResult with the best positions found
        """
        positions = self.initial_positions() if start is None else start
        driver = MinimizationDriver(self.field, self.strategy,
                                    log_interval=self.profile.log_interval)
        result = driver.minimize(positions, callback=callback)

        if logger.isEnabledFor(logging.DEBUG):
            parts = self.field.breakdown(result.positions)
            logger.debug(
                "Final potential %.6f: %s",
                result.potential,
                ", ".join(f"{kind.value}={value:.4f}" for kind, value in parts.items()),
            )

        return LayoutResult(
            graph=self.graph,
            partition=self.partition,
            minimization=result,
            seed=self.seed,
        )
