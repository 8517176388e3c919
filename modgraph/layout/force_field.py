"""
Force Field

Potential energy and per-node forces for a placement of the graph of squares
in three dimensions.

Every pair of distinct nodes interacts through:
1. Repulsion - inverse-square force, potential 1/r; sets the length scale
   (unit separation carries unit-strength repulsion)
2. Edge attraction - Hookean spring between nodes joined by a directed edge
3. Sum attraction - spring when (i + j) mod N is a factor of N, or N minus one
4. Factor attraction - spring when i or j is itself a factor of N, or N minus one

All springs between a pair add into one spring constant K, so the pair
potential is ``1/r + K r^2 / 2`` and the force on node i from node j is
``(K r - 1/r^2) u`` with u the unit vector from i toward j.

The spring constants depend only on the graph, so they are computed once when
the field is constructed. Evaluation is a pure function of the positions.
"""

import logging
from enum import Enum
from typing import Dict, Optional, Tuple, TYPE_CHECKING

import numpy as np

from ..graph.model import SquareGraph
from .factors import FactorTable

if TYPE_CHECKING:
    from .profiles import LayoutProfile

logger = logging.getLogger(__name__)


class ForceType(Enum):
    """Kinds of pairwise interaction."""
    REPULSION = "repulsion"   # Universal inverse-square repulsion
    EDGE = "edge"             # Spring along a directed edge
    SUM = "sum"               # Spring keyed to (i + j) mod N
    FACTOR = "factor"         # Spring keyed to i or j individually


SPRING_TYPES = (ForceType.EDGE, ForceType.SUM, ForceType.FACTOR)


class ForceField:
    """
    Pairwise force law over the nodes of a graph of squares.

    Args:
        graph: Graph whose nodes are being placed
        edge_attract: Scale of edge attraction; spring constant is its inverse
        sum_attract: Relative scale of sum attraction (larger is weaker)
        factor_attract: Relative scale of factor attraction (larger is weaker)
        min_distance: Distances below this are clamped so repulsion stays finite
        factors: Precomputed factor table for ``graph.modulus``
    """

    def __init__(
        self,
        graph: SquareGraph,
        edge_attract: float = 1.5,
        sum_attract: float = 15.0,
        factor_attract: float = 150.0,
        min_distance: float = 1e-9,
        factors: Optional[FactorTable] = None,
    ):
        if min(edge_attract, sum_attract, factor_attract) <= 0:
            raise ValueError("Attraction scales must be positive")
        if min_distance <= 0:
            raise ValueError("min_distance must be positive")

        self.graph = graph
        self.modulus = graph.modulus
        self.edge_attract = edge_attract
        self.sum_attract = sum_attract
        self.factor_attract = factor_attract
        self.min_distance = min_distance
        self.factors = factors or FactorTable(graph.modulus)
        if self.factors.modulus != graph.modulus:
            raise ValueError(
                f"Factor table is for modulus {self.factors.modulus}, "
                f"graph has modulus {graph.modulus}"
            )

        self._springs = self._build_springs()
        stiffness = sum(self._springs.values())
        stiffness.setflags(write=False)
        self._stiffness = stiffness

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Force field: modulus=%d factors=%s edge_pairs=%d sum_pairs=%d factor_pairs=%d",
                self.modulus,
                list(self.factors.factors),
                int(np.count_nonzero(np.triu(self._springs[ForceType.EDGE]))),
                int(np.count_nonzero(np.triu(self._springs[ForceType.SUM]))),
                int(np.count_nonzero(np.triu(self._springs[ForceType.FACTOR]))),
            )

    @classmethod
    def from_profile(cls, graph: SquareGraph, profile: "LayoutProfile",
                     factors: Optional[FactorTable] = None) -> "ForceField":
        """Build a force field using the scales of a layout profile."""
        return cls(
            graph,
            edge_attract=profile.edge_attract,
            sum_attract=profile.sum_attract,
            factor_attract=profile.factor_attract,
            min_distance=profile.min_distance,
            factors=factors,
        )

    # =========================================================================
    # Spring constants
    # =========================================================================

    def _build_springs(self) -> Dict[ForceType, np.ndarray]:
        """Spring-constant matrix for each attraction type (zero diagonal)."""
        m = self.modulus
        idx = np.arange(m)
        nxt = np.asarray(self.graph.successors)

        # Edge: i -> j or j -> i, counted once even for a 2-cycle
        joined = (nxt[:, np.newaxis] == idx[np.newaxis, :]) | \
                 (nxt[np.newaxis, :] == idx[:, np.newaxis])
        edge = np.where(joined, 1.0 / self.edge_attract, 0.0)

        sum_weights = self.factors.affinity(self.sum_attract)
        residues = (idx[:, np.newaxis] + idx[np.newaxis, :]) % m
        summed = sum_weights[residues]

        member_weights = self.factors.affinity(self.factor_attract)
        factor = member_weights[:, np.newaxis] + member_weights[np.newaxis, :]

        springs = {
            ForceType.EDGE: edge,
            ForceType.SUM: summed,
            ForceType.FACTOR: factor,
        }
        for matrix in springs.values():
            np.fill_diagonal(matrix, 0.0)
            matrix.setflags(write=False)
        return springs

    @property
    def stiffness(self) -> np.ndarray:
        """Total spring constant for every pair (read-only N x N)."""
        return self._stiffness

    def spring_constants(self, i: int, j: int) -> Dict[ForceType, float]:
        """Spring constant contributed by each attraction type for pair (i, j)."""
        return {kind: float(self._springs[kind][i, j]) for kind in SPRING_TYPES}

    # =========================================================================
    # Evaluation
    # =========================================================================

    def check_positions(self, positions) -> np.ndarray:
        """Return ``positions`` as an (N, 3) float array, or raise ValueError."""
        arr = np.asarray(positions, dtype=np.float64)
        if arr.shape != (self.modulus, 3):
            raise ValueError(
                f"Expected positions of shape ({self.modulus}, 3), got {arr.shape}"
            )
        return arr

    def _geometry(self, positions: np.ndarray):
        """Displacements, raw distances, clamped distances and inverse distances."""
        # disp[i, j] is the displacement from node i to node j
        disp = positions[np.newaxis, :, :] - positions[:, np.newaxis, :]
        dist = np.sqrt(np.einsum("ijk,ijk->ij", disp, disp))
        clamped = np.maximum(dist, self.min_distance)
        np.fill_diagonal(clamped, 1.0)
        inv = 1.0 / clamped
        np.fill_diagonal(inv, 0.0)
        return disp, dist, clamped, inv

    def potential(self, positions) -> float:
        """Total potential energy of a placement."""
        positions = self.check_positions(positions)
        _, _, clamped, inv = self._geometry(positions)
        pair = inv + 0.5 * self._stiffness * clamped * clamped
        # Each unordered pair appears twice in the full matrix
        return 0.5 * float(pair.sum())

    def potential_and_forces(self, positions) -> Tuple[float, np.ndarray]:
        """Potential energy and the net force on every node.

        Args:
            positions: (N, 3) array, one row per node

        Returns:
            (potential, forces) with forces an (N, 3) array
        """
        positions = self.check_positions(positions)
        disp, dist, clamped, inv = self._geometry(positions)

        pair = inv + 0.5 * self._stiffness * clamped * clamped
        potential = 0.5 * float(pair.sum())

        # Magnitude along u, divided by the true distance to turn disp into u.
        # Coincident pairs have zero displacement and contribute no force.
        magnitude = self._stiffness * clamped - inv * inv
        safe = np.where(dist > 0.0, dist, 1.0)
        forces = np.einsum("ij,ijk->ik", magnitude / safe, disp)
        return potential, forces

    def forces(self, positions) -> np.ndarray:
        """Net force on every node."""
        return self.potential_and_forces(positions)[1]

    def pair_force(self, i: int, j: int, displacement) -> Tuple[np.ndarray, float]:
        """Force felt by node i from node j, and the pair's potential.

        Args:
            i: Index of one node
            j: Index of the other node
            displacement: Vector from node i to node j

        Returns:
            (force on i, pair potential); the force on j is the negative
        """
        if i == j:
            raise ValueError("A node does not interact with itself")
        d = np.asarray(displacement, dtype=np.float64)
        r = float(np.sqrt(d @ d))
        r_eff = max(r, self.min_distance)
        k = float(self._stiffness[i, j])
        potential = 1.0 / r_eff + 0.5 * k * r_eff * r_eff
        if r == 0.0:
            return np.zeros(3), potential
        return d / r * (k * r_eff - 1.0 / (r_eff * r_eff)), potential

    def forces_from(self, positions, j: int) -> np.ndarray:
        """Force felt by every node from node j alone (row j is zero)."""
        positions = self.check_positions(positions)
        disp = positions[j] - positions
        dist = np.sqrt(np.einsum("ik,ik->i", disp, disp))
        clamped = np.maximum(dist, self.min_distance)
        clamped[j] = 1.0
        inv = 1.0 / clamped
        inv[j] = 0.0
        magnitude = self._stiffness[:, j] * clamped - inv * inv
        safe = np.where(dist > 0.0, dist, 1.0)
        return (magnitude / safe)[:, np.newaxis] * disp

    def breakdown(self, positions) -> Dict[ForceType, float]:
        """Potential energy contributed by each kind of interaction."""
        positions = self.check_positions(positions)
        _, _, clamped, inv = self._geometry(positions)
        squared = clamped * clamped
        result = {ForceType.REPULSION: 0.5 * float(inv.sum())}
        for kind in SPRING_TYPES:
            result[kind] = 0.25 * float((self._springs[kind] * squared).sum())
        return result

    # =========================================================================
    # Flat-vector interface for minimizers
    # =========================================================================

    def unflatten(self, x) -> np.ndarray:
        """View a flat 3N vector as (N, 3) positions."""
        arr = np.asarray(x, dtype=np.float64)
        if arr.size != 3 * self.modulus:
            raise ValueError(
                f"Expected {3 * self.modulus} coordinates, got {arr.size}"
            )
        return arr.reshape(self.modulus, 3)

    def objective(self, x) -> float:
        """Potential as a function of the flat 3N coordinate vector."""
        return self.potential(self.unflatten(x))

    def potential_and_gradient(self, x) -> Tuple[float, np.ndarray]:
        """Potential and its gradient (the negated forces) for a flat vector."""
        potential, forces = self.potential_and_forces(self.unflatten(x))
        return potential, -forces.ravel()


def potential_and_forces(field: ForceField, positions) -> Tuple[float, np.ndarray]:
    """Evaluate ``field`` at ``positions``; see ``ForceField.potential_and_forces``."""
    return field.potential_and_forces(positions)
