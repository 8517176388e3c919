"""
Factor Table

Nontrivial factors of the modulus, computed once per run and shared by every
pair evaluation of the force field.
"""

from typing import List, Tuple

import numpy as np


def calculate_factors(modulus: int) -> List[int]:
    """Nontrivial factors of ``modulus``.

    0 stands in for the modulus itself (it is congruent to N); 1 and N are
    excluded.

    Args:
        modulus: Positive integer whose factors are calculated

    Returns:
        ``[0, d1, d2, ...]`` with every divisor ``2 <= d <= modulus // 2``
    """
    factors = [0]
    i = 2
    small: List[int] = []
    large: List[int] = []
    while i * i <= modulus:
        if modulus % i == 0:
            small.append(i)
            partner = modulus // i
            if partner != i:
                large.append(partner)
        i += 1
    factors.extend(small)
    factors.extend(reversed(large))
    return factors


class FactorTable:
    """
    Factors of a modulus and the affinity weights they induce on residues.

    A residue ``x`` is factor-related when it equals a factor ``f`` or equals
    ``N - f``. Its affinity is proportional to ``f / N``, except that the
    residue 0 gets the full weight, as if ``f`` were N itself.
    """

    def __init__(self, modulus: int):
        self.modulus = modulus
        self.factors: Tuple[int, ...] = tuple(calculate_factors(modulus))
        self._unit = self._build_unit_affinity()

    def _build_unit_affinity(self) -> np.ndarray:
        m = self.modulus
        weights = np.zeros(m, dtype=np.float64)
        for f in self.factors:
            share = f / m
            weights[f] += 1.0 if f == 0 else share
            # N - 0 == N is never a residue
            if f != 0:
                weights[m - f] += share
        return weights

    def affinity(self, scale: float) -> np.ndarray:
        """Affinity weight of every residue, divided by ``scale``.

        Args:
            scale: Relative scale of the attraction; larger means weaker

        Returns:
            Array of length N indexed by residue
        """
        return self._unit / scale
