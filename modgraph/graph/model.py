"""
Graph of Squares

Represents the functional digraph induced by squaring integers modulo N.
Node ``i`` has exactly one outgoing edge, to ``(i * i) % N``; in-degree is
unconstrained. Nodes, edges and predecessor lists are plain integer indices
into flat tuples, so the graph is cheap to copy and immutable once built.
"""

import logging
import operator
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ModulusError(ValueError):
    """Raised when a modulus cannot define a graph of squares."""


def validate_modulus(modulus) -> int:
    """Check that ``modulus`` is an integer greater than one.

    Args:
        modulus: Candidate modulus

    Returns:
        The modulus as an ``int``

    Raises:
        ModulusError: If the value is not an integer or is <= 1
    """
    # bool is an int subclass; True would otherwise pass as 1
    if isinstance(modulus, bool):
        raise ModulusError(f"Modulus must be an integer, got {modulus!r}")
    try:
        modulus = operator.index(modulus)
    except TypeError:
        raise ModulusError(f"Modulus must be an integer, got {modulus!r}") from None
    if modulus <= 1:
        raise ModulusError(f"Modulus must be greater than 1, got {modulus}")
    return modulus


def parse_modulus(text: str) -> int:
    """Parse a command-line modulus argument."""
    try:
        value = int(text.strip())
    except (AttributeError, ValueError):
        raise ModulusError(f"Modulus must be an integer, got {text!r}") from None
    return validate_modulus(value)


@dataclass(frozen=True)
class Node:
    """View of one node of the graph."""
    index: int
    next: int
    predecessors: Tuple[int, ...]
    component_id: Optional[int] = None  # Set once the graph is partitioned

    @property
    def is_fixed_point(self) -> bool:
        """True if the node squares to itself (self-loop)."""
        return self.next == self.index


class SquareGraph:
    """
    Directed graph of squares under modular arithmetic.

    Every node has exactly one successor, so the edge relation is a total
    function on ``[0, modulus)``. Predecessor tuples are sorted ascending.
    """

    def __init__(self, modulus: int):
        self.modulus = validate_modulus(modulus)

        successors: List[int] = []
        predecessors: List[List[int]] = [[] for _ in range(self.modulus)]
        for i in range(self.modulus):
            nxt = (i * i) % self.modulus
            successors.append(nxt)
            predecessors[nxt].append(i)

        self.successors: Tuple[int, ...] = tuple(successors)
        self.predecessors: Tuple[Tuple[int, ...], ...] = tuple(
            tuple(p) for p in predecessors
        )

        if logger.isEnabledFor(logging.DEBUG):
            fixed = sum(1 for i, n in enumerate(self.successors) if i == n)
            logger.debug(
                "Built graph of squares: modulus=%d fixed_points=%d leaves=%d",
                self.modulus,
                fixed,
                sum(1 for i in range(self.modulus) if self.in_degree(i) == 0),
            )

    def __len__(self) -> int:
        return self.modulus

    def __repr__(self) -> str:
        return f"SquareGraph(modulus={self.modulus})"

    def next(self, i: int) -> int:
        """Successor of node ``i``."""
        return self.successors[i]

    def node(self, i: int) -> Node:
        """Return a ``Node`` view of index ``i``."""
        if not 0 <= i < self.modulus:
            raise IndexError(f"Node {i} out of range for modulus {self.modulus}")
        return Node(index=i, next=self.successors[i],
                    predecessors=self.predecessors[i])

    def nodes(self) -> List[Node]:
        """All nodes in index order."""
        return [self.node(i) for i in range(self.modulus)]

    def edges(self) -> Iterator[Tuple[int, int]]:
        """Yield every directed edge ``(i, next(i))``, self-loops included."""
        return iter(enumerate(self.successors))

    def neighbors(self, i: int) -> Iterator[int]:
        """Nodes adjacent to ``i`` ignoring direction: successor, then predecessors."""
        yield self.successors[i]
        yield from self.predecessors[i]

    def in_degree(self, i: int) -> int:
        return len(self.predecessors[i])


def build_graph(modulus: int) -> SquareGraph:
    """Build the graph of squares for ``modulus``.

    Raises:
        ModulusError: If ``modulus`` is not an integer greater than one
    """
    return SquareGraph(modulus)
