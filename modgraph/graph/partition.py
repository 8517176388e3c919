"""
Weak-Component Partitioner

Splits a graph of squares into weakly-connected components. Edges are
followed in both directions (successor and predecessors), using an explicit
work-list so deep chains cannot exhaust the interpreter's recursion limit.

A neighbour that already belongs to another component would mean the
traversal missed part of a component on an earlier pass. Adjacency followed
this way is symmetric (``j`` is a predecessor of ``i`` exactly when
``i`` is the successor of ``j``), so every node reachable from a seed is
labelled before the next seed is chosen, and the check cannot fire for a
well-formed graph. It is kept as a cheap guard against label corruption.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterator, List, Optional, Tuple

from .model import Node, SquareGraph

logger = logging.getLogger(__name__)

UNASSIGNED = -1


class ComponentConflictError(RuntimeError):
    """Raised when traversal reaches a node already labelled with another component."""

    def __init__(self, node: int, existing: int, assigning: int):
        self.node = node
        self.existing = existing
        self.assigning = assigning
        super().__init__(
            f"Conflict between components: node {node} belongs to component "
            f"{existing} but was reached while assigning component {assigning}"
        )


@dataclass(frozen=True)
class Partition:
    """Disjoint components covering every node of a graph."""
    components: Tuple[Tuple[int, ...], ...]  # Discovery order, members ascending
    labels: Tuple[int, ...]  # Component id per node index

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self) -> Iterator[Tuple[int, ...]]:
        return iter(self.components)

    def component_of(self, i: int) -> int:
        """Component id of node ``i``."""
        return self.labels[i]

    def members(self, component_id: int) -> Tuple[int, ...]:
        return self.components[component_id]

    def as_sets(self) -> FrozenSet[FrozenSet[int]]:
        """Components as a set of sets, independent of discovery order."""
        return frozenset(frozenset(c) for c in self.components)

    def annotate(self, graph: SquareGraph) -> List[Node]:
        """Nodes of ``graph`` carrying their component id."""
        if len(graph) != len(self.labels):
            raise ValueError(
                f"Partition covers {len(self.labels)} nodes, graph has {len(graph)}"
            )
        return [
            Node(index=i, next=graph.next(i), predecessors=graph.predecessors[i],
                 component_id=self.labels[i])
            for i in range(len(graph))
        ]


class Partitioner:
    """
    Discover weakly-connected components of a graph of squares.

    Each unlabelled node seeds a new component; the traversal labels the seed
    and every node reachable from it through successor or predecessor edges.
    """

    def __init__(self, graph: SquareGraph):
        self.graph = graph
        self._labels: List[int] = [UNASSIGNED] * len(graph)
        self._components: List[List[int]] = []

    def run(self) -> Partition:
        """Label every node and return the resulting partition."""
        self._labels = [UNASSIGNED] * len(self.graph)
        self._components = []

        for seed in range(len(self.graph)):
            if self._labels[seed] == UNASSIGNED:
                component_id = len(self._components)
                self._components.append([])
                self._flood(seed, component_id)

        partition = Partition(
            components=tuple(tuple(sorted(c)) for c in self._components),
            labels=tuple(self._labels),
        )
        logger.debug(
            "Partitioned modulus %d into %d components (sizes: %s)",
            self.graph.modulus,
            len(partition),
            ", ".join(str(len(c)) for c in partition.components),
        )
        return partition

    def _flood(self, seed: int, component_id: int):
        """Label ``seed`` and everything weakly reachable from it."""
        self._claim(seed, component_id)
        stack = [seed]
        while stack:
            current = stack.pop()
            for neighbor in self.graph.neighbors(current):
                label = self._labels[neighbor]
                if label == UNASSIGNED:
                    self._claim(neighbor, component_id)
                    stack.append(neighbor)
                elif label != component_id:
                    raise ComponentConflictError(neighbor, label, component_id)

    def _claim(self, node: int, component_id: int):
        self._labels[node] = component_id
        self._components[component_id].append(node)


def partition(graph: SquareGraph, partitioner: Optional[Partitioner] = None) -> Partition:
    """Partition ``graph`` into weakly-connected components."""
    return (partitioner or Partitioner(graph)).run()
