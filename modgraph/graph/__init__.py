"""Graph of squares modulo N and its weak-component partition."""

from .model import (
    ModulusError,
    Node,
    SquareGraph,
    build_graph,
    parse_modulus,
    validate_modulus,
)
from .partition import (
    ComponentConflictError,
    Partition,
    Partitioner,
    partition,
)

__all__ = [
    "ModulusError",
    "Node",
    "SquareGraph",
    "build_graph",
    "parse_modulus",
    "validate_modulus",
    "ComponentConflictError",
    "Partition",
    "Partitioner",
    "partition",
]
