"""
modgraph - 3-D Layout of the Graph of Squares Modulo N

Builds the functional digraph i -> i^2 mod N, splits it into weakly-connected
components, and finds a low-energy placement of every node in space under a
force field that pulls structurally and number-theoretically related nodes
together while all nodes repel.
"""

__version__ = "0.1.0"

from .graph.model import ModulusError, SquareGraph, build_graph
from .graph.partition import ComponentConflictError, Partition, partition
from .layout.engine import LayoutEngine, LayoutResult
from .layout.force_field import ForceField
from .layout.profiles import LayoutProfile, get_profile

__all__ = [
    "ModulusError",
    "SquareGraph",
    "build_graph",
    "ComponentConflictError",
    "Partition",
    "partition",
    "LayoutEngine",
    "LayoutResult",
    "ForceField",
    "LayoutProfile",
    "get_profile",
]
