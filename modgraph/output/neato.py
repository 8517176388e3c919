"""
Neato Export

One Graphviz ``digraph`` per weak component, written as ``<N>.<c>.neato``,
for a quick flat look at each component's structure.
"""

import logging
from pathlib import Path
from typing import List, Union

from ..graph.model import SquareGraph
from ..graph.partition import Partition

logger = logging.getLogger(__name__)


def render_component(graph: SquareGraph, members) -> str:
    """DOT source for the edges leaving ``members``."""
    lines = ["digraph G {"]
    for i in members:
        lines.append(f"   {i} -> {graph.next(i)}")
    lines.append("}")
    return "\n".join(lines) + "\n"


def write_components(graph: SquareGraph, partition: Partition,
                     directory: Union[str, Path] = ".") -> List[Path]:
    """Write one neato file per component; return the paths in component order."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for component_id, members in enumerate(partition.components):
        path = directory / f"{graph.modulus}.{component_id}.neato"
        path.write_text(render_component(graph, members))
        paths.append(path)
    logger.info("Wrote %d neato files to %s", len(paths), directory)
    return paths
