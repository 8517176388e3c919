"""
Asymptote Scene Export

Writes a layout as an Asymptote ``three`` scene: a translucent sphere and a
camera-facing label at every node, and an arrow for every edge that is not a
self-loop. Arrows start and stop a quarter unit short of the node centres so
they do not disappear inside the spheres.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

ARROW_INSET = 0.25  # Distance trimmed from each end of an arrow
SPHERE_SCALE = 0.25


def _num(value: float) -> str:
    return f"{float(value):.6g}"


def fmt_point(v: Sequence[float]) -> str:
    """Asymptote triple ``(x,y,z)``."""
    return f"({_num(v[0])},{_num(v[1])},{_num(v[2])})"


def header(outformat: str = "pdf", prc: bool = False, unit_cm: float = 1.0) -> str:
    """Settings, unit size and the ``three`` import."""
    return (
        f'settings.outformat = "{outformat}";\n'
        f"settings.prc = {'true' if prc else 'false'};\n"
        f"unitsize({_num(unit_cm)}cm);\n"
        "import three;\n"
    )


def perspective(camera: Sequence[float]) -> str:
    return f"currentprojection = perspective{fmt_point(camera)};\n"


def sphere(center: Sequence[float], scale: float = SPHERE_SCALE,
           color: str = "white", opacity: float = 0.5) -> str:
    return (
        f"draw(shift{fmt_point(center)}*scale3({_num(scale)})*unitsphere,"
        f"{color}+opacity({_num(opacity)}));\n"
    )


def label(text: Union[int, str], at: Sequence[float], color: str = "black",
          billboard: bool = True) -> str:
    orientation = "Billboard" if billboard else "Embedded"
    return f'label("{text}",{fmt_point(at)},{color},{orientation});\n'


def arrow(begin: Sequence[float], end: Sequence[float], gray: float = 0.6,
          light: str = "currentlight") -> str:
    return (
        f"draw({fmt_point(begin)}--{fmt_point(end)},arrow=Arrow3(),"
        f"p=gray({_num(gray)}),light={light});\n"
    )


def biggest_radius(positions: np.ndarray) -> float:
    """Largest distance of any node from the origin."""
    if len(positions) == 0:
        return 0.0
    return float(np.max(np.linalg.norm(positions, axis=1)))


def render_scene(
    positions,
    edges: Iterable[Tuple[int, int]],
    outformat: str = "pdf",
) -> str:
    """
    Render a layout as Asymptote source.

    Args:
        positions: (N, 3) final positions, row i for node i
        edges: Directed ``(source, target)`` pairs; self-loops are skipped
        outformat: Output format Asymptote should produce

    Returns:
        Complete ``.asy`` file contents
    """
    positions = np.asarray(positions, dtype=np.float64)
    camera = (0.0, -2.0 * biggest_radius(positions), 0.0)

    parts = [header(outformat), perspective(camera)]
    for i, point in enumerate(positions):
        parts.append(sphere(point))
        parts.append(label(i, point))

    arrows = 0
    for source, target in edges:
        if source == target:
            continue
        begin = positions[source]
        end = positions[target]
        span = end - begin
        length = float(np.linalg.norm(span))
        if length == 0.0:
            continue
        inset = span / length * ARROW_INSET
        parts.append(arrow(begin + inset, end - inset))
        arrows += 1

    logger.debug("Rendered scene: %d nodes, %d arrows", len(positions), arrows)
    return "".join(parts)


def scene_filename(modulus: int) -> str:
    """Default scene file name for a modulus."""
    return f"{modulus}.asy"


def write_scene(
    positions,
    edges: Iterable[Tuple[int, int]],
    path: Union[str, Path],
    outformat: str = "pdf",
) -> Path:
    """Write a layout to an Asymptote file and return its path."""
    path = Path(path)
    path.write_text(render_scene(positions, edges, outformat=outformat))
    logger.info("Wrote scene to %s", path)
    return path


def write_layout(result, directory: Optional[Union[str, Path]] = None,
                 path: Optional[Union[str, Path]] = None) -> Path:
    """Write a ``LayoutResult`` to ``path``, or to ``<N>.asy`` in ``directory``."""
    if path is None:
        path = Path(directory or ".") / scene_filename(result.modulus)
    return write_scene(result.positions, result.edges(), path)
