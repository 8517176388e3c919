"""Scene and graph export for finished layouts."""

from .asymptote import render_scene, scene_filename, write_layout, write_scene
from .neato import render_component, write_components

__all__ = [
    "render_scene",
    "scene_filename",
    "write_layout",
    "write_scene",
    "render_component",
    "write_components",
]
