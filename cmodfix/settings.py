# cmodfix/settings.py
from __future__ import annotations

from dataclasses import dataclass

from cmodfix.processing.strips import DEFAULT_CACHE_SIZE

DEFAULT_SMOOTH_ANGLE = 60.0


@dataclass(frozen=True, slots=True)
class FixSettings:
    """Which pipeline stages run, and how."""

    binary_output: bool = False
    uniquify: bool = False
    generate_normals: bool = False
    generate_tangents: bool = False
    smooth_angle: float = DEFAULT_SMOOTH_ANGLE  # degrees
    weld: bool = False
    merge: bool = False
    stripify: bool = False
    vertex_cache_size: int = DEFAULT_CACHE_SIZE
