# cmodfix/processing/strips.py
"""
Optional conversion of triangle lists into strips.

The strip generator itself is an external collaborator. This module only
feeds it 16-bit index lists and turns its output back into primitive
groups.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, List, Sequence, Tuple

import numpy as np

from cmodfix.errors import StripifyError
from cmodfix.mesh.types import Mesh, PrimitiveGroup, PrimitiveType

logger = logging.getLogger(__name__)

MAX_STRIP_VERTICES = 0x10000
DEFAULT_CACHE_SIZE = 16


class StripKind(str, Enum):
    LIST = "list"
    STRIP = "strip"
    FAN = "fan"


StripResult = Sequence[Tuple[StripKind, Sequence[int]]]
Stripifier = Callable[[np.ndarray, int], StripResult]

_PRIMITIVES = {
    StripKind.LIST: PrimitiveType.TRI_LIST,
    StripKind.STRIP: PrimitiveType.TRI_STRIP,
    StripKind.FAN: PrimitiveType.TRI_FAN,
}


def convert_to_strips(
    mesh: Mesh,
    stripifier: Stripifier,
    cache_size: int = DEFAULT_CACHE_SIZE,
) -> bool:
    """
    Replace the mesh's triangle lists with the stripifier's output.

    Meshes with 65536 or more vertices, or with any group that is not a
    triangle list, are left alone. Returns True in every non-failing case.
    """
    if mesh.vertex_count >= MAX_STRIP_VERTICES:
        logger.debug("Skipping strips for %r: too many vertices", mesh)
        return True

    if any(g.prim != PrimitiveType.TRI_LIST for g in mesh.groups):
        logger.debug("Skipping strips for %r: not all triangle lists", mesh)
        return True

    groups: List[PrimitiveGroup] = []
    for group in mesh.groups:
        indices = group.indices.astype(np.uint16)
        try:
            strips = stripifier(indices, cache_size)
        except Exception as e:
            raise StripifyError(f"Generate tri strips failed: {e}") from e

        if strips is None:
            raise StripifyError("Generate tri strips failed")

        for kind, strip_indices in strips:
            if len(strip_indices) == 0:
                continue
            try:
                prim = _PRIMITIVES[StripKind(kind)]
            except ValueError:
                logger.warning("Skipping strip of unknown kind %r", kind)
                continue
            groups.append(
                PrimitiveGroup(
                    prim,
                    group.material_index,
                    np.asarray(strip_indices),
                )
            )

    mesh.clear_groups()
    for group in groups:
        mesh.add_group(group.prim, group.material_index, group.indices)

    logger.info("Converted %r into %d primitive groups", mesh, len(groups))
    return True
