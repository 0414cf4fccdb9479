# cmodfix/processing/uniquify.py
from __future__ import annotations

import logging

import numpy as np

from cmodfix.mesh.buffer import iter_vertices
from cmodfix.mesh.types import INDEX_DTYPE, Mesh
from cmodfix.processing.predicates import exact_equal, exact_ordering

logger = logging.getLogger(__name__)


def uniquify_vertices(mesh: Mesh) -> bool:
    """
    Remove byte-identical duplicate vertices in place.

    Vertices are sorted by their raw bytes; each run of identical records
    keeps its first sorted member, and the compacted buffer is laid out in
    sorted order. Group indices are remapped to the compacted positions.

    Returns False for an empty mesh, True otherwise (including when there
    was nothing to remove).
    """
    count = mesh.vertex_count
    stride = mesh.vertex_description.stride
    if count == 0:
        logger.debug("Skipping uniquify of %r: no vertices", mesh)
        return False

    vertices = sorted(
        iter_vertices(mesh.vertex_data, stride, count), key=exact_ordering
    )

    unique_count = sum(
        1
        for i, vertex in enumerate(vertices)
        if i == 0 or not exact_equal(vertices[i - 1], vertex)
    )
    if unique_count == count:
        return True

    vertex_map = np.zeros(count, dtype=INDEX_DTYPE)
    compacted = bytearray(unique_count * stride)
    j = -1
    for i, vertex in enumerate(vertices):
        if i == 0 or not exact_equal(vertices[i - 1], vertex):
            j += 1
            compacted[j * stride : (j + 1) * stride] = vertex.attributes
        vertex_map[vertex.index] = j
    assert j == unique_count - 1

    mesh.set_vertices(unique_count, compacted)
    mesh.remap_indices(vertex_map)

    logger.info(
        "Uniquified %r: removed %d duplicate vertices",
        mesh.name or "mesh",
        count - unique_count,
    )
    return True
