# cmodfix/processing/weld.py
from __future__ import annotations

import logging
from typing import Dict

from cmodfix.mesh.buffer import Vertex
from cmodfix.mesh.layout import VertexDescription
from cmodfix.processing.faces import FaceArray
from cmodfix.processing.predicates import Equivalence, OrderingKey

logger = logging.getLogger(__name__)


def join_vertices(
    faces: FaceArray,
    vertex_data: bytes,
    desc: VertexDescription,
    ordering: OrderingKey,
    equivalence: Equivalence,
) -> Dict[int, int]:
    """
    Weld face corners whose vertices are equivalent.

    Corners are sorted by `ordering`; a new class starts whenever two
    neighbours in sorted order fail `equivalence`. Every member of a class
    maps to the original index of the class's first sorted member, and
    faces.position_indices is rewritten through that map.

    Returns the map from every touched attribute index to its class
    representative.
    """
    if len(faces) == 0:
        return {}

    stride = desc.stride
    vertices = [
        Vertex(index, vertex_data[index * stride : (index + 1) * stride])
        for index in faces.attribute_indices.reshape(-1).tolist()
    ]

    # Stable, so equal keys keep face order.
    vertices.sort(key=ordering)

    merge_map: Dict[int, int] = {}
    representative = vertices[0].index
    classes = 0
    for i, vertex in enumerate(vertices):
        if i == 0 or not equivalence(vertices[i - 1], vertex):
            representative = vertex.index
            classes += 1
        merge_map[vertex.index] = representative

    for f, corners in enumerate(faces.attribute_indices.tolist()):
        for k, index in enumerate(corners):
            faces.position_indices[f, k] = merge_map[index]

    logger.debug(
        "Welded %d corners into %d position classes", len(vertices), classes
    )
    return merge_map
