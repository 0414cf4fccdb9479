# cmodfix/processing/expand.py
"""
Shared tail of the normal and tangent generators: per-corner averaging
of face vectors and rebuilding a mesh with one vertex per face corner.
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from cmodfix.errors import MissingAttributeError, UnsupportedGeometryError
from cmodfix.mesh.buffer import attribute_view, pack_attribute, vertex_records
from cmodfix.mesh.layout import (
    VertexAttribute,
    VertexDescription,
    VertexFormat,
    VertexSemantic,
)
from cmodfix.mesh.types import Mesh, PrimitiveType
from cmodfix.processing.faces import FaceArray, face_count

FALLBACK_VECTOR = np.array([1.0, 0.0, 0.0])


def require_attribute(
    desc: VertexDescription,
    semantic: VertexSemantic,
    fmt: VertexFormat,
) -> VertexAttribute:
    attr = desc.get_attribute(semantic)
    if attr is None:
        raise MissingAttributeError(
            f"Vertex {semantic.name.lower()} must be present"
        )
    if attr.format != fmt:
        raise UnsupportedGeometryError(
            f"Vertex {semantic.name.lower()} must be a {fmt.name.lower()}, "
            f"not {attr.format.name.lower()}"
        )
    return attr


def corner_values(
    mesh: Mesh, attr: VertexAttribute, faces: FaceArray
) -> np.ndarray:
    """Gather an attribute per face corner as an (F, 3, components) array."""
    column = attribute_view(
        mesh.vertex_data, mesh.vertex_description, attr, mesh.vertex_count
    )
    return column.astype(np.float64)[faces.attribute_indices]


def average_corner_vectors(
    faces: FaceArray,
    adjacency: List[List[int]],
    cos_smooth_angle: Optional[float],
) -> np.ndarray:
    """
    Average face vectors around every face corner.

    For the corner of face f at position vertex v, sum the vectors of the
    faces incident to v whose dot product with f's vector exceeds
    cos_smooth_angle. Face f itself always contributes. With
    cos_smooth_angle=None every incident face contributes.

    Zero sums become (1, 0, 0); everything else is normalized.
    Returns a (3F, 3) array in face-corner order.
    """
    vectors = faces.vectors
    result = np.empty((len(faces) * 3, 3), dtype=np.float64)

    for f, corners in enumerate(faces.position_indices.tolist()):
        own = vectors[f]
        for j, v in enumerate(corners):
            incident = np.asarray(adjacency[v], dtype=np.intp)
            candidates = vectors[incident]
            if cos_smooth_angle is not None:
                keep = (incident == f) | (candidates @ own > cos_smooth_angle)
                candidates = candidates[keep]

            total = candidates.sum(axis=0)
            length_sq = float(total @ total)
            if length_sq == 0.0:
                result[f * 3 + j] = FALLBACK_VECTOR
            else:
                result[f * 3 + j] = total / np.sqrt(length_sq)

    return result


def rebuild_mesh(
    mesh: Mesh,
    faces: FaceArray,
    new_desc: VertexDescription,
    generated: VertexSemantic,
    corner_vectors: np.ndarray,
) -> Mesh:
    """
    Build a new mesh with one vertex per face corner.

    Every attribute of new_desc other than `generated` is copied from the
    source vertex by semantic; `generated` is filled from corner_vectors.
    Each source group becomes a triangle list over its contiguous run of
    corners, keeping its material.
    """
    old_desc = mesh.vertex_description
    old_records = vertex_records(
        mesh.vertex_data, old_desc.stride, mesh.vertex_count
    )
    sources = faces.attribute_indices.reshape(-1)
    corner_count = len(sources)

    records = np.zeros((corner_count, new_desc.stride), dtype=np.uint8)
    for attr in new_desc:
        if attr.semantic == generated:
            records[:, attr.offset : attr.end] = pack_attribute(
                corner_vectors, attr
            )
            continue

        old_attr = old_desc.get_attribute(attr.semantic)
        assert old_attr is not None and old_attr.format == attr.format
        records[:, attr.offset : attr.end] = old_records[
            sources, old_attr.offset : old_attr.end
        ]

    new_mesh = Mesh(new_desc, records.tobytes(), corner_count, name=mesh.name)

    first = 0
    for group in mesh.groups:
        count = face_count(group) * 3
        new_mesh.add_group(
            PrimitiveType.TRI_LIST,
            group.material_index,
            np.arange(first, first + count, dtype=np.uint32),
        )
        first += count
    assert first == corner_count

    return new_mesh
