# cmodfix/processing/tangents.py
from __future__ import annotations

import logging

import numpy as np

from cmodfix.errors import UnsupportedGeometryError
from cmodfix.mesh.layout import (
    VertexFormat,
    VertexSemantic,
    augment_vertex_description,
)
from cmodfix.mesh.types import Mesh, PrimitiveType
from cmodfix.processing.expand import (
    average_corner_vectors,
    corner_values,
    rebuild_mesh,
    require_attribute,
)
from cmodfix.processing.faces import build_adjacency, build_faces
from cmodfix.processing.predicates import (
    position_uv_equivalence,
    position_uv_ordering,
)
from cmodfix.processing.weld import join_vertices

logger = logging.getLogger(__name__)

WELD_TOLERANCE = 1.0e-5


def compute_face_tangents(points: np.ndarray, uvs: np.ndarray) -> np.ndarray:
    """
    Per-face tangents from (F, 3, 3) positions and (F, 3, 2) UVs
    (Lengyel's method). Faces with a degenerate UV mapping get zero.
    """
    s1 = uvs[:, 1, 0] - uvs[:, 0, 0]
    s2 = uvs[:, 2, 0] - uvs[:, 0, 0]
    t1 = uvs[:, 1, 1] - uvs[:, 0, 1]
    t2 = uvs[:, 2, 1] - uvs[:, 0, 1]
    a = s1 * t2 - s2 * t1

    edge1 = points[:, 1] - points[:, 0]
    edge2 = points[:, 2] - points[:, 0]

    tangents = np.zeros_like(edge1)
    ok = a != 0.0
    tangents[ok] = (
        t2[ok, None] * edge1[ok] - t1[ok, None] * edge2[ok]
    ) / a[ok, None]
    return tangents


def generate_tangents(mesh: Mesh, weld: bool = False) -> Mesh:
    """
    Return a new mesh with a generated Float3 tangent per face corner.

    The mesh must already be made of triangle lists and carry float3
    positions, float3 normals and float2 Texture0 coordinates. Every face
    sharing a vertex contributes to its tangent; there is no angle cutoff.
    With weld, corners are merged on position and UV within a relative
    tolerance of 1e-5 before averaging.
    """
    desc = mesh.vertex_description
    position = require_attribute(
        desc, VertexSemantic.POSITION, VertexFormat.FLOAT3
    )
    require_attribute(desc, VertexSemantic.NORMAL, VertexFormat.FLOAT3)
    tex_coord = require_attribute(
        desc, VertexSemantic.TEXTURE0, VertexFormat.FLOAT2
    )

    for group in mesh.groups:
        if group.prim != PrimitiveType.TRI_LIST:
            raise UnsupportedGeometryError(
                f"Mesh should contain just triangle lists, found "
                f"{group.prim.name}"
            )

    faces = build_faces(mesh.groups)
    if mesh.vertex_count == 0 or len(faces) == 0:
        raise UnsupportedGeometryError(
            "Cannot generate tangents for an empty mesh"
        )

    faces.vectors = compute_face_tangents(
        corner_values(mesh, position, faces),
        corner_values(mesh, tex_coord, faces),
    )

    if weld:
        join_vertices(
            faces,
            mesh.vertex_data,
            desc,
            position_uv_ordering(desc),
            position_uv_equivalence(desc, WELD_TOLERANCE),
        )

    adjacency = build_adjacency(faces, mesh.vertex_count)
    vertex_tangents = average_corner_vectors(faces, adjacency, None)

    new_desc = augment_vertex_description(
        desc, VertexSemantic.TANGENT, VertexFormat.FLOAT3
    )
    new_mesh = rebuild_mesh(
        mesh, faces, new_desc, VertexSemantic.TANGENT, vertex_tangents
    )

    logger.info(
        "Generated tangents for %d faces (%d -> %d vertices)",
        len(faces),
        mesh.vertex_count,
        new_mesh.vertex_count,
    )
    return new_mesh
