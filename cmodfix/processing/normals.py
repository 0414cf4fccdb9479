# cmodfix/processing/normals.py
from __future__ import annotations

import logging
import math

import numpy as np

from cmodfix.errors import UnsupportedGeometryError
from cmodfix.mesh.layout import (
    VertexFormat,
    VertexSemantic,
    augment_vertex_description,
)
from cmodfix.mesh.types import Mesh
from cmodfix.processing.expand import (
    average_corner_vectors,
    corner_values,
    rebuild_mesh,
    require_attribute,
)
from cmodfix.processing.faces import FaceArray, build_adjacency, build_faces
from cmodfix.processing.predicates import (
    position_equivalence,
    position_ordering,
)
from cmodfix.processing.weld import join_vertices

logger = logging.getLogger(__name__)


def compute_face_normals(points: np.ndarray) -> np.ndarray:
    """
    Unit normals of (F, 3, 3) triangle corner positions.
    Zero-area faces keep a zero normal.
    """
    p0, p1, p2 = points[:, 0], points[:, 1], points[:, 2]
    normals = np.cross(p1 - p0, p2 - p1)

    length_sq = np.einsum("ij,ij->i", normals, normals)
    nonzero = length_sq > 0.0
    normals[nonzero] /= np.sqrt(length_sq[nonzero])[:, None]
    return normals


def generate_normals(
    mesh: Mesh,
    smooth_angle: float,
    weld: bool = False,
) -> Mesh:
    """
    Return a new mesh with a generated Float3 normal per face corner.

    Args:
        mesh: Source mesh; left untouched.
        smooth_angle: Largest angle in radians between two face normals
            that are still averaged together. 0 gives flat shading, pi
            smooths everything that shares a vertex.
        weld: Merge corners with identical positions before averaging, so
            faces that share a point but not a vertex are smoothed together.

    Raises:
        MissingAttributeError: The mesh has no position attribute.
        UnsupportedGeometryError: Positions are not float3, a group is not
            made of triangles, or the mesh is empty.
        InvalidTopologyError: A group has an unusable index count.
    """
    desc = mesh.vertex_description
    position = require_attribute(
        desc, VertexSemantic.POSITION, VertexFormat.FLOAT3
    )

    faces: FaceArray = build_faces(mesh.groups)
    if mesh.vertex_count == 0 or len(faces) == 0:
        raise UnsupportedGeometryError(
            "Cannot generate normals for an empty mesh"
        )

    faces.vectors = compute_face_normals(corner_values(mesh, position, faces))

    if weld:
        join_vertices(
            faces,
            mesh.vertex_data,
            desc,
            position_ordering(desc),
            position_equivalence(desc, 0.0),
        )

    adjacency = build_adjacency(faces, mesh.vertex_count)
    vertex_normals = average_corner_vectors(
        faces, adjacency, math.cos(smooth_angle)
    )

    new_desc = augment_vertex_description(
        desc, VertexSemantic.NORMAL, VertexFormat.FLOAT3
    )
    new_mesh = rebuild_mesh(
        mesh, faces, new_desc, VertexSemantic.NORMAL, vertex_normals
    )

    logger.info(
        "Generated normals for %d faces (%d -> %d vertices)",
        len(faces),
        mesh.vertex_count,
        new_mesh.vertex_count,
    )
    return new_mesh
