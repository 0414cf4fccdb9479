# cmodfix/processing/faces.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from cmodfix.errors import InvalidTopologyError, UnsupportedTopologyError
from cmodfix.mesh.types import PrimitiveGroup, PrimitiveType

TRIANGLE_TYPES = (
    PrimitiveType.TRI_LIST,
    PrimitiveType.TRI_STRIP,
    PrimitiveType.TRI_FAN,
)


@dataclass(slots=True)
class FaceArray:
    """
    Triangles expanded from a mesh's primitive groups, stored as columns.

    attribute_indices: (F, 3) indices into the source vertex buffer.
    position_indices:  (F, 3) indices used for adjacency; equal to
                       attribute_indices unless a weld remapped them.
    vectors:           (F, 3) per-face normal or tangent.
    """

    attribute_indices: np.ndarray
    position_indices: np.ndarray
    vectors: np.ndarray

    @staticmethod
    def from_indices(indices: np.ndarray) -> FaceArray:
        indices = np.asarray(indices, dtype=np.uint32).reshape(-1, 3)
        return FaceArray(
            attribute_indices=indices,
            position_indices=indices.copy(),
            vectors=np.zeros((len(indices), 3), dtype=np.float64),
        )

    def __len__(self) -> int:
        return len(self.attribute_indices)


def face_count(group: PrimitiveGroup) -> int:
    """Number of triangles a group decomposes into. Validates index counts."""
    n = len(group.indices)

    if group.prim == PrimitiveType.TRI_LIST:
        if n < 3 or n % 3 != 0:
            raise InvalidTopologyError(
                f"Triangle list has invalid number of indices ({n})"
            )
        return n // 3

    if group.prim in (PrimitiveType.TRI_STRIP, PrimitiveType.TRI_FAN):
        if n < 3:
            raise InvalidTopologyError(
                f"Triangle {group.prim.name.lower()} has less than three "
                f"indices ({n})"
            )
        return n - 2

    raise UnsupportedTopologyError(
        f"Cannot build faces from {group.prim.name} primitives"
    )


def _strip_triangles(indices: np.ndarray) -> np.ndarray:
    # Odd positions swap the first two corners to keep the winding.
    j = np.arange(2, len(indices))
    even = j % 2 == 0
    first = np.where(even, j - 2, j - 1)
    second = np.where(even, j - 1, j - 2)
    return np.stack(
        [indices[first], indices[second], indices[j]], axis=1
    )


def _fan_triangles(indices: np.ndarray) -> np.ndarray:
    j = np.arange(2, len(indices))
    hub = np.full(len(j), indices[0], dtype=indices.dtype)
    return np.stack([hub, indices[j - 1], indices[j]], axis=1)


def triangulate_group(group: PrimitiveGroup) -> np.ndarray:
    """Return the (n, 3) triangles of a single triangle-topology group."""
    n = face_count(group)
    indices = group.indices

    if group.prim == PrimitiveType.TRI_LIST:
        triangles = indices.reshape(-1, 3)
    elif group.prim == PrimitiveType.TRI_STRIP:
        triangles = _strip_triangles(indices)
    else:
        triangles = _fan_triangles(indices)

    assert len(triangles) == n
    return triangles


def build_faces(groups: Sequence[PrimitiveGroup]) -> FaceArray:
    """
    Expand triangle lists, strips and fans into one flat face array.
    Faces are ordered by group, then by emission order within the group.
    """
    chunks = [triangulate_group(group) for group in groups]
    if not chunks:
        return FaceArray.from_indices(np.zeros((0, 3), dtype=np.uint32))

    return FaceArray.from_indices(np.concatenate(chunks))


def build_adjacency(faces: FaceArray, vertex_count: int) -> List[List[int]]:
    """
    For every position index, the faces that touch it in scan order.
    A face is listed once per corner that references the vertex.
    """
    adjacency: List[List[int]] = [[] for _ in range(vertex_count)]
    for f, corners in enumerate(faces.position_indices.tolist()):
        for v in corners:
            adjacency[v].append(f)

    return adjacency
