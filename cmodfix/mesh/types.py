# cmodfix/mesh/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Sequence, Tuple

import numpy as np

from cmodfix.errors import MeshError
from cmodfix.mesh.layout import VertexDescription

INDEX_DTYPE = np.dtype("<u4")


class PrimitiveType(IntEnum):
    TRI_LIST = 0
    TRI_STRIP = 1
    TRI_FAN = 2
    LINE_LIST = 3
    LINE_STRIP = 4
    POINT_LIST = 5
    SPRITE_LIST = 6


@dataclass(slots=True)
class PrimitiveGroup:
    """A run of indices sharing one topology and one material."""

    prim: PrimitiveType
    material_index: int
    indices: np.ndarray

    def __post_init__(self) -> None:
        self.indices = np.ascontiguousarray(self.indices, dtype=INDEX_DTYPE)

    def __len__(self) -> int:
        return len(self.indices)


@dataclass(frozen=True)
class Material:
    """Opaque material; only the name is carried through the pipeline."""

    name: str


class Mesh:
    """
    Vertex buffer + layout + primitive groups.

    The vertex buffer is an immutable bytes object of exactly
    vertex_count * stride bytes. Replacing it goes through set_vertices,
    which takes ownership of the new buffer.
    """

    def __init__(
        self,
        description: VertexDescription | None = None,
        vertex_data: bytes = b"",
        vertex_count: int = 0,
        name: str = "",
    ) -> None:
        self.name = name
        if description is None:
            description = VertexDescription(stride=0)
        self._description = description
        self._vertex_data = b""
        self._vertex_count = 0
        self._groups: List[PrimitiveGroup] = []

        self.set_vertices(vertex_count, vertex_data)

    @property
    def vertex_description(self) -> VertexDescription:
        return self._description

    @property
    def vertex_count(self) -> int:
        return self._vertex_count

    @property
    def vertex_data(self) -> bytes:
        return self._vertex_data

    @property
    def groups(self) -> Tuple[PrimitiveGroup, ...]:
        return tuple(self._groups)

    def set_vertex_description(self, description: VertexDescription) -> None:
        self._description = description

    def set_vertices(self, count: int, data: bytes | bytearray) -> None:
        expected = count * self._description.stride
        if len(data) != expected:
            raise MeshError(
                f"Vertex buffer holds {len(data)} bytes, expected {expected} "
                f"for {count} vertices of stride {self._description.stride}"
            )
        self._vertex_data = bytes(data)
        self._vertex_count = count

    def add_group(
        self,
        prim: PrimitiveType,
        material_index: int,
        indices: Sequence[int] | np.ndarray,
    ) -> PrimitiveGroup:
        group = PrimitiveGroup(PrimitiveType(prim), material_index, indices)
        self._groups.append(group)
        return group

    def clear_groups(self) -> None:
        self._groups.clear()

    def remap_indices(self, vertex_map: Sequence[int] | np.ndarray) -> None:
        """Replace every index i in every group with vertex_map[i]."""
        lookup = np.asarray(vertex_map, dtype=INDEX_DTYPE)
        for group in self._groups:
            group.indices = lookup[group.indices]

    def validate(self) -> None:
        """Raise MeshError on a broken layout or an out-of-range index."""
        self._description.validate()
        for i, group in enumerate(self._groups):
            if len(group.indices) and group.indices.max() >= self._vertex_count:
                raise MeshError(
                    f"Group {i} references vertex {int(group.indices.max())} "
                    f"but the mesh has {self._vertex_count} vertices"
                )

    def __repr__(self) -> str:
        return (
            f"Mesh(name={self.name!r}, vertices={self._vertex_count}, "
            f"stride={self._description.stride}, groups={len(self._groups)})"
        )


@dataclass
class Model:
    """Ordered materials and meshes loaded from one model stream."""

    materials: List[Material] = field(default_factory=list)
    meshes: List[Mesh] = field(default_factory=list)

    def add_material(self, material: Material) -> int:
        self.materials.append(material)
        return len(self.materials) - 1

    def add_mesh(self, mesh: Mesh) -> int:
        self.meshes.append(mesh)
        return len(self.meshes) - 1
