# cmodfix/formats/binary.py
"""
Compact binary container that round-trips a Model exactly.

Layout (all little-endian):
    magic                 b"#mfx1\\n"
    u32 material count, u32 mesh count
    materials             u16 name length + UTF-8 name
    meshes:
        u16 name length + UTF-8 name
        u32 stride, u16 attribute count
        attributes        u8 semantic, u8 format, u32 offset
        u32 vertex count, vertex count * stride bytes of vertex data
        u32 group count
        groups            u8 primitive, u32 material, u32 index count,
                          index count * u32 indices
"""

from __future__ import annotations

import struct
from typing import List

import numpy as np

from cmodfix.errors import MeshError, ModelFormatError
from cmodfix.formats.base import ModelCodec
from cmodfix.mesh.layout import (
    VertexAttribute,
    VertexDescription,
    VertexFormat,
    VertexSemantic,
)
from cmodfix.mesh.types import INDEX_DTYPE, Material, Mesh, Model, PrimitiveType

MAGIC = b"#mfx1\n"


class _Reader:
    """Cursor over a byte string; every read is bounds checked."""

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self.data = data
        self.offset = offset

    def unpack(self, fmt: struct.Struct) -> tuple:
        values = fmt.unpack_from(self.data, self.offset)
        self.offset += fmt.size
        return values

    def take(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise ModelFormatError(
                f"Unexpected end of data: wanted {size} bytes at "
                f"offset {self.offset}"
            )
        chunk = self.data[self.offset : end]
        self.offset = end
        return chunk


class BinaryModelCodec(ModelCodec):
    # < = Little Endian
    # B = u8, H = u16, I = u32
    _COUNTS = struct.Struct("<II")  # [Materials, Meshes]
    _NAME = struct.Struct("<H")  # [Length]
    _LAYOUT = struct.Struct("<IH")  # [Stride, Attributes]
    _ATTRIBUTE = struct.Struct("<BBI")  # [Semantic, Format, Offset]
    _COUNT = struct.Struct("<I")
    _GROUP = struct.Struct("<BII")  # [Primitive, Material, Indices]

    def decode(self, data: bytes) -> Model:
        if not data.startswith(MAGIC):
            raise ModelFormatError("Not a binary model: bad magic header")

        reader = _Reader(data, len(MAGIC))
        try:
            model = self._read_model(reader)
        except ModelFormatError:
            raise
        except (struct.error, ValueError) as e:
            raise ModelFormatError(f"Corrupt binary model: {e}") from e

        if reader.offset != len(data):
            raise ModelFormatError(
                f"{len(data) - reader.offset} trailing bytes after model"
            )
        return model

    def encode(self, model: Model) -> bytes:
        try:
            return self._write_model(model)
        except (struct.error, UnicodeEncodeError) as e:
            raise ModelFormatError(f"Cannot encode binary model: {e}") from e

    def _write_model(self, model: Model) -> bytes:
        chunks: List[bytes] = [
            MAGIC,
            self._COUNTS.pack(len(model.materials), len(model.meshes)),
        ]
        for material in model.materials:
            chunks.append(self._pack_name(material.name))

        for mesh in model.meshes:
            desc = mesh.vertex_description
            chunks.append(self._pack_name(mesh.name))
            chunks.append(self._LAYOUT.pack(desc.stride, len(desc)))
            for attr in desc:
                chunks.append(
                    self._ATTRIBUTE.pack(
                        attr.semantic, attr.format, attr.offset
                    )
                )

            chunks.append(self._COUNT.pack(mesh.vertex_count))
            chunks.append(mesh.vertex_data)

            chunks.append(self._COUNT.pack(len(mesh.groups)))
            for group in mesh.groups:
                chunks.append(
                    self._GROUP.pack(
                        group.prim, group.material_index, len(group.indices)
                    )
                )
                chunks.append(group.indices.astype(INDEX_DTYPE).tobytes())

        return b"".join(chunks)

    def _pack_name(self, name: str) -> bytes:
        raw = name.encode("utf-8")
        return self._NAME.pack(len(raw)) + raw

    def _read_name(self, reader: _Reader) -> str:
        (length,) = reader.unpack(self._NAME)
        return reader.take(length).decode("utf-8")

    def _read_model(self, reader: _Reader) -> Model:
        model = Model()
        material_count, mesh_count = reader.unpack(self._COUNTS)

        for _ in range(material_count):
            model.add_material(Material(self._read_name(reader)))

        for _ in range(mesh_count):
            model.add_mesh(self._read_mesh(reader))

        return model

    def _read_mesh(self, reader: _Reader) -> Mesh:
        name = self._read_name(reader)
        stride, attribute_count = reader.unpack(self._LAYOUT)

        attributes = []
        for _ in range(attribute_count):
            semantic, fmt, offset = reader.unpack(self._ATTRIBUTE)
            attributes.append(
                VertexAttribute(
                    VertexSemantic(semantic), VertexFormat(fmt), offset
                )
            )
        desc = VertexDescription(stride=stride, attributes=tuple(attributes))

        (vertex_count,) = reader.unpack(self._COUNT)
        vertex_data = reader.take(vertex_count * stride)
        mesh = Mesh(desc, vertex_data, vertex_count, name=name)

        (group_count,) = reader.unpack(self._COUNT)
        for _ in range(group_count):
            prim, material, index_count = reader.unpack(self._GROUP)
            raw = reader.take(index_count * INDEX_DTYPE.itemsize)
            mesh.add_group(
                PrimitiveType(prim),
                material,
                np.frombuffer(raw, dtype=INDEX_DTYPE),
            )

        try:
            mesh.validate()
        except MeshError as e:
            raise ModelFormatError(f"Invalid mesh {name!r}: {e}") from e

        return mesh
