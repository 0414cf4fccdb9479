# cmodfix/formats/obj.py
from __future__ import annotations

import io
import logging
import struct
from typing import Dict, List, Optional, Tuple

import numpy as np

from cmodfix.errors import MeshError, ModelFormatError
from cmodfix.formats.base import ModelCodec
from cmodfix.mesh.buffer import attribute_view
from cmodfix.mesh.layout import VertexDescription, VertexFormat, VertexSemantic
from cmodfix.mesh.types import Material, Mesh, Model, PrimitiveType
from cmodfix.processing.faces import TRIANGLE_TYPES, triangulate_group

logger = logging.getLogger(__name__)

DEFAULT_MATERIAL = "default"

# Corner key: (position, texture coordinate, normal) indices
CornerKey = Tuple[int, Optional[int], Optional[int]]


class ObjModelCodec(ModelCodec):
    """
    Wavefront OBJ as the text container.

    Only positions, Texture0 and normals survive a round trip; polygons are
    split into triangle fans and every run of faces sharing a material
    becomes one triangle list.
    """

    def decode(self, data: bytes) -> Model:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ModelFormatError(f"OBJ data is not UTF-8 text: {e}") from e

        positions: List[Tuple[float, float, float]] = []
        normals: List[Tuple[float, float, float]] = []
        uvs: List[Tuple[float, float]] = []

        corners: Dict[CornerKey, int] = {}
        triangles: List[Tuple[int, int, int]] = []
        runs: List[Tuple[int, int]] = []  # (material, first triangle)

        model = Model()
        material_ids: Dict[str, int] = {}
        current_material: Optional[str] = None

        for line_no, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            parts = line.split()
            tag = parts[0]

            try:
                if tag == "v":
                    px, py, pz = map(float, parts[1:4])
                    positions.append((px, py, pz))

                elif tag == "vn":
                    nx, ny, nz = map(float, parts[1:4])
                    normals.append((nx, ny, nz))

                elif tag == "vt":
                    u, v = map(float, parts[1:3])
                    uvs.append((u, v))

                elif tag == "usemtl":
                    current_material = parts[1] if len(parts) > 1 else ""

                elif tag == "f":
                    if len(parts) < 4:
                        raise ModelFormatError(
                            f"Face with fewer than three vertices on line "
                            f"{line_no}"
                        )

                    name = current_material or DEFAULT_MATERIAL
                    if name not in material_ids:
                        material_ids[name] = model.add_material(Material(name))
                    material = material_ids[name]
                    if not runs or runs[-1][0] != material:
                        runs.append((material, len(triangles)))

                    polygon = []
                    for token in parts[1:]:
                        key = self._parse_face_vertex(
                            token, positions, uvs, normals
                        )
                        polygon.append(self._corner_index(key, corners))

                    hub = polygon[0]
                    for k in range(2, len(polygon)):
                        triangles.append((hub, polygon[k - 1], polygon[k]))

            except ModelFormatError:
                raise
            except (ValueError, IndexError) as e:
                raise ModelFormatError(
                    f"Malformed OBJ line {line_no}: {line!r}"
                ) from e

        if not triangles:
            raise ModelFormatError("No geometry found in OBJ data")

        model.add_mesh(
            self._build_mesh(corners, triangles, runs, positions, uvs, normals)
        )
        return model

    def encode(self, model: Model) -> bytes:
        out = io.StringIO()
        out.write("# cmodfix\n")

        base = 0
        for mesh_index, mesh in enumerate(model.meshes):
            desc = mesh.vertex_description
            out.write(f"o {mesh.name or f'mesh{mesh_index}'}\n")

            position = desc.get_attribute(VertexSemantic.POSITION)
            if position is None:
                raise ModelFormatError(
                    f"Mesh {mesh_index} has no positions to write"
                )
            tex_coord = desc.get_attribute(VertexSemantic.TEXTURE0)
            normal = desc.get_attribute(VertexSemantic.NORMAL)

            dropped = [
                attr.semantic.name
                for attr in desc
                if attr not in (position, tex_coord, normal)
            ]
            if dropped:
                logger.warning(
                    "OBJ output drops vertex attributes: %s",
                    ", ".join(dropped),
                )

            columns = (("v", position), ("vt", tex_coord), ("vn", normal))
            for tag, attr in columns:
                if attr is None:
                    continue
                column = attribute_view(
                    mesh.vertex_data, desc, attr, mesh.vertex_count
                )
                for row in column.tolist():
                    values = " ".join(f"{x:.9g}" for x in row)
                    out.write(f"{tag} {values}\n")

            for group in mesh.groups:
                if group.prim not in TRIANGLE_TYPES:
                    logger.warning(
                        "OBJ output skips %s group", group.prim.name.lower()
                    )
                    continue

                material = self._material_name(model, group.material_index)
                out.write(f"usemtl {material}\n")
                try:
                    triangles = triangulate_group(group)
                except MeshError as e:
                    raise ModelFormatError(str(e)) from e

                for triangle in (triangles + base + 1).tolist():
                    out.write(
                        "f "
                        + " ".join(
                            self._format_corner(i, tex_coord, normal)
                            for i in triangle
                        )
                        + "\n"
                    )

            base += mesh.vertex_count

        return out.getvalue().encode("utf-8")

    def _build_mesh(
        self,
        corners: Dict[CornerKey, int],
        triangles: List[Tuple[int, int, int]],
        runs: List[Tuple[int, int]],
        positions: List[Tuple[float, float, float]],
        uvs: List[Tuple[float, float]],
        normals: List[Tuple[float, float, float]],
    ) -> Mesh:
        has_uv = any(key[1] is not None for key in corners)
        has_normal = any(key[2] is not None for key in corners)

        fields = [(VertexSemantic.POSITION, VertexFormat.FLOAT3)]
        fmt = "<3f"
        if has_normal:
            fields.append((VertexSemantic.NORMAL, VertexFormat.FLOAT3))
            fmt += "3f"
        if has_uv:
            fields.append((VertexSemantic.TEXTURE0, VertexFormat.FLOAT2))
            fmt += "2f"
        desc = VertexDescription.packed(*fields)
        record = struct.Struct(fmt)

        # dicts keep insertion order, which is the vertex order
        vertices: List[bytes] = []
        for v_idx, vt_idx, vn_idx in corners:
            values = list(positions[v_idx])
            if has_normal:
                values.extend(
                    normals[vn_idx] if vn_idx is not None else (0.0, 1.0, 0.0)
                )
            if has_uv:
                values.extend(
                    uvs[vt_idx] if vt_idx is not None else (0.0, 0.0)
                )
            vertices.append(record.pack(*values))

        mesh = Mesh(desc, b"".join(vertices), len(vertices))

        indices = np.asarray(triangles, dtype=np.uint32).reshape(-1)
        bounds = [first for _, first in runs[1:]] + [len(triangles)]
        for (material, first), last in zip(runs, bounds):
            mesh.add_group(
                PrimitiveType.TRI_LIST,
                material,
                indices[first * 3 : last * 3],
            )

        return mesh

    def _corner_index(
        self, key: CornerKey, corners: Dict[CornerKey, int]
    ) -> int:
        if key not in corners:
            corners[key] = len(corners)
        return corners[key]

    def _material_name(self, model: Model, index: int) -> str:
        if 0 <= index < len(model.materials):
            return model.materials[index].name or DEFAULT_MATERIAL
        return f"material{index}"

    def _format_corner(self, i: int, tex_coord, normal) -> str:
        if normal is not None:
            return f"{i}/{i if tex_coord is not None else ''}/{i}"
        if tex_coord is not None:
            return f"{i}/{i}"
        return str(i)

    def _parse_index(self, val: str, count: int) -> int | None:
        if not val:
            return None
        idx = int(val)
        idx = idx - 1 if idx > 0 else count + idx
        if not 0 <= idx < count:
            raise IndexError(val)
        return idx

    def _parse_face_vertex(
        self,
        token: str,
        positions: List[Tuple[float, float, float]],
        uvs: List[Tuple[float, float]],
        normals: List[Tuple[float, float, float]],
    ) -> CornerKey:
        parts = token.split("/")
        v = self._parse_index(parts[0], len(positions))
        vt = (
            self._parse_index(parts[1], len(uvs))
            if len(parts) > 1 and parts[1]
            else None
        )
        vn = (
            self._parse_index(parts[2], len(normals))
            if len(parts) > 2 and parts[2]
            else None
        )

        if v is None:
            raise ModelFormatError(f"Invalid vertex index in token: {token}")

        return v, vt, vn
