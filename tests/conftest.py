import struct
from typing import Sequence

import numpy as np
import pytest

from cmodfix.mesh.buffer import attribute_view
from cmodfix.mesh.layout import VertexDescription, VertexFormat, VertexSemantic
from cmodfix.mesh.types import Mesh, PrimitiveType

POSITION_ONLY = VertexDescription.packed(
    (VertexSemantic.POSITION, VertexFormat.FLOAT3),
)

POSITION_UV = VertexDescription.packed(
    (VertexSemantic.POSITION, VertexFormat.FLOAT3),
    (VertexSemantic.TEXTURE0, VertexFormat.FLOAT2),
)

POSITION_NORMAL_UV = VertexDescription.packed(
    (VertexSemantic.POSITION, VertexFormat.FLOAT3),
    (VertexSemantic.NORMAL, VertexFormat.FLOAT3),
    (VertexSemantic.TEXTURE0, VertexFormat.FLOAT2),
)

COLOR_ONLY = VertexDescription.packed(
    (VertexSemantic.COLOR0, VertexFormat.UBYTE4),
)

CUBE_POSITIONS = [
    (-1.0, -1.0, -1.0),
    (1.0, -1.0, -1.0),
    (1.0, 1.0, -1.0),
    (-1.0, 1.0, -1.0),
    (-1.0, -1.0, 1.0),
    (1.0, -1.0, 1.0),
    (1.0, 1.0, 1.0),
    (-1.0, 1.0, 1.0),
]

# Two counter-clockwise triangles per side, paired with the side's normal.
CUBE_SIDES = [
    ((0, 3, 2, 0, 2, 1), (0.0, 0.0, -1.0)),
    ((4, 5, 6, 4, 6, 7), (0.0, 0.0, 1.0)),
    ((0, 1, 5, 0, 5, 4), (0.0, -1.0, 0.0)),
    ((3, 7, 6, 3, 6, 2), (0.0, 1.0, 0.0)),
    ((0, 4, 7, 0, 7, 3), (-1.0, 0.0, 0.0)),
    ((1, 2, 6, 1, 6, 5), (1.0, 0.0, 0.0)),
]


def pack_rows(
    desc: VertexDescription, rows: Sequence[Sequence[float]]
) -> bytes:
    """Pack flat rows for a tightly packed description."""
    codes = []
    for attr in desc:
        code = "B" if attr.format == VertexFormat.UBYTE4 else "f"
        codes.append(f"{attr.format.components}{code}")
    fmt = "<" + "".join(codes)
    record = struct.Struct(fmt)
    assert record.size == desc.stride
    return b"".join(record.pack(*row) for row in rows)


def make_mesh(
    desc: VertexDescription,
    rows: Sequence[Sequence[float]],
    *groups,
) -> Mesh:
    """groups are (PrimitiveType, material, indices) tuples."""
    mesh = Mesh(desc, pack_rows(desc, rows), len(rows))
    for prim, material, indices in groups:
        mesh.add_group(prim, material, indices)
    return mesh


def read_attribute(mesh: Mesh, semantic: VertexSemantic) -> np.ndarray:
    desc = mesh.vertex_description
    attr = desc.get_attribute(semantic)
    assert attr is not None
    return attribute_view(mesh.vertex_data, desc, attr, mesh.vertex_count)


@pytest.fixture
def cube():
    """Indexed cube: 8 shared corners, 12 triangles in one list."""
    indices = [i for side, _ in CUBE_SIDES for i in side]
    return make_mesh(
        POSITION_ONLY,
        CUBE_POSITIONS,
        (PrimitiveType.TRI_LIST, 0, indices),
    )


@pytest.fixture
def split_cube():
    """Cube with 4 private vertices per side, told apart by their UVs."""
    rows = []
    indices = []
    for side_index, (side, _) in enumerate(CUBE_SIDES):
        corners = list(dict.fromkeys(side))
        local = {corner: len(rows) + k for k, corner in enumerate(corners)}
        for k, corner in enumerate(corners):
            rows.append(CUBE_POSITIONS[corner] + (float(side_index), float(k)))
        indices.extend(local[corner] for corner in side)

    return make_mesh(
        POSITION_UV,
        rows,
        (PrimitiveType.TRI_LIST, 0, indices),
    )


@pytest.fixture
def quad():
    """Unit quad in the XY plane with UV = XY and +Z normals."""
    rows = [
        (0.0, 0.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0),
        (1.0, 0.0, 0.0, 0.0, 0.0, 1.0, 1.0, 0.0),
        (1.0, 1.0, 0.0, 0.0, 0.0, 1.0, 1.0, 1.0),
        (0.0, 1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 1.0),
    ]
    return make_mesh(
        POSITION_NORMAL_UV,
        rows,
        (PrimitiveType.TRI_LIST, 3, [0, 1, 2, 0, 2, 3]),
    )
