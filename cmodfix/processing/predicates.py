# cmodfix/processing/predicates.py
"""
Orderings and equivalence tests over raw vertex records.

Orderings are sort-key functions over a Vertex; equivalences are
(Vertex, Vertex) -> bool callables. Both are passed as plain values to
join_vertices and uniquify_vertices.
"""

from __future__ import annotations

import struct
from typing import Callable, Tuple

from cmodfix.errors import MissingAttributeError
from cmodfix.mesh.buffer import Vertex
from cmodfix.mesh.layout import (
    VertexAttribute,
    VertexDescription,
    VertexSemantic,
)

OrderingKey = Callable[[Vertex], tuple | bytes]
Equivalence = Callable[[Vertex, Vertex], bool]

_vec3 = struct.Struct("<3f")
_vec2 = struct.Struct("<2f")


def approx_equal(x: float, y: float, tolerance: float) -> bool:
    """Relative comparison; a tolerance of 0 is exact equality."""
    return abs(x - y) <= tolerance * min(abs(x), abs(y))


def _require(
    desc: VertexDescription, semantic: VertexSemantic
) -> VertexAttribute:
    attr = desc.get_attribute(semantic)
    if attr is None:
        raise MissingAttributeError(f"Vertex {semantic.name} is required")
    return attr


def _point(v: Vertex, offset: int) -> Tuple[float, float, float]:
    return _vec3.unpack_from(v.attributes, offset)


def _tex_coord(v: Vertex, offset: int) -> Tuple[float, float]:
    return _vec2.unpack_from(v.attributes, offset)


# --- Exact ---


def exact_ordering(v: Vertex) -> bytes:
    return v.attributes


def exact_equal(a: Vertex, b: Vertex) -> bool:
    return a.attributes == b.attributes


# --- Position ---


def position_ordering(desc: VertexDescription) -> OrderingKey:
    pos = _require(desc, VertexSemantic.POSITION).offset

    def key(v: Vertex) -> tuple:
        return _point(v, pos)

    return key


def position_equal(desc: VertexDescription) -> Equivalence:
    pos = _require(desc, VertexSemantic.POSITION).offset

    def equal(a: Vertex, b: Vertex) -> bool:
        return _point(a, pos) == _point(b, pos)

    return equal


def position_equivalence(
    desc: VertexDescription, tolerance: float
) -> Equivalence:
    pos = _require(desc, VertexSemantic.POSITION).offset

    def equivalent(a: Vertex, b: Vertex) -> bool:
        return all(
            approx_equal(x, y, tolerance)
            for x, y in zip(_point(a, pos), _point(b, pos))
        )

    return equivalent


# --- Position + texture coordinate ---


def position_uv_ordering(desc: VertexDescription) -> OrderingKey:
    pos = _require(desc, VertexSemantic.POSITION).offset
    uv = _require(desc, VertexSemantic.TEXTURE0).offset

    def key(v: Vertex) -> tuple:
        return _point(v, pos) + _tex_coord(v, uv)

    return key


def position_uv_equivalence(
    desc: VertexDescription, tolerance: float
) -> Equivalence:
    pos = _require(desc, VertexSemantic.POSITION).offset
    uv = _require(desc, VertexSemantic.TEXTURE0).offset

    def equivalent(a: Vertex, b: Vertex) -> bool:
        coords_a = _point(a, pos) + _tex_coord(a, uv)
        coords_b = _point(b, pos) + _tex_coord(b, uv)
        return all(
            approx_equal(x, y, tolerance) for x, y in zip(coords_a, coords_b)
        )

    return equivalent
