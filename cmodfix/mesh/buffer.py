# cmodfix/mesh/buffer.py
"""
Strided access into interleaved vertex buffers.

Every read goes through a numpy view built from (stride, offset, format),
so a field can never be read past the end of its record or its buffer.
"""

from __future__ import annotations

from typing import Iterator, NamedTuple

import numpy as np

from cmodfix.mesh.layout import VertexAttribute, VertexDescription


class Vertex(NamedTuple):
    """Sort carrier: original index plus a borrowed copy of its record."""

    index: int
    attributes: bytes


def vertex_records(data: bytes, stride: int, count: int) -> np.ndarray:
    """Return the buffer as a read-only (count, stride) uint8 matrix."""
    if count == 0 or stride == 0:
        return np.zeros((count, stride), dtype=np.uint8)
    return np.frombuffer(data, dtype=np.uint8, count=count * stride).reshape(
        count, stride
    )


def attribute_view(
    data: bytes,
    desc: VertexDescription,
    attr: VertexAttribute,
    count: int,
) -> np.ndarray:
    """Return a (count, components) view of one attribute column."""
    fmt = attr.format
    if count == 0:
        return np.zeros((0, fmt.components), dtype=fmt.dtype)

    return np.ndarray(
        shape=(count, fmt.components),
        dtype=fmt.dtype,
        buffer=data,
        offset=attr.offset,
        strides=(desc.stride, fmt.dtype.itemsize),
    )


def iter_vertices(data: bytes, stride: int, count: int) -> Iterator[Vertex]:
    for i in range(count):
        yield Vertex(i, data[i * stride : (i + 1) * stride])


def pack_attribute(values: np.ndarray, attr: VertexAttribute) -> np.ndarray:
    """Encode (N, components) values as an (N, size) uint8 block."""
    fmt = attr.format
    encoded = np.ascontiguousarray(values, dtype=fmt.dtype)
    return encoded.view(np.uint8).reshape(len(encoded), fmt.size)
