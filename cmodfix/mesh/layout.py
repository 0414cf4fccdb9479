# cmodfix/mesh/layout.py
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Iterator, List, Optional, Tuple

import numpy as np

from cmodfix.errors import LayoutError


class VertexSemantic(IntEnum):
    """Role of a vertex field. Value order is the sort order."""

    POSITION = 0
    COLOR0 = 1
    COLOR1 = 2
    NORMAL = 3
    TANGENT = 4
    TEXTURE0 = 5
    TEXTURE1 = 6
    TEXTURE2 = 7
    TEXTURE3 = 8
    POINT_SIZE = 9
    NEXT_POSITION = 10
    SCALE_FACTOR = 11


class VertexFormat(IntEnum):
    FLOAT1 = 0
    FLOAT2 = 1
    FLOAT3 = 2
    FLOAT4 = 3
    UBYTE4 = 4

    @property
    def size(self) -> int:
        """Size in bytes of one attribute of this format."""
        return _FORMAT_SIZES[self]

    @property
    def components(self) -> int:
        return _FORMAT_COMPONENTS[self]

    @property
    def dtype(self) -> np.dtype:
        """Little-endian numpy dtype of a single component."""
        if self is VertexFormat.UBYTE4:
            return np.dtype("u1")
        return np.dtype("<f4")


_FORMAT_SIZES = {
    VertexFormat.FLOAT1: 4,
    VertexFormat.FLOAT2: 8,
    VertexFormat.FLOAT3: 12,
    VertexFormat.FLOAT4: 16,
    VertexFormat.UBYTE4: 4,
}

_FORMAT_COMPONENTS = {
    VertexFormat.FLOAT1: 1,
    VertexFormat.FLOAT2: 2,
    VertexFormat.FLOAT3: 3,
    VertexFormat.FLOAT4: 4,
    VertexFormat.UBYTE4: 4,
}


@dataclass(frozen=True, order=True, slots=True)
class VertexAttribute:
    """One field of an interleaved vertex record."""

    semantic: VertexSemantic
    format: VertexFormat
    offset: int

    @property
    def size(self) -> int:
        return self.format.size

    @property
    def end(self) -> int:
        return self.offset + self.format.size


@dataclass(frozen=True, slots=True)
class VertexDescription:
    """
    Describes the interleaved per-vertex layout of a vertex buffer.
    Equality is structural: stride first, then the attributes in order.
    """

    stride: int
    attributes: Tuple[VertexAttribute, ...] = ()

    @staticmethod
    def packed(
        *fields: Tuple[VertexSemantic, VertexFormat],
    ) -> VertexDescription:
        """Build a tightly packed description from (semantic, format) pairs."""
        attributes: List[VertexAttribute] = []
        offset = 0
        for semantic, fmt in fields:
            attributes.append(VertexAttribute(semantic, fmt, offset))
            offset += fmt.size

        return VertexDescription(stride=offset, attributes=tuple(attributes))

    def __iter__(self) -> Iterator[VertexAttribute]:
        return iter(self.attributes)

    def __len__(self) -> int:
        return len(self.attributes)

    def get_attribute(
        self, semantic: VertexSemantic
    ) -> Optional[VertexAttribute]:
        for attr in self.attributes:
            if attr.semantic == semantic:
                return attr
        return None

    def has(self, semantic: VertexSemantic) -> bool:
        return self.get_attribute(semantic) is not None

    def sort_key(self) -> tuple:
        """Total ordering: stride, then attribute count, then attributes."""
        return (self.stride, len(self.attributes), self.attributes)

    def validate(self) -> None:
        """Raise LayoutError if attributes overlap, overflow or repeat."""
        seen = set()
        spans = []
        for attr in self.attributes:
            if attr.semantic in seen:
                raise LayoutError(
                    f"Duplicate vertex attribute {attr.semantic.name}"
                )
            seen.add(attr.semantic)

            if attr.offset < 0 or attr.end > self.stride:
                raise LayoutError(
                    f"Attribute {attr.semantic.name} at offset {attr.offset} "
                    f"does not fit in stride {self.stride}"
                )
            spans.append((attr.offset, attr.end, attr.semantic))

        spans.sort()
        for (_, end, first), (start, _, second) in zip(spans, spans[1:]):
            if start < end:
                raise LayoutError(
                    f"Attributes {first.name} and {second.name} overlap"
                )


def augment_vertex_description(
    desc: VertexDescription,
    semantic: VertexSemantic,
    fmt: VertexFormat,
) -> VertexDescription:
    """
    Return a repacked description guaranteed to hold `semantic` in `fmt`.

    An existing attribute with the same semantic but a different format is
    dropped. Surviving attributes keep their relative order and get new
    tightly packed offsets; the requested attribute is appended at the end
    if it did not survive.
    """
    attributes: List[VertexAttribute] = []
    stride = 0
    found = False

    for attr in desc.attributes:
        if attr.semantic == semantic and attr.format != fmt:
            continue

        if attr.semantic == semantic:
            found = True

        attributes.append(replace(attr, offset=stride))
        stride += attr.size

    if not found:
        attributes.append(VertexAttribute(semantic, fmt, stride))
        stride += fmt.size

    return VertexDescription(stride=stride, attributes=tuple(attributes))
