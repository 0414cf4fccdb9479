import pytest

from cmodfix.errors import LayoutError
from cmodfix.mesh.layout import (
    VertexAttribute,
    VertexDescription,
    VertexFormat,
    VertexSemantic,
    augment_vertex_description,
)


def test_packed_description_offsets():
    desc = VertexDescription.packed(
        (VertexSemantic.POSITION, VertexFormat.FLOAT3),
        (VertexSemantic.COLOR0, VertexFormat.UBYTE4),
        (VertexSemantic.TEXTURE0, VertexFormat.FLOAT2),
    )

    assert desc.stride == 24
    assert [a.offset for a in desc] == [0, 12, 16]
    uv = desc.get_attribute(VertexSemantic.TEXTURE0)
    assert uv.format == VertexFormat.FLOAT2
    assert desc.get_attribute(VertexSemantic.NORMAL) is None


def test_augment_appends_missing_semantic():
    desc = VertexDescription.packed(
        (VertexSemantic.POSITION, VertexFormat.FLOAT3),
        (VertexSemantic.TEXTURE0, VertexFormat.FLOAT2),
    )

    result = augment_vertex_description(
        desc, VertexSemantic.NORMAL, VertexFormat.FLOAT3
    )

    assert result.stride == 32
    assert result.attributes[-1] == VertexAttribute(
        VertexSemantic.NORMAL, VertexFormat.FLOAT3, 20
    )


def test_augment_replaces_mismatched_format():
    """A Float4 normal is dropped and the rest repacked before appending."""
    desc = VertexDescription.packed(
        (VertexSemantic.POSITION, VertexFormat.FLOAT3),
        (VertexSemantic.NORMAL, VertexFormat.FLOAT4),
        (VertexSemantic.TEXTURE0, VertexFormat.FLOAT2),
    )

    result = augment_vertex_description(
        desc, VertexSemantic.NORMAL, VertexFormat.FLOAT3
    )

    assert [(a.semantic, a.offset) for a in result] == [
        (VertexSemantic.POSITION, 0),
        (VertexSemantic.TEXTURE0, 12),
        (VertexSemantic.NORMAL, 20),
    ]
    assert result.stride == 32
    assert len(result) == 3


def test_augment_reuses_matching_attribute():
    desc = VertexDescription(
        stride=40,
        attributes=(
            VertexAttribute(VertexSemantic.POSITION, VertexFormat.FLOAT3, 0),
            VertexAttribute(VertexSemantic.NORMAL, VertexFormat.FLOAT3, 16),
        ),
    )

    result = augment_vertex_description(
        desc, VertexSemantic.NORMAL, VertexFormat.FLOAT3
    )

    # Same semantics, tightly repacked; nothing duplicated.
    assert [(a.semantic, a.offset) for a in result] == [
        (VertexSemantic.POSITION, 0),
        (VertexSemantic.NORMAL, 12),
    ]
    assert result.stride == 24


def test_structural_equality_and_ordering():
    a = VertexDescription.packed((VertexSemantic.POSITION, VertexFormat.FLOAT3))
    b = VertexDescription.packed((VertexSemantic.POSITION, VertexFormat.FLOAT3))
    c = VertexDescription(
        stride=12,
        attributes=(
            VertexAttribute(VertexSemantic.POSITION, VertexFormat.FLOAT2, 0),
            VertexAttribute(VertexSemantic.POINT_SIZE, VertexFormat.FLOAT1, 8),
        ),
    )

    assert a == b
    assert a != c
    # Same stride: fewer attributes sorts first.
    assert a.sort_key() < c.sort_key()


def test_validate_rejects_overlap():
    desc = VertexDescription(
        stride=16,
        attributes=(
            VertexAttribute(VertexSemantic.POSITION, VertexFormat.FLOAT3, 0),
            VertexAttribute(VertexSemantic.TEXTURE0, VertexFormat.FLOAT2, 8),
        ),
    )

    with pytest.raises(LayoutError, match="overlap"):
        desc.validate()


def test_validate_rejects_attribute_past_stride():
    desc = VertexDescription(
        stride=8,
        attributes=(
            VertexAttribute(VertexSemantic.POSITION, VertexFormat.FLOAT3, 0),
        ),
    )

    with pytest.raises(LayoutError):
        desc.validate()
