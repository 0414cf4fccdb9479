import numpy as np
import pytest

from cmodfix.errors import MissingAttributeError
from cmodfix.mesh.layout import VertexSemantic
from cmodfix.mesh.types import Material, Model, PrimitiveType
from cmodfix.pipeline import fix_model, generate_model_vectors
from cmodfix.processing.strips import StripKind
from cmodfix.settings import FixSettings
from tests.conftest import read_attribute


def model_of(*meshes):
    model = Model()
    model.add_material(Material("default"))
    for mesh in meshes:
        model.add_mesh(mesh)
    return model


def test_no_stages_returns_model_untouched(cube):
    model = model_of(cube)

    result = fix_model(model, FixSettings())

    assert result is model
    assert result.meshes[0] is cube


def test_normals_then_uniquify(cube):
    settings = FixSettings(generate_normals=True, uniquify=True)

    result = fix_model(model_of(cube), settings)

    (mesh,) = result.meshes
    # Four corners on each of six flat sides.
    assert mesh.vertex_count == 24
    assert len(mesh.groups[0]) == 36
    assert cube.vertex_count == 8

    normals = read_attribute(mesh, VertexSemantic.NORMAL)
    assert np.all(np.abs(normals).sum(axis=1) == 1.0)


def test_smooth_angle_is_in_degrees(cube):
    flat = generate_model_vectors(
        model_of(cube), FixSettings(generate_normals=True, smooth_angle=89.0)
    )
    smooth = generate_model_vectors(
        model_of(cube), FixSettings(generate_normals=True, smooth_angle=91.0)
    )

    flat_normals = read_attribute(flat.meshes[0], VertexSemantic.NORMAL)
    smooth_normals = read_attribute(smooth.meshes[0], VertexSemantic.NORMAL)
    assert np.all(np.abs(flat_normals).max(axis=1) == 1.0)
    assert np.all(np.abs(smooth_normals).max(axis=1) < 1.0)


def test_normals_and_tangents(split_cube):
    settings = FixSettings(generate_normals=True, generate_tangents=True)

    result = fix_model(model_of(split_cube), settings)

    desc = result.meshes[0].vertex_description
    assert [a.semantic for a in desc] == [
        VertexSemantic.POSITION,
        VertexSemantic.TEXTURE0,
        VertexSemantic.NORMAL,
        VertexSemantic.TANGENT,
    ]
    assert result.materials[0].name == "default"


def test_generation_errors_abort(cube):
    with pytest.raises(MissingAttributeError):
        fix_model(model_of(cube), FixSettings(generate_tangents=True))


def test_merge_runs_before_uniquify(cube):
    result = fix_model(
        model_of(cube, cube), FixSettings(merge=True, uniquify=True)
    )

    (mesh,) = result.meshes
    assert mesh.vertex_count == 8
    first, second = (g.indices.tolist() for g in mesh.groups)
    assert first == second

    positions = read_attribute(mesh, VertexSemantic.POSITION)
    expected = read_attribute(cube, VertexSemantic.POSITION)
    np.testing.assert_array_equal(
        positions[first], expected[cube.groups[0].indices]
    )


def test_strips_skipped_without_a_generator(cube, caplog):
    result = fix_model(model_of(cube), FixSettings(stripify=True))

    (group,) = result.meshes[0].groups
    assert group.prim == PrimitiveType.TRI_LIST
    assert group.indices.tolist() == cube.groups[0].indices.tolist()
    assert "not available" in caplog.text


def test_strips_use_the_given_generator(cube):
    seen = []

    def stripifier(indices, cache_size):
        seen.append(cache_size)
        return [(StripKind.STRIP, indices[:4])]

    settings = FixSettings(stripify=True, vertex_cache_size=32)
    result = fix_model(model_of(cube), settings, stripifier)

    assert seen == [32]
    assert result.meshes[0].groups[0].prim == PrimitiveType.TRI_STRIP
