# cmodfix/processing/merge.py
from __future__ import annotations

import logging
from itertools import groupby
from typing import List, Sequence

from cmodfix.mesh.types import Mesh, Model, PrimitiveGroup

logger = logging.getLogger(__name__)


def add_group_with_offset(
    mesh: Mesh, group: PrimitiveGroup, offset: int
) -> None:
    if len(group.indices) == 0:
        return
    mesh.add_group(group.prim, group.material_index, group.indices + offset)


def merge_meshes(meshes: Sequence[Mesh]) -> List[Mesh]:
    """
    Merge all meshes that share the same vertex description.

    Meshes are stably sorted by description, then each run of equal
    descriptions becomes one mesh: vertex buffers are concatenated in order
    and every group is re-added with its indices offset by the number of
    vertices that precede its source mesh.
    """
    ordered = sorted(meshes, key=lambda m: m.vertex_description.sort_key())

    merged: List[Mesh] = []
    for desc, run in groupby(ordered, key=lambda m: m.vertex_description):
        sources = list(run)
        total = sum(m.vertex_count for m in sources)
        vertex_data = b"".join(m.vertex_data for m in sources)

        mesh = Mesh(desc, vertex_data, total, name=sources[0].name)

        vertex_count = 0
        for source in sources:
            for group in source.groups:
                add_group_with_offset(mesh, group, vertex_count)
            vertex_count += source.vertex_count
        assert vertex_count == total

        merged.append(mesh)

    logger.info("Merged %d meshes into %d", len(meshes), len(merged))
    return merged


def merge_model_meshes(model: Model) -> Model:
    """Return a new model with the same materials and merged meshes."""
    new_model = Model()
    for material in model.materials:
        new_model.add_material(material)
    for mesh in merge_meshes(model.meshes):
        new_model.add_mesh(mesh)
    return new_model
