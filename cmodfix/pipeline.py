# cmodfix/pipeline.py
from __future__ import annotations

import logging
import math
from typing import Optional

from cmodfix.mesh.types import Model
from cmodfix.processing.merge import merge_model_meshes
from cmodfix.processing.normals import generate_normals
from cmodfix.processing.strips import Stripifier, convert_to_strips
from cmodfix.processing.tangents import generate_tangents
from cmodfix.processing.uniquify import uniquify_vertices
from cmodfix.settings import FixSettings

logger = logging.getLogger(__name__)


def generate_model_vectors(model: Model, settings: FixSettings) -> Model:
    """
    Return a new model whose meshes carry generated normals and/or
    tangents. Each replaced mesh is dropped; the source model is not
    modified.
    """
    new_model = Model()
    for material in model.materials:
        new_model.add_material(material)

    smooth_angle = math.radians(settings.smooth_angle)
    for i, mesh in enumerate(model.meshes):
        if settings.generate_normals:
            logger.debug("Generating normals for mesh %d", i)
            mesh = generate_normals(mesh, smooth_angle, settings.weld)

        if settings.generate_tangents:
            logger.debug("Generating tangents for mesh %d", i)
            mesh = generate_tangents(mesh, settings.weld)

        new_model.add_mesh(mesh)

    return new_model


def fix_model(
    model: Model,
    settings: FixSettings,
    stripifier: Optional[Stripifier] = None,
) -> Model:
    """
    Run the enabled stages in order: normals/tangents, merge, uniquify,
    strips. Generation errors propagate and no partial model is returned.
    Without a stripifier the strip stage is skipped with a warning.
    """
    if settings.generate_normals or settings.generate_tangents:
        model = generate_model_vectors(model, settings)

    if settings.merge:
        model = merge_model_meshes(model)

    if settings.uniquify:
        for mesh in model.meshes:
            uniquify_vertices(mesh)

    if settings.stripify:
        if stripifier is None:
            logger.warning(
                "Triangle strip generation is not available, skipping"
            )
            return model
        for mesh in model.meshes:
            convert_to_strips(mesh, stripifier, settings.vertex_cache_size)

    return model
