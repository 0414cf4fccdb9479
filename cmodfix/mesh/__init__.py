from cmodfix.mesh.buffer import Vertex, attribute_view, vertex_records
from cmodfix.mesh.layout import (
    VertexAttribute,
    VertexDescription,
    VertexFormat,
    VertexSemantic,
    augment_vertex_description,
)
from cmodfix.mesh.types import (
    Material,
    Mesh,
    Model,
    PrimitiveGroup,
    PrimitiveType,
)

__all__ = [
    "Material",
    "Mesh",
    "Model",
    "PrimitiveGroup",
    "PrimitiveType",
    "Vertex",
    "VertexAttribute",
    "VertexDescription",
    "VertexFormat",
    "VertexSemantic",
    "attribute_view",
    "augment_vertex_description",
    "vertex_records",
]
