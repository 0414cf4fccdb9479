from cmodfix.processing.faces import FaceArray, build_adjacency, build_faces
from cmodfix.processing.merge import merge_meshes, merge_model_meshes
from cmodfix.processing.normals import generate_normals
from cmodfix.processing.strips import StripKind, convert_to_strips
from cmodfix.processing.tangents import generate_tangents
from cmodfix.processing.uniquify import uniquify_vertices
from cmodfix.processing.weld import join_vertices

__all__ = [
    "FaceArray",
    "StripKind",
    "build_adjacency",
    "build_faces",
    "convert_to_strips",
    "generate_normals",
    "generate_tangents",
    "join_vertices",
    "merge_meshes",
    "merge_model_meshes",
    "uniquify_vertices",
]
