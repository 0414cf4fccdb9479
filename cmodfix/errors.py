# cmodfix/errors.py


class MeshError(ValueError):
    """Base class for bad mesh input: layouts, topology, attributes."""


class LayoutError(MeshError):
    pass


class InvalidTopologyError(MeshError):
    """A primitive group has an index count its topology cannot use."""


class UnsupportedGeometryError(MeshError):
    """The mesh cannot be processed by the requested generator."""


class UnsupportedTopologyError(UnsupportedGeometryError):
    """A primitive group is not a triangle list, strip or fan."""


class MissingAttributeError(MeshError):
    """A vertex attribute required by a generator is absent."""


class ModelFormatError(ValueError):
    """A model stream could not be decoded or encoded."""


class StripifyError(RuntimeError):
    pass
